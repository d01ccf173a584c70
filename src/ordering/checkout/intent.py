"""Order intent — the immutable order payload assembled at checkout.

``OrderIntentBuilder`` snapshots the cart, shipping address and payment choice
into an ``OrderIntent`` without touching the cart. Shipping, tax and total are
derived from the subtotal using a configured ``PricingPolicy``.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError

from ordering.cart.cart import CartLine, CartSnapshot
from ordering.checkout.address import ShippingDetails

# Upper bounds shared with the recorded order, so anything charged can be recorded
LINE_MAX_LENGTHS = {
    "product_id": 100,
    "variant_id": 255,
    "title": 500,
    "selected_size": 50,
    "selected_color": 50,
    "image": 1000,
}
PAYMENT_METHOD_MAX_LENGTH = 50


def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount (dollars) to minor units (cents)."""
    return int(round(amount * 100))


@dataclass(frozen=True)
class PricingPolicy:
    """Shipping and tax constants. These are configuration, not derived values."""

    free_shipping_threshold: float = 50.0
    flat_shipping_fee: float = 9.99
    tax_rate: float = 0.08

    @classmethod
    def from_settings(cls, settings) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=settings.FREE_SHIPPING_THRESHOLD,
            flat_shipping_fee=settings.FLAT_SHIPPING_FEE,
            tax_rate=settings.TAX_RATE,
        )

    def shipping_for(self, subtotal: float) -> float:
        return 0.0 if subtotal > self.free_shipping_threshold else self.flat_shipping_fee

    def tax_for(self, subtotal: float) -> float:
        return round(subtotal * self.tax_rate, 2)


@dataclass(frozen=True)
class OrderIntent:
    """Everything needed to charge for and record one order."""

    lines: tuple[CartLine, ...]
    shipping_address: ShippingDetails
    payment_method: str
    notes: str
    subtotal: float
    shipping: float
    tax: float
    total: float
    currency: str = "usd"

    @property
    def amount_minor_units(self) -> int:
        return to_minor_units(self.total)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)


class OrderIntentBuilder:
    def __init__(self, policy: PricingPolicy | None = None, currency: str = "usd"):
        self.policy = policy or PricingPolicy()
        self.currency = currency

    def build(
        self,
        cart_snapshot: CartSnapshot,
        shipping_address: ShippingDetails | dict,
        payment_method: str,
        notes: str = "",
    ) -> OrderIntent:
        """Assemble an order intent, raising ``ValidationError`` when checkout cannot proceed."""
        if isinstance(shipping_address, dict):
            shipping_address = ShippingDetails.from_form(shipping_address)

        errors: dict[str, list[str]] = {}
        if not cart_snapshot.lines:
            errors["cart"] = ["Cannot check out an empty cart"]
        errors.update(shipping_address.errors())
        for line in cart_snapshot.lines:
            for name, limit in LINE_MAX_LENGTHS.items():
                if len(str(getattr(line, name) or "")) > limit:
                    errors.setdefault("lines", []).append(
                        f"{line.variant_id[:40]}: {name} must be at most {limit} characters"
                    )
        if not (payment_method or "").strip():
            errors["payment_method"] = ["is required"]
        elif len(payment_method.strip()) > PAYMENT_METHOD_MAX_LENGTH:
            errors["payment_method"] = [f"must be at most {PAYMENT_METHOD_MAX_LENGTH} characters"]
        if errors:
            raise ValidationError(errors)

        subtotal = round(sum(line.unit_price * line.quantity for line in cart_snapshot.lines), 2)
        shipping = self.policy.shipping_for(subtotal)
        tax = self.policy.tax_for(subtotal)
        total = round(subtotal + shipping + tax, 2)

        if total <= 0:
            raise ValidationError({"total": ["Order total must be greater than zero"]})

        return OrderIntent(
            lines=tuple(cart_snapshot.lines),
            shipping_address=shipping_address,
            payment_method=payment_method.strip(),
            notes=(notes or "").strip(),
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=total,
            currency=self.currency,
        )
