"""Order aggregate (CQRS) — a finalized, paid order.

An Order is created once per successful payment confirmation from the
checkout's order intent, and is never touched by the cart afterwards. Its
status only moves through repository-side transitions.

State Machine:
    PROCESSING → SHIPPED → DELIVERED → RETURNED
    PROCESSING → CANCELLED
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String, Text, ValueObject

from ordering.checkout.address import FIELD_MAX_LENGTHS
from ordering.checkout.intent import LINE_MAX_LENGTHS, PAYMENT_METHOD_MAX_LENGTH
from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
}

_TRACKING_STATUS = {
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
    OrderStatus.RETURNED: "Returned",
}

DEFAULT_CARRIER = "Storefront Logistics"
DEFAULT_DELIVERY_DAYS = 7


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """The delivery address captured at checkout.

    Once recorded on an Order, the address is immutable — it represents where
    the order was shipped.
    """

    first_name = String(required=True, max_length=FIELD_MAX_LENGTHS["first_name"])
    last_name = String(required=True, max_length=FIELD_MAX_LENGTHS["last_name"])
    email = String(required=True, max_length=FIELD_MAX_LENGTHS["email"])
    phone = String(required=True, max_length=FIELD_MAX_LENGTHS["phone"])
    address = String(required=True, max_length=FIELD_MAX_LENGTHS["address"])
    city = String(required=True, max_length=FIELD_MAX_LENGTHS["city"])
    state = String(required=True, max_length=FIELD_MAX_LENGTHS["state"])
    zip_code = String(required=True, max_length=FIELD_MAX_LENGTHS["zip_code"])
    country = String(max_length=FIELD_MAX_LENGTHS["country"], default="US")


@ordering.value_object(part_of="Order")
class Tracking:
    """Carrier tracking information shown in the order history."""

    number = String(required=True, max_length=50)
    carrier = String(required=True, max_length=100)
    status = String(required=True, max_length=50)
    estimated_delivery = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A copy of one cart line at the moment the order was confirmed."""

    product_id = String(required=True, max_length=LINE_MAX_LENGTHS["product_id"])
    variant_id = String(required=True, max_length=LINE_MAX_LENGTHS["variant_id"])
    title = String(required=True, max_length=LINE_MAX_LENGTHS["title"])
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    selected_size = String(max_length=LINE_MAX_LENGTHS["selected_size"])
    selected_color = String(max_length=LINE_MAX_LENGTHS["selected_color"])
    image = String(max_length=LINE_MAX_LENGTHS["image"])

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    owner_id = String(required=True, max_length=128)
    lines = HasMany(OrderLine)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(required=True, max_length=PAYMENT_METHOD_MAX_LENGTH)
    payment_reference = String(required=True, max_length=255)
    notes = Text()
    subtotal = Float(required=True, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="usd")
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    tracking = ValueObject(Tracking)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_lines(self):
        if not self.lines:
            raise ValidationError({"lines": ["An order must contain at least one line"]})

    @invariant.post
    def line_prices_must_be_positive(self):
        if any(line.unit_price <= 0 for line in self.lines):
            raise ValidationError({"lines": ["Every line must have a positive unit price"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        owner_id,
        intent,
        payment_reference,
        carrier=DEFAULT_CARRIER,
        delivery_days=DEFAULT_DELIVERY_DAYS,
        now=None,
    ):
        """Create an order from a confirmed checkout.

        Args:
            owner_id: The authenticated identity placing the order.
            intent: The ``OrderIntent`` that was charged.
            payment_reference: Gateway reference of the successful payment.
            carrier: Carrier name shown in the tracking block.
            delivery_days: Days until the estimated delivery.
            now: Creation time (defaults to the current UTC time).
        """
        now = now or datetime.now(UTC)
        address = intent.shipping_address

        order = cls(
            owner_id=str(owner_id),
            shipping_address=ShippingAddress(
                first_name=address.first_name,
                last_name=address.last_name,
                email=address.email,
                phone=address.phone,
                address=address.address,
                city=address.city,
                state=address.state,
                zip_code=address.zip_code,
                country=address.country or "US",
            ),
            payment_method=intent.payment_method,
            payment_reference=payment_reference,
            notes=intent.notes or None,
            subtotal=intent.subtotal,
            shipping=intent.shipping,
            tax=intent.tax,
            total=intent.total,
            currency=intent.currency,
            status=OrderStatus.PROCESSING.value,
            tracking=Tracking(
                number=f"TRK{int(now.timestamp() * 1000)}",
                carrier=carrier,
                status=_TRACKING_STATUS[OrderStatus.PROCESSING],
                estimated_delivery=now + timedelta(days=delivery_days),
            ),
            created_at=now,
            updated_at=now,
            lines=[
                OrderLine(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    title=line.title,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    selected_size=line.selected_size,
                    selected_color=line.selected_color,
                    image=line.image,
                )
                for line in intent.lines
            ],
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                owner_id=order.owner_id,
                payment_reference=payment_reference,
                total=order.total,
                currency=order.currency,
                item_count=sum(line.quantity for line in order.lines),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def can_transition_to(self, new_status):
        return OrderStatus(new_status) in _VALID_TRANSITIONS[OrderStatus(self.status)]

    def transition_to(self, new_status, now=None):
        """Move the order to ``new_status`` if the transition graph allows it."""
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None

        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = now or datetime.now(UTC)
        self.status = target.value
        self.tracking = Tracking(
            number=self.tracking.number,
            carrier=self.tracking.carrier,
            status=_TRACKING_STATUS[target],
            estimated_delivery=self.tracking.estimated_delivery,
        )
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    def is_returnable(self, window_days, now=None):
        """True while the order is inside the return window."""
        now = now or datetime.now(UTC)
        created_at = self.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return now - created_at <= timedelta(days=window_days)
