"""Wiring for one shopper's browsing session.

The cart and the checkout flow are explicitly constructed objects owned by
the session; there is no process-wide cart.
"""

from ordering.cart.cart import CartStore
from ordering.cart.storage import build_storage
from ordering.checkout.flow import CheckoutFlow
from ordering.checkout.intent import OrderIntentBuilder, PricingPolicy
from payments.relay import PaymentRelay
from shared.config import get_settings


def build_cart(settings=None, storage=None, session_key=None) -> CartStore:
    settings = settings or get_settings()
    return CartStore(
        storage or build_storage(settings),
        session_key=session_key or settings.CART_SESSION_KEY,
    )


def build_checkout(cart, owner_id, settings=None, relay=None, orders=None) -> CheckoutFlow:
    """Build a checkout flow for ``cart`` using the configured pricing, relay and timeouts."""
    settings = settings or get_settings()
    relay = relay or PaymentRelay(settings.PAYMENT_SERVER_URL, timeout=settings.PAYMENT_TIMEOUT_SECONDS)
    return CheckoutFlow(
        cart,
        relay,
        owner_id,
        orders=orders,
        builder=OrderIntentBuilder(policy=PricingPolicy.from_settings(settings), currency=settings.CURRENCY),
        timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        carrier=settings.CARRIER_NAME,
        delivery_days=settings.DELIVERY_ESTIMATE_DAYS,
    )
