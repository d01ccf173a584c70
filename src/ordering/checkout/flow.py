"""Checkout flow — Shipping → Payment → Confirmed for one browsing session.

The flow owns the step the shopper is on and drives the payment handoff in a
fixed order:

    build intent → create payment intent → confirm payment
        → record order → clear cart → Confirmed

An order is recorded only after the payment is confirmed, and the cart is
cleared only after the order is recorded. Any failure leaves the flow at
``Payment`` with the cart intact and a shopper-facing ``last_error``. Nothing
is retried automatically.

Once the card may have been charged without an order to show for it (the
confirmation timed out, or the order could not be recorded) the flow holds
the payment reference in ``unresolved_payment`` and refuses another payment
until the shopper leaves checkout.
"""

import asyncio
from enum import Enum

import structlog
from protean.exceptions import InvalidOperationError, ValidationError

from ordering.checkout.address import ShippingDetails
from ordering.checkout.intent import OrderIntentBuilder
from ordering.order.order import DEFAULT_CARRIER, DEFAULT_DELIVERY_DAYS, Order
from ordering.order.repository import OrderRepository
from payments.gateway.port import intent_id_from_secret
from shared.errors import (
    CheckoutTimeoutError,
    OrderNotRecordedError,
    PaymentOutcomeUnknownError,
    StorefrontError,
)

logger = structlog.get_logger(__name__)


class CheckoutStep(Enum):
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMED = "confirmed"


def _describe(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(f"{field}: {', '.join(messages)}" for field, messages in exc.messages.items())
    return exc.user_message


class CheckoutFlow:
    """Drives one checkout attempt over an explicitly passed cart.

    Args:
        cart: The session's ``CartStore``.
        relay: A ``PaymentRelay`` (or anything with async ``create_intent``
            and ``confirm``).
        owner_id: The authenticated identity placing the order.
        orders: Order persistence; defaults to ``OrderRepository()``.
        builder: Intent builder carrying the pricing policy.
        timeout: Seconds each payment call may take before giving up.
    """

    def __init__(
        self,
        cart,
        relay,
        owner_id,
        orders=None,
        builder=None,
        timeout=30.0,
        carrier=DEFAULT_CARRIER,
        delivery_days=DEFAULT_DELIVERY_DAYS,
    ):
        self.cart = cart
        self.relay = relay
        self.owner_id = owner_id
        self.orders = orders or OrderRepository()
        self.builder = builder or OrderIntentBuilder()
        self.timeout = timeout
        self.carrier = carrier
        self.delivery_days = delivery_days

        self.step = CheckoutStep.SHIPPING
        self.shipping: ShippingDetails | None = None
        self.last_error: str | None = None
        self.order_id: str | None = None
        self.unresolved_payment: str | None = None
        self._in_flight = False

    @property
    def is_busy(self) -> bool:
        """True while a payment submission is outstanding (the submit button is disabled)."""
        return self._in_flight

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def submit_shipping(self, form) -> ShippingDetails:
        self._require_idle()
        if self.step is not CheckoutStep.SHIPPING:
            raise InvalidOperationError(f"Shipping details cannot be submitted at the {self.step.value} step")

        details = form if isinstance(form, ShippingDetails) else ShippingDetails.from_form(form)
        try:
            details.validate()
        except ValidationError as exc:
            self.last_error = _describe(exc)
            raise

        self.shipping = details
        self.last_error = None
        self.step = CheckoutStep.PAYMENT
        return details

    def back_to_shipping(self) -> None:
        self._require_idle()
        if self.step is not CheckoutStep.PAYMENT:
            raise InvalidOperationError(f"Cannot go back to shipping from the {self.step.value} step")
        self.step = CheckoutStep.SHIPPING

    def abandon(self) -> None:
        """Leave checkout. The cart is untouched and nothing further is charged."""
        self._require_idle()
        logger.info("checkout_abandoned", owner_id=str(self.owner_id), step=self.step.value)
        self.step = CheckoutStep.SHIPPING
        self.shipping = None
        self.last_error = None
        self.order_id = None
        self.unresolved_payment = None

    async def submit_payment(self, details, payment_method="card", notes=""):
        """Charge the cart and record the order. Returns the new order's id."""
        self._require_idle()
        if self.step is not CheckoutStep.PAYMENT:
            raise InvalidOperationError(f"Payment cannot be submitted at the {self.step.value} step")
        if self.unresolved_payment is not None:
            raise InvalidOperationError(
                f"Payment {self.unresolved_payment} is unresolved; leave checkout before paying again"
            )

        self._in_flight = True
        self.last_error = None
        try:
            intent = self.builder.build(self.cart.snapshot(), self.shipping, payment_method, notes)
            handle = await self._bounded(self.relay.create_intent(intent, self.owner_id), "create_intent")
            confirmation = await self._confirm(handle, details)
            order_id = self._record(intent, confirmation)
            self.cart.clear()
        except (ValidationError, StorefrontError) as exc:
            self.last_error = _describe(exc)
            logger.info(
                "checkout_payment_failed",
                owner_id=str(self.owner_id),
                error_type=type(exc).__name__,
            )
            raise
        finally:
            self._in_flight = False

        self.order_id = order_id
        self.step = CheckoutStep.CONFIRMED
        logger.info("checkout_confirmed", owner_id=str(self.owner_id), order_id=order_id)
        return order_id

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _require_idle(self) -> None:
        if self._in_flight:
            raise InvalidOperationError("A payment is already being processed")

    async def _bounded(self, awaitable, operation):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except TimeoutError as exc:
            logger.warning("checkout_call_timed_out", operation=operation, timeout=self.timeout)
            raise CheckoutTimeoutError(f"{operation} did not answer within {self.timeout}s") from exc

    async def _confirm(self, handle, details):
        try:
            return await asyncio.wait_for(self.relay.confirm(handle, details), timeout=self.timeout)
        except TimeoutError as exc:
            # The gateway call keeps running in its worker thread and may still charge the card
            intent_id = intent_id_from_secret(handle.client_secret)
            self.unresolved_payment = intent_id
            logger.critical(
                "payment_outcome_unknown",
                owner_id=str(self.owner_id),
                draft_id=handle.draft_id,
                intent_id=intent_id,
                amount_minor_units=handle.amount_minor_units,
                timeout=self.timeout,
            )
            raise PaymentOutcomeUnknownError(intent_id, draft_id=handle.draft_id) from exc

    def _record(self, intent, confirmation) -> str:
        reference = confirmation.payment_reference
        try:
            order = Order.place(
                self.owner_id,
                intent,
                reference,
                carrier=self.carrier,
                delivery_days=self.delivery_days,
            )
            return self.orders.create(order, idempotency_key=reference)
        except Exception as exc:
            # Charged already: every failure from here on needs support, not a retry
            logger.critical(
                "order_not_recorded",
                owner_id=str(self.owner_id),
                payment_reference=reference,
                amount_minor_units=confirmation.amount_minor_units,
                error_type=type(exc).__name__,
            )
            self.unresolved_payment = reference
            raise OrderNotRecordedError(reference) from exc
