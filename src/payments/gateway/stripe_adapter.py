"""Stripe payment gateway adapter.

Uses the stripe-python SDK to create and confirm PaymentIntents. Calls are
blocking; async callers run them in a worker thread.
"""

import stripe
import structlog

from payments.gateway.port import (
    ConfirmationResult,
    IntentResult,
    PaymentDetails,
    PaymentGateway,
    intent_id_from_secret,
)

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        idempotency_key: str,
    ) -> IntentResult:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency,
                payment_method_types=["card"],
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.warning("stripe_intent_failed", error=str(exc), idempotency_key=idempotency_key)
            return IntentResult(
                success=False,
                gateway_status="failed",
                failure_reason=exc.user_message or "Payment gateway unavailable",
            )

        return IntentResult(
            success=True,
            client_secret=intent.client_secret,
            intent_id=intent.id,
            gateway_status=intent.status,
        )

    def confirm_intent(self, client_secret: str, details: PaymentDetails) -> ConfirmationResult:
        intent_id = intent_id_from_secret(client_secret)
        try:
            intent = stripe.PaymentIntent.confirm(
                intent_id,
                payment_method=details.payment_method_id,
                api_key=self.api_key,
            )
        except stripe.CardError as exc:
            return ConfirmationResult(
                success=False,
                gateway_status="requires_payment_method",
                failure_reason=exc.user_message or "Your card was declined.",
                decline_code=exc.code,
            )
        except stripe.StripeError as exc:
            logger.warning("stripe_confirm_failed", error=str(exc), intent_id=intent_id)
            return ConfirmationResult(
                success=False,
                gateway_status="failed",
                failure_reason=exc.user_message or "Payment gateway unavailable",
            )

        if intent.status != "succeeded":
            return ConfirmationResult(
                success=False,
                gateway_status=intent.status,
                failure_reason=f"Payment not completed (status: {intent.status})",
            )
        return ConfirmationResult(success=True, payment_reference=intent.id, gateway_status=intent.status)
