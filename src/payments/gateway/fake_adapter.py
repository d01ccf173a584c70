"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
It can be configured at runtime to succeed or fail, making it useful for:
- Manual API testing via /payment/gateway/configure
- Automated tests with predictable outcomes
- Development without real gateway credentials

Follows the same pattern as Stripe's test mode (test API keys + test card
numbers) but simplified.
"""

from uuid import uuid4

from payments.gateway.port import (
    ConfirmationResult,
    IntentResult,
    PaymentDetails,
    PaymentGateway,
    intent_id_from_secret,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.decline_code: str | None = "card_declined"
        self.intent_creation_fails: bool = False
        self.calls: list[dict] = []
        self.intents: dict[str, dict] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        decline_code: str | None = "card_declined",
        intent_creation_fails: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.decline_code = decline_code
        self.intent_creation_fails = intent_creation_fails

    def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        idempotency_key: str,
    ) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount_minor_units": amount_minor_units,
                "currency": currency,
                "idempotency_key": idempotency_key,
            }
        )

        if self.intent_creation_fails:
            return IntentResult(success=False, gateway_status="failed", failure_reason="Gateway unavailable")

        for intent_id, intent in self.intents.items():
            if intent["idempotency_key"] == idempotency_key:
                return IntentResult(
                    success=True,
                    client_secret=intent["client_secret"],
                    intent_id=intent_id,
                    gateway_status=intent["status"],
                )

        intent_id = f"pi_fake_{uuid4().hex[:12]}"
        client_secret = f"{intent_id}_secret_{uuid4().hex[:12]}"
        self.intents[intent_id] = {
            "client_secret": client_secret,
            "amount_minor_units": amount_minor_units,
            "currency": currency,
            "idempotency_key": idempotency_key,
            "status": "requires_payment_method",
        }
        return IntentResult(
            success=True,
            client_secret=client_secret,
            intent_id=intent_id,
            gateway_status="requires_payment_method",
        )

    def confirm_intent(self, client_secret: str, details: PaymentDetails) -> ConfirmationResult:
        intent_id = intent_id_from_secret(client_secret)
        self.calls.append(
            {
                "method": "confirm_intent",
                "intent_id": intent_id,
                "payment_method_id": details.payment_method_id,
            }
        )

        intent = self.intents.get(intent_id)
        if intent is None or intent["client_secret"] != client_secret:
            return ConfirmationResult(
                success=False,
                gateway_status="failed",
                failure_reason="No such payment intent",
            )

        if intent["status"] == "succeeded":
            return ConfirmationResult(success=True, payment_reference=intent_id, gateway_status="succeeded")

        if self.should_succeed:
            intent["status"] = "succeeded"
            return ConfirmationResult(success=True, payment_reference=intent_id, gateway_status="succeeded")
        return ConfirmationResult(
            success=False,
            gateway_status="requires_payment_method",
            failure_reason=self.failure_reason,
            decline_code=self.decline_code,
        )
