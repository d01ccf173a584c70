"""Payment gateway port (abstract interface).

Defines the two-phase contract all payment gateway adapters implement: create
an intent for a fixed amount, then confirm it with the shopper's payment
details. This enables swapping between FakeGateway (dev/test) and
StripeGateway (production) without changing any application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class IntentResult:
    """Result of a payment intent creation attempt."""

    success: bool
    client_secret: str | None = None
    intent_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class ConfirmationResult:
    """Result of confirming an intent."""

    success: bool
    payment_reference: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None
    decline_code: str | None = None


@dataclass(frozen=True)
class PaymentDetails:
    """What the shopper entered on the payment step.

    ``payment_method_id`` is the gateway's tokenized card reference; raw card
    numbers never pass through this system.
    """

    payment_method_id: str
    billing_name: str | None = None
    billing_email: str | None = None
    billing_zip: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        idempotency_key: str,
    ) -> IntentResult:
        """Reserve a charge of exactly ``amount_minor_units`` and return its client secret."""
        ...

    @abstractmethod
    def confirm_intent(
        self,
        client_secret: str,
        details: PaymentDetails,
    ) -> ConfirmationResult:
        """Confirm a previously created intent with the shopper's payment details."""
        ...


def intent_id_from_secret(client_secret: str) -> str:
    """Client secrets have the form ``<intent id>_secret_<token>``."""
    return client_secret.split("_secret_", 1)[0]
