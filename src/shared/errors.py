"""Boundary error taxonomy shared by every storefront context.

Domain validation failures use Protean's ``ValidationError``. The classes
here cover failures at the edges of the system (payment gateway, document
store, identity provider, catalogue) and always carry a message that is safe
to show to a shopper.
"""


class StorefrontError(Exception):
    """Base exception for all storefront boundary errors."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, *, user_message: str | None = None):
        self.user_message = user_message or self.default_message
        super().__init__(message or self.user_message)


class ConfigurationError(StorefrontError):
    """Raised when a required setting is missing at the moment it is needed."""

    default_message = "The store is not configured to perform this operation."


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class PaymentError(StorefrontError):
    """Base class for recoverable payment failures."""


class PaymentSetupError(PaymentError):
    """Raised when a payment intent cannot be created.

    Covers non-positive amounts, an unreachable gateway and amounts that no
    longer match the server-side order draft.
    """

    default_message = "We could not start your payment. Please try again."


class AmountMismatchError(PaymentSetupError):
    """The total the client expects differs from the server-computed amount."""

    def __init__(self, expected: int, claimed: int):
        self.expected = expected
        self.claimed = claimed
        super().__init__(
            f"Claimed amount {claimed} does not match order amount {expected}",
            user_message="Prices have changed since you started checkout. Please review your order total.",
        )


class PaymentDeclinedError(PaymentError):
    """Raised when the gateway declines a confirmation attempt."""

    default_message = "Your payment was declined. Please check your payment details and try again."

    def __init__(self, reason: str | None = None, *, decline_code: str | None = None):
        self.reason = reason
        self.decline_code = decline_code
        super().__init__(reason, user_message=reason or self.default_message)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
class PersistenceError(StorefrontError):
    """Raised when the document store rejects or fails a write."""

    default_message = "We could not save your changes. Please try again."


class OrderNotRecordedError(PersistenceError):
    """A payment was captured but the order could not be written.

    Retrying blindly risks a duplicate order, so the shopper is directed to
    support with the payment reference instead.
    """

    def __init__(self, payment_reference: str):
        self.payment_reference = payment_reference
        super().__init__(
            f"Order not recorded for payment {payment_reference}",
            user_message=(
                "Your payment went through but we could not record your order. "
                f"Please contact support and quote reference {payment_reference}."
            ),
        )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutTimeoutError(StorefrontError):
    """Raised when a payment call does not answer within the configured timeout."""

    default_message = (
        "The payment service is taking too long to respond. "
        "Check your order history before trying again."
    )


class PaymentOutcomeUnknownError(CheckoutTimeoutError):
    """The confirmation call timed out after it may already have charged the card.

    The checkout refuses another submission until the shopper leaves it, and
    support can resolve the payment from ``intent_id``.
    """

    def __init__(self, intent_id: str, draft_id: str | None = None):
        self.intent_id = intent_id
        self.draft_id = draft_id
        super().__init__(
            f"Confirmation of payment {intent_id} timed out",
            user_message=(
                "We could not confirm whether your payment went through. "
                f"Please check your order history or contact support and quote reference {intent_id} "
                "before trying again."
            ),
        )


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
class AuthError(StorefrontError):
    """Raised by the identity boundary with a closed error code.

    ``code`` is a member of ``identity.auth.AuthErrorCode``; raw provider codes
    are never exposed.
    """

    def __init__(self, code, message: str):
        self.code = code
        super().__init__(message, user_message=message)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class CatalogError(StorefrontError):
    """Raised when the catalogue API cannot be reached or answers with an error."""

    default_message = "Products are unavailable right now. Please try again shortly."


class ProductNotFoundError(CatalogError):
    """Raised when the catalogue has no product with the requested id."""

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}", user_message="This product is no longer available.")
