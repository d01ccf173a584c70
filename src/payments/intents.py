"""Server-side payment intent creation.

The charge amount is never taken from the client. A checkout first stores an
``OrderDraft`` whose lines are re-priced from the catalogue; the intent is
then created for the draft's amount. A client may send the total it expects,
but only so a mismatch can be reported back to the shopper.
"""

from dataclasses import dataclass
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.cart.cart import CartLine, CartSnapshot
from ordering.checkout.draft import OrderDraft
from ordering.checkout.intent import OrderIntentBuilder
from payments.gateway import get_gateway
from shared.errors import AmountMismatchError, PaymentSetupError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LineRef:
    """A cart line as the client describes it: which variant, how many. No price."""

    product_id: str
    quantity: int
    selected_size: str | None = None
    selected_color: str | None = None


class IntentService:
    def __init__(self, gateway=None, catalog=None, builder: OrderIntentBuilder | None = None):
        self._gateway = gateway
        self.catalog = catalog
        self.builder = builder or OrderIntentBuilder()

    @property
    def gateway(self):
        # Resolved lazily so a missing gateway key only fails payment operations
        return self._gateway or get_gateway()

    async def create_draft(self, owner_id, line_refs, shipping_address, payment_method, notes=""):
        """Re-price ``line_refs`` from the catalogue and store the result as a draft."""
        lines = []
        for ref in line_refs:
            product = await self.catalog.get_product(ref.product_id)
            try:
                lines.append(
                    CartLine(
                        product_id=str(product.id),
                        title=product.title,
                        unit_price=product.price,
                        quantity=ref.quantity,
                        selected_size=ref.selected_size,
                        selected_color=ref.selected_color,
                        image=product.image,
                    )
                )
            except ValueError as exc:
                raise ValidationError({"lines": [str(exc)]}) from exc

        try:
            snapshot = CartSnapshot.from_lines(lines)
        except ValueError as exc:
            raise ValidationError({"lines": [str(exc)]}) from exc

        intent = self.builder.build(snapshot, shipping_address, payment_method, notes)
        draft = OrderDraft.from_intent(owner_id, intent)
        current_domain.repository_for(OrderDraft).add(draft)

        logger.info(
            "order_draft_created",
            draft_id=str(draft.id),
            owner_id=draft.owner_id,
            amount_minor_units=draft.amount_minor_units,
        )
        return draft

    def create_intent(self, amount_minor_units, currency, idempotency_key=None) -> str:
        """Ask the gateway for an intent and return its client secret."""
        if isinstance(amount_minor_units, bool) or not isinstance(amount_minor_units, int) or amount_minor_units <= 0:
            raise PaymentSetupError(f"Amount must be a positive number of minor units, got {amount_minor_units!r}")

        key = idempotency_key or f"intent-{uuid4().hex}"
        result = self.gateway.create_intent(amount_minor_units, currency, key)
        if not result.success:
            logger.warning("payment_intent_failed", reason=result.failure_reason, idempotency_key=key)
            raise PaymentSetupError(f"Gateway refused the intent: {result.failure_reason}")

        logger.info(
            "payment_intent_created",
            intent_id=result.intent_id,
            amount_minor_units=amount_minor_units,
            currency=currency,
        )
        return result.client_secret

    def create_intent_for_draft(self, draft_id, claimed_total=None) -> str:
        draft = current_domain.repository_for(OrderDraft).get(draft_id)

        if claimed_total is not None and int(claimed_total) != draft.amount_minor_units:
            logger.warning(
                "payment_amount_mismatch",
                draft_id=str(draft_id),
                expected=draft.amount_minor_units,
                claimed=claimed_total,
            )
            raise AmountMismatchError(expected=draft.amount_minor_units, claimed=int(claimed_total))

        return self.create_intent(
            draft.amount_minor_units,
            draft.currency,
            idempotency_key=f"draft-{draft.id}",
        )
