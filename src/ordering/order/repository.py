"""Order persistence — append-only writes of finalized orders.

Orders are only ever inserted once per payment. The payment reference doubles
as the idempotency key: asking to create an order for a payment that already
has one returns the existing order's id instead of writing a duplicate.
"""

import structlog
from protean.utils.globals import current_domain

from ordering.order.order import Order
from shared.errors import PersistenceError

logger = structlog.get_logger(__name__)


class OrderRepository:
    """Document-store access for orders, scoped by owner."""

    @property
    def _repo(self):
        return current_domain.repository_for(Order)

    def create(self, order, idempotency_key=None):
        key = idempotency_key or order.payment_reference
        try:
            existing = self.find_by_payment_reference(key) if key else None
            if existing is not None:
                logger.info(
                    "order_create_deduplicated",
                    order_id=str(existing.id),
                    payment_reference=key,
                )
                return str(existing.id)

            self._repo.add(order)
        except Exception as exc:
            logger.exception("order_create_failed", payment_reference=key)
            raise PersistenceError(f"Could not record order for payment {key}") from exc

        logger.info(
            "order_created",
            order_id=str(order.id),
            owner_id=order.owner_id,
            total=order.total,
        )
        return str(order.id)

    def get(self, order_id):
        return self._repo.get(order_id)

    def find_by_payment_reference(self, payment_reference):
        results = self._repo._dao.query.filter(payment_reference=payment_reference).all().items
        return results[0] if results else None

    def list_by_owner(self, owner_id):
        return self._repo._dao.query.filter(owner_id=str(owner_id)).order_by("-created_at").all().items

    def update_status(self, order_id, status, now=None):
        order = self.get(order_id)
        previous = order.status
        order.transition_to(status, now=now)
        self._repo.add(order)

        logger.info(
            "order_status_updated",
            order_id=str(order_id),
            previous_status=previous,
            new_status=order.status,
        )
        return order
