"""Return request persistence, scoped by owner and newest first."""

import structlog
from protean.utils.globals import current_domain

from ordering.returns.request import ReturnRequest, ReturnStatus
from shared.errors import PersistenceError

logger = structlog.get_logger(__name__)


class ReturnRepository:
    @property
    def _repo(self):
        return current_domain.repository_for(ReturnRequest)

    def create(self, return_request):
        try:
            self._repo.add(return_request)
        except Exception as exc:
            logger.exception("return_create_failed", order_id=return_request.order_id)
            raise PersistenceError(f"Could not record return for order {return_request.order_id}") from exc

        logger.info(
            "return_created",
            return_id=str(return_request.id),
            order_id=return_request.order_id,
            refund_amount=return_request.refund_amount,
        )
        return str(return_request.id)

    def get(self, return_id):
        return self._repo.get(return_id)

    def list_by_owner(self, owner_id):
        return self._repo._dao.query.filter(owner_id=str(owner_id)).order_by("-created_at").all().items

    def returned_variants(self, order_id) -> set[str]:
        """Variant ids of ``order_id`` already covered by a return that was not rejected."""
        requests = self._repo._dao.query.filter(order_id=str(order_id)).all().items
        return {
            item.variant_id
            for request in requests
            if request.status != ReturnStatus.REJECTED.value
            for item in request.items
        }

    def update_status(self, return_id, status, now=None):
        return_request = self.get(return_id)
        previous = return_request.status
        return_request.transition_to(status, now=now)
        self._repo.add(return_request)

        logger.info(
            "return_status_updated",
            return_id=str(return_id),
            previous_status=previous,
            new_status=return_request.status,
        )
        return return_request
