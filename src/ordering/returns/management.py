"""Return management — commands and handler.

Handles the return lifecycle: request, approval or rejection, and completion.
A request is checked against the order's earlier returns so no line is
refunded twice.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text

from ordering.domain import ordering
from ordering.order.repository import OrderRepository
from ordering.returns.repository import ReturnRepository
from ordering.returns.request import ReturnMethod, ReturnReason, ReturnRequest, ReturnStatus
from shared.config import get_settings


@ordering.command(part_of="ReturnRequest")
class RequestReturn:
    """Request a return of some lines of an order."""

    order_id = Identifier(required=True)
    owner_id = String(required=True, max_length=128)
    variant_ids = Text(required=True)  # JSON: list of variant id strings
    reason = String(required=True, choices=ReturnReason)
    method = String(required=True, choices=ReturnMethod)
    comments = Text()


@ordering.command(part_of="ReturnRequest")
class UpdateReturnStatus:
    return_id = Identifier(required=True)
    status = String(required=True, choices=ReturnStatus)


@ordering.command_handler(part_of=ReturnRequest)
class ManageReturnsHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        order = OrderRepository().get(command.order_id)

        variant_ids = (
            json.loads(command.variant_ids) if isinstance(command.variant_ids, str) else command.variant_ids
        )

        return_request = ReturnRequest.open(
            order,
            owner_id=command.owner_id,
            variant_ids=variant_ids,
            reason=command.reason,
            method=command.method,
            comments=command.comments,
            window_days=get_settings().RETURN_WINDOW_DAYS,
            already_returned=ReturnRepository().returned_variants(order.id),
        )
        return ReturnRepository().create(return_request)

    @handle(UpdateReturnStatus)
    def update_return_status(self, command):
        return_request = ReturnRepository().update_status(command.return_id, command.status)
        return return_request.status
