"""FastAPI routes for the Ordering domain — order history and returns.

Orders are created by the checkout flow, never through this API. The routes
here read order history and move orders and returns along their lifecycles.
"""

import json

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    OrderResponse,
    RequestReturnRequest,
    ReturnIdResponse,
    ReturnResponse,
    StatusResponse,
    UpdateStatusRequest,
)
from ordering.order.repository import OrderRepository
from ordering.order.status import UpdateOrderStatus
from ordering.returns.management import RequestReturn, UpdateReturnStatus
from ordering.returns.repository import ReturnRepository
from shared.errors import PersistenceError


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _invalid(exc: ValidationError) -> JSONResponse:
    return _error(422, "Request is invalid", fields=exc.messages)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(owner_id: str):
    """Orders placed by ``owner_id``, newest first."""
    return [OrderResponse.from_order(order) for order in OrderRepository().list_by_owner(owner_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str):
    try:
        order = OrderRepository().get(order_id)
    except ObjectNotFoundError:
        return _error(404, f"Order {order_id} not found")
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateStatusRequest):
    try:
        command = UpdateOrderStatus(order_id=order_id, status=body.status)
        status = current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError:
        return _error(404, f"Order {order_id} not found")
    except ValidationError as exc:
        return _invalid(exc)
    return StatusResponse(status=status)


# ---------------------------------------------------------------------------
# Return Router
# ---------------------------------------------------------------------------
return_router = APIRouter(prefix="/returns", tags=["returns"])


@return_router.get("", response_model=list[ReturnResponse])
async def list_returns(owner_id: str):
    """Return requests opened by ``owner_id``, newest first."""
    return [ReturnResponse.from_return(item) for item in ReturnRepository().list_by_owner(owner_id)]


@return_router.post("", status_code=201, response_model=ReturnIdResponse)
async def request_return(body: RequestReturnRequest):
    try:
        command = RequestReturn(
            order_id=body.order_id,
            owner_id=body.owner_id,
            variant_ids=json.dumps(body.variant_ids),
            reason=body.reason,
            method=body.method,
            comments=body.comments,
        )
        return_id = current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError:
        return _error(404, f"Order {body.order_id} not found")
    except ValidationError as exc:
        return _invalid(exc)
    except PersistenceError as exc:
        return _error(503, exc.user_message)
    return ReturnIdResponse(return_id=return_id)


@return_router.put("/{return_id}/status", response_model=StatusResponse)
async def update_return_status(return_id: str, body: UpdateStatusRequest):
    try:
        command = UpdateReturnStatus(return_id=return_id, status=body.status)
        status = current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError:
        return _error(404, f"Return {return_id} not found")
    except ValidationError as exc:
        return _invalid(exc)
    return StatusResponse(status=status)
