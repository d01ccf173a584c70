"""ReturnRequest aggregate — a shopper's request to send back part of an order.

A return names a subset of the order's lines, a reason and a hand-over
method. It can only be opened for a delivered order inside the return
window, and never for lines already covered by a return that was not
rejected. The refund is the sum of the selected lines' totals.

State Machine:
    REQUESTED → APPROVED → COMPLETED
    REQUESTED → REJECTED
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.order import OrderStatus
from ordering.returns.events import ReturnRequested, ReturnStatusChanged

DEFAULT_RETURN_WINDOW_DAYS = 30


class ReturnReason(Enum):
    DEFECTIVE = "defective"
    WRONG_ITEM = "wrong_item"
    NOT_AS_DESCRIBED = "not_as_described"
    CHANGED_MIND = "changed_mind"
    BETTER_PRICE = "better_price"
    OTHER = "other"


class ReturnMethod(Enum):
    DROPOFF = "dropoff"
    PICKUP = "pickup"


class ReturnStatus(Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


_VALID_TRANSITIONS = {
    ReturnStatus.REQUESTED: {ReturnStatus.APPROVED, ReturnStatus.REJECTED},
    ReturnStatus.APPROVED: {ReturnStatus.COMPLETED},
    ReturnStatus.REJECTED: set(),
    ReturnStatus.COMPLETED: set(),
}


@ordering.entity(part_of="ReturnRequest")
class ReturnItem:
    """An order line selected for return."""

    product_id = String(required=True, max_length=100)
    variant_id = String(required=True, max_length=255)
    title = String(required=True, max_length=500)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


@ordering.aggregate
class ReturnRequest:
    order_id = Identifier(required=True)
    owner_id = String(required=True, max_length=128)
    items = HasMany(ReturnItem)
    reason = String(required=True, choices=ReturnReason)
    method = String(required=True, choices=ReturnMethod)
    comments = Text()
    refund_amount = Float(required=True, min_value=0.0)
    status = String(choices=ReturnStatus, default=ReturnStatus.REQUESTED.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def must_return_at_least_one_item(self):
        if not self.items:
            raise ValidationError({"items": ["Select at least one item to return"]})

    @classmethod
    def open(
        cls,
        order,
        owner_id,
        variant_ids,
        reason,
        method,
        comments=None,
        window_days=DEFAULT_RETURN_WINDOW_DAYS,
        already_returned=(),
        now=None,
    ):
        """Open a return against ``order`` for the lines named by ``variant_ids``.

        ``already_returned`` holds the variant ids this order has on open,
        approved or completed returns.
        """
        now = now or datetime.now(UTC)

        errors = {}
        if str(owner_id) != order.owner_id:
            errors["owner_id"] = ["Only the shopper who placed the order can return it"]
        if order.status != OrderStatus.DELIVERED.value:
            errors.setdefault("order_id", []).append(f"Only delivered orders can be returned (status: {order.status})")
        if not order.is_returnable(window_days, now=now):
            errors.setdefault("order_id", []).append(f"Order is outside the {window_days}-day return window")

        selected = list(dict.fromkeys(variant_ids or []))
        lines_by_variant = {line.variant_id: line for line in order.lines}
        if not selected:
            errors["items"] = ["Select at least one item to return"]
        unknown = [vid for vid in selected if vid not in lines_by_variant]
        if unknown:
            errors.setdefault("items", []).append(f"Not on this order: {', '.join(unknown)}")
        covered = [vid for vid in selected if vid in set(already_returned or ())]
        if covered:
            errors.setdefault("items", []).append(f"Already being returned: {', '.join(covered)}")
        if errors:
            raise ValidationError(errors)

        lines = [lines_by_variant[vid] for vid in selected]
        refund_amount = round(sum(line.unit_price * line.quantity for line in lines), 2)

        request = cls(
            order_id=str(order.id),
            owner_id=order.owner_id,
            reason=reason,
            method=method,
            comments=comments,
            refund_amount=refund_amount,
            status=ReturnStatus.REQUESTED.value,
            created_at=now,
            updated_at=now,
            items=[
                ReturnItem(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    title=line.title,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                )
                for line in lines
            ],
        )

        request.raise_(
            ReturnRequested(
                return_id=str(request.id),
                order_id=request.order_id,
                owner_id=request.owner_id,
                reason=request.reason,
                method=request.method,
                refund_amount=refund_amount,
                requested_at=now,
            )
        )
        return request

    def transition_to(self, new_status, now=None):
        try:
            target = ReturnStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown return status: {new_status}"]}) from None

        current = ReturnStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = now or datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            ReturnStatusChanged(
                return_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
