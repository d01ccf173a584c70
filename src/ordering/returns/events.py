"""Domain events for the ReturnRequest aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="ReturnRequest")
class ReturnRequested:
    """A shopper asked to return items from an order."""

    __version__ = 1

    return_id = Identifier(required=True)
    order_id = Identifier(required=True)
    owner_id = String(required=True)
    reason = String(required=True)
    method = String(required=True)
    refund_amount = Float(required=True)
    requested_at = DateTime(required=True)


@ordering.event(part_of="ReturnRequest")
class ReturnStatusChanged:
    __version__ = 1

    return_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
