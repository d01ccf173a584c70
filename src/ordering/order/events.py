"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes. They are
raised by the aggregate and dispatched when the order is persisted.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A paid checkout was recorded as an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = String(required=True)
    payment_reference = String(required=True)
    total = Float(required=True)
    currency = String(default="usd")
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its fulfilment lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
