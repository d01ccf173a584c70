"""OrderDraft aggregate — the server-held, re-priced copy of an order.

A draft is stored before a payment intent is created. Its amount is computed
from catalogue prices on the server, so the charge never depends on a total
supplied by the client.
"""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, Float, Integer, String, Text

from ordering.checkout.intent import PAYMENT_METHOD_MAX_LENGTH, OrderIntent
from ordering.domain import ordering


@ordering.aggregate
class OrderDraft:
    owner_id = String(required=True, max_length=128)
    lines = Text(required=True)  # JSON: list of cart line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=PAYMENT_METHOD_MAX_LENGTH)
    notes = Text()
    subtotal = Float(required=True, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    amount_minor_units = Integer(required=True, min_value=1)
    currency = String(max_length=3, default="usd")
    created_at = DateTime()

    @classmethod
    def from_intent(cls, owner_id, intent: OrderIntent, now=None):
        return cls(
            owner_id=str(owner_id),
            lines=json.dumps([line.to_dict() for line in intent.lines]),
            shipping_address=json.dumps(intent.shipping_address.to_dict()),
            payment_method=intent.payment_method,
            notes=intent.notes or None,
            subtotal=intent.subtotal,
            shipping=intent.shipping,
            tax=intent.tax,
            total=intent.total,
            amount_minor_units=intent.amount_minor_units,
            currency=intent.currency,
            created_at=now or datetime.now(UTC),
        )

    def line_items(self):
        return json.loads(self.lines)
