"""Tests for the server-held order draft."""

from datetime import UTC, datetime

import pytest
from protean.exceptions import ValidationError

from ordering.cart.cart import CartLine, CartSnapshot
from ordering.checkout.draft import OrderDraft
from ordering.checkout.intent import OrderIntentBuilder


def _make_intent():
    snapshot = CartSnapshot.from_lines([CartLine(product_id="1", title="Shirt", unit_price=20.0, quantity=2)])
    address = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "address": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
    }
    return OrderIntentBuilder().build(snapshot, address, "card")


class TestFromIntent:
    def test_amounts_come_from_intent(self):
        intent = _make_intent()
        draft = OrderDraft.from_intent("user-1", intent, now=datetime(2026, 1, 1, tzinfo=UTC))

        assert draft.owner_id == "user-1"
        assert draft.subtotal == 40.0
        assert draft.total == 53.19
        assert draft.amount_minor_units == 5319
        assert draft.currency == "usd"
        assert draft.notes is None

    def test_lines_are_kept_as_json(self):
        draft = OrderDraft.from_intent("user-1", _make_intent())

        items = draft.line_items()
        assert items[0]["variant_id"] == "1--"
        assert items[0]["quantity"] == 2

    def test_amount_must_be_positive(self):
        draft = OrderDraft.from_intent("user-1", _make_intent())
        with pytest.raises(ValidationError):
            draft.amount_minor_units = 0
