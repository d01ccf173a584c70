"""Tests for Order placement and its status state machine."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.order import DEFAULT_CARRIER, Order, OrderLine, OrderStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_order(intent, now=NOW):
    order = Order.place("user-1", intent, "pi_123", now=now)
    order._events.clear()
    return order


def _order_at_state(intent, target_status):
    order = _make_order(intent)
    path = {
        OrderStatus.PROCESSING: [],
        OrderStatus.SHIPPED: [OrderStatus.SHIPPED],
        OrderStatus.DELIVERED: [OrderStatus.SHIPPED, OrderStatus.DELIVERED],
        OrderStatus.RETURNED: [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.RETURNED],
        OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
    }[target_status]
    for status in path:
        order.transition_to(status.value, now=NOW)
    order._events.clear()
    return order


class TestPlace:
    def test_copies_intent(self, intent):
        order = _make_order(intent)

        assert order.owner_id == "user-1"
        assert order.payment_reference == "pi_123"
        assert order.payment_method == "card"
        assert order.notes == "Ring twice"
        assert order.subtotal == 52.5
        assert order.shipping == 0.0
        assert order.tax == 4.2
        assert order.total == 56.7
        assert order.currency == "usd"
        assert order.status == OrderStatus.PROCESSING.value
        assert order.created_at == NOW

    def test_lines_are_copied_from_cart(self, intent):
        order = _make_order(intent)

        assert [(line.variant_id, line.quantity) for line in order.lines] == [("1-M-", 2), ("2--", 1)]
        assert order.lines[0].line_total == 40.0

    def test_shipping_address_is_recorded(self, intent):
        address = _make_order(intent).shipping_address

        assert address.first_name == "Ada"
        assert address.zip_code == "62701"
        assert address.country == "US"

    def test_tracking_block(self, intent):
        tracking = _make_order(intent).tracking

        assert tracking.number == f"TRK{int(NOW.timestamp() * 1000)}"
        assert tracking.carrier == DEFAULT_CARRIER
        assert tracking.status == "Processing"
        assert tracking.estimated_delivery == NOW + timedelta(days=7)

    def test_custom_carrier_and_delivery_days(self, intent):
        order = Order.place("user-1", intent, "pi_1", carrier="Parcel Co", delivery_days=3, now=NOW)

        assert order.tracking.carrier == "Parcel Co"
        assert order.tracking.estimated_delivery == NOW + timedelta(days=3)

    def test_raises_order_placed(self, intent):
        order = Order.place("user-1", intent, "pi_123", now=NOW)

        events = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(events) == 1
        assert events[0].order_id == str(order.id)
        assert events[0].item_count == 3
        assert events[0].total == 56.7


class TestInvariants:
    def test_order_without_lines_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Order(owner_id="user-1", payment_method="card", payment_reference="pi_1", subtotal=0.0, total=0.0)

        assert "lines" in exc_info.value.messages

    def test_line_with_zero_price_is_rejected(self):
        with pytest.raises(ValidationError):
            Order(
                owner_id="user-1",
                payment_method="card",
                payment_reference="pi_1",
                subtotal=0.0,
                total=0.0,
                lines=[OrderLine(product_id="1", variant_id="1--", title="Free", unit_price=0.0, quantity=1)],
            )


class TestStateMachine:
    @pytest.mark.parametrize(
        ("start", "target"),
        [
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.DELIVERED, OrderStatus.RETURNED),
        ],
    )
    def test_valid_transitions(self, intent, start, target):
        order = _order_at_state(intent, start)
        later = NOW + timedelta(days=1)

        order.transition_to(target.value, now=later)

        assert order.status == target.value
        assert order.updated_at == later
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == start.value
        assert event.new_status == target.value

    @pytest.mark.parametrize(
        ("start", "target"),
        [
            (OrderStatus.PROCESSING, OrderStatus.DELIVERED),
            (OrderStatus.PROCESSING, OrderStatus.RETURNED),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
            (OrderStatus.DELIVERED, OrderStatus.SHIPPED),
            (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
            (OrderStatus.RETURNED, OrderStatus.DELIVERED),
        ],
    )
    def test_invalid_transitions(self, intent, start, target):
        order = _order_at_state(intent, start)

        with pytest.raises(ValidationError) as exc_info:
            order.transition_to(target.value)

        assert "status" in exc_info.value.messages
        assert order.status == start.value
        assert not order._events

    def test_unknown_status(self, intent):
        order = _make_order(intent)
        with pytest.raises(ValidationError) as exc_info:
            order.transition_to("lost")

        assert "Unknown order status" in exc_info.value.messages["status"][0]

    def test_tracking_status_follows_order_status(self, intent):
        order = _order_at_state(intent, OrderStatus.SHIPPED)
        assert order.tracking.status == "Shipped"
        assert order.tracking.number == f"TRK{int(NOW.timestamp() * 1000)}"

    def test_can_transition_to(self, intent):
        order = _make_order(intent)
        assert order.can_transition_to("shipped")
        assert not order.can_transition_to("delivered")


class TestReturnWindow:
    def test_inside_window(self, intent):
        order = _make_order(intent)
        assert order.is_returnable(30, now=NOW + timedelta(days=30))

    def test_outside_window(self, intent):
        order = _make_order(intent)
        assert not order.is_returnable(30, now=NOW + timedelta(days=30, seconds=1))

    def test_naive_created_at_is_treated_as_utc(self, intent):
        order = _make_order(intent, now=datetime(2026, 3, 1, 12, 0))
        assert order.is_returnable(30, now=NOW + timedelta(days=1))
