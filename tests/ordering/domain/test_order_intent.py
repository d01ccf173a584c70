"""Tests for order intent assembly and pricing."""

import pytest
from protean.exceptions import ValidationError

from ordering.cart.cart import CartLine, CartSnapshot
from ordering.checkout.address import ShippingDetails
from ordering.checkout.intent import OrderIntentBuilder, PricingPolicy, to_minor_units


def _make_snapshot(*lines):
    return CartSnapshot.from_lines(lines)


def _make_line(product_id="1", unit_price=20.0, quantity=1, **kwargs):
    return CartLine(
        product_id=product_id, title=f"Product {product_id}", unit_price=unit_price, quantity=quantity, **kwargs
    )


class TestPricingPolicy:
    def test_flat_fee_at_or_below_threshold(self):
        policy = PricingPolicy()
        assert policy.shipping_for(50.0) == 9.99
        assert policy.shipping_for(10.0) == 9.99

    def test_free_shipping_above_threshold(self):
        assert PricingPolicy().shipping_for(50.01) == 0.0

    def test_tax_is_rounded_to_cents(self):
        assert PricingPolicy().tax_for(33.33) == 2.67

    def test_from_settings(self):
        class _Settings:
            FREE_SHIPPING_THRESHOLD = 100.0
            FLAT_SHIPPING_FEE = 4.5
            TAX_RATE = 0.1

        policy = PricingPolicy.from_settings(_Settings())
        assert policy == PricingPolicy(100.0, 4.5, 0.1)


class TestBuild:
    def test_two_shirts_below_threshold(self, shipping_form):
        snapshot = _make_snapshot(_make_line(quantity=2, selected_size="M"))

        intent = OrderIntentBuilder().build(snapshot, shipping_form, "card")

        assert intent.subtotal == 40.0
        assert intent.shipping == 9.99
        assert intent.tax == 3.2
        assert intent.total == 53.19
        assert intent.amount_minor_units == 5319
        assert intent.total_items == 2
        assert intent.currency == "usd"

    def test_free_shipping_applies_above_threshold(self, shipping_form):
        snapshot = _make_snapshot(_make_line(unit_price=30.0, quantity=2))

        intent = OrderIntentBuilder().build(snapshot, shipping_form, "card")

        assert intent.shipping == 0.0
        assert intent.total == 64.8

    def test_build_does_not_touch_the_cart(self, cart, shirt, shipping_form):
        cart.add_line(shirt)
        before = cart.snapshot()

        OrderIntentBuilder().build(before, shipping_form, "card")

        assert cart.snapshot() == before

    def test_empty_cart_is_rejected(self, shipping_form):
        with pytest.raises(ValidationError) as exc_info:
            OrderIntentBuilder().build(CartSnapshot(), shipping_form, "card")

        assert "cart" in exc_info.value.messages

    def test_missing_email_is_rejected(self, shipping_form):
        form = {**shipping_form, "email": ""}
        with pytest.raises(ValidationError) as exc_info:
            OrderIntentBuilder().build(_make_snapshot(_make_line()), form, "card")

        assert "email" in exc_info.value.messages

    def test_blank_payment_method_is_rejected(self, shipping_form):
        with pytest.raises(ValidationError) as exc_info:
            OrderIntentBuilder().build(_make_snapshot(_make_line()), shipping_form, "  ")

        assert "payment_method" in exc_info.value.messages

    def test_overlong_payment_method_is_rejected(self, shipping_form):
        with pytest.raises(ValidationError) as exc_info:
            OrderIntentBuilder().build(_make_snapshot(_make_line()), shipping_form, "c" * 51)

        assert exc_info.value.messages["payment_method"] == ["must be at most 50 characters"]

    def test_line_that_cannot_be_recorded_is_rejected(self, shipping_form):
        snapshot = _make_snapshot(_make_line(), _make_line(product_id="2", image="https://img.test/" + "x" * 1000))

        with pytest.raises(ValidationError) as exc_info:
            OrderIntentBuilder().build(snapshot, shipping_form, "card")

        assert exc_info.value.messages["lines"] == ["2--: image must be at most 1000 characters"]

    def test_accepts_shipping_details_instance(self, shipping_form):
        details = ShippingDetails.from_form(shipping_form)
        builder = OrderIntentBuilder(currency="eur")
        intent = builder.build(_make_snapshot(_make_line()), details, "card", " leave at door ")

        assert intent.shipping_address is details
        assert intent.notes == "leave at door"
        assert intent.currency == "eur"


class TestMinorUnits:
    @pytest.mark.parametrize(("amount", "expected"), [(53.19, 5319), (0.1 + 0.2, 30), (19.999, 2000), (1, 100)])
    def test_rounds_to_cents(self, amount, expected):
        assert to_minor_units(amount) == expected
