"""End-to-end checkout: cart → payment API (in-process) → fake gateway → order history."""

import asyncio

import httpx
import pytest
from fastapi import FastAPI

from catalogue.client import get_catalog
from catalogue.models import Product
from ordering.checkout.flow import CheckoutStep
from ordering.order.repository import OrderRepository
from ordering.session import build_checkout
from payments.api.routes import payment_router
from payments.gateway import get_gateway
from payments.gateway.port import PaymentDetails
from payments.relay import PaymentRelay
from shared.errors import AmountMismatchError, PaymentDeclinedError, PaymentSetupError

CARD = PaymentDetails(payment_method_id="pm_card_visa")


@pytest.fixture()
def payment_app(catalog):
    app = FastAPI()
    app.include_router(payment_router)
    app.dependency_overrides[get_catalog] = lambda: catalog
    return app


@pytest.fixture()
def relay(payment_app):
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=payment_app), base_url="http://payments.test")
    return PaymentRelay("http://payments.test", client=client)


def _checkout(cart, relay, shipping_form):
    flow = build_checkout(cart, "user-1", relay=relay)
    flow.submit_shipping(shipping_form)
    return flow


def _shirt(price=20.0, product_id="1"):
    return Product(id=product_id, title="Cotton Shirt", price=price, category="men's clothing")


class TestCheckoutEndToEnd:
    def test_paid_checkout_lands_in_order_history(self, cart, relay, shipping_form):
        cart.add_line(_shirt(), "M", "red")
        cart.add_line(_shirt(), "M", "red")
        flow = _checkout(cart, relay, shipping_form)

        order_id = asyncio.run(flow.submit_payment(CARD))

        assert flow.step is CheckoutStep.CONFIRMED
        assert cart.snapshot().is_empty

        orders = OrderRepository().list_by_owner("user-1")
        assert [str(o.id) for o in orders] == [order_id]
        assert orders[0].total == 53.19
        assert orders[0].lines[0].variant_id == "1-M-red"

        gateway = get_gateway()
        create_call = next(c for c in gateway.calls if c["method"] == "create_intent")
        assert create_call["amount_minor_units"] == 5319
        assert create_call["idempotency_key"].startswith("draft-")
        assert orders[0].payment_reference in gateway.intents

    def test_stale_cart_price_is_never_charged(self, cart, relay, shipping_form):
        cart.add_line(_shirt(price=18.0), "M")
        cart.add_line(_shirt(price=18.0), "M")
        flow = _checkout(cart, relay, shipping_form)

        with pytest.raises(AmountMismatchError) as exc_info:
            asyncio.run(flow.submit_payment(CARD))

        assert exc_info.value.expected == 5319
        assert exc_info.value.claimed == 4887
        assert flow.last_error.startswith("Prices have changed")
        assert cart.total_items == 2
        assert not any(c["method"] == "create_intent" for c in get_gateway().calls)

    def test_product_gone_from_catalogue(self, cart, relay, shipping_form):
        cart.add_line(_shirt(product_id="99"))
        flow = _checkout(cart, relay, shipping_form)

        with pytest.raises(PaymentSetupError):
            asyncio.run(flow.submit_payment(CARD))

        assert flow.step is CheckoutStep.PAYMENT
        assert cart.total_items == 1
        assert OrderRepository().list_by_owner("user-1") == []

    def test_declined_card_keeps_cart(self, cart, relay, shipping_form):
        get_gateway().configure(should_succeed=False, failure_reason="Your card was declined.")
        cart.add_line(_shirt())
        flow = _checkout(cart, relay, shipping_form)

        with pytest.raises(PaymentDeclinedError):
            asyncio.run(flow.submit_payment(CARD))

        assert flow.last_error == "Your card was declined."
        assert cart.total_items == 1
        assert OrderRepository().list_by_owner("user-1") == []
