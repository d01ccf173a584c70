"""Tests for the client side of the payment protocol, against a stubbed payment server."""

import asyncio
import json

import httpx
import pytest

from ordering.cart.cart import CartLine, CartSnapshot
from ordering.checkout.intent import OrderIntentBuilder
from payments.gateway.port import PaymentDetails
from payments.relay import PaymentIntentHandle, PaymentRelay
from shared.errors import AmountMismatchError, PaymentDeclinedError, PaymentSetupError

CARD = PaymentDetails(payment_method_id="pm_card_visa")


@pytest.fixture()
def intent(shipping_address):
    snapshot = CartSnapshot.from_lines(
        [CartLine(product_id="1", title="Shirt", unit_price=20.0, quantity=2, selected_size="M", selected_color="red")]
    )
    return OrderIntentBuilder().build(snapshot, shipping_address, "card", "gift")


def _make_server(gateway, amount=5319, draft_status=201, create_status=201, create_body=None):
    """Build a MockTransport that plays the payment server."""
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path == "/payment/drafts":
            if draft_status >= 400:
                return httpx.Response(draft_status, json={"error": "Order details are invalid"})
            return httpx.Response(
                draft_status,
                json={
                    "draft_id": "draft-1",
                    "subtotal": 40.0,
                    "shipping": 9.99,
                    "tax": 3.2,
                    "total": amount / 100,
                    "amount_minor_units": amount,
                    "currency": "usd",
                },
            )
        if request.url.path == "/payment/create":
            if create_body is not None:
                return httpx.Response(create_status, json=create_body)
            result = gateway.create_intent(int(request.url.params["total"]), "usd", request.url.params["draft_id"])
            return httpx.Response(create_status, json={"clientSecret": result.client_secret})
        return httpx.Response(404)

    return httpx.MockTransport(handler), seen


def _make_relay(transport, gateway):
    return PaymentRelay("http://payments.test/", gateway=gateway, client=httpx.AsyncClient(transport=transport))


class TestCreateIntent:
    def test_posts_line_refs_without_prices(self, gateway, intent):
        transport, seen = _make_server(gateway)

        handle = asyncio.run(_make_relay(transport, gateway).create_intent(intent, "user-1"))

        draft_body = json.loads(seen[0].content)
        assert draft_body["owner_id"] == "user-1"
        assert draft_body["lines"] == [
            {"product_id": "1", "quantity": 2, "selected_size": "M", "selected_color": "red"}
        ]
        assert draft_body["notes"] == "gift"
        assert draft_body["shipping_address"]["zip_code"] == "62701"

        assert seen[1].url.params["draft_id"] == "draft-1"
        assert seen[1].url.params["total"] == "5319"

        assert handle.draft_id == "draft-1"
        assert handle.amount_minor_units == 5319
        assert "_secret_" in handle.client_secret

    def test_server_amount_differs_from_cart(self, gateway, intent):
        transport, seen = _make_server(gateway, amount=5599)

        with pytest.raises(AmountMismatchError) as exc_info:
            asyncio.run(_make_relay(transport, gateway).create_intent(intent, "user-1"))

        assert exc_info.value.expected == 5599
        assert exc_info.value.claimed == 5319
        assert len(seen) == 1
        assert gateway.intents == {}

    def test_draft_rejected(self, gateway, intent):
        transport, _ = _make_server(gateway, draft_status=422)

        with pytest.raises(PaymentSetupError):
            asyncio.run(_make_relay(transport, gateway).create_intent(intent, "user-1"))

    def test_missing_client_secret(self, gateway, intent):
        transport, _ = _make_server(gateway, create_body={"something": "else"})

        with pytest.raises(PaymentSetupError):
            asyncio.run(_make_relay(transport, gateway).create_intent(intent, "user-1"))

    def test_server_unreachable(self, gateway, intent):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        relay = _make_relay(httpx.MockTransport(handler), gateway)

        with pytest.raises(PaymentSetupError):
            asyncio.run(relay.create_intent(intent, "user-1"))

    def test_draft_without_id_or_amount(self, gateway, intent):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"status": "created"})

        relay = _make_relay(httpx.MockTransport(handler), gateway)

        with pytest.raises(PaymentSetupError):
            asyncio.run(relay.create_intent(intent, "user-1"))

        assert [r.url.path for r in seen] == ["/payment/drafts"]

    def test_unreadable_response(self, gateway, intent):
        relay = _make_relay(httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>")), gateway)

        with pytest.raises(PaymentSetupError):
            asyncio.run(relay.create_intent(intent, "user-1"))


class TestConfirm:
    def test_confirmed_payment(self, gateway, intent):
        transport, _ = _make_server(gateway)
        relay = _make_relay(transport, gateway)

        async def scenario():
            handle = await relay.create_intent(intent, "user-1")
            return handle, await relay.confirm(handle, CARD)

        handle, confirmation = asyncio.run(scenario())

        assert confirmation.payment_reference == handle.client_secret.split("_secret_")[0]
        assert confirmation.amount_minor_units == 5319
        assert confirmation.currency == "usd"

    def test_decline(self, gateway, intent):
        gateway.configure(should_succeed=False, failure_reason="Expired card", decline_code="expired_card")
        transport, _ = _make_server(gateway)
        relay = _make_relay(transport, gateway)

        async def scenario():
            handle = await relay.create_intent(intent, "user-1")
            await relay.confirm(handle, CARD)

        with pytest.raises(PaymentDeclinedError) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.user_message == "Expired card"
        assert exc_info.value.decline_code == "expired_card"

    @pytest.mark.parametrize(
        "handle",
        [None, PaymentIntentHandle(client_secret="", draft_id="d", amount_minor_units=1, currency="usd")],
    )
    def test_missing_secret(self, gateway, handle):
        relay = PaymentRelay("http://payments.test", gateway=gateway)

        with pytest.raises(PaymentSetupError):
            asyncio.run(relay.confirm(handle, CARD))

        assert gateway.calls == []
