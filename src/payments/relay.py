"""Client side of the two-phase payment protocol.

``PaymentRelay`` hands an order intent to the payment server, which re-prices
it and returns a client secret scoped to the trusted amount, then confirms
the payment against the gateway. Declines are terminal for the attempt and
are never retried here.
"""

import asyncio
from dataclasses import dataclass

import httpx
import structlog

from payments.gateway import get_gateway
from payments.gateway.port import PaymentDetails
from shared.errors import AmountMismatchError, PaymentDeclinedError, PaymentSetupError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntentHandle:
    client_secret: str
    draft_id: str
    amount_minor_units: int
    currency: str


@dataclass(frozen=True)
class PaymentConfirmation:
    payment_reference: str
    amount_minor_units: int
    currency: str


class PaymentRelay:
    def __init__(self, base_url: str, gateway=None, client: httpx.AsyncClient | None = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self._gateway = gateway
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def gateway(self):
        return self._gateway or get_gateway()

    async def create_intent(self, intent, owner_id) -> PaymentIntentHandle:
        """Register ``intent`` as a server-side draft and obtain a client secret for it."""
        draft = await self._post(
            "/payment/drafts",
            json={
                "owner_id": str(owner_id),
                "lines": [
                    {
                        "product_id": line.product_id,
                        "quantity": line.quantity,
                        "selected_size": line.selected_size,
                        "selected_color": line.selected_color,
                    }
                    for line in intent.lines
                ],
                "shipping_address": intent.shipping_address.to_dict(),
                "payment_method": intent.payment_method,
                "notes": intent.notes,
            },
        )

        draft_id = draft.get("draft_id")
        priced = draft.get("amount_minor_units")
        if not draft_id or not isinstance(priced, int) or isinstance(priced, bool):
            logger.warning("payment_server_bad_draft", keys=sorted(draft))
            raise PaymentSetupError("Payment server answered without a draft id and amount")

        expected = intent.amount_minor_units
        if priced != expected:
            raise AmountMismatchError(expected=priced, claimed=expected)

        body = await self._post(
            "/payment/create",
            params={"draft_id": draft_id, "total": expected},
        )
        client_secret = body.get("clientSecret")
        if not client_secret:
            raise PaymentSetupError("Payment server answered without a client secret")

        logger.info("payment_intent_obtained", draft_id=draft_id, amount_minor_units=expected)
        return PaymentIntentHandle(
            client_secret=client_secret,
            draft_id=draft_id,
            amount_minor_units=expected,
            currency=draft.get("currency", intent.currency),
        )

    async def confirm(self, handle: PaymentIntentHandle | None, details: PaymentDetails) -> PaymentConfirmation:
        if handle is None or not handle.client_secret:
            raise PaymentSetupError("Cannot confirm a payment without a client secret")

        result = await asyncio.to_thread(self.gateway.confirm_intent, handle.client_secret, details)
        if not result.success:
            logger.info(
                "payment_declined",
                draft_id=handle.draft_id,
                reason=result.failure_reason,
                decline_code=result.decline_code,
            )
            raise PaymentDeclinedError(result.failure_reason, decline_code=result.decline_code)

        logger.info("payment_confirmed", draft_id=handle.draft_id, payment_reference=result.payment_reference)
        return PaymentConfirmation(
            payment_reference=result.payment_reference,
            amount_minor_units=handle.amount_minor_units,
            currency=handle.currency,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("payment_server_unreachable", url=url, error=str(exc))
            raise PaymentSetupError(f"Payment server unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            error = body.get("error") if isinstance(body, dict) else None
            logger.warning("payment_server_error", url=url, status_code=response.status_code, error=error)
            raise PaymentSetupError(f"Payment server answered {response.status_code}: {error or 'no details'}")
        if not isinstance(body, dict) or not body:
            raise PaymentSetupError(f"Payment server sent an unreadable response for {path}")
        return body
