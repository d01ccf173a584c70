"""FastAPI routes for the Payment API — order drafts and payment intents."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from catalogue.client import CatalogClient, get_catalog
from ordering.checkout.intent import OrderIntentBuilder, PricingPolicy
from payments.api.schemas import (
    ClientSecretResponse,
    ConfigureGatewayRequest,
    CreateDraftRequest,
    DraftResponse,
    GatewayConfigResponse,
)
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.intents import IntentService, LineRef
from shared.config import get_settings
from shared.errors import AmountMismatchError, CatalogError, ConfigurationError, PaymentSetupError, ProductNotFoundError


def get_intent_service(catalog: CatalogClient = Depends(get_catalog)) -> IntentService:
    settings = get_settings()
    builder = OrderIntentBuilder(policy=PricingPolicy.from_settings(settings), currency=settings.CURRENCY)
    return IntentService(catalog=catalog, builder=builder)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payment", tags=["payment"])


@payment_router.post("/drafts", status_code=201, response_model=DraftResponse)
async def create_draft(body: CreateDraftRequest, service: IntentService = Depends(get_intent_service)):
    """Store a re-priced order draft. The returned amount is what will be charged."""
    try:
        draft = await service.create_draft(
            owner_id=body.owner_id,
            line_refs=[LineRef(**line.model_dump()) for line in body.lines],
            shipping_address=body.shipping_address.model_dump(),
            payment_method=body.payment_method,
            notes=body.notes,
        )
    except ValidationError as exc:
        return _error(422, "Order details are invalid", fields=exc.messages)
    except ProductNotFoundError as exc:
        return _error(422, exc.user_message, product_id=str(exc.product_id))
    except CatalogError as exc:
        return _error(502, exc.user_message)

    return DraftResponse(
        draft_id=str(draft.id),
        subtotal=draft.subtotal,
        shipping=draft.shipping,
        tax=draft.tax,
        total=draft.total,
        amount_minor_units=draft.amount_minor_units,
        currency=draft.currency,
    )


@payment_router.post("/create", status_code=201, response_model=ClientSecretResponse)
async def create_payment_intent(
    draft_id: str | None = None,
    total: int | None = None,
    service: IntentService = Depends(get_intent_service),
):
    """Create a payment intent for a stored draft.

    ``total`` is optional and only checked against the draft's amount; a
    total on its own is never charged.
    """
    if not draft_id:
        return _error(400, "draft_id is required; amounts are computed from the order draft")

    try:
        client_secret = service.create_intent_for_draft(draft_id, claimed_total=total)
    except ObjectNotFoundError:
        return _error(404, f"Order draft {draft_id} not found")
    except AmountMismatchError as exc:
        return _error(409, exc.user_message, expected=exc.expected, claimed=exc.claimed)
    except (PaymentSetupError, ConfigurationError) as exc:
        return _error(502, exc.user_message)

    return ClientSecretResponse(clientSecret=client_secret)


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest):
    """Configure the FakeGateway behavior (non-production only).

    It allows toggling success/failure behavior for manual API testing.
    """
    if get_settings().ENVIRONMENT == "production":
        return _error(403, "Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        return _error(400, "Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        intent_creation_fails=body.intent_creation_fails,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        intent_creation_fails=gateway.intent_creation_fails,
    )
