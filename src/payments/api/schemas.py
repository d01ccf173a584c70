"""Pydantic request/response schemas for the Payment API.

These are external contracts (anti-corruption layer) — separate from
internal Protean aggregates and the relay's dataclasses.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineRefSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    selected_size: str | None = None
    selected_color: str | None = None


class ShippingAddressSchema(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = "US"


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateDraftRequest(BaseModel):
    owner_id: str
    lines: list[LineRefSchema]
    shipping_address: ShippingAddressSchema
    payment_method: str = "card"
    notes: str = ""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "owner_id": "user-001",
                    "lines": [{"product_id": "1", "quantity": 2, "selected_size": "M", "selected_color": "red"}],
                    "shipping_address": {
                        "first_name": "Ada",
                        "last_name": "Lovelace",
                        "email": "ada@example.com",
                        "phone": "555-0100",
                        "address": "1 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                    },
                    "payment_method": "card",
                }
            ]
        }
    }


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    intent_creation_fails: bool = False


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class DraftResponse(BaseModel):
    draft_id: str
    subtotal: float
    shipping: float
    tax: float
    total: float
    amount_minor_units: int
    currency: str


class ClientSecretResponse(BaseModel):
    clientSecret: str  # noqa: N815


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    intent_creation_fails: bool
