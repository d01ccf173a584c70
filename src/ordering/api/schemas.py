"""Pydantic request/response schemas for the Orders and Returns API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    variant_id: str
    title: str
    unit_price: float
    quantity: int
    selected_size: str | None = None
    selected_color: str | None = None
    image: str | None = None


class ShippingAddressSchema(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str = "US"


class TrackingSchema(BaseModel):
    number: str
    carrier: str
    status: str
    estimated_delivery: datetime | None = None


class ReturnItemSchema(BaseModel):
    product_id: str
    variant_id: str
    title: str
    unit_price: float
    quantity: int


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class UpdateStatusRequest(BaseModel):
    status: str


class RequestReturnRequest(BaseModel):
    order_id: str
    owner_id: str
    variant_ids: list[str] = Field(min_length=1)
    reason: str
    method: str
    comments: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ord-001",
                    "owner_id": "user-001",
                    "variant_ids": ["1-M-red"],
                    "reason": "defective",
                    "method": "dropoff",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    order_id: str
    owner_id: str
    lines: list[OrderLineSchema]
    shipping_address: ShippingAddressSchema
    payment_method: str
    payment_reference: str
    notes: str | None = None
    subtotal: float
    shipping: float
    tax: float
    total: float
    currency: str
    status: str
    tracking: TrackingSchema | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        address = order.shipping_address
        tracking = order.tracking
        return cls(
            order_id=str(order.id),
            owner_id=order.owner_id,
            lines=[
                OrderLineSchema(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    title=line.title,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    selected_size=line.selected_size,
                    selected_color=line.selected_color,
                    image=line.image,
                )
                for line in order.lines
            ],
            shipping_address=ShippingAddressSchema(
                first_name=address.first_name,
                last_name=address.last_name,
                email=address.email,
                phone=address.phone,
                address=address.address,
                city=address.city,
                state=address.state,
                zip_code=address.zip_code,
                country=address.country,
            ),
            payment_method=order.payment_method,
            payment_reference=order.payment_reference,
            notes=order.notes,
            subtotal=order.subtotal,
            shipping=order.shipping,
            tax=order.tax,
            total=order.total,
            currency=order.currency,
            status=order.status,
            tracking=(
                TrackingSchema(
                    number=tracking.number,
                    carrier=tracking.carrier,
                    status=tracking.status,
                    estimated_delivery=tracking.estimated_delivery,
                )
                if tracking
                else None
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class ReturnResponse(BaseModel):
    return_id: str
    order_id: str
    owner_id: str
    items: list[ReturnItemSchema]
    reason: str
    method: str
    comments: str | None = None
    refund_amount: float
    status: str
    created_at: datetime | None = None

    @classmethod
    def from_return(cls, return_request) -> "ReturnResponse":
        return cls(
            return_id=str(return_request.id),
            order_id=str(return_request.order_id),
            owner_id=return_request.owner_id,
            items=[
                ReturnItemSchema(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    title=item.title,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                )
                for item in return_request.items
            ],
            reason=return_request.reason,
            method=return_request.method,
            comments=return_request.comments,
            refund_amount=return_request.refund_amount,
            status=return_request.status,
            created_at=return_request.created_at,
        )


class ReturnIdResponse(BaseModel):
    return_id: str


class StatusResponse(BaseModel):
    status: str
