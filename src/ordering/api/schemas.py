"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. JSON field names are camelCase.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OrderItemSchema(CamelModel):
    item_ref: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1)


class OrderSchema(CamelModel):
    id: str
    owner_id: str
    items: list[OrderItemSchema]
    subtotal: float
    tax_rate: float
    total: float
    currency: str
    status: str
    payment_intent_id: str | None = None
    payment_failure_reason: str | None = None
    payment_attempts: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(CamelModel):
    items: list[OrderItemSchema] = Field(min_length=1)
    subtotal: float = Field(ge=0)
    tax_rate: float = Field(ge=0, le=1)
    total: float = Field(ge=0)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "items": [{"itemRef": "album-001", "quantity": 1}],
                    "subtotal": 10.0,
                    "taxRate": 0.1,
                    "total": 11.0,
                }
            ]
        },
    )


class PaymentWebhookRequest(CamelModel):
    intent_id: str = Field(min_length=1)
    outcome: Literal["succeeded", "failed"]
    failure_reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(CamelModel):
    order: OrderSchema


class OrderPaymentResponse(CamelModel):
    client_secret: str
    order: OrderSchema


class OrderListResponse(CamelModel):
    orders: list[OrderSchema]
    count: int


class StatusResponse(CamelModel):
    status: str = "ok"


class WebhookResponse(CamelModel):
    status: str
    order_id: str | None = None
    changed: bool = False
