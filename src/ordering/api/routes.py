"""FastAPI routes for the Ordering domain: orders and payment callbacks.

Order routes are plain functions so FastAPI runs them in its threadpool; the
service blocks on gateway I/O, retry backoff and per-order locks.
"""

import json

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from ordering.api.dependencies import get_order_service, get_requester
from ordering.api.schemas import (
    CreateOrderRequest,
    OrderListResponse,
    OrderPaymentResponse,
    OrderResponse,
    OrderSchema,
    PaymentWebhookRequest,
    StatusResponse,
    WebhookResponse,
)
from ordering.exceptions import Forbidden, InvalidInput
from ordering.order.service import OrderService, Requester
from payments.gateway import get_gateway
from payments.gateway.stripe_adapter import outcome_from_event

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _require_elevated(service: OrderService, requester: Requester) -> None:
    if not service.is_elevated(requester):
        raise Forbidden("Elevated role required")


@order_router.post("", status_code=201, response_model=OrderPaymentResponse)
def create_order(
    body: CreateOrderRequest,
    idempotency_key: str | None = Header(default=None, max_length=64, pattern=r"^[A-Za-z0-9_-]+$"),
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> OrderPaymentResponse:
    result = service.create_order(
        requester,
        items=[item.model_dump() for item in body.items],
        subtotal=body.subtotal,
        tax_rate=body.tax_rate,
        total=body.total,
        idempotency_key=idempotency_key,
    )
    return OrderPaymentResponse(
        client_secret=result["client_secret"],
        order=OrderSchema.model_validate(result["order"]),
    )


@order_router.get("", response_model=OrderListResponse)
def list_orders(
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Administrative listing of every order."""
    _require_elevated(service, requester)
    orders = [OrderSchema.model_validate(order) for order in service.list_orders()]
    return OrderListResponse(orders=orders, count=len(orders))


@order_router.get("/mine", response_model=OrderListResponse)
def list_my_orders(
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders = [OrderSchema.model_validate(order) for order in service.list_orders_for(requester)]
    return OrderListResponse(orders=orders, count=len(orders))


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    return OrderResponse(order=OrderSchema.model_validate(service.get_order(order_id, requester)))


@order_router.delete("/{order_id}", response_model=StatusResponse)
def delete_order(
    order_id: str,
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> StatusResponse:
    service.delete_order(order_id, requester)
    return StatusResponse(status="deleted")


@order_router.post("/{order_id}/payment/retry", response_model=OrderPaymentResponse)
def retry_order_payment(
    order_id: str,
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> OrderPaymentResponse:
    result = service.retry_payment(order_id, requester)
    return OrderPaymentResponse(
        client_secret=result["client_secret"],
        order=OrderSchema.model_validate(result["order"]),
    )


@order_router.put("/{order_id}/complete", response_model=OrderResponse)
def complete_order(
    order_id: str,
    requester: Requester = Depends(get_requester),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Fulfillment confirmation for a paid order."""
    _require_elevated(service, requester)
    return OrderResponse(order=OrderSchema.model_validate(service.complete_order(order_id)))


# ---------------------------------------------------------------------------
# Payment Callback Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    x_gateway_signature: str = Header(default=""),
    stripe_signature: str = Header(default=""),
    service: OrderService = Depends(get_order_service),
) -> WebhookResponse:
    """Gateway callback reporting a payment outcome.

    Accepts either ``{intentId, outcome, failureReason}`` or a Stripe
    ``payment_intent.*`` event. The signature is checked over the raw body
    before anything in it is trusted: ``Stripe-Signature`` when Stripe sends
    it, ``X-Gateway-Signature`` otherwise.
    """
    payload = (await request.body()).decode("utf-8")
    signature = stripe_signature or x_gateway_signature
    if not get_gateway().verify_webhook_signature(payload, signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise InvalidInput("Webhook body is not JSON") from exc

    if isinstance(data, dict) and "type" in data:
        data = outcome_from_event(data)
        if data is None:
            return WebhookResponse(status="ignored")

    try:
        body = PaymentWebhookRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise InvalidInput(
            "Invalid webhook payload",
            errors={"body": [error["msg"] for error in exc.errors()]},
        ) from exc

    result = await run_in_threadpool(
        service.record_payment_outcome, body.intent_id, body.outcome, body.failure_reason
    )
    return WebhookResponse(
        status="processed" if result["changed"] else "duplicate",
        order_id=result["order"]["id"],
        changed=result["changed"],
    )
