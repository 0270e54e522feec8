"""Order payment: gateway intent requests, outcome callbacks and retries.

The order id is the idempotency key for every intent request, so creation,
a retried creation, and a caller-initiated payment retry all resolve to the
same gateway intent.
"""

from enum import Enum

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.exceptions import NotFound, PaymentRejected, TransientError
from ordering.order.order import Order, OrderStatus
from ordering.order.pricing import amount_in_minor_units
from payments.gateway import get_gateway
from payments.gateway.port import PaymentIntent, PaymentRejectedError, TransientGatewayError

logger = structlog.get_logger(__name__)


class PaymentOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def payment_metadata(order: Order) -> dict[str, str]:
    return {
        "ownerId": str(order.owner_id),
        "orderId": str(order.id),
        "totalItems": str(len(order.items)),
        "totalQuantity": str(order.total_quantity),
    }


def request_intent(order: Order) -> PaymentIntent:
    """Ask the gateway for the order's intent, mapping gateway errors to ours."""
    try:
        return get_gateway().create_intent(
            amount=amount_in_minor_units(order.total),
            currency=order.currency,
            idempotency_key=str(order.id),
            metadata=payment_metadata(order),
            description=f"Order #{order.id}",
        )
    except TransientGatewayError as exc:
        logger.error("Payment gateway unavailable", order_id=str(order.id), error=str(exc))
        raise TransientError("Payment gateway unavailable, try again later", order_id=str(order.id)) from exc
    except PaymentRejectedError as exc:
        logger.warning("Payment gateway rejected intent", order_id=str(order.id), reason=str(exc))
        raise PaymentRejected(str(exc), order_id=str(order.id)) from exc


@ordering.command(part_of="Order")
class RecordPaymentOutcome:
    """Gateway callback: the intent was paid or the attempt failed."""

    intent_id = String(required=True, max_length=255)
    outcome = String(required=True, choices=PaymentOutcome)
    failure_reason = String(max_length=500)


@ordering.command(part_of="Order")
class RetryOrderPayment:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordPaymentOutcome)
    def record_payment_outcome(self, command):
        """Apply the outcome. A repeat of an already-applied outcome changes nothing."""
        repo = current_domain.repository_for(Order)
        order = repo.find_by_payment_intent(command.intent_id)
        if order is None:
            raise NotFound("No order for payment intent", intent_id=command.intent_id)

        status = OrderStatus(order.status)
        if command.outcome == PaymentOutcome.SUCCEEDED.value:
            if status in (OrderStatus.PAYMENT_SUCCESSFUL, OrderStatus.COMPLETE):
                return {"order_id": str(order.id), "changed": False}
            order.record_payment_success(command.intent_id)
        else:
            if status == OrderStatus.PAYMENT_FAILED:
                return {"order_id": str(order.id), "changed": False}
            order.record_payment_failure(command.intent_id, command.failure_reason)

        repo.add(order)
        logger.info(
            "Payment outcome recorded",
            order_id=str(order.id),
            intent_id=command.intent_id,
            outcome=command.outcome,
        )
        return {"order_id": str(order.id), "changed": True}

    @handle(RetryOrderPayment)
    def retry_order_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.retry_payment()

        intent = request_intent(order)
        order.attach_payment_intent(intent.intent_id)
        repo.add(order)

        logger.info(
            "Order payment retried",
            order_id=str(order.id),
            attempt=order.payment_attempts,
        )
        return {"order_id": str(order.id), "client_secret": intent.client_secret}
