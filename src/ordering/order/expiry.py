"""Order expiry: command and handler for cancelling unpaid orders.

Dispatched once per candidate by the ExpirySweeper. The aggregate re-checks
status and age when the order is loaded, so an order paid between the scan
and this command is left alone.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.fields import DateTime, Float, Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ExpireOrder:
    order_id = Identifier(required=True)
    as_of = DateTime(required=True)
    ttl_seconds = Float(required=True, min_value=0.0)


@ordering.command_handler(part_of=Order)
class ExpireOrderHandler:
    @handle(ExpireOrder)
    def expire_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.expire(command.as_of, timedelta(seconds=command.ttl_seconds))
        repo.add(order)

        logger.info(
            "Order expired",
            order_id=str(order.id),
            created_at=str(order.created_at),
        )
