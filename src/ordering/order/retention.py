"""Cancelled-order retention: command and handler for purging old orders.

Purging is idempotent: an order that is gone, or no longer past the
retention window, is skipped.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PurgeCancelledOrder:
    order_id = Identifier(required=True)
    as_of = DateTime(required=True)
    retention_seconds = Float(required=True, min_value=0.0)


@ordering.command_handler(part_of=Order)
class PurgeCancelledOrderHandler:
    @handle(PurgeCancelledOrder)
    def purge_cancelled_order(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            return False

        if not order.is_purgeable(command.as_of, timedelta(seconds=command.retention_seconds)):
            return False

        repo.remove(order)
        logger.info(
            "Cancelled order purged",
            order_id=str(order.id),
            cancelled_at=str(order.cancelled_at),
        )
        return True
