"""Administrative order deletion: command and handler.

Deletes the order record only; purchase grants stay with their owner.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        repo.remove(order)
        logger.info("Order deleted", order_id=str(order.id), status=order.status)
