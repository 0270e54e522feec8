"""Order creation: command and handler.

One unit of work covers the new order, the purchase grants for its albums
and the attached payment intent. The gateway is called before anything is
added to a repository, so a rejected or unreachable gateway leaves no trace.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.exceptions import Conflict
from ordering.grant.grant import PurchaseGrant
from ordering.order.order import Order
from ordering.order.payment import request_intent

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier(required=True)  # Client idempotency key or generated id
    owner_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {item_ref, quantity}
    subtotal = Float(required=True)
    tax_rate = Float(required=True)
    total = Float(required=True)
    currency = String(max_length=3)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        try:
            existing = repo.get(command.order_id)
        except ObjectNotFoundError:
            existing = None
        if existing is not None:
            return self._replay(existing, command)

        settings = get_settings()
        items = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = Order.place(
            owner_id=command.owner_id,
            items=items,
            subtotal=command.subtotal,
            tax_rate=command.tax_rate,
            total=command.total,
            currency=command.currency or settings.currency,
            order_id=command.order_id,
            tolerance_minor_units=settings.amount_tolerance_minor_units,
        )

        intent = request_intent(order)
        order.attach_payment_intent(intent.intent_id)

        grants = current_domain.repository_for(PurchaseGrant)
        new_grants = 0
        for item_ref in order.distinct_item_refs:
            _, created = grants.grant_if_absent(order.owner_id, item_ref, order.id)
            new_grants += int(created)
        repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            owner_id=str(order.owner_id),
            total=order.total,
            intent_id=intent.intent_id,
            new_grants=new_grants,
        )
        return {
            "order_id": str(order.id),
            "client_secret": intent.client_secret,
            "new_grants": new_grants,
            "replayed": False,
        }

    def _replay(self, order, command):
        """Same idempotency key again: hand back the committed order's intent."""
        if not order.is_owned_by(command.owner_id):
            raise Conflict("Idempotency key already used", order_id=str(order.id))

        intent = request_intent(order)
        logger.info("Order creation replayed", order_id=str(order.id))
        return {
            "order_id": str(order.id),
            "client_secret": intent.client_secret,
            "new_grants": 0,
            "replayed": True,
        }
