"""OrderService: application facade over the order commands.

The API layer and the tests talk to this class instead of building commands
themselves. It owns three concerns the handlers do not:

- authorization: only the owner or an elevated role may read, retry or
  delete an order;
- serialisation: transitions on one order run under that order's lock, and
  creations for one owner under the owner's lock;
- the completion notification, sent only after the winning ``complete``
  transition has been committed.

Protean errors coming out of a command are translated into the ordering
error taxonomy here.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from uuid import uuid4

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from notifications.dispatcher import get_dispatcher
from notifications.dispatcher.port import NotificationDispatcher
from ordering.config import OrderingSettings, get_settings
from ordering.exceptions import Conflict, Forbidden, InvalidInput, NotFound
from ordering.order.completion import CompleteOrder
from ordering.order.creation import PlaceOrder
from ordering.order.deletion import DeleteOrder
from ordering.order.locking import order_locks, owner_locks
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentOutcome, RetryOrderPayment
from ordering.order.pricing import validate_totals

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Requester:
    """The authenticated caller, as asserted by the upstream gateway."""

    user_id: str
    role: str | None = None


@contextmanager
def translated_errors() -> Iterator[None]:
    """Re-raise Protean errors as ordering errors."""
    try:
        yield
    except ValidationError as exc:
        raise InvalidInput("Validation failed", errors=exc.messages) from exc
    except ObjectNotFoundError as exc:
        raise NotFound("Order not found") from exc
    except ExpectedVersionError as exc:
        raise Conflict("Order was modified concurrently") from exc


class OrderService:
    def __init__(
        self,
        settings: OrderingSettings | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        self._settings = settings
        self._dispatcher = dispatcher

    @property
    def settings(self) -> OrderingSettings:
        return self._settings or get_settings()

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher or get_dispatcher()

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def is_elevated(self, requester: Requester) -> bool:
        return requester.role is not None and requester.role in self.settings.elevated_roles

    def _load(self, order_id) -> Order:
        with translated_errors():
            return current_domain.repository_for(Order).get(order_id)

    def _load_authorized(self, order_id, requester: Requester) -> Order:
        order = self._load(order_id)
        if not (order.is_owned_by(requester.user_id) or self.is_elevated(requester)):
            raise Forbidden("Not allowed to access this order", order_id=str(order_id))
        return order

    @staticmethod
    def _process(command):
        with translated_errors():
            return current_domain.process(command, asynchronous=False)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_order(
        self,
        requester: Requester,
        items: list[dict],
        subtotal: float,
        tax_rate: float,
        total: float,
        idempotency_key: str | None = None,
    ) -> dict:
        """Place a pending order and return ``{"order", "client_secret"}``.

        ``idempotency_key`` becomes the order id. Repeating it returns the
        committed order and its intent without creating anything new.
        """
        if not items:
            raise InvalidInput("An order needs at least one item", errors={"items": ["Must not be empty"]})
        validate_totals(subtotal, tax_rate, total, self.settings.amount_tolerance_minor_units)

        order_id = idempotency_key or str(uuid4())
        command = PlaceOrder(
            order_id=order_id,
            owner_id=requester.user_id,
            items=json.dumps(
                [{"item_ref": str(item["item_ref"]), "quantity": item["quantity"]} for item in items]
            ),
            subtotal=subtotal,
            tax_rate=tax_rate,
            total=total,
            currency=self.settings.currency,
        )
        with owner_locks.for_key(requester.user_id), order_locks.for_key(order_id):
            result = self._process(command)

        order = self._load(result["order_id"])
        return {"order": order.snapshot(), "client_secret": result["client_secret"]}

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_order(self, order_id, requester: Requester) -> dict:
        return self._load_authorized(order_id, requester).snapshot()

    def list_orders(self) -> list[dict]:
        """Every order. Callers check for an elevated role first."""
        return [order.snapshot() for order in current_domain.repository_for(Order).list_all()]

    def list_orders_for(self, requester: Requester) -> list[dict]:
        return [
            order.snapshot() for order in current_domain.repository_for(Order).find_for_owner(requester.user_id)
        ]

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def delete_order(self, order_id, requester: Requester) -> None:
        self._load_authorized(order_id, requester)
        with order_locks.for_key(order_id):
            self._process(DeleteOrder(order_id=order_id))

    def record_payment_outcome(self, intent_id: str, outcome: str, failure_reason: str | None = None) -> dict:
        """Apply a verified gateway callback. Returns ``{"order", "changed"}``."""
        order = current_domain.repository_for(Order).find_by_payment_intent(intent_id)
        if order is None:
            raise NotFound("No order for payment intent", intent_id=intent_id)

        with order_locks.for_key(order.id):
            result = self._process(
                RecordPaymentOutcome(
                    intent_id=intent_id,
                    outcome=outcome,
                    failure_reason=failure_reason,
                )
            )
        return {"order": self._load(result["order_id"]).snapshot(), "changed": result["changed"]}

    def retry_payment(self, order_id, requester: Requester) -> dict:
        """Move a failed order back to pending and return a client secret to pay with."""
        self._load_authorized(order_id, requester)
        with order_locks.for_key(order_id):
            result = self._process(RetryOrderPayment(order_id=order_id))
        return {"order": self._load(order_id).snapshot(), "client_secret": result["client_secret"]}

    def complete_order(self, order_id) -> dict:
        """Complete a paid order and notify its owner once.

        Only the caller whose transition commits reaches the dispatcher; a
        concurrent or repeated completion fails with InvalidTransition.
        """
        with order_locks.for_key(order_id):
            snapshot = self._process(CompleteOrder(order_id=order_id))

        try:
            delivered = self.dispatcher.notify_order_complete(snapshot["owner_id"], snapshot)
        except Exception as exc:
            logger.error(
                "Completion notification failed",
                order_id=str(order_id),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            delivered = False

        logger.info("Order completed", order_id=str(order_id), notified=delivered)
        return snapshot
