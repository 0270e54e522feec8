"""Order aggregate: the core of the ordering domain.

An order is created in ``pending`` while the buyer pays through the gateway.
The gateway callback moves it to ``payment_successful`` or ``payment_failed``;
fulfillment confirmation completes a paid order; the expiry sweeper cancels
orders nobody paid for.

State Machine:
    pending → payment_successful → complete
    pending → payment_failed → pending (caller-initiated retry)
    pending → cancelled (expiry sweeper, after the TTL)

Every transition method checks the current status first, so of two writers
working from the same status only the first to commit succeeds.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.exceptions import Conflict, InvalidInput, InvalidTransition
from ordering.order.events import (
    OrderCompleted,
    OrderExpired,
    OrderPlaced,
    PaymentFailed,
    PaymentIntentAttached,
    PaymentRetried,
    PaymentSucceeded,
)
from ordering.order.pricing import DEFAULT_TOLERANCE_MINOR_UNITS, validate_totals


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAYMENT_SUCCESSFUL = "payment_successful"
    PAYMENT_FAILED = "payment_failed"
    CANCELLED = "cancelled"
    COMPLETE = "complete"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PAYMENT_SUCCESSFUL,
        OrderStatus.PAYMENT_FAILED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAYMENT_SUCCESSFUL: {OrderStatus.COMPLETE},
    OrderStatus.PAYMENT_FAILED: {OrderStatus.PENDING},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.COMPLETE: set(),  # Terminal
}


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes read back from storage as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """One album in an order and how many copies were bought."""

    item_ref = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    owner_id = Identifier(required=True)
    items = HasMany(OrderItem)
    subtotal = Float(required=True, min_value=0.0)
    tax_rate = Float(required=True, min_value=0.0, max_value=1.0)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="usd")
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    payment_intent_id = String(max_length=255)
    payment_failure_reason = String(max_length=500)
    payment_attempts = Integer(default=1, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()
    cancelled_at = DateTime()
    completed_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        owner_id,
        items,
        subtotal,
        tax_rate,
        total,
        currency="usd",
        order_id=None,
        placed_at=None,
        tolerance_minor_units=DEFAULT_TOLERANCE_MINOR_UNITS,
    ):
        """Create a new pending order.

        Args:
            owner_id: The buyer.
            items: List of dicts with item_ref and quantity.
            subtotal, tax_rate, total: Amounts; total must equal
                subtotal * (1 + tax_rate) within the tolerance.
            order_id: Optional identity (a client idempotency key).
            placed_at: Creation time, defaults to now.
        """
        if not items:
            raise InvalidInput("An order needs at least one item", errors={"items": ["Must not be empty"]})
        validate_totals(subtotal, tax_rate, total, tolerance_minor_units)

        now = placed_at or datetime.now(UTC)
        identity = {"id": str(order_id)} if order_id else {}
        order = cls(
            owner_id=str(owner_id),
            items=[OrderItem(item_ref=str(item["item_ref"]), quantity=item["quantity"]) for item in items],
            subtotal=float(subtotal),
            tax_rate=float(tax_rate),
            total=float(total),
            currency=currency,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            **identity,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                owner_id=order.owner_id,
                items=json.dumps([{"item_ref": str(i.item_ref), "quantity": i.quantity} for i in order.items]),
                subtotal=order.subtotal,
                tax_rate=order.tax_rate,
                total=order.total,
                currency=order.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Cannot transition from {current.value} to {target_status.value}",
                order_id=str(self.id),
                status=current.value,
            )

    def _assert_intent(self, intent_id):
        if self.payment_intent_id != intent_id:
            raise Conflict(
                "Payment intent does not belong to this order",
                order_id=str(self.id),
                intent_id=intent_id,
            )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def attach_payment_intent(self, intent_id):
        """Record the gateway intent. Set once; the same id again is a no-op."""
        if self.payment_intent_id:
            self._assert_intent(intent_id)
            return
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidTransition(
                f"Cannot attach a payment intent to a {self.status} order",
                order_id=str(self.id),
                status=self.status,
            )

        self.payment_intent_id = intent_id
        self.updated_at = datetime.now(UTC)
        self.raise_(PaymentIntentAttached(order_id=str(self.id), intent_id=intent_id))

    def record_payment_success(self, intent_id):
        """Gateway reported that the intent was paid."""
        self._assert_intent(intent_id)
        self._assert_can_transition(OrderStatus.PAYMENT_SUCCESSFUL)
        self.status = OrderStatus.PAYMENT_SUCCESSFUL.value
        self.payment_failure_reason = None
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentSucceeded(
                order_id=str(self.id),
                intent_id=intent_id,
                total=self.total,
            )
        )

    def record_payment_failure(self, intent_id, reason=None):
        """Gateway reported that the payment attempt failed."""
        self._assert_intent(intent_id)
        self._assert_can_transition(OrderStatus.PAYMENT_FAILED)
        self.status = OrderStatus.PAYMENT_FAILED.value
        self.payment_failure_reason = reason
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                intent_id=intent_id,
                reason=reason,
            )
        )

    def retry_payment(self):
        """Return a failed order to pending for another payment attempt."""
        self._assert_can_transition(OrderStatus.PENDING)
        self.status = OrderStatus.PENDING.value
        self.payment_failure_reason = None
        self.payment_attempts = (self.payment_attempts or 1) + 1
        self.updated_at = datetime.now(UTC)

        self.raise_(PaymentRetried(order_id=str(self.id), attempt=self.payment_attempts))

    # -------------------------------------------------------------------
    # Expiry and completion
    # -------------------------------------------------------------------
    def is_expired(self, as_of: datetime, ttl: timedelta) -> bool:
        return (
            OrderStatus(self.status) == OrderStatus.PENDING
            and as_utc(self.created_at) <= as_utc(as_of) - ttl
        )

    def expire(self, as_of: datetime, ttl: timedelta):
        """Cancel a pending order whose creation is at least ``ttl`` before ``as_of``."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        if not self.is_expired(as_of, ttl):
            raise InvalidTransition(
                "Order has not reached its expiry time",
                order_id=str(self.id),
                created_at=str(self.created_at),
            )

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = as_utc(as_of)
        self.updated_at = now

        self.raise_(
            OrderExpired(
                order_id=str(self.id),
                placed_at=as_utc(self.created_at),
                cancelled_at=self.cancelled_at,
            )
        )

    def complete(self):
        """Fulfillment confirmed a paid order."""
        self._assert_can_transition(OrderStatus.COMPLETE)
        now = datetime.now(UTC)
        self.status = OrderStatus.COMPLETE.value
        self.completed_at = now
        self.updated_at = now

        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                owner_id=self.owner_id,
                completed_at=now,
            )
        )

    def is_purgeable(self, as_of: datetime, retention: timedelta) -> bool:
        """True once the order has been cancelled for at least ``retention``."""
        if OrderStatus(self.status) != OrderStatus.CANCELLED or self.cancelled_at is None:
            return False
        return as_utc(self.cancelled_at) <= as_utc(as_of) - retention

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def distinct_item_refs(self) -> list[str]:
        return list(dict.fromkeys(str(item.item_ref) for item in self.items))

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_owned_by(self, user_id) -> bool:
        return str(self.owner_id) == str(user_id)

    def snapshot(self) -> dict:
        """Plain-dict view of the order for API responses and notifications."""
        return {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "items": [{"item_ref": str(i.item_ref), "quantity": i.quantity} for i in self.items],
            "subtotal": self.subtotal,
            "tax_rate": self.tax_rate,
            "total": self.total,
            "currency": self.currency,
            "status": self.status,
            "payment_intent_id": self.payment_intent_id,
            "payment_failure_reason": self.payment_failure_reason,
            "payment_attempts": self.payment_attempts,
            "created_at": as_utc(self.created_at),
            "updated_at": as_utc(self.updated_at),
            "cancelled_at": as_utc(self.cancelled_at),
            "completed_at": as_utc(self.completed_at),
        }
