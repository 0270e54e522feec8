"""Repository for the Order aggregate.

Scans page through the table explicitly. The memory provider stores
datetimes as given while other providers may hand them back naive, so time
comparisons happen in Python on UTC-normalised values.
"""

from datetime import datetime

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus, as_utc

DEFAULT_PAGE_SIZE = 100


@ordering.repository(part_of=Order)
class OrderRepository:
    def _scan(self, page_size: int = DEFAULT_PAGE_SIZE, **filters) -> list[Order]:
        orders: list[Order] = []
        offset = 0
        while True:
            query = self._dao.query.filter(**filters) if filters else self._dao.query
            page = query.order_by("created_at").offset(offset).limit(page_size).all().items
            orders.extend(page)
            if len(page) < page_size:
                return orders
            offset += page_size

    def find_by_payment_intent(self, intent_id: str) -> Order | None:
        return self._dao.query.filter(payment_intent_id=intent_id).all().first

    def find_for_owner(self, owner_id) -> list[Order]:
        return self._scan(owner_id=str(owner_id))

    def list_all(self, page_size: int = DEFAULT_PAGE_SIZE) -> list[Order]:
        """Every order, oldest first."""
        return self._scan(page_size=page_size)

    def _in_status_before(self, status: OrderStatus, field_name: str, cutoff: datetime):
        cutoff = as_utc(cutoff)
        return [
            order
            for order in self._scan(status=status.value)
            if getattr(order, field_name) is not None and as_utc(getattr(order, field_name)) <= cutoff
        ]

    def stale_pending(self, cutoff: datetime) -> list[Order]:
        """Pending orders created at or before ``cutoff``, oldest first."""
        return self._in_status_before(OrderStatus.PENDING, "created_at", cutoff)

    def cancelled_before(self, cutoff: datetime) -> list[Order]:
        """Cancelled orders whose cancellation is at or before ``cutoff``."""
        return self._in_status_before(OrderStatus.CANCELLED, "cancelled_at", cutoff)

    def remove(self, order: Order) -> None:
        """Delete the order together with its line items."""
        for item in list(order.items):
            order.remove_items(item)
        self.add(order)
        self._dao.delete(order)
