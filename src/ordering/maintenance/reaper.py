"""RetentionReaper: deletes orders cancelled longer ago than the retention window."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

from ordering.exceptions import OrderingError
from ordering.order.locking import order_locks
from ordering.order.order import Order
from ordering.order.retention import PurgeCancelledOrder

logger = structlog.get_logger(__name__)

DEFAULT_RETENTION = timedelta(hours=2)


class RetentionReaper:
    def __init__(
        self,
        domain,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.domain = domain
        self.retention = retention
        self.clock = clock or (lambda: datetime.now(UTC))

    def reap(self) -> int:
        """Delete every cancelled order past retention. Returns how many were deleted."""
        as_of = self.clock()

        with self.domain.domain_context():
            candidates = [
                str(order.id)
                for order in current_domain.repository_for(Order).cancelled_before(as_of - self.retention)
            ]

            deleted = 0
            for order_id in candidates:
                try:
                    with order_locks.for_key(order_id):
                        purged = current_domain.process(
                            PurgeCancelledOrder(
                                order_id=order_id,
                                as_of=as_of,
                                retention_seconds=self.retention.total_seconds(),
                            ),
                            asynchronous=False,
                        )
                    deleted += int(bool(purged))
                except (OrderingError, ValidationError, ExpectedVersionError) as exc:
                    logger.warning(
                        "Failed to purge order",
                        order_id=order_id,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )

        return deleted
