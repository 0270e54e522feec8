"""ExpirySweeper: cancels pending orders nobody paid for.

A sweep first collects the ids of every pending order created at or before
``now - ttl`` without writing anything, then sends one ExpireOrder command
per id under that order's lock. The aggregate re-checks status and age, so
an order whose payment landed in between is skipped, not cancelled.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.exceptions import OrderingError
from ordering.order.expiry import ExpireOrder
from ordering.order.locking import order_locks
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        domain,
        ttl: timedelta,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.domain = domain
        self.ttl = ttl
        self.clock = clock or (lambda: datetime.now(UTC))

    def sweep(self) -> int:
        """Cancel every expired pending order. Returns how many were cancelled."""
        as_of = self.clock()
        cutoff = as_of - self.ttl

        with self.domain.domain_context():
            candidates = [str(order.id) for order in current_domain.repository_for(Order).stale_pending(cutoff)]
            if not candidates:
                return 0

            logger.info("Expiring stale pending orders", candidates=len(candidates), cutoff=cutoff.isoformat())
            cancelled = 0
            for order_id in candidates:
                try:
                    with order_locks.for_key(order_id):
                        current_domain.process(
                            ExpireOrder(
                                order_id=order_id,
                                as_of=as_of,
                                ttl_seconds=self.ttl.total_seconds(),
                            ),
                            asynchronous=False,
                        )
                    cancelled += 1
                except (OrderingError, ValidationError, ObjectNotFoundError, ExpectedVersionError) as exc:
                    logger.warning(
                        "Failed to expire order",
                        order_id=order_id,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )

        return cancelled
