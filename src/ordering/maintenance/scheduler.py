"""Recurring maintenance tasks.

Each RecurringTask runs its job on an APScheduler BackgroundScheduler
interval. APScheduler already refuses a second concurrent instance
(``max_instances=1``) and folds missed runs into one (``coalesce=True``);
``tick()`` adds its own non-blocking guard so a manual tick that overlaps a
scheduled one is skipped rather than queued. Job failures are logged and
recorded on the TaskRun, never raised into the scheduler thread.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ordering.config import OrderingSettings
from ordering.maintenance.reaper import RetentionReaper
from ordering.maintenance.sweeper import ExpirySweeper

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class TaskRun:
    task: str
    started_at: datetime = field(default_factory=utc_now)
    finished_at: datetime | None = None
    skipped: bool = False
    result: int | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return not self.skipped and self.error is None


class RecurringTask:
    def __init__(
        self,
        name: str,
        interval: timedelta,
        job: Callable[[], int],
        scheduler_factory: Callable[[], BackgroundScheduler] | None = None,
    ) -> None:
        self.name = name
        self.interval = interval
        self.job = job
        self.last_run: TaskRun | None = None
        self._scheduler_factory = scheduler_factory or (lambda: BackgroundScheduler(timezone=UTC))
        self._scheduler: BackgroundScheduler | None = None
        self._guard = threading.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def tick(self) -> TaskRun:
        """Run the job once unless a run is already in progress."""
        if not self._guard.acquire(blocking=False):
            logger.info("Skipping overlapping run", task=self.name)
            return TaskRun(task=self.name, skipped=True, finished_at=utc_now())

        run = TaskRun(task=self.name)
        try:
            run.result = self.job()
        except Exception as exc:
            run.error = str(exc) or type(exc).__name__
            logger.exception("Maintenance task failed", task=self.name, error=run.error)
        finally:
            run.finished_at = utc_now()
            self.last_run = run
            self._guard.release()

        if run.error is None:
            logger.info(
                "Maintenance task finished",
                task=self.name,
                result=run.result,
                duration_ms=int((run.finished_at - run.started_at).total_seconds() * 1000),
            )
        return run

    def start(self) -> None:
        if self._scheduler is not None:
            return

        scheduler = self._scheduler_factory()
        scheduler.add_job(
            self.tick,
            IntervalTrigger(seconds=self.interval.total_seconds()),
            id=self.name,
            name=self.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Maintenance task started", task=self.name, interval_seconds=self.interval.total_seconds())

    def stop(self) -> None:
        if self._scheduler is None:
            return

        self._scheduler.shutdown(wait=True)
        self._scheduler = None
        logger.info("Maintenance task stopped", task=self.name)


class MaintenanceScheduler:
    """The expiry sweeper and retention reaper, started and stopped together."""

    def __init__(self, tasks: list[RecurringTask], enabled: bool = True) -> None:
        self.tasks = tasks
        self.enabled = enabled

    @classmethod
    def from_settings(cls, domain, settings: OrderingSettings) -> "MaintenanceScheduler":
        sweeper = ExpirySweeper(domain, ttl=settings.order_ttl)
        reaper = RetentionReaper(domain, retention=settings.retention_window)
        return cls(
            tasks=[
                RecurringTask("order-expiry", settings.expiry_interval, sweeper.sweep),
                RecurringTask("order-retention", settings.retention_interval, reaper.reap),
            ],
            enabled=settings.scheduler_enabled,
        )

    def task(self, name: str) -> RecurringTask:
        return next(t for t in self.tasks if t.name == name)

    def start(self) -> None:
        if not self.enabled:
            logger.info("Maintenance scheduler is disabled, skipping start")
            return
        for task in self.tasks:
            task.start()

    def stop(self) -> None:
        for task in self.tasks:
            task.stop()
