"""Poll scheduler driving the live-check cycle."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from livewatch.logging import get_logger
from livewatch.notifications.models import NotificationResult
from livewatch.pipeline.runner import LiveCheckRunner
from livewatch.utils.timestamps import format_timestamp, utc_now

from .lifecycle import LifecycleEvent, LifecycleEventSource

logger = get_logger(__name__, component="scheduler")

JOB_ID = "live-check"


def build_background_scheduler(misfire_grace_seconds: int = 60) -> BackgroundScheduler:
    """BackgroundScheduler shared by the poll timer and the reminders.

    ``max_instances=1`` with ``coalesce`` means a tick that fires while the
    previous cycle is still running is skipped rather than queued.
    """
    return BackgroundScheduler(
        job_defaults={
            "max_instances": 1,
            "coalesce": True,
            "misfire_grace_time": misfire_grace_seconds,
        },
        timezone=timezone.utc,
    )


class PollScheduler:
    """
    Runs the live-check cycle on a fixed interval and on wake events.

    The scheduler is an explicitly constructed object owning its own timer
    job and lifecycle subscription; several can coexist (one per test).
    ``start()`` is idempotent and ``stop()`` makes it restartable: stopping
    removes the timer job and detaches the lifecycle listener, while the
    underlying APScheduler instance keeps running for other jobs until
    :meth:`shutdown`.
    """

    def __init__(
        self,
        runner: LiveCheckRunner,
        interval_seconds: int,
        lifecycle: Optional[LifecycleEventSource] = None,
        permission_check: Optional[Callable[[], bool]] = None,
        scheduler: Optional[BackgroundScheduler] = None,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the poll scheduler.

        Args:
            runner: Executes one poll cycle
            interval_seconds: Interval between cycles in seconds
            lifecycle: Source of foreground/background/permission events
            permission_check: Returns False while notifications are not permitted
            scheduler: APScheduler instance to use (created if None)
            shutdown_event: Optional event to set on shutdown for coordination
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.runner = runner
        self.interval_seconds = interval_seconds
        self.lifecycle = lifecycle
        self.permission_check = permission_check or (lambda: True)
        self.scheduler = scheduler or build_background_scheduler(misfire_grace_seconds=interval_seconds)
        self.shutdown_event = shutdown_event

        self._lock = threading.RLock()
        self._started = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> bool:
        """
        Start polling. Calling it again while started is a no-op.

        The first cycle runs immediately; later cycles follow the interval.
        When notification permission is missing the lifecycle listener is
        attached but the timer is not armed until PERMISSION_GRANTED.

        Returns:
            True if the timer is armed after the call
        """
        with self._lock:
            if self._started:
                logger.debug("Scheduler already started", extra={"event": "scheduler.start.noop"})
                return self.is_running()

            self._started = True
            if self.lifecycle is not None:
                self._unsubscribe = self.lifecycle.subscribe(self.handle_lifecycle_event)
            return self._arm()

    def stop(self) -> None:
        """Cancel the timer and detach lifecycle listeners."""
        with self._lock:
            if not self._started:
                return
            self._started = False

            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None

            if self.scheduler.get_job(JOB_ID) is not None:
                self.scheduler.remove_job(JOB_ID)

        logger.info("Poll scheduler stopped", extra={"event": "scheduler.stopped"})

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop polling and shut down the underlying APScheduler.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )
        self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.shutdown"})

    def wake(self, reason: str = "manual") -> None:
        """Run a cycle as soon as possible without adding a second timer."""
        with self._lock:
            if not self._started:
                logger.debug(
                    "Wake ignored: scheduler not started",
                    extra={"event": "scheduler.wake.ignored", "reason": reason},
                )
                return
            if not self.is_running():
                self._arm()
                return

            self.scheduler.modify_job(JOB_ID, next_run_time=utc_now())

        logger.info(
            f"Scheduler woken: {reason}",
            extra={"event": "scheduler.wake", "reason": reason},
        )

    def handle_lifecycle_event(self, event: LifecycleEvent) -> None:
        event = LifecycleEvent(event)
        if event == LifecycleEvent.BACKGROUND:
            logger.info(
                "App moved to background; polling continues",
                extra={"event": "scheduler.lifecycle", "lifecycle_event": event.value},
            )
            return
        self.wake(reason=event.value)

    def trigger_now(self):
        """
        Run one cycle synchronously in the current thread.

        Returns:
            The LiveCheckResult of the cycle
        """
        logger.info("Triggering immediate live check", extra={"event": "scheduler.trigger_now"})
        return self.runner.run_once()

    def send_test_notification(self) -> NotificationResult:
        """Emit a test notification regardless of service windows."""
        logger.info("Sending test notification", extra={"event": "scheduler.test_notification"})
        return self.runner.notification_service.send_test()

    def is_running(self) -> bool:
        """
        Check if the poll timer is armed.

        Returns:
            True if the live-check job is scheduled, False otherwise
        """
        return self.scheduler.get_job(JOB_ID) is not None

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    def status(self) -> Dict[str, Any]:
        """Snapshot of the monitor for status displays."""
        repository = self.runner.check_repository
        last_checked = repository.last_checked_at()
        last_live = repository.last_live_at()
        next_run = self.get_next_run_time()
        return {
            "running": self.is_running(),
            "state": self.runner.state.value,
            "interval_seconds": self.interval_seconds,
            "last_checked_at": format_timestamp(last_checked) if last_checked else None,
            "last_live_at": format_timestamp(last_live) if last_live else None,
            "next_run_time": format_timestamp(next_run) if next_run else None,
        }

    def _arm(self) -> bool:
        if not self.permission_check():
            logger.warning(
                "Notification permission not granted; polling not started",
                extra={"event": "scheduler.permission_denied"},
            )
            return False

        next_run = utc_now()
        self.scheduler.add_job(
            func=self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=JOB_ID,
            name="Live stream check",
            replace_existing=True,
            next_run_time=next_run,
        )
        if not self.scheduler.running:
            self.scheduler.start()

        logger.info(
            f"Poll scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )
        return True

    def _tick(self) -> None:
        self.runner.run_once()
