"""Orchestration of a single live-check poll cycle."""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from livewatch.domain.models import NotificationClass
from livewatch.logging import get_logger
from livewatch.logging.context import log_context
from livewatch.notifications.service import NotificationService
from livewatch.oracle.base import BaseProber
from livewatch.oracle.exceptions import ProbeError
from livewatch.persistence.repositories import CheckRepository
from livewatch.utils.timestamps import ensure_utc, utc_now
from livewatch.windows import ServiceWindowEvaluator

from .models import CycleOutcome, LiveCheckResult, LiveCheckState

logger = get_logger(__name__, component="pipeline")


class LiveCheckRunner:
    """
    Runs one poll cycle: window check, cooldown check, probe, notify.

    The runner holds the scheduler state. A cycle that starts while another
    is still in flight is skipped, not queued.
    """

    def __init__(
        self,
        evaluator: ServiceWindowEvaluator,
        prober: BaseProber,
        notification_service: NotificationService,
        check_repository: CheckRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the runner.

        Args:
            evaluator: Decides whether a service window is open
            prober: Live-status oracle client
            notification_service: Emits the live notification
            check_repository: Records last check / last live instants
            clock: Source of "now" for cycles started without one
        """
        self.evaluator = evaluator
        self.prober = prober
        self.notification_service = notification_service
        self.check_repository = check_repository
        self.clock = clock
        self.state = LiveCheckState.IDLE
        self._lock = threading.Lock()

    def run_once(self, now: Optional[datetime] = None) -> LiveCheckResult:
        """
        Execute one poll cycle.

        This method:
        1. Stays Idle when no streamed service window is open
        2. Enters Cooldown when a live notification fired recently
        3. Otherwise probes the oracle (state Probing)
        4. On a live answer emits the notification through the de-duplicator

        Returns:
            LiveCheckResult describing the cycle

        Raises:
            Nothing; probe failures and unexpected errors are captured in the
            result so the polling timer keeps running.
        """
        cycle_id = uuid4().hex[:12]
        started_at = ensure_utc(now) if now is not None else ensure_utc(self.clock())

        if not self._lock.acquire(blocking=False):
            with log_context(cycle_id=cycle_id):
                logger.warning(
                    "Poll cycle skipped: previous cycle still in progress",
                    extra={"event": "poll.cycle.skipped", "reason": "in_flight"},
                )
            return LiveCheckResult(
                cycle_id=cycle_id,
                started_at=started_at,
                finished_at=utc_now(),
                outcome=CycleOutcome.SKIPPED,
                state=self.state,
            )

        try:
            with log_context(cycle_id=cycle_id):
                result = LiveCheckResult(cycle_id=cycle_id, started_at=started_at)
                try:
                    self._run_cycle(result, started_at)
                except Exception as e:
                    # A single failed cycle must never stop the timer
                    logger.error(
                        f"Poll cycle failed unexpectedly: {e}",
                        exc_info=True,
                        extra={"event": "poll.cycle.error", "error_type": type(e).__name__},
                    )
                    self.state = LiveCheckState.IDLE
                    result.outcome = CycleOutcome.ERROR
                    result.error = str(e)
                    result.error_type = type(e).__name__

                self.check_repository.record_check(started_at)
                result.state = self.state
                result.finished_at = utc_now()

                logger.info(
                    f"Poll cycle completed: {result.outcome.value}",
                    extra={
                        "event": "poll.cycle.completed",
                        "outcome": result.outcome.value,
                        "state": result.state.value,
                        "window_id": result.window_id,
                        "probed": result.probed,
                        "is_live": result.is_live,
                        "duration_ms": int(result.duration_seconds * 1000),
                    },
                )
                return result
        finally:
            self._lock.release()

    def _run_cycle(self, result: LiveCheckResult, now: datetime) -> None:
        match = self.evaluator.active_window(now)
        if match is None:
            logger.debug(
                "No service window open; staying idle",
                extra={"event": "poll.cycle.idle"},
            )
            self.state = LiveCheckState.IDLE
            result.outcome = CycleOutcome.OUTSIDE_WINDOW
            return

        result.window_id = match.service_id
        result.window_label = match.label

        deduplicator = self.notification_service.deduplicator
        if not deduplicator.should_emit(NotificationClass.LIVE_DETECTED, now):
            remaining = deduplicator.remaining(NotificationClass.LIVE_DETECTED, now)
            logger.info(
                f"Live notification cooling down for another {int(remaining.total_seconds())}s; not probing",
                extra={"event": "poll.cycle.cooldown", "window_id": match.service_id},
            )
            self.state = LiveCheckState.COOLDOWN
            result.outcome = CycleOutcome.COOLING_DOWN
            return

        self.state = LiveCheckState.PROBING
        logger.info(
            f"{match.label} window open; probing oracle",
            extra={
                "event": "poll.cycle.probing",
                "window_id": match.service_id,
                "occurrence": match.occurrence.isoformat(),
            },
        )

        result.probed = True
        try:
            status = self.prober.probe()
        except ProbeError as e:
            # Non-transient failures (bad key, 403, parse errors) need an operator
            logger.log(
                logging.WARNING if e.is_transient else logging.ERROR,
                f"Probe failed, assuming not live: {e}",
                extra={
                    "event": "poll.probe.failed",
                    "error_type": type(e).__name__,
                    "transient": e.is_transient,
                },
            )
            self.state = LiveCheckState.IDLE
            result.outcome = CycleOutcome.PROBE_FAILED
            result.error = str(e)
            result.error_type = type(e).__name__
            return

        result.is_live = status.is_live
        result.stream_id = status.stream_id
        if not status.is_live:
            self.state = LiveCheckState.IDLE
            result.outcome = CycleOutcome.NOT_LIVE
            return

        self.check_repository.record_live(now)
        notification = self.notification_service.notify_live(status, now, service_name=match.label)
        result.notification = notification

        if notification.status == "emitted":
            self.state = LiveCheckState.COOLDOWN
            result.outcome = CycleOutcome.NOTIFIED
        elif notification.status == "suppressed":
            self.state = LiveCheckState.COOLDOWN
            result.outcome = CycleOutcome.SUPPRESSED
        else:
            self.state = LiveCheckState.IDLE
            result.outcome = CycleOutcome.NOTIFICATION_FAILED
            result.error = notification.error
