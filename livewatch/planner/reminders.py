"""Arming standalone service reminders as one-shot APScheduler jobs.

Each reminder is a DateTrigger job for exactly one occurrence. When it
fires, the next occurrence is re-derived from the rule (strictly after the
fired instant) and armed as a new job; there is no repeating trigger, so
wall-clock times stay correct across DST changes.
"""

import threading
from datetime import datetime, timezone, tzinfo
from typing import Callable, Dict, List, Optional, Sequence

from apscheduler.events import EVENT_JOB_MISSED
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from livewatch.domain.models import RecurrenceRule, ServicePreferences
from livewatch.logging import get_logger
from livewatch.notifications.service import NotificationService
from livewatch.persistence.repositories import PreferencesRepository
from livewatch.recurrence import next_occurrence
from livewatch.utils.timestamps import ensure_utc, utc_now

from .plan import PlannedReminder, plan

logger = get_logger(__name__, component="planner")

JOB_PREFIX = "reminder:"
MISFIRE_GRACE_SECONDS = 300


class ReminderScheduler:
    """Keeps one armed reminder per enabled service.

    Changing preferences clears every armed reminder before re-planning,
    so no reminder for a disabled service survives the change.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        notification_service: NotificationService,
        rules: Sequence[RecurrenceRule],
        tz: tzinfo = timezone.utc,
        preferences_repository: Optional[PreferencesRepository] = None,
        permission_check: Optional[Callable[[], bool]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.scheduler = scheduler
        self.notification_service = notification_service
        self.rules = {rule.id: rule for rule in rules}
        self.tz = tz
        self.preferences_repository = preferences_repository
        self.permission_check = permission_check or (lambda: True)
        self.clock = clock

        self._lock = threading.RLock()
        self._armed: Dict[str, PlannedReminder] = {}
        self.scheduler.add_listener(self._on_missed, EVENT_JOB_MISSED)

    def armed(self) -> List[PlannedReminder]:
        """Currently armed reminders, soonest first."""
        with self._lock:
            return sorted(self._armed.values(), key=lambda p: (p.instant, p.rule.id))

    def cancel_all(self) -> int:
        """Remove every armed reminder and return how many were cleared."""
        with self._lock:
            cleared = len(self._armed)
            for rule_id in list(self._armed):
                self._remove_job(rule_id)
            self._armed.clear()

        logger.info(
            f"Cleared {cleared} armed reminders",
            extra={"event": "planner.cleared", "cleared_count": cleared},
        )
        return cleared

    def apply_preferences(
        self,
        preferences: ServicePreferences,
        now: Optional[datetime] = None,
    ) -> List[PlannedReminder]:
        """Clear all reminders, then arm one per enabled service."""
        now = ensure_utc(now) if now is not None else ensure_utc(self.clock())
        with self._lock:
            self.cancel_all()

            if not self.permission_check():
                logger.warning(
                    "Notification permission not granted; reminders not armed",
                    extra={"event": "planner.permission_denied"},
                )
                return []

            planned = plan(preferences, self.rules.values(), now, self.tz)
            for reminder in planned:
                self._arm(reminder)

        logger.info(
            f"Planned {len(planned)} reminders",
            extra={
                "event": "planner.planned",
                "service_ids": [p.rule_id for p in planned],
                "explicit_preferences": preferences.explicit,
            },
        )
        return planned

    def load_and_apply(self, now: Optional[datetime] = None) -> List[PlannedReminder]:
        """Plan from the persisted preferences (all services when none are stored)."""
        if self.preferences_repository is None:
            return self.apply_preferences(ServicePreferences.all_enabled(self.rules), now)
        return self.apply_preferences(self.preferences_repository.load(self.rules), now)

    def change_preferences(
        self,
        enabled_ids: Sequence[str],
        now: Optional[datetime] = None,
    ) -> List[PlannedReminder]:
        """Persist an explicit choice of services and re-plan from it.

        Raises:
            ValueError: If an id does not name a configured service
        """
        unknown = sorted(set(enabled_ids) - set(self.rules))
        if unknown:
            raise ValueError(
                f"Unknown service id(s): {', '.join(unknown)}. "
                f"Configured services: {', '.join(self.rules)}"
            )
        preferences = ServicePreferences.choose(enabled_ids)
        if self.preferences_repository is not None:
            self.preferences_repository.save(preferences)
        return self.apply_preferences(preferences, now)

    def _arm(self, reminder: PlannedReminder) -> None:
        job_id = f"{JOB_PREFIX}{reminder.rule_id}"
        self._remove_job(reminder.rule_id)
        self.scheduler.add_job(
            func=self._fire,
            trigger=DateTrigger(run_date=reminder.instant.astimezone(timezone.utc), timezone=timezone.utc),
            id=job_id,
            name=f"Reminder: {reminder.rule.label}",
            args=[reminder.rule_id, reminder.instant],
            replace_existing=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )
        self._armed[reminder.rule_id] = reminder

        logger.info(
            f"Armed reminder for {reminder.rule.describe()} at {reminder.instant.isoformat()}",
            extra={
                "event": "planner.armed",
                "service_id": reminder.rule_id,
                "fire_at": reminder.instant.isoformat(),
            },
        )

    def _remove_job(self, rule_id: str) -> None:
        job_id = f"{JOB_PREFIX}{rule_id}"
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)

    def _rearm_after(self, rule_id: str, fired_at: datetime) -> None:
        with self._lock:
            current = self._armed.get(rule_id)
            if current is None or current.instant != fired_at:
                # Cleared or re-planned since this job was armed
                return
            rule = self.rules[rule_id]
            following = next_occurrence(rule, fired_at, self.tz, strict=True)
            self._arm(PlannedReminder(instant=following, rule=rule))

    def _fire(self, rule_id: str, scheduled_at: datetime) -> None:
        rule = self.rules[rule_id]
        try:
            self.notification_service.notify_reminder(rule, now=self.clock())
        finally:
            self._rearm_after(rule_id, scheduled_at)

    def _on_missed(self, event) -> None:
        if not str(event.job_id).startswith(JOB_PREFIX):
            return
        rule_id = event.job_id[len(JOB_PREFIX):]
        with self._lock:
            missed = self._armed.get(rule_id)
        if missed is None:
            return

        logger.warning(
            f"Reminder for {missed.rule.label} missed its fire time; re-arming for next week",
            extra={"event": "planner.missed", "service_id": rule_id},
        )
        self._rearm_after(rule_id, missed.instant)
