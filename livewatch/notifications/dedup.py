"""Cooldown-based de-duplication of notifications.

The decision is pure given the persisted cooldown table: a class may be
emitted when it has no record or when at least its cooldown has elapsed
since the recorded emission. Check and record are not locked; callers
serialize them (the poll job never runs two cycles at once).
"""

from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional

from livewatch.domain.models import NotificationClass
from livewatch.logging import get_logger
from livewatch.persistence.repositories import CooldownRepository
from livewatch.utils.timestamps import ensure_utc

logger = get_logger(__name__, component="notification")

DEFAULT_COOLDOWNS: Dict[NotificationClass, timedelta] = {
    NotificationClass.LIVE_DETECTED: timedelta(minutes=15),
    NotificationClass.SCHEDULED_REMINDER: timedelta(0),
    NotificationClass.TEST: timedelta(0),
}


class NotificationDeduplicator:
    """Enforces a minimum gap between emissions of the same class."""

    def __init__(
        self,
        repository: CooldownRepository,
        cooldowns: Optional[Mapping[NotificationClass, timedelta]] = None,
    ):
        self.repository = repository
        self.cooldowns = dict(DEFAULT_COOLDOWNS)
        if cooldowns:
            for notification_class, duration in cooldowns.items():
                if duration < timedelta(0):
                    raise ValueError(f"Cooldown for {notification_class} must not be negative")
                self.cooldowns[NotificationClass(notification_class)] = duration

    def cooldown_for(self, notification_class: NotificationClass) -> timedelta:
        return self.cooldowns[NotificationClass(notification_class)]

    def last_emitted_at(self, notification_class: NotificationClass) -> Optional[datetime]:
        record = self.repository.get(notification_class)
        return record.last_fired_at if record else None

    def should_emit(
        self,
        notification_class: NotificationClass,
        now: datetime,
        cooldown: Optional[timedelta] = None,
    ) -> bool:
        """Return True when ``notification_class`` may be emitted at ``now``.

        Args:
            notification_class: Class being considered
            now: Instant of the prospective emission
            cooldown: Override of the configured cooldown for this call
        """
        last = self.last_emitted_at(notification_class)
        if last is None:
            return True

        required = self.cooldown_for(notification_class) if cooldown is None else cooldown
        elapsed = ensure_utc(now) - last
        if elapsed >= required:
            return True

        logger.debug(
            f"{NotificationClass(notification_class).value} still cooling down",
            extra={
                "event": "notification.cooldown_active",
                "notification_class": NotificationClass(notification_class).value,
                "elapsed_seconds": int(elapsed.total_seconds()),
                "cooldown_seconds": int(required.total_seconds()),
            },
        )
        return False

    def record_emission(self, notification_class: NotificationClass, now: datetime) -> datetime:
        """Overwrite the cooldown record with ``now`` and return it in UTC."""
        return self.repository.record(notification_class, now).last_fired_at

    def remaining(self, notification_class: NotificationClass, now: datetime) -> timedelta:
        """Time left until ``notification_class`` may be emitted again (zero if allowed)."""
        last = self.last_emitted_at(notification_class)
        if last is None:
            return timedelta(0)
        left = last + self.cooldown_for(notification_class) - ensure_utc(now)
        return max(left, timedelta(0))
