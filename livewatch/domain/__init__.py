"""Domain models for the live-stream watcher."""

from .models import (
    WEEKDAY_NAMES,
    LiveStatus,
    NotificationClass,
    NotificationCooldown,
    RecurrenceRule,
    ServicePreferences,
    ServiceWindow,
    parse_weekday,
)

__all__ = [
    "RecurrenceRule",
    "ServiceWindow",
    "LiveStatus",
    "NotificationClass",
    "NotificationCooldown",
    "ServicePreferences",
    "WEEKDAY_NAMES",
    "parse_weekday",
]
