"""Core domain models for recurring services, live status and cooldowns.

This module defines the data structures shared by every component:
- RecurrenceRule: a weekly wall-clock rule (weekday + time of day)
- ServiceWindow: a rule plus the pre/post roll during which probing is allowed
- LiveStatus: the outcome of one oracle probe
- NotificationClass / NotificationCooldown: de-duplication bookkeeping
- ServicePreferences: the user's subscribed subset of services

Weekdays follow the broadcast schedule convention 0 = Sunday .. 6 = Saturday,
which differs from :meth:`datetime.weekday` (0 = Monday).
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from pydantic import BaseModel, Field, field_validator

from livewatch.utils.timestamps import ensure_utc

WEEKDAY_NAMES = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)


def parse_weekday(value) -> int:
    """Normalise an int (0 = Sunday) or English day name to 0..6.

    Raises:
        ValueError: If the value is neither
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid weekday: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Weekday must be between 0 (Sunday) and 6 (Saturday), got {value}")
        return value
    if isinstance(value, str):
        name = value.strip().lower()
        for index, day in enumerate(WEEKDAY_NAMES):
            if name == day or (len(name) >= 3 and day.startswith(name)):
                return index
    raise ValueError(f"Invalid weekday: {value!r}")


class RecurrenceRule(BaseModel):
    """Weekly recurring wall-clock instant, e.g. Sunday 08:30."""

    id: str = Field(..., min_length=1, description="Stable identifier used by preferences")
    label: str = Field(..., min_length=1, description="Human-readable service name")
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday .. 6 = Saturday")
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)

    model_config = {"frozen": True}

    @field_validator("weekday", mode="before")
    @classmethod
    def coerce_weekday(cls, v):
        return parse_weekday(v)

    @field_validator("id", "label")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @property
    def python_weekday(self) -> int:
        """The weekday in :meth:`datetime.weekday` numbering (0 = Monday)."""
        return (self.weekday - 1) % 7

    def describe(self) -> str:
        return f"{WEEKDAY_NAMES[self.weekday].title()} {self.hour:02d}:{self.minute:02d} {self.label}"


class ServiceWindow(BaseModel):
    """A recurrence rule widened by pre-roll and post-roll.

    Probing is permitted during ``[occurrence - pre_roll, occurrence + post_roll]``.
    Windows of different rules may overlap.
    """

    rule: RecurrenceRule
    pre_roll: timedelta = Field(default=timedelta(minutes=15))
    post_roll: timedelta = Field(default=timedelta(minutes=45))
    streamed: bool = Field(True, description="Whether the service is broadcast live")

    model_config = {"frozen": True}

    @field_validator("pre_roll", "post_roll")
    @classmethod
    def non_negative(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("Pre/post roll must not be negative")
        return v

    @property
    def id(self) -> str:
        return self.rule.id


class LiveStatus(BaseModel):
    """Result of a single oracle probe; never cached beyond one cycle."""

    is_live: bool
    stream_id: Optional[str] = None

    model_config = {"frozen": True}


class NotificationClass(str, Enum):
    """Classes of notification tracked independently for cooldowns."""

    LIVE_DETECTED = "live_detected"
    SCHEDULED_REMINDER = "scheduled_reminder"
    TEST = "test"


class NotificationCooldown(BaseModel):
    """Last emission instant of a notification class."""

    notification_class: NotificationClass
    last_fired_at: datetime

    @field_validator("last_fired_at")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ServicePreferences(BaseModel):
    """The set of services a user wants standalone reminders for.

    ``explicit`` is False for the implicit all-enabled default and True once
    the user has made a choice, after which an empty set means "none".
    """

    enabled_rule_ids: FrozenSet[str] = Field(default_factory=frozenset)
    explicit: bool = False

    model_config = {"frozen": True}

    @classmethod
    def all_enabled(cls, rule_ids: Iterable[str]) -> "ServicePreferences":
        return cls(enabled_rule_ids=frozenset(rule_ids), explicit=False)

    @classmethod
    def choose(cls, rule_ids: Iterable[str]) -> "ServicePreferences":
        return cls(enabled_rule_ids=frozenset(rule_ids), explicit=True)

    def is_enabled(self, rule_id: str) -> bool:
        return rule_id in self.enabled_rule_ids
