"""Typed repositories over the key-value port.

All three repositories fail open: a read that raises PersistenceError is
logged and answered with the default (no record, all services enabled),
and a failed write is logged without interrupting the caller.
"""

import json
from datetime import datetime
from typing import Iterable, Optional

from livewatch.domain.models import NotificationClass, NotificationCooldown, ServicePreferences
from livewatch.logging import get_logger
from livewatch.utils.timestamps import format_timestamp, parse_timestamp

from .exceptions import PersistenceError
from .store import KeyValueStore

logger = get_logger(__name__, component="persistence")


class _Repository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.store.get(key)
        except PersistenceError as e:
            logger.warning(
                f"Read of {key} failed, using default: {e}",
                extra={"event": "persistence.read_failed", "key": key, "error_type": type(e).__name__},
            )
            return None

    def _write(self, key: str, value: str) -> bool:
        try:
            self.store.set(key, value)
            return True
        except PersistenceError as e:
            logger.error(
                f"Write of {key} failed: {e}",
                extra={"event": "persistence.write_failed", "key": key, "error_type": type(e).__name__},
            )
            return False

    def _remove(self, key: str) -> bool:
        try:
            self.store.remove(key)
            return True
        except PersistenceError as e:
            logger.error(
                f"Removal of {key} failed: {e}",
                extra={"event": "persistence.write_failed", "key": key, "error_type": type(e).__name__},
            )
            return False

    def _read_instant(self, key: str) -> Optional[datetime]:
        raw = self._read(key)
        if raw is None:
            return None
        parsed = parse_timestamp(raw)
        if parsed is None:
            logger.warning(
                f"Ignoring unparseable timestamp under {key}",
                extra={"event": "persistence.corrupt_value", "key": key},
            )
        return parsed


class CooldownRepository(_Repository):
    """One ``NotificationCooldown`` per notification class."""

    KEY_PREFIX = "notification.cooldown."

    def _key(self, notification_class: NotificationClass) -> str:
        return f"{self.KEY_PREFIX}{NotificationClass(notification_class).value}"

    def get(self, notification_class: NotificationClass) -> Optional[NotificationCooldown]:
        fired_at = self._read_instant(self._key(notification_class))
        if fired_at is None:
            return None
        return NotificationCooldown(
            notification_class=NotificationClass(notification_class),
            last_fired_at=fired_at,
        )

    def record(self, notification_class: NotificationClass, fired_at: datetime) -> NotificationCooldown:
        """Overwrite the record for ``notification_class``."""
        cooldown = NotificationCooldown(
            notification_class=NotificationClass(notification_class),
            last_fired_at=fired_at,
        )
        self._write(self._key(notification_class), format_timestamp(cooldown.last_fired_at))
        return cooldown

    def clear(self, notification_class: NotificationClass) -> None:
        self._remove(self._key(notification_class))


class PreferencesRepository(_Repository):
    """The user's enabled services.

    Absent record: every known service is enabled. Once saved, the stored
    set is authoritative, including the empty set.
    """

    KEY = "preferences.enabled_services"

    def load(self, known_ids: Iterable[str]) -> ServicePreferences:
        known = list(known_ids)
        raw = self._read(self.KEY)
        if raw is None:
            return ServicePreferences.all_enabled(known)

        try:
            stored = json.loads(raw)
            if not isinstance(stored, list) or not all(isinstance(i, str) for i in stored):
                raise ValueError("expected a JSON list of strings")
        except ValueError as e:
            logger.warning(
                f"Stored preferences are unreadable, using defaults: {e}",
                extra={"event": "persistence.corrupt_value", "key": self.KEY},
            )
            return ServicePreferences.all_enabled(known)

        unknown = sorted(set(stored) - set(known))
        if unknown:
            logger.info(
                "Dropping preferences for services that are no longer configured",
                extra={"event": "preferences.unknown_ids", "service_ids": unknown},
            )
        return ServicePreferences.choose(i for i in stored if i in known)

    def save(self, preferences: ServicePreferences) -> ServicePreferences:
        self._write(self.KEY, json.dumps(sorted(preferences.enabled_rule_ids)))
        return ServicePreferences.choose(preferences.enabled_rule_ids)

    def reset(self) -> None:
        self._remove(self.KEY)


class CheckRepository(_Repository):
    """Bookkeeping of the last poll cycle and the last time a stream was live."""

    LAST_CHECKED_KEY = "live_check.last_checked_at"
    LAST_LIVE_KEY = "live_check.last_live_at"

    def last_checked_at(self) -> Optional[datetime]:
        return self._read_instant(self.LAST_CHECKED_KEY)

    def last_live_at(self) -> Optional[datetime]:
        return self._read_instant(self.LAST_LIVE_KEY)

    def record_check(self, checked_at: datetime) -> None:
        self._write(self.LAST_CHECKED_KEY, format_timestamp(checked_at))

    def record_live(self, seen_at: datetime) -> None:
        self._write(self.LAST_LIVE_KEY, format_timestamp(seen_at))
