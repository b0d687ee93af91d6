"""Timestamp helpers.

All instants handled by the core are timezone-aware. Persisted values and
log fields are UTC ISO-8601 strings with a ``Z`` suffix; wall-clock rules
are evaluated in the configured IANA zone via :mod:`zoneinfo`.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert ``dt`` to aware UTC, treating naive values as UTC.

    Example:
        >>> ensure_utc(datetime(2026, 10, 18, 8, 30)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def load_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name.

    Raises:
        ValueError: If the zone is unknown
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: '{name}'") from e


def format_timestamp(dt: datetime) -> str:
    """Format ``dt`` as ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` in UTC."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string into aware UTC, or None if unparseable.

    Accepts the ``Z`` suffix as well as explicit offsets; naive strings are
    read as UTC.
    """
    if not value or not value.strip():
        return None
    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None


def to_epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch, as carried in notification payloads."""
    return int(ensure_utc(dt).timestamp() * 1000)
