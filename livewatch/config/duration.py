"""Duration parsing for configuration values.

Durations are written either human-readable (``90s``, ``15m``, ``1h30m``) or
as ISO-8601 (``PT15M``, ``PT1H30M``, ``P1D``). Bare integers are seconds.
"""

import re
from datetime import timedelta
from typing import Union

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_HUMAN_PART = re.compile(r"(\d+)([smhd])")
_ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$")


class DurationParseError(ValueError):
    """Raised when a duration value cannot be parsed or is out of range."""


def parse_duration(value: Union[str, int, float], allow_zero: bool = False) -> int:
    """Parse a duration into whole seconds.

    Args:
        value: Duration string, or a number of seconds
        allow_zero: Accept a zero-length duration (pre/post roll may be zero)

    Returns:
        Duration in seconds

    Raises:
        DurationParseError: If the value is malformed, negative, or zero
            while ``allow_zero`` is False

    Examples:
        >>> parse_duration("2m")
        120
        >>> parse_duration("PT45M")
        2700
        >>> parse_duration("1h30m")
        5400
    """
    if isinstance(value, bool):
        raise DurationParseError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = int(value)
    else:
        text = re.sub(r"\s+", "", str(value)).lower()
        if not text:
            raise DurationParseError("Duration string cannot be empty")
        if text.isdigit():
            seconds = int(text)
        elif text.startswith("p"):
            seconds = _parse_iso8601(text.upper())
        else:
            seconds = _parse_human(text, original=str(value))

    if seconds < 0:
        raise DurationParseError(f"Duration cannot be negative: {value!r}")
    if seconds == 0 and not allow_zero:
        raise DurationParseError(f"Duration cannot be zero: {value!r}")
    return seconds


def parse_timedelta(value: Union[str, int, float, timedelta], allow_zero: bool = False) -> timedelta:
    """Like :func:`parse_duration` but returns a :class:`timedelta`."""
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds())
        return timedelta(seconds=parse_duration(seconds, allow_zero=allow_zero))
    return timedelta(seconds=parse_duration(value, allow_zero=allow_zero))


def _parse_iso8601(text: str) -> int:
    match = _ISO_PATTERN.match(text)
    if not match or text in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration: '{text}'. Expected a form like 'PT15M' or 'PT1H30M'"
        )
    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * 86400
        + int(hours or 0) * 3600
        + int(minutes or 0) * 60
        + int(float(seconds or 0))
    )


def _parse_human(text: str, original: str) -> int:
    parts = _HUMAN_PART.findall(text)
    if not parts or "".join(f"{num}{unit}" for num, unit in parts) != text:
        raise DurationParseError(
            f"Invalid duration: '{original}'. "
            "Use digits with units s, m, h, d (e.g. '2m', '45m', '1h30m')"
        )
    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in parts)


def validate_duration_range(
    seconds: int,
    min_seconds: int,
    max_seconds: int,
    name: str = "duration",
) -> None:
    """Ensure ``seconds`` lies within ``[min_seconds, max_seconds]``.

    Raises:
        DurationParseError: If out of range
    """
    if seconds < min_seconds:
        raise DurationParseError(
            f"{name} too short: {humanize_seconds(seconds)}. Minimum is {humanize_seconds(min_seconds)}."
        )
    if seconds > max_seconds:
        raise DurationParseError(
            f"{name} too long: {humanize_seconds(seconds)}. Maximum is {humanize_seconds(max_seconds)}."
        )


def humanize_seconds(seconds: int) -> str:
    """Render a second count with its largest whole unit, e.g. ``2 minutes``."""
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
