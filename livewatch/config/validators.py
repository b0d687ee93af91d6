"""Non-fatal configuration checks surfaced as warnings."""

import warnings
from typing import Any, Dict, List

from livewatch.domain.models import parse_weekday

from .duration import DurationParseError, parse_duration


def _minutes_of_week(service: Dict[str, Any]):
    try:
        weekday = parse_weekday(service.get("weekday", 0))
        start = weekday * 1440 + int(service["hour"]) * 60 + int(service.get("minute", 0))
        pre = parse_duration(service.get("pre_roll", "15m"), allow_zero=True) // 60
        post = parse_duration(service.get("post_roll", "45m"), allow_zero=True) // 60
    except (KeyError, TypeError, ValueError, DurationParseError):
        return None
    return start - pre, start + post


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Inspect a raw configuration mapping for likely mistakes.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages (empty when nothing looks off)
    """
    warning_messages = []

    polling = config_dict.get("polling") or {}
    if isinstance(polling, dict) and "interval" in polling:
        try:
            if parse_duration(polling["interval"]) < 60:
                warning_messages.append(
                    f"Short polling.interval ({polling['interval']}) may exhaust the oracle API quota"
                )
        except DurationParseError:
            pass  # reported by model validation

    services = config_dict.get("services") or []
    if not isinstance(services, list):
        return warning_messages

    spans = []
    for service in services:
        if not isinstance(service, dict):
            continue
        name = service.get("name") or service.get("id") or "Unknown"
        if service.get("streamed") is False:
            warning_messages.append(
                f"Service '{name}' is not streamed; it will get reminders but is never polled"
            )
        span = _minutes_of_week(service)
        if span is not None:
            spans.append((name, span))

    for i, (name_a, (start_a, end_a)) in enumerate(spans):
        for name_b, (start_b, end_b) in spans[i + 1:]:
            if start_a <= end_b and start_b <= end_a:
                warning_messages.append(
                    f"Service windows overlap: '{name_a}' and '{name_b}' "
                    "(the first configured service is reported while both are active)"
                )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through :func:`warnings.warn`."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
