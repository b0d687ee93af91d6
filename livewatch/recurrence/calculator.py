"""Next/previous occurrence of a weekly wall-clock rule.

Occurrences are computed on the local calendar of the configured zone and
re-derived every time rather than by adding fixed 7-day deltas to an
earlier result, so each firing lands on the right wall-clock time across
DST changes.

Wall-clock times that do not exist (the spring-forward gap) are moved
forward by the size of the gap; ambiguous times (the fall-back hour)
resolve to their first occurrence.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from livewatch.domain.models import RecurrenceRule
from livewatch.utils.timestamps import ensure_utc

WEEK = timedelta(days=7)


def _occurrence_on(rule: RecurrenceRule, day: date, tz: tzinfo) -> datetime:
    """The rule's wall-clock instant on ``day``, as an aware datetime in ``tz``."""
    local = datetime.combine(day, time(rule.hour, rule.minute)).replace(tzinfo=tz)
    # Round-trip through UTC to normalise non-existent local times
    return local.astimezone(timezone.utc).astimezone(tz)


def next_occurrence(
    rule: RecurrenceRule,
    now: datetime,
    tz: tzinfo = timezone.utc,
    strict: bool = False,
) -> datetime:
    """Return the soonest instant at or after ``now`` matching ``rule``.

    Args:
        rule: Weekly recurrence rule
        now: Reference instant (naive values are read as UTC)
        tz: Zone whose local calendar the rule is expressed in
        strict: Skip an occurrence equal to ``now``; used when re-arming a
            trigger that has just fired at exactly that instant

    Returns:
        Aware datetime in ``tz``

    Example:
        >>> rule = RecurrenceRule(id="early", label="Early Service", weekday=0, hour=8, minute=30)
        >>> next_occurrence(rule, datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)).isoformat()
        '2026-10-25T08:30:00+00:00'
    """
    now_utc = ensure_utc(now)
    local_today = now_utc.astimezone(tz).date()
    days_ahead = (rule.python_weekday - local_today.weekday()) % 7

    candidate = _occurrence_on(rule, local_today + timedelta(days=days_ahead), tz)
    candidate_utc = candidate.astimezone(timezone.utc)
    if candidate_utc < now_utc or (strict and candidate_utc == now_utc):
        candidate = _occurrence_on(rule, local_today + timedelta(days=days_ahead + 7), tz)
    return candidate


def previous_occurrence(
    rule: RecurrenceRule,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> datetime:
    """Return the latest instant at or before ``now`` matching ``rule``."""
    now_utc = ensure_utc(now)
    local_today = now_utc.astimezone(tz).date()
    days_back = (local_today.weekday() - rule.python_weekday) % 7

    candidate = _occurrence_on(rule, local_today - timedelta(days=days_back), tz)
    if candidate.astimezone(timezone.utc) > now_utc:
        candidate = _occurrence_on(rule, local_today - timedelta(days=days_back + 7), tz)
    return candidate


def surrounding_occurrences(
    rule: RecurrenceRule,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> tuple:
    """``(previous, next)`` occurrences around ``now``.

    Both are equal to ``now`` when ``now`` falls exactly on an occurrence.
    """
    return previous_occurrence(rule, now, tz), next_occurrence(rule, now, tz)
