"""Compute the reminder instants for a user's enabled services."""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List

from livewatch.domain.models import RecurrenceRule, ServicePreferences
from livewatch.recurrence import next_occurrence


@dataclass(frozen=True)
class PlannedReminder:
    """A one-shot reminder: fire ``rule``'s notification at ``instant``."""

    instant: datetime
    rule: RecurrenceRule

    @property
    def rule_id(self) -> str:
        return self.rule.id


def plan(
    preferences: ServicePreferences,
    rules: Iterable[RecurrenceRule],
    now: datetime,
    tz: tzinfo = timezone.utc,
    strict: bool = False,
) -> List[PlannedReminder]:
    """Next occurrence of every enabled rule, soonest first.

    Ties are broken by rule id so the order is stable.

    Example:
        >>> prefs = ServicePreferences.choose(["early"])
        >>> [p.rule.id for p in plan(prefs, rules, now, tz)]
        ['early']
    """
    planned = [
        PlannedReminder(instant=next_occurrence(rule, now, tz, strict=strict), rule=rule)
        for rule in rules
        if preferences.is_enabled(rule.id)
    ]
    return sorted(planned, key=lambda p: (p.instant, p.rule.id))
