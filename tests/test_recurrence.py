"""Tests for the weekly recurrence calculator."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from livewatch.domain.models import RecurrenceRule
from livewatch.recurrence import next_occurrence, previous_occurrence, surrounding_occurrences

LA = ZoneInfo("America/Los_Angeles")


def local_weekday(dt: datetime) -> int:
    """0 = Sunday numbering of ``dt``'s own calendar day."""
    return (dt.weekday() + 1) % 7


class TestNextOccurrence:
    """Tests for next_occurrence."""

    def test_later_same_day(self, early_rule):
        now = datetime(2026, 10, 18, 7, 0, tzinfo=LA)
        assert next_occurrence(early_rule, now, LA) == datetime(2026, 10, 18, 8, 30, tzinfo=LA)

    def test_exactly_at_occurrence_is_inclusive(self, early_rule):
        now = datetime(2026, 10, 18, 8, 30, tzinfo=LA)
        assert next_occurrence(early_rule, now, LA) == now

    def test_strict_skips_occurrence_equal_to_now(self, early_rule):
        now = datetime(2026, 10, 18, 8, 30, tzinfo=LA)
        assert next_occurrence(early_rule, now, LA, strict=True) == datetime(2026, 10, 25, 8, 30, tzinfo=LA)

    def test_same_day_already_passed_rolls_a_week(self, early_rule):
        now = datetime(2026, 10, 18, 9, 0, tzinfo=LA)
        assert next_occurrence(early_rule, now, LA) == datetime(2026, 10, 25, 8, 30, tzinfo=LA)

    def test_weekday_earlier_in_week_rolls_over(self, early_rule):
        wednesday = datetime(2026, 10, 21, 12, 0, tzinfo=LA)
        assert next_occurrence(early_rule, wednesday, LA) == datetime(2026, 10, 25, 8, 30, tzinfo=LA)

    def test_weekday_later_in_week(self):
        bible_study = RecurrenceRule(id="bible-study", label="Bible Study", weekday=3, hour=19, minute=0)
        sunday = datetime(2026, 10, 18, 12, 0, tzinfo=LA)
        assert next_occurrence(bible_study, sunday, LA) == datetime(2026, 10, 21, 19, 0, tzinfo=LA)

    def test_naive_now_is_read_as_utc(self, early_rule):
        naive = datetime(2026, 10, 18, 8, 0)
        assert next_occurrence(early_rule, naive) == datetime(2026, 10, 18, 8, 30, tzinfo=timezone.utc)

    def test_uses_local_calendar_not_utc(self, early_rule):
        # Saturday 20:00 in Los Angeles is already Sunday 03:00 UTC
        now = datetime(2026, 10, 17, 20, 0, tzinfo=LA)
        result = next_occurrence(early_rule, now, LA)
        assert result == datetime(2026, 10, 18, 8, 30, tzinfo=LA)

    def test_result_is_in_rule_zone(self, early_rule):
        result = next_occurrence(early_rule, datetime(2026, 10, 18, tzinfo=timezone.utc), LA)
        assert result.tzinfo == LA

    def test_wall_clock_kept_across_fall_back(self, early_rule):
        # DST ends 2026-11-01: 08:30 is PST (UTC-8) that day
        now = datetime(2026, 10, 26, 12, 0, tzinfo=LA)
        result = next_occurrence(early_rule, now, LA)

        assert (result.hour, result.minute) == (8, 30)
        assert result.utcoffset() == timedelta(hours=-8)
        assert result.astimezone(timezone.utc) == datetime(2026, 11, 1, 16, 30, tzinfo=timezone.utc)

    def test_nonexistent_time_moves_past_the_gap(self):
        # 02:30 does not exist on 2027-03-14 in Los Angeles
        rule = RecurrenceRule(id="night", label="Night Watch", weekday=0, hour=2, minute=30)
        result = next_occurrence(rule, datetime(2027, 3, 13, 12, 0, tzinfo=LA), LA)

        assert result.date() == datetime(2027, 3, 14).date()
        assert (result.hour, result.minute) == (3, 30)

    @pytest.mark.parametrize(
        "weekday,hour,minute",
        [(0, 8, 30), (0, 0, 0), (3, 19, 0), (6, 23, 59), (1, 12, 15)],
    )
    @pytest.mark.parametrize("tz", [timezone.utc, LA])
    def test_smallest_matching_instant_not_before_now(self, weekday, hour, minute, tz):
        """Over two DST-free weeks the result matches the rule and is the smallest such instant."""
        rule = RecurrenceRule(id="r", label="Rule", weekday=weekday, hour=hour, minute=minute)
        start = datetime(2026, 10, 4, 0, 7, tzinfo=timezone.utc)

        for step in range(0, 14 * 24 * 4):
            now = start + timedelta(minutes=15 * step)
            result = next_occurrence(rule, now, tz)
            local = result.astimezone(tz)

            assert result >= now
            assert (local_weekday(local), local.hour, local.minute) == (weekday, hour, minute)
            assert result - timedelta(days=7) < now


class TestPreviousOccurrence:
    """Tests for previous_occurrence and surrounding_occurrences."""

    def test_previous_same_day(self, early_rule):
        now = datetime(2026, 10, 18, 9, 0, tzinfo=LA)
        assert previous_occurrence(early_rule, now, LA) == datetime(2026, 10, 18, 8, 30, tzinfo=LA)

    def test_previous_before_today_occurrence(self, early_rule):
        now = datetime(2026, 10, 18, 8, 0, tzinfo=LA)
        assert previous_occurrence(early_rule, now, LA) == datetime(2026, 10, 11, 8, 30, tzinfo=LA)

    def test_previous_across_midnight(self):
        late = RecurrenceRule(id="late", label="Late Vigil", weekday=6, hour=23, minute=30)
        now = datetime(2026, 10, 18, 0, 10, tzinfo=LA)
        assert previous_occurrence(late, now, LA) == datetime(2026, 10, 17, 23, 30, tzinfo=LA)

    def test_surrounding_occurrences(self, early_rule):
        now = datetime(2026, 10, 21, 12, 0, tzinfo=LA)
        previous, following = surrounding_occurrences(early_rule, now, LA)

        assert previous == datetime(2026, 10, 18, 8, 30, tzinfo=LA)
        assert following == datetime(2026, 10, 25, 8, 30, tzinfo=LA)

    def test_surrounding_on_exact_occurrence(self, early_rule):
        now = datetime(2026, 10, 18, 8, 30, tzinfo=LA)
        assert surrounding_occurrences(early_rule, now, LA) == (now, now)
