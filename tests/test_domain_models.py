"""Unit tests for domain models."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from livewatch.domain.models import (
    LiveStatus,
    NotificationClass,
    NotificationCooldown,
    RecurrenceRule,
    ServicePreferences,
    ServiceWindow,
    parse_weekday,
)


class TestParseWeekday:
    """Tests for weekday normalisation (0 = Sunday)."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0, 0), (6, 6), ("Sunday", 0), ("sun", 0), ("  WEDNESDAY ", 3), ("sat", 6)],
    )
    def test_valid(self, value, expected):
        assert parse_weekday(value) == expected

    @pytest.mark.parametrize("value", [7, -1, "su", "funday", True, None, 1.5])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_weekday(value)


class TestRecurrenceRule:
    """Tests for RecurrenceRule."""

    def test_valid_rule(self):
        rule = RecurrenceRule(id="early", label="Early Service", weekday=0, hour=8, minute=30)

        assert rule.weekday == 0
        assert rule.python_weekday == 6
        assert rule.describe() == "Sunday 08:30 Early Service"

    def test_day_name_accepted(self):
        rule = RecurrenceRule(id="study", label="Bible Study", weekday="wednesday", hour=19)
        assert rule.weekday == 3
        assert rule.minute == 0

    def test_whitespace_stripped(self):
        rule = RecurrenceRule(id="  early ", label=" Early Service ", weekday=0, hour=8)
        assert rule.id == "early"
        assert rule.label == "Early Service"

    @pytest.mark.parametrize(
        "field,value",
        [("hour", 24), ("hour", -1), ("minute", 60), ("weekday", 7), ("id", "   "), ("label", "")],
    )
    def test_invalid_fields(self, field, value):
        data = {"id": "early", "label": "Early Service", "weekday": 0, "hour": 8, "minute": 30}
        data[field] = value

        with pytest.raises(ValidationError):
            RecurrenceRule(**data)

    def test_frozen(self, early_rule):
        with pytest.raises(ValidationError):
            early_rule.hour = 9

    def test_hashable_and_comparable(self, early_rule):
        same = RecurrenceRule(id="early", label="Early Service", weekday=0, hour=8, minute=30)
        assert early_rule == same
        assert len({early_rule, same}) == 1


class TestServiceWindow:
    def test_defaults(self, early_rule):
        window = ServiceWindow(rule=early_rule)

        assert window.pre_roll == timedelta(minutes=15)
        assert window.post_roll == timedelta(minutes=45)
        assert window.streamed is True
        assert window.id == "early"

    def test_negative_roll_rejected(self, early_rule):
        with pytest.raises(ValidationError):
            ServiceWindow(rule=early_rule, pre_roll=timedelta(minutes=-1))


class TestLiveStatus:
    def test_not_live_has_no_stream(self):
        status = LiveStatus(is_live=False)
        assert status.stream_id is None

    def test_live(self):
        status = LiveStatus(is_live=True, stream_id="abc123")
        assert status.is_live


class TestNotificationCooldown:
    def test_normalises_to_utc(self):
        local = datetime(2026, 10, 18, 8, 40, tzinfo=ZoneInfo("America/Los_Angeles"))

        cooldown = NotificationCooldown(notification_class="live_detected", last_fired_at=local)

        assert cooldown.notification_class == NotificationClass.LIVE_DETECTED
        assert cooldown.last_fired_at == datetime(2026, 10, 18, 15, 40, tzinfo=timezone.utc)
        assert cooldown.last_fired_at.tzinfo == timezone.utc

    def test_unknown_class_rejected(self):
        with pytest.raises(ValidationError):
            NotificationCooldown(notification_class="email", last_fired_at=datetime.now(timezone.utc))


class TestServicePreferences:
    """Tests for ServicePreferences."""

    def test_all_enabled_is_implicit(self):
        prefs = ServicePreferences.all_enabled(["early", "traditional"])

        assert prefs.explicit is False
        assert prefs.is_enabled("early")
        assert prefs.is_enabled("traditional")

    def test_choose_is_explicit(self):
        prefs = ServicePreferences.choose(["traditional"])

        assert prefs.explicit is True
        assert not prefs.is_enabled("early")

    def test_explicit_empty_choice(self):
        prefs = ServicePreferences.choose([])

        assert prefs.enabled_rule_ids == frozenset()
        assert not prefs.is_enabled("early")

    def test_equality_ignores_order(self):
        assert ServicePreferences.choose(["a", "b"]) == ServicePreferences.choose(["b", "a"])
