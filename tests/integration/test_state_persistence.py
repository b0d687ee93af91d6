"""Integration tests for state that must survive a process restart."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from livewatch.config.models import NotificationConfig
from livewatch.domain.models import NotificationClass, RecurrenceRule
from livewatch.notifications import NotificationDeduplicator, NotificationService
from livewatch.persistence import (
    CheckRepository,
    CooldownRepository,
    PreferencesRepository,
    SqlKeyValueStore,
    close_database,
    init_database,
)
from livewatch.planner import ReminderScheduler

LA = ZoneInfo("America/Los_Angeles")
NOW = datetime(2026, 10, 18, 8, 40, tzinfo=LA)
RULES = [
    RecurrenceRule(id="early", label="Early Service", weekday=0, hour=8, minute=30),
    RecurrenceRule(id="traditional", label="Traditional Service", weekday=0, hour=10, minute=30),
]


@pytest.fixture
def database_url(tmp_path):
    """File-backed SQLite URL; each test opens and closes it as needed."""
    url = f"sqlite:///{tmp_path / 'livewatch.db'}"
    yield url
    close_database()


def restart(database_url):
    """Simulate a process restart: drop the engine and open the file again."""
    close_database()
    init_database(database_url)
    return SqlKeyValueStore()


class TestCooldownAcrossRestart:
    """A live notification's cooldown outlives the process that sent it."""

    def test_cooldown_survives_restart(self, database_url):
        init_database(database_url)
        deduplicator = NotificationDeduplicator(CooldownRepository(SqlKeyValueStore()))
        service = NotificationService(NotificationConfig(), deduplicator, presenter=_NullPresenter())
        assert service.send_test(NOW).is_success()
        service.emit(NotificationClass.LIVE_DETECTED, NOW, data={"type": "live_stream", "deepLink": "pbcc://live"})

        store = restart(database_url)
        deduplicator = NotificationDeduplicator(CooldownRepository(store))

        assert deduplicator.last_emitted_at(NotificationClass.LIVE_DETECTED) == NOW
        assert not deduplicator.should_emit(NotificationClass.LIVE_DETECTED, NOW + timedelta(minutes=5))
        assert deduplicator.should_emit(NotificationClass.LIVE_DETECTED, NOW + timedelta(minutes=15))

    def test_last_check_survives_restart(self, database_url):
        init_database(database_url)
        CheckRepository(SqlKeyValueStore()).record_check(NOW)

        store = restart(database_url)

        assert CheckRepository(store).last_checked_at() == NOW
        assert CheckRepository(store).last_live_at() is None


class TestPreferencesAcrossRestart:
    """A saved service choice drives planning in the next process."""

    def _reminders(self, store, notification_service=None):
        return ReminderScheduler(
            scheduler=BackgroundScheduler(timezone="UTC"),
            notification_service=notification_service or _service(store),
            rules=RULES,
            tz=LA,
            preferences_repository=PreferencesRepository(store),
            clock=lambda: NOW,
        )

    def test_choice_survives_restart(self, database_url):
        init_database(database_url)
        self._reminders(SqlKeyValueStore()).change_preferences(["traditional"])

        store = restart(database_url)
        planned = self._reminders(store).load_and_apply()

        assert [p.rule_id for p in planned] == ["traditional"]
        assert planned[0].instant == datetime(2026, 10, 18, 10, 30, tzinfo=LA)

    def test_no_services_survives_restart(self, database_url):
        init_database(database_url)
        self._reminders(SqlKeyValueStore()).change_preferences([])

        store = restart(database_url)

        assert self._reminders(store).load_and_apply() == []

    def test_first_run_enables_everything(self, database_url):
        init_database(database_url)

        planned = self._reminders(SqlKeyValueStore()).load_and_apply()

        # 08:30 today has already passed at 08:40
        assert [(p.rule_id, p.instant.date().isoformat()) for p in planned] == [
            ("traditional", "2026-10-18"),
            ("early", "2026-10-25"),
        ]


class _NullPresenter:
    def present(self, request):
        pass


def _service(store):
    return NotificationService(
        NotificationConfig(),
        NotificationDeduplicator(CooldownRepository(store)),
        presenter=_NullPresenter(),
    )
