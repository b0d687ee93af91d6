"""Shared fixtures for livewatch tests."""

from datetime import timedelta
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest

from livewatch.config.models import NotificationConfig
from livewatch.domain.models import LiveStatus, RecurrenceRule, ServiceWindow
from livewatch.notifications import NotificationDeduplicator, NotificationService
from livewatch.persistence import CheckRepository, CooldownRepository, InMemoryKeyValueStore


@pytest.fixture
def early_rule():
    return RecurrenceRule(id="early", label="Early Service", weekday=0, hour=8, minute=30)


@pytest.fixture
def traditional_rule():
    return RecurrenceRule(id="traditional", label="Traditional Service", weekday=0, hour=10, minute=30)


@pytest.fixture
def early_window(early_rule):
    return ServiceWindow(rule=early_rule, pre_roll=timedelta(minutes=15), post_roll=timedelta(minutes=45))


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def cooldown_repo(store):
    return CooldownRepository(store)


@pytest.fixture
def check_repo(store):
    return CheckRepository(store)


@pytest.fixture
def deduplicator(cooldown_repo):
    return NotificationDeduplicator(cooldown_repo)


@pytest.fixture
def presenter():
    """Presenter double recording every request it receives."""
    return Mock(spec=["present"])


@pytest.fixture
def notification_service(deduplicator, presenter):
    return NotificationService(NotificationConfig(), deduplicator, presenter=presenter)


@pytest.fixture
def live_prober():
    prober = Mock()
    prober.probe.return_value = LiveStatus(is_live=True, stream_id="abc123")
    return prober


@pytest.fixture
def la_zone():
    return ZoneInfo("America/Los_Angeles")
