"""Unit tests for the poll scheduler.

Tests the PollScheduler including:
- Job registration with an immediate first run
- Idempotent start (exactly one timer job)
- Stop cancels the timer and detaches lifecycle listeners; restart works
- Wake events run a cycle without adding a timer
- Permission gate
- Status snapshot and test notification
"""

import threading
import time
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from livewatch.pipeline import LiveCheckState
from livewatch.persistence import CheckRepository, InMemoryKeyValueStore
from livewatch.scheduler import (
    JOB_ID,
    LifecycleEvent,
    LifecycleEventSource,
    PollScheduler,
    build_background_scheduler,
)


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def runner():
    runner = Mock()
    runner.state = LiveCheckState.IDLE
    runner.check_repository = CheckRepository(InMemoryKeyValueStore())
    return runner


@pytest.fixture
def lifecycle():
    return LifecycleEventSource()


@pytest.fixture
def poll_scheduler(runner, lifecycle):
    scheduler = PollScheduler(runner=runner, interval_seconds=3600, lifecycle=lifecycle)
    yield scheduler
    scheduler.shutdown(wait=False)


class TestPollSchedulerLifecycle:
    """Start/stop behaviour."""

    def test_initial_state(self, poll_scheduler):
        assert poll_scheduler.interval_seconds == 3600
        assert not poll_scheduler.is_running()
        assert poll_scheduler.get_next_run_time() is None

    def test_invalid_interval(self, runner):
        with pytest.raises(ValueError):
            PollScheduler(runner=runner, interval_seconds=0)

    def test_start_runs_first_cycle_immediately(self, poll_scheduler, runner):
        assert poll_scheduler.start() is True

        assert poll_scheduler.is_running()
        assert wait_for(lambda: runner.run_once.call_count == 1)

    def test_start_twice_creates_one_timer(self, poll_scheduler, runner):
        poll_scheduler.start()
        poll_scheduler.start()

        jobs = poll_scheduler.scheduler.get_jobs()
        assert [job.id for job in jobs] == [JOB_ID]

        # Exactly one probe cycle for the first interval
        assert wait_for(lambda: runner.run_once.call_count >= 1)
        time.sleep(0.3)
        assert runner.run_once.call_count == 1

    def test_start_twice_subscribes_once(self, poll_scheduler, lifecycle):
        poll_scheduler.start()
        poll_scheduler.start()

        assert lifecycle.listener_count == 1

    def test_job_configuration(self, poll_scheduler):
        poll_scheduler.start()
        job = poll_scheduler.scheduler.get_job(JOB_ID)

        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval.total_seconds() == 3600

    def test_stop_cancels_timer_and_detaches(self, poll_scheduler, lifecycle):
        poll_scheduler.start()
        poll_scheduler.stop()

        assert not poll_scheduler.is_running()
        assert poll_scheduler.scheduler.get_jobs() == []
        assert lifecycle.listener_count == 0

    def test_stop_is_idempotent(self, poll_scheduler):
        poll_scheduler.stop()
        poll_scheduler.start()
        poll_scheduler.stop()
        poll_scheduler.stop()

        assert not poll_scheduler.is_running()

    def test_restart_after_stop(self, poll_scheduler, runner, lifecycle):
        poll_scheduler.start()
        assert wait_for(lambda: runner.run_once.call_count == 1)
        poll_scheduler.stop()

        assert poll_scheduler.start() is True
        assert poll_scheduler.is_running()
        assert len(poll_scheduler.scheduler.get_jobs()) == 1
        assert lifecycle.listener_count == 1
        assert wait_for(lambda: runner.run_once.call_count == 2)

    def test_shutdown_sets_event(self, runner):
        shutdown_event = threading.Event()
        scheduler = PollScheduler(runner=runner, interval_seconds=60, shutdown_event=shutdown_event)
        scheduler.start()

        scheduler.shutdown(wait=False)

        assert shutdown_event.is_set()
        assert not scheduler.scheduler.running

    def test_shared_scheduler_keeps_other_jobs(self, runner):
        background = build_background_scheduler()
        other = Mock()
        background.add_job(other, "interval", hours=1, id="other")
        scheduler = PollScheduler(runner=runner, interval_seconds=60, scheduler=background)

        try:
            scheduler.start()
            scheduler.stop()
            assert [job.id for job in background.get_jobs()] == ["other"]
        finally:
            scheduler.shutdown(wait=False)


class TestPollSchedulerWake:
    """Wake events and lifecycle reactions."""

    def test_wake_runs_a_cycle(self, poll_scheduler, runner):
        poll_scheduler.start()
        assert wait_for(lambda: runner.run_once.call_count == 1)

        poll_scheduler.wake()

        assert wait_for(lambda: runner.run_once.call_count == 2)
        assert len(poll_scheduler.scheduler.get_jobs()) == 1

    def test_foreground_event_wakes(self, poll_scheduler, runner, lifecycle):
        poll_scheduler.start()
        assert wait_for(lambda: runner.run_once.call_count == 1)

        lifecycle.emit(LifecycleEvent.FOREGROUND)

        assert wait_for(lambda: runner.run_once.call_count == 2)

    def test_background_event_only_logged(self, poll_scheduler, runner, lifecycle):
        poll_scheduler.start()
        assert wait_for(lambda: runner.run_once.call_count == 1)
        next_run = poll_scheduler.get_next_run_time()

        lifecycle.emit(LifecycleEvent.BACKGROUND)
        time.sleep(0.2)

        assert runner.run_once.call_count == 1
        assert poll_scheduler.get_next_run_time() == next_run
        assert poll_scheduler.is_running()

    def test_wake_before_start_ignored(self, poll_scheduler, runner):
        poll_scheduler.wake()

        assert not poll_scheduler.is_running()
        runner.run_once.assert_not_called()

    def test_events_after_stop_ignored(self, poll_scheduler, runner, lifecycle):
        poll_scheduler.start()
        assert wait_for(lambda: runner.run_once.call_count == 1)
        poll_scheduler.stop()

        lifecycle.emit(LifecycleEvent.FOREGROUND)
        time.sleep(0.2)

        assert not poll_scheduler.is_running()
        assert runner.run_once.call_count == 1


class TestPermissionGate:
    """Polling only runs once notifications are permitted."""

    def test_denied_permission_does_not_arm(self, runner, lifecycle):
        scheduler = PollScheduler(
            runner=runner, interval_seconds=60, lifecycle=lifecycle, permission_check=lambda: False
        )
        try:
            assert scheduler.start() is False
            assert not scheduler.is_running()
            assert lifecycle.listener_count == 1
        finally:
            scheduler.shutdown(wait=False)

    def test_permission_granted_event_arms(self, runner, lifecycle):
        granted = {"value": False}
        scheduler = PollScheduler(
            runner=runner,
            interval_seconds=60,
            lifecycle=lifecycle,
            permission_check=lambda: granted["value"],
        )
        try:
            scheduler.start()
            granted["value"] = True
            lifecycle.emit(LifecycleEvent.PERMISSION_GRANTED)

            assert scheduler.is_running()
            assert wait_for(lambda: runner.run_once.call_count == 1)
        finally:
            scheduler.shutdown(wait=False)


class TestPollSchedulerOperations:
    """trigger_now, test notification and status."""

    def test_trigger_now_runs_synchronously(self, poll_scheduler, runner):
        result = poll_scheduler.trigger_now()

        runner.run_once.assert_called_once_with()
        assert result is runner.run_once.return_value

    def test_send_test_notification(self, poll_scheduler, runner):
        result = poll_scheduler.send_test_notification()

        runner.notification_service.send_test.assert_called_once_with()
        assert result is runner.notification_service.send_test.return_value

    def test_status_before_start(self, poll_scheduler):
        status = poll_scheduler.status()

        assert status == {
            "running": False,
            "state": "idle",
            "interval_seconds": 3600,
            "last_checked_at": None,
            "last_live_at": None,
            "next_run_time": None,
        }

    def test_status_while_running(self, poll_scheduler, runner):
        checked = datetime(2026, 10, 18, 15, 40, tzinfo=timezone.utc)
        runner.check_repository.record_check(checked)
        runner.state = LiveCheckState.COOLDOWN

        poll_scheduler.start()
        status = poll_scheduler.status()

        assert status["running"] is True
        assert status["state"] == "cooldown"
        assert status["last_checked_at"] == "2026-10-18T15:40:00.000000Z"
        assert status["next_run_time"] is not None
