"""Tests for the lifecycle event source."""

from unittest.mock import Mock

from livewatch.scheduler import LifecycleEvent, LifecycleEventSource


def test_subscribe_and_emit():
    source = LifecycleEventSource()
    listener = Mock()
    source.subscribe(listener)

    source.emit(LifecycleEvent.FOREGROUND)

    listener.assert_called_once_with(LifecycleEvent.FOREGROUND)


def test_unsubscribe_detaches():
    source = LifecycleEventSource()
    listener = Mock()
    unsubscribe = source.subscribe(listener)

    unsubscribe()
    unsubscribe()
    source.emit(LifecycleEvent.FOREGROUND)

    listener.assert_not_called()
    assert source.listener_count == 0


def test_string_event_is_accepted():
    source = LifecycleEventSource()
    listener = Mock()
    source.subscribe(listener)

    source.emit("permission_granted")

    listener.assert_called_once_with(LifecycleEvent.PERMISSION_GRANTED)


def test_failing_listener_does_not_stop_others():
    source = LifecycleEventSource()
    failing = Mock(side_effect=RuntimeError("listener bug"))
    healthy = Mock()
    source.subscribe(failing)
    source.subscribe(healthy)

    source.emit(LifecycleEvent.BACKGROUND)

    healthy.assert_called_once_with(LifecycleEvent.BACKGROUND)
