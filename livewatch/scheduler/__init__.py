"""Scheduling of poll cycles and lifecycle wake events."""

from .lifecycle import LifecycleEvent, LifecycleEventSource
from .service import JOB_ID, PollScheduler, build_background_scheduler

__all__ = [
    "JOB_ID",
    "LifecycleEvent",
    "LifecycleEventSource",
    "PollScheduler",
    "build_background_scheduler",
]
