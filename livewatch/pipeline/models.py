"""Data models for poll-cycle execution tracking and reporting."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from livewatch.notifications.models import NotificationResult


class LiveCheckState(str, Enum):
    """Poll scheduler states.

    IDLE: outside every window, or the last probe found nothing
    PROBING: a probe is in flight
    COOLDOWN: a live notification fired recently; probing is paused
    """

    IDLE = "idle"
    PROBING = "probing"
    COOLDOWN = "cooldown"


class CycleOutcome(str, Enum):
    OUTSIDE_WINDOW = "outside_window"
    COOLING_DOWN = "cooling_down"
    NOT_LIVE = "not_live"
    PROBE_FAILED = "probe_failed"
    NOTIFIED = "notified"
    SUPPRESSED = "suppressed"
    NOTIFICATION_FAILED = "notification_failed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class LiveCheckResult:
    """
    Result of a single poll cycle.

    Attributes:
        cycle_id: Identifier shared by every log line of the cycle
        started_at: UTC timestamp when the cycle began
        finished_at: UTC timestamp when the cycle completed
        outcome: What the cycle concluded
        state: Scheduler state after the cycle
        window_id: Service whose window was active, if any
        window_label: Display name of that service
        probed: Whether the oracle was queried
        is_live: Oracle answer (False when not probed or the probe failed)
        stream_id: Stream identifier reported by the oracle
        notification: Emission result when a live stream was found
        error: Error message when the probe or the cycle failed
        error_type: Exception class name for the error
    """

    cycle_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcome: CycleOutcome = CycleOutcome.OUTSIDE_WINDOW
    state: LiveCheckState = LiveCheckState.IDLE
    window_id: Optional[str] = None
    window_label: Optional[str] = None
    probed: bool = False
    is_live: bool = False
    stream_id: Optional[str] = None
    notification: Optional[NotificationResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def notified(self) -> bool:
        return self.outcome == CycleOutcome.NOTIFIED

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
