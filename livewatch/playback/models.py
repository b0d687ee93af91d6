"""Data models and exceptions for playback retry handling."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class PlaybackState(str, Enum):
    LOADING = "loading"
    RETRYING = "retrying"
    PLAYING = "playing"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class PlaybackFailure:
    """Failure signal reported by the rendering surface."""

    message: str
    code: Optional[Any] = None

    @classmethod
    def from_signal(cls, signal: Mapping[str, Any]) -> "PlaybackFailure":
        return cls(message=str(signal.get("message") or "Playback failed"), code=signal.get("code"))


@dataclass
class RetryState:
    """
    Retry bookkeeping for one playback session.

    Attributes:
        attempt: Consecutive failures since the last success or manual retry
        max_attempts: Failures after which the session becomes terminal
        backoff_schedule: Reload delays in milliseconds, indexed by ``attempt - 1``
        terminal: Whether automatic recovery is exhausted
    """

    max_attempts: int = 3
    backoff_schedule: Tuple[int, ...] = (500, 1000, 2000)
    attempt: int = 0
    terminal: bool = False
    last_failure: Optional[PlaybackFailure] = field(default=None, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.backoff_schedule = tuple(self.backoff_schedule)
        if len(self.backoff_schedule) < self.max_attempts - 1:
            raise ValueError(
                f"backoff_schedule needs at least {self.max_attempts - 1} delays, "
                f"got {len(self.backoff_schedule)}"
            )
        if any(delay < 0 for delay in self.backoff_schedule):
            raise ValueError("backoff delays must not be negative")

    def record_failure(self, failure: PlaybackFailure) -> Optional[int]:
        """Count a failure; return the reload delay (ms), or None once terminal."""
        self.attempt += 1
        self.last_failure = failure
        if self.attempt >= self.max_attempts:
            self.terminal = True
            return None
        return self.backoff_schedule[self.attempt - 1]

    def reset(self) -> None:
        self.attempt = 0
        self.terminal = False
        self.last_failure = None


class PlaybackLoadError(Exception):
    """A media-embed load failed."""

    def __init__(self, message: str, code: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class TerminalPlaybackError(PlaybackLoadError):
    """Automatic retries are exhausted; the user has to choose a recovery action."""

    ACTIONS = ("retry", "open_external")

    def __init__(
        self,
        message: str,
        code: Optional[Any] = None,
        attempts: int = 0,
        external_url: Optional[str] = None,
    ):
        super().__init__(message, code=code)
        self.attempts = attempts
        self.external_url = external_url

    @property
    def actions(self) -> Tuple[str, ...]:
        return self.ACTIONS

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "code": self.code,
            "attempts": self.attempts,
            "actions": list(self.actions),
            "external_url": self.external_url,
        }

    def __str__(self) -> str:
        return f"{self.message} (after {self.attempts} attempts)"
