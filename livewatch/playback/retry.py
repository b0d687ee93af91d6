"""Retry state machine for a single playback session.

States::

    LOADING --failure--> RETRYING --backoff elapsed--> LOADING --> ...
    LOADING --max_attempts-th consecutive failure--> TERMINAL
    any --success--> PLAYING (attempt reset to 0)
    any --manual retry--> LOADING (attempt reset to 0)

The session is driven by the rendering surface from a single thread; the
backoff timer is the only other thread and only calls back into
``_reload``.
"""

import threading
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from livewatch.config.models import PlaybackConfig
from livewatch.logging import get_logger
from livewatch.logging.context import log_context

from .models import (
    PlaybackFailure,
    PlaybackLoadError,
    PlaybackState,
    RetryState,
    TerminalPlaybackError,
)

logger = get_logger(__name__, component="playback")

TimerFactory = Callable[[float, Callable[[], None]], Any]


def _default_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


def external_viewer_url(
    config: PlaybackConfig,
    stream_id: Optional[str] = None,
    channel_id: Optional[str] = None,
) -> Optional[str]:
    """URL that opens the broadcast outside the embedded player.

    The stream page when the stream is known, else the channel's live page,
    else None.
    """
    if stream_id:
        return config.external_watch_url.format(stream_id=stream_id)
    if channel_id:
        return config.external_channel_url.format(channel_id=channel_id)
    return None


class PlaybackSession:
    """Governs reloads of one stream load after playback-surface failures.

    Args:
        reload: Called to (re)load the media embed
        stream_id: Stream being played, for logs and the external URL
        max_attempts: Consecutive failures before the session is terminal
        backoff_ms: Reload delays, ``backoff_ms[attempt - 1]``
        external_url: Escape hatch offered by the terminal error
        on_terminal: Called with the TerminalPlaybackError when retries run out
        timer_factory: ``(seconds, callback) -> timer`` with ``start``/``cancel``
    """

    def __init__(
        self,
        reload: Callable[[], None],
        stream_id: Optional[str] = None,
        max_attempts: int = 3,
        backoff_ms: Sequence[int] = (500, 1000, 2000),
        external_url: Optional[str] = None,
        on_terminal: Optional[Callable[[TerminalPlaybackError], None]] = None,
        timer_factory: TimerFactory = _default_timer,
    ):
        self.reload = reload
        self.stream_id = stream_id
        self.external_url = external_url
        self.on_terminal = on_terminal
        self.timer_factory = timer_factory

        self.retry = RetryState(max_attempts=max_attempts, backoff_schedule=tuple(backoff_ms))
        self.state = PlaybackState.LOADING
        self.terminal_error: Optional[TerminalPlaybackError] = None
        self.closed = False
        self._timer = None
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: PlaybackConfig,
        reload: Callable[[], None],
        stream_id: Optional[str] = None,
        channel_id: Optional[str] = None,
        **kwargs,
    ) -> "PlaybackSession":
        return cls(
            reload=reload,
            stream_id=stream_id,
            max_attempts=config.max_attempts,
            backoff_ms=config.backoff_ms,
            external_url=external_viewer_url(config, stream_id, channel_id),
            **kwargs,
        )

    @property
    def attempt(self) -> int:
        return self.retry.attempt

    def handle_failure(
        self, failure: Union[PlaybackFailure, PlaybackLoadError, Mapping[str, Any]]
    ) -> PlaybackState:
        """Feed a failure signal into the state machine and return the new state.

        Accepts the surface's raw ``{"message": ..., "code": ...}`` signal as
        well as a :class:`PlaybackFailure` or :class:`PlaybackLoadError`.
        """
        if isinstance(failure, PlaybackLoadError):
            failure = PlaybackFailure(message=failure.message, code=failure.code)
        elif isinstance(failure, Mapping):
            failure = PlaybackFailure.from_signal(failure)

        with self._lock, log_context(stream_id=self.stream_id):
            if self.closed or self.state == PlaybackState.TERMINAL:
                logger.debug(
                    f"Ignoring playback failure in state {self.state.value}",
                    extra={"event": "playback.failure.ignored", "closed": self.closed},
                )
                return self.state

            self._cancel_timer()
            delay_ms = self.retry.record_failure(failure)

            if delay_ms is None:
                self.state = PlaybackState.TERMINAL
                self.terminal_error = TerminalPlaybackError(
                    failure.message,
                    code=failure.code,
                    attempts=self.retry.attempt,
                    external_url=self.external_url,
                )
                logger.error(
                    f"Playback failed {self.retry.attempt} times; giving up: {failure.message}",
                    extra={
                        "event": "playback.terminal",
                        "attempt": self.retry.attempt,
                        "code": failure.code,
                    },
                )
                if self.on_terminal is not None:
                    self.on_terminal(self.terminal_error)
                return self.state

            self.state = PlaybackState.RETRYING
            logger.warning(
                f"Playback failed (attempt {self.retry.attempt}/{self.retry.max_attempts}); "
                f"reloading after {delay_ms}ms: {failure.message}",
                extra={
                    "event": "playback.retry.scheduled",
                    "attempt": self.retry.attempt,
                    "delay_ms": delay_ms,
                    "code": failure.code,
                },
            )
            self._timer = self.timer_factory(delay_ms / 1000.0, self._reload)
            self._timer.start()
            return self.state

    def handle_success(self) -> PlaybackState:
        """The embed loaded; clear all retry bookkeeping."""
        with self._lock:
            if self.closed:
                return self.state
            self._cancel_timer()
            if self.retry.attempt:
                logger.info(
                    f"Playback recovered after {self.retry.attempt} failures",
                    extra={"event": "playback.recovered", "attempt": self.retry.attempt},
                )
            self.retry.reset()
            self.terminal_error = None
            self.state = PlaybackState.PLAYING
            return self.state

    def manual_retry(self) -> PlaybackState:
        """User-initiated retry: always resets the attempt count and reloads."""
        with self._lock:
            if self.closed:
                return self.state
            self._cancel_timer()
            self.retry.reset()
            self.terminal_error = None
            self.state = PlaybackState.LOADING
            logger.info("Manual playback retry", extra={"event": "playback.retry.manual"})
        self.reload()
        return self.state

    def open_external(self) -> Optional[str]:
        """Escape hatch: the URL to hand to an external viewer."""
        logger.info(
            "Opening stream in external viewer",
            extra={"event": "playback.open_external", "url": self.external_url},
        )
        return self.external_url

    def close(self) -> None:
        """Tear down the session and cancel any pending reload."""
        with self._lock:
            self.closed = True
            self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _reload(self) -> None:
        with self._lock:
            if self.closed or self.state != PlaybackState.RETRYING:
                return
            self._timer = None
            self.state = PlaybackState.LOADING
        self.reload()
