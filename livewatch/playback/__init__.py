"""Retry handling for failed media-embed loads."""

from .models import (
    PlaybackFailure,
    PlaybackLoadError,
    PlaybackState,
    RetryState,
    TerminalPlaybackError,
)
from .retry import PlaybackSession, external_viewer_url

__all__ = [
    "PlaybackFailure",
    "PlaybackLoadError",
    "PlaybackSession",
    "PlaybackState",
    "RetryState",
    "TerminalPlaybackError",
    "external_viewer_url",
]
