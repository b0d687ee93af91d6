"""Service-window evaluation.

A window is active when ``occurrence - pre_roll <= now <= occurrence + post_roll``
for either the occurrence before ``now`` or the one after it. Checking both
is what keeps a window that opened late on one day active after midnight.
"""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional, Sequence

from livewatch.domain.models import ServiceWindow
from livewatch.logging import get_logger
from livewatch.recurrence import surrounding_occurrences
from livewatch.utils.timestamps import ensure_utc, utc_now

logger = get_logger(__name__, component="windows")


@dataclass(frozen=True)
class WindowMatch:
    """An active window together with the occurrence that opened it."""

    window: ServiceWindow
    occurrence: datetime
    opens_at: datetime
    closes_at: datetime

    @property
    def service_id(self) -> str:
        return self.window.rule.id

    @property
    def label(self) -> str:
        return self.window.rule.label


class ServiceWindowEvaluator:
    """Decide whether the current instant falls inside a service window.

    Every call without an explicit ``now`` re-reads ``clock``; nothing is
    cached between calls. When windows overlap, matches are reported in
    configuration order and :meth:`active_window` returns the first.
    """

    def __init__(
        self,
        windows: Sequence[ServiceWindow],
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.windows = list(windows)
        self.tz = tz
        self.clock = clock

    def _now(self, now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now is not None else ensure_utc(self.clock())

    def match(self, window: ServiceWindow, now: Optional[datetime] = None) -> Optional[WindowMatch]:
        """Return the match for a single window, or None if it is closed."""
        current = self._now(now)
        for occurrence in surrounding_occurrences(window.rule, current, self.tz):
            opens_at = occurrence - window.pre_roll
            closes_at = occurrence + window.post_roll
            if opens_at <= current <= closes_at:
                return WindowMatch(
                    window=window,
                    occurrence=occurrence,
                    opens_at=opens_at,
                    closes_at=closes_at,
                )
        return None

    def matching_windows(
        self, now: Optional[datetime] = None, streamed_only: bool = False
    ) -> List[WindowMatch]:
        """All active windows at ``now``, in configuration order."""
        current = self._now(now)
        matches = []
        for window in self.windows:
            if streamed_only and not window.streamed:
                continue
            found = self.match(window, current)
            if found is not None:
                matches.append(found)
        return matches

    def active_window(
        self, now: Optional[datetime] = None, streamed_only: bool = True
    ) -> Optional[WindowMatch]:
        """First active window at ``now`` or None.

        By default only streamed services count, since an in-person-only
        service can never be detected live.
        """
        matches = self.matching_windows(now, streamed_only=streamed_only)
        if len(matches) > 1:
            logger.debug(
                "Overlapping service windows are active",
                extra={
                    "event": "windows.overlap",
                    "service_ids": [m.service_id for m in matches],
                },
            )
        return matches[0] if matches else None

    def is_within_window(self, now: Optional[datetime] = None, streamed_only: bool = True) -> bool:
        return self.active_window(now, streamed_only=streamed_only) is not None


def is_within_window(
    now: datetime,
    windows: Sequence[ServiceWindow],
    tz: tzinfo = timezone.utc,
) -> bool:
    """Functional form of :meth:`ServiceWindowEvaluator.is_within_window`."""
    return ServiceWindowEvaluator(windows, tz=tz).is_within_window(now, streamed_only=False)
