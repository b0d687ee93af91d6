"""Presenter port: where finished notification requests are handed off.

The core never displays anything itself. A presenter is any object with a
``present(request)`` method; failures are reported by raising
:class:`PresenterError`.
"""

import json
import sys
from typing import IO, Optional, Protocol, runtime_checkable

from livewatch.logging import get_logger

from .models import NotificationRequest, PresenterError

logger = get_logger(__name__, component="notification")


@runtime_checkable
class NotificationPresenter(Protocol):
    def present(self, request: NotificationRequest) -> None:
        ...


class LoggingPresenter:
    """Writes each request to the log; the default for daemon mode."""

    def present(self, request: NotificationRequest) -> None:
        logger.info(
            f"Notification: {request.title}",
            extra={
                "event": "notification.presented",
                "notification_class": request.notification_class.value,
                "payload": request.to_payload(),
            },
        )


class StreamPresenter:
    """Writes each request as one JSON line, for a downstream process to pick up."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream or sys.stdout

    def present(self, request: NotificationRequest) -> None:
        try:
            self.stream.write(json.dumps(request.to_payload(), ensure_ascii=False) + "\n")
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise PresenterError(f"Failed to write notification: {e}") from e
