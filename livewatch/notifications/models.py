"""Data models and exceptions for notification emission.

The core never renders a notification. It hands a NotificationRequest to
an external presenter; ``to_payload()`` is the wire shape the presenter
consumes: ``{title, body, data: {type, deepLink, ...}, sound, priority}``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from livewatch.domain.models import NotificationClass


class NotificationError(Exception):
    """Base exception for notification-related errors."""


class NotificationTemplateError(NotificationError):
    """A title/body template failed to compile or render."""


class PresenterError(NotificationError):
    """The external presenter rejected or failed to accept a request."""


@dataclass(frozen=True)
class NotificationRequest:
    """Structured notification handed to the presenter."""

    notification_class: NotificationClass
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    sound: bool = True
    priority: str = "high"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "data": dict(self.data),
            "sound": self.sound,
            "priority": self.priority,
        }


@dataclass
class NotificationResult:
    """Outcome of one attempt to emit a notification.

    Attributes:
        notification_class: Class the attempt was made for
        status: ``emitted``, ``suppressed`` (cooldown) or ``failed``
        request: The request handed to the presenter, if one was built
        error: Failure description when status is ``failed``
        emitted_at: Instant recorded in the cooldown table on success
    """

    notification_class: NotificationClass
    status: str  # "emitted", "suppressed", "failed"
    request: Optional[NotificationRequest] = None
    error: Optional[str] = None
    emitted_at: Optional[datetime] = None

    def is_success(self) -> bool:
        return self.status == "emitted"
