"""Notification emission for live streams and service reminders.

This package provides the components that decide a notification's content
and timing and hand it to an external presenter:
- NotificationDeduplicator: per-class cooldown checks over the cooldown table
- TemplateRenderer: Jinja2 title/body rendering
- payload builders for the deep-link contract
- NotificationService: orchestrates one emission
"""

from .dedup import DEFAULT_COOLDOWNS, NotificationDeduplicator
from .models import (
    NotificationError,
    NotificationRequest,
    NotificationResult,
    NotificationTemplateError,
    PresenterError,
)
from .payloads import (
    DeepLinkType,
    build_deep_link_payload,
    build_live_payload,
    build_reminder_payload,
    build_test_payload,
)
from .presenter import LoggingPresenter, NotificationPresenter, StreamPresenter
from .service import NotificationService
from .templates import TemplateRenderer

__all__ = [
    "DEFAULT_COOLDOWNS",
    "NotificationDeduplicator",
    "NotificationError",
    "NotificationRequest",
    "NotificationResult",
    "NotificationTemplateError",
    "PresenterError",
    "DeepLinkType",
    "build_deep_link_payload",
    "build_live_payload",
    "build_reminder_payload",
    "build_test_payload",
    "LoggingPresenter",
    "NotificationPresenter",
    "StreamPresenter",
    "NotificationService",
    "TemplateRenderer",
]
