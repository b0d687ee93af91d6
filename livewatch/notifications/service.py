"""Notification service for live-stream and service reminder alerts.

This module provides the NotificationService class that orchestrates one
emission: cooldown check, template rendering, payload building, hand-off to
the presenter, and recording the emission in the cooldown table.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from livewatch.config.models import NotificationConfig
from livewatch.domain.models import LiveStatus, NotificationClass, RecurrenceRule
from livewatch.logging import get_logger
from livewatch.utils.timestamps import ensure_utc, utc_now

from .dedup import NotificationDeduplicator
from .models import NotificationRequest, NotificationResult, NotificationTemplateError, PresenterError
from .payloads import build_live_payload, build_reminder_payload, build_test_payload
from .presenter import LoggingPresenter, NotificationPresenter
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")


class NotificationService:
    """Emits notification requests subject to per-class cooldowns.

    Coordinates the emission flow:
    1. Ask the de-duplicator whether the class may fire
    2. Render title and body
    3. Hand the request to the presenter
    4. Record the emission on success

    A presenter failure leaves the cooldown untouched so the next cycle
    can try again.
    """

    def __init__(
        self,
        config: NotificationConfig,
        deduplicator: NotificationDeduplicator,
        presenter: Optional[NotificationPresenter] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.deduplicator = deduplicator
        self.presenter = presenter or LoggingPresenter()
        self.template_renderer = template_renderer or TemplateRenderer(config)
        self.logger = logger_instance or logger

    def notify_live(
        self,
        status: LiveStatus,
        now: Optional[datetime] = None,
        service_name: Optional[str] = None,
    ) -> NotificationResult:
        """Emit a live-detected notification carrying the stream identifier."""
        now = ensure_utc(now) if now else utc_now()
        return self.emit(
            NotificationClass.LIVE_DETECTED,
            now,
            data=build_live_payload(status, self.config.deep_link, now, service_name=service_name),
            service_name=service_name or self.config.short_name,
            stream_id=status.stream_id,
        )

    def notify_reminder(self, rule: RecurrenceRule, now: Optional[datetime] = None) -> NotificationResult:
        """Emit the standalone reminder for ``rule``."""
        now = ensure_utc(now) if now else utc_now()
        return self.emit(
            NotificationClass.SCHEDULED_REMINDER,
            now,
            data=build_reminder_payload(rule, self.config.deep_link),
            service_name=rule.label,
        )

    def send_test(self, now: Optional[datetime] = None) -> NotificationResult:
        """Emit a test notification; windows do not apply."""
        now = ensure_utc(now) if now else utc_now()
        return self.emit(
            NotificationClass.TEST,
            now,
            data=build_test_payload(self.config.deep_link, now),
            service_name="Test Service",
        )

    def emit(
        self,
        notification_class: NotificationClass,
        now: datetime,
        data: Dict[str, Any],
        **template_context: Any,
    ) -> NotificationResult:
        notification_class = NotificationClass(notification_class)

        if not self.deduplicator.should_emit(notification_class, now):
            self.logger.info(
                f"Suppressing {notification_class.value} notification during cooldown",
                extra={"event": "notification.suppressed", "notification_class": notification_class.value},
            )
            return NotificationResult(notification_class=notification_class, status="suppressed")

        try:
            title, body = self.template_renderer.render(notification_class, **template_context)
        except NotificationTemplateError as e:
            self.logger.error(
                f"Template rendering failed: {e}",
                exc_info=True,
                extra={"event": "notification.failed", "notification_class": notification_class.value},
            )
            return NotificationResult(notification_class=notification_class, status="failed", error=str(e))

        request = NotificationRequest(
            notification_class=notification_class,
            title=title,
            body=body,
            data=data,
            sound=self.config.sound,
            priority=self.config.priority,
        )

        try:
            self.presenter.present(request)
        except PresenterError as e:
            self.logger.error(
                f"Presenter rejected {notification_class.value} notification: {e}",
                extra={
                    "event": "notification.failed",
                    "notification_class": notification_class.value,
                    "error_type": type(e).__name__,
                },
            )
            return NotificationResult(
                notification_class=notification_class,
                status="failed",
                request=request,
                error=str(e),
            )

        emitted_at = self.deduplicator.record_emission(notification_class, now)
        self.logger.info(
            f"Emitted {notification_class.value} notification: {title}",
            extra={
                "event": "notification.emitted",
                "notification_class": notification_class.value,
                "deep_link": data.get("deepLink"),
                "stream_id": data.get("streamId"),
            },
        )
        return NotificationResult(
            notification_class=notification_class,
            status="emitted",
            request=request,
            emitted_at=emitted_at,
        )
