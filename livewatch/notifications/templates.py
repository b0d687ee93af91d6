"""Title/body rendering with Jinja2.

Templates come from ``NotificationConfig``, which has already rendered each
one against placeholder values, and are compiled once here. StrictUndefined
stays on so a caller that omits a variable gets an error rather than an
empty notification.
"""

import logging
from typing import Any, Dict, Tuple

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from livewatch.config.models import NotificationConfig
from livewatch.domain.models import NotificationClass

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders the title and body for each notification class."""

    def __init__(self, config: NotificationConfig):
        self.config = config
        self.env = Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=False)
        sources = {
            NotificationClass.LIVE_DETECTED: (config.live_title, config.live_body),
            NotificationClass.SCHEDULED_REMINDER: (config.reminder_title, config.reminder_body),
            NotificationClass.TEST: (config.test_title, config.test_body),
        }
        self._templates: Dict[NotificationClass, Tuple[Template, Template]] = {}
        for notification_class, (title, body) in sources.items():
            try:
                self._templates[notification_class] = (
                    self.env.from_string(title),
                    self.env.from_string(body),
                )
            except TemplateError as e:
                raise NotificationTemplateError(
                    f"Invalid {notification_class.value} template: {e}"
                ) from e

    def render(self, notification_class: NotificationClass, **context: Any) -> Tuple[str, str]:
        """Render ``(title, body)``.

        ``short_name`` is always available; other variables (``service_name``,
        ``stream_id``) are supplied by the caller.

        Raises:
            NotificationTemplateError: If rendering fails
        """
        title_template, body_template = self._templates[NotificationClass(notification_class)]
        variables = {"short_name": self.config.short_name, **context}
        try:
            return (
                title_template.render(**variables).strip(),
                body_template.render(**variables).strip(),
            )
        except TemplateError as e:
            logger.error(f"Template rendering failed for {notification_class}: {e}")
            raise NotificationTemplateError(f"Template rendering failed: {e}") from e
