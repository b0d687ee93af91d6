"""Deep-link payloads carried in ``NotificationRequest.data``.

Contract consumed by the UI router::

    {"type": "live_stream" | "scheduled_service" | "test_notification",
     "deepLink": str, "serviceName"?: str, ...}
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from livewatch.domain.models import LiveStatus, RecurrenceRule
from livewatch.utils.timestamps import to_epoch_millis


class DeepLinkType(str, Enum):
    LIVE_STREAM = "live_stream"
    SCHEDULED_SERVICE = "scheduled_service"
    TEST_NOTIFICATION = "test_notification"


def build_deep_link_payload(
    link_type: DeepLinkType,
    deep_link: str,
    service_name: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Assemble the router payload; ``None`` extras are omitted."""
    payload: Dict[str, Any] = {"type": DeepLinkType(link_type).value, "deepLink": deep_link}
    if service_name:
        payload["serviceName"] = service_name
    payload.update({key: value for key, value in extra.items() if value is not None})
    return payload


def build_live_payload(
    status: LiveStatus,
    deep_link: str,
    detected_at: datetime,
    service_name: Optional[str] = None,
) -> Dict[str, Any]:
    return build_deep_link_payload(
        DeepLinkType.LIVE_STREAM,
        deep_link,
        service_name=service_name,
        streamId=status.stream_id,
        timestamp=to_epoch_millis(detected_at),
    )


def build_reminder_payload(rule: RecurrenceRule, deep_link: str) -> Dict[str, Any]:
    return build_deep_link_payload(
        DeepLinkType.SCHEDULED_SERVICE,
        deep_link,
        service_name=rule.label,
        serviceId=rule.id,
    )


def build_test_payload(deep_link: str, sent_at: datetime) -> Dict[str, Any]:
    return build_deep_link_payload(
        DeepLinkType.TEST_NOTIFICATION,
        deep_link,
        timestamp=to_epoch_millis(sent_at),
    )
