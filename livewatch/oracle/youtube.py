"""YouTube Data API live-status prober."""

from typing import Optional

from livewatch.domain.models import LiveStatus
from livewatch.logging import get_logger

from .base import DEFAULT_TIMEOUT, BaseProber
from .exceptions import ProbeConfigurationError, ProbeParseError

logger = get_logger(__name__, component="oracle")


class YouTubeLiveProber(BaseProber):
    """Probe a YouTube channel for an active live broadcast.

    API Details:
        Endpoint: {base_url}/search
        Params: part=snippet, channelId, eventType=live, type=video, key
        Response: JSON object whose ``items`` array holds at most the active
            broadcasts; ``items[0].id.videoId`` identifies the stream

    Any non-empty ``items`` array means live.
    """

    PROVIDER_NAME = "youtube"
    DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"

    def __init__(
        self,
        api_key: Optional[str],
        channel_id: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "livewatch/1.0",
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.api_key = api_key
        self.channel_id = channel_id
        self.base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.channel_id)

    def probe(self, timeout: Optional[float] = None) -> LiveStatus:
        if not self.api_key:
            raise ProbeConfigurationError("YouTube API key not configured (set ORACLE_API_KEY)")
        if not self.channel_id:
            raise ProbeConfigurationError(
                "YouTube channel id not configured (set oracle.channel_id or ORACLE_CHANNEL_ID)"
            )

        payload = self._get_json(
            f"{self.base_url}/search",
            params={
                "part": "snippet",
                "channelId": self.channel_id,
                "eventType": "live",
                "type": "video",
                "key": self.api_key,
            },
            timeout=timeout,
        )
        status = self._parse(payload)

        logger.debug(
            "Probe completed",
            extra={
                "event": "probe.completed",
                "provider": self.PROVIDER_NAME,
                "is_live": status.is_live,
                "stream_id": status.stream_id,
            },
        )
        return status

    def _parse(self, payload) -> LiveStatus:
        if not isinstance(payload, dict):
            raise ProbeParseError(f"Expected JSON object response, got {type(payload).__name__}")

        items = payload.get("items", [])
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ProbeParseError(f"Expected 'items' field to be array, got {type(items).__name__}")
        if not items:
            return LiveStatus(is_live=False)

        first = items[0]
        if not isinstance(first, dict):
            raise ProbeParseError(f"Expected search result object, got {type(first).__name__}")

        identifier = first.get("id")
        stream_id = None
        if isinstance(identifier, dict):
            stream_id = identifier.get("videoId")
        elif isinstance(identifier, str):
            stream_id = identifier
        if stream_id is not None and not isinstance(stream_id, str):
            raise ProbeParseError(f"Expected videoId to be a string, got {type(stream_id).__name__}")

        return LiveStatus(is_live=True, stream_id=stream_id or None)
