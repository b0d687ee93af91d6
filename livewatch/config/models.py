"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Literal, Optional, Union
from zoneinfo import ZoneInfo

from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel, Field, field_validator, model_validator

from livewatch.domain.models import RecurrenceRule, ServiceWindow, parse_weekday
from livewatch.utils.timestamps import load_zone

from .duration import DurationParseError, parse_duration, parse_timedelta, validate_duration_range

DurationValue = Union[str, int]

# Variables the notification service supplies to each template
TEMPLATE_VARIABLES = {
    "live_title": ("short_name", "service_name", "stream_id"),
    "live_body": ("short_name", "service_name", "stream_id"),
    "reminder_title": ("short_name", "service_name"),
    "reminder_body": ("short_name", "service_name"),
    "test_title": ("short_name", "service_name"),
    "test_body": ("short_name", "service_name"),
}


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ServiceConfig(BaseModel):
    """One recurring service and the window around it."""

    id: str = Field(..., min_length=1, description="Stable identifier used by preferences")
    name: str = Field(..., min_length=1, description="Display name, e.g. 'Early Service'")
    weekday: int = Field(0, description="0 = Sunday .. 6 = Saturday, or a day name")
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)
    pre_roll: DurationValue = Field("15m", description="How long before the start probing begins")
    post_roll: DurationValue = Field("45m", description="How long after the start probing continues")
    streamed: bool = Field(True, description="False for in-person-only services")

    @field_validator("id", "name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("weekday", mode="before")
    @classmethod
    def coerce_weekday(cls, v):
        return parse_weekday(v)

    @field_validator("pre_roll", "post_roll")
    @classmethod
    def validate_roll(cls, v: DurationValue) -> DurationValue:
        try:
            seconds = parse_duration(v, allow_zero=True)
            validate_duration_range(seconds, 0, 6 * 3600, name="Pre/post roll")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    def to_rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            id=self.id,
            label=self.name,
            weekday=self.weekday,
            hour=self.hour,
            minute=self.minute,
        )

    def to_window(self) -> ServiceWindow:
        return ServiceWindow(
            rule=self.to_rule(),
            pre_roll=parse_timedelta(self.pre_roll, allow_zero=True),
            post_roll=parse_timedelta(self.post_roll, allow_zero=True),
            streamed=self.streamed,
        )


def default_services() -> List[ServiceConfig]:
    """The Sunday broadcast schedule used when no services are configured."""
    return [
        ServiceConfig(id="early", name="Early Service", weekday=0, hour=8, minute=30),
        ServiceConfig(id="traditional", name="Traditional Service", weekday=0, hour=10, minute=30),
        ServiceConfig(id="contemporary", name="Contemporary Service", weekday=0, hour=11, minute=30),
    ]


class OracleConfig(BaseModel):
    """Live-status oracle settings."""

    provider: Literal["youtube"] = Field("youtube", description="Oracle implementation")
    channel_id: Optional[str] = Field(None, description="Channel to watch (ORACLE_CHANNEL_ID overrides)")
    base_url: str = Field(
        "https://www.googleapis.com/youtube/v3",
        min_length=1,
        description="Oracle API base URL",
    )
    timeout: float = Field(10.0, ge=1, le=60, description="Hard per-probe timeout (seconds)")
    user_agent: str = Field("livewatch/1.0", min_length=1)

    @field_validator("channel_id")
    @classmethod
    def blank_channel_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


class PollingConfig(BaseModel):
    """Poll timer and live-notification cooldown."""

    interval: DurationValue = Field("2m", description="Time between poll cycles")
    live_cooldown: DurationValue = Field("15m", description="Minimum gap between live notifications")

    # Computed fields
    interval_seconds: Optional[int] = None
    live_cooldown_seconds: Optional[int] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: DurationValue) -> DurationValue:
        try:
            validate_duration_range(parse_duration(v), 30, 3600, name="Poll interval")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("live_cooldown")
    @classmethod
    def validate_cooldown(cls, v: DurationValue) -> DurationValue:
        try:
            validate_duration_range(parse_duration(v), 60, 86400, name="Live cooldown")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_seconds(self):
        self.interval_seconds = parse_duration(self.interval)
        self.live_cooldown_seconds = parse_duration(self.live_cooldown)
        return self


class NotificationConfig(BaseModel):
    """Notification content. Titles and bodies are Jinja2 templates.

    Each template is rendered once against placeholder values when the
    config is built, so a misspelt variable is rejected at load time
    (and by ``--validate-config``) instead of on the first live cycle.
    """

    short_name: str = Field("PBCC", min_length=1)
    deep_link: str = Field("pbcc://live", min_length=1)
    live_title: str = "📺 {{ short_name }} Live Stream"
    live_body: str = "Service is streaming now! Tap to watch."
    reminder_title: str = "🔴 {{ service_name }} Starting Now!"
    reminder_body: str = "{{ short_name }} is live. Tap to watch the service."
    test_title: str = "🔴 Test Service Live!"
    test_body: str = "{{ short_name }} test notification. Tap to watch."
    priority: Literal["default", "high", "max"] = "high"
    sound: bool = True

    @model_validator(mode="after")
    def templates_render(self):
        env = Environment(undefined=StrictUndefined, autoescape=False)
        for field_name, variables in TEMPLATE_VARIABLES.items():
            sample = {name: f"<{name}>" for name in variables}
            try:
                env.from_string(getattr(self, field_name)).render(**sample)
            except TemplateError as e:
                raise ValueError(f"{field_name} template: {e}") from e
        return self


class PlaybackConfig(BaseModel):
    """Embedded-player retry policy and external viewer links.

    The ``max_attempts``-th consecutive failure is terminal, so only the
    first ``max_attempts - 1`` entries of ``backoff_ms`` are ever waited.
    With the default three attempts the trailing 2000 ms has no effect; it
    applies once ``max_attempts`` is raised to 4.
    """

    max_attempts: int = Field(3, ge=1, le=10)
    backoff_ms: List[int] = Field(default_factory=lambda: [500, 1000, 2000])
    external_watch_url: str = "https://www.youtube.com/watch?v={stream_id}"
    external_channel_url: str = "https://www.youtube.com/channel/{channel_id}/live"

    @field_validator("backoff_ms")
    @classmethod
    def positive_delays(cls, v: List[int]) -> List[int]:
        if any(delay <= 0 for delay in v):
            raise ValueError("Backoff delays must be positive milliseconds")
        return v

    @model_validator(mode="after")
    def enough_delays(self):
        if len(self.backoff_ms) < self.max_attempts - 1:
            raise ValueError(
                f"backoff_ms needs at least {self.max_attempts - 1} entries for max_attempts={self.max_attempts}"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="Log output format (json or key-value)")

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object."""

    timezone: str = Field("America/Los_Angeles", description="IANA zone of the service schedule")
    services: List[ServiceConfig] = Field(default_factory=default_services, min_length=1)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        load_zone(v.strip())
        return v.strip()

    @model_validator(mode="after")
    def unique_service_ids(self):
        seen = set()
        for service in self.services:
            if service.id in seen:
                raise ValueError(f"Duplicate service id: '{service.id}' appears multiple times")
            seen.add(service.id)
        return self

    def zone(self) -> ZoneInfo:
        return load_zone(self.timezone)

    def rules(self) -> List[RecurrenceRule]:
        return [service.to_rule() for service in self.services]

    def windows(self) -> List[ServiceWindow]:
        return [service.to_window() for service in self.services]

    def get_service(self, service_id: str) -> Optional[ServiceConfig]:
        for service in self.services:
            if service.id == service_id:
                return service
        return None
