"""Configuration management module for livewatch."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AppConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    NotificationConfig,
    OracleConfig,
    PlaybackConfig,
    PollingConfig,
    ServiceConfig,
    default_services,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ServiceConfig",
    "OracleConfig",
    "PollingConfig",
    "NotificationConfig",
    "PlaybackConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "default_services",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
