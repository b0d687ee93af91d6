"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/livewatch.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Secrets and deployment settings read from the environment."""

    def __init__(
        self,
        oracle_api_key: Optional[str] = None,
        channel_id: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.oracle_api_key = oracle_api_key
        self.channel_id = channel_id
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def oracle_configured(self) -> bool:
        return bool(self.oracle_api_key)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Optional environment variables:
    - ORACLE_API_KEY: API key for the live-status oracle. Without it every
      probe fails with a configuration error and is treated as "not live".
    - ORACLE_CHANNEL_ID: Channel to watch (overrides oracle.channel_id)
    - DATABASE_URL: Key-value store database (default: sqlite:///./data/livewatch.db)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Label stamped on log records (default: local)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable is present but invalid
    """
    errors = []

    oracle_api_key = (os.getenv("ORACLE_API_KEY") or "").strip() or None
    channel_id = (os.getenv("ORACLE_CHANNEL_ID") or "").strip() or None
    database_url = (os.getenv("DATABASE_URL") or "").strip() or None
    log_level = (os.getenv("LOG_LEVEL") or "").strip() or None
    environment = (os.getenv("ENVIRONMENT") or "").strip() or None

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if database_url and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected a URL such as {DEFAULT_DATABASE_URL}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        oracle_api_key=oracle_api_key,
        channel_id=channel_id,
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )
