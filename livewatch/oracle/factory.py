"""Factory function for instantiating live-status probers."""

from livewatch.config.environment import EnvironmentConfig
from livewatch.config.models import OracleConfig
from livewatch.logging import get_logger

from .base import BaseProber
from .exceptions import ProbeConfigurationError
from .youtube import YouTubeLiveProber

logger = get_logger(__name__, component="oracle")

PROVIDERS = {
    "youtube": YouTubeLiveProber,
}


def get_prober(oracle_config: OracleConfig, env_config: EnvironmentConfig) -> BaseProber:
    """Build the prober named by ``oracle_config.provider``.

    A missing API key does not fail here; the prober raises
    ProbeConfigurationError on each probe instead, so the scheduler keeps
    running and logs the problem every cycle.

    Raises:
        ProbeConfigurationError: If the provider is unknown or settings are invalid
    """
    provider = str(oracle_config.provider).lower()
    prober_class = PROVIDERS.get(provider)
    if prober_class is None:
        raise ProbeConfigurationError(
            f"Unknown oracle provider: {oracle_config.provider}. "
            f"Supported providers: {', '.join(sorted(PROVIDERS))}"
        )

    if not env_config.oracle_configured:
        logger.warning(
            "Oracle API key not configured; every probe will report not live",
            extra={"event": "oracle.unconfigured", "provider": provider},
        )

    return prober_class(
        api_key=env_config.oracle_api_key,
        channel_id=env_config.channel_id or oracle_config.channel_id,
        base_url=oracle_config.base_url,
        timeout=oracle_config.timeout,
        user_agent=oracle_config.user_agent,
    )
