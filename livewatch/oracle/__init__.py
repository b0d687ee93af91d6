"""Live-status oracle probers.

Use the factory to build the configured prober:
    from livewatch.oracle import get_prober
    prober = get_prober(app_config.oracle, env_config)
    status = prober.probe()

Exception handling:
    from livewatch.oracle import ProbeError, ProbeTimeoutError, ProbeUpstreamError, ProbeParseError
"""

from .base import BaseProber
from .exceptions import (
    ProbeConfigurationError,
    ProbeError,
    ProbeParseError,
    ProbeTimeoutError,
    ProbeUpstreamError,
)
from .factory import get_prober
from .youtube import YouTubeLiveProber

__all__ = [
    "BaseProber",
    "YouTubeLiveProber",
    "get_prober",
    "ProbeError",
    "ProbeTimeoutError",
    "ProbeUpstreamError",
    "ProbeParseError",
    "ProbeConfigurationError",
]
