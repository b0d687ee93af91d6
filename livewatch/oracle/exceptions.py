"""Exceptions raised by live-status probers.

None of these are fatal: the poll cycle logs them and treats the channel
as "not live" for that cycle.
"""

from typing import Optional


class ProbeError(Exception):
    """Base exception for all probe failures."""

    @property
    def is_transient(self) -> bool:
        """Whether the next cycle can be expected to succeed without operator action."""
        return False


class ProbeTimeoutError(ProbeError):
    """The oracle did not answer within the hard timeout."""

    def __init__(self, message: str, timeout: float, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.timeout = timeout
        self.url = url

    @property
    def is_transient(self) -> bool:
        return True


class ProbeUpstreamError(ProbeError):
    """The oracle answered with a non-2xx status or could not be reached.

    ``status_code`` is 0 when no HTTP response was received (DNS failure,
    refused connection...).
    """

    def __init__(self, message: str, status_code: int, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def is_transient(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500 or self.status_code == 429


class ProbeParseError(ProbeError):
    """The oracle's payload was not valid JSON or lacked expected fields."""


class ProbeConfigurationError(ProbeError):
    """The prober cannot run: missing API key or channel identifier."""
