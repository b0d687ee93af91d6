"""Base prober with the shared HTTP round trip.

A prober performs exactly one request per :meth:`BaseProber.probe` call,
bounded by a hard timeout, and never retries; retry policy belongs to the
caller (the poll timer simply tries again next cycle).

``requests`` applies its ``timeout`` to the connect and to each socket read
separately, so a server that trickles its body can hold a request open far
longer. The round trip therefore runs on a worker thread and the caller
waits on it with a total deadline.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from livewatch.domain.models import LiveStatus
from livewatch.logging import get_logger

from .exceptions import (
    ProbeConfigurationError,
    ProbeParseError,
    ProbeTimeoutError,
    ProbeUpstreamError,
)

logger = get_logger(__name__, component="oracle")

DEFAULT_TIMEOUT = 10.0


class BaseProber(ABC):
    """Base class for live-status oracles.

    Attributes:
        timeout: Hard deadline (seconds) for the whole request, body included
        user_agent: User-Agent header for requests
    """

    PROVIDER_NAME = "base"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: str = "livewatch/1.0") -> None:
        """
        Raises:
            ProbeConfigurationError: If timeout is not within 1..60 seconds or
                the user agent is blank
        """
        if not 1 <= timeout <= 60:
            raise ProbeConfigurationError(f"Timeout must be between 1 and 60 seconds, got: {timeout}")
        if not user_agent or not user_agent.strip():
            raise ProbeConfigurationError("user_agent cannot be empty")

        self.timeout = float(timeout)
        self.user_agent = user_agent.strip()

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})
        # No transport-level retries either
        no_retries = HTTPAdapter(max_retries=0)
        self._session.mount("https://", no_retries)
        self._session.mount("http://", no_retries)

        # Two workers so one round trip abandoned mid-header cannot block the next probe
        self._executor = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix=f"probe-{self.PROVIDER_NAME}"
        )

    @abstractmethod
    def probe(self, timeout: Optional[float] = None) -> LiveStatus:
        """Ask the oracle whether the channel is live right now.

        Args:
            timeout: Override of the instance timeout for this call

        Returns:
            LiveStatus for this instant

        Raises:
            ProbeTimeoutError: No complete answer within the timeout
            ProbeUpstreamError: Non-2xx status or connection failure
            ProbeParseError: Malformed payload
            ProbeConfigurationError: Prober is missing credentials
        """

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._session.close()

    def _fetch(
        self,
        url: str,
        params: Optional[Dict[str, str]],
        timeout: float,
        in_flight: List[requests.Response],
    ) -> requests.Response:
        response = self._session.get(url, params=params, timeout=timeout, stream=True)
        in_flight.append(response)
        # Read the body on this thread so the caller's deadline covers it
        response.content
        return response

    def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        redact_params: tuple = ("key",),
    ) -> Any:
        """GET ``url`` and decode the JSON body within the deadline.

        Raises:
            ProbeTimeoutError, ProbeUpstreamError, ProbeParseError
        """
        effective_timeout = self.timeout if timeout is None else float(timeout)
        safe_params = {
            k: ("***" if k in redact_params else v) for k, v in (params or {}).items()
        }

        logger.debug(
            f"HTTP GET {url}",
            extra={
                "event": "probe.request",
                "provider": self.PROVIDER_NAME,
                "url": url,
                "params": safe_params,
                "timeout": effective_timeout,
            },
        )

        in_flight: List[requests.Response] = []
        future = self._executor.submit(self._fetch, url, params, effective_timeout, in_flight)
        try:
            response = future.result(timeout=effective_timeout)
        except (FutureTimeoutError, requests.exceptions.Timeout) as e:
            future.cancel()
            # Closing the socket unblocks the worker if it is still reading
            for pending in in_flight:
                pending.close()
            logger.warning(
                f"Probe timed out after {effective_timeout} seconds",
                extra={"event": "probe.failed", "error_type": "Timeout", "url": url},
            )
            raise ProbeTimeoutError(
                f"Request to {url} timed out after {effective_timeout} seconds",
                timeout=effective_timeout,
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.warning(
                f"Probe request failed: {e}",
                extra={"event": "probe.failed", "error_type": type(e).__name__, "url": url},
            )
            raise ProbeUpstreamError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if not 200 <= response.status_code < 300:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"HTTP {response.status_code} from oracle",
                extra={
                    "event": "probe.failed",
                    "error_type": "UpstreamError",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise ProbeUpstreamError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "Oracle returned a body that is not JSON",
                extra={"event": "probe.failed", "error_type": "ParseError", "url": url},
            )
            raise ProbeParseError(f"Failed to parse JSON response from {url}: {e}") from e
