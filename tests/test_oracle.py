"""Unit tests for the live-status prober."""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, patch

import pytest
import requests

from livewatch.config.environment import EnvironmentConfig
from livewatch.config.models import OracleConfig
from livewatch.domain.models import LiveStatus
from livewatch.oracle import (
    ProbeConfigurationError,
    ProbeError,
    ProbeParseError,
    ProbeTimeoutError,
    ProbeUpstreamError,
    YouTubeLiveProber,
    get_prober,
)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def prober():
    """Configured YouTube prober."""
    return YouTubeLiveProber(api_key="test-key", channel_id="UC123", timeout=10)


def make_response(status_code=200, payload=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    response.reason = "OK" if status_code == 200 else "Error"
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


# ============================================================================
# Probe outcomes
# ============================================================================


class TestYouTubeLiveProber:
    """Tests for YouTubeLiveProber.probe."""

    def test_live_stream_found(self, prober):
        payload = {"items": [{"id": {"kind": "youtube#video", "videoId": "abc123"}}]}
        with patch.object(prober._session, "get", return_value=make_response(payload=payload)):
            status = prober.probe()

        assert status == LiveStatus(is_live=True, stream_id="abc123")

    def test_empty_items_is_not_live(self, prober):
        with patch.object(prober._session, "get", return_value=make_response(payload={"items": []})):
            status = prober.probe()

        assert status.is_live is False
        assert status.stream_id is None

    def test_missing_items_is_not_live(self, prober):
        with patch.object(prober._session, "get", return_value=make_response(payload={"kind": "youtube#searchListResponse"})):
            assert prober.probe().is_live is False

    def test_any_non_empty_result_is_live(self, prober):
        with patch.object(prober._session, "get", return_value=make_response(payload={"items": [{}]})):
            status = prober.probe()

        assert status.is_live is True
        assert status.stream_id is None

    def test_request_parameters(self, prober):
        with patch.object(prober._session, "get", return_value=make_response(payload={"items": []})) as mock_get:
            prober.probe()

        args, kwargs = mock_get.call_args
        assert args[0] == "https://www.googleapis.com/youtube/v3/search"
        assert kwargs["params"] == {
            "part": "snippet",
            "channelId": "UC123",
            "eventType": "live",
            "type": "video",
            "key": "test-key",
        }
        assert kwargs["timeout"] == 10.0

    def test_timeout_override(self, prober):
        with patch.object(prober._session, "get", return_value=make_response(payload={"items": []})) as mock_get:
            prober.probe(timeout=3)

        assert mock_get.call_args.kwargs["timeout"] == 3.0

    def test_single_request_per_probe(self, prober):
        with patch.object(prober._session, "get", side_effect=requests.exceptions.ConnectionError("refused")) as mock_get:
            with pytest.raises(ProbeUpstreamError):
                prober.probe()

        assert mock_get.call_count == 1


# ============================================================================
# Failure mapping
# ============================================================================


class TestProbeFailures:
    """Tests for the error taxonomy."""

    def test_timeout(self, prober):
        with patch.object(prober._session, "get", side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(ProbeTimeoutError) as exc_info:
                prober.probe()

        assert exc_info.value.timeout == 10.0

    def test_connection_error_is_upstream_error_without_status(self, prober):
        with patch.object(prober._session, "get", side_effect=requests.exceptions.ConnectionError("dns")):
            with pytest.raises(ProbeUpstreamError) as exc_info:
                prober.probe()

        assert exc_info.value.status_code == 0
        assert exc_info.value.is_transient

    @pytest.mark.parametrize("status_code,transient", [(403, False), (404, False), (429, True), (503, True)])
    def test_non_2xx_is_upstream_error(self, prober, status_code, transient):
        with patch.object(prober._session, "get", return_value=make_response(status_code=status_code)):
            with pytest.raises(ProbeUpstreamError) as exc_info:
                prober.probe()

        assert exc_info.value.status_code == status_code
        assert exc_info.value.is_transient is transient

    def test_invalid_json(self, prober):
        with patch.object(prober._session, "get", return_value=make_response(json_error=True)):
            with pytest.raises(ProbeParseError):
                prober.probe()

    @pytest.mark.parametrize(
        "payload",
        [
            ["not", "an", "object"],
            {"items": "nope"},
            {"items": ["string-item"]},
            {"items": [{"id": {"videoId": 42}}]},
        ],
    )
    def test_malformed_payload(self, prober, payload):
        with patch.object(prober._session, "get", return_value=make_response(payload=payload)):
            with pytest.raises(ProbeParseError):
                prober.probe()

    def test_all_failures_share_a_base(self):
        for error_class in (ProbeTimeoutError, ProbeUpstreamError, ProbeParseError, ProbeConfigurationError):
            assert issubclass(error_class, ProbeError)

    def test_missing_api_key(self):
        prober = YouTubeLiveProber(api_key=None, channel_id="UC123")
        with patch.object(prober._session, "get") as mock_get:
            with pytest.raises(ProbeConfigurationError):
                prober.probe()

        mock_get.assert_not_called()
        assert prober.configured is False

    def test_missing_channel(self):
        prober = YouTubeLiveProber(api_key="k", channel_id=None)
        with pytest.raises(ProbeConfigurationError):
            prober.probe()

    @pytest.mark.parametrize("timeout", [0, 61])
    def test_timeout_out_of_range(self, timeout):
        with pytest.raises(ProbeConfigurationError):
            YouTubeLiveProber(api_key="k", channel_id="UC123", timeout=timeout)


# ============================================================================
# Deadline against a real socket
# ============================================================================

LIVE_BODY = b'{"items": [{"id": {"videoId": "abc123"}}]}'


class _OracleHandler(BaseHTTPRequestHandler):
    """Serves LIVE_BODY, optionally one byte at a time."""

    byte_delay = 0.0

    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(LIVE_BODY)))
        self.end_headers()
        try:
            if not self.byte_delay:
                self.wfile.write(LIVE_BODY)
                return
            for i in range(len(LIVE_BODY)):
                self.wfile.write(LIVE_BODY[i : i + 1])
                self.wfile.flush()
                time.sleep(self.byte_delay)
        except (BrokenPipeError, ConnectionResetError):
            # Client gave up on the body
            return

    def log_message(self, format, *args):
        pass


def _serve(byte_delay):
    handler = type("Handler", (_OracleHandler,), {"byte_delay": byte_delay})
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


@pytest.fixture
def local_oracle():
    servers = []

    def start(byte_delay=0.0):
        server = _serve(byte_delay)
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


class TestHardDeadline:
    """The timeout bounds the whole round trip, body included."""

    def test_prompt_server_answers(self, local_oracle):
        prober = YouTubeLiveProber(api_key="k", channel_id="UC123", base_url=local_oracle(), timeout=5)

        try:
            status = prober.probe()
        finally:
            prober.close()

        assert status == LiveStatus(is_live=True, stream_id="abc123")

    def test_trickled_body_times_out(self, local_oracle):
        # 42 bytes at 0.3 s each would take over 12 s
        prober = YouTubeLiveProber(
            api_key="k", channel_id="UC123", base_url=local_oracle(byte_delay=0.3), timeout=1
        )

        started = time.monotonic()
        try:
            with pytest.raises(ProbeTimeoutError) as exc_info:
                prober.probe()
        finally:
            prober.close()
        elapsed = time.monotonic() - started

        assert elapsed < 2.5
        assert exc_info.value.timeout == 1.0

    def test_next_request_not_blocked_after_timeout(self, local_oracle):
        prober = YouTubeLiveProber(
            api_key="k", channel_id="UC123", base_url=local_oracle(byte_delay=0.3), timeout=1
        )
        try:
            with pytest.raises(ProbeTimeoutError):
                prober.probe()

            prober.base_url = local_oracle()
            assert prober.probe().is_live is True
        finally:
            prober.close()


# ============================================================================
# Factory
# ============================================================================


class TestGetProber:
    """Tests for get_prober."""

    def test_builds_youtube_prober(self):
        prober = get_prober(
            OracleConfig(channel_id="UCconfig", timeout=5),
            EnvironmentConfig(oracle_api_key="secret"),
        )

        assert isinstance(prober, YouTubeLiveProber)
        assert prober.channel_id == "UCconfig"
        assert prober.api_key == "secret"
        assert prober.timeout == 5.0

    def test_environment_channel_wins(self):
        prober = get_prober(
            OracleConfig(channel_id="UCconfig"),
            EnvironmentConfig(oracle_api_key="secret", channel_id="UCenv"),
        )
        assert prober.channel_id == "UCenv"

    def test_unconfigured_key_still_builds(self):
        prober = get_prober(OracleConfig(channel_id="UC123"), EnvironmentConfig())
        assert prober.configured is False
