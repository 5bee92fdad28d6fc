"""Tests for addresses, enums and configuration objects."""

import pytest

from buoy_client.constants import BACKOFF_MAX_DELAY, HEARTBEAT_TIMEOUT, KEEPALIVE_INTERVAL
from buoy_client.errors import ConfigurationError
from buoy_client.types import ChannelAddress, ConnectionState, SendResult, SessionConfig

CHANNEL = "0123456789abcdef"


class TestChannelAddress:
    def test_socket_url_from_https(self):
        addr = ChannelAddress("https://cb.anchor.link", CHANNEL)
        assert addr.socket_url == f"wss://cb.anchor.link/{CHANNEL}?v=2"

    def test_socket_url_from_http(self):
        addr = ChannelAddress("http://localhost:8090", CHANNEL)
        assert addr.socket_url == f"ws://localhost:8090/{CHANNEL}?v=2"

    def test_trailing_slash_and_path(self):
        addr = ChannelAddress("https://example.com/buoy/", CHANNEL)
        assert addr.socket_url == f"wss://example.com/buoy/{CHANNEL}?v=2"
        assert addr.http_url == f"https://example.com/buoy/{CHANNEL}"

    def test_http_url_from_wss(self):
        addr = ChannelAddress("wss://cb.anchor.link", CHANNEL)
        assert addr.http_url == f"https://cb.anchor.link/{CHANNEL}"

    def test_ws_service_keeps_ws_socket_url(self):
        addr = ChannelAddress("ws://localhost:8090", CHANNEL)
        assert addr.socket_url == f"ws://localhost:8090/{CHANNEL}?v=2"
        assert addr.http_url == f"http://localhost:8090/{CHANNEL}"

    def test_missing_service(self):
        with pytest.raises(ConfigurationError, match="service"):
            ChannelAddress("", CHANNEL)

    def test_missing_channel(self):
        with pytest.raises(ConfigurationError, match="channel"):
            ChannelAddress("https://cb.anchor.link", "")

    def test_short_channel(self):
        with pytest.raises(ConfigurationError):
            ChannelAddress("https://cb.anchor.link", "short")

    def test_channel_of_exactly_ten(self):
        ChannelAddress("https://cb.anchor.link", "a" * 10)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ChannelAddress("https://cb.anchor.link", "x")

    def test_frozen(self):
        addr = ChannelAddress("https://cb.anchor.link", CHANNEL)
        with pytest.raises(AttributeError):
            addr.channel = "other-channel-name"


class TestEnums:
    def test_send_result_values(self):
        assert SendResult("delivered") is SendResult.DELIVERED
        assert SendResult("buffered") is SendResult.BUFFERED

    def test_connection_state_is_str(self):
        assert ConnectionState.OPEN == "open"


def test_session_config_defaults():
    cfg = SessionConfig()
    assert cfg.keepalive_interval == KEEPALIVE_INTERVAL == 600.0
    assert cfg.heartbeat_timeout == HEARTBEAT_TIMEOUT == 15.0
    assert cfg.max_backoff == BACKOFF_MAX_DELAY == 5.0
