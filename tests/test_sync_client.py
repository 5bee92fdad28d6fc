"""Tests for the blocking send/receive wrappers."""

import httpx
import pytest

from buoy_client import sync_client
from buoy_client.errors import ConfigurationError, DeliveryError
from buoy_client.types import SendResult

SERVICE = "https://buoy.example.com"
CHANNEL = "sync-channel-000000001"


def mock_client(status, headers=None, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, headers=headers or {})

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestSyncSend:
    def test_delivered(self):
        seen = []
        with mock_client(201, {"X-Buoy-Delivery": "delivered"}, seen) as client:
            result = sync_client.send(
                {"x": 1}, SERVICE, CHANNEL, timeout=1, require_delivery=True, client=client
            )
        assert result is SendResult.DELIVERED
        assert seen[0].headers["X-Buoy-Wait"] == "1"

    def test_delivery_error(self):
        with mock_client(408) as client:
            with pytest.raises(DeliveryError):
                sync_client.send(
                    "x", SERVICE, CHANNEL, timeout=1, require_delivery=True, client=client
                )

    def test_configuration_error_before_request(self):
        seen = []
        with mock_client(200, seen=seen) as client:
            with pytest.raises(ConfigurationError):
                sync_client.send("x", SERVICE, CHANNEL, require_delivery=True, client=client)
        assert seen == []


class TestSyncReceive:
    def test_receive_blocks_for_message(self, make_socket_factory):
        factory = make_socket_factory(preload=[b'{"ready": true}'])
        message = sync_client.receive(
            SERVICE, CHANNEL, timeout=2, json=True, socket_factory=factory
        )
        assert message == {"ready": True}
        assert factory.current.close_codes == [1000]

    @pytest.mark.asyncio
    async def test_refuses_running_loop(self):
        with pytest.raises(RuntimeError):
            sync_client.receive(SERVICE, CHANNEL, timeout=1)
