"""Buoy Python client: listen on and send to buoy relay channels.

Listen::

    from buoy_client import Listener

    async with Listener("https://cb.anchor.link", channel, json=True) as listener:
        async for message in listener:
            print(message)

Receive a single message::

    from buoy_client import receive

    message = await receive("https://cb.anchor.link", channel, timeout=30)

Send::

    from buoy_client import send

    result = await send({"hello": "world"}, "https://cb.anchor.link", channel)

Blocking variants of ``send`` and ``receive`` live in
:mod:`buoy_client.sync_client`.

Optional extras::

    pip install buoy-client[speedups]   # orjson for JSON decoding
"""

from ._version import __version__
from .errors import (
    BuoyError,
    ConfigurationError,
    DeliveryError,
    MessageError,
    ReceiveCancelledError,
    ReceiveTimeoutError,
    RequestCancelledError,
    SendConnectionError,
    SendError,
    SocketError,
    UnexpectedStatusError,
)
from .listener import Listener
from .receiver import ReceiveContext, receive
from .sender import send
from .session import ChannelSession, backoff_delay
from .transport import SocketTransport, WebSocketTransport, connect_websocket
from .types import (
    ChannelAddress,
    ConnectionState,
    ListenerEncoding,
    ListenerEvent,
    SendResult,
    SessionConfig,
)

__all__ = [
    "__version__",
    "Listener",
    "receive",
    "ReceiveContext",
    "send",
    "ChannelSession",
    "backoff_delay",
    "SocketTransport",
    "WebSocketTransport",
    "connect_websocket",
    "ChannelAddress",
    "ConnectionState",
    "ListenerEncoding",
    "ListenerEvent",
    "SendResult",
    "SessionConfig",
    "BuoyError",
    "ConfigurationError",
    "SocketError",
    "MessageError",
    "ReceiveTimeoutError",
    "ReceiveCancelledError",
    "SendError",
    "DeliveryError",
    "RequestCancelledError",
    "UnexpectedStatusError",
    "SendConnectionError",
]
