# =============================================================================
# Buoy Python Client -- Type Definitions
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .constants import (
    BACKOFF_MAX_DELAY,
    CONNECTION_TIMEOUT,
    HEARTBEAT_TIMEOUT,
    KEEPALIVE_INTERVAL,
    MAX_MESSAGE_SIZE,
    MIN_CHANNEL_LENGTH,
    PROTOCOL_VERSION,
)
from .errors import ConfigurationError


class ConnectionState(str, Enum):
    """Channel session lifecycle state.

    Typical flow: IDLE -> CONNECTING -> OPEN -> CLOSED. While the session
    is active CLOSED loops back to CONNECTING after a backoff delay.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ListenerEncoding(str, Enum):
    """How incoming payloads are decoded."""

    BINARY = "binary"
    TEXT = "text"
    JSON = "json"


class ListenerEvent(str, Enum):
    """Events emitted by a :class:`~buoy_client.listener.Listener`."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"
    MESSAGE = "message"
    ERROR = "error"


class SendResult(str, Enum):
    """Result of a send call."""

    BUFFERED = "buffered"
    """Message was accepted but not yet delivered."""

    DELIVERED = "delivered"
    """Message was delivered to at least one listener on the channel."""


@dataclass(frozen=True, slots=True)
class ChannelAddress:
    """A relay service plus one channel on it.

    Attributes:
        service: Relay base URL, e.g. ``"https://cb.anchor.link"``. Either
            the http(s) or the ws(s) form is accepted.
        channel: Channel name, at least 10 characters, usually a UUID.
    """

    service: str
    channel: str

    def __post_init__(self) -> None:
        if not self.service:
            raise ConfigurationError("Options must include a service url")
        if not self.channel:
            raise ConfigurationError("Options must include a channel name")
        if len(self.channel) < MIN_CHANNEL_LENGTH:
            raise ConfigurationError(
                f"Channel name must be at least {MIN_CHANNEL_LENGTH} characters"
            )

    @property
    def socket_url(self) -> str:
        base = re.sub(r"^http", "ws", self.service).rstrip("/")
        return f"{base}/{self.channel}?v={PROTOCOL_VERSION}"

    @property
    def http_url(self) -> str:
        base = re.sub(r"^ws", "http", self.service).rstrip("/")
        return f"{base}/{self.channel}"


@dataclass
class SessionConfig:
    """Tuning for a channel session.

    Attributes:
        keepalive_interval: Seconds an open connection lives before it is
            recycled with a normal close.
        heartbeat_timeout: Seconds without a server ping before the
            connection is terminated. Only used by transports that report
            pings.
        max_backoff: Cap for the reconnect delay in seconds.
        open_timeout: Handshake timeout for the default transport.
        max_message_size: Largest inbound frame the default transport
            accepts, ``None`` for no limit.
    """

    keepalive_interval: float = KEEPALIVE_INTERVAL
    heartbeat_timeout: float = HEARTBEAT_TIMEOUT
    max_backoff: float = BACKOFF_MAX_DELAY
    open_timeout: float = CONNECTION_TIMEOUT
    max_message_size: int | None = MAX_MESSAGE_SIZE
