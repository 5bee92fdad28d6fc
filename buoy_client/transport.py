# =============================================================================
# Buoy Python Client -- Socket Transport
# =============================================================================
#
# The session only talks to a SocketTransport. The default implementation
# wraps websockets' asyncio client; tests and embedders can supply any
# object with the same surface through a socket factory.
# =============================================================================

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, Protocol

import websockets.asyncio.client
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed
from websockets.frames import Frame, Opcode

from ._logging import logger
from .constants import WS_CLOSE_NORMAL
from .types import SessionConfig

PingHandler = Callable[[], None]


class SocketTransport(Protocol):
    """One physical connection to the relay.

    ``supports_heartbeat`` declares that the transport reports server pings
    through the handler given to :meth:`set_ping_handler` and can be torn
    down hard with :meth:`terminate`.
    """

    supports_heartbeat: bool

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...

    async def send(self, data: bytes) -> None: ...

    async def close(self, code: int = WS_CLOSE_NORMAL) -> None: ...

    def terminate(self) -> None: ...

    def set_ping_handler(self, handler: PingHandler | None) -> None: ...


SocketFactory = Callable[[str, SessionConfig], Awaitable[SocketTransport]]


class _PingAwareConnection(ClientConnection):
    """Client connection that reports incoming PING frames."""

    ping_handler: PingHandler | None = None

    def process_event(self, event) -> None:
        if (
            self.ping_handler is not None
            and isinstance(event, Frame)
            and event.opcode is Opcode.PING
        ):
            try:
                self.ping_handler()
            except Exception as exc:
                logger.error("Ping handler error: %s", exc)
        super().process_event(event)


class WebSocketTransport:
    """:class:`SocketTransport` over a ``websockets`` client connection."""

    supports_heartbeat = True

    def __init__(self, ws: _PingAwareConnection) -> None:
        self._ws = ws

    async def __aiter__(self) -> AsyncIterator[str | bytes]:
        # Ends quietly on a normal close, raises ConnectionClosedError otherwise
        async for message in self._ws:
            yield message

    async def send(self, data: bytes) -> None:
        await self._ws.send(data)

    async def close(self, code: int = WS_CLOSE_NORMAL) -> None:
        try:
            await self._ws.close(code)
        except ConnectionClosed:
            pass

    def terminate(self) -> None:
        self._ws.transport.abort()

    def set_ping_handler(self, handler: PingHandler | None) -> None:
        self._ws.ping_handler = handler


async def connect_websocket(url: str, config: SessionConfig) -> WebSocketTransport:
    """Default socket factory: open a WebSocket to *url*."""
    ws = await websockets.asyncio.client.connect(
        url,
        create_connection=_PingAwareConnection,
        max_size=config.max_message_size,
        open_timeout=config.open_timeout,
    )
    return WebSocketTransport(ws)
