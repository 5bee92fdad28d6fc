# =============================================================================
# Buoy Python Client -- Channel Session
# =============================================================================
#
# One logical subscription to a channel across any number of physical
# connections: connect, heartbeat ack, keepalive recycling, ping watchdog,
# reconnect with backoff.
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any, Callable

from ._logging import logger
from .constants import BACKOFF_FACTOR, BACKOFF_MAX_DELAY, WS_CLOSE_NORMAL
from .errors import BuoyError, SocketError
from .protocol import FrameCodec
from .transport import SocketFactory, SocketTransport, connect_websocket
from .types import ConnectionState, SessionConfig


def backoff_delay(attempt: int, max_delay: float = BACKOFF_MAX_DELAY) -> float:
    """Reconnect delay in seconds for the given 0-based attempt.

    ``(7 * attempt) ** 2`` milliseconds, capped at *max_delay*:
    0, 0.049, 0.196, 0.441, ... reaching 5s after 10 tries.
    """
    return min((attempt * BACKOFF_FACTOR) ** 2 / 1000, max_delay)


class ChannelSession:
    """Keeps one channel subscription alive until stopped.

    The session owns a single task that connects, reads frames and waits
    out the backoff between attempts. Callers only see it through the
    callbacks.

    Args:
        url: Socket URL of the channel.
        codec: Decoder for payload frames.
        socket_factory: Opens a physical connection, defaults to websockets.
        config: Timing configuration.
        on_message: Called with each decoded payload, in arrival order.
        on_error: Called with :class:`SocketError` or ``MessageError``.
        on_state_change: Called with ``(new_state, old_state)``.
    """

    def __init__(
        self,
        url: str,
        codec: FrameCodec,
        *,
        socket_factory: SocketFactory | None = None,
        config: SessionConfig | None = None,
        on_message: Callable[[Any], Any] | None = None,
        on_error: Callable[[BuoyError], Any] | None = None,
        on_state_change: Callable[[ConnectionState, ConnectionState], Any]
        | None = None,
    ) -> None:
        self._url = url
        self._codec = codec
        self._socket_factory = socket_factory or connect_websocket
        self._config = config or SessionConfig()

        # Callbacks
        self._on_message = on_message
        self._on_error = on_error
        self._on_state_change = on_state_change

        # State
        self._state = ConnectionState.IDLE
        self._active = False
        self._retries = 0
        self._transport: SocketTransport | None = None

        # Tasks and timers
        self._task: asyncio.Task[None] | None = None
        self._task_cancelled = False
        self._keepalive_task: asyncio.Task[None] | None = None
        self._watchdog: asyncio.TimerHandle | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()

    def _fire_task(self, coro: Any) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # -- Properties -----------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._active

    @property
    def retries(self) -> int:
        return self._retries

    @property
    def is_connected(self) -> bool:
        return self._active and self._state == ConnectionState.OPEN

    # -- Start / Stop ---------------------------------------------------------

    def start(self) -> None:
        """Begin (or keep) maintaining the subscription. Idempotent."""
        if self._active:
            return
        self._active = True
        # A task still closing the previous connection picks the
        # subscription back up on its own once it sees _active again.
        if self._task is None or self._task.done() or self._task_cancelled:
            self._task_cancelled = False
            self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Stop reconnecting and close the current connection. Idempotent."""
        if not self._active:
            return
        self._active = False
        self._cancel_timers()

        if self._state == ConnectionState.OPEN and self._transport is not None:
            # The run task sees the close and exits its loop
            self._fire_task(self._transport.close(WS_CLOSE_NORMAL))
        elif self._task is not None and not self._task.done():
            # Connecting or waiting out a backoff delay
            self._task.cancel()
            self._task_cancelled = True

    async def wait_closed(self) -> None:
        """Wait until the session task has finished."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    # -- Internal: connection loop --------------------------------------------

    async def _run(self) -> None:
        try:
            while self._active:
                await self._connect_once()
                if not self._active:
                    break
                delay = backoff_delay(self._retries, self._config.max_backoff)
                self._retries += 1
                logger.debug(
                    "Reconnecting to %s in %.3fs (attempt %d)",
                    self._url,
                    delay,
                    self._retries,
                )
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            if self._state == ConnectionState.CONNECTING:
                self._set_state(ConnectionState.CLOSED)
            return

    async def _connect_once(self) -> None:
        """Open one physical connection and read it until it closes."""
        self._set_state(ConnectionState.CONNECTING)
        try:
            transport = await self._socket_factory(self._url, self._config)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Failed to connect to %s: %s", self._url, exc)
            self._report_socket_error(exc)
            self._set_state(ConnectionState.CLOSED)
            return

        if not self._active:
            # Disconnected while the handshake was in flight
            await transport.close(WS_CLOSE_NORMAL)
            self._set_state(ConnectionState.CLOSED)
            return

        self._transport = transport
        self._retries = 0
        self._start_timers(transport)
        self._set_state(ConnectionState.OPEN)

        try:
            async for data in transport:
                await self._handle_frame(transport, data)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Connection to %s lost: %s", self._url, exc)
            self._report_socket_error(exc)
        finally:
            self._cancel_timers()
            if transport.supports_heartbeat:
                transport.set_ping_handler(None)
            self._transport = None
            self._set_state(ConnectionState.CLOSED)

    async def _handle_frame(self, transport: SocketTransport, data: str | bytes) -> None:
        frame = self._codec.feed(data)
        if frame.ack is not None:
            try:
                await transport.send(frame.ack)
            except Exception as exc:
                # The read side notices the dead connection next
                logger.debug("Heartbeat ack failed: %s", exc)
        if frame.error is not None:
            self._emit_error(frame.error)
        elif frame.has_payload and self._on_message is not None:
            self._on_message(frame.payload)

    # -- Internal: keepalive and watchdog -------------------------------------

    def _start_timers(self, transport: SocketTransport) -> None:
        task = asyncio.ensure_future(self._recycle_after(transport))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        self._keepalive_task = task
        if transport.supports_heartbeat:
            transport.set_ping_handler(lambda: self._on_ping(transport))

    async def _recycle_after(self, transport: SocketTransport) -> None:
        """Close long-lived connections so dead idle ones get replaced."""
        try:
            await asyncio.sleep(self._config.keepalive_interval)
        except asyncio.CancelledError:
            return
        if self._transport is transport:
            logger.debug("Recycling idle connection to %s", self._url)
            # Detach so the read loop teardown does not cancel the close
            self._keepalive_task = None
            await transport.close(WS_CLOSE_NORMAL)

    def _on_ping(self, transport: SocketTransport) -> None:
        if self._transport is not transport:
            return
        if self._watchdog is not None:
            self._watchdog.cancel()
        self._watchdog = asyncio.get_running_loop().call_later(
            self._config.heartbeat_timeout, self._heartbeat_expired, transport
        )

    def _heartbeat_expired(self, transport: SocketTransport) -> None:
        self._watchdog = None
        if self._transport is transport:
            logger.warning(
                "No heartbeat from %s in %.0fs, terminating",
                self._url,
                self._config.heartbeat_timeout,
            )
            transport.terminate()

    def _cancel_timers(self) -> None:
        if self._keepalive_task is not None:
            self._keepalive_task.cancel()
            self._keepalive_task = None
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    # -- Internal: events -----------------------------------------------------

    def _report_socket_error(self, exc: BaseException) -> None:
        # Errors from a connection we are tearing down are expected
        if self._active:
            self._emit_error(SocketError(exc))

    def _emit_error(self, error: BuoyError) -> None:
        if self._on_error is not None:
            self._on_error(error)

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state == self._state:
            return
        old = self._state
        self._state = new_state
        logger.debug("State: %s -> %s", old.value, new_state.value)
        if self._on_state_change:
            self._on_state_change(new_state, old)
