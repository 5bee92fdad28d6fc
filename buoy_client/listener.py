# =============================================================================
# Buoy Python Client -- Listener
# =============================================================================
#
# Public facade over ChannelSession: validates options, emits connect /
# disconnect / message / error events and supports async iteration.
# =============================================================================

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Callable

from ._logging import logger
from .constants import EVENT_QUEUE_SIZE
from .errors import BuoyError, ConfigurationError
from .protocol import FrameCodec
from .session import ChannelSession
from .transport import SocketFactory
from .types import (
    ChannelAddress,
    ConnectionState,
    ListenerEncoding,
    ListenerEvent,
    SessionConfig,
)

Handler = Callable[..., Any]

# Sentinel closing the async iterator
_CLOSED = object()


def resolve_encoding(
    encoding: ListenerEncoding | str | None, json: bool
) -> ListenerEncoding:
    """Pick the single encoding implied by the ``encoding``/``json`` options."""
    if encoding is None:
        return ListenerEncoding.JSON if json else ListenerEncoding.TEXT
    try:
        resolved = ListenerEncoding(encoding)
    except ValueError:
        raise ConfigurationError(f"Unknown encoding: {encoding!r}") from None
    if json and resolved is not ListenerEncoding.JSON:
        raise ConfigurationError(
            f"json=True conflicts with encoding={resolved.value!r}"
        )
    return resolved


class Listener:
    """Listens for messages on a buoy channel.

    Args:
        service: Relay URL, e.g. ``"https://cb.anchor.link"``.
        channel: Channel to listen to, at least 10 characters.
        auto_connect: Connect right away (needs a running event loop).
        json: Shorthand for ``encoding="json"``.
        encoding: Payload decoding, defaults to ``"text"``.
        socket_factory: Opens the physical connection, defaults to
            websockets.
        config: Session timing configuration.
        queue_size: Max messages buffered for async iteration. When full,
            oldest messages are dropped.

    Example::

        listener = Listener("https://cb.anchor.link", channel_id, json=True)

        @listener.on("message")
        def handle(message):
            print(message)

    Raises:
        ConfigurationError: If the service or channel is missing or invalid.
    """

    def __init__(
        self,
        service: str,
        channel: str,
        *,
        auto_connect: bool = True,
        json: bool = False,
        encoding: ListenerEncoding | str | None = None,
        socket_factory: SocketFactory | None = None,
        config: SessionConfig | None = None,
        queue_size: int = EVENT_QUEUE_SIZE,
    ) -> None:
        self._address = ChannelAddress(service, channel)
        self._encoding = resolve_encoding(encoding, json)

        self._handlers: dict[ListenerEvent, list[Handler]] = defaultdict(list)
        self._once: set[tuple[ListenerEvent, Handler]] = set()
        self._background_tasks: set[asyncio.Task[Any]] = set()

        self._message_queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

        self._session = ChannelSession(
            self._address.socket_url,
            FrameCodec(self._encoding),
            socket_factory=socket_factory,
            config=config,
            on_message=self._on_message,
            on_error=self._on_error,
            on_state_change=self._on_state_change,
        )

        if auto_connect:
            self.connect()

    # -- Context manager ------------------------------------------------------

    async def __aenter__(self) -> Listener:
        self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # -- Async iterator -------------------------------------------------------

    def __aiter__(self) -> Listener:
        return self

    async def __anext__(self) -> Any:
        if self._closed and self._message_queue.empty():
            raise StopAsyncIteration
        message = await self._message_queue.get()
        if message is _CLOSED:
            raise StopAsyncIteration
        return message

    # -- Connect / Disconnect -------------------------------------------------

    def connect(self) -> None:
        """Start listening. Does nothing if already connected or connecting."""
        if self._closed:
            self._closed = False
            self._drop_end_markers()
        self._session.start()

    def disconnect(self) -> None:
        """Stop listening and close the connection. Idempotent.

        Ends async iteration once the buffered messages are consumed, even
        if the listener never connected.
        """
        self._session.stop()
        if not self._closed:
            self._closed = True
            self._enqueue(_CLOSED)

    async def aclose(self) -> None:
        """Disconnect and wait for the connection to be torn down."""
        self.disconnect()
        await self._session.wait_closed()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    # -- Properties -----------------------------------------------------------

    @property
    def address(self) -> ChannelAddress:
        return self._address

    @property
    def url(self) -> str:
        return self._address.socket_url

    @property
    def encoding(self) -> ListenerEncoding:
        return self._encoding

    @property
    def state(self) -> ConnectionState:
        return self._session.state

    @property
    def is_connected(self) -> bool:
        return self._session.is_connected

    # -- Handler registration -------------------------------------------------

    def on(self, event: ListenerEvent | str, handler: Handler | None = None) -> Any:
        """Register *handler* for *event*; usable as a decorator.

        ``connect`` and ``disconnect`` handlers take no arguments,
        ``message`` handlers get the decoded payload and ``error`` handlers
        get the :class:`~buoy_client.errors.BuoyError`.
        """
        kind = ListenerEvent(event)

        def decorator(fn: Handler) -> Handler:
            self._handlers[kind].append(fn)
            return fn

        if handler is not None:
            return decorator(handler)
        return decorator

    def once(self, event: ListenerEvent | str, handler: Handler) -> Handler:
        """Register *handler* to run for the next *event* only."""
        kind = ListenerEvent(event)
        self._handlers[kind].append(handler)
        self._once.add((kind, handler))
        return handler

    def off(self, event: ListenerEvent | str, handler: Handler) -> None:
        """Remove a specific handler."""
        kind = ListenerEvent(event)
        handlers = self._handlers.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)
        self._once.discard((kind, handler))

    def listener_count(self, event: ListenerEvent | str) -> int:
        return len(self._handlers.get(ListenerEvent(event), []))

    # -- Internal: session callbacks ------------------------------------------

    def _on_state_change(
        self, new_state: ConnectionState, old_state: ConnectionState
    ) -> None:
        if new_state == ConnectionState.OPEN:
            logger.info("Connected to %s", self.url)
            self._emit(ListenerEvent.CONNECT)
        elif new_state == ConnectionState.CLOSED and old_state in (
            ConnectionState.CONNECTING,
            ConnectionState.OPEN,
        ):
            self._emit(ListenerEvent.DISCONNECT)

    def _on_message(self, message: Any) -> None:
        self._emit(ListenerEvent.MESSAGE, message)
        self._enqueue(message)

    def _on_error(self, error: BuoyError) -> None:
        if not self._handlers.get(ListenerEvent.ERROR):
            logger.warning("Unhandled listener error on %s: %s", self.url, error)
            return
        self._emit(ListenerEvent.ERROR, error)

    # -- Internal: dispatch ---------------------------------------------------

    def _emit(self, event: ListenerEvent, *args: Any) -> None:
        handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            if (event, handler) in self._once:
                self.off(event, handler)
            try:
                result = handler(*args)
                if asyncio.iscoroutine(result):
                    self._fire_task(result)
            except Exception as exc:
                logger.error("Handler error for '%s': %s", event.value, exc)

    def _fire_task(self, coro: Any) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    def _drop_end_markers(self) -> None:
        # Keep messages buffered before a disconnect, drop the end marker
        pending = []
        while not self._message_queue.empty():
            item = self._message_queue.get_nowait()
            if item is not _CLOSED:
                pending.append(item)
        for item in pending:
            self._message_queue.put_nowait(item)

    def _enqueue(self, item: Any) -> None:
        try:
            self._message_queue.put_nowait(item)
        except asyncio.QueueFull:
            # Drop oldest to make room
            try:
                self._message_queue.get_nowait()
                self._message_queue.put_nowait(item)
            except (asyncio.QueueEmpty, asyncio.QueueFull):
                pass
