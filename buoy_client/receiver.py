# =============================================================================
# Buoy Python Client -- Single Receive
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any, Callable

from .errors import (
    BuoyError,
    ConfigurationError,
    ReceiveCancelledError,
    ReceiveTimeoutError,
    SocketError,
)
from .listener import Listener


class ReceiveContext:
    """Handle that lets the caller cancel a pending :func:`receive`.

    Example::

        ctx = ReceiveContext()
        task = asyncio.create_task(receive(service, channel, context=ctx))
        ...
        ctx.cancel()  # task raises ReceiveCancelledError
    """

    def __init__(self) -> None:
        self._cancel: Callable[[], None] | None = None

    def cancel(self) -> None:
        """Cancel the receive this context is bound to, if still pending."""
        if self._cancel is not None:
            self._cancel()

    def _bind(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel


async def receive(
    service: str,
    channel: str,
    *,
    timeout: float | None = None,
    context: ReceiveContext | None = None,
    **listener_options: Any,
) -> Any:
    """Receive a single message from a buoy channel.

    Use a :class:`~buoy_client.listener.Listener` to receive more than one
    message over the same channel.

    Args:
        service: Relay URL.
        channel: Channel to listen on.
        timeout: Seconds to wait before giving up. ``None`` or ``0`` waits
            forever.
        context: Optional handle to cancel the receive from elsewhere.
        **listener_options: Passed to :class:`Listener` (``json``,
            ``encoding``, ``socket_factory``, ``config``).

    Returns:
        The first decoded message.

    Raises:
        ConfigurationError: If the options are invalid or *timeout* is
            negative.
        ReceiveTimeoutError: If *timeout* elapses first. Carries the last
            socket error, if any, as ``underlying_error``.
        ReceiveCancelledError: If *context* is cancelled first.
        MessageError: If the first message fails to decode.
    """
    if timeout is not None and timeout < 0:
        raise ConfigurationError("timeout must not be negative")
    listener_options.pop("auto_connect", None)
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()
    listener = Listener(service, channel, auto_connect=True, **listener_options)

    last_error: SocketError | None = None
    timer: asyncio.TimerHandle | None = None

    def done(error: BaseException | None, message: Any = None) -> None:
        if future.done():
            return
        if timer is not None:
            timer.cancel()
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(message)
        listener.disconnect()

    def on_error(error: BuoyError) -> None:
        nonlocal last_error
        if isinstance(error, SocketError):
            last_error = error
        else:
            done(error)

    listener.on("error", on_error)
    listener.once("message", lambda message: done(None, message))

    if timeout:
        timer = loop.call_later(
            timeout, lambda: done(ReceiveTimeoutError(last_error))
        )
    if context is not None:
        context._bind(lambda: done(ReceiveCancelledError(last_error)))

    try:
        return await future
    finally:
        # No-ops once settled; tears down when the awaiting task is cancelled
        if timer is not None:
            timer.cancel()
        listener.disconnect()
        await listener.aclose()
