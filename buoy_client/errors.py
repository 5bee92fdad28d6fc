# =============================================================================
# Buoy Python Client -- Error Types
# =============================================================================

from __future__ import annotations


class BuoyError(Exception):
    """Base exception for all buoy client errors."""


class ConfigurationError(BuoyError, ValueError):
    """Invalid or missing options, raised at call/construction time."""


class SocketError(BuoyError):
    """A network error on the listener socket. Can safely be ignored.

    The session keeps reconnecting on its own; this is only reported so
    callers can observe connectivity problems.

    Attributes:
        event: The underlying exception raised by the transport.
    """

    code = "E_NETWORK"

    def __init__(self, event: BaseException | None = None) -> None:
        self.event = event
        message = "Socket error"
        if event is not None:
            message = f"Socket error: {event}"
        super().__init__(message)


class MessageError(BuoyError):
    """A message failed to decode, or a receive was cut short.

    Non-recoverable for the message in question.

    Attributes:
        reason: Short human readable reason.
        underlying_error: The error that led to this one, if any.
    """

    code = "E_MESSAGE"

    def __init__(
        self, reason: str, underlying_error: BaseException | None = None
    ) -> None:
        self.reason = reason
        self.underlying_error = underlying_error
        super().__init__(reason)


class ReceiveTimeoutError(MessageError):
    """No message arrived before the receive timeout."""

    def __init__(self, underlying_error: BaseException | None = None) -> None:
        super().__init__("Timed out", underlying_error)


class ReceiveCancelledError(MessageError):
    """The receive was cancelled through its context."""

    def __init__(self, underlying_error: BaseException | None = None) -> None:
        super().__init__("Cancelled", underlying_error)


class SendError(BuoyError):
    """Base class for send failures."""


class DeliveryError(SendError):
    """The message was not delivered within the requested wait (HTTP 408)."""

    def __init__(self) -> None:
        super().__init__("Unable to deliver message")


class RequestCancelledError(SendError):
    """The relay cancelled or expired the request (HTTP 410)."""

    def __init__(self) -> None:
        super().__init__("Request cancelled")


class UnexpectedStatusError(SendError):
    """The relay answered with a status the client does not understand."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Unexpected status code {status_code}")


class SendConnectionError(SendError):
    """The HTTP request could not be completed."""
