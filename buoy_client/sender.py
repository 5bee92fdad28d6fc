# =============================================================================
# Buoy Python Client -- Send
# =============================================================================
#
# POST <http|https>://<host>/<channel>
#   request:  X-Buoy-Wait: <s>        block until delivered, 408 on miss
#             X-Buoy-Soft-Wait: <s>   wait up to <s>, never fail on miss
#   response: X-Buoy-Delivery: delivered | buffered
# =============================================================================

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

import httpx

from ._logging import logger
from .constants import (
    HEADER_DELIVERY,
    HEADER_SOFT_WAIT,
    HEADER_WAIT,
    HTTP_GONE,
    HTTP_REQUEST_TIMEOUT,
    SEND_DEFAULT_TIMEOUT,
    SEND_TIMEOUT_MARGIN,
)
from .errors import (
    ConfigurationError,
    DeliveryError,
    RequestCancelledError,
    SendConnectionError,
    UnexpectedStatusError,
)
from .types import ChannelAddress, SendResult


@dataclass(frozen=True, slots=True)
class SendRequest:
    """A validated, ready to issue send."""

    url: str
    body: str | bytes
    headers: dict[str, str] = field(default_factory=dict)
    http_timeout: float = SEND_DEFAULT_TIMEOUT


def encode_body(message: Any) -> str | bytes:
    """Strings and bytes go out as-is, anything else as JSON text."""
    if isinstance(message, (str, bytes)):
        return message
    if isinstance(message, (bytearray, memoryview)):
        return bytes(message)
    return json.dumps(message, separators=(",", ":"))


def build_request(
    message: Any,
    service: str,
    channel: str,
    *,
    timeout: float | None = None,
    require_delivery: bool = False,
) -> SendRequest:
    """Validate options and assemble the HTTP request.

    Raises:
        ConfigurationError: On missing or conflicting options.
    """
    address = ChannelAddress(service, channel)
    if timeout is not None and timeout < 0:
        raise ConfigurationError("timeout must not be negative")

    headers: dict[str, str] = {}
    wait = math.ceil(timeout) if timeout else 0
    if require_delivery:
        if not timeout:
            raise ConfigurationError("require_delivery can only be used with timeout")
        headers[HEADER_WAIT] = str(wait)
    elif timeout:
        headers[HEADER_SOFT_WAIT] = str(wait)

    return SendRequest(
        url=address.http_url,
        body=encode_body(message),
        headers=headers,
        http_timeout=max(SEND_DEFAULT_TIMEOUT, wait + SEND_TIMEOUT_MARGIN),
    )


def classify_response(response: httpx.Response) -> SendResult:
    """Map the relay response to a result or raise the matching error."""
    status = response.status_code
    if status // 100 != 2:
        if status == HTTP_REQUEST_TIMEOUT:
            raise DeliveryError()
        if status == HTTP_GONE:
            raise RequestCancelledError()
        raise UnexpectedStatusError(status)

    delivery = response.headers.get(HEADER_DELIVERY)
    if delivery is None:
        # No header means the relay only buffered the message
        return SendResult.BUFFERED
    try:
        return SendResult(delivery)
    except ValueError:
        logger.warning("Unknown %s value %r, assuming buffered", HEADER_DELIVERY, delivery)
        return SendResult.BUFFERED


async def send(
    message: Any,
    service: str,
    channel: str,
    *,
    timeout: float | None = None,
    require_delivery: bool = False,
    client: httpx.AsyncClient | None = None,
) -> SendResult:
    """Send a message to a buoy channel.

    Args:
        message: ``str`` or bytes are sent as-is, anything else is JSON
            encoded.
        service: Relay URL, e.g. ``"https://cb.anchor.link"``.
        channel: Channel to send to.
        timeout: Seconds to wait for a listener to pick the message up.
        require_delivery: Fail unless delivered within *timeout*. Needs
            *timeout*.
        client: HTTP client to use. A temporary one is created if omitted.

    Returns:
        :attr:`SendResult.DELIVERED` if at least one listener received the
        message, :attr:`SendResult.BUFFERED` otherwise.

    Raises:
        ConfigurationError: On invalid options, before any network call.
        DeliveryError: If *require_delivery* is set and nobody received
            the message in time.
        RequestCancelledError: If the relay cancelled the request.
        UnexpectedStatusError: On any other non-2xx response.
        SendConnectionError: If the request could not be made.
    """
    request = build_request(
        message,
        service,
        channel,
        timeout=timeout,
        require_delivery=require_delivery,
    )
    logger.debug("POST %s (%s)", request.url, request.headers or "no wait")

    try:
        if client is not None:
            response = await client.post(
                request.url,
                content=request.body,
                headers=request.headers,
                timeout=request.http_timeout,
            )
        else:
            async with httpx.AsyncClient() as own_client:
                response = await own_client.post(
                    request.url,
                    content=request.body,
                    headers=request.headers,
                    timeout=request.http_timeout,
                )
    except httpx.HTTPError as exc:
        raise SendConnectionError(f"Failed to send message: {exc}") from exc

    return classify_response(response)
