# =============================================================================
# Buoy Python Client -- Synchronous Wrappers
# =============================================================================
#
# Blocking versions of send() and receive() for code without an event loop.
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from ._logging import logger
from .errors import SendConnectionError
from .receiver import receive as _receive
from .sender import build_request, classify_response
from .types import SendResult


def send(
    message: Any,
    service: str,
    channel: str,
    *,
    timeout: float | None = None,
    require_delivery: bool = False,
    client: httpx.Client | None = None,
) -> SendResult:
    """Blocking :func:`buoy_client.sender.send` over ``httpx.Client``."""
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
            response = client.post(
                request.url,
                content=request.body,
                headers=request.headers,
                timeout=request.http_timeout,
            )
        else:
            with httpx.Client() as own_client:
                response = own_client.post(
                    request.url,
                    content=request.body,
                    headers=request.headers,
                    timeout=request.http_timeout,
                )
    except httpx.HTTPError as exc:
        raise SendConnectionError(f"Failed to send message: {exc}") from exc

    return classify_response(response)


def receive(
    service: str,
    channel: str,
    *,
    timeout: float | None = None,
    **listener_options: Any,
) -> Any:
    """Blocking :func:`buoy_client.receiver.receive` on a private event loop.

    Raises:
        RuntimeError: If called from a thread with a running event loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError(
            "sync receive() can not be used inside a running event loop, "
            "await buoy_client.receive() instead"
        )
    return asyncio.run(
        _receive(service, channel, timeout=timeout, **listener_options)
    )
