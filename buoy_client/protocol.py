# =============================================================================
# Buoy Python Client -- Framing Codec
# =============================================================================
#
# Incoming frames (server -> client):
#   Heartbeat:  42 42 01 <seq>   answered with 42 42 02 <seq>, not a payload
#   Payload:    anything else, decoded per the listener encoding
#
# Text frames are handled as their UTF-8 bytes so both frame kinds share
# the same path.
# =============================================================================

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .constants import HEARTBEAT_ACK_MAGIC, HEARTBEAT_FRAME_SIZE, HEARTBEAT_MAGIC
from .errors import MessageError
from .types import ListenerEncoding

try:
    import orjson

    def _json_loads(data: str) -> Any:
        return orjson.loads(data)

except ImportError:

    def _json_loads(data: str) -> Any:
        return json.loads(data)


@dataclass(frozen=True, slots=True)
class DecodedFrame:
    """Outcome of feeding one wire frame through the codec.

    Attributes:
        ack: Control frame to write back on the same connection, if any.
        payload: Decoded message, only meaningful when ``has_payload``.
        has_payload: Whether the frame carried a message for subscribers.
        error: Decode failure for the payload part of the frame.
    """

    ack: bytes | None = None
    payload: Any = None
    has_payload: bool = False
    error: MessageError | None = None


def to_bytes(data: str | bytes | bytearray | memoryview) -> bytes:
    """Frame data as bytes, text is UTF-8 encoded."""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def heartbeat_ack(frame: bytes) -> bytes | None:
    """Return the ack for a heartbeat frame, or ``None`` for payload frames."""
    if frame[: len(HEARTBEAT_MAGIC)] != HEARTBEAT_MAGIC:
        return None
    seq = frame[3] if len(frame) > 3 else 0
    return HEARTBEAT_ACK_MAGIC + bytes([seq])


class FrameCodec:
    """Stateless decoder for one listener encoding.

    Args:
        encoding: Decoding applied to payload frames.
    """

    def __init__(self, encoding: ListenerEncoding = ListenerEncoding.TEXT) -> None:
        self._encoding = ListenerEncoding(encoding)

    @property
    def encoding(self) -> ListenerEncoding:
        return self._encoding

    def feed(self, data: str | bytes | bytearray | memoryview) -> DecodedFrame:
        """Classify a raw frame and decode its payload.

        Never raises for bad payloads: decode failures are returned in
        ``DecodedFrame.error`` so the connection can keep going.
        """
        frame = to_bytes(data)
        ack = heartbeat_ack(frame)
        if ack is not None:
            # Anything after the 4-byte header is a regular payload
            frame = frame[HEARTBEAT_FRAME_SIZE:]
            if not frame:
                return DecodedFrame(ack=ack)
        try:
            payload = self.decode(frame)
        except MessageError as exc:
            return DecodedFrame(ack=ack, error=exc)
        return DecodedFrame(ack=ack, payload=payload, has_payload=True)

    def decode(self, frame: bytes) -> Any:
        """Decode a payload frame according to the encoding."""
        if self._encoding is ListenerEncoding.BINARY:
            return frame
        text = frame.decode("utf-8", errors="replace")
        if self._encoding is ListenerEncoding.TEXT:
            return text
        try:
            return _json_loads(text)
        except ValueError as exc:
            raise MessageError("Unable to decode JSON", exc) from exc
