"""Single-shot ingestion using the browser native-messaging framing.

Each message is a 4-byte unsigned length in native byte order followed by
that many bytes of UTF-8 JSON. The browser starts one process per request,
so this mode reads a single ``tab_update``, records it and writes a single
acknowledgment.
"""

from __future__ import annotations

import logging
import struct
from typing import BinaryIO, Optional

from .relay import RelayAck, RelayHandler

logger = logging.getLogger(__name__)

_LENGTH = struct.Struct("=I")
MAX_MESSAGE_BYTES = 1024 * 1024


class NativeMessageError(ValueError):
    """The framed message on stdin was truncated or oversized."""


def read_message(stream: BinaryIO) -> Optional[bytes]:
    """Read one framed message, or ``None`` on a clean EOF before any data."""
    header = stream.read(_LENGTH.size)
    if not header:
        return None
    if len(header) < _LENGTH.size:
        raise NativeMessageError("truncated length prefix")
    (length,) = _LENGTH.unpack(header)
    if length > MAX_MESSAGE_BYTES:
        raise NativeMessageError(f"message of {length} bytes exceeds limit")
    body = stream.read(length)
    if len(body) < length:
        raise NativeMessageError(f"expected {length} bytes, got {len(body)}")
    return body


def write_response(stream: BinaryIO, ack: RelayAck) -> None:
    payload = ack.to_json().encode("utf-8")
    stream.write(_LENGTH.pack(len(payload)))
    stream.write(payload)
    stream.flush()


def serve_once(handler: RelayHandler, stdin: BinaryIO, stdout: BinaryIO) -> Optional[RelayAck]:
    """Handle at most one request; returns the acknowledgment sent, if any."""
    try:
        body = read_message(stdin)
    except NativeMessageError as exc:
        logger.warning("Rejecting native message: %s", exc)
        ack = RelayAck(success=False, message=f"Parse error: {exc}")
        write_response(stdout, ack)
        return ack
    if body is None:
        logger.debug("No native message on stdin.")
        return None
    ack = handler.handle_payload(body)
    write_response(stdout, ack)
    return ack
