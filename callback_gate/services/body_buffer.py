"""
Request body buffering for signed callbacks.

The ASGI receive channel can only be drained once. ``read_body`` drains it
into an owned buffer so the same bytes can be signed over here and read
again by the business handler downstream.
"""

import io
import logging
from typing import Optional

from starlette.types import Message, Receive

from callback_gate.exceptions import BodyReadError, PayloadTooLargeError

logger = logging.getLogger(__name__)

BODY_ENCODING = "utf-8"


class BufferedRequest:
    """Owns a read-only copy of a request body and replays it on demand."""

    def __init__(self, body: bytes, receive: Optional[Receive] = None):
        """
        Args:
            body: The complete request body
            receive: Original ASGI receive channel, used after the replayed
                body has been delivered so disconnects still propagate
        """
        self._body = bytes(body)
        self._receive = receive

    @property
    def body(self) -> bytes:
        """Raw body bytes."""
        return self._body

    def text(self) -> str:
        """Body decoded as UTF-8; undecodable bytes are replaced."""
        return self._body.decode(BODY_ENCODING, errors="replace")

    def stream(self) -> io.BytesIO:
        """Return a fresh stream positioned at the start of the body."""
        return io.BytesIO(self._body)

    def receive(self) -> Receive:
        """
        Build an ASGI receive callable that replays the body.

        Each call returns an independent channel: the first message carries
        the whole body, later messages come from the original transport.
        """
        delivered = False
        body = self._body
        original = self._receive

        async def replay() -> Message:
            nonlocal delivered
            if not delivered:
                delivered = True
                return {"type": "http.request", "body": body, "more_body": False}
            if original is None:
                return {"type": "http.disconnect"}
            return await original()

        return replay


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length header value, ignoring malformed input."""
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        logger.debug("Ignoring malformed Content-Length", extra={"content_length": value})
        return None
    return length if length >= 0 else None


async def read_body(
    receive: Receive,
    max_body_bytes: int,
    content_length: Optional[int] = None,
) -> BufferedRequest:
    """
    Read the complete request body exactly once.

    Args:
        receive: ASGI receive channel of the incoming request
        max_body_bytes: Largest body that may be buffered
        content_length: Declared body length, checked before reading

    Returns:
        BufferedRequest owning the body

    Raises:
        PayloadTooLargeError: Declared or streamed size exceeds max_body_bytes
        BodyReadError: Client disconnected or the transport failed mid-read
    """
    if content_length is not None and content_length > max_body_bytes:
        logger.warning(
            "Rejecting callback body before read",
            extra={"content_length": content_length, "max_body_bytes": max_body_bytes},
        )
        raise PayloadTooLargeError(max_body_bytes)

    chunks: list[bytes] = []
    size = 0
    more_body = True
    while more_body:
        try:
            message = await receive()
        except OSError as e:
            logger.error(
                "Failed to read request body",
                extra={"bytes_read": size, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise BodyReadError() from e

        if message["type"] == "http.disconnect":
            logger.warning("Client disconnected while sending body", extra={"bytes_read": size})
            raise BodyReadError("Client disconnected while sending body")
        if message["type"] != "http.request":
            raise BodyReadError(f"Unexpected ASGI message: {message['type']}")

        chunk = message.get("body", b"")
        if chunk:
            size += len(chunk)
            if size > max_body_bytes:
                logger.warning(
                    "Callback body exceeded limit while reading",
                    extra={"bytes_read": size, "max_body_bytes": max_body_bytes},
                )
                raise PayloadTooLargeError(max_body_bytes)
            chunks.append(chunk)
        more_body = message.get("more_body", False)

    return BufferedRequest(b"".join(chunks), receive)
