"""
Content-Length message framing.

Each message on the wire is::

    Content-Length: <N>\\r\\n\\r\\n<N bytes of UTF-8 JSON>

Only the Content-Length header is interpreted. Other headers are ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from dapclient.lib import oj
from dapclient.protocol.errors import FramingError

logger = logging.getLogger(__name__)

TWO_CRLF = b"\r\n\r\n"
CONTENT_LENGTH_HEADER = "Content-Length"
HEADER_MARKER = b"Content-Length:"

FramingErrorHandler = Callable[[FramingError], None]


def encode_message(message: dict[str, Any]) -> bytes:
    """Serialize a message dict into a framed wire message."""
    body = oj.dumps(message)
    header = f"{CONTENT_LENGTH_HEADER}: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


def parse_content_length(header: str) -> int | None:
    """
    Extract the Content-Length value from a header block.

    Header lines are split on CRLF and matched case-sensitively on the
    exact header name, with any number of spaces after the colon.

    Returns:
        The length, or None if the header is missing.

    Raises:
        FramingError: If the value is not a non-negative decimal integer.
    """
    length: int | None = None
    for line in header.split("\r\n"):
        name, sep, value = line.partition(":")
        if not sep or name != CONTENT_LENGTH_HEADER:
            continue
        value = value.strip(" ")
        if not value.isdigit() or not value.isascii():
            raise FramingError(f"Invalid {CONTENT_LENGTH_HEADER} value: {value!r}")
        length = int(value)
    return length


class StreamDecoder:
    """
    Incremental decoder turning an arbitrary byte stream into message bodies.

    Holds the per-connection decode state: the buffered bytes and the
    length of the body currently being waited for. A message may span
    several chunks and a chunk may hold several messages.

    A header block without a usable Content-Length is reported as a
    FramingError. The decoder then skips ahead to the next
    ``Content-Length:`` marker, dropping the bad block and any body bytes
    that followed it, so a misbehaving peer cannot stall the decoder.
    """

    def __init__(self, on_error: FramingErrorHandler | None = None):
        self._buffer = bytearray()
        self._content_length: int | None = None
        self._resyncing = False
        self._on_error = on_error

    @property
    def buffered(self) -> int:
        """Number of bytes held that do not yet form a complete message."""
        return len(self._buffer)

    @property
    def expected_length(self) -> int | None:
        """Body length being waited for, or None while reading headers."""
        return self._content_length

    def feed(self, data: bytes) -> list[bytes]:
        """
        Append ``data`` and extract every complete message body.

        Empty bodies are dropped.

        Returns:
            Raw JSON bodies in stream order.
        """
        self._buffer += data
        bodies: list[bytes] = []

        while True:
            if self._content_length is None:
                if self._resyncing and not self._skip_to_marker(0):
                    break
                idx = self._buffer.find(TWO_CRLF)
                if idx == -1:
                    break
                header = self._buffer[:idx].decode("ascii", errors="replace")
                try:
                    length = parse_content_length(header)
                except FramingError as e:
                    self._report(e)
                    length = None
                else:
                    if length is None:
                        self._report(
                            FramingError(f"Header block without {CONTENT_LENGTH_HEADER}: {header!r}")
                        )
                if length is None:
                    # the bad block itself may start with a marker
                    self._skip_to_marker(1)
                    continue
                del self._buffer[: idx + len(TWO_CRLF)]
                self._content_length = length
            else:
                if len(self._buffer) < self._content_length:
                    break
                body = bytes(self._buffer[: self._content_length])
                del self._buffer[: self._content_length]
                self._content_length = None
                if body:
                    bodies.append(body)

        return bodies

    def reset(self) -> None:
        """
        Drop all buffered state.

        Reports a FramingError if a partial message was pending.
        """
        if self._buffer or self._content_length is not None:
            self._report(
                FramingError(
                    f"Stream ended with {len(self._buffer)} unprocessed bytes",
                    data=bytes(self._buffer),
                )
            )
        self._buffer = bytearray()
        self._content_length = None
        self._resyncing = False

    def _skip_to_marker(self, start: int) -> bool:
        """
        Drop bytes up to the next ``Content-Length:`` at or after ``start``.

        Returns:
            False if no marker is buffered yet. The decoder keeps only a
            tail short enough to be the start of a split marker and stays
            in resync mode until a marker arrives.
        """
        idx = self._buffer.find(HEADER_MARKER, start)
        if idx == -1:
            keep = len(HEADER_MARKER) - 1
            if len(self._buffer) > keep:
                del self._buffer[: len(self._buffer) - keep]
            self._resyncing = True
            return False
        del self._buffer[:idx]
        self._resyncing = False
        return True

    def _report(self, error: FramingError) -> None:
        logger.warning(f"Framing error: {error}")
        if self._on_error is not None:
            self._on_error(error)
