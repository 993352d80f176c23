"""Response framing: reading whole responses off the transport.

Responses carry no length field and no terminator. How much to read is
decided per command:

- Greeting: a single receive of up to 9 bytes right after connecting.
- Single-shot: a single receive of up to 255 bytes holds the whole reply.
- Streaming: transaction history may span several receives. The first
  window decides: if it came back short, that was all of it; if it filled
  all 255 bytes, keep reading windows until the server stops sending
  (a receive returns nothing).

The short-first-window rule is inferred, not signalled, and a reply that
happens to be exactly 255 bytes long is only complete once the peer
closes. The server relies on it, so it is kept as is.
"""

from __future__ import annotations

import logging

from ..errors import HandshakeError, TransportIOError
from ..transport.tcp_connection import Transport

logger = logging.getLogger(__name__)

READ_WINDOW = 255
GROWTH_STEP = 256
GREETING_SIZE = 9


class ResponseBuffer:
    """Growable buffer that accumulates response chunks in order.

    Storage is a plain ``bytearray``. :attr:`capacity` only tracks the
    allocation steps other clients of this protocol take: it starts at
    one byte (room for a terminator) and grows in ``GROWTH_STEP``
    increments when the next chunk would not fit. Nothing reads it while
    reading a response. :meth:`getvalue` returns exactly the bytes appended.
    """

    def __init__(self) -> None:
        self._data = bytearray()
        self._capacity = 1

    def __len__(self) -> int:
        return len(self._data)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, chunk: bytes) -> None:
        while self._capacity - len(self._data) < len(chunk):
            self._capacity += GROWTH_STEP
        self._data += chunk

    def getvalue(self) -> bytes:
        return bytes(self._data)


def read_greeting(transport: Transport) -> str:
    """Read the server's protocol version greeting.

    Raises:
        HandshakeError: If the read fails or the server sends nothing.
    """
    try:
        data = transport.receive(GREETING_SIZE)
    except TransportIOError as e:
        raise HandshakeError(f"Couldn't read server version: {e}") from e
    if not data:
        raise HandshakeError("Server closed the connection before sending its version")
    version = data.decode("utf-8", errors="replace").rstrip("\x00").strip()
    logger.debug("Server greeting: %r", version)
    return version


def read_single(transport: Transport) -> bytes:
    """Read a response that fits in one window.

    Raises:
        TransportIOError: If the read fails or the server closed the connection.
    """
    data = transport.receive(READ_WINDOW)
    if not data:
        raise TransportIOError("Server closed the connection without responding")
    logger.debug("Read %d byte response", len(data))
    return data


def read_stream(transport: Transport) -> bytes:
    """Read a response that may span several windows.

    Raises:
        TransportIOError: If any read fails.
    """
    buffer = ResponseBuffer()
    chunk = transport.receive(READ_WINDOW)
    buffer.append(chunk)

    if len(chunk) == READ_WINDOW:
        while True:
            chunk = transport.receive(READ_WINDOW)
            if not chunk:
                break
            buffer.append(chunk)

    logger.debug("Read %d byte streamed response", len(buffer))
    return buffer.getvalue()
