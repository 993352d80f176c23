"""TCP connection to the ledger pool server.

The transport is a plain blocking byte stream. Reads block until data
arrives, the peer closes, or (when a timeout is configured) the deadline
expires.
"""

from __future__ import annotations

import logging
import socket
from typing import Protocol

from ..config import DEFAULT_POOL_ADDR, DEFAULT_POOL_PORT
from ..errors import ConnectError, ResolutionError, TransportIOError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """What the framing layer needs from a connection."""

    def send(self, data: bytes | bytearray) -> int: ...

    def receive(self, max_len: int) -> bytes: ...

    def close(self) -> None: ...


class TCPTransport:
    """Manages the socket to the pool server.

    Usage::

        transport = TCPTransport("51.15.127.80", 2811)
        transport.open()
        transport.send(frame)
        reply = transport.receive(255)
        transport.close()
    """

    def __init__(
        self,
        address: str = DEFAULT_POOL_ADDR,
        port: int = DEFAULT_POOL_PORT,
        timeout: float | None = None,
    ) -> None:
        self._address = address
        self._port = port
        self._timeout = timeout
        self._sock: socket.socket | None = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def port(self) -> int:
        return self._port

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def __enter__(self) -> TCPTransport:
        if not self.connected:
            self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _resolve(self) -> list[tuple]:
        try:
            infos = socket.getaddrinfo(
                self._address, self._port, type=socket.SOCK_STREAM
            )
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionError(
                f"Couldn't resolve {self._address}: {getattr(e, 'strerror', None) or e}"
            ) from e
        if not infos:
            raise ResolutionError(f"No address found for {self._address}")
        return infos

    def open(self) -> None:
        """Resolve the address and connect.

        Raises:
            ResolutionError: If the address does not resolve.
            ConnectError: If no resolved address accepts the connection.
        """
        last_error: OSError | None = None
        for family, socktype, proto, _, sockaddr in self._resolve():
            try:
                sock = socket.socket(family, socktype, proto)
            except OSError as e:
                last_error = e
                logger.debug("Couldn't create socket for %s: %s", sockaddr, e)
                continue
            try:
                sock.settimeout(self._timeout)
                sock.connect(sockaddr)
            except OSError as e:
                sock.close()
                last_error = e
                logger.debug("Connect to %s failed: %s", sockaddr, e)
                continue
            self._sock = sock
            logger.info("Connected to %s:%d", self._address, self._port)
            return

        reason = (last_error.strerror or str(last_error)) if last_error else "unknown error"
        raise ConnectError(
            f"Couldn't connect to the pool server {self._address}:{self._port}: {reason}"
        ) from last_error

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportIOError("Transport is not open")
        return self._sock

    def send(self, data: bytes | bytearray) -> int:
        """Write all of ``data``; returns the number of bytes written."""
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as e:
            raise TransportIOError(f"Couldn't send request: {e}") from e
        return len(data)

    def receive(self, max_len: int) -> bytes:
        """Read up to ``max_len`` bytes; ``b""`` means the peer closed."""
        sock = self._require_socket()
        try:
            return sock.recv(max_len)
        except OSError as e:
            raise TransportIOError(f"Couldn't read response: {e}") from e

    def close(self) -> None:
        """Shut down both directions and close the socket. Safe to call twice."""
        if self._sock is None:
            return

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Already reset by the peer
            logger.debug("Shutdown failed: %s", e)
        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected from %s:%d", self._address, self._port)
