"""Stateful session with the ledger pool server.

A :class:`Session` wraps one live connection and exposes the account
operations. Every operation sends one frame and reads one response:

    build frame -> send -> wipe frame if it held a password
    -> read reply -> parse -> typed result or exception

Failures are raised as :class:`~duco_mcp.errors.DucoError` subclasses and
the message is kept in :attr:`Session.last_error` for later reporting.

A session is not thread-safe: its last-error state is shared by all
operations, so callers must run one operation at a time per session.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterator

from .config import DEFAULT_POOL_ADDR, DEFAULT_POOL_PORT
from .errors import DucoError, NotAuthenticatedError, NotConnectedError
from .models.status import SessionStatus
from .protocol.commands import (
    CREDENTIAL_COMMANDS,
    Command,
    build_change_password,
    build_get_balance,
    build_get_transactions,
    build_login,
    build_register,
    build_send_balance,
    wipe_frame,
)
from .protocol.framing import read_greeting, read_single, read_stream
from .protocol.parser import (
    decode_response,
    parse_balance,
    parse_transactions,
    raise_for_error,
)
from .transport.tcp_connection import TCPTransport, Transport

logger = logging.getLogger(__name__)


class Session:
    """An open connection to the pool server, optionally logged in.

    Usage::

        with Session.connect("51.15.127.80", 2811) as session:
            session.login("alice", "secret")
            balance = session.get_balance()
    """

    def __init__(
        self,
        transport: Transport,
        version: str = "",
        address: str = "",
        port: int = 0,
    ) -> None:
        self._transport: Transport | None = transport
        self._version = version
        self._address = address
        self._port = port
        self._username: str | None = None
        self._last_error = ""

    @classmethod
    def connect(
        cls,
        address: str = DEFAULT_POOL_ADDR,
        port: int = DEFAULT_POOL_PORT,
        timeout: float | None = None,
    ) -> Session:
        """Connect to the server and read its version greeting.

        Raises:
            ResolutionError: If ``address`` does not resolve.
            ConnectError: If the connection is refused or unreachable.
            HandshakeError: If the greeting cannot be read.
        """
        transport = TCPTransport(address, port, timeout=timeout)
        transport.open()
        try:
            version = read_greeting(transport)
        except BaseException:
            transport.close()
            raise
        logger.info("Server %s:%d speaks version %s", address, port, version)
        return cls(transport, version=version, address=address, port=port)

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    @property
    def connected(self) -> bool:
        return self._transport is not None

    @property
    def version(self) -> str:
        return self._version

    @property
    def username(self) -> str | None:
        return self._username

    @property
    def authenticated(self) -> bool:
        return self._username is not None

    @property
    def last_error(self) -> str:
        return self._last_error

    def disconnect(self) -> None:
        """Close the connection. The session cannot be used afterwards."""
        if self._transport is None:
            return
        transport, self._transport = self._transport, None
        transport.close()

    def status(self) -> SessionStatus:
        return SessionStatus(
            connected=self.connected,
            address=self._address,
            port=self._port,
            version=self._version,
            username=self._username,
            last_error=self._last_error,
        )

    def report_error(self, msg: str | None = None, stream: IO[str] | None = None) -> None:
        """Write the last error to ``stream`` (stderr by default), prefixed by ``msg``."""
        stream = sys.stderr if stream is None else stream
        if msg:
            print(f"{msg}: {self._last_error}", file=stream)
        else:
            print(self._last_error, file=stream)

    # ─── internals ────────────────────────────────────────────────────

    @contextmanager
    def _recording_errors(self) -> Iterator[None]:
        try:
            yield
        except DucoError as e:
            self._last_error = str(e)
            raise

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise NotConnectedError("Session is disconnected")
        return self._transport

    def _exchange(
        self,
        command: Command,
        frame: bytearray,
        *,
        streaming: bool = False,
    ) -> bytes:
        transport = self._require_transport()
        logger.debug("Sending %s frame (%d bytes)", command.value, len(frame))
        try:
            transport.send(frame)
        finally:
            if command in CREDENTIAL_COMMANDS:
                wipe_frame(frame)
        if streaming:
            return read_stream(transport)
        return read_single(transport)

    # ─── account operations ───────────────────────────────────────────

    def register(self, username: str, password: str, email: str) -> None:
        """Create an account and log in as it.

        Raises:
            ApplicationError: If the server refuses the registration.
        """
        frame = build_register(username, password, email)
        with self._recording_errors():
            raw = self._exchange(Command.REGISTER, frame)
            raise_for_error(decode_response(raw))
        self._username = username
        logger.info("Registered user %s", username)

    def login(self, username: str, password: str) -> None:
        """Log in; the session remembers ``username`` on success.

        Raises:
            ApplicationError: If the credentials are rejected.
        """
        frame = build_login(username, password)
        with self._recording_errors():
            raw = self._exchange(Command.LOGIN, frame)
            raise_for_error(decode_response(raw))
        self._username = username
        logger.info("Logged in as %s", username)

    def change_password(self, old_password: str, new_password: str) -> None:
        frame = build_change_password(old_password, new_password)
        with self._recording_errors():
            raw = self._exchange(Command.CHANGE_PASSWORD, frame)
            raise_for_error(decode_response(raw))

    def get_balance(self) -> float:
        """Return the balance of the logged-in user.

        Raises:
            ApplicationError: If the server replies ``NO``.
            ProtocolError: If the reply is not a number.
        """
        with self._recording_errors():
            raw = self._exchange(Command.BALANCE, build_get_balance())
            return parse_balance(raw)

    def send_balance(self, recipient: str, amount: float) -> None:
        """Transfer ``amount`` from the logged-in user to ``recipient``."""
        frame = build_send_balance(recipient, amount)
        with self._recording_errors():
            raw = self._exchange(Command.SEND, frame)
            raise_for_error(decode_response(raw))

    def get_transactions(self, count: int) -> str:
        """Return the last ``count`` transactions of the logged-in user as JSON text."""
        with self._recording_errors():
            self._require_transport()
            if self._username is None:
                raise NotAuthenticatedError("Log in before querying your transactions")
        return self.get_transactions_from(self._username, count)

    def get_transactions_from(self, username: str, count: int) -> str:
        """Return the last ``count`` transactions of ``username`` as JSON text."""
        frame = build_get_transactions(username, count)
        with self._recording_errors():
            raw = self._exchange(Command.TRANSACTIONS, frame, streaming=True)
            return parse_transactions(raw)

