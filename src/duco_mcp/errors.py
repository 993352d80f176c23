"""Exception hierarchy for the ledger client.

Every failure of the protocol layer is raised as a subclass of
:class:`DucoError` so callers can tell a rejected request apart from a
legitimate result (a zero balance is a balance, not an error).
"""

from __future__ import annotations


class DucoError(Exception):
    """Base class for all client errors."""


class ResolutionError(DucoError):
    """The server address could not be resolved."""


class ConnectError(DucoError):
    """The TCP connection to the server could not be established."""


class HandshakeError(DucoError):
    """The server did not send its version greeting."""


class TransportIOError(DucoError):
    """Sending to or receiving from the server failed."""


class ProtocolError(DucoError):
    """The server sent a response with an unexpected shape."""


class ApplicationError(DucoError):
    """The server rejected the request with ``NO,<message>``."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotConnectedError(DucoError):
    """An operation was attempted on a disconnected session."""


class NotAuthenticatedError(DucoError):
    """An operation needs a logged-in user but none is set."""
