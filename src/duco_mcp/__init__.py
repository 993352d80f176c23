"""Client library and MCP server for the Duino-Coin ledger protocol."""

from .errors import (
    ApplicationError,
    ConnectError,
    DucoError,
    HandshakeError,
    NotAuthenticatedError,
    NotConnectedError,
    ProtocolError,
    ResolutionError,
    TransportIOError,
)
from .session import Session

__version__ = "0.1.0"
