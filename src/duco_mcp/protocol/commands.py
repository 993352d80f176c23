"""Command codes and request frame builders.

A request frame is the command code followed by its fields, joined with
``,``. There is no length prefix, no terminator and no escaping, so no
field may contain the delimiter::

    LOGI,alice,secret
    SEND,-,bob,5.000000

Frames are returned as ``bytearray`` so that a frame carrying a password
can be wiped with :func:`wipe_frame` once it has been sent.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

DELIMITER = ","
SENDER_PLACEHOLDER = "-"


class Command(str, Enum):
    """Four-letter command mnemonics."""

    REGISTER = "REGI"
    LOGIN = "LOGI"
    CHANGE_PASSWORD = "CHGP"
    BALANCE = "BALA"
    SEND = "SEND"
    TRANSACTIONS = "GTXL"


# Commands whose frames carry a plain-text password
CREDENTIAL_COMMANDS = frozenset(
    {Command.REGISTER, Command.LOGIN, Command.CHANGE_PASSWORD}
)


def encode_frame(parts: Iterable[str]) -> bytearray:
    """Join ``parts`` with the delimiter into a wire frame.

    Raises:
        ValueError: If a field contains the delimiter or there are no parts.
    """
    frame = bytearray()
    for i, part in enumerate(parts):
        if DELIMITER in part:
            raise ValueError(f"Frame field {i} must not contain {DELIMITER!r}")
        if i:
            frame += DELIMITER.encode()
        frame += part.encode("utf-8")
    if not frame:
        raise ValueError("A frame needs at least a command code")
    return frame


def wipe_frame(frame: bytearray) -> None:
    """Overwrite ``frame`` with zero bytes in place."""
    frame[:] = bytes(len(frame))


def format_amount(amount: float) -> str:
    """Format an amount as fixed-point text with six fractional digits."""
    return f"{float(amount):f}"


def _require(name: str, value: str) -> str:
    if not value:
        raise ValueError(f"{name} must not be empty")
    return value


def build_command(command: Command, *fields: str) -> bytearray:
    """Build a frame for ``command`` with its fields."""
    return encode_frame([command.value, *fields])


def build_register(username: str, password: str, email: str) -> bytearray:
    """Build a REGI frame."""
    return build_command(
        Command.REGISTER,
        _require("username", username),
        _require("password", password),
        _require("email", email),
    )


def build_login(username: str, password: str) -> bytearray:
    """Build a LOGI frame."""
    return build_command(
        Command.LOGIN,
        _require("username", username),
        _require("password", password),
    )


def build_change_password(old_password: str, new_password: str) -> bytearray:
    """Build a CHGP frame."""
    return build_command(
        Command.CHANGE_PASSWORD,
        _require("old password", old_password),
        _require("new password", new_password),
    )


def build_get_balance() -> bytearray:
    """Build a BALA frame (no fields)."""
    return build_command(Command.BALANCE)


def build_send_balance(recipient: str, amount: float) -> bytearray:
    """Build a SEND frame.

    The sender is always the ``-`` placeholder; the server takes the
    sender from the logged-in session.
    """
    return build_command(
        Command.SEND,
        SENDER_PLACEHOLDER,
        _require("recipient", recipient),
        format_amount(amount),
    )


def build_get_transactions(username: str, count: int) -> bytearray:
    """Build a GTXL frame asking for the last ``count`` transactions of ``username``."""
    if count < 0:
        raise ValueError(f"Transaction count must be >= 0, got {count}")
    return build_command(
        Command.TRANSACTIONS,
        _require("username", username),
        str(int(count)),
    )
