"""Response parsing for server replies."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Union

from ..errors import ApplicationError, ProtocolError
from .commands import DELIMITER

STATUS_OK = "OK"
STATUS_NO = "NO"

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


@dataclass
class OkResponse:
    """Accepted request, with any fields that followed ``OK``."""

    fields: list[str] = field(default_factory=list)


@dataclass
class ErrResponse:
    """Rejected request; ``message`` is everything after ``NO,``."""

    message: str = ""


Response = Union[OkResponse, ErrResponse]


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\x00")


def _error_message(text: str) -> str:
    # "NO,<message>": the message may itself contain delimiters
    _, _, message = text.partition(DELIMITER)
    return message


def decode_response(raw: bytes) -> Response:
    """Split a reply into its status token and payload.

    Raises:
        ProtocolError: If the status is neither ``OK`` nor ``NO``.
    """
    text = _text(raw)
    status, *rest = text.split(DELIMITER)
    if status.startswith(STATUS_OK):
        return OkResponse(fields=rest)
    if status.startswith(STATUS_NO):
        return ErrResponse(message=DELIMITER.join(rest))
    raise ProtocolError(f"Unexpected response status: {status[:32]!r}")


def raise_for_error(response: Response) -> OkResponse:
    """Return ``response`` if it is OK, raise :class:`ApplicationError` otherwise."""
    if isinstance(response, ErrResponse):
        raise ApplicationError(response.message)
    return response


def parse_balance(raw: bytes) -> float:
    """Parse a BALA reply, which is a bare decimal number.

    Raises:
        ApplicationError: If the server replied ``NO``.
        ProtocolError: If the reply is not a number.
    """
    text = _text(raw).strip()
    if text.startswith(STATUS_NO):
        raise ApplicationError(_error_message(text))
    if not _DECIMAL.fullmatch(text):
        raise ProtocolError(f"Balance is not a number: {text[:32]!r}")
    balance = float(text)
    if not math.isfinite(balance):
        raise ProtocolError(f"Balance is out of range: {text[:32]!r}")
    return balance


def parse_transactions(raw: bytes) -> str:
    """Parse a GTXL reply: JSON text, handed back unparsed.

    Raises:
        ApplicationError: If the server replied ``NO``.
    """
    text = _text(raw)
    if text.startswith(STATUS_NO):
        raise ApplicationError(_error_message(text))
    return text
