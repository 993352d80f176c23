"""MCP server entry point for the Duino-Coin ledger.

Exposes account tools, a session status resource, and a prompt via the
Model Context Protocol using the official Python MCP SDK with stdio
transport. Each tool is a thin wrapper over :class:`~duco_mcp.session.Session`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import ClientSettings
from .errors import DucoError
from .session import Session

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "duco-ledger",
    instructions="MCP server for Duino-Coin ledger accounts (balance, transfers, history)",
)

# Global session state
_session: Session | None = None


def _get_session() -> Session:
    """Get the active session, raising if not connected."""
    if _session is None or not _session.connected:
        raise RuntimeError(
            "Not connected to the pool server. Use the 'connect' tool first."
        )
    return _session


def _error(e: DucoError) -> dict[str, Any]:
    return {"error": str(e), "kind": type(e).__name__}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(address: str | None = None, port: int | None = None) -> dict[str, Any]:
    """Connect to the Duino-Coin pool server.

    Falls back to DUCO_POOL_ADDR / DUCO_POOL_PORT from the environment,
    then to the public pool, when address or port is omitted.

    Args:
        address: Pool server host name or IP.
        port: Pool server TCP port.
    """
    global _session
    if _session is not None and _session.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "version": _session.version,
        }

    try:
        settings = ClientSettings.from_env()
    except ValueError as e:
        return {"error": str(e), "kind": "ValueError"}
    address = address or settings.address
    port = port or settings.port

    try:
        _session = Session.connect(address, port, timeout=settings.timeout)
    except DucoError as e:
        logger.warning("Connect to %s:%d failed: %s", address, port, e)
        return _error(e)

    return {
        "connected": True,
        "address": address,
        "port": port,
        "version": _session.version,
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the pool server."""
    global _session
    if _session is None:
        return {"disconnected": True}
    _session.disconnect()
    _session = None
    return {"disconnected": True}


# ─── ACCOUNT TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def register(username: str, password: str, email: str) -> dict[str, Any]:
    """Register a new account and log in as it.

    Args:
        username: New account name.
        password: New account password.
        email: Contact e-mail for the account.
    """
    session = _get_session()
    try:
        session.register(username, password, email)
    except DucoError as e:
        return _error(e)
    return {"registered": True, "username": username}


@mcp.tool()
def login(username: str, password: str) -> dict[str, Any]:
    """Log in to an existing account.

    Args:
        username: Account name.
        password: Account password.
    """
    session = _get_session()
    try:
        session.login(username, password)
    except DucoError as e:
        return _error(e)
    return {"logged_in": True, "username": username}


@mcp.tool()
def change_password(old_password: str, new_password: str) -> dict[str, Any]:
    """Change the password of the logged-in account."""
    session = _get_session()
    try:
        session.change_password(old_password, new_password)
    except DucoError as e:
        return _error(e)
    return {"changed": True}


@mcp.tool()
def get_balance() -> dict[str, Any]:
    """Get the balance of the logged-in account."""
    session = _get_session()
    try:
        balance = session.get_balance()
    except DucoError as e:
        return _error(e)
    return {"username": session.username, "balance": balance}


@mcp.tool()
def send_balance(recipient: str, amount: float) -> dict[str, Any]:
    """Send coins from the logged-in account to another account.

    Args:
        recipient: Receiving account name.
        amount: Amount to transfer.
    """
    if amount <= 0:
        return {"error": "Amount must be positive"}

    session = _get_session()
    try:
        session.send_balance(recipient, amount)
    except DucoError as e:
        return _error(e)
    return {"sent": True, "recipient": recipient, "amount": amount}


@mcp.tool()
def get_transactions(count: int = 10, username: str | None = None) -> dict[str, Any]:
    """List recent transactions.

    Args:
        count: Number of transactions to fetch (default 10).
        username: Account to query; defaults to the logged-in account.
    """
    if count < 0:
        return {"error": "Count must be >= 0"}

    session = _get_session()
    try:
        if username:
            raw = session.get_transactions_from(username, count)
        else:
            raw = session.get_transactions(count)
    except DucoError as e:
        return _error(e)

    try:
        transactions = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Transaction history is not valid JSON, returning raw text")
        return {"raw": raw}
    return {"transactions": transactions}


@mcp.tool()
def get_last_error() -> dict[str, str]:
    """Return the most recent error reported by the pool server."""
    if _session is None:
        return {"last_error": ""}
    return {"last_error": _session.last_error}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("duco://session/status")
def resource_session_status() -> str:
    """Connection and login state of the current session."""
    if _session is None:
        return json.dumps({"connected": False})
    return json.dumps(_session.status().to_dict())


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def review_transactions(count: int = 20) -> str:
    """Guide the AI through a review of recent account activity.

    Args:
        count: How many transactions to review.
    """
    return f"""Fetch the last {count} transactions using the get_transactions tool
and the current balance using get_balance.
Summarize:
- Total sent and received
- The most frequent counterparties
- Any unusually large transfers

Do not send any coins unless explicitly asked."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
