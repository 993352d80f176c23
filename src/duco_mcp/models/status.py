"""Session status snapshot."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class SessionStatus:
    """Point-in-time view of a session, safe to serialize."""

    connected: bool = False
    address: str = ""
    port: int = 0
    version: str = ""
    username: str | None = None
    last_error: str = ""

    @property
    def authenticated(self) -> bool:
        return self.username is not None

    def to_dict(self) -> dict:
        result = asdict(self)
        result["authenticated"] = self.authenticated
        return result
