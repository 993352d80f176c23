"""Data models exposed by the session."""

from .status import SessionStatus
