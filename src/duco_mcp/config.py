"""Client settings: pool server defaults with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_POOL_ADDR = "51.15.127.80"
DEFAULT_POOL_PORT = 2811

ENV_POOL_ADDR = "DUCO_POOL_ADDR"
ENV_POOL_PORT = "DUCO_POOL_PORT"
ENV_TIMEOUT = "DUCO_TIMEOUT"


@dataclass
class ClientSettings:
    """Where to connect and how long to wait on a blocking read.

    ``timeout`` is in seconds. ``None`` blocks indefinitely, which is how
    the server expects clients to behave; a hung peer then blocks the
    caller until it closes the connection.
    """

    address: str = DEFAULT_POOL_ADDR
    port: int = DEFAULT_POOL_PORT
    timeout: float | None = None

    def __post_init__(self) -> None:
        if not 0 < self.port <= 65535:
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientSettings:
        """Build settings from ``DUCO_POOL_ADDR``, ``DUCO_POOL_PORT`` and ``DUCO_TIMEOUT``."""
        env = os.environ if environ is None else environ

        address = env.get(ENV_POOL_ADDR, "").strip() or DEFAULT_POOL_ADDR

        raw_port = env.get(ENV_POOL_PORT, "").strip()
        try:
            port = int(raw_port) if raw_port else DEFAULT_POOL_PORT
        except ValueError:
            raise ValueError(f"{ENV_POOL_PORT} must be an integer, got {raw_port!r}")

        raw_timeout = env.get(ENV_TIMEOUT, "").strip()
        try:
            timeout = float(raw_timeout) if raw_timeout else None
        except ValueError:
            raise ValueError(f"{ENV_TIMEOUT} must be a number, got {raw_timeout!r}")

        return cls(address=address, port=port, timeout=timeout)
