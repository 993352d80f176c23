"""Shared fixtures: an in-memory transport and a scripted stub TCP server."""

from __future__ import annotations

import socket
import threading

import pytest


class FakeTransport:
    """Transport double that replays canned replies.

    ``replies`` items are returned by successive ``receive`` calls; an
    exception instance is raised instead. Once exhausted, ``receive``
    returns ``b""`` as if the peer closed.
    """

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.sent: list[bytes] = []
        self.sent_buffers: list = []
        self.receive_sizes: list[int] = []
        self.send_error: Exception | None = None
        self.close_calls = 0

    def send(self, data):
        self.sent_buffers.append(data)
        self.sent.append(bytes(data))
        if self.send_error is not None:
            raise self.send_error
        return len(data)

    def receive(self, max_len):
        self.receive_sizes.append(max_len)
        if not self.replies:
            return b""
        item = self.replies.pop(0)
        if isinstance(item, Exception):
            raise item
        assert len(item) <= max_len, "canned reply larger than the read window"
        return item

    def close(self):
        self.close_calls += 1


class StubServer:
    """One-connection TCP server that plays a fixed script.

    Sends ``greeting`` on accept, then for each reply in ``replies``
    reads one request and answers with that reply. Closes afterwards.
    """

    def __init__(self, greeting: bytes, replies: list[bytes]):
        self.greeting = greeting
        self.replies = replies
        self.requests: list[bytes] = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(5)
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> StubServer:
        self._thread.start()
        return self

    def _serve(self):
        conn, _ = self._listener.accept()
        with conn:
            conn.settimeout(5)
            if self.greeting:
                conn.sendall(self.greeting)
            for reply in self.replies:
                request = conn.recv(1024)
                if not request:
                    break
                self.requests.append(request)
                conn.sendall(reply)

    def stop(self):
        self._thread.join(timeout=5)
        self._listener.close()


@pytest.fixture
def fake_transport():
    """Factory for FakeTransport instances."""
    return FakeTransport


@pytest.fixture
def stub_server():
    """Factory that starts a StubServer and stops it after the test."""
    servers: list[StubServer] = []

    def start(greeting: bytes = b"v1.0\x00", replies: list[bytes] | None = None):
        server = StubServer(greeting, replies or []).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
