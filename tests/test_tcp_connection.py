"""Tests for the TCP transport."""

import socket
from unittest.mock import patch

import pytest

from duco_mcp.errors import ConnectError, ResolutionError, TransportIOError
from duco_mcp.transport.tcp_connection import TCPTransport


def test_resolution_error():
    with patch(
        "duco_mcp.transport.tcp_connection.socket.getaddrinfo",
        side_effect=socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
    ):
        transport = TCPTransport("no-such-pool.invalid", 2811)
        with pytest.raises(ResolutionError):
            transport.open()
    assert not transport.connected


def test_resolution_returns_nothing():
    with patch("duco_mcp.transport.tcp_connection.socket.getaddrinfo", return_value=[]):
        with pytest.raises(ResolutionError):
            TCPTransport("pool.local", 2811).open()


def test_connect_error_carries_reason():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]
    transport = TCPTransport("127.0.0.1", port, timeout=5)
    with pytest.raises(ConnectError) as excinfo:
        transport.open()
    assert "Couldn't connect to the pool server" in str(excinfo.value)
    assert not transport.connected


def test_send_receive_roundtrip():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]
        transport = TCPTransport("127.0.0.1", port, timeout=5)
        transport.open()
        peer, _ = listener.accept()
        with peer:
            assert transport.send(bytearray(b"BALA")) == 4
            assert peer.recv(16) == b"BALA"
            peer.sendall(b"1.5")
            assert transport.receive(255) == b"1.5"
        # peer closed
        assert transport.receive(255) == b""
        transport.close()


def test_close_is_idempotent():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]
        with TCPTransport("127.0.0.1", port, timeout=5) as transport:
            assert transport.connected
        assert not transport.connected
        transport.close()


def test_io_on_closed_transport():
    transport = TCPTransport("127.0.0.1", 1)
    with pytest.raises(TransportIOError):
        transport.send(b"BALA")
    with pytest.raises(TransportIOError):
        transport.receive(255)


def test_receive_timeout_is_io_error():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]
        transport = TCPTransport("127.0.0.1", port, timeout=0.05)
        transport.open()
        peer, _ = listener.accept()
        with peer:
            with pytest.raises(TransportIOError):
                transport.receive(255)
        transport.close()


def test_overlong_hostname_is_resolution_error():
    """A label over 63 characters fails in the idna codec, not the resolver."""
    transport = TCPTransport("a" * 64 + ".example", 2811)
    with pytest.raises(ResolutionError):
        transport.open()
    assert not transport.connected


def test_socket_creation_failure_tries_next_address():
    with socket.create_server(("127.0.0.1", 0)) as listener:
        port = listener.getsockname()[1]
        infos = [
            (socket.AF_INET6, socket.SOCK_STREAM, 0, "", ("::1", port, 0, 0)),
            (socket.AF_INET, socket.SOCK_STREAM, 0, "", ("127.0.0.1", port)),
        ]
        real_socket = socket.socket

        def make_socket(family, *args, **kwargs):
            if family == socket.AF_INET6:
                raise OSError(97, "Address family not supported by protocol")
            return real_socket(family, *args, **kwargs)

        with patch(
            "duco_mcp.transport.tcp_connection.socket.getaddrinfo", return_value=infos
        ), patch("duco_mcp.transport.tcp_connection.socket.socket", side_effect=make_socket):
            transport = TCPTransport("pool.local", port, timeout=5)
            transport.open()
        assert transport.connected
        transport.close()


def test_socket_creation_failure_is_connect_error():
    infos = [(socket.AF_INET6, socket.SOCK_STREAM, 0, "", ("::1", 2811, 0, 0))]
    with patch(
        "duco_mcp.transport.tcp_connection.socket.getaddrinfo", return_value=infos
    ), patch(
        "duco_mcp.transport.tcp_connection.socket.socket",
        side_effect=OSError(97, "Address family not supported by protocol"),
    ):
        with pytest.raises(ConnectError) as excinfo:
            TCPTransport("pool.local", 2811).open()
    assert "Address family not supported" in str(excinfo.value)
