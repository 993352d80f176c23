"""Byte-stream transports to the pool server."""

from .tcp_connection import TCPTransport, Transport
