"""
ntpquery Datagram Transport

Connectionless channel used for a single request/reply exchange.
Channels are context managers and must be closed on every exit path.
"""

from __future__ import annotations
import logging
import socket
from abc import ABC, abstractmethod
from typing import Optional

from ntpquery.network.resolver import Endpoint

logger = logging.getLogger(__name__)


class Channel(ABC):
    """
    Datagram channel capability.

    receive() raises TimeoutError when no datagram arrives within the
    configured timeout. Other faults surface as OSError.
    """

    @abstractmethod
    def set_timeout(self, timeout_ms: int) -> None:
        ...

    @abstractmethod
    def connect(self, endpoint: Endpoint) -> None:
        """Fix the peer for send/receive. No handshake takes place."""

    @abstractmethod
    def send(self, data: bytes) -> int:
        ...

    @abstractmethod
    def receive(self, buffer: bytearray) -> int:
        """Receive one datagram into buffer, returning the byte count."""

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Transport(ABC):
    """Factory for datagram channels."""

    @abstractmethod
    def open(self, family: int) -> Channel:
        ...


class UdpChannel(Channel):
    """Channel over a UDP socket."""

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._endpoint: Optional[Endpoint] = None

    def set_timeout(self, timeout_ms: int) -> None:
        self._sock.settimeout(timeout_ms / 1000.0)

    def connect(self, endpoint: Endpoint) -> None:
        self._sock.connect(endpoint.sockaddr)
        self._endpoint = endpoint

    def send(self, data: bytes) -> int:
        return self._sock.send(data)

    def receive(self, buffer: bytearray) -> int:
        return self._sock.recv_into(buffer)

    def close(self) -> None:
        logger.debug(f"Closing UDP channel to {self._endpoint}")
        self._sock.close()


class UdpTransport(Transport):
    """Opens real UDP sockets."""

    def open(self, family: int) -> UdpChannel:
        return UdpChannel(socket.socket(family, socket.SOCK_DGRAM))
