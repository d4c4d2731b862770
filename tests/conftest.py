"""
ntpquery Test Fixtures

In-memory resolver and transport fakes, so the exchange can be tested
without network access.
"""

import asyncio
import socket
import struct
from typing import Dict, List, Optional

import pytest

from ntpquery.errors import HostNotFoundError
from ntpquery.network.resolver import Address, Endpoint, Resolver
from ntpquery.network.transport import Channel, Transport

# 2024-01-01 00:00:00 UTC in NTP seconds
NTP_SECONDS_2024 = 3913056000


def make_reply(
    seconds: int = NTP_SECONDS_2024,
    fraction: int = 0,
    header: int = 0x1C,
    stratum: int = 2
) -> bytes:
    """Build a 48-byte server reply carrying the given Transmit Timestamp."""
    reply = bytearray(48)
    reply[0] = header  # LI=0, VN=3, Mode=4 (server)
    reply[1] = stratum
    struct.pack_into("!II", reply, 40, seconds, fraction)
    return bytes(reply)


class FakeResolver(Resolver):
    """Resolver answering from a fixed table."""

    def __init__(self, table: Optional[Dict[str, List[Address]]] = None):
        self.table = table or {}
        self.calls: List[str] = []

    def resolve(self, name: str) -> List[Address]:
        self.calls.append(name)
        if name not in self.table:
            raise HostNotFoundError(name)
        return list(self.table[name])


class FakeChannel(Channel):
    """Channel recording every call and replaying a canned reply."""

    def __init__(self, reply: Optional[bytes] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.timeout_ms: Optional[int] = None
        self.endpoint: Optional[Endpoint] = None
        self.sent: List[bytes] = []
        self.close_count = 0

    def set_timeout(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms

    def connect(self, endpoint: Endpoint) -> None:
        self.endpoint = endpoint

    def send(self, data: bytes) -> int:
        self.sent.append(bytes(data))
        return len(data)

    def receive(self, buffer: bytearray) -> int:
        if self.error is not None:
            raise self.error
        if self.reply is None:
            # Never answers: behave like a socket whose timeout expired
            raise socket.timeout("timed out")
        count = min(len(self.reply), len(buffer))
        buffer[:count] = self.reply[:count]
        return count

    def close(self) -> None:
        self.close_count += 1


class FakeTransport(Transport):
    """Transport handing out FakeChannels."""

    def __init__(self, reply: Optional[bytes] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.channels: List[FakeChannel] = []
        self.families: List[int] = []

    def open(self, family: int) -> FakeChannel:
        self.families.append(family)
        channel = FakeChannel(self.reply, self.error)
        self.channels.append(channel)
        return channel


@pytest.fixture
def ipv4_address() -> Address:
    return Address(family=socket.AF_INET, host="192.0.2.10")


@pytest.fixture
def ipv6_address() -> Address:
    return Address(family=socket.AF_INET6, host="2001:db8::10")


@pytest.fixture
def resolver(ipv4_address, ipv6_address) -> FakeResolver:
    return FakeResolver({
        "time.example.com": [ipv4_address, ipv6_address],
        "v6.example.com": [ipv6_address],
        "empty.example.com": [],
    })


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(reply=make_reply())


@pytest.fixture
def silent_transport() -> FakeTransport:
    """Transport whose server never replies."""
    return FakeTransport(reply=None)


@pytest.fixture
def async_runner():
    """Helper for running async functions in tests."""
    def runner(coro):
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()
    return runner
