"""
ntpquery Network Tests
Resolver, address selection and UDP channel
"""

import socket
from unittest.mock import MagicMock, patch

import pytest

from ntpquery.errors import HostNotFoundError, InvalidParameterError, TransportError
from ntpquery.network.resolver import (
    Address,
    Endpoint,
    SocketResolver,
    first_address,
    get_address_family,
    get_address_selector,
)
from ntpquery.network.transport import UdpChannel, UdpTransport


def _addrinfo(family, host):
    sockaddr = (host, 0) if family == socket.AF_INET else (host, 0, 0, 0)
    return (family, socket.SOCK_DGRAM, socket.IPPROTO_UDP, "", sockaddr)


# =============================================================================
# Test: SocketResolver
# =============================================================================

class TestSocketResolver:
    """Tests for getaddrinfo-backed resolution."""

    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_order_preserved(self, getaddrinfo):
        getaddrinfo.return_value = [
            _addrinfo(socket.AF_INET, "192.0.2.2"),
            _addrinfo(socket.AF_INET6, "2001:db8::1"),
            _addrinfo(socket.AF_INET, "192.0.2.1"),
        ]
        addresses = SocketResolver().resolve("time.example.com")
        assert [a.host for a in addresses] == ["192.0.2.2", "2001:db8::1", "192.0.2.1"]
        assert addresses[1].family == socket.AF_INET6

    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_duplicates_removed(self, getaddrinfo):
        getaddrinfo.return_value = [
            _addrinfo(socket.AF_INET, "192.0.2.1"),
            _addrinfo(socket.AF_INET, "192.0.2.1"),
        ]
        assert len(SocketResolver().resolve("time.example.com")) == 1

    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_family_passed(self, getaddrinfo):
        getaddrinfo.return_value = []
        SocketResolver(socket.AF_INET).resolve("time.example.com")
        args = getaddrinfo.call_args[0]
        assert args[0] == "time.example.com"
        assert args[2] == socket.AF_INET
        assert args[3] == socket.SOCK_DGRAM

    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_host_not_found(self, getaddrinfo):
        getaddrinfo.side_effect = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        with pytest.raises(HostNotFoundError) as exc_info:
            SocketResolver().resolve("nowhere.invalid")
        assert exc_info.value.host == "nowhere.invalid"

    def test_label_too_long(self):
        """Names the IDNA codec rejects are reported as unknown hosts."""
        name = "a" * 64 + ".example.com"
        with pytest.raises(HostNotFoundError) as exc_info:
            SocketResolver().resolve(name)
        assert exc_info.value.host == name
        assert isinstance(exc_info.value.__cause__, UnicodeError)

    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_unicode_error(self, getaddrinfo):
        getaddrinfo.side_effect = UnicodeError("label empty or too long")
        with pytest.raises(HostNotFoundError):
            SocketResolver().resolve("bad..example.com")

    @pytest.mark.skipif(not hasattr(socket, "EAI_NODATA"), reason="EAI_NODATA not defined")
    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_no_data_is_empty(self, getaddrinfo):
        getaddrinfo.side_effect = socket.gaierror(socket.EAI_NODATA, "No address associated")
        assert SocketResolver().resolve("mx-only.example.com") == []

    @patch("ntpquery.network.resolver.socket.getaddrinfo")
    def test_other_failure(self, getaddrinfo):
        getaddrinfo.side_effect = socket.gaierror(socket.EAI_AGAIN, "Temporary failure")
        with pytest.raises(TransportError):
            SocketResolver().resolve("time.example.com")


# =============================================================================
# Test: Address Selection
# =============================================================================

class TestAddressSelection:
    """Tests for address selection strategies."""

    def test_first_address(self):
        addresses = [
            Address(socket.AF_INET, "192.0.2.1"),
            Address(socket.AF_INET, "192.0.2.2"),
        ]
        assert first_address(addresses) == addresses[0]

    def test_lookup(self):
        assert get_address_selector("first") is first_address

    def test_unknown_selector(self):
        with pytest.raises(InvalidParameterError):
            get_address_selector("random")

    def test_families(self):
        assert get_address_family("any") == socket.AF_UNSPEC
        assert get_address_family("ipv4") == socket.AF_INET
        assert get_address_family("ipv6") == socket.AF_INET6

    def test_unknown_family(self):
        with pytest.raises(InvalidParameterError):
            get_address_family("ipx")


class TestEndpoint:
    """Tests for Endpoint formatting."""

    def test_ipv4_str(self):
        endpoint = Endpoint(Address(socket.AF_INET, "192.0.2.1"), 123)
        assert str(endpoint) == "192.0.2.1:123"
        assert endpoint.sockaddr == ("192.0.2.1", 123)
        assert endpoint.family == socket.AF_INET

    def test_ipv6_str(self):
        endpoint = Endpoint(Address(socket.AF_INET6, "2001:db8::1"), 123)
        assert str(endpoint) == "[2001:db8::1]:123"


# =============================================================================
# Test: UDP Channel
# =============================================================================

class TestUdpChannel:
    """Tests for the socket-backed channel."""

    def test_delegates_to_socket(self):
        sock = MagicMock(spec=socket.socket)
        sock.send.return_value = 48
        sock.recv_into.return_value = 48
        endpoint = Endpoint(Address(socket.AF_INET, "192.0.2.1"), 123)

        with UdpChannel(sock) as channel:
            channel.set_timeout(3000)
            channel.connect(endpoint)
            assert channel.send(bytes(48)) == 48
            assert channel.receive(bytearray(48)) == 48

        sock.settimeout.assert_called_once_with(3.0)
        sock.connect.assert_called_once_with(("192.0.2.1", 123))
        sock.close.assert_called_once()

    def test_closed_on_error(self):
        sock = MagicMock(spec=socket.socket)
        sock.recv_into.side_effect = socket.timeout("timed out")

        with pytest.raises(TimeoutError):
            with UdpChannel(sock) as channel:
                channel.receive(bytearray(48))

        sock.close.assert_called_once()

    def test_loopback_round_trip(self):
        """Request reaches a local server and its reply lands in the buffer."""
        server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        server.bind(("127.0.0.1", 0))
        server.settimeout(2)
        endpoint = Endpoint(Address(socket.AF_INET, "127.0.0.1"), server.getsockname()[1])

        try:
            with UdpTransport().open(socket.AF_INET) as channel:
                channel.set_timeout(2000)
                channel.connect(endpoint)
                channel.send(b"\x1b" + bytes(47))

                request, peer = server.recvfrom(1024)
                server.sendto(b"\x1c" + bytes(47), peer)

                buffer = bytearray(48)
                assert channel.receive(buffer) == 48
        finally:
            server.close()

        assert request[0] == 0x1B
        assert buffer[0] == 0x1C
