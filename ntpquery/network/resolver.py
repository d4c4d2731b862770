"""
ntpquery Resolver

Maps a server name to candidate network addresses.
"""

from __future__ import annotations
import logging
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from ntpquery.errors import (
    HostNotFoundError,
    InvalidParameterError,
    TransportError,
)

logger = logging.getLogger(__name__)

# getaddrinfo codes meaning "no such host"
_HOST_NOT_FOUND_CODES = {socket.EAI_NONAME}

# Codes meaning "host exists but has no usable address"
_NO_ADDRESS_CODES = {
    code for code in (
        getattr(socket, "EAI_NODATA", None),
        getattr(socket, "EAI_ADDRFAMILY", None),
    )
    if code is not None
}

ADDRESS_FAMILIES: Dict[str, int] = {
    "any": socket.AF_UNSPEC,
    "ipv4": socket.AF_INET,
    "ipv6": socket.AF_INET6,
}


@dataclass(frozen=True)
class Address:
    """A resolved network address."""
    family: int
    host: str

    def __str__(self) -> str:
        return self.host


@dataclass(frozen=True)
class Endpoint:
    """Address plus UDP port of the time server."""
    address: Address
    port: int

    @property
    def family(self) -> int:
        return self.address.family

    @property
    def sockaddr(self) -> tuple:
        return (self.address.host, self.port)

    def __str__(self) -> str:
        if self.address.family == socket.AF_INET6:
            return f"[{self.address.host}]:{self.port}"
        return f"{self.address.host}:{self.port}"


class Resolver(ABC):
    """Name resolution capability."""

    @abstractmethod
    def resolve(self, name: str) -> List[Address]:
        """
        Resolve a host name.

        Returns:
            Ordered list of addresses, possibly empty

        Raises:
            HostNotFoundError: If the name does not exist
        """


class SocketResolver(Resolver):
    """Resolver backed by socket.getaddrinfo."""

    def __init__(self, family: int = socket.AF_UNSPEC):
        self.family = family

    def resolve(self, name: str) -> List[Address]:
        try:
            infos = socket.getaddrinfo(name, None, self.family, socket.SOCK_DGRAM)
        except socket.gaierror as e:
            if e.errno in _HOST_NOT_FOUND_CODES:
                raise HostNotFoundError(name) from e
            if e.errno in _NO_ADDRESS_CODES:
                logger.debug(f"No addresses for {name}: {e}")
                return []
            raise TransportError(name, str(e)) from e
        except UnicodeError as e:
            # IDNA rejects the name (empty label, label over 63 chars)
            logger.debug(f"Unencodable host name {name!r}: {e}")
            raise HostNotFoundError(name) from e

        addresses: List[Address] = []
        seen = set()
        for family, _, _, _, sockaddr in infos:
            address = Address(family=family, host=sockaddr[0])
            if address not in seen:
                seen.add(address)
                addresses.append(address)

        logger.debug(f"Resolved {name} -> {[str(a) for a in addresses]}")
        return addresses


# =============================================================================
# Address Selection
# =============================================================================

AddressSelector = Callable[[Sequence[Address]], Address]


def first_address(addresses: Sequence[Address]) -> Address:
    """Take the first resolved address. Later addresses are never tried."""
    return addresses[0]


ADDRESS_SELECTORS: Dict[str, AddressSelector] = {
    "first": first_address,
}


def get_address_selector(name: str) -> AddressSelector:
    """Look up an address selection strategy by name."""
    try:
        return ADDRESS_SELECTORS[name]
    except KeyError:
        raise InvalidParameterError(
            "address_selection",
            f"expected one of {sorted(ADDRESS_SELECTORS)}, got '{name}'"
        ) from None


def get_address_family(name: str) -> int:
    """Map a configured family name to a socket address family."""
    try:
        return ADDRESS_FAMILIES[name]
    except KeyError:
        raise InvalidParameterError(
            "address_family",
            f"expected one of {sorted(ADDRESS_FAMILIES)}, got '{name}'"
        ) from None
