"""
ntpquery Network

Resolver and datagram transport collaborators.
"""

from ntpquery.network.resolver import (
    Address,
    Endpoint,
    Resolver,
    SocketResolver,
    first_address,
    get_address_family,
    get_address_selector,
)
from ntpquery.network.transport import Channel, Transport, UdpChannel, UdpTransport

__all__ = [
    "Address",
    "Endpoint",
    "Resolver",
    "SocketResolver",
    "first_address",
    "get_address_family",
    "get_address_selector",
    "Channel",
    "Transport",
    "UdpChannel",
    "UdpTransport",
]
