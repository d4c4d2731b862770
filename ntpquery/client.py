"""
ntpquery Time Exchange

One request, one reply, one address. Resolves the server, sends a
48-byte client request over UDP port 123, waits a bounded time for the
reply and decodes its Transmit Timestamp.

No retries and no fallback to further resolved addresses: retry policy
belongs to the caller.
"""

from __future__ import annotations
import asyncio
import functools
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ntpquery.constants import (
    ASYNC_GRACE_MS,
    DEFAULT_TIMEOUT_MS,
    NTP_PORT,
)
from ntpquery.errors import (
    InvalidParameterError,
    NoAddressAvailableError,
    RequestTimedOutError,
    TimeFetchError,
    TransportError,
)
from ntpquery.network.resolver import (
    AddressSelector,
    Endpoint,
    Resolver,
    SocketResolver,
    first_address,
)
from ntpquery.network.transport import Transport, UdpTransport
from ntpquery.protocol.packet import (
    ReplyHeader,
    build_request,
    check_reply_size,
    describe_reply,
    extract_transmit_timestamp,
)
from ntpquery.protocol.timestamp import decode_timestamp

logger = logging.getLogger(__name__)


@dataclass
class TimeQueryResult:
    """Outcome of a single time query."""
    server: str
    success: bool
    timestamp: Optional[datetime] = None
    endpoint: Optional[Endpoint] = None
    rtt_ms: int = 0
    header: Optional[ReplyHeader] = None
    error: Optional[TimeFetchError] = None

    def to_dict(self) -> dict:
        result = {
            "server": self.server,
            "success": self.success,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "endpoint": str(self.endpoint) if self.endpoint else None,
            "rtt_ms": self.rtt_ms,
        }
        if self.header is not None:
            result["header"] = self.header.to_dict()
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


def _validate_arguments(timeout_ms: int, port: int) -> None:
    if timeout_ms <= 0:
        raise InvalidParameterError("timeout_ms", f"must be positive, got {timeout_ms}")
    if port < 1 or port > 65535:
        raise InvalidParameterError("port", f"must be 1-65535, got {port}")


def resolve_endpoint(
    server: str,
    resolver: Resolver,
    port: int = NTP_PORT,
    select_address: AddressSelector = first_address
) -> Endpoint:
    """
    Resolve a server name to the endpoint that will be queried.

    Raises:
        HostNotFoundError: If the name is unknown
        NoAddressAvailableError: If resolution returned no addresses
    """
    addresses = resolver.resolve(server)
    if not addresses:
        raise NoAddressAvailableError(server)

    endpoint = Endpoint(address=select_address(addresses), port=port)
    logger.debug(
        f"Selected {endpoint} for {server} ({len(addresses)} candidates)"
    )
    return endpoint


def exchange(
    endpoint: Endpoint,
    transport: Transport,
    timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> bytearray:
    """
    Perform a single request/reply round trip.

    The request buffer is overwritten in place by the reply.

    Args:
        endpoint: Server endpoint
        transport: Channel factory
        timeout_ms: Receive timeout in milliseconds

    Returns:
        The 48-byte reply

    Raises:
        RequestTimedOutError: If no reply arrives in time
        MalformedReplyError: If the reply is shorter than 48 bytes
        TransportError: On any other network fault
    """
    buffer = build_request()

    try:
        with transport.open(endpoint.family) as channel:
            channel.set_timeout(timeout_ms)
            channel.connect(endpoint)
            channel.send(bytes(buffer))
            received = channel.receive(buffer)
    except TimeoutError as e:
        logger.warning(f"No reply from {endpoint} within {timeout_ms}ms")
        raise RequestTimedOutError(endpoint, timeout_ms) from e
    except OSError as e:
        logger.warning(f"Network error talking to {endpoint}: {e}")
        raise TransportError(endpoint, str(e)) from e

    logger.debug(f"Received {received} bytes from {endpoint}")
    check_reply_size(received)
    return buffer


def query_server(
    server: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    *,
    resolver: Optional[Resolver] = None,
    transport: Optional[Transport] = None,
    port: int = NTP_PORT,
    select_address: AddressSelector = first_address
) -> TimeQueryResult:
    """
    Query a time server, reporting failures in the result.

    Args:
        server: Host name or address literal
        timeout_ms: Receive timeout in milliseconds
        resolver: Name resolver (default: socket.getaddrinfo)
        transport: Datagram transport (default: UDP sockets)
        port: Server port
        select_address: Strategy choosing one of the resolved addresses

    Returns:
        TimeQueryResult with timestamp or error
    """
    resolver = resolver or SocketResolver()
    transport = transport or UdpTransport()
    endpoint: Optional[Endpoint] = None

    try:
        _validate_arguments(timeout_ms, port)
        endpoint = resolve_endpoint(server, resolver, port, select_address)

        t1 = time.monotonic()
        reply = exchange(endpoint, transport, timeout_ms)
        t2 = time.monotonic()

        seconds, fraction = extract_transmit_timestamp(reply)
        timestamp = decode_timestamp(seconds, fraction)
    except TimeFetchError as e:
        if not isinstance(e, RequestTimedOutError):
            logger.warning(f"Time query to {server} failed: {e.message}")
        return TimeQueryResult(
            server=server,
            success=False,
            endpoint=endpoint,
            error=e
        )

    logger.info(f"Network time from {endpoint}: {timestamp.isoformat()}")
    return TimeQueryResult(
        server=server,
        success=True,
        timestamp=timestamp,
        endpoint=endpoint,
        rtt_ms=int((t2 - t1) * 1000),
        header=describe_reply(reply),
    )


def fetch_timestamp(
    server: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    *,
    resolver: Optional[Resolver] = None,
    transport: Optional[Transport] = None,
    port: int = NTP_PORT,
    select_address: AddressSelector = first_address
) -> datetime:
    """
    Fetch the current UTC time from an NTP server.

    Returns:
        Aware UTC datetime with millisecond precision

    Raises:
        HostNotFoundError: Unknown host
        NoAddressAvailableError: Host resolved to no addresses
        RequestTimedOutError: No reply within timeout_ms
        MalformedReplyError: Reply shorter than 48 bytes
        TransportError: Other network failure
    """
    result = query_server(
        server,
        timeout_ms,
        resolver=resolver,
        transport=transport,
        port=port,
        select_address=select_address,
    )
    if not result.success:
        raise result.error
    return result.timestamp


async def fetch_timestamp_async(
    server: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    **kwargs
) -> datetime:
    """
    Run fetch_timestamp() in the default executor.

    The wait is bounded by timeout_ms plus a short grace period so a
    stalled resolver cannot hang the event loop's caller.
    """
    loop = asyncio.get_running_loop()

    try:
        return await asyncio.wait_for(
            loop.run_in_executor(
                None,
                functools.partial(fetch_timestamp, server, timeout_ms, **kwargs)
            ),
            timeout=(timeout_ms + ASYNC_GRACE_MS) / 1000.0
        )
    except asyncio.TimeoutError:
        logger.warning(f"Time query to {server} exceeded {timeout_ms}ms")
        raise RequestTimedOutError(None, timeout_ms, host=server) from None
