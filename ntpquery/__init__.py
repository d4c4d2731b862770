"""
ntpquery

Minimal SNTP client: one request to one time server, decoded to UTC.
"""

__version__ = "1.0.0"

from ntpquery.client import (
    TimeQueryResult,
    fetch_timestamp,
    fetch_timestamp_async,
    query_server,
)
from ntpquery.constants import NTP_EPOCH, NTP_PORT
from ntpquery.errors import (
    TimeFetchError,
    HostNotFoundError,
    NoAddressAvailableError,
    RequestTimedOutError,
    MalformedReplyError,
    TransportError,
)
from ntpquery.protocol import decode_timestamp, extract_transmit_timestamp

__all__ = [
    "TimeQueryResult",
    "fetch_timestamp",
    "fetch_timestamp_async",
    "query_server",
    "decode_timestamp",
    "extract_transmit_timestamp",
    "NTP_EPOCH",
    "NTP_PORT",
    "TimeFetchError",
    "HostNotFoundError",
    "NoAddressAvailableError",
    "RequestTimedOutError",
    "MalformedReplyError",
    "TransportError",
    "__version__",
]
