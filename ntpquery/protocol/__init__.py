"""
ntpquery Protocol

Packet codec and timestamp decoder.
"""

from ntpquery.protocol.packet import (
    ReplyHeader,
    build_request,
    describe_reply,
    extract_transmit_timestamp,
)
from ntpquery.protocol.timestamp import decode_timestamp, encode_timestamp

__all__ = [
    "ReplyHeader",
    "build_request",
    "describe_reply",
    "extract_transmit_timestamp",
    "decode_timestamp",
    "encode_timestamp",
]
