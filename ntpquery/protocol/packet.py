"""
ntpquery Packet Codec

Request construction and reply field extraction for the 48-byte
NTP/SNTP packet (RFC 4330 section 4).
"""

from __future__ import annotations
import logging
import struct
from dataclasses import dataclass
from typing import Tuple, Union

import ntplib

from ntpquery.constants import (
    NTP_LEAP_INDICATOR,
    NTP_MODE_CLIENT,
    NTP_PACKET_SIZE,
    NTP_VERSION,
    TRANSMIT_TIMESTAMP_FORMAT,
    TRANSMIT_TIMESTAMP_OFFSET,
)
from ntpquery.errors import MalformedReplyError

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]


def build_request() -> bytearray:
    """
    Build a fresh client request packet.

    Byte 0 carries LI=0, VN=3, Mode=3 (0x1B). The remaining 47 bytes are
    only significant in server replies and stay zero.

    Returns:
        Mutable 48-byte buffer, reused to receive the reply
    """
    packet = ntplib.NTPPacket(version=NTP_VERSION, mode=NTP_MODE_CLIENT)
    packet.leap = NTP_LEAP_INDICATOR
    return bytearray(packet.to_data())


def check_reply_size(received: int) -> None:
    """Raise MalformedReplyError if fewer than 48 bytes arrived."""
    if received < NTP_PACKET_SIZE:
        raise MalformedReplyError(received, NTP_PACKET_SIZE)


def extract_transmit_timestamp(data: Buffer) -> Tuple[int, int]:
    """
    Extract the Transmit Timestamp from a reply.

    Both halves are big-endian on the wire regardless of host byte order.

    Args:
        data: Reply packet, at least 48 bytes

    Returns:
        Tuple of (seconds, fraction) as unsigned 32-bit integers

    Raises:
        MalformedReplyError: If the buffer is shorter than 48 bytes
    """
    check_reply_size(len(data))
    seconds, fraction = struct.unpack_from(
        TRANSMIT_TIMESTAMP_FORMAT, data, TRANSMIT_TIMESTAMP_OFFSET
    )
    return seconds, fraction


@dataclass(frozen=True)
class ReplyHeader:
    """Diagnostic view of the first reply byte and stratum."""
    leap: int
    version: int
    mode: int
    stratum: int

    @property
    def leap_text(self) -> str:
        return ntplib.leap_to_text(self.leap)

    @property
    def mode_text(self) -> str:
        return ntplib.mode_to_text(self.mode)

    @property
    def stratum_text(self) -> str:
        try:
            return ntplib.stratum_to_text(self.stratum)
        except ntplib.NTPException:
            return "reserved"

    def to_dict(self) -> dict:
        return {
            "leap": self.leap,
            "version": self.version,
            "mode": self.mode,
            "stratum": self.stratum,
        }


def describe_reply(data: Buffer) -> ReplyHeader:
    """
    Parse the reply header for diagnostics.

    Never used to reject a reply: a minimal client only consumes the
    Transmit Timestamp.

    Raises:
        MalformedReplyError: If the buffer is shorter than 48 bytes
    """
    check_reply_size(len(data))
    packet = ntplib.NTPPacket()
    packet.from_data(bytes(data[:NTP_PACKET_SIZE]))
    return ReplyHeader(
        leap=packet.leap,
        version=packet.version,
        mode=packet.mode,
        stratum=packet.stratum,
    )
