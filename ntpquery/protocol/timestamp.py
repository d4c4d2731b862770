"""
ntpquery Timestamp Decoder

Converts the 64-bit NTP fixed-point timestamp into wall-clock UTC.

The fractional part counts ~232 picosecond intervals elapsed since the
start of the current second: 2^32 of them make one second. Multiplying the
interval count by the seconds-per-interval constant gives the fraction of a
second, which is truncated to whole milliseconds.

The seconds field wraps at 2^32 (February 2036). Era disambiguation is
not attempted.
"""

from __future__ import annotations
import math
from datetime import datetime, timedelta
from typing import Tuple

from ntpquery.constants import (
    NTP_EPOCH,
    SECONDS_PER_INTERVAL,
    UINT32_MAX,
)


def _check_u32(name: str, value: int) -> None:
    if not 0 <= value <= UINT32_MAX:
        raise ValueError(f"{name} out of u32 range: {value}")


def fraction_to_ms(fraction: int) -> int:
    """Whole milliseconds represented by a 32-bit fraction field."""
    _check_u32("fraction", fraction)
    return math.floor(fraction * SECONDS_PER_INTERVAL * 1000)


def to_milliseconds(seconds: int, fraction: int) -> int:
    """
    Milliseconds elapsed since the NTP epoch.

    Args:
        seconds: Whole seconds since 1900-01-01 (u32)
        fraction: Fractional second intervals (u32)

    Returns:
        Total milliseconds since the NTP epoch
    """
    _check_u32("seconds", seconds)
    return seconds * 1000 + fraction_to_ms(fraction)


def decode_timestamp(seconds: int, fraction: int) -> datetime:
    """
    Decode an NTP timestamp into an aware UTC datetime.

    Args:
        seconds: Whole seconds since 1900-01-01 (u32)
        fraction: Fractional second intervals (u32)

    Returns:
        datetime in UTC with millisecond precision

    Raises:
        ValueError: If either field is outside the u32 range
    """
    return NTP_EPOCH + timedelta(milliseconds=to_milliseconds(seconds, fraction))


def encode_timestamp(moment: datetime) -> Tuple[int, int]:
    """
    Encode an aware datetime as an NTP (seconds, fraction) pair.

    Inverse of decode_timestamp to millisecond precision. Used to build
    replies for fake servers.
    """
    if moment.tzinfo is None:
        raise ValueError("moment must be timezone-aware")

    delta = moment - NTP_EPOCH
    total_us = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    if total_us < 0:
        raise ValueError(f"moment precedes NTP epoch: {moment.isoformat()}")

    seconds, micros = divmod(total_us, 1_000_000)
    _check_u32("seconds", seconds)
    # Round up so the decoder's floor lands back on the same millisecond
    fraction = math.ceil(micros * (2 ** 32) / 1_000_000)
    return seconds, min(fraction, UINT32_MAX)
