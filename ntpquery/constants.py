"""
ntpquery Constants

All protocol constants defined here for single source of truth.
"""

from datetime import datetime, timezone
from typing import Final

# ==============================================================================
# WIRE FORMAT
# ==============================================================================

NTP_PORT: Final[int] = 123                      # Well-known UDP port
NTP_PACKET_SIZE: Final[int] = 48                # Request and reply size (bytes)

# First byte of a client request: LI=0, VN=3, Mode=3 -> 0b00_011_011
NTP_LEAP_INDICATOR: Final[int] = 0
NTP_VERSION: Final[int] = 3
NTP_MODE_CLIENT: Final[int] = 3
NTP_REQUEST_HEADER: Final[int] = 0x1B

# Transmit Timestamp: time at which the reply departed the server
TRANSMIT_TIMESTAMP_OFFSET: Final[int] = 40
TRANSMIT_TIMESTAMP_FORMAT: Final[str] = "!II"   # Big-endian seconds, fraction

# ==============================================================================
# TIMESTAMP ARITHMETIC
# ==============================================================================

NTP_EPOCH: Final[datetime] = datetime(1900, 1, 1, tzinfo=timezone.utc)

FRACTION_INTERVALS_PER_SECOND: Final[int] = 2 ** 32
SECONDS_PER_INTERVAL: Final[float] = 1.0 / FRACTION_INTERVALS_PER_SECOND  # ~232 ps
UINT32_MAX: Final[int] = FRACTION_INTERVALS_PER_SECOND - 1

# ==============================================================================
# CLIENT DEFAULTS
# ==============================================================================

DEFAULT_SERVER: Final[str] = "time.windows.com"
DEFAULT_TIMEOUT_MS: Final[int] = 3000

# Extra time granted to the executor wrapper beyond the socket timeout
ASYNC_GRACE_MS: Final[int] = 500
