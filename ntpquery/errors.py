"""
ntpquery Error Handling

Every failure of a time query is a TimeFetchError carrying an ErrorCode.
"""

from enum import IntEnum
from typing import Any, Dict, Optional


class ErrorCode(IntEnum):
    """Client error codes."""

    # 1xxx - Caller errors
    INVALID_PARAMETER = 1001

    # 2xxx - Resolution errors
    HOST_NOT_FOUND = 2001
    NO_ADDRESS_AVAILABLE = 2002

    # 3xxx - Exchange errors
    REQUEST_TIMED_OUT = 3001
    MALFORMED_REPLY = 3002
    TRANSPORT_ERROR = 3003


class TimeFetchError(Exception):
    """A time query failed; no timestamp was produced."""

    def __init__(self, code: ErrorCode, message: str, **details: Any):
        self.code = code
        self.message = message
        self.details: Dict[str, Any] = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# ==============================================================================
# Caller Errors (1xxx)
# ==============================================================================

class InvalidParameterError(TimeFetchError):
    def __init__(self, param: str, message: str = ""):
        msg = f"Invalid parameter: {param}"
        if message:
            msg += f" - {message}"
        super().__init__(ErrorCode.INVALID_PARAMETER, msg, parameter=param)


# ==============================================================================
# Resolution Errors (2xxx)
# ==============================================================================

class HostNotFoundError(TimeFetchError):
    def __init__(self, host: str):
        self.host = host
        super().__init__(ErrorCode.HOST_NOT_FOUND, f"host '{host}' not found", host=host)


class NoAddressAvailableError(TimeFetchError):
    def __init__(self, host: str):
        self.host = host
        super().__init__(
            ErrorCode.NO_ADDRESS_AVAILABLE,
            f"DNS lookup for host '{host}' did not return any addresses",
            host=host
        )


# ==============================================================================
# Exchange Errors (3xxx)
# ==============================================================================

class RequestTimedOutError(TimeFetchError):
    """
    No reply arrived in time.

    endpoint is the Endpoint queried, or None when the deadline expired
    before one was chosen (async wrapper); host then names the server.
    """

    def __init__(self, endpoint: Optional[Any], timeout_ms: int, host: Optional[str] = None):
        self.endpoint = endpoint
        self.host = host
        self.timeout_ms = timeout_ms

        if endpoint is not None:
            target = f"NTP server at '{endpoint}'"
            details = {"endpoint": str(endpoint)}
        else:
            target = f"Query to '{host}'"
            details = {"host": host}

        super().__init__(
            ErrorCode.REQUEST_TIMED_OUT,
            f"{target} did not respond within {timeout_ms}ms",
            timeout_ms=timeout_ms,
            **details
        )


class MalformedReplyError(TimeFetchError):
    def __init__(self, received: int, expected: int):
        self.received = received
        self.expected = expected
        super().__init__(
            ErrorCode.MALFORMED_REPLY,
            f"Reply too short: {received} < {expected} bytes",
            received=received,
            expected=expected
        )


class TransportError(TimeFetchError):
    def __init__(self, target: Any, error: str):
        self.target = target
        super().__init__(
            ErrorCode.TRANSPORT_ERROR,
            f"Network error for {target}: {error}",
            target=str(target),
            error=error
        )
