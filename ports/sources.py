"""
Data source ports and error types.

This module defines the protocol the orchestration layer fetches
broker summaries through, and the structured errors that fetchers and
payload parsers raise.
"""

from datetime import date
from enum import Enum
from typing import Any, Protocol, runtime_checkable


# ============================================================================
# Error Codes
# ============================================================================

class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # Transport errors (2xx)
    HTTP_SERVER_ERROR = "E202"

    # Parse errors (3xx)
    PARSE_DATE = "E304"
    PARSE_STRUCTURE = "E305"

    # Data errors (4xx)
    DATA_MISSING = "E401"
    DATA_INVALID = "E402"

    UNKNOWN = "E999"


# ============================================================================
# Error Classes
# ============================================================================

class SourceError(Exception):
    """
    Base exception for data source and payload failures.

    The message is prefixed with the code and source name, e.g.
    "[E401] [recorded] No recorded summary for ...".
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        source: str | None = None,
    ):
        self.code = code
        self.source = source
        self.message = message

        prefix = f"[{code.value}]"
        if source:
            prefix += f" [{source}]"
        super().__init__(f"{prefix} {message}")


class FetchError(SourceError):
    """Raised by a fetcher when a payload cannot be retrieved."""

    def __init__(
        self,
        source: str,
        reason: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
    ):
        self.reason = reason
        super().__init__(message=reason, code=code, source=source)


class ParseError(SourceError):
    """Raised when a payload does not have the expected structure."""

    def __init__(
        self,
        source: str,
        reason: str,
        code: ErrorCode = ErrorCode.PARSE_STRUCTURE,
        field: str | None = None,
    ):
        self.field = field
        super().__init__(
            message=f"Failed to parse payload: {reason}",
            code=code,
            source=source,
        )

    @classmethod
    def missing(cls, source: str, field: str) -> "ParseError":
        """Create error for a missing required key."""
        return cls(
            source=source,
            reason=f"missing required field '{field}'",
            code=ErrorCode.DATA_MISSING,
            field=field,
        )

    @classmethod
    def wrong_type(cls, source: str, field: str, expected: str, actual: Any) -> "ParseError":
        """Create error for a key holding the wrong JSON type."""
        return cls(
            source=source,
            reason=f"'{field}' should be {expected}, got {type(actual).__name__}",
            code=ErrorCode.DATA_INVALID,
            field=field,
        )


# ============================================================================
# Protocols
# ============================================================================

@runtime_checkable
class BrokerSummarySource(Protocol):
    """
    Anything that can return a raw broker-summary payload for a window.

    Implementations own transport, auth and caching. They return the
    decoded JSON object and raise FetchError on failure.
    """

    def get_broker_summary(self, symbol: str, start: date, end: date) -> dict:
        """
        Fetch the broker summary of `symbol` for [start, end].

        Raises:
            FetchError: If the payload cannot be retrieved
        """
        ...
