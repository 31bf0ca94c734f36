from .sources import (
    BrokerSummarySource,
    SourceError,
    FetchError,
    ParseError,
    ErrorCode,
)

__all__ = [
    "BrokerSummarySource",
    "SourceError",
    "FetchError",
    "ParseError",
    "ErrorCode",
]
