"""
Recorded broker-summary source.

Serves broker-summary payloads captured earlier (e.g. saved from the
dashboard API) keyed by their date window. Used by the CLI to replay a
multi-period analysis from a JSON file without network access.

File layout:
    {
      "symbol": "BBCA",
      "start": "2025-01-01",
      "end": "2025-03-31",
      "periods": [
        {"start": "2025-03-17", "end": "2025-03-31",
         "brokers_buy": [...], "brokers_sell": [...]},
        ...
      ]
    }
"""

import logging
from collections.abc import Mapping
from datetime import date

from ports import ErrorCode, FetchError, ParseError

logger = logging.getLogger(__name__)

SOURCE_NAME = "recorded"


class RecordedSummarySource:
    """BrokerSummarySource backed by an in-memory table of payloads."""

    def __init__(self, payloads: Mapping[tuple[date, date], dict], symbol: str | None = None):
        self._payloads = dict(payloads)
        self.symbol = symbol.upper() if symbol else None

    @classmethod
    def from_document(cls, document: Mapping) -> "RecordedSummarySource":
        """
        Build from a decoded recording (see module docstring).

        Raises:
            ParseError: If `periods` is missing or an entry lacks its dates
        """
        periods = document.get("periods") if isinstance(document, Mapping) else None
        if not isinstance(periods, list):
            raise ParseError.missing(SOURCE_NAME, "periods")

        payloads: dict[tuple[date, date], dict] = {}
        for index, entry in enumerate(periods):
            try:
                key = (date.fromisoformat(entry["start"]), date.fromisoformat(entry["end"]))
            except (KeyError, TypeError, ValueError) as e:
                raise ParseError(
                    source=SOURCE_NAME,
                    reason=f"periods[{index}] needs ISO 'start' and 'end' dates",
                    code=ErrorCode.PARSE_DATE,
                    field=f"periods[{index}]",
                ) from e
            payloads[key] = entry

        logger.debug(f"Loaded {len(payloads)} recorded broker summaries")
        return cls(payloads, symbol=document.get("symbol"))

    def get_broker_summary(self, symbol: str, start: date, end: date) -> dict:
        if self.symbol and symbol.upper() != self.symbol:
            raise FetchError(
                source=SOURCE_NAME,
                reason=f"Recording is for {self.symbol}, not {symbol.upper()}",
                code=ErrorCode.DATA_MISSING,
            )
        try:
            return self._payloads[(start, end)]
        except KeyError:
            raise FetchError(
                source=SOURCE_NAME,
                reason=f"No recorded summary for {start} to {end}",
                code=ErrorCode.DATA_MISSING,
            ) from None
