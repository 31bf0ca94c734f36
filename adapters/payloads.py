"""
Payload parsers: raw market-data JSON to domain records.

Payloads come from the broker-summary, broker-action-calendar and
big-player-movement endpoints, already decoded to dicts. Structural
problems (missing keys, wrong container types) raise ParseError; single
malformed rows inside a valid container are skipped and logged.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from domain.daily import build_daily_bars
from domain.models import BrokerFlowRecord, DailyBar, OwnershipChangeRecord
from domain.score_math import parse_number
from ports import ParseError

logger = logging.getLogger(__name__)

BROKER_SUMMARY = "broker_summary"
BROKER_CALENDAR = "broker_calendar"
BIG_PLAYER = "big_player_movement"


# ============================================================================
# Helpers
# ============================================================================

def _require(payload: Any, key: str, expected: type, source: str) -> Any:
    """Fetch `key` from a mapping payload, checking its container type."""
    if not isinstance(payload, Mapping):
        raise ParseError.wrong_type(source, "<root>", "an object", payload)
    if key not in payload or payload[key] is None:
        raise ParseError.missing(source, key)
    value = payload[key]
    if not isinstance(value, expected):
        raise ParseError.wrong_type(source, key, expected.__name__, value)
    return value


def _unwrap(payload: Any, source: str) -> Mapping:
    """Accept either the bare body or one wrapped in {"data": {...}}."""
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
        return payload["data"]
    if not isinstance(payload, Mapping):
        raise ParseError.wrong_type(source, "<root>", "an object", payload)
    return payload


# ============================================================================
# Broker summary
# ============================================================================

class _SideTotals:
    """Running totals for one broker on one side of the book."""

    __slots__ = ("value", "lot", "price_lot")

    def __init__(self) -> None:
        self.value = 0.0
        self.lot = 0.0
        self.price_lot = 0.0

    def add(self, value: float, lot: float, avg: float) -> None:
        self.value += value
        self.lot += lot
        self.price_lot += avg * lot

    @property
    def avg(self) -> float:
        return self.price_lot / self.lot if self.lot > 0 else 0.0


def _collect_side(rows: list, side: str) -> dict[str, _SideTotals]:
    totals: dict[str, _SideTotals] = {}
    for row in rows:
        if not isinstance(row, Mapping) or not str(row.get("broker_code") or "").strip():
            logger.debug(f"Skipping malformed {side} row: {row!r}")
            continue
        code = str(row["broker_code"]).strip().upper()
        totals.setdefault(code, _SideTotals()).add(
            parse_number(row.get(f"{side}_value")),
            parse_number(row.get(f"{side}_volume")),
            parse_number(row.get("avg_price")),
        )
    return totals


def parse_broker_summary(
    payload: Mapping,
) -> tuple[list[BrokerFlowRecord], list[BrokerFlowRecord]]:
    """
    Parse a broker-summary payload into (buyers, sellers).

    Rows from brokers_buy and brokers_sell are merged per broker code;
    duplicate rows on one side sum value and lot and lot-weight their
    average price. A broker active on both sides appears in both lists
    with its full record. Each list keeps only brokers with a positive
    value on that side, sorted by that value descending.

    Raises:
        ParseError: If either broker list is missing or not a list
    """
    body = _unwrap(payload, BROKER_SUMMARY)
    buy_rows = _require(body, "brokers_buy", list, BROKER_SUMMARY)
    sell_rows = _require(body, "brokers_sell", list, BROKER_SUMMARY)

    buys = _collect_side(buy_rows, "buy")
    sells = _collect_side(sell_rows, "sell")

    records: dict[str, BrokerFlowRecord] = {}
    for code in dict.fromkeys([*buys, *sells]):
        buy = buys.get(code, _SideTotals())
        sell = sells.get(code, _SideTotals())
        records[code] = BrokerFlowRecord(
            broker=code,
            buy_value=buy.value,
            buy_lot=buy.lot,
            buy_avg=buy.avg,
            sell_value=sell.value,
            sell_lot=sell.lot,
            sell_avg=sell.avg,
        )

    buyers = sorted(
        (r for r in records.values() if r.buy_value > 0),
        key=lambda r: r.buy_value,
        reverse=True,
    )
    sellers = sorted(
        (r for r in records.values() if r.sell_value > 0),
        key=lambda r: r.sell_value,
        reverse=True,
    )
    logger.debug(f"Parsed broker summary: {len(buyers)} buyers, {len(sellers)} sellers")
    return buyers, sellers


# ============================================================================
# Broker action calendar
# ============================================================================

def parse_broker_calendar(payload: Mapping) -> list[DailyBar]:
    """
    Parse a broker-action-calendar payload into ordered daily bars.

    Raises:
        ParseError: If `data` is missing or a day entry is unusable
    """
    days = _require(payload, "data", list, BROKER_CALENDAR)

    for index, day in enumerate(days):
        if not isinstance(day, Mapping):
            raise ParseError.wrong_type(BROKER_CALENDAR, f"data[{index}]", "an object", day)
        if not day.get("date"):
            raise ParseError.missing(BROKER_CALENDAR, f"data[{index}].date")
        brokers = day.get("brokers") or {}
        if not isinstance(brokers, Mapping) or not all(isinstance(v, Mapping) for v in brokers.values()):
            raise ParseError.wrong_type(BROKER_CALENDAR, f"data[{index}].brokers", "an object", brokers)

    try:
        bars = build_daily_bars(days)
    except ValidationError as e:
        raise ParseError(
            source=BROKER_CALENDAR,
            reason=f"invalid day entry: {e.errors()[0]['msg']}",
        ) from e

    logger.debug(f"Parsed {len(bars)} calendar days")
    return bars


# ============================================================================
# Big-player movements
# ============================================================================

def _movement_fields(raw: Mapping) -> dict[str, Any]:
    """Flatten nested API objects into OwnershipChangeRecord fields."""
    source = raw.get("data_source")
    if isinstance(source, Mapping):
        source = source.get("type") or source.get("label")
    broker = raw.get("broker_detail")
    broker_code = broker.get("code") if isinstance(broker, Mapping) else raw.get("broker_code")

    return {
        "id": str(raw.get("id") or ""),
        "name": raw.get("name"),
        "symbol": raw.get("symbol"),
        "date": raw.get("date"),
        "action_type": raw.get("action_type"),
        "nationality": raw.get("nationality") or "",
        "badges": tuple(raw.get("badges") or ()),
        "previous": raw.get("previous") or {},
        "current": raw.get("current") or {},
        "changes": raw.get("changes") or {},
        "data_source": source or "",
        "broker_code": broker_code or "",
        "price_formatted": raw.get("price_formatted") or "",
    }


def parse_big_player_movements(payload: Mapping) -> list[OwnershipChangeRecord]:
    """
    Parse a big-player-movement payload (`data.movement`) into records.

    Entries that fail validation are skipped with a warning.

    Raises:
        ParseError: If `data` or `data.movement` is missing
    """
    data = _require(payload, "data", Mapping, BIG_PLAYER)
    rows = _require(data, "movement", list, BIG_PLAYER)

    records: list[OwnershipChangeRecord] = []
    skipped = 0
    for row in rows:
        if not isinstance(row, Mapping):
            skipped += 1
            continue
        try:
            records.append(OwnershipChangeRecord.model_validate(_movement_fields(row)))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping malformed movement {row.get('id')!r}: {e.error_count()} errors")

    if skipped:
        logger.warning(f"Skipped {skipped} of {len(rows)} big-player movement entries")
    logger.debug(f"Parsed {len(records)} big-player movements")
    return records
