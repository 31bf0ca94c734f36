"""
Big-player movement aggregation.

The exchange (IDX) and the depository (KSEI) both report shareholder
position changes, and a single transaction may be split across several
brokers. Records that share (name, symbol, date, action type) are merged
into one AggregatedMovement with value-weighted statistics.

The representative "latest" holding is the record with the largest
current holding value. The feeds carry no sub-day timestamp, so holding
value stands in for recency (LatestBy.HOLDING_VALUE).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .enums import ActionCategory, ActionType, LatestBy, SortField, SortOrder
from .models import OwnershipChangeRecord

logger = logging.getLogger(__name__)

OTHER_ACTIONS = frozenset({
    ActionType.MESOP_OPTION.value,
    ActionType.MSOP_OPTION.value,
    ActionType.WARRANT_EXERCISE.value,
    ActionType.CROSS.value,
})

# Formatted prices that mean "no price"
_EMPTY_PRICES = frozenset({"", "0", "-"})


@dataclass(frozen=True)
class AggregatedMovement:
    """One real-world ownership change merged from its reports."""

    key: str
    name: str
    symbol: str
    date: date
    action_type: str
    nationality: str
    badges: tuple[str, ...]

    total_change_value: float
    avg_change_percentage: float  # weighted by |change value|
    current_holding_value: float
    current_holding_percentage: float
    previous_holding_value: float
    previous_holding_percentage: float
    total_current_holding: float
    total_previous_holding: float

    brokers: frozenset[str]
    prices: frozenset[str]
    sources: frozenset[str]
    entry_count: int

    raw_entries: tuple[OwnershipChangeRecord, ...]


def weighted_change_percentage(records: Iterable[OwnershipChangeRecord]) -> float:
    """
    Average change percentage weighted by absolute change value.

    Returns 0 when every change value is 0.
    """
    weighted_sum = 0.0
    total_weight = 0.0
    for record in records:
        weight = abs(record.changes.value)
        weighted_sum += record.changes.percentage * weight
        total_weight += weight
    return weighted_sum / total_weight if total_weight > 0 else 0.0


def select_latest(
    records: list[OwnershipChangeRecord],
    latest_by: LatestBy = LatestBy.HOLDING_VALUE,
) -> OwnershipChangeRecord:
    """Pick the representative record of a group (first one wins ties)."""
    if latest_by is LatestBy.HOLDING_VALUE:
        return max(records, key=lambda r: r.current.value)
    raise ValueError(f"Unsupported latest_by policy: {latest_by}")


def _aggregate_group(
    key: str,
    records: list[OwnershipChangeRecord],
    latest_by: LatestBy,
) -> AggregatedMovement:
    if not records:
        raise ValueError("Cannot aggregate empty record group")

    first = records[0]
    latest = select_latest(records, latest_by)

    brokers = frozenset(r.broker_code for r in records if r.broker_code)
    prices = frozenset(r.price_formatted for r in records if r.price_formatted not in _EMPTY_PRICES)
    sources = frozenset(r.data_source for r in records if r.data_source)

    return AggregatedMovement(
        key=key,
        name=first.name,
        symbol=first.symbol,
        date=first.date,
        action_type=first.action_type,
        nationality=first.nationality,
        badges=first.badges,
        total_change_value=sum(r.changes.value for r in records),
        avg_change_percentage=weighted_change_percentage(records),
        current_holding_value=latest.current.value,
        current_holding_percentage=latest.current.percentage,
        previous_holding_value=latest.previous.value,
        previous_holding_percentage=latest.previous.percentage,
        total_current_holding=sum(r.current.value for r in records),
        total_previous_holding=sum(r.previous.value for r in records),
        brokers=brokers,
        prices=prices,
        sources=sources,
        entry_count=len(records),
        raw_entries=tuple(records),
    )


def aggregate_movements(
    records: Iterable[OwnershipChangeRecord],
    latest_by: LatestBy = LatestBy.HOLDING_VALUE,
) -> list[AggregatedMovement]:
    """
    Merge records sharing name|symbol|date|action_type.

    Keys match exactly (no fuzzy matching). Groups come out in the order
    their first record was seen.
    """
    groups: dict[str, list[OwnershipChangeRecord]] = {}
    count = 0
    for record in records:
        groups.setdefault(record.key, []).append(record)
        count += 1

    result = [_aggregate_group(key, group, latest_by) for key, group in groups.items()]
    logger.debug(f"Aggregated {count} movement records into {len(result)} groups")
    return result


# ============================================================================
# Filters and ordering
# ============================================================================


def filter_by_search(
    entries: list[AggregatedMovement],
    term: str | None,
) -> list[AggregatedMovement]:
    """Case-insensitive substring match on symbol or entity name."""
    if not term or not term.strip():
        return entries
    needle = term.strip().lower()
    return [
        e for e in entries
        if needle in e.symbol.lower() or needle in e.name.lower()
    ]


def filter_by_action(
    entries: list[AggregatedMovement],
    category: ActionCategory | str = ActionCategory.ALL,
) -> list[AggregatedMovement]:
    """Keep buys, sells, or 'other' (options, warrant exercise, cross)."""
    category = ActionCategory(category)
    if category is ActionCategory.BUY:
        return [e for e in entries if e.action_type == ActionType.BUY.value]
    if category is ActionCategory.SELL:
        return [e for e in entries if e.action_type == ActionType.SELL.value]
    if category is ActionCategory.OTHER:
        return [e for e in entries if e.action_type in OTHER_ACTIONS]
    return entries


_SORT_KEYS = {
    SortField.DATE: lambda e: e.date,
    SortField.CHANGE_PERCENTAGE: lambda e: e.avg_change_percentage,
    SortField.CHANGE_VALUE: lambda e: e.total_change_value,
    SortField.HOLDING_PERCENTAGE: lambda e: e.current_holding_percentage,
}


def sort_movements(
    entries: list[AggregatedMovement],
    field: SortField | str = SortField.DATE,
    order: SortOrder | str = SortOrder.DESC,
) -> list[AggregatedMovement]:
    """Stable sort by one field."""
    key = _SORT_KEYS[SortField(field)]
    return sorted(entries, key=key, reverse=SortOrder(order) is SortOrder.DESC)


def default_order(entries: list[AggregatedMovement]) -> list[AggregatedMovement]:
    """Presentation order: newest date first, then largest weighted change %."""
    by_change = sort_movements(entries, SortField.CHANGE_PERCENTAGE, SortOrder.DESC)
    return sort_movements(by_change, SortField.DATE, SortOrder.DESC)
