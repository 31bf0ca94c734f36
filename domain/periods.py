"""
Multi-period broker flow analysis.

A date range is split into six equal windows. Each window's buyers and
sellers are summarized (net flow, phase, top participants, group nets)
and the windows are rolled up into an executive summary: trend pattern,
consistent buyers/sellers, position switchers, group domination and the
average price range.

Pure pipeline over already-fetched, already-ordered input. Broker groups
come from an injected BrokerDirectory.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from .brokers import EMPTY_DIRECTORY, BrokerDirectory
from .enums import BrokerGroup, DominantGroup, Phase, PositionRole, TrendPattern
from .models import BrokerFlowRecord, Period

PERIOD_COUNT = 6
ROLE_SEPARATOR = " → "


# ============================================================================
# Configuration Types
# ============================================================================


@dataclass(frozen=True)
class AnalysisLimits:
    """Thresholds and list caps for the executive summary."""

    consistency_min_periods: int = 3
    switcher_min_roles: int = 3
    max_consistent: int = 10
    max_switchers: int = 15
    strong_trend_periods: int = 5
    moderate_trend_periods: int = 4

    def __post_init__(self) -> None:
        if self.strong_trend_periods < self.moderate_trend_periods:
            raise ValueError("strong_trend_periods must be >= moderate_trend_periods")


DEFAULT_LIMITS = AnalysisLimits()


# ============================================================================
# Output Types
# ============================================================================


@dataclass(frozen=True)
class TopParticipant:
    """Largest buyer or seller of a period and its share of the side's value."""

    broker: str
    value: float
    percentage: float


@dataclass(frozen=True)
class PeriodSummary:
    """Aggregate figures for one period."""

    label: str
    start: date
    end: date
    total_buy_value: float
    total_sell_value: float
    total_value: float
    net_flow: float
    buy_avg_price: float
    sell_avg_price: float
    spread: float
    active_buyers: int
    active_sellers: int
    top_buyer: TopParticipant | None
    top_seller: TopParticipant | None
    foreign_net: float
    domestic_net: float
    government_net: float
    phase: Phase


@dataclass(frozen=True)
class ConsistentBroker:
    """Broker seen on the same side in many periods."""

    broker: str
    count: int
    periods: tuple[str, ...]


@dataclass(frozen=True)
class PositionSwitcher:
    """Broker's role sequence across periods, e.g. BUY → SELL → BOTH."""

    broker: str
    roles: tuple[PositionRole, ...]
    periods: tuple[str, ...]

    @property
    def pattern(self) -> str:
        return ROLE_SEPARATOR.join(role.value for role in self.roles)


@dataclass(frozen=True)
class GroupFlowPoint:
    period: str
    net_flow: float


@dataclass(frozen=True)
class GroupDomination:
    period: str
    dominant: DominantGroup


@dataclass(frozen=True)
class PriceRange:
    """Spread of per-period average prices."""

    min: float
    max: float
    change: float
    change_percent: float


@dataclass(frozen=True)
class ExecutiveSummary:
    """Roll-up across all periods of an analysis."""

    period_summaries: tuple[PeriodSummary, ...]
    total_net_flow: float
    accumulation_periods: int
    distribution_periods: int
    trend_pattern: TrendPattern
    consistent_buyers: tuple[ConsistentBroker, ...] = ()
    consistent_sellers: tuple[ConsistentBroker, ...] = ()
    position_switchers: tuple[PositionSwitcher, ...] = ()
    foreign_trend: tuple[GroupFlowPoint, ...] = ()
    domestic_trend: tuple[GroupFlowPoint, ...] = ()
    government_trend: tuple[GroupFlowPoint, ...] = ()
    price_range: PriceRange | None = None
    group_domination: tuple[GroupDomination, ...] = field(default=())


# ============================================================================
# Period division
# ============================================================================


def divide_period(start: date, end: date, count: int = PERIOD_COUNT) -> list[Period]:
    """
    Split [start, end] into `count` contiguous windows, newest first.

    With D = (end - start).days and step = D // count, window i (oldest
    first) covers [start + i*step, start + (i+1)*step - 1]; the last
    window absorbs the remainder and always ends at `end`. Labels run
    "Period 1" (oldest) to "Period {count}" (newest).

    Raises:
        ValueError: if end <= start or the range is too short to give
            every window at least one day.
    """
    if count < 1:
        raise ValueError(f"count must be positive, got {count}")
    if end <= start:
        raise ValueError(f"end ({end}) must be after start ({start})")

    total_days = (end - start).days
    step = total_days // count
    if step == 0:
        raise ValueError(
            f"Range {start}..{end} spans {total_days} days, "
            f"too short for {count} periods"
        )

    periods: list[Period] = []
    for i in range(count):
        period_start = start + timedelta(days=i * step)
        if i == count - 1:
            period_end = end
        else:
            period_end = period_start + timedelta(days=step - 1)
        periods.append(Period(label=f"Period {i + 1}", start=period_start, end=period_end))

    periods.reverse()
    return periods


# ============================================================================
# Period summary
# ============================================================================


def classify_phase(net_flow: float) -> Phase:
    """Zero net flow counts as accumulation."""
    return Phase.ACCUMULATION if net_flow >= 0 else Phase.DISTRIBUTION


def _weighted_price(pairs: list[tuple[float, float]]) -> float:
    """Lot-weighted average of (price, lot) pairs; 0 when no lots."""
    total_lot = sum(lot for _, lot in pairs)
    if total_lot <= 0:
        return 0.0
    return sum(price * lot for price, lot in pairs) / total_lot


def _top_participant(
    records: Sequence[BrokerFlowRecord],
    value_of,
    total: float,
) -> TopParticipant | None:
    if not records or total <= 0:
        return None
    top = max(records, key=value_of)
    value = value_of(top)
    return TopParticipant(broker=top.broker, value=value, percentage=value / total * 100)


def summarize_period(
    period: Period,
    brokers: BrokerDirectory = EMPTY_DIRECTORY,
) -> PeriodSummary:
    """
    Summarize one period's buyers and sellers.

    Group nets count each buyer's buy value and each seller's sell value,
    so foreign + domestic + government + unspecified equals net_flow.
    """
    total_buy = sum(b.buy_value for b in period.buyers)
    total_sell = sum(s.sell_value for s in period.sellers)
    net_flow = total_buy - total_sell

    buy_avg = _weighted_price([(b.buy_avg, b.buy_lot) for b in period.buyers])
    sell_avg = _weighted_price([(s.sell_avg, s.sell_lot) for s in period.sellers])

    group_net = {group: 0.0 for group in BrokerGroup}
    for b in period.buyers:
        group_net[brokers.group_of(b.broker)] += b.buy_value
    for s in period.sellers:
        group_net[brokers.group_of(s.broker)] -= s.sell_value

    return PeriodSummary(
        label=period.label,
        start=period.start,
        end=period.end,
        total_buy_value=total_buy,
        total_sell_value=total_sell,
        total_value=total_buy + total_sell,
        net_flow=net_flow,
        buy_avg_price=buy_avg,
        sell_avg_price=sell_avg,
        spread=sell_avg - buy_avg,
        active_buyers=len(period.buyers),
        active_sellers=len(period.sellers),
        top_buyer=_top_participant(period.buyers, lambda r: r.buy_value, total_buy),
        top_seller=_top_participant(period.sellers, lambda r: r.sell_value, total_sell),
        foreign_net=group_net[BrokerGroup.FOREIGN],
        domestic_net=group_net[BrokerGroup.DOMESTIC],
        government_net=group_net[BrokerGroup.GOVERNMENT],
        phase=classify_phase(net_flow),
    )


# ============================================================================
# Executive summary
# ============================================================================


def classify_trend(
    accumulation_periods: int,
    distribution_periods: int,
    limits: AnalysisLimits = DEFAULT_LIMITS,
) -> TrendPattern:
    """
    Label the phase mix. Accumulation thresholds are checked first, so
    they win whenever both sides would qualify.
    """
    if accumulation_periods >= limits.strong_trend_periods:
        return TrendPattern.STRONG_ACCUMULATION
    if accumulation_periods >= limits.moderate_trend_periods:
        return TrendPattern.MODERATE_ACCUMULATION
    if distribution_periods >= limits.strong_trend_periods:
        return TrendPattern.STRONG_DISTRIBUTION
    if distribution_periods >= limits.moderate_trend_periods:
        return TrendPattern.MODERATE_DISTRIBUTION
    return TrendPattern.MIXED


def _consistent(
    appearances: dict[str, list[str]],
    limits: AnalysisLimits,
) -> tuple[ConsistentBroker, ...]:
    ranked = sorted(
        (
            ConsistentBroker(broker=broker, count=len(labels), periods=tuple(labels))
            for broker, labels in appearances.items()
            if len(labels) >= limits.consistency_min_periods
        ),
        key=lambda c: c.count,
        reverse=True,
    )
    return tuple(ranked[:limits.max_consistent])


def find_consistent_brokers(
    periods: Sequence[Period],
    limits: AnalysisLimits = DEFAULT_LIMITS,
) -> tuple[tuple[ConsistentBroker, ...], tuple[ConsistentBroker, ...]]:
    """Brokers on the buy (sell) side in at least N distinct periods."""
    buyer_periods: dict[str, list[str]] = {}
    seller_periods: dict[str, list[str]] = {}

    for period in periods:
        for broker in dict.fromkeys(b.broker for b in period.buyers):
            buyer_periods.setdefault(broker, []).append(period.label)
        for broker in dict.fromkeys(s.broker for s in period.sellers):
            seller_periods.setdefault(broker, []).append(period.label)

    return _consistent(buyer_periods, limits), _consistent(seller_periods, limits)


def find_position_switchers(
    periods: Sequence[Period],
    limits: AnalysisLimits = DEFAULT_LIMITS,
) -> tuple[PositionSwitcher, ...]:
    """
    Role sequences (BUY / SELL / BOTH) across periods, in period order.

    Keeps brokers with at least N recorded roles, longest first.
    """
    roles: dict[str, list[PositionRole]] = {}
    labels: dict[str, list[str]] = {}

    for period in periods:
        buyers = dict.fromkeys(b.broker for b in period.buyers)
        sellers = dict.fromkeys(s.broker for s in period.sellers)

        for broker in dict.fromkeys([*buyers, *sellers]):
            if broker in buyers and broker in sellers:
                role = PositionRole.BOTH
            elif broker in buyers:
                role = PositionRole.BUY
            else:
                role = PositionRole.SELL
            roles.setdefault(broker, []).append(role)
            labels.setdefault(broker, []).append(period.label)

    switchers = sorted(
        (
            PositionSwitcher(broker=broker, roles=tuple(seq), periods=tuple(labels[broker]))
            for broker, seq in roles.items()
            if len(seq) >= limits.switcher_min_roles
        ),
        key=lambda s: len(s.roles),
        reverse=True,
    )
    return tuple(switchers[:limits.max_switchers])


def dominant_group(summary: PeriodSummary) -> DominantGroup:
    """Group with the largest |net|; ties for the top or all-zero are Balanced."""
    magnitudes = {
        DominantGroup.FOREIGN: abs(summary.foreign_net),
        DominantGroup.DOMESTIC: abs(summary.domestic_net),
        DominantGroup.GOVERNMENT: abs(summary.government_net),
    }
    top = max(magnitudes.values())
    leaders = [group for group, magnitude in magnitudes.items() if magnitude == top]
    if top <= 0 or len(leaders) > 1:
        return DominantGroup.BALANCED
    return leaders[0]


def average_price_range(summaries: Sequence[PeriodSummary]) -> PriceRange | None:
    """
    Range of per-period average prices (buy avg, else sell avg).

    None when no period has a positive average price.
    """
    prices = [s.buy_avg_price or s.sell_avg_price for s in summaries]
    prices = [p for p in prices if p > 0]
    if not prices:
        return None
    low, high = min(prices), max(prices)
    change = high - low
    return PriceRange(
        min=low,
        max=high,
        change=change,
        change_percent=change / low * 100 if low > 0 else 0.0,
    )


def summarize_executive(
    periods: Sequence[Period],
    brokers: BrokerDirectory = EMPTY_DIRECTORY,
    limits: AnalysisLimits = DEFAULT_LIMITS,
) -> ExecutiveSummary:
    """Roll period summaries up into an executive summary."""
    summaries = tuple(summarize_period(p, brokers) for p in periods)

    accumulation = sum(1 for s in summaries if s.phase is Phase.ACCUMULATION)
    distribution = len(summaries) - accumulation

    consistent_buyers, consistent_sellers = find_consistent_brokers(periods, limits)

    return ExecutiveSummary(
        period_summaries=summaries,
        total_net_flow=sum(s.net_flow for s in summaries),
        accumulation_periods=accumulation,
        distribution_periods=distribution,
        trend_pattern=classify_trend(accumulation, distribution, limits),
        consistent_buyers=consistent_buyers,
        consistent_sellers=consistent_sellers,
        position_switchers=find_position_switchers(periods, limits),
        foreign_trend=tuple(GroupFlowPoint(s.label, s.foreign_net) for s in summaries),
        domestic_trend=tuple(GroupFlowPoint(s.label, s.domestic_net) for s in summaries),
        government_trend=tuple(GroupFlowPoint(s.label, s.government_net) for s in summaries),
        price_range=average_price_range(summaries),
        group_domination=tuple(GroupDomination(s.label, dominant_group(s)) for s in summaries),
    )
