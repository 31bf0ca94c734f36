"""
Daily broker-action bars and whole-range accumulation/distribution summary.

A calendar payload lists, per trading day, the closing price and each
tracked broker's signed net value and volume (positive = net buy). Bars
carry a close-to-close price change series.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from .enums import Phase
from .models import BrokerFlowRecord, DailyBar
from .periods import classify_phase
from .score_math import parse_number


@dataclass(frozen=True)
class PriceMovement:
    """Close-to-close movement over a range of bars."""

    start: float
    end: float
    change: float
    change_percent: float


@dataclass(frozen=True)
class BrokerNet:
    broker: str
    net_value: float


@dataclass(frozen=True)
class RangeSummary:
    """Accumulation/distribution view of a run of daily bars."""

    phase: Phase
    net_buy: float
    net_sell: float
    total_value: float
    net_value: float
    dominant_brokers: tuple[BrokerNet, ...]
    distribution_brokers: tuple[BrokerNet, ...]
    price_movement: PriceMovement | None
    trading_days: int


def percent_change(previous: float, current: float) -> float:
    """Percent change; 0 when the previous value is 0."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def _flow_from_signed(code: str, value: float, volume: float) -> BrokerFlowRecord:
    """Split one signed (value, volume) pair into a buy or sell record."""
    if value > 0:
        return BrokerFlowRecord(
            broker=code,
            buy_value=value,
            buy_lot=abs(volume),
            buy_avg=value / abs(volume) if volume else 0.0,
        )
    return BrokerFlowRecord(
        broker=code,
        sell_value=abs(value),
        sell_lot=abs(volume),
        sell_avg=abs(value) / abs(volume) if volume else 0.0,
    )


def with_price_changes(bars: Sequence[DailyBar]) -> list[DailyBar]:
    """
    Recompute price_change / price_change_percent over ordered bars.

    The first bar is compared with itself (zero change).
    """
    result: list[DailyBar] = []
    previous_close: float | None = None
    for bar in bars:
        prior = bar.close_price if previous_close is None else previous_close
        result.append(bar.model_copy(update={
            "price_change": bar.close_price - prior,
            "price_change_percent": percent_change(prior, bar.close_price),
        }))
        previous_close = bar.close_price
    return result


def build_daily_bars(days: Iterable[Mapping]) -> list[DailyBar]:
    """
    Build bars from calendar day entries.

    Each entry has date, close_price, total_volume, total_value and a
    brokers mapping of code -> {value, volume}. Input order is kept.
    """
    bars = []
    for day in days:
        flows = tuple(
            _flow_from_signed(
                code,
                parse_number(data.get("value")),
                parse_number(data.get("volume")),
            )
            for code, data in (day.get("brokers") or {}).items()
        )
        bars.append(DailyBar(
            date=day["date"],
            close_price=parse_number(day.get("close_price")),
            net_volume=parse_number(day.get("total_volume")),
            net_value=parse_number(day.get("total_value")),
            brokers=tuple(f for f in flows if f.is_active),
        ))
    return with_price_changes(bars)


def price_movement(bars: Sequence[DailyBar]) -> PriceMovement | None:
    """First to last close; None for no bars."""
    if not bars:
        return None
    start, end = bars[0].close_price, bars[-1].close_price
    return PriceMovement(
        start=start,
        end=end,
        change=end - start,
        change_percent=percent_change(start, end),
    )


def summarize_daily_bars(bars: Sequence[DailyBar], top_n: int = 5) -> RangeSummary:
    """
    Summarize broker flow across bars.

    Dominant brokers are the top_n largest cumulative net buyers,
    distribution brokers the top_n largest cumulative net sellers.
    """
    net_buy = 0.0
    net_sell = 0.0
    per_broker: dict[str, float] = {}

    for bar in bars:
        for flow in bar.brokers:
            net_buy += flow.buy_value
            net_sell += flow.sell_value
            per_broker[flow.broker] = per_broker.get(flow.broker, 0.0) + flow.net_value

    ranked = sorted(per_broker.items(), key=lambda item: item[1], reverse=True)
    dominant = [BrokerNet(code, value) for code, value in ranked if value > 0][:top_n]
    distribution = [
        BrokerNet(code, value)
        for code, value in sorted(per_broker.items(), key=lambda item: item[1])
        if value < 0
    ][:top_n]

    net_value = net_buy - net_sell
    return RangeSummary(
        phase=classify_phase(net_value),
        net_buy=net_buy,
        net_sell=net_sell,
        total_value=net_buy + net_sell,
        net_value=net_value,
        dominant_brokers=tuple(dominant),
        distribution_brokers=tuple(distribution),
        price_movement=price_movement(bars),
        trading_days=len(bars),
    )


def bars_between(bars: Iterable[DailyBar], start: date, end: date) -> list[DailyBar]:
    """Bars dated within [start, end]."""
    return [bar for bar in bars if start <= bar.date <= end]
