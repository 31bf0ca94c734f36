"""
JSON API response types.

Structured responses for web API consumption of engine outputs.
Can be used with FastAPI, Flask, or any web framework.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel

from domain.daily import RangeSummary
from domain.models import DailyBar
from domain.movements import AggregatedMovement
from domain.periods import ExecutiveSummary, PeriodSummary, TopParticipant
from domain.valuation import FundamentalScore, IntrinsicValueResult, ScoreDetail


# ============================================================================
# Response Models
# ============================================================================

class TopParticipantResponse(BaseModel):
    broker: str
    value: float
    percentage: float


class PeriodSummaryResponse(BaseModel):
    """API response for one analysis period."""
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
    top_buyer: TopParticipantResponse | None = None
    top_seller: TopParticipantResponse | None = None
    foreign_net: float
    domestic_net: float
    government_net: float
    phase: str


class ConsistentBrokerResponse(BaseModel):
    broker: str
    count: int
    periods: list[str]


class PositionSwitcherResponse(BaseModel):
    broker: str
    pattern: str
    roles: list[str]
    periods: list[str]


class GroupFlowResponse(BaseModel):
    period: str
    net_flow: float


class PriceRangeResponse(BaseModel):
    min: float
    max: float
    change: float
    change_percent: float


class ExecutiveSummaryResponse(BaseModel):
    """Full multi-period analysis response."""
    symbol: str | None = None
    trend_pattern: str
    total_net_flow: float
    accumulation_periods: int
    distribution_periods: int
    periods: list[PeriodSummaryResponse]
    consistent_buyers: list[ConsistentBrokerResponse]
    consistent_sellers: list[ConsistentBrokerResponse]
    position_switchers: list[PositionSwitcherResponse]
    foreign_trend: list[GroupFlowResponse]
    domestic_trend: list[GroupFlowResponse]
    government_trend: list[GroupFlowResponse]
    group_domination: dict[str, str]
    price_range: PriceRangeResponse | None = None
    failed_periods: list[str] = []


class MovementResponse(BaseModel):
    """API response for an aggregated ownership change."""
    key: str
    name: str
    symbol: str
    date: date
    action_type: str
    nationality: str
    badges: list[str]
    total_change_value: float
    avg_change_percentage: float
    current_holding_value: float
    current_holding_percentage: float
    previous_holding_value: float
    previous_holding_percentage: float
    brokers: list[str]
    prices: list[str]
    sources: list[str]
    entry_count: int


class DailyBarResponse(BaseModel):
    date: date
    close_price: float
    price_change: float
    price_change_percent: float
    net_volume: float
    net_value: float
    broker_count: int


class BrokerNetResponse(BaseModel):
    broker: str
    net_value: float


class PriceMovementResponse(BaseModel):
    start: float
    end: float
    change: float
    change_percent: float


class DailyAnalysisResponse(BaseModel):
    """Daily bars plus the whole-range summary."""
    phase: str
    net_buy: float
    net_sell: float
    total_value: float
    net_value: float
    trading_days: int
    dominant_brokers: list[BrokerNetResponse]
    distribution_brokers: list[BrokerNetResponse]
    price_movement: PriceMovementResponse | None = None
    bars: list[DailyBarResponse]


class ScoreDetailResponse(BaseModel):
    score: int
    label: str
    color: str


class ValuationResponse(BaseModel):
    """Intrinsic value estimates and fundamental score."""
    mode: str
    current_price: float
    graham: float
    peter_lynch: float
    index_relative: float
    asset_based: float
    low: float | None = None
    mid: float | None = None
    high: float | None = None
    upside_percent: float | None = None
    status: str
    profitability: ScoreDetailResponse
    valuation: ScoreDetailResponse
    risk: ScoreDetailResponse
    growth: ScoreDetailResponse
    overall: int
    overall_label: str
    overall_color: str


# ============================================================================
# Conversion Functions
# ============================================================================

def _participant_to_response(top: TopParticipant | None) -> TopParticipantResponse | None:
    if top is None:
        return None
    return TopParticipantResponse(broker=top.broker, value=top.value, percentage=round(top.percentage, 2))


def _period_to_response(s: PeriodSummary) -> PeriodSummaryResponse:
    """Convert PeriodSummary to API response."""
    return PeriodSummaryResponse(
        label=s.label,
        start=s.start,
        end=s.end,
        total_buy_value=s.total_buy_value,
        total_sell_value=s.total_sell_value,
        total_value=s.total_value,
        net_flow=s.net_flow,
        buy_avg_price=round(s.buy_avg_price, 2),
        sell_avg_price=round(s.sell_avg_price, 2),
        spread=round(s.spread, 2),
        active_buyers=s.active_buyers,
        active_sellers=s.active_sellers,
        top_buyer=_participant_to_response(s.top_buyer),
        top_seller=_participant_to_response(s.top_seller),
        foreign_net=s.foreign_net,
        domestic_net=s.domestic_net,
        government_net=s.government_net,
        phase=s.phase.value,
    )


def to_executive_response(
    summary: ExecutiveSummary,
    symbol: str | None = None,
    failed_periods: list[str] | None = None,
) -> ExecutiveSummaryResponse:
    """Convert ExecutiveSummary to API response."""
    price_range = None
    if summary.price_range is not None:
        r = summary.price_range
        price_range = PriceRangeResponse(
            min=r.min, max=r.max, change=r.change, change_percent=round(r.change_percent, 2),
        )

    return ExecutiveSummaryResponse(
        symbol=symbol,
        trend_pattern=summary.trend_pattern.value,
        total_net_flow=summary.total_net_flow,
        accumulation_periods=summary.accumulation_periods,
        distribution_periods=summary.distribution_periods,
        periods=[_period_to_response(s) for s in summary.period_summaries],
        consistent_buyers=[
            ConsistentBrokerResponse(broker=c.broker, count=c.count, periods=list(c.periods))
            for c in summary.consistent_buyers
        ],
        consistent_sellers=[
            ConsistentBrokerResponse(broker=c.broker, count=c.count, periods=list(c.periods))
            for c in summary.consistent_sellers
        ],
        position_switchers=[
            PositionSwitcherResponse(
                broker=s.broker,
                pattern=s.pattern,
                roles=[r.value for r in s.roles],
                periods=list(s.periods),
            )
            for s in summary.position_switchers
        ],
        foreign_trend=[GroupFlowResponse(period=p.period, net_flow=p.net_flow) for p in summary.foreign_trend],
        domestic_trend=[GroupFlowResponse(period=p.period, net_flow=p.net_flow) for p in summary.domestic_trend],
        government_trend=[GroupFlowResponse(period=p.period, net_flow=p.net_flow) for p in summary.government_trend],
        group_domination={d.period: d.dominant.value for d in summary.group_domination},
        price_range=price_range,
        failed_periods=failed_periods or [],
    )


def to_movement_response(m: AggregatedMovement) -> MovementResponse:
    """Convert AggregatedMovement to API response (raw entries dropped)."""
    return MovementResponse(
        key=m.key,
        name=m.name,
        symbol=m.symbol,
        date=m.date,
        action_type=m.action_type,
        nationality=m.nationality,
        badges=list(m.badges),
        total_change_value=m.total_change_value,
        avg_change_percentage=round(m.avg_change_percentage, 4),
        current_holding_value=m.current_holding_value,
        current_holding_percentage=m.current_holding_percentage,
        previous_holding_value=m.previous_holding_value,
        previous_holding_percentage=m.previous_holding_percentage,
        brokers=sorted(m.brokers),
        prices=sorted(m.prices),
        sources=sorted(m.sources),
        entry_count=m.entry_count,
    )


def to_daily_response(bars: list[DailyBar], summary: RangeSummary) -> DailyAnalysisResponse:
    """Convert daily bars and their RangeSummary to API response."""
    movement = None
    if summary.price_movement is not None:
        pm = summary.price_movement
        movement = PriceMovementResponse(
            start=pm.start, end=pm.end, change=pm.change, change_percent=round(pm.change_percent, 2),
        )

    return DailyAnalysisResponse(
        phase=summary.phase.value,
        net_buy=summary.net_buy,
        net_sell=summary.net_sell,
        total_value=summary.total_value,
        net_value=summary.net_value,
        trading_days=summary.trading_days,
        dominant_brokers=[BrokerNetResponse(broker=b.broker, net_value=b.net_value) for b in summary.dominant_brokers],
        distribution_brokers=[
            BrokerNetResponse(broker=b.broker, net_value=b.net_value) for b in summary.distribution_brokers
        ],
        price_movement=movement,
        bars=[
            DailyBarResponse(
                date=b.date,
                close_price=b.close_price,
                price_change=b.price_change,
                price_change_percent=round(b.price_change_percent, 2),
                net_volume=b.net_volume,
                net_value=b.net_value,
                broker_count=len(b.brokers),
            )
            for b in bars
        ],
    )


def _detail_to_response(d: ScoreDetail) -> ScoreDetailResponse:
    return ScoreDetailResponse(score=d.score, label=d.label, color=d.color)


def to_valuation_response(intrinsic: IntrinsicValueResult, score: FundamentalScore) -> ValuationResponse:
    """Convert valuation outputs to API response."""
    value_range = intrinsic.range
    return ValuationResponse(
        mode=intrinsic.mode.value,
        current_price=intrinsic.current_price,
        graham=round(intrinsic.graham, 2),
        peter_lynch=round(intrinsic.peter_lynch, 2),
        index_relative=round(intrinsic.index_relative, 2),
        asset_based=round(intrinsic.asset_based, 2),
        low=round(value_range.low, 2) if value_range else None,
        mid=round(value_range.mid, 2) if value_range else None,
        high=round(value_range.high, 2) if value_range else None,
        upside_percent=round(intrinsic.upside, 2) if intrinsic.upside is not None else None,
        status=intrinsic.status.value,
        profitability=_detail_to_response(score.profitability),
        valuation=_detail_to_response(score.valuation),
        risk=_detail_to_response(score.risk),
        growth=_detail_to_response(score.growth),
        overall=score.overall,
        overall_label=score.overall_label,
        overall_color=score.overall_color,
    )


def to_json(response: BaseModel) -> dict[str, Any]:
    """
    Convert any response model to a JSON-serializable dict.

    Args:
        response: One of the *Response models above

    Returns:
        JSON-serializable dictionary
    """
    return response.model_dump(mode="json")
