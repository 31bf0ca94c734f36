"""
Intrinsic value estimation and fundamental scoring.

Pure functions, no I/O. Thresholds, weights and mode multipliers are
passed in (see config.schema for the validated versions) so the engine
can be re-tuned without touching its logic.

Intrinsic value uses four independent models:
1. Graham: EPS x (8.5 + 2g), growth clamped to [0, 50]
2. Peter Lynch: EPS x g, growth floored at 0
3. Index relative: EPS x index P/E
4. Asset based: book value per share

Fundamental score blends four 0-100 categories (profitability,
valuation, risk, growth) with equal weight.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .enums import ValuationMode, ValuationStatus
from .models import ValuationInputs
from .score_math import (
    DEFAULT_SCORE_COLORS,
    ScoreColors,
    parse_percentage,
    score_color,
    score_in_range,
    score_label,
    score_reverse,
)

logger = logging.getLogger(__name__)

# P/E relative to the index P/E -> score
_INDEX_PE_BANDS: tuple[tuple[float, float], ...] = (
    (0.8, 100.0),
    (1.0, 80.0),
    (1.2, 60.0),
    (1.5, 40.0),
)
_INDEX_PE_FLOOR_SCORE = 20.0

GRAHAM_BASE_PE = 8.5
GRAHAM_MAX_GROWTH = 50.0
OUTLIER_PRICE_MULTIPLE = 10.0


# ============================================================================
# Configuration Types (passed in, not imported)
# ============================================================================


@dataclass(frozen=True)
class ValuationThresholds:
    """Metric thresholds for IDX fundamentals. Percent units. Load from config."""

    # Profitability
    roe_poor: float = 5.0
    roe_excellent: float = 20.0
    net_margin_poor: float = 5.0
    net_margin_excellent: float = 20.0
    roa_poor: float = 2.0
    roa_excellent: float = 10.0

    # Valuation multiples (lower is better)
    pe_cheap: float = 10.0
    pe_expensive: float = 20.0
    pbv_cheap: float = 1.0
    pbv_expensive: float = 2.0

    # Risk
    altman_z_distress: float = 1.0
    altman_z_safe: float = 3.0
    altman_z_headroom: float = 2.0  # full score at safe + headroom
    debt_to_equity_safe: float = 1.0
    debt_to_equity_risky: float = 2.0
    current_ratio_weak: float = 1.0
    current_ratio_strong: float = 2.0
    current_ratio_headroom: float = 1.0

    # Growth (YoY %)
    revenue_growth_poor: float = 5.0
    revenue_growth_excellent: float = 20.0
    net_income_growth_poor: float = 0.0
    net_income_growth_excellent: float = 20.0
    growth_headroom: float = 10.0


def _check_sum(name: str, *weights: float) -> None:
    total = sum(weights)
    if abs(total - 1.0) > 0.01:
        raise ValueError(f"{name} weights must sum to 1.0, got {total}")


@dataclass(frozen=True)
class FundamentalWeights:
    """
    Weights for blending sub-metrics into category scores.

    Each group must sum to 1.0.
    """

    roe: float = 0.40
    net_margin: float = 0.30
    roa: float = 0.30

    pe: float = 0.50
    pbv: float = 0.50

    altman_z: float = 0.40
    debt_to_equity: float = 0.30
    current_ratio: float = 0.30

    revenue_growth: float = 0.50
    net_income_growth: float = 0.50

    profitability: float = 0.25
    valuation: float = 0.25
    risk: float = 0.25
    growth: float = 0.25

    def __post_init__(self) -> None:
        _check_sum("Profitability", self.roe, self.net_margin, self.roa)
        _check_sum("Valuation", self.pe, self.pbv)
        _check_sum("Risk", self.altman_z, self.debt_to_equity, self.current_ratio)
        _check_sum("Growth", self.revenue_growth, self.net_income_growth)
        _check_sum("Overall", self.profitability, self.valuation, self.risk, self.growth)


@dataclass(frozen=True)
class ModelMultipliers:
    """Scaling applied to each model's fair value."""

    graham: float = 1.0
    peter_lynch: float = 1.0
    index_relative: float = 1.0
    asset_based: float = 1.0


def _default_multipliers() -> dict[ValuationMode, ModelMultipliers]:
    return {
        ValuationMode.CONSERVATIVE: ModelMultipliers(
            graham=0.85, peter_lynch=0.80, index_relative=0.85, asset_based=0.90,
        ),
        ValuationMode.MODERATE: ModelMultipliers(),
        ValuationMode.AGGRESSIVE: ModelMultipliers(
            graham=1.15, peter_lynch=1.20, index_relative=1.15, asset_based=1.10,
        ),
    }


@dataclass(frozen=True)
class ValuationSettings:
    """Everything the valuation engine reads from configuration."""

    thresholds: ValuationThresholds = field(default_factory=ValuationThresholds)
    weights: FundamentalWeights = field(default_factory=FundamentalWeights)
    multipliers: dict[ValuationMode, ModelMultipliers] = field(default_factory=_default_multipliers)
    colors: ScoreColors = DEFAULT_SCORE_COLORS
    status_band: float = 20.0  # upside beyond +/- band flips status

    def multipliers_for(self, mode: ValuationMode) -> ModelMultipliers:
        return self.multipliers.get(mode, ModelMultipliers())


DEFAULT_SETTINGS = ValuationSettings()


# ============================================================================
# Output Types
# ============================================================================


@dataclass(frozen=True)
class ValueRange:
    """Low / mid / high fair value over the surviving model estimates."""

    low: float
    mid: float
    high: float


@dataclass(frozen=True)
class IntrinsicValueResult:
    """
    Fair value estimates for one instrument.

    range and upside are None when no model produced a usable estimate;
    status is then NO_ESTIMATE.
    """

    graham: float
    peter_lynch: float
    index_relative: float
    asset_based: float
    range: ValueRange | None
    current_price: float
    upside: float | None
    status: ValuationStatus
    mode: ValuationMode = ValuationMode.MODERATE

    @property
    def has_estimate(self) -> bool:
        return self.range is not None


@dataclass(frozen=True)
class ScoreDetail:
    """One category score with its band label and color."""

    score: int  # 0-100
    label: str
    color: str


@dataclass(frozen=True)
class FundamentalScore:
    """Four category scores plus their weighted overall score."""

    profitability: ScoreDetail
    valuation: ScoreDetail
    risk: ScoreDetail
    growth: ScoreDetail
    overall: int
    overall_label: str
    overall_color: str


# ============================================================================
# Intrinsic value models
# ============================================================================


def calculate_graham_value(eps: float, growth_rate: float) -> float:
    """Benjamin Graham: EPS x (8.5 + 2g), g in percent capped at 50."""
    g = min(max(growth_rate, 0.0), GRAHAM_MAX_GROWTH)
    return eps * (GRAHAM_BASE_PE + 2 * g)


def calculate_peter_lynch_value(eps: float, growth_rate: float) -> float:
    """Peter Lynch: fair P/E equals the growth rate (no upper cap)."""
    return eps * max(growth_rate, 0.0)


def calculate_index_relative_value(eps: float, index_pe: float) -> float:
    """Fair value if the stock traded at the index P/E."""
    return eps * index_pe


def calculate_asset_based_value(book_value_per_share: float) -> float:
    """Asset floor: book value per share."""
    return book_value_per_share


def _classify_upside(upside: float, band: float) -> ValuationStatus:
    if upside > band:
        return ValuationStatus.UNDERVALUED
    if upside < -band:
        return ValuationStatus.OVERVALUED
    return ValuationStatus.FAIR


def calculate_intrinsic_value(
    eps: float,
    book_value_per_share: float,
    growth_rate: float,
    current_price: float,
    index_pe: float,
    mode: ValuationMode = ValuationMode.MODERATE,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> IntrinsicValueResult:
    """
    Combine the four models into a fair value range.

    Scaled model values outside (0, price x 10) are treated as outliers
    and left out of the range. If nothing survives the result carries
    status NO_ESTIMATE instead of a numeric range.
    """
    mult = settings.multipliers_for(mode)

    graham = calculate_graham_value(eps, growth_rate) * mult.graham
    peter_lynch = calculate_peter_lynch_value(eps, growth_rate) * mult.peter_lynch
    index_relative = calculate_index_relative_value(eps, index_pe) * mult.index_relative
    asset_based = calculate_asset_based_value(book_value_per_share) * mult.asset_based

    ceiling = current_price * OUTLIER_PRICE_MULTIPLE
    candidates = [
        v for v in (graham, peter_lynch, index_relative, asset_based)
        if 0 < v < ceiling
    ]

    if not candidates or current_price <= 0:
        logger.warning(
            f"No valid intrinsic value estimate (price={current_price}, eps={eps}, "
            f"book_value={book_value_per_share})"
        )
        return IntrinsicValueResult(
            graham=graham,
            peter_lynch=peter_lynch,
            index_relative=index_relative,
            asset_based=asset_based,
            range=None,
            current_price=current_price,
            upside=None,
            status=ValuationStatus.NO_ESTIMATE,
            mode=mode,
        )

    low = min(candidates)
    high = max(candidates)
    mid = (low + high) / 2
    upside = (mid - current_price) / current_price * 100

    return IntrinsicValueResult(
        graham=graham,
        peter_lynch=peter_lynch,
        index_relative=index_relative,
        asset_based=asset_based,
        range=ValueRange(low=low, mid=mid, high=high),
        current_price=current_price,
        upside=upside,
        status=_classify_upside(upside, settings.status_band),
        mode=mode,
    )


# ============================================================================
# Fundamental scoring
# ============================================================================


def _detail(score: float, colors: ScoreColors) -> ScoreDetail:
    return ScoreDetail(
        score=round(score),
        label=score_label(score),
        color=score_color(score, colors),
    )


def score_profitability(
    roe: str | float,
    net_margin: str | float,
    roa: str | float,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> ScoreDetail:
    """Score ROE, net margin and ROA (higher is better)."""
    t, w = settings.thresholds, settings.weights

    roe_score = score_in_range(parse_percentage(roe), t.roe_poor, t.roe_excellent)
    nm_score = score_in_range(parse_percentage(net_margin), t.net_margin_poor, t.net_margin_excellent)
    roa_score = score_in_range(parse_percentage(roa), t.roa_poor, t.roa_excellent)

    final = roe_score * w.roe + nm_score * w.net_margin + roa_score * w.roa
    return _detail(final, settings.colors)


def _score_pe_vs_index(pe: float, index_pe: float) -> float:
    ratio = pe / index_pe
    for ceiling, score in _INDEX_PE_BANDS:
        if ratio <= ceiling:
            return score
    return _INDEX_PE_FLOOR_SCORE


def score_valuation(
    pe: str | float,
    pbv: str | float,
    index_pe: str | float | None = None,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> ScoreDetail:
    """
    Score P/E and P/BV (lower is better).

    With a non-zero index P/E the stock's P/E is judged relative to the
    index; otherwise against the absolute cheap/expensive thresholds.
    """
    t, w = settings.thresholds, settings.weights
    pe_value = parse_percentage(pe)
    pbv_value = parse_percentage(pbv)
    index_pe_value = parse_percentage(index_pe)

    if index_pe_value:
        pe_score = _score_pe_vs_index(pe_value, index_pe_value)
    else:
        pe_score = score_reverse(pe_value, t.pe_cheap, t.pe_expensive * 2)

    pbv_score = score_reverse(pbv_value, t.pbv_cheap, t.pbv_expensive * 2)

    final = pe_score * w.pe + pbv_score * w.pbv
    return _detail(final, settings.colors)


def score_risk(
    altman_z: str | float,
    debt_to_equity: str | float,
    current_ratio: str | float,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> ScoreDetail:
    """Score Altman Z (higher better), D/E (lower better), current ratio (higher better)."""
    t, w = settings.thresholds, settings.weights

    z_score = score_in_range(
        parse_percentage(altman_z),
        t.altman_z_distress,
        t.altman_z_safe + t.altman_z_headroom,
    )
    de_score = score_reverse(
        parse_percentage(debt_to_equity),
        t.debt_to_equity_safe,
        t.debt_to_equity_risky,
    )
    cr_score = score_in_range(
        parse_percentage(current_ratio),
        t.current_ratio_weak,
        t.current_ratio_strong + t.current_ratio_headroom,
    )

    final = z_score * w.altman_z + de_score * w.debt_to_equity + cr_score * w.current_ratio
    return _detail(final, settings.colors)


def score_growth(
    revenue_growth: str | float,
    net_income_growth: str | float,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> ScoreDetail:
    """Score YoY revenue and net income growth."""
    t, w = settings.thresholds, settings.weights

    rg_score = score_in_range(
        parse_percentage(revenue_growth),
        t.revenue_growth_poor,
        t.revenue_growth_excellent + t.growth_headroom,
    )
    nig_score = score_in_range(
        parse_percentage(net_income_growth),
        t.net_income_growth_poor,
        t.net_income_growth_excellent + t.growth_headroom,
    )

    final = rg_score * w.revenue_growth + nig_score * w.net_income_growth
    return _detail(final, settings.colors)


def calculate_fundamental_score(
    profitability: ScoreDetail,
    valuation: ScoreDetail,
    risk: ScoreDetail,
    growth: ScoreDetail,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> FundamentalScore:
    """Weighted overall score from the four category scores."""
    w = settings.weights
    overall = round(
        profitability.score * w.profitability
        + valuation.score * w.valuation
        + risk.score * w.risk
        + growth.score * w.growth
    )
    return FundamentalScore(
        profitability=profitability,
        valuation=valuation,
        risk=risk,
        growth=growth,
        overall=overall,
        overall_label=score_label(overall),
        overall_color=score_color(overall, settings.colors),
    )


def evaluate(
    inputs: ValuationInputs,
    settings: ValuationSettings = DEFAULT_SETTINGS,
) -> tuple[IntrinsicValueResult, FundamentalScore]:
    """Run intrinsic value and fundamental scoring for one instrument."""
    intrinsic = calculate_intrinsic_value(
        eps=inputs.eps,
        book_value_per_share=inputs.book_value_per_share,
        growth_rate=inputs.growth_rate,
        current_price=inputs.current_price,
        index_pe=inputs.model_pe or inputs.index_pe,
        mode=inputs.valuation_mode,
        settings=settings,
    )
    score = calculate_fundamental_score(
        score_profitability(inputs.roe, inputs.net_margin, inputs.roa, settings),
        score_valuation(inputs.pe, inputs.pbv, inputs.index_pe, settings),
        score_risk(inputs.altman_z, inputs.debt_to_equity, inputs.current_ratio, settings),
        score_growth(inputs.revenue_growth, inputs.net_income_growth, settings),
        settings,
    )
    return intrinsic, score


# ============================================================================
# Key stats extraction
# ============================================================================

_KEYSTATS_METRICS: dict[str, tuple[str, str]] = {
    "pe": ("Current Valuation", "Current PE Ratio (TTM)"),
    "pbv": ("Current Valuation", "Current Price to Book Value"),
    "roe": ("Management Effectiveness", "Return on Equity (TTM)"),
    "roa": ("Management Effectiveness", "Return on Assets (TTM)"),
    "net_margin": ("Profitability", "Net Profit Margin (Quarter)"),
    "debt_to_equity": ("Solvency", "Debt to Equity Ratio (Quarter)"),
    "altman_z": ("Solvency", "Altman Z-Score (Modified)"),
    "current_ratio": ("Liquidity", "Current Ratio (Quarter)"),
    "eps": ("Per Share", "Current EPS (TTM)"),
    "book_value_per_share": ("Per Share", "Current Book Value Per Share"),
    "revenue_growth": ("Growth", "Revenue (Quarter YoY Growth)"),
    "net_income_growth": ("Growth", "Net Income (Quarter YoY Growth)"),
}


def get_keystats_metric(keystats: dict[str, Any] | None, category: str, metric: str) -> str:
    """Look up one metric's display value; '-' when absent."""
    if not keystats:
        return "-"
    for cat in keystats.get("closure_fin_items_results") or []:
        if cat.get("keystats_name") != category:
            continue
        for item in cat.get("fin_name_results") or []:
            fitem = item.get("fitem") or {}
            if fitem.get("name") == metric:
                value = fitem.get("value")
                return str(value) if value not in (None, "") else "-"
        return "-"
    return "-"


def valuation_inputs_from_keystats(
    keystats: dict[str, Any] | None,
    current_price: str | float,
    mode: ValuationMode = ValuationMode.MODERATE,
    index_pe: str | float | None = None,
) -> ValuationInputs:
    """
    Build ValuationInputs from a key-stats payload.

    Revenue growth doubles as the growth rate for the Graham and Lynch
    models. The P/E text (e.g. "14.2 × IHSG") always feeds the
    index-relative model; index_pe is only used for scoring when given,
    so without it P/E is scored against the absolute thresholds.
    Missing metrics become 0.
    """
    values = {
        name: get_keystats_metric(keystats, category, metric)
        for name, (category, metric) in _KEYSTATS_METRICS.items()
    }
    return ValuationInputs(
        growth_rate=values["revenue_growth"],
        current_price=current_price,
        index_pe=index_pe or 0.0,
        model_pe=values["pe"],
        valuation_mode=mode,
        **values,
    )
