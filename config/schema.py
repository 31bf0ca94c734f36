"""
Configuration schema with validation.

All configuration is validated at load time using Pydantic. Each
section converts to the frozen dataclass the engine consumes via
to_domain().
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from domain.brokers import BrokerDirectory, parse_broker_group
from domain.enums import BrokerGroup, ValuationMode
from domain.periods import AnalysisLimits
from domain.score_math import ScoreColors
from domain.valuation import (
    FundamentalWeights,
    ModelMultipliers,
    ValuationSettings,
    ValuationThresholds,
)


class ThresholdsConfig(BaseModel):
    """Metric thresholds for fundamental scoring (percent units)."""

    roe_poor: float = Field(default=5.0, ge=0.0)
    roe_excellent: float = Field(default=20.0, gt=0.0)
    net_margin_poor: float = Field(default=5.0, ge=0.0)
    net_margin_excellent: float = Field(default=20.0, gt=0.0)
    roa_poor: float = Field(default=2.0, ge=0.0)
    roa_excellent: float = Field(default=10.0, gt=0.0)

    pe_cheap: float = Field(default=10.0, gt=0.0, description="P/E at or below = full score")
    pe_expensive: float = Field(default=20.0, gt=0.0, description="P/E at or above = zero")
    pbv_cheap: float = Field(default=1.0, gt=0.0)
    pbv_expensive: float = Field(default=2.0, gt=0.0)

    altman_z_distress: float = Field(default=1.0)
    altman_z_safe: float = Field(default=3.0)
    altman_z_headroom: float = Field(default=2.0, ge=0.0)
    debt_to_equity_safe: float = Field(default=1.0, ge=0.0)
    debt_to_equity_risky: float = Field(default=2.0, gt=0.0)
    current_ratio_weak: float = Field(default=1.0, ge=0.0)
    current_ratio_strong: float = Field(default=2.0, gt=0.0)
    current_ratio_headroom: float = Field(default=1.0, ge=0.0)

    revenue_growth_poor: float = Field(default=5.0)
    revenue_growth_excellent: float = Field(default=20.0)
    net_income_growth_poor: float = Field(default=0.0)
    net_income_growth_excellent: float = Field(default=20.0)
    growth_headroom: float = Field(default=10.0, ge=0.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "ThresholdsConfig":
        pairs = [
            ("roe_poor", "roe_excellent"),
            ("net_margin_poor", "net_margin_excellent"),
            ("roa_poor", "roa_excellent"),
            ("pe_cheap", "pe_expensive"),
            ("pbv_cheap", "pbv_expensive"),
            ("altman_z_distress", "altman_z_safe"),
            ("debt_to_equity_safe", "debt_to_equity_risky"),
            ("current_ratio_weak", "current_ratio_strong"),
            ("revenue_growth_poor", "revenue_growth_excellent"),
            ("net_income_growth_poor", "net_income_growth_excellent"),
        ]
        for low, high in pairs:
            if getattr(self, low) >= getattr(self, high):
                raise ValueError(f"{high} must be greater than {low}")
        return self

    def to_domain(self) -> ValuationThresholds:
        return ValuationThresholds(**self.model_dump())


class WeightsConfig(BaseModel):
    """Sub-metric and category weights. Each group must sum to 1.0."""

    roe: float = Field(default=0.40, ge=0.0, le=1.0)
    net_margin: float = Field(default=0.30, ge=0.0, le=1.0)
    roa: float = Field(default=0.30, ge=0.0, le=1.0)

    pe: float = Field(default=0.50, ge=0.0, le=1.0)
    pbv: float = Field(default=0.50, ge=0.0, le=1.0)

    altman_z: float = Field(default=0.40, ge=0.0, le=1.0)
    debt_to_equity: float = Field(default=0.30, ge=0.0, le=1.0)
    current_ratio: float = Field(default=0.30, ge=0.0, le=1.0)

    revenue_growth: float = Field(default=0.50, ge=0.0, le=1.0)
    net_income_growth: float = Field(default=0.50, ge=0.0, le=1.0)

    profitability: float = Field(default=0.25, ge=0.0, le=1.0)
    valuation: float = Field(default=0.25, ge=0.0, le=1.0)
    risk: float = Field(default=0.25, ge=0.0, le=1.0)
    growth: float = Field(default=0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "WeightsConfig":
        groups = {
            "profitability": (self.roe, self.net_margin, self.roa),
            "valuation": (self.pe, self.pbv),
            "risk": (self.altman_z, self.debt_to_equity, self.current_ratio),
            "growth": (self.revenue_growth, self.net_income_growth),
            "overall": (self.profitability, self.valuation, self.risk, self.growth),
        }
        for name, weights in groups.items():
            total = sum(weights)
            if abs(total - 1.0) > 0.01:
                raise ValueError(f"{name} weights must sum to 1.0, got {total}")
        return self

    def to_domain(self) -> FundamentalWeights:
        return FundamentalWeights(**self.model_dump())


class ModelMultipliersConfig(BaseModel):
    """Per-model fair value scaling for one valuation mode."""

    graham: float = Field(default=1.0, gt=0.0, le=3.0)
    peter_lynch: float = Field(default=1.0, gt=0.0, le=3.0)
    index_relative: float = Field(default=1.0, gt=0.0, le=3.0)
    asset_based: float = Field(default=1.0, gt=0.0, le=3.0)

    def to_domain(self) -> ModelMultipliers:
        return ModelMultipliers(**self.model_dump())


class MultipliersConfig(BaseModel):
    """Mode multipliers. Conservative shrinks estimates, aggressive inflates them."""

    conservative: ModelMultipliersConfig = Field(
        default_factory=lambda: ModelMultipliersConfig(
            graham=0.85, peter_lynch=0.80, index_relative=0.85, asset_based=0.90,
        )
    )
    moderate: ModelMultipliersConfig = Field(default_factory=ModelMultipliersConfig)
    aggressive: ModelMultipliersConfig = Field(
        default_factory=lambda: ModelMultipliersConfig(
            graham=1.15, peter_lynch=1.20, index_relative=1.15, asset_based=1.10,
        )
    )

    def to_domain(self) -> dict[ValuationMode, ModelMultipliers]:
        return {
            ValuationMode.CONSERVATIVE: self.conservative.to_domain(),
            ValuationMode.MODERATE: self.moderate.to_domain(),
            ValuationMode.AGGRESSIVE: self.aggressive.to_domain(),
        }


class ScoreColorsConfig(BaseModel):
    """Hex colors for score bands."""

    excellent: str = Field(default="#22c55e", pattern=r"^#[0-9a-fA-F]{6}$")
    good: str = Field(default="#84cc16", pattern=r"^#[0-9a-fA-F]{6}$")
    fair: str = Field(default="#eab308", pattern=r"^#[0-9a-fA-F]{6}$")
    poor: str = Field(default="#ef4444", pattern=r"^#[0-9a-fA-F]{6}$")

    def to_domain(self) -> ScoreColors:
        return ScoreColors(**self.model_dump())


class AnalysisConfig(BaseModel):
    """Period analysis limits and pipeline behavior."""

    period_count: int = Field(default=6, ge=1, le=24)
    consistency_min_periods: int = Field(default=3, ge=1)
    switcher_min_roles: int = Field(default=3, ge=1)
    max_consistent: int = Field(default=10, ge=1, le=100)
    max_switchers: int = Field(default=15, ge=1, le=100)
    strong_trend_periods: int = Field(default=5, ge=1)
    moderate_trend_periods: int = Field(default=4, ge=1)

    max_pipeline_workers: int = Field(default=6, ge=1, le=32)
    fail_fast: bool = Field(default=False, description="Stop on first unexpected error")
    top_brokers: int = Field(default=5, ge=1, le=50)

    @model_validator(mode="after")
    def _fit_period_count(self) -> "AnalysisConfig":
        if self.strong_trend_periods > self.period_count:
            raise ValueError("strong_trend_periods cannot exceed period_count")
        if self.moderate_trend_periods > self.strong_trend_periods:
            raise ValueError("strong_trend_periods must be >= moderate_trend_periods")
        return self

    def to_domain(self) -> AnalysisLimits:
        return AnalysisLimits(
            consistency_min_periods=self.consistency_min_periods,
            switcher_min_roles=self.switcher_min_roles,
            max_consistent=self.max_consistent,
            max_switchers=self.max_switchers,
            strong_trend_periods=self.strong_trend_periods,
            moderate_trend_periods=self.moderate_trend_periods,
        )


class BroksumConfig(BaseModel):
    """
    Root configuration model.

    All settings are validated on load.
    """

    valuation_mode: ValuationMode = ValuationMode.MODERATE
    index_pe: float | None = Field(default=None, gt=0.0, description="Default IHSG P/E")
    status_band: float = Field(default=20.0, gt=0.0, le=100.0)
    log_level: str = Field(default="INFO")

    # Subsections
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    weights: WeightsConfig = Field(default_factory=WeightsConfig)
    multipliers: MultipliersConfig = Field(default_factory=MultipliersConfig)
    colors: ScoreColorsConfig = Field(default_factory=ScoreColorsConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    # Broker code -> group label
    brokers: dict[str, str] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper().strip()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("brokers")
    @classmethod
    def validate_brokers(cls, v: dict[str, str]) -> dict[str, str]:
        """Normalize codes and reject group labels that are not recognized."""
        validated = {}
        for code, group in v.items():
            code = code.upper().strip()
            if not code or len(code) > 10:
                raise ValueError(f"Invalid broker code: {code!r}")
            if parse_broker_group(group) is BrokerGroup.UNSPECIFIED:
                raise ValueError(f"Unknown broker group for {code}: {group!r}")
            validated[code] = group
        return validated

    def to_domain(self) -> ValuationSettings:
        return ValuationSettings(
            thresholds=self.thresholds.to_domain(),
            weights=self.weights.to_domain(),
            multipliers=self.multipliers.to_domain(),
            colors=self.colors.to_domain(),
            status_band=self.status_band,
        )

    def broker_directory(self) -> BrokerDirectory:
        return BrokerDirectory(self.brokers)
