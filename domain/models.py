"""
Domain models - immutable input records with validation.

These are the typed records the engine consumes: broker flows, daily
bars, analysis periods, ownership changes and valuation inputs.
All models are frozen and JSON-serializable.
"""

from datetime import date as Date
from typing import Annotated, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.functional_validators import AfterValidator

from .enums import ValuationMode
from .score_math import parse_large_number, parse_percentage


# ============================================================================
# Custom validators
# ============================================================================

def _validate_broker_code(v: str) -> str:
    """Normalize broker code (e.g. 'ak ' -> 'AK')."""
    v = v.upper().strip()
    if not v:
        raise ValueError("broker code cannot be empty")
    if len(v) > 10:
        raise ValueError("broker code too long (max 10 chars)")
    return v


def _validate_symbol(v: str) -> str:
    """Validate IDX ticker symbol format."""
    v = v.upper().strip()
    if not v:
        raise ValueError("symbol cannot be empty")
    if len(v) > 12:
        raise ValueError("symbol too long (max 12 chars)")
    return v


BrokerCode = Annotated[str, AfterValidator(_validate_broker_code)]
Symbol = Annotated[str, AfterValidator(_validate_symbol)]


# ============================================================================
# Broker flow models
# ============================================================================

class BrokerFlowRecord(BaseModel):
    """
    One broker's buy/sell activity for a trading day or period.

    Lots are exchange lots (100 shares). Average prices are per share.
    """
    model_config = {"frozen": True, "extra": "forbid"}

    broker: BrokerCode = Field(description="Broker code (e.g. 'AK')")
    buy_value: float = Field(default=0.0, ge=0)
    buy_lot: float = Field(default=0.0, ge=0)
    buy_avg: float = Field(default=0.0, ge=0)
    sell_value: float = Field(default=0.0, ge=0)
    sell_lot: float = Field(default=0.0, ge=0)
    sell_avg: float = Field(default=0.0, ge=0)

    @property
    def net_value(self) -> float:
        return self.buy_value - self.sell_value

    @property
    def net_lot(self) -> float:
        return self.buy_lot - self.sell_lot

    @property
    def is_active(self) -> bool:
        """False for rows with neither buy nor sell value."""
        return self.buy_value > 0 or self.sell_value > 0


class DailyBar(BaseModel):
    """One trading day with its closing price and active brokers."""
    model_config = {"frozen": True, "extra": "forbid"}

    date: Date
    close_price: float = Field(ge=0)
    net_volume: float = 0.0
    net_value: float = 0.0
    brokers: tuple[BrokerFlowRecord, ...] = ()
    price_change: float = 0.0
    price_change_percent: float = 0.0


class Period(BaseModel):
    """
    A contiguous analysis window [start, end] with its participants.

    A broker may appear in both buyers and sellers.
    """
    model_config = {"frozen": True, "extra": "forbid"}

    label: str = Field(min_length=1, max_length=50)
    start: Date
    end: Date
    buyers: tuple[BrokerFlowRecord, ...] = ()
    sellers: tuple[BrokerFlowRecord, ...] = ()

    @model_validator(mode="after")
    def _validate_dates(self) -> "Period":
        if self.end < self.start:
            raise ValueError("period end must not precede start")
        return self

    @property
    def days(self) -> int:
        """Inclusive calendar day count."""
        return (self.end - self.start).days + 1

    def with_flows(
        self,
        buyers: list[BrokerFlowRecord] | tuple[BrokerFlowRecord, ...],
        sellers: list[BrokerFlowRecord] | tuple[BrokerFlowRecord, ...],
    ) -> "Period":
        """Copy of this window carrying the given participants."""
        return self.model_copy(update={"buyers": tuple(buyers), "sellers": tuple(sellers)})


# ============================================================================
# Ownership change models
# ============================================================================

class HoldingData(BaseModel):
    """A holding snapshot or change: value in shares plus percentage."""
    model_config = {"frozen": True, "extra": "forbid"}

    value: float = 0.0
    percentage: float = 0.0
    formatted_value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _parse_value(cls, v: object) -> float:
        return parse_large_number(v)

    @field_validator("percentage", mode="before")
    @classmethod
    def _parse_percentage(cls, v: object) -> float:
        return parse_percentage(v)


class OwnershipChangeRecord(BaseModel):
    """
    One reported change in a shareholder's position.

    Several records can describe the same event when it is reported by
    different sources or brokers.
    """
    model_config = {"frozen": True, "extra": "forbid"}

    id: str = ""
    name: str = Field(min_length=1, description="Shareholder / entity name")
    symbol: Symbol
    date: Date
    action_type: str = Field(min_length=1, description="e.g. ACTION_TYPE_BUY")
    nationality: str = ""
    badges: tuple[str, ...] = ()
    previous: HoldingData = Field(default_factory=HoldingData)
    current: HoldingData = Field(default_factory=HoldingData)
    changes: HoldingData = Field(default_factory=HoldingData)
    data_source: str = ""
    broker_code: str = ""
    price_formatted: str = ""

    @field_validator("broker_code", "price_formatted", "data_source")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @property
    def key(self) -> str:
        """Identity of the real-world event this record describes."""
        return f"{self.name}|{self.symbol}|{self.date.isoformat()}|{self.action_type}"


# ============================================================================
# Valuation inputs
# ============================================================================

_RATIO_FIELDS = (
    "eps",
    "book_value_per_share",
    "growth_rate",
    "current_price",
    "index_pe",
    "model_pe",
    "roe",
    "net_margin",
    "roa",
    "pe",
    "pbv",
    "altman_z",
    "debt_to_equity",
    "current_ratio",
    "revenue_growth",
    "net_income_growth",
)


class ValuationInputs(BaseModel):
    """
    Per-instrument financial figures for valuation and scoring.

    Percentages are in percent units (15.5 means 15.5%). Any field may be
    given as a display string; unparseable strings become 0.
    """
    model_config = {"frozen": True, "extra": "forbid"}

    eps: float = 0.0
    book_value_per_share: float = 0.0
    growth_rate: float = 0.0
    current_price: float = 0.0
    index_pe: float = 0.0  # 0 = not supplied
    # Multiple for the index-relative model only; 0 means use index_pe.
    model_pe: float = 0.0

    roe: float = 0.0
    net_margin: float = 0.0
    roa: float = 0.0
    pe: float = 0.0
    pbv: float = 0.0
    altman_z: float = 0.0
    debt_to_equity: float = 0.0
    current_ratio: float = 0.0
    revenue_growth: float = 0.0
    net_income_growth: float = 0.0

    valuation_mode: ValuationMode = ValuationMode.MODERATE

    @field_validator(*_RATIO_FIELDS, mode="before")
    @classmethod
    def _parse_lenient(cls, v: object) -> float:
        return parse_percentage(v)


# ============================================================================
# Serialization helpers
# ============================================================================

def to_json_dict(model: BaseModel) -> dict:
    """Convert model to JSON-serializable dict."""
    return model.model_dump(mode="json")


T = TypeVar("T", bound=BaseModel)


def from_json_dict(model_class: type[T], data: dict) -> T:
    """Create model instance from JSON dict."""
    return model_class.model_validate(data)
