from .enums import (
    BrokerGroup,
    Phase,
    TrendPattern,
    DominantGroup,
    PositionRole,
    ValuationMode,
    ValuationStatus,
    ActionType,
    ActionCategory,
    LatestBy,
    SortField,
    SortOrder,
)
from .models import (
    BrokerFlowRecord,
    DailyBar,
    Period,
    HoldingData,
    OwnershipChangeRecord,
    ValuationInputs,
    to_json_dict,
    from_json_dict,
)
from .brokers import BrokerDirectory, parse_broker_group
from .score_math import (
    score_in_range,
    score_reverse,
    score_label,
    score_color,
    parse_percentage,
    parse_number,
    parse_large_number,
)
from .valuation import (
    ValuationSettings,
    IntrinsicValueResult,
    FundamentalScore,
    calculate_intrinsic_value,
    calculate_fundamental_score,
    evaluate,
    valuation_inputs_from_keystats,
)
from .movements import (
    AggregatedMovement,
    aggregate_movements,
    filter_by_search,
    filter_by_action,
    sort_movements,
    default_order,
)
from .periods import (
    AnalysisLimits,
    PeriodSummary,
    ExecutiveSummary,
    divide_period,
    summarize_period,
    summarize_executive,
)
from .daily import (
    RangeSummary,
    build_daily_bars,
    with_price_changes,
    summarize_daily_bars,
)

__all__ = [
    # Enums
    "BrokerGroup",
    "Phase",
    "TrendPattern",
    "DominantGroup",
    "PositionRole",
    "ValuationMode",
    "ValuationStatus",
    "ActionType",
    "ActionCategory",
    "LatestBy",
    "SortField",
    "SortOrder",
    # Input models
    "BrokerFlowRecord",
    "DailyBar",
    "Period",
    "HoldingData",
    "OwnershipChangeRecord",
    "ValuationInputs",
    # Broker lookup
    "BrokerDirectory",
    "parse_broker_group",
    # Score math
    "score_in_range",
    "score_reverse",
    "score_label",
    "score_color",
    "parse_percentage",
    "parse_number",
    "parse_large_number",
    # Valuation
    "ValuationSettings",
    "IntrinsicValueResult",
    "FundamentalScore",
    "calculate_intrinsic_value",
    "calculate_fundamental_score",
    "evaluate",
    "valuation_inputs_from_keystats",
    # Movements
    "AggregatedMovement",
    "aggregate_movements",
    "filter_by_search",
    "filter_by_action",
    "sort_movements",
    "default_order",
    # Periods
    "AnalysisLimits",
    "PeriodSummary",
    "ExecutiveSummary",
    "divide_period",
    "summarize_period",
    "summarize_executive",
    # Daily
    "RangeSummary",
    "build_daily_bars",
    "with_price_changes",
    "summarize_daily_bars",
    # Serialization
    "to_json_dict",
    "from_json_dict",
]
