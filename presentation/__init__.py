from .json_api import (
    ExecutiveSummaryResponse,
    MovementResponse,
    DailyAnalysisResponse,
    ValuationResponse,
    to_executive_response,
    to_movement_response,
    to_daily_response,
    to_valuation_response,
    to_json,
)

__all__ = [
    # Response models
    "ExecutiveSummaryResponse",
    "MovementResponse",
    "DailyAnalysisResponse",
    "ValuationResponse",
    # Conversion
    "to_executive_response",
    "to_movement_response",
    "to_daily_response",
    "to_valuation_response",
    "to_json",
]
