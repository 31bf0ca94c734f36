from .payloads import (
    parse_broker_summary,
    parse_broker_calendar,
    parse_big_player_movements,
)
from .recorded import RecordedSummarySource

__all__ = [
    "parse_broker_summary",
    "parse_broker_calendar",
    "parse_big_player_movements",
    "RecordedSummarySource",
]
