from enum import Enum


class BrokerGroup(str, Enum):
    """Classification of a trading broker."""
    FOREIGN = "foreign"
    DOMESTIC = "domestic"
    GOVERNMENT = "government"
    UNSPECIFIED = "unspecified"


class Phase(str, Enum):
    """Net-buying vs net-selling classification."""
    ACCUMULATION = "accumulation"
    DISTRIBUTION = "distribution"


class TrendPattern(str, Enum):
    """Qualitative label for a multi-period phase sequence."""
    STRONG_ACCUMULATION = "Strong Accumulation"
    MODERATE_ACCUMULATION = "Moderate Accumulation"
    STRONG_DISTRIBUTION = "Strong Distribution"
    MODERATE_DISTRIBUTION = "Moderate Distribution"
    MIXED = "Mixed"


class DominantGroup(str, Enum):
    """Broker group with the largest absolute net flow in a period."""
    FOREIGN = "Foreign"
    DOMESTIC = "Domestic"
    GOVERNMENT = "Government"
    BALANCED = "Balanced"


class PositionRole(str, Enum):
    """Role of a broker within one period."""
    BUY = "BUY"
    SELL = "SELL"
    BOTH = "BOTH"


class ValuationMode(str, Enum):
    """How aggressively model values are scaled."""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class ValuationStatus(str, Enum):
    """Price vs estimated fair value."""
    UNDERVALUED = "undervalued"
    FAIR = "fair"
    OVERVALUED = "overvalued"
    NO_ESTIMATE = "no_estimate"


class ActionType(str, Enum):
    """Ownership change action reported by the exchange."""
    BUY = "ACTION_TYPE_BUY"
    SELL = "ACTION_TYPE_SELL"
    MESOP_OPTION = "ACTION_TYPE_MESOP_OPTION"
    MSOP_OPTION = "ACTION_TYPE_MSOP_OPTION"
    WARRANT_EXERCISE = "ACTION_TYPE_WARRANT_EXERCISE"
    CROSS = "ACTION_TYPE_CROSS"


class ActionCategory(str, Enum):
    """Coarse action filter used by movement listings."""
    ALL = "all"
    BUY = "buy"
    SELL = "sell"
    OTHER = "other"  # options, warrants, cross


class LatestBy(str, Enum):
    """Which field picks the representative record of a movement group."""
    HOLDING_VALUE = "holding_value"


class SortField(str, Enum):
    DATE = "date"
    CHANGE_PERCENTAGE = "change_percentage"
    CHANGE_VALUE = "change_value"
    HOLDING_PERCENTAGE = "holding_percentage"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
