"""
Score math primitives.

Threshold-to-score interpolation shared by the valuation engine, score
band labels, and lenient parsing of the numeric strings the market-data
API returns ("15.5%", "(3.2)", "1,155 B", "12.4 × IHSG").

All functions are pure and total: malformed input degrades to 0.
"""

import math
import re
from dataclasses import dataclass

# Leading number, the same prefix a lenient float parser accepts
_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")

_MAGNITUDES = {
    "B": 1_000_000_000,
    "M": 1_000_000,
}

# "Rp 1.5 M", "(Rp 2 B)", "IDR 850"
_CURRENCY_PREFIX = re.compile(r"(^|\()\s*(?:Rp\.?|IDR|\$)\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ScoreColors:
    """Hex colors for the four score bands."""

    excellent: str = "#22c55e"
    good: str = "#84cc16"
    fair: str = "#eab308"
    poor: str = "#ef4444"


DEFAULT_SCORE_COLORS = ScoreColors()


def score_in_range(value: float, min_value: float, max_value: float) -> float:
    """
    Linear score where higher is better.

    Returns 0 at/below min_value, 100 at/above max_value.
    """
    if value >= max_value:
        return 100.0
    if value <= min_value:
        return 0.0
    return (value - min_value) / (max_value - min_value) * 100


def score_reverse(value: float, good: float, bad: float) -> float:
    """
    Linear score where lower is better (leverage, multiples).

    Returns 100 at/below good, 0 at/above bad.
    """
    if value <= good:
        return 100.0
    if value >= bad:
        return 0.0
    return 100 - (value - good) / (bad - good) * 100


def score_label(score: float) -> str:
    """Band label for a 0-100 score."""
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def score_color(score: float, colors: ScoreColors = DEFAULT_SCORE_COLORS) -> str:
    """Band color for a 0-100 score."""
    if score >= 80:
        return colors.excellent
    if score >= 60:
        return colors.good
    if score >= 40:
        return colors.fair
    return colors.poor


def _leading_float(text: str) -> float:
    match = _LEADING_NUMBER.match(text.strip())
    if not match:
        return 0.0
    result = float(match.group())
    return result if math.isfinite(result) else 0.0


def _as_number(value: object) -> float | None:
    """Return value as float if it is already numeric, else None."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    return None


def parse_percentage(value: str | float | int | None) -> float:
    """
    Parse a percentage-like string to a number.

    Handles "15.5%", "15.5", "1,234.5", "(15.5)" (negative) and trailing
    text such as "12.4 × IHSG". Anything unparseable yields 0.
    """
    if value is None:
        return 0.0
    number = _as_number(value)
    if number is not None:
        return number

    text = str(value).strip()
    negative = text.startswith("(") and ")" in text
    cleaned = re.sub(r"[%(),]", "", text).strip()
    result = _leading_float(cleaned)
    return -abs(result) if negative else result


def parse_number(value: str | float | int | None) -> float:
    """
    Parse a number that may carry a magnitude suffix.

    "1,155 B" -> 1.155e12, "62 M" -> 6.2e7, "(2 B)" -> -2e9.
    A leading currency token ("Rp", "IDR", "$") is ignored.
    """
    if value is None:
        return 0.0
    number = _as_number(value)
    if number is not None:
        return number

    text = str(value).strip()
    text = _CURRENCY_PREFIX.sub(r"\1", text, count=1)
    for suffix, multiplier in _MAGNITUDES.items():
        if suffix in text:
            return parse_percentage(text.replace(suffix, "")) * multiplier
    return parse_percentage(text)


def parse_large_number(value: str | float | int | None) -> float:
    """Parse a comma-grouped integer string such as "1,500,000"."""
    if value is None:
        return 0.0
    number = _as_number(value)
    if number is not None:
        return number
    return _leading_float(str(value).replace(",", ""))
