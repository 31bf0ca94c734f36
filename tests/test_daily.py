"""
Tests for daily bars and the range summary.
"""

from datetime import date

import pytest

from domain.daily import (
    bars_between,
    build_daily_bars,
    percent_change,
    summarize_daily_bars,
    with_price_changes,
)
from domain.enums import Phase
from domain.models import DailyBar


# ============================================================================
# Fixtures
# ============================================================================


def make_day(day: int, close: float, brokers: dict | None = None) -> dict:
    return {
        "date": f"2025-01-{day:02d}",
        "close_price": close,
        "total_volume": 0,
        "total_value": 0,
        "brokers": brokers or {},
    }


@pytest.fixture
def calendar_days():
    """Five trading days with two tracked brokers."""
    return [
        make_day(6, 100, {"AK": {"value": 1_000_000, "volume": 100}, "YU": {"value": -400_000, "volume": -40}}),
        make_day(7, 102, {"AK": {"value": 500_000, "volume": 50}}),
        make_day(8, 101, {"YU": {"value": -900_000, "volume": -90}}),
        make_day(9, 105, {"AK": {"value": 200_000, "volume": 20}, "YU": {"value": 0, "volume": 0}}),
        make_day(10, 105),
    ]


# ============================================================================
# Tests
# ============================================================================


class TestPriceChanges:
    """Tests for the close-to-close change series."""

    def test_change_series(self, calendar_days):
        bars = build_daily_bars(calendar_days)
        percents = [bar.price_change_percent for bar in bars]
        assert percents == pytest.approx([0, 2.0, -0.98, 3.96, 0], abs=0.01)
        assert [bar.price_change for bar in bars] == [0, 2, -1, 4, 0]

    def test_zero_previous_close(self):
        bars = with_price_changes([
            DailyBar(date=date(2025, 1, 6), close_price=0),
            DailyBar(date=date(2025, 1, 7), close_price=50),
        ])
        assert bars[1].price_change == 50
        assert bars[1].price_change_percent == 0

    def test_percent_change(self):
        assert percent_change(200, 210) == pytest.approx(5.0)
        assert percent_change(0, 10) == 0


class TestBuildDailyBars:
    """Tests for turning signed broker values into flow records."""

    def test_signed_values_split(self, calendar_days):
        bars = build_daily_bars(calendar_days)
        first = {flow.broker: flow for flow in bars[0].brokers}

        assert first["AK"].buy_value == 1_000_000
        assert first["AK"].buy_avg == pytest.approx(10_000)
        assert first["YU"].sell_value == 400_000
        assert first["YU"].sell_lot == 40
        assert first["YU"].sell_avg == pytest.approx(10_000)

    def test_inactive_brokers_dropped(self, calendar_days):
        bars = build_daily_bars(calendar_days)
        assert [flow.broker for flow in bars[3].brokers] == ["AK"]

    def test_zero_volume_average(self):
        [bar] = build_daily_bars([make_day(6, 100, {"AK": {"value": 5000, "volume": 0}})])
        assert bar.brokers[0].buy_avg == 0

    def test_string_values(self):
        [bar] = build_daily_bars([make_day(6, "1,250", {"AK": {"value": "2 M", "volume": "200"}})])
        assert bar.close_price == 1250
        assert bar.brokers[0].buy_value == 2_000_000


class TestRangeSummary:
    """Tests for the whole-range summary."""

    def test_summary(self, calendar_days):
        summary = summarize_daily_bars(build_daily_bars(calendar_days))

        assert summary.net_buy == 1_700_000
        assert summary.net_sell == 1_300_000
        assert summary.net_value == 400_000
        assert summary.total_value == 3_000_000
        assert summary.phase == Phase.ACCUMULATION
        assert [b.broker for b in summary.dominant_brokers] == ["AK"]
        assert [b.broker for b in summary.distribution_brokers] == ["YU"]
        assert summary.distribution_brokers[0].net_value == -1_300_000
        assert summary.trading_days == 5

    def test_price_movement(self, calendar_days):
        movement = summarize_daily_bars(build_daily_bars(calendar_days)).price_movement
        assert movement.start == 100
        assert movement.end == 105
        assert movement.change_percent == pytest.approx(5.0)

    def test_distribution_phase(self):
        bars = build_daily_bars([make_day(6, 100, {"YU": {"value": -10, "volume": -1}})])
        assert summarize_daily_bars(bars).phase == Phase.DISTRIBUTION

    def test_top_n(self):
        brokers = {f"B{i}": {"value": (i + 1) * 100, "volume": 1} for i in range(8)}
        summary = summarize_daily_bars(build_daily_bars([make_day(6, 100, brokers)]), top_n=3)
        assert [b.broker for b in summary.dominant_brokers] == ["B7", "B6", "B5"]

    def test_no_bars(self):
        summary = summarize_daily_bars([])
        assert summary.price_movement is None
        assert summary.net_value == 0
        assert summary.phase == Phase.ACCUMULATION

    def test_bars_between(self, calendar_days):
        bars = build_daily_bars(calendar_days)
        window = bars_between(bars, date(2025, 1, 7), date(2025, 1, 9))
        assert [bar.date.day for bar in window] == [7, 8, 9]
