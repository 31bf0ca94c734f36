"""
Tests for multi-period broker flow analysis.

Tests cover:
- Period division (coverage, ordering, labels, invalid ranges)
- Per-period summaries (net flow, phase, averages, top participants, group nets)
- Executive summary (trend, consistency, switchers, domination, price range)
"""

from datetime import date, timedelta

import pytest

from domain.brokers import BrokerDirectory
from domain.enums import DominantGroup, Phase, PositionRole, TrendPattern
from domain.models import BrokerFlowRecord, Period
from domain.periods import (
    AnalysisLimits,
    classify_trend,
    divide_period,
    dominant_group,
    find_consistent_brokers,
    find_position_switchers,
    summarize_executive,
    summarize_period,
)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def directory():
    """Small broker table: two foreign, one domestic, one state-owned."""
    return BrokerDirectory({
        "AK": "Asing",
        "YU": "foreign",
        "PD": "Lokal",
        "CC": "Pemerintah",
    })


def buyer(code: str, value: float, lot: float = 0, avg: float = 0) -> BrokerFlowRecord:
    return BrokerFlowRecord(broker=code, buy_value=value, buy_lot=lot, buy_avg=avg)


def seller(code: str, value: float, lot: float = 0, avg: float = 0) -> BrokerFlowRecord:
    return BrokerFlowRecord(broker=code, sell_value=value, sell_lot=lot, sell_avg=avg)


def make_periods(flows: list[tuple[list, list]]) -> list[Period]:
    """Periods newest-first, labelled like divide_period output."""
    start = date(2025, 1, 1)
    count = len(flows)
    periods = []
    for i, (buyers, sellers) in enumerate(flows):
        day = start + timedelta(days=(count - 1 - i) * 10)
        periods.append(Period(
            label=f"Period {count - i}",
            start=day,
            end=day + timedelta(days=9),
            buyers=tuple(buyers),
            sellers=tuple(sellers),
        ))
    return periods


# ============================================================================
# Period division
# ============================================================================


class TestDividePeriod:
    """Tests for splitting a range into six windows."""

    @pytest.mark.parametrize("start,end", [
        (date(2025, 1, 1), date(2025, 3, 31)),
        (date(2025, 1, 1), date(2025, 1, 7)),
        (date(2024, 2, 1), date(2025, 2, 1)),
    ])
    def test_covers_range(self, start, end):
        periods = divide_period(start, end)
        oldest_first = list(reversed(periods))

        assert len(periods) == 6
        assert oldest_first[0].start == start
        assert oldest_first[-1].end == end
        for earlier, later in zip(oldest_first, oldest_first[1:]):
            assert later.start == earlier.end + timedelta(days=1)

    def test_newest_first_with_labels(self):
        periods = divide_period(date(2025, 1, 1), date(2025, 3, 31))
        assert [p.label for p in periods] == [f"Period {i}" for i in range(6, 0, -1)]
        assert periods[0].start > periods[-1].start

    def test_last_window_absorbs_remainder(self):
        # 89 days -> step 14, last window covers the extra 5
        periods = divide_period(date(2025, 1, 1), date(2025, 3, 31))
        assert periods[1].days == 14
        assert periods[0].days == 89 - 14 * 5 + 1

    @pytest.mark.parametrize("start,end", [
        (date(2025, 1, 10), date(2025, 1, 10)),
        (date(2025, 1, 10), date(2025, 1, 1)),
        (date(2025, 1, 1), date(2025, 1, 4)),
    ])
    def test_invalid_ranges(self, start, end):
        with pytest.raises(ValueError):
            divide_period(start, end)


# ============================================================================
# Period summary
# ============================================================================


class TestSummarizePeriod:
    """Tests for single-period summaries."""

    def test_single_buyer_single_seller(self):
        [period] = make_periods([([buyer("AK", 1000, 10, 100)], [seller("YU", 400, 4, 100)])])
        summary = summarize_period(period)

        assert summary.net_flow == 600
        assert summary.phase == Phase.ACCUMULATION
        assert summary.top_buyer.broker == "AK"
        assert summary.top_buyer.percentage == pytest.approx(100.0)
        assert summary.top_seller.broker == "YU"
        assert summary.total_value == 1400

    def test_zero_net_flow_is_accumulation(self):
        [period] = make_periods([([buyer("AK", 500)], [seller("YU", 500)])])
        assert summarize_period(period).phase == Phase.ACCUMULATION

    def test_negative_net_flow_is_distribution(self):
        [period] = make_periods([([buyer("AK", 100)], [seller("YU", 500)])])
        assert summarize_period(period).phase == Phase.DISTRIBUTION

    def test_empty_period(self):
        [period] = make_periods([([], [])])
        summary = summarize_period(period)
        assert summary.net_flow == 0
        assert summary.top_buyer is None
        assert summary.top_seller is None
        assert summary.buy_avg_price == 0
        assert summary.phase == Phase.ACCUMULATION

    def test_lot_weighted_average_price(self):
        [period] = make_periods([(
            [buyer("AK", 1000, lot=10, avg=100), buyer("YU", 3300, lot=30, avg=110)],
            [seller("PD", 2100, lot=20, avg=105)],
        )])
        summary = summarize_period(period)
        assert summary.buy_avg_price == pytest.approx(107.5)
        assert summary.sell_avg_price == pytest.approx(105)
        assert summary.spread == pytest.approx(-2.5)

    def test_group_nets_sum_to_net_flow(self, directory):
        [period] = make_periods([(
            [buyer("AK", 1000), buyer("PD", 300), buyer("ZZ", 50)],
            [seller("YU", 200), seller("CC", 400), seller("PD", 100)],
        )])
        summary = summarize_period(period, directory)

        assert summary.foreign_net == 800
        assert summary.domestic_net == 200
        assert summary.government_net == -400
        # ZZ is unknown, so its 50 is in net_flow but no named group
        assert summary.net_flow == 650
        assert summary.foreign_net + summary.domestic_net + summary.government_net + 50 == summary.net_flow

    def test_broker_on_both_sides(self):
        both = BrokerFlowRecord(broker="AK", buy_value=700, sell_value=200)
        [period] = make_periods([([both], [both])])
        summary = summarize_period(period)
        assert summary.total_buy_value == 700
        assert summary.total_sell_value == 200
        assert summary.active_buyers == 1
        assert summary.active_sellers == 1


# ============================================================================
# Executive summary
# ============================================================================


class TestTrendClassification:
    """Tests for trend labels."""

    @pytest.mark.parametrize("acc,dist,expected", [
        (6, 0, TrendPattern.STRONG_ACCUMULATION),
        (5, 1, TrendPattern.STRONG_ACCUMULATION),
        (4, 2, TrendPattern.MODERATE_ACCUMULATION),
        (3, 3, TrendPattern.MIXED),
        (2, 4, TrendPattern.MODERATE_DISTRIBUTION),
        (0, 6, TrendPattern.STRONG_DISTRIBUTION),
    ])
    def test_labels(self, acc, dist, expected):
        assert classify_trend(acc, dist) == expected

    def test_accumulation_checked_first(self):
        limits = AnalysisLimits(strong_trend_periods=3, moderate_trend_periods=2)
        assert classify_trend(3, 3, limits) == TrendPattern.STRONG_ACCUMULATION


class TestConsistentBrokers:
    """Tests for consistent buyer/seller detection."""

    def test_two_periods_excluded_three_included(self):
        periods = make_periods([
            ([buyer("AK", 10), buyer("YU", 10)], []),
            ([buyer("AK", 10), buyer("YU", 10)], []),
            ([buyer("AK", 10)], []),
            ([], []),
        ])
        buyers, sellers = find_consistent_brokers(periods)
        assert [c.broker for c in buyers] == ["AK"]
        assert buyers[0].count == 3
        assert buyers[0].periods == ("Period 4", "Period 3", "Period 2")
        assert sellers == ()

    def test_duplicate_rows_count_once_per_period(self):
        periods = make_periods([
            ([buyer("AK", 10), buyer("AK", 5)], []),
            ([buyer("AK", 10), buyer("AK", 5)], []),
        ])
        buyers, _ = find_consistent_brokers(periods)
        assert buyers == ()

    def test_capped_and_ranked(self):
        codes = [f"B{i:02d}" for i in range(12)]
        flows = [([buyer(c, 1) for c in codes], []) for _ in range(3)]
        flows.append(([buyer("B11", 1)], []))
        buyers, _ = find_consistent_brokers(make_periods(flows))
        assert len(buyers) == 10
        assert buyers[0].broker == "B11"
        assert buyers[0].count == 4


class TestPositionSwitchers:
    """Tests for role sequences across periods."""

    def test_role_pattern(self):
        periods = make_periods([
            ([buyer("AK", 10)], []),
            ([], [seller("AK", 10)]),
            ([buyer("AK", 10)], [seller("AK", 5)]),
            ([], []),
        ])
        [switcher] = find_position_switchers(periods)
        assert switcher.broker == "AK"
        assert switcher.roles == (PositionRole.BUY, PositionRole.SELL, PositionRole.BOTH)
        assert switcher.pattern == "BUY → SELL → BOTH"
        assert switcher.periods == ("Period 4", "Period 3", "Period 2")

    def test_fewer_than_three_roles_excluded(self):
        periods = make_periods([([buyer("AK", 10)], []), ([], [seller("AK", 10)])])
        assert find_position_switchers(periods) == ()

    def test_longest_first_and_capped(self):
        appearances = {f"S{i:02d}": 3 for i in range(10)}
        appearances.update({f"S{i:02d}": 4 for i in range(10, 18)})
        appearances.update({"S18": 5, "S19": 6})
        flows = [
            ([buyer(code, 10) for code, n in appearances.items() if n > i], [])
            for i in range(6)
        ]
        switchers = find_position_switchers(make_periods(flows))

        assert len(switchers) == 15
        assert [len(s.roles) for s in switchers] == [6, 5] + [4] * 8 + [3] * 5
        assert [s.broker for s in switchers[:2]] == ["S19", "S18"]


class TestDominantGroup:
    """Tests for per-period group domination."""

    def test_foreign_dominates(self, directory):
        [period] = make_periods([([buyer("AK", 900)], [seller("PD", 100)])])
        assert dominant_group(summarize_period(period, directory)) == DominantGroup.FOREIGN

    def test_tie_is_balanced(self, directory):
        [period] = make_periods([([buyer("AK", 500)], [seller("PD", 500)])])
        assert dominant_group(summarize_period(period, directory)) == DominantGroup.BALANCED

    def test_all_zero_is_balanced(self):
        [period] = make_periods([([], [])])
        assert dominant_group(summarize_period(period)) == DominantGroup.BALANCED


class TestExecutiveSummary:
    """Tests for the full roll-up."""

    def test_roll_up(self, directory):
        flows = [
            ([buyer("AK", 1000, 10, 110)], [seller("PD", 200, 2, 110)]),
            ([buyer("AK", 800, 8, 105)], [seller("PD", 100, 1, 105)]),
            ([buyer("AK", 600, 6, 100)], [seller("YU", 900, 9, 100)]),
            ([buyer("AK", 700, 7, 95)], [seller("PD", 100, 1, 95)]),
            ([buyer("CC", 500, 5, 100)], [seller("PD", 100, 1, 100)]),
            ([buyer("AK", 300, 3, 100)], [seller("YU", 100, 1, 100)]),
        ]
        summary = summarize_executive(make_periods(flows), directory)

        assert summary.accumulation_periods == 5
        assert summary.distribution_periods == 1
        assert summary.trend_pattern == TrendPattern.STRONG_ACCUMULATION
        assert summary.total_net_flow == pytest.approx(2400)
        assert [c.broker for c in summary.consistent_buyers] == ["AK"]
        assert summary.consistent_buyers[0].count == 5
        assert [c.broker for c in summary.consistent_sellers] == ["PD"]

        assert [p.period for p in summary.foreign_trend] == [f"Period {i}" for i in range(6, 0, -1)]
        assert summary.foreign_trend[0].net_flow == 1000
        assert summary.government_trend[4].net_flow == 500
        assert summary.group_domination[4].dominant == DominantGroup.GOVERNMENT

        assert summary.price_range.min == pytest.approx(95)
        assert summary.price_range.max == pytest.approx(110)
        assert summary.price_range.change_percent == pytest.approx(15 / 95 * 100)

    def test_no_prices_gives_no_range(self):
        summary = summarize_executive(make_periods([([buyer("AK", 10)], [])] * 6))
        assert summary.price_range is None

    def test_empty_periods(self):
        summary = summarize_executive(make_periods([([], [])] * 6))
        assert summary.total_net_flow == 0
        assert summary.accumulation_periods == 6
        assert summary.consistent_buyers == ()
        assert summary.position_switchers == ()
