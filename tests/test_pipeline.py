"""
Tests for the concurrent period pipeline.

Uses an in-memory fake source; one period can be made to fail to check
that it degrades to empty data without stopping the others.
"""

import threading
from datetime import date

import pytest

from config import BroksumConfig
from domain.brokers import BrokerDirectory
from domain.enums import TrendPattern
from orchestration import FetchStatus, PeriodPipeline, PipelineConfig
from ports import BrokerSummarySource, ErrorCode, FetchError


# ============================================================================
# Fixtures
# ============================================================================


START = date(2025, 1, 1)
END = date(2025, 3, 31)


class FakeSource:
    """Returns AK buying 1000 / PD selling 400 for every window."""

    def __init__(self, fail_on: set[date] | None = None, error: Exception | None = None):
        self.fail_on = fail_on or set()
        self.error = error
        self.calls: list[tuple[str, date, date]] = []
        self._lock = threading.Lock()

    def get_broker_summary(self, symbol: str, start: date, end: date) -> dict:
        with self._lock:
            self.calls.append((symbol, start, end))
        if start in self.fail_on:
            raise self.error or FetchError(source="fake", reason="HTTP 503", code=ErrorCode.HTTP_SERVER_ERROR)
        return {
            "brokers_buy": [{"broker_code": "AK", "buy_value": 1000, "buy_volume": 10, "avg_price": 100}],
            "brokers_sell": [{"broker_code": "PD", "sell_value": 400, "sell_volume": 4, "avg_price": 100}],
        }


@pytest.fixture
def directory():
    return BrokerDirectory({"AK": "foreign", "PD": "domestic"})


# ============================================================================
# Tests
# ============================================================================


class TestPeriodPipeline:
    """Tests for PeriodPipeline.run."""

    def test_fake_satisfies_protocol(self):
        assert isinstance(FakeSource(), BrokerSummarySource)

    def test_all_periods_ok(self, directory):
        source = FakeSource()
        result = PeriodPipeline(source, directory).run("BBCA", START, END)

        assert len(source.calls) == 6
        assert [p.label for p in result.periods] == [f"Period {i}" for i in range(6, 0, -1)]
        assert result.summary.trend_pattern == TrendPattern.STRONG_ACCUMULATION
        assert result.summary.total_net_flow == 3600
        assert result.summary.foreign_trend[0].net_flow == 1000
        assert result.status.is_healthy
        assert result.status.failed_periods == []

    def test_run_records_duration(self, directory, caplog):
        with caplog.at_level("INFO"):
            result = PeriodPipeline(FakeSource(), directory).run("BBCA", START, END)

        assert result.status.completed_at is not None
        assert result.status.duration.total_seconds() >= 0
        assert "BBCA: Strong Accumulation" in caplog.text

    def test_failed_period_degrades_to_empty(self, directory, caplog):
        newest_start = date(2025, 3, 12)
        source = FakeSource(fail_on={newest_start})

        with caplog.at_level("WARNING"):
            result = PeriodPipeline(source, directory).run("BBCA", START, END)

        assert result.status.failed_periods == ["Period 6"]
        assert result.status.periods["Period 6"].status == FetchStatus.FAILED
        assert "HTTP 503" in result.status.periods["Period 6"].error
        assert result.periods[0].buyers == ()
        assert result.summary.period_summaries[0].net_flow == 0
        assert result.summary.total_net_flow == 3000
        assert not result.status.is_healthy
        assert "Period 6: Fetch failed" in caplog.text

    def test_parse_error_degrades(self, directory):
        class BrokenSource(FakeSource):
            def get_broker_summary(self, symbol, start, end):
                return {"brokers_buy": "oops"}

        result = PeriodPipeline(BrokenSource(), directory).run("BBCA", START, END)
        assert len(result.status.failed_periods) == 6
        assert result.summary.total_net_flow == 0

    def test_unexpected_error_recorded(self, directory):
        source = FakeSource(fail_on={START}, error=RuntimeError("boom"))
        result = PeriodPipeline(source, directory).run("BBCA", START, END)

        assert result.status.failed_periods == ["Period 1"]
        assert any("Unexpected error - boom" in e for e in result.status.errors)

    def test_fail_fast_reraises(self, directory):
        source = FakeSource(fail_on={START}, error=RuntimeError("boom"))
        pipeline = PeriodPipeline(source, directory, PipelineConfig(fail_fast=True))
        with pytest.raises(RuntimeError, match="boom"):
            pipeline.run("BBCA", START, END)

    def test_fail_fast_still_tolerates_fetch_errors(self, directory):
        source = FakeSource(fail_on={START})
        pipeline = PeriodPipeline(source, directory, PipelineConfig(fail_fast=True))
        result = pipeline.run("BBCA", START, END)
        assert result.status.failed_periods == ["Period 1"]

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            PeriodPipeline(FakeSource()).run("BBCA", END, START)

    def test_config_from_broksum_config(self):
        config = BroksumConfig(analysis={"period_count": 4, "fail_fast": True, "max_pipeline_workers": 2,
                                         "strong_trend_periods": 4, "moderate_trend_periods": 3})
        pipeline_config = PipelineConfig.from_config(config)
        assert pipeline_config.period_count == 4
        assert pipeline_config.max_workers == 2
        assert pipeline_config.fail_fast
        assert pipeline_config.limits.strong_trend_periods == 4

        source = FakeSource()
        result = PeriodPipeline(source, config=pipeline_config).run("BBCA", START, END)
        assert len(result.periods) == 4
        assert result.summary.trend_pattern == TrendPattern.STRONG_ACCUMULATION
