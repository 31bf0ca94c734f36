"""
Multi-period broker summary pipeline.

Coordinates:
1. Period division (domain)
2. Concurrent per-period fetching (injected BrokerSummarySource)
3. Payload parsing (adapters)
4. Executive summary (domain)

Handles partial failures gracefully - a period that cannot be fetched
or parsed degrades to empty buyers/sellers and the rest continue.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from adapters.payloads import parse_broker_summary
from config import BroksumConfig
from domain.brokers import EMPTY_DIRECTORY, BrokerDirectory
from domain.models import BrokerFlowRecord, Period
from domain.periods import (
    DEFAULT_LIMITS,
    PERIOD_COUNT,
    AnalysisLimits,
    ExecutiveSummary,
    divide_period,
    summarize_executive,
)
from ports import BrokerSummarySource, FetchError, ParseError

logger = logging.getLogger(__name__)


# ============================================================================
# Pipeline Status Tracking
# ============================================================================

class FetchStatus(str, Enum):
    """Status of one period's fetch."""
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class PeriodFetchResult:
    """Result of fetching a single period."""
    label: str
    start: date
    end: date
    status: FetchStatus
    buyers: list[BrokerFlowRecord] = field(default_factory=list)
    sellers: list[BrokerFlowRecord] = field(default_factory=list)
    error: str | None = None
    fetch_time: datetime = field(default_factory=datetime.now)


@dataclass
class PipelineStatus:
    """Overall pipeline execution status."""
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    periods: dict[str, PeriodFetchResult] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def failed_periods(self) -> list[str]:
        return [label for label, r in self.periods.items() if r.status == FetchStatus.FAILED]

    @property
    def is_healthy(self) -> bool:
        """True when at least one period returned data and none failed."""
        statuses = [r.status for r in self.periods.values()]
        return FetchStatus.OK in statuses and FetchStatus.FAILED not in statuses

    @property
    def duration(self) -> timedelta | None:
        """Pipeline execution duration."""
        if self.completed_at:
            return self.completed_at - self.started_at
        return None

    def add_warning(self, msg: str) -> None:
        logger.warning(msg)
        self.warnings.append(msg)

    def add_error(self, msg: str) -> None:
        logger.error(msg)
        self.errors.append(msg)


# ============================================================================
# Pipeline Configuration
# ============================================================================

@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for the period pipeline."""

    period_count: int = PERIOD_COUNT
    max_workers: int = PERIOD_COUNT
    fail_fast: bool = False  # If True, re-raise unexpected errors
    limits: AnalysisLimits = DEFAULT_LIMITS

    @classmethod
    def from_config(cls, config: BroksumConfig) -> "PipelineConfig":
        analysis = config.analysis
        return cls(
            period_count=analysis.period_count,
            max_workers=analysis.max_pipeline_workers,
            fail_fast=analysis.fail_fast,
            limits=analysis.to_domain(),
        )


@dataclass
class PipelineResult:
    """Executive summary plus how each period's fetch went."""
    summary: ExecutiveSummary
    periods: list[Period]
    status: PipelineStatus


# ============================================================================
# Pipeline
# ============================================================================

class PeriodPipeline:
    """
    Runs the multi-period analysis for one symbol.

    One fetch per period, issued concurrently. Results are reassembled
    in period order (newest first) regardless of completion order.
    """

    def __init__(
        self,
        source: BrokerSummarySource,
        brokers: BrokerDirectory = EMPTY_DIRECTORY,
        config: PipelineConfig | None = None,
    ):
        self.source = source
        self.brokers = brokers
        self.config = config or PipelineConfig()
        self.status = PipelineStatus()

    def run(self, symbol: str, start: date, end: date) -> PipelineResult:
        """
        Analyze `symbol` over [start, end].

        Raises:
            ValueError: If the range cannot be divided into periods
        """
        self.status = PipelineStatus()
        windows = divide_period(start, end, self.config.period_count)
        logger.info(f"Analyzing {symbol} over {len(windows)} periods: {start} to {end}")

        results: dict[str, PeriodFetchResult] = {}
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                executor.submit(self._fetch_period, symbol, window): window
                for window in windows
            }
            for future in as_completed(futures):
                window = futures[future]
                results[window.label] = future.result()

        periods = []
        for window in windows:
            result = results[window.label]
            self.status.periods[window.label] = result
            periods.append(window.with_flows(result.buyers, result.sellers))

        summary = summarize_executive(periods, self.brokers, self.config.limits)
        self.status.completed_at = datetime.now()

        failed = self.status.failed_periods
        if failed:
            self.status.add_warning(f"{symbol}: {len(failed)} period(s) degraded to empty: {', '.join(failed)}")
        logger.info(
            f"{symbol}: {summary.trend_pattern.value}, net flow {summary.total_net_flow:,.0f} "
            f"in {self.status.duration.total_seconds():.2f}s"
        )

        return PipelineResult(summary=summary, periods=periods, status=self.status)

    def _fetch_period(self, symbol: str, window: Period) -> PeriodFetchResult:
        """Fetch and parse one period with error handling."""
        try:
            payload = self.source.get_broker_summary(symbol, window.start, window.end)
            buyers, sellers = parse_broker_summary(payload)
            status = FetchStatus.OK if buyers or sellers else FetchStatus.EMPTY
            logger.debug(f"  {window.label}: {len(buyers)} buyers, {len(sellers)} sellers")
            return PeriodFetchResult(
                label=window.label,
                start=window.start,
                end=window.end,
                status=status,
                buyers=buyers,
                sellers=sellers,
            )

        except FetchError as e:
            self.status.add_warning(f"{window.label}: Fetch failed - {e}")
            error = str(e)

        except ParseError as e:
            self.status.add_warning(f"{window.label}: Parse failed - {e}")
            error = str(e)

        except Exception as e:
            self.status.add_error(f"{window.label}: Unexpected error - {e}")
            if self.config.fail_fast:
                raise
            error = str(e)

        return PeriodFetchResult(
            label=window.label,
            start=window.start,
            end=window.end,
            status=FetchStatus.FAILED,
            error=error,
        )
