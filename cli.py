"""
Broksum CLI - IDX broker flow and valuation analysis.

Usage:
    broksum periods RECORDING.json [--output FILE]
    broksum movements PAYLOAD.json [--search TERM] [--action ACTION] [--sort FIELD] [--order ORDER]
    broksum daily PAYLOAD.json [--top N]
    broksum valuation INPUTS.json [--mode MODE] [--index-pe PE]
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from adapters import (
    RecordedSummarySource,
    parse_big_player_movements,
    parse_broker_calendar,
)
from config import BroksumConfig, ConfigError, get_config, load_config
from domain.daily import summarize_daily_bars
from domain.enums import ActionCategory, SortField, SortOrder, ValuationMode
from domain.models import ValuationInputs
from domain.movements import (
    aggregate_movements,
    default_order,
    filter_by_action,
    filter_by_search,
    sort_movements,
)
from domain.valuation import evaluate, valuation_inputs_from_keystats
from orchestration import PeriodPipeline, PipelineConfig
from ports import SourceError
from presentation.json_api import (
    to_daily_response,
    to_executive_response,
    to_json,
    to_movement_response,
    to_valuation_response,
)

logger = logging.getLogger(__name__)


def _read_json(path: str) -> Any:
    """Read a JSON document from a file path or '-' for stdin."""
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text())


def _write(payload: Any, output: str | None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output:
        Path(output).write_text(text)
        print(f"Written to {output}", file=sys.stderr)
    else:
        print(text)


def _dump(response: BaseModel | list[BaseModel], output: str | None) -> None:
    if isinstance(response, list):
        _write([to_json(r) for r in response], output)
    else:
        _write(to_json(response), output)


def cmd_periods(args: argparse.Namespace, config: BroksumConfig) -> int:
    """Replay a recorded multi-period broker summary."""
    document = _read_json(args.input)
    source = RecordedSummarySource.from_document(document)

    symbol = args.symbol or document.get("symbol")
    if not symbol:
        print("Error: symbol missing (use --symbol)", file=sys.stderr)
        return 1

    start = date.fromisoformat(args.start or document["start"])
    end = date.fromisoformat(args.end or document["end"])

    pipeline = PeriodPipeline(
        source,
        brokers=config.broker_directory(),
        config=PipelineConfig.from_config(config),
    )
    result = pipeline.run(symbol, start, end)

    _dump(
        to_executive_response(result.summary, symbol=symbol.upper(), failed_periods=result.status.failed_periods),
        args.output,
    )
    return 0


def cmd_movements(args: argparse.Namespace, config: BroksumConfig) -> int:
    """Aggregate big-player movements."""
    records = parse_big_player_movements(_read_json(args.input))

    entries = aggregate_movements(records)
    entries = filter_by_search(entries, args.search)
    entries = filter_by_action(entries, args.action)
    if args.sort:
        entries = sort_movements(entries, args.sort, args.order)
    else:
        entries = default_order(entries)

    if args.limit:
        entries = entries[:args.limit]

    _dump([to_movement_response(e) for e in entries], args.output)
    return 0


def cmd_daily(args: argparse.Namespace, config: BroksumConfig) -> int:
    """Daily bars and range summary from a broker-action calendar."""
    bars = parse_broker_calendar(_read_json(args.input))
    summary = summarize_daily_bars(bars, top_n=args.top or config.analysis.top_brokers)
    _dump(to_daily_response(bars, summary), args.output)
    return 0


def cmd_valuation(args: argparse.Namespace, config: BroksumConfig) -> int:
    """Intrinsic value and fundamental score."""
    document = _read_json(args.input)
    mode = ValuationMode(args.mode) if args.mode else config.valuation_mode
    index_pe = args.index_pe if args.index_pe is not None else config.index_pe

    if args.keystats:
        if args.price is None:
            print("Error: --price is required with --keystats", file=sys.stderr)
            return 1
        inputs = valuation_inputs_from_keystats(document, args.price, mode=mode, index_pe=index_pe)
    else:
        document = dict(document)
        document.setdefault("valuation_mode", mode.value)
        if index_pe is not None:
            document.setdefault("index_pe", index_pe)
        inputs = ValuationInputs.model_validate(document)

    intrinsic, score = evaluate(inputs, config.to_domain())
    _dump(to_valuation_response(intrinsic, score), args.output)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="broksum",
        description="IDX broker flow, big-player movement and valuation analysis",
    )
    parser.add_argument("-c", "--config", help="Path to broksum.toml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Periods command
    periods_parser = subparsers.add_parser("periods", help="Six-period broker summary analysis")
    periods_parser.add_argument("input", help="Recorded broker summaries (JSON, '-' for stdin)")
    periods_parser.add_argument("-s", "--symbol", help="Ticker (defaults to the recording's)")
    periods_parser.add_argument("--start", help="Range start, YYYY-MM-DD")
    periods_parser.add_argument("--end", help="Range end, YYYY-MM-DD")
    periods_parser.add_argument("-o", "--output", help="Output file path")
    periods_parser.set_defaults(func=cmd_periods)

    # Movements command
    movements_parser = subparsers.add_parser("movements", help="Aggregate big-player movements")
    movements_parser.add_argument("input", help="Big-player movement payload (JSON)")
    movements_parser.add_argument("--search", help="Symbol or name substring")
    movements_parser.add_argument(
        "-a", "--action",
        choices=[c.value for c in ActionCategory],
        default=ActionCategory.ALL.value,
        help="Action filter",
    )
    movements_parser.add_argument("--sort", choices=[f.value for f in SortField], help="Sort field")
    movements_parser.add_argument(
        "--order",
        choices=[o.value for o in SortOrder],
        default=SortOrder.DESC.value,
        help="Sort order",
    )
    movements_parser.add_argument("-n", "--limit", type=int, help="Maximum rows")
    movements_parser.add_argument("-o", "--output", help="Output file path")
    movements_parser.set_defaults(func=cmd_movements)

    # Daily command
    daily_parser = subparsers.add_parser("daily", help="Daily broker action calendar")
    daily_parser.add_argument("input", help="Broker action calendar payload (JSON)")
    daily_parser.add_argument("-n", "--top", type=int, help="Dominant/distribution brokers to list")
    daily_parser.add_argument("-o", "--output", help="Output file path")
    daily_parser.set_defaults(func=cmd_daily)

    # Valuation command
    valuation_parser = subparsers.add_parser("valuation", help="Intrinsic value and fundamental score")
    valuation_parser.add_argument("input", help="ValuationInputs JSON, or key stats with --keystats")
    valuation_parser.add_argument("-m", "--mode", choices=[m.value for m in ValuationMode], help="Valuation mode")
    valuation_parser.add_argument("--index-pe", type=float, help="IHSG P/E")
    valuation_parser.add_argument("--keystats", action="store_true", help="Input is a key-stats payload")
    valuation_parser.add_argument("--price", type=float, help="Current price (with --keystats)")
    valuation_parser.add_argument("-o", "--output", help="Output file path")
    valuation_parser.set_defaults(func=cmd_valuation)

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(levelname)s: %(message)s",
    )

    try:
        return args.func(args, config)
    except (SourceError, ValidationError, ValueError, KeyError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
