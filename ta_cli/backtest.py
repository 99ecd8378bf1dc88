#!/usr/bin/env python3
"""
Backtesting CLI.

Runs a single backtest, a grid search over risk parameters, or a
side-by-side comparison of several YAML configurations on one CSV series.
"""
import argparse
import logging
import sys
from pathlib import Path

from ta_cli.common import add_common_arguments, load_bars, setup_logging
from ta_engine.evaluation.backtester import BacktestEngine
from ta_engine.evaluation.config import STRATEGIES, BacktestConfig
from ta_engine.evaluation.config_loader import load_config_from_yaml
from ta_engine.evaluation.report import format_comparison, generate_report
from ta_engine.grid_test.grid_search import compare_configs, optimize_strategy
from ta_engine.shared.errors import AnalysisError
from ta_engine.shared.serialization import to_json

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Backtest a trading strategy on a price series",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Default signal-based strategy
    ta-backtest data/AAPL.csv

    # Load settings from YAML, override the stop-loss
    ta-backtest data/AAPL.csv --config configs/conservative.yaml --stop-loss 0.05

    # Grid search over position size / stop-loss / take-profit
    ta-backtest data/AAPL.csv --optimize

    # Compare configurations
    ta-backtest data/AAPL.csv --compare configs/baseline.yaml configs/aggressive.yaml
        """,
    )
    add_common_arguments(parser)
    parser.add_argument("--config", type=Path, help="Load configuration from YAML file")
    parser.add_argument("--strategy", choices=STRATEGIES, help="Entry/exit strategy")
    parser.add_argument("--initial-capital", type=float, help="Starting capital")
    parser.add_argument("--position-size", type=float, help="Fraction of cash per position (0-1)")
    parser.add_argument("--stop-loss", type=float, help="Stop-loss fraction (0-1)")
    parser.add_argument("--take-profit", type=float, help="Take-profit fraction (0-1)")
    parser.add_argument("--max-positions", type=int, help="Maximum concurrent positions")
    parser.add_argument("--commission", type=float, help="Commission per side (fraction of notional)")
    parser.add_argument("--slippage", type=float, help="Slippage per side (fraction of notional)")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--optimize", action="store_true", help="Grid search risk parameters (best Sharpe)")
    mode.add_argument("--compare", nargs="+", type=Path, metavar="YAML", help="Compare several configurations")

    parser.add_argument(
        "--max-trades", type=int, default=50,
        help="Trades to list in the report (default: 50, 0 = none)",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def build_config(args) -> BacktestConfig:
    """Config from --config (or defaults) with command-line overrides applied."""
    config = load_config_from_yaml(args.config) if args.config else BacktestConfig()
    overrides = {
        "strategy": args.strategy,
        "initial_capital": args.initial_capital,
        "position_size_pct": args.position_size,
        "stop_loss_pct": args.stop_loss,
        "take_profit_pct": args.take_profit,
        "max_positions": args.max_positions,
        "commission_pct": args.commission,
        "slippage_pct": args.slippage,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return config.with_overrides(**overrides) if overrides else config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    try:
        bars = load_bars(args)

        if args.compare:
            configs = [load_config_from_yaml(path) for path in args.compare]
            rows = compare_configs(bars, configs)
            if args.json:
                print(to_json({name: result for name, result in rows}, indent=2))
            else:
                print(format_comparison(rows))
            return 0

        config = build_config(args)
        if args.optimize:
            optimization = optimize_strategy(bars, config)
            result = optimization.best_result
            if not args.json:
                print(format_comparison([(c.name, r) for c, r in optimization.results]))
                print()
        else:
            result = BacktestEngine(config).run(bars)
    except (AnalysisError, FileNotFoundError) as exc:
        logger.error("Backtest failed: %s", exc)
        return 1

    print(to_json(result, indent=2) if args.json else generate_report(result, args.max_trades))
    return 0


if __name__ == "__main__":
    sys.exit(main())
