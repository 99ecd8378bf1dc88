#!/usr/bin/env python3
"""
Symbol analysis CLI.

Computes indicators, the trading signal, a price prediction and alerts for
the latest bar of a CSV price series.
"""
import argparse
import logging
import sys

from ta_cli.common import add_common_arguments, load_bars, setup_logging
from ta_engine.orchestration.service import TechnicalAnalysisService, format_analysis
from ta_engine.prediction.config import ALGORITHMS, PredictionConfig
from ta_engine.shared.defaults import POLYNOMIAL_DEGREE, PREDICTION_ALGORITHM, PREDICTION_HORIZON_DAYS
from ta_engine.shared.errors import AnalysisError
from ta_engine.shared.serialization import to_json

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Technical analysis of a price series",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Analyze the latest bar
    ta-analyze data/AAPL.csv --symbol AAPL

    # Linear 14-day prediction, JSON output
    ta-analyze data/AAPL.csv --algorithm linear --horizon 14 --json

    # Short / medium / long-term signals
    ta-analyze data/AAPL.csv --multi-timeframe
        """,
    )
    add_common_arguments(parser)
    parser.add_argument("--symbol", help="Ticker symbol (default: CSV file name)")
    parser.add_argument(
        "--horizon", type=int, default=PREDICTION_HORIZON_DAYS,
        help=f"Prediction horizon in days (default: {PREDICTION_HORIZON_DAYS})",
    )
    parser.add_argument(
        "--algorithm", choices=ALGORITHMS, default=PREDICTION_ALGORITHM,
        help=f"Prediction algorithm (default: {PREDICTION_ALGORITHM})",
    )
    parser.add_argument(
        "--degree", type=int, choices=(2, 3), default=POLYNOMIAL_DEGREE,
        help=f"Polynomial degree (default: {POLYNOMIAL_DEGREE})",
    )
    parser.add_argument("--multi-timeframe", action="store_true", help="Show short/medium/long-term signals")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    symbol = args.symbol or args.csv.stem
    try:
        bars = load_bars(args)
        service = TechnicalAnalysisService(
            prediction_config=PredictionConfig(
                horizon_days=args.horizon,
                algorithm=args.algorithm,
                polynomial_degree=args.degree,
            )
        )
        if args.multi_timeframe:
            signals = service.multi_timeframe_analysis(symbol, bars)
            if args.json:
                print(to_json(signals, indent=2))
            else:
                for horizon, signal in signals.items():
                    print(
                        f"{horizon:<12} {signal.signal_type.value.upper():<5} "
                        f"{signal.strength.value:<9} confidence {signal.confidence:.0%}"
                    )
            return 0

        analysis = service.analyze_stock(symbol, bars)
    except (AnalysisError, FileNotFoundError) as exc:
        logger.error("Analysis failed: %s", exc)
        return 1

    print(to_json(analysis, indent=2) if args.json else format_analysis(analysis))
    return 0


if __name__ == "__main__":
    sys.exit(main())
