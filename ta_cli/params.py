#!/usr/bin/env python3
"""
Parameter reference CLI.

Shows all configurable parameters, their valid ranges, and defaults.
"""
import sys

from ta_engine.evaluation.config import STRATEGIES
from ta_engine.prediction.config import ALGORITHMS
from ta_engine.shared.defaults import (
    SMA_SHORT_PERIOD, SMA_LONG_PERIOD, EMA_SHORT_PERIOD, EMA_LONG_PERIOD,
    RSI_PERIOD, RSI_OVERBOUGHT, RSI_OVERSOLD,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL,
    BOLLINGER_PERIOD, BOLLINGER_STD_MULTIPLIER,
    SR_LOOKBACK, SR_TOLERANCE, SR_MIN_STRENGTH, SR_MAX_LEVELS,
    PREDICTION_HORIZON_DAYS, PREDICTION_ALGORITHM, POLYNOMIAL_DEGREE,
    SIGNAL_WEIGHTS, SIGNAL_MIN_BARS,
    INITIAL_CAPITAL, POSITION_SIZE_PCT, STOP_LOSS_PCT, TAKE_PROFIT_PCT,
    MAX_POSITIONS, COMMISSION_PCT, SLIPPAGE_PCT, BACKTEST_STRATEGY,
    BACKTEST_MIN_BARS, BACKTEST_WARMUP_BARS,
    PREDICTION_THRESHOLD, MIN_PREDICTION_CONFIDENCE,
    OPTIMIZER_POSITION_SIZES, OPTIMIZER_STOP_LOSSES, OPTIMIZER_TAKE_PROFITS,
    CACHE_TTL_SECONDS,
)


def main():
    """Print all configurable parameters with their ranges and defaults."""

    print("=" * 80)
    print("TECHNICAL ANALYSIS ENGINE PARAMETER REFERENCE")
    print("=" * 80)
    print()

    print("INDICATORS")
    print("-" * 80)
    print(f"  SMA periods          {SMA_SHORT_PERIOD} / {SMA_LONG_PERIOD}")
    print(f"  EMA periods          {EMA_SHORT_PERIOD} / {EMA_LONG_PERIOD}")
    print(f"  RSI                  period {RSI_PERIOD}, overbought > {RSI_OVERBOUGHT}, oversold < {RSI_OVERSOLD}")
    print(f"                       needs period + 1 bars")
    print(f"  MACD                 fast {MACD_FAST}, slow {MACD_SLOW}, signal {MACD_SIGNAL}")
    print(f"                       needs slow + signal bars")
    print(f"  Bollinger Bands      period {BOLLINGER_PERIOD}, {BOLLINGER_STD_MULTIPLIER} std devs")
    print(f"  Support/Resistance   lookback {SR_LOOKBACK}, tolerance {SR_TOLERANCE:.0%}, "
          f"min strength {SR_MIN_STRENGTH}, top {SR_MAX_LEVELS}")
    print()

    print("PREDICTION")
    print("-" * 80)
    print(f"  --horizon            {PREDICTION_HORIZON_DAYS} days (default), must be >= 1")
    print(f"  --algorithm          {PREDICTION_ALGORITHM} (default)")
    print(f"                       Choices: {', '.join(ALGORITHMS)}")
    print(f"  --degree             {POLYNOMIAL_DEGREE} (default), 2 or 3")
    print()

    print("SIGNAL WEIGHTS (must sum to 1.0)")
    print("-" * 80)
    for name, weight in SIGNAL_WEIGHTS.items():
        print(f"  {name:<20} {weight:.2f}")
    print(f"  Requires at least {SIGNAL_MIN_BARS} bars")
    print()

    print("BACKTEST")
    print("-" * 80)
    print(f"  --initial-capital    {INITIAL_CAPITAL:,.0f} (default), must be > 0")
    print(f"  --position-size      {POSITION_SIZE_PCT} (default), range 0-1")
    print(f"  --stop-loss          {STOP_LOSS_PCT} (default), range 0-1")
    print(f"  --take-profit        {TAKE_PROFIT_PCT} (default), range 0-1")
    print(f"  --max-positions      {MAX_POSITIONS} (default), >= 1")
    print(f"  --commission         {COMMISSION_PCT} (default), per side")
    print(f"  --slippage           {SLIPPAGE_PCT} (default), per side")
    print(f"  --strategy           {BACKTEST_STRATEGY} (default)")
    print(f"                       Choices: {', '.join(STRATEGIES)}")
    print(f"  prediction threshold {PREDICTION_THRESHOLD:.0%}, min confidence {MIN_PREDICTION_CONFIDENCE}")
    print(f"  Requires at least {BACKTEST_MIN_BARS} bars; trading starts at bar {BACKTEST_WARMUP_BARS}")
    print()

    print("OPTIMIZER GRID (--optimize)")
    print("-" * 80)
    print(f"  position sizes       {OPTIMIZER_POSITION_SIZES}")
    print(f"  stop losses          {OPTIMIZER_STOP_LOSSES}")
    print(f"  take profits         {OPTIMIZER_TAKE_PROFITS}")
    print()

    print("ANALYSIS CACHE")
    print("-" * 80)
    print(f"  time-to-live         {CACHE_TTL_SECONDS:.0f} seconds")
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
