"""
Performance metrics for backtest results.

All functions are pure and defined for degenerate input (flat equity,
no trades) instead of returning NaN.
"""
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..shared.defaults import DAYS_PER_YEAR, TRADING_DAYS_PER_YEAR


def calculate_max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline as a fraction of the peak, in [0, 1]."""
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=float)
    peaks = np.maximum.accumulate(arr)
    drawdowns = np.where(peaks > 0, (peaks - arr) / peaks, 0.0)
    return float(min(1.0, max(0.0, drawdowns.max())))


def daily_returns(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if len(arr) < 2:
        return np.array([])
    return arr[1:] / arr[:-1] - 1.0


def calculate_sharpe_ratio(values: Sequence[float], periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """
    Annualized Sharpe ratio of per-bar returns (risk-free rate 0).

    Uses the population standard deviation; 0 when returns do not vary.
    """
    returns = daily_returns(values)
    if len(returns) == 0:
        return 0.0
    std = returns.std()
    if std == 0:
        return 0.0
    return float(returns.mean() / std * math.sqrt(periods_per_year))


def calculate_annualized_return(total_return: float, start: pd.Timestamp, end: pd.Timestamp) -> float:
    """Compound total_return over the elapsed calendar years."""
    years = (pd.Timestamp(end) - pd.Timestamp(start)).days / DAYS_PER_YEAR
    if years <= 0:
        return 0.0
    if 1 + total_return <= 0:
        return -1.0
    return float((1 + total_return) ** (1 / years) - 1)


@dataclass(frozen=True)
class TradeStatistics:
    round_trips: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    average_win: float
    average_loss: float
    profit_factor: float
    max_consecutive_losses: int


def calculate_trade_statistics(pnls: Sequence[float]) -> TradeStatistics:
    """
    Statistics over realized round-trip P&Ls (in ledger order).

    Profit factor is total profit / |total loss|, or total profit when
    there were no losses.
    """
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    total_profit = sum(wins)
    total_loss = sum(losses)

    streak = longest = 0
    for pnl in pnls:
        if pnl < 0:
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 0

    return TradeStatistics(
        round_trips=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / len(pnls) if pnls else 0.0,
        average_win=total_profit / len(wins) if wins else 0.0,
        average_loss=total_loss / len(losses) if losses else 0.0,
        profit_factor=total_profit / abs(total_loss) if total_loss else total_profit,
        max_consecutive_losses=longest,
    )
