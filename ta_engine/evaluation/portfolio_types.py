"""
Backtest types: positions, trade ledger entries, equity snapshots and the
aggregate result.

Kept separate from backtester.py so reports and the optimizer can import
these types without pulling in the simulator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

import pandas as pd


class TradeAction(Enum):
    BUY = "buy"
    SELL = "sell"


class TradeReason(Enum):
    """Why a ledger entry was written."""
    BUY_SIGNAL = "buy_signal"
    BULLISH_PREDICTION = "bullish_prediction"
    HYBRID_ENTRY = "hybrid_entry"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    SELL_SIGNAL = "sell_signal"
    BEARISH_PREDICTION = "bearish_prediction"
    END_OF_DATA = "end_of_data"


@dataclass
class Position:
    """An open long position (simulator-internal)."""
    entry_date: pd.Timestamp
    entry_price: float
    quantity: int
    stop_loss_price: float
    take_profit_price: float
    entry_cost: float  # Cash paid including commission and slippage
    direction: str = "long"


@dataclass(frozen=True)
class Trade:
    """One ledger entry. Buys carry realized P&L 0; sells carry the net round-trip P&L."""
    date: pd.Timestamp
    action: TradeAction
    price: float
    quantity: int
    realized_pnl: float
    reason: TradeReason


@dataclass(frozen=True)
class EquityPoint:
    """Snapshot of the portfolio at the close of a bar."""
    date: pd.Timestamp
    cash: float
    invested_value: float  # Market value of open positions
    total_value: float  # cash + invested_value
    open_positions: int


@dataclass(frozen=True)
class BacktestResult:
    """Results from one backtest run."""
    config_name: str
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    initial_capital: float
    final_capital: float
    total_return: float  # Fraction, e.g. 0.12 = +12%
    annualized_return: float
    max_drawdown: float  # Fraction of peak, in [0, 1]
    sharpe_ratio: float
    trade_count: int  # Completed round trips
    win_rate: float
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[EquityPoint] = field(default_factory=list)

    # Trade statistics
    winning_trades: int = 0
    losing_trades: int = 0
    average_win: float = 0.0
    average_loss: float = 0.0  # Negative number (or 0 without losers)
    profit_factor: float = 0.0
    max_consecutive_losses: int = 0

    @property
    def period(self) -> Tuple[pd.Timestamp, pd.Timestamp]:
        return self.start_date, self.end_date
