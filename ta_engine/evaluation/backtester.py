"""
Backtesting engine: bar-by-bar trade simulator with risk management.

Simulates trading with a cash wallet that:
- Opens long positions on entry decisions, sized as a fraction of cash
- Closes positions on stop-loss, take-profit, an exit decision, or the final bar
- Charges commission and slippage on both sides of every trade
- Marks the portfolio to market at every bar

Entry/exit decisions depend only on the strategy (signal weights,
prediction settings), not on risk parameters, so they are generated once
and can be replayed under many risk configurations.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .config import BacktestConfig
from .metrics import (
    calculate_annualized_return,
    calculate_max_drawdown,
    calculate_sharpe_ratio,
    calculate_trade_statistics,
)
from .portfolio_types import (
    BacktestResult,
    EquityPoint,
    Position,
    Trade,
    TradeAction,
    TradeReason,
)
from ..indicators.base import PriceData, to_frame
from ..prediction.models import get_prediction
from ..signals.scorer import SignalScorer
from ..shared.defaults import BACKTEST_MIN_BARS, BACKTEST_WARMUP_BARS
from ..shared.errors import InsufficientDataError, InvalidConfigurationError
from ..shared.types import Prediction, Signal, SignalStrength, SignalType

logger = logging.getLogger(__name__)

__all__ = ["BacktestEngine", "Decision", "run_backtest"]


@dataclass(frozen=True)
class Decision:
    """What the strategy wants to do at the close of one bar."""
    date: pd.Timestamp
    action: SignalType  # BUY = open a position, SELL = close all, HOLD = nothing
    reason: Optional[TradeReason] = None


HOLD = SignalType.HOLD


class BacktestEngine:
    """
    Replays a price series bar by bar, starting once 50 bars of history exist.

    Requires at least 100 bars.
    """

    def __init__(self, config: Optional[BacktestConfig] = None, scorer: Optional[SignalScorer] = None):
        self.config = config or BacktestConfig()
        self.scorer = scorer or SignalScorer(self.config.signal_weights)

    @property
    def start_index(self) -> int:
        return BACKTEST_WARMUP_BARS - 1

    def _check_length(self, df: pd.DataFrame) -> None:
        if len(df) < BACKTEST_MIN_BARS:
            raise InsufficientDataError("backtest", BACKTEST_MIN_BARS, len(df))

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def _predict(self, df: pd.DataFrame, i: int) -> Prediction:
        return get_prediction(df.iloc[: i + 1], self.config.prediction)

    def _predicted_change(self, prediction: Prediction, price: float) -> float:
        return (prediction.predicted_price - price) / price

    def _signal_decision(self, signal: Signal) -> Decision:
        if signal.signal_type is SignalType.BUY and signal.strength is not SignalStrength.WEAK:
            return Decision(signal.date, SignalType.BUY, TradeReason.BUY_SIGNAL)
        if signal.signal_type is SignalType.SELL:
            return Decision(signal.date, SignalType.SELL, TradeReason.SELL_SIGNAL)
        return Decision(signal.date, HOLD)

    def _prediction_decision(self, date: pd.Timestamp, prediction: Prediction, price: float) -> Decision:
        if prediction.confidence < self.config.min_prediction_confidence:
            return Decision(date, HOLD)
        change = self._predicted_change(prediction, price)
        if change > self.config.prediction_threshold:
            return Decision(date, SignalType.BUY, TradeReason.BULLISH_PREDICTION)
        if change < -self.config.prediction_threshold:
            return Decision(date, SignalType.SELL, TradeReason.BEARISH_PREDICTION)
        return Decision(date, HOLD)

    def _hybrid_decision(self, signal: Signal, prediction: Prediction, price: float) -> Decision:
        change = self._predicted_change(prediction, price)
        strong_enough = signal.strength is not SignalStrength.WEAK
        if signal.signal_type is SignalType.SELL and strong_enough:
            return Decision(signal.date, SignalType.SELL, TradeReason.SELL_SIGNAL)
        if change < -self.config.prediction_threshold:
            return Decision(signal.date, SignalType.SELL, TradeReason.BEARISH_PREDICTION)
        if signal.signal_type is SignalType.BUY and strong_enough and change > 0:
            return Decision(signal.date, SignalType.BUY, TradeReason.HYBRID_ENTRY)
        return Decision(signal.date, HOLD)

    def generate_decisions(self, data: PriceData) -> List[Decision]:
        """
        One decision per simulated bar (from the 50th bar to the last).

        Raises:
            InsufficientDataError: If the series has fewer than 100 bars
        """
        df = to_frame(data)
        self._check_length(df)
        start = self.start_index
        closes = df["close"].to_numpy()
        strategy = self.config.strategy

        if strategy == "signal_based":
            return [self._signal_decision(s) for s in self.scorer.generate_signals(df, start)]

        if strategy == "prediction_based":
            return [
                self._prediction_decision(df.index[i], self._predict(df, i), float(closes[i]))
                for i in range(start, len(df))
            ]

        signals = self.scorer.generate_signals(df, start)
        return [
            self._hybrid_decision(signal, self._predict(df, i), float(closes[i]))
            for i, signal in zip(range(start, len(df)), signals)
        ]

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def _open_position(self, date: pd.Timestamp, price: float, cash: float) -> Optional[Position]:
        cfg = self.config
        unit_cost = price * (1 + cfg.friction_pct)
        quantity = min(
            math.floor(cash * cfg.position_size_pct / price),
            math.floor(cash / unit_cost),
        )
        if quantity < 1:
            logger.debug("Skipping entry on %s: position would be below one unit", date.date())
            return None
        return Position(
            entry_date=date,
            entry_price=price,
            quantity=quantity,
            stop_loss_price=price * (1 - cfg.stop_loss_pct),
            take_profit_price=price * (1 + cfg.take_profit_pct),
            entry_cost=quantity * unit_cost,
        )

    def _check_position_exit(self, position: Position, price: float) -> Optional[TradeReason]:
        if price <= position.stop_loss_price:
            return TradeReason.STOP_LOSS
        if price >= position.take_profit_price:
            return TradeReason.TAKE_PROFIT
        return None

    def simulate(self, data: PriceData, decisions: List[Decision]) -> BacktestResult:
        """
        Run the trade simulation for pre-computed decisions.

        Per bar: stop-loss / take-profit checks, then the decision (an exit
        closes every open position; an entry respects max_positions and is
        never taken on the final bar), then forced closure on the final bar,
        then the mark-to-market snapshot.
        """
        cfg = self.config
        df = to_frame(data)
        self._check_length(df)
        start = self.start_index
        if len(decisions) != len(df) - start:
            raise InvalidConfigurationError(
                f"Expected {len(df) - start} decisions, got {len(decisions)}"
            )

        cash = cfg.initial_capital
        open_positions: List[Position] = []
        trades: List[Trade] = []
        equity_curve: List[EquityPoint] = []
        exit_factor = 1 - cfg.friction_pct
        last_index = len(df) - 1

        def close(position: Position, date: pd.Timestamp, price: float, reason: TradeReason) -> None:
            nonlocal cash
            proceeds = position.quantity * price * exit_factor
            cash += proceeds
            trades.append(Trade(
                date=date,
                action=TradeAction.SELL,
                price=price,
                quantity=position.quantity,
                realized_pnl=proceeds - position.entry_cost,
                reason=reason,
            ))

        for i, decision in zip(range(start, len(df)), decisions):
            date = df.index[i]
            if decision.date != date:
                raise InvalidConfigurationError(
                    f"Decision date {decision.date} does not match bar date {date}"
                )
            price = float(df["close"].iloc[i])

            still_open = []
            for position in open_positions:
                reason = self._check_position_exit(position, price)
                if reason is None:
                    still_open.append(position)
                else:
                    close(position, date, price, reason)
            open_positions = still_open

            if decision.action is SignalType.SELL and open_positions:
                for position in open_positions:
                    close(position, date, price, decision.reason or TradeReason.SELL_SIGNAL)
                open_positions = []
            elif (
                decision.action is SignalType.BUY
                and len(open_positions) < cfg.max_positions
                and i < last_index
            ):
                position = self._open_position(date, price, cash)
                if position is not None:
                    cash -= position.entry_cost
                    open_positions.append(position)
                    trades.append(Trade(
                        date=date,
                        action=TradeAction.BUY,
                        price=price,
                        quantity=position.quantity,
                        realized_pnl=0.0,
                        reason=decision.reason or TradeReason.BUY_SIGNAL,
                    ))

            if i == last_index:
                for position in open_positions:
                    close(position, date, price, TradeReason.END_OF_DATA)
                open_positions = []

            invested = sum(p.quantity * price for p in open_positions)
            equity_curve.append(EquityPoint(
                date=date,
                cash=cash,
                invested_value=invested,
                total_value=cash + invested,
                open_positions=len(open_positions),
            ))

        return self._build_result(df.index[start], df.index[last_index], cash, trades, equity_curve)

    def _build_result(
        self,
        start_date: pd.Timestamp,
        end_date: pd.Timestamp,
        final_capital: float,
        trades: List[Trade],
        equity_curve: List[EquityPoint],
    ) -> BacktestResult:
        initial = self.config.initial_capital
        values = [initial] + [p.total_value for p in equity_curve]
        total_return = (final_capital - initial) / initial
        stats = calculate_trade_statistics(
            [t.realized_pnl for t in trades if t.action is TradeAction.SELL]
        )
        result = BacktestResult(
            config_name=self.config.name,
            start_date=start_date,
            end_date=end_date,
            initial_capital=initial,
            final_capital=final_capital,
            total_return=total_return,
            annualized_return=calculate_annualized_return(total_return, start_date, end_date),
            max_drawdown=calculate_max_drawdown(values),
            sharpe_ratio=calculate_sharpe_ratio(values),
            trade_count=stats.round_trips,
            win_rate=stats.win_rate,
            trades=trades,
            equity_curve=equity_curve,
            winning_trades=stats.winning_trades,
            losing_trades=stats.losing_trades,
            average_win=stats.average_win,
            average_loss=stats.average_loss,
            profit_factor=stats.profit_factor,
            max_consecutive_losses=stats.max_consecutive_losses,
        )
        logger.info(
            "Backtest %s (%s to %s): %d round trips, return %.2f%%, max drawdown %.2f%%",
            self.config.name, start_date.date(), end_date.date(),
            result.trade_count, total_return * 100, result.max_drawdown * 100,
        )
        return result

    def run(self, data: PriceData) -> BacktestResult:
        """Generate decisions and simulate them."""
        df = to_frame(data)
        return self.simulate(df, self.generate_decisions(df))


def run_backtest(data: PriceData, config: Optional[BacktestConfig] = None) -> BacktestResult:
    return BacktestEngine(config).run(data)
