"""
Tests for the backtest engine.
"""
import pandas as pd
import pytest

from ta_engine.evaluation.backtester import BacktestEngine, Decision, run_backtest
from ta_engine.evaluation.config import BacktestConfig
from ta_engine.evaluation.portfolio_types import TradeAction, TradeReason
from ta_engine.shared.errors import InsufficientDataError, InvalidConfigurationError
from ta_engine.shared.types import PriceBar, SignalType


def make_bars(closes, start="2021-01-04"):
    dates = pd.date_range(start, periods=len(closes), freq="D")
    bars = []
    previous = closes[0]
    for date, close in zip(dates, closes):
        bars.append(PriceBar(date, previous, max(previous, close), min(previous, close), close, 1_000_000))
        previous = close
    return bars


def hold_decisions(bars, actions=None):
    """HOLD for every simulated bar, except the {index: action} overrides."""
    actions = actions or {}
    return [Decision(bars[i].date, actions.get(i, SignalType.HOLD)) for i in range(49, len(bars))]


@pytest.fixture
def drift_bars():
    return make_bars([100 * 1.001 ** i for i in range(252)])


@pytest.fixture
def flat_bars():
    return make_bars([100.0] * 100)


class TestSimulation:
    """Position lifecycle with hand-made decisions."""

    def test_stop_loss(self):
        bars = make_bars([100.0] * 60 + [89.0] * 40)
        result = BacktestEngine().simulate(bars, hold_decisions(bars, {49: SignalType.BUY}))

        buy, sell = result.trades
        assert buy.action is TradeAction.BUY
        assert buy.quantity == 20
        assert buy.reason is TradeReason.BUY_SIGNAL
        assert sell.reason is TradeReason.STOP_LOSS
        assert sell.date == bars[60].date
        assert sell.realized_pnl == pytest.approx(20 * 89 * 0.9985 - 2003.0)
        assert result.final_capital == pytest.approx(10000 - 2003.0 + 20 * 89 * 0.9985)
        assert result.trade_count == 1
        assert result.win_rate == 0.0

    def test_take_profit(self):
        bars = make_bars([100.0] * 60 + [121.0] * 40)
        result = BacktestEngine().simulate(bars, hold_decisions(bars, {49: SignalType.BUY}))
        assert result.trades[-1].reason is TradeReason.TAKE_PROFIT
        assert result.trades[-1].realized_pnl == pytest.approx(20 * 121 * 0.9985 - 2003.0)
        assert result.win_rate == 1.0

    def test_sell_decision_closes_all(self, flat_bars):
        decisions = hold_decisions(flat_bars, {49: SignalType.BUY, 50: SignalType.BUY, 55: SignalType.SELL})
        result = BacktestEngine().simulate(flat_bars, decisions)

        sells = [t for t in result.trades if t.action is TradeAction.SELL]
        assert [t.quantity for t in sells] == [20, 15]
        assert all(t.reason is TradeReason.SELL_SIGNAL for t in sells)
        assert all(t.date == flat_bars[55].date for t in sells)
        assert result.final_capital == pytest.approx(10000 - 6.0 - 4.5)

    def test_max_positions(self, flat_bars):
        decisions = hold_decisions(flat_bars, {i: SignalType.BUY for i in range(49, 100)})
        result = BacktestEngine(BacktestConfig(max_positions=2)).simulate(flat_bars, decisions)

        buys = [t for t in result.trades if t.action is TradeAction.BUY]
        sells = [t for t in result.trades if t.action is TradeAction.SELL]
        assert len(buys) == 2
        assert len(sells) == 2
        assert all(t.reason is TradeReason.END_OF_DATA for t in sells)
        assert all(t.date == flat_bars[-1].date for t in sells)
        assert max(p.open_positions for p in result.equity_curve) == 2

    def test_no_entry_on_final_bar(self, flat_bars):
        result = BacktestEngine().simulate(flat_bars, hold_decisions(flat_bars, {99: SignalType.BUY}))
        assert result.trades == []
        assert result.final_capital == 10000

    def test_position_below_one_unit_skipped(self, flat_bars):
        config = BacktestConfig(initial_capital=50.0)
        result = BacktestEngine(config).simulate(flat_bars, hold_decisions(flat_bars, {49: SignalType.BUY}))
        assert result.trades == []
        assert result.final_capital == 50.0

    def test_equity_curve(self, flat_bars):
        result = BacktestEngine().simulate(flat_bars, hold_decisions(flat_bars, {49: SignalType.BUY}))
        curve = result.equity_curve
        assert len(curve) == 51
        assert curve[0].cash == pytest.approx(7997.0)
        assert curve[0].invested_value == pytest.approx(2000.0)
        assert curve[0].total_value == pytest.approx(9997.0)
        assert curve[-1].open_positions == 0
        assert curve[-1].total_value == pytest.approx(result.final_capital)

    def test_decision_count_mismatch(self, flat_bars):
        with pytest.raises(InvalidConfigurationError):
            BacktestEngine().simulate(flat_bars, hold_decisions(flat_bars)[:-1])

    def test_decision_date_mismatch(self, flat_bars):
        decisions = hold_decisions(flat_bars)
        decisions[3] = Decision(flat_bars[0].date, SignalType.HOLD)
        with pytest.raises(InvalidConfigurationError):
            BacktestEngine().simulate(flat_bars, decisions)


class TestBacktestEngine:
    def test_requires_hundred_bars(self, drift_bars):
        with pytest.raises(InsufficientDataError) as excinfo:
            run_backtest(drift_bars[:99])
        assert excinfo.value.required == 100

    def test_drift_scenario(self, drift_bars):
        """A steady uptrend keeps buying and exits through take-profit."""
        result = run_backtest(drift_bars)
        reasons = {t.reason for t in result.trades}
        assert result.final_capital > result.initial_capital
        assert TradeReason.TAKE_PROFIT in reasons
        assert TradeReason.SELL_SIGNAL not in reasons
        assert result.trade_count > 0
        assert result.start_date == drift_bars[49].date
        assert result.end_date == drift_bars[-1].date

    def test_accounting_invariants(self, drift_bars):
        result = run_backtest(drift_bars)
        sells = [t for t in result.trades if t.action is TradeAction.SELL]
        assert result.final_capital == pytest.approx(
            result.initial_capital + sum(t.realized_pnl for t in sells)
        )
        assert result.win_rate == pytest.approx(
            sum(1 for t in sells if t.realized_pnl > 0) / result.trade_count
        )
        assert 0 <= result.max_drawdown <= 1
        assert result.total_return == pytest.approx(
            (result.final_capital - result.initial_capital) / result.initial_capital
        )

    def test_deterministic(self, drift_bars):
        assert run_backtest(drift_bars) == run_backtest(drift_bars)

    def test_decisions_are_per_bar(self, drift_bars):
        decisions = BacktestEngine().generate_decisions(drift_bars)
        assert len(decisions) == len(drift_bars) - 49
        assert decisions[0].action is SignalType.BUY
        assert decisions[0].reason is TradeReason.BUY_SIGNAL

    @pytest.mark.parametrize("strategy", ["prediction_based", "hybrid"])
    def test_prediction_strategies(self, drift_bars, strategy):
        bars = drift_bars[:120]
        result = run_backtest(bars, BacktestConfig(strategy=strategy))
        sells = [t for t in result.trades if t.action is TradeAction.SELL]
        assert result.final_capital == pytest.approx(
            result.initial_capital + sum(t.realized_pnl for t in sells)
        )
        allowed = {
            "prediction_based": {TradeReason.BULLISH_PREDICTION, TradeReason.BEARISH_PREDICTION},
            "hybrid": {TradeReason.HYBRID_ENTRY, TradeReason.SELL_SIGNAL, TradeReason.BEARISH_PREDICTION},
        }[strategy] | {TradeReason.STOP_LOSS, TradeReason.TAKE_PROFIT, TradeReason.END_OF_DATA}
        assert {t.reason for t in result.trades} <= allowed

    def test_strict_confidence_gate_blocks_trades(self, drift_bars):
        config = BacktestConfig(strategy="prediction_based", min_prediction_confidence=1.0, prediction_threshold=0.5)
        assert run_backtest(drift_bars[:110], config).trades == []
