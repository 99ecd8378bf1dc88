"""
Tests for the signal scorer.
"""
import numpy as np
import pandas as pd
import pytest

from ta_engine.signals.config import create_custom_weights
from ta_engine.signals.rules import IndicatorSnapshot
from ta_engine.signals.scorer import SignalScorer, classify_score
from ta_engine.shared.errors import InsufficientDataError, InvalidConfigurationError
from ta_engine.shared.types import (
    MacdPoint,
    MacdTrend,
    PriceBar,
    RsiPoint,
    RsiZone,
    SignalStrength,
    SignalType,
)


def make_bars(closes, start="2022-01-03", volume=1_000_000):
    dates = pd.date_range(start, periods=len(closes), freq="D")
    bars = []
    previous = closes[0]
    for date, close in zip(dates, closes):
        bars.append(PriceBar(date, previous, max(previous, close), min(previous, close), close, volume))
        previous = close
    return bars


@pytest.fixture
def drift_bars():
    """252 bars compounding 0.1% per bar."""
    return make_bars([100 * 1.001 ** i for i in range(252)])


@pytest.fixture
def random_bars():
    rng = np.random.default_rng(5)
    closes = 100 * np.exp(np.cumsum(rng.normal(0, 0.015, 120)))
    return make_bars([float(c) for c in closes])


class TestClassifyScore:
    @pytest.mark.parametrize("score,signal_type,strength", [
        (0.75, SignalType.BUY, SignalStrength.STRONG),
        (0.45, SignalType.BUY, SignalStrength.MODERATE),
        (0.3, SignalType.HOLD, SignalStrength.WEAK),
        (0.0, SignalType.HOLD, SignalStrength.WEAK),
        (-0.31, SignalType.SELL, SignalStrength.MODERATE),
        (-0.61, SignalType.SELL, SignalStrength.STRONG),
    ])
    def test_buckets(self, score, signal_type, strength):
        assert classify_score(score) == (signal_type, strength)


class TestEvaluate:
    def test_overbought_with_bearish_macd(self):
        """RSI 80 (-0.8) and bearish MACD (-0.7) at half weight each score -0.75."""
        date = pd.Timestamp("2024-05-01")
        snapshot = IndicatorSnapshot(
            date=date,
            price=100.0,
            rsi=RsiPoint(date=date, value=80.0, signal=RsiZone.OVERBOUGHT, strength=SignalStrength.STRONG),
            macd=MacdPoint(date=date, macd=-0.2, signal=0.3, histogram=-0.5, trend=MacdTrend.BEARISH),
        )
        scorer = SignalScorer(weights=create_custom_weights(rsi=0.5, macd=0.5))
        signal = scorer.evaluate(snapshot)
        assert signal.signal_type is SignalType.SELL
        assert signal.strength is SignalStrength.STRONG
        assert signal.score == pytest.approx(-0.75)
        assert signal.confidence == pytest.approx(0.75)
        assert signal.reasoning == (
            "RSI at 80.0 indicates overbought conditions",
            "MACD shows bearish momentum (histogram -0.5000)",
        )

    def test_no_indicators_is_hold(self):
        signal = SignalScorer().evaluate(IndicatorSnapshot(date=pd.Timestamp("2024-05-01"), price=100.0))
        assert signal.signal_type is SignalType.HOLD
        assert signal.strength is SignalStrength.WEAK
        assert signal.confidence == 0.0
        assert signal.reasoning == ()
        assert set(signal.component_scores.values()) == {0.0}

    def test_explicit_empty_rules_kept(self):
        """An empty rule list scores nothing instead of falling back to the defaults."""
        scorer = SignalScorer(rules=[])
        assert scorer.rules == []
        date = pd.Timestamp("2024-05-01")
        snapshot = IndicatorSnapshot(
            date=date,
            price=100.0,
            rsi=RsiPoint(date=date, value=80.0, signal=RsiZone.OVERBOUGHT, strength=SignalStrength.STRONG),
        )
        signal = scorer.evaluate(snapshot)
        assert signal.component_scores == {}
        assert signal.signal_type is SignalType.HOLD
        assert signal.score == 0.0


class TestSignalScorer:
    def test_requires_fifty_bars(self, drift_bars):
        with pytest.raises(InsufficientDataError) as excinfo:
            SignalScorer().generate_signal(drift_bars[:49])
        assert excinfo.value.required == 50

    def test_fifty_bars_is_enough(self, drift_bars):
        assert SignalScorer().generate_signal(drift_bars[:50]).date == drift_bars[49].date

    def test_drift_scenario(self, drift_bars):
        signal = SignalScorer().generate_signal(drift_bars)
        assert signal.signal_type is SignalType.BUY
        assert signal.strength is SignalStrength.MODERATE
        assert signal.score == pytest.approx(0.443, abs=0.01)
        assert signal.component_scores["rsi"] == pytest.approx(0.3)
        assert signal.component_scores["macd"] == pytest.approx(0.7)
        assert signal.component_scores["moving_average"] == pytest.approx(0.8)
        assert signal.component_scores["support_resistance"] == 0.0
        assert signal.component_scores["volume"] == 0.0

    def test_generate_signals_per_bar(self, drift_bars):
        signals = SignalScorer().generate_signals(drift_bars)
        assert len(signals) == len(drift_bars) - 49
        assert [s.date for s in signals] == [b.date for b in drift_bars[49:]]
        assert not any(s.signal_type is SignalType.SELL for s in signals)

    def test_per_bar_matches_truncated_series(self, random_bars):
        scorer = SignalScorer()
        signals = scorer.generate_signals(random_bars)
        for end in (50, 75, 120):
            truncated = scorer.generate_signal(random_bars[:end])
            per_bar = signals[end - 50]
            assert per_bar.date == truncated.date
            assert per_bar.signal_type is truncated.signal_type
            assert per_bar.score == pytest.approx(truncated.score, abs=1e-3)

    def test_invalid_start_index(self, drift_bars):
        with pytest.raises(InvalidConfigurationError):
            SignalScorer().generate_signals(drift_bars, start_index=10)

    def test_confidence_bounds(self, random_bars):
        for signal in SignalScorer().generate_signals(random_bars):
            assert 0 <= signal.confidence <= 1
            assert all(-1 <= v <= 1 for v in signal.component_scores.values())

    def test_multi_timeframe(self, drift_bars):
        result = SignalScorer().multi_timeframe(drift_bars)
        assert list(result) == ["short_term", "medium_term", "long_term"]
        assert result["medium_term"] == SignalScorer().generate_signal(drift_bars)
        assert all(s.signal_type is SignalType.BUY for s in result.values())

    def test_deterministic(self, random_bars):
        assert SignalScorer().generate_signals(random_bars) == SignalScorer().generate_signals(random_bars)
