"""
Signal scorer: combines six component sub-scores into one recommendation.

Indicators are computed once per series and read back per bar, so scoring
every bar of a backtest costs about the same as scoring the last one.
Every indicator is causal (a bar's value depends only on earlier bars),
which keeps per-bar signals identical to scoring a truncated series.
"""
import logging
from typing import Dict, List, Optional

from .config import SignalWeights, TIMEFRAME_WEIGHTS
from .rules import IndicatorSnapshot, SignalRule, get_component_rules
from ..indicators.base import PriceData, to_frame
from ..indicators.technical import TechnicalIndicators
from ..shared.defaults import (
    CONFIDENCE_DECIMALS,
    INDICATOR_DECIMALS,
    REASONING_THRESHOLDS,
    SIGNAL_BUY_THRESHOLD,
    SIGNAL_MIN_BARS,
    SIGNAL_MODERATE_THRESHOLD,
    SIGNAL_SELL_THRESHOLD,
    SIGNAL_STRONG_THRESHOLD,
    VOLUME_AVERAGE_WINDOW,
    VOLUME_MIN_BARS,
)
from ..shared.errors import InsufficientDataError, InvalidConfigurationError
from ..shared.types import Signal, SignalStrength, SignalType

logger = logging.getLogger(__name__)


def _by_date(points) -> dict:
    return {p.date: p for p in points}


def classify_score(score: float):
    """Return (signal type, strength) for a combined score."""
    if score > SIGNAL_BUY_THRESHOLD:
        signal_type = SignalType.BUY
    elif score < SIGNAL_SELL_THRESHOLD:
        signal_type = SignalType.SELL
    else:
        signal_type = SignalType.HOLD
    magnitude = abs(score)
    if magnitude > SIGNAL_STRONG_THRESHOLD:
        strength = SignalStrength.STRONG
    elif magnitude > SIGNAL_MODERATE_THRESHOLD:
        strength = SignalStrength.MODERATE
    else:
        strength = SignalStrength.WEAK
    return signal_type, strength


class SignalScorer:
    """
    Weighted multi-indicator buy/sell/hold scorer.

    Requires at least 50 bars of history.
    """

    def __init__(
        self,
        weights: Optional[SignalWeights] = None,
        indicators: Optional[TechnicalIndicators] = None,
        rules: Optional[List[SignalRule]] = None,
    ):
        self.weights = weights or SignalWeights()
        self.indicators = indicators or TechnicalIndicators()
        self.rules = rules if rules is not None else get_component_rules()

    def snapshots(self, data: PriceData, start_index: Optional[int] = None) -> List[IndicatorSnapshot]:
        """
        Indicator snapshots for every bar from ``start_index`` to the last bar.

        Raises:
            InsufficientDataError: If the series has fewer than 50 bars
        """
        df = to_frame(data)
        n = len(df)
        if n < SIGNAL_MIN_BARS:
            raise InsufficientDataError("signal scorer", SIGNAL_MIN_BARS, n)
        if start_index is None:
            start_index = n - 1
        if not (SIGNAL_MIN_BARS - 1 <= start_index < n):
            raise InvalidConfigurationError(
                f"start_index must be in [{SIGNAL_MIN_BARS - 1}, {n - 1}], got {start_index}"
            )

        ind = self.indicators
        sma_short = _by_date(ind.sma_short.calculate(df))
        sma_long = _by_date(ind.sma_long.calculate(df))
        ema_short = _by_date(ind.ema_short.calculate(df))
        ema_long = _by_date(ind.ema_long.calculate(df))
        rsi = _by_date(ind.rsi.calculate(df))
        macd = _by_date(ind.macd.calculate(df))
        bollinger = _by_date(ind.bollinger.calculate(df))
        average_volume = df["volume"].rolling(VOLUME_AVERAGE_WINDOW).mean()
        closes = df["close"].to_numpy()

        result = []
        for i in range(start_index, n):
            date = df.index[i]
            result.append(IndicatorSnapshot(
                date=date,
                price=float(closes[i]),
                previous_price=float(closes[i - 1]) if i > 0 else None,
                rsi=rsi.get(date),
                macd=macd.get(date),
                bollinger=bollinger.get(date),
                sma_short=sma_short.get(date),
                sma_long=sma_long.get(date),
                ema_short=ema_short.get(date),
                ema_long=ema_long.get(date),
                # Support/resistance looks at a trailing window ending at this bar
                levels=ind.support_resistance.calculate(df.iloc[: i + 1]),
                volume=float(df["volume"].iloc[i]),
                average_volume=(
                    float(average_volume.iloc[i]) if i >= VOLUME_MIN_BARS - 1 else None
                ),
            ))
        return result

    def snapshot(self, data: PriceData) -> IndicatorSnapshot:
        """Snapshot of the last bar."""
        return self.snapshots(data)[-1]

    def evaluate(self, snapshot: IndicatorSnapshot, weights: Optional[SignalWeights] = None) -> Signal:
        """Score one snapshot."""
        weights = weights or self.weights
        weight_map = weights.as_dict()

        scores: Dict[str, float] = {}
        reasoning: List[str] = []
        for rule in self.rules:
            score = rule.score(snapshot)
            scores[rule.name] = score
            if abs(score) > REASONING_THRESHOLDS.get(rule.name, 0.0):
                reasoning.append(rule.describe(snapshot, score))

        total = sum(weight_map.get(name, 0.0) * score for name, score in scores.items())
        signal_type, strength = classify_score(total)
        return Signal(
            date=snapshot.date,
            signal_type=signal_type,
            strength=strength,
            confidence=round(min(1.0, abs(total)), CONFIDENCE_DECIMALS),
            reasoning=tuple(reasoning),
            component_scores={k: round(v, INDICATOR_DECIMALS) for k, v in scores.items()},
            score=round(total, INDICATOR_DECIMALS),
        )

    def generate_signal(self, data: PriceData) -> Signal:
        """Signal for the last bar of the series."""
        return self.evaluate(self.snapshot(data))

    def generate_signals(self, data: PriceData, start_index: int = SIGNAL_MIN_BARS - 1) -> List[Signal]:
        """One signal per bar from ``start_index`` (default: first bar with 50 bars of history)."""
        signals = [self.evaluate(s) for s in self.snapshots(data, start_index)]
        logger.debug(
            "Scored %d bars: %d buy, %d sell",
            len(signals),
            sum(1 for s in signals if s.signal_type is SignalType.BUY),
            sum(1 for s in signals if s.signal_type is SignalType.SELL),
        )
        return signals

    def multi_timeframe(self, data: PriceData) -> Dict[str, Signal]:
        """Short, medium and long-term signals from the timeframe weight presets."""
        snapshot = self.snapshot(data)
        return {
            horizon: self.evaluate(snapshot, weights)
            for horizon, weights in TIMEFRAME_WEIGHTS.items()
        }
