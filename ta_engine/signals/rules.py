"""
Scoring rules, one per signal component.

Each rule turns an indicator snapshot into a sub-score in [-1, 1]
(negative = bearish) and renders a reasoning sentence citing the indicator
value. New components can be added without changing the scorer.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

import pandas as pd

from ..shared.defaults import SR_PROXIMITY, VOLUME_DRY_RATIO, VOLUME_SPIKE_RATIO
from ..shared.types import (
    BollingerPoint,
    LevelType,
    MacdPoint,
    MacdTrend,
    MovingAveragePoint,
    RsiPoint,
    RsiZone,
    SupportResistanceLevel,
)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator readings for one bar (None where the history is too short)."""
    date: pd.Timestamp
    price: float
    previous_price: Optional[float] = None
    rsi: Optional[RsiPoint] = None
    macd: Optional[MacdPoint] = None
    bollinger: Optional[BollingerPoint] = None
    sma_short: Optional[MovingAveragePoint] = None
    sma_long: Optional[MovingAveragePoint] = None
    ema_short: Optional[MovingAveragePoint] = None
    ema_long: Optional[MovingAveragePoint] = None
    levels: List[SupportResistanceLevel] = field(default_factory=list)
    volume: float = 0.0
    average_volume: Optional[float] = None


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _compare(a: Optional[MovingAveragePoint], b: Optional[MovingAveragePoint]) -> int:
    if a is None or b is None:
        return 0
    return _sign(a.value - b.value)


class SignalRule(Protocol):
    """Protocol for a component rule."""

    name: str

    def score(self, snapshot: IndicatorSnapshot) -> float:
        """Sub-score in [-1, 1]."""
        ...

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        """Reasoning sentence for a relevant score."""
        ...


class RsiRule:
    """Fade overbought / oversold zones; lean with RSI's side of 50 otherwise."""

    name = "rsi"

    def score(self, snapshot: IndicatorSnapshot) -> float:
        rsi = snapshot.rsi
        if rsi is None:
            return 0.0
        # Saturated RSI: no opposing move in the window, so no reversal to fade
        if rsi.value >= 100 or rsi.value <= 0:
            return (rsi.value - 50) / 50 * 0.3
        if rsi.signal is RsiZone.OVERBOUGHT:
            return -0.8
        if rsi.signal is RsiZone.OVERSOLD:
            return 0.8
        return (rsi.value - 50) / 50 * 0.3

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        zone = "overbought" if score < 0 else "oversold"
        return f"RSI at {snapshot.rsi.value:.1f} indicates {zone} conditions"


class MacdRule:
    """Trend direction, or histogram magnitude when the trend is neutral."""

    name = "macd"

    def score(self, snapshot: IndicatorSnapshot) -> float:
        macd = snapshot.macd
        if macd is None:
            return 0.0
        if macd.trend is MacdTrend.BULLISH:
            return 0.7
        if macd.trend is MacdTrend.BEARISH:
            return -0.7
        return _sign(macd.histogram) * min(0.3, abs(macd.histogram) / 10)

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        direction = "bullish" if score > 0 else "bearish"
        return f"MACD shows {direction} momentum (histogram {snapshot.macd.histogram:.4f})"


class BollingerRule:
    """Mean reversion outside the bands; %B position inside them."""

    name = "bollinger"

    def score(self, snapshot: IndicatorSnapshot) -> float:
        bands = snapshot.bollinger
        if bands is None:
            return 0.0
        if snapshot.price > bands.upper:
            return -0.6
        if snapshot.price < bands.lower:
            return 0.6
        return (bands.percent_b - 0.5) * 0.4

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        bands = snapshot.bollinger
        if score < 0:
            return f"Price {snapshot.price:.2f} above upper Bollinger Band ({bands.upper:.2f})"
        return f"Price {snapshot.price:.2f} below lower Bollinger Band ({bands.lower:.2f})"


class MovingAverageRule:
    """SMA short vs long (0.3), EMA short vs long (0.3), price vs SMA short (0.2)."""

    name = "moving_average"

    def score(self, snapshot: IndicatorSnapshot) -> float:
        total = 0.3 * _compare(snapshot.sma_short, snapshot.sma_long)
        total += 0.3 * _compare(snapshot.ema_short, snapshot.ema_long)
        if snapshot.sma_short is not None:
            total += 0.2 * _sign(snapshot.price - snapshot.sma_short.value)
        return max(-1.0, min(1.0, total))

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        short, long = snapshot.sma_short, snapshot.sma_long
        trend = "bullish" if score > 0 else "bearish"
        if short is None or long is None:
            return f"Moving averages point to a {trend} trend"
        side = {1: "above", 0: "level with", -1: "below"}[_compare(short, long)]
        return (
            f"Short-term moving average ({short.value:.2f}) {side} "
            f"long-term ({long.value:.2f}), {trend} trend"
        )


class SupportResistanceRule:
    """Bounce off nearby support (bullish) or rejection at nearby resistance (bearish)."""

    name = "support_resistance"

    def _near(self, snapshot: IndicatorSnapshot) -> List[SupportResistanceLevel]:
        return [
            level for level in snapshot.levels
            if abs(level.price - snapshot.price) / snapshot.price < SR_PROXIMITY
        ]

    def score(self, snapshot: IndicatorSnapshot) -> float:
        total = 0.0
        for level in self._near(snapshot):
            if level.level_type is LevelType.SUPPORT and snapshot.price > level.price:
                total += 0.4 * level.strength
            elif level.level_type is LevelType.RESISTANCE and snapshot.price < level.price:
                total -= 0.4 * level.strength
        return max(-1.0, min(1.0, total))

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        wanted = LevelType.SUPPORT if score > 0 else LevelType.RESISTANCE
        candidates = [lvl for lvl in self._near(snapshot) if lvl.level_type is wanted]
        level = min(candidates, key=lambda lvl: abs(lvl.price - snapshot.price))
        return f"Price near significant {wanted.value} level ({level.price:.2f})"


class VolumeRule:
    """Volume spikes confirm the bar's direction; thin volume is mildly bearish."""

    name = "volume"

    def _ratio(self, snapshot: IndicatorSnapshot) -> Optional[float]:
        if not snapshot.average_volume:
            return None
        return snapshot.volume / snapshot.average_volume

    def score(self, snapshot: IndicatorSnapshot) -> float:
        ratio = self._ratio(snapshot)
        if ratio is None:
            return 0.0
        if ratio > VOLUME_SPIKE_RATIO:
            if snapshot.previous_price is None:
                return 0.0
            return _sign(snapshot.price - snapshot.previous_price) * 0.3
        if ratio < VOLUME_DRY_RATIO:
            return -0.1
        return 0.0

    def describe(self, snapshot: IndicatorSnapshot, score: float) -> str:
        move = "upward" if score > 0 else "downward"
        return f"High volume ({self._ratio(snapshot):.1f}x average) confirms {move} price move"


def get_component_rules() -> List[SignalRule]:
    """Rules in component order (the order reasoning sentences appear in)."""
    return [
        RsiRule(),
        MacdRule(),
        BollingerRule(),
        MovingAverageRule(),
        SupportResistanceRule(),
        VolumeRule(),
    ]
