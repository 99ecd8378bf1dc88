"""
Shared types for the analysis engine.

Holds the price bar, the tagged indicator point variants, and the
prediction / signal value objects that flow between modules. All of them
are immutable once produced.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Tuple, Union

import pandas as pd

from .errors import InvalidPriceDataError


class SignalType(Enum):
    """Type of trading signal."""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class SignalStrength(Enum):
    """Strength bucket shared by signals and RSI readings."""
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class RsiZone(Enum):
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"


class MacdTrend(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class LevelType(Enum):
    SUPPORT = "support"
    RESISTANCE = "resistance"


@dataclass(frozen=True)
class PriceBar:
    """
    One OHLCV observation.

    Invariants (checked at construction):
    - all prices finite and > 0
    - high >= max(open, close), low <= min(open, close)
    - volume >= 0
    """
    date: pd.Timestamp
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        try:
            date = pd.Timestamp(self.date)
        except (TypeError, ValueError) as exc:
            raise InvalidPriceDataError(f"Invalid bar date {self.date!r}: {exc}") from exc
        if pd.isna(date):
            raise InvalidPriceDataError("Bar date must not be missing")
        object.__setattr__(self, "date", date)

        for name in ("open", "high", "low", "close", "volume"):
            value = getattr(self, name)
            try:
                number = float(value)
            except (TypeError, ValueError) as exc:
                raise InvalidPriceDataError(
                    f"{name} must be numeric, got {value!r} on {date.date()}"
                ) from exc
            object.__setattr__(self, name, number)

        for name in ("open", "high", "low", "close"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise InvalidPriceDataError(
                    f"{name} must be a finite price > 0, got {value} on {date.date()}"
                )
        if not math.isfinite(self.volume) or self.volume < 0:
            raise InvalidPriceDataError(
                f"volume must be >= 0, got {self.volume} on {date.date()}"
            )
        if self.high < max(self.open, self.close):
            raise InvalidPriceDataError(
                f"high ({self.high}) must be >= max(open, close) on {date.date()}"
            )
        if self.low > min(self.open, self.close):
            raise InvalidPriceDataError(
                f"low ({self.low}) must be <= min(open, close) on {date.date()}"
            )


# Indicator point variants. Each carries the date of the bar it was computed
# for and a class-level ``kind`` tag used for dispatch and serialization.

@dataclass(frozen=True)
class MovingAveragePoint:
    kind: ClassVar[str] = "moving_average"
    date: pd.Timestamp
    value: float
    period: int


@dataclass(frozen=True)
class RsiPoint:
    kind: ClassVar[str] = "rsi"
    date: pd.Timestamp
    value: float
    signal: RsiZone
    strength: SignalStrength


@dataclass(frozen=True)
class MacdPoint:
    kind: ClassVar[str] = "macd"
    date: pd.Timestamp
    macd: float
    signal: float
    histogram: float
    trend: MacdTrend


@dataclass(frozen=True)
class BollingerPoint:
    kind: ClassVar[str] = "bollinger"
    date: pd.Timestamp
    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float


@dataclass(frozen=True)
class SupportResistanceLevel:
    kind: ClassVar[str] = "support_resistance"
    date: pd.Timestamp  # Last bar of the scanned window
    price: float
    level_type: LevelType
    strength: float  # [0, 1]
    touches: int
    last_touch: pd.Timestamp


IndicatorPoint = Union[
    MovingAveragePoint, RsiPoint, MacdPoint, BollingerPoint, SupportResistanceLevel
]


@dataclass(frozen=True)
class Prediction:
    """A single future-price estimate with confidence bounds."""
    target_date: pd.Timestamp
    predicted_price: float
    confidence: float  # [0, 1]
    upper_bound: float
    lower_bound: float
    algorithm_name: str


@dataclass(frozen=True)
class Signal:
    """
    Buy/sell/hold recommendation for one bar.

    component_scores maps component name (rsi, macd, bollinger,
    moving_average, support_resistance, volume) to its sub-score in [-1, 1].
    """
    date: pd.Timestamp
    signal_type: SignalType
    strength: SignalStrength
    confidence: float
    reasoning: Tuple[str, ...] = ()
    component_scores: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0  # Weighted total before classification
