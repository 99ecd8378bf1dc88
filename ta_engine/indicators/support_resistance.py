"""
Support / resistance level detection.

Scans the last ``lookback`` bars for local lows (support) and highs
(resistance) with a 3-point neighborhood test, merges touches that fall
within ``tolerance`` of an existing level, and ranks levels by a blend of
touch count and recency. A series shorter than ``lookback`` yields no
levels.
"""
from dataclasses import dataclass
from typing import List

import pandas as pd

from .base import Indicator, PriceData, to_frame
from ..shared.defaults import (
    INDICATOR_DECIMALS,
    PRICE_DECIMALS,
    SR_LOOKBACK,
    SR_MAX_LEVELS,
    SR_MIN_STRENGTH,
    SR_RECENCY_DAYS,
    SR_TOLERANCE,
)
from ..shared.errors import InvalidConfigurationError
from ..shared.types import LevelType, SupportResistanceLevel


@dataclass
class _Candidate:
    price: float
    level_type: LevelType
    touches: int
    last_touch: pd.Timestamp


class SupportResistanceIndicator(Indicator):
    """Top support/resistance levels over a lookback window."""

    def __init__(
        self,
        lookback: int = SR_LOOKBACK,
        tolerance: float = SR_TOLERANCE,
        recency_days: int = SR_RECENCY_DAYS,
        min_strength: float = SR_MIN_STRENGTH,
        max_levels: int = SR_MAX_LEVELS,
    ):
        if not isinstance(lookback, int) or lookback < 3:
            raise InvalidConfigurationError(f"lookback must be an integer >= 3, got {lookback!r}")
        if not (0 <= tolerance <= 1):
            raise InvalidConfigurationError(f"tolerance must be in [0, 1], got {tolerance}")
        if recency_days < 1:
            raise InvalidConfigurationError(f"recency_days must be >= 1, got {recency_days}")
        if not (0 <= min_strength <= 1):
            raise InvalidConfigurationError(f"min_strength must be in [0, 1], got {min_strength}")
        if max_levels < 1:
            raise InvalidConfigurationError(f"max_levels must be >= 1, got {max_levels}")
        self.lookback = lookback
        self.tolerance = tolerance
        self.recency_days = recency_days
        self.min_strength = min_strength
        self.max_levels = max_levels

    @property
    def min_bars(self) -> int:
        return self.lookback

    def _merge(self, levels: List[_Candidate], price: float, level_type: LevelType, ts: pd.Timestamp) -> None:
        for level in levels:
            if level.level_type is level_type and abs(level.price - price) / price < self.tolerance:
                level.touches += 1
                level.last_touch = max(level.last_touch, ts)
                return
        levels.append(_Candidate(price=price, level_type=level_type, touches=1, last_touch=ts))

    def calculate(self, data: PriceData) -> List[SupportResistanceLevel]:
        df = to_frame(data)
        if len(df) < self.min_bars:
            return []
        df = df.iloc[-self.lookback:]
        lows = df["low"].to_numpy()
        highs = df["high"].to_numpy()
        dates = df.index

        levels: List[_Candidate] = []
        for i in range(1, len(df) - 1):
            if lows[i] < lows[i - 1] and lows[i] < lows[i + 1]:
                self._merge(levels, float(lows[i]), LevelType.SUPPORT, dates[i])
            if highs[i] > highs[i - 1] and highs[i] > highs[i + 1]:
                self._merge(levels, float(highs[i]), LevelType.RESISTANCE, dates[i])
        if not levels:
            return []

        as_of = dates[-1]
        max_touches = max(level.touches for level in levels)
        scored = []
        for level in levels:
            days = (as_of - level.last_touch).days
            recency = max(0.0, 1.0 - days / self.recency_days)
            strength = min(1.0, (level.touches / max_touches + recency) / 2)
            if strength > self.min_strength:
                scored.append((strength, level))

        # Stable sort keeps detection order for equal strengths
        scored.sort(key=lambda item: -item[0])
        return [
            SupportResistanceLevel(
                date=as_of,
                price=round(level.price, PRICE_DECIMALS),
                level_type=level.level_type,
                strength=round(strength, INDICATOR_DECIMALS),
                touches=level.touches,
                last_touch=level.last_touch,
            )
            for strength, level in scored[: self.max_levels]
        ]
