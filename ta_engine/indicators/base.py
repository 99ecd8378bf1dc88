"""
Base indicator interface.

All indicators follow this pattern:
1. Accept an ordered price series (PriceBar sequence or OHLCV DataFrame)
2. Return a date-aligned list of indicator points, empty when the series
   is shorter than the indicator's window
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

import pandas as pd

from ..data.preparation import validate_series
from ..shared.errors import InvalidConfigurationError, InvalidPriceDataError
from ..shared.types import IndicatorPoint, PriceBar

PriceData = Union[Sequence[PriceBar], pd.DataFrame]

OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]
PRICE_SOURCES = ("open", "high", "low", "close")


def to_frame(data: PriceData) -> pd.DataFrame:
    """
    Normalize price data to a DataFrame with lower-case OHLCV columns and a
    DatetimeIndex. The input is never modified.

    Raises:
        InvalidPriceDataError: If dates are unordered or duplicated, or a
            DataFrame lacks a close column.
    """
    if isinstance(data, pd.DataFrame):
        df = data.rename(columns=lambda c: str(c).lower())
        if "close" not in df.columns:
            raise InvalidPriceDataError("Price frame must have a 'close' column")
        df = df.copy()
        df.index = pd.DatetimeIndex(pd.to_datetime(df.index))
        if df.index.has_duplicates:
            raise InvalidPriceDataError("Price frame has duplicate dates")
        if not df.index.is_monotonic_increasing:
            raise InvalidPriceDataError("Price frame must be in chronological order")
        for col in OHLCV_COLUMNS:
            if col not in df.columns:
                df[col] = df["close"] if col != "volume" else 0.0
        return df[OHLCV_COLUMNS].astype(float)

    bars = list(data)
    validate_series(bars)
    return pd.DataFrame(
        {
            "open": [b.open for b in bars],
            "high": [b.high for b in bars],
            "low": [b.low for b in bars],
            "close": [b.close for b in bars],
            "volume": [b.volume for b in bars],
        },
        index=pd.DatetimeIndex([b.date for b in bars], name="date"),
        dtype=float,
    )


def frame_to_bars(df: pd.DataFrame) -> List[PriceBar]:
    """Convert an OHLCV frame back into validated PriceBars."""
    frame = to_frame(df)
    return [
        PriceBar(
            date=ts,
            open=row.open,
            high=row.high,
            low=row.low,
            close=row.close,
            volume=row.volume,
        )
        for ts, row in zip(frame.index, frame.itertuples(index=False))
    ]


def check_period(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise InvalidConfigurationError(f"{name} must be an integer >= 1, got {value!r}")
    return value


def check_source(source: str) -> str:
    if source not in PRICE_SOURCES:
        raise InvalidConfigurationError(
            f"source must be one of {', '.join(PRICE_SOURCES)}, got {source!r}"
        )
    return source


class Indicator(ABC):
    """
    Base class for all indicators.

    Indicators calculate values from price data that can be used
    for signal generation. They do not generate signals directly.
    """

    @property
    @abstractmethod
    def min_bars(self) -> int:
        """Shortest series that yields at least one point."""

    @abstractmethod
    def calculate(self, data: PriceData) -> List[IndicatorPoint]:
        """
        Calculate indicator points from price data.

        Args:
            data: Ordered price series

        Returns:
            Points in chronological order (empty if the series is too short)
        """

    def latest(self, data: PriceData) -> Optional[IndicatorPoint]:
        points = self.calculate(data)
        return points[-1] if points else None

    def get_value_at(self, data: PriceData, timestamp: pd.Timestamp) -> Optional[IndicatorPoint]:
        """
        Get the indicator point for a specific date.

        Only bars up to and including the timestamp are used, so the result
        never depends on later data.
        """
        timestamp = pd.Timestamp(timestamp)
        df = to_frame(data)
        points = self.calculate(df[df.index <= timestamp])
        if points and points[-1].date == timestamp:
            return points[-1]
        return None
