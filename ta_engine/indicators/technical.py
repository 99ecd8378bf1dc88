"""
Technical indicators: moving averages, RSI, MACD and Bollinger Bands.

Each calculator returns date-aligned indicator points, rounded to a fixed
precision so results are reproducible across platforms. A series shorter
than the indicator window yields an empty list rather than an error.
"""
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from .base import Indicator, PriceData, check_period, check_source, to_frame
from .support_resistance import SupportResistanceIndicator
from ..shared.defaults import (
    INDICATOR_DECIMALS,
    SMA_SHORT_PERIOD, SMA_LONG_PERIOD,
    EMA_SHORT_PERIOD, EMA_LONG_PERIOD,
    RSI_PERIOD, RSI_OVERBOUGHT, RSI_OVERSOLD,
    RSI_STRONG_DISTANCE, RSI_MODERATE_DISTANCE,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL,
    BOLLINGER_PERIOD, BOLLINGER_STD_MULTIPLIER,
)
from ..shared.errors import InvalidConfigurationError
from ..shared.types import (
    BollingerPoint,
    MacdPoint,
    MacdTrend,
    MovingAveragePoint,
    RsiPoint,
    RsiZone,
    SignalStrength,
    SupportResistanceLevel,
)


def _round(value: float) -> float:
    return round(float(value), INDICATOR_DECIMALS)


def seeded_ema(values: pd.Series, period: int) -> pd.Series:
    """
    EMA seeded with the SMA of the first ``period`` values.

    ema_t = price_t * k + ema_{t-1} * (1 - k), k = 2 / (period + 1).
    The result starts at index ``period - 1``; empty if len(values) < period.
    """
    if len(values) < period:
        return pd.Series(dtype=float)
    seed = pd.Series([values.iloc[:period].mean()], index=values.index[period - 1:period])
    return pd.concat([seed, values.iloc[period:]]).ewm(span=period, adjust=False).mean()


def wilder_average(values: pd.Series, period: int) -> pd.Series:
    """Plain average of the first ``period`` values, then Wilder smoothing."""
    if len(values) < period:
        return pd.Series(dtype=float)
    seed = pd.Series([values.iloc[:period].mean()], index=values.index[period - 1:period])
    return pd.concat([seed, values.iloc[period:]]).ewm(alpha=1.0 / period, adjust=False).mean()


def rsi_value(avg_gain: float, avg_loss: float) -> float:
    """RSI from average gain / loss, with the zero-loss cases defined explicitly."""
    if avg_loss == 0:
        # No losses: maximal strength, unless there was no movement at all
        return 100.0 if avg_gain > 0 else 50.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def classify_rsi(value: float, overbought: float = RSI_OVERBOUGHT, oversold: float = RSI_OVERSOLD):
    """Return (zone, strength) for an RSI value."""
    if value > overbought:
        zone = RsiZone.OVERBOUGHT
    elif value < oversold:
        zone = RsiZone.OVERSOLD
    else:
        zone = RsiZone.NEUTRAL
    distance = abs(value - 50)
    if distance > RSI_STRONG_DISTANCE:
        strength = SignalStrength.STRONG
    elif distance > RSI_MODERATE_DISTANCE:
        strength = SignalStrength.MODERATE
    else:
        strength = SignalStrength.WEAK
    return zone, strength


class SMAIndicator(Indicator):
    """Simple Moving Average: arithmetic mean of the last ``period`` values."""

    def __init__(self, period: int = SMA_SHORT_PERIOD, source: str = "close"):
        self.period = check_period("period", period)
        self.source = check_source(source)

    @property
    def min_bars(self) -> int:
        return self.period

    def calculate(self, data: PriceData) -> List[MovingAveragePoint]:
        values = to_frame(data)[self.source]
        if len(values) < self.period:
            return []
        sma = values.rolling(self.period).mean().iloc[self.period - 1:]
        return [
            MovingAveragePoint(date=ts, value=_round(v), period=self.period)
            for ts, v in sma.items()
        ]


class EMAIndicator(Indicator):
    """Exponential Moving Average seeded with the initial SMA."""

    def __init__(self, period: int = EMA_SHORT_PERIOD, source: str = "close"):
        self.period = check_period("period", period)
        self.source = check_source(source)

    @property
    def min_bars(self) -> int:
        return self.period

    def calculate(self, data: PriceData) -> List[MovingAveragePoint]:
        ema = seeded_ema(to_frame(data)[self.source], self.period)
        return [
            MovingAveragePoint(date=ts, value=_round(v), period=self.period)
            for ts, v in ema.items()
        ]


class RSIIndicator(Indicator):
    """
    Relative Strength Index with Wilder smoothing.

    RSI = 100 - (100 / (1 + RS)), RS = average gain / average loss.
    Needs ``period + 1`` bars (``period`` price changes).
    """

    def __init__(
        self,
        period: int = RSI_PERIOD,
        overbought: float = RSI_OVERBOUGHT,
        oversold: float = RSI_OVERSOLD,
        source: str = "close",
    ):
        self.period = check_period("period", period)
        if not (0 <= oversold < overbought <= 100):
            raise InvalidConfigurationError(
                f"RSI thresholds must satisfy 0 <= oversold < overbought <= 100, "
                f"got oversold={oversold}, overbought={overbought}"
            )
        self.overbought = overbought
        self.oversold = oversold
        self.source = check_source(source)

    @property
    def min_bars(self) -> int:
        return self.period + 1

    def calculate(self, data: PriceData) -> List[RsiPoint]:
        prices = to_frame(data)[self.source]
        if len(prices) < self.min_bars:
            return []
        delta = prices.diff().iloc[1:]
        gain = delta.where(delta > 0, 0.0)
        loss = (-delta).where(delta < 0, 0.0)

        avg_gain = wilder_average(gain, self.period)
        avg_loss = wilder_average(loss, self.period)

        points = []
        for ts, g, l in zip(avg_gain.index, avg_gain.values, avg_loss.values):
            value = _round(rsi_value(g, l))
            zone, strength = classify_rsi(value, self.overbought, self.oversold)
            points.append(RsiPoint(date=ts, value=value, signal=zone, strength=strength))
        return points


class MACDIndicator(Indicator):
    """
    MACD (Moving Average Convergence Divergence).

    macd = EMA(fast) - EMA(slow), signal = EMA(signal) of macd,
    histogram = macd - signal. Needs ``slow + signal`` bars.
    """

    def __init__(
        self,
        fast: int = MACD_FAST,
        slow: int = MACD_SLOW,
        signal: int = MACD_SIGNAL,
        source: str = "close",
    ):
        self.fast = check_period("fast", fast)
        self.slow = check_period("slow", slow)
        self.signal = check_period("signal", signal)
        if self.fast >= self.slow:
            raise InvalidConfigurationError(
                f"MACD fast period ({fast}) must be less than slow period ({slow})"
            )
        self.source = check_source(source)

    @property
    def min_bars(self) -> int:
        return self.slow + self.signal

    def calculate(self, data: PriceData) -> List[MacdPoint]:
        prices = to_frame(data)[self.source]
        if len(prices) < self.min_bars:
            return []
        ema_fast = seeded_ema(prices, self.fast)
        ema_slow = seeded_ema(prices, self.slow)
        macd_line = (ema_fast - ema_slow).dropna()
        signal_line = seeded_ema(macd_line, self.signal)

        points = []
        for ts, sig in signal_line.items():
            macd = _round(macd_line[ts])
            sig = _round(sig)
            histogram = _round(macd - sig)
            if macd > sig and histogram > 0:
                trend = MacdTrend.BULLISH
            elif macd < sig and histogram < 0:
                trend = MacdTrend.BEARISH
            else:
                trend = MacdTrend.NEUTRAL
            points.append(
                MacdPoint(date=ts, macd=macd, signal=sig, histogram=histogram, trend=trend)
            )
        return points


class BollingerIndicator(Indicator):
    """
    Bollinger Bands: SMA middle band +/- population standard deviation * multiplier.

    A window with zero spread yields a flat band (upper = middle = lower)
    with bandwidth 0 and percent_b 0.5.
    """

    def __init__(
        self,
        period: int = BOLLINGER_PERIOD,
        std_multiplier: float = BOLLINGER_STD_MULTIPLIER,
        source: str = "close",
    ):
        self.period = check_period("period", period)
        if std_multiplier <= 0:
            raise InvalidConfigurationError(
                f"std_multiplier must be > 0, got {std_multiplier}"
            )
        self.std_multiplier = std_multiplier
        self.source = check_source(source)

    @property
    def min_bars(self) -> int:
        return self.period

    def calculate(self, data: PriceData) -> List[BollingerPoint]:
        prices = to_frame(data)[self.source]
        if len(prices) < self.period:
            return []
        windows = sliding_window_view(prices.to_numpy(), self.period)
        middles = windows.mean(axis=1)
        bands = windows.std(axis=1) * self.std_multiplier

        points = []
        dates = prices.index[self.period - 1:]
        closes = prices.to_numpy()[self.period - 1:]
        for ts, price, middle, band in zip(dates, closes, middles, bands):
            upper, lower = middle + band, middle - band
            if _round(upper) == _round(lower):
                flat = _round(middle)
                points.append(BollingerPoint(
                    date=ts, upper=flat, middle=flat, lower=flat,
                    bandwidth=0.0, percent_b=0.5,
                ))
                continue
            points.append(BollingerPoint(
                date=ts,
                upper=_round(upper),
                middle=_round(middle),
                lower=_round(lower),
                bandwidth=_round((upper - lower) / middle),
                percent_b=_round((price - lower) / (upper - lower)),
            ))
        return points


@dataclass
class IndicatorSet:
    """Every standard indicator computed over one series."""
    sma_short: List[MovingAveragePoint] = field(default_factory=list)
    sma_long: List[MovingAveragePoint] = field(default_factory=list)
    ema_short: List[MovingAveragePoint] = field(default_factory=list)
    ema_long: List[MovingAveragePoint] = field(default_factory=list)
    rsi: List[RsiPoint] = field(default_factory=list)
    macd: List[MacdPoint] = field(default_factory=list)
    bollinger: List[BollingerPoint] = field(default_factory=list)
    support_resistance: List[SupportResistanceLevel] = field(default_factory=list)


class TechnicalIndicators:
    """Calculates the standard indicator set from price data."""

    def __init__(
        self,
        sma_short_period: int = SMA_SHORT_PERIOD,
        sma_long_period: int = SMA_LONG_PERIOD,
        ema_short_period: int = EMA_SHORT_PERIOD,
        ema_long_period: int = EMA_LONG_PERIOD,
        rsi_period: int = RSI_PERIOD,
        rsi_overbought: float = RSI_OVERBOUGHT,
        rsi_oversold: float = RSI_OVERSOLD,
        macd_fast: int = MACD_FAST,
        macd_slow: int = MACD_SLOW,
        macd_signal: int = MACD_SIGNAL,
        bollinger_period: int = BOLLINGER_PERIOD,
        bollinger_std: float = BOLLINGER_STD_MULTIPLIER,
        support_resistance: Optional[SupportResistanceIndicator] = None,
    ):
        """
        Initialize indicator calculator.

        Args:
            sma_short_period: Short SMA period (default: shared.defaults.SMA_SHORT_PERIOD)
            sma_long_period: Long SMA period (default: shared.defaults.SMA_LONG_PERIOD)
            ema_short_period: Short EMA period (default: shared.defaults.EMA_SHORT_PERIOD)
            ema_long_period: Long EMA period (default: shared.defaults.EMA_LONG_PERIOD)
            rsi_period: RSI period (default: shared.defaults.RSI_PERIOD)
            rsi_overbought: RSI level above which is overbought
            rsi_oversold: RSI level below which is oversold
            macd_fast: MACD fast period
            macd_slow: MACD slow period
            macd_signal: MACD signal period
            bollinger_period: Bollinger window
            bollinger_std: Bollinger standard-deviation multiplier
            support_resistance: Support/resistance detector (default settings if None)
        """
        self.sma_short = SMAIndicator(sma_short_period)
        self.sma_long = SMAIndicator(sma_long_period)
        self.ema_short = EMAIndicator(ema_short_period)
        self.ema_long = EMAIndicator(ema_long_period)
        self.rsi = RSIIndicator(rsi_period, rsi_overbought, rsi_oversold)
        self.macd = MACDIndicator(macd_fast, macd_slow, macd_signal)
        self.bollinger = BollingerIndicator(bollinger_period, bollinger_std)
        self.support_resistance = support_resistance or SupportResistanceIndicator()

    def calculate_sma(self, data: PriceData, period: int) -> List[MovingAveragePoint]:
        return SMAIndicator(period).calculate(data)

    def calculate_ema(self, data: PriceData, period: int) -> List[MovingAveragePoint]:
        return EMAIndicator(period).calculate(data)

    def calculate_rsi(self, data: PriceData) -> List[RsiPoint]:
        return self.rsi.calculate(data)

    def calculate_macd(self, data: PriceData) -> List[MacdPoint]:
        return self.macd.calculate(data)

    def calculate_bollinger(self, data: PriceData) -> List[BollingerPoint]:
        return self.bollinger.calculate(data)

    def calculate_support_resistance(self, data: PriceData) -> List[SupportResistanceLevel]:
        return self.support_resistance.calculate(data)

    def calculate_all(self, data: PriceData) -> IndicatorSet:
        """
        Calculate all indicators over one series.

        The series is normalized once and shared by every calculator.
        """
        df = to_frame(data)
        return IndicatorSet(
            sma_short=self.sma_short.calculate(df),
            sma_long=self.sma_long.calculate(df),
            ema_short=self.ema_short.calculate(df),
            ema_long=self.ema_long.calculate(df),
            rsi=self.rsi.calculate(df),
            macd=self.macd.calculate(df),
            bollinger=self.bollinger.calculate(df),
            support_resistance=self.support_resistance.calculate(df),
        )
