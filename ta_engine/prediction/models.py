"""
Price prediction models.

Every model exposes ``predict(data, horizon_days) -> Prediction`` and raises
InsufficientDataError when the series is below its minimum length. Output
is deterministic: the same series always yields the same prediction.
"""
import math
from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd

from .config import PredictionConfig, POLYNOMIAL_DEGREES
from .regression import fit_line, fit_polynomial
from ..indicators.base import PriceData, check_period, to_frame
from ..indicators.technical import RSIIndicator
from ..shared.defaults import (
    CONFIDENCE_DECIMALS,
    CONFIDENCE_Z,
    LINEAR_MIN_BARS,
    MA_CROSSOVER_CONSISTENCY_WINDOW,
    MA_CROSSOVER_EXTRA_BARS,
    MA_CROSSOVER_LONG,
    MA_CROSSOVER_SHORT,
    POLYNOMIAL_DEGREE,
    POLYNOMIAL_EXTRA_BARS,
    PRICE_DECIMALS,
    RSI_MOMENTUM_EXTREME_NUDGE,
    RSI_MOMENTUM_MIN_BARS,
    RSI_MOMENTUM_NEUTRAL_NUDGE,
    RSI_PERIOD,
)
from ..shared.errors import InsufficientDataError, InvalidConfigurationError
from ..shared.types import Prediction, RsiZone, SignalStrength


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def build_prediction(
    last_date: pd.Timestamp,
    horizon_days: int,
    price: float,
    margin: float,
    confidence: float,
    name: str,
) -> Prediction:
    """Round and assemble a Prediction; the lower bound never goes below 0."""
    return Prediction(
        target_date=last_date + pd.Timedelta(days=horizon_days),
        predicted_price=round(price, PRICE_DECIMALS),
        confidence=round(_clamp(confidence), CONFIDENCE_DECIMALS),
        upper_bound=round(price + margin, PRICE_DECIMALS),
        lower_bound=round(max(0.0, price - margin), PRICE_DECIMALS),
        algorithm_name=name,
    )


class PredictionModel(ABC):
    """Base class for all prediction models."""

    name: str = "model"

    @property
    @abstractmethod
    def min_bars(self) -> int:
        """Minimum series length."""

    def predict(self, data: PriceData, horizon_days: int) -> Prediction:
        """
        Predict the close ``horizon_days`` calendar days after the last bar.

        Raises:
            InsufficientDataError: If the series is shorter than min_bars
            InvalidConfigurationError: If horizon_days < 1
        """
        check_period("horizon_days", horizon_days)
        df = to_frame(data)
        if len(df) < self.min_bars:
            raise InsufficientDataError(self.name, self.min_bars, len(df))
        return self._predict(df, horizon_days)

    @abstractmethod
    def _predict(self, df: pd.DataFrame, horizon_days: int) -> Prediction:
        ...


class LinearRegressionModel(PredictionModel):
    """OLS of close vs. time index; 95% interval from the residual standard error."""

    name = "linear_regression"

    @property
    def min_bars(self) -> int:
        return LINEAR_MIN_BARS

    def _predict(self, df: pd.DataFrame, horizon_days: int) -> Prediction:
        closes = df["close"].to_numpy()
        n = len(closes)
        fit = fit_line(closes)
        price = fit.predict(n + horizon_days)
        standard_error = math.sqrt(fit.ss_res / (n - 2))
        return build_prediction(
            df.index[-1], horizon_days, price,
            CONFIDENCE_Z * standard_error, fit.r_squared, self.name,
        )


class PolynomialRegressionModel(PredictionModel):
    """
    Polynomial least squares solved through the normal equations.

    The time index is scaled to x / n before fitting so the normal matrix
    stays well conditioned for long series.
    """

    def __init__(self, degree: int = POLYNOMIAL_DEGREE):
        if degree not in POLYNOMIAL_DEGREES:
            raise InvalidConfigurationError(f"degree must be 2 or 3, got {degree!r}")
        self.degree = degree
        self.name = f"polynomial_degree_{degree}"

    @property
    def min_bars(self) -> int:
        return self.degree + POLYNOMIAL_EXTRA_BARS

    def _predict(self, df: pd.DataFrame, horizon_days: int) -> Prediction:
        closes = df["close"].to_numpy()
        n = len(closes)
        x = [i / n for i in range(n)]
        fit = fit_polynomial(x, closes, self.degree)
        price = fit.predict((n + horizon_days) / n)
        standard_error = math.sqrt(fit.ss_res / (n - self.degree - 1))
        return build_prediction(
            df.index[-1], horizon_days, price,
            CONFIDENCE_Z * standard_error, fit.r_squared, self.name,
        )


class MovingAverageCrossoverModel(PredictionModel):
    """
    Extrapolates the current close by (1 +/- trend strength).

    Trend direction is short SMA vs long SMA; strength is their gap relative
    to the long SMA. Confidence is the share of the last five bars whose
    crossover direction agrees with the current one.
    """

    name = "moving_average_crossover"

    def __init__(self, short_period: int = MA_CROSSOVER_SHORT, long_period: int = MA_CROSSOVER_LONG):
        self.short_period = check_period("short_period", short_period)
        self.long_period = check_period("long_period", long_period)
        if short_period >= long_period:
            raise InvalidConfigurationError(
                f"short_period ({short_period}) must be less than long_period ({long_period})"
            )

    @property
    def min_bars(self) -> int:
        return self.long_period + MA_CROSSOVER_EXTRA_BARS

    def _predict(self, df: pd.DataFrame, horizon_days: int) -> Prediction:
        closes = df["close"]
        short_ma = closes.rolling(self.short_period).mean()
        long_ma = closes.rolling(self.long_period).mean()
        gap = (short_ma - long_ma).dropna()

        price = float(closes.iloc[-1])
        current_short, current_long = float(short_ma.iloc[-1]), float(long_ma.iloc[-1])
        strength = abs(current_short - current_long) / current_long
        direction = (current_short > current_long) - (current_short < current_long)

        recent = gap.iloc[-MA_CROSSOVER_CONSISTENCY_WINDOW:]
        agreeing = sum(1 for g in recent if ((g > 0) - (g < 0)) == direction)
        confidence = agreeing / MA_CROSSOVER_CONSISTENCY_WINDOW

        return build_prediction(
            df.index[-1], horizon_days, price * (1 + direction * strength),
            price * strength * 0.5, confidence, self.name,
        )


class RsiMomentumModel(PredictionModel):
    """Nudges the close by the RSI zone: -2% overbought, +2% oversold, +/-1% neutral."""

    name = "rsi_momentum"

    def __init__(self, period: int = RSI_PERIOD):
        self.rsi = RSIIndicator(period)

    @property
    def min_bars(self) -> int:
        return max(RSI_MOMENTUM_MIN_BARS, self.rsi.min_bars)

    def _predict(self, df: pd.DataFrame, horizon_days: int) -> Prediction:
        point = self.rsi.calculate(df)[-1]
        price = float(df["close"].iloc[-1])

        if point.signal is RsiZone.OVERBOUGHT:
            factor = 1 - RSI_MOMENTUM_EXTREME_NUDGE
        elif point.signal is RsiZone.OVERSOLD:
            factor = 1 + RSI_MOMENTUM_EXTREME_NUDGE
        elif point.value > 50:
            factor = 1 + RSI_MOMENTUM_NEUTRAL_NUDGE
        elif point.value < 50:
            factor = 1 - RSI_MOMENTUM_NEUTRAL_NUDGE
        else:
            factor = 1.0

        confidence = 0.4 if point.signal is RsiZone.NEUTRAL else 0.6
        if point.strength is SignalStrength.STRONG:
            confidence *= 1.2
        elif point.strength is SignalStrength.WEAK:
            confidence *= 0.8

        margin = price * abs(point.value - 50) / 50 * 0.1
        return build_prediction(df.index[-1], horizon_days, price * factor, margin, confidence, self.name)


def create_model(algorithm: str, polynomial_degree: int = POLYNOMIAL_DEGREE) -> PredictionModel:
    """Instantiate a single (non-ensemble) model by algorithm name."""
    if algorithm == "linear":
        return LinearRegressionModel()
    if algorithm == "polynomial":
        return PolynomialRegressionModel(polynomial_degree)
    if algorithm == "moving_average_crossover":
        return MovingAverageCrossoverModel()
    if algorithm == "rsi_momentum":
        return RsiMomentumModel()
    raise InvalidConfigurationError(f"Unknown prediction algorithm {algorithm!r}")


def get_prediction(data: PriceData, config: Optional[PredictionConfig] = None) -> Prediction:
    """Run the algorithm named by ``config`` (default: 7-day ensemble)."""
    config = config or PredictionConfig()
    if config.algorithm == "ensemble":
        # Local import: ensemble builds on the models in this module
        from .ensemble import EnsemblePredictor
        return EnsemblePredictor().predict(data, config.horizon_days)
    return create_model(config.algorithm, config.polynomial_degree).predict(data, config.horizon_days)
