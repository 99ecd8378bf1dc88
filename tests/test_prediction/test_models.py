"""
Tests for the individual prediction models.
"""
import pandas as pd
import pytest

from ta_engine.prediction.config import PredictionConfig, get_default_prediction_config
from ta_engine.prediction.models import (
    LinearRegressionModel,
    MovingAverageCrossoverModel,
    PolynomialRegressionModel,
    RsiMomentumModel,
    create_model,
    get_prediction,
)
from ta_engine.shared.errors import InsufficientDataError, InvalidConfigurationError
from ta_engine.shared.types import PriceBar


def make_bars(closes, start="2023-01-02"):
    dates = pd.date_range(start, periods=len(closes), freq="D")
    return [PriceBar(d, c, c, c, c, 1000) for d, c in zip(dates, closes)]


@pytest.fixture
def line_bars():
    """Closes rising by exactly 1 per bar."""
    return make_bars([100.0 + i for i in range(40)])


class TestLinearRegression:
    def test_perfect_line(self, line_bars):
        bars = line_bars[:20]
        prediction = LinearRegressionModel().predict(bars, 7)
        assert prediction.predicted_price == pytest.approx(127.0)
        assert prediction.upper_bound == pytest.approx(127.0)
        assert prediction.lower_bound == pytest.approx(127.0)
        assert prediction.confidence == 1.0
        assert prediction.algorithm_name == "linear_regression"

    def test_target_date(self, line_bars):
        prediction = LinearRegressionModel().predict(line_bars, 7)
        assert prediction.target_date == line_bars[-1].date + pd.Timedelta(days=7)

    def test_flat_series(self):
        prediction = LinearRegressionModel().predict(make_bars([50.0] * 15), 5)
        assert prediction.predicted_price == 50.0
        assert prediction.upper_bound == prediction.lower_bound == 50.0
        assert prediction.confidence == 0.0

    def test_insufficient_data(self, line_bars):
        with pytest.raises(InsufficientDataError) as excinfo:
            LinearRegressionModel().predict(line_bars[:9], 7)
        assert excinfo.value.required == 10
        assert excinfo.value.available == 9

    def test_invalid_horizon(self, line_bars):
        with pytest.raises(InvalidConfigurationError):
            LinearRegressionModel().predict(line_bars, 0)

    def test_bounds_bracket_prediction(self):
        closes = [100.0 + i + (3.0 if i % 2 else -3.0) for i in range(30)]
        prediction = LinearRegressionModel().predict(make_bars(closes), 7)
        assert prediction.lower_bound <= prediction.predicted_price <= prediction.upper_bound
        assert prediction.upper_bound > prediction.lower_bound
        assert 0 < prediction.confidence < 1


class TestPolynomialRegression:
    def test_exact_quadratic(self):
        closes = [100 + 0.5 * i + 0.01 * i ** 2 for i in range(30)]
        prediction = PolynomialRegressionModel(2).predict(make_bars(closes), 7)
        assert prediction.predicted_price == pytest.approx(132.19)
        assert prediction.confidence == pytest.approx(1.0)
        assert prediction.algorithm_name == "polynomial_degree_2"

    def test_min_bars(self, line_bars):
        model = PolynomialRegressionModel(3)
        assert model.min_bars == 8
        with pytest.raises(InsufficientDataError):
            model.predict(line_bars[:7], 7)
        assert model.predict(line_bars[:8], 7).algorithm_name == "polynomial_degree_3"

    def test_invalid_degree(self):
        with pytest.raises(InvalidConfigurationError):
            PolynomialRegressionModel(4)

    def test_lower_bound_never_negative(self):
        closes = [100.0 - 3 * i for i in range(30)]
        prediction = PolynomialRegressionModel(2).predict(make_bars(closes), 60)
        assert prediction.lower_bound >= 0


class TestMovingAverageCrossover:
    def test_uptrend_extrapolation(self, line_bars):
        """Short SMA 134.5 vs long SMA 124.5: strength 10 / 124.5."""
        prediction = MovingAverageCrossoverModel().predict(line_bars, 7)
        assert prediction.predicted_price == pytest.approx(150.16)
        assert prediction.upper_bound == pytest.approx(155.75)
        assert prediction.lower_bound == pytest.approx(144.58)
        assert prediction.confidence == 1.0

    def test_min_bars(self, line_bars):
        with pytest.raises(InsufficientDataError):
            MovingAverageCrossoverModel().predict(line_bars[:34], 7)

    def test_periods_validated(self):
        with pytest.raises(InvalidConfigurationError):
            MovingAverageCrossoverModel(short_period=30, long_period=10)


class TestRsiMomentum:
    def test_overbought_nudges_down(self, line_bars):
        prediction = RsiMomentumModel().predict(line_bars[:25], 7)
        assert prediction.predicted_price == pytest.approx(121.52)
        assert prediction.upper_bound == pytest.approx(133.92)
        assert prediction.lower_bound == pytest.approx(109.12)
        assert prediction.confidence == pytest.approx(0.72)

    def test_flat_is_unchanged(self):
        prediction = RsiMomentumModel().predict(make_bars([80.0] * 25), 7)
        assert prediction.predicted_price == 80.0
        assert prediction.upper_bound == prediction.lower_bound == 80.0
        assert prediction.confidence == pytest.approx(0.32)

    def test_min_bars(self, line_bars):
        with pytest.raises(InsufficientDataError):
            RsiMomentumModel().predict(line_bars[:19], 7)


class TestPredictionConfig:
    def test_defaults(self):
        config = get_default_prediction_config()
        assert config.horizon_days == 7
        assert config.algorithm == "ensemble"

    @pytest.mark.parametrize("kwargs", [
        {"horizon_days": 0},
        {"algorithm": "lstm"},
        {"polynomial_degree": 4},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidConfigurationError):
            PredictionConfig(**kwargs)

    def test_create_model_unknown(self):
        with pytest.raises(InvalidConfigurationError):
            create_model("ensemble")

    def test_get_prediction_dispatches(self, line_bars):
        config = PredictionConfig(horizon_days=3, algorithm="linear")
        assert get_prediction(line_bars, config) == LinearRegressionModel().predict(line_bars, 3)

    def test_get_prediction_default_is_ensemble(self, line_bars):
        assert get_prediction(line_bars).algorithm_name == "ensemble"

    def test_deterministic(self, line_bars):
        assert get_prediction(line_bars) == get_prediction(line_bars)
