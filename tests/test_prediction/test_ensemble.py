"""
Tests for the ensemble predictor.
"""
import logging

import numpy as np
import pandas as pd
import pytest

from ta_engine.prediction.ensemble import EnsemblePredictor
from ta_engine.prediction.models import PredictionModel, build_prediction
from ta_engine.shared.errors import NoModelsAvailableError
from ta_engine.shared.types import PriceBar


def make_bars(closes, start="2023-01-02"):
    dates = pd.date_range(start, periods=len(closes), freq="D")
    return [PriceBar(d, c, c, c, c, 1000) for d, c in zip(dates, closes)]


class FixedModel(PredictionModel):
    """Returns a preset price and confidence."""

    def __init__(self, name, price, confidence, margin=1.0):
        self.name = name
        self.price = price
        self.confidence = confidence
        self.margin = margin

    @property
    def min_bars(self):
        return 1

    def _predict(self, df, horizon_days):
        return build_prediction(df.index[-1], horizon_days, self.price, self.margin, self.confidence, self.name)


class SingularModel(FixedModel):
    """Fails the way a degenerate polynomial fit does."""

    def _predict(self, df, horizon_days):
        raise np.linalg.LinAlgError("Singular matrix in normal equations")


@pytest.fixture
def random_bars():
    rng = np.random.default_rng(11)
    closes = 100 * np.exp(np.cumsum(rng.normal(0.001, 0.02, 60)))
    return make_bars([float(c) for c in closes])


class TestEnsemblePredictor:
    def test_within_component_range(self, random_bars):
        result = EnsemblePredictor().run(random_bars, 7)
        prices = [p.predicted_price for p in result.components]
        assert len(result.components) == 4
        assert min(prices) - 0.01 <= result.prediction.predicted_price <= max(prices) + 0.01
        assert 0 <= result.prediction.confidence <= 1
        assert result.prediction.algorithm_name == "ensemble"

    def test_bounds_span_components(self, random_bars):
        result = EnsemblePredictor().run(random_bars, 7)
        assert result.prediction.upper_bound == max(p.upper_bound for p in result.components)
        assert result.prediction.lower_bound == min(p.lower_bound for p in result.components)

    def test_confidence_weighting(self, random_bars):
        ensemble = EnsemblePredictor([FixedModel("a", 100.0, 0.5), FixedModel("b", 110.0, 1.0)])
        prediction = ensemble.predict(random_bars, 7)
        assert prediction.predicted_price == pytest.approx(106.67)
        assert prediction.confidence == pytest.approx(0.833)
        assert prediction.upper_bound == 111.0
        assert prediction.lower_bound == 99.0

    def test_zero_confidence_falls_back_to_mean(self, random_bars):
        ensemble = EnsemblePredictor([FixedModel("a", 100.0, 0.0), FixedModel("b", 110.0, 0.0)])
        prediction = ensemble.predict(random_bars, 7)
        assert prediction.predicted_price == 105.0
        assert prediction.confidence == 0.0

    def test_short_series_skips_models(self, random_bars, caplog):
        with caplog.at_level(logging.WARNING, logger="ta_engine.prediction.ensemble"):
            result = EnsemblePredictor().run(random_bars[:12], 7)
        assert [p.algorithm_name for p in result.components] == ["linear_regression", "polynomial_degree_2"]
        assert set(result.failures) == {"moving_average_crossover", "rsi_momentum"}
        assert "Skipping rsi_momentum" in caplog.text

    def test_singular_model_skipped(self, random_bars, caplog):
        ensemble = EnsemblePredictor([FixedModel("a", 100.0, 0.5), SingularModel("poly", 0.0, 0.0)])
        with caplog.at_level(logging.WARNING, logger="ta_engine.prediction.ensemble"):
            result = ensemble.run(random_bars, 7)
        assert result.prediction.predicted_price == 100.0
        assert [p.algorithm_name for p in result.components] == ["a"]
        assert result.failures == {"poly": "Singular matrix in normal equations"}
        assert "Skipping poly" in caplog.text

    def test_only_singular_models_fail(self, random_bars):
        with pytest.raises(NoModelsAvailableError) as excinfo:
            EnsemblePredictor([SingularModel("poly", 0.0, 0.0)]).run(random_bars, 7)
        assert set(excinfo.value.failures) == {"poly"}

    def test_all_models_fail(self, random_bars):
        with pytest.raises(NoModelsAvailableError) as excinfo:
            EnsemblePredictor().run(random_bars[:5], 7)
        assert len(excinfo.value.failures) == 4

    def test_target_date(self, random_bars):
        prediction = EnsemblePredictor().predict(random_bars, 10)
        assert prediction.target_date == random_bars[-1].date + pd.Timedelta(days=10)
