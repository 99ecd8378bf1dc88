"""
Tests for signal weight configuration.
"""
import pytest

from ta_engine.signals.config import COMPONENTS, TIMEFRAME_WEIGHTS, SignalWeights, create_custom_weights
from ta_engine.shared.errors import InvalidConfigurationError


class TestSignalWeights:
    def test_defaults_sum_to_one(self):
        weights = SignalWeights()
        assert sum(weights.as_dict().values()) == pytest.approx(1.0)
        assert list(weights.as_dict()) == list(COMPONENTS)

    def test_sum_must_be_one(self):
        with pytest.raises(InvalidConfigurationError, match="sum to 1.0"):
            SignalWeights(rsi=0.5)

    def test_weight_range(self):
        with pytest.raises(InvalidConfigurationError, match="rsi"):
            SignalWeights(rsi=-0.1, macd=0.6)

    def test_tolerance(self):
        SignalWeights(rsi=0.25 + 1e-8, macd=0.25 - 1e-8)

    def test_from_dict(self):
        weights = SignalWeights.from_dict({
            "rsi": 0.2, "macd": 0.2, "bollinger": 0.2,
            "moving_average": 0.2, "support_resistance": 0.1, "volume": 0.1,
        })
        assert weights.rsi == 0.2
        assert weights.volume == 0.1

    def test_from_dict_unknown_key(self):
        with pytest.raises(InvalidConfigurationError, match="Unknown signal weight"):
            SignalWeights.from_dict({"adx": 1.0})

    def test_custom_weights_switch_off_others(self):
        weights = create_custom_weights(rsi=0.5, macd=0.5)
        assert weights.bollinger == 0.0
        assert weights.volume == 0.0

    @pytest.mark.parametrize("horizon", ["short_term", "medium_term", "long_term"])
    def test_timeframe_presets_are_valid(self, horizon):
        assert sum(TIMEFRAME_WEIGHTS[horizon].as_dict().values()) == pytest.approx(1.0)

    def test_long_term_favours_moving_averages(self):
        assert TIMEFRAME_WEIGHTS["long_term"].moving_average > TIMEFRAME_WEIGHTS["short_term"].moving_average
