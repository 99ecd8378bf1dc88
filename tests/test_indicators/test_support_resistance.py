"""
Tests for support / resistance level detection.
"""
import numpy as np
import pandas as pd
import pytest

from ta_engine.indicators.support_resistance import SupportResistanceIndicator
from ta_engine.shared.errors import InvalidConfigurationError
from ta_engine.shared.types import LevelType, PriceBar


def flat_bars(values, start="2024-01-01"):
    """Bars with open = high = low = close, one per day."""
    dates = pd.date_range(start, periods=len(values), freq="D")
    return [PriceBar(d, v, v, v, v, 100) for d, v in zip(dates, values)]


@pytest.fixture
def zigzag():
    """Lows near 96 touched three times, highs near 108 touched twice."""
    return flat_bars([100, 96, 100, 108, 100, 95.5, 100, 108.5, 100, 97, 100])


class TestSupportResistance:
    def test_touches_merge_within_tolerance(self, zigzag):
        levels = SupportResistanceIndicator(lookback=len(zigzag)).calculate(zigzag)
        assert len(levels) == 2

        support, resistance = levels
        assert support.level_type is LevelType.SUPPORT
        assert support.price == 96.0
        assert support.touches == 3
        assert support.last_touch == zigzag[9].date
        assert support.strength == pytest.approx(0.9833)

        assert resistance.level_type is LevelType.RESISTANCE
        assert resistance.price == 108.0
        assert resistance.touches == 2
        assert resistance.last_touch == zigzag[7].date
        assert resistance.strength == pytest.approx(0.7833)

    def test_levels_dated_at_window_end(self, zigzag):
        levels = SupportResistanceIndicator(lookback=len(zigzag)).calculate(zigzag)
        assert all(level.date == zigzag[-1].date for level in levels)

    def test_lookback_limits_window(self, zigzag):
        levels = SupportResistanceIndicator(lookback=5).calculate(zigzag)
        assert [(l.level_type, l.price, l.touches) for l in levels] == [
            (LevelType.SUPPORT, 97.0, 1),
            (LevelType.RESISTANCE, 108.5, 1),
        ]
        assert [l.strength for l in levels] == pytest.approx([0.9833, 0.95])

    def test_old_single_touch_filtered(self):
        """A lone touch older than the recency window cannot reach min strength."""
        values = [100, 120] + [95 if i % 3 == 2 else 100 for i in range(40)] + [100]
        levels = SupportResistanceIndicator(lookback=len(values)).calculate(flat_bars(values))
        assert levels
        assert all(l.level_type is LevelType.SUPPORT for l in levels)

    def test_ranked_and_capped(self):
        rng = np.random.default_rng(3)
        values = [float(v) for v in 100 * np.exp(np.cumsum(rng.normal(0, 0.02, 120)))]
        levels = SupportResistanceIndicator().calculate(flat_bars(values))
        assert len(levels) <= 5
        strengths = [l.strength for l in levels]
        assert strengths == sorted(strengths, reverse=True)
        assert all(0.3 < s <= 1.0 for s in strengths)

    def test_too_short(self):
        assert SupportResistanceIndicator().calculate(flat_bars([100, 99])) == []

    def test_shorter_than_lookback_has_no_levels(self):
        """Levels need a full lookback window, even when dips are present."""
        dips = [95 if i % 3 == 2 else 100 for i in range(49)]
        assert SupportResistanceIndicator().calculate(flat_bars(dips)) == []
        assert SupportResistanceIndicator().calculate(flat_bars(dips + [100]))

    def test_min_bars_is_lookback(self):
        assert SupportResistanceIndicator().min_bars == 50
        assert SupportResistanceIndicator(lookback=20).min_bars == 20

    def test_monotonic_series_has_no_levels(self):
        assert SupportResistanceIndicator().calculate(flat_bars(list(range(100, 160)))) == []

    def test_invalid_lookback(self):
        with pytest.raises(InvalidConfigurationError):
            SupportResistanceIndicator(lookback=2)
