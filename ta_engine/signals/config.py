"""
Signal scoring configuration.

Component weights are validated at construction time: each weight must be
in [0, 1] and together they must sum to 1.0.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Mapping

from ..shared.defaults import SIGNAL_WEIGHTS, WEIGHT_SUM_TOLERANCE
from ..shared.errors import InvalidConfigurationError

COMPONENTS = ("rsi", "macd", "bollinger", "moving_average", "support_resistance", "volume")


@dataclass(frozen=True)
class SignalWeights:
    """Weight of each sub-score in the combined signal score."""
    rsi: float = SIGNAL_WEIGHTS["rsi"]
    macd: float = SIGNAL_WEIGHTS["macd"]
    bollinger: float = SIGNAL_WEIGHTS["bollinger"]
    moving_average: float = SIGNAL_WEIGHTS["moving_average"]
    support_resistance: float = SIGNAL_WEIGHTS["support_resistance"]
    volume: float = SIGNAL_WEIGHTS["volume"]

    def __post_init__(self) -> None:
        for name, value in self.as_dict().items():
            if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                raise InvalidConfigurationError(f"weight {name} must be in [0, 1], got {value!r}")
        total = sum(self.as_dict().values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise InvalidConfigurationError(f"signal weights must sum to 1.0, got {total:.6f}")

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, weights: Mapping[str, float]) -> "SignalWeights":
        """Build from a mapping; unknown keys are rejected, missing keys take defaults."""
        unknown = set(weights) - set(COMPONENTS)
        if unknown:
            raise InvalidConfigurationError(
                f"Unknown signal weight(s): {', '.join(sorted(unknown))}. Available: {', '.join(COMPONENTS)}"
            )
        return cls(**{k: float(v) for k, v in weights.items()})


# Presets for multi-timeframe analysis. Short term leans on oscillators and
# volume, long term on moving averages and support/resistance.
TIMEFRAME_WEIGHTS: Dict[str, SignalWeights] = {
    "short_term": SignalWeights(
        rsi=0.30, macd=0.30, bollinger=0.15,
        moving_average=0.10, support_resistance=0.05, volume=0.10,
    ),
    "medium_term": SignalWeights(),
    "long_term": SignalWeights(
        rsi=0.15, macd=0.15, bollinger=0.15,
        moving_average=0.35, support_resistance=0.15, volume=0.05,
    ),
}


def create_custom_weights(
    rsi: float = 0.0,
    macd: float = 0.0,
    bollinger: float = 0.0,
    moving_average: float = 0.0,
    support_resistance: float = 0.0,
    volume: float = 0.0,
) -> SignalWeights:
    """Weights for a custom scenario; unspecified components are switched off."""
    return SignalWeights(
        rsi=rsi, macd=macd, bollinger=bollinger,
        moving_average=moving_average, support_resistance=support_resistance, volume=volume,
    )
