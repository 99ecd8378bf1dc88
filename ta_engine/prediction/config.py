"""
Prediction configuration.

Config validation runs at construction time (fail fast with clear errors).
"""
from dataclasses import dataclass

from ..shared.defaults import (
    POLYNOMIAL_DEGREE,
    PREDICTION_ALGORITHM,
    PREDICTION_HORIZON_DAYS,
)
from ..shared.errors import InvalidConfigurationError

ALGORITHMS = (
    "linear",
    "polynomial",
    "moving_average_crossover",
    "rsi_momentum",
    "ensemble",
)
POLYNOMIAL_DEGREES = (2, 3)


@dataclass(frozen=True)
class PredictionConfig:
    """Prediction horizon and algorithm choice."""
    horizon_days: int = PREDICTION_HORIZON_DAYS
    algorithm: str = PREDICTION_ALGORITHM
    polynomial_degree: int = POLYNOMIAL_DEGREE

    def __post_init__(self) -> None:
        if not isinstance(self.horizon_days, int) or self.horizon_days < 1:
            raise InvalidConfigurationError(
                f"horizon_days must be an integer >= 1, got {self.horizon_days!r}"
            )
        if self.algorithm not in ALGORITHMS:
            raise InvalidConfigurationError(
                f"Unknown prediction algorithm {self.algorithm!r}. Available: {', '.join(ALGORITHMS)}"
            )
        if self.polynomial_degree not in POLYNOMIAL_DEGREES:
            raise InvalidConfigurationError(
                f"polynomial_degree must be 2 or 3, got {self.polynomial_degree!r}"
            )


def get_default_prediction_config() -> PredictionConfig:
    """Seven-day ensemble prediction."""
    return PredictionConfig()
