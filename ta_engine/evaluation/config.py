"""
Backtest configuration.

Risk parameters, trading frictions and the entry/exit strategy. Config
validation runs at construction time (fail fast with clear errors).
"""
from dataclasses import dataclass, field, replace

from ..prediction.config import PredictionConfig
from ..signals.config import SignalWeights
from ..shared.defaults import (
    BACKTEST_STRATEGY,
    COMMISSION_PCT,
    INITIAL_CAPITAL,
    MAX_POSITIONS,
    MIN_PREDICTION_CONFIDENCE,
    POSITION_SIZE_PCT,
    PREDICTION_THRESHOLD,
    SLIPPAGE_PCT,
    STOP_LOSS_PCT,
    TAKE_PROFIT_PCT,
)
from ..shared.errors import InvalidConfigurationError

STRATEGIES = ("signal_based", "prediction_based", "hybrid")


def _validate_config(
    *,
    initial_capital: float,
    position_size_pct: float,
    stop_loss_pct: float,
    take_profit_pct: float,
    max_positions: int,
    commission_pct: float,
    slippage_pct: float,
    strategy: str,
    prediction_threshold: float,
    min_prediction_confidence: float,
) -> None:
    """Validate backtest parameters. Raises InvalidConfigurationError with a clear message on failure."""
    if not initial_capital > 0:
        raise InvalidConfigurationError(f"initial_capital must be > 0, got {initial_capital}")
    for name, value in (
        ("position_size_pct", position_size_pct),
        ("stop_loss_pct", stop_loss_pct),
        ("take_profit_pct", take_profit_pct),
        ("commission_pct", commission_pct),
        ("slippage_pct", slippage_pct),
        ("prediction_threshold", prediction_threshold),
        ("min_prediction_confidence", min_prediction_confidence),
    ):
        if not (0 <= value <= 1):
            raise InvalidConfigurationError(f"{name} must be in [0, 1], got {value}")
    if commission_pct + slippage_pct >= 1:
        raise InvalidConfigurationError(
            f"commission_pct + slippage_pct must be < 1, got {commission_pct + slippage_pct}"
        )
    if not isinstance(max_positions, int) or isinstance(max_positions, bool) or max_positions < 1:
        raise InvalidConfigurationError(f"max_positions must be an integer >= 1, got {max_positions!r}")
    if strategy not in STRATEGIES:
        raise InvalidConfigurationError(
            f"Unknown strategy {strategy!r}. Available: {', '.join(STRATEGIES)}"
        )


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for one backtest run."""
    name: str = "default"
    initial_capital: float = INITIAL_CAPITAL
    position_size_pct: float = POSITION_SIZE_PCT  # Fraction of cash per new position
    stop_loss_pct: float = STOP_LOSS_PCT
    take_profit_pct: float = TAKE_PROFIT_PCT
    max_positions: int = MAX_POSITIONS
    commission_pct: float = COMMISSION_PCT  # Per side, fraction of notional
    slippage_pct: float = SLIPPAGE_PCT  # Per side, fraction of notional
    strategy: str = BACKTEST_STRATEGY  # "signal_based", "prediction_based" or "hybrid"
    signal_weights: SignalWeights = field(default_factory=SignalWeights)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    prediction_threshold: float = PREDICTION_THRESHOLD  # Predicted move needed to act
    min_prediction_confidence: float = MIN_PREDICTION_CONFIDENCE

    def __post_init__(self) -> None:
        _validate_config(
            initial_capital=self.initial_capital,
            position_size_pct=self.position_size_pct,
            stop_loss_pct=self.stop_loss_pct,
            take_profit_pct=self.take_profit_pct,
            max_positions=self.max_positions,
            commission_pct=self.commission_pct,
            slippage_pct=self.slippage_pct,
            strategy=self.strategy,
            prediction_threshold=self.prediction_threshold,
            min_prediction_confidence=self.min_prediction_confidence,
        )

    @property
    def friction_pct(self) -> float:
        return self.commission_pct + self.slippage_pct

    def with_overrides(self, **changes) -> "BacktestConfig":
        """Copy with some fields replaced (validated again)."""
        return replace(self, **changes)


def get_default_backtest_config() -> BacktestConfig:
    """10,000 capital, 20% positions, 10% stop, 20% target, 3 positions, 0.1% commission, 0.05% slippage."""
    return BacktestConfig()
