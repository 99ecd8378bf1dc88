"""
Grid search over backtest risk parameters, and side-by-side comparison.

Risk parameters do not change the strategy's entry/exit decisions, so
decisions are generated once per distinct strategy and replayed for every
configuration that shares it.
"""
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..evaluation.backtester import BacktestEngine, Decision
from ..evaluation.config import BacktestConfig
from ..evaluation.portfolio_types import BacktestResult
from ..indicators.base import PriceData, to_frame
from ..shared.defaults import (
    OPTIMIZER_POSITION_SIZES,
    OPTIMIZER_STOP_LOSSES,
    OPTIMIZER_TAKE_PROFITS,
)
from ..shared.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """Best configuration plus every evaluated (config, result) pair in grid order."""
    best_config: BacktestConfig
    best_result: BacktestResult
    results: List[Tuple[BacktestConfig, BacktestResult]] = field(default_factory=list)


def generate_grid_configs(
    base_config: Optional[BacktestConfig] = None,
    position_sizes: Optional[Sequence[float]] = None,
    stop_losses: Optional[Sequence[float]] = None,
    take_profits: Optional[Sequence[float]] = None,
    name_prefix: str = "grid",
) -> List[BacktestConfig]:
    """
    Generate every combination of position size, stop-loss and take-profit.

    Args:
        base_config: Config supplying every other parameter (default: BacktestConfig())
        position_sizes: Position size fractions to test (default: 0.1, 0.2, 0.3)
        stop_losses: Stop-loss fractions to test (default: 0.05, 0.1, 0.15)
        take_profits: Take-profit fractions to test (default: 0.1, 0.2, 0.3)
        name_prefix: Prefix for generated config names

    Returns:
        List of BacktestConfig objects in grid order
    """
    base_config = base_config or BacktestConfig()
    if position_sizes is None:
        position_sizes = OPTIMIZER_POSITION_SIZES
    if stop_losses is None:
        stop_losses = OPTIMIZER_STOP_LOSSES
    if take_profits is None:
        take_profits = OPTIMIZER_TAKE_PROFITS

    configs = []
    for size, stop, target in itertools.product(position_sizes, stop_losses, take_profits):
        configs.append(base_config.with_overrides(
            name=f"{name_prefix}_ps{size:.2f}_sl{stop:.2f}_tp{target:.2f}",
            position_size_pct=size,
            stop_loss_pct=stop,
            take_profit_pct=target,
        ))
    if not configs:
        raise InvalidConfigurationError("Parameter grid is empty")
    return configs


def _strategy_key(config: BacktestConfig) -> tuple:
    """Fields that determine decisions (everything except risk and cost parameters)."""
    return (
        config.strategy,
        config.signal_weights,
        config.prediction,
        config.prediction_threshold,
        config.min_prediction_confidence,
    )


def run_configs(data: PriceData, configs: Sequence[BacktestConfig]) -> List[Tuple[BacktestConfig, BacktestResult]]:
    """Backtest every config on the same series, sharing decisions between strategies."""
    df = to_frame(data)
    decisions: Dict[tuple, List[Decision]] = {}
    results = []
    for i, config in enumerate(configs, start=1):
        engine = BacktestEngine(config)
        key = _strategy_key(config)
        if key not in decisions:
            decisions[key] = engine.generate_decisions(df)
        results.append((config, engine.simulate(df, decisions[key])))
        logger.info("[%d/%d] %s: sharpe %.2f", i, len(configs), config.name, results[-1][1].sharpe_ratio)
    return results


def optimize_strategy(
    data: PriceData,
    base_config: Optional[BacktestConfig] = None,
    position_sizes: Optional[Sequence[float]] = None,
    stop_losses: Optional[Sequence[float]] = None,
    take_profits: Optional[Sequence[float]] = None,
) -> OptimizationResult:
    """
    Grid search over risk parameters, selecting the highest Sharpe ratio.

    Ties keep the earliest configuration in grid order.
    """
    configs = generate_grid_configs(base_config, position_sizes, stop_losses, take_profits)
    results = run_configs(data, configs)
    best_config, best_result = results[0]
    for config, result in results[1:]:
        if result.sharpe_ratio > best_result.sharpe_ratio:
            best_config, best_result = config, result
    logger.info("Best configuration: %s (sharpe %.2f)", best_config.name, best_result.sharpe_ratio)
    return OptimizationResult(best_config=best_config, best_result=best_result, results=results)


def compare_configs(data: PriceData, configs: Sequence[BacktestConfig]) -> List[Tuple[str, BacktestResult]]:
    """Run several configurations against the same series for side-by-side reporting."""
    if not configs:
        raise InvalidConfigurationError("compare_configs needs at least one configuration")
    return [(config.name, result) for config, result in run_configs(data, configs)]
