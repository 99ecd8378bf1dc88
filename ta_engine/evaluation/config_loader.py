"""
YAML configuration loader for backtests.

Loads backtest configurations from YAML files, allowing easy sharing
and modification of risk settings without code changes.
"""
import yaml
from pathlib import Path
from typing import Any, Dict, Union

from .config import BacktestConfig
from ..prediction.config import PredictionConfig
from ..signals.config import SignalWeights
from ..shared.defaults import (
    BACKTEST_STRATEGY,
    COMMISSION_PCT,
    INITIAL_CAPITAL,
    MAX_POSITIONS,
    MIN_PREDICTION_CONFIDENCE,
    POLYNOMIAL_DEGREE,
    POSITION_SIZE_PCT,
    PREDICTION_ALGORITHM,
    PREDICTION_HORIZON_DAYS,
    PREDICTION_THRESHOLD,
    SLIPPAGE_PCT,
    STOP_LOSS_PCT,
    TAKE_PROFIT_PCT,
)
from ..shared.errors import InvalidConfigurationError


def _section(config_dict: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = config_dict.get(key) or {}
    if not isinstance(value, dict):
        raise InvalidConfigurationError(f"Section '{key}' must be a mapping, got {type(value).__name__}")
    return value


def config_from_dict(config_dict: Dict[str, Any], default_name: str = "default") -> BacktestConfig:
    """Build a BacktestConfig from the nested YAML structure."""
    capital = _section(config_dict, "capital")
    risk = _section(config_dict, "risk")
    costs = _section(config_dict, "costs")
    strategy = _section(config_dict, "strategy")
    signals = _section(config_dict, "signals")
    prediction = _section(config_dict, "prediction")

    weights = signals.get("weights")
    return BacktestConfig(
        name=str(config_dict.get("name", default_name)),
        initial_capital=float(capital.get("initial", INITIAL_CAPITAL)),
        position_size_pct=float(risk.get("position_size_pct", POSITION_SIZE_PCT)),
        stop_loss_pct=float(risk.get("stop_loss_pct", STOP_LOSS_PCT)),
        take_profit_pct=float(risk.get("take_profit_pct", TAKE_PROFIT_PCT)),
        max_positions=risk.get("max_positions", MAX_POSITIONS),
        commission_pct=float(costs.get("commission_pct", COMMISSION_PCT)),
        slippage_pct=float(costs.get("slippage_pct", SLIPPAGE_PCT)),
        strategy=strategy.get("type", BACKTEST_STRATEGY),
        prediction_threshold=float(strategy.get("prediction_threshold", PREDICTION_THRESHOLD)),
        min_prediction_confidence=float(
            strategy.get("min_prediction_confidence", MIN_PREDICTION_CONFIDENCE)
        ),
        signal_weights=SignalWeights.from_dict(weights) if weights else SignalWeights(),
        prediction=PredictionConfig(
            horizon_days=prediction.get("horizon_days", PREDICTION_HORIZON_DAYS),
            algorithm=prediction.get("algorithm", PREDICTION_ALGORITHM),
            polynomial_degree=prediction.get("polynomial_degree", POLYNOMIAL_DEGREE),
        ),
    )


def config_to_dict(config: BacktestConfig) -> Dict[str, Any]:
    """Nested YAML structure for a BacktestConfig (inverse of config_from_dict)."""
    return {
        "name": config.name,
        "capital": {
            "initial": config.initial_capital,
        },
        "risk": {
            "position_size_pct": config.position_size_pct,
            "stop_loss_pct": config.stop_loss_pct,
            "take_profit_pct": config.take_profit_pct,
            "max_positions": config.max_positions,
        },
        "costs": {
            "commission_pct": config.commission_pct,
            "slippage_pct": config.slippage_pct,
        },
        "strategy": {
            "type": config.strategy,
            "prediction_threshold": config.prediction_threshold,
            "min_prediction_confidence": config.min_prediction_confidence,
        },
        "signals": {
            "weights": config.signal_weights.as_dict(),
        },
        "prediction": {
            "horizon_days": config.prediction.horizon_days,
            "algorithm": config.prediction.algorithm,
            "polynomial_degree": config.prediction.polynomial_degree,
        },
    }


def load_config_from_yaml(yaml_path: Union[str, Path]) -> BacktestConfig:
    """
    Load backtest configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        BacktestConfig object

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        InvalidConfigurationError: If YAML is empty or a value fails validation
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if not config_dict:
        raise InvalidConfigurationError(f"Empty config file: {yaml_path}")
    if not isinstance(config_dict, dict):
        raise InvalidConfigurationError(f"Config file must contain a mapping: {yaml_path}")

    return config_from_dict(config_dict, default_name=yaml_path.stem)


def save_config_to_yaml(config: BacktestConfig, yaml_path: Union[str, Path]) -> None:
    """
    Save backtest configuration to YAML file.

    Args:
        config: BacktestConfig object to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    with open(yaml_path, 'w') as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)
