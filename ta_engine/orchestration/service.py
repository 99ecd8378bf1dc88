"""
Analysis façade.

Orchestrates indicators, signals, predictions and backtests behind a few
calls. The only state held across calls is the injected result cache.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .cache import AnalysisCache, make_cache_key
from ..data.preparation import validate_symbol
from ..evaluation.backtester import BacktestEngine
from ..evaluation.config import BacktestConfig
from ..evaluation.portfolio_types import BacktestResult
from ..evaluation.report import format_comparison, generate_report
from ..grid_test.grid_search import OptimizationResult, compare_configs, optimize_strategy
from ..indicators.base import PriceData, to_frame
from ..indicators.technical import IndicatorSet, TechnicalIndicators
from ..prediction.config import PredictionConfig
from ..prediction.ensemble import EnsemblePredictor
from ..prediction.models import create_model
from ..signals.alerts import generate_alerts
from ..signals.scorer import SignalScorer
from ..shared.defaults import SIGNAL_MIN_BARS
from ..shared.errors import InsufficientDataError, NoModelsAvailableError
from ..shared.types import Prediction, Signal

logger = logging.getLogger(__name__)


@dataclass
class StockAnalysis:
    """Everything analyze_stock produces for one symbol and series."""
    symbol: str
    date: pd.Timestamp
    price: float
    indicators: IndicatorSet
    signal: Signal
    prediction: Optional[Prediction] = None
    prediction_components: List[Prediction] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)


class TechnicalAnalysisService:
    """
    Single entry point for symbol analysis and backtesting.

    Args:
        cache: Result cache for analyze_stock (default: 5-minute AnalysisCache)
        prediction_config: Prediction settings (default: 7-day ensemble)
        scorer: Signal scorer (default weights if None)
    """

    def __init__(
        self,
        cache: Optional[AnalysisCache] = None,
        prediction_config: Optional[PredictionConfig] = None,
        scorer: Optional[SignalScorer] = None,
    ):
        self.cache = cache if cache is not None else AnalysisCache()
        self.prediction_config = prediction_config or PredictionConfig()
        self.scorer = scorer or SignalScorer()

    @property
    def indicators(self) -> TechnicalIndicators:
        return self.scorer.indicators

    def _predict(self, df: pd.DataFrame):
        config = self.prediction_config
        if config.algorithm == "ensemble":
            result = EnsemblePredictor().run(df, config.horizon_days)
            return result.prediction, result.components
        return create_model(config.algorithm, config.polynomial_degree).predict(df, config.horizon_days), []

    def _analyze(self, symbol: str, df: pd.DataFrame) -> StockAnalysis:
        snapshot = self.scorer.snapshot(df)
        signal = self.scorer.evaluate(snapshot)

        prediction, components = None, []
        try:
            prediction, components = self._predict(df)
        except (InsufficientDataError, NoModelsAvailableError) as exc:
            logger.warning("No prediction for %s: %s", symbol, exc)

        return StockAnalysis(
            symbol=symbol,
            date=snapshot.date,
            price=snapshot.price,
            indicators=self.indicators.calculate_all(df),
            signal=signal,
            prediction=prediction,
            prediction_components=components,
            alerts=generate_alerts(signal, snapshot),
        )

    def analyze_stock(self, symbol: str, data: PriceData) -> StockAnalysis:
        """
        Indicators, signal, prediction and alerts for the latest bar.

        Results are cached by (symbol, series length, latest date).

        Raises:
            InvalidConfigurationError: If the symbol is malformed
            InsufficientDataError: If the series has fewer than 50 bars
        """
        symbol = validate_symbol(symbol)
        df = to_frame(data)
        if len(df) < SIGNAL_MIN_BARS:
            raise InsufficientDataError("analysis", SIGNAL_MIN_BARS, len(df))
        key = make_cache_key(symbol, len(df), df.index[-1])

        def compute() -> StockAnalysis:
            logger.debug("Cache miss for %s, analyzing %d bars", symbol, len(df))
            return self._analyze(symbol, df)

        return self.cache.get_or_compute(key, compute)

    def multi_timeframe_analysis(self, symbol: str, data: PriceData) -> Dict[str, Signal]:
        """Short, medium and long-term signals for the latest bar."""
        validate_symbol(symbol)
        return self.scorer.multi_timeframe(data)

    def run_backtest(self, data: PriceData, config: Optional[BacktestConfig] = None) -> BacktestResult:
        return BacktestEngine(config).run(data)

    def optimize_strategy(
        self,
        data: PriceData,
        base_config: Optional[BacktestConfig] = None,
        position_sizes: Optional[Sequence[float]] = None,
        stop_losses: Optional[Sequence[float]] = None,
        take_profits: Optional[Sequence[float]] = None,
    ) -> OptimizationResult:
        return optimize_strategy(data, base_config, position_sizes, stop_losses, take_profits)

    def compare_strategies(self, data: PriceData, configs: Sequence[BacktestConfig]) -> str:
        """Comparison table for several configurations on the same series."""
        return format_comparison(compare_configs(data, configs))

    def generate_report(self, result: BacktestResult) -> str:
        return generate_report(result)

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> dict:
        return self.cache.get_stats()


def format_analysis(analysis: StockAnalysis) -> str:
    """Plain-text summary of a StockAnalysis."""
    signal = analysis.signal
    ind = analysis.indicators
    lines = [
        f"{analysis.symbol} @ {analysis.price:.2f} ({analysis.date.date()})",
        f"Signal: {signal.signal_type.value.upper()} ({signal.strength.value}, "
        f"confidence {signal.confidence:.0%}, score {signal.score:+.3f})",
        "",
        "Indicators:",
    ]
    for label, points in (
        (f"SMA({ind.sma_short[-1].period})" if ind.sma_short else "SMA", ind.sma_short),
        (f"SMA({ind.sma_long[-1].period})" if ind.sma_long else "SMA", ind.sma_long),
        (f"EMA({ind.ema_short[-1].period})" if ind.ema_short else "EMA", ind.ema_short),
        (f"EMA({ind.ema_long[-1].period})" if ind.ema_long else "EMA", ind.ema_long),
    ):
        if points:
            lines.append(f"  {label:<10} {points[-1].value:.2f}")
    if ind.rsi:
        rsi = ind.rsi[-1]
        lines.append(f"  {'RSI':<10} {rsi.value:.2f} ({rsi.signal.value}, {rsi.strength.value})")
    if ind.macd:
        macd = ind.macd[-1]
        lines.append(
            f"  {'MACD':<10} {macd.macd:.4f} / signal {macd.signal:.4f} / "
            f"histogram {macd.histogram:.4f} ({macd.trend.value})"
        )
    if ind.bollinger:
        bands = ind.bollinger[-1]
        lines.append(
            f"  {'Bollinger':<10} {bands.lower:.2f} / {bands.middle:.2f} / {bands.upper:.2f} "
            f"(%B {bands.percent_b:.2f})"
        )
    for level in ind.support_resistance:
        lines.append(
            f"  {level.level_type.value.capitalize():<10} {level.price:.2f} "
            f"(strength {level.strength:.2f}, {level.touches} touches)"
        )

    if analysis.prediction is not None:
        p = analysis.prediction
        lines += [
            "",
            f"Prediction ({p.algorithm_name}, {p.target_date.date()}): {p.predicted_price:.2f} "
            f"[{p.lower_bound:.2f} - {p.upper_bound:.2f}], confidence {p.confidence:.0%}",
        ]
    if signal.reasoning:
        lines += ["", "Reasoning:"] + [f"  - {r}" for r in signal.reasoning]
    if analysis.alerts:
        lines += ["", "Alerts:"] + [f"  ! {a}" for a in analysis.alerts]
    return "\n".join(lines)
