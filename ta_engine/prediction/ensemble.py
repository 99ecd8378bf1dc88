"""
Ensemble predictor.

Runs every sub-model and combines the ones that had enough data. A model
that raises InsufficientDataError, or whose regression system is singular
(numpy.linalg.LinAlgError), is skipped and recorded; only when every model
is skipped does the ensemble fail.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .models import (
    LinearRegressionModel,
    MovingAverageCrossoverModel,
    PolynomialRegressionModel,
    PredictionModel,
    RsiMomentumModel,
    build_prediction,
)
from ..indicators.base import PriceData, check_period, to_frame
from ..shared.defaults import ENSEMBLE_POLYNOMIAL_DEGREE
from ..shared.errors import InsufficientDataError, NoModelsAvailableError
from ..shared.types import Prediction

logger = logging.getLogger(__name__)


@dataclass
class EnsembleResult:
    """Combined prediction plus the per-model outcomes it was built from."""
    prediction: Prediction
    components: List[Prediction] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


def default_models() -> List[PredictionModel]:
    return [
        LinearRegressionModel(),
        PolynomialRegressionModel(ENSEMBLE_POLYNOMIAL_DEGREE),
        MovingAverageCrossoverModel(),
        RsiMomentumModel(),
    ]


class EnsemblePredictor:
    """
    Confidence-weighted combination of several models.

    - price: confidence-weighted mean of sub-model prices (plain mean when
      every confidence is 0)
    - confidence: confidence-weighted mean of sub-model confidences
    - bounds: [min of lower bounds, max of upper bounds]
    """

    name = "ensemble"

    def __init__(self, models: Optional[Sequence[PredictionModel]] = None):
        self.models = list(models) if models is not None else default_models()

    def run(self, data: PriceData, horizon_days: int) -> EnsembleResult:
        """
        Run every model and combine the results.

        Raises:
            NoModelsAvailableError: If every model lacked data or could not be solved
        """
        check_period("horizon_days", horizon_days)
        df = to_frame(data)
        components: List[Prediction] = []
        failures: Dict[str, str] = {}
        for model in self.models:
            try:
                components.append(model.predict(df, horizon_days))
            except (InsufficientDataError, np.linalg.LinAlgError) as exc:
                logger.warning("Skipping %s in ensemble: %s", model.name, exc)
                failures[model.name] = str(exc)

        if not components:
            raise NoModelsAvailableError(failures)

        total_weight = sum(p.confidence for p in components)
        if total_weight > 0:
            price = sum(p.predicted_price * p.confidence for p in components) / total_weight
            confidence = sum(p.confidence * p.confidence for p in components) / total_weight
        else:
            price = sum(p.predicted_price for p in components) / len(components)
            confidence = 0.0

        upper = max(p.upper_bound for p in components)
        lower = min(p.lower_bound for p in components)
        combined = build_prediction(df.index[-1], horizon_days, price, 0.0, confidence, self.name)
        prediction = Prediction(
            target_date=combined.target_date,
            predicted_price=combined.predicted_price,
            confidence=combined.confidence,
            upper_bound=upper,
            lower_bound=lower,
            algorithm_name=self.name,
        )
        return EnsembleResult(prediction=prediction, components=components, failures=failures)

    def predict(self, data: PriceData, horizon_days: int) -> Prediction:
        return self.run(data, horizon_days).prediction
