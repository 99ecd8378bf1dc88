"""
Error taxonomy for the analysis engine.

Errors are local to a single analysis call. The engine never retries;
callers decide whether to supply more history or a different configuration.
"""
from typing import Dict, Optional


class AnalysisError(Exception):
    """Base class for all engine errors."""


class InsufficientDataError(AnalysisError):
    """Series is shorter than a component's minimum length."""

    def __init__(self, component: str, required: int, available: int):
        self.component = component
        self.required = required
        self.available = available
        super().__init__(
            f"{component} requires at least {required} bars, got {available}"
        )


class InvalidConfigurationError(AnalysisError, ValueError):
    """Configuration failed validation (never auto-corrected)."""


class InvalidPriceDataError(AnalysisError, ValueError):
    """A bar violates OHLCV invariants or a series is unordered / has duplicate dates."""


class NoModelsAvailableError(AnalysisError):
    """Every ensemble sub-model failed."""

    def __init__(self, failures: Optional[Dict[str, str]] = None):
        self.failures = dict(failures or {})
        detail = "; ".join(f"{name}: {msg}" for name, msg in self.failures.items())
        message = "No prediction models could run"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
