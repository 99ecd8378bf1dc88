"""
Least-squares helpers for the regression models.

Polynomial fits solve the normal equations by Gaussian elimination with
partial pivoting. A singular system raises numpy.linalg.LinAlgError.
"""
from dataclasses import dataclass
from typing import Sequence

import numpy as np

PIVOT_EPSILON = 1e-12


@dataclass(frozen=True)
class FitResult:
    coefficients: np.ndarray  # Lowest power first
    r_squared: float  # Raw R^2 (not clamped); 0 when the target has zero variance
    ss_res: float
    ss_tot: float

    def predict(self, x: float) -> float:
        return evaluate_polynomial(self.coefficients, x)


def evaluate_polynomial(coefficients: Sequence[float], x: float) -> float:
    result = 0.0
    for power, coef in enumerate(coefficients):
        result += coef * x ** power
    return float(result)


def solve_linear_system(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """
    Solve ``matrix @ x = rhs`` by Gaussian elimination with partial pivoting.

    Raises:
        numpy.linalg.LinAlgError: If the matrix is (numerically) singular
    """
    a = np.array(matrix, dtype=float)
    b = np.array(rhs, dtype=float)
    n = len(b)
    if a.shape != (n, n):
        raise ValueError(f"matrix must be {n}x{n}, got {a.shape}")

    for col in range(n):
        pivot = col + int(np.argmax(np.abs(a[col:, col])))
        if abs(a[pivot, col]) < PIVOT_EPSILON:
            raise np.linalg.LinAlgError("Singular matrix in normal equations")
        if pivot != col:
            a[[col, pivot]] = a[[pivot, col]]
            b[[col, pivot]] = b[[pivot, col]]
        for row in range(col + 1, n):
            factor = a[row, col] / a[col, col]
            a[row, col:] -= factor * a[col, col:]
            b[row] -= factor * b[col]

    x = np.zeros(n)
    for row in range(n - 1, -1, -1):
        x[row] = (b[row] - a[row, row + 1:] @ x[row + 1:]) / a[row, row]
    return x


def _goodness(y: np.ndarray, fitted: np.ndarray) -> tuple:
    ss_res = float(np.sum((y - fitted) ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
    return r_squared, ss_res, ss_tot


def fit_polynomial(x: Sequence[float], y: Sequence[float], degree: int) -> FitResult:
    """
    Least-squares polynomial fit via the normal equations.

    A target with zero variance is fitted exactly by its constant value.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if np.ptp(y) == 0:
        coefficients = np.zeros(degree + 1)
        coefficients[0] = y[0]
        return FitResult(coefficients=coefficients, r_squared=0.0, ss_res=0.0, ss_tot=0.0)

    powers = np.vstack([x ** p for p in range(degree + 1)])
    normal_matrix = powers @ powers.T
    normal_rhs = powers @ y
    coefficients = solve_linear_system(normal_matrix, normal_rhs)
    fitted = coefficients @ powers
    r_squared, ss_res, ss_tot = _goodness(y, fitted)
    return FitResult(coefficients=coefficients, r_squared=r_squared, ss_res=ss_res, ss_tot=ss_tot)


def fit_line(y: Sequence[float]) -> FitResult:
    """Ordinary least squares of y against its index 0..n-1 (closed form)."""
    y = np.asarray(y, dtype=float)
    n = len(y)
    x = np.arange(n, dtype=float)
    if np.ptp(y) == 0:
        return FitResult(coefficients=np.array([y[0], 0.0]), r_squared=0.0, ss_res=0.0, ss_tot=0.0)
    x_mean, y_mean = x.mean(), y.mean()
    slope = float(np.sum((x - x_mean) * (y - y_mean)) / np.sum((x - x_mean) ** 2))
    intercept = float(y_mean - slope * x_mean)
    r_squared, ss_res, ss_tot = _goodness(y, intercept + slope * x)
    return FitResult(coefficients=np.array([intercept, slope]), r_squared=r_squared, ss_res=ss_res, ss_tot=ss_tot)
