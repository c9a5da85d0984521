"""Numeric backends for the polynomial normal equations.

The least-squares coefficients solve ``(XᵗX) β = Xᵗy`` where ``X`` is the
Vandermonde design matrix. In float64 this becomes unreliable for high
degrees, so the arithmetic is a pluggable strategy:

- :class:`FloatBackend`: numpy float64, explicit inverse of ``XᵗX``.
- :class:`DecimalBackend`: the same normal equations in ``decimal``
  arithmetic with configurable precision, solved by Gauss-Jordan elimination.

:func:`select_backend` picks float64 below :data:`HIGH_PRECISION_DEGREE` and
decimal from there on. Both raise :class:`SingularMatrixError` when ``XᵗX``
cannot be inverted.
"""

from __future__ import annotations

import decimal
from decimal import Decimal
from typing import List, Optional, Protocol

import numpy as np

from ..errors import SingularMatrixError

HIGH_PRECISION_DEGREE = 10
DEFAULT_DECIMAL_DIGITS = 40
# Above this the inverse has no correct digits left in float64.
MAX_EQUILIBRATED_CONDITION = 1.0 / float(np.finfo(float).eps)


class NumericBackend(Protocol):
    name: str

    def solve(
        self, predictors: np.ndarray, outcomes: np.ndarray, degree: int
    ) -> np.ndarray:
        """Polynomial coefficients, lowest power first."""


def design_matrix(predictors: np.ndarray, degree: int) -> np.ndarray:
    """``len × (degree + 1)`` matrix whose column ``j`` is ``predictors**j``."""
    return np.vander(np.asarray(predictors, dtype=float), degree + 1, increasing=True)


def check_conditioning(xtx: np.ndarray) -> float:
    """Condition number of ``XᵗX`` after scaling it to a unit diagonal.

    Scaling removes the spread caused by the magnitudes of ``x**j`` so that
    only genuine collinearity is reported.

    Raises:
        SingularMatrixError: If the matrix is singular or ill-conditioned.
    """
    diag = np.diag(xtx)
    if not np.all(np.isfinite(xtx)) or np.any(diag <= 0):
        raise SingularMatrixError(
            "XᵗX is singular: a design column is zero or not finite."
        )
    scale = 1.0 / np.sqrt(diag)
    cond = float(np.linalg.cond(xtx * np.outer(scale, scale)))
    if not np.isfinite(cond) or cond > MAX_EQUILIBRATED_CONDITION:
        raise SingularMatrixError(
            f"XᵗX is ill-conditioned (condition number {cond:.3g}); predictors "
            f"are collinear or the degree is too high."
        )
    return cond


class FloatBackend:
    """float64 normal equations: ``β = (XᵗX)⁻¹ Xᵗ y``."""

    name = "float64"

    def solve(
        self, predictors: np.ndarray, outcomes: np.ndarray, degree: int
    ) -> np.ndarray:
        design = design_matrix(predictors, degree)
        xtx = design.T @ design
        check_conditioning(xtx)
        try:
            inverse = np.linalg.inv(xtx)
        except np.linalg.LinAlgError as exc:
            raise SingularMatrixError(
                "XᵗX is singular; predictors are collinear or degenerate."
            ) from exc
        coefficients = inverse @ (design.T @ np.asarray(outcomes, dtype=float))
        if not np.all(np.isfinite(coefficients)):
            raise SingularMatrixError("Normal equations produced non-finite coefficients.")
        return coefficients

    def __repr__(self) -> str:
        return "FloatBackend()"


class DecimalBackend:
    """Normal equations in ``decimal`` arithmetic.

    Args:
        digits: Significant decimal digits. Defaults to
            ``DEFAULT_DECIMAL_DIGITS + 2 * degree``.

    Note:
        Inputs are converted exactly from their float64 values; only the
        accumulation and elimination gain precision. The coefficients are
        rounded back to float64.
    """

    name = "decimal"

    def __init__(self, digits: Optional[int] = None):
        if digits is not None and digits < 16:
            raise ValueError("DecimalBackend needs at least 16 digits.")
        self.digits = digits

    def solve(
        self, predictors: np.ndarray, outcomes: np.ndarray, degree: int
    ) -> np.ndarray:
        if not (np.all(np.isfinite(predictors)) and np.all(np.isfinite(outcomes))):
            raise SingularMatrixError("Normal equations need finite data.")
        digits = self.digits or DEFAULT_DECIMAL_DIGITS + 2 * degree
        size = degree + 1
        with decimal.localcontext() as ctx:
            ctx.prec = digits
            # power_sums[p] = Σ x**p, moments[j] = Σ x**j * y
            power_sums = [Decimal(0)] * (2 * degree + 1)
            moments = [Decimal(0)] * size
            for x, y in zip(predictors, outcomes):
                x_dec = Decimal(float(x))
                y_dec = Decimal(float(y))
                term = Decimal(1)
                for p in range(2 * degree + 1):
                    power_sums[p] += term
                    if p < size:
                        moments[p] += term * y_dec
                    term *= x_dec

            augmented = [
                [power_sums[i + j] for j in range(size)] + [moments[i]]
                for i in range(size)
            ]
            solution = _gauss_jordan(augmented, digits)
        return np.array([float(c) for c in solution], dtype=float)

    def __repr__(self) -> str:
        return f"DecimalBackend(digits={self.digits!r})"


def _gauss_jordan(augmented: List[List[Decimal]], digits: int) -> List[Decimal]:
    size = len(augmented)
    largest = max(abs(v) for row in augmented for v in row[:size])
    tolerance = largest * Decimal(10) ** (-(digits - 2))

    for col in range(size):
        pivot_row = max(range(col, size), key=lambda r: abs(augmented[r][col]))
        pivot = augmented[pivot_row][col]
        if pivot == 0 or abs(pivot) <= tolerance:
            raise SingularMatrixError(
                "XᵗX is singular; predictors are collinear or degenerate."
            )
        augmented[col], augmented[pivot_row] = augmented[pivot_row], augmented[col]

        row = augmented[col]
        row[:] = [v / pivot for v in row]
        for r in range(size):
            if r == col:
                continue
            factor = augmented[r][col]
            if factor:
                augmented[r] = [a - factor * b for a, b in zip(augmented[r], row)]
    return [augmented[i][size] for i in range(size)]


def select_backend(degree: int) -> NumericBackend:
    """float64 for low degrees, decimal from :data:`HIGH_PRECISION_DEGREE`."""
    if degree < HIGH_PRECISION_DEGREE:
        return FloatBackend()
    return DecimalBackend()
