"""Provide ordinary least-squares polynomial fits.

This module supports:
- polynomial fits of any degree from the normal equations
  ``β = (XᵗX)⁻¹ Xᵗ y`` with a Vandermonde design matrix,
- the straight-line estimator used by the power/exponential fitters and the
  best-fit selector, and
- coefficient standard errors and 95% intervals for reporting.

References:
    https://en.wikipedia.org/wiki/Ordinary_least_squares
    https://en.wikipedia.org/wiki/Polynomial_regression#Matrix_form_and_calculation_of_estimates
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import ClassVar, Dict, Iterator, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import t as student_t

from ..errors import InsufficientDataError, check_same_length
from .models import LinearCoefficients, ModelKind, format_precision
from .precision import NumericBackend, design_matrix, select_backend


@dataclass(frozen=True)
class PolynomialCoefficients:
    """Polynomial coefficients, lowest power first.

    ``PolynomialCoefficients((0.0, 2.0, 1.0))`` is ``y = 1x² + 2x + 0``; the
    tuple has ``degree + 1`` items.
    """

    kind: ClassVar[ModelKind] = ModelKind.POLYNOMIAL

    coefficients: Tuple[float, ...]

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def __len__(self) -> int:
        return len(self.coefficients)

    def __getitem__(self, power: int) -> float:
        return self.coefficients[power]

    def __iter__(self) -> Iterator[float]:
        return iter(self.coefficients)

    def predict_outcome(self, predictor: float) -> float:
        return float(np.polynomial.polynomial.polyval(predictor, self.coefficients))

    def __format__(self, format_spec: str) -> str:
        p = format_precision(format_spec)
        parts = []
        for power in reversed(range(len(self.coefficients))):
            coefficient = self.coefficients[power]
            if parts:
                if math.copysign(1.0, coefficient) > 0:
                    parts.append(" + ")
                else:
                    parts.append(" - ")
                    coefficient = -coefficient
            if power == 0:
                parts.append(f"{coefficient:.{p}f}")
            elif power == 1:
                parts.append(f"{coefficient:.{p}f}x")
            else:
                parts.append(f"{coefficient:.{p}f}x^{power}")
        return "".join(parts)

    def __str__(self) -> str:
        return format(self, "")


def polynomial(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    degree: int,
    backend: Optional[NumericBackend] = None,
) -> PolynomialCoefficients:
    """Fit a polynomial of ``degree`` by ordinary least squares.

    Args:
        predictors: Independent values ``x``.
        outcomes: Dependent values ``y``, same length as ``predictors``.
        degree: Polynomial degree; ``1`` is a straight line.
        backend: Arithmetic for the normal equations. Defaults to
            :func:`select_backend` (float64 below degree 10, decimal above).

    Returns:
        PolynomialCoefficients: ``degree + 1`` coefficients, lowest power first.

    Raises:
        LengthMismatchError: If the inputs differ in length.
        InsufficientDataError: If ``degree >= len(predictors)``.
        SingularMatrixError: If ``XᵗX`` is uninvertible or ill-conditioned,
            e.g. when all predictors are equal.
    """
    if degree < 0:
        raise ValueError(f"Polynomial degree must be >= 0, got {degree}.")
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    n = check_same_length(x_arr, y_arr)
    if degree >= n:
        raise InsufficientDataError(
            f"Polynomial of degree {degree} needs at least {degree + 1} points, "
            f"got {n}."
        )

    backend = backend if backend is not None else select_backend(degree)
    coefficients = backend.solve(x_arr, y_arr, degree)
    logging.debug(
        "Fitted degree-%d polynomial to %d points with %s backend",
        degree,
        n,
        backend.name,
    )
    return PolynomialCoefficients(tuple(float(c) for c in coefficients))


class LinearOls:
    """Straight line by ordinary least squares (degree-1 :func:`polynomial`)."""

    kind = ModelKind.LINEAR

    def model(
        self, predictors: Sequence[float], outcomes: Sequence[float]
    ) -> LinearCoefficients:
        coefficients = polynomial(predictors, outcomes, 1)
        return LinearCoefficients(k=coefficients[1], m=coefficients[0])

    def __repr__(self) -> str:
        return "LinearOls()"


def polynomial_diagnostics(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    degree: int = 1,
    backend: Optional[NumericBackend] = None,
) -> Dict[str, object]:
    """Fit a polynomial and report its statistical diagnostics.

    Args:
        predictors: Independent values ``x``.
        outcomes: Dependent values ``y``.
        degree: Polynomial degree. Defaults to ``1``.
        backend: Passed to :func:`polynomial`.

    Returns:
        dict[str, object]: ``coefficients`` (:class:`PolynomialCoefficients`),
        ``r2``, and per-coefficient numpy arrays ``se``, ``ci95`` (95%
        half-widths) and ``p`` (two-sided p-values), plus ``n``, ``dof`` and
        ``mse``. Uncertainties are ``nan`` when no residual degrees of freedom
        remain.

    Raises:
        Same as :func:`polynomial`.

    Note:
        ``r2`` and standard errors describe statistical scatter only.
    """
    fit = polynomial(predictors, outcomes, degree, backend=backend)
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    n = int(len(x_arr))

    design = design_matrix(x_arr, degree)
    beta = np.asarray(fit.coefficients, dtype=float)
    resid = y_arr - design @ beta

    sse = float(np.sum(resid**2))
    sst = float(np.sum((y_arr - y_arr.mean()) ** 2))
    r2 = 1.0 - sse / sst if sst > 0 else math.nan

    dof = n - (degree + 1)
    mse = sse / dof if dof > 0 else math.inf

    se = np.full(degree + 1, math.nan)
    ci95 = np.full(degree + 1, math.nan)
    p = np.full(degree + 1, math.nan)

    if dof > 0:
        covariance = mse * np.linalg.inv(design.T @ design)
        se = np.sqrt(np.clip(np.diag(covariance), 0.0, None))
        t_crit = float(student_t.ppf(0.975, dof))
        ci95 = t_crit * se
        with np.errstate(divide="ignore", invalid="ignore"):
            t_stat = beta / se
        p = 2 * student_t.sf(np.abs(t_stat), dof)

    return {
        "coefficients": fit,
        "r2": float(r2),
        "se": se,
        "ci95": ci95,
        "p": p,
        "n": n,
        "dof": dof,
        "mse": mse,
    }
