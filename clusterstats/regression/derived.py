"""Power and exponential fits derived from a straight-line estimator.

Both curves are linearised with base-2 logarithms, fitted with any
:class:`~clusterstats.regression.models.LinearEstimator`, and transformed back:

Power, ``y = k·x^e``:
    ``log2 y = log2 k + e·log2 x``. Fit the line on ``(log2 x, log2 y)``,
    then ``k = 2^intercept`` and ``e = slope``.

Exponential, ``y = k·b^x``:
    ``log2 y = log2 k + x·log2 b``. Fit the line on ``(x, log2 y)``, then
    ``k = 2^intercept`` and ``b = 2^slope``.

Values below 1:
    Logarithms of values near or below zero are useless, so when the smallest
    predictor (outcome) is below 1 every predictor (outcome) is shifted by
    ``1 - min`` before the transform. The shift is stored on the coefficients
    and undone in ``predict_outcome``; the equation then reads
    ``k * (x + a)^e - c``. This is a fallback and a warning sign for the data.

Known bias:
    The logarithm compresses large values, so their residuals weigh less than
    those of small values. Small values are often the relatively important
    ones, so the fit is kept as is.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import ClassVar, Iterable, Optional, Sequence

import numpy as np

from ..clusters import TotalOrderFloat
from ..errors import InsufficientDataError, check_same_length
from .models import LinearEstimator, ModelKind, format_precision
from .ols import LinearOls


def bit_min(values: Iterable[float]) -> float:
    """Smallest value in IEEE-754 total order."""
    wrapped = [TotalOrderFloat(v) for v in values]
    if not wrapped:
        raise InsufficientDataError("Cannot take the minimum of no values.")
    return min(wrapped).value


def _additive(minimum: float) -> Optional[float]:
    return 1.0 - minimum if minimum < 1.0 else None


def _pow(base: float, exponent: float) -> float:
    with np.errstate(all="ignore"):
        return float(np.power(np.float64(base), exponent))


def _exp2(value: float) -> float:
    with np.errstate(over="ignore"):
        return float(np.exp2(value))


def _render(
    body: str, precision: int, outcome_additive: Optional[float]
) -> str:
    if outcome_additive is None:
        return body
    return f"{body} - {outcome_additive:.{precision}f}"


def _render_x(precision: int, predictor_additive: Optional[float]) -> str:
    if predictor_additive is None:
        return "x"
    return f"(x + {predictor_additive:.{precision}f})"


@dataclass(frozen=True)
class PowerCoefficients:
    """``y = k·(x + predictor_additive)^e - outcome_additive``."""

    kind: ClassVar[ModelKind] = ModelKind.POWER

    # constant
    k: float
    # exponent
    e: float
    predictor_additive: Optional[float] = None
    outcome_additive: Optional[float] = None

    def predict_outcome(self, predictor: float) -> float:
        shifted = predictor + (self.predictor_additive or 0.0)
        return self.k * _pow(shifted, self.e) - (self.outcome_additive or 0.0)

    def __format__(self, format_spec: str) -> str:
        p = format_precision(format_spec)
        x = _render_x(p, self.predictor_additive)
        return _render(f"{self.k:.{p}f} * {x}^{self.e:.{p}f}", p, self.outcome_additive)

    def __str__(self) -> str:
        return format(self, "")


@dataclass(frozen=True)
class ExponentialCoefficients:
    """``y = k·b^(x + predictor_additive) - outcome_additive``."""

    kind: ClassVar[ModelKind] = ModelKind.EXPONENTIAL

    # constant
    k: float
    # base
    b: float
    predictor_additive: Optional[float] = None
    outcome_additive: Optional[float] = None

    def predict_outcome(self, predictor: float) -> float:
        shifted = predictor + (self.predictor_additive or 0.0)
        return self.k * _pow(self.b, shifted) - (self.outcome_additive or 0.0)

    def __format__(self, format_spec: str) -> str:
        p = format_precision(format_spec)
        x = _render_x(p, self.predictor_additive)
        return _render(f"{self.k:.{p}f} * {self.b:.{p}f}^{x}", p, self.outcome_additive)

    def __str__(self) -> str:
        return format(self, "")


def _check_points(predictors: np.ndarray, outcomes: np.ndarray, name: str) -> None:
    n = check_same_length(predictors, outcomes)
    if n <= 2:
        raise InsufficientDataError(f"{name} fits need more than two points, got {n}.")


def _warn_offsets(
    name: str, predictor_additive: Optional[float], outcome_additive: Optional[float]
) -> None:
    if predictor_additive is None and outcome_additive is None:
        return
    warnings.warn(
        f"{name} fit shifted values below 1 (predictors by {predictor_additive}, "
        f"outcomes by {outcome_additive}) to keep logarithms defined; the result "
        f"is biased.",
        UserWarning,
        stacklevel=3,
    )


def power_given_min(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    predictor_min: float,
    outcome_min: float,
    estimator: LinearEstimator,
) -> PowerCoefficients:
    """:func:`power` with the minima already known. Inputs are not modified."""
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    _check_points(x_arr, y_arr, "Power")

    predictor_additive = _additive(predictor_min)
    outcome_additive = _additive(outcome_min)
    _warn_offsets("Power", predictor_additive, outcome_additive)

    with np.errstate(divide="ignore", invalid="ignore"):
        log_x = np.log2(x_arr + (predictor_additive or 0.0))
        log_y = np.log2(y_arr + (outcome_additive or 0.0))

    line = estimator.model(log_x, log_y)
    return PowerCoefficients(
        k=_exp2(line.m),
        e=line.k,
        predictor_additive=predictor_additive,
        outcome_additive=outcome_additive,
    )


def power(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    estimator: Optional[LinearEstimator] = None,
) -> PowerCoefficients:
    """Fit ``y = k·x^e`` (also called a power-law or allometric fit).

    Args:
        predictors: Independent values ``x``.
        outcomes: Dependent values ``y``.
        estimator: Line estimator for the log-log fit. Defaults to OLS.

    Raises:
        LengthMismatchError: If the inputs differ in length.
        InsufficientDataError: With two points or fewer.
    """
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    _check_points(x_arr, y_arr, "Power")
    return power_given_min(
        x_arr,
        y_arr,
        bit_min(x_arr),
        bit_min(y_arr),
        estimator if estimator is not None else LinearOls(),
    )


def power_ols(
    predictors: Sequence[float], outcomes: Sequence[float]
) -> PowerCoefficients:
    return power(predictors, outcomes, LinearOls())


def exponential_given_min(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    predictor_min: float,
    outcome_min: float,
    estimator: LinearEstimator,
) -> ExponentialCoefficients:
    """:func:`exponential` with the minima already known. Inputs are not modified."""
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    _check_points(x_arr, y_arr, "Exponential")

    predictor_additive = _additive(predictor_min)
    outcome_additive = _additive(outcome_min)
    _warn_offsets("Exponential", predictor_additive, outcome_additive)

    shifted_x = x_arr + (predictor_additive or 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        log_y = np.log2(y_arr + (outcome_additive or 0.0))

    line = estimator.model(shifted_x, log_y)
    return ExponentialCoefficients(
        k=_exp2(line.m),
        b=_exp2(line.k),
        predictor_additive=predictor_additive,
        outcome_additive=outcome_additive,
    )


def exponential(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    estimator: Optional[LinearEstimator] = None,
) -> ExponentialCoefficients:
    """Fit ``y = k·b^x`` (also called growth).

    Args:
        predictors: Independent values ``x``.
        outcomes: Dependent values ``y``.
        estimator: Line estimator for the semi-log fit. Defaults to OLS.

    Raises:
        LengthMismatchError: If the inputs differ in length.
        InsufficientDataError: With two points or fewer.
    """
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    _check_points(x_arr, y_arr, "Exponential")
    return exponential_given_min(
        x_arr,
        y_arr,
        bit_min(x_arr),
        bit_min(y_arr),
        estimator if estimator is not None else LinearOls(),
    )


def exponential_ols(
    predictors: Sequence[float], outcomes: Sequence[float]
) -> ExponentialCoefficients:
    return exponential(predictors, outcomes, LinearOls())
