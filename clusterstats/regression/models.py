"""Shared model interface: prediction, R² and equation rendering.

Vocabulary:
    - predictors: the independent values, usually ``x``.
    - outcomes: the dependent values, usually ``y`` or ``f(x)``.
    - model: an equation fitted to predictors and outcomes.

Every ``*Coefficients`` class provides ``predict_outcome`` and renders its
equation through ``str()``/``format()``. ``format(model, ".3")`` selects the
number of decimals (five by default). :class:`DynModel` holds any of them so
callers can work with a fit without knowing its concrete type.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import ClassVar, Iterable, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from ..errors import InsufficientDataError, check_same_length

DEFAULT_PRECISION = 5


class ModelKind(str, enum.Enum):
    LINEAR = "linear"
    THEIL_SEN_LINEAR = "theil_sen_linear"
    POLYNOMIAL = "polynomial"
    POWER = "power"
    EXPONENTIAL = "exponential"


@runtime_checkable
class Predictive(Protocol):
    def predict_outcome(self, predictor: float) -> float:
        """Predicted outcome for ``predictor``."""


class LinearEstimator(Protocol):
    """Anything that fits a straight line; used by the derived fitters."""

    kind: ModelKind

    def model(
        self, predictors: Sequence[float], outcomes: Sequence[float]
    ) -> "LinearCoefficients":
        """Fit a line. ``predictors`` and ``outcomes`` must have equal length."""


def format_precision(format_spec: str) -> int:
    """Number of decimals requested by a format spec such as ``".3"``."""
    if not format_spec:
        return DEFAULT_PRECISION
    if format_spec.startswith(".") and format_spec[1:].isdigit():
        return int(format_spec[1:])
    raise ValueError(f"Unsupported format spec {format_spec!r}; use '.N'.")


def determination(
    model: Predictive, predictors: Iterable[float], outcomes: Iterable[float]
) -> float:
    """Coefficient of determination R² of ``model`` on observed data.

    ``R² = 1 - SS_res / SS_tot`` with residuals ``observed - predicted``.

    Args:
        model: Anything with ``predict_outcome``.
        predictors: The x values fed to the model.
        outcomes: The observed y values.

    Returns:
        float: ``1.0`` for a perfect fit; ``nan`` if the outcomes have no
        variance.

    Raises:
        LengthMismatchError: If predictors and outcomes differ in length.
        InsufficientDataError: If there are no observations.

    References:
        https://en.wikipedia.org/wiki/Coefficient_of_determination#Definitions
    """
    x_arr = np.asarray(list(predictors), dtype=float)
    y_arr = np.asarray(list(outcomes), dtype=float)
    n = check_same_length(x_arr, y_arr)
    if n == 0:
        raise InsufficientDataError("Cannot compute R² without observations.")

    predicted = np.array([model.predict_outcome(float(x)) for x in x_arr], dtype=float)
    with np.errstate(invalid="ignore", over="ignore"):
        resid = y_arr - predicted
        ss_res = float(np.sum(resid * resid))
        ss_tot = float(np.sum((y_arr - y_arr.mean()) ** 2))
    if ss_tot == 0:
        return math.nan
    return 1.0 - ss_res / ss_tot


@dataclass(frozen=True)
class LinearCoefficients:
    """``y = k·x + m``."""

    kind: ClassVar[ModelKind] = ModelKind.LINEAR

    # slope
    k: float
    # intercept
    m: float

    def predict_outcome(self, predictor: float) -> float:
        return self.k * predictor + self.m

    def __format__(self, format_spec: str) -> str:
        p = format_precision(format_spec)
        return f"{self.k:.{p}f}x + {self.m:.{p}f}"

    def __str__(self) -> str:
        return format(self, "")


class DynModel:
    """A fitted model of any kind behind one predict/display interface.

    Args:
        model: A coefficients object (anything with ``predict_outcome`` and a
            string rendering).
        kind: Override for the model kind. Defaults to ``model.kind``; a line
            fitted by Theil-Sen is tagged :attr:`ModelKind.THEIL_SEN_LINEAR`.
    """

    __slots__ = ("_model", "kind")

    def __init__(self, model: Predictive, kind: Optional[ModelKind] = None):
        self._model = model
        self.kind = ModelKind(kind if kind is not None else model.kind)

    @property
    def model(self) -> Predictive:
        return self._model

    def predict_outcome(self, predictor: float) -> float:
        return self._model.predict_outcome(predictor)

    def determination(
        self, predictors: Iterable[float], outcomes: Iterable[float]
    ) -> float:
        return determination(self._model, predictors, outcomes)

    def __format__(self, format_spec: str) -> str:
        return format(self._model, format_spec)

    def __str__(self) -> str:
        return str(self._model)

    def __repr__(self) -> str:
        return f"DynModel(kind={self.kind.value!r}, model={self._model!r})"
