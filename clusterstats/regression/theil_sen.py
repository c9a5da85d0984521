"""Theil-Sen estimator, a robust straight-line fit.

The slope is the median of the slopes between every pair of points and the
intercept is ``median(y) - slope * median(x)``. Up to roughly 29% of the
points can be arbitrary outliers without moving the line much.

Time and memory are O(n²) in the number of points.

Repeated predictors:
    A pair with ``x_i == x_j`` has slope ``±inf`` (kept; it sorts to one end
    and the median absorbs it) or ``0/0`` when the points coincide. Undefined
    slopes carry no information and are discarded with a ``RuntimeWarning``.

References:
    https://en.wikipedia.org/wiki/Theil%E2%80%93Sen_estimator
"""

from __future__ import annotations

import itertools
import warnings
from typing import Iterator, Sequence, Tuple, TypeVar

import numpy as np

from ..errors import InsufficientDataError, check_same_length
from ..percentile import median_of
from .models import LinearCoefficients, ModelKind

T = TypeVar("T")


def pairs(
    s1: Sequence[T], s2: Sequence[T]
) -> Iterator[Tuple[Tuple[T, T], Tuple[T, T]]]:
    """Yield ``((s1[i], s1[j]), (s2[i], s2[j]))`` for every ``i < j``."""
    for (a1, a2), (b1, b2) in itertools.combinations(zip(s1, s2), 2):
        yield (a1, b1), (a2, b2)


def slopes(predictors: Sequence[float], outcomes: Sequence[float]) -> np.ndarray:
    """All ``n·(n-1)/2`` pairwise slopes ``(y_i - y_j) / (x_i - x_j)``, ``i < j``."""
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    n = check_same_length(x_arr, y_arr)
    i, j = np.triu_indices(n, k=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (y_arr[i] - y_arr[j]) / (x_arr[i] - x_arr[j])


def slow_linear(
    predictors: Sequence[float], outcomes: Sequence[float]
) -> LinearCoefficients:
    """Naive Theil-Sen fit that evaluates every pair of points.

    Raises:
        LengthMismatchError: If the inputs differ in length.
        InsufficientDataError: With fewer than two points, or when every
            pairwise slope is undefined.
    """
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    n = check_same_length(x_arr, y_arr)
    if n < 2:
        raise InsufficientDataError("Theil-Sen needs at least two points.")

    candidates = slopes(x_arr, y_arr)
    undefined = np.isnan(candidates)
    if undefined.any():
        warnings.warn(
            f"Discarded {int(undefined.sum())} of {candidates.size} pairwise "
            f"slopes that are undefined (coincident points).",
            RuntimeWarning,
            stacklevel=2,
        )
        candidates = candidates[~undefined]
    if candidates.size == 0:
        raise InsufficientDataError("Every pairwise slope is undefined.")

    slope = median_of(candidates).resolve()
    # y = slope * x + intercept
    intercept = median_of(y_arr).resolve() - slope * median_of(x_arr).resolve()
    return LinearCoefficients(k=slope, m=intercept)


class LinearTheilSen:
    """Straight line by the Theil-Sen estimator; robust against outliers."""

    kind = ModelKind.THEIL_SEN_LINEAR

    def model(
        self, predictors: Sequence[float], outcomes: Sequence[float]
    ) -> LinearCoefficients:
        return slow_linear(predictors, outcomes)

    def __repr__(self) -> str:
        return "LinearTheilSen()"
