"""Median and percentiles of weighted clusters.

The functions here never expand clusters into a flat sample. A percentile is
located by walking the clusters and counting observations, so the cost is
O(number of clusters).

Position rule:
    For a total weight ``n`` and a fraction ``p/q``, let
    ``target, rest = divmod(n * p, q)``. When ``rest`` is zero the percentile
    lies exactly between two observations and the result is the mean of flat
    positions ``target - 1`` and ``target`` (0-based). Otherwise it is the
    observation at flat position ``target``. For the median (``1/2``) this is
    the usual "middle value, or mean of the two middle values" rule.

Ends:
    A fraction of ``0`` returns the first value (it is used as both bounds of
    the mean) and a fraction of ``1`` returns the last value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np

from .clusters import ClusterList, OwnedClusterList, float_bits, total_order_key
from .errors import InsufficientDataError


@dataclass(frozen=True)
class Fraction:
    """Percentile as ``numerator / denominator``; the median is ``1/2``."""

    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        if self.denominator <= 0:
            raise ValueError("Fraction denominator must be positive.")
        if not 0 <= self.numerator <= self.denominator:
            raise ValueError(
                f"Fraction {self.numerator}/{self.denominator} is outside [0, 1]."
            )

    def position(self, total: int) -> Tuple[int, bool]:
        """Return ``(target, between)`` for a sample of ``total`` observations.

        ``between`` is true when the percentile falls between the observations
        at flat positions ``target - 1`` and ``target``.
        """
        target, rest = divmod(total * self.numerator, self.denominator)
        return target, rest == 0

    def __float__(self) -> float:
        return self.numerator / self.denominator


MEDIAN = Fraction(1, 2)
LOWER_QUARTILE = Fraction(1, 4)
UPPER_QUARTILE = Fraction(3, 4)


@dataclass(frozen=True)
class MeanValue:
    """A single value, or two values whose mean is the answer."""

    low: float
    high: Optional[float] = None

    @classmethod
    def single(cls, value: float) -> "MeanValue":
        return cls(value)

    @classmethod
    def mean(cls, low: float, high: float) -> "MeanValue":
        return cls(low, high)

    @property
    def is_single(self) -> bool:
        return self.high is None

    def resolve(self) -> float:
        if self.high is None:
            return float(self.low)
        return (self.low + self.high) / 2.0

    def map(self, func: Callable[[float], float]) -> "MeanValue":
        if self.high is None:
            return MeanValue(func(self.low))
        return MeanValue(func(self.low), func(self.high))


def _require_observations(values: ClusterList) -> int:
    total = values.total_weight
    if total == 0:
        raise InsufficientDataError("Cannot take a percentile of an empty list.")
    return total


def percentile(values: ClusterList, fraction: Fraction) -> MeanValue:
    """Percentile of clusters sorted ascending by value.

    Args:
        values: Clusters sorted ascending. The order is not checked.
        fraction: Which percentile to take.

    Returns:
        MeanValue: A single value, or the two neighbouring values when the
        percentile falls on the boundary between two clusters.

    Raises:
        InsufficientDataError: If ``values`` holds no observations.
    """
    total = _require_observations(values)
    target, between = fraction.position(total)

    seen = 0
    previous = None
    for value, count in values:
        if between and seen == target:
            # The boundary is the start of this cluster.
            if previous is None:
                return MeanValue.single(value)
            return MeanValue.mean(previous, value)
        seen += count
        if seen > target:
            return MeanValue.single(value)
        previous = value
    return MeanValue.single(previous)


def median(values: ClusterList) -> MeanValue:
    """Median of clusters sorted ascending by value."""
    return percentile(values, MEDIAN)


def _select(clusters: List[Tuple[float, int]], index: int, rng) -> float:
    # Weighted quickselect: value at flat position ``index``.
    while True:
        pivot = clusters[int(rng.integers(len(clusters)))][0]
        pivot_key = total_order_key(pivot)
        lower: List[Tuple[float, int]] = []
        upper: List[Tuple[float, int]] = []
        lower_weight = 0
        equal_weight = 0
        for value, count in clusters:
            key = total_order_key(value)
            if key < pivot_key:
                lower.append((value, count))
                lower_weight += count
            elif key > pivot_key:
                upper.append((value, count))
            else:
                equal_weight += count

        if index < lower_weight:
            clusters = lower
        elif index < lower_weight + equal_weight:
            return pivot
        else:
            index -= lower_weight + equal_weight
            clusters = upper


def percentile_rand(
    values: ClusterList,
    fraction: Fraction,
    rng: Optional[np.random.Generator] = None,
) -> MeanValue:
    """Percentile of *unsorted* clusters using randomised selection.

    Same position rule as :func:`percentile`, but ``values`` need not be
    sorted. Expected O(number of clusters); the input is not modified.

    Args:
        values: Clusters in any order.
        fraction: Which percentile to take.
        rng: Source of pivots. A fresh default generator is used if omitted.
    """
    total = _require_observations(values)
    rng = rng if rng is not None else np.random.default_rng()
    clusters = list(values)
    target, between = fraction.position(total)

    if not between:
        return MeanValue.single(_select(clusters, target, rng))
    if target == 0:
        return MeanValue.single(_select(clusters, 0, rng))
    if target == total:
        return MeanValue.single(_select(clusters, total - 1, rng))

    low = _select(clusters, target - 1, rng)
    high = _select(clusters, target, rng)
    if float_bits(low) == float_bits(high):
        return MeanValue.single(low)
    return MeanValue.mean(low, high)


def median_of(values: Iterable[float]) -> MeanValue:
    """Median of a flat sequence of floats.

    Values are merged by bit pattern and sorted in total order first, so the
    result is defined even when the sequence contains infinities or NaN.
    """
    clusters = OwnedClusterList.from_values(values).optimize_values()
    clusters.sort()
    return median(clusters)
