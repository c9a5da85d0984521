"""Descriptive statistics over weighted clusters.

All functions run in O(number of clusters). Only :func:`percentiles` and
:func:`summarize` sort, and they say so.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .clusters import ClusterList, OwnedClusterList
from .errors import InsufficientDataError
from .percentile import LOWER_QUARTILE, UPPER_QUARTILE, median, percentile

MIN_QUARTILE_WEIGHT = 5


@dataclass(frozen=True)
class StandardDeviationOutput:
    """Sample standard deviation together with the mean it was computed from."""

    standard_deviation: float
    mean: float


@dataclass(frozen=True)
class PercentilesOutput:
    """Median and quartiles; quartiles are ``None`` below five observations."""

    median: float
    lower_quadrille: Optional[float]
    higher_quadrille: Optional[float]


@dataclass(frozen=True)
class Summary:
    total_weight: int
    distinct_values: int
    mean: float
    standard_deviation: float
    median: float
    lower_quadrille: Optional[float]
    higher_quadrille: Optional[float]


def mean(values: ClusterList) -> float:
    """Weighted mean of ``values``."""
    if values.total_weight == 0:
        raise InsufficientDataError("Cannot take the mean of an empty list.")
    return values.sum() / values.total_weight


def standard_deviation(values: ClusterList) -> StandardDeviationOutput:
    """Sample standard deviation (divides by ``n - 1``) and the mean.

    Returns ``nan`` as the standard deviation for a single observation.
    """
    m = mean(values)
    n = values.total_weight
    if n < 2:
        return StandardDeviationOutput(standard_deviation=math.nan, mean=m)
    variance = values.sum_squared_diff(m) / (n - 1)
    return StandardDeviationOutput(standard_deviation=math.sqrt(variance), mean=m)


def percentiles(values: OwnedClusterList) -> PercentilesOutput:
    """Median plus the 1/4 and 3/4 percentiles.

    Note:
        Sorts ``values`` in place before walking it.
    """
    values.sort()
    view = values.borrow()
    lower = higher = None
    if view.total_weight >= MIN_QUARTILE_WEIGHT:
        lower = percentile(view, LOWER_QUARTILE).resolve()
        higher = percentile(view, UPPER_QUARTILE).resolve()
    return PercentilesOutput(
        median=median(view).resolve(),
        lower_quadrille=lower,
        higher_quadrille=higher,
    )


def quartiles_by_halves(values: ClusterList) -> PercentilesOutput:
    """Quartiles as the medians of the lower and upper halves.

    With an odd total weight the middle observation belongs to neither half.
    ``values`` must already be sorted.
    """
    n = values.total_weight
    lower = higher = None
    if n >= MIN_QUARTILE_WEIGHT:
        half = n // 2
        lower = median(values.split_start(half)).resolve()
        higher = median(values.split_end(half)).resolve()
    return PercentilesOutput(
        median=median(values).resolve(),
        lower_quadrille=lower,
        higher_quadrille=higher,
    )


def summarize(values: ClusterList) -> Summary:
    """Merge duplicates, then compute mean, deviation, median and quartiles.

    The input is left as is; duplicates are merged into a new sorted list.
    """
    optimized = values.optimize_values()
    logging.debug(
        "Merged %d clusters into %d distinct values", len(values), len(optimized)
    )
    spread = standard_deviation(optimized)
    quartiles = percentiles(optimized)
    return Summary(
        total_weight=optimized.total_weight,
        distinct_values=len(optimized),
        mean=spread.mean,
        standard_deviation=spread.standard_deviation,
        median=quartiles.median,
        lower_quadrille=quartiles.lower_quadrille,
        higher_quadrille=quartiles.higher_quadrille,
    )
