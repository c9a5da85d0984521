"""
A Python package for descriptive statistics and curve fitting on weighted samples.

Samples are stored as clusters of ``(value, count)`` so that repeated values
cost nothing extra. Regression fits lines, polynomials, power and exponential
curves, and can pick the best of them automatically.

Modules:
    - clusters: Weighted cluster lists, bit-exact deduplication and splitting.
    - percentile: Median and arbitrary percentiles without expanding clusters.
    - summary: Mean, sample standard deviation, quartiles and full summaries.
    - regression: OLS, Theil-Sen, power/exponential fits and best-fit selection.
"""

__version__ = "1.0.0"

from .clusters import Cluster, ClusterList, OwnedClusterList, TotalOrderFloat
from .errors import (
    ClusterStatsError,
    InsufficientDataError,
    LengthMismatchError,
    SingularMatrixError,
)
from .percentile import (
    LOWER_QUARTILE,
    MEDIAN,
    UPPER_QUARTILE,
    Fraction,
    MeanValue,
    median,
    median_of,
    percentile,
    percentile_rand,
)
from .regression import (
    DynModel,
    FitSelection,
    Predictive,
    best_fit,
    best_fit_ols,
    determination,
    regression,
)
from .summary import (
    PercentilesOutput,
    StandardDeviationOutput,
    Summary,
    mean,
    percentiles,
    quartiles_by_halves,
    standard_deviation,
    summarize,
)

__all__ = [
    # Clusters
    "Cluster",
    "ClusterList",
    "OwnedClusterList",
    "TotalOrderFloat",
    # Errors
    "ClusterStatsError",
    "InsufficientDataError",
    "LengthMismatchError",
    "SingularMatrixError",
    # Percentiles
    "Fraction",
    "MeanValue",
    "MEDIAN",
    "LOWER_QUARTILE",
    "UPPER_QUARTILE",
    "median",
    "median_of",
    "percentile",
    "percentile_rand",
    # Summary statistics
    "PercentilesOutput",
    "StandardDeviationOutput",
    "Summary",
    "mean",
    "percentiles",
    "quartiles_by_halves",
    "standard_deviation",
    "summarize",
    # Regression
    "DynModel",
    "FitSelection",
    "Predictive",
    "best_fit",
    "best_fit_ols",
    "determination",
    "regression",
]
