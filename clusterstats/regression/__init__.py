"""
Regression models that fit an equation to predictor/outcome pairs.

All functions operate on flat numeric sequences and return immutable
coefficient objects exposing ``predict_outcome`` and an equation rendering.

Modules:
    models:
        The shared model interface: R² (coefficient of determination), the
        type-erased ``DynModel`` wrapper, straight-line coefficients and the
        ``LinearEstimator`` protocol.

    precision:
        Pluggable arithmetic for the normal equations: float64 and an
        extended-precision ``decimal`` backend for high polynomial degrees.

    ols:
        Ordinary least-squares polynomials of any degree and their
        diagnostics (standard errors, 95% intervals, p-values).

    theil_sen:
        Robust straight lines from the median of pairwise slopes.

    derived:
        Power and exponential curves fitted by log-linearisation on top of any
        straight-line estimator.

    selection:
        Heuristic model selection and the ``regression`` entry point.

Design Principle:
    Only the percentile engine of the parent package is used (for medians);
    everything else is self-contained numerical code.
"""

from .selection import (
    BestFit,
    BestFitHeuristics,
    Candidate,
    FitSelection,
    Regression,
    best_fit,
    best_fit_ols,
    evaluate_candidates,
    rank_candidates,
    regression,
)
from .derived import (
    ExponentialCoefficients,
    PowerCoefficients,
    exponential,
    exponential_given_min,
    exponential_ols,
    power,
    power_given_min,
    power_ols,
)
from .models import (
    DynModel,
    LinearCoefficients,
    LinearEstimator,
    ModelKind,
    Predictive,
    determination,
)
from .ols import LinearOls, PolynomialCoefficients, polynomial, polynomial_diagnostics
from .precision import DecimalBackend, FloatBackend, NumericBackend, select_backend
from .theil_sen import LinearTheilSen, pairs, slow_linear

__all__ = [
    # Model interface
    "DynModel",
    "LinearCoefficients",
    "LinearEstimator",
    "ModelKind",
    "Predictive",
    "determination",
    # Least squares
    "LinearOls",
    "PolynomialCoefficients",
    "polynomial",
    "polynomial_diagnostics",
    "DecimalBackend",
    "FloatBackend",
    "NumericBackend",
    "select_backend",
    # Theil-Sen
    "LinearTheilSen",
    "pairs",
    "slow_linear",
    # Power / exponential
    "ExponentialCoefficients",
    "PowerCoefficients",
    "exponential",
    "exponential_given_min",
    "exponential_ols",
    "power",
    "power_given_min",
    "power_ols",
    # Selection
    "BestFit",
    "BestFitHeuristics",
    "Candidate",
    "FitSelection",
    "Regression",
    "best_fit",
    "best_fit_ols",
    "evaluate_candidates",
    "rank_candidates",
    "regression",
]
