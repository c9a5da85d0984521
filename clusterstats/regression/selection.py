"""Pick the model that best describes the data, and the fit entry point.

:func:`best_fit` fits several candidate models, scores each by its R² on the
original (untransformed) data adjusted by a few heuristics, and returns the
highest score. Candidates are evaluated in this order:

1. power and exponential, only if every predictor and outcome is >= 1
   (no additive offsets, so R² stays comparable between candidates);
2. degree-2 polynomial, only with more than 15 points;
3. degree-3 polynomial, only with more than 50 points, R² scaled by 0.94
   to offset its tendency to overfit;
4. a straight line from the chosen estimator, always.

Scores compare with a strict ``>``, so on a tie the earlier candidate wins.
The line is always evaluated, so a model is returned whenever the line can be
fitted at all.

Heuristic bumps:
    - power: x1.5 when the exponent is within 0.15 of an integer; x1.3 when
      R² > 0.8 and another x1.3 when R² > 0.92.
    - exponential: x1.3 when R² > 0.8 and another x1.3 when R² > 0.92.
    - line: additive bump, 0 by default.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import InsufficientDataError, SingularMatrixError, check_same_length
from ..schema import COLUMNS
from .derived import bit_min, exponential, exponential_given_min, power, power_given_min
from .models import DynModel, LinearEstimator, Predictive, determination
from .ols import LinearOls, polynomial
from .theil_sen import LinearTheilSen


@dataclass(frozen=True)
class BestFitHeuristics:
    """Tuning constants of the best-fit selector."""

    # additive
    linear_bump: float = 0.0
    # multiplicative
    power_bump: float = 1.5
    # multiplicative, also applied to power fits with a high R²
    exponential_bump: float = 1.3
    # multiplicative
    third_degree_disadvantage: float = 0.94
    integer_exponent_tolerance: float = 0.15
    good_fit: float = 0.8
    excellent_fit: float = 0.92
    degree_2_min_samples: int = 15
    degree_3_min_samples: int = 50


DEFAULT_HEURISTICS = BestFitHeuristics()


@dataclass(frozen=True)
class Candidate:
    """One evaluated model with its raw and weighted R²."""

    model: DynModel
    determination: float
    score: float


@dataclass(frozen=True)
class BestFit:
    """Winning model, its raw R², and every candidate that was evaluated."""

    model: DynModel
    determination: float
    score: float
    candidates: Tuple[Candidate, ...] = ()

    def predict_outcome(self, predictor: float) -> float:
        return self.model.predict_outcome(predictor)


def _exponent_is_near_integer(exponent: float, tolerance: float) -> bool:
    fractional = exponent % 1.0
    distance_from_integer = 0.5 - abs(0.5 - fractional)
    return distance_from_integer < tolerance


def _fit_bump(r2: float, heuristics: BestFitHeuristics) -> float:
    bump = 1.0
    if r2 > heuristics.good_fit:
        bump *= heuristics.exponential_bump
    if r2 > heuristics.excellent_fit:
        bump *= heuristics.exponential_bump
    return bump


def _beats(score: float, best: Optional[Candidate]) -> bool:
    if best is None:
        return True
    if math.isnan(best.score):
        return not math.isnan(score)
    return score > best.score


def _optional_candidate(name: str, fit) -> Optional[Predictive]:
    try:
        return fit()
    except (SingularMatrixError, InsufficientDataError) as exc:
        logging.warning("Skipping %s candidate: %s", name, exc)
        return None


def evaluate_candidates(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    linear_estimator: Optional[LinearEstimator] = None,
    heuristics: BestFitHeuristics = DEFAULT_HEURISTICS,
) -> List[Candidate]:
    """Fit and score every eligible candidate, in evaluation order.

    Raises:
        LengthMismatchError: If the inputs differ in length.
        InsufficientDataError: With two points or fewer.
        SingularMatrixError: If even the straight line cannot be fitted.
    """
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)
    n = check_same_length(x_arr, y_arr)
    if n <= 2:
        raise InsufficientDataError(f"Best fit needs more than two points, got {n}.")
    estimator = linear_estimator if linear_estimator is not None else LinearOls()

    candidates: List[Candidate] = []

    def add(model: DynModel, r2: float, score: float) -> None:
        logging.debug(
            "Candidate %s: R²=%.6f weighted=%.6f (%s)",
            model.kind.value,
            r2,
            score,
            model,
        )
        candidates.append(Candidate(model=model, determination=r2, score=score))

    predictor_min = bit_min(x_arr)
    outcome_min = bit_min(y_arr)

    if predictor_min >= 1.0 and outcome_min >= 1.0:
        fitted_power = _optional_candidate(
            "power",
            lambda: power_given_min(x_arr, y_arr, predictor_min, outcome_min, estimator),
        )
        if fitted_power is not None:
            r2 = determination(fitted_power, x_arr, y_arr)
            bump = 1.0
            if _exponent_is_near_integer(
                fitted_power.e, heuristics.integer_exponent_tolerance
            ):
                bump = heuristics.power_bump
            bump *= _fit_bump(r2, heuristics)
            add(DynModel(fitted_power), r2, r2 * bump)

        fitted_exponential = _optional_candidate(
            "exponential",
            lambda: exponential_given_min(
                x_arr, y_arr, predictor_min, outcome_min, estimator
            ),
        )
        if fitted_exponential is not None:
            r2 = determination(fitted_exponential, x_arr, y_arr)
            add(DynModel(fitted_exponential), r2, r2 * _fit_bump(r2, heuristics))

    if n > heuristics.degree_2_min_samples:
        degree_2 = _optional_candidate(
            "degree-2 polynomial", lambda: polynomial(x_arr, y_arr, 2)
        )
        if degree_2 is not None:
            r2 = determination(degree_2, x_arr, y_arr)
            add(DynModel(degree_2), r2, r2)

    if n > heuristics.degree_3_min_samples:
        degree_3 = _optional_candidate(
            "degree-3 polynomial", lambda: polynomial(x_arr, y_arr, 3)
        )
        if degree_3 is not None:
            r2 = determination(degree_3, x_arr, y_arr)
            add(DynModel(degree_3), r2, r2 * heuristics.third_degree_disadvantage)

    line = estimator.model(x_arr, y_arr)
    r2 = determination(line, x_arr, y_arr)
    add(DynModel(line, kind=estimator.kind), r2, r2 + heuristics.linear_bump)

    return candidates


def best_fit(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    linear_estimator: Optional[LinearEstimator] = None,
    heuristics: BestFitHeuristics = DEFAULT_HEURISTICS,
) -> BestFit:
    """Find the model that best fits the data using heuristics.

    Args:
        predictors: Independent values ``x``.
        outcomes: Dependent values ``y``, same length, more than two points.
        linear_estimator: Straight-line estimator used for the line candidate
            and inside the power/exponential fits. Defaults to OLS.
        heuristics: Tuning constants; see :class:`BestFitHeuristics`.

    Returns:
        BestFit: The winning model with its raw (un-bumped) R².

    Raises:
        Same as :func:`evaluate_candidates`.
    """
    candidates = evaluate_candidates(predictors, outcomes, linear_estimator, heuristics)
    best: Optional[Candidate] = None
    for candidate in candidates:
        if _beats(candidate.score, best):
            best = candidate

    logging.info(
        "Best fit: %s model %s (R²=%.6f, weighted %.6f, %d candidates)",
        best.model.kind.value,
        best.model,
        best.determination,
        best.score,
        len(candidates),
    )
    return BestFit(
        model=best.model,
        determination=best.determination,
        score=best.score,
        candidates=tuple(candidates),
    )


def best_fit_ols(predictors: Sequence[float], outcomes: Sequence[float]) -> BestFit:
    return best_fit(predictors, outcomes, LinearOls())


def rank_candidates(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    linear_estimator: Optional[LinearEstimator] = None,
    heuristics: BestFitHeuristics = DEFAULT_HEURISTICS,
) -> pd.DataFrame:
    """Table of every best-fit candidate, in evaluation order.

    Columns are named by :data:`clusterstats.schema.COLUMNS`.
    """
    result = best_fit(predictors, outcomes, linear_estimator, heuristics)
    rows = [
        {
            COLUMNS.model: candidate.model.kind.value,
            COLUMNS.equation: str(candidate.model),
            COLUMNS.determination: candidate.determination,
            COLUMNS.score: candidate.score,
            COLUMNS.selected: candidate.model is result.model,
        }
        for candidate in result.candidates
    ]
    return pd.DataFrame(
        rows,
        columns=[
            COLUMNS.model,
            COLUMNS.equation,
            COLUMNS.determination,
            COLUMNS.score,
            COLUMNS.selected,
        ],
    )


FIT_METHODS = ("auto", "polynomial", "power", "exponential")


@dataclass(frozen=True)
class FitSelection:
    """Which fit :func:`regression` runs.

    Attributes:
        method: ``auto`` (best fit), ``polynomial``, ``power`` or
            ``exponential``.
        degree: Polynomial degree; only used by ``polynomial``.
        estimator: Straight-line estimator. Theil-Sen can only be combined
            with lines (degree 1), power, exponential and ``auto``.
    """

    method: str = "auto"
    degree: int = 1
    estimator: LinearEstimator = field(default_factory=LinearOls)

    def __post_init__(self) -> None:
        if self.method not in FIT_METHODS:
            raise ValueError(
                f"Unknown fit method {self.method!r}; expected one of {FIT_METHODS}."
            )
        if self.degree < 0:
            raise ValueError(f"Polynomial degree must be >= 0, got {self.degree}.")
        if (
            self.method == "polynomial"
            and self.degree != 1
            and not isinstance(self.estimator, LinearOls)
        ):
            raise ValueError("Only ordinary least squares fits polynomials of degree != 1.")

    @classmethod
    def auto(cls, estimator: Optional[LinearEstimator] = None) -> "FitSelection":
        return cls("auto", estimator=estimator or LinearOls())

    @classmethod
    def linear(cls, estimator: Optional[LinearEstimator] = None) -> "FitSelection":
        return cls("polynomial", 1, estimator or LinearOls())

    @classmethod
    def theil_sen(cls) -> "FitSelection":
        return cls.linear(LinearTheilSen())

    @classmethod
    def polynomial(cls, degree: int) -> "FitSelection":
        return cls("polynomial", degree)

    @classmethod
    def power(cls, estimator: Optional[LinearEstimator] = None) -> "FitSelection":
        return cls("power", estimator=estimator or LinearOls())

    @classmethod
    def exponential(cls, estimator: Optional[LinearEstimator] = None) -> "FitSelection":
        return cls("exponential", estimator=estimator or LinearOls())


@dataclass(frozen=True)
class Regression:
    """A fitted model and its R² on the data it was fitted to."""

    model: DynModel
    determination: float

    def predict_outcome(self, predictor: float) -> float:
        return self.model.predict_outcome(predictor)

    def __str__(self) -> str:
        return f"Determination: {self.determination}, Predicted equation: {self.model}"


def regression(
    predictors: Sequence[float],
    outcomes: Sequence[float],
    selection: Optional[FitSelection] = None,
    heuristics: BestFitHeuristics = DEFAULT_HEURISTICS,
) -> Regression:
    """Fit the model described by ``selection`` (best fit by default).

    Raises:
        LengthMismatchError, InsufficientDataError, SingularMatrixError: From
            the selected fitter.
    """
    selection = selection if selection is not None else FitSelection.auto()
    x_arr = np.asarray(predictors, dtype=float)
    y_arr = np.asarray(outcomes, dtype=float)

    if selection.method == "auto":
        result = best_fit(x_arr, y_arr, selection.estimator, heuristics)
        return Regression(model=result.model, determination=result.determination)

    if selection.method == "power":
        model = DynModel(power(x_arr, y_arr, selection.estimator))
    elif selection.method == "exponential":
        model = DynModel(exponential(x_arr, y_arr, selection.estimator))
    elif selection.degree == 1:
        model = DynModel(
            selection.estimator.model(x_arr, y_arr), kind=selection.estimator.kind
        )
    else:
        model = DynModel(polynomial(x_arr, y_arr, selection.degree))

    r2 = model.determination(x_arr, y_arr)
    logging.info("Fitted %s model %s (R²=%.6f)", model.kind.value, model, r2)
    return Regression(model=model, determination=r2)
