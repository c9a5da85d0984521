import logging
import math

import numpy as np
import pytest

from clusterstats.errors import InsufficientDataError, SingularMatrixError
from clusterstats.regression import selection
from clusterstats.regression.selection import (
    BestFitHeuristics,
    FitSelection,
    best_fit,
    best_fit_ols,
    rank_candidates,
    regression,
)
from clusterstats.regression.models import ModelKind
from clusterstats.regression.theil_sen import LinearTheilSen
from clusterstats.schema import COLUMNS


def _square_law():
    x = np.arange(1.0, 11.0)
    return x, 2.0 * x**2


def test_power_law_selects_power_model():
    x, y = _square_law()
    result = best_fit_ols(x, y)
    assert result.model.kind == ModelKind.POWER
    assert np.isclose(result.model.model.e, 2.0)
    assert np.isclose(result.determination, 1.0)
    # power, exponential and the line
    assert len(result.candidates) == 3
    assert np.isclose(result.predict_outcome(12.0), 288.0)


def test_parabola_selects_second_degree_polynomial():
    x = np.arange(-10.0, 10.0)
    y = x**2 - 10.0 * x + 3.0
    result = best_fit(x, y)
    assert result.model.kind == ModelKind.POLYNOMIAL
    assert np.allclose(list(result.model.model), [3.0, -10.0, 1.0])
    kinds = [c.model.kind for c in result.candidates]
    assert kinds == [ModelKind.POLYNOMIAL, ModelKind.LINEAR]


def test_negative_line_selects_linear_model():
    x = np.arange(1.0, 11.0)
    y = -3.0 * x + 2.0
    result = best_fit(x, y)
    assert result.model.kind == ModelKind.LINEAR
    assert len(result.candidates) == 1

    robust = best_fit(x, y, LinearTheilSen())
    assert robust.model.kind == ModelKind.THEIL_SEN_LINEAR


def test_third_degree_is_only_tried_with_many_points():
    x = np.linspace(-5.0, 5.0, 60)
    y = x**3 - 2.0 * x
    result = best_fit(x, y)
    kinds = [c.model.kind for c in result.candidates]
    assert kinds == [ModelKind.POLYNOMIAL, ModelKind.POLYNOMIAL, ModelKind.LINEAR]
    assert result.model.model.degree == 3
    assert np.isclose(result.score, 0.94 * result.determination)


def test_constant_outcomes_still_return_a_model():
    result = best_fit([1.0, 2.0, 3.0, 4.0, 5.0], [5.0, 5.0, 5.0, 5.0, 5.0])
    assert math.isnan(result.determination)
    assert result.model is result.candidates[0].model


def test_linear_bump_can_override_other_models():
    x, y = _square_law()
    result = best_fit(x, y, heuristics=BestFitHeuristics(linear_bump=10.0))
    assert result.model.kind == ModelKind.LINEAR


def test_best_fit_needs_three_points():
    with pytest.raises(InsufficientDataError):
        best_fit([1.0, 2.0], [1.0, 2.0])


def test_singular_candidate_is_skipped_and_logged(caplog, monkeypatch):
    caplog.set_level(logging.WARNING)

    def singular(*args, **kwargs):
        raise SingularMatrixError("collinear")

    monkeypatch.setattr(selection, "polynomial", singular)
    x = np.arange(-10.0, 10.0)
    result = best_fit(x, 4.0 * x - 1.0)
    assert result.model.kind == ModelKind.LINEAR
    assert any(
        "Skipping degree-2 polynomial candidate" in rec.getMessage()
        for rec in caplog.records
    )


def test_best_fit_logs_selection(caplog):
    caplog.set_level(logging.INFO)
    x, y = _square_law()
    best_fit(x, y)
    assert any("Best fit: power" in rec.getMessage() for rec in caplog.records)


def test_rank_candidates_table():
    x, y = _square_law()
    table = rank_candidates(x, y)
    assert list(table.columns) == [
        COLUMNS.model,
        COLUMNS.equation,
        COLUMNS.determination,
        COLUMNS.score,
        COLUMNS.selected,
    ]
    assert list(table[COLUMNS.model]) == ["power", "exponential", "linear"]
    assert table[COLUMNS.selected].sum() == 1
    winner = table.loc[table[COLUMNS.selected], COLUMNS.model].iloc[0]
    assert winner == "power"


def test_fit_selection_validation():
    with pytest.raises(ValueError):
        FitSelection("spline")
    with pytest.raises(ValueError):
        FitSelection("polynomial", 2, LinearTheilSen())
    with pytest.raises(ValueError):
        FitSelection.polynomial(-1)
    assert FitSelection.theil_sen().degree == 1


def test_regression_defaults_to_best_fit():
    x, y = _square_law()
    result = regression(x, y)
    assert result.model.kind == ModelKind.POWER
    assert str(result).startswith("Determination: ")
    assert "Predicted equation: " in str(result)


def test_regression_with_explicit_selection():
    x = np.arange(-10.0, 10.0)
    quadratic = regression(x, x**2 + 1.0, FitSelection.polynomial(2))
    assert quadratic.model.kind == ModelKind.POLYNOMIAL
    assert np.isclose(quadratic.determination, 1.0)

    outliers = np.arange(1.0, 11.0)
    y = outliers.copy()
    y[-1] = 100.0
    robust = regression(outliers, y, FitSelection.theil_sen())
    assert robust.model.kind == ModelKind.THEIL_SEN_LINEAR
    assert robust.model.model.k == 1.0

    sq_x, sq_y = _square_law()
    assert np.isclose(regression(sq_x, sq_y, FitSelection.power()).model.model.e, 2.0)
    growth = regression(sq_x, 3.0 * 2.0**sq_x, FitSelection.exponential())
    assert growth.model.kind == ModelKind.EXPONENTIAL
    assert np.isclose(growth.model.model.b, 2.0)


def _candidate(result, kind):
    return next(c for c in result.candidates if c.model.kind == kind)


def _growth():
    x = np.arange(1.0, 11.0)
    return x, 3.0 * 2.0**x


def test_power_score_stacks_integer_and_fit_bumps():
    x, y = _square_law()
    power = _candidate(best_fit(x, y), ModelKind.POWER)
    assert np.isclose(power.determination, 1.0)
    assert np.isclose(power.score, 1.5 * 1.3 * 1.3)


def test_exponential_score_stacks_fit_bumps():
    x, y = _growth()
    exponential = _candidate(best_fit(x, y), ModelKind.EXPONENTIAL)
    assert np.isclose(exponential.determination, 1.0)
    assert np.isclose(exponential.score, 1.3 * 1.3)


def test_integer_exponent_tolerance_edge():
    x = np.arange(1.0, 11.0)

    near = _candidate(best_fit(x, x**2.14), ModelKind.POWER)
    assert np.isclose(near.model.model.e, 2.14)
    assert np.isclose(near.score, near.determination * 1.5 * 1.3 * 1.3)

    far = _candidate(best_fit(x, x**2.16), ModelKind.POWER)
    assert np.isclose(far.model.model.e, 2.16)
    assert np.isclose(far.score, far.determination * 1.3 * 1.3)


def test_fit_bumps_apply_strictly_above_thresholds(monkeypatch):
    x, y = _growth()
    expected = {
        0.79: 0.79,
        0.8: 0.8,
        0.81: 0.81 * 1.3,
        0.92: 0.92 * 1.3,
        0.93: 0.93 * 1.3 * 1.3,
    }
    for r2, score in expected.items():
        monkeypatch.setattr(selection, "determination", lambda model, xs, ys: r2)
        exponential = _candidate(best_fit(x, y), ModelKind.EXPONENTIAL)
        assert exponential.determination == r2
        assert np.isclose(exponential.score, score)


def test_tied_scores_keep_first_candidate(monkeypatch):
    monkeypatch.setattr(selection, "determination", lambda model, xs, ys: 0.5)
    x, y = _square_law()
    result = best_fit(x, y, heuristics=BestFitHeuristics(power_bump=1.0))
    assert [c.score for c in result.candidates] == [0.5, 0.5, 0.5]
    assert result.model.kind == ModelKind.POWER
    assert result.model is result.candidates[0].model
