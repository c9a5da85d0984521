import math

import numpy as np
import pytest

from clusterstats.errors import (
    InsufficientDataError,
    LengthMismatchError,
    SingularMatrixError,
)
from clusterstats.regression.models import (
    DynModel,
    LinearCoefficients,
    ModelKind,
    Predictive,
    determination,
)
from clusterstats.regression.ols import (
    LinearOls,
    PolynomialCoefficients,
    polynomial,
    polynomial_diagnostics,
)
from clusterstats.regression.precision import (
    DecimalBackend,
    FloatBackend,
    select_backend,
)


def test_ols_line_through_exact_points():
    line = LinearOls().model([1.0, 2.0, 3.0], [2.0, 4.0, 6.0])
    assert np.isclose(line.k, 2.0)
    assert np.isclose(line.m, 0.0, atol=1e-12)
    assert LinearOls.kind == ModelKind.LINEAR


def test_polynomial_recovers_exact_quadratic():
    x = np.arange(6, dtype=float)
    y = 1.0 + 2.0 * x + 3.0 * x**2
    fit = polynomial(x, y, 2)
    assert fit.degree == 2
    assert len(fit) == 3
    assert np.allclose(list(fit), [1.0, 2.0, 3.0])
    assert np.isclose(fit.predict_outcome(10.0), 321.0)


def test_equal_predictors_are_singular():
    with pytest.raises(SingularMatrixError):
        polynomial([3.0, 3.0, 3.0], [1.0, 2.0, 3.0], 1)
    with pytest.raises(SingularMatrixError):
        DecimalBackend().solve(np.array([2.0, 2.0, 2.0]), np.array([1.0, 2.0, 3.0]), 1)


def test_degree_needs_enough_points():
    with pytest.raises(InsufficientDataError):
        polynomial([1.0, 2.0], [1.0, 2.0], 2)
    with pytest.raises(ValueError):
        polynomial([1.0, 2.0, 3.0], [1.0, 2.0, 3.0], -1)


def test_length_mismatch_is_rejected():
    with pytest.raises(LengthMismatchError):
        polynomial([1.0, 2.0, 3.0], [1.0, 2.0], 1)
    with pytest.raises(LengthMismatchError):
        determination(LinearCoefficients(1.0, 0.0), [1.0, 2.0], [1.0])


def test_equation_rendering():
    assert str(LinearCoefficients(2.0, 0.0)) == "2.00000x + 0.00000"
    assert format(LinearCoefficients(1.5, -2.0), ".1") == "1.5x + -2.0"
    poly = PolynomialCoefficients((3.0, -2.0, 1.0))
    assert format(poly, ".2") == "1.00x^2 - 2.00x + 3.00"
    with pytest.raises(ValueError):
        format(poly, "e")


def test_decimal_backend_matches_float_backend():
    x = np.linspace(-3.0, 4.0, 12)
    y = np.sin(x) + 0.5 * x
    as_float = FloatBackend().solve(x, y, 3)
    as_decimal = DecimalBackend().solve(x, y, 3)
    assert np.allclose(as_float, as_decimal, rtol=1e-8, atol=1e-10)


def test_high_degree_uses_decimal_backend():
    assert isinstance(select_backend(3), FloatBackend)
    assert isinstance(select_backend(10), DecimalBackend)

    x = np.linspace(-1.0, 1.0, 15)
    true = np.arange(1.0, 12.0)
    y = np.polynomial.polynomial.polyval(x, true)
    fit = polynomial(x, y, 10)
    assert np.allclose(list(fit), true, atol=1e-5)


def test_decimal_backend_needs_enough_digits():
    with pytest.raises(ValueError):
        DecimalBackend(digits=10)


def test_polynomial_diagnostics_reports_uncertainty():
    x = np.arange(1.0, 7.0)
    y = 2.0 * x + 1.0 + np.array([0.1, -0.1, 0.05, -0.05, 0.0, 0.02])
    out = polynomial_diagnostics(x, y, 1)
    assert out["n"] == 6
    assert out["dof"] == 4
    assert out["r2"] > 0.99
    assert np.isclose(out["coefficients"][1], 2.0, atol=0.05)
    assert out["se"].shape == (2,)
    assert np.all(out["ci95"] > out["se"])
    assert out["p"][1] < 1e-3


def test_diagnostics_without_residual_dof_are_nan():
    out = polynomial_diagnostics([1.0, 2.0], [3.0, 5.0], 1)
    assert out["dof"] == 0
    assert np.all(np.isnan(out["se"]))


def test_determination_perfect_and_constant():
    line = LinearCoefficients(2.0, 1.0)
    x = [1.0, 2.0, 3.0, 4.0]
    assert determination(line, x, [3.0, 5.0, 7.0, 9.0]) == 1.0
    assert math.isnan(determination(line, x, [4.0, 4.0, 4.0, 4.0]))
    assert determination(line, x, [9.0, 7.0, 5.0, 3.0]) < 0.0


def test_dyn_model_delegates_to_coefficients():
    line = LinearCoefficients(2.0, 1.0)
    model = DynModel(line)
    assert isinstance(model, Predictive)
    assert model.kind == ModelKind.LINEAR
    assert model.predict_outcome(2.0) == 5.0
    assert str(model) == str(line)
    assert format(model, ".1") == "2.0x + 1.0"
    assert DynModel(line, kind=ModelKind.THEIL_SEN_LINEAR).kind == ModelKind.THEIL_SEN_LINEAR
    assert model.determination([0.0, 1.0, 2.0], [1.0, 3.0, 5.0]) == 1.0
