"""Failure modes: solver incapacity is data, never an exception."""

from unittest.mock import patch

import pytest

from aljabar_pkg.api import solve_equation
from aljabar_pkg.differential import ODESolver
from aljabar_pkg.dispatcher import SolverDispatcher
from aljabar_pkg.expression import (
    div,
    equation,
    func,
    matrix_symbol,
    power,
    symbols,
)
from aljabar_pkg.solver import LinearSolver, PolynomialSolver
from aljabar_pkg.types import ResultKind

x, y = symbols("x y")
A, X = matrix_symbol("A"), matrix_symbol("X")


@pytest.mark.parametrize(
    "eq, var",
    [
        (x**5 - x - 1, x),
        (func("f", x) - 1, x),
        (div(1, x) - 2, x),
        (equation(A * X, x), X),
        (equation(power(x, y), 2), x),
    ],
)
def test_dispatcher_never_raises(eq, var):
    result, explanation = SolverDispatcher().solve_with_explanation(eq, var)
    assert result.kind in set(ResultKind)
    assert explanation.titles()[0] == "Equation Analysis"


def test_wrong_family_is_unsupported():
    assert LinearSolver().solve(x**2 - 1, x).is_unsupported


def test_leaf_failure_adds_solver_failure_step():
    with patch("aljabar_pkg.solver.sp.roots", side_effect=NotImplementedError("no roots")):
        result, explanation = PolynomialSolver().solve_with_explanation(x**3 - 2, x)
    assert result.is_unsupported
    assert "no roots" in result.reason
    assert explanation.titles()[-1] == "Solver Failure"


def test_ode_without_method_is_unsupported():
    with patch("aljabar_pkg.differential.sp.classify_ode", return_value=()):
        result, explanation = ODESolver().solve_with_explanation(
            equation(func("diff", y, x), y)
        )
    assert result.is_unsupported
    assert explanation.find("ODE Classification").body == "no matching method"


def test_unsupported_results_are_still_ok_reports():
    report = solve_equation("x^5 - x - 1 = 0")
    assert report.ok
    assert report.result_type == "unsupported"
    assert report.equation_type == "Unknown"


def test_parse_failures_are_reported():
    report = solve_equation("x +* 1 = 0")
    assert not report.ok
    assert report.error
