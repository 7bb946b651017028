"""Tests for the system solver."""

from unittest.mock import patch

import pytest

from aljabar_pkg.expression import Number, equation, func, symbols, system
from aljabar_pkg.solver import numeric_value
from aljabar_pkg.systems import SystemSolver, as_system, unknowns_of
from aljabar_pkg.types import SolverError

x, y, z = symbols("x y z")


@pytest.fixture
def solver():
    return SystemSolver()


class TestLinearSystems:
    def test_unique_solution(self, solver):
        result, explanation = solver.solve_system_with_explanation(
            [equation(x + y, 3), equation(x - y, 1)]
        )
        assert result.is_solutions
        assert result.variables == (x, y)
        assert result.solutions == (Number(2), Number(1))
        assert result.points() == [{x: Number(2), y: Number(1)}]
        assert "Gaussian Elimination" in explanation.titles()
        assert "ok" in explanation.find("Verification").body

    def test_inconsistent(self, solver):
        result = solver.solve_system([equation(x + y, 1), equation(x + y, 2)])
        assert result.is_no_solution

    def test_underdetermined(self, solver):
        result = solver.solve_system([equation(x + y, 1)], [x, y])
        assert result.is_infinite

    def test_floating_coefficients_use_float_elimination(self, solver):
        result, explanation = solver.solve_system_with_explanation(
            [equation(0.5 * x + y, 2), equation(x - y, 1)]
        )
        assert result.is_solutions
        assert [s.value for s in result.solutions] == pytest.approx([2.0, 1.0])
        assert "Floating Point Elimination" in explanation.titles()
        assert "Gaussian Elimination" not in explanation.titles()

    def test_singular_float_system_falls_back_to_exact_elimination(self, solver):
        result, explanation = solver.solve_system_with_explanation(
            [equation(0.5 * x + 0.5 * y, 1), equation(x + y, 2)]
        )
        assert result.is_infinite
        assert "singular" in explanation.find("Floating Point Elimination").body.lower()

    def test_variable_order_follows_request(self, solver):
        result = solver.solve_system([equation(x + y, 3), equation(x - y, 1)], [y, x])
        assert result.variables == (y, x)
        assert result.solutions == (Number(1), Number(2))


class TestPolynomialSystems:
    def test_circle_and_line(self, solver):
        result = solver.solve_system([equation(x**2 + y**2, 2), equation(x, y)])
        assert result.is_solutions
        points = result.points()
        assert len(points) == 2
        assert {(p[x], p[y]) for p in points} == {
            (Number(-1), Number(-1)),
            (Number(1), Number(1)),
        }

    def test_groebner_one_means_no_solution(self):
        solver = SystemSolver(use_elimination=False)
        result, explanation = solver.solve_system_with_explanation(
            [equation(x + y, 1), equation(x + y, 2)]
        )
        assert result.is_no_solution
        assert "Inconsistent" in explanation.titles()

    def test_positive_dimensional_is_infinite(self):
        solver = SystemSolver(use_elimination=False)
        result = solver.solve_system([x * y, x * z], [x, y, z])
        assert result.is_infinite

    def test_linear_system_on_incomplete_multivariate_path_is_partial(self):
        solver = SystemSolver(use_elimination=False)
        with patch.object(
            SystemSolver, "_back_substitute", side_effect=SolverError("stuck")
        ):
            result, explanation = solver.solve_system_with_explanation(
                [equation(x + y, 3), equation(x - y, 1)]
            )
        assert result.is_partial
        assert not result.is_no_solution
        assert len(result.solutions) > 0
        assert "Groebner Basis" in explanation.titles()

    def test_back_substitution_failure_is_partial(self):
        solver = SystemSolver(use_elimination=False)
        with patch.object(
            SystemSolver, "_back_substitute", side_effect=SolverError("stuck")
        ):
            result = solver.solve_system([equation(x**2, y), equation(y, 4)])
        assert result.is_partial
        assert result.solutions
        assert "back-substitution incomplete" in result.reason


class TestGeneralSystems:
    def test_closed_form(self, solver):
        result = solver.solve_system([equation(func("exp", x), y), equation(y, 1)])
        assert result.is_solutions
        assert result.points() == [{x: Number(0), y: Number(1)}]

    def test_numeric_fallback_gives_one_point(self, solver):
        with patch("aljabar_pkg.systems.sp.solve", side_effect=NotImplementedError("no")):
            result = solver.solve_system(
                [equation(x, func("cos", y)), equation(y, func("sin", x))]
            )
        assert result.is_partial
        point = result.points()[0]
        assert numeric_value(point[x]).real == pytest.approx(0.7681691567, abs=1e-6)

    def test_numeric_fallback_disabled(self):
        solver = SystemSolver(numeric_fallback=False)
        with patch("aljabar_pkg.systems.sp.solve", return_value=[]):
            result = solver.solve_system(
                [equation(x, func("cos", y)), equation(y, func("sin", x))]
            )
        assert result.is_unsupported


class TestHelpers:
    def test_as_system(self):
        assert len(as_system(x + 1)) == 1
        assert len(as_system([x, y])) == 2
        eqs = system(x, y)
        assert as_system(eqs) is eqs

    def test_unknowns_of(self):
        assert unknowns_of(system(y + z, x)) == [x, y, z]
        assert unknowns_of(system(y + z, x), z) == [z, x, y]

    def test_no_unknowns(self, solver):
        assert solver.solve_system([equation(1, 1)]).is_unsupported
