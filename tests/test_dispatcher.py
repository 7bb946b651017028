"""Tests for the solver dispatch core."""

import unittest

import pytest

from aljabar_pkg.cache_manager import SolveCache
from aljabar_pkg.dispatcher import SolverDispatcher
from aljabar_pkg.expression import (
    Number,
    diff,
    div,
    equation,
    func,
    matrix_symbol,
    symbols,
    system,
)
from aljabar_pkg.registry import FunctionRegistry
from aljabar_pkg.types import EquationType

x, y = symbols("x y")
A, B, X = (matrix_symbol(n) for n in "ABX")


@pytest.fixture
def dispatcher():
    return SolverDispatcher()


class TestDispatchTable(unittest.TestCase):
    def test_table_is_total(self):
        dispatcher = SolverDispatcher()
        for equation_type in EquationType:
            solver = dispatcher.solver_for(equation_type)
            if equation_type is EquationType.UNKNOWN:
                self.assertIsNone(solver)
            else:
                self.assertIsNotNone(solver)
                self.assertIn(equation_type, solver.handles)

    def test_one_instance_per_family(self):
        dispatcher = SolverDispatcher()
        names = [solver.name for solver in dispatcher.solvers]
        self.assertEqual(len(names), len(set(names)))
        self.assertIs(
            dispatcher.solver_for(EquationType.CUBIC),
            dispatcher.solver_for(EquationType.QUARTIC),
        )

    def test_can_solve(self):
        dispatcher = SolverDispatcher()
        self.assertTrue(dispatcher.can_solve(x**2 - 1, x))
        self.assertFalse(dispatcher.can_solve(x**5 - x - 1, x))


class TestDispatch:
    def test_steps_start_with_analysis_and_selection(self, dispatcher):
        result, explanation = dispatcher.solve_with_explanation(x**2 - 5 * x + 6, x)
        assert result.solutions == (Number(2), Number(3))
        assert explanation.titles() == [
            "Equation Analysis",
            "Solver Selection",
            "Coefficients",
            "Discriminant",
            "Root Nature",
            "Quadratic Formula",
        ]
        assert explanation.find("Equation Analysis").body.startswith("recognized as Quadratic")
        assert explanation.find("Solver Selection").body == "using QuadraticSolver for x"

    def test_unknown_is_unsupported_with_reason(self, dispatcher):
        result, explanation = dispatcher.solve_with_explanation(x**5 - x - 1, x)
        assert result.is_unsupported
        assert "Unknown" in result.reason
        assert "degree 5" in explanation.find("Equation Analysis").body
        assert explanation.find("Solver Selection").body == "no solver handles this equation type"
        assert len(explanation) == 2

    def test_default_variable(self, dispatcher):
        assert dispatcher.solve(equation(2 * x, 4)).solutions == (Number(2),)

    def test_transcendental_numeric_fallback(self):
        result = SolverDispatcher(numeric_fallback=True).solve(x - func("cos", x), x)
        assert result.is_partial
        assert float(result.solutions[0].value) == pytest.approx(0.739085, abs=1e-5)

    def test_numeric_fallback_off(self):
        result = SolverDispatcher(numeric_fallback=False).solve(x - func("cos", x), x)
        assert result.is_unsupported

    def test_matrix_equation(self, dispatcher):
        result = dispatcher.solve(equation(A * X, B), X)
        assert result.solutions == (A**-1 * B,)

    def test_matrix_equation_without_variable_solves_for_unknown(self, dispatcher):
        result, explanation = dispatcher.solve_with_explanation(equation(A * X, B))
        assert result.solutions == (A**-1 * B,)
        assert explanation.find("Solver Selection").body == "using MatrixEquationSolver for X"

    def test_literal_division_by_zero_is_reported(self, dispatcher):
        result, explanation = dispatcher.solve_with_explanation(
            equation(x + div(1, 0) - div(1, 0), 0), x
        )
        assert result.is_unsupported
        assert "division by zero" in result.reason
        assert explanation.titles() == ["Equation Analysis", "Domain Check"]

    def test_system_dividing_by_zero_is_reported(self, dispatcher):
        result = dispatcher.solve_system(
            [equation(x + y, div(1, 0)), equation(x - y, 1)], [x, y]
        )
        assert result.is_unsupported
        assert "division by zero" in result.reason

    def test_ode(self, dispatcher):
        result, explanation = dispatcher.solve_with_explanation(equation(diff(y, x), y))
        assert result.is_solutions
        assert explanation.titles()[:3] == [
            "Equation Analysis",
            "Solver Selection",
            "Differential Equation",
        ]

    def test_system_equation_goes_to_system_solver(self, dispatcher):
        result, explanation = dispatcher.solve_with_explanation(
            system(equation(x + y, 3), equation(x - y, 1))
        )
        assert result.points() == [{x: Number(2), y: Number(1)}]
        assert "SystemSolver" in explanation.find("Solver Selection").body

    def test_empty_registry_leaves_transcendental_unknown(self):
        dispatcher = SolverDispatcher(registry=FunctionRegistry())
        assert dispatcher.classify(func("sin", x) - x, x) is EquationType.UNKNOWN
        assert dispatcher.solve(func("sin", x) - x, x).is_unsupported


class TestSolveSystem:
    def test_explicit_variables(self, dispatcher):
        result, explanation = dispatcher.solve_system_with_explanation(
            [equation(x + y, 3), equation(x - y, 1)], [x, y]
        )
        assert result.solutions == (Number(2), Number(1))
        assert explanation.titles()[:2] == ["Equation Analysis", "Solver Selection"]
        assert explanation.find("Solver Selection").body == "using SystemSolver for x, y"

    def test_one_equation_system_delegates(self, dispatcher):
        result, explanation = dispatcher.solve_system_with_explanation([x**2 - 4], [x])
        assert result.solutions == (Number(-2), Number(2))
        assert "QuadraticSolver" in explanation.find("Solver Selection").body


class TestCaching:
    def test_hit_returns_equal_result_and_fresh_explanation(self):
        cache = SolveCache(8)
        dispatcher = SolverDispatcher(cache=cache)
        first_result, first_explanation = dispatcher.solve_with_explanation(x**2 - 1, x)
        second_result, second_explanation = dispatcher.solve_with_explanation(x**2 - 1, x)
        assert second_result == first_result
        assert second_explanation == first_explanation
        assert second_explanation is not first_explanation
        assert cache.stats()["hits"] == 1

        second_explanation.add("Extra", "caller-owned")
        third_result, third_explanation = dispatcher.solve_with_explanation(x**2 - 1, x)
        assert "Extra" not in third_explanation.titles()

    def test_key_includes_variable(self):
        cache = SolveCache(8)
        dispatcher = SolverDispatcher(cache=cache)
        dispatcher.solve(x + y, x)
        dispatcher.solve(x + y, y)
        assert len(cache) == 2
        assert cache.stats()["hits"] == 0

    def test_system_results_are_cached(self):
        cache = SolveCache(8)
        dispatcher = SolverDispatcher(cache=cache)
        equations = [equation(x + y, 3), equation(x - y, 1)]
        dispatcher.solve_system(equations, [x, y])
        dispatcher.solve_system(equations, [x, y])
        assert cache.stats()["hits"] == 1

    def test_exact_and_float_equations_are_cached_apart(self):
        cache = SolveCache(8)
        dispatcher = SolverDispatcher(cache=cache)
        exact = dispatcher.solve(equation(x, 2), x)
        floating = dispatcher.solve(equation(x, 2.0), x)
        assert exact.solutions == (Number(2),)
        assert isinstance(floating.solutions[0].value, float)
        assert cache.stats()["hits"] == 0
        assert len(cache) == 2

    def test_without_cache_nothing_is_shared(self):
        dispatcher = SolverDispatcher()
        _, first = dispatcher.solve_with_explanation(x - 1, x)
        _, second = dispatcher.solve_with_explanation(x - 1, x)
        assert first == second
        assert first is not second
