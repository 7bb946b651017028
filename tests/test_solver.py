"""Tests for the single-variable solver families."""

import unittest
from unittest.mock import patch

import pytest

from aljabar_pkg.expression import (
    I,
    Number,
    equation,
    func,
    mul,
    neg,
    power,
    symbols,
)
from aljabar_pkg.solver import (
    ConstantSolver,
    LinearSolver,
    PolynomialSolver,
    QuadraticSolver,
    TranscendentalSolver,
    numeric_value,
    order_solutions,
)
from aljabar_pkg.types import EquationType, ResultKind

x, y, a = symbols("x y a")


class TestConstantSolver(unittest.TestCase):
    def setUp(self):
        self.solver = ConstantSolver()

    def test_identity_is_infinite(self):
        result = self.solver.solve(equation(x + 1, x + 1), x)
        self.assertTrue(result.is_infinite)
        self.assertIsNone(result.solution_count())

    def test_contradiction_is_no_solution(self):
        result, explanation = self.solver.solve_with_explanation(equation(2, 3), x)
        self.assertTrue(result.is_no_solution)
        self.assertEqual(result.solution_count(), 0)
        self.assertIn("Contradiction", explanation.titles())

    def test_symbolic_condition_is_unsupported(self):
        result = self.solver.solve(equation(y, 1), x)
        self.assertTrue(result.is_unsupported)
        self.assertIn("y - 1 = 0", result.reason)


class TestLinearSolver:
    def test_numeric_coefficients(self):
        result, explanation = LinearSolver().solve_with_explanation(equation(2 * x + 1, 5), x)
        assert result.kind is ResultKind.SOLUTIONS
        assert result.solutions == (Number(2),)
        assert explanation.titles() == ["Coefficients", "Isolate Variable"]

    def test_fractional_solution(self):
        result = LinearSolver().solve(3 * x - 1, x)
        assert str(result.solutions[0]) == "1/3"

    def test_symbolic_coefficient_records_assumption(self):
        result, explanation = LinearSolver().solve_with_explanation(a * x + 1, x)
        assert result.solutions == (neg(power(a, -1)),)
        assert result.reason == "assuming a != 0"
        assert explanation.find("Assumption") is not None

    def test_non_linear_input_is_reported_not_raised(self):
        result = LinearSolver().solve(func("sin", x), x)
        assert result.is_unsupported

    def test_can_solve(self):
        assert LinearSolver().can_solve(2 * x + 1, x)
        assert not LinearSolver().can_solve(x**2, x)


class TestQuadraticSolver:
    def test_two_real_roots(self):
        result, explanation = QuadraticSolver().solve_with_explanation(
            x**2 - 5 * x + 6, x
        )
        assert result.solutions == (Number(2), Number(3))
        assert explanation.titles() == [
            "Coefficients",
            "Discriminant",
            "Root Nature",
            "Quadratic Formula",
        ]
        assert "two distinct real roots" in explanation.find("Root Nature").body

    def test_double_root(self):
        result, explanation = QuadraticSolver().solve_with_explanation(x**2 - 2 * x + 1, x)
        assert result.solutions == (Number(1),)
        assert explanation.find("Double Root") is not None

    def test_complex_roots(self):
        result, explanation = QuadraticSolver().solve_with_explanation(x**2 + 1, x)
        assert set(result.solutions) == {I, mul(-1, I)}
        assert "complex conjugate" in explanation.find("Root Nature").body

    def test_irrational_roots(self):
        result = QuadraticSolver().solve(x**2 - 2, x)
        values = [numeric_value(s).real for s in result.solutions]
        assert values == pytest.approx([-(2**0.5), 2**0.5])

    def test_symbolic_leading_coefficient_records_assumption(self):
        result, explanation = QuadraticSolver().solve_with_explanation(a * x**2 + x, x)
        assert result.is_solutions
        assert Number(0) in result.solutions
        assert neg(power(a, -1)) in result.solutions
        assert result.reason == "assuming a != 0"
        assert explanation.find("Assumption").body == "a != 0"

    def test_numeric_leading_coefficient_has_no_assumption(self):
        result, explanation = QuadraticSolver().solve_with_explanation(2 * x**2 - 8, x)
        assert result.reason is None
        assert explanation.find("Assumption") is None


class TestPolynomialSolver:
    def test_cubic_rational_roots(self):
        result, explanation = PolynomialSolver().solve_with_explanation(
            x**3 - 6 * x**2 + 11 * x - 6, x
        )
        assert result.solutions == (Number(1), Number(2), Number(3))
        assert "1, 2, 3" in explanation.find("Rational Root Search").body

    def test_cubic_with_complex_roots(self):
        result = PolynomialSolver().solve(x**3 - 1, x)
        assert result.is_solutions
        assert len(result.solutions) == 3
        assert result.solutions[0] == Number(1)

    def test_quartic(self):
        result = PolynomialSolver().solve(x**4 - 5 * x**2 + 4, x)
        assert result.solutions == (Number(-2), Number(-1), Number(1), Number(2))

    def test_symbolic_leading_coefficient_records_assumption(self):
        result, explanation = PolynomialSolver().solve_with_explanation(a * x**3 - a * x, x)
        assert result.is_solutions
        assert "assuming a != 0" in result.reason
        assert explanation.find("Assumption").body == "a != 0"

    def test_numeric_roots_when_closed_forms_are_missing(self):
        with patch("aljabar_pkg.solver.sp.roots", return_value={}):
            result, explanation = PolynomialSolver().solve_with_explanation(x**3 - x - 1, x)
        assert result.is_solutions
        assert "numerically" in result.reason
        assert len(result.solutions) == 3
        assert result.solutions[0].value == pytest.approx(1.3247179572)
        assert explanation.titles()[-1] == "Numeric Roots"

    def test_handles(self):
        assert PolynomialSolver.handles == frozenset(
            {EquationType.CUBIC, EquationType.QUARTIC}
        )


class TestTranscendentalSolver:
    def test_closed_form(self):
        result = TranscendentalSolver().solve(equation(func("exp", x), 2), x)
        assert result.is_solutions
        assert result.solutions == (func("ln", 2),)

    def test_periodic_equation_is_partial(self):
        result, explanation = TranscendentalSolver().solve_with_explanation(
            equation(func("sin", x), 0), x
        )
        assert result.is_partial
        assert Number(0) in result.solutions
        assert "period" in explanation.find("Periodicity").body

    def test_numeric_fallback(self):
        result, explanation = TranscendentalSolver(numeric_fallback=True).solve_with_explanation(
            x - func("cos", x), x
        )
        assert result.is_partial
        assert len(result.solutions) == 1
        assert float(result.solutions[0].value) == pytest.approx(0.739085, abs=1e-5)
        assert explanation.find("Numeric Search") is not None

    def test_numeric_fallback_disabled(self):
        result = TranscendentalSolver(numeric_fallback=False).solve(x - func("cos", x), x)
        assert result.is_unsupported
        assert "disabled" in result.reason

    def test_leaf_exception_becomes_unsupported(self):
        with patch("aljabar_pkg.solver.sp.solve", side_effect=RecursionError("too deep")):
            result, explanation = TranscendentalSolver().solve_with_explanation(
                x - func("cos", x), x
            )
        assert result.is_unsupported
        assert explanation.find("Solver Failure") is not None


class TestOrderSolutions:
    def test_duplicates_removed_and_sorted(self):
        assert order_solutions([Number(3), Number(1), Number(3)]) == [Number(1), Number(3)]

    def test_real_before_complex(self):
        assert order_solutions([I, Number(5)]) == [Number(5), I]

    def test_symbolic_solutions_keep_order(self):
        assert order_solutions([y, x]) == [y, x]
