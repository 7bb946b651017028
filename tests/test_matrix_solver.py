"""Tests for noncommutative (matrix / operator) equations."""

import unittest

from aljabar_pkg.expression import (
    Number,
    Power,
    Product,
    equation,
    matrix_symbol,
    operator_symbol,
    symbols,
)
from aljabar_pkg.matrix_solver import MatrixEquationSolver, inverse_of_product

x, = symbols("x")
A, B, C, X = (matrix_symbol(n) for n in "ABCX")


class TestMatrixEquationSolver(unittest.TestCase):
    def setUp(self):
        self.solver = MatrixEquationSolver()

    def test_left_division(self):
        result, explanation = self.solver.solve_with_explanation(equation(A * X, B), X)
        self.assertTrue(result.is_solutions)
        self.assertEqual(result.solutions, (Product((Power(A, Number(-1)), B)),))
        self.assertEqual(result.reason, "assuming A invertible")
        self.assertIn("Left Division", explanation.titles())

    def test_right_division(self):
        result = self.solver.solve(equation(X * A, B), X)
        self.assertEqual(result.solutions, (B * A**-1,))
        self.assertNotEqual(result.solutions[0], A**-1 * B)

    def test_two_sided(self):
        result, explanation = self.solver.solve_with_explanation(equation(A * X * C, B), X)
        self.assertEqual(result.solutions, (A**-1 * B * C**-1,))
        self.assertEqual(
            explanation.titles(),
            ["Matrix Equation", "Left Division", "Right Division", "Solution"],
        )

    def test_scalar_coefficient_divides_out(self):
        result = self.solver.solve(equation(2 * A * X, B), X)
        self.assertEqual(result.solutions, (A**-1 * (B / 2),))

    def test_operator_symbols(self):
        H, psi, phi = (operator_symbol(n) for n in ("H", "psi", "phi"))
        result = self.solver.solve(equation(H * psi, phi), psi)
        self.assertEqual(result.solutions, (H**-1 * phi,))

    def test_sylvester_form_is_unsupported(self):
        result, explanation = self.solver.solve_with_explanation(
            equation(A * X + X * B, C), X
        )
        self.assertTrue(result.is_unsupported)
        self.assertIn("Sylvester", result.reason)
        self.assertIn("Structure", explanation.titles())

    def test_nonlinear_unknown_is_unsupported(self):
        self.assertTrue(self.solver.solve(equation(X * X, B), X).is_unsupported)

    def test_commutative_unknown_is_unsupported(self):
        self.assertTrue(self.solver.solve(equation(A * X, B), x).is_unsupported)

    def test_absent_unknown_is_unsupported(self):
        self.assertTrue(self.solver.solve(equation(A, B), X).is_unsupported)


def test_inverse_of_product_reverses_order():
    assert inverse_of_product([A, B]) == B**-1 * A**-1
