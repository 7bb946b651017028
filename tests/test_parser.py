"""Tests for text parsing and input validation."""

import unittest

from aljabar_pkg.expression import (
    HALF,
    PI,
    Equation,
    EquationSystem,
    Function,
    Number,
    Power,
    SymbolKind,
    diff,
    equation,
    evaluate,
    func,
    matrix_symbol,
    symbols,
)
from aljabar_pkg.parser import (
    ExpressionParser,
    expand_primes,
    is_balanced,
    parse_equation,
    parse_expression,
    parse_system,
    split_top_level_commas,
    validate_input,
)
from aljabar_pkg.types import ParseError, ValidationError

x, y = symbols("x y")


class TestPreprocessing(unittest.TestCase):
    def test_is_balanced(self):
        self.assertEqual(is_balanced("f(x[1])"), (True, None))
        self.assertEqual(is_balanced("(x"), (False, 0))
        self.assertEqual(is_balanced("x)"), (False, 1))
        self.assertEqual(is_balanced("(x]"), (False, 2))

    def test_split_top_level_commas(self):
        self.assertEqual(
            split_top_level_commas("x+y=3, beta(x, y)=1"), ["x+y=3", "beta(x, y)=1"]
        )
        self.assertEqual(split_top_level_commas(" , x ,"), ["x"])

    def test_expand_primes(self):
        self.assertEqual(expand_primes("y' = y"), "diff(y, x) = y")
        self.assertEqual(expand_primes("y'' + y"), "diff(y, x, x) + y")
        self.assertEqual(expand_primes("u' = u", "t"), "diff(u, t) = u")

    def test_validate_input_strips(self):
        self.assertEqual(validate_input("  x + 1 "), "x + 1")


class TestParseExpression:
    def test_polynomial_with_implicit_multiplication(self):
        assert parse_expression("x^2 - 5x + 6") == x**2 - 5 * x + 6

    def test_registered_functions_stay_unevaluated(self):
        assert parse_expression("gamma(5)") == Function("gamma", (Number(5),))
        assert parse_expression("sin(pi/6)") == func("sin", Number(1) / 6 * PI)

    def test_sqrt_becomes_half_power(self):
        assert parse_expression("sqrt(x)") == Power(x, HALF)

    def test_rationals_are_exact(self):
        assert parse_expression("1/3") == Number(1) / 3

    def test_matrix_names_are_noncommutative(self):
        parser = ExpressionParser(matrices=["A", "X"])
        parsed = parser.parse_expression("A*X")
        assert parsed == matrix_symbol("A") * matrix_symbol("X")
        assert parser.symbol("A").kind is SymbolKind.MATRIX

    def test_names_never_imply_kind(self):
        assert parse_expression("A*X") == parse_expression("X*A")

    def test_operators(self):
        parser = ExpressionParser(operators=["H"])
        assert parser.symbol("H").kind is SymbolKind.OPERATOR


class TestParseEquation:
    def test_equation(self):
        assert parse_equation("2x + 1 = 5") == equation(2 * x + 1, 5)

    def test_double_equals(self):
        assert parse_equation("x == 1") == equation(x, 1)

    def test_no_equals_is_expression(self):
        assert parse_equation("x - 1") == x - 1

    def test_prime_notation(self):
        assert parse_equation("y' = y") == Equation(func("diff", y, x), y)

    def test_prime_notation_with_independent(self):
        t = symbols("t")[0]
        parsed = parse_equation("y' = y", independent="t")
        assert parsed == Equation(func("diff", y, t), y)

    def test_evaluated_prime_marker_is_derivative(self):
        parsed = parse_equation("y'' + y = 0")
        assert evaluate(parsed.lhs) == diff(y, x, x) + y


class TestParseSystem:
    def test_system(self):
        parsed = parse_system("x+y=3, x-y=1")
        assert isinstance(parsed, EquationSystem)
        assert parsed.equations == (equation(x + y, 3), equation(x - y, 1))

    def test_commas_inside_calls_do_not_split(self):
        parsed = parse_system("beta(x, 2) = 1")
        assert len(parsed) == 1
