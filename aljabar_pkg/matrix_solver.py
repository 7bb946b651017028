"""Solver for linear equations in noncommutative (matrix / operator) symbols.

The unknown is isolated by division from the side it sits on:
    A*X = B  =>  X = A**-1 * B   (left division)
    X*A = B  =>  X = B * A**-1   (right division)
    A*X*C = B  =>  X = A**-1 * B * C**-1
For non-commuting A and B the left and right forms differ.
"""

from __future__ import annotations

from .expression import (
    Expression,
    Product,
    Sum,
    Symbol,
    add,
    contains,
    div,
    is_commutative,
    is_zero,
    mul,
    neg,
    power,
    zero_form,
)
from .formatter import format_solutions
from .logging_config import get_logger
from .solver import EquationSolver, simplify
from .types import EquationType, SolverResult

logger = get_logger("matrix_solver")


def inverse_of_product(factors) -> Expression:
    """``(F1*F2*...*Fn)**-1 = Fn**-1 * ... * F1**-1``."""
    return mul(*(power(f, -1) for f in reversed(list(factors))))


def _render(factors) -> str:
    return "*".join(str(f) for f in factors)


class MatrixEquationSolver(EquationSolver):
    """Linear equations ``c * L * X * R + rest = 0`` in a noncommutative unknown X."""

    name = "MatrixEquationSolver"
    handles = frozenset({EquationType.MATRIX})

    def _solve(self, equation, variable, explanation):
        if not isinstance(variable, Symbol) or variable.commutative:
            explanation.add(
                "Unknown", f"{variable} is not a matrix or operator symbol"
            )
            return SolverResult.unsupported(
                "the unknown of a matrix equation must be a noncommutative symbol"
            )

        expr = zero_form(equation)
        terms = expr.terms if isinstance(expr, Sum) else (expr,)
        with_unknown = [t for t in terms if contains(t, variable)]
        rest = [t for t in terms if not contains(t, variable)]
        if not with_unknown:
            return SolverResult.unsupported(f"{variable} does not appear in {equation}")
        if len(with_unknown) > 1:
            explanation.add(
                "Structure",
                f"{variable} appears in {len(with_unknown)} terms (Sylvester-type equation)",
            )
            return SolverResult.unsupported(
                f"{variable} appears in several terms; Sylvester-type equations are not supported"
            )

        term = with_unknown[0]
        factors = term.factors if isinstance(term, Product) else (term,)
        scalars = [f for f in factors if is_commutative(f)]
        ordered = [f for f in factors if not is_commutative(f)]
        positions = [i for i, f in enumerate(ordered) if contains(f, variable)]
        if len(positions) != 1 or ordered[positions[0]] != variable:
            explanation.add("Structure", f"{variable} appears nonlinearly in {term}")
            return SolverResult.unsupported(f"{variable} appears nonlinearly")

        index = positions[0]
        left, right = ordered[:index], ordered[index + 1 :]
        coefficient = simplify(mul(*scalars), self.registry)
        if is_zero(coefficient):
            return SolverResult.unsupported(f"coefficient of {variable} is zero")

        rhs = simplify(div(neg(add(*rest)), coefficient), self.registry)
        lhs_text = _render(left + [variable] + right)
        explanation.add("Matrix Equation", f"{lhs_text} = {rhs}")

        solution = rhs
        invertible = []
        if left:
            inverse_left = inverse_of_product(left)
            solution = mul(inverse_left, solution)
            invertible.append(_render(left))
            explanation.add(
                "Left Division",
                f"{_render(left)}*{variable} = B, so multiply on the left by {inverse_left}",
            )
        if right:
            inverse_right = inverse_of_product(right)
            solution = mul(solution, inverse_right)
            invertible.append(_render(right))
            explanation.add(
                "Right Division",
                f"{variable}*{_render(right)} = B, so multiply on the right by {inverse_right}",
            )

        explanation.add("Solution", f"{variable} = {format_solutions([solution])}")
        if invertible:
            return SolverResult.solutions_of(
                [solution], reason=f"assuming {', '.join(invertible)} invertible"
            )
        return SolverResult.solutions_of([solution])
