"""Rendering of expressions, equations and systems.

Plain text follows SymPy's ``str`` conventions (``x**2 - 5*x + 6``) so that
rendered output can be fed back to the parser. LaTeX output goes through the
SymPy bridge.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Union

from .expression import (
    Constant,
    Derivative,
    Equation,
    EquationSystem,
    Expression,
    Function,
    Number,
    Power,
    Product,
    Sum,
    Symbol,
    is_commutative,
)

# Binding strength used to decide when parentheses are needed
PREC_SUM = 10
PREC_PRODUCT = 20
PREC_POWER = 30
PREC_ATOM = 40


def _format_number(value) -> str:
    if isinstance(value, Fraction):
        return f"{value.numerator}/{value.denominator}"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _precedence(expr: Expression) -> int:
    if isinstance(expr, Sum):
        return PREC_SUM
    if isinstance(expr, Product):
        return PREC_PRODUCT
    if isinstance(expr, Power):
        return PREC_POWER
    if isinstance(expr, Number):
        if isinstance(expr.value, Fraction):
            return PREC_PRODUCT
        if expr.value < 0:
            return PREC_SUM
    return PREC_ATOM


def _wrap(expr: Expression, min_prec: int) -> str:
    text = _render(expr)
    if _precedence(expr) < min_prec:
        return f"({text})"
    return text


def _total_degree(term: Expression) -> float:
    """Sum of numeric exponents of the symbols in a term (display order only)."""
    factors = term.factors if isinstance(term, Product) else (term,)
    degree = 0.0
    for factor in factors:
        if isinstance(factor, Symbol):
            degree += 1
        elif isinstance(factor, Power) and isinstance(factor.base, Symbol):
            if isinstance(factor.exponent, Number):
                degree += float(factor.exponent.value)
            else:
                degree += 1
        elif not isinstance(factor, Number):
            degree += 0.5
    return degree


def _split_sign(term: Expression) -> tuple[bool, Expression]:
    """Return (negative, magnitude) for display of a sum term."""
    if isinstance(term, Number) and term.value < 0:
        return True, Number(-term.value)
    if (
        isinstance(term, Product)
        and isinstance(term.factors[0], Number)
        and term.factors[0].value < 0
    ):
        coeff = -term.factors[0].value
        rest = term.factors[1:]
        if coeff == 1:
            return True, rest[0] if len(rest) == 1 else Product(rest)
        return True, Product((Number(coeff),) + rest)
    return False, term


def _render_sum(expr: Sum) -> str:
    # Highest degree first, like SymPy; constants last
    ordered = sorted(
        enumerate(expr.terms), key=lambda pair: (-_total_degree(pair[1]), pair[0])
    )
    parts: list[str] = []
    for position, (_, term) in enumerate(ordered):
        negative, magnitude = _split_sign(term)
        text = _wrap(magnitude, PREC_SUM + 1)
        if position == 0:
            parts.append(f"-{text}" if negative else text)
        else:
            parts.append(f" - {text}" if negative else f" + {text}")
    return "".join(parts)


def _render_product(expr: Product) -> str:
    numerator: list[Expression] = []
    denominator: list[Expression] = []
    sign = ""
    for factor in expr.factors:
        if isinstance(factor, Number) and factor.value == -1:
            sign = "-"
        elif (
            isinstance(factor, Power)
            and isinstance(factor.exponent, Number)
            and factor.exponent.value < 0
            and factor.base.__class__ is not Number
            and is_commutative(factor)
        ):
            inverted = Number(-factor.exponent.value)
            denominator.append(
                factor.base if inverted.value == 1 else Power(factor.base, inverted)
            )
        else:
            numerator.append(factor)

    if numerator and isinstance(numerator[0], Number) and numerator[0].value < 0:
        sign = "-" if not sign else ""
        numerator[0] = Number(-numerator[0].value)
        if numerator[0].value == 1 and len(numerator) > 1:
            numerator.pop(0)

    top = "*".join(_wrap(f, PREC_PRODUCT) for f in numerator) or "1"
    if not denominator:
        return f"{sign}{top}"
    bottom = "*".join(_wrap(f, PREC_PRODUCT) for f in denominator)
    if len(denominator) > 1:
        bottom = f"({bottom})"
    return f"{sign}{top}/{bottom}"


def _render(expr: Expression) -> str:
    if isinstance(expr, Number):
        return _format_number(expr.value)
    if isinstance(expr, Constant):
        return expr.name
    if isinstance(expr, Symbol):
        return expr.name
    if isinstance(expr, Sum):
        return _render_sum(expr)
    if isinstance(expr, Product):
        return _render_product(expr)
    if isinstance(expr, Power):
        exponent = expr.exponent
        if isinstance(exponent, Number) and exponent.value == Fraction(1, 2):
            return f"sqrt({_render(expr.base)})"
        return f"{_wrap(expr.base, PREC_POWER + 1)}**{_wrap(exponent, PREC_POWER + 1)}"
    if isinstance(expr, Function):
        return f"{expr.name}({', '.join(_render(a) for a in expr.args)})"
    if isinstance(expr, Derivative):
        variables = ", ".join(v.name for v in expr.variables)
        return f"Derivative({_render(expr.expr)}, {variables})"
    return repr(expr)


def to_string(expr: Union[Expression, Equation, EquationSystem]) -> str:
    """Plain-text rendering; total over every well-formed tree."""
    if isinstance(expr, Equation):
        return f"{_render(expr.lhs)} = {_render(expr.rhs)}"
    if isinstance(expr, EquationSystem):
        return "{" + ", ".join(to_string(eq) for eq in expr.equations) + "}"
    return _render(expr)


def to_latex(expr: Union[Expression, Equation, EquationSystem]) -> str:
    """LaTeX rendering through SymPy's printer."""
    import sympy as sp

    from .bridge import to_sympy

    if isinstance(expr, Equation):
        return sp.latex(sp.Eq(to_sympy(expr.lhs), to_sympy(expr.rhs), evaluate=False))
    if isinstance(expr, EquationSystem):
        return r",\ ".join(to_latex(eq) for eq in expr.equations)
    return sp.latex(to_sympy(expr))


def format_solutions(solutions) -> str:
    """Comma-separated rendering of a solution list."""
    return ", ".join(to_string(s) for s in solutions)
