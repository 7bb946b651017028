"""Equation classification.

``classify`` maps an equation and a variable of interest to one member of the
closed ``EquationType`` set. It is a pure function of its inputs. Every
check is structural: derivative markers are ``Derivative`` nodes or function
applications whose registered properties carry ``differential_marker``, and
transcendence comes from the ``transcendental`` registry flag. Function name
strings are never compared.

Precedence:
    1. partial derivative markers (two or more independent variables)
    2. ordinary derivative markers
    3. systems of several equations (a one-equation system is classified
       as its equation)
    4. noncommutative (matrix / operator) equations
    5. polynomial degree in the variable (0 to 4)
    6. transcendental occurrences of the variable
    7. Unknown
"""

from __future__ import annotations

from typing import Iterable, Union

from .expression import (
    Derivative,
    Equation,
    EquationSystem,
    Expression,
    Function,
    Power,
    Product,
    Sum,
    Symbol,
    as_expression,
    contains,
    free_symbols,
    is_commutative,
    is_zero,
    polynomial_coefficients,
    walk,
    zero_form,
)
from .logging_config import get_logger
from .registry import FunctionRegistry, default_registry
from .types import EquationType

logger = get_logger("classifier")

EquationLike = Union[Expression, Equation, EquationSystem]

_DEGREE_TYPES = {
    0: EquationType.CONSTANT,
    1: EquationType.LINEAR,
    2: EquationType.QUADRATIC,
    3: EquationType.CUBIC,
    4: EquationType.QUARTIC,
}

_DESCRIPTIONS = {
    EquationType.CONSTANT: "no dependence on the variable; identity or contradiction",
    EquationType.LINEAR: "polynomial equation of degree 1",
    EquationType.QUADRATIC: "polynomial equation of degree 2",
    EquationType.CUBIC: "polynomial equation of degree 3",
    EquationType.QUARTIC: "polynomial equation of degree 4",
    EquationType.POLYNOMIAL_SYSTEM: "system of polynomial equations in several unknowns",
    EquationType.GENERAL_SYSTEM: "system of non-polynomial equations in several unknowns",
    EquationType.TRANSCENDENTAL: "the variable appears inside a transcendental function or an exponent",
    EquationType.MATRIX: "equation in noncommutative (matrix or operator) symbols",
    EquationType.ORDINARY_DIFFERENTIAL: "derivatives with respect to one independent variable",
    EquationType.PARTIAL_DIFFERENTIAL: "derivatives with respect to two or more independent variables",
    EquationType.UNKNOWN: "structure not covered by any solver family",
}


def _sides(equation: Union[Expression, Equation]) -> tuple[Expression, ...]:
    if isinstance(equation, Equation):
        return (equation.lhs, equation.rhs)
    return (as_expression(equation),)


def _nodes(equation: EquationLike) -> Iterable[Expression]:
    if isinstance(equation, EquationSystem):
        for item in equation.equations:
            yield from _nodes(item)
        return
    for side in _sides(equation):
        yield from walk(side)


def derivative_markers(
    equation: EquationLike, registry: FunctionRegistry | None = None
) -> list[Expression]:
    """All derivative-marker sub-expressions, in traversal order."""
    if registry is None:
        registry = default_registry()
    markers = []
    for node in _nodes(equation):
        if isinstance(node, Derivative):
            markers.append(node)
        elif isinstance(node, Function) and registry.is_differential_marker(node.name):
            markers.append(node)
    return markers


def independent_variables(
    marker: Expression, registry: FunctionRegistry | None = None
) -> frozenset[Symbol]:
    """Independent variables of one derivative marker."""
    if isinstance(marker, Derivative):
        return marker.independent_variables
    if isinstance(marker, Function):
        return frozenset(a for a in marker.args[1:] if isinstance(a, Symbol))
    return frozenset()


def has_noncommutative_symbols(equation: EquationLike) -> bool:
    return any(
        isinstance(node, Symbol) and not node.commutative for node in _nodes(equation)
    )


def _top_level_terms(side: Expression) -> tuple[Expression, ...]:
    return side.terms if isinstance(side, Sum) else (side,)


def _is_matrix_equation(equation: Union[Expression, Equation]) -> bool:
    """Every non-zero top-level term on every side carries a noncommutative factor."""
    terms = [
        term
        for side in _sides(equation)
        for term in _top_level_terms(side)
        if not is_zero(term)
    ]
    return bool(terms) and all(not is_commutative(term) for term in terms)


def is_polynomial_in(expr: Expression, variables: Iterable[Symbol]) -> bool:
    """True if ``expr`` is a polynomial jointly in ``variables``."""
    variables = list(variables)
    parts = [expr]
    for variable in variables:
        next_parts = []
        for part in parts:
            coefficients = polynomial_coefficients(part, variable)
            if coefficients is None:
                return False
            next_parts.extend(coefficients.values())
        parts = next_parts
    return all(not any(contains(p, v) for v in variables) for p in parts)


def polynomial_degree(expr: Expression, variable: Symbol) -> int | None:
    """Degree of ``expr`` in ``variable`` after expansion, None if not polynomial."""
    coefficients = polynomial_coefficients(expr, variable)
    if coefficients is None:
        return None
    return max(coefficients, default=0)


def _is_transcendental_in(
    expr: Expression, variable: Symbol, registry: FunctionRegistry
) -> bool:
    for node in walk(expr):
        if (
            isinstance(node, Function)
            and registry.is_transcendental(node.name)
            and any(contains(arg, variable) for arg in node.args)
        ):
            return True
        if isinstance(node, Power) and contains(node.exponent, variable):
            return True
    return False


def _has_opaque_dependence(
    expr: Expression, variable: Symbol, registry: FunctionRegistry
) -> bool:
    """The variable sits inside a function the registry knows nothing about."""
    return any(
        isinstance(node, Function)
        and node.name not in registry
        and contains(node, variable)
        for node in walk(expr)
    )


def default_variable(equation: EquationLike) -> Symbol | None:
    """The unknown to solve for when the caller names none.

    In a matrix or operator equation this is the noncommutative symbol that
    appears in the most noncommutative products, the later name winning a
    tie (``X`` in ``A*X = B``). Otherwise it is the alphabetically first
    free symbol. Closed equations give None.
    """
    symbols = sorted(free_symbols(equation), key=lambda s: (s.name, s.kind.value))
    if not symbols:
        return None
    noncommutative = [s for s in symbols if not s.commutative]
    if noncommutative and not isinstance(equation, EquationSystem):
        expr = zero_form(equation)
        terms = expr.terms if isinstance(expr, Sum) else (expr,)
        products = [t for t in terms if _noncommutative_factor_count(t) >= 2]
        return max(
            noncommutative,
            key=lambda s: (sum(contains(t, s) for t in products), s.name),
        )
    return symbols[0]


def _noncommutative_factor_count(term: Expression) -> int:
    if not isinstance(term, Product):
        return 0
    return sum(1 for factor in term.factors if not is_commutative(factor))


def classify(
    equation: EquationLike,
    variable: Symbol | None = None,
    registry: FunctionRegistry | None = None,
) -> EquationType:
    """Classify an equation into its solver family.

    Args:
        equation: Expression (implicitly ``= 0``), Equation or EquationSystem
        variable: Variable of interest; defaults to the first free symbol
        registry: Function registry consulted for marker and transcendence flags

    Returns:
        The EquationType tag; ``Unknown`` is a valid answer, never an error
    """
    if registry is None:
        registry = default_registry()

    markers = derivative_markers(equation, registry)
    if markers:
        variables: frozenset[Symbol] = frozenset()
        for marker in markers:
            variables |= independent_variables(marker, registry)
        if len(variables) >= 2:
            return EquationType.PARTIAL_DIFFERENTIAL
        if len(variables) == 1:
            return EquationType.ORDINARY_DIFFERENTIAL

    if isinstance(equation, EquationSystem):
        if len(equation) == 1:
            return classify(equation.equations[0], variable, registry)
        return _classify_system(equation)

    if has_noncommutative_symbols(equation):
        if _is_matrix_equation(equation):
            return EquationType.MATRIX
        return EquationType.UNKNOWN

    if variable is None:
        variable = default_variable(equation)
    expr = zero_form(equation)
    if variable is None:
        return EquationType.CONSTANT

    degree = polynomial_degree(expr, variable)
    if degree is not None:
        equation_type = _DEGREE_TYPES.get(degree, EquationType.UNKNOWN)
        if equation_type is EquationType.UNKNOWN:
            logger.debug("Degree %d polynomial has no solver family", degree)
        return equation_type

    if _has_opaque_dependence(expr, variable, registry):
        return EquationType.UNKNOWN
    if _is_transcendental_in(expr, variable, registry):
        return EquationType.TRANSCENDENTAL
    return EquationType.UNKNOWN


def _classify_system(system: EquationSystem) -> EquationType:
    unknowns = sorted(free_symbols(system), key=lambda s: s.name)
    if all(is_polynomial_in(zero_form(eq), unknowns) for eq in system.equations):
        return EquationType.POLYNOMIAL_SYSTEM
    return EquationType.GENERAL_SYSTEM


def describe(equation_type: EquationType, degree: int | None = None) -> str:
    """Human-readable sentence for an explanation step."""
    text = _DESCRIPTIONS[equation_type]
    if equation_type is EquationType.UNKNOWN and degree is not None and degree > 4:
        text = f"polynomial of degree {degree}; no closed-form solver for degree above 4"
    return f"recognized as {equation_type.value}: {text}"
