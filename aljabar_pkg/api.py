"""Public API for Aljabar - string input, structured reports out, no side effects."""

from __future__ import annotations

from typing import Iterable, Sequence

from .cache_manager import SolveCache
from .classifier import classify, default_variable, describe, polynomial_degree
from .config import NUMERIC_FALLBACK_ENABLED, OUTPUT_PRECISION
from .dispatcher import SolverDispatcher
from .expression import EquationSystem, Expression, Number, zero_form
from .parser import ExpressionParser
from .registry import FunctionRegistry, default_registry
from .solver import numeric_value
from .types import (
    ClassificationReport,
    EquationType,
    FunctionEvalReport,
    ParseError,
    SolveReport,
    SolverResult,
    ValidationError,
)


def format_number(value: complex | None, precision: int = OUTPUT_PRECISION) -> str | None:
    """Format a numeric approximation; None when there is nothing to show."""
    if value is None:
        return None
    real = f"{value.real:.{precision}g}"
    if abs(value.imag) < 10 ** (-precision):
        return real
    return f"{real}{value.imag:+.{precision}g}*I"


def _parser(
    registry: FunctionRegistry | None,
    matrices: Iterable[str],
    operators: Iterable[str],
) -> ExpressionParser:
    return ExpressionParser(registry=registry, matrices=matrices, operators=operators)


def _report(
    result: SolverResult,
    explanation,
    equation_type: EquationType,
    registry: FunctionRegistry,
    precision: int,
) -> SolveReport:
    exact = [str(s) for s in result.solutions]
    approx = [format_number(numeric_value(s, registry), precision) for s in result.solutions]
    points = None
    if result.variables:
        points = [
            {str(v): str(value) for v, value in point.items()} for point in result.points()
        ]
    return SolveReport(
        ok=True,
        equation_type=equation_type.value,
        result_type=result.kind.value,
        exact=exact,
        approx=approx,
        reason=result.reason,
        points=points,
        steps=explanation.to_dict(),
    )


def solve_equation(
    equation: str,
    find_var: str | None = None,
    *,
    matrices: Iterable[str] = (),
    operators: Iterable[str] = (),
    precision: int = OUTPUT_PRECISION,
    numeric_fallback: bool = NUMERIC_FALLBACK_ENABLED,
    registry: FunctionRegistry | None = None,
    cache: SolveCache | None = None,
) -> SolveReport:
    """Classify and solve a single equation.

    Args:
        equation: Equation string (e.g., "x^2 - 5x + 6 = 0", "y' = y")
        find_var: Optional variable to solve for (e.g., "x")
        matrices: Names to treat as matrix symbols
        operators: Names to treat as operator symbols

    Returns:
        SolveReport with the classification, result kind, solutions and steps

    Example:
        >>> from aljabar_pkg.api import solve_equation
        >>> report = solve_equation("x^2 - 5x + 6 = 0")
        >>> report.exact
        ['2', '3']
    """
    registry = default_registry() if registry is None else registry
    try:
        parser = _parser(registry, matrices, operators)
        parsed = parser.parse_equation(equation)
        variable = parser.symbol(find_var) if find_var else None
    except (ParseError, ValidationError) as e:
        return SolveReport(ok=False, error=str(e))

    dispatcher = SolverDispatcher(registry, cache, numeric_fallback=numeric_fallback)
    result, explanation = dispatcher.solve_with_equation(parsed, variable)
    equation_type = dispatcher.classify(parsed, variable)
    return _report(result, explanation, equation_type, registry, precision)


def solve_system(
    equations: str,
    find_vars: Sequence[str] | None = None,
    *,
    matrices: Iterable[str] = (),
    operators: Iterable[str] = (),
    precision: int = OUTPUT_PRECISION,
    numeric_fallback: bool = NUMERIC_FALLBACK_ENABLED,
    registry: FunctionRegistry | None = None,
    cache: SolveCache | None = None,
) -> SolveReport:
    """Solve a system of equations.

    Args:
        equations: Comma-separated equations (e.g., "x+y=3, x-y=1")
        find_vars: Unknowns to solve for; all free symbols by default

    Returns:
        SolveReport with one mapping per solution point in ``points``

    Example:
        >>> from aljabar_pkg.api import solve_system
        >>> solve_system("x+y=3, x-y=1").points
        [{'x': '2', 'y': '1'}]
    """
    registry = default_registry() if registry is None else registry
    try:
        parser = _parser(registry, matrices, operators)
        system = parser.parse_system(equations)
        variables = [parser.symbol(name) for name in find_vars] if find_vars else None
    except (ParseError, ValidationError) as e:
        return SolveReport(ok=False, error=str(e))

    dispatcher = SolverDispatcher(registry, cache, numeric_fallback=numeric_fallback)
    result, explanation = dispatcher.solve_system_with_explanation(system, variables)
    if len(system) == 1:
        first = variables[0] if variables else default_variable(system)
        equation_type = dispatcher.classify(system.equations[0], first)
    else:
        equation_type = dispatcher.classify(system)
    return _report(result, explanation, equation_type, registry, precision)


def classify_equation(
    equation: str,
    find_var: str | None = None,
    *,
    matrices: Iterable[str] = (),
    operators: Iterable[str] = (),
    registry: FunctionRegistry | None = None,
) -> ClassificationReport:
    """Classify an equation (or comma-separated system) without solving it."""
    registry = default_registry() if registry is None else registry
    try:
        parser = _parser(registry, matrices, operators)
        system = parser.parse_system(equation)
        variable = parser.symbol(find_var) if find_var else None
    except (ParseError, ValidationError) as e:
        return ClassificationReport(ok=False, error=str(e))

    parsed = system.equations[0] if len(system) == 1 else system
    equation_type = classify(parsed, variable, registry)
    degree = None
    if equation_type is EquationType.UNKNOWN and not isinstance(parsed, EquationSystem):
        target = variable or default_variable(parsed)
        if target is not None:
            degree = polynomial_degree(zero_form(parsed), target)
    return ClassificationReport(
        ok=True,
        equation_type=equation_type.value,
        description=describe(equation_type, degree),
    )


def evaluate_function(
    name: str,
    args: Sequence[str | int | float],
    *,
    registry: FunctionRegistry | None = None,
) -> FunctionEvalReport:
    """Evaluate a registered function through the registry.

    Args:
        name: Registered function name (e.g., "gamma", "zeta")
        args: Arguments as numbers or expression strings (e.g., ["1/2"])

    Returns:
        FunctionEvalReport with the exact form and/or numeric value

    Example:
        >>> from aljabar_pkg.api import evaluate_function
        >>> evaluate_function("gamma", [5]).exact
        '24'
    """
    registry = default_registry() if registry is None else registry
    if name not in registry:
        return FunctionEvalReport(ok=False, name=name, error=f"Unknown function '{name}'")
    try:
        parser = _parser(registry, (), ())
        parsed: list[Expression] = [
            parser.parse_expression(a) if isinstance(a, str) else Number(a) for a in args
        ]
    except (ParseError, ValidationError) as e:
        return FunctionEvalReport(ok=False, name=name, error=str(e))

    outcome = registry.evaluate(name, parsed)
    if outcome.is_undefined:
        return FunctionEvalReport(
            ok=False, name=name, kind=outcome.kind.value, error=f"{name} is undefined here"
        )
    if outcome.is_exact:
        value = numeric_value(outcome.exact, registry)
        numeric = value.real if value is not None and value.imag == 0 else None
        return FunctionEvalReport(
            ok=True, name=name, kind=outcome.kind.value, exact=str(outcome.exact), numeric=numeric
        )
    if outcome.is_numeric:
        return FunctionEvalReport(
            ok=True, name=name, kind=outcome.kind.value, numeric=outcome.numeric
        )
    return FunctionEvalReport(ok=True, name=name, kind=outcome.kind.value)
