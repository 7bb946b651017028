"""Solver capability contract and the single-variable solver families.

This module provides:
- ``EquationSolver``: the shared contract (solve, solve_with_explanation,
  can_solve) every solver family implements
- Constant, linear, quadratic, polynomial (cubic/quartic) and transcendental
  solvers

Solver incapacity is reported as data: a solver never raises on an equation
it cannot handle. Exceptions from leaf algorithms are translated into an
``Unsupported`` result with a "Solver Failure" step. A solver returns
``NoSolution`` only when non-existence is proven.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import sympy as sp
from sympy.polys.polyerrors import BasePolynomialError

from .bridge import from_sympy, to_sympy
from .classifier import EquationLike, classify, default_variable
from .config import (
    NUMERIC_FALLBACK_ENABLED,
    NUMERIC_SEARCH_RADIUS,
    NUMERIC_TOLERANCE,
    ROOT_DEDUP_TOLERANCE,
)
from .expression import (
    ZERO,
    Expression,
    Function,
    I,
    Number,
    Symbol,
    add,
    contains,
    div,
    evaluate,
    evaluate_float,
    expand,
    free_symbols,
    is_zero,
    mul,
    neg,
    polynomial_coefficients,
    power,
    sqrt,
    sub,
    walk,
    zero_form,
)
from .explanation import Explanation
from .formatter import format_solutions
from .logging_config import get_logger
from .numeric import find_real_roots, polynomial_roots
from .registry import FunctionRegistry, default_registry
from .types import DomainError, EquationType, SolverError, SolverResult

logger = get_logger("solver")

# Exceptions a leaf algorithm may raise; translated into results, never propagated
LEAF_ERRORS = (
    SolverError,
    DomainError,
    BasePolynomialError,
    NotImplementedError,
    ArithmeticError,
    ValueError,
    TypeError,
    RecursionError,
)


def simplify(expr: Expression, registry: FunctionRegistry | None = None) -> Expression:
    """Evaluate exact sub-expressions; leave the tree alone on a domain error."""
    try:
        return evaluate(expr, registry=registry)
    except DomainError:
        return expr


def numeric_value(expr: Expression, registry=None) -> Optional[complex]:
    """Complex value of a closed expression, or None if it has free symbols."""
    if free_symbols(expr):
        return None
    try:
        return complex(sp.N(to_sympy(expr, registry)))
    except (TypeError, ValueError, SolverError):
        return None


def order_solutions(solutions: Sequence[Expression], registry=None) -> List[Expression]:
    """Drop duplicates; sort numeric solutions, real ones first in ascending order."""
    unique: List[Expression] = []
    for solution in solutions:
        if solution not in unique:
            unique.append(solution)
    values = [numeric_value(s, registry) for s in unique]
    if any(v is None for v in values):
        return unique
    keyed = sorted(
        zip(values, unique),
        key=lambda pair: (abs(pair[0].imag) > NUMERIC_TOLERANCE, pair[0].real, pair[0].imag),
    )
    ordered: List[Expression] = []
    previous: Optional[complex] = None
    for value, solution in keyed:
        # Numerically coincident roots collapse unless both are distinct exact forms
        if (
            ordered
            and abs(value - previous) < ROOT_DEDUP_TOLERANCE
            and not (_is_exact_number(solution) and _is_exact_number(ordered[-1]))
        ):
            continue
        ordered.append(solution)
        previous = value
    return ordered


def _is_exact_number(expr: Expression) -> bool:
    return isinstance(expr, Number) and expr.is_exact


def _assume_nonzero(leading: Expression, explanation: Explanation) -> Optional[str]:
    """Record that a symbolic leading coefficient is taken to be non-zero."""
    if not free_symbols(leading):
        return None
    explanation.add("Assumption", f"{leading} != 0")
    return f"assuming {leading} != 0"


class EquationSolver(ABC):
    """Uniform capability contract shared by every solver family."""

    name = "EquationSolver"
    handles: frozenset[EquationType] = frozenset()

    def __init__(self, registry: FunctionRegistry | None = None):
        self.registry = default_registry() if registry is None else registry

    def solve(self, equation: EquationLike, variable: Symbol | None = None) -> SolverResult:
        return self.solve_with_explanation(equation, variable)[0]

    def solve_with_explanation(
        self, equation: EquationLike, variable: Symbol | None = None
    ) -> tuple[SolverResult, Explanation]:
        explanation = Explanation()
        if variable is None:
            variable = default_variable(equation)
        result = self._guarded(explanation, equation, self._solve, equation, variable)
        return result, explanation

    def _guarded(self, explanation: Explanation, subject, solve, *args) -> SolverResult:
        """Run ``solve(*args, explanation)``, translating leaf exceptions into a result."""
        try:
            result = solve(*args, explanation)
        except LEAF_ERRORS as e:
            logger.warning("%s failed on %s", self.name, subject, exc_info=True)
            explanation.add("Solver Failure", f"{self.name} could not finish: {e}")
            result = SolverResult.unsupported(f"{self.name} failed: {e}")
        logger.debug("%s: %s -> %s", self.name, subject, result.kind.value)
        return result

    def can_solve(self, equation: EquationLike, variable: Symbol | None = None) -> bool:
        return classify(equation, variable, self.registry) in self.handles

    @abstractmethod
    def _solve(
        self, equation: EquationLike, variable: Symbol | None, explanation: Explanation
    ) -> SolverResult:
        """Solve, appending steps to ``explanation``."""

    def _coefficients(self, equation, variable: Symbol) -> dict[int, Expression]:
        coefficients = polynomial_coefficients(zero_form(equation), variable)
        if coefficients is None:
            raise SolverError(f"{equation} is not a polynomial in {variable}")
        return {d: simplify(c, self.registry) for d, c in coefficients.items()}


class ConstantSolver(EquationSolver):
    """Equations that do not depend on the variable: identity or contradiction."""

    name = "ConstantSolver"
    handles = frozenset({EquationType.CONSTANT})

    def _solve(self, equation, variable, explanation):
        reduced = evaluate(zero_form(equation), registry=self.registry)
        explanation.add("Simplification", f"{equation} reduces to {reduced} = 0")
        target = f"every value of {variable}" if variable is not None else "every input"

        if is_zero(reduced):
            explanation.add("Identity", f"0 = 0 holds for {target}")
            return SolverResult.infinite(f"identity: holds for {target}")
        if isinstance(reduced, Number):
            explanation.add("Contradiction", f"{reduced} = 0 is false")
            return SolverResult.no_solution(f"contradiction: {reduced} = 0")

        # Identity/contradiction detection is the one place simplify() runs
        is_zero_value = sp.simplify(to_sympy(reduced, self.registry)).is_zero
        if is_zero_value is True:
            explanation.add("Identity", f"{reduced} simplifies to 0; holds for {target}")
            return SolverResult.infinite(f"identity: holds for {target}")
        if is_zero_value is False and not free_symbols(reduced):
            explanation.add("Contradiction", f"{reduced} is a non-zero constant")
            return SolverResult.no_solution(f"contradiction: {reduced} != 0")
        explanation.add(
            "Condition", f"holds for {target} exactly when {reduced} = 0"
        )
        return SolverResult.unsupported(f"holds for {target} only when {reduced} = 0")


class LinearSolver(EquationSolver):
    """``a*x + b = 0``."""

    name = "LinearSolver"
    handles = frozenset({EquationType.LINEAR})

    def _solve(self, equation, variable, explanation):
        coefficients = self._coefficients(equation, variable)
        if max(coefficients, default=0) != 1:
            return SolverResult.unsupported(f"{equation} is not linear in {variable}")
        a = coefficients[1]
        b = coefficients.get(0, ZERO)
        explanation.add("Coefficients", f"a*{variable} + b = 0 with a = {a}, b = {b}")

        solution = simplify(expand(div(neg(b), a)), self.registry)
        explanation.add("Isolate Variable", f"{variable} = -b/a = {solution}")
        return SolverResult.solutions_of([solution], reason=_assume_nonzero(a, explanation))


class QuadraticSolver(EquationSolver):
    """``a*x**2 + b*x + c = 0`` through the discriminant and quadratic formula."""

    name = "QuadraticSolver"
    handles = frozenset({EquationType.QUADRATIC})

    def _solve(self, equation, variable, explanation):
        coefficients = self._coefficients(equation, variable)
        if max(coefficients, default=0) != 2:
            return SolverResult.unsupported(f"{equation} is not quadratic in {variable}")
        a = coefficients[2]
        b = coefficients.get(1, ZERO)
        c = coefficients.get(0, ZERO)
        explanation.add("Coefficients", f"a = {a}, b = {b}, c = {c}")
        assumption = _assume_nonzero(a, explanation)

        discriminant = simplify(expand(sub(power(b, 2), mul(4, a, c))), self.registry)
        explanation.add("Discriminant", f"D = b**2 - 4*a*c = {discriminant}")
        two_a = mul(2, a)

        if is_zero(discriminant):
            root = simplify(expand(div(neg(b), two_a)), self.registry)
            explanation.add("Double Root", f"D = 0, so {variable} = -b/(2*a) = {root}")
            return SolverResult.solutions_of([root], reason=assumption)

        if isinstance(discriminant, Number):
            nature = (
                "two distinct real roots"
                if discriminant.value > 0
                else "two complex conjugate roots"
            )
            explanation.add("Root Nature", f"D = {discriminant}: {nature}")

        root_d = sqrt(discriminant)
        roots = [
            simplify(expand(div(add(neg(b), sign * root_d), two_a)), self.registry)
            for sign in (-1, 1)
        ]
        explanation.add(
            "Quadratic Formula",
            f"{variable} = (-b +/- sqrt(D))/(2*a) gives {format_solutions(roots)}",
        )
        return SolverResult.solutions_of(
            order_solutions(roots, self.registry), reason=assumption
        )


class PolynomialSolver(EquationSolver):
    """Cubic and quartic polynomials: exact radicals, numeric roots as a fallback."""

    name = "PolynomialSolver"
    handles = frozenset({EquationType.CUBIC, EquationType.QUARTIC})

    def _solve(self, equation, variable, explanation):
        var = to_sympy(variable, self.registry)
        poly = sp.Poly(to_sympy(zero_form(equation), self.registry), var)
        degree = poly.degree()
        if degree < 1:
            return SolverResult.unsupported(f"{equation} has no positive degree in {variable}")
        explanation.add("Polynomial", f"degree {degree}: {poly.as_expr()} = 0")
        assumption = _assume_nonzero(from_sympy(poly.LC()), explanation)

        exact = sp.roots(poly)
        rational = sorted(r for r in exact if r.is_rational)
        explanation.add(
            "Rational Root Search",
            f"rational roots: {', '.join(str(r) for r in rational)}"
            if rational
            else "no rational roots",
        )

        if sum(exact.values()) == degree:
            solutions = order_solutions([from_sympy(r) for r in exact], self.registry)
            explanation.add("Exact Roots", f"{variable} = {format_solutions(solutions)}")
            return SolverResult.solutions_of(solutions, reason=assumption)

        if not all(c.is_number for c in poly.all_coeffs()):
            found = [from_sympy(r) for r in exact]
            if found:
                explanation.add("Exact Roots", f"closed forms for {format_solutions(found)} only")
                reason = "remaining roots have no closed form"
                if assumption:
                    reason = f"{reason}; {assumption}"
                return SolverResult.partial(found, reason)
            return SolverResult.unsupported("no closed-form roots for symbolic coefficients")

        outcome = polynomial_roots([complex(c) for c in poly.all_coeffs()])
        if not outcome.ok:
            explanation.add("Numeric Roots", outcome.detail)
            return SolverResult.unsupported(f"no closed form; numeric roots: {outcome.detail}")
        numeric = [
            Number(v.real) if abs(v.imag) < NUMERIC_TOLERANCE else add(v.real, mul(v.imag, I))
            for v in outcome.values
        ]
        solutions = order_solutions(numeric, self.registry)
        explanation.add("Numeric Roots", f"{variable} ~ {format_solutions(solutions)}")
        return SolverResult.solutions_of(
            solutions, reason="roots without closed form were approximated numerically"
        )


class TranscendentalSolver(EquationSolver):
    """Symbolic solve first; bracketed numeric root search as a fallback."""

    name = "TranscendentalSolver"
    handles = frozenset({EquationType.TRANSCENDENTAL})

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        numeric_fallback: bool = NUMERIC_FALLBACK_ENABLED,
    ):
        super().__init__(registry)
        self.numeric_fallback = numeric_fallback

    def _periods(self, expr: Expression, variable: Symbol) -> list[tuple[str, Expression]]:
        found = []
        for node in walk(expr):
            if isinstance(node, Function) and contains(node, variable):
                period = self.registry.period(node.name)
                if period is not None and (node.name, period) not in found:
                    found.append((node.name, period))
        return found

    def _solve(self, equation, variable, explanation):
        expr = simplify(zero_form(equation), self.registry)
        sym_expr = to_sympy(expr, self.registry)
        var = to_sympy(variable, self.registry)

        try:
            symbolic = sp.solve(sym_expr, var)
        except (NotImplementedError, ValueError, TypeError) as e:
            logger.debug("sympy.solve gave up on %s: %s", sym_expr, e)
            explanation.add("Symbolic Solve", f"no closed form: {e}")
            symbolic = []

        solutions = []
        for candidate in symbolic:
            try:
                solutions.append(from_sympy(candidate))
            except SolverError as e:
                logger.debug("Dropped unconvertible solution %s: %s", candidate, e)
        if solutions:
            solutions = order_solutions(solutions, self.registry)
            explanation.add("Symbolic Solve", f"{variable} = {format_solutions(solutions)}")
            periods = self._periods(expr, variable)
            if periods:
                detail = ", ".join(f"{name} has period {period}" for name, period in periods)
                explanation.add(
                    "Periodicity",
                    f"{detail}; principal solutions only, add integer multiples of the period",
                )
                return SolverResult.partial(solutions, "principal solutions of a periodic equation")
            return SolverResult.solutions_of(solutions)

        if not self.numeric_fallback:
            explanation.add("Numeric Search", "numeric fallback disabled")
            return SolverResult.unsupported("no closed form and numeric fallback is disabled")

        outcome = find_real_roots(sym_expr, var)
        if not outcome.ok:
            explanation.add("Numeric Search", outcome.detail)
            return SolverResult.unsupported(f"no closed form; numeric search: {outcome.detail}")

        roots = [r for r in outcome.real_values() if self._is_root(expr, variable, r)]
        if not roots:
            explanation.add("Numeric Search", "candidates failed the residual check")
            return SolverResult.unsupported("numeric candidates did not satisfy the equation")
        numbers = [Number(r) for r in roots]
        radius = f"{NUMERIC_SEARCH_RADIUS:.4g}"
        explanation.add(
            "Numeric Search",
            f"{len(numbers)} real root(s) in [-{radius}, {radius}]: {format_solutions(numbers)}",
        )
        return SolverResult.partial(numbers, f"numeric roots within [-{radius}, {radius}] only")

    def _is_root(self, expr: Expression, variable: Symbol, value: float) -> bool:
        try:
            residual = evaluate_float(expr, {variable: value}, self.registry)
        except DomainError:
            return False
        return abs(residual) < ROOT_DEDUP_TOLERANCE
