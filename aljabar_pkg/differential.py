"""Ordinary and partial differential equation solvers.

The dependent variable is a plain symbol in the expression tree (``y`` in
``Derivative(y, x) = y``). Before handing the equation to SymPy it is
replaced by an applied function of the independent variables (``y(x)``).
"""

from __future__ import annotations

from dataclasses import dataclass

import sympy as sp

from .bridge import equation_to_sympy, from_sympy
from .classifier import derivative_markers, independent_variables
from .expression import Derivative, Expression, Symbol, evaluate, free_symbols, zero_form
from .formatter import format_solutions
from .logging_config import get_logger
from .solver import EquationSolver
from .types import EquationType, SolverError, SolverResult

logger = get_logger("differential")

# Number of classification hints shown in the explanation
MAX_HINTS_SHOWN = 3
# Name of the constant shared by the separated ODEs
SEPARATION_CONSTANT = "lam"


@dataclass(frozen=True)
class DifferentialProblem:
    expr: Expression
    dependent: Symbol
    independents: tuple[Symbol, ...]
    order: int

    def applied(self) -> sp.Basic:
        return sp.Function(self.dependent.name)(*(sp.Symbol(v.name) for v in self.independents))


def prepare(equation, variable: Symbol | None, registry) -> DifferentialProblem:
    """Normalize derivative markers and pick the dependent variable.

    Function-style markers are turned into Derivative nodes by evaluation.

    Raises:
        SolverError: if no dependent variable can be identified
    """
    expr = evaluate(zero_form(equation), registry=registry)
    markers = derivative_markers(expr, registry)
    independents: set[Symbol] = set()
    dependents: set[Symbol] = set()
    order = 0
    for marker in markers:
        variables = independent_variables(marker, registry)
        independents |= variables
        if isinstance(marker, Derivative):
            inner, marker_order = marker.expr, marker.order
        else:
            inner, marker_order = marker.args[0], len(marker.args) - 1
        dependents |= free_symbols(inner) - variables
        order = max(order, marker_order)
    if not dependents:
        raise SolverError("no dependent variable found in the derivative markers")
    if variable in dependents:
        dependent = variable
    else:
        dependent = sorted(dependents, key=lambda s: s.name)[0]
    return DifferentialProblem(
        expr, dependent, tuple(sorted(independents, key=lambda s: s.name)), order
    )


def _to_sympy_equation(problem: DifferentialProblem, registry) -> sp.Eq:
    functions = {problem.dependent: problem.applied()}
    return sp.Eq(equation_to_sympy(problem.expr, registry, functions), 0)


def _split_solutions(solution, applied) -> tuple[list[Expression], list[Expression]]:
    """Explicit right-hand sides and implicit relations from a dsolve/pdsolve result."""
    solutions = solution if isinstance(solution, (list, tuple)) else [solution]
    explicit, implicit = [], []
    for relation in solutions:
        if relation.lhs == applied:
            explicit.append(from_sympy(relation.rhs))
        else:
            implicit.append(from_sympy(relation.lhs - relation.rhs))
    return explicit, implicit


class ODESolver(EquationSolver):
    """Ordinary differential equations through ``sympy.dsolve``."""

    name = "ODESolver"
    handles = frozenset({EquationType.ORDINARY_DIFFERENTIAL})

    def _solve(self, equation, variable, explanation):
        problem = prepare(equation, variable, self.registry)
        applied = problem.applied()
        ode = _to_sympy_equation(problem, self.registry)
        explanation.add(
            "Differential Equation",
            f"order {problem.order} ODE for {applied}: {ode.lhs} = 0",
        )

        hints = [h for h in sp.classify_ode(ode, applied) if not h.endswith("_Integral")]
        explanation.add(
            "ODE Classification",
            ", ".join(hints[:MAX_HINTS_SHOWN]) if hints else "no matching method",
        )
        if not hints:
            return SolverResult.unsupported("no ODE method matches this equation")

        explicit, implicit = _split_solutions(sp.dsolve(ode, applied), applied)
        if explicit:
            explanation.add(
                "General Solution", f"{problem.dependent} = {format_solutions(explicit)}"
            )
            return SolverResult.solutions_of(explicit)
        explanation.add("Implicit Solution", f"{format_solutions(implicit)} = 0")
        return SolverResult.partial(implicit, "implicit solution; not solved for the dependent variable")


class PDESolver(EquationSolver):
    """Partial differential equations.

    First-order linear equations go through ``sympy.pdsolve``. Second-order
    equations in two variables (heat, wave, Laplace) are split by separation
    of variables, ``u = X(x)*T(t)``, and each factor is solved as an ODE
    with a shared separation constant.
    """

    name = "PDESolver"
    handles = frozenset({EquationType.PARTIAL_DIFFERENTIAL})

    def _solve(self, equation, variable, explanation):
        problem = prepare(equation, variable, self.registry)
        applied = problem.applied()
        pde = _to_sympy_equation(problem, self.registry)
        explanation.add(
            "Differential Equation",
            f"order {problem.order} PDE for {applied}: {pde.lhs} = 0",
        )
        if problem.order == 2 and len(problem.independents) == 2:
            return self._separate(problem, pde, explanation)
        if problem.order != 1:
            explanation.add("PDE Classification", f"order {problem.order} is not supported")
            return SolverResult.unsupported(
                "only first-order PDEs and second-order PDEs in two variables are supported"
            )

        hints = sp.classify_pde(pde, applied)
        explanation.add(
            "PDE Classification",
            ", ".join(hints[:MAX_HINTS_SHOWN]) if hints else "no matching method",
        )
        if not hints:
            return SolverResult.unsupported("no PDE method matches this equation")

        try:
            solution = sp.pdsolve(pde, applied)
        except NotImplementedError as e:
            explanation.add("General Solution", f"pdsolve gave up: {e}")
            return SolverResult.unsupported(f"pdsolve gave up: {e}")
        explicit, implicit = _split_solutions(solution, applied)
        if explicit:
            explanation.add(
                "General Solution", f"{problem.dependent} = {format_solutions(explicit)}"
            )
            return SolverResult.solutions_of(explicit)
        return SolverResult.partial(implicit, "implicit solution")

    def _separate(self, problem: DifferentialProblem, pde, explanation) -> SolverResult:
        applied = problem.applied()
        variables = [sp.Symbol(v.name) for v in problem.independents]
        factors = [
            sp.Function(f"{problem.dependent.name.upper()}{i}")(v)
            for i, v in enumerate(variables, 1)
        ]
        separated = sp.pde_separate_mul(pde, applied, factors)
        if separated is None:
            explanation.add("Separation of Variables", f"{applied} does not separate as a product")
            return SolverResult.unsupported("second-order PDE is not separable")
        explanation.add(
            "Separation of Variables",
            f"{applied} = {' * '.join(str(f) for f in factors)}",
        )

        constant = sp.Symbol(SEPARATION_CONSTANT)
        product = sp.Integer(1)
        odes = []
        for index, (side, factor) in enumerate(zip(separated, factors)):
            ode = sp.numer(sp.together(side + constant))
            odes.append(f"{ode} = 0")
            solution = sp.dsolve(ode, factor)
            if isinstance(solution, (list, tuple)) or solution.lhs != factor:
                raise SolverError(f"separated ODE for {factor} has no explicit solution")
            # Each factor gets its own pair of integration constants
            renamed = {
                sp.Symbol(f"C{k}"): sp.Symbol(f"C{k + 2 * index}")
                for k in (1, 2)
            }
            product *= solution.rhs.subs(renamed, simultaneous=True)
        explanation.add(
            "Separated ODEs",
            f"both sides equal -{SEPARATION_CONSTANT}: " + "; ".join(odes),
        )

        separable = from_sympy(product)
        explanation.add("Product Solution", f"{problem.dependent} = {separable}")
        return SolverResult.partial(
            [separable],
            f"separated solutions for each {SEPARATION_CONSTANT}; "
            "the general solution is a superposition",
        )
