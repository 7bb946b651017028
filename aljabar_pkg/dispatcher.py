"""Solver Dispatch Core.

``SolverDispatcher`` owns exactly one solver per equation family, classifies
an incoming equation and forwards it to the matching solver. The dispatch
table is total over ``EquationType``: ``Unknown`` has no solver and is
answered with ``Unsupported`` and a step saying why.

The dispatcher holds no hidden state. Memoization only happens through a
``SolveCache`` passed in by the caller, and a cache hit returns an equal
result with a freshly built explanation.
"""

from __future__ import annotations

from typing import Sequence

from .cache_manager import SolveCache
from .classifier import (
    EquationLike,
    classify,
    default_variable,
    describe,
    polynomial_degree,
)
from .differential import ODESolver, PDESolver
from .expression import EquationSystem, Symbol, contains_zero_division, zero_form
from .explanation import Explanation
from .logging_config import get_logger
from .matrix_solver import MatrixEquationSolver
from .registry import FunctionRegistry, default_registry
from .solver import (
    ConstantSolver,
    EquationSolver,
    LinearSolver,
    PolynomialSolver,
    QuadraticSolver,
    TranscendentalSolver,
)
from .systems import SystemSolver, as_system, unknowns_of
from .types import EquationType, SolverResult

logger = get_logger("dispatcher")


def _divides_by_zero(equation: EquationLike) -> bool:
    if isinstance(equation, EquationSystem):
        forms = equation.zero_forms()
    else:
        forms = (zero_form(equation),)
    return any(contains_zero_division(form) for form in forms)


def _division_by_zero(explanation: Explanation) -> SolverResult:
    explanation.add("Domain Check", "the equation divides by a literal zero and is undefined")
    return SolverResult.unsupported("division by zero: the equation is undefined")


class SolverDispatcher:
    """Classify-then-dispatch front door over the solver families.

    Args:
        registry: Function registry shared by the classifier and every solver;
            defaults to the frozen built-in registry
        cache: Optional SolveCache; without one nothing is memoized
        numeric_fallback: Allow numeric root search where no closed form exists
    """

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        cache: SolveCache | None = None,
        numeric_fallback: bool | None = None,
    ):
        self.registry = default_registry() if registry is None else registry
        self.cache = cache
        options = {} if numeric_fallback is None else {"numeric_fallback": numeric_fallback}
        self.system_solver = SystemSolver(self.registry, **options)
        solvers: list[EquationSolver] = [
            ConstantSolver(self.registry),
            LinearSolver(self.registry),
            QuadraticSolver(self.registry),
            PolynomialSolver(self.registry),
            TranscendentalSolver(self.registry, **options),
            MatrixEquationSolver(self.registry),
            self.system_solver,
            ODESolver(self.registry),
            PDESolver(self.registry),
        ]
        self._table: dict[EquationType, EquationSolver | None] = {
            equation_type: None for equation_type in EquationType
        }
        for solver in solvers:
            for equation_type in solver.handles:
                self._table[equation_type] = solver

    @property
    def solvers(self) -> tuple[EquationSolver, ...]:
        unique: list[EquationSolver] = []
        for solver in self._table.values():
            if solver is not None and solver not in unique:
                unique.append(solver)
        return tuple(unique)

    def solver_for(self, equation_type: EquationType) -> EquationSolver | None:
        return self._table[equation_type]

    def classify(
        self, equation: EquationLike, variable: Symbol | None = None
    ) -> EquationType:
        return classify(equation, variable, self.registry)

    def can_solve(self, equation: EquationLike, variable: Symbol | None = None) -> bool:
        return self._table[self.classify(equation, variable)] is not None

    def solve(self, equation: EquationLike, variable: Symbol | None = None) -> SolverResult:
        return self.solve_with_equation(equation, variable)[0]

    def solve_with_equation(
        self, equation: EquationLike, variable: Symbol | None = None
    ) -> tuple[SolverResult, Explanation]:
        """Classify ``equation``, pick its solver and solve.

        Returns:
            The result and the full explanation: "Equation Analysis" and
            "Solver Selection" first, then the solver's own steps
        """
        if variable is None and not isinstance(equation, EquationSystem):
            variable = default_variable(equation)
        key = (equation, variable)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                result, steps = cached
                return result, Explanation(steps)

        result, explanation = self._dispatch(equation, variable)
        if self.cache is not None:
            self.cache.put(key, result, explanation.steps)
        return result, explanation

    solve_with_explanation = solve_with_equation

    def _dispatch(
        self, equation: EquationLike, variable: Symbol | None
    ) -> tuple[SolverResult, Explanation]:
        explanation = Explanation()
        equation_type = self.classify(equation, variable)
        degree = None
        if equation_type is EquationType.UNKNOWN and variable is not None and not isinstance(
            equation, EquationSystem
        ):
            degree = polynomial_degree(zero_form(equation), variable)
        explanation.add("Equation Analysis", describe(equation_type, degree))
        if _divides_by_zero(equation):
            return _division_by_zero(explanation), explanation

        solver = self._table[equation_type]
        if solver is None:
            explanation.add("Solver Selection", "no solver handles this equation type")
            logger.debug("No solver for %s (%s)", equation, equation_type.value)
            return SolverResult.unsupported(
                f"no solver for equation type {equation_type.value}"
            ), explanation

        target = f" for {variable}" if variable is not None else ""
        explanation.add("Solver Selection", f"using {solver.name}{target}")
        logger.debug("Dispatching %s to %s", equation, solver.name)
        if solver is self.system_solver and isinstance(equation, EquationSystem):
            result, steps = solver.solve_system_with_explanation(
                equation, unknowns_of(equation, variable)
            )
        else:
            result, steps = solver.solve_with_explanation(equation, variable)
        explanation.extend(steps)
        return result, explanation

    def solve_system(
        self, equations, variables: Sequence[Symbol] | None = None
    ) -> SolverResult:
        return self.solve_system_with_explanation(equations, variables)[0]

    def solve_system_with_explanation(
        self, equations, variables: Sequence[Symbol] | None = None
    ) -> tuple[SolverResult, Explanation]:
        """Solve a system for ``variables`` (all free symbols by default).

        A single equation is dispatched like any other equation.
        """
        system = as_system(equations)
        if len(system) == 1:
            variable = variables[0] if variables else None
            return self.solve_with_equation(system.equations[0], variable)
        if not variables:
            return self.solve_with_equation(system)

        key = (system, tuple(variables))
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                result, steps = cached
                return result, Explanation(steps)

        explanation = Explanation()
        equation_type = self.classify(system)
        explanation.add("Equation Analysis", describe(equation_type))
        if _divides_by_zero(system):
            result = _division_by_zero(explanation)
            if self.cache is not None:
                self.cache.put(key, result, explanation.steps)
            return result, explanation
        explanation.add(
            "Solver Selection",
            f"using {self.system_solver.name} for {', '.join(str(v) for v in variables)}",
        )
        result, steps = self.system_solver.solve_system_with_explanation(system, variables)
        explanation.extend(steps)
        if self.cache is not None:
            self.cache.put(key, result, explanation.steps)
        return result, explanation
