"""Solver for systems of equations in several unknowns.

Strategies:
- linear systems: Gaussian elimination (``sympy.linsolve``); square systems
  with floating coefficients go through numpy first
- polynomial systems: lex Groebner basis, then triangular back-substitution
- other systems: ``sympy.solve``, with ``nsolve`` from a fixed start as a
  numeric fallback

A Groebner basis equal to [1] proves the system inconsistent. A basis that is
computed but cannot be decoded into points is returned as ``Partial`` with the
basis polynomials, never as ``NoSolution``.

Solutions are reported one value per unknown, point after point, with the
unknowns in ``SolverResult.variables``.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import sympy as sp

from .bridge import from_sympy, to_sympy
from .classifier import is_polynomial_in
from .config import NUMERIC_FALLBACK_ENABLED, ROOT_DEDUP_TOLERANCE
from .expression import (
    Equation,
    EquationSystem,
    Expression,
    Number,
    Symbol,
    as_expression,
    evaluate_float,
    free_symbols,
    zero_form,
)
from .explanation import Explanation
from .formatter import format_solutions
from .logging_config import get_logger
from .numeric import solve_linear
from .solver import EquationSolver
from .types import DomainError, EquationType, SolverError, SolverResult

logger = get_logger("systems")


def as_system(equations) -> EquationSystem:
    if isinstance(equations, EquationSystem):
        return equations
    if isinstance(equations, (Expression, Equation)):
        return EquationSystem((equations,))
    return EquationSystem(
        tuple(eq if isinstance(eq, Equation) else as_expression(eq) for eq in equations)
    )


def unknowns_of(system: EquationSystem, first: Symbol | None = None) -> list[Symbol]:
    """Free symbols sorted by name, with ``first`` moved to the front."""
    symbols = sorted(free_symbols(system), key=lambda s: (s.name, s.kind.value))
    if first is not None and first in symbols:
        symbols.remove(first)
        symbols.insert(0, first)
    return symbols


class SystemSolver(EquationSolver):
    """Linear, polynomial and general systems."""

    name = "SystemSolver"
    handles = frozenset({EquationType.POLYNOMIAL_SYSTEM, EquationType.GENERAL_SYSTEM})

    def __init__(
        self,
        registry=None,
        use_elimination: bool = True,
        numeric_fallback: bool = NUMERIC_FALLBACK_ENABLED,
    ):
        super().__init__(registry)
        self.use_elimination = use_elimination
        self.numeric_fallback = numeric_fallback

    def solve_system(
        self, equations, variables: Sequence[Symbol] | None = None
    ) -> SolverResult:
        return self.solve_system_with_explanation(equations, variables)[0]

    def solve_system_with_explanation(
        self, equations, variables: Sequence[Symbol] | None = None
    ) -> tuple[SolverResult, Explanation]:
        system = as_system(equations)
        unknowns = list(variables) if variables else unknowns_of(system)
        explanation = Explanation()
        result = self._guarded(explanation, system, self._solve_system, system, unknowns)
        return result, explanation

    def _solve(self, equation, variable, explanation):
        system = as_system(equation)
        return self._solve_system(system, unknowns_of(system, variable), explanation)

    def _solve_system(
        self, system: EquationSystem, unknowns: List[Symbol], explanation: Explanation
    ) -> SolverResult:
        if not unknowns:
            return SolverResult.unsupported("system has no unknowns")
        exprs = list(system.zero_forms())
        sym_exprs = [to_sympy(e, self.registry) for e in exprs]
        syms = [to_sympy(v, self.registry) for v in unknowns]
        explanation.add(
            "System",
            f"{len(exprs)} equation(s) in {', '.join(v.name for v in unknowns)}",
        )

        polynomial = all(is_polynomial_in(e, unknowns) for e in exprs)
        if polynomial and self.use_elimination and all(
            sp.Poly(e, *syms).total_degree() <= 1 for e in sym_exprs
        ):
            return self._solve_linear(exprs, sym_exprs, syms, unknowns, explanation)
        if polynomial:
            return self._solve_polynomial(exprs, sym_exprs, syms, unknowns, explanation)
        return self._solve_general(exprs, sym_exprs, syms, unknowns, explanation)

    def _solve_linear(self, exprs, sym_exprs, syms, unknowns, explanation):
        if len(sym_exprs) == len(syms) and any(e.atoms(sp.Float) for e in sym_exprs):
            values = self._solve_linear_float(sym_exprs, syms, unknowns, explanation)
            if values is not None:
                self._verify(exprs, unknowns, [values], explanation)
                return SolverResult.solutions_of(values, variables=unknowns)

        solution_set = sp.linsolve(sym_exprs, syms)
        if solution_set == sp.S.EmptySet:
            explanation.add("Gaussian Elimination", "elimination produced 0 = 1")
            return SolverResult.no_solution("inconsistent linear system")
        point = next(iter(solution_set))
        if any(value.free_symbols & set(syms) for value in point):
            explanation.add(
                "Gaussian Elimination",
                f"rank deficient; free parameters remain: {point}",
            )
            return SolverResult.infinite("linear system has free parameters")
        values = [from_sympy(v) for v in point]
        explanation.add(
            "Gaussian Elimination",
            ", ".join(f"{v} = {value}" for v, value in zip(unknowns, values)),
        )
        self._verify(exprs, unknowns, [values], explanation)
        return SolverResult.solutions_of(values, variables=unknowns)

    def _solve_linear_float(self, sym_exprs, syms, unknowns, explanation):
        """Square systems with floating coefficients; None sends them to linsolve."""
        matrix, rhs = sp.linear_eq_to_matrix(sym_exprs, syms)
        outcome = solve_linear(matrix.tolist(), list(rhs))
        if not outcome.ok:
            explanation.add(
                "Floating Point Elimination",
                f"{outcome.detail}; falling back to exact elimination",
            )
            return None
        values = [Number(v) for v in outcome.real_values()]
        if len(values) != len(unknowns):
            return None
        explanation.add(
            "Floating Point Elimination",
            ", ".join(f"{v} = {value}" for v, value in zip(unknowns, values)),
        )
        return values

    def _solve_polynomial(self, exprs, sym_exprs, syms, unknowns, explanation):
        basis = sp.groebner(sym_exprs, *syms, order="lex")
        polys = list(basis.exprs)
        explanation.add(
            "Groebner Basis", f"lex basis: [{', '.join(str(p) for p in polys)}]"
        )
        if len(polys) == 1 and polys[0] == 1:
            explanation.add("Inconsistent", "the basis is [1], so the equations share no root")
            return SolverResult.no_solution("Groebner basis is [1]")
        if not polys:
            return SolverResult.infinite("every equation is identically zero")
        if not basis.is_zero_dimensional:
            explanation.add("Dimension", "the solution variety is positive-dimensional")
            return SolverResult.infinite("infinitely many solutions (positive-dimensional)")

        try:
            points = self._back_substitute(polys, syms)
        except (SolverError, NotImplementedError, ValueError, TypeError) as e:
            logger.debug("Back-substitution incomplete for %s: %s", polys, e)
            basis_exprs = [from_sympy(p) for p in polys]
            explanation.add(
                "Back-substitution",
                f"could not extract all points ({e}); returning the basis",
            )
            return SolverResult.partial(
                basis_exprs, "Groebner basis computed; back-substitution incomplete"
            )

        values = [[from_sympy(v) for v in point] for point in points]
        explanation.add(
            "Back-substitution",
            f"{len(values)} solution point(s): "
            + "; ".join(format_solutions(p) for p in values),
        )
        self._verify(exprs, unknowns, values, explanation)
        return SolverResult.solutions_of(
            [v for point in values for v in point], variables=unknowns
        )

    def _back_substitute(self, polys, syms) -> list[tuple]:
        """Solve a lex (triangular) basis from its last polynomial upwards."""
        solutions = sp.solve(polys, syms, dict=True)
        if not solutions:
            raise SolverError("no point extracted from the basis")
        points = []
        for solution in solutions:
            missing = [s for s in syms if s not in solution]
            if missing:
                raise SolverError(f"unresolved unknowns {missing}")
            points.append(tuple(solution[s] for s in syms))
        return points

    def _solve_general(self, exprs, sym_exprs, syms, unknowns, explanation):
        try:
            solutions = sp.solve(sym_exprs, syms, dict=True)
        except NotImplementedError as e:
            explanation.add("Symbolic Solve", f"no closed form: {e}")
            solutions = []

        complete = [s for s in solutions if all(sym in s for sym in syms)]
        if complete:
            values = [[from_sympy(s[sym]) for sym in syms] for s in complete]
            explanation.add(
                "Symbolic Solve",
                "; ".join(format_solutions(point) for point in values),
            )
            self._verify(exprs, unknowns, values, explanation)
            return SolverResult.solutions_of(
                [v for point in values for v in point], variables=unknowns
            )
        if solutions:
            found = [from_sympy(value) for s in solutions for value in s.values()]
            explanation.add("Symbolic Solve", "only some unknowns could be expressed")
            return SolverResult.partial(found, "some unknowns remain unresolved")

        if not self.numeric_fallback:
            return SolverResult.unsupported("no closed form and numeric fallback is disabled")
        try:
            point = sp.nsolve(sym_exprs, syms, [1] * len(syms))
        except (ValueError, TypeError, ZeroDivisionError) as e:
            explanation.add("Numeric Search", f"nsolve did not converge: {e}")
            return SolverResult.unsupported("no closed form; numeric search did not converge")
        if not isinstance(point, sp.MatrixBase):
            point = [point]
        values = [from_sympy(sp.re(v)) for v in point]
        explanation.add("Numeric Search", f"one point near the start: {format_solutions(values)}")
        self._verify(exprs, unknowns, [values], explanation)
        return SolverResult.partial(values, "one numeric point only", variables=unknowns)

    def _verify(
        self,
        exprs: Sequence[Expression],
        unknowns: Sequence[Symbol],
        points: Iterable[Sequence[Expression]],
        explanation: Explanation,
    ) -> None:
        worst = 0.0
        checked = 0
        for point in points:
            env = dict(zip(unknowns, point))
            try:
                numeric_env = {
                    v: evaluate_float(value, registry=self.registry)
                    for v, value in env.items()
                }
                residual = max(
                    abs(evaluate_float(e, numeric_env, self.registry)) for e in exprs
                )
            except DomainError:
                continue
            worst = max(worst, residual)
            checked += 1
        if not checked:
            return
        status = "ok" if worst < ROOT_DEDUP_TOLERANCE else "large"
        explanation.add(
            "Verification",
            f"max residual {worst:.3g} over {checked} point(s) ({status})",
        )
