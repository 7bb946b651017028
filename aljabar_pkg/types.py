"""Type definitions, tagged results and exceptions shared across the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .expression import Expression


class EquationType(Enum):
    """Closed set of equation families recognised by the classifier."""

    CONSTANT = "Constant"
    LINEAR = "Linear"
    QUADRATIC = "Quadratic"
    CUBIC = "Cubic"
    QUARTIC = "Quartic"
    POLYNOMIAL_SYSTEM = "PolynomialSystem"
    GENERAL_SYSTEM = "GeneralSystem"
    TRANSCENDENTAL = "Transcendental"
    MATRIX = "Matrix"
    ORDINARY_DIFFERENTIAL = "OrdinaryDifferential"
    PARTIAL_DIFFERENTIAL = "PartialDifferential"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class ResultKind(Enum):
    SOLUTIONS = "solutions"
    NO_SOLUTION = "no_solution"
    PARTIAL = "partial"
    INFINITE = "infinite"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class SolverResult:
    """Outcome of a solver call.

    ``NO_SOLUTION`` means non-existence was proven. A solver that computed an
    intermediate artifact it cannot fully decode reports ``PARTIAL`` and keeps
    the artifact in ``solutions``.

    System solvers set ``variables``; ``solutions`` then holds one value per
    variable for each solution point, point after point.
    """

    kind: ResultKind
    solutions: tuple[Expression, ...] = ()
    reason: str | None = None
    variables: tuple[Expression, ...] = ()

    @classmethod
    def solutions_of(
        cls, solutions, reason: str | None = None, variables=()
    ) -> SolverResult:
        return cls(ResultKind.SOLUTIONS, tuple(solutions), reason, tuple(variables))

    @classmethod
    def no_solution(cls, reason: str | None = None) -> SolverResult:
        return cls(ResultKind.NO_SOLUTION, (), reason)

    @classmethod
    def partial(cls, solutions=(), reason: str | None = None, variables=()) -> SolverResult:
        return cls(ResultKind.PARTIAL, tuple(solutions), reason, tuple(variables))

    @classmethod
    def infinite(cls, reason: str | None = None) -> SolverResult:
        return cls(ResultKind.INFINITE, (), reason)

    @classmethod
    def unsupported(cls, reason: str | None = None) -> SolverResult:
        return cls(ResultKind.UNSUPPORTED, (), reason)

    @property
    def is_solutions(self) -> bool:
        return self.kind is ResultKind.SOLUTIONS

    @property
    def is_no_solution(self) -> bool:
        return self.kind is ResultKind.NO_SOLUTION

    @property
    def is_partial(self) -> bool:
        return self.kind is ResultKind.PARTIAL

    @property
    def is_infinite(self) -> bool:
        return self.kind is ResultKind.INFINITE

    @property
    def is_unsupported(self) -> bool:
        return self.kind is ResultKind.UNSUPPORTED

    def solution_count(self) -> int | None:
        """Number of solutions, or None when the set is infinite or unknown."""
        if self.kind in (ResultKind.SOLUTIONS, ResultKind.PARTIAL):
            return len(self.solutions)
        if self.kind is ResultKind.NO_SOLUTION:
            return 0
        return None

    def points(self) -> list[dict[Expression, Expression]]:
        """Group system solutions into one mapping per solution point."""
        width = len(self.variables)
        if not width:
            return []
        return [
            dict(zip(self.variables, self.solutions[start : start + width]))
            for start in range(0, len(self.solutions) - width + 1, width)
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"kind": self.kind.value}
        if self.variables:
            result_dict["variables"] = [str(v) for v in self.variables]
        if self.solutions:
            result_dict["solutions"] = [str(s) for s in self.solutions]
        if self.reason is not None:
            result_dict["reason"] = self.reason
        return result_dict

    def __repr__(self) -> str:
        parts = [f"kind={self.kind.value!r}"]
        if self.solutions:
            parts.append(f"solutions={[str(s) for s in self.solutions]!r}")
        if self.reason is not None:
            parts.append(f"reason={self.reason!r}")
        return f"SolverResult({', '.join(parts)})"


class EvaluationKind(Enum):
    EXACT = "exact"
    NUMERIC = "numeric"
    UNEVALUATED = "unevaluated"


@dataclass(frozen=True)
class EvaluationResult:
    """Result of evaluating a registered function.

    A ``NUMERIC`` result carrying NaN is the "undefined" sentinel used for
    poles and out-of-domain input.
    """

    kind: EvaluationKind
    exact: Expression | None = None
    numeric: float | None = None

    @classmethod
    def exact_of(cls, expr: Expression) -> EvaluationResult:
        return cls(EvaluationKind.EXACT, exact=expr)

    @classmethod
    def numeric_of(cls, value: float) -> EvaluationResult:
        return cls(EvaluationKind.NUMERIC, numeric=float(value))

    @classmethod
    def undefined(cls) -> EvaluationResult:
        return cls(EvaluationKind.NUMERIC, numeric=math.nan)

    @classmethod
    def unevaluated(cls) -> EvaluationResult:
        return cls(EvaluationKind.UNEVALUATED)

    @property
    def is_exact(self) -> bool:
        return self.kind is EvaluationKind.EXACT

    @property
    def is_numeric(self) -> bool:
        return self.kind is EvaluationKind.NUMERIC

    @property
    def is_unevaluated(self) -> bool:
        return self.kind is EvaluationKind.UNEVALUATED

    @property
    def is_undefined(self) -> bool:
        return self.is_numeric and math.isnan(self.numeric)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EvaluationResult):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self.is_numeric:
            # NaN sentinels compare equal to each other
            if math.isnan(self.numeric) and math.isnan(other.numeric):
                return True
            return self.numeric == other.numeric
        return self.exact == other.exact

    def __hash__(self) -> int:
        if self.is_numeric and math.isnan(self.numeric):
            return hash((self.kind, "nan"))
        return hash((self.kind, self.exact, self.numeric))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"kind": self.kind.value}
        if self.exact is not None:
            result_dict["exact"] = str(self.exact)
        if self.numeric is not None:
            result_dict["numeric"] = None if math.isnan(self.numeric) else self.numeric
        return result_dict

    def __repr__(self) -> str:
        if self.is_exact:
            return f"EvaluationResult(exact={str(self.exact)!r})"
        if self.is_numeric:
            return f"EvaluationResult(numeric={self.numeric!r})"
        return "EvaluationResult(unevaluated)"


@dataclass
class SolveReport:
    """Result of solving an equation or system through the public API."""

    ok: bool
    equation_type: str | None = None
    result_type: str | None = None
    exact: list[str] | None = None
    approx: list[str | None] | None = None
    reason: str | None = None
    points: list[dict[str, str]] | None = None
    steps: list[dict[str, str]] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.equation_type is not None:
            result_dict["equation_type"] = self.equation_type
        if self.result_type is not None:
            result_dict["type"] = self.result_type
        if self.exact is not None:
            result_dict["exact"] = self.exact
        if self.approx is not None:
            result_dict["approx"] = self.approx
        if self.reason is not None:
            result_dict["reason"] = self.reason
        if self.points is not None:
            result_dict["points"] = self.points
        if self.steps:
            result_dict["steps"] = self.steps
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict

    def __repr__(self) -> str:
        if not self.ok:
            return f"SolveReport(ok=False, error={self.error!r})"
        parts = [
            f"ok={self.ok}",
            f"equation_type={self.equation_type!r}",
            f"result_type={self.result_type!r}",
        ]
        if self.exact is not None:
            parts.append(f"exact={self.exact!r}")
        if self.reason is not None:
            parts.append(f"reason={self.reason!r}")
        return f"SolveReport({', '.join(parts)})"


@dataclass
class ClassificationReport:
    """Result of classifying an equation through the public API."""

    ok: bool
    equation_type: str | None = None
    description: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.equation_type is not None:
            result_dict["equation_type"] = self.equation_type
        if self.description is not None:
            result_dict["description"] = self.description
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict


@dataclass
class FunctionEvalReport:
    """Result of evaluating a registered function through the public API."""

    ok: bool
    name: str | None = None
    kind: str | None = None
    exact: str | None = None
    numeric: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.name is not None:
            result_dict["name"] = self.name
        if self.kind is not None:
            result_dict["kind"] = self.kind
        if self.exact is not None:
            result_dict["exact"] = self.exact
        if self.numeric is not None:
            result_dict["numeric"] = self.numeric
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when parsing fails."""

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class SolverError(Exception):
    """Raised by leaf algorithms; translated into a SolverResult by the solvers."""

    def __init__(self, message: str, code: str = "SOLVER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class DomainError(Exception):
    """Raised at evaluation time for division by zero or out-of-domain arguments."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class RegistryError(Exception):
    """Raised for registry misuse such as duplicate registration."""

    def __init__(self, message: str, code: str = "REGISTRY_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
