"""Function Property Registry.

Single source of truth mapping a function name to its mathematical metadata:
domain, exact special values, functional equation, exact evaluator, numeric
kernel and classification flags.

Lookups are O(1) dict reads. Registration is append-only and happens once at
initialization; ``default_registry()`` returns a frozen, read-only registry
that can be shared between threads without locking.

Evaluation order is fixed: exact special-value table, then the exact
evaluator, then the numeric kernel (float arguments only), then
``Unevaluated``. Exact forms are never shadowed by numeric approximations.
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

import numpy as np

from .expression import (
    Derivative,
    Expression,
    Function,
    Number,
    Power,
    Product,
    Sum,
    Symbol,
    add,
    as_expression,
    contains,
    mul,
    power,
    sort_key,
)
from .logging_config import get_logger
from .types import EvaluationResult, RegistryError

logger = get_logger("registry")


class FunctionFamily(Enum):
    ELEMENTARY = "elementary"
    SPECIAL = "special"
    POLYNOMIAL = "polynomial"
    USER = "user"


class Domain(Enum):
    """Coarse real domain of a function's (first) argument."""

    REAL = "real"
    POSITIVE = "positive"
    NON_NEGATIVE = "non_negative"
    UNIT_INTERVAL = "unit_interval"
    EXCLUDES_POLES = "excludes_poles"


Evaluator = Callable[["FunctionRegistry", tuple], "EvaluationResult | None"]
DerivativeRule = Callable[[tuple], Expression]


@dataclass(frozen=True, eq=False)
class FunctionProperties:
    """Metadata for one registered function.

    ``evaluator`` receives the registry and the argument tuple and returns an
    EvaluationResult, or None when it has nothing exact to say. It may call
    ``registry.evaluate`` for the names listed in ``depends_on``; those
    dependencies must not form a cycle.
    """

    name: str
    family: FunctionFamily = FunctionFamily.ELEMENTARY
    arity: int | None = 1
    domain: Domain = Domain.REAL
    domain_text: str = "all real numbers"
    special_values: Mapping[tuple, Expression] = field(default_factory=dict)
    functional_equation: str | None = None
    evaluator: Evaluator | None = None
    numeric: Callable[..., float] | None = None
    transcendental: bool = False
    differential_marker: bool = False
    commutative_args: bool = False
    derivative: DerivativeRule | None = None
    period: Expression | None = None
    sympy_name: str | None = None
    depends_on: tuple[str, ...] = ()

    def __post_init__(self):
        table = {
            tuple(as_expression(a) for a in key): as_expression(value)
            for key, value in dict(self.special_values).items()
        }
        object.__setattr__(self, "special_values", MappingProxyType(table))

    def accepts(self, argc: int) -> bool:
        return self.arity is None or self.arity == argc


class FunctionRegistry:
    """Append-only table of function properties keyed by name."""

    def __init__(self):
        self._functions: dict[str, FunctionProperties] = {}
        self._frozen = False

    def register(self, properties: FunctionProperties) -> None:
        """Register a function once.

        Raises:
            RegistryError: on duplicate names or registration after freeze()
        """
        if self._frozen:
            raise RegistryError(
                f"Cannot register '{properties.name}': registry is frozen",
                code="REGISTRY_FROZEN",
            )
        if properties.name in self._functions:
            raise RegistryError(
                f"Function '{properties.name}' is already registered",
                code="DUPLICATE_FUNCTION",
            )
        self._functions[properties.name] = properties
        logger.debug("Registered function %s (%s)", properties.name, properties.family.value)

    def freeze(self) -> None:
        """Make the registry read-only after checking its dependency graph.

        Raises:
            RegistryError: if evaluator dependencies form a cycle
        """
        self.dependency_order()
        self._frozen = True

    def dependency_order(self) -> tuple[str, ...]:
        """Names ordered so every function comes after the ones it calls.

        Raises:
            RegistryError: on a dependency cycle
        """
        ordered: list[str] = []
        state: dict[str, str] = {}

        def visit(name: str, path: tuple[str, ...]) -> None:
            if state.get(name) == "done":
                return
            if state.get(name) == "active":
                cycle = " -> ".join(path + (name,))
                raise RegistryError(
                    f"Function dependency cycle: {cycle}", code="DEPENDENCY_CYCLE"
                )
            state[name] = "active"
            for dependency in self.dependencies(name):
                visit(dependency, path + (name,))
            state[name] = "done"
            ordered.append(name)

        for name in sorted(self._functions):
            visit(name, ())
        return tuple(ordered)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str) -> FunctionProperties | None:
        return self._functions.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._functions))

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def is_transcendental(self, name: str) -> bool:
        properties = self._functions.get(name)
        return properties is not None and properties.transcendental

    def is_differential_marker(self, name: str) -> bool:
        properties = self._functions.get(name)
        return properties is not None and properties.differential_marker

    def period(self, name: str) -> Expression | None:
        properties = self._functions.get(name)
        return properties.period if properties is not None else None

    def dependencies(self, name: str) -> tuple[str, ...]:
        properties = self._functions.get(name)
        return properties.depends_on if properties is not None else ()

    def evaluate(self, name: str, args: Sequence) -> EvaluationResult:
        """Evaluate ``name(*args)``: special values, evaluator, numeric kernel.

        Unknown names and arity mismatches are ``Unevaluated``; poles and
        out-of-domain arguments give the undefined sentinel.
        """
        properties = self._functions.get(name)
        args = tuple(as_expression(a) for a in args)
        if properties is None or not properties.accepts(len(args)):
            return EvaluationResult.unevaluated()
        if properties.commutative_args:
            args = tuple(sorted(args, key=sort_key))

        exact = properties.special_values.get(args)
        if exact is not None:
            return EvaluationResult.exact_of(exact)

        if properties.evaluator is not None:
            try:
                outcome = properties.evaluator(self, args)
            except (ArithmeticError, ValueError) as e:
                logger.debug("Evaluator for %s failed on %s: %s", name, args, e)
                return EvaluationResult.undefined()
            if outcome is not None:
                return outcome

        if properties.numeric is not None and args and all(
            isinstance(a, Number) and not a.is_exact for a in args
        ):
            value = self.evaluate_numeric(name, [a.value for a in args])
            return EvaluationResult.numeric_of(value)

        return EvaluationResult.unevaluated()

    def evaluate_numeric(self, name: str, values: Sequence[float]) -> float:
        """Float evaluation; returns NaN for poles and bad input, never raises."""
        properties = self._functions.get(name)
        if properties is None or properties.numeric is None:
            return math.nan
        if not properties.accepts(len(values)):
            return math.nan
        try:
            floats = [float(v) for v in values]
        except (TypeError, ValueError):
            return math.nan
        if not all(math.isfinite(v) for v in floats):
            return math.nan
        if properties.commutative_args:
            floats.sort()
        try:
            result = float(properties.numeric(*floats))
        except (ArithmeticError, ValueError, TypeError) as e:
            logger.debug("Numeric kernel %s failed at %s: %s", name, floats, e)
            return math.nan
        return result if math.isfinite(result) else math.nan

    def evaluate_batch(self, name: str, values) -> np.ndarray:
        """Element-wise numeric evaluation over an array.

        For functions of one argument ``values`` may have any shape; for
        functions of several arguments the last axis holds the arguments.
        A bad element becomes NaN without interrupting the batch.
        """
        array = np.asarray(values, dtype=float)
        properties = self._functions.get(name)
        if properties is not None and properties.arity not in (None, 1):
            rows = array.reshape(-1, array.shape[-1])
            flat = np.array([self.evaluate_numeric(name, row) for row in rows])
            return flat.reshape(array.shape[:-1])
        flat = np.array([self.evaluate_numeric(name, [v]) for v in array.ravel()])
        return flat.reshape(array.shape)

    def differentiate(self, expr: Expression, variable: Symbol) -> Expression | None:
        """Symbolic derivative of ``expr`` with respect to ``variable``.

        Uses the registered derivative rules with the chain rule. Returns None
        when some function application has no rule.
        """

        def d(node: Expression) -> Expression | None:
            if not contains(node, variable):
                return Number(0)
            if node == variable:
                return Number(1)
            if isinstance(node, Sum):
                parts = [d(t) for t in node.terms]
                return None if any(p is None for p in parts) else add(*parts)
            if isinstance(node, Product):
                terms = []
                for index, factor in enumerate(node.factors):
                    inner = d(factor)
                    if inner is None:
                        return None
                    others = list(node.factors)
                    others[index] = inner
                    terms.append(mul(*others))
                return add(*terms)
            if isinstance(node, Power):
                base, exponent = node.base, node.exponent
                if not contains(exponent, variable):
                    inner = d(base)
                    if inner is None:
                        return None
                    return mul(exponent, power(base, add(exponent, -1)), inner)
                # d(b**e) = b**e * (e' ln b + e b'/b)
                d_base, d_exp = d(base), d(exponent)
                if d_base is None or d_exp is None:
                    return None
                return mul(
                    node,
                    add(
                        mul(d_exp, Function("ln", (base,))),
                        mul(exponent, d_base, power(base, -1)),
                    ),
                )
            if isinstance(node, Function):
                properties = self._functions.get(node.name)
                if properties is None or properties.derivative is None or len(node.args) != 1:
                    return None
                inner = d(node.args[0])
                if inner is None:
                    return None
                return mul(properties.derivative(node.args), inner)
            if isinstance(node, Derivative):
                return Derivative(node.expr, node.variables + (variable,))
            return None

        return d(expr)


@functools.lru_cache(maxsize=None)
def default_registry() -> FunctionRegistry:
    """Process-wide registry of the built-in functions, frozen after construction."""
    from .functions import register_builtin_functions

    registry = FunctionRegistry()
    register_builtin_functions(registry)
    registry.freeze()
    logger.debug("Default registry ready with %d functions", len(registry))
    return registry
