"""Immutable expression trees.

This module provides:
- The node types every other component operates on (numbers, constants,
  symbols, sums, products, powers, function applications, derivative markers)
- Equation and EquationSystem relations
- Canonicalizing constructors that always succeed
- Traversal helpers (walk, free_symbols, substitute, expand)
- Evaluation, the only operation that can fail (with DomainError)

Equality and hashing are structural. Sums and products keep their operands in
one tuple. Constructors fold numeric literals, collect like terms and like
bases, and sort commutative operands; noncommutative factors keep their order.
Division by zero is never detected at construction time: ``div(x, 0)`` builds
``x*0**-1`` and only ``evaluate`` reports the problem.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Iterator, Mapping, Union

from .types import DomainError

NumberValue = Union[int, Fraction, float]

# Integer exponents above this are left unevaluated instead of folded
MAX_FOLD_EXPONENT = 4096
# Integer powers of sums above this are not expanded
MAX_EXPAND_EXPONENT = 32


class SymbolKind(Enum):
    """Algebraic kind of a symbol; only scalars commute."""

    SCALAR = "scalar"
    MATRIX = "matrix"
    OPERATOR = "operator"
    QUATERNION = "quaternion"

    @property
    def commutative(self) -> bool:
        return self is SymbolKind.SCALAR


class Expression:
    """Base class for all expression nodes."""

    __slots__ = ()

    def __add__(self, other):
        return add(self, other)

    def __radd__(self, other):
        return add(other, self)

    def __sub__(self, other):
        return sub(self, other)

    def __rsub__(self, other):
        return sub(other, self)

    def __mul__(self, other):
        return mul(self, other)

    def __rmul__(self, other):
        return mul(other, self)

    def __truediv__(self, other):
        return div(self, other)

    def __rtruediv__(self, other):
        return div(other, self)

    def __pow__(self, other):
        return power(self, other)

    def __rpow__(self, other):
        return power(other, self)

    def __neg__(self):
        return neg(self)

    def __pos__(self):
        return self

    def __str__(self) -> str:
        from .formatter import to_string

        return to_string(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"


@dataclass(frozen=True, repr=False, eq=False)
class Number(Expression):
    """Numeric literal; exact and floating literals never compare equal."""

    value: NumberValue

    def __post_init__(self):
        object.__setattr__(self, "value", _normalize(self.value))

    def _identity(self) -> tuple:
        return (isinstance(self.value, float), self.value)

    def __eq__(self, other):
        if not isinstance(other, Number):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self):
        return hash(self._identity())

    @property
    def is_exact(self) -> bool:
        return not isinstance(self.value, float)

    @property
    def is_integer(self) -> bool:
        return isinstance(self.value, int)


@dataclass(frozen=True, repr=False)
class Constant(Expression):
    """Named mathematical constant: pi, E, I (imaginary unit) or oo."""

    name: str


@dataclass(frozen=True, repr=False)
class Symbol(Expression):
    name: str
    kind: SymbolKind = SymbolKind.SCALAR

    @property
    def commutative(self) -> bool:
        return self.kind.commutative


@dataclass(frozen=True, repr=False)
class Sum(Expression):
    terms: tuple[Expression, ...]


@dataclass(frozen=True, repr=False)
class Product(Expression):
    factors: tuple[Expression, ...]


@dataclass(frozen=True, repr=False)
class Power(Expression):
    base: Expression
    exponent: Expression


@dataclass(frozen=True, repr=False)
class Function(Expression):
    name: str
    args: tuple[Expression, ...]


@dataclass(frozen=True, repr=False)
class Derivative(Expression):
    """Derivative marker: d^n expr / d variables[0] ... d variables[-1]."""

    expr: Expression
    variables: tuple[Symbol, ...]

    @property
    def order(self) -> int:
        return len(self.variables)

    @property
    def independent_variables(self) -> frozenset[Symbol]:
        return frozenset(self.variables)


@dataclass(frozen=True)
class Equation:
    """Relation ``lhs = rhs``."""

    lhs: Expression
    rhs: Expression

    def zero_form(self) -> Expression:
        return sub(self.lhs, self.rhs)

    def __str__(self) -> str:
        from .formatter import to_string

        return to_string(self)


@dataclass(frozen=True)
class EquationSystem:
    """Equations given simultaneously."""

    equations: tuple[Union[Expression, Equation], ...]

    def zero_forms(self) -> tuple[Expression, ...]:
        return tuple(zero_form(eq) for eq in self.equations)

    def __len__(self) -> int:
        return len(self.equations)

    def __iter__(self):
        return iter(self.equations)

    def __str__(self) -> str:
        from .formatter import to_string

        return to_string(self)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def _normalize(value) -> NumberValue:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Fraction):
        return value.numerator if value.denominator == 1 else value
    if isinstance(value, (int, float)):
        return value
    raise TypeError(f"Unsupported numeric literal: {value!r}")


def _exact_root(value: int, n: int) -> int | None:
    """Integer n-th root of a non-negative integer, or None if inexact."""
    if value < 0:
        return None
    if value in (0, 1):
        return value
    if value.bit_length() > 2048:
        return None
    guess = int(round(value ** (1.0 / n)))
    for candidate in (guess - 1, guess, guess + 1):
        if candidate >= 0 and candidate**n == value:
            return candidate
    return None


def _num_pow(base: NumberValue, exp: NumberValue) -> NumberValue | None:
    """Fold ``base**exp`` when the result is representable, else None."""
    try:
        if isinstance(exp, int):
            if base == 0 and exp < 0:
                return None
            if abs(exp) > MAX_FOLD_EXPONENT and not isinstance(base, float):
                return None
            if isinstance(base, int) and exp < 0:
                return _normalize(Fraction(1, base**-exp))
            return _normalize(base**exp)
        if isinstance(exp, Fraction):
            if base == 0:
                return 0 if exp > 0 else None
            if base < 0:
                return None
            if isinstance(base, float):
                return base ** float(exp)
            rational = Fraction(base)
            num = _exact_root(rational.numerator, exp.denominator)
            den = _exact_root(rational.denominator, exp.denominator)
            if num is None or den is None:
                return None
            return _num_pow(_normalize(Fraction(num, den)), exp.numerator)
        if base == 0 and exp <= 0:
            return None
        if base < 0:
            return None
        return float(base) ** exp
    except (OverflowError, ZeroDivisionError):
        return None


ZERO = Number(0)
ONE = Number(1)
NEG_ONE = Number(-1)
HALF = Number(Fraction(1, 2))
PI = Constant("pi")
E = Constant("E")
I = Constant("I")
INFINITY = Constant("oo")
EULER_GAMMA = Constant("EulerGamma")


def as_expression(value) -> Expression:
    """Coerce Python numbers and names into expression nodes."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, (bool, int, Fraction, float)):
        return Number(value)
    if isinstance(value, str):
        return Symbol(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to Expression")


def is_zero(expr: Expression) -> bool:
    return isinstance(expr, Number) and expr.value == 0


def is_one(expr: Expression) -> bool:
    return isinstance(expr, Number) and expr.value == 1


def _is_zero_division(expr: Expression) -> bool:
    return (
        isinstance(expr, Power)
        and is_zero(expr.base)
        and isinstance(expr.exponent, Number)
        and expr.exponent.value < 0
    )


def contains_zero_division(expr: Expression) -> bool:
    """True if ``expr`` has a literal ``0**-n`` anywhere in it."""
    return any(_is_zero_division(node) for node in walk(expr))


# ---------------------------------------------------------------------------
# Canonical ordering
# ---------------------------------------------------------------------------

_ONE_KEY = ((0, 1),)


def _core_key(expr: Expression) -> tuple:
    if isinstance(expr, Number):
        return (0, expr.value)
    if isinstance(expr, Constant):
        return (1, expr.name)
    if isinstance(expr, Symbol):
        return (2, expr.name, expr.kind.value)
    if isinstance(expr, Function):
        return (3, expr.name, tuple(sort_key(a) for a in expr.args))
    if isinstance(expr, Derivative):
        return (4, sort_key(expr.expr), tuple(v.name for v in expr.variables))
    if isinstance(expr, Sum):
        return (5, tuple(sort_key(t) for t in expr.terms))
    if isinstance(expr, Product):
        return (6, tuple(sort_key(f) for f in expr.factors))
    if isinstance(expr, Power):
        return (7, sort_key(expr.base), sort_key(expr.exponent))
    raise TypeError(f"Not an expression node: {expr!r}")


def sort_key(expr: Expression) -> tuple:
    """Total order used to sort commutative operands.

    Powers sort next to their base so ``x`` precedes ``x**2`` and both
    precede ``y``.
    """
    if isinstance(expr, Power):
        return (_core_key(expr.base), sort_key(expr.exponent))
    return (_core_key(expr), _ONE_KEY)


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def integer(value: int) -> Number:
    return Number(int(value))


def rational(numerator: int, denominator: int) -> Expression:
    """Exact rational ``numerator/denominator``; a zero denominator stays symbolic."""
    if denominator == 0:
        unevaluated = Power(ZERO, NEG_ONE)
        if numerator == 1:
            return unevaluated
        return Product((Number(numerator), unevaluated))
    return Number(Fraction(numerator, denominator))


def real(value: float) -> Number:
    return Number(float(value))


def symbol(name: str, kind: SymbolKind = SymbolKind.SCALAR) -> Symbol:
    return Symbol(name, kind)


def symbols(names: str, kind: SymbolKind = SymbolKind.SCALAR) -> tuple[Symbol, ...]:
    return tuple(Symbol(n, kind) for n in names.replace(",", " ").split())


def matrix_symbol(name: str) -> Symbol:
    return Symbol(name, SymbolKind.MATRIX)


def operator_symbol(name: str) -> Symbol:
    return Symbol(name, SymbolKind.OPERATOR)


def _split_coefficient(term: Expression) -> tuple[NumberValue, Expression]:
    if isinstance(term, Product) and isinstance(term.factors[0], Number):
        rest = term.factors[1:]
        return term.factors[0].value, rest[0] if len(rest) == 1 else Product(rest)
    return 1, term


def add(*terms) -> Expression:
    """Canonical n-ary sum."""
    flat: list[Expression] = []
    for term in terms:
        term = as_expression(term)
        if isinstance(term, Sum):
            flat.extend(term.terms)
        else:
            flat.append(term)

    numeric: NumberValue = 0
    coefficients: dict[Expression, NumberValue] = {}
    # Terms dividing by a literal zero are never collected or cancelled
    undefined: list[Expression] = []
    for term in flat:
        if isinstance(term, Number):
            numeric = numeric + term.value
            continue
        if contains_zero_division(term):
            undefined.append(term)
            continue
        coeff, rest = _split_coefficient(term)
        coefficients[rest] = coefficients.get(rest, 0) + coeff

    rebuilt: list[Expression] = list(undefined)
    for rest, coeff in coefficients.items():
        if coeff == 0:
            continue
        rebuilt.append(rest if coeff == 1 else mul(Number(coeff), rest))

    if numeric != 0 or not rebuilt:
        rebuilt.append(Number(numeric))
    if len(rebuilt) == 1:
        return rebuilt[0]
    rebuilt.sort(key=sort_key)
    return Sum(tuple(rebuilt))


def _base_and_exponent(expr: Expression) -> tuple[Expression, Expression]:
    if isinstance(expr, Power):
        return expr.base, expr.exponent
    return expr, ONE


def mul(*factors) -> Expression:
    """Canonical n-ary product.

    Commutative factors are grouped by base and sorted; noncommutative
    factors stay in the given order after them, with adjacent equal bases
    merged.
    """
    flat: list[Expression] = []
    for factor in factors:
        factor = as_expression(factor)
        if isinstance(factor, Product):
            flat.extend(factor.factors)
        else:
            flat.append(factor)

    coeff: NumberValue = 1
    commutative_bases: dict[Expression, Expression] = {}
    noncommutative: list[tuple[Expression, Expression]] = []
    has_zero_division = False
    for factor in flat:
        if isinstance(factor, Number):
            coeff = coeff * factor.value
            continue
        if contains_zero_division(factor):
            has_zero_division = True
        base, exp = _base_and_exponent(factor)
        if is_commutative(factor):
            if base in commutative_bases:
                commutative_bases[base] = add(commutative_bases[base], exp)
            else:
                commutative_bases[base] = exp
        elif noncommutative and noncommutative[-1][0] == base:
            noncommutative[-1] = (base, add(noncommutative[-1][1], exp))
        else:
            noncommutative.append((base, exp))

    if coeff == 0 and not has_zero_division:
        return Number(coeff)

    rebuilt: list[Expression] = []
    for base, exp in commutative_bases.items():
        folded = power(base, exp)
        parts = folded.factors if isinstance(folded, Product) else (folded,)
        for part in parts:
            if isinstance(part, Number):
                coeff = coeff * part.value
            else:
                rebuilt.append(part)

    ordered: list[Expression] = []
    for base, exp in noncommutative:
        folded = power(base, exp)
        if isinstance(folded, Number):
            coeff = coeff * folded.value
        else:
            ordered.append(folded)

    if coeff == 0 and not has_zero_division:
        return Number(coeff)

    bases = [_base_and_exponent(f)[0] for f in rebuilt]
    if len(set(bases)) != len(bases):
        # Folding produced a repeated base (e.g. I from two square roots)
        return mul(Number(coeff), *rebuilt, *ordered)

    rebuilt.sort(key=sort_key)
    result = rebuilt + ordered
    if coeff != 1 or not result:
        result.insert(0, Number(coeff))
    if len(result) == 1:
        return result[0]
    return Product(tuple(result))


def power(base, exponent) -> Expression:
    """Canonical power ``base**exponent``."""
    base = as_expression(base)
    exponent = as_expression(exponent)

    if is_zero(exponent) and isinstance(exponent.value, int):
        return ONE
    if is_one(exponent):
        return base
    if is_one(base) and isinstance(base.value, int):
        return ONE

    if isinstance(base, Number) and isinstance(exponent, Number):
        folded = _num_pow(base.value, exponent.value)
        if folded is not None:
            return Number(folded)
        if base.value < 0 and exponent.value == Fraction(1, 2):
            return mul(I, power(Number(-base.value), exponent))
        return Power(base, exponent)

    if base == I and isinstance(exponent, Number) and exponent.is_integer:
        return (ONE, I, NEG_ONE, mul(NEG_ONE, I))[exponent.value % 4]

    if (
        isinstance(base, Power)
        and isinstance(exponent, Number)
        and exponent.is_integer
        and isinstance(base.exponent, Number)
    ):
        return power(base.base, mul(base.exponent, exponent))

    if (
        isinstance(base, Product)
        and isinstance(exponent, Number)
        and exponent.is_integer
        and is_commutative(base)
    ):
        return mul(*(power(f, exponent) for f in base.factors))

    return Power(base, exponent)


def neg(expr) -> Expression:
    return mul(NEG_ONE, expr)


def sub(a, b) -> Expression:
    return add(a, neg(b))


def div(a, b) -> Expression:
    """``a * b**-1``; never fails, a zero divisor is reported by ``evaluate``."""
    return mul(a, power(b, NEG_ONE))


def sqrt(expr) -> Expression:
    return power(expr, HALF)


def func(name: str, *args) -> Function:
    return Function(name, tuple(as_expression(a) for a in args))


def diff(expr, *variables: Symbol) -> Derivative:
    """Derivative marker; repeat a variable for higher order."""
    if not variables:
        raise ValueError("diff() needs at least one independent variable")
    return Derivative(as_expression(expr), tuple(variables))


def equation(lhs, rhs=0) -> Equation:
    return Equation(as_expression(lhs), as_expression(rhs))


def system(*equations) -> EquationSystem:
    return EquationSystem(
        tuple(eq if isinstance(eq, Equation) else as_expression(eq) for eq in equations)
    )


def zero_form(eq: Union[Expression, Equation]) -> Expression:
    """Move everything to one side: ``lhs - rhs`` (expressions are already ``= 0``)."""
    if isinstance(eq, Equation):
        return eq.zero_form()
    return as_expression(eq)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def children(expr: Expression) -> tuple[Expression, ...]:
    if isinstance(expr, Sum):
        return expr.terms
    if isinstance(expr, Product):
        return expr.factors
    if isinstance(expr, Power):
        return (expr.base, expr.exponent)
    if isinstance(expr, Function):
        return expr.args
    if isinstance(expr, Derivative):
        return (expr.expr,) + expr.variables
    return ()


def walk(expr: Expression) -> Iterator[Expression]:
    """Pre-order traversal."""
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def free_symbols(expr: Union[Expression, Equation, EquationSystem]) -> frozenset[Symbol]:
    if isinstance(expr, Equation):
        return free_symbols(expr.lhs) | free_symbols(expr.rhs)
    if isinstance(expr, EquationSystem):
        found: frozenset[Symbol] = frozenset()
        for eq in expr.equations:
            found |= free_symbols(eq)
        return found
    return frozenset(node for node in walk(expr) if isinstance(node, Symbol))


def contains(expr: Expression, target: Expression) -> bool:
    return any(node == target for node in walk(expr))


def is_commutative(expr: Expression) -> bool:
    return all(
        node.commutative for node in walk(expr) if isinstance(node, Symbol)
    )


def rebuild(expr: Expression, new_children) -> Expression:
    """Rebuild ``expr`` with new children through the canonical constructors."""
    new_children = tuple(new_children)
    if isinstance(expr, Sum):
        return add(*new_children)
    if isinstance(expr, Product):
        return mul(*new_children)
    if isinstance(expr, Power):
        return power(*new_children)
    if isinstance(expr, Function):
        return Function(expr.name, new_children)
    if isinstance(expr, Derivative):
        variables = tuple(v for v in new_children[1:] if isinstance(v, Symbol))
        if len(variables) != len(expr.variables):
            # An independent variable was substituted away
            return Derivative(new_children[0], expr.variables)
        return Derivative(new_children[0], variables)
    return expr


def substitute(expr: Expression, mapping: Mapping) -> Expression:
    """Replace sub-trees structurally; keys may be expressions or symbol names."""
    by_node: dict[Expression, Expression] = {}
    by_name: dict[str, Expression] = {}
    for key, value in mapping.items():
        if isinstance(key, str):
            by_name[key] = as_expression(value)
        else:
            by_node[as_expression(key)] = as_expression(value)

    def visit(node: Expression) -> Expression:
        if node in by_node:
            return by_node[node]
        if isinstance(node, Symbol) and node.name in by_name:
            return by_name[node.name]
        kids = children(node)
        if not kids:
            return node
        return rebuild(node, (visit(k) for k in kids))

    return visit(expr)


def _expand_product(factors) -> Expression:
    result_terms: list[Expression] = [ONE]
    for factor in factors:
        factor_terms = factor.terms if isinstance(factor, Sum) else (factor,)
        result_terms = [mul(a, b) for a in result_terms for b in factor_terms]
    return add(*result_terms)


def expand(expr: Expression) -> Expression:
    """Distribute products over sums and expand small integer powers of sums."""
    if isinstance(expr, Sum):
        return add(*(expand(t) for t in expr.terms))
    if isinstance(expr, Product):
        return _expand_product([expand(f) for f in expr.factors])
    if isinstance(expr, Power):
        base = expand(expr.base)
        exponent = expand(expr.exponent)
        if (
            isinstance(base, Sum)
            and isinstance(exponent, Number)
            and exponent.is_integer
            and 1 < exponent.value <= MAX_EXPAND_EXPONENT
        ):
            return _expand_product([base] * exponent.value)
        return power(base, exponent)
    if isinstance(expr, Function):
        return Function(expr.name, tuple(expand(a) for a in expr.args))
    if isinstance(expr, Derivative):
        return Derivative(expand(expr.expr), expr.variables)
    return expr


def polynomial_coefficients(
    expr: Expression, variable: Symbol
) -> dict[int, Expression] | None:
    """Coefficients of ``expr`` as a polynomial in ``variable``.

    Returns a mapping degree -> coefficient (zero coefficients omitted), or
    None when ``expr`` is not a polynomial in ``variable``.
    """
    expanded = expand(expr)
    terms = expanded.terms if isinstance(expanded, Sum) else (expanded,)
    coefficients: dict[int, Expression] = {}
    for term in terms:
        factors = term.factors if isinstance(term, Product) else (term,)
        degree = 0
        rest: list[Expression] = []
        for factor in factors:
            if factor == variable:
                degree += 1
            elif (
                isinstance(factor, Power)
                and factor.base == variable
                and isinstance(factor.exponent, Number)
                and factor.exponent.is_integer
                and factor.exponent.value >= 0
            ):
                degree += factor.exponent.value
            elif contains(factor, variable):
                return None
            else:
                rest.append(factor)
        coefficients[degree] = add(coefficients.get(degree, ZERO), mul(*rest))
    return {d: c for d, c in coefficients.items() if not is_zero(c)}


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _default_registry(registry):
    if registry is not None:
        return registry
    from .registry import default_registry

    return default_registry()


def evaluate(expr: Expression, env: Mapping | None = None, registry=None) -> Expression:
    """Substitute ``env`` and simplify, consulting the function registry.

    Raises:
        DomainError: on division by zero or a registered function evaluated
            at a pole or outside its domain
    """
    registry = _default_registry(registry)
    source = substitute(expr, env) if env else expr

    def visit(node: Expression) -> Expression:
        if isinstance(node, Power):
            base = visit(node.base)
            exponent = visit(node.exponent)
            if is_zero(base) and isinstance(exponent, Number) and exponent.value < 0:
                raise DomainError("Division by zero", "DIVISION_BY_ZERO")
            return power(base, exponent)
        if isinstance(node, Function):
            args = tuple(visit(a) for a in node.args)
            outcome = registry.evaluate(node.name, args)
            if outcome.is_exact:
                return outcome.exact
            if outcome.is_undefined:
                rendered = ", ".join(str(a) for a in args)
                raise DomainError(
                    f"{node.name}({rendered}) is undefined", "OUT_OF_DOMAIN"
                )
            if outcome.is_numeric:
                return Number(outcome.numeric)
            return Function(node.name, args)
        kids = children(node)
        if not kids:
            return node
        return rebuild(node, (visit(k) for k in kids))

    return visit(source)


_CONSTANT_VALUES = {
    "pi": math.pi,
    "E": math.e,
    "EulerGamma": 0.5772156649015329,
    "oo": math.inf,
}


def evaluate_float(expr: Expression, env: Mapping | None = None, registry=None) -> float:
    """Evaluate to a float.

    Raises:
        DomainError: for unbound symbols, division by zero, complex results,
            or registered functions evaluated outside their domain
    """
    registry = _default_registry(registry)
    values: dict = {}
    for key, value in (env or {}).items():
        values[key.name if isinstance(key, Symbol) else key] = value

    def visit(node: Expression) -> float:
        if isinstance(node, Number):
            return float(node.value)
        if isinstance(node, Constant):
            if node.name not in _CONSTANT_VALUES:
                raise DomainError(f"{node.name} has no real value", "COMPLEX_RESULT")
            return _CONSTANT_VALUES[node.name]
        if isinstance(node, Symbol):
            if node.name not in values:
                raise DomainError(f"Unbound symbol {node.name}", "UNBOUND_SYMBOL")
            value = values[node.name]
            return visit(value) if isinstance(value, Expression) else float(value)
        if isinstance(node, Sum):
            return math.fsum(visit(t) for t in node.terms)
        if isinstance(node, Product):
            result = 1.0
            for factor in node.factors:
                result *= visit(factor)
            return result
        if isinstance(node, Power):
            base = visit(node.base)
            exponent = visit(node.exponent)
            if base == 0.0 and exponent < 0:
                raise DomainError("Division by zero", "DIVISION_BY_ZERO")
            if base < 0 and not float(exponent).is_integer():
                raise DomainError("Complex result", "COMPLEX_RESULT")
            try:
                return base**exponent
            except OverflowError as e:
                raise DomainError(f"Overflow: {e}", "OVERFLOW") from e
        if isinstance(node, Function):
            result = registry.evaluate_numeric(node.name, [visit(a) for a in node.args])
            if math.isnan(result):
                raise DomainError(f"{node.name} undefined at this point", "OUT_OF_DOMAIN")
            return result
        raise DomainError(
            f"Cannot evaluate {node.__class__.__name__} numerically", "NOT_NUMERIC"
        )

    return visit(expr)
