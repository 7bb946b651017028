"""Conversion between expression trees and SymPy objects.

SymPy supplies the leaf algorithms (polynomial roots, Groebner bases,
linear elimination, dsolve/pdsolve). The engine never hands SymPy objects to
its callers: everything crosses back through ``from_sympy``.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Mapping

import sympy as sp
from sympy.core.function import AppliedUndef

from .expression import (
    EULER_GAMMA,
    INFINITY,
    Constant,
    Derivative,
    Equation,
    Expression,
    Function,
    Number,
    Power,
    Product,
    Sum,
    Symbol,
    SymbolKind,
    E,
    I,
    PI,
    add,
    mul,
    power,
)
from .types import SolverError

_CONSTANTS_TO_SYMPY = {
    "pi": sp.pi,
    "E": sp.E,
    "I": sp.I,
    "oo": sp.oo,
    "EulerGamma": sp.EulerGamma,
}

# SymPy function class name -> registry name, where they differ
_SYMPY_ALIASES = {"log": "ln", "Abs": "abs"}


def _sympy_function(name: str, registry):
    properties = registry.lookup(name) if registry is not None else None
    sympy_name = properties.sympy_name if properties is not None else None
    if sympy_name and hasattr(sp, sympy_name):
        return getattr(sp, sympy_name)
    return sp.Function(name)


def to_sympy(
    expr: Expression,
    registry=None,
    functions: Mapping[Symbol, sp.Basic] | None = None,
) -> sp.Basic:
    """Convert an expression tree to SymPy.

    Args:
        expr: Expression to convert
        registry: Function registry used to map function names (default registry
            when None)
        functions: Optional replacement of symbols by SymPy objects, used to turn
            a dependent variable ``y`` into ``y(x)`` for differential equations

    Returns:
        Equivalent SymPy expression; noncommutative symbols become
        ``Symbol(name, commutative=False)``
    """
    if registry is None:
        from .registry import default_registry

        registry = default_registry()
    replacements = dict(functions or {})

    def convert(node: Expression) -> sp.Basic:
        if isinstance(node, Number):
            value = node.value
            if isinstance(value, Fraction):
                return sp.Rational(value.numerator, value.denominator)
            if isinstance(value, float):
                return sp.Float(value)
            return sp.Integer(value)
        if isinstance(node, Constant):
            return _CONSTANTS_TO_SYMPY.get(node.name, sp.Symbol(node.name))
        if isinstance(node, Symbol):
            if node in replacements:
                return replacements[node]
            return sp.Symbol(node.name, commutative=node.commutative)
        if isinstance(node, Sum):
            return sp.Add(*(convert(t) for t in node.terms))
        if isinstance(node, Product):
            return sp.Mul(*(convert(f) for f in node.factors))
        if isinstance(node, Power):
            return sp.Pow(convert(node.base), convert(node.exponent))
        if isinstance(node, Function):
            return _sympy_function(node.name, registry)(*(convert(a) for a in node.args))
        if isinstance(node, Derivative):
            return sp.Derivative(convert(node.expr), *(convert(v) for v in node.variables))
        raise TypeError(f"Cannot convert {node!r} to SymPy")

    return convert(expr)


def equation_to_sympy(equation, registry=None, functions=None) -> sp.Basic:
    """Zero form of an equation (or expression) as a SymPy expression."""
    if isinstance(equation, Equation):
        return to_sympy(equation.lhs, registry, functions) - to_sympy(
            equation.rhs, registry, functions
        )
    return to_sympy(equation, registry, functions)


def from_sympy(obj, kinds: Mapping[str, SymbolKind] | None = None) -> Expression:
    """Convert a SymPy object back into an expression tree.

    Args:
        obj: SymPy expression (plain Python numbers are accepted too)
        kinds: Kind of each noncommutative symbol by name; noncommutative
            symbols not listed default to ``MATRIX``

    Raises:
        SolverError: if the object has no expression-tree counterpart
    """
    kinds = kinds or {}

    def convert(node) -> Expression:
        if isinstance(node, bool):
            return Number(int(node))
        if isinstance(node, (int, float)):
            return Number(node)
        if isinstance(node, sp.Equality):
            return convert(node.lhs - node.rhs)
        if node is sp.S.NaN:
            return Number(math.nan)
        if node is sp.S.Infinity:
            return INFINITY
        if node is sp.S.NegativeInfinity:
            return mul(-1, INFINITY)
        if node is sp.S.ComplexInfinity:
            return Constant("zoo")
        if node is sp.pi:
            return PI
        if node is sp.E:
            return E
        if node is sp.I:
            return I
        if node is sp.EulerGamma:
            return EULER_GAMMA
        if isinstance(node, sp.Integer):
            return Number(int(node))
        if isinstance(node, sp.Rational):
            return Number(Fraction(int(node.p), int(node.q)))
        if isinstance(node, sp.Float):
            return Number(float(node))
        if isinstance(node, sp.Symbol):
            if node.is_commutative:
                return Symbol(node.name)
            return Symbol(node.name, kinds.get(node.name, SymbolKind.MATRIX))
        if isinstance(node, sp.Add):
            return add(*(convert(a) for a in node.args))
        if isinstance(node, sp.Mul):
            return mul(*(convert(a) for a in node.args))
        if isinstance(node, sp.Pow):
            return power(convert(node.base), convert(node.exp))
        if isinstance(node, sp.exp):
            return Function("exp", (convert(node.args[0]),))
        if isinstance(node, sp.Derivative):
            variables: list[Symbol] = []
            for variable, count in node.variable_count:
                converted = convert(variable)
                if not isinstance(converted, Symbol):
                    raise SolverError(f"Unsupported derivative variable {variable}")
                variables.extend([converted] * int(count))
            return Derivative(convert(node.expr), tuple(variables))
        if isinstance(node, AppliedUndef):
            return Function(str(node.func), tuple(convert(a) for a in node.args))
        if isinstance(node, sp.Function):
            name = node.func.__name__
            return Function(
                _SYMPY_ALIASES.get(name, name), tuple(convert(a) for a in node.args)
            )
        if getattr(node, "is_number", False):
            # RootOf and other implicit numbers
            value = complex(sp.N(node))
            if value.imag == 0:
                return Number(value.real)
            return add(value.real, mul(value.imag, I))
        raise SolverError(
            f"Cannot convert {type(node).__name__} to an expression",
            code="UNSUPPORTED_RESULT",
        )

    return convert(obj)
