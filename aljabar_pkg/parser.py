"""Text input parsing.

This module handles:
- Input validation (length, forbidden tokens, balanced delimiters)
- Preprocessing (prime notation ``y'`` -> ``diff(y, x)``, ``==`` -> ``=``)
- SymPy parsing with the configured transformations (``^`` as power,
  implicit multiplication)
- Tree validation (depth and node limits) and conversion into the engine's
  expression model

Registered functions are parsed as unevaluated applications so that exact
evaluation stays with the function registry. Noncommutative symbols are never
inferred from their names; callers list them through ``matrices`` and
``operators``.
"""

from __future__ import annotations

from tokenize import TokenError
from typing import Any, Iterable

import sympy as sp
from sympy import parse_expr

from .bridge import from_sympy
from .config import (
    FORBIDDEN_TOKENS,
    MAX_EXPRESSION_DEPTH,
    MAX_EXPRESSION_NODES,
    MAX_INPUT_LENGTH,
    PRIME_REGEX,
    TRANSFORMATIONS,
    VAR_NAME_RE,
)
from .expression import Equation, EquationSystem, Expression, Symbol, SymbolKind
from .logging_config import get_logger
from .registry import FunctionRegistry, default_registry
from .types import ParseError, SolverError, ValidationError

logger = get_logger("parser")

# Names that must reach SymPy as its own objects rather than undefined functions
_SYMPY_NATIVE = {"sqrt": sp.sqrt}


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses/brackets are balanced. Returns (is_balanced, error_position)."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack: list[tuple[str, int]] = []  # (char, position)
    for i, char in enumerate(input_str):
        if char in pairs:
            stack.append((char, i))
        elif char in pairs.values():
            if not stack:
                return False, i
            opening, _ = stack.pop()
            if pairs[opening] != char:
                return False, i
    if stack:
        return False, stack[0][1]  # Return position of first unmatched
    return True, None


def split_top_level_commas(input_str: str) -> list[str]:
    """Split string by commas that are not inside (), [], or {}."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in input_str:
        if char == "," and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            continue
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(0, depth - 1)
        current.append(char)
    last = "".join(current).strip()
    if last:
        parts.append(last)
    return parts


def validate_input(input_str: str) -> str:
    """Reject empty, oversized, unbalanced or dangerous input.

    Raises:
        ValidationError: with a code describing the first problem found
    """
    text = input_str.strip() if input_str else ""
    if not text:
        raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
    if len(text) > MAX_INPUT_LENGTH:
        raise ValidationError(f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG")
    lowered = text.lower()
    for token in FORBIDDEN_TOKENS:
        if token in lowered:
            logger.warning("Blocked forbidden token", extra={"forbidden_token": token})
            raise ValidationError(f"Forbidden token '{token}' in input", "FORBIDDEN_TOKEN")
    balanced, position = is_balanced(text)
    if not balanced:
        raise ValidationError(
            f"Unbalanced parentheses or brackets at position {position}", "UNBALANCED_PARENS"
        )
    return text


def validate_variable_name(name: str) -> str:
    name = name.strip()
    if not VAR_NAME_RE.match(name):
        raise ValidationError(f"Invalid variable name '{name}'", "INVALID_VARIABLE")
    return name


def expand_primes(input_str: str, independent: str = "x") -> str:
    """Rewrite prime notation: ``y''`` becomes ``diff(y, x, x)``."""

    def replace(match) -> str:
        order = len(match.group(2))
        return f"diff({match.group(1)}, {', '.join([independent] * order)})"

    return PRIME_REGEX.sub(replace, input_str)


def _validate_tree(expr: Any, depth: int = 0, node_count: list[int] | None = None) -> None:
    """Enforce depth and size limits on a parsed SymPy tree."""
    if node_count is None:
        node_count = [0]
    node_count[0] += 1
    if node_count[0] > MAX_EXPRESSION_NODES:
        raise ValidationError(
            f"Expression too complex (>{MAX_EXPRESSION_NODES} nodes)", "TOO_COMPLEX"
        )
    if depth > MAX_EXPRESSION_DEPTH:
        raise ValidationError(
            f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)", "TOO_DEEP"
        )
    if not isinstance(expr, sp.Basic):
        raise ValidationError(
            f"Expression type '{type(expr).__name__}' not allowed", "FORBIDDEN_TYPE"
        )
    for arg in expr.args:
        _validate_tree(arg, depth + 1, node_count)


class ExpressionParser:
    """Parses text into expressions, equations and systems.

    Args:
        registry: Registry whose function names are recognized
        matrices: Names to treat as matrix symbols
        operators: Names to treat as operator symbols
        independent: Independent variable used for prime notation
    """

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        matrices: Iterable[str] = (),
        operators: Iterable[str] = (),
        independent: str = "x",
    ):
        self.registry = default_registry() if registry is None else registry
        self.kinds: dict[str, SymbolKind] = {}
        for name in matrices:
            self.kinds[validate_variable_name(name)] = SymbolKind.MATRIX
        for name in operators:
            self.kinds[validate_variable_name(name)] = SymbolKind.OPERATOR
        self.independent = validate_variable_name(independent)
        self._namespace = self._build_namespace()

    def _build_namespace(self) -> dict[str, Any]:
        namespace: dict[str, Any] = {}
        for name in self.registry.names():
            namespace[name] = _SYMPY_NATIVE.get(name) or sp.Function(name)
        for name in self.kinds:
            namespace[name] = sp.Symbol(name, commutative=False)
        return namespace

    def symbol(self, name: str) -> Symbol:
        name = validate_variable_name(name)
        return Symbol(name, self.kinds.get(name, SymbolKind.SCALAR))

    def _parse_sympy(self, text: str) -> sp.Basic:
        try:
            parsed = parse_expr(
                text,
                local_dict=dict(self._namespace),
                transformations=TRANSFORMATIONS,
                evaluate=True,
            )
        except (SyntaxError, TokenError) as e:
            raise ParseError(f"Syntax error in '{text}': {e}", "SYNTAX_ERROR") from e
        except (
            TypeError, ValueError, AttributeError, NameError, IndexError, ArithmeticError
        ) as e:
            raise ParseError(f"Could not parse '{text}': {e}", "PARSE_ERROR") from e
        _validate_tree(parsed)
        return parsed

    def parse_expression(self, text: str) -> Expression:
        """Parse a single expression (no ``=``).

        Raises:
            ValidationError: if the input fails validation
            ParseError: if SymPy cannot parse it or the result has no
                expression-tree counterpart
        """
        text = expand_primes(validate_input(text), self.independent)
        if "=" in text:
            raise ParseError("Unexpected '=' in expression", "UNEXPECTED_EQUALS")
        parsed = self._parse_sympy(text)
        try:
            return from_sympy(parsed, self.kinds)
        except (SolverError, TypeError, ValueError) as e:
            raise ParseError(str(e), "UNSUPPORTED_EXPRESSION") from e

    def parse_equation(self, text: str) -> Expression | Equation:
        """Parse ``lhs = rhs``; text without ``=`` is an expression meaning ``= 0``."""
        text = validate_input(text).replace("==", "=")
        parts = text.split("=")
        if len(parts) == 1:
            return self.parse_expression(text)
        if len(parts) != 2:
            raise ParseError(
                "Invalid equation format: expected exactly one '='", "INVALID_FORMAT"
            )
        lhs, rhs = parts[0].strip(), parts[1].strip()
        if not lhs or not rhs:
            raise ParseError("Both sides of '=' must be non-empty", "INVALID_FORMAT")
        return Equation(self.parse_expression(lhs), self.parse_expression(rhs))

    def parse_system(self, text: str) -> EquationSystem:
        """Parse comma-separated equations into a system."""
        parts = split_top_level_commas(validate_input(text))
        if not parts:
            raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
        return EquationSystem(tuple(self.parse_equation(part) for part in parts))


def parse_expression(text: str, **options) -> Expression:
    return ExpressionParser(**options).parse_expression(text)


def parse_equation(text: str, **options) -> Expression | Equation:
    return ExpressionParser(**options).parse_equation(text)


def parse_system(text: str, **options) -> EquationSystem:
    return ExpressionParser(**options).parse_system(text)
