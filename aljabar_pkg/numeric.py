"""Leaf numeric algorithms.

Each routine returns a ``NumericOutcome`` with an explicit failure variant
instead of raising, so the solvers can turn a numeric dead end into a
``Partial`` or ``Unsupported`` result with a reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
import sympy as sp

from .config import (
    COARSE_GRID_MIN_SIZE,
    MAX_NSOLVE_GUESSES,
    MAX_NSOLVE_STEPS,
    NUMERIC_SEARCH_RADIUS,
    NUMERIC_TOLERANCE,
    ROOT_DEDUP_TOLERANCE,
    ROOT_SEARCH_TOLERANCE,
)
from .logging_config import get_logger

logger = get_logger("numeric")


class NumericFailure(Enum):
    NO_BRACKET = "no bracket found"
    DID_NOT_CONVERGE = "did not converge within iteration budget"
    SINGULAR_MATRIX = "singular matrix"
    NOT_POLYNOMIAL = "not a polynomial"
    INVALID_INPUT = "invalid input"


@dataclass(frozen=True)
class NumericOutcome:
    values: Tuple[complex, ...] = ()
    failure: Optional[NumericFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, values) -> NumericOutcome:
        return cls(tuple(values))

    @classmethod
    def failed(cls, failure: NumericFailure, detail: str = "") -> NumericOutcome:
        return cls((), failure, detail or failure.value)

    def real_values(self) -> List[float]:
        return [
            float(np.real(v)) for v in self.values if abs(np.imag(v)) < NUMERIC_TOLERANCE
        ]


def dedupe(values: Sequence[float], tolerance: float = ROOT_DEDUP_TOLERANCE) -> List[float]:
    """Sorted values with near-duplicates removed."""
    unique: List[float] = []
    for value in sorted(values):
        if not unique or abs(value - unique[-1]) >= tolerance:
            unique.append(value)
    return unique


def polynomial_roots(coefficients: Sequence[complex]) -> NumericOutcome:
    """All complex roots of a polynomial, coefficients highest degree first."""
    try:
        array = np.array(coefficients, dtype=complex)
    except (TypeError, ValueError) as e:
        return NumericOutcome.failed(NumericFailure.INVALID_INPUT, str(e))
    if array.size == 0 or not np.all(np.isfinite(array)):
        return NumericOutcome.failed(NumericFailure.INVALID_INPUT)
    nonzero = np.flatnonzero(np.abs(array) > 0)
    if nonzero.size == 0:
        return NumericOutcome.failed(NumericFailure.INVALID_INPUT, "zero polynomial")
    try:
        roots = np.roots(array[nonzero[0]:])
    except np.linalg.LinAlgError as e:
        return NumericOutcome.failed(NumericFailure.DID_NOT_CONVERGE, str(e))
    return NumericOutcome.success(complex(r) for r in roots)


def solve_linear(matrix, rhs) -> NumericOutcome:
    """Solve ``matrix @ x = rhs`` in floating point."""
    try:
        a = np.array(matrix, dtype=float)
        b = np.array(rhs, dtype=float)
        solution = np.linalg.solve(a, b)
    except np.linalg.LinAlgError as e:
        return NumericOutcome.failed(NumericFailure.SINGULAR_MATRIX, str(e))
    except (TypeError, ValueError) as e:
        return NumericOutcome.failed(NumericFailure.INVALID_INPUT, str(e))
    return NumericOutcome.success(complex(v) for v in solution)


def _sample(expr: sp.Basic, variable: sp.Symbol, point: float) -> Optional[float]:
    try:
        value = complex(sp.N(expr.subs({variable: point})))
    except (ValueError, TypeError, ZeroDivisionError):
        return None
    if abs(value.imag) > NUMERIC_TOLERANCE or value.real != value.real:
        return None
    return value.real


def find_real_roots(
    expr: sp.Basic,
    variable: sp.Symbol,
    interval: Optional[Tuple[float, float]] = None,
    max_guesses: Optional[int] = None,
) -> NumericOutcome:
    """Find real roots of ``expr = 0`` inside an interval.

    Strategies, in order:
        1. Polynomial root finding (``Poly.nroots``)
        2. Sign-change scan over a coarse grid, each bracket refined by ``nsolve``

    Args:
        expr: SymPy expression set to zero
        variable: Symbol to solve for
        interval: Search interval (default: +/- NUMERIC_SEARCH_RADIUS)
        max_guesses: Maximum number of guess points (default: MAX_NSOLVE_GUESSES)

    Returns:
        NumericOutcome with the sorted, de-duplicated real roots, or a failure
        variant (NO_BRACKET, DID_NOT_CONVERGE)
    """
    if max_guesses is None:
        max_guesses = MAX_NSOLVE_GUESSES
    if interval is None:
        interval = (-NUMERIC_SEARCH_RADIUS, NUMERIC_SEARCH_RADIUS)
    interval_min, interval_max = float(interval[0]), float(interval[1])

    try:
        poly = sp.Poly(expr, variable)
        if poly.total_degree() > 0 and all(c.is_number for c in poly.all_coeffs()):
            roots = [
                float(sp.re(root))
                for root in poly.nroots()
                if abs(sp.im(root)) < NUMERIC_TOLERANCE
            ]
            return NumericOutcome.success(dedupe(roots))
    except (sp.PolynomialError, ValueError, TypeError, NotImplementedError):
        # Not a polynomial (trig, exponentials, ...); fall through to the scan
        pass

    coarse_grid_size = max(COARSE_GRID_MIN_SIZE, max_guesses // 3)
    sample_points = [
        interval_min + (interval_max - interval_min) * idx / coarse_grid_size
        for idx in range(coarse_grid_size + 1)
    ]
    candidate_points = []
    previous = None
    for point in sample_points:
        current = _sample(expr, variable, point)
        if current is not None and previous is not None and previous[1] * current <= 0:
            candidate_points.append((previous[0] + point) / 2)
        previous = (point, current) if current is not None else None

    candidate_points = sorted(set(round(c, 8) for c in candidate_points))[:COARSE_GRID_MIN_SIZE]
    if not candidate_points:
        return NumericOutcome.failed(
            NumericFailure.NO_BRACKET,
            f"no sign change in [{interval_min:.4g}, {interval_max:.4g}]",
        )

    roots: List[float] = []
    for guess in candidate_points:
        try:
            root = sp.nsolve(
                expr,
                variable,
                guess,
                tol=ROOT_SEARCH_TOLERANCE,
                maxsteps=MAX_NSOLVE_STEPS,
            )
        except (ValueError, TypeError, NotImplementedError, ZeroDivisionError) as e:
            logger.debug("nsolve failed from guess %s: %s", guess, e)
            continue
        if abs(sp.im(root)) > NUMERIC_TOLERANCE:
            continue
        roots.append(float(sp.re(root)))

    if not roots:
        return NumericOutcome.failed(
            NumericFailure.DID_NOT_CONVERGE,
            f"nsolve did not converge from {len(candidate_points)} bracketed guesses",
        )
    return NumericOutcome.success(dedupe(roots))
