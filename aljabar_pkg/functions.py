"""Built-in elementary and special functions.

Each entry declares its exact special values, an optional exact evaluator
and a float kernel. Exact evaluators only ever see exact arguments or
symbolic ones; float arguments go to the numeric kernel.

Dependencies between evaluators (declared in ``depends_on``):
    beta -> gamma, factorial -> gamma, log -> ln
gamma, digamma, zeta and ln depend on nothing.
"""

from __future__ import annotations

import math
from fractions import Fraction

import mpmath

from .expression import (
    E,
    EULER_GAMMA,
    HALF,
    PI,
    Derivative,
    Function,
    Number,
    Power,
    Symbol,
    add,
    div,
    func,
    mul,
    neg,
    power,
    sqrt,
    sub,
)
from .registry import Domain, FunctionFamily, FunctionProperties, FunctionRegistry
from .types import EvaluationResult

# Exact factorials above this size are left unevaluated
MAX_EXACT_FACTORIAL = 1000


def _pi_times(numerator: int, denominator: int = 1):
    return mul(Fraction(numerator, denominator), PI)


def _exact_number(arg) -> bool:
    return isinstance(arg, Number) and arg.is_exact


def _exact(expr) -> EvaluationResult:
    return EvaluationResult.exact_of(expr)


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------


def _gamma_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if not _exact_number(a):
        return None
    value = a.value
    if isinstance(value, int):
        if value <= 0:
            return EvaluationResult.undefined()
        if value - 1 > MAX_EXACT_FACTORIAL:
            return None
        return _exact(Number(math.factorial(value - 1)))
    if value.denominator == 2:
        # Gamma(n + 1/2) = (2n)! / (4^n n!) * sqrt(pi)
        n = int(value - Fraction(1, 2))
        if abs(n) > MAX_EXACT_FACTORIAL:
            return None
        if n >= 0:
            coeff = Fraction(math.factorial(2 * n), 4**n * math.factorial(n))
        else:
            m = -n
            coeff = Fraction((-4) ** m * math.factorial(m), math.factorial(2 * m))
        return _exact(mul(coeff, sqrt(PI)))
    return None


def _factorial_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if not _exact_number(a):
        return None
    if isinstance(a.value, int):
        if a.value < 0:
            return EvaluationResult.undefined()
        if a.value > MAX_EXACT_FACTORIAL:
            return None
        return _exact(Number(math.factorial(a.value)))
    shifted = registry.evaluate("gamma", [add(a, 1)])
    if shifted.is_exact or shifted.is_undefined:
        return shifted
    return None


def _beta_evaluator(registry: FunctionRegistry, args):
    a, b = args
    if not (_exact_number(a) and _exact_number(b)):
        return None
    gamma_a = registry.evaluate("gamma", [a])
    gamma_b = registry.evaluate("gamma", [b])
    if gamma_a.is_undefined or gamma_b.is_undefined:
        return EvaluationResult.undefined()
    if not (gamma_a.is_exact and gamma_b.is_exact):
        return None
    gamma_sum = registry.evaluate("gamma", [add(a, b)])
    if gamma_sum.is_undefined:
        # Finite numerator over a pole
        return _exact(Number(0))
    if not gamma_sum.is_exact:
        return None
    return _exact(div(mul(gamma_a.exact, gamma_b.exact), gamma_sum.exact))


def _digamma_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if not _exact_number(a) or not isinstance(a.value, int):
        return None
    if a.value <= 0:
        return EvaluationResult.undefined()
    if a.value > MAX_EXACT_FACTORIAL:
        return None
    # psi(n) = -EulerGamma + H(n - 1)
    harmonic = sum((Fraction(1, k) for k in range(1, a.value)), Fraction(0))
    return _exact(add(neg(EULER_GAMMA), harmonic))


def _zeta_evaluator(registry: FunctionRegistry, args):
    (s,) = args
    if not _exact_number(s) or not isinstance(s.value, int):
        return None
    if s.value == 1:
        return EvaluationResult.undefined()
    if s.value < 0 and s.value % 2 == 0:
        return _exact(Number(0))
    return None


def _sqrt_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if isinstance(a, Number) and not a.is_exact:
        return None
    return _exact(power(a, HALF))


def _abs_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if _exact_number(a):
        return _exact(Number(abs(a.value)))
    return None


def _exp_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if isinstance(a, Function) and a.name == "ln" and len(a.args) == 1:
        return _exact(a.args[0])
    return None


def _ln_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if _exact_number(a) and a.value <= 0:
        return EvaluationResult.undefined()
    if isinstance(a, Function) and a.name == "exp" and len(a.args) == 1:
        return _exact(a.args[0])
    if isinstance(a, Power) and a.base == E:
        return _exact(a.exponent)
    return None


def _log_evaluator(registry: FunctionRegistry, args):
    if len(args) == 1:
        return registry.evaluate("ln", args)
    if len(args) != 2:
        return None
    x, base = args
    if not (_exact_number(x) and _exact_number(base)):
        return None
    if x.value <= 0 or base.value <= 0 or base.value == 1:
        return EvaluationResult.undefined()
    if x.value == 1:
        return _exact(Number(0))
    if isinstance(x.value, int) and isinstance(base.value, int) and base.value > 1:
        exponent, remaining = 0, x.value
        while remaining % base.value == 0:
            remaining //= base.value
            exponent += 1
        if remaining == 1:
            return _exact(Number(exponent))
    return None


def _log_numeric(x: float, base: float = math.e) -> float:
    return math.log(x, base)


def _unit_interval_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if _exact_number(a) and abs(a.value) > 1:
        return EvaluationResult.undefined()
    return None


def _tan_evaluator(registry: FunctionRegistry, args):
    (a,) = args
    if a == _pi_times(1, 2):
        return EvaluationResult.undefined()
    return None


def _diff_evaluator(registry: FunctionRegistry, args):
    expr, *variables = args
    if variables and all(isinstance(v, Symbol) for v in variables):
        return _exact(Derivative(expr, tuple(variables)))
    return None


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


def _elementary() -> list[FunctionProperties]:
    root2_half = mul(HALF, sqrt(2))
    root3_half = mul(HALF, sqrt(3))
    inverse_root = lambda x: power(sub(1, power(x, 2)), Fraction(-1, 2))  # noqa: E731
    return [
        FunctionProperties(
            name="sin",
            special_values={
                (0,): 0,
                (_pi_times(1, 6),): HALF,
                (_pi_times(1, 4),): root2_half,
                (_pi_times(1, 3),): root3_half,
                (_pi_times(1, 2),): 1,
                (PI,): 0,
            },
            numeric=math.sin,
            transcendental=True,
            derivative=lambda args: func("cos", args[0]),
            sympy_name="sin",
            period=_pi_times(2),
            functional_equation="sin(-x) = -sin(x)",
        ),
        FunctionProperties(
            name="cos",
            special_values={
                (0,): 1,
                (_pi_times(1, 6),): root3_half,
                (_pi_times(1, 4),): root2_half,
                (_pi_times(1, 3),): HALF,
                (_pi_times(1, 2),): 0,
                (PI,): -1,
            },
            numeric=math.cos,
            transcendental=True,
            derivative=lambda args: neg(func("sin", args[0])),
            sympy_name="cos",
            period=_pi_times(2),
            functional_equation="cos(-x) = cos(x)",
        ),
        FunctionProperties(
            name="tan",
            domain=Domain.EXCLUDES_POLES,
            domain_text="x != pi/2 + k*pi",
            special_values={
                (0,): 0,
                (_pi_times(1, 6),): div(1, sqrt(3)),
                (_pi_times(1, 4),): 1,
                (_pi_times(1, 3),): sqrt(3),
                (PI,): 0,
            },
            evaluator=_tan_evaluator,
            numeric=math.tan,
            transcendental=True,
            derivative=lambda args: add(1, power(func("tan", args[0]), 2)),
            sympy_name="tan",
            period=PI,
        ),
        FunctionProperties(
            name="asin",
            domain=Domain.UNIT_INTERVAL,
            domain_text="-1 <= x <= 1",
            special_values={
                (0,): 0,
                (HALF,): _pi_times(1, 6),
                (1,): _pi_times(1, 2),
                (-1,): _pi_times(-1, 2),
            },
            evaluator=_unit_interval_evaluator,
            numeric=math.asin,
            transcendental=True,
            derivative=lambda args: inverse_root(args[0]),
            sympy_name="asin",
        ),
        FunctionProperties(
            name="acos",
            domain=Domain.UNIT_INTERVAL,
            domain_text="-1 <= x <= 1",
            special_values={
                (1,): 0,
                (HALF,): _pi_times(1, 3),
                (0,): _pi_times(1, 2),
                (-1,): PI,
            },
            evaluator=_unit_interval_evaluator,
            numeric=math.acos,
            transcendental=True,
            derivative=lambda args: neg(inverse_root(args[0])),
            sympy_name="acos",
        ),
        FunctionProperties(
            name="atan",
            special_values={(0,): 0, (1,): _pi_times(1, 4), (-1,): _pi_times(-1, 4)},
            numeric=math.atan,
            transcendental=True,
            derivative=lambda args: div(1, add(1, power(args[0], 2))),
            sympy_name="atan",
        ),
        FunctionProperties(
            name="sinh",
            special_values={(0,): 0},
            numeric=math.sinh,
            transcendental=True,
            derivative=lambda args: func("cosh", args[0]),
            sympy_name="sinh",
        ),
        FunctionProperties(
            name="cosh",
            special_values={(0,): 1},
            numeric=math.cosh,
            transcendental=True,
            derivative=lambda args: func("sinh", args[0]),
            sympy_name="cosh",
        ),
        FunctionProperties(
            name="tanh",
            special_values={(0,): 0},
            numeric=math.tanh,
            transcendental=True,
            derivative=lambda args: sub(1, power(func("tanh", args[0]), 2)),
            sympy_name="tanh",
        ),
        FunctionProperties(
            name="exp",
            special_values={(0,): 1, (1,): E},
            evaluator=_exp_evaluator,
            numeric=math.exp,
            transcendental=True,
            derivative=lambda args: func("exp", args[0]),
            sympy_name="exp",
            functional_equation="exp(a + b) = exp(a)*exp(b)",
        ),
        FunctionProperties(
            name="ln",
            domain=Domain.POSITIVE,
            domain_text="x > 0",
            special_values={(1,): 0, (E,): 1},
            evaluator=_ln_evaluator,
            numeric=math.log,
            transcendental=True,
            derivative=lambda args: power(args[0], -1),
            sympy_name="log",
            functional_equation="ln(a*b) = ln(a) + ln(b)",
        ),
        FunctionProperties(
            name="log",
            arity=None,
            domain=Domain.POSITIVE,
            domain_text="x > 0, base > 0, base != 1",
            special_values={(1,): 0},
            evaluator=_log_evaluator,
            numeric=_log_numeric,
            transcendental=True,
            derivative=lambda args: power(args[0], -1),
            sympy_name="log",
            depends_on=("ln",),
        ),
        FunctionProperties(
            name="sqrt",
            domain=Domain.NON_NEGATIVE,
            domain_text="x >= 0",
            evaluator=_sqrt_evaluator,
            numeric=math.sqrt,
            derivative=lambda args: div(1, mul(2, sqrt(args[0]))),
            sympy_name="sqrt",
        ),
        FunctionProperties(
            name="abs",
            special_values={(0,): 0},
            evaluator=_abs_evaluator,
            numeric=abs,
            derivative=lambda args: div(args[0], func("abs", args[0])),
            sympy_name="Abs",
        ),
    ]


def _zeta_table() -> dict:
    return {
        (0,): Fraction(-1, 2),
        (2,): mul(Fraction(1, 6), power(PI, 2)),
        (4,): mul(Fraction(1, 90), power(PI, 4)),
        (6,): mul(Fraction(1, 945), power(PI, 6)),
        (8,): mul(Fraction(1, 9450), power(PI, 8)),
        (10,): mul(Fraction(1, 93555), power(PI, 10)),
        (-1,): Fraction(-1, 12),
        (-3,): Fraction(1, 120),
        (-5,): Fraction(-1, 252),
        (-7,): Fraction(1, 240),
    }


def _special() -> list[FunctionProperties]:
    return [
        FunctionProperties(
            name="gamma",
            family=FunctionFamily.SPECIAL,
            domain=Domain.EXCLUDES_POLES,
            domain_text="x not in {0, -1, -2, ...}",
            special_values={(HALF,): sqrt(PI)},
            functional_equation="gamma(z + 1) = z*gamma(z)",
            evaluator=_gamma_evaluator,
            numeric=math.gamma,
            transcendental=True,
            derivative=lambda args: mul(func("gamma", args[0]), func("digamma", args[0])),
            sympy_name="gamma",
        ),
        FunctionProperties(
            name="factorial",
            family=FunctionFamily.SPECIAL,
            domain=Domain.EXCLUDES_POLES,
            domain_text="x not in {-1, -2, ...}",
            special_values={(0,): 1},
            functional_equation="factorial(n) = gamma(n + 1)",
            evaluator=_factorial_evaluator,
            numeric=lambda x: math.gamma(x + 1),
            transcendental=True,
            derivative=lambda args: mul(
                func("factorial", args[0]), func("digamma", add(args[0], 1))
            ),
            sympy_name="factorial",
            depends_on=("gamma",),
        ),
        FunctionProperties(
            name="beta",
            family=FunctionFamily.SPECIAL,
            arity=2,
            domain=Domain.EXCLUDES_POLES,
            domain_text="a, b not in {0, -1, -2, ...}",
            functional_equation="beta(a, b) = gamma(a)*gamma(b)/gamma(a + b)",
            evaluator=_beta_evaluator,
            numeric=lambda a, b: mpmath.beta(a, b),
            transcendental=True,
            commutative_args=True,
            sympy_name="beta",
            depends_on=("gamma",),
        ),
        FunctionProperties(
            name="digamma",
            family=FunctionFamily.SPECIAL,
            domain=Domain.EXCLUDES_POLES,
            domain_text="x not in {0, -1, -2, ...}",
            special_values={(1,): neg(EULER_GAMMA)},
            functional_equation="digamma(z + 1) = digamma(z) + 1/z",
            evaluator=_digamma_evaluator,
            numeric=lambda x: mpmath.digamma(x),
            transcendental=True,
            sympy_name="digamma",
        ),
        FunctionProperties(
            name="zeta",
            family=FunctionFamily.SPECIAL,
            domain=Domain.EXCLUDES_POLES,
            domain_text="s != 1",
            special_values=_zeta_table(),
            functional_equation=(
                "zeta(s) = 2**s * pi**(s - 1) * sin(pi*s/2) * gamma(1 - s) * zeta(1 - s)"
            ),
            evaluator=_zeta_evaluator,
            numeric=lambda s: mpmath.zeta(s),
            transcendental=True,
            sympy_name="zeta",
        ),
        FunctionProperties(
            name="erf",
            family=FunctionFamily.SPECIAL,
            special_values={(0,): 0},
            functional_equation="erf(-x) = -erf(x)",
            numeric=math.erf,
            transcendental=True,
            derivative=lambda args: mul(
                2, power(PI, Fraction(-1, 2)), func("exp", neg(power(args[0], 2)))
            ),
            sympy_name="erf",
        ),
        FunctionProperties(
            name="diff",
            family=FunctionFamily.SPECIAL,
            arity=None,
            domain_text="diff(expr, x1, ..., xn)",
            evaluator=_diff_evaluator,
            differential_marker=True,
            sympy_name="Derivative",
        ),
    ]


def builtin_functions() -> list[FunctionProperties]:
    return _elementary() + _special()


def register_builtin_functions(registry: FunctionRegistry) -> FunctionRegistry:
    for properties in builtin_functions():
        registry.register(properties)
    return registry
