"""Scalar math kernels and the static function table for ExprDSL.

Python's math module raises on domain and range errors where C returns an
IEEE-754 special value.  Every kernel here returns the C result instead, so
that neither constant folding nor the VM can ever raise: division by zero,
log of zero, square root of a negative number and so on all surface as
infinities or NaN in the returned float.
"""

from dataclasses import dataclass
import math
from typing import Callable, Dict, List


def truth(value: float) -> bool:
    """Truthiness: anything other than 0.0 (including NaN) is true."""
    return value != 0.0


def bool_to_float(value: bool) -> float:
    """Convert a Python boolean to the 1.0/0.0 encoding used by the VM."""
    return 1.0 if value else 0.0


def _is_odd_integer(value: float) -> bool:
    # Every float of magnitude 2**53 or more is an even integer
    return value.is_integer() and abs(value) < 2.0 ** 53 and int(value) % 2 == 1


def ieee_div(a: float, b: float) -> float:
    """Divide with IEEE semantics: x/0 is a signed infinity, 0/0 is NaN."""
    try:
        return a / b

    except ZeroDivisionError:
        if math.isnan(a) or a == 0.0:
            return math.nan

        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def ieee_fmod(a: float, b: float) -> float:
    """C fmod: the result takes the sign of a; fmod(x, 0) and fmod(inf, y) are NaN."""
    try:
        return math.fmod(a, b)

    except ValueError:
        return math.nan


def ieee_pow(a: float, b: float) -> float:
    """C pow, including the pole at zero and overflow to infinity."""
    try:
        return math.pow(a, b)

    except OverflowError:
        if a < 0.0 and _is_odd_integer(b):
            return -math.inf

        return math.inf

    except ValueError:
        if a == 0.0 and b < 0.0:
            if _is_odd_integer(b):
                return math.copysign(math.inf, a)

            return math.inf

        return math.nan


def _domain_nan(func: Callable[[float], float]) -> Callable[[float], float]:
    """Wrap a one-argument math function so domain errors produce NaN."""
    def wrapper(a: float) -> float:
        try:
            return func(a)

        except ValueError:
            return math.nan

    wrapper.__name__ = func.__name__
    return wrapper


ieee_sin = _domain_nan(math.sin)
ieee_cos = _domain_nan(math.cos)
ieee_tan = _domain_nan(math.tan)
ieee_asin = _domain_nan(math.asin)
ieee_acos = _domain_nan(math.acos)
ieee_sqrt = _domain_nan(math.sqrt)


def ieee_atan(a: float) -> float:
    """Arc tangent (defined everywhere)."""
    return math.atan(a)


def ieee_exp(a: float) -> float:
    """Exponential, overflowing to +inf."""
    try:
        return math.exp(a)

    except OverflowError:
        return math.inf


def _log_with(func: Callable[[float], float]) -> Callable[[float], float]:
    """Wrap a logarithm so log(0) is -inf and log of a negative number is NaN."""
    def wrapper(a: float) -> float:
        try:
            return func(a)

        except ValueError:
            if a == 0.0:
                return -math.inf

            return math.nan

    wrapper.__name__ = func.__name__
    return wrapper


ieee_log = _log_with(math.log)
ieee_log10 = _log_with(math.log10)


def ieee_fabs(a: float) -> float:
    """Absolute value."""
    return math.fabs(a)


def ieee_floor(a: float) -> float:
    """Floor returning a float; infinities and NaN pass through."""
    if not math.isfinite(a):
        return a

    return math.copysign(float(math.floor(a)), a)


def ieee_ceil(a: float) -> float:
    """Ceiling returning a float, keeping the sign of zero (ceil(-0.5) is -0.0)."""
    if not math.isfinite(a):
        return a

    return math.copysign(float(math.ceil(a)), a)


def ieee_round(a: float) -> float:
    """Round half away from zero, as C round() does (Python's round() is half-to-even)."""
    if not math.isfinite(a):
        return a

    truncated = float(math.trunc(a))
    if abs(a - truncated) >= 0.5:
        truncated += math.copysign(1.0, a)

    return math.copysign(truncated, a)


def ieee_atan2(a: float, b: float) -> float:
    """Two-argument arc tangent."""
    return math.atan2(a, b)


def func_min(a: float, b: float) -> float:
    """Return a when a < b, otherwise b (so NaN in a yields b)."""
    return a if a < b else b


def func_max(a: float, b: float) -> float:
    """Return a when b < a, otherwise b."""
    return a if b < a else b


@dataclass(frozen=True)
class ExprDSLFunction:
    """An entry in the function whitelist."""
    fid: int
    name: str
    arity: int
    impl: Callable[..., float]


_FUNCTIONS: List[ExprDSLFunction] = [
    ExprDSLFunction(0, 'sin', 1, ieee_sin),
    ExprDSLFunction(1, 'cos', 1, ieee_cos),
    ExprDSLFunction(2, 'tan', 1, ieee_tan),
    ExprDSLFunction(3, 'asin', 1, ieee_asin),
    ExprDSLFunction(4, 'acos', 1, ieee_acos),
    ExprDSLFunction(5, 'atan', 1, ieee_atan),
    ExprDSLFunction(6, 'exp', 1, ieee_exp),
    ExprDSLFunction(7, 'log', 1, ieee_log),
    ExprDSLFunction(8, 'log10', 1, ieee_log10),
    ExprDSLFunction(9, 'sqrt', 1, ieee_sqrt),
    ExprDSLFunction(10, 'abs', 1, ieee_fabs),
    ExprDSLFunction(11, 'floor', 1, ieee_floor),
    ExprDSLFunction(12, 'ceil', 1, ieee_ceil),
    ExprDSLFunction(13, 'round', 1, ieee_round),
    ExprDSLFunction(14, 'pow', 2, ieee_pow),
    ExprDSLFunction(15, 'atan2', 2, ieee_atan2),
    ExprDSLFunction(16, 'fmod', 2, ieee_fmod),
    ExprDSLFunction(17, 'min', 2, func_min),
    ExprDSLFunction(18, 'max', 2, func_max),
]

# Name -> function entry.  Names are case-sensitive and the table is closed.
FUNCTION_TABLE: Dict[str, ExprDSLFunction] = {func.name: func for func in _FUNCTIONS}

# Function id -> function entry, indexed directly by the VM's CALL handler.
FUNCTIONS_BY_ID: List[ExprDSLFunction] = sorted(_FUNCTIONS, key=lambda func: func.fid)


def call_function(fid: int, args: List[float]) -> float:
    """
    Apply function `fid` to already-evaluated arguments.

    Unknown ids, or a mismatched argument count, yield NaN rather than raising.
    """
    if fid < 0 or fid >= len(FUNCTIONS_BY_ID):
        return math.nan

    func = FUNCTIONS_BY_ID[fid]
    if len(args) != func.arity:
        return math.nan

    return func.impl(*args)
