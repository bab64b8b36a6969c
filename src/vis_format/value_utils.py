"""
Value Utilities

Coercion and arithmetic helpers shared by the operator pipeline, the
formatters and the formula evaluator. State values arrive as numbers,
booleans or strings, so numeric coercion is lenient: strings are read from
their leading numeric prefix and arithmetic yields NaN/Infinity instead of
raising.
"""

import json
import math
import numbers
import re
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Optional

FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")

NAN = float("nan")


def is_number(value: Any) -> bool:
    """True for real numbers (numpy scalars included), False for booleans."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def parse_float(value: Any) -> float:
    """
    Coerce a value to float the lenient way.

    Args:
        value: Any state value

    Returns:
        The float value, the float read from a string's leading numeric
        prefix ("12.5 °C" -> 12.5), or NaN if nothing numeric is found
    """
    if is_number(value):
        return float(value)
    if not isinstance(value, str):
        return NAN

    match = FLOAT_PREFIX.match(value)
    if not match:
        return NAN
    text = match.group(1)
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def parse_int(value: Any) -> Optional[int]:
    """Coerce a value to int by truncation, or None if it is not numeric."""
    if is_number(value):
        number = float(value)
        return int(number) if math.isfinite(number) else None
    if not isinstance(value, str):
        return None

    match = INT_PREFIX.match(value)
    return int(match.group(1)) if match else None


def to_number(value: Any) -> Any:
    """
    Coerce an operand the way the formula dialect's arithmetic does.

    Numbers pass through, booleans become 0/1, None becomes 0, blank strings
    become 0 and other strings must be numeric as a whole ("12px" is NaN).
    """
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if value is None:
        return 0
    if not isinstance(value, str):
        return NAN

    text = value.strip()
    if not text:
        return 0
    match = FLOAT_PREFIX.match(text)
    if not match or match.end() != len(text):
        return NAN
    return parse_float(text)


def to_fixed(value: float, digits: int = 0) -> str:
    """
    Format a number with a fixed count of decimals, rounding half up.

    The shortest decimal representation of the float is rounded, so
    to_fixed(2.55, 1) == "2.6".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    digits = max(int(digits), 0)
    number = Decimal(repr(float(value)))
    with localcontext() as ctx:
        # Room for every integer digit plus the requested decimals
        ctx.prec = max(number.adjusted(), 0) + digits + 2
        rounded = number.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return format(rounded, "f")


def js_round(value: float):
    """Round half toward +Infinity; non-finite values pass through."""
    if not math.isfinite(value):
        return value
    return math.floor(value + 0.5)


def js_floor(value: float):
    return math.floor(value) if math.isfinite(value) else value


def js_ceil(value: float):
    return math.ceil(value) if math.isfinite(value) else value


def js_sqrt(value: float) -> float:
    if math.isnan(value) or value < 0:
        return NAN
    return math.sqrt(value)


def js_divide(dividend: float, divisor: float) -> float:
    """Division where x/0 gives +-Infinity (or NaN for 0/0)."""
    try:
        return dividend / divisor
    except ZeroDivisionError:
        if dividend == 0 or math.isnan(dividend):
            return NAN
        return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


def js_modulo(dividend: float, divisor: float) -> float:
    """Remainder carrying the sign of the dividend; x % 0 is NaN."""
    if divisor == 0 or math.isinf(dividend) or math.isnan(dividend) or math.isnan(divisor):
        return NAN
    if math.isinf(divisor):
        return dividend
    return math.fmod(dividend, divisor)


def js_power(base: float, exponent: float) -> float:
    try:
        result = math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        return NAN
    return result


def to_display_string(value: Any) -> str:
    """
    Stringify a pipeline value for substitution into a template.

    None renders as "undefined", booleans as "true"/"false", integral floats
    without a decimal part, dicts and lists as compact JSON.
    """
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        number = float(value)
        if math.isnan(number):
            return "NaN"
        if math.isinf(number):
            return "Infinity" if number > 0 else "-Infinity"
        if number.is_integer() and abs(number) < 1e21:
            return str(int(number))
        return repr(number)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def get_obj_prop_value(obj: Any, prop_path: Optional[str]) -> Any:
    """
    Get a nested property by dotted path, e.g. "Prop1" or "Prop1.Prop2.0".

    Args:
        obj: Dict or list to search
        prop_path: Dotted path; list elements are addressed by index

    Returns:
        The property value, or None if any step of the path is missing
    """
    if obj is None or prop_path is None:
        return None

    for part in prop_path.split("."):
        if isinstance(obj, dict):
            obj = obj.get(part)
        elif isinstance(obj, list) and part.isdigit() and int(part) < len(obj):
            obj = obj[int(part)]
        else:
            return None
        if obj is None:
            return None

    return obj
