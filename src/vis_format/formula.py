"""
Formula Evaluation

Restricted evaluation of the expressions used by eval bindings, e.g.
"{a:sensor.temp;b:sensor.limit;a > b ? 'too hot' : Math.round(a)}".

Formulas are written in the display layer's dialect (===, &&, ||, !, ?:).
They are rewritten to a Python expression and evaluated by simpleeval with
a fixed set of names and side-effect free helpers. Evaluation is bounded by
a node-step budget and a wall-clock budget.
"""

import ast
import math
import operator
import re
import time
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from simpleeval import DEFAULT_OPERATORS, EvalWithCompoundTypes, InvalidExpression, safe_add

from .context import DEFAULT_FORMULA_MAX_STEPS, DEFAULT_FORMULA_TIMEOUT
from .value_utils import (
    NAN,
    is_number,
    js_ceil,
    js_divide,
    js_floor,
    js_modulo,
    js_power,
    js_round,
    js_sqrt,
    parse_float,
    parse_int,
    to_display_string,
    to_number,
)

QUOTES = "'\""
OPENING = "([{"
CLOSING = ")]}"

CODE_REWRITES = [
    (re.compile(r"!=="), "!="),
    (re.compile(r"==="), "=="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!(?!=)"), " not "),
]


class FormulaBudgetExceeded(InvalidExpression):
    """Raised when a formula exceeds its step or time budget."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _string_end(expr: str, start: int) -> int:
    """Index just past the string literal opening at start."""
    quote = expr[start]
    i = start + 1
    while i < len(expr):
        if expr[i] == "\\":
            i += 2
            continue
        if expr[i] == quote:
            return i + 1
        i += 1
    return len(expr)


def _split_strings(expr: str) -> List[tuple]:
    """Split an expression into (is_string_literal, text) segments."""
    segments = []
    code_start = 0
    i = 0
    while i < len(expr):
        if expr[i] in QUOTES:
            if code_start < i:
                segments.append((False, expr[code_start:i]))
            end = _string_end(expr, i)
            segments.append((True, expr[i:end]))
            i = code_start = end
        else:
            i += 1
    if code_start < len(expr):
        segments.append((False, expr[code_start:]))
    return segments


def _rewrite_operators(expr: str) -> str:
    parts = []
    for is_string, text in _split_strings(expr):
        if not is_string:
            for pattern, replacement in CODE_REWRITES:
                text = pattern.sub(replacement, text)
        parts.append(text)
    return "".join(parts)


def _top_level_positions(expr: str, characters: str) -> List[int]:
    """Positions of the given characters outside brackets and string literals."""
    positions = []
    depth = 0
    i = 0
    while i < len(expr):
        char = expr[i]
        if char in QUOTES:
            i = _string_end(expr, i)
            continue
        if char in OPENING:
            depth += 1
        elif char in CLOSING:
            depth -= 1
        elif depth == 0 and char in characters:
            positions.append(i)
        i += 1
    return positions


def _matching_bracket(expr: str, start: int) -> Optional[int]:
    depth = 0
    i = start
    while i < len(expr):
        char = expr[i]
        if char in QUOTES:
            i = _string_end(expr, i)
            continue
        if char in OPENING:
            depth += 1
        elif char in CLOSING:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _convert_list(expr: str) -> str:
    """Convert each comma separated element of a bracket group."""
    pieces = []
    last = 0
    for position in _top_level_positions(expr, ","):
        pieces.append(_convert_ternary(expr[last:position]))
        last = position + 1
    pieces.append(_convert_ternary(expr[last:]))
    return ",".join(pieces)


def _split_ternary(expr: str) -> str:
    positions = _top_level_positions(expr, "?:")
    question = next((p for p in positions if expr[p] == "?"), None)
    if question is None:
        return expr

    nested = 0
    for position in positions:
        if position <= question:
            continue
        if expr[position] == "?":
            nested += 1
        elif nested:
            nested -= 1
        else:
            condition = expr[:question]
            when_true = _split_ternary(expr[question + 1:position])
            when_false = _split_ternary(expr[position + 1:])
            return f"({when_true.strip()}) if ({condition.strip()}) else ({when_false.strip()})"

    # "?" without ":" is left for the parser to reject
    return expr


def _convert_ternary(expr: str) -> str:
    """Rewrite "c ? a : b" as "(a) if (c) else (b)", bracket groups first."""
    out = []
    i = 0
    while i < len(expr):
        char = expr[i]
        if char in QUOTES:
            end = _string_end(expr, i)
            out.append(expr[i:end])
            i = end
            continue
        if char in OPENING:
            close = _matching_bracket(expr, i)
            if close is None:
                out.append(expr[i:])
                break
            out.append(char + _convert_list(expr[i + 1:close]) + expr[close])
            i = close + 1
            continue
        out.append(char)
        i += 1
    return _split_ternary("".join(out))


def translate_formula(formula: str) -> str:
    """
    Rewrite a display-layer formula as a Python expression.

    Example: "a === 1 && !b ? 'on' : 'off'" -> "('on') if (a == 1 and  not b) else ('off')"
    """
    return _convert_ternary(_rewrite_operators(formula)).strip()


def _js_add(left, right):
    if isinstance(left, str) or isinstance(right, str):
        return safe_add(to_display_string(left), to_display_string(right))
    return safe_add(left, right)


def _numeric(func):
    """Wrap a binary operator so non-numeric operands are coerced first."""
    def apply(left, right):
        if not (is_number(left) and is_number(right)):
            left, right = to_number(left), to_number(right)
        return func(left, right)
    return apply


def _js_divide(left, right):
    return js_divide(float(left), float(right))


def _js_modulo(left, right):
    return js_modulo(float(left), float(right))


def _js_power(left, right):
    if isinstance(left, float) or isinstance(right, float):
        return js_power(float(left), float(right))
    return DEFAULT_OPERATORS[ast.Pow](left, right)


def _js_compare(func):
    """Strings compare as strings, anything else numerically; NaN is never ordered."""
    def apply(left, right):
        if isinstance(left, str) and isinstance(right, str):
            return func(left, right)
        left, right = to_number(left), to_number(right)
        if left != left or right != right:
            return False
        return func(left, right)
    return apply


def _js_negate(value):
    return -to_number(value)


def _js_plus(value):
    return to_number(value)


def _sign(value):
    return (value > 0) - (value < 0)


def _parse_int(value):
    number = parse_int(value)
    return NAN if number is None else number


def _is_nan(value) -> bool:
    number = to_number(value)
    return number != number


OPERATORS = dict(DEFAULT_OPERATORS)
OPERATORS[ast.Add] = _js_add
OPERATORS[ast.Sub] = _numeric(DEFAULT_OPERATORS[ast.Sub])
OPERATORS[ast.Mult] = _numeric(DEFAULT_OPERATORS[ast.Mult])
OPERATORS[ast.Div] = _numeric(_js_divide)
OPERATORS[ast.Mod] = _numeric(_js_modulo)
OPERATORS[ast.Pow] = _numeric(_js_power)
OPERATORS[ast.USub] = _js_negate
OPERATORS[ast.UAdd] = _js_plus
OPERATORS[ast.Lt] = _js_compare(operator.lt)
OPERATORS[ast.Gt] = _js_compare(operator.gt)
OPERATORS[ast.LtE] = _js_compare(operator.le)
OPERATORS[ast.GtE] = _js_compare(operator.ge)

MATH = SimpleNamespace(
    abs=abs,
    round=js_round,
    floor=js_floor,
    ceil=js_ceil,
    min=min,
    max=max,
    pow=js_power,
    sqrt=js_sqrt,
    trunc=math.trunc,
    sign=_sign,
    log=math.log,
    exp=math.exp,
    PI=math.pi,
    E=math.e,
)

BUILTIN_NAMES = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "NaN": NAN,
    "Infinity": math.inf,
    "Math": MATH,
}

FUNCTIONS = {
    "parseFloat": parse_float,
    "parseInt": _parse_int,
    "Number": to_number,
    "String": to_display_string,
    "isNaN": _is_nan,
}


class BudgetedEvaluator(EvalWithCompoundTypes):
    """simpleeval evaluator that counts evaluated nodes and watches a deadline."""

    def __init__(self, max_steps: int, timeout: float, **kwargs):
        super().__init__(**kwargs)
        self.max_steps = max_steps
        self.timeout = timeout
        self._steps = 0
        self._deadline = 0.0

    def eval(self, expr, *args, **kwargs):
        self._steps = 0
        self._deadline = time.monotonic() + self.timeout
        return super().eval(expr, *args, **kwargs)

    def _eval(self, node):
        self._steps += 1
        if self._steps > self.max_steps:
            raise FormulaBudgetExceeded(f"Formula exceeded {self.max_steps} evaluation steps")
        if time.monotonic() > self._deadline:
            raise FormulaBudgetExceeded(f"Formula exceeded {self.timeout}s time budget")
        return super()._eval(node)


class FormulaEvaluator:
    """Evaluates formulas against named argument bindings."""

    def __init__(
        self,
        max_steps: int = DEFAULT_FORMULA_MAX_STEPS,
        timeout: float = DEFAULT_FORMULA_TIMEOUT
    ):
        self.max_steps = max_steps
        self.timeout = timeout

    def evaluate(self, formula: str, names: Optional[Dict[str, Any]] = None) -> Any:
        """
        Evaluate a formula.

        Args:
            formula: Expression in the display-layer dialect
            names: Argument bindings visible to the expression

        Returns:
            The expression value

        Raises:
            InvalidExpression: For unknown names, forbidden constructs and
                exhausted budgets
            SyntaxError: For formulas that cannot be parsed
        """
        evaluator = BudgetedEvaluator(
            self.max_steps,
            self.timeout,
            names={**BUILTIN_NAMES, **(names or {})},
            functions=FUNCTIONS,
            operators=OPERATORS,
        )
        return evaluator.eval(translate_formula(formula))

    @staticmethod
    def describe(formula: str, names: Optional[Dict[str, Any]] = None) -> str:
        """Readable script text used in error reports."""
        bindings = "".join(f"const {name} = {value!r}; " for name, value in (names or {}).items())
        return f"{bindings}return {translate_formula(formula)};"
