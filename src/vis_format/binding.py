"""
Binding Model

Data classes describing the bindings found in a template string.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class OperationKind(str, Enum):
    """Operators understood by the operator pipeline."""
    EVAL = "eval"
    MULTIPLY = "*"
    DIVIDE = "/"
    ADD = "+"
    SUBTRACT = "-"
    MODULO = "%"
    ROUND = "round"
    POW = "pow"
    SQRT = "sqrt"
    HEX = "hex"
    HEX_UPPER = "HEX"
    HEX2 = "hex2"
    HEX2_UPPER = "HEX2"
    VALUE = "value"
    ARRAY = "array"
    DATE = "date"
    MOMENT_DATE = "momentDate"
    MIN = "min"
    MAX = "max"
    RANDOM = "random"
    FLOOR = "floor"
    CEIL = "ceil"
    JSON = "json"

    @classmethod
    def lookup(cls, name: str) -> Optional["OperationKind"]:
        """Return the kind for an operator name, or None if it is unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


# Operators whose argument is mandatory and numeric
NUMERIC_ARGUMENT_KINDS = {
    OperationKind.MULTIPLY,
    OperationKind.DIVIDE,
    OperationKind.ADD,
    OperationKind.SUBTRACT,
    OperationKind.MODULO,
    OperationKind.MIN,
    OperationKind.MAX,
}

# Operators with an optional numeric argument
OPTIONAL_NUMERIC_ARGUMENT_KINDS = {
    OperationKind.POW,
    OperationKind.ROUND,
    OperationKind.RANDOM,
    OperationKind.VALUE,
}

# Operators with an optional raw string argument
STRING_ARGUMENT_KINDS = {
    OperationKind.DATE,
    OperationKind.MOMENT_DATE,
    OperationKind.JSON,
}


@dataclass
class EvalArgument:
    """Named argument of an eval operation, bound to a state reference."""
    name: str
    state_ref: Optional[str] = None
    system_ref: Optional[str] = None


@dataclass
class Operation:
    """
    One step of a binding's operator chain.

    Attributes:
        kind: Operator name as written in the template (may be unknown)
        argument: Number, string, list of strings or EvalArguments, or None
        formula: Expression text, only set for eval operations
    """
    kind: str
    argument: Any = None
    formula: Optional[str] = None


@dataclass
class Binding:
    """
    A parsed reference to a live state value embedded in a template.

    Attributes:
        state_ref: Key of the value in the state map (suffixed, e.g. "x.val")
        system_ref: State id without the value/timestamp/ack suffix
        token: Exact substring (braces included) replaced in the output
        operations: Operations applied left to right to the resolved value
        format: The template the binding was extracted from
        is_seconds: True for timestamp references (".ts" / ".lc")
    """
    state_ref: Optional[str]
    system_ref: Optional[str]
    token: str
    operations: List[Operation] = field(default_factory=list)
    format: str = ""
    is_seconds: bool = False
