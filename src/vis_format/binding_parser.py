"""
Binding Parser

Extracts binding descriptors from template strings such as
"Temperature: {hm-rpc.0.temp;round(1)} °C" or "{a:x.state;b:y.state;a + b}".
"""

import logging
import re
from typing import List, Optional, Tuple

from .binding import (
    Binding,
    EvalArgument,
    NUMERIC_ARGUMENT_KINDS,
    OPTIONAL_NUMERIC_ARGUMENT_KINDS,
    Operation,
    OperationKind,
    STRING_ARGUMENT_KINDS,
)
from .value_utils import parse_float

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"{(.+?)}")
EVAL_ARGUMENT_PATTERN = re.compile(r"^[\w]+:\s?[-.\w]+$")
OPERATION_PATTERN = re.compile(r"([\w\s/+*%-]+)(\(.+\))?")

VALUE_SUFFIXES = (".val", ".ack")
TIMESTAMP_SUFFIXES = (".ts", ".lc")


def split_state_ref(reference: str) -> Tuple[str, str, bool]:
    """
    Normalize a state reference.

    Args:
        reference: Reference as written in the template, e.g. "x.y" or "x.y.ts"

    Returns:
        (state_ref, system_ref, is_seconds), where state_ref always carries a
        value/timestamp/ack suffix and system_ref never does
    """
    state_ref = reference
    if state_ref and not state_ref.endswith(VALUE_SUFFIXES + TIMESTAMP_SUFFIXES):
        state_ref += ".val"

    system_ref = reference
    if system_ref.endswith(VALUE_SUFFIXES):
        system_ref = system_ref[:-4]
    elif system_ref.endswith(TIMESTAMP_SUFFIXES):
        system_ref = system_ref[:-3]

    return state_ref, system_ref, state_ref.endswith(TIMESTAMP_SUFFIXES)


def _parse_eval_argument(part: str) -> EvalArgument:
    """Parse a "name:state.id" part into an EvalArgument."""
    name, _, reference = part.partition(":")
    state_ref, system_ref, _ = split_state_ref(reference.strip())
    return EvalArgument(name=name, state_ref=state_ref, system_ref=system_ref)


def _strip_parentheses(raw: str) -> str:
    raw = raw.strip()
    return raw[1:-1]


def _parse_operation(part: str, template: str) -> Optional[Operation]:
    """
    Parse one operator part such as "round(2)" or "hex".

    Returns:
        The operation, or None if the part is invalid
    """
    match = OPERATION_PATTERN.search(part)
    if not match or not match.group(1):
        logger.warning(f"Invalid format {template}")
        return None

    name = match.group(1).strip()
    raw_argument = match.group(2)
    kind = OperationKind.lookup(name)

    if kind in NUMERIC_ARGUMENT_KINDS or kind in OPTIONAL_NUMERIC_ARGUMENT_KINDS:
        if raw_argument is None:
            if kind in NUMERIC_ARGUMENT_KINDS:
                logger.warning(f"Invalid format of format string: {template}")
                return None
            return Operation(kind=name)

        number = parse_float(_strip_parentheses(raw_argument.strip().replace(",", ".", 1)).strip())
        if number != number:
            logger.warning(f"Invalid format of format string: {template}")
            return None
        return Operation(kind=name, argument=number)

    if kind in STRING_ARGUMENT_KINDS:
        argument = _strip_parentheses(raw_argument) if raw_argument is not None else None
        return Operation(kind=name, argument=argument)

    if kind == OperationKind.ARRAY:
        items = _strip_parentheses(raw_argument).split(",") if raw_argument is not None else []
        return Operation(kind=name, argument=items)

    # Operators without parameter, unknown names included
    return Operation(kind=name)


def _parse_token(token: str, template: str) -> Optional[Binding]:
    """Parse a single "{...}" token into a Binding."""
    inner = token[1:-1]

    # Escaped brace or inline JSON
    if inner.startswith("{") or inner.startswith('"'):
        return None

    parts = inner.split(";")
    state_ref, system_ref, is_seconds = split_state_ref(parts[0].strip())

    operations: List[Operation] = []
    is_eval = bool(EVAL_ARGUMENT_PATTERN.match(state_ref)) or (not state_ref and len(parts) > 0)

    if is_eval:
        if state_ref:
            first_argument = _parse_eval_argument(parts[0].strip())
            state_ref, system_ref = first_argument.state_ref, first_argument.system_ref
            arguments = [first_argument]
        else:
            state_ref, system_ref = None, None
            arguments = []
        operations.append(Operation(kind=OperationKind.EVAL.value, argument=arguments))

    for part in parts[1:]:
        if is_eval:
            if EVAL_ARGUMENT_PATTERN.match(part.strip()):
                operations[0].argument.append(_parse_eval_argument(part.strip()))
            else:
                formula = part.replace("::", ":")
                if operations[0].formula is not None:
                    operations.append(Operation(
                        kind=OperationKind.EVAL.value,
                        argument=list(operations[0].argument),
                        formula=formula,
                    ))
                else:
                    operations[0].formula = formula
        else:
            operation = _parse_operation(part, template)
            if operation is not None:
                operations.append(operation)

    return Binding(
        state_ref=state_ref,
        system_ref=system_ref,
        token=token,
        operations=operations,
        format=template,
        is_seconds=is_seconds,
    )


def extract_binding(template: str) -> Optional[List[Binding]]:
    """
    Extract all bindings from a template.

    Args:
        template: Raw template string

    Returns:
        Bindings in order of appearance, or None if the template contains
        no binding token
    """
    if not template:
        return None

    result = None
    for match in TOKEN_PATTERN.finditer(template):
        binding = _parse_token(match.group(0), template)
        if binding is None:
            continue
        result = result or []
        result.append(binding)

    return result
