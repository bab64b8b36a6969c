"""
Operator Pipeline

Applies a binding's operation chain to its resolved value. Every operation
consumes the output of the previous one; failures are logged and never
leave the pipeline.
"""

import copy
import json
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .binding import EvalArgument, Operation, OperationKind
from .formatters import DateFormatter, MomentDateFormatter, ValueFormatter
from .formula import FormulaEvaluator
from .special_values import SpecialValueResolver
from .value_utils import (
    get_obj_prop_value,
    js_ceil,
    js_divide,
    js_floor,
    js_modulo,
    js_power,
    js_round,
    js_sqrt,
    parse_float,
    parse_int,
    to_fixed,
)

logger = logging.getLogger(__name__)

WIDGET_OID_PREFIX = "widgetOid."


@dataclass
class PipelineScope:
    """Per-call context available to the operations of one template."""
    template: str
    values: Mapping[str, Any] = field(default_factory=dict)
    view: Optional[str] = None
    wid: Optional[str] = None
    widget: Optional[dict] = None
    widget_data: Optional[dict] = None


def lookup_state(values: Mapping[str, Any], state_ref: Optional[str]) -> Any:
    """Get a state value, None if the reference is missing."""
    if state_ref is None:
        return None
    return values.get(state_ref)


def _to_hex(value: Any, upper: bool = False, min_width: int = 0) -> str:
    number = js_round(parse_float(value))
    if number != number:
        text = "NaN"
    elif number in (float("inf"), float("-inf")):
        text = "Infinity" if number > 0 else "-Infinity"
    else:
        text = format(abs(number), "x").zfill(min_width)
        if number < 0:
            text = "-" + text
    return text.upper() if upper else text


class OperatorPipeline:
    """
    Executes operation chains.

    Each OperationKind has exactly one handler in the dispatch table; unknown
    kinds are reported and skipped.
    """

    def __init__(
        self,
        special_values: SpecialValueResolver,
        value_formatter: Optional[ValueFormatter] = None,
        date_formatter: Optional[DateFormatter] = None,
        moment_date_formatter: Optional[MomentDateFormatter] = None,
        formula_evaluator: Optional[FormulaEvaluator] = None,
        random_source: Callable[[], float] = random.random
    ):
        """
        Initialize the pipeline.

        Args:
            special_values: Resolver for reserved identifiers (eval arguments)
            value_formatter: Formatter used by the value operator
            date_formatter: Formatter used by the date operator
            moment_date_formatter: Formatter used by the momentDate operator
            formula_evaluator: Evaluator used by the eval operator
            random_source: Returns a uniform float in [0, 1)
        """
        self.special_values = special_values
        self.value_formatter = value_formatter or ValueFormatter()
        self.date_formatter = date_formatter or DateFormatter()
        self.moment_date_formatter = moment_date_formatter or MomentDateFormatter()
        self.formula_evaluator = formula_evaluator or FormulaEvaluator()
        self.random_source = random_source

        self._handlers: Dict[OperationKind, Callable[[Any, Operation, PipelineScope], Any]] = {
            OperationKind.EVAL: self._apply_eval,
            OperationKind.MULTIPLY: self._apply_arithmetic,
            OperationKind.DIVIDE: self._apply_arithmetic,
            OperationKind.ADD: self._apply_arithmetic,
            OperationKind.SUBTRACT: self._apply_arithmetic,
            OperationKind.MODULO: self._apply_arithmetic,
            OperationKind.ROUND: self._apply_round,
            OperationKind.POW: self._apply_pow,
            OperationKind.SQRT: lambda value, operation, scope: js_sqrt(parse_float(value)),
            OperationKind.HEX: lambda value, operation, scope: _to_hex(value),
            OperationKind.HEX_UPPER: lambda value, operation, scope: _to_hex(value, upper=True),
            OperationKind.HEX2: lambda value, operation, scope: _to_hex(value, min_width=2),
            OperationKind.HEX2_UPPER: lambda value, operation, scope: _to_hex(value, upper=True, min_width=2),
            OperationKind.VALUE: self._apply_value,
            OperationKind.ARRAY: self._apply_array,
            OperationKind.DATE: self._apply_date,
            OperationKind.MOMENT_DATE: self._apply_moment_date,
            OperationKind.MIN: self._apply_min,
            OperationKind.MAX: self._apply_max,
            OperationKind.RANDOM: self._apply_random,
            OperationKind.FLOOR: lambda value, operation, scope: js_floor(parse_float(value)),
            OperationKind.CEIL: lambda value, operation, scope: js_ceil(parse_float(value)),
            OperationKind.JSON: self._apply_json,
        }

    def run(self, value: Any, operations: List[Operation], scope: PipelineScope) -> Any:
        """
        Apply operations left to right.

        Args:
            value: The resolved state value
            operations: Operation chain of the binding
            scope: Template, state values and widget context of the call

        Returns:
            The transformed value
        """
        for operation in operations:
            kind = OperationKind.lookup(operation.kind)
            if kind is None:
                logger.warning(f"Unknown operator: {scope.template}")
                continue

            try:
                value = self._handlers[kind](value, operation, scope)
            except Exception as e:
                logger.error(f"Operator {operation.kind} failed in {scope.template}: {e}")

        return value

    def _resolve_argument(self, argument: EvalArgument, scope: PipelineScope) -> Any:
        value = self.special_values.resolve(argument.state_ref, scope.view, scope.wid, scope.widget_data)
        if value is not None:
            return value

        state_ref = argument.state_ref or ""
        if state_ref.startswith(WIDGET_OID_PREFIX):
            widget_oid = ((scope.widget or {}).get("data") or {}).get("oid")
            state_ref = f"{widget_oid}.{state_ref[len(WIDGET_OID_PREFIX):]}"
        return lookup_state(scope.values, state_ref)

    @staticmethod
    def _bind_value(value: Any) -> Any:
        """Strings holding a JSON object or array are bound as parsed data."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                return value
            return parsed if isinstance(parsed, (dict, list)) else value
        return value

    def _apply_eval(self, value: Any, operation: Operation, scope: PipelineScope) -> Any:
        names = {}
        for argument in operation.argument or []:
            if not argument.name:
                continue
            names[argument.name] = self._bind_value(self._resolve_argument(argument, scope))

        formula = operation.formula or "undefined"
        if "widget." in formula:
            widget = copy.deepcopy(scope.widget or {})
            widget["data"] = scope.widget_data
            names["widget"] = widget

        try:
            result = self.formula_evaluator.evaluate(formula, names)
        except Exception as e:
            logger.error(f"Error in eval[value]: {scope.template}")
            logger.error(f"Error in eval[script]: {self.formula_evaluator.describe(formula, names)}")
            logger.error(f"Error in eval[error]: {e}")
            return 0

        if isinstance(result, (dict, list)):
            return json.dumps(result, separators=(",", ":"), ensure_ascii=False)
        return result

    @staticmethod
    def _apply_arithmetic(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        if operation.argument is None:
            return value

        number = parse_float(value)
        argument = float(operation.argument)
        kind = OperationKind(operation.kind)
        if kind == OperationKind.MULTIPLY:
            return number * argument
        if kind == OperationKind.DIVIDE:
            return js_divide(number, argument)
        if kind == OperationKind.ADD:
            return number + argument
        if kind == OperationKind.SUBTRACT:
            return number - argument
        return js_modulo(number, argument)

    @staticmethod
    def _apply_round(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        if operation.argument is None:
            return js_round(parse_float(value))
        return to_fixed(parse_float(value), int(operation.argument))

    @staticmethod
    def _apply_pow(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        number = parse_float(value)
        if operation.argument is None:
            return number * number
        return js_power(number, float(operation.argument))

    def _apply_value(self, value: Any, operation: Operation, scope: PipelineScope) -> Any:
        decimals = parse_int(operation.argument) if operation.argument is not None else None
        return self.value_formatter.format(value, decimals if decimals is not None else 0)

    @staticmethod
    def _apply_array(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        items = operation.argument or []
        index = parse_int(value)
        if index is None or index < 0 or index >= len(items):
            return None
        return items[index]

    def _apply_date(self, value: Any, operation: Operation, scope: PipelineScope) -> Any:
        return self.date_formatter.format(value, operation.argument)

    def _apply_moment_date(self, value: Any, operation: Operation, scope: PipelineScope) -> Any:
        if operation.argument is None:
            return value

        params = str(operation.argument).split(",")
        if len(params) == 1:
            return self.moment_date_formatter.format(value, params[0], False)
        if len(params) == 2:
            return self.moment_date_formatter.format(value, params[0], params[1])
        return "error"

    @staticmethod
    def _apply_min(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        # Floor: raises the value to the argument
        number = parse_float(value)
        return operation.argument if number < operation.argument else number

    @staticmethod
    def _apply_max(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        # Ceiling: lowers the value to the argument
        number = parse_float(value)
        return operation.argument if number > operation.argument else number

    def _apply_random(self, value: Any, operation: Operation, scope: PipelineScope) -> Any:
        if operation.argument is None:
            return self.random_source()
        return self.random_source() * operation.argument

    @staticmethod
    def _apply_json(value: Any, operation: Operation, scope: PipelineScope) -> Any:
        if value and isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning(f"Cannot parse JSON string: {value}")
        if value and isinstance(value, (dict, list)) and operation.argument is not None:
            value = get_obj_prop_value(value, operation.argument)
        return value
