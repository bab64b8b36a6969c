"""
Formatting Engine

Resolves templates with embedded state bindings into display strings:

    engine.format_binding("Temp: {hm-rpc.0.temp;round(1)} °C")  ->  "Temp: 21.5 °C"

Per template: parse (or fetch cached) bindings, resolve each binding's
value, run its operator pipeline, substitute the result and finally turn
escaped braces ("{{" / "}}") back into literal braces.
"""

import logging
from collections import ChainMap
from typing import Any, Callable, List, Mapping, Optional

import pandas as pd

from .binding import Binding
from .binding_cache import BindingCache
from .binding_parser import extract_binding
from .context import EngineContext
from .formatters import DateFormatter, MomentDateFormatter, ValueFormatter
from .formula import FormulaEvaluator
from .operators import OperatorPipeline, PipelineScope, lookup_state
from .special_values import SpecialValueResolver
from .value_utils import to_display_string

logger = logging.getLogger(__name__)


def unescape_braces(text: str) -> str:
    """Restore escaped literal braces."""
    return text.replace("{{", "{").replace("}}", "}")


class FormattingEngine:
    """Formats templates against live state values."""

    def __init__(
        self,
        context: Optional[EngineContext] = None,
        states: Optional[Mapping[str, Any]] = None,
        parser: Callable[[str], Optional[List[Binding]]] = extract_binding
    ):
        """
        Initialize the engine.

        Args:
            context: Engine settings (user, language, date format, edit mode, ...)
            states: Live state values keyed by state reference, e.g. "x.y.val"
            parser: Binding extraction primitive, called once per uncached template
        """
        self.context = context or EngineContext()
        self.states = states if states is not None else {}
        self.parser = parser
        self.bindings_cache = BindingCache()

        self.special_values = SpecialValueResolver(self.context)
        self.value_formatter = ValueFormatter()
        self.date_formatter = DateFormatter(self.context.date_format, self.context.timezone)
        self.moment_date_formatter = MomentDateFormatter(
            self.context.date_format,
            self.context.timezone,
            language=self.context.language,
            translate=lambda text: self.context.translate(text)
        )
        self.pipeline = OperatorPipeline(
            self.special_values,
            value_formatter=self.value_formatter,
            date_formatter=self.date_formatter,
            moment_date_formatter=self.moment_date_formatter,
            formula_evaluator=FormulaEvaluator(self.context.formula_max_steps, self.context.formula_timeout)
        )

    def extract_binding(self, template: str) -> Optional[List[Binding]]:
        """
        Get the bindings of a template, parsing it only on a cache miss.

        The cache is neither read nor written in edit mode.
        """
        if not template:
            return None

        edit_mode = self.context.edit_mode
        if not edit_mode:
            cached = self.bindings_cache.get(template)
            if cached is not None:
                return cached

        result = self.parser(template)

        if result and not edit_mode:
            self.bindings_cache.put(template, result)

        return result

    def format_binding(
        self,
        template: str,
        view: Optional[str] = None,
        wid: Optional[str] = None,
        widget: Optional[dict] = None,
        widget_data: Optional[dict] = None,
        values: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Format a template.

        Args:
            template: Text with bindings, e.g. "{x.y;round(2)} kWh"
            view: Current view name
            wid: Current widget id
            widget: Current widget record (used by formulas referencing widget.*)
            widget_data: Current widget data record
            values: State values taking precedence over the engine's states

        Returns:
            The template with every binding substituted and braces unescaped
        """
        if not template:
            return ""

        if values is None:
            values = self.states
        else:
            values = ChainMap(values, self.states)

        try:
            bindings = self.extract_binding(template)
        except Exception as e:
            logger.error(f"Cannot parse bindings of {template}: {e}")
            bindings = None

        scope = PipelineScope(
            template=template,
            values=values,
            view=view,
            wid=wid,
            widget=widget,
            widget_data=widget_data
        )

        result = template
        for binding in bindings or []:
            value = self.special_values.resolve(binding.state_ref, view, wid, widget_data)
            if value is None:
                value = lookup_state(values, binding.state_ref)

            if binding.operations:
                value = self.pipeline.run(value, binding.operations, scope)

            result = result.replace(binding.token, to_display_string(value), 1)

        return unescape_braces(result)

    def format_frame(self, template: str, frame: pd.DataFrame, **kwargs) -> pd.Series:
        """
        Format one template against every row of a frame of state snapshots.

        Args:
            template: Text with bindings
            frame: One column per state reference; NaN cells count as missing
            **kwargs: Passed on to format_binding (view, wid, ...)

        Returns:
            Series of formatted strings aligned to the frame index
        """
        if frame.empty:
            return pd.Series([], index=frame.index, dtype=object)

        return frame.apply(
            lambda row: self.format_binding(template, values=row.dropna().to_dict(), **kwargs),
            axis=1
        )

    def clear_cache(self) -> None:
        """Drop all cached bindings."""
        self.bindings_cache.clear()
