"""
Vis Format Module

This module resolves display templates with embedded state bindings into
concrete strings.

Key Components:
- FormattingEngine: Parse, resolve, transform and substitute bindings
- EngineContext: Engine-wide settings, loadable from YAML
- extract_binding: Binding parser primitive
- BindingCache: Per-engine memo of parsed bindings
- OperatorPipeline: Ordered value transformations (round, hex, date, eval, ...)
- SpecialValueResolver: Reserved identifiers (username, view, wid, ...)
- FormulaEvaluator: Restricted evaluation of eval-binding formulas

Formatters:
- ValueFormatter: Fixed-decimal numbers with thousands grouping
- DateFormatter: Token date formatting with duration support
- MomentDateFormatter: Calendar-library date formatting with Today/Yesterday
"""

from .binding import Binding, EvalArgument, Operation, OperationKind
from .binding_cache import BindingCache
from .binding_parser import extract_binding
from .context import EngineContext
from .engine import FormattingEngine, unescape_braces
from .formula import FormulaBudgetExceeded, FormulaEvaluator, translate_formula
from .operators import OperatorPipeline, PipelineScope
from .special_values import SpecialValue, SpecialValueResolver
from .value_utils import get_obj_prop_value
from .formatters import (
    BaseFormatter,
    ValueFormatter,
    DateFormatter,
    MomentDateFormatter,
    format_value
)

__all__ = [
    'Binding',
    'EvalArgument',
    'Operation',
    'OperationKind',
    'BindingCache',
    'extract_binding',
    'EngineContext',
    'FormattingEngine',
    'unescape_braces',
    'FormulaBudgetExceeded',
    'FormulaEvaluator',
    'translate_formula',
    'OperatorPipeline',
    'PipelineScope',
    'SpecialValue',
    'SpecialValueResolver',
    'get_obj_prop_value',
    'BaseFormatter',
    'ValueFormatter',
    'DateFormatter',
    'MomentDateFormatter',
    'format_value',
]
