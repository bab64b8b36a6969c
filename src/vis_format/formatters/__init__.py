"""
Formatters Module

Provides the formatting strategies used by the operator pipeline.

Available Formatters:
- ValueFormatter: Fixed-decimal numbers with thousands grouping
- DateFormatter: Locale-agnostic token date formatting with duration support
- MomentDateFormatter: Calendar-library date formatting with Today/Yesterday
"""

from .base_formatter import BaseFormatter
from .value_formatter import ValueFormatter, format_value
from .date_formatter import DateFormatter
from .moment_date_formatter import MomentDateFormatter

__all__ = [
    'BaseFormatter',
    'ValueFormatter',
    'format_value',
    'DateFormatter',
    'MomentDateFormatter',
]
