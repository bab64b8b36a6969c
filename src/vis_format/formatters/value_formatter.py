"""
Value Formatter

Fixed-decimal number formatting with thousands grouping.
"""

import re
from typing import Any, Optional

from ..value_utils import is_number, parse_float, to_fixed
from .base_formatter import BaseFormatter

# decimal character followed by group character
DEFAULT_SEPARATORS = ".,"

GROUP_BOUNDARY = re.compile(r"\B(?=(\d{3})+(?!\d))")


class ValueFormatter(BaseFormatter):
    """
    Formats numbers such as 1234.5 -> "1,234.50".

    The separator pair defaults to ".," whatever the active language is.
    """

    def __init__(self, separators: Optional[str] = None):
        super().__init__()
        self.separators = separators or DEFAULT_SEPARATORS

    def format(self, value: Any, decimals: Any = None, separators: Optional[str] = None) -> str:
        """
        Format a numeric value.

        The legacy two-argument form format(value, ",.") is accepted: a
        non-numeric decimals argument is taken as the separator pair.

        Args:
            value: Number or numeric string
            decimals: Count of decimal places, default 0
            separators: Two characters, decimal character then group character

        Returns:
            The formatted number, or an empty string if value is not numeric
        """
        if not is_number(decimals):
            if separators is None and isinstance(decimals, str):
                separators = decimals
            decimals = 0
        elif decimals != decimals:
            decimals = 0

        separators = separators or self.separators
        decimal_char, group_char = separators[0], separators[1]

        number = parse_float(value)
        if number != number:
            return ""

        fixed = to_fixed(number, int(decimals))
        integer_part, _, fraction = fixed.partition(".")
        integer_part = GROUP_BOUNDARY.sub(group_char, integer_part)

        if fraction:
            return f"{integer_part}{decimal_char}{fraction}"
        return integer_part


_default_formatter = ValueFormatter()


def format_value(value: Any, decimals: Any = None, separators: Optional[str] = None) -> str:
    """Format a value with the default separators, see ValueFormatter.format."""
    return _default_formatter.format(value, decimals, separators)
