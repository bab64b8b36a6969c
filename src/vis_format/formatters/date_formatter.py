"""
Date Formatter

Locale-agnostic date formatting with a small token language. Tokens may be
written with Latin, German or Cyrillic letters:

    year    YYYY JJJJ ГГГГ (YY JJ ГГ for two digits)
    month   MM M ММ М
    day     DD D TT T ДД Д
    hour    hh h SS S чч ч
    minute  mm m мм м
    second  ss s сс с
    millis  sss ссс

Example: "DD.MM.YYYY hh:mm" -> "24.12.2023 18:30"
"""

from typing import Any, Callable, Dict, Optional, Tuple

import arrow

from ..context import DEFAULT_DATE_FORMAT
from .base_formatter import BaseFormatter

TOKEN_CHARACTERS = "YJГMМDTДhSчmмsс"


def _year(instant: arrow.Arrow) -> int:
    return instant.year


def _short_year(instant: arrow.Arrow) -> int:
    return instant.year % 100


def _month(instant: arrow.Arrow) -> int:
    return instant.month


def _day(instant: arrow.Arrow) -> int:
    return instant.day


def _hour(instant: arrow.Arrow) -> int:
    return instant.hour


def _minute(instant: arrow.Arrow) -> int:
    return instant.minute


def _second(instant: arrow.Arrow) -> int:
    return instant.second


def _millisecond(instant: arrow.Arrow) -> int:
    return instant.microsecond // 1000


FIELD_ALIASES = (
    (("YYYY", "JJJJ", "ГГГГ"), _year),
    (("YY", "JJ", "ГГ"), _short_year),
    (("MM", "M", "ММ", "М"), _month),
    (("DD", "D", "TT", "T", "ДД", "Д"), _day),
    (("hh", "h", "SS", "S", "чч", "ч"), _hour),
    (("mm", "m", "мм", "м"), _minute),
    (("ss", "s", "сс", "с"), _second),
    (("sss", "ссс"), _millisecond),
)


def _build_token_table() -> Dict[str, Tuple[Callable[[arrow.Arrow], int], int]]:
    """Map every token alias to its field getter and zero padded width."""
    table = {}
    for aliases, getter in FIELD_ALIASES:
        for alias in aliases:
            table[alias] = (getter, len(alias) if len(alias) in (2, 3) else 0)
    return table


TOKENS = _build_token_table()


def _put(token: str, instant: arrow.Arrow) -> str:
    """Render one token run; unknown runs render as an empty string."""
    if token not in TOKENS:
        return ""
    getter, width = TOKENS[token]
    return str(getter(instant)).zfill(width)


class DateFormatter(BaseFormatter):
    """
    Formats instants and durations with the token language above.

    Integers below 946681200 (2000-01-01) are treated as durations in
    seconds, so "{uptime;date(hh:mm:ss)}" renders elapsed time.
    """

    def format(self, value: Any, is_duration: Any = False, date_format: Optional[str] = None) -> str:
        """
        Format a date value.

        Args:
            value: Epoch seconds/milliseconds, date object or date string
            is_duration: True or "duration" to force duration mode; any
                other string is taken as the pattern
            date_format: Pattern, defaults to the formatter's default pattern

        Returns:
            The formatted date, or an empty string for empty input
        """
        if is_duration is True or (isinstance(is_duration, str) and is_duration.lower() == "duration"):
            is_duration = True
        if not isinstance(is_duration, bool):
            date_format = is_duration
            is_duration = False

        if value is None or value == 0 or value == "":
            return ""

        instant, detected_duration = self.to_instant(value, small_integers_as_duration=True)
        if instant is None:
            return ""
        is_duration = is_duration or detected_duration

        pattern = date_format or self.default_format or DEFAULT_DATE_FORMAT

        if is_duration:
            # Render elapsed time without the local UTC offset
            instant = instant.shift(seconds=-instant.utcoffset().total_seconds())

        return self.render(pattern, instant)

    @staticmethod
    def render(pattern: str, instant: arrow.Arrow) -> str:
        """Substitute token runs in the pattern, copying other characters."""
        result = []
        run = ""
        for char in pattern:
            if char in TOKEN_CHARACTERS:
                run += char
            else:
                result.append(_put(run, instant))
                run = ""
                result.append(char)
        result.append(_put(run, instant))
        return "".join(result)
