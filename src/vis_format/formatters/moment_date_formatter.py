"""
Moment Date Formatter

Formats dates with the calendar library's pattern language (arrow, moment.js
compatible tokens such as "dddd, DD. MMMM YYYY HH:mm"), optionally replacing
the weekday with "Today" or "Yesterday".
"""

import logging
import re
from datetime import timedelta
from typing import Any, Callable, Optional

import arrow
from arrow import locales

from ..context import DEFAULT_DATE_FORMAT
from .base_formatter import BaseFormatter

logger = logging.getLogger(__name__)

WEEKDAY_TOKEN = re.compile(r"d{2,4}")
# Bracketed literals are skipped; "dd" alone is the two-letter weekday
MIN_WEEKDAY_TOKEN = re.compile(r"\[[^\]]*\]|(?<!d)dd(?!d)")
TRUE_FLAGS = {"true", "1", "yes"}


def _identity(text: str) -> str:
    return text


class MomentDateFormatter(BaseFormatter):
    """Calendar-library backed date formatter with relative day names."""

    def __init__(
        self,
        default_format: Optional[str] = None,
        timezone: str = "local",
        language: str = "en",
        translate: Callable[[str], str] = _identity,
        clock: Optional[Callable[[], arrow.Arrow]] = None
    ):
        """
        Initialize the formatter.

        Args:
            default_format: Pattern used when a call supplies none
            timezone: Timezone in which instants are rendered
            language: Locale for month and weekday names
            translate: Translation function for "Today" and "Yesterday"
            clock: Returns the current instant; defaults to arrow.now
        """
        super().__init__(default_format, timezone)
        self.translate = translate
        self.clock = clock or (lambda: arrow.now(self.tzinfo))

        try:
            locales.get_locale(language)
            self.locale = language
        except ValueError:
            logger.warning(f"Unsupported date locale {language!r}, using English names")
            self.locale = "en"

    @staticmethod
    def parse_flag(flag: Any) -> bool:
        """
        Read a use-today-or-yesterday flag written as text in a template.

        Only "true", "1" and "yes" enable it, so "false" keeps the weekday.
        """
        if isinstance(flag, bool):
            return flag
        return str(flag).strip().lower() in TRUE_FLAGS

    def _relative_day_pattern(self, pattern: str, instant: arrow.Arrow) -> str:
        today = self.clock().to(self.tzinfo).date()
        day = instant.date()

        if day == today:
            label = self.translate("Today")
        elif day == today - timedelta(days=1):
            label = self.translate("Yesterday")
        else:
            return pattern

        escaped = "[" + label.replace("]", "") + "]"
        return WEEKDAY_TOKEN.sub(escaped, pattern)

    def _min_weekday_pattern(self, pattern: str, instant: arrow.Arrow) -> str:
        """Render "dd" (e.g. "Su"), which arrow has no token for, as a literal."""
        name = locales.get_locale(self.locale).day_abbreviation(instant.isoweekday())[:2]
        return MIN_WEEKDAY_TOKEN.sub(
            lambda match: match.group(0) if match.group(0).startswith("[") else f"[{name}]",
            pattern
        )

    def format(self, value: Any, date_format: Optional[str] = None, use_today_or_yesterday: Any = False) -> str:
        """
        Format a date value.

        Args:
            value: Epoch seconds/milliseconds, date object or date string
            date_format: Pattern, defaults to the formatter's default pattern
            use_today_or_yesterday: Replace weekday tokens with "Today" or
                "Yesterday" when the date is one of those days

        Returns:
            The formatted date, or an empty string for empty input
        """
        if value is None or value == 0 or value == "":
            return ""

        instant, _ = self.to_instant(value)
        if instant is None:
            return ""

        pattern = date_format or self.default_format or DEFAULT_DATE_FORMAT
        if self.parse_flag(use_today_or_yesterday):
            pattern = self._relative_day_pattern(pattern, instant)
        pattern = self._min_weekday_pattern(pattern, instant)

        return instant.format(pattern, locale=self.locale)
