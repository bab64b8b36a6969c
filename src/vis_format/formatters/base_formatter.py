"""
Base Formatter

Abstract base class for all formatters, plus the instant coercion shared by
the date formatters.
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Optional, Tuple

import arrow

from ..value_utils import is_number

logger = logging.getLogger(__name__)

# 2000-01-01 00:00:00 (UTC+1) in epoch seconds
EPOCH_SECONDS_THRESHOLD = 946681200
EPOCH_MILLISECONDS_THRESHOLD = EPOCH_SECONDS_THRESHOLD * 1000


class BaseFormatter(ABC):
    """Abstract base class for value formatters."""

    def __init__(self, default_format: Optional[str] = None, timezone: str = "local"):
        """
        Initialize the formatter.

        Args:
            default_format: Pattern used when a call supplies none
            timezone: Timezone in which instants are rendered
        """
        self.default_format = default_format
        self.timezone = timezone
        self.tzinfo = arrow.now(timezone).tzinfo

    @abstractmethod
    def format(self, value: Any, *args) -> str:
        """
        Format a single value into text.

        Args:
            value: The value to format

        Returns:
            Formatted text representation
        """
        pass

    def to_instant(self, value: Any, small_integers_as_duration: bool = False) -> Tuple[Optional[arrow.Arrow], bool]:
        """
        Convert a state value into an instant in the formatter's timezone.

        Integers below EPOCH_SECONDS_THRESHOLD are durations in seconds when
        small_integers_as_duration is set and milliseconds otherwise; integers
        below EPOCH_MILLISECONDS_THRESHOLD are epoch seconds; everything else
        numeric is epoch milliseconds.

        Args:
            value: Number, date/datetime/Arrow object or date string
            small_integers_as_duration: Treat small integers as durations

        Returns:
            (instant, is_duration); instant is None if the value cannot be read
        """
        if isinstance(value, arrow.Arrow):
            return value.to(self.tzinfo), False
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return arrow.get(value, tzinfo=self.tzinfo), False
            return arrow.get(value).to(self.tzinfo), False
        if isinstance(value, date):
            return arrow.get(datetime(value.year, value.month, value.day), tzinfo=self.tzinfo), False

        if isinstance(value, str):
            try:
                parsed = arrow.parser.DateTimeParser().parse_iso(value.strip())
            except ValueError as e:
                logger.warning(f"Cannot parse date string {value!r}: {e}")
                return None, False
            return self.to_instant(parsed)

        if not is_number(value) or not math.isfinite(float(value)):
            return None, False

        number = float(value)
        if number.is_integer():
            if number < EPOCH_SECONDS_THRESHOLD:
                if small_integers_as_duration:
                    return arrow.get(number, tzinfo=self.tzinfo), True
                return arrow.get(number / 1000, tzinfo=self.tzinfo), False
            if number < EPOCH_MILLISECONDS_THRESHOLD:
                return arrow.get(number, tzinfo=self.tzinfo), False
        return arrow.get(number / 1000, tzinfo=self.tzinfo), False
