"""
Utility functions for answer normalisation, contact handles and time formatting.
"""

import math
import re
import time
from datetime import datetime
from typing import Any, List, Optional


REPORT_DATETIME_FORMAT = '%d.%m.%Y, %H:%M'

# Number spellings accepted in number answers
DECIMAL_NUMBER_PATTERN = re.compile(r'^[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)$')
PREFIXED_INTEGER_PATTERN = re.compile(r'^0(?:[xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)$')


def is_blank(value: Any) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    return str(value).strip() == ''


def is_multi(value: Any) -> bool:
    """True if the answer is a multi-select (list) answer."""
    return isinstance(value, (list, tuple))


def answer_values(value: Any, wrap_scalar: bool = True) -> List[str]:
    """
    Get an answer as a list of strings.

    Args:
        value: A scalar answer, a list answer, or None
        wrap_scalar: If False, scalar answers yield an empty list

    Returns:
        List of answer values (empty if unanswered)
    """
    if value is None:
        return []
    if is_multi(value):
        return [str(item) for item in value]
    if not wrap_scalar or value == '':
        return []
    return [str(value)]


def scalar_answer(value: Any) -> Optional[str]:
    """Get a single-value answer as a string, or None for list answers."""
    if value is None or is_multi(value):
        return None
    return str(value)


def is_answered(value: Any) -> bool:
    """True if a list answer is non-empty or a scalar answer is non-blank."""
    if is_multi(value):
        return len(value) > 0
    return not is_blank(value)


def is_numeric(value: Any) -> bool:
    """
    True if the answer spells a number.

    Accepts decimals with an optional exponent, Infinity and 0x/0o/0b integers.
    Blank text is not a number.
    """
    if value is None or is_multi(value) or isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not math.isnan(value)

    text = str(value).strip()
    return bool(DECIMAL_NUMBER_PATTERN.match(text) or PREFIXED_INTEGER_PATTERN.match(text))


def clean_handle(raw: Optional[str]) -> str:
    """
    Normalise a contact handle: drop a single leading '@', then trim.

    Args:
        raw: Handle as typed by the user

    Returns:
        The bare handle
    """
    if not raw:
        return ''
    value = str(raw)
    if value.startswith('@'):
        value = value[1:]
    return value.strip()


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def get_local_time(timezone: Optional[str] = None) -> datetime:
    """
    Get the current local time.

    Args:
        timezone: IANA timezone name; server local time if not given

    Returns:
        Current datetime
    """
    if timezone:
        from zoneinfo import ZoneInfo
        return datetime.now(ZoneInfo(timezone))
    return datetime.now()


def format_report_datetime(dt: Optional[datetime] = None, timezone: Optional[str] = None) -> str:
    """
    Format a datetime as dd.MM.yyyy, HH:mm for report headers.

    Args:
        dt: Datetime to format (defaults to now)
        timezone: Timezone used when dt is not given

    Returns:
        Formatted datetime string
    """
    if dt is None:
        dt = get_local_time(timezone)
    return dt.strftime(REPORT_DATETIME_FORMAT)
