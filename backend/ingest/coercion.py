"""
ScheduleWatch Cell Coercion.

Best-effort conversion of cell values. Every function here is total:
unparsable input yields None, never an exception.
Requires Python 3.11+.
"""

import re
from datetime import date, datetime, time
from typing import Any

from dateutil import parser as date_parser

# Bare numbers ("7", "45123.0") are serials or counters, not dates
_NUMERIC = re.compile(r"^[+-]?\d+(\.\d+)?$")

# Missing month and day fall back to January 1st, never to today's date.
# Two defaults with different years reveal text that has no year at all.
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 1, 1)


def cell_text(value: Any) -> str:
    """
    Render a cell value the way it reads in the sheet.

    Args:
        value: Raw value as stored by openpyxl

    Returns:
        Trimmed text, empty string for an empty cell
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_date(text: str) -> date | None:
    """Parse free text as a calendar date, or None."""
    text = text.strip()
    if not text or _NUMERIC.match(text):
        return None
    try:
        parsed = date_parser.parse(text, default=_DEFAULT_A)
        if date_parser.parse(text, default=_DEFAULT_B).year != parsed.year:
            # No year in the text; the result would depend on the defaults
            return None
    except (ValueError, OverflowError):
        return None
    return parsed.date()


def parse_bool(text: str) -> bool | None:
    """Parse "true"/"false" (any case), or None."""
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None
