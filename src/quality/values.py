"""Typed reads of open record fields.

Record values arrive as loosely typed scalars from the import layer.
These helpers resolve a value against the type a check needs and return
None when no assertion is possible; unparseable data is skipped
rather than flagged.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone

import numpy as np

from src.models.dataset import FieldValue

_TRUTHY = frozenset({"true", "yes", "1"})
_FALSY = frozenset({"false", "no", "0"})

# Tried in order after ISO-8601.
_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%Y%m%d",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
)


def is_missing(value: FieldValue) -> bool:
    """None, or a string that is empty after trimming."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def parse_date(value: FieldValue) -> datetime | None:
    """Parse a date/datetime value or string into a naive UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return naive_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_number(value: FieldValue) -> float | None:
    """Coerce a numeric value or numeric string to float.

    Booleans and dates are not numbers. NaN is treated as unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def to_bool(value: FieldValue) -> bool | None:
    """Coerce true/yes/1 and false/no/0 (case-insensitive) to a bool."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = render_value(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return None


def format_number(number: float) -> str:
    """Render a number positionally, without exponent or trailing zeros."""
    if float(number).is_integer():
        return str(int(number))
    return np.format_float_positional(number, trim="-")


def render_value(value: FieldValue) -> str:
    """Render a value as display/substitution text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return str(value)
        return format_number(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
