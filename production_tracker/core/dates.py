"""
Conversions between calendar dates and the textual forms entries carry.

Storage strings are ``YYYY/MM/DD``. Rows written by older clients may hold
``YYYY-MM-DD``; both are accepted on the way in, only the slash form is
produced. Because both are zero padded, plain string comparison follows
calendar order, which the range filters rely on.
"""
from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Optional

DISPLAY_FORMAT = "%b %d, %Y"

_STORAGE_RE = re.compile(r"^(\d{4})([/-])(\d{2})\2(\d{2})$")
_LEGACY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def to_storage_string(value: Optional[date]) -> str:
    """Format a date (or datetime) as ``YYYY/MM/DD``; ``None`` gives ``""``.

    Only the calendar fields are read, a datetime is never shifted to UTC.
    """
    if value is None:
        return ""
    return f"{value.year:04d}/{value.month:02d}/{value.day:02d}"


def from_storage_string(text: Optional[str]) -> Optional[date]:
    """Parse ``YYYY/MM/DD`` or ``YYYY-MM-DD``; ``None`` when it does not parse.

    The day is only checked against 1..31. A day past the end of its month
    rolls forward into the next one (``2024/02/31`` is March 2nd).
    """
    if not text:
        return None
    match = _STORAGE_RE.match(text.strip())
    if not match:
        return None
    year, month, day = int(match.group(1)), int(match.group(3)), int(match.group(4))
    if month < 1 or month > 12:
        return None
    if day < 1 or day > 31:
        return None
    if year < 1:
        return None
    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except OverflowError:
        return None


def normalize_storage_string(text: str) -> str:
    """Rewrite a legacy dash date into the slash form; anything else is untouched."""
    if text and _LEGACY_RE.match(text):
        return text.replace("-", "/")
    return text


def to_display_string(value: Optional[date]) -> str:
    if value is None:
        return ""
    return value.strftime(DISPLAY_FORMAT)


def display_storage_string(text: str) -> str:
    """Display form of a stored date, or the raw text when it does not parse."""
    parsed = from_storage_string(text)
    return to_display_string(parsed) if parsed else text


__all__ = [
    "DISPLAY_FORMAT",
    "to_storage_string",
    "from_storage_string",
    "normalize_storage_string",
    "to_display_string",
    "display_storage_string",
]
