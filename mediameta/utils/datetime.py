"""Datetime parsing helpers for upstream payloads."""

from __future__ import annotations

import re
from datetime import date

_YEAR_RE = re.compile(r"(?<!\d)(\d{4})(?!\d)")
_TIME_SEPARATORS = ("T", " ")
_CALENDAR_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def convert_date_to_year(value: str | None) -> int | None:
    """Extract the first standalone 4-digit year token from a raw date string."""
    if not value:
        return None
    match = _YEAR_RE.search(value)
    if not match:
        return None
    return int(match.group(1))


def convert_string_to_date(value: str | None) -> date | None:
    """Parse a full YYYY-MM-DD date, ignoring any trailing time component.

    Partial dates such as ``2004`` or ``2004-05`` yield None.
    """
    if not value:
        return None
    candidate = value.strip()
    for separator in _TIME_SEPARATORS:
        candidate = candidate.split(separator, 1)[0]
    if not _CALENDAR_DATE_RE.fullmatch(candidate):
        return None
    try:
        return date.fromisoformat(candidate)
    except ValueError:
        return None
