"""Utility functions for the mortgage calculator.

This module provides helpers for parsing user input into Python data types and
for calendar arithmetic: adding months, landing on a configured day of the
month, counting elapsed months and counting days on a fixed 365-day year.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext
import calendar

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date`` object.

    Raises
    ------
    ValueError
        If the string is not a valid calendar date.
    """
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def clamp_day(year: int, month: int, day: int) -> date:
    """Return the date for ``day`` in the given month, clamped to a valid day."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(max(day, 1), last))


def add_months(dt: date, months: int, day: int | None = None) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is ``day`` when given, otherwise the day of ``dt``;
    either way it is clamped to the last valid day if needed (e.g. adding one
    month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    return clamp_day(year, month, dt.day if day is None else day)


def months_elapsed(start: date, end: date) -> int:
    """Number of whole calendar months from ``start`` to ``end`` (never negative)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(months, 0)


def _leap_days_between(start: date, end: date) -> int:
    """Count 29 February dates in the half-open interval ``(start, end]``."""
    count = 0
    for year in range(start.year, end.year + 1):
        if calendar.isleap(year):
            leap_day = date(year, 2, 29)
            if start < leap_day <= end:
                count += 1
    return count


def days_365(start: date, end: date) -> int:
    """Days from ``start`` to ``end`` on a fixed 365-day year.

    Actual days elapsed, less any 29 February in between, so that every year
    accrues exactly 365 days of interest. Returns 0 if ``end`` is not after
    ``start``.
    """
    if end <= start:
        return 0
    return (end - start).days - _leap_days_between(start, end)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result
