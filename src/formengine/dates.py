"""
Date helpers shared by the date fields and the condition evaluator.

`today()` is a separate function so tests can monkeypatch it.
"""

import calendar
from datetime import date, timedelta
from typing import Any, Optional

MONTH_NAMES = [calendar.month_name[i] for i in range(1, 13)]


def today() -> date:
    return date.today()


def real_date(year: Any, month: Any, day: Any) -> Optional[date]:
    """Return the date for the parts, or None when they do not form one."""
    try:
        year, month, day = int(year), int(month), int(day)
    except (TypeError, ValueError):
        return None
    if year < 1000 or year > 9999:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the month."""
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift(value: date, period: int, unit: str) -> date:
    """Shift `value` by `period` units (days, weeks, months or years)."""
    if unit == "days":
        return value + timedelta(days=period)
    if unit == "weeks":
        return value + timedelta(weeks=period)
    if unit == "months":
        return add_months(value, period)
    if unit == "years":
        return add_months(value, period * 12)
    raise ValueError(f"Unknown date unit: {unit}")


def parse_iso_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def format_display_date(value: date) -> str:
    """'d MMMM yyyy', e.g. '3 March 2024'."""
    return f"{value.day} {MONTH_NAMES[value.month - 1]} {value.year}"


def format_month_year(month: int, year: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"
