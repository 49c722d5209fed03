# backend/wealth/utils/date_utils.py
"""
Calendar helpers shared by the calculators and the bucketing engine.

Usage:
    from wealth.utils.date_utils import add_months, week_of_year

    add_months(date(2024, 1, 31), 1)   # date(2024, 2, 29)
    week_of_year(date(2024, 12, 30))   # 1
"""

import calendar
import math
from datetime import date, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

DAYS_PER_YEAR = Decimal("365")


def add_months(d: date, months: int) -> date:
    """
    Shift a date by whole months, clamping to the last day of the target month.

    Args:
        d: Starting date
        months: Number of months to add (may be 0)

    Returns:
        The shifted date
    """
    return d + relativedelta(months=months)


def add_years(d: date, years: int) -> date:
    """Shift a date by whole years (Feb 29 clamps to Feb 28)."""
    return d + relativedelta(years=years)


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month, leap years included."""
    return calendar.monthrange(year, month)[1]


def month_dates(year: int, month: int) -> list[date]:
    """Every date of a calendar month in order."""
    return [date(year, month, day) for day in range(1, days_in_month(year, month) + 1)]


def thursday_of_week(d: date) -> date:
    """
    Thursday of the Monday-to-Sunday week containing `d`.

    The week a date belongs to is decided by where its Thursday falls,
    so Dec 29-31 can land in the next year's first week and Jan 1-3 in the
    previous year's last week.
    """
    return d + timedelta(days=3 - d.weekday())


def week_of_year(d: date) -> int:
    """
    Thursday-anchored week number (1-53).

    week = ceil(((thursday - Jan 1 of thursday's year).days + 1) / 7)
    """
    thursday = thursday_of_week(d)
    jan_first = date(thursday.year, 1, 1)
    return math.ceil(((thursday - jan_first).days + 1) / 7)


def sunday_based_weekday(d: date) -> int:
    """Day of week with 0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


def year_fraction(start: date, end: date) -> Decimal:
    """Elapsed days between two dates over a 365-day year (may be negative)."""
    return Decimal((end - start).days) / DAYS_PER_YEAR
