"""
Budget Period Arithmetic

Pure date functions used to turn a budget's start date, period unit and
period count into an inclusive date range.

All end dates are INCLUSIVE: a one-month budget starting 2024-01-01 ends on
2024-01-31 and covers 31 days.
"""

import calendar
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta


class PeriodUnit(str, Enum):
    """Length unit of a budget period."""
    DAYS = "DAYS"
    WEEKS = "WEEKS"
    MONTHS = "MONTHS"
    YEARS = "YEARS"


def end_date(
    start: Optional[date],
    unit: Optional[PeriodUnit],
    count: int,
) -> Optional[date]:
    """
    Compute the inclusive end date of a budget period.

    Args:
        start: First day of the period
        unit: Period unit
        count: Number of units in the period

    Returns:
        The last day of the period, or None if start or unit is missing
        or count is not positive.
    """
    if start is None or unit is None or count <= 0:
        return None

    if unit == PeriodUnit.DAYS:
        return start + timedelta(days=count - 1)
    if unit == PeriodUnit.WEEKS:
        return start + timedelta(weeks=count) - timedelta(days=1)
    if unit == PeriodUnit.MONTHS:
        # relativedelta clamps to month end (Jan 31 + 1 month = Feb 29/28)
        return start + relativedelta(months=count) - timedelta(days=1)
    if unit == PeriodUnit.YEARS:
        return start + relativedelta(years=count) - timedelta(days=1)
    return None


def total_days(start: Optional[date], end: Optional[date]) -> int:
    """Inclusive number of days between start and end (0 if either is missing)."""
    if start is None or end is None:
        return 0
    return (end - start).days + 1


def calendar_month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
