"""Date manipulation utilities"""

from datetime import date, timedelta
from typing import List


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def calendar_months_between(earlier: date, later: date) -> int:
    """Whole calendar months from earlier to later, ignoring the day of month"""
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5
