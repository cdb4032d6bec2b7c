"""
Utility functions for leave accounting calculations.
Pure functions with no database dependencies.

Weekdays follow the stored profile format: 0=Sunday ... 6=Saturday.
"""
import calendar
from datetime import MAXYEAR, date, timedelta
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Union

DateLike = Union[date, str]


class HolidayYear(NamedTuple):
    """Inclusive bounds of a rolling 12-month holiday year"""
    start: date
    end: date


def parse_iso_date(value: DateLike) -> date:
    """Parse a YYYY-MM-DD string (dates are passed through)"""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def to_iso_date(value: date) -> str:
    """Format a date as YYYY-MM-DD"""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def weekday_of(value: DateLike) -> int:
    """Day of week with Sunday as 0"""
    return parse_iso_date(value).isoweekday() % 7


def days_in_month(year: int, month0: int) -> int:
    """Number of days in a month (month0 is zero-indexed, 0=January)"""
    return calendar.monthrange(year, month0 + 1)[1]


def first_weekday_of_month(year: int, month0: int) -> int:
    """Day of week (0=Sunday) of the first day of a month (month0 is zero-indexed)"""
    return weekday_of(date(year, month0 + 1, 1))


def is_non_working_day(value: DateLike, non_working_days: Iterable[int]) -> bool:
    """Returns True if the date falls on one of the user's non-working days"""
    return weekday_of(value) in set(non_working_days)


def get_entry_for_date(value: DateLike, entries: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Find the first leave entry whose date range covers the given date"""
    day = parse_iso_date(value)
    for entry in entries:
        if parse_iso_date(entry['startDate']) <= day <= parse_iso_date(entry['endDate']):
            return entry
    return None


def count_working_days(
    start_date: DateLike,
    end_date: DateLike,
    non_working_days: Iterable[int],
    bank_holidays: Iterable[str]
) -> int:
    """
    Count working days between two dates (inclusive).

    A day counts unless its weekday is in non_working_days or its ISO date
    is in bank_holidays. An inverted range counts as 0.
    """
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    excluded_weekdays = set(non_working_days)
    holidays = set(bank_holidays)

    total_days = 0
    for offset in range((end - start).days + 1):
        current = start + timedelta(days=offset)
        if weekday_of(current) not in excluded_weekdays and to_iso_date(current) not in holidays:
            total_days += 1

    return total_days


def get_holiday_year_bounds(holiday_start_month: int, today: date = None) -> HolidayYear:
    """
    Return the holiday year containing today.

    The year starts on day 1 of holiday_start_month (1-12) and ends the day
    before the same date one year later.
    """
    if today is None:
        today = date.today()

    year = today.year if today.month >= holiday_start_month else today.year - 1
    start = date(year, holiday_start_month, 1)
    if year >= MAXYEAR:
        end = date.max
    else:
        end = date(year + 1, holiday_start_month, 1) - timedelta(days=1)
    return HolidayYear(start, end)


def filter_bank_holidays_for_user(
    holiday_year: HolidayYear,
    non_working_days: Iterable[int],
    bank_holidays: Iterable[str]
) -> List[str]:
    """Bank holidays inside the holiday year that land on the user's working days"""
    excluded_weekdays = set(non_working_days)
    relevant = []
    seen = set()

    for raw in bank_holidays:
        day = parse_iso_date(raw)
        iso = to_iso_date(day)
        if iso in seen:
            continue
        if day < holiday_year.start or day > holiday_year.end:
            continue
        if weekday_of(day) in excluded_weekdays:
            continue
        seen.add(iso)
        relevant.append(iso)

    return relevant
