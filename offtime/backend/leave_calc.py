"""
Leave summary aggregation.
Pure functions: every input is passed in, nothing is read from the store or the clock.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from leave_config import LeaveStatus, LeaveType
from utils import (
    HolidayYear,
    count_working_days,
    filter_bank_holidays_for_user,
    get_holiday_year_bounds,
    parse_iso_date,
)

# Keyed by the stored string value so plain JSON statuses look up directly
STATUS_BUCKETS = {
    LeaveStatus.APPROVED.value: 'approved',
    LeaveStatus.REQUESTED.value: 'requested',
    LeaveStatus.PLANNED.value: 'planned',
}


def allowance_total(allowance: Optional[Dict[str, Any]]) -> int:
    """core + bought + carried, or 0 when no allowance is configured"""
    if not allowance:
        return 0
    return allowance.get('core', 0) + allowance.get('bought', 0) + allowance.get('carried', 0)


def resolve_year_allowance(year_allowances: List[Dict[str, Any]], year: int) -> Optional[Dict[str, Any]]:
    """Pick the allowance configured for a holiday year's start year"""
    for allowance in year_allowances or []:
        if allowance.get('year') == year:
            return allowance
    return None


def calc_leave_summary(
    entries: List[Dict[str, Any]],
    year_allowance: Optional[Dict[str, Any]],
    holiday_year: HolidayYear,
    non_working_days: List[int],
    bank_holidays: List[str]
) -> Dict[str, int]:
    """
    Aggregate holiday-type entries into per-status day totals.

    Entries that do not overlap the holiday year are skipped whole. Sick and
    other entries never touch the totals. remaining goes negative when the
    allowance is overspent.
    """
    total = allowance_total(year_allowance)
    buckets = {'approved': 0, 'requested': 0, 'planned': 0}

    for entry in entries:
        if entry.get('type') != LeaveType.HOLIDAY:
            continue

        start = parse_iso_date(entry['startDate'])
        end = parse_iso_date(entry['endDate'])
        if end < holiday_year.start or start > holiday_year.end:
            continue

        status = entry.get('status')
        bucket = STATUS_BUCKETS.get(getattr(status, 'value', status))
        if bucket is None:
            continue

        buckets[bucket] += count_working_days(start, end, non_working_days, bank_holidays)

    used = buckets['approved'] + buckets['requested'] + buckets['planned']

    return {
        'total': total,
        'approved': buckets['approved'],
        'requested': buckets['requested'],
        'planned': buckets['planned'],
        'used': used,
        'remaining': total - used,
    }


def calc_user_leave_summary(
    user: Dict[str, Any],
    bank_holidays: List[str],
    today: date = None
) -> Dict[str, Any]:
    """
    Leave summary for a stored user record in the holiday year containing today.

    Returns the summary fields plus the resolved holiday year bounds and the
    bank holidays that were deducted.
    """
    profile = user['profile']
    non_working_days = profile.get('nonWorkingDays', [])

    holiday_year = get_holiday_year_bounds(profile['holidayStartMonth'], today)
    year_allowance = resolve_year_allowance(user.get('yearAllowances', []), holiday_year.start.year)
    relevant_holidays = filter_bank_holidays_for_user(holiday_year, non_working_days, bank_holidays)

    summary = calc_leave_summary(
        user.get('entries', []),
        year_allowance,
        holiday_year,
        non_working_days,
        relevant_holidays
    )
    summary['holidayYear'] = {
        'start': holiday_year.start,
        'end': holiday_year.end,
    }
    summary['bankHolidays'] = relevant_holidays
    return summary
