"""
Business logic layer for leave management.
This service layer contains all business rules and validation, and orchestrates
between db_service, holiday_service and the pure calculations in utils/leave_calc.
"""

import copy
import logging
import uuid
from datetime import date
from typing import Dict, Any, List, Optional

import db_service
import holiday_service
from leave_calc import calc_user_leave_summary
from leave_config import (
    DAY_NAMES_SHORT,
    LEAVE_STATUS_LABELS,
    LEAVE_STATUS_ORDER,
    LEAVE_TYPE_LABELS,
    LEAVE_TYPE_ORDER,
    MONTH_NAMES_LONG,
    LeaveStatus,
    LeaveType,
)
from utils import (
    count_working_days,
    days_in_month,
    first_weekday_of_month,
    get_entry_for_date,
    is_non_working_day,
    parse_iso_date,
    to_iso_date,
    weekday_of,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "firstName", "lastName", "company", "email", "nonWorkingDays", "holidayStartMonth", "pinnedUserIds"
)
ALLOWANCE_FIELDS = ("core", "bought", "carried")
MAX_PINNED_USERS = 3
DEFAULT_PROFILE = {
    "firstName": "",
    "lastName": "",
    "company": "",
    "email": "",
    "nonWorkingDays": [0, 6],
    "holidayStartMonth": 1,
    "pinnedUserIds": [],
}


# ==================== VALIDATION ====================

def _parse_date_field(body: Dict[str, Any], field: str) -> date:
    value = body.get(field)
    if not value:
        raise ValueError(f"{field} is required")
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a date in YYYY-MM-DD format")


def _validate_choice(value: Any, choices, field: str) -> str:
    allowed = [c.value for c in choices]
    if value not in allowed:
        raise ValueError(f"Invalid {field} '{value}'. Expected one of: {', '.join(allowed)}")
    return value


def _validate_pinned_users(pinned: Any, user_id: Optional[str]) -> List[str]:
    if not isinstance(pinned, list) or any(not isinstance(p, str) or not p for p in pinned):
        raise ValueError("pinnedUserIds must be a list of user ids")
    if len(set(pinned)) != len(pinned):
        raise ValueError("pinnedUserIds must not contain duplicates")
    if len(pinned) > MAX_PINNED_USERS:
        raise ValueError(f"You can pin a maximum of {MAX_PINNED_USERS} users")
    if user_id is not None and user_id in pinned:
        raise ValueError("You cannot pin yourself")

    for pinned_id in pinned:
        if not db_service.find_user_by_id(pinned_id):
            raise ValueError(f"Unknown pinned user id '{pinned_id}'")
    return pinned


def validate_profile(profile: Dict[str, Any], user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Check and normalise profile fields.

    Raises:
        ValueError: If holidayStartMonth or nonWorkingDays are out of range, or
            pinnedUserIds is not a short list of other existing users
    """
    cleaned = {k: v for k, v in profile.items() if k in PROFILE_FIELDS}

    if "holidayStartMonth" in cleaned:
        month = cleaned["holidayStartMonth"]
        if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
            raise ValueError("holidayStartMonth must be an integer between 1 and 12")

    if "nonWorkingDays" in cleaned:
        days = cleaned["nonWorkingDays"]
        if not isinstance(days, list) or any(
            not isinstance(d, int) or isinstance(d, bool) or not 0 <= d <= 6 for d in days
        ):
            raise ValueError("nonWorkingDays must be a list of weekday numbers between 0 and 6")
        if len(set(days)) != len(days):
            raise ValueError("nonWorkingDays must not contain duplicates")
        cleaned["nonWorkingDays"] = sorted(days)

    if "pinnedUserIds" in cleaned:
        cleaned["pinnedUserIds"] = _validate_pinned_users(cleaned["pinnedUserIds"], user_id)

    return cleaned


def validate_allowance(body: Dict[str, Any], fields=ALLOWANCE_FIELDS) -> Dict[str, int]:
    allowance = {}
    for field in fields:
        value = body.get(field)
        if value is None:
            raise ValueError("Missing required fields")
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"{field} must be a non-negative integer")
        allowance[field] = value
    return allowance


def validate_entry(body: Dict[str, Any], partial: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Validate leave entry fields. With partial set to the existing entry, only
    the supplied fields are checked and the date range is checked against the
    merged result. Null values in a partial update leave the field unchanged,
    except notes, which null clears.
    """
    if partial is not None:
        body = {k: v for k, v in body.items() if v is not None or k == "notes"}

    merged = dict(partial or {})
    merged.update({k: v for k, v in body.items() if v is not None})

    start = _parse_date_field(merged, "startDate")
    end = _parse_date_field(merged, "endDate")
    if end < start:
        raise ValueError("End date must be on or after start date")

    cleaned = {}
    if partial is None or "startDate" in body:
        cleaned["startDate"] = to_iso_date(start)
    if partial is None or "endDate" in body:
        cleaned["endDate"] = to_iso_date(end)
    if partial is None or "status" in body:
        cleaned["status"] = _validate_choice(body.get("status") or LeaveStatus.PLANNED.value, LeaveStatus, "status")
    if partial is None or "type" in body:
        cleaned["type"] = _validate_choice(body.get("type") or LeaveType.HOLIDAY.value, LeaveType, "type")
    if "notes" in body:
        cleaned["notes"] = body["notes"]

    return cleaned


# ==================== USER OPERATIONS ====================

def get_users() -> List[Dict[str, Any]]:
    return db_service.get_all_users()


def get_user(user_id: str) -> Dict[str, Any]:
    """
    Get a user record.

    Raises:
        ValueError: If the user does not exist
    """
    user = db_service.find_user_by_id(user_id)
    if not user:
        raise ValueError("User not found")
    return user


def create_user(profile: Dict[str, Any]) -> Dict[str, Any]:
    """
    Register a new user profile.

    Raises:
        ValueError: If validation fails or the email is already registered
    """
    cleaned = {**copy.deepcopy(DEFAULT_PROFILE), **validate_profile(profile or {})}
    if cleaned["email"] and db_service.find_user_by_email(cleaned["email"]):
        raise ValueError("A user with this email already exists")

    user = db_service.create_user(cleaned)
    logger.info("Created user %s", user["id"])
    return user


def update_user_profile(user_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Update a user's profile and/or legacy flat allowance.
    id, entries and yearAllowances are never touched here.
    """
    user = get_user(user_id)
    updates = {}

    if "profile" in body:
        updates["profile"] = {**user["profile"], **validate_profile(body["profile"] or {}, user_id)}
    if "allowance" in body:
        updates["allowance"] = validate_allowance(body["allowance"] or {})

    if not updates:
        return user
    return db_service.update_user(user_id, updates)


def set_year_allowance(user_id: str, body: Dict[str, Any]) -> Dict[str, int]:
    """
    Add or replace the allowance for one holiday year.

    Raises:
        ValueError: If fields are missing/negative or the user does not exist
    """
    allowance = validate_allowance(body, ("year",) + ALLOWANCE_FIELDS)
    if allowance["year"] == 0:
        raise ValueError("Missing required fields")

    if db_service.upsert_year_allowance(user_id, allowance) is None:
        raise ValueError("User not found")
    return allowance


# ==================== ENTRY OPERATIONS ====================

def get_entries(user_id: str) -> List[Dict[str, Any]]:
    return get_user(user_id).get("entries", [])


def create_entry(user_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a leave entry. Status defaults to planned and type to holiday.

    Raises:
        ValueError: If validation fails or the user does not exist
    """
    entry = {"id": str(uuid.uuid4()), **validate_entry(body)}

    if not db_service.add_entry(user_id, entry):
        raise ValueError("User not found")

    logger.info("Created %s entry %s for user %s", entry["type"], entry["id"], user_id)
    return entry


def update_entry(user_id: str, entry_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Partially update a leave entry.

    Raises:
        ValueError: If validation fails or the user/entry does not exist
    """
    existing = next((e for e in get_entries(user_id) if e["id"] == entry_id), None)
    if not existing:
        raise ValueError("Entry not found")

    updates = validate_entry({k: v for k, v in body.items() if k != "id"}, partial=existing)
    return db_service.update_entry(user_id, entry_id, updates)


def delete_entry(user_id: str, entry_id: str) -> None:
    """
    Delete a leave entry.

    Raises:
        ValueError: If the user or entry does not exist
    """
    get_user(user_id)
    if not db_service.delete_entry(user_id, entry_id):
        raise ValueError("Entry not found")
    logger.info("Deleted entry %s for user %s", entry_id, user_id)


# ==================== SUMMARY OPERATIONS ====================

def get_leave_summary(user_id: str, today: date = None) -> Dict[str, Any]:
    """
    Leave summary for the holiday year containing today.

    Args:
        user_id: User to summarise
        today: Reference date (defaults to the current date)

    Returns:
        total/approved/requested/planned/used/remaining plus holidayYear bounds
        and the bank holidays deducted
    """
    if today is None:
        today = date.today()

    user = get_user(user_id)
    bank_holidays = holiday_service.get_bank_holidays()
    return calc_user_leave_summary(user, bank_holidays, today)


def calculate_working_days_between(
    start_date: Any,
    end_date: Any,
    non_working_days: List[int] = None
) -> Dict[str, Any]:
    """
    Working days between two dates after weekends and bank holidays.

    Raises:
        ValueError: If a date is missing/invalid or start_date is after end_date
    """
    body = {"startDate": start_date, "endDate": end_date}
    start = _parse_date_field(body, "startDate")
    end = _parse_date_field(body, "endDate")
    if start > end:
        raise ValueError("Start date must be before end date")

    if non_working_days is None:
        non_working_days = DEFAULT_PROFILE["nonWorkingDays"]
    else:
        non_working_days = validate_profile({"nonWorkingDays": non_working_days})["nonWorkingDays"]

    bank_holidays = holiday_service.get_bank_holidays()
    holidays_in_range = sorted({
        to_iso_date(parse_iso_date(h)) for h in bank_holidays
        if start <= parse_iso_date(h) <= end
    })

    return {
        "startDate": start,
        "endDate": end,
        "workingDays": count_working_days(start, end, non_working_days, holidays_in_range),
        "bankHolidaysInRange": holidays_in_range,
    }


# ==================== CALENDAR OPERATIONS ====================

def get_leave_options() -> Dict[str, Any]:
    """Statuses, types, weekday and month names in display order for form pickers"""
    return {
        "statuses": [{"value": s.value, "label": LEAVE_STATUS_LABELS[s]} for s in LEAVE_STATUS_ORDER],
        "types": [{"value": t.value, "label": LEAVE_TYPE_LABELS[t]} for t in LEAVE_TYPE_ORDER],
        "dayNames": DAY_NAMES_SHORT,
        "monthNames": MONTH_NAMES_LONG,
    }


def build_month_calendar(user_id: str, year: int, month: int) -> Dict[str, Any]:
    """
    Day-by-day view of one month for a user.

    Args:
        user_id: User whose entries and working pattern are shown
        year: Calendar year
        month: Month 1-12

    Returns:
        Dictionary with the leading blank count (Sunday-first grid) and one
        record per day
    """
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")

    user = get_user(user_id)
    non_working_days = user["profile"].get("nonWorkingDays", [])
    entries = user.get("entries", [])
    bank_holidays = {to_iso_date(parse_iso_date(h)) for h in holiday_service.get_bank_holidays()}

    month0 = month - 1
    days = []
    for day_number in range(1, days_in_month(year, month0) + 1):
        day = date(year, month, day_number)
        iso = to_iso_date(day)
        entry = get_entry_for_date(day, entries)
        days.append({
            "date": iso,
            "weekday": weekday_of(day),
            "nonWorking": is_non_working_day(day, non_working_days),
            "bankHoliday": iso in bank_holidays,
            "entryId": entry["id"] if entry else None,
            "status": entry["status"] if entry else None,
            "type": entry["type"] if entry else None,
        })

    return {
        "year": year,
        "month": month,
        "leadingBlanks": first_weekday_of_month(year, month0),
        "days": days,
    }
