"""
Leave statuses, types and their display metadata.
"""
from enum import Enum


class LeaveStatus(str, Enum):
    PLANNED = "planned"
    REQUESTED = "requested"
    APPROVED = "approved"


class LeaveType(str, Enum):
    HOLIDAY = "holiday"
    SICK = "sick"
    OTHER = "other"


LEAVE_STATUS_LABELS = {
    LeaveStatus.PLANNED: "Planned (Draft)",
    LeaveStatus.REQUESTED: "Requested (Pending)",
    LeaveStatus.APPROVED: "Approved (Confirmed)",
}

# Display order; iterate this rather than the enum when rendering
LEAVE_STATUS_ORDER = [LeaveStatus.PLANNED, LeaveStatus.REQUESTED, LeaveStatus.APPROVED]

LEAVE_TYPE_LABELS = {
    LeaveType.HOLIDAY: "Holiday",
    LeaveType.SICK: "Sick",
    LeaveType.OTHER: "Other",
}

LEAVE_TYPE_ORDER = [LeaveType.HOLIDAY, LeaveType.SICK, LeaveType.OTHER]

# Sunday first, matching the stored weekday numbering
DAY_NAMES_SHORT = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

MONTH_NAMES_LONG = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
