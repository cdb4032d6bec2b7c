#!/usr/bin/env python3
"""
MCP interface for leave tracking with StreamableHttp transport.
This is a thin wrapper around the leave service; dates cross the boundary as YYYY-MM-DD strings.
"""

import os
import logging
from dotenv import load_dotenv
from datetime import date
from typing import Any
from mcp.server.fastmcp import FastMCP

import db_service
import holiday_service
import leave_service

# Load environment variables from .env file
load_dotenv()

# Logging (stdlib only)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
logger = logging.getLogger(__name__)

# Create MCP server instance with JSON responses
mcp = FastMCP("Offtime", json_response=True)

# Initialize the data store
db_service.init_db()


# ==================== HELPER FUNCTIONS ====================

def isoformat_dates(value: Any) -> Any:
    """Recursively convert date values to ISO strings"""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: isoformat_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [isoformat_dates(v) for v in value]
    return value


# ==================== MCP TOOLS ====================

@mcp.tool()
def get_bank_holidays() -> list:
    """
    Get the list of bank holiday dates.

    Returns:
        List of bank holiday dates in YYYY-MM-DD format
    """
    return holiday_service.get_bank_holidays()


@mcp.tool()
def get_user(user_id: str) -> dict:
    """
    Get a user's profile, year allowances and leave entries.

    Args:
        user_id: The user's id
    """
    try:
        return leave_service.get_user(user_id)
    except ValueError as e:
        return {"error": str(e)}


@mcp.tool()
def get_leave_summary(user_id: str, as_of: str = None) -> dict:
    """
    Get a user's leave summary for the holiday year containing as_of.

    Args:
        user_id: The user's id
        as_of: Reference date in YYYY-MM-DD format (defaults to today)

    Returns:
        Allowance total, approved/requested/planned/used/remaining days and
        the holiday year bounds
    """
    try:
        today = date.fromisoformat(as_of) if as_of else None
        summary = leave_service.get_leave_summary(user_id, today)
        return isoformat_dates(summary)
    except ValueError as e:
        return {"error": str(e)}


@mcp.tool()
def get_leave_entries(user_id: str) -> list:
    """
    Get all leave entries for a user.

    Args:
        user_id: The user's id
    """
    try:
        return leave_service.get_entries(user_id)
    except ValueError as e:
        return [{"error": str(e)}]


@mcp.tool()
def create_leave_entry(
    user_id: str,
    start_date: str,
    end_date: str,
    status: str = "planned",
    leave_type: str = "holiday",
    notes: str = None
) -> dict:
    """
    Create a new leave entry for a user.

    Args:
        user_id: The user's id
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format (inclusive)
        status: 'planned', 'requested' or 'approved'
        leave_type: 'holiday', 'sick' or 'other'
        notes: Optional notes about the leave

    Returns:
        The created leave entry
    """
    body = {
        "startDate": start_date,
        "endDate": end_date,
        "status": status,
        "type": leave_type,
    }
    if notes:
        body["notes"] = notes

    try:
        return leave_service.create_entry(user_id, body)
    except ValueError as e:
        return {"error": str(e)}


@mcp.tool()
def delete_leave_entry(user_id: str, entry_id: str) -> dict:
    """
    Delete a leave entry.

    Args:
        user_id: The user's id
        entry_id: The id of the entry to delete

    Returns:
        Confirmation message
    """
    try:
        leave_service.delete_entry(user_id, entry_id)
        return {"message": "Leave entry deleted successfully"}
    except ValueError as e:
        return {"error": str(e)}


@mcp.tool()
def calc_working_days(start_date: str, end_date: str, non_working_days: list[int] = None) -> dict:
    """
    Calculate the number of working days between two dates.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format
        non_working_days: Weekday numbers off work, 0=Sunday ... 6=Saturday (defaults to weekends)

    Returns:
        Dictionary with the working day count and bank holidays in range
    """
    try:
        result = leave_service.calculate_working_days_between(start_date, end_date, non_working_days)
        return isoformat_dates(result)
    except ValueError as e:
        return {"error": str(e)}

if __name__ == "__main__":
    # Run with StreamableHttp transport
    mcp.run(transport="streamable-http")
