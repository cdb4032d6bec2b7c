"""Common test fixtures."""

from __future__ import annotations

import copy
import json
from datetime import date

import pytest

import db_service
import holiday_service

# Fixed reference date so holiday year boundaries are deterministic
TODAY = date(2026, 3, 15)

BASE_USER = {
    "id": "u1",
    "profile": {
        "firstName": "Alice",
        "lastName": "Smith",
        "company": "Acme",
        "email": "alice@example.com",
        "nonWorkingDays": [0, 6],
        "holidayStartMonth": 1,
    },
    "yearAllowances": [{"year": 2026, "core": 25, "bought": 0, "carried": 0}],
    "entries": [],
}


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def base_user() -> dict:
    """A Mon-Fri worker with a January holiday year and 25 days for 2026."""
    return copy.deepcopy(BASE_USER)


@pytest.fixture
def store(tmp_path, base_user):
    """Point db_service at a temporary JSON file seeded with base_user."""
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"users": [base_user]}), encoding="utf-8")
    db_service.init_db(str(path))
    yield path
    db_service.init_db(str(tmp_path / "unused.json"))


@pytest.fixture
def bank_holidays(monkeypatch):
    """Replace the bank holiday source with a fixed, mutable list."""
    dates: list[str] = []
    monkeypatch.setattr(holiday_service, "get_bank_holidays", lambda client=None: list(dates))
    return dates
