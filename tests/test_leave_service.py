"""Tests for the leave service layer (validation and orchestration)."""

from __future__ import annotations

from datetime import date

import pytest

import db_service
import leave_service


class TestUsers:
    def test_get_user_not_found(self, store) -> None:
        with pytest.raises(ValueError, match="not found"):
            leave_service.get_user("missing")

    def test_create_user_applies_defaults(self, store) -> None:
        user = leave_service.create_user({"firstName": "Bob", "email": "bob@example.com"})
        assert user["profile"]["nonWorkingDays"] == [0, 6]
        assert user["profile"]["holidayStartMonth"] == 1
        assert db_service.find_user_by_id(user["id"]) is not None

    def test_create_user_rejects_duplicate_email(self, store) -> None:
        with pytest.raises(ValueError, match="already exists"):
            leave_service.create_user({"email": "alice@example.com"})

    def test_create_user_drops_unknown_fields(self, store) -> None:
        user = leave_service.create_user({"firstName": "Bob", "password": "secret"})
        assert "password" not in user["profile"]

    @pytest.mark.parametrize("month", [0, 13, "4", True])
    def test_rejects_bad_start_month(self, store, month) -> None:
        with pytest.raises(ValueError, match="holidayStartMonth"):
            leave_service.update_user_profile("u1", {"profile": {"holidayStartMonth": month}})

    @pytest.mark.parametrize("days", [[7], [-1], [1, 1], "0,6"])
    def test_rejects_bad_non_working_days(self, store, days) -> None:
        with pytest.raises(ValueError, match="nonWorkingDays"):
            leave_service.update_user_profile("u1", {"profile": {"nonWorkingDays": days}})

    def test_profile_update_merges_and_sorts_weekdays(self, store) -> None:
        user = leave_service.update_user_profile(
            "u1", {"profile": {"nonWorkingDays": [6, 5, 0], "holidayStartMonth": 4}, "entries": [], "id": "x"}
        )
        assert user["id"] == "u1"
        assert user["profile"]["nonWorkingDays"] == [0, 5, 6]
        assert user["profile"]["holidayStartMonth"] == 4
        assert user["profile"]["firstName"] == "Alice"

    def test_legacy_allowance_is_stored_untouched(self, store) -> None:
        user = leave_service.update_user_profile("u1", {"allowance": {"core": 20, "bought": 1, "carried": 0}})
        assert user["allowance"] == {"core": 20, "bought": 1, "carried": 0}
        assert user["yearAllowances"] == [{"year": 2026, "core": 25, "bought": 0, "carried": 0}]

    def test_create_user_starts_with_no_pinned_users(self, store) -> None:
        user = leave_service.create_user({"firstName": "Bob", "email": "bob@example.com"})
        assert user["profile"]["pinnedUserIds"] == []

    def test_pinned_users_are_persisted(self, store) -> None:
        bob = leave_service.create_user({"firstName": "Bob", "email": "bob@example.com"})
        user = leave_service.update_user_profile("u1", {"profile": {"pinnedUserIds": [bob["id"]]}})
        assert user["profile"]["pinnedUserIds"] == [bob["id"]]
        assert db_service.find_user_by_id("u1")["profile"]["pinnedUserIds"] == [bob["id"]]
        assert user["profile"]["firstName"] == "Alice"

    def test_pinned_users_capped_at_three(self, store) -> None:
        ids = [
            leave_service.create_user({"email": f"user{i}@example.com"})["id"]
            for i in range(4)
        ]
        leave_service.update_user_profile("u1", {"profile": {"pinnedUserIds": ids[:3]}})
        with pytest.raises(ValueError, match="maximum of 3"):
            leave_service.update_user_profile("u1", {"profile": {"pinnedUserIds": ids}})

    def test_cannot_pin_yourself(self, store) -> None:
        with pytest.raises(ValueError, match="cannot pin yourself"):
            leave_service.update_user_profile("u1", {"profile": {"pinnedUserIds": ["u1"]}})

    @pytest.mark.parametrize(
        "pinned, message",
        [
            ("u2", "list of user ids"),
            ([1], "list of user ids"),
            (["missing"], "Unknown pinned user"),
        ],
    )
    def test_rejects_bad_pinned_users(self, store, pinned, message) -> None:
        with pytest.raises(ValueError, match=message):
            leave_service.update_user_profile("u1", {"profile": {"pinnedUserIds": pinned}})

    def test_rejects_duplicate_pinned_users(self, store) -> None:
        bob = leave_service.create_user({"email": "bob@example.com"})
        with pytest.raises(ValueError, match="duplicates"):
            leave_service.update_user_profile("u1", {"profile": {"pinnedUserIds": [bob["id"], bob["id"]]}})


class TestYearAllowance:
    def test_upsert(self, store) -> None:
        result = leave_service.set_year_allowance("u1", {"year": 2026, "core": 26, "bought": 2, "carried": 3})
        assert result == {"year": 2026, "core": 26, "bought": 2, "carried": 3}
        assert db_service.find_user_by_id("u1")["yearAllowances"] == [result]

    def test_missing_fields(self, store) -> None:
        with pytest.raises(ValueError, match="Missing required fields"):
            leave_service.set_year_allowance("u1", {"year": 2026, "core": 25})

    def test_negative_value(self, store) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            leave_service.set_year_allowance("u1", {"year": 2026, "core": -1, "bought": 0, "carried": 0})

    def test_unknown_user(self, store) -> None:
        with pytest.raises(ValueError, match="not found"):
            leave_service.set_year_allowance("missing", {"year": 2026, "core": 1, "bought": 0, "carried": 0})


class TestEntries:
    def test_create_defaults_status_and_type(self, store) -> None:
        entry = leave_service.create_entry("u1", {"startDate": "2026-03-09", "endDate": "2026-03-13"})
        assert entry["status"] == "planned"
        assert entry["type"] == "holiday"
        assert entry["id"]
        assert leave_service.get_entries("u1") == [entry]

    def test_create_keeps_notes(self, store) -> None:
        entry = leave_service.create_entry(
            "u1",
            {"startDate": "2026-03-09", "endDate": "2026-03-09", "status": "approved", "type": "sick", "notes": "flu"},
        )
        assert entry["notes"] == "flu"
        assert entry["type"] == "sick"

    def test_end_before_start(self, store) -> None:
        with pytest.raises(ValueError, match="End date"):
            leave_service.create_entry("u1", {"startDate": "2026-03-13", "endDate": "2026-03-09"})

    def test_missing_date(self, store) -> None:
        with pytest.raises(ValueError, match="startDate is required"):
            leave_service.create_entry("u1", {"endDate": "2026-03-09"})

    def test_malformed_date(self, store) -> None:
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            leave_service.create_entry("u1", {"startDate": "09/03/2026", "endDate": "2026-03-09"})

    def test_unknown_status(self, store) -> None:
        with pytest.raises(ValueError, match="Invalid status"):
            leave_service.create_entry("u1", {"startDate": "2026-03-09", "endDate": "2026-03-09", "status": "done"})

    def test_unknown_user(self, store) -> None:
        with pytest.raises(ValueError, match="not found"):
            leave_service.create_entry("missing", {"startDate": "2026-03-09", "endDate": "2026-03-09"})

    def test_partial_update(self, store) -> None:
        entry = leave_service.create_entry("u1", {"startDate": "2026-03-09", "endDate": "2026-03-13"})
        updated = leave_service.update_entry("u1", entry["id"], {"status": "approved", "id": "hijack"})
        assert updated["id"] == entry["id"]
        assert updated["status"] == "approved"
        assert updated["type"] == "holiday"
        assert updated["endDate"] == "2026-03-13"

    def test_partial_update_ignores_null_fields(self, store) -> None:
        entry = leave_service.create_entry(
            "u1", {"startDate": "2026-03-09", "endDate": "2026-03-13", "status": "approved", "type": "sick"}
        )
        updated = leave_service.update_entry(
            "u1", entry["id"], {"status": None, "type": None, "startDate": None, "notes": "dentist"}
        )
        assert updated["status"] == "approved"
        assert updated["type"] == "sick"
        assert updated["startDate"] == "2026-03-09"
        assert updated["notes"] == "dentist"

    def test_partial_update_checks_merged_range(self, store) -> None:
        entry = leave_service.create_entry("u1", {"startDate": "2026-03-09", "endDate": "2026-03-13"})
        with pytest.raises(ValueError, match="End date"):
            leave_service.update_entry("u1", entry["id"], {"endDate": "2026-03-01"})

    def test_update_missing_entry(self, store) -> None:
        with pytest.raises(ValueError, match="Entry not found"):
            leave_service.update_entry("u1", "nope", {"status": "approved"})

    def test_delete(self, store) -> None:
        entry = leave_service.create_entry("u1", {"startDate": "2026-03-09", "endDate": "2026-03-13"})
        leave_service.delete_entry("u1", entry["id"])
        assert leave_service.get_entries("u1") == []
        with pytest.raises(ValueError, match="Entry not found"):
            leave_service.delete_entry("u1", entry["id"])


class TestSummary:
    def test_summary_uses_bank_holidays_and_reference_date(self, store, bank_holidays, today) -> None:
        bank_holidays.extend(["2026-03-09", "2027-01-01"])
        leave_service.create_entry(
            "u1", {"startDate": "2026-03-09", "endDate": "2026-03-13", "status": "approved"}
        )
        leave_service.create_entry(
            "u1", {"startDate": "2026-03-16", "endDate": "2026-03-17", "status": "requested"}
        )
        leave_service.create_entry(
            "u1", {"startDate": "2026-03-18", "endDate": "2026-03-18", "type": "sick"}
        )

        summary = leave_service.get_leave_summary("u1", today)
        assert summary["total"] == 25
        assert summary["approved"] == 4
        assert summary["requested"] == 2
        assert summary["planned"] == 0
        assert summary["used"] == 6
        assert summary["remaining"] == 19
        assert summary["bankHolidays"] == ["2026-03-09"]

    def test_summary_for_a_later_holiday_year(self, store, bank_holidays) -> None:
        summary = leave_service.get_leave_summary("u1", date(2027, 2, 1))
        assert summary["total"] == 0
        assert summary["holidayYear"]["start"] == date(2027, 1, 1)


class TestCalculateWorkingDays:
    def test_counts_with_bank_holidays(self, bank_holidays) -> None:
        bank_holidays.extend(["2026-04-03", "2026-04-06", "2026-05-04"])
        result = leave_service.calculate_working_days_between("2026-03-30", "2026-04-10")
        assert result["workingDays"] == 8
        assert result["bankHolidaysInRange"] == ["2026-04-03", "2026-04-06"]
        assert result["startDate"] == date(2026, 3, 30)

    def test_custom_non_working_days(self, bank_holidays) -> None:
        result = leave_service.calculate_working_days_between("2026-03-09", "2026-03-15", [0, 5, 6])
        assert result["workingDays"] == 4

    def test_start_after_end(self, bank_holidays) -> None:
        with pytest.raises(ValueError, match="before end date"):
            leave_service.calculate_working_days_between("2026-03-13", "2026-03-09")


class TestMonthCalendar:
    def test_march_2026(self, store, bank_holidays) -> None:
        bank_holidays.append("2026-03-17")
        leave_service.create_entry(
            "u1", {"startDate": "2026-03-09", "endDate": "2026-03-13", "status": "approved"}
        )

        view = leave_service.build_month_calendar("u1", 2026, 3)
        assert view["leadingBlanks"] == 0
        assert len(view["days"]) == 31

        first = view["days"][0]
        assert first["date"] == "2026-03-01"
        assert first["nonWorking"] is True
        assert first["entryId"] is None

        ninth = view["days"][8]
        assert ninth["status"] == "approved"
        assert ninth["type"] == "holiday"
        assert ninth["nonWorking"] is False

        assert view["days"][16]["bankHoliday"] is True

    def test_february_leap_year(self, store, bank_holidays) -> None:
        view = leave_service.build_month_calendar("u1", 2024, 2)
        assert len(view["days"]) == 29
        # 1 February 2024 was a Thursday
        assert view["leadingBlanks"] == 4

    def test_bad_month(self, store, bank_holidays) -> None:
        with pytest.raises(ValueError, match="month"):
            leave_service.build_month_calendar("u1", 2026, 13)
