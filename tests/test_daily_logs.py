"""
Tests for daily log storage: get_daily_log(), upsert_daily_log(),
list_recent_daily_logs().
"""

import json
import pytest
from datetime import datetime, timezone

from energy_exec import utils
from energy_exec.storage import get_daily_log, upsert_daily_log, list_recent_daily_logs


class TestGetDailyLog:
    """Tests for get_daily_log() function."""

    def test_missing_date_returns_none(self, temp_data_dir):
        """Test reading a date that was never written."""
        assert get_daily_log("2099-12-31") is None

    def test_invalid_date_key_raises(self, temp_data_dir):
        """Test malformed date keys are rejected."""
        with pytest.raises(ValueError):
            get_daily_log("15/01/2026")
        with pytest.raises(ValueError):
            get_daily_log("2026-02-30")

    def test_old_file_gets_new_fields(self, temp_data_dir):
        """Test files written before notes_for_tomorrow existed still load."""
        log_file = temp_data_dir / "daily_logs" / "2026-01-10.json"
        with open(log_file, "w") as f:
            json.dump({"date": "2026-01-10", "body_battery_start": 60, "updated_at": "2026-01-10T08:00:00+00:00"}, f)

        row = get_daily_log("2026-01-10")

        assert row["body_battery_start"] == 60
        assert row["notes_for_tomorrow"] is None


class TestUpsertDailyLog:
    """Tests for upsert_daily_log() function."""

    def test_creates_row_with_other_fields_absent(self, temp_data_dir, mock_now_utc):
        """Test first write creates the row with every other field None."""
        row = upsert_daily_log("2026-01-15", {"body_battery_start": 80})

        assert row["date"] == "2026-01-15"
        assert row["body_battery_start"] == 80
        assert row["sleep_notes"] is None
        assert row["generated_plan"] is None
        assert row["updated_at"] == mock_now_utc.isoformat()
        assert (temp_data_dir / "daily_logs" / "2026-01-15.json").exists()

    def test_partial_updates_merge(self, temp_data_dir, mock_now_utc):
        """Test two partial writes to the same date keep both fields."""
        upsert_daily_log("2024-01-01", {"body_battery_start": 80})
        upsert_daily_log("2024-01-01", {"sleep_notes": "ok"})

        row = get_daily_log("2024-01-01")
        assert row["body_battery_start"] == 80
        assert row["sleep_notes"] == "ok"

    def test_later_write_overwrites_same_field(self, temp_data_dir, mock_now_utc):
        """Test a field written twice keeps the last value."""
        upsert_daily_log("2026-01-15", {"generated_plan": "first"})
        upsert_daily_log("2026-01-15", {"generated_plan": "second"})

        assert get_daily_log("2026-01-15")["generated_plan"] == "second"

    def test_updated_at_refreshes(self, temp_data_dir, monkeypatch):
        """Test every write moves updated_at forward."""
        first = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)
        second = datetime(2026, 1, 15, 20, 0, tzinfo=timezone.utc)

        monkeypatch.setattr(utils, "now_utc", lambda: first)
        upsert_daily_log("2026-01-15", {"body_battery_start": 70})
        monkeypatch.setattr(utils, "now_utc", lambda: second)
        row = upsert_daily_log("2026-01-15", {"reflections": "good day"})

        assert row["updated_at"] == second.isoformat()

    def test_structured_fields_round_trip(self, temp_data_dir, mock_now_utc):
        """Test mood and list fields survive storage."""
        upsert_daily_log("2026-01-15", {
            "mood": {"text": "focused"},
            "priorities": ["Ship release"],
            "appointments": ["Dentist at 10am"],
        })

        row = get_daily_log("2026-01-15")
        assert row["mood"] == {"text": "focused"}
        assert row["priorities"] == ["Ship release"]
        assert row["appointments"] == ["Dentist at 10am"]

    def test_unknown_field_raises(self, temp_data_dir, mock_now_utc):
        """Test unknown field names are rejected without writing."""
        with pytest.raises(ValueError, match="bodyBatteryStart"):
            upsert_daily_log("2026-01-15", {"bodyBatteryStart": 80})

        assert get_daily_log("2026-01-15") is None

    def test_unserialisable_value_keeps_stored_row(self, temp_data_dir, mock_now_utc):
        """Test a rejected write leaves the earlier row readable."""
        upsert_daily_log("2026-01-15", {"body_battery_start": 80})

        with pytest.raises(TypeError):
            upsert_daily_log("2026-01-15", {"sleep_notes": {1, 2}})

        row = get_daily_log("2026-01-15")
        assert row["body_battery_start"] == 80
        assert row["sleep_notes"] is None

    def test_invalid_date_raises(self, temp_data_dir, mock_now_utc):
        """Test malformed date keys are rejected."""
        with pytest.raises(ValueError):
            upsert_daily_log("yesterday", {"body_battery_start": 80})


class TestListRecentDailyLogs:
    """Tests for list_recent_daily_logs() function."""

    def test_sorted_newest_first_and_limited(self, temp_data_dir, mock_now_utc):
        """Test rows come back by date descending, capped at limit."""
        for date in ["2026-01-12", "2026-01-15", "2026-01-10", "2026-01-14"]:
            upsert_daily_log(date, {"sleep_notes": date})

        rows = list_recent_daily_logs(3)

        assert [r["date"] for r in rows] == ["2026-01-15", "2026-01-14", "2026-01-12"]

    def test_limit_larger_than_rows(self, temp_data_dir, mock_now_utc):
        """Test limit above the number of rows returns them all."""
        upsert_daily_log("2026-01-15", {"sleep_notes": "ok"})

        assert len(list_recent_daily_logs(10)) == 1

    def test_empty_and_zero_limit(self, temp_data_dir):
        """Test no rows and non-positive limits give an empty list."""
        assert list_recent_daily_logs(5) == []
        assert list_recent_daily_logs(0) == []

    def test_ignores_foreign_files(self, temp_data_dir, mock_now_utc):
        """Test files that aren't date keys are skipped."""
        upsert_daily_log("2026-01-15", {"sleep_notes": "ok"})
        (temp_data_dir / "daily_logs" / "notes.json").write_text("{}")

        assert [r["date"] for r in list_recent_daily_logs(5)] == ["2026-01-15"]
