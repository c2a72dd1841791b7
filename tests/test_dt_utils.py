"""Tests for dt_utils - calendar date and timestamp handling.

Pure Python; no Home Assistant fixtures needed. The default timezone is
reset to UTC by the autouse conftest fixture.
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from custom_components.questline.utils.dt_utils import (
    days_until_deadline,
    end_of_day,
    is_date_in_future,
    parse_local_date,
    parse_timestamp,
    set_default_timezone,
    start_of_day,
    to_utc_iso,
    validate_and_clamp_date,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class TestParseLocalDate:
    """Strict YYYY-MM-DD parsing."""

    def test_valid_date_is_local_midnight(self) -> None:
        """A calendar date becomes 00:00 in the default timezone."""
        result = parse_local_date("2025-04-07")
        assert result == datetime(2025, 4, 7, tzinfo=ZoneInfo("UTC"))

    def test_calendar_day_survives_negative_offset(self) -> None:
        """The day is not shifted by the UTC offset of the local zone."""
        set_default_timezone(ZoneInfo("America/Los_Angeles"))
        result = parse_local_date("2025-03-01")
        assert result is not None
        assert result.date().isoformat() == "2025-03-01"
        assert result.hour == 0

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "2025-04-07T10:00",
            "07/04/2025",
            "2025-4-7",
            "2025-02-30",
            20250407,
            "2025-01-01\n",
            "２０２５-01-01",
        ],
    )
    def test_rejects_non_strict_or_impossible(self, value) -> None:
        """Anything but a real YYYY-MM-DD date yields None."""
        assert parse_local_date(value) is None


class TestDayBoundaries:
    """start_of_day / end_of_day."""

    def test_start_of_day(self) -> None:
        """Start of day drops the time part."""
        assert start_of_day(NOW) == datetime(2025, 1, 1, tzinfo=UTC)

    def test_end_of_day_has_millisecond_precision(self) -> None:
        """End of day is 23:59:59.999."""
        assert end_of_day(NOW) == datetime(2025, 1, 1, 23, 59, 59, 999000, tzinfo=UTC)


class TestParseTimestamp:
    """ISO timestamp parsing."""

    def test_trailing_z_is_utc(self) -> None:
        """A trailing Z is read as UTC."""
        assert parse_timestamp("2024-06-01T00:00:00Z") == datetime(
            2024, 6, 1, tzinfo=UTC
        )

    def test_naive_is_local(self) -> None:
        """A naive timestamp is local wall-clock time."""
        set_default_timezone(ZoneInfo("Europe/Berlin"))
        result = parse_timestamp("2023-12-31T10:00:00")
        assert result is not None
        assert result.tzinfo == ZoneInfo("Europe/Berlin")
        assert result.hour == 10

    def test_datetime_passthrough(self) -> None:
        """Aware datetimes are returned unchanged."""
        assert parse_timestamp(NOW) == NOW

    @pytest.mark.parametrize("value", [None, "", "yesterday", 42])
    def test_unparseable(self, value) -> None:
        """Garbage yields None."""
        assert parse_timestamp(value) is None


class TestCalendarComparisons:
    """Future checks and days remaining."""

    def test_today_is_not_in_future(self) -> None:
        """An unlock date of today is already reached."""
        assert is_date_in_future("2025-01-01", NOW) is False
        assert is_date_in_future("2025-01-02", NOW) is True
        assert is_date_in_future(None, NOW) is False

    def test_days_until_deadline(self) -> None:
        """Days are counted to the end of the deadline day, rounded up."""
        assert days_until_deadline("2025-01-02", NOW) == 2
        assert days_until_deadline("2025-01-01", NOW) == 1
        assert days_until_deadline("2024-12-31", NOW) == 0
        assert days_until_deadline("2024-12-29", NOW) == -1
        assert days_until_deadline(None, NOW) is None

    def test_to_utc_iso(self) -> None:
        """Stored timestamps are UTC ISO strings."""
        berlin = datetime(2025, 1, 1, 13, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        assert to_utc_iso(berlin) == "2025-01-01T12:00:00+00:00"


class TestValidateAndClampDate:
    """Day-of-month clamping."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2026-02-31", "2026-02-28"),
            ("2024-02-30", "2024-02-29"),
            ("2025-04-31", "2025-04-30"),
            ("2025-01-15", "2025-01-15"),
            ("not-a-date", "not-a-date"),
            ("2025-13-01", "2025-13-01"),
            ("2026-02-31\n", "2026-02-31\n"),
            (None, ""),
        ],
    )
    def test_clamp(self, value, expected) -> None:
        """Out-of-range days are clamped to the month's last day."""
        assert validate_and_clamp_date(value) == expected
