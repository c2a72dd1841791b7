# File: utils/dt_utils.py
"""Calendar and timestamp utilities for Questline.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, re, and dateutil.

Every "is it late" / "is it unlocked yet" comparison in the integration goes
through parse_local_date(), start_of_day() and end_of_day(). Calendar date
strings are never handed to a generic ISO parser, because that would read
them as UTC midnight and shift the calendar day near timezone boundaries.

Functions:
    - set_default_timezone: Configure local timezone
    - dt_now_local: Current local time
    - parse_local_date: Strict YYYY-MM-DD → local midnight
    - start_of_day / end_of_day: Local day boundaries
    - parse_timestamp: ISO timestamp → aware datetime (naive = local)
    - is_date_in_future: Calendar-day comparison against now
    - days_until_deadline: Whole days remaining before a deadline ends
    - validate_and_clamp_date: Clamp day-of-month to the month's last day
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
import logging
import math
import re
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - replaced at integration setup
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

LOCAL_DATE_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")

SECONDS_PER_DAY = 24 * 60 * 60


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware).

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Current datetime in the specified timezone.
    """
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are taken to already be local wall-clock time.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Calendar Date Parsing
# ==============================================================================


def parse_local_date(
    date_str: str | None, tz: ZoneInfo | None = None
) -> datetime | None:
    """Parse a strict YYYY-MM-DD string as local midnight.

    The year, month and day are taken from the string directly and combined
    with the local timezone, so "2025-03-01" is always March 1st on the
    user's wall clock regardless of the UTC offset.

    Args:
        date_str: Calendar date string, or None
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Timezone-aware datetime at 00:00 local time, or None when the input
        is empty, not strictly YYYY-MM-DD, or not a real calendar date.

    Examples:
        parse_local_date("2025-04-07") → 2025-04-07 00:00:00 (local)
        parse_local_date("2025-04-07T10:00") → None
        parse_local_date("2025-02-30") → None
    """
    if not date_str or not isinstance(date_str, str):
        return None

    match = LOCAL_DATE_PATTERN.fullmatch(date_str)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, tzinfo=tz or DEFAULT_TIME_ZONE)
    except ValueError:
        _LOGGER.debug("Rejected impossible calendar date: %s", date_str)
        return None


def start_of_day(dt_obj: datetime) -> datetime:
    """Return the same local calendar day at 00:00:00.000000."""
    return datetime.combine(dt_obj.date(), time.min, tzinfo=dt_obj.tzinfo)


def end_of_day(dt_obj: datetime) -> datetime:
    """Return the same local calendar day at 23:59:59.999.

    Millisecond precision matches the end-of-day boundary stored by clients
    that only keep milliseconds.
    """
    return datetime.combine(
        dt_obj.date(), time(23, 59, 59, 999000), tzinfo=dt_obj.tzinfo
    )


# ==============================================================================
# Timestamp Parsing
# ==============================================================================


def parse_timestamp(
    value: str | datetime | None, tz: ZoneInfo | None = None
) -> datetime | None:
    """Parse an ISO 8601 timestamp into a timezone-aware datetime.

    Used for completed_at / paused_at / created_at values. An explicit
    offset (including a trailing "Z") is honored; a naive timestamp is read
    as local wall-clock time.

    Args:
        value: ISO timestamp string, datetime, or None
        tz: Optional timezone override for naive input.

    Returns:
        Aware datetime, or None if the value cannot be parsed.

    Examples:
        "2024-06-01T00:00:00Z" → 2024-06-01 00:00:00+00:00
        "2023-12-31T10:00:00" → 2023-12-31 10:00:00 (local)
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            _LOGGER.debug("Unparseable timestamp: %s", value)
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz or DEFAULT_TIME_ZONE)
    return parsed


def to_utc_iso(dt_obj: datetime) -> str:
    """Return an aware datetime as a UTC ISO string for storage."""
    return as_local(dt_obj).astimezone(UTC).isoformat()


# ==============================================================================
# Calendar Comparisons
# ==============================================================================


def is_date_in_future(date_str: str | None, now: datetime) -> bool:
    """Return True if the calendar date is after today's calendar date.

    Compares whole local days: an unlock date of today is not in the future
    even at 00:00:01.
    """
    target = parse_local_date(date_str)
    if target is None:
        return False
    return target.date() > as_local(now).date()


def days_until_deadline(deadline: str | None, now: datetime) -> int | None:
    """Return whole days left until the end of the deadline day (ceiling).

    Returns:
        Integer days (0 or negative once expired), or None for no deadline.

    Example:
        deadline tomorrow, now 10:00 today → 2 (ceil of ~1.58 days)
    """
    deadline_dt = parse_local_date(deadline)
    if deadline_dt is None:
        return None
    remaining = end_of_day(deadline_dt) - as_local(now)
    return math.ceil(remaining.total_seconds() / SECONDS_PER_DAY)


def validate_and_clamp_date(date_str: str | None) -> str:
    """Clamp the day of a YYYY-MM-DD string to the last day of its month.

    Navigating from Jan 31st to February must not produce an invalid date.
    Strings that are not YYYY-MM-DD are returned unchanged (empty for None).

    Examples:
        "2026-02-31" → "2026-02-28"
        "2024-02-30" → "2024-02-29"
        "not-a-date" → "not-a-date"
    """
    if not date_str:
        return ""

    match = LOCAL_DATE_PATTERN.fullmatch(date_str)
    if not match:
        return date_str

    year, month, day = (int(part) for part in match.groups())
    if not 1 <= month <= 12 or day < 1:
        return date_str

    last_day = (date(year, month, 1) + relativedelta(months=1, days=-1)).day
    return date(year, month, min(day, last_day)).isoformat()

