"""
Timezone utilities for the time clock.

Elapsed-time math always happens on absolute UTC instants. The display
timezone is only used to decide calendar dates (which day a shift belongs
to, where a week starts) and to format times for drivers and dispatch.
"""

import os
from datetime import date, datetime
from datetime import time as datetime_time
from datetime import timedelta, timezone
from zoneinfo import ZoneInfo

from utils.datetime_helpers import as_utc

DEFAULT_DISPLAY_TIMEZONE = "America/Los_Angeles"


def get_display_timezone() -> str:
    """
    Timezone every driver-facing time is rendered in, regardless of server
    or client locale.

    Returns:
        str: IANA timezone name (DISPLAY_TIMEZONE env var, Pacific by default)
    """
    return os.getenv("DISPLAY_TIMEZONE", DEFAULT_DISPLAY_TIMEZONE)


def from_utc_to_local(utc_dt: datetime, tz: str | None = None) -> datetime:
    """
    Convert UTC datetime to local datetime in the specified timezone.

    Args:
        utc_dt: UTC datetime (naive values are assumed to be UTC)
        tz: IANA timezone string, defaults to the display timezone

    Returns:
        datetime: Local datetime in the specified timezone
    """
    return as_utc(utc_dt).astimezone(ZoneInfo(tz or get_display_timezone()))


def local_date(utc_dt: datetime, tz: str | None = None) -> date:
    """Calendar date of an instant in the display timezone."""
    return from_utc_to_local(utc_dt, tz).date()


def local_start_of_day(day: date, tz: str | None = None) -> datetime:
    """
    Get the start of day (00:00:00) in the specified timezone.

    Returns:
        datetime: Start of day in UTC
    """
    target_tz = ZoneInfo(tz or get_display_timezone())
    local_start = datetime.combine(day, datetime_time.min, tzinfo=target_tz)
    return local_start.astimezone(timezone.utc)


def local_end_of_day(day: date, tz: str | None = None) -> datetime:
    """
    Get the end of day (23:59:59.999999) in the specified timezone.

    Returns:
        datetime: End of day in UTC
    """
    target_tz = ZoneInfo(tz or get_display_timezone())
    local_end = datetime.combine(day, datetime_time.max, tzinfo=target_tz)
    return local_end.astimezone(timezone.utc)


def local_week_start(utc_ref: datetime, tz: str | None = None) -> date:
    """Monday of the week containing utc_ref, in the display timezone."""
    day = local_date(utc_ref, tz)
    return day - timedelta(days=day.weekday())


def format_display_time(utc_dt: datetime, tz: str | None = None) -> str:
    """Format an instant like '9:05 AM' in the display timezone."""
    local = from_utc_to_local(utc_dt, tz)
    hour = local.hour % 12 or 12
    return f"{hour}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"


def format_display_date(day: date) -> str:
    """Format a date like 'Oct 14, 2024'."""
    return f"{day.strftime('%b')} {day.day}, {day.year}"
