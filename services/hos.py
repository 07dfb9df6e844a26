"""
Hours-of-Service (HOS) math for passenger-carrier drivers.

FMCSA limits enforced here as advisory warnings:
- 15 hours on duty in a single shift
- 70 hours on duty in a rolling 8-day window
"""

from datetime import date, datetime, timedelta, timezone
from typing import List

from sqlalchemy import func
from sqlmodel import Session, select

from models.time_card import TimeCard, TimeCardStatus
from models.weekly_hos import WeeklyHOS
from utils.datetime_helpers import as_utc
from utils.timezone_helpers import local_week_start

DAILY_ON_DUTY_LIMIT_HOURS = 15.0
ROLLING_ON_DUTY_LIMIT_HOURS = 70.0
ROLLING_WINDOW_DAYS = 8


def elapsed_hours(start: datetime, end: datetime) -> float:
    """
    Hours between two absolute instants.

    Both values are normalised to UTC first so a shift that crosses a
    daylight-saving change is measured in real elapsed time, not in local
    wall-clock difference.
    """
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0.0, seconds / 3600.0)


def rolling_window_start(now: datetime) -> datetime:
    # 7 days back = 8-day window including today
    return as_utc(now) - timedelta(days=ROLLING_WINDOW_DAYS - 1)


def rolling_on_duty_hours(session: Session, driver_id: str, now: datetime) -> float:
    """Sum of completed shift hours that started inside the rolling window."""
    window_start = rolling_window_start(now)
    total = session.exec(
        select(func.coalesce(func.sum(TimeCard.on_duty_hours), 0.0))
        .where(TimeCard.driver_id == driver_id)
        .where(TimeCard.clock_in_time >= window_start)
        .where(TimeCard.status == TimeCardStatus.COMPLETED)
    ).one()
    return float(total or 0.0)


def hos_warnings(shift_hours: float, rolling_hours: float) -> List[str]:
    warnings = []
    if shift_hours > DAILY_ON_DUTY_LIMIT_HOURS:
        warnings.append(
            f"Warning: {shift_hours:.2f} hours on duty exceeds 15-hour limit"
        )

    period_hours = rolling_hours + shift_hours
    if period_hours > ROLLING_ON_DUTY_LIMIT_HOURS:
        warnings.append(
            f"Warning: {period_hours:.2f} weekly hours exceeds 70-hour limit"
        )
    return warnings


def week_start_date(now: datetime) -> date:
    return local_week_start(now)


def add_weekly_hours(session: Session, driver_id: str, week_start: date, hours: float) -> WeeklyHOS:
    """Increment (or create) the driver's WeeklyHOS row for the given week."""
    row = session.exec(
        select(WeeklyHOS)
        .where(WeeklyHOS.driver_id == driver_id)
        .where(WeeklyHOS.week_start_date == week_start)
    ).first()

    if row is None:
        row = WeeklyHOS(
            driver_id=driver_id,
            week_start_date=week_start,
            total_on_duty_hours=hours,
        )
    else:
        row.total_on_duty_hours = (row.total_on_duty_hours or 0.0) + hours
        row.updated_at = datetime.now(timezone.utc)

    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def hos_summary(session: Session, driver_id: str, now: datetime) -> dict:
    rolling_hours = rolling_on_duty_hours(session, driver_id, now)
    weekly = session.exec(
        select(WeeklyHOS)
        .where(WeeklyHOS.driver_id == driver_id)
        .where(WeeklyHOS.week_start_date == week_start_date(now))
    ).first()

    return {
        "driver_id": driver_id,
        "window_start": rolling_window_start(now),
        "rolling_on_duty_hours": round(rolling_hours, 2),
        "remaining_hours": round(max(0.0, ROLLING_ON_DUTY_LIMIT_HOURS - rolling_hours), 2),
        "rolling_limit_hours": ROLLING_ON_DUTY_LIMIT_HOURS,
        "week_start_date": week_start_date(now),
        "weekly_on_duty_hours": round(weekly.total_on_duty_hours, 2) if weekly else 0.0,
        "is_over_limit": rolling_hours > ROLLING_ON_DUTY_LIMIT_HOURS,
    }
