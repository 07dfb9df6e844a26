from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


# Rolling on-duty total per driver per week (Monday start)
class WeeklyHOS(SQLModel, table=True):
    __tablename__ = "weekly_hos"

    __table_args__ = (
        UniqueConstraint("driver_id", "week_start_date", name="uq_weekly_hos_driver_week"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    driver_id: str = Field(index=True)
    week_start_date: date
    total_on_duty_hours: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
