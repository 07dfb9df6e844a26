from datetime import date as date_type
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import field_serializer
from sqlalchemy import DateTime, text
from sqlmodel import Field, Index, SQLModel

from utils.datetime_helpers import format_utc_datetime


class TimeCardStatus(str, Enum):
    ON_DUTY = "on_duty"
    COMPLETED = "completed"
    AUTO_CLOSED = "auto_closed"


SYSTEM_AUTO_CLOSE_SIGNATURE = "SYSTEM_AUTO_CLOSE"
LOCATION_NOT_PROVIDED = "Location not provided"


# Columns shared by the table model and the read model returned to clients
class TimeCardBase(SQLModel):
    driver_id: str
    driver_name: Optional[str] = None
    # Null vehicle means a non-driving shift (office work, loading, etc.)
    vehicle_id: Optional[int] = Field(default=None, foreign_key="vehicles.id")
    date: date_type
    clock_in_time: datetime = Field(sa_type=DateTime(timezone=True))
    clock_out_time: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    on_duty_hours: Optional[float] = None
    status: TimeCardStatus = Field(default=TimeCardStatus.ON_DUTY)
    driver_signature: Optional[str] = None
    signature_timestamp: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    work_reporting_location: str = Field(default=LOCATION_NOT_PROVIDED)
    work_reporting_lat: Optional[float] = None
    work_reporting_lng: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer(
        "clock_in_time",
        "clock_out_time",
        "signature_timestamp",
        "created_at",
        "updated_at",
    )
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)


class TimeCard(TimeCardBase, table=True):
    __tablename__ = "time_cards"

    __table_args__ = (
        Index("ix_time_cards_driver_id", "driver_id"),
        Index("ix_time_cards_driver_id_clock_in_time", "driver_id", "clock_in_time"),
        Index("ix_time_cards_vehicle_id", "vehicle_id"),
        Index("ix_time_cards_status", "status"),
        # One open shift per driver
        Index(
            "uq_time_cards_active_driver",
            "driver_id",
            unique=True,
            postgresql_where=text("clock_out_time IS NULL"),
            sqlite_where=text("clock_out_time IS NULL"),
        ),
        # One open shift per vehicle
        Index(
            "uq_time_cards_active_vehicle",
            "vehicle_id",
            unique=True,
            postgresql_where=text("clock_out_time IS NULL AND vehicle_id IS NOT NULL"),
            sqlite_where=text("clock_out_time IS NULL AND vehicle_id IS NOT NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)


class TimeCardRead(TimeCardBase):
    id: int
