from datetime import date, time
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Tour booking with its assigned driver and vehicle
class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_name: str
    tour_date: date = Field(index=True)
    start_time: time
    end_time: time
    driver_id: Optional[str] = Field(default=None, index=True)
    vehicle_id: Optional[int] = Field(default=None, foreign_key="vehicles.id")
    status: BookingStatus = Field(default=BookingStatus.PENDING)
