from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from core.deps import require_admin_role
from db.session import get_session
from models.booking import Booking, BookingStatus
from services.conflict_detector import find_conflicts

router = APIRouter()


class BookingEntry(BaseModel):
    id: int
    customer_name: str
    tour_date: date
    start_time: time
    end_time: time
    driver_id: Optional[str] = None
    vehicle_id: Optional[int] = None
    status: BookingStatus
    has_conflict: bool


class BookingConflictsResponse(BaseModel):
    start_date: date
    end_date: date
    conflict_count: int
    conflicting_booking_ids: List[int]
    bookings: List[BookingEntry]


@router.get("/conflicts", response_model=BookingConflictsResponse)
def get_booking_conflicts(
    start_date: date = Query(...),
    end_date: date = Query(...),
    session: Session = Depends(get_session),
    admin_user: dict = Depends(require_admin_role),
):
    """
    Bookings in the window, each flagged when its driver or vehicle is double-assigned.
    """
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date.")

    bookings = session.exec(
        select(Booking)
        .where(Booking.tour_date >= start_date)
        .where(Booking.tour_date <= end_date)
        .order_by(Booking.tour_date, Booking.start_time)
    ).all()

    conflict_ids = find_conflicts(bookings)

    return BookingConflictsResponse(
        start_date=start_date,
        end_date=end_date,
        conflict_count=len(conflict_ids),
        conflicting_booking_ids=sorted(conflict_ids),
        bookings=[
            BookingEntry(
                id=booking.id,
                customer_name=booking.customer_name,
                tour_date=booking.tour_date,
                start_time=booking.start_time,
                end_time=booking.end_time,
                driver_id=booking.driver_id,
                vehicle_id=booking.vehicle_id,
                status=booking.status,
                has_conflict=booking.id in conflict_ids,
            )
            for booking in bookings
        ],
    )
