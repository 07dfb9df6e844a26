import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_serializer
from sqlmodel import Session

from core.deps import get_current_driver
from core.errors import internal_error
from db.session import get_session
from models.clock import ClockAction, ClockRequest, ClockStatusResponse
from services.clock_service import ClockService
from services.hos import hos_summary
from utils.datetime_helpers import format_utc_datetime, utc_now

logger = logging.getLogger(__name__)

# Defines API Endpoints
router = APIRouter()


class HOSSummaryResponse(BaseModel):
    driver_id: str
    window_start: datetime
    rolling_on_duty_hours: float
    remaining_hours: float
    rolling_limit_hours: float
    week_start_date: date
    weekly_on_duty_hours: float
    is_over_limit: bool

    @field_serializer("window_start")
    def serialize_window_start(self, dt: datetime) -> str:
        return format_utc_datetime(dt)


# Clock In / Clock Out Endpoint
@router.post("/clock")
def clock(
    data: ClockRequest,
    session: Session = Depends(get_session),
    driver: dict = Depends(get_current_driver),
):
    logger.info("POST /workflow/clock driver=%s action=%s", driver["uid"], data.action.value)

    try:
        if data.action == ClockAction.CLOCK_IN:
            result = ClockService.clock_in(
                session,
                driver_id=driver["uid"],
                driver_name=driver.get("name") or None,
                vehicle_id=data.vehicle_id,
                location=data.location,
                force_clock_out=data.force_clock_out,
            )
        else:
            result = ClockService.clock_out(
                session,
                driver_id=driver["uid"],
                signature=data.signature,
            )
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(
            "Clock API",
            "Unable to process your time clock request. Please try again or contact support.",
            e,
            endpoint="/workflow/clock",
            driver_id=driver["uid"],
            action=data.action.value,
        )

    logger.info("Clock %s for driver %s -> %s", data.action.value, driver["uid"], result.status)
    return result


# Current Clock Status
@router.get("/clock", response_model=ClockStatusResponse)
def clock_status(
    session: Session = Depends(get_session),
    driver: dict = Depends(get_current_driver),
):
    try:
        return ClockService.get_status(session, driver["uid"])
    except Exception as e:
        raise internal_error(
            "Clock Status API",
            "Unable to check clock status",
            e,
            endpoint="/workflow/clock",
            driver_id=driver["uid"],
        )


# Rolling 8-day Hours of Service
@router.get("/hos", response_model=HOSSummaryResponse)
def get_hos_summary(
    session: Session = Depends(get_session),
    driver: dict = Depends(get_current_driver),
):
    try:
        summary = hos_summary(session, driver["uid"], utc_now())
    except Exception as e:
        raise internal_error(
            "HOS Summary API",
            "Unable to load hours of service",
            e,
            endpoint="/workflow/hos",
            driver_id=driver["uid"],
        )
    return HOSSummaryResponse(**summary)
