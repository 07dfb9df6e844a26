import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from models.clock import (
    AlreadyClockedIn,
    ClockInResult,
    ClockInSuccess,
    ClockOutResult,
    ClockOutSuccess,
    ClockStatusResponse,
    DriverShiftState,
    GeoLocation,
    IncompletePrevious,
    InvalidVehicle,
    NotClockedIn,
    PostTripRequired,
    ShiftSummary,
    SignatureRequired,
    VehicleInactive,
    VehicleInUse,
)
from models.inspection import Inspection, InspectionType
from models.time_card import (
    LOCATION_NOT_PROVIDED,
    SYSTEM_AUTO_CLOSE_SIGNATURE,
    TimeCard,
    TimeCardRead,
    TimeCardStatus,
)
from models.vehicle import Vehicle, VehicleStatus
from services.hos import (
    add_weekly_hours,
    elapsed_hours,
    hos_warnings,
    rolling_on_duty_hours,
    week_start_date,
)
from utils.datetime_helpers import as_utc, utc_now
from utils.timezone_helpers import (
    format_display_date,
    format_display_time,
    local_date,
    local_end_of_day,
    local_start_of_day,
)

logger = logging.getLogger(__name__)

NON_DRIVING_LABEL = "No vehicle (non-driving shift)"
AUTO_CLOSE_NOTE = "Auto-closed by system - incomplete time card"
# An open card from a previous day older than this is closed on the next clock-in
STALE_SHIFT_HOURS = 24.0


# --- Queries ---


def get_active_time_card(session: Session, driver_id: str) -> Optional[TimeCard]:
    return session.exec(
        select(TimeCard)
        .where(TimeCard.driver_id == driver_id)
        .where(TimeCard.clock_out_time.is_(None))
        .order_by(TimeCard.clock_in_time.desc())
    ).first()


def get_incomplete_previous(session: Session, driver_id: str, today: date) -> Optional[TimeCard]:
    return session.exec(
        select(TimeCard)
        .where(TimeCard.driver_id == driver_id)
        .where(TimeCard.date < today)
        .where(TimeCard.clock_out_time.is_(None))
        .order_by(TimeCard.date.desc())
    ).first()


def get_vehicle_holder(session: Session, vehicle_id: int, driver_id: str) -> Optional[TimeCard]:
    """Open time card of another driver currently using this vehicle."""
    return session.exec(
        select(TimeCard)
        .where(TimeCard.vehicle_id == vehicle_id)
        .where(TimeCard.clock_out_time.is_(None))
        .where(TimeCard.driver_id != driver_id)
    ).first()


def has_post_trip_inspection(session: Session, time_card_id: int) -> bool:
    inspection_id = session.exec(
        select(Inspection.id)
        .where(Inspection.time_card_id == time_card_id)
        .where(Inspection.type == InspectionType.POST_TRIP)
    ).first()
    return inspection_id is not None


def vehicle_label_for(session: Session, card: TimeCard, missing: str = "Unknown vehicle") -> str:
    if card.vehicle_id is None:
        return NON_DRIVING_LABEL
    vehicle = session.get(Vehicle, card.vehicle_id)
    return vehicle.label if vehicle else missing


def shift_summary(session: Session, card: TimeCard) -> ShiftSummary:
    return ShiftSummary(
        clock_in=format_display_time(card.clock_in_time),
        clock_out=format_display_time(card.clock_out_time),
        total_hours=f"{max(0.0, card.on_duty_hours or 0.0):.2f}",
        vehicle=vehicle_label_for(session, card),
    )


def auto_close_time_card(session: Session, card: TimeCard) -> TimeCard:
    """Close an abandoned shift at the end of the day it started on."""
    close_at = local_end_of_day(card.date)

    card.clock_out_time = close_at
    card.on_duty_hours = elapsed_hours(card.clock_in_time, close_at)
    card.driver_signature = SYSTEM_AUTO_CLOSE_SIGNATURE
    card.signature_timestamp = close_at
    card.status = TimeCardStatus.AUTO_CLOSED
    card.notes = AUTO_CLOSE_NOTE
    card.updated_at = datetime.now(timezone.utc)

    session.add(card)
    session.commit()
    session.refresh(card)

    logger.info(
        "Auto-closed incomplete time card %s for driver %s from %s (%.2f hours)",
        card.id,
        card.driver_id,
        format_display_date(card.date),
        card.on_duty_hours,
    )
    return card


class ClockService:

    @staticmethod
    def clock_in(
        session: Session,
        driver_id: str,
        driver_name: Optional[str] = None,
        vehicle_id: Optional[int] = None,
        location: Optional[GeoLocation] = None,
        force_clock_out: bool = False,
        now: Optional[datetime] = None,
    ) -> ClockInResult:
        now = as_utc(now) if now else utc_now()
        today = local_date(now)

        # 1) Open shift left over from a previous day
        previous = get_incomplete_previous(session, driver_id, today)
        if previous is not None:
            if force_clock_out or elapsed_hours(previous.clock_in_time, now) > STALE_SHIFT_HOURS:
                auto_close_time_card(session, previous)
            else:
                return IncompletePrevious(
                    previous_card=TimeCardRead.model_validate(previous),
                    message=f"You have an incomplete time card from {format_display_date(previous.date)}",
                    suggestions=[
                        "Please clock out from your previous shift first",
                        "Or contact your supervisor to close the previous time card",
                    ],
                )

        # 2) Already on the clock
        active = get_active_time_card(session, driver_id)
        if active is not None:
            return ClockService._already_clocked_in(session, active)

        # 3) Vehicle is optional; no vehicle means a non-driving shift
        vehicle: Optional[Vehicle] = None
        if vehicle_id is None:
            logger.info("Driver %s clocking in for a non-driving shift", driver_id)
        else:
            # 4) Vehicle must exist, be active and be free
            vehicle = session.get(Vehicle, vehicle_id)
            if vehicle is None:
                return InvalidVehicle(
                    message="Selected vehicle not found",
                    suggestions=[
                        "Please select a valid vehicle from the list",
                        "Contact dispatch if you need help",
                    ],
                )

            if not vehicle.is_active:
                return VehicleInactive(
                    message=f"Vehicle {vehicle.vehicle_number} is not currently active",
                    suggestions=[
                        "This vehicle may be in maintenance",
                        "Please select a different vehicle",
                        "Contact dispatch for assistance",
                    ],
                )

            # Pulled by a critical defect on an inspection
            if vehicle.status == VehicleStatus.OUT_OF_SERVICE:
                defect = vehicle.defect_notes or "reported defect"
                return VehicleInactive(
                    message=f"Vehicle {vehicle.vehicle_number} is out of service: {defect}",
                    suggestions=[
                        "Please select a different vehicle",
                        "Contact dispatch once the defect has been repaired",
                    ],
                )

            holder = get_vehicle_holder(session, vehicle.id, driver_id)
            if holder is not None:
                return ClockService._vehicle_in_use(vehicle, holder)

        # 5) Create the time card
        if location is not None:
            work_location = f"Lat: {location.latitude:.4f}, Lng: {location.longitude:.4f}"
        else:
            work_location = LOCATION_NOT_PROVIDED

        card = TimeCard(
            driver_id=driver_id,
            driver_name=driver_name,
            vehicle_id=vehicle.id if vehicle else None,
            date=today,
            clock_in_time=now,
            status=TimeCardStatus.ON_DUTY,
            work_reporting_location=work_location,
            work_reporting_lat=location.latitude if location else None,
            work_reporting_lng=location.longitude if location else None,
            created_at=now,
            updated_at=now,
        )
        session.add(card)

        try:
            session.commit()
        except IntegrityError:
            # A concurrent request won the race for the driver or the vehicle
            session.rollback()
            logger.warning("Clock-in for driver %s lost a concurrent insert", driver_id)

            active = get_active_time_card(session, driver_id)
            if active is not None:
                return ClockService._already_clocked_in(session, active)
            if vehicle is not None:
                holder = get_vehicle_holder(session, vehicle.id, driver_id)
                if holder is not None:
                    return ClockService._vehicle_in_use(vehicle, holder)
            raise

        session.refresh(card)
        logger.info(
            "Driver %s clocked in: time card %s, vehicle %s",
            driver_id,
            card.id,
            card.vehicle_id,
        )

        return ClockInSuccess(
            time_card=TimeCardRead.model_validate(card),
            vehicle=vehicle.label if vehicle else NON_DRIVING_LABEL,
            message=f"Successfully clocked in at {format_display_time(now)}",
            reminders=(
                [
                    "Remember to complete your pre-trip inspection",
                    "Drive safely and follow all regulations",
                ]
                if vehicle
                else ["Non-driving shift: no vehicle inspections required"]
            ),
        )

    @staticmethod
    def clock_out(
        session: Session,
        driver_id: str,
        signature: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ClockOutResult:
        now = as_utc(now) if now else utc_now()

        # 1) Must be on the clock
        card = get_active_time_card(session, driver_id)
        if card is None:
            return NotClockedIn(
                message="You're not currently clocked in",
                suggestions=[
                    "You need to clock in before you can clock out",
                    "Use the Clock In button to start your shift",
                ],
            )

        # 2) Signature confirms the hours
        if not signature or not signature.strip():
            return SignatureRequired(
                message="Your signature is required to clock out",
                suggestions=[
                    "Please provide your digital signature",
                    "This confirms your hours and compliance",
                ],
            )

        # 3) Vehicle shifts cannot close without a post-trip inspection
        label = vehicle_label_for(session, card, missing="the vehicle")
        if card.vehicle_id is not None and not has_post_trip_inspection(session, card.id):
            return PostTripRequired(
                message=f"Post-Trip Inspection required for {label}",
                suggestions=[
                    "Complete your Post-Trip Inspection first",
                    "This ensures vehicle safety for the next driver",
                    "Go to Dashboard → Post-Trip Inspection & DVIR",
                ],
            )

        # 4) Hours from absolute instants
        total_hours = elapsed_hours(card.clock_in_time, now)

        # 5) Advisory HOS warnings, never blocking
        warnings = hos_warnings(total_hours, rolling_on_duty_hours(session, driver_id, now))
        for warning in warnings:
            logger.info("HOS warning for driver %s: %s", driver_id, warning)

        # 6) Close the card
        card.clock_out_time = now
        card.on_duty_hours = total_hours
        card.driver_signature = signature.strip()
        card.signature_timestamp = now
        card.status = TimeCardStatus.COMPLETED
        card.updated_at = now
        session.add(card)
        session.commit()
        session.refresh(card)

        logger.info("Driver %s clocked out, total hours: %.2f", driver_id, total_hours)

        closed = TimeCardRead.model_validate(card)
        summary = ShiftSummary(
            clock_in=format_display_time(card.clock_in_time),
            clock_out=format_display_time(now),
            total_hours=f"{total_hours:.2f}",
            vehicle=label if card.vehicle_id is not None else NON_DRIVING_LABEL,
        )

        # 7) Weekly rollup is secondary; the time card is the record of truth
        try:
            add_weekly_hours(session, driver_id, week_start_date(now), total_hours)
        except Exception:
            session.rollback()
            logger.exception("Failed to update weekly HOS for driver %s", driver_id)

        return ClockOutSuccess(
            time_card=closed,
            summary=summary,
            warnings=warnings,
            message=f"Successfully clocked out at {format_display_time(now)}",
            reminders=[
                "Thank you for your service today",
                "Drive safely on your way home",
            ],
        )

    @staticmethod
    def get_status(
        session: Session,
        driver_id: str,
        now: Optional[datetime] = None,
    ) -> ClockStatusResponse:
        now = as_utc(now) if now else utc_now()

        card = get_active_time_card(session, driver_id)
        if card is not None:
            hours_worked = elapsed_hours(card.clock_in_time, now)
            return ClockStatusResponse(
                status=DriverShiftState.CLOCKED_IN,
                message=f"Clocked in since {format_display_time(card.clock_in_time)}",
                time_card=TimeCardRead.model_validate(card),
                vehicle=vehicle_label_for(session, card),
                hours_worked=f"{hours_worked:.2f}",
                can_clock_in=False,
                can_clock_out=True,
            )

        # Shift already finished today: ready for the next one
        todays_shift = session.exec(
            select(TimeCard)
            .where(TimeCard.driver_id == driver_id)
            .where(TimeCard.clock_in_time >= local_start_of_day(local_date(now)))
            .where(TimeCard.clock_out_time.is_not(None))
            .order_by(TimeCard.clock_out_time.desc())
        ).first()
        if todays_shift is not None:
            return ClockStatusResponse(
                status=DriverShiftState.NOT_CLOCKED_IN,
                message="Ready to start your next shift",
                last_shift=shift_summary(session, todays_shift),
                can_clock_in=True,
                can_clock_out=False,
            )

        last_shift = session.exec(
            select(TimeCard)
            .where(TimeCard.driver_id == driver_id)
            .where(TimeCard.clock_out_time.is_not(None))
            .order_by(TimeCard.clock_out_time.desc())
        ).first()
        if last_shift is not None:
            return ClockStatusResponse(
                status=DriverShiftState.CLOCKED_OUT,
                message=f"Last clocked out at {format_display_time(last_shift.clock_out_time)}",
                last_shift=shift_summary(session, last_shift),
                can_clock_in=True,
                can_clock_out=False,
            )

        return ClockStatusResponse(
            status=DriverShiftState.NOT_CLOCKED_IN,
            message="Ready to start your shift",
            can_clock_in=True,
            can_clock_out=False,
        )

    @staticmethod
    def _already_clocked_in(session: Session, card: TimeCard) -> AlreadyClockedIn:
        return AlreadyClockedIn(
            time_card=TimeCardRead.model_validate(card),
            clock_in_time=as_utc(card.clock_in_time),
            vehicle=vehicle_label_for(session, card),
            message=f"You're already clocked in as of {format_display_time(card.clock_in_time)}",
            suggestions=[
                "If you need to clock out, use the Clock Out button",
                "If this is an error, contact your supervisor",
            ],
        )

    @staticmethod
    def _vehicle_in_use(vehicle: Vehicle, holder: TimeCard) -> VehicleInUse:
        holder_name = holder.driver_name or holder.driver_id
        return VehicleInUse(
            current_holder=holder_name,
            message=f"Vehicle {vehicle.vehicle_number} is currently in use by {holder_name}",
            suggestions=[
                "Please select a different available vehicle",
                "Contact dispatch if you need this specific vehicle",
            ],
        )
