from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from core.deps import get_current_driver
from db.session import get_session
from models.time_card import TimeCard
from models.vehicle import Vehicle, VehicleStatus

router = APIRouter()


class AvailableVehicleResponse(BaseModel):
    id: int
    vehicle_number: str
    make: str
    model: str
    label: str


# Vehicles a driver can pick when clocking in
@router.get("/available", response_model=List[AvailableVehicleResponse])
def get_available_vehicles(
    session: Session = Depends(get_session),
    driver: dict = Depends(get_current_driver),
):
    """
    Active vehicles that are not out of service and not held by an open time card.
    """
    held_ids = set(
        session.exec(
            select(TimeCard.vehicle_id)
            .where(TimeCard.clock_out_time.is_(None))
            .where(TimeCard.vehicle_id.is_not(None))
        ).all()
    )

    vehicles = session.exec(
        select(Vehicle)
        .where(Vehicle.is_active == True)  # noqa: E712
        .where(Vehicle.status != VehicleStatus.OUT_OF_SERVICE)
        .order_by(Vehicle.vehicle_number)
    ).all()

    return [
        AvailableVehicleResponse(
            id=vehicle.id,
            vehicle_number=vehicle.vehicle_number,
            make=vehicle.make,
            model=vehicle.model,
            label=vehicle.label,
        )
        for vehicle in vehicles
        if vehicle.id not in held_ids
    ]
