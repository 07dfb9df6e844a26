import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlmodel import Session, select

from models.inspection import DefectSeverity, Inspection, InspectionType
from models.vehicle import Vehicle, VehicleStatus
from services.clock_service import get_active_time_card
from utils.datetime_helpers import as_utc, utc_now

logger = logging.getLogger(__name__)


class InspectionService:

    @staticmethod
    def record(
        session: Session,
        driver_id: str,
        inspection_type: InspectionType,
        vehicle_id: int,
        mileage: Optional[int] = None,
        checklist: Optional[Dict[str, Any]] = None,
        notes: Optional[str] = None,
        signature: Optional[str] = None,
        defects_found: bool = False,
        defect_severity: DefectSeverity = DefectSeverity.NONE,
        defect_description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Inspection:
        now = as_utc(now) if now else utc_now()
        label = inspection_type.value.replace("_", "-")

        # Inspections are tied to the shift they were performed in
        card = get_active_time_card(session, driver_id)
        if card is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"No active shift found. You must be clocked in to complete a {label} inspection.",
            )

        vehicle = session.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Vehicle with ID {vehicle_id} not found.",
            )

        if card.vehicle_id is not None and card.vehicle_id != vehicle_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Vehicle {vehicle.vehicle_number} is not the vehicle assigned to your current shift.",
            )

        existing = session.exec(
            select(Inspection.id)
            .where(Inspection.time_card_id == card.id)
            .where(Inspection.type == inspection_type)
        ).first()
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{label.capitalize()} inspection already completed for this shift",
            )

        inspection = Inspection(
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            time_card_id=card.id,
            type=inspection_type,
            mileage=mileage,
            checklist=checklist or {},
            notes=notes,
            signature=signature,
            defects_found=defects_found,
            defect_severity=defect_severity,
            defect_description=defect_description,
            created_at=now,
        )
        session.add(inspection)

        # Critical defects take the vehicle out of service immediately
        if defect_severity == DefectSeverity.CRITICAL:
            vehicle.status = VehicleStatus.OUT_OF_SERVICE
            vehicle.defect_notes = defect_description
            vehicle.defect_reported_at = now
            vehicle.defect_reported_by = driver_id
            session.add(vehicle)
            logger.warning(
                "Critical defect reported by driver %s: vehicle %s marked out of service",
                driver_id,
                vehicle.vehicle_number,
            )

        session.commit()
        session.refresh(inspection)

        logger.info(
            "%s inspection %s saved for driver %s, vehicle %s, time card %s",
            label,
            inspection.id,
            driver_id,
            vehicle_id,
            card.id,
        )
        return inspection
