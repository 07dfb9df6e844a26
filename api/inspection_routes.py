from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from core.deps import get_current_driver
from db.session import get_session
from models.inspection import DefectSeverity, InspectionType
from services.inspection_service import InspectionService

router = APIRouter()


# --- Pydantic Models for Request Payloads ---


class InspectionData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: Dict[str, bool] = {}
    notes: Optional[str] = None
    signature: Optional[str] = None
    defects_found: bool = Field(default=False, alias="defectsFound")
    defect_severity: DefectSeverity = Field(default=DefectSeverity.NONE, alias="defectSeverity")
    defect_description: Optional[str] = Field(default=None, alias="defectDescription")


class InspectionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicle_id: int = Field(alias="vehicleId")
    mileage: Optional[int] = Field(default=None, ge=0)
    inspection_data: InspectionData = Field(alias="inspectionData")


def _record(payload: InspectionPayload, inspection_type: InspectionType, session: Session, driver: dict):
    data = payload.inspection_data
    inspection = InspectionService.record(
        session,
        driver_id=driver["uid"],
        inspection_type=inspection_type,
        vehicle_id=payload.vehicle_id,
        mileage=payload.mileage,
        checklist=data.items,
        notes=data.notes,
        signature=data.signature,
        defects_found=data.defects_found,
        defect_severity=data.defect_severity,
        defect_description=data.defect_description,
    )
    return {
        "status": "success",
        "data": {
            "inspection_id": inspection.id,
            "time_card_id": inspection.time_card_id,
            "type": inspection.type,
            "vehicle_out_of_service": inspection.defect_severity == DefectSeverity.CRITICAL,
        },
    }


@router.post("/pre-trip")
def record_pre_trip(
    payload: InspectionPayload,
    session: Session = Depends(get_session),
    driver: dict = Depends(get_current_driver),
):
    return _record(payload, InspectionType.PRE_TRIP, session, driver)


@router.post("/post-trip")
def record_post_trip(
    payload: InspectionPayload,
    session: Session = Depends(get_session),
    driver: dict = Depends(get_current_driver),
):
    return _record(payload, InspectionType.POST_TRIP, session, driver)
