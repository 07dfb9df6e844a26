from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Index, SQLModel


class InspectionType(str, Enum):
    PRE_TRIP = "pre_trip"
    POST_TRIP = "post_trip"


class InspectionStatus(str, Enum):
    COMPLETED = "completed"


class DefectSeverity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    CRITICAL = "critical"


# Vehicle inspection linked to the shift (time card) it was performed in
class Inspection(SQLModel, table=True):
    __tablename__ = "inspections"

    __table_args__ = (
        Index("ix_inspections_time_card_id_type", "time_card_id", "type"),
        Index("ix_inspections_driver_id", "driver_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    driver_id: str
    vehicle_id: Optional[int] = Field(default=None, foreign_key="vehicles.id")
    time_card_id: int = Field(foreign_key="time_cards.id")
    type: InspectionType
    status: InspectionStatus = Field(default=InspectionStatus.COMPLETED)
    mileage: Optional[int] = None
    checklist: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    notes: Optional[str] = None
    signature: Optional[str] = None
    defects_found: bool = Field(default=False)
    defect_severity: DefectSeverity = Field(default=DefectSeverity.NONE)
    defect_description: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
