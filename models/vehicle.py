from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class VehicleStatus(str, Enum):
    AVAILABLE = "available"
    IN_SERVICE = "in_service"
    MAINTENANCE = "maintenance"
    OUT_OF_SERVICE = "out_of_service"


# Fleet vehicle a driver can be assigned to for a shift
class Vehicle(SQLModel, table=True):
    __tablename__ = "vehicles"

    id: Optional[int] = Field(default=None, primary_key=True)
    vehicle_number: str = Field(index=True, description="Fleet number shown to drivers")
    make: str
    model: str
    is_active: bool = Field(default=True)
    status: VehicleStatus = Field(default=VehicleStatus.AVAILABLE)

    # Written by the critical-defect workflow of post-trip inspections
    defect_notes: Optional[str] = None
    defect_reported_at: Optional[datetime] = None
    defect_reported_by: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.make} {self.model} ({self.vehicle_number})"
