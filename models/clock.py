from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from models.time_card import TimeCardRead
from utils.datetime_helpers import format_utc_datetime


class ClockAction(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class DriverShiftState(str, Enum):
    """Driver state derived from time card rows, never stored."""

    NOT_CLOCKED_IN = "not_clocked_in"
    CLOCKED_IN = "clocked_in"
    CLOCKED_OUT = "clocked_out"


class GeoLocation(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


# Defines the Structure of Data for a Clock Call
class ClockRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: ClockAction
    location: Optional[GeoLocation] = None
    vehicle_id: Optional[int] = Field(default=None, alias="vehicleId")
    signature: Optional[str] = None
    force_clock_out: bool = Field(default=False, alias="forceClockOut")


class ShiftSummary(BaseModel):
    clock_in: str
    clock_out: str
    total_hours: str
    vehicle: str


# --- Workflow outcomes ---
# Every expected branch of the clock workflow is one of these models,
# returned as a normal 200 response and told apart by `status`.


class _Outcome(BaseModel):
    message: str
    suggestions: List[str] = []


class ClockInSuccess(_Outcome):
    status: Literal["success"] = "success"
    time_card: TimeCardRead
    vehicle: str
    reminders: List[str] = []


class AlreadyClockedIn(_Outcome):
    status: Literal["already_clocked_in"] = "already_clocked_in"
    time_card: TimeCardRead
    clock_in_time: datetime
    vehicle: str

    @field_serializer("clock_in_time")
    def serialize_clock_in_time(self, dt: datetime) -> Optional[str]:
        return format_utc_datetime(dt)


class IncompletePrevious(_Outcome):
    status: Literal["incomplete_previous"] = "incomplete_previous"
    previous_card: TimeCardRead


class InvalidVehicle(_Outcome):
    status: Literal["invalid_vehicle"] = "invalid_vehicle"


class VehicleInactive(_Outcome):
    status: Literal["vehicle_inactive"] = "vehicle_inactive"


class VehicleInUse(_Outcome):
    status: Literal["vehicle_in_use"] = "vehicle_in_use"
    current_holder: str


class NotClockedIn(_Outcome):
    status: Literal["not_clocked_in"] = "not_clocked_in"


class SignatureRequired(_Outcome):
    status: Literal["signature_required"] = "signature_required"


class PostTripRequired(_Outcome):
    status: Literal["post_trip_required"] = "post_trip_required"


class ClockOutSuccess(_Outcome):
    status: Literal["success"] = "success"
    time_card: TimeCardRead
    summary: ShiftSummary
    warnings: List[str] = []
    reminders: List[str] = []


ClockInResult = Annotated[
    Union[
        ClockInSuccess,
        AlreadyClockedIn,
        IncompletePrevious,
        InvalidVehicle,
        VehicleInactive,
        VehicleInUse,
    ],
    Field(discriminator="status"),
]

ClockOutResult = Annotated[
    Union[
        ClockOutSuccess,
        NotClockedIn,
        SignatureRequired,
        PostTripRequired,
    ],
    Field(discriminator="status"),
]


# --- Status query ---


class ClockStatusResponse(BaseModel):
    status: DriverShiftState
    message: str
    can_clock_in: bool
    can_clock_out: bool
    time_card: Optional[TimeCardRead] = None
    vehicle: Optional[str] = None
    hours_worked: Optional[str] = None
    last_shift: Optional[ShiftSummary] = None
