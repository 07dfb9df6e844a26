from .booking import Booking, BookingStatus
from .inspection import DefectSeverity, Inspection, InspectionStatus, InspectionType
from .time_card import TimeCard, TimeCardRead, TimeCardStatus
from .vehicle import Vehicle, VehicleStatus
from .weekly_hos import WeeklyHOS
