"""
Service layer helpers that orchestrate providers and domain logic.
"""

from .availability import AvailabilityService
from .booking import BookingService
from .providers import (
    AppointmentProvider,
    BookingStore,
    BusinessHoursProvider,
    CapacityProvider,
    ClosureProvider,
    SalonProvider,
)
from .schedule import ScheduleLookup, weekday_for_date, weekday_in_timezone
from .snapshot import load_appointments

__all__ = [
    "AppointmentProvider",
    "AvailabilityService",
    "BookingService",
    "BookingStore",
    "BusinessHoursProvider",
    "CapacityProvider",
    "ClosureProvider",
    "SalonProvider",
    "ScheduleLookup",
    "load_appointments",
    "weekday_for_date",
    "weekday_in_timezone",
]
