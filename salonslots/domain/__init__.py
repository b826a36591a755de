"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflicts import ConflictDetector, peak_concurrency, resolve_capacity
from .models import (
    Appointment,
    AppointmentInterval,
    AppointmentStatus,
    BusinessHours,
    CapacityInfo,
    ClosureStatus,
    Salon,
    SalonClosure,
    SlotCheck,
    TimeRange,
    TimeSlot,
    Weekday,
)

__all__ = [
    "Appointment",
    "AppointmentInterval",
    "AppointmentStatus",
    "BusinessHours",
    "CapacityInfo",
    "ClosureStatus",
    "ConflictDetector",
    "Salon",
    "SalonClosure",
    "SlotCheck",
    "TimeRange",
    "TimeSlot",
    "Weekday",
    "peak_concurrency",
    "resolve_capacity",
]
