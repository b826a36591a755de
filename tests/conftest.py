"""
Shared fixtures: a salon open 09:00-17:00 every day with capacity 2.
"""

from typing import Callable

import pendulum
import pytest

from salonslots.adapters.memory_store import InMemorySalonStore
from salonslots.domain.models import (
    Appointment,
    AppointmentStatus,
    BusinessHours,
    Salon,
    Weekday,
)
from salonslots.services.availability import AvailabilityService
from salonslots.services.schedule import ScheduleLookup

TZ = "Europe/Berlin"
MONDAY = "2024-11-25"
SALON_ID = "salon-1"


@pytest.fixture
def store() -> InMemorySalonStore:
    store = InMemorySalonStore()
    store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=2))
    for weekday in Weekday:
        store.set_business_hours(SALON_ID, BusinessHours(weekday, "09:00", "17:00"))
    return store


@pytest.fixture
def add_booking(store: InMemorySalonStore) -> Callable[..., Appointment]:
    """Insert an appointment given salon-local HH:MM start and end."""

    def _add(
        appointment_id: str,
        start: str,
        end: str,
        *,
        day: str = MONDAY,
        status: AppointmentStatus = AppointmentStatus.BOOKED,
        salon_id: str = SALON_ID,
    ) -> Appointment:
        return store.add_appointment(
            Appointment(
                id=appointment_id,
                salon_id=salon_id,
                starts_at=pendulum.parse(f"{day} {start}", tz=TZ),
                ends_at=pendulum.parse(f"{day} {end}", tz=TZ),
                status=status,
            )
        )

    return _add


@pytest.fixture
def make_service(store: InMemorySalonStore) -> Callable[..., AvailabilityService]:
    """Build an AvailabilityService over the store, with optional overrides."""

    def _make(**kwargs) -> AvailabilityService:
        kwargs.setdefault("default_timezone", TZ)
        return AvailabilityService(
            schedule=ScheduleLookup(hours_provider=store, closure_provider=store),
            appointments=store,
            capacities=store,
            **kwargs,
        )

    return _make


@pytest.fixture
def service(make_service) -> AvailabilityService:
    return make_service()
