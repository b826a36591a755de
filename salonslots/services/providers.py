"""
Protocols describing the storage collaborators the services depend on.

Any object with matching methods works: the in-memory store, the HTTP store
or a database-backed implementation owned by the host application.
"""

from __future__ import annotations

from datetime import date
from typing import ContextManager, Optional, Protocol, Sequence

from pendulum import DateTime

from ..domain.models import Appointment, BusinessHours, Salon, SalonClosure, Weekday


class SalonProvider(Protocol):
    def get_salon(self, salon_id: str) -> Salon:
        """Return the salon or raise ``SalonNotFoundError``."""


class BusinessHoursProvider(Protocol):
    def get_business_hours(self, salon_id: str, weekday: Weekday) -> Optional[BusinessHours]:
        """Return the hours configured for a weekday, if any."""


class ClosureProvider(Protocol):
    def list_closures(self, salon_id: str, day: date) -> Sequence[SalonClosure]:
        """Return closures that may cover ``day``."""


class AppointmentProvider(Protocol):
    def list_appointments(
        self,
        salon_id: str,
        starts_from: DateTime,
        starts_until: DateTime,
    ) -> Sequence[Appointment]:
        """Return appointments starting within the inclusive window."""


class CapacityProvider(Protocol):
    def get_capacity(self, salon_id: str) -> Optional[int]:
        """Return the configured capacity, or None when unset."""


class BookingStore(SalonProvider, AppointmentProvider, Protocol):
    """
    Write side used by the booking workflow.

    ``day_lock`` must serialize every booking write for one salon and one
    salon-local day. A database store implements it as a serializable
    transaction or an advisory lock; the re-check and the write both happen
    while it is held.
    """

    def day_lock(self, salon_id: str, day: date) -> ContextManager[None]:
        ...

    def get_appointment(self, appointment_id: str) -> Appointment:
        """Return the appointment or raise ``AppointmentNotFoundError``."""

    def create_appointment(
        self,
        salon_id: str,
        starts_at: DateTime,
        ends_at: DateTime,
    ) -> Appointment:
        ...

    def save_appointment(self, appointment: Appointment) -> None:
        ...
