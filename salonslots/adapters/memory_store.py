"""
In-process salon store implementing every provider protocol.

Used by the CLI (via the YAML loader) and by tests. Booking writes are
serialized per salon and salon-local day through ``day_lock``.
"""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple

from pendulum import DateTime

from ..domain.exceptions import AppointmentNotFoundError, SalonNotFoundError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    BusinessHours,
    Salon,
    SalonClosure,
    Weekday,
)

# Weekly schedule new salons start from.
DEFAULT_WEEKLY_HOURS = (
    BusinessHours(Weekday.MONDAY, "09:00", "17:00"),
    BusinessHours(Weekday.TUESDAY, "09:00", "17:00"),
    BusinessHours(Weekday.WEDNESDAY, "09:00", "17:00"),
    BusinessHours(Weekday.THURSDAY, "09:00", "17:00"),
    BusinessHours(Weekday.FRIDAY, "09:00", "17:00"),
    BusinessHours(Weekday.SATURDAY, "09:00", "15:00"),
    BusinessHours(Weekday.SUNDAY, "10:00", "16:00", is_closed=True),
)


class InMemorySalonStore:
    """
    Holds salons, weekly hours, closures and appointments in dictionaries.

    Reads return copies, so callers mutate an appointment and then hand it
    back through ``save_appointment``.
    """

    def __init__(self):
        self._salons: Dict[str, Salon] = {}
        self._hours: Dict[Tuple[str, Weekday], BusinessHours] = {}
        self._closures: Dict[str, List[SalonClosure]] = {}
        self._appointments: Dict[str, Appointment] = {}
        self._data_lock = threading.RLock()
        self._day_locks: Dict[Tuple[str, date], threading.Lock] = {}
        self._day_lock_users: Dict[Tuple[str, date], int] = {}

    # -- setup -----------------------------------------------------------

    def add_salon(self, salon: Salon) -> None:
        with self._data_lock:
            self._salons[salon.id] = salon
            self._closures.setdefault(salon.id, [])

    def set_business_hours(self, salon_id: str, hours: BusinessHours) -> None:
        """Insert or replace the hours for one weekday."""
        self._require_salon(salon_id)
        with self._data_lock:
            self._hours[(salon_id, hours.weekday)] = hours

    def set_default_business_hours(self, salon_id: str) -> None:
        """Fill in the default weekly schedule without overwriting existing days."""
        self._require_salon(salon_id)
        with self._data_lock:
            for hours in DEFAULT_WEEKLY_HOURS:
                self._hours.setdefault((salon_id, hours.weekday), hours)

    def add_closure(self, salon_id: str, closure: SalonClosure) -> None:
        self._require_salon(salon_id)
        with self._data_lock:
            self._closures[salon_id].append(closure)

    def add_appointment(self, appointment: Appointment) -> Appointment:
        """Store an appointment as-is, without any availability check."""
        self._require_salon(appointment.salon_id)
        with self._data_lock:
            self._appointments[appointment.id] = replace(appointment)
        return appointment

    # -- read providers --------------------------------------------------

    def get_salon(self, salon_id: str) -> Salon:
        return self._require_salon(salon_id)

    def list_salons(self) -> List[Salon]:
        with self._data_lock:
            return list(self._salons.values())

    def get_capacity(self, salon_id: str) -> Optional[int]:
        return self._require_salon(salon_id).capacity

    def get_business_hours(self, salon_id: str, weekday: Weekday) -> Optional[BusinessHours]:
        self._require_salon(salon_id)
        with self._data_lock:
            return self._hours.get((salon_id, weekday))

    def list_business_hours(self, salon_id: str) -> List[BusinessHours]:
        """All configured weekdays in Monday-first order."""
        self._require_salon(salon_id)
        with self._data_lock:
            return [
                self._hours[(salon_id, weekday)]
                for weekday in Weekday
                if (salon_id, weekday) in self._hours
            ]

    def list_closures(self, salon_id: str, day: date) -> List[SalonClosure]:
        self._require_salon(salon_id)
        with self._data_lock:
            return [closure for closure in self._closures[salon_id] if closure.covers(day)]

    def list_appointments(
        self,
        salon_id: str,
        starts_from: DateTime,
        starts_until: DateTime
    ) -> List[Appointment]:
        """Capacity-consuming appointments starting inside the inclusive window."""
        self._require_salon(salon_id)
        with self._data_lock:
            return [
                replace(appointment)
                for appointment in self._appointments.values()
                if appointment.salon_id == salon_id
                and appointment.status.occupies_capacity
                and starts_from <= appointment.starts_at <= starts_until
            ]

    # -- booking store ---------------------------------------------------

    @contextmanager
    def day_lock(self, salon_id: str, day: date) -> Iterator[None]:
        """
        Serialize booking writes for one salon-local day.

        A lock lives only while some caller holds or waits for it, so the
        table does not grow with every day ever booked.
        """
        key = (salon_id, day)
        with self._data_lock:
            lock = self._day_locks.setdefault(key, threading.Lock())
            self._day_lock_users[key] = self._day_lock_users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._data_lock:
                self._day_lock_users[key] -= 1
                if not self._day_lock_users[key]:
                    del self._day_lock_users[key]
                    del self._day_locks[key]

    def get_appointment(self, appointment_id: str) -> Appointment:
        with self._data_lock:
            appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment not found: {appointment_id}")
        return replace(appointment)

    def create_appointment(
        self,
        salon_id: str,
        starts_at: DateTime,
        ends_at: DateTime
    ) -> Appointment:
        self._require_salon(salon_id)
        with self._data_lock:
            appointment = Appointment(
                id=uuid.uuid4().hex,
                salon_id=salon_id,
                starts_at=starts_at,
                ends_at=ends_at,
                status=AppointmentStatus.BOOKED,
            )
            self._appointments[appointment.id] = appointment
        return replace(appointment)

    def save_appointment(self, appointment: Appointment) -> None:
        with self._data_lock:
            if appointment.id not in self._appointments:
                raise AppointmentNotFoundError(f"Appointment not found: {appointment.id}")
            self._appointments[appointment.id] = replace(appointment)

    def _require_salon(self, salon_id: str) -> Salon:
        with self._data_lock:
            salon = self._salons.get(salon_id)
        if salon is None:
            raise SalonNotFoundError(f"Salon not found: {salon_id}")
        return salon
