"""
Booking workflow: create, move and cancel appointments safely.

Checking availability and then writing is racy: two clients can both see the
last free seat. Every write here therefore happens inside the store's
per-salon-per-day lock, and availability is re-checked while it is held. The
write is rejected if the re-check fails.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from datetime import date
from typing import Optional

from ..domain.exceptions import InvalidInputError, SlotUnavailableError
from ..domain.models import Appointment, AppointmentStatus, SlotCheck
from ..domain.timegrid import local_datetime, parse_local_date
from .availability import AvailabilityService
from .providers import BookingStore

logger = logging.getLogger(__name__)


def _unavailable_message(check: SlotCheck) -> str:
    return (
        f"This time slot is no longer available ({check.capacity_info.format_display()}). "
        "Please select a different time."
    )


class BookingService:
    """Writes appointments after a locked availability re-check."""

    def __init__(self, availability: AvailabilityService, store: BookingStore) -> None:
        self._availability = availability
        self._store = store

    def book(
        self,
        *,
        salon_id: str,
        date: str,
        time: str,
        duration_minutes: int,
        salon_timezone: str,
    ) -> Appointment:
        """
        Create a BOOKED appointment if the slot still has room.

        Raises:
            SlotUnavailableError: If the locked re-check rejects the slot
        """
        day = parse_local_date(date, salon_timezone)

        with self._store.day_lock(salon_id, day):
            check = self._availability.is_time_slot_available(
                salon_id=salon_id,
                date=date,
                time=time,
                duration_minutes=duration_minutes,
                salon_timezone=salon_timezone,
            )
            if not check.available:
                raise SlotUnavailableError(_unavailable_message(check), check)

            starts_at = local_datetime(day, time, salon_timezone)
            appointment = self._store.create_appointment(
                salon_id,
                starts_at,
                starts_at.add(minutes=duration_minutes),
            )

        logger.info("Booked appointment %s for salon %s at %s", appointment.id, salon_id, starts_at)
        return appointment

    def reschedule(
        self,
        *,
        appointment_id: str,
        date: str,
        time: str,
        salon_timezone: str,
        duration_minutes: Optional[int] = None,
    ) -> Appointment:
        """
        Move an appointment, ignoring its own current placement.

        The duration is kept unless ``duration_minutes`` is given. Both the
        source and the target day are locked, in a fixed order.
        """
        target_day = parse_local_date(date, salon_timezone)

        while True:
            appointment = self._store.get_appointment(appointment_id)
            _ensure_active(appointment)
            source_day = _local_day(appointment, salon_timezone)

            with ExitStack() as stack:
                for day in sorted({source_day, target_day}):
                    stack.enter_context(self._store.day_lock(appointment.salon_id, day))

                # Reload under the lock so a concurrent cancel is not overwritten.
                appointment = self._store.get_appointment(appointment_id)
                if _local_day(appointment, salon_timezone) != source_day:
                    continue
                _ensure_active(appointment)

                minutes = duration_minutes
                if minutes is None:
                    minutes = int((appointment.ends_at - appointment.starts_at).total_seconds() // 60)

                check = self._availability.is_time_slot_available(
                    salon_id=appointment.salon_id,
                    date=date,
                    time=time,
                    duration_minutes=minutes,
                    exclude_appointment_ids=[appointment.id],
                    salon_timezone=salon_timezone,
                )
                if not check.available:
                    raise SlotUnavailableError(_unavailable_message(check), check)

                starts_at = local_datetime(target_day, time, salon_timezone)
                appointment.starts_at = starts_at
                appointment.ends_at = starts_at.add(minutes=minutes)
                self._store.save_appointment(appointment)
                break

        logger.info("Rescheduled appointment %s to %s", appointment.id, appointment.starts_at)
        return appointment

    def cancel(self, appointment_id: str) -> Appointment:
        """Mark an appointment CANCELED so it stops consuming capacity."""
        while True:
            appointment = self._store.get_appointment(appointment_id)
            timezone = self._store.get_salon(appointment.salon_id).timezone
            day = _local_day(appointment, timezone)

            with self._store.day_lock(appointment.salon_id, day):
                appointment = self._store.get_appointment(appointment_id)
                if _local_day(appointment, timezone) != day:
                    continue
                appointment.status = AppointmentStatus.CANCELED
                self._store.save_appointment(appointment)
                break

        logger.info("Canceled appointment %s", appointment_id)
        return appointment


def _local_day(appointment: Appointment, timezone: str) -> date:
    return appointment.starts_at.in_timezone(timezone).date()


def _ensure_active(appointment: Appointment) -> None:
    if appointment.status is AppointmentStatus.CANCELED:
        raise InvalidInputError(f"Appointment {appointment.id} is canceled and cannot be moved")
