"""
Availability API: which slots of a day can take a new appointment.

The service reads one snapshot of hours, closures and bookings per call and
delegates the capacity decision to the domain-level ``ConflictDetector``.
Every answer is a point-in-time estimate, not a reservation: two callers can
both see a free slot. Only a re-check made while holding the store's day lock
(see ``BookingService``) may be trusted to write.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

from pendulum import DateTime

from ..domain.conflicts import DEFAULT_CAPACITY, ConflictDetector, resolve_capacity
from ..domain.exceptions import InvalidInputError
from ..domain.models import (
    AppointmentInterval,
    BusinessHours,
    CapacityInfo,
    Salon,
    SlotCheck,
    TimeRange,
    TimeSlot,
)
from ..domain.timegrid import (
    DEFAULT_SLOT_STEP_MINUTES,
    generate_slots,
    local_datetime,
    parse_local_date,
    validate_timezone,
)
from ..schemas import AvailabilityResponse, SalonInfo, TimeSlotRead
from .providers import AppointmentProvider, CapacityProvider
from .schedule import ScheduleLookup
from .snapshot import load_appointments

logger = logging.getLogger(__name__)

REASON_PAST = "Time slot is in the past"
REASON_AFTER_HOURS = "Appointment would end after business hours"
REASON_BEFORE_HOURS = "Appointment would start before business hours"
REASON_BOOKED = "Time slot already booked"
REASON_CAPACITY = "Time slot not available (capacity exceeded)"
REASON_NO_AVAILABILITY = "No availability at this time"
REASON_CLOSED_DAY = "Salon is closed on this day"

Clock = Callable[[], DateTime]


class AvailabilityService:
    """
    Composes schedule lookup, the appointment snapshot and conflict detection.

    ``clock`` is injected rather than read from the system so results are a
    pure function of the inputs; without one, past slots are not filtered.
    """

    def __init__(
        self,
        schedule: ScheduleLookup,
        appointments: AppointmentProvider,
        capacities: CapacityProvider,
        *,
        slot_step_minutes: int = DEFAULT_SLOT_STEP_MINUTES,
        default_capacity: int = DEFAULT_CAPACITY,
        default_timezone: str = "UTC",
        clock: Optional[Clock] = None,
    ) -> None:
        if slot_step_minutes <= 0:
            raise InvalidInputError(f"Slot step must be positive, got {slot_step_minutes}")
        self._schedule = schedule
        self._appointments = appointments
        self._capacities = capacities
        self._slot_step_minutes = slot_step_minutes
        self._default_capacity = resolve_capacity(None, default=default_capacity)
        self._default_timezone = validate_timezone(default_timezone)
        self._clock = clock

    def get_salon_capacity(self, salon_id: str) -> int:
        """Configured capacity with the default and floor applied."""
        return resolve_capacity(
            self._capacities.get_capacity(salon_id),
            default=self._default_capacity,
        )

    def get_available_time_slots(
        self,
        *,
        salon_id: str,
        date: str,
        duration_minutes: int,
        salon_timezone: str,
    ) -> List[TimeSlot]:
        """
        List every slot of the day with its availability.

        Returns an empty list when the salon is closed by an ad-hoc closure
        or by its weekly schedule.
        """
        _validate_duration(duration_minutes)
        day = parse_local_date(date, salon_timezone)

        # Raises SalonNotFoundError before any closed-day early return.
        capacity = self.get_salon_capacity(salon_id)

        if self._schedule.is_closed_on_date(salon_id, day).closed:
            return []

        hours = self._schedule.opening_hours(salon_id, day)
        if hours is None:
            logger.debug("Salon %s has no opening hours on %s", salon_id, day)
            return []

        detector = ConflictDetector(capacity)
        existing = load_appointments(self._appointments, salon_id, day, salon_timezone)
        close_at = local_datetime(day, hours.close_time, salon_timezone)
        now = self._now()

        slots: List[TimeSlot] = []
        for slot_time in generate_slots(hours.open_time, hours.close_time, self._slot_step_minutes):
            proposed = _proposed_range(day, slot_time, duration_minutes, salon_timezone)

            if now is not None and proposed.start < now:
                slots.append(TimeSlot(time=slot_time, available=False, reason=REASON_PAST))
                continue

            if proposed.end > close_at:
                slots.append(TimeSlot(time=slot_time, available=False, reason=REASON_AFTER_HOURS))
                continue

            if detector.would_exceed_capacity(proposed, existing):
                reason = REASON_BOOKED if capacity == 1 else REASON_CAPACITY
                slots.append(TimeSlot(time=slot_time, available=False, reason=reason))
                continue

            slots.append(TimeSlot(time=slot_time, available=True))

        return slots

    def is_time_slot_available(
        self,
        *,
        salon_id: str,
        date: str,
        time: str,
        duration_minutes: int,
        exclude_appointment_ids: Optional[Iterable[str]] = None,
        salon_timezone: Optional[str] = None,
    ) -> SlotCheck:
        """
        Check one proposed slot.

        ``exclude_appointment_ids`` lets a reschedule ignore the appointment
        being moved. The result always carries ``used/total`` capacity counts.
        """
        _validate_duration(duration_minutes)
        timezone = salon_timezone or self._default_timezone
        day = parse_local_date(date, timezone)
        proposed = _proposed_range(day, time, duration_minutes, timezone)
        excluded = tuple(exclude_appointment_ids or ())

        capacity = self.get_salon_capacity(salon_id)
        detector = ConflictDetector(capacity)
        existing = load_appointments(self._appointments, salon_id, day, timezone)
        used = detector.count_overlapping(proposed, existing, excluded)
        capacity_info = CapacityInfo(used=used, total=capacity)

        reason = self._closed_reason(salon_id, day)
        if reason is None:
            now = self._now()
            if now is not None and proposed.start < now:
                reason = REASON_PAST
        if reason is None:
            reason = _outside_hours_reason(self._schedule.opening_hours(salon_id, day), day, proposed, timezone)
        if reason is None and used >= capacity:
            reason = REASON_NO_AVAILABILITY

        if reason is not None:
            logger.debug("Slot %s %s for salon %s unavailable: %s", date, time, salon_id, reason)
            return SlotCheck(available=False, capacity_info=capacity_info, reason=reason)

        return SlotCheck(available=True, capacity_info=capacity_info)

    def describe_day(self, salon: Salon, date: str, duration_minutes: int) -> AvailabilityResponse:
        """Build the availability endpoint payload for a salon and date."""
        slots = self.get_available_time_slots(
            salon_id=salon.id,
            date=date,
            duration_minutes=duration_minutes,
            salon_timezone=salon.timezone,
        )
        return AvailabilityResponse(
            available_slots=[TimeSlotRead.from_slot(slot) for slot in slots],
            salon_capacity=self.get_salon_capacity(salon.id),
            salon_info=SalonInfo(name=salon.name, time_zone=salon.timezone),
        )

    def load_day(self, salon_id: str, date: str, salon_timezone: str) -> Sequence[AppointmentInterval]:
        """Return the snapshot the other operations would use for ``date``."""
        day = parse_local_date(date, salon_timezone)
        return load_appointments(self._appointments, salon_id, day, salon_timezone)

    def _closed_reason(self, salon_id: str, day: date) -> Optional[str]:
        closure = self._schedule.is_closed_on_date(salon_id, day)
        if closure.closed:
            return closure.reason
        return None

    def _now(self) -> Optional[DateTime]:
        return self._clock() if self._clock is not None else None


def _validate_duration(duration_minutes: int) -> None:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidInputError(f"Duration must be an integer number of minutes, got {duration_minutes!r}")
    if duration_minutes <= 0:
        raise InvalidInputError(f"Duration must be positive, got {duration_minutes}")


def _proposed_range(day: date, slot_time: str, duration_minutes: int, timezone: str) -> TimeRange:
    start = local_datetime(day, slot_time, timezone)
    return TimeRange(start=start, end=start.add(minutes=duration_minutes))


def _outside_hours_reason(
    hours: Optional[BusinessHours],
    day: date,
    proposed: TimeRange,
    timezone: str,
) -> Optional[str]:
    if hours is None:
        return REASON_CLOSED_DAY
    if proposed.start < local_datetime(day, hours.open_time, timezone):
        return REASON_BEFORE_HOURS
    if proposed.end > local_datetime(day, hours.close_time, timezone):
        return REASON_AFTER_HOURS
    return None
