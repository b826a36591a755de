"""
Domain models for salon schedules, bookings and slot results.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from pendulum import DateTime

from .exceptions import InvalidInputError
from .timegrid import time_to_minutes


class Weekday(str, Enum):
    """Day of the week. Derived from ISO weekday numbers (Monday=1)."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        """Return the weekday of a calendar date."""
        return _ISO_WEEKDAYS[day.isoweekday()]


_ISO_WEEKDAYS = {index: weekday for index, weekday in enumerate(Weekday, start=1)}


class AppointmentStatus(str, Enum):
    BOOKED = "BOOKED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    @property
    def occupies_capacity(self) -> bool:
        return self is not AppointmentStatus.CANCELED


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not."""
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class AppointmentInterval(TimeRange):
    """An existing booking reduced to its interval, keyed by appointment id."""
    appointment_id: Optional[str] = None


@dataclass(frozen=True)
class BusinessHours:
    """
    Weekly opening hours for one weekday.

    Invariant: unless ``is_closed``, ``open_time`` is before ``close_time``.
    """
    weekday: Weekday
    open_time: str
    close_time: str
    is_closed: bool = False

    def __post_init__(self):
        open_minutes = time_to_minutes(self.open_time)
        close_minutes = time_to_minutes(self.close_time)
        if not self.is_closed and open_minutes >= close_minutes:
            raise InvalidInputError(
                f"{self.weekday.value}: open time {self.open_time} must be "
                f"before close time {self.close_time}"
            )

    @property
    def open_minutes(self) -> int:
        return time_to_minutes(self.open_time)

    @property
    def close_minutes(self) -> int:
        return time_to_minutes(self.close_time)


@dataclass(frozen=True)
class SalonClosure:
    """Ad-hoc closure covering an inclusive range of calendar dates."""
    start_date: date
    end_date: date
    reason: Optional[str] = None

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise InvalidInputError(
                f"Closure start {self.start_date} must not be after end {self.end_date}"
            )

    def covers(self, day: date) -> bool:
        """Check whether the closure includes a calendar day."""
        return self.start_date <= day <= self.end_date


@dataclass
class Appointment:
    """A booking as seen by the availability engine."""
    id: str
    salon_id: str
    starts_at: DateTime
    ends_at: DateTime
    status: AppointmentStatus = AppointmentStatus.BOOKED

    def to_interval(self) -> AppointmentInterval:
        return AppointmentInterval(
            start=self.starts_at,
            end=self.ends_at,
            appointment_id=self.id
        )


@dataclass(frozen=True)
class Salon:
    id: str
    name: str
    timezone: str
    capacity: Optional[int] = None  # None falls back to the configured default


@dataclass(frozen=True)
class ClosureStatus:
    closed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class TimeSlot:
    """
    A candidate appointment start on the slot grid.
    """
    time: str
    available: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class CapacityInfo:
    used: int
    total: int

    def format_display(self) -> str:
        """Format as e.g. ``2/2 slots filled``."""
        return f"{self.used}/{self.total} slots filled"


@dataclass(frozen=True)
class SlotCheck:
    """Outcome of checking a single proposed slot."""
    available: bool
    capacity_info: CapacityInfo
    reason: Optional[str] = None
