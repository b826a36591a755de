"""
Load salon fixture data from a YAML file into an ``InMemorySalonStore``.

Example file::

    salons:
      - id: downtown
        name: Downtown Studio
        timezone: Europe/Berlin
        capacity: 2
        use_default_hours: true
        closures:
          - start_date: 2024-12-24
            end_date: 2024-12-26
            reason: Holidays
        appointments:
          - id: a1
            starts_at: "2024-11-25 10:00"
            ends_at: "2024-11-25 11:00"
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Union

import pendulum
import yaml
from pendulum import DateTime
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..domain.exceptions import InvalidInputError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    BusinessHours,
    Salon,
    SalonClosure,
    Weekday,
)
from ..domain.timegrid import validate_timezone
from .memory_store import InMemorySalonStore

logger = logging.getLogger(__name__)


class BusinessHoursEntry(BaseModel):
    weekday: Weekday
    open_time: str
    close_time: str
    is_closed: bool = False


class ClosureEntry(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = None


class AppointmentEntry(BaseModel):
    id: str
    starts_at: Union[datetime, str]
    ends_at: Union[datetime, str]
    status: AppointmentStatus = AppointmentStatus.BOOKED


class SalonEntry(BaseModel):
    id: str
    name: str
    timezone: str = "UTC"
    capacity: Optional[int] = None
    use_default_hours: bool = False
    business_hours: List[BusinessHoursEntry] = Field(default_factory=list)
    closures: List[ClosureEntry] = Field(default_factory=list)
    appointments: List[AppointmentEntry] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_zone(cls, value: str) -> str:
        """Reject unknown IANA timezone names."""
        return validate_timezone(value)

    @field_validator("business_hours")
    @classmethod
    def validate_unique_weekdays(cls, value: List[BusinessHoursEntry]) -> List[BusinessHoursEntry]:
        """Each weekday may appear once."""
        seen: set[Weekday] = set()
        for entry in value:
            if entry.weekday in seen:
                raise ValueError(f"Duplicate business hours for {entry.weekday.value}")
            seen.add(entry.weekday)
        return value


class SalonFile(BaseModel):
    salons: List[SalonEntry] = Field(default_factory=list)


def load_store_from_yaml(path: Path) -> InMemorySalonStore:
    """
    Build a store from a YAML fixture file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Salon data file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Salon data file must contain a mapping at the root level.")

    try:
        salon_file = SalonFile(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid salon data in {path}: {exc}") from exc

    store = InMemorySalonStore()
    for entry in salon_file.salons:
        _load_salon(store, entry)
    return store


def _load_salon(store: InMemorySalonStore, entry: SalonEntry) -> None:
    store.add_salon(
        Salon(id=entry.id, name=entry.name, timezone=entry.timezone, capacity=entry.capacity)
    )

    for hours in entry.business_hours:
        store.set_business_hours(
            entry.id,
            BusinessHours(
                weekday=hours.weekday,
                open_time=hours.open_time,
                close_time=hours.close_time,
                is_closed=hours.is_closed,
            ),
        )
    if entry.use_default_hours:
        store.set_default_business_hours(entry.id)

    for closure in entry.closures:
        store.add_closure(
            entry.id,
            SalonClosure(start_date=closure.start_date, end_date=closure.end_date, reason=closure.reason),
        )

    for item in entry.appointments:
        try:
            starts_at = _parse_instant(item.starts_at, entry.timezone)
            ends_at = _parse_instant(item.ends_at, entry.timezone)
        except (ValueError, InvalidInputError) as exc:
            logger.warning("Skipping appointment %s of salon %s: %s", item.id, entry.id, exc)
            continue

        if starts_at >= ends_at:
            logger.warning("Skipping appointment %s of salon %s: ends before it starts", item.id, entry.id)
            continue

        store.add_appointment(
            Appointment(
                id=item.id,
                salon_id=entry.id,
                starts_at=starts_at,
                ends_at=ends_at,
                status=item.status,
            )
        )


def _parse_instant(value: Union[datetime, str], timezone: str) -> DateTime:
    """Parse a fixture timestamp; values without an offset are salon-local."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return pendulum.instance(value, tz=timezone)
        return pendulum.instance(value)

    parsed = pendulum.parse(value, tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed
