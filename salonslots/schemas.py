"""Wire schemas for the availability endpoint payload."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .domain.models import SlotCheck, TimeSlot


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TimeSlotRead(_CamelModel):
    time: str
    available: bool
    reason: Optional[str] = None

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotRead":
        return cls(time=slot.time, available=slot.available, reason=slot.reason)


class SalonInfo(_CamelModel):
    name: str
    time_zone: str = Field(alias="timeZone")


class AvailabilityResponse(_CamelModel):
    """Body of ``GET /availability?date=YYYY-MM-DD&duration=<minutes>``."""

    available_slots: List[TimeSlotRead] = Field(alias="availableSlots")
    salon_capacity: int = Field(alias="salonCapacity")
    salon_info: SalonInfo = Field(alias="salonInfo")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class CapacityInfoRead(_CamelModel):
    used: int
    total: int


class SlotCheckRead(_CamelModel):
    available: bool
    reason: Optional[str] = None
    capacity_info: CapacityInfoRead = Field(alias="capacityInfo")

    @classmethod
    def from_check(cls, check: SlotCheck) -> "SlotCheckRead":
        return cls(
            available=check.available,
            reason=check.reason,
            capacity_info=CapacityInfoRead(
                used=check.capacity_info.used,
                total=check.capacity_info.total,
            ),
        )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
