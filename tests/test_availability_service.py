"""
Tests for AvailabilityService.
"""

import pendulum
import pytest

from salonslots.adapters import http_store
from salonslots.adapters.http_store import HttpSalonStore
from salonslots.adapters.memory_store import InMemorySalonStore
from salonslots.domain.exceptions import (
    InvalidCapacityError,
    InvalidInputError,
    SalonNotFoundError,
)
from salonslots.domain.models import (
    Appointment,
    AppointmentStatus,
    BusinessHours,
    Salon,
    SalonClosure,
    Weekday,
)
from salonslots.services.availability import (
    REASON_AFTER_HOURS,
    REASON_BEFORE_HOURS,
    REASON_BOOKED,
    REASON_CAPACITY,
    REASON_CLOSED_DAY,
    REASON_NO_AVAILABILITY,
    REASON_PAST,
    AvailabilityService,
)
from salonslots.services.schedule import ScheduleLookup

TZ = "Europe/Berlin"
MONDAY = "2024-11-25"
SALON_ID = "salon-1"


def listing(service, date=MONDAY, duration=30, salon_id=SALON_ID, timezone=TZ):
    return service.get_available_time_slots(
        salon_id=salon_id,
        date=date,
        duration_minutes=duration,
        salon_timezone=timezone,
    )


def check(service, time, duration=30, date=MONDAY, **kwargs):
    kwargs.setdefault("salon_id", SALON_ID)
    return service.is_time_slot_available(date=date, time=time, duration_minutes=duration, **kwargs)


def by_time(slots):
    return {slot.time: slot for slot in slots}


class TestGetAvailableTimeSlots:
    """Tests for the day listing."""

    def test_empty_day_every_slot_available(self, service):
        slots = listing(service)

        assert [slot.time for slot in slots][0] == "09:00"
        assert [slot.time for slot in slots][-1] == "16:30"
        assert len(slots) == 16
        assert all(slot.available and slot.reason is None for slot in slots)

    def test_last_slot_may_end_exactly_at_close(self, service):
        slots = by_time(listing(service, duration=60))

        assert slots["16:00"].available
        assert not slots["16:30"].available
        assert slots["16:30"].reason == REASON_AFTER_HOURS

    def test_third_concurrent_booking_rejected(self, service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:30", "11:30")

        slots = by_time(listing(service))

        assert slots["10:00"].available
        assert not slots["10:30"].available
        assert slots["10:30"].reason == REASON_CAPACITY
        assert slots["11:00"].available

    def test_sweep_on_finer_grid(self, make_service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:30", "11:30")
        service = make_service(slot_step_minutes=15)

        slots = by_time(listing(service, duration=60))

        for time in ("09:00", "09:15", "09:30", "11:00"):
            assert slots[time].available, time
        for time in ("09:45", "10:00", "10:15", "10:30", "10:45"):
            assert not slots[time].available, time

    def test_capacity_one_reports_already_booked(self, store, service, add_booking):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=1))
        add_booking("A", "10:00", "11:00")

        slots = by_time(listing(service))

        assert slots["10:00"].reason == REASON_BOOKED
        assert slots["10:30"].reason == REASON_BOOKED
        assert slots["11:00"].available
        assert slots["09:30"].available

    def test_canceled_appointments_ignored(self, store, service, add_booking):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=1))
        add_booking("A", "10:00", "11:00", status=AppointmentStatus.CANCELED)

        assert all(slot.available for slot in listing(service))

    def test_completed_appointments_still_count(self, store, service, add_booking):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=1))
        add_booking("A", "10:00", "11:00", status=AppointmentStatus.COMPLETED)

        assert not by_time(listing(service))["10:00"].available

    def test_closure_returns_empty_list(self, store, service):
        store.add_closure(SALON_ID, SalonClosure(start_date=pendulum.date(2024, 11, 25), end_date=pendulum.date(2024, 11, 25)))

        assert listing(service) == []

    def test_closed_weekday_returns_empty_list(self, store, service):
        store.set_business_hours(SALON_ID, BusinessHours(Weekday.MONDAY, "09:00", "17:00", is_closed=True))

        assert listing(service) == []

    def test_missing_hours_record_returns_empty_list(self):
        bare = InMemorySalonStore()
        bare.add_salon(Salon(id="bare", name="Bare", timezone=TZ))
        service = AvailabilityService(ScheduleLookup(bare, bare), bare, bare)

        assert listing(service, salon_id="bare") == []

    def test_other_days_do_not_leak(self, service, store, add_booking):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=1))
        add_booking("A", "10:00", "11:00", day="2024-11-26")

        assert all(slot.available for slot in listing(service))

    def test_day_window_follows_salon_timezone(self, store, service):
        """10:00 in Auckland on the 25th is still the 24th in UTC."""
        store.add_salon(Salon(id="akl", name="Auckland", timezone="Pacific/Auckland", capacity=1))
        store.set_business_hours("akl", BusinessHours(Weekday.MONDAY, "09:00", "17:00"))
        store.add_appointment(Appointment(
            id="nz-1",
            salon_id="akl",
            starts_at=pendulum.parse("2024-11-24T21:00:00Z"),
            ends_at=pendulum.parse("2024-11-24T22:00:00Z"),
        ))
        store.add_appointment(Appointment(
            id="nz-2",
            salon_id="akl",
            starts_at=pendulum.parse("2024-11-25T21:00:00Z"),
            ends_at=pendulum.parse("2024-11-25T22:00:00Z"),
        ))

        slots = by_time(listing(service, salon_id="akl", timezone="Pacific/Auckland"))

        assert not slots["10:00"].available
        assert slots["11:00"].available

    def test_clock_marks_past_slots(self, make_service):
        now = pendulum.datetime(2024, 11, 25, 12, 0, tz=TZ)
        service = make_service(clock=lambda: now)

        slots = by_time(listing(service))

        assert slots["11:30"].reason == REASON_PAST
        assert slots["12:00"].available

    def test_custom_step(self, make_service):
        service = make_service(slot_step_minutes=60)

        assert [slot.time for slot in listing(service)] == [f"{h:02d}:00" for h in range(9, 17)]

    @pytest.mark.parametrize("duration", [0, -30, "30", True, 1.5])
    def test_invalid_duration(self, service, duration):
        with pytest.raises(InvalidInputError):
            listing(service, duration=duration)

    @pytest.mark.parametrize("date", ["25.11.2024", "2024-02-30", "tomorrow"])
    def test_invalid_date(self, service, date):
        with pytest.raises(InvalidInputError):
            listing(service, date=date)

    def test_unknown_salon(self, service):
        with pytest.raises(SalonNotFoundError):
            listing(service, salon_id="nope")

    def test_zero_capacity_floored_to_one(self, store, service, add_booking):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=0))
        add_booking("A", "10:00", "11:00")

        slots = by_time(listing(service))

        assert service.get_salon_capacity(SALON_ID) == 1
        assert slots["10:00"].reason == REASON_BOOKED
        assert slots["11:00"].available


class TestUnknownSalonOverHttp:
    """A backend answering 404 everywhere must not look like a closed salon."""

    class NotFound:
        status_code = 404

    @pytest.fixture
    def http_service(self, monkeypatch):
        monkeypatch.setattr(http_store.requests, "get", lambda *args, **kwargs: self.NotFound())
        client = HttpSalonStore("https://booking.test/api")
        return AvailabilityService(ScheduleLookup(client, client), client, client, default_timezone=TZ)

    def test_listing_raises(self, http_service):
        with pytest.raises(SalonNotFoundError):
            listing(http_service, salon_id="nope")

    def test_single_slot_raises(self, http_service):
        with pytest.raises(SalonNotFoundError):
            check(http_service, "10:00", salon_id="nope")


class TestSalonCapacity:
    """Tests for capacity resolution."""

    def test_configured_capacity(self, service):
        assert service.get_salon_capacity(SALON_ID) == 2

    def test_missing_capacity_uses_default(self, store, make_service):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ))

        assert make_service().get_salon_capacity(SALON_ID) == 1
        assert make_service(default_capacity=3).get_salon_capacity(SALON_ID) == 3

    def test_invalid_default_capacity(self, make_service):
        with pytest.raises(InvalidCapacityError):
            make_service(default_capacity=0)

    def test_invalid_slot_step(self, make_service):
        with pytest.raises(InvalidInputError):
            make_service(slot_step_minutes=0)


class TestIsTimeSlotAvailable:
    """Tests for the single-slot check."""

    def test_free_slot_reports_capacity(self, service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:30", "11:30")

        result = check(service, "12:00", duration=60, salon_timezone=TZ)

        assert result.available
        assert result.reason is None
        assert (result.capacity_info.used, result.capacity_info.total) == (0, 2)

    def test_full_slot(self, service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:30", "11:30")

        result = check(service, "10:15", duration=60)

        assert not result.available
        assert result.reason == REASON_NO_AVAILABILITY
        assert result.capacity_info.format_display() == "2/2 slots filled"

    def test_exclusion_frees_own_seat(self, service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:30", "11:30")

        result = check(service, "10:00", duration=60, exclude_appointment_ids=["A"])

        assert result.available
        assert result.capacity_info.used == 1

    def test_adjacent_bookings_do_not_count(self, store, service, add_booking):
        store.add_salon(Salon(id=SALON_ID, name="Studio", timezone=TZ, capacity=1))
        add_booking("A", "10:00", "11:00")

        assert check(service, "11:00").available
        assert check(service, "09:30").available
        assert not check(service, "10:30").available

    def test_count_is_conservative(self, service, add_booking):
        """Two back-to-back bookings both overlap a 60 minute proposal."""
        add_booking("A", "10:00", "10:30")
        add_booking("B", "10:30", "11:00")

        assert not check(service, "10:00", duration=60).available
        assert by_time(listing(service, duration=60))["10:00"].available

    def test_before_hours(self, service):
        result = check(service, "08:30")

        assert result.reason == REASON_BEFORE_HOURS

    def test_after_hours(self, service):
        result = check(service, "16:45")

        assert not result.available
        assert result.reason == REASON_AFTER_HOURS

    def test_closed_weekday(self, store, service):
        store.set_business_hours(SALON_ID, BusinessHours(Weekday.SUNDAY, "10:00", "16:00", is_closed=True))

        result = check(service, "11:00", date="2024-11-24")

        assert result.reason == REASON_CLOSED_DAY

    def test_closure_reason_wins(self, store, service):
        store.add_closure(
            SALON_ID,
            SalonClosure(start_date=pendulum.date(2024, 11, 25), end_date=pendulum.date(2024, 11, 27), reason="Renovation"),
        )

        result = check(service, "08:00")

        assert not result.available
        assert result.reason == "Renovation"

    def test_past_slot(self, make_service):
        service = make_service(clock=lambda: pendulum.datetime(2024, 11, 25, 12, 0, tz=TZ))

        assert check(service, "11:00").reason == REASON_PAST
        assert check(service, "12:00").available

    def test_uses_default_timezone(self, make_service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:00", "11:00")

        assert not check(make_service(), "10:00").available
        assert check(make_service(default_timezone="UTC"), "10:00").available

    def test_invalid_time(self, service):
        with pytest.raises(InvalidInputError):
            check(service, "25:00")


class TestDescribeDay:
    """Tests for the endpoint payload."""

    def test_payload_shape(self, store, service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("B", "10:30", "11:30")

        payload = service.describe_day(store.get_salon(SALON_ID), MONDAY, 30).to_payload()

        assert set(payload) == {"availableSlots", "salonCapacity", "salonInfo"}
        assert payload["salonCapacity"] == 2
        assert payload["salonInfo"] == {"name": "Studio", "timeZone": TZ}
        assert payload["availableSlots"][0] == {"time": "09:00", "available": True}
        assert {"time": "10:30", "available": False, "reason": REASON_CAPACITY} in payload["availableSlots"]

    def test_load_day(self, service, add_booking):
        add_booking("A", "10:00", "11:00")
        add_booking("X", "10:00", "11:00", status=AppointmentStatus.CANCELED)

        assert [i.appointment_id for i in service.load_day(SALON_ID, MONDAY, TZ)] == ["A"]
