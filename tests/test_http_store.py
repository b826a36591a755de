"""
Tests for HttpSalonStore, with requests replaced by a fake.
"""

from datetime import date

import pendulum
import pytest
import requests

from salonslots.adapters import http_store
from salonslots.adapters.http_store import HttpSalonStore
from salonslots.domain.exceptions import ProviderError, SalonNotFoundError
from salonslots.domain.models import AppointmentStatus, Weekday


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self.payload = payload
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.invalid_json:
            raise ValueError("no JSON")
        return self.payload


@pytest.fixture
def calls(monkeypatch):
    """Route requests.get to a table of canned responses keyed by URL."""
    recorded = []
    responses = {}

    def fake_get(url, headers=None, params=None, timeout=None):
        recorded.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        return responses.get(url, FakeResponse(404))

    monkeypatch.setattr(http_store.requests, "get", fake_get)
    return recorded, responses


@pytest.fixture
def client():
    return HttpSalonStore("https://booking.test/api/", token="secret", timeout=5)


BASE = "https://booking.test/api"


class TestHttpSalonStore:
    """Tests for the REST-backed providers."""

    def test_get_salon(self, client, calls):
        recorded, responses = calls
        responses[f"{BASE}/salons/7"] = FakeResponse(
            payload={"id": 7, "name": "Studio", "timeZone": "Europe/Berlin", "capacity": 2}
        )

        salon = client.get_salon("7")

        assert (salon.id, salon.name, salon.timezone, salon.capacity) == ("7", "Studio", "Europe/Berlin", 2)
        assert recorded[0]["headers"]["Authorization"] == "Bearer secret"
        assert recorded[0]["timeout"] == 5

    def test_missing_salon(self, client, calls):
        with pytest.raises(SalonNotFoundError):
            client.get_salon("7")

    def test_malformed_salon(self, client, calls):
        _, responses = calls
        responses[f"{BASE}/salons/7"] = FakeResponse(payload={"id": 7})

        with pytest.raises(ProviderError):
            client.get_salon("7")

    def test_capacity_may_be_absent(self, client, calls):
        _, responses = calls
        responses[f"{BASE}/salons/7"] = FakeResponse(
            payload={"id": 7, "name": "Studio", "timeZone": "Europe/Berlin"}
        )

        assert client.get_capacity("7") is None

    def test_business_hours(self, client, calls):
        _, responses = calls
        responses[f"{BASE}/salons/7/business-hours/MONDAY"] = FakeResponse(
            payload={"openTime": "09:00", "closeTime": "17:00", "isClosed": False}
        )

        hours = client.get_business_hours("7", Weekday.MONDAY)

        assert (hours.open_time, hours.close_time, hours.is_closed) == ("09:00", "17:00", False)
        assert client.get_business_hours("7", Weekday.TUESDAY) is None

    def test_closures(self, client, calls):
        recorded, responses = calls
        responses[f"{BASE}/salons/7/closures"] = FakeResponse(
            payload=[{"startDate": "2024-12-24", "endDate": "2024-12-26", "reason": "Holidays"}]
        )

        (closure,) = client.list_closures("7", date(2024, 12, 25))

        assert closure.start_date == date(2024, 12, 24)
        assert closure.covers(date(2024, 12, 26))
        assert recorded[0]["params"] == {"date": "2024-12-25"}

    def test_appointments(self, client, calls):
        recorded, responses = calls
        responses[f"{BASE}/salons/7/appointments"] = FakeResponse(
            payload=[{"id": "a", "startsAt": "2024-11-25T09:00:00Z", "endsAt": "2024-11-25T10:00:00Z", "status": "COMPLETED"}]
        )
        start = pendulum.datetime(2024, 11, 25, tz="Europe/Berlin")

        (appointment,) = client.list_appointments("7", start, start.end_of("day"))

        assert appointment.status is AppointmentStatus.COMPLETED
        assert appointment.starts_at == pendulum.datetime(2024, 11, 25, 10, tz="Europe/Berlin")
        assert recorded[0]["params"]["status"] == "BOOKED,COMPLETED"

    def test_missing_salon_collections(self, client, calls):
        start = pendulum.datetime(2024, 11, 25, tz="Europe/Berlin")

        with pytest.raises(SalonNotFoundError):
            client.list_closures("7", date(2024, 11, 25))
        with pytest.raises(SalonNotFoundError):
            client.list_appointments("7", start, start.end_of("day"))

    def test_server_error(self, client, calls):
        _, responses = calls
        responses[f"{BASE}/salons/7"] = FakeResponse(status_code=500)

        with pytest.raises(ProviderError):
            client.get_salon("7")

    def test_invalid_json(self, client, calls):
        _, responses = calls
        responses[f"{BASE}/salons/7"] = FakeResponse(invalid_json=True)

        with pytest.raises(ProviderError):
            client.get_salon("7")

    def test_connection_error(self, client, monkeypatch):
        def refuse(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(http_store.requests, "get", refuse)

        with pytest.raises(ProviderError, match="Failed to fetch") as exc_info:
            client.get_salon("7")

        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)
