"""
Read providers backed by the booking backend's REST API.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import ProviderError, SalonNotFoundError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    BusinessHours,
    Salon,
    SalonClosure,
    Weekday,
)

logger = logging.getLogger(__name__)


class HttpSalonStore:
    """
    Client for the salon data endpoints of the booking backend.

    Endpoints used (all JSON, relative to ``base_url``):
        GET /salons/{id}
        GET /salons/{id}/business-hours/{WEEKDAY}
        GET /salons/{id}/closures?date=YYYY-MM-DD
        GET /salons/{id}/appointments?from=ISO&until=ISO&status=BOOKED,COMPLETED

    Every call hits the backend and nothing is cached. Failures are raised,
    never retried. A 404 on a salon or its collections means the salon does
    not exist; a 404 on one weekday's hours means no hours are set.
    """

    ACTIVE_STATUSES = (AppointmentStatus.BOOKED, AppointmentStatus.COMPLETED)

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 30):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the backend API
            token: Optional bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def get_salon(self, salon_id: str) -> Salon:
        data = self._get(f"/salons/{salon_id}")
        if data is None:
            raise SalonNotFoundError(f"Salon not found: {salon_id}")
        try:
            return Salon(
                id=str(data["id"]),
                name=data["name"],
                timezone=data["timeZone"],
                capacity=data.get("capacity"),
            )
        except KeyError as e:
            raise ProviderError(f"Malformed salon response, missing {e}") from e

    def get_capacity(self, salon_id: str) -> Optional[int]:
        return self.get_salon(salon_id).capacity

    def get_business_hours(self, salon_id: str, weekday: Weekday) -> Optional[BusinessHours]:
        data = self._get(f"/salons/{salon_id}/business-hours/{weekday.value}")
        if data is None:
            return None
        try:
            return BusinessHours(
                weekday=weekday,
                open_time=data["openTime"],
                close_time=data["closeTime"],
                is_closed=bool(data.get("isClosed", False)),
            )
        except (KeyError, ValueError) as e:
            raise ProviderError(f"Malformed business hours for {weekday.value}: {e}") from e

    def list_closures(self, salon_id: str, day: date) -> List[SalonClosure]:
        data = self._get(f"/salons/{salon_id}/closures", params={"date": day.isoformat()})
        if data is None:
            raise SalonNotFoundError(f"Salon not found: {salon_id}")
        closures: List[SalonClosure] = []
        for item in data:
            try:
                closures.append(
                    SalonClosure(
                        start_date=pendulum.parse(item["startDate"]).date(),
                        end_date=pendulum.parse(item["endDate"]).date(),
                        reason=item.get("reason"),
                    )
                )
            except (KeyError, ValueError) as e:
                raise ProviderError(f"Malformed closure in response: {e}") from e
        return closures

    def list_appointments(
        self,
        salon_id: str,
        starts_from: DateTime,
        starts_until: DateTime
    ) -> List[Appointment]:
        params = {
            "from": starts_from.to_iso8601_string(),
            "until": starts_until.to_iso8601_string(),
            "status": ",".join(status.value for status in self.ACTIVE_STATUSES),
        }
        data = self._get(f"/salons/{salon_id}/appointments", params=params)
        if data is None:
            raise SalonNotFoundError(f"Salon not found: {salon_id}")
        return [self._parse_appointment(salon_id, item) for item in data]

    def _parse_appointment(self, salon_id: str, item: Dict[str, Any]) -> Appointment:
        """
        Parse one appointment of the response.

        Response format:
        {"id": "...", "startsAt": "2024-11-25T09:00:00Z", "endsAt": "...", "status": "BOOKED"}
        """
        try:
            return Appointment(
                id=str(item["id"]),
                salon_id=salon_id,
                starts_at=pendulum.parse(item["startsAt"]),
                ends_at=pendulum.parse(item["endsAt"]),
                status=AppointmentStatus(item.get("status", AppointmentStatus.BOOKED.value)),
            )
        except (KeyError, ValueError) as e:
            raise ProviderError(f"Malformed appointment in response: {e}") from e

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET a JSON document; returns None on 404."""
        url = f"{self.base_url}{path}"
        logger.debug("GET %s %s", url, params or "")

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Invalid JSON from {url}: {e}") from e
