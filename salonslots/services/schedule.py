"""
Resolves whether a salon is open on a date and during which hours.
"""

import logging
from datetime import date
from typing import Optional

from pendulum import DateTime

from ..domain.models import BusinessHours, ClosureStatus, Weekday
from .providers import BusinessHoursProvider, ClosureProvider

logger = logging.getLogger(__name__)

DEFAULT_CLOSURE_REASON = "Salon closed"


def weekday_for_date(day: date) -> Weekday:
    """Weekday of a salon-local calendar date."""
    return Weekday.from_date(day)


def weekday_in_timezone(instant: DateTime, timezone: str) -> Weekday:
    """
    Weekday of an absolute instant as seen in the salon's timezone.

    The same instant can fall on different weekdays in different zones, so it
    is converted before the day is taken.
    """
    return Weekday.from_date(instant.in_timezone(timezone).date())


class ScheduleLookup:
    """Read adapter over business hours and closures."""

    def __init__(
        self,
        hours_provider: BusinessHoursProvider,
        closure_provider: ClosureProvider,
    ) -> None:
        self._hours_provider = hours_provider
        self._closure_provider = closure_provider

    def is_closed_on_date(self, salon_id: str, day: date) -> ClosureStatus:
        """
        Check ad-hoc closures for a calendar day.

        Comparison is by calendar day, inclusive at both ends, so a closure
        ending on ``day`` still covers all of it.
        """
        for closure in self._closure_provider.list_closures(salon_id, day):
            if closure.covers(day):
                logger.debug("Salon %s closed on %s: %s", salon_id, day, closure.reason)
                return ClosureStatus(closed=True, reason=closure.reason or DEFAULT_CLOSURE_REASON)
        return ClosureStatus(closed=False)

    def get_business_hours(self, salon_id: str, weekday: Weekday) -> Optional[BusinessHours]:
        return self._hours_provider.get_business_hours(salon_id, weekday)

    def opening_hours(self, salon_id: str, day: date) -> Optional[BusinessHours]:
        """
        Hours the salon is open on ``day`` by its weekly schedule.

        Returns None both when no record exists and when the weekday is
        marked closed; callers treat the two the same way.
        """
        hours = self.get_business_hours(salon_id, weekday_for_date(day))
        if hours is None or hours.is_closed:
            return None
        return hours
