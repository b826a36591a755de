"""
Loads the bookings of one salon-local day as immutable intervals.
"""

import logging
from datetime import date
from typing import Tuple

from ..domain.models import AppointmentInterval
from ..domain.timegrid import day_bounds
from .providers import AppointmentProvider

logger = logging.getLogger(__name__)


def load_appointments(
    provider: AppointmentProvider,
    salon_id: str,
    day: date,
    timezone: str,
) -> Tuple[AppointmentInterval, ...]:
    """
    Fetch the day's capacity-consuming appointments.

    Only appointments whose start falls inside the salon-local day count, and
    canceled ones are dropped even if the provider returned them. The result
    is read once and shared by every slot of one computation.
    """
    start_of_day, end_of_day = day_bounds(day, timezone)
    appointments = provider.list_appointments(salon_id, start_of_day, end_of_day)

    intervals = tuple(
        appointment.to_interval()
        for appointment in appointments
        if appointment.status.occupies_capacity
        and start_of_day <= appointment.starts_at <= end_of_day
    )

    logger.debug("Loaded %d appointments for salon %s on %s", len(intervals), salon_id, day)
    return intervals
