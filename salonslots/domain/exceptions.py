"""
Domain-specific exception hierarchy for the availability engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SlotCheck


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(AvailabilityError, ValueError):
    """Raised when a date, time, timezone or duration is malformed."""


class InvalidCapacityError(InvalidInputError):
    """Raised when a salon capacity below 1 reaches the engine boundary."""


class SalonNotFoundError(AvailabilityError, LookupError):
    """Raised by providers when a salon id is unknown."""


class AppointmentNotFoundError(AvailabilityError, LookupError):
    """Raised when an appointment id is unknown."""


class ProviderError(AvailabilityError):
    """Raised when salon data cannot be fetched or parsed."""


class SlotUnavailableError(AvailabilityError):
    """Raised when a booking re-check finds the slot taken."""

    def __init__(self, message: str, check: "SlotCheck") -> None:
        super().__init__(message)
        self.check = check
