"""
Capacity-aware conflict detection.

Pure domain logic without any external dependencies (no storage, no clock).
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from pendulum import DateTime

from .exceptions import InvalidCapacityError
from .models import AppointmentInterval, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1

# Event deltas. Sorting on (timestamp, delta) puts ends before starts.
_END = -1
_START = 1


def resolve_capacity(raw: Optional[int], default: int = DEFAULT_CAPACITY) -> int:
    """
    Apply the capacity floor at the engine boundary.

    ``None`` means the salon never configured a capacity and yields
    ``default``. Stored values below 1 are floored to 1. The default comes
    from configuration and must already be at least 1.

    Raises:
        InvalidCapacityError: If ``default`` is below 1
    """
    if default < 1:
        raise InvalidCapacityError(f"Default capacity must be at least 1, got {default}")
    if raw is None:
        return default
    if raw < 1:
        logger.warning("Salon capacity %s is below 1, using 1", raw)
        return 1
    return raw


def peak_concurrency(intervals: Iterable[TimeRange]) -> int:
    """Return the maximum number of intervals active at the same instant."""
    events = sorted(
        event
        for interval in intervals
        for event in ((interval.start, _START), (interval.end, _END))
    )
    active = peak = 0
    for _, delta in events:
        active += delta
        peak = max(peak, active)
    return peak


class ConflictDetector:
    """
    Decides whether a proposed appointment fits within a salon's capacity.

    Intervals are half-open: an appointment ending at 10:00 frees its seat
    before one starting at 10:00 takes it.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity

    def would_exceed_capacity(
        self,
        proposed: TimeRange,
        existing: Sequence[AppointmentInterval],
        exclude_ids: Iterable[str] = ()
    ) -> bool:
        """
        Sweep-line check of the proposed interval against existing bookings.

        Algorithm:
        1. Emit (start, +1) and (end, -1) for every kept interval and for the
           proposed one, tagging the proposed events
        2. Sort by timestamp, end events first on ties
        3. Walk the events keeping a running count of active intervals
        4. Reject as soon as the count exceeds capacity while the proposed
           interval is active

        Returns:
            True when admitting ``proposed`` would exceed capacity
        """
        events: List[Tuple[DateTime, int, bool]] = []

        for interval in self._without_excluded(existing, exclude_ids):
            events.append((interval.start, _START, False))
            events.append((interval.end, _END, False))

        events.append((proposed.start, _START, True))
        events.append((proposed.end, _END, True))

        events.sort(key=lambda event: (event[0], event[1]))

        active = 0
        proposed_active = False

        for _, delta, is_proposed in events:
            active += delta
            if is_proposed:
                proposed_active = delta == _START

            if proposed_active and active > self.capacity:
                return True

        return False

    def count_overlapping(
        self,
        proposed: TimeRange,
        existing: Sequence[AppointmentInterval],
        exclude_ids: Iterable[str] = ()
    ) -> int:
        """Count kept intervals that overlap the proposed one."""
        return sum(
            1 for interval in self._without_excluded(existing, exclude_ids)
            if interval.overlaps(proposed)
        )

    def has_room(
        self,
        proposed: TimeRange,
        existing: Sequence[AppointmentInterval],
        exclude_ids: Iterable[str] = ()
    ) -> bool:
        """
        Direct-count check used for single slots.

        Every overlapping booking is assumed to be concurrent with the
        proposed one, so this never admits more than the sweep would.
        """
        return self.count_overlapping(proposed, existing, exclude_ids) < self.capacity

    @staticmethod
    def _without_excluded(
        existing: Sequence[AppointmentInterval],
        exclude_ids: Iterable[str]
    ) -> List[AppointmentInterval]:
        excluded = set(exclude_ids)
        if not excluded:
            return list(existing)
        return [
            interval for interval in existing
            if interval.appointment_id is None or interval.appointment_id not in excluded
        ]
