"""
Core business logic for generating bookable slots.

Pure domain logic: no API calls, no database, no I/O. Collaborators
fetch availability rules and reservations before a generation call.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Set

from pendulum import DateTime

from .availability import DEFAULT_TIMEZONE, AvailabilityWindowBuilder, as_date, is_fully_covered
from .busy_ranges import MINUTES_PER_DAY, BusyRangeIndex, required_busy_window
from .exceptions import InvalidArgument
from .models import AbsoluteWindow, AvailabilityRule, CandidateSlot

logger = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 15
DEFAULT_MIN_LEAD_MINUTES = 5


@dataclass(frozen=True)
class SlotRequest:
    """
    Inputs for one generation call.

    ``busy`` must cover at least :func:`required_busy_window` for the
    target date and duration.
    """
    rules: Sequence[AvailabilityRule]
    target_date: date
    duration_minutes: int
    now: DateTime
    busy: BusyRangeIndex = field(default_factory=BusyRangeIndex)
    step_minutes: int = DEFAULT_STEP_MINUTES
    min_lead_minutes: int = DEFAULT_MIN_LEAD_MINUTES
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidArgument(
                f"duration_minutes must be greater than zero, got {self.duration_minutes}"
            )
        if self.step_minutes <= 0:
            raise InvalidArgument(f"step_minutes must be greater than zero, got {self.step_minutes}")
        if self.min_lead_minutes < 0:
            raise InvalidArgument(f"min_lead_minutes must not be negative, got {self.min_lead_minutes}")

    @property
    def look_ahead_days(self) -> int:
        return math.ceil(self.duration_minutes / MINUTES_PER_DAY) + 1


class SlotGenerator:
    """
    Generates bookable slots for one resource on one date.

    Algorithm:
    1. Materialize availability windows around the target date
    2. Take the windows that open on the target date as start candidates
    3. Walk each of them in fixed steps, rejecting starts that are too
       soon, already produced, not fully covered or colliding with a
       reservation
    4. Return the accepted slots in chronological order
    """

    def __init__(self, builder: Optional[AvailabilityWindowBuilder] = None):
        self.builder = builder

    def generate(self, request: SlotRequest) -> List[CandidateSlot]:
        """
        Generate all valid slots for a request.

        Returns:
            Slots sorted ascending by start; empty when nothing is available

        Raises:
            InsufficientBusyRange: If the busy snapshot is known to be too narrow
        """
        required = required_busy_window(
            request.target_date,
            request.duration_minutes,
            request.timezone
        )
        request.busy.ensure_covers(required.start, required.end)

        builder = self.builder or AvailabilityWindowBuilder(timezone=request.timezone)
        all_windows = builder.build(request.rules, request.target_date, request.look_ahead_days)
        start_windows = self._windows_opening_on(all_windows, request.target_date)

        earliest_start = request.now.add(minutes=request.min_lead_minutes)
        seen_starts: Set[DateTime] = set()
        slots: List[CandidateSlot] = []

        for window in start_windows:
            cursor = window.start

            while cursor < window.end:
                slot_start = cursor
                slot_end = slot_start.add(minutes=request.duration_minutes)
                cursor = cursor.add(minutes=request.step_minutes)

                if slot_start < earliest_start:
                    continue
                if slot_start in seen_starts:
                    continue
                if not is_fully_covered(slot_start, slot_end, all_windows):
                    continue
                if request.busy.overlaps_any(slot_start, slot_end):
                    continue

                seen_starts.add(slot_start)
                slots.append(CandidateSlot(start=slot_start, end=slot_end))

        slots.sort(key=lambda s: s.start)

        logger.debug(
            "Generated %d slot(s) from %d window(s) for %s (%d min, step %d)",
            len(slots),
            len(start_windows),
            as_date(request.target_date),
            request.duration_minutes,
            request.step_minutes,
        )
        return slots

    @staticmethod
    def _windows_opening_on(
        windows: Sequence[AbsoluteWindow],
        target_date: date
    ) -> List[AbsoluteWindow]:
        """Windows whose start lies on the target date (local calendar)."""
        day = as_date(target_date)
        return [w for w in windows if w.start.date() == day]
