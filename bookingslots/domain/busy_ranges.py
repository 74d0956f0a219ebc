"""
Read-only view over a resource's confirmed reservations.
"""

import math
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from pendulum import DateTime

from .availability import DEFAULT_TIMEZONE, start_of_day
from .exceptions import InsufficientBusyRange, InvalidArgument
from .models import BusyRange, TimeRange

MINUTES_PER_DAY = 1440


def overlaps_any(
    slot_start: DateTime,
    slot_end: DateTime,
    busy_ranges: Iterable[TimeRange]
) -> bool:
    """
    Check whether ``[slot_start, slot_end)`` overlaps any busy range.

    Overlap: slot_start < busy.end and slot_end > busy.start
    """
    return any(slot_start < busy.end and slot_end > busy.start for busy in busy_ranges)


def required_busy_window(
    target_date: date,
    duration_minutes: int,
    timezone: str = DEFAULT_TIMEZONE
) -> TimeRange:
    """
    Minimum span a busy-range snapshot must cover for one generation call.

    From the start of the day before ``target_date`` up to the start of the
    day ``ceil(duration / 1440) + 2`` days after it. A slot may start as
    late as the end of a window opened on the target date, which is up to
    two days after its midnight, so the span reaches every reservation a
    candidate could touch.
    """
    if duration_minutes <= 0:
        raise InvalidArgument(f"duration_minutes must be greater than zero, got {duration_minutes}")

    base = start_of_day(target_date, timezone)
    extra_days = math.ceil(duration_minutes / MINUTES_PER_DAY)

    return TimeRange(start=base.subtract(days=1), end=base.add(days=extra_days + 2))


class BusyRangeIndex:
    """
    Immutable snapshot of confirmed reservations for one resource.

    ``query_window`` records the span the snapshot was fetched for. When
    known, callers can verify that it is wide enough before trusting an
    absence of conflicts.
    """

    def __init__(
        self,
        ranges: Iterable[BusyRange] = (),
        query_window: Optional[TimeRange] = None
    ):
        self._ranges: Tuple[BusyRange, ...] = tuple(sorted(ranges, key=lambda r: r.start))
        self.query_window = query_window

    @property
    def ranges(self) -> Tuple[BusyRange, ...]:
        return self._ranges

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self):
        return iter(self._ranges)

    def overlaps_any(self, start: DateTime, end: DateTime) -> bool:
        """Check whether ``[start, end)`` collides with a reservation."""
        return overlaps_any(start, end, self._ranges)

    def conflicts(self, start: DateTime, end: DateTime) -> List[BusyRange]:
        """Return the reservations overlapping ``[start, end)``."""
        return [busy for busy in self._ranges if start < busy.end and end > busy.start]

    def covers(self, start: DateTime, end: DateTime) -> bool:
        """Check whether the snapshot's query window spans ``[start, end]``."""
        if self.query_window is None:
            return True
        return self.query_window.start <= start and end <= self.query_window.end

    def ensure_covers(self, start: DateTime, end: DateTime) -> None:
        """
        Raises:
            InsufficientBusyRange: If the known query window is too narrow
        """
        if not self.covers(start, end):
            raise InsufficientBusyRange(
                f"Busy ranges were fetched for {self.query_window}, "
                f"but {start.format('DD.MM.YYYY HH:mm')} - {end.format('DD.MM.YYYY HH:mm')} is required"
            )

    @classmethod
    def from_pairs(
        cls,
        pairs: Sequence[Tuple[DateTime, DateTime]],
        query_window: Optional[TimeRange] = None
    ) -> "BusyRangeIndex":
        """Build an index from raw ``(start, end)`` instant pairs."""
        return cls(
            (BusyRange(start=start, end=end) for start, end in pairs),
            query_window=query_window
        )
