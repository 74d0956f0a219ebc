"""
Expansion of recurring weekly availability rules into absolute windows,
plus the coverage and calendar predicates built on top of them.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Set

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidArgument
from .models import AbsoluteWindow, AvailabilityRule

DEFAULT_TIMEZONE = "Europe/Stockholm"
DEFAULT_BOOKING_HORIZON_DAYS = 180


def as_date(value: date) -> Date:
    """Drop the time-of-day (if any) and return a pendulum Date."""
    if isinstance(value, datetime):
        value = value.date()
    return pendulum.date(value.year, value.month, value.day)


def start_of_day(value: date, timezone: str = DEFAULT_TIMEZONE) -> DateTime:
    """Midnight of the value's calendar date in the given timezone."""
    day = as_date(value)
    return pendulum.datetime(day.year, day.month, day.day, tz=timezone)


class AvailabilityWindowBuilder:
    """
    Materializes weekly availability rules onto concrete calendar dates.

    The scan always starts one day before the target date so that an
    overnight window opened the previous evening still covers the early
    morning of the target date.
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        self.timezone = timezone

    def build(
        self,
        rules: Sequence[AvailabilityRule],
        target_date: date,
        look_ahead_days: int
    ) -> List[AbsoluteWindow]:
        """
        Build absolute windows for every day offset in ``[-1, look_ahead_days]``.

        Args:
            rules: Availability rules of the resource (inactive ones are ignored)
            target_date: Requested calendar date; any time-of-day is discarded
            look_ahead_days: Number of days after the target date to include

        Returns:
            Windows sorted ascending by start
        """
        if look_ahead_days < 0:
            raise InvalidArgument(f"look_ahead_days must be >= 0, got {look_ahead_days}")

        base = start_of_day(target_date, self.timezone)
        windows: List[AbsoluteWindow] = []

        for offset in range(-1, look_ahead_days + 1):
            day = base.add(days=offset)
            weekday = day.isoweekday()

            for rule in rules:
                if not rule.is_active or rule.weekday != weekday:
                    continue
                windows.append(self._materialize(rule, day))

        windows.sort(key=lambda w: w.start)
        return windows

    def _materialize(self, rule: AvailabilityRule, day: DateTime) -> AbsoluteWindow:
        """Apply one rule to one day, normalizing full-day and overnight rules."""
        start = day.set(
            hour=rule.start_time.hour,
            minute=rule.start_time.minute,
            second=rule.start_time.second,
            microsecond=0
        )
        end = day.set(
            hour=rule.end_time.hour,
            minute=rule.end_time.minute,
            second=rule.end_time.second,
            microsecond=0
        )

        if rule.is_full_day or end <= start:
            end = end.add(days=1)

        return AbsoluteWindow(start=start, end=end)


def is_fully_covered(
    slot_start: DateTime,
    slot_end: DateTime,
    windows: Sequence[AbsoluteWindow]
) -> bool:
    """
    Check that every instant of ``[slot_start, slot_end)`` lies in some window.

    Walks a cursor from the slot start, jumping to the end of whichever
    window contains it. Adjacent windows whose edges touch give
    continuous coverage. Returns False as soon as a gap is found.
    """
    cursor = slot_start

    while cursor < slot_end:
        covering = next(
            (w for w in windows if w.start <= cursor < w.end),
            None
        )
        if covering is None:
            return False

        cursor = min(covering.end, slot_end)

    return True


def available_weekdays(rules: Iterable[AvailabilityRule]) -> Set[int]:
    """ISO weekdays that have at least one active rule."""
    return {rule.weekday for rule in rules if rule.is_active}


def is_date_bookable(
    day: date,
    rules: Sequence[AvailabilityRule],
    today: date,
    horizon_days: int = DEFAULT_BOOKING_HORIZON_DAYS
) -> bool:
    """
    Decide whether a calendar date may be picked at all.

    Past dates and dates beyond the booking horizon are never bookable;
    otherwise the date is bookable if its weekday has an active rule.
    """
    candidate = as_date(day)
    first = as_date(today)

    if candidate < first:
        return False
    if candidate > first + timedelta(days=horizon_days):
        return False

    return candidate.isoweekday() in available_weekdays(rules)


def month_grid(year: int, month: int) -> List[List[Optional[Date]]]:
    """
    Monday-first weeks covering a month, padded with None.

    Example (November 2024 starts on a Friday):
    [[None, None, None, None, 1, 2, 3], [4, ...], ...]
    """
    first = pendulum.date(year, month, 1)
    cells: List[Optional[Date]] = [None] * (first.isoweekday() - 1)
    cells.extend(first.add(days=offset) for offset in range(first.days_in_month))

    while len(cells) % 7:
        cells.append(None)

    return [cells[i:i + 7] for i in range(0, len(cells), 7)]
