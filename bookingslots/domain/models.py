"""
Domain models for availability rules, time ranges and bookable slots.
"""

from dataclasses import dataclass
from datetime import time
from typing import Union

from pendulum import DateTime

from .exceptions import InvalidConfiguration
from .formatting import format_duration, format_time_range, weekday_name

TimeLike = Union[str, time]


def parse_time_of_day(value: TimeLike) -> time:
    """
    Parse a local time-of-day given as ``HH:MM`` or ``HH:MM:SS``.

    Raises:
        InvalidConfiguration: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None)

    try:
        return time.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid time of day: {value!r}") from exc


@dataclass(frozen=True)
class AvailabilityRule:
    """
    A recurring weekly window during which a resource may be booked.

    ``weekday`` follows the ISO convention (1=Monday, 7=Sunday).
    A rule whose start equals its end spans a full 24 hours; a rule whose
    end lies before its start crosses midnight into the next day.
    """
    weekday: int
    start_time: time
    end_time: time
    is_active: bool = True

    def __post_init__(self):
        if not 1 <= self.weekday <= 7:
            raise InvalidConfiguration(
                f"Weekday must be between 1 (Monday) and 7 (Sunday), got {self.weekday}"
            )

    @classmethod
    def parse(
        cls,
        weekday: int,
        start_time: TimeLike,
        end_time: TimeLike,
        is_active: bool = True
    ) -> "AvailabilityRule":
        """Build a rule from raw record values (time strings as stored by the backend)."""
        try:
            weekday_number = int(weekday)
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"Invalid weekday: {weekday!r}") from exc

        return cls(
            weekday=weekday_number,
            start_time=parse_time_of_day(start_time),
            end_time=parse_time_of_day(end_time),
            is_active=bool(is_active),
        )

    @property
    def is_full_day(self) -> bool:
        return self.start_time == self.end_time

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another (touching ranges do not)."""
        return self.start < other.end and self.end > other.start

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant lies inside the range."""
        return self.start <= instant < self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('DD.MM.YYYY HH:mm')}"


@dataclass(frozen=True)
class AbsoluteWindow(TimeRange):
    """An availability rule materialized onto one concrete calendar date."""


@dataclass(frozen=True)
class BusyRange(TimeRange):
    """The span of an existing confirmed reservation."""


@dataclass(frozen=True)
class CandidateSlot(TimeRange):
    """
    A bookable start/end pair of the requested duration.
    """

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Veckodag, DD.MM.YYYY | HH:MM – HH:MM (varaktighet)
        """
        date_str = self.start.format("DD.MM.YYYY")
        duration = format_duration(self.duration_minutes())

        return (
            f"{weekday_name(self.start)}, {date_str} | "
            f"{format_time_range(self.start, self.end)} ({duration})"
        )
