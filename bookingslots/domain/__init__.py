"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityWindowBuilder, is_date_bookable, is_fully_covered
from .busy_ranges import BusyRangeIndex, overlaps_any, required_busy_window
from .formatting import format_duration
from .models import AbsoluteWindow, AvailabilityRule, BusyRange, CandidateSlot, TimeRange
from .slot_generator import SlotGenerator, SlotRequest

__all__ = [
    "AbsoluteWindow",
    "AvailabilityRule",
    "AvailabilityWindowBuilder",
    "BusyRange",
    "BusyRangeIndex",
    "CandidateSlot",
    "SlotGenerator",
    "SlotRequest",
    "TimeRange",
    "format_duration",
    "is_date_bookable",
    "is_fully_covered",
    "overlaps_any",
    "required_busy_window",
]
