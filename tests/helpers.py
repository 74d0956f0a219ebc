"""
Shared helpers for the test suite.
"""

import pendulum

from bookingslots.domain.models import AvailabilityRule

TZ = "Europe/Stockholm"


def dt(value: str):
    """Parse ``YYYY-MM-DD HH:mm`` in the test timezone."""
    return pendulum.parse(value, tz=TZ)


def rule(weekday: int, start: str, end: str, is_active: bool = True) -> AvailabilityRule:
    return AvailabilityRule.parse(weekday, start, end, is_active)

