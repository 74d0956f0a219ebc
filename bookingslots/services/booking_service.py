"""
Application services for finding and booking resource slots.

The service coordinates fetching availability rules and reservations via a
data-source adapter and delegates the actual slot generation to the
domain-level ``SlotGenerator``. Committing a chosen slot is handed to a
reservation adapter, which must itself reject overlaps at write time.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import Date, DateTime

from ..domain.availability import DEFAULT_BOOKING_HORIZON_DAYS, DEFAULT_TIMEZONE, as_date, is_date_bookable
from ..domain.busy_ranges import BusyRangeIndex, required_busy_window
from ..domain.exceptions import ReservationConflict
from ..domain.models import AvailabilityRule, BusyRange, CandidateSlot
from ..domain.slot_generator import (
    DEFAULT_MIN_LEAD_MINUTES,
    DEFAULT_STEP_MINUTES,
    SlotGenerator,
    SlotRequest,
)

logger = logging.getLogger(__name__)


class BookingDataSourceProtocol(Protocol):
    """Protocol describing the data access needed by the service."""

    async def get_availability_rules(self, resource_id: str) -> List[AvailabilityRule]:
        """Return the weekly availability rules of a resource."""

    async def get_busy_ranges(
        self,
        resource_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[BusyRange]:
        """Return confirmed reservations overlapping ``[start, end)``."""


class ReservationCommitProtocol(Protocol):
    """Protocol for persisting a chosen slot as a reservation."""

    async def commit_reservation(self, resource_id: str, slot: CandidateSlot) -> Dict[str, Any]:
        """Persist the reservation, rejecting overlaps with ReservationConflict."""


class BookingService:
    """
    Orchestrates data retrieval, slot generation and reservation commits.

    Dependency inversion toward protocols makes it easy to plug in the REST
    adapter or the mock implementation in tests.
    """

    def __init__(
        self,
        data_source: BookingDataSourceProtocol,
        reservation_committer: ReservationCommitProtocol,
        slot_generator: Optional[SlotGenerator] = None,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        booking_horizon_days: int = DEFAULT_BOOKING_HORIZON_DAYS,
    ) -> None:
        self._data_source = data_source
        self._committer = reservation_committer
        self._slot_generator = slot_generator or SlotGenerator()
        self.timezone = timezone
        self.booking_horizon_days = booking_horizon_days

    async def find_slots(
        self,
        *,
        resource_id: str,
        target_date: date,
        duration_minutes: int,
        step_minutes: int = DEFAULT_STEP_MINUTES,
        min_lead_minutes: int = DEFAULT_MIN_LEAD_MINUTES,
        now: Optional[DateTime] = None,
    ) -> List[CandidateSlot]:
        """
        Retrieve rules and reservations, then compute the bookable slots.

        Reservations are fetched after the rules, right before generation,
        to keep the snapshot as fresh as possible.
        """
        # Fail on a bad duration before doing any I/O
        required_busy_window(target_date, duration_minutes, self.timezone)

        rules = await self._data_source.get_availability_rules(resource_id)
        busy = await self.fetch_busy_ranges(
            resource_id=resource_id,
            target_date=target_date,
            duration_minutes=duration_minutes,
        )

        return self.calculate_slots(
            rules=rules,
            busy=busy,
            target_date=target_date,
            duration_minutes=duration_minutes,
            step_minutes=step_minutes,
            min_lead_minutes=min_lead_minutes,
            now=now or pendulum.now(self.timezone),
        )

    async def fetch_busy_ranges(
        self,
        *,
        resource_id: str,
        target_date: date,
        duration_minutes: int,
    ) -> BusyRangeIndex:
        """Fetch reservations for the window a generation call needs."""
        window = required_busy_window(target_date, duration_minutes, self.timezone)

        ranges = await self._data_source.get_busy_ranges(
            resource_id,
            window.start,
            window.end,
        )
        logger.debug("Fetched %d busy range(s) for %s in %s", len(ranges), resource_id, window)

        return BusyRangeIndex(ranges, query_window=window)

    def calculate_slots(
        self,
        *,
        rules: Sequence[AvailabilityRule],
        busy: BusyRangeIndex,
        target_date: date,
        duration_minutes: int,
        step_minutes: int,
        min_lead_minutes: int,
        now: DateTime,
    ) -> List[CandidateSlot]:
        """Generate slots from already fetched data."""
        request = SlotRequest(
            rules=rules,
            busy=busy,
            target_date=target_date,
            duration_minutes=duration_minutes,
            step_minutes=step_minutes,
            min_lead_minutes=min_lead_minutes,
            now=now,
            timezone=self.timezone,
        )
        return self._slot_generator.generate(request)

    async def bookable_days(
        self,
        *,
        resource_id: str,
        start: date,
        days: int,
        today: Optional[date] = None,
    ) -> List[Date]:
        """Return the dates in ``[start, start + days)`` a user may pick."""
        rules = await self._data_source.get_availability_rules(resource_id)
        first = as_date(start)
        current_day = as_date(today) if today is not None else pendulum.today(self.timezone).date()

        candidates = (first.add(days=offset) for offset in range(days))
        return [
            day for day in candidates
            if is_date_bookable(day, rules, current_day, self.booking_horizon_days)
        ]

    async def book(self, *, resource_id: str, slot: CandidateSlot) -> Dict[str, Any]:
        """
        Commit a chosen slot.

        Re-checks the slot against a fresh reservation snapshot first. This
        narrows, but does not close, the race with competing bookings; the
        committer's own write-time check is authoritative.

        Raises:
            ReservationConflict: If the slot collides with a reservation
        """
        fresh = await self._data_source.get_busy_ranges(resource_id, slot.start, slot.end)
        conflicts = BusyRangeIndex(fresh).conflicts(slot.start, slot.end)

        if conflicts:
            raise ReservationConflict(
                f"Slot {slot} overlaps {len(conflicts)} existing reservation(s), "
                f"first at {conflicts[0]}"
            )

        reservation = await self._committer.commit_reservation(resource_id, slot)
        logger.info("Booked %s for %s", slot, resource_id)
        return reservation
