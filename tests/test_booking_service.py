"""
Tests for the BookingService orchestration layer.
"""

import asyncio
from typing import Any, Dict, List

import pendulum
import pytest

from bookingslots.domain.busy_ranges import required_busy_window
from bookingslots.domain.exceptions import InsufficientBusyRange, InvalidArgument, ReservationConflict
from bookingslots.domain.models import BusyRange, CandidateSlot
from bookingslots.services.booking_service import BookingService

from .helpers import TZ, dt, rule

WEDNESDAY = pendulum.date(2024, 11, 27)


class StubDataSource:
    """Minimal stub matching BookingDataSourceProtocol."""

    def __init__(self, rules, busy: List[BusyRange]):
        self._rules = rules
        self._busy = busy
        self.calls: List[Any] = []

    async def get_availability_rules(self, resource_id):
        self.calls.append(("rules", resource_id))
        return self._rules

    async def get_busy_ranges(self, resource_id, start, end):
        self.calls.append(("busy", resource_id, start, end))
        return [b for b in self._busy if b.start < end and b.end > start]


class StubCommitter:
    """Records committed slots."""

    def __init__(self):
        self.committed: List[Dict[str, Any]] = []

    async def commit_reservation(self, resource_id, slot):
        record = {"id": f"r{len(self.committed) + 1}", "resource_id": resource_id, "slot": slot}
        self.committed.append(record)
        return record


def _build_service(busy=None):
    source = StubDataSource([rule(3, "09:00", "12:00")], busy or [])
    committer = StubCommitter()
    service = BookingService(data_source=source, reservation_committer=committer, timezone=TZ)
    return service, source, committer


def test_find_slots_uses_source_data_and_generator():
    """End-to-end call should yield generated slots."""
    busy = [BusyRange(start=dt("2024-11-27 10:00"), end=dt("2024-11-27 11:00"))]
    service, _, _ = _build_service(busy)

    slots = asyncio.run(
        service.find_slots(
            resource_id="tvattstuga",
            target_date=WEDNESDAY,
            duration_minutes=60,
            step_minutes=30,
            now=dt("2024-11-27 08:00"),
        )
    )

    assert [s.start for s in slots] == [dt("2024-11-27 09:00"), dt("2024-11-27 11:00")]


def test_busy_ranges_fetched_for_required_window_after_rules():
    """Rules first, then reservations for the full required window."""
    service, source, _ = _build_service()

    asyncio.run(
        service.find_slots(
            resource_id="tvattstuga",
            target_date=WEDNESDAY,
            duration_minutes=90,
            now=dt("2024-11-27 08:00"),
        )
    )

    window = required_busy_window(WEDNESDAY, 90, TZ)
    assert source.calls == [
        ("rules", "tvattstuga"),
        ("busy", "tvattstuga", window.start, window.end),
    ]


def test_invalid_duration_fails_before_fetching():
    service, source, _ = _build_service()

    with pytest.raises(InvalidArgument):
        asyncio.run(
            service.find_slots(
                resource_id="tvattstuga",
                target_date=WEDNESDAY,
                duration_minutes=0,
                now=dt("2024-11-27 08:00"),
            )
        )

    assert source.calls == []


def test_fetched_index_carries_query_window():
    service, _, _ = _build_service()

    index = asyncio.run(
        service.fetch_busy_ranges(resource_id="tvattstuga", target_date=WEDNESDAY, duration_minutes=60)
    )

    assert index.query_window == required_busy_window(WEDNESDAY, 60, TZ)


def test_calculate_slots_rejects_narrow_snapshot():
    """A snapshot for a different date cannot be used."""
    service, _, _ = _build_service()
    index = asyncio.run(
        service.fetch_busy_ranges(resource_id="tvattstuga", target_date=WEDNESDAY, duration_minutes=60)
    )

    with pytest.raises(InsufficientBusyRange):
        service.calculate_slots(
            rules=[rule(3, "09:00", "12:00")],
            busy=index,
            target_date=WEDNESDAY.add(days=7),
            duration_minutes=60,
            step_minutes=15,
            min_lead_minutes=5,
            now=dt("2024-11-27 08:00"),
        )


def test_book_commits_free_slot():
    service, _, committer = _build_service()
    slot = CandidateSlot(start=dt("2024-11-27 09:00"), end=dt("2024-11-27 10:00"))

    reservation = asyncio.run(service.book(resource_id="tvattstuga", slot=slot))

    assert reservation["id"] == "r1"
    assert committer.committed[0]["slot"] == slot


def test_book_rejects_slot_taken_meanwhile():
    """A reservation made after the slots were shown blocks the commit."""
    busy = [BusyRange(start=dt("2024-11-27 09:30"), end=dt("2024-11-27 10:30"))]
    service, _, committer = _build_service(busy)
    slot = CandidateSlot(start=dt("2024-11-27 09:00"), end=dt("2024-11-27 10:00"))

    with pytest.raises(ReservationConflict):
        asyncio.run(service.book(resource_id="tvattstuga", slot=slot))

    assert committer.committed == []


def test_bookable_days():
    """Only Wednesdays from today within the horizon."""
    service, _, _ = _build_service()

    days = asyncio.run(
        service.bookable_days(
            resource_id="tvattstuga",
            start=pendulum.date(2024, 11, 20),
            days=21,
            today=pendulum.date(2024, 11, 21),
        )
    )

    assert days == [pendulum.date(2024, 11, 27), pendulum.date(2024, 12, 4)]
