"""
Tests for the mock booking source.
"""

import asyncio
import json

import pytest

from bookingslots.adapters.mock_booking_source import MockBookingSource
from bookingslots.config import AppConfig
from bookingslots.domain.exceptions import DataSourceError, ReservationConflict
from bookingslots.domain.models import CandidateSlot

from .helpers import dt

RESERVATIONS = [
    {"resourceId": "tvattstuga", "start": "2024-11-27T10:00:00", "end": "2024-11-27T11:00:00", "status": "confirmed"},
    {"resourceId": "tvattstuga", "start": "2024-11-27T13:00:00", "end": "2024-11-27T14:00:00", "status": "cancelled"},
    {"resourceId": "tvattstuga", "start": "not a date", "end": "2024-11-27T14:00:00", "status": "confirmed"},
    {"resourceId": "festlokal", "start": "2024-11-27T10:00:00", "end": "2024-11-27T11:00:00", "status": "confirmed"},
]


@pytest.fixture
def config():
    return AppConfig(
        resources=[
            {
                "id": "tvattstuga",
                "name": "Tvättstuga",
                "availability": [{"weekday": 3, "start_time": "09:00", "end_time": "12:00"}],
            },
            {"id": "festlokal", "name": "Festlokal"},
        ]
    )


@pytest.fixture
def source(config, tmp_path):
    data_file = tmp_path / "bookings.json"
    data_file.write_text(json.dumps(RESERVATIONS), encoding="utf-8")
    return MockBookingSource(config=config, data_file=data_file)


class TestMockBookingSource:
    """Tests for MockBookingSource."""

    def test_rules_come_from_config(self, source):
        rules = asyncio.run(source.get_availability_rules("Tvättstuga"))

        assert len(rules) == 1
        assert rules[0].weekday == 3

    def test_busy_ranges_skip_cancelled_and_invalid(self, source):
        busy = asyncio.run(
            source.get_busy_ranges("tvattstuga", dt("2024-11-27 00:00"), dt("2024-11-28 00:00"))
        )

        assert [(b.start, b.end) for b in busy] == [(dt("2024-11-27 10:00"), dt("2024-11-27 11:00"))]

    def test_busy_ranges_filtered_by_window(self, source):
        busy = asyncio.run(
            source.get_busy_ranges("tvattstuga", dt("2024-11-27 11:00"), dt("2024-11-27 12:00"))
        )

        assert busy == []

    def test_unknown_resource(self, source):
        with pytest.raises(DataSourceError):
            asyncio.run(source.get_availability_rules("bastu"))

    def test_commit_stores_reservation(self, source):
        slot = CandidateSlot(start=dt("2024-11-27 11:00"), end=dt("2024-11-27 12:00"))

        reservation = asyncio.run(source.commit_reservation("tvattstuga", slot))
        busy = asyncio.run(
            source.get_busy_ranges("tvattstuga", dt("2024-11-27 11:00"), dt("2024-11-27 12:00"))
        )

        assert reservation["status"] == "confirmed"
        assert reservation["resourceId"] == "tvattstuga"
        assert [(b.start, b.end) for b in busy] == [(slot.start, slot.end)]

    def test_commit_rejects_overlap(self, source):
        """The write-time guard rejects double bookings."""
        slot = CandidateSlot(start=dt("2024-11-27 10:30"), end=dt("2024-11-27 11:30"))

        with pytest.raises(ReservationConflict):
            asyncio.run(source.commit_reservation("tvattstuga", slot))

    def test_missing_file_means_no_reservations(self, config, tmp_path):
        source = MockBookingSource(config=config, data_file=tmp_path / "none.json")

        assert source.reservations == []

    def test_invalid_json(self, config, tmp_path):
        data_file = tmp_path / "bookings.json"
        data_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(DataSourceError):
            MockBookingSource(config=config, data_file=data_file)

    def test_bundled_data_loads(self, config):
        source = MockBookingSource(config=config)

        assert source.reservations
