"""
Mock booking data source for running without a backend.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..config import AppConfig, ResourceConfig
from ..domain.exceptions import DataSourceError, ReservationConflict
from ..domain.models import AvailabilityRule, BusyRange, CandidateSlot

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_booking_data.json"


class MockBookingSource:
    """
    In-memory data source and reservation store.

    Availability rules come from the configured resources; existing
    reservations are loaded from a JSON file (mock_booking_data.json by
    default). Committed reservations are kept in memory only.
    """

    def __init__(self, config: AppConfig, data_file: Optional[Path] = None):
        """
        Initialize the mock source.

        Args:
            config: AppConfig providing resources and their availability
            data_file: Optional JSON file with existing reservations
        """
        self.config = config
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.reservations: List[Dict[str, Any]] = []
        self._load_reservations()

    def _load_reservations(self):
        """Load mock reservations from the JSON file."""
        if not self.data_file.exists():
            # Fallback to empty if file doesn't exist
            self.reservations = []
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise DataSourceError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        if not isinstance(data, list):
            raise DataSourceError(f"{self.data_file} must contain a list of reservations")

        self.reservations = data

    def _resource(self, resource_id: str) -> ResourceConfig:
        resource = self.config.find_resource(resource_id)
        if resource is None:
            raise DataSourceError(f"Unknown resource: {resource_id}")
        return resource

    async def get_availability_rules(self, resource_id: str) -> List[AvailabilityRule]:
        """Return the configured availability rules of a resource."""
        return self._resource(resource_id).rules()

    async def get_busy_ranges(
        self,
        resource_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[BusyRange]:
        """
        Return confirmed reservations of a resource overlapping ``[start, end)``.

        Cancelled and unparsable entries are skipped.
        """
        key = self._resource(resource_id).id
        busy: List[BusyRange] = []

        for entry in self.reservations:
            if entry.get("resourceId") != key or entry.get("status") == "cancelled":
                continue

            try:
                busy_start = pendulum.parse(entry["start"], tz=self.config.timezone)
                busy_end = pendulum.parse(entry["end"], tz=self.config.timezone)
                busy_range = BusyRange(start=busy_start, end=busy_end)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid mock reservation %r: %s", entry, exc)
                continue

            if busy_range.start < end and busy_range.end > start:
                busy.append(busy_range)

        return busy

    async def commit_reservation(self, resource_id: str, slot: CandidateSlot) -> Dict[str, Any]:
        """
        Store a reservation, rejecting it if it overlaps a confirmed one.

        Raises:
            ReservationConflict: If the slot overlaps an existing reservation
        """
        key = self._resource(resource_id).id
        existing = await self.get_busy_ranges(key, slot.start, slot.end)
        if existing:
            raise ReservationConflict(f"Slot {slot} is already booked for {key}")

        reservation = {
            "id": uuid.uuid4().hex,
            "resourceId": key,
            "start": slot.start.to_iso8601_string(),
            "end": slot.end.to_iso8601_string(),
            "status": "confirmed",
        }
        self.reservations.append(reservation)
        return reservation
