"""
REST client for the booking data service (PostgREST-style API).
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pendulum
import requests
from pendulum import DateTime

from ..config import BackendConfig
from ..domain.exceptions import DataSourceError, InvalidConfiguration, ReservationConflict
from ..domain.models import AvailabilityRule, BusyRange, CandidateSlot

logger = logging.getLogger(__name__)


class RestBookingClient:
    """
    Client for the booking tables of the organization data service.

    Reads availability rules from ``booking_product_availability`` and
    confirmed reservations from ``bookings``; commits insert into
    ``bookings``. The service enforces overlap rejection at write time
    and answers with HTTP 409 on conflict.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        backend: BackendConfig,
        timezone: str = "Europe/Stockholm",
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the REST client.

        Args:
            backend: Connection settings (base URL, API key, member ids)
            timezone: IANA timezone used for returned instants
            session: Optional requests session (for connection reuse and tests)
        """
        self.backend = backend
        self.timezone = timezone
        self.session = session or requests.Session()
        self.headers = {
            "apikey": backend.api_key,
            "Authorization": f"Bearer {backend.api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, table: str) -> str:
        return f"{self.backend.url}{self.REST_PATH}/{table}"

    def _get_rows(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            response = self.session.get(
                self._url(table),
                headers=self.headers,
                params=params,
                timeout=self.backend.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise DataSourceError(f"Failed to fetch {table} from booking service: {e}") from e
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from booking service ({table}): {e}") from e

        if not isinstance(data, list):
            raise DataSourceError(f"Unexpected response for {table}: expected a list of rows")

        return data

    def fetch_availability_rules(self, resource_id: str) -> List[AvailabilityRule]:
        """
        Fetch the weekly availability rules of a resource.

        Rows without start or end time are ignored.

        Raises:
            DataSourceError: If the request fails
            InvalidConfiguration: If a row holds a malformed time or weekday
        """
        rows = self._get_rows(
            "booking_product_availability",
            {
                "product_id": f"eq.{resource_id}",
                "select": "weekday,start_time,end_time,is_active",
            }
        )

        rules: List[AvailabilityRule] = []
        for row in rows:
            if not row.get("start_time") or not row.get("end_time"):
                logger.warning("Skipping availability row without times: %r", row)
                continue

            try:
                rules.append(
                    AvailabilityRule.parse(
                        weekday=row["weekday"],
                        start_time=row["start_time"],
                        end_time=row["end_time"],
                        is_active=row.get("is_active", True),
                    )
                )
            except KeyError as e:
                raise InvalidConfiguration(f"Availability row is missing {e}: {row!r}") from e

        return rules

    def fetch_busy_ranges(
        self,
        resource_id: str,
        start: DateTime,
        end: DateTime
    ) -> List[BusyRange]:
        """
        Fetch non-cancelled reservations overlapping ``[start, end)``.

        Raises:
            DataSourceError: If the request fails
        """
        rows = self._get_rows(
            "bookings",
            {
                "product_id": f"eq.{resource_id}",
                "status": "neq.cancelled",
                "start_at": f"lt.{end.in_timezone('UTC').to_iso8601_string()}",
                "end_at": f"gt.{start.in_timezone('UTC').to_iso8601_string()}",
                "select": "start_at,end_at",
            }
        )

        busy: List[BusyRange] = []
        for row in rows:
            try:
                busy.append(
                    BusyRange(
                        start=self._parse_datetime(row["start_at"]),
                        end=self._parse_datetime(row["end_at"]),
                    )
                )
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unparsable booking row %r: %s", row, e)
                continue

        return busy

    def create_reservation(self, resource_id: str, slot: CandidateSlot) -> Dict[str, Any]:
        """
        Insert a confirmed reservation for a slot.

        Raises:
            ReservationConflict: If the service rejects the overlap (HTTP 409)
            DataSourceError: If the request fails otherwise
        """
        payload = {
            "product_id": resource_id,
            "membership_id": self.backend.membership_id or None,
            "created_by": self.backend.user_id or None,
            "start_at": slot.start.in_timezone("UTC").to_iso8601_string(),
            "end_at": slot.end.in_timezone("UTC").to_iso8601_string(),
            "status": "confirmed",
        }

        try:
            response = self.session.post(
                self._url("bookings"),
                headers={**self.headers, "Prefer": "return=representation"},
                json=payload,
                timeout=self.backend.timeout
            )
        except requests.exceptions.RequestException as e:
            raise DataSourceError(f"Failed to create booking: {e}") from e

        if response.status_code == 409:
            raise ReservationConflict(f"Slot {slot} was booked by someone else")

        try:
            response.raise_for_status()
            rows = response.json()
        except requests.exceptions.RequestException as e:
            raise DataSourceError(f"Failed to create booking: {e}") from e
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from booking service: {e}") from e

        return rows[0] if isinstance(rows, list) and rows else payload

    def _parse_datetime(self, datetime_str: str) -> DateTime:
        """Parse an ISO 8601 timestamp into the configured timezone."""
        dt = pendulum.parse(datetime_str)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {datetime_str}")

    # Async protocol methods; blocking HTTP runs in a worker thread.

    async def get_availability_rules(self, resource_id: str) -> List[AvailabilityRule]:
        return await asyncio.to_thread(self.fetch_availability_rules, resource_id)

    async def get_busy_ranges(
        self,
        resource_id: str,
        start: DateTime,
        end: DateTime
    ) -> List[BusyRange]:
        return await asyncio.to_thread(self.fetch_busy_ranges, resource_id, start, end)

    async def commit_reservation(self, resource_id: str, slot: CandidateSlot) -> Dict[str, Any]:
        return await asyncio.to_thread(self.create_reservation, resource_id, slot)
