"""
Adapters layer - Booking data service integrations.
"""

from .mock_booking_source import MockBookingSource
from .rest_client import RestBookingClient

__all__ = ["MockBookingSource", "RestBookingClient"]
