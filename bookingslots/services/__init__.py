"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import BookingDataSourceProtocol, BookingService, ReservationCommitProtocol

__all__ = ["BookingDataSourceProtocol", "BookingService", "ReservationCommitProtocol"]
