"""
Domain-specific exception hierarchy for the booking slot engine.
"""


class BookingSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidArgument(BookingSlotsError, ValueError):
    """Raised when a generation parameter violates its precondition."""


class InvalidConfiguration(BookingSlotsError, ValueError):
    """Raised when availability rules or configuration data are malformed."""


class InsufficientBusyRange(BookingSlotsError):
    """Raised when a busy-range snapshot does not cover the required query window."""


class DataSourceError(BookingSlotsError):
    """Raised when availability or reservation data cannot be fetched or parsed."""


class ReservationConflict(BookingSlotsError):
    """Raised when a reservation would overlap an existing confirmed booking."""
