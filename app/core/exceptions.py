"""
Errors raised while creating or reading reservations.

``BookingRejected`` subclasses are business-rule rejections the client can act
on (HTTP 400). ``PersistenceError`` means the storage layer failed (HTTP 500);
its message is never shown to the client.
"""


class ReservationError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BookingRejected(ReservationError):
    """Base class for rejections reported back to the client."""
    status_code = 400


class ValidationError(BookingRejected):
    """A required field is missing or malformed."""


class SlotInPast(BookingRejected):
    """The requested date and hour are already behind us."""


class SlotOutOfRange(BookingRejected):
    """The service would run past the end of the bookable day."""


class SlotOverlap(BookingRejected):
    """The requested hours collide with a reservation starting at another hour."""

    def __init__(self, message: str, conflicting_time: str = None, conflicting_service: str = None):
        super().__init__(message)
        self.conflicting_time = conflicting_time
        self.conflicting_service = conflicting_service


class SlotFull(BookingRejected):
    """The exact (date, time) pair already holds as many reservations as allowed."""


class PersistenceError(ReservationError):
    """Storage unavailable or a read/write failed."""
    status_code = 500
