"""
Booking error hierarchy.

Every failure the scheduling core reports is one of these, so a transport
layer can map each kind to its own external signal.
"""


class BookingError(Exception):
    """Base class for all booking errors."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(BookingError):
    """Referenced barber, service, user or appointment does not exist."""

    status_code = 404


class Conflict(BookingError):
    """Requested slot is already taken."""

    status_code = 409


class InvalidTransition(BookingError):
    """Status change not allowed from the appointment's current state."""

    status_code = 409


class Unauthorized(BookingError):
    """Actor lacks permission for the requested mutation."""

    status_code = 403


class ValidationError(BookingError):
    """Malformed input: bad duration, rating out of range, end <= start."""

    status_code = 422
