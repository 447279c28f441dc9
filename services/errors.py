"""
Booking error taxonomy.

Everything a booking or cancel call can fail with is a ``BookingError`` and
maps onto one HTTP status. Store-level signals (``StoreConflict``,
``StoreUnavailable``) are kept outside that family: the engine translates a
conflict into the caller-facing error, and an unavailable store is an
infrastructure failure the client should retry later.
"""


class BookingError(Exception):
    status_code = 400
    code = "BOOKING_ERROR"
    message = "Booking request failed"

    def __init__(self, message=None, slot_id=None):
        self.message = message or self.message
        self.slot_id = slot_id
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class SlotNotFound(BookingError):
    status_code = 404
    code = "SLOT_NOT_FOUND"
    message = "Slot not found"


class AlreadyBooked(BookingError):
    """Lost race or stale listing; re-list availability instead of retrying."""

    status_code = 409
    code = "ALREADY_BOOKED"
    message = "Slot already booked"


class NotBooked(BookingError):
    status_code = 409
    code = "NOT_BOOKED"
    message = "Slot has no active booking"


class Forbidden(BookingError):
    status_code = 403
    code = "FORBIDDEN"
    message = "You can only cancel your own bookings"


class Unauthenticated(BookingError):
    status_code = 401
    code = "UNAUTHENTICATED"
    message = "Authentication required"


class StoreConflict(Exception):
    """The slot was not in the expected state when the transition ran."""

    def __init__(self, slot_id, expected_status):
        self.slot_id = slot_id
        self.expected_status = expected_status
        super().__init__(f"slot {slot_id} is not {expected_status}")


class StoreUnavailable(Exception):
    status_code = 503
    code = "STORE_UNAVAILABLE"

    def __init__(self, message="Booking storage unavailable, try again later"):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class DuplicateSlot(ValueError):
    """A seeded slot already exists (same id, or same date, time and court)."""
