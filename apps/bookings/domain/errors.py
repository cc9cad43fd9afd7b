"""
Booking error taxonomy

Operations in this app report failures as result objects carrying an
``ErrorCode``. ``BookingConflictError`` is the one exception raised on
purpose: it aborts the admission transaction so that nothing is
committed, and is turned into a result at the handler boundary.
"""

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    AVAILABILITY_CHANGED = "AVAILABILITY_CHANGED"
    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_STATE = "INVALID_STATE"
    PRICE_MISMATCH = "PRICE_MISMATCH"


class BookingConflictError(Exception):
    """Raised inside the admission transaction when capacity is exhausted."""

    def __init__(self, room_type_names: list[str]):
        self.room_type_names = room_type_names
        super().__init__(
            f"No units left for: {', '.join(room_type_names)}"
        )
