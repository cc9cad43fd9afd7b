"""
Stale booking expiration rules

A PENDING booking that was never paid stops holding inventory once it
is older than the hold timeout. Partially paid bookings are never
expired automatically.
"""

from datetime import datetime, timedelta
from typing import Iterable, Protocol

from apps.bookings.domain.status import BookingStatus, PaymentStatus

EXPIRATION_THRESHOLD = timedelta(minutes=30)


class ExpirableBooking(Protocol):
    id: int
    status: str
    payment_status: str
    created_at: datetime


def calculate_expiration_cutoff(now: datetime, threshold: timedelta = EXPIRATION_THRESHOLD) -> datetime:
    return now - threshold


def is_eligible_for_expiration(status: str, payment_status: str, created_at: datetime, cutoff: datetime) -> bool:
    if status != BookingStatus.PENDING:
        return False
    if payment_status != PaymentStatus.UNPAID:
        return False
    return created_at < cutoff


def filter_eligible_bookings(bookings: Iterable[ExpirableBooking], cutoff: datetime) -> list[int]:
    return [
        booking.id
        for booking in bookings
        if is_eligible_for_expiration(booking.status, booking.payment_status, booking.created_at, cutoff)
    ]
