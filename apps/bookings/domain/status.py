"""
Booking lifecycle states

The holding set (statuses whose items occupy inventory) is defined here
once and reused by the availability query, admission control,
cancellation release and stale-booking expiration.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class BookingStatus(models.TextChoices):
    """
    Booking lifecycle

    State transitions:
    - PENDING -> CONFIRMED (payment captured)
    - PENDING -> CANCELLED (guest cancelled or hold expired)
    - CONFIRMED -> CANCELLED (guest cancelled)
    - CONFIRMED -> COMPLETED (guest checked out)

    CANCELLED and COMPLETED are terminal.
    """
    PENDING = "PENDING", _("Pending")
    CONFIRMED = "CONFIRMED", _("Confirmed")
    CANCELLED = "CANCELLED", _("Cancelled")
    COMPLETED = "COMPLETED", _("Completed")


class PaymentStatus(models.TextChoices):
    UNPAID = "UNPAID", _("Unpaid")
    PARTIALLY_PAID = "PARTIALLY_PAID", _("Partially paid")
    PAID = "PAID", _("Paid")
    EXPIRED = "EXPIRED", _("Expired")
    REFUNDED = "REFUNDED", _("Refunded")


HOLDING_STATUSES: frozenset[str] = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
})

TERMINAL_STATUSES: frozenset[str] = frozenset({
    BookingStatus.CANCELLED,
    BookingStatus.COMPLETED,
})


def is_reservation_holding(status: str) -> bool:
    """True if a booking in this status occupies room-type capacity."""
    return status in HOLDING_STATUSES


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES
