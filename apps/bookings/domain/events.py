"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits. They never
carry raw tokens.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A booking passed admission control and holds inventory

    Triggers:
    - Start the payment window (stale PENDING bookings expire)
    """
    booking_id: int
    reference: str
    room_type_ids: list[int]
    total_amount: Decimal


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """
    Event: Payment captured (PENDING -> CONFIRMED)

    Triggers:
    - Confirmation email with the lookup link
    """
    booking_id: int
    reference: str


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled and no longer holds inventory

    Triggers:
    - Refund processing
    - Cancellation email
    """
    booking_id: int
    reference: str
    reason: str
    refund_amount: Decimal
    cancellation_fee: Decimal
    old_status: str


@dataclass(kw_only=True)
class BookingExpired(DomainEvent):
    """Event: Unpaid PENDING booking expired (PENDING -> CANCELLED)"""
    booking_id: int
    reference: str
