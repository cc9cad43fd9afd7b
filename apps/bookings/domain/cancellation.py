"""
Cancellation policy

Decides whether a booking may be cancelled and how the paid amount is
split between refund and fee. Current time is always passed in.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from apps.bookings.domain.pricing import to_decimal
from apps.bookings.domain.status import BookingStatus, is_terminal


@dataclass(frozen=True)
class CancellationPolicy:
    """
    Time-window cancellation policy

    free_cancellation_hours: cancelling at least this many hours before
        check-in is free
    cancellation_fee_percent: share of the amount kept as a fee
        otherwise (0-100)
    """
    free_cancellation_hours: float = 48
    cancellation_fee_percent: Decimal = Decimal("50")


DEFAULT_CANCELLATION_POLICY = CancellationPolicy()


@dataclass(frozen=True)
class CanCancelResult:
    can_cancel: bool
    reason: str | None = None


@dataclass(frozen=True)
class CancellationFee:
    refund_amount: Decimal
    fee: Decimal
    is_free_cancellation: bool
    hours_until_check_in: float


TERMINAL_REASONS = {
    BookingStatus.CANCELLED: "This booking has already been cancelled",
    BookingStatus.COMPLETED: "Cannot cancel a booking that has already been completed",
}


def can_cancel_booking(status: str, is_checked_in: bool = False) -> CanCancelResult:
    if is_terminal(status):
        return CanCancelResult(False, TERMINAL_REASONS.get(status, "This booking can no longer be cancelled"))

    if is_checked_in:
        return CanCancelResult(False, "Cannot cancel a booking that has already been checked in")

    return CanCancelResult(True)


def calculate_hours_between(start: datetime, end: datetime) -> float:
    """Hours from ``start`` to ``end``; negative when ``end`` is earlier."""
    return (end - start).total_seconds() / 3600


def is_within_free_cancellation_window(hours_until_check_in: float, free_cancellation_hours: float) -> bool:
    return hours_until_check_in >= free_cancellation_hours


def calculate_cancellation_fee(
    amount,
    check_in: datetime,
    cancelled_at: datetime,
    policy: CancellationPolicy = DEFAULT_CANCELLATION_POLICY,
) -> CancellationFee:
    amount = to_decimal(amount)
    hours_until_check_in = calculate_hours_between(cancelled_at, check_in)

    if is_within_free_cancellation_window(hours_until_check_in, policy.free_cancellation_hours):
        return CancellationFee(
            refund_amount=amount,
            fee=Decimal("0"),
            is_free_cancellation=True,
            hours_until_check_in=hours_until_check_in,
        )

    fee = amount * to_decimal(policy.cancellation_fee_percent) / 100
    return CancellationFee(
        refund_amount=max(Decimal("0"), amount - fee),
        fee=fee,
        is_free_cancellation=False,
        hours_until_check_in=hours_until_check_in,
    )


def describe_cancellation_policy(policy: CancellationPolicy = DEFAULT_CANCELLATION_POLICY) -> str:
    hours = f"{policy.free_cancellation_hours:g}"
    return (
        f"Free cancellation up to {hours} hours before check-in. "
        f"Cancellations within {hours} hours of check-in will incur a "
        f"{to_decimal(policy.cancellation_fee_percent):f}% cancellation fee."
    )
