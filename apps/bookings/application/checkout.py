"""
Checkout gate

Runs right before payment capture. Payment may only proceed when the
caller owns the booking, the booking still awaits payment and its
stored total agrees with current room prices.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging

from apps.bookings.application.lookup import authorize_booking_access
from apps.bookings.application.tokens import verification_tokens
from apps.bookings.domain.errors import ErrorCode
from apps.bookings.domain.pricing import PricedStay, PriceVerificationResult, verify_booking_amount
from apps.bookings.domain.status import BookingStatus, PaymentStatus
from apps.bookings.models import Booking
from apps.bookings.policy import get_service_charge_rate, get_tax_rate

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "You do not have permission to pay for this booking."
SESSION_EXPIRED_MESSAGE = "Your verification session has expired. Please look up your booking again."
PRICE_CHANGED_MESSAGE = (
    "The price for this booking has changed since it was created. "
    "Please review your booking before paying."
)


@dataclass(frozen=True)
class CheckoutResult:
    allowed: bool
    amount: Decimal | None = None
    currency: str | None = None
    error: str | None = None
    code: ErrorCode | None = None


def verify_stored_booking_amount(booking_id: int) -> PriceVerificationResult:
    """Recompute a booking's total from the room types' current prices."""
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        zero = Decimal("0")
        return PriceVerificationResult(
            valid=False,
            stored_total=zero,
            calculated_total=zero,
            difference=zero,
            percentage_diff=zero,
            reason="Booking not found",
        )

    stays = [
        PricedStay(check_in=item.check_in, check_out=item.check_out, unit_price=item.room_type.price)
        for item in booking.items.select_related("room_type")
    ]
    return verify_booking_amount(
        booking.total_amount,
        stays,
        get_tax_rate(),
        get_service_charge_rate(),
    )


def prepare_checkout(
    booking_id: int,
    session_email: str | None,
    verification_token: str | None,
    now: datetime | None = None,
) -> CheckoutResult:
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        return CheckoutResult(allowed=False, error=ACCESS_DENIED_MESSAGE, code=ErrorCode.ACCESS_DENIED)

    decision = authorize_booking_access(
        booking,
        session_email,
        verification_token,
        (verification_tokens,),
        now,
    )
    if not decision.allowed:
        if decision.expired:
            return CheckoutResult(allowed=False, error=SESSION_EXPIRED_MESSAGE, code=ErrorCode.TOKEN_EXPIRED)
        return CheckoutResult(allowed=False, error=ACCESS_DENIED_MESSAGE, code=ErrorCode.ACCESS_DENIED)

    if booking.payment_status == PaymentStatus.PAID:
        return CheckoutResult(
            allowed=False,
            error="This booking has already been paid.",
            code=ErrorCode.INVALID_STATE,
        )

    if booking.status != BookingStatus.PENDING:
        return CheckoutResult(
            allowed=False,
            error=f"Cannot pay for a booking with status {booking.get_status_display()}.",
            code=ErrorCode.INVALID_STATE,
        )

    verification = verify_stored_booking_amount(booking.pk)
    if not verification.valid:
        logger.warning(
            f"Price mismatch for booking {booking.reference}: stored {verification.stored_total}, "
            f"calculated {verification.calculated_total} ({verification.percentage_diff:.2f}%)"
        )
        return CheckoutResult(allowed=False, error=PRICE_CHANGED_MESSAGE, code=ErrorCode.PRICE_MISMATCH)

    return CheckoutResult(
        allowed=True,
        amount=booking.total_amount - booking.amount_paid,
        currency=booking.currency,
    )
