"""
Booking Lookup

Guests without an account find their booking either by reference plus
email or by a lookup token. Every failure looks the same to the caller
so that references cannot be probed.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Sequence
import hmac
import logging

from django.db.models import Prefetch
from django.utils import timezone

from apps.bookings.application.tokens import TokenService, lookup_tokens, verification_tokens
from apps.bookings.domain.cancellation import describe_cancellation_policy
from apps.bookings.domain.pricing import calculate_nights
from apps.bookings.models import Booking, BookingItem
from apps.bookings.policy import get_cancellation_policy

logger = logging.getLogger(__name__)

LOOKUP_ERROR_MESSAGE = "No booking found with that reference and email combination."


@dataclass(frozen=True)
class BookingItemDetails:
    room_type_id: int
    room_type_name: str
    property_name: str
    property_location: str
    check_in: date
    check_out: date
    nights: int
    price_per_night: Decimal
    guests: int


@dataclass(frozen=True)
class PolicyDetails:
    title: str
    description: str


@dataclass(frozen=True)
class BookingDetails:
    id: int
    reference: str
    status: str
    payment_status: str
    guest_first_name: str
    guest_last_name: str
    guest_email: str
    guest_phone: str
    special_requests: str
    subtotal: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    currency: str
    created_at: datetime
    cancelled_at: datetime | None
    cancellation_reason: str
    refund_amount: Decimal | None
    cancellation_fee: Decimal | None
    cancellation_policy: str
    items: list[BookingItemDetails] = field(default_factory=list)
    policies: list[PolicyDetails] = field(default_factory=list)


@dataclass(frozen=True)
class TokenLookupResult:
    booking: BookingDetails | None
    expired: bool = False


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    expired: bool = False


def emails_match(candidate: str | None, expected: str | None) -> bool:
    """Case-insensitive comparison in constant time."""
    left = (candidate or "").strip().lower().encode("utf-8")
    right = (expected or "").strip().lower().encode("utf-8")
    return hmac.compare_digest(left, right) and bool(right)


def _details_queryset():
    items = BookingItem.objects.select_related("room_type__property").prefetch_related(
        "room_type__property__policies"
    )
    return Booking.objects.prefetch_related(Prefetch("items", queryset=items))


def _to_details(booking: Booking) -> BookingDetails:
    items: list[BookingItemDetails] = []
    policies: list[PolicyDetails] = []
    seen_properties: set[int] = set()

    for item in booking.items.all():
        room_type = item.room_type
        property_obj = room_type.property
        items.append(BookingItemDetails(
            room_type_id=room_type.pk,
            room_type_name=room_type.name,
            property_name=property_obj.name,
            property_location=property_obj.location,
            check_in=item.check_in,
            check_out=item.check_out,
            nights=calculate_nights(item.check_in, item.check_out),
            price_per_night=item.price_per_night,
            guests=item.guests,
        ))
        if property_obj.pk not in seen_properties:
            seen_properties.add(property_obj.pk)
            policies.extend(
                PolicyDetails(title=policy.title, description=policy.description)
                for policy in property_obj.policies.all()
            )

    return BookingDetails(
        id=booking.pk,
        reference=booking.reference,
        status=booking.status,
        payment_status=booking.payment_status,
        guest_first_name=booking.guest_first_name,
        guest_last_name=booking.guest_last_name,
        guest_email=booking.guest_email,
        guest_phone=booking.guest_phone,
        special_requests=booking.special_requests,
        subtotal=booking.subtotal,
        tax_amount=booking.tax_amount,
        service_charge=booking.service_charge,
        total_amount=booking.total_amount,
        amount_paid=booking.amount_paid,
        currency=booking.currency,
        created_at=booking.created_at,
        cancelled_at=booking.cancelled_at,
        cancellation_reason=booking.cancellation_reason,
        refund_amount=booking.refund_amount,
        cancellation_fee=booking.cancellation_fee,
        cancellation_policy=describe_cancellation_policy(get_cancellation_policy()),
        items=items,
        policies=policies,
    )


def get_booking_details(booking_id: int) -> BookingDetails | None:
    booking = _details_queryset().filter(pk=booking_id).first()
    if booking is None:
        return None
    return _to_details(booking)


def lookup_by_credentials(reference: str, email: str) -> BookingDetails | None:
    """
    Find a booking by its reference and the guest's email.

    A wrong email and an unknown reference both return ``None``.
    """
    reference = (reference or "").strip().upper()
    booking = _details_queryset().filter(reference=reference).first() if reference else None

    if not emails_match(email, booking.guest_email if booking else ""):
        logger.info("Booking lookup by reference failed")
        return None

    return _to_details(booking)


def lookup_by_token(raw_token: str, now: datetime | None = None) -> TokenLookupResult:
    """Resolve a lookup token from an email link. The email is never consulted."""
    validation = lookup_tokens.validate(raw_token, now)
    if not validation.valid:
        return TokenLookupResult(booking=None, expired=validation.expired)

    return TokenLookupResult(booking=get_booking_details(validation.booking_id))


def authorize_booking_access(
    booking: Booking,
    session_email: str | None,
    raw_token: str | None,
    token_services: Sequence[TokenService] = (verification_tokens,),
    now: datetime | None = None,
) -> AccessDecision:
    """
    Decide whether the caller may act on ``booking``.

    A signed-in caller is judged by email alone, even if a token is
    also supplied. Anonymous callers need an unexpired token of one of
    ``token_services`` issued for this very booking.
    """
    if session_email:
        return AccessDecision(allowed=emails_match(session_email, booking.guest_email))

    if not raw_token:
        return AccessDecision(allowed=False)

    now = now or timezone.now()
    expired = False
    for service in token_services:
        validation = service.validate(raw_token, now)
        if validation.booking_id != booking.pk:
            continue
        if validation.valid:
            return AccessDecision(allowed=True)
        expired = expired or validation.expired

    return AccessDecision(allowed=False, expired=expired)
