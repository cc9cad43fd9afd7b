"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Admit a new booking if capacity allows
- ConfirmBookingCommand: Confirm a booking after payment capture
- CancelBookingCommand: Cancel a booking and release its inventory
- ExpireStaleBookingsHandler: Cancel unpaid bookings past the hold timeout
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from apps.bookings.application.tokens import (
    TokenService,
    lookup_tokens,
    revoke_all_tokens,
    verification_tokens,
)
from apps.bookings.domain.availability import count_requested_overlaps
from apps.bookings.domain.cancellation import calculate_cancellation_fee, can_cancel_booking
from apps.bookings.domain.capacity import (
    GuestRequest,
    RoomCapacity,
    format_capacity_errors,
    validate_guest_capacity,
)
from apps.bookings.domain.errors import BookingConflictError, ErrorCode
from apps.bookings.domain.events import BookingCancelled, BookingConfirmed, BookingCreated, BookingExpired
from apps.bookings.domain.expiration import calculate_expiration_cutoff, filter_eligible_bookings
from apps.bookings.domain.pricing import PricedStay, calculate_booking_totals, calculate_subtotal, quantize_money
from apps.bookings.domain.status import BookingStatus, PaymentStatus
from apps.bookings.models import Booking, BookingItem, BookingLookupToken, BookingVerificationToken
from apps.bookings.policy import (
    check_in_datetime,
    get_cancellation_policy,
    get_currency,
    get_hold_timeout,
    get_service_charge_rate,
    get_tax_rate,
)
from apps.bookings.services import (
    lock_queryset_if_possible,
    count_active_units,
    count_booked_units,
    lock_room_types,
)
from apps.properties.models import RoomType

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class BookingItemRequest:
    """One room type requested for [check_in, check_out)"""
    room_type_id: int
    check_in: date
    check_out: date
    guests: int = 1


@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    items: list[BookingItemRequest]
    guest_first_name: str
    guest_last_name: str
    guest_email: str
    guest_phone: str = ''
    special_requests: str = ''
    user_id: int | None = None


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a booking after successful payment"""
    booking_id: int
    amount_paid: Decimal | None = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: int
    reason: str = ''


# ===== Results =====

@dataclass(frozen=True)
class AdmissionResult:
    success: bool
    booking_id: int | None = None
    reference: str | None = None
    total_amount: Decimal | None = None
    verification_token: str | None = None
    token_expires_at: datetime | None = None
    error: str | None = None
    code: ErrorCode | None = None
    unavailable_room_types: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConfirmationResult:
    success: bool
    booking_id: int | None = None
    reference: str | None = None
    lookup_token: str | None = None
    lookup_token_expires_at: datetime | None = None
    error: str | None = None
    code: ErrorCode | None = None


@dataclass(frozen=True)
class CancellationResult:
    success: bool
    booking_id: int | None = None
    reference: str | None = None
    refund_amount: Decimal | None = None
    cancellation_fee: Decimal | None = None
    is_free_cancellation: bool = False
    error: str | None = None
    code: ErrorCode | None = None


@dataclass(frozen=True)
class ExpirationResult:
    expired_count: int
    booking_ids: list[int]


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Admission control for unit-based inventory. A booking is admitted
    only if, for every requested item, the overlapping holding items of
    that room type plus the overlapping items of this same request fit
    into the room type's active units.

    Strategy:
    1. Validate input before touching storage
    2. Start database transaction (atomic)
    3. Lock the requested RoomType rows (SELECT FOR UPDATE, pk order)
    4. Count units and overlapping holding items under the lock
    5. Insert Booking, items and a verification token
    6. Commit transaction, then publish BookingCreated

    A capacity shortfall raises BookingConflictError inside the
    transaction so nothing is written.
    """

    def __init__(self, tokens: TokenService = verification_tokens):
        self.tokens = tokens

    def handle(self, command: CreateBookingCommand) -> AdmissionResult:
        logger.info(
            f"Creating booking with {len(command.items)} item(s) for room types "
            f"{sorted({item.room_type_id for item in command.items})}"
        )

        error = self._validate(command)
        if error:
            return AdmissionResult(success=False, error=error, code=ErrorCode.VALIDATION_ERROR)

        room_type_ids = {item.room_type_id for item in command.items}
        room_types = RoomType.objects.filter(pk__in=room_type_ids, is_active=True)
        if len(room_types) != len(room_type_ids):
            return AdmissionResult(
                success=False,
                error="One or more selected rooms are no longer available.",
                code=ErrorCode.ROOM_UNAVAILABLE,
            )

        capacity = validate_guest_capacity(
            [GuestRequest(item.room_type_id, item.guests) for item in command.items],
            [RoomCapacity(room_type.pk, room_type.name, room_type.capacity) for room_type in room_types],
        )
        if not capacity.valid:
            return AdmissionResult(
                success=False,
                error=format_capacity_errors(capacity),
                code=ErrorCode.VALIDATION_ERROR,
            )

        try:
            with DjangoUnitOfWork() as uow:
                locked = {room_type.pk: room_type for room_type in lock_room_types(room_type_ids)}
                self._ensure_capacity(command.items, locked)

                booking = self._create_booking(command, locked)
                issued = self.tokens.issue(booking.pk)

                uow.record(BookingCreated(
                    aggregate_id=booking.pk,
                    booking_id=booking.pk,
                    reference=booking.reference,
                    room_type_ids=sorted(room_type_ids),
                    total_amount=booking.total_amount,
                ))
        except BookingConflictError as exc:
            logger.info(f"Booking rejected, capacity exhausted: {exc}")
            names = ", ".join(exc.room_type_names)
            return AdmissionResult(
                success=False,
                error=(
                    f"Sorry, the following rooms are no longer available for your dates: {names}. "
                    "Please select different dates or rooms."
                ),
                code=ErrorCode.AVAILABILITY_CHANGED,
                unavailable_room_types=exc.room_type_names,
            )

        logger.info(f"Booking created successfully: {booking.reference} (ID: {booking.pk})")

        return AdmissionResult(
            success=True,
            booking_id=booking.pk,
            reference=booking.reference,
            total_amount=booking.total_amount,
            verification_token=issued.token,
            token_expires_at=issued.expires_at,
        )

    def _validate(self, command: CreateBookingCommand) -> str | None:
        if not command.items:
            return "Please select at least one room."

        if not command.guest_first_name.strip() or not command.guest_last_name.strip():
            return "Guest first and last name are required."

        try:
            validate_email(command.guest_email)
        except ValidationError:
            return "A valid email address is required."

        for item in command.items:
            if item.check_in >= item.check_out:
                return "Check-out date must be after check-in date."
            if item.guests < 1:
                return "Each room needs at least one guest."

        return None

    def _ensure_capacity(self, items: list[BookingItemRequest], room_types: dict[int, RoomType]) -> None:
        requested = [(item.room_type_id, item.check_in, item.check_out) for item in items]
        totals = count_active_units(room_types)

        conflicts: list[str] = []
        for index, item in enumerate(items):
            room_type = room_types.get(item.room_type_id)
            if room_type is None or not room_type.is_active:
                conflicts.append(room_type.name if room_type else str(item.room_type_id))
                continue

            booked = count_booked_units(item.room_type_id, item.check_in, item.check_out)
            needed = count_requested_overlaps(index, requested)
            if booked + needed > totals.get(item.room_type_id, 0):
                conflicts.append(room_type.name)

        if conflicts:
            raise BookingConflictError(list(dict.fromkeys(conflicts)))

    def _create_booking(self, command: CreateBookingCommand, room_types: dict[int, RoomType]) -> Booking:
        stays = [
            PricedStay(item.check_in, item.check_out, room_types[item.room_type_id].price)
            for item in command.items
        ]
        totals = calculate_booking_totals(calculate_subtotal(stays), get_tax_rate(), get_service_charge_rate())

        booking = Booking.objects.create(
            user_id=command.user_id,
            guest_first_name=command.guest_first_name.strip(),
            guest_last_name=command.guest_last_name.strip(),
            guest_email=command.guest_email.strip(),
            guest_phone=command.guest_phone.strip(),
            special_requests=command.special_requests,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            service_charge=totals.service_charge,
            total_amount=totals.total_amount,
            currency=get_currency(),
        )
        BookingItem.objects.bulk_create([
            BookingItem(
                booking=booking,
                room_type_id=item.room_type_id,
                check_in=item.check_in,
                check_out=item.check_out,
                price_per_night=room_types[item.room_type_id].price,
                guests=item.guests,
            )
            for item in command.items
        ])
        return booking


class ConfirmBookingHandler:
    """
    Handler for confirming booking after payment

    PENDING -> CONFIRMED. The verification tokens used for checkout are
    revoked and a lookup token is issued for the confirmation email.
    """

    def __init__(self, tokens: TokenService = lookup_tokens):
        self.tokens = tokens

    def handle(self, command: ConfirmBookingCommand) -> ConfirmationResult:
        logger.info(f"Confirming booking {command.booking_id}")

        with DjangoUnitOfWork() as uow:
            booking = lock_queryset_if_possible(Booking.objects.filter(pk=command.booking_id)).first()
            if booking is None:
                return ConfirmationResult(success=False, error="Booking not found.", code=ErrorCode.NOT_FOUND)

            if booking.status != BookingStatus.PENDING:
                return ConfirmationResult(
                    success=False,
                    booking_id=booking.pk,
                    reference=booking.reference,
                    error=f"Cannot confirm a booking with status {booking.get_status_display()}.",
                    code=ErrorCode.INVALID_STATE,
                )

            booking.status = BookingStatus.CONFIRMED
            booking.payment_status = PaymentStatus.PAID
            booking.amount_paid = (
                command.amount_paid if command.amount_paid is not None else booking.total_amount
            )
            booking.save(update_fields=["status", "payment_status", "amount_paid", "updated_at"])

            verification_tokens.revoke_for_booking(booking.pk)
            issued = self.tokens.issue(booking.pk)

            uow.record(BookingConfirmed(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                reference=booking.reference,
            ))

        logger.info(f"Booking {booking.reference} confirmed successfully")

        return ConfirmationResult(
            success=True,
            booking_id=booking.pk,
            reference=booking.reference,
            lookup_token=issued.token,
            lookup_token_expires_at=issued.expires_at,
        )


class CancelBookingHandler:
    """
    Handler for cancelling booking

    Flipping the status out of the holding set is what frees the
    inventory; there is no counter to adjust. All tokens for the booking
    are deleted in the same transaction.
    """

    def handle(self, command: CancelBookingCommand, now: datetime | None = None) -> CancellationResult:
        logger.info(f"Cancelling booking {command.booking_id}")
        now = now or timezone.now()

        with DjangoUnitOfWork() as uow:
            booking = lock_queryset_if_possible(Booking.objects.filter(pk=command.booking_id)).first()
            if booking is None:
                return CancellationResult(success=False, error="Booking not found.", code=ErrorCode.NOT_FOUND)

            check = can_cancel_booking(booking.status, booking.is_checked_in)
            if not check.can_cancel:
                return CancellationResult(
                    success=False,
                    booking_id=booking.pk,
                    reference=booking.reference,
                    error=check.reason,
                    code=ErrorCode.INVALID_STATE,
                )

            first_check_in = booking.earliest_check_in()
            if first_check_in is None:
                return CancellationResult(
                    success=False,
                    booking_id=booking.pk,
                    reference=booking.reference,
                    error="Booking has no items.",
                    code=ErrorCode.INVALID_STATE,
                )

            fee = calculate_cancellation_fee(
                booking.amount_paid,
                check_in_datetime(first_check_in),
                now,
                get_cancellation_policy(),
            )
            old_status = booking.status

            booking.status = BookingStatus.CANCELLED
            booking.cancelled_at = now
            booking.cancellation_reason = command.reason[:255]
            booking.refund_amount = quantize_money(fee.refund_amount)
            booking.cancellation_fee = quantize_money(fee.fee)
            booking.save(update_fields=[
                "status",
                "cancelled_at",
                "cancellation_reason",
                "refund_amount",
                "cancellation_fee",
                "updated_at",
            ])

            revoke_all_tokens(booking.pk)

            uow.record(BookingCancelled(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                reference=booking.reference,
                reason=booking.cancellation_reason,
                refund_amount=booking.refund_amount,
                cancellation_fee=booking.cancellation_fee,
                old_status=old_status,
            ))

        logger.info(
            f"Booking {booking.reference} cancelled successfully "
            f"(refund {booking.refund_amount}, fee {booking.cancellation_fee})"
        )

        return CancellationResult(
            success=True,
            booking_id=booking.pk,
            reference=booking.reference,
            refund_amount=booking.refund_amount,
            cancellation_fee=booking.cancellation_fee,
            is_free_cancellation=fee.is_free_cancellation,
        )


class ExpireStaleBookingsHandler:
    """
    Handler for releasing unpaid holds

    PENDING bookings that are still UNPAID after the hold timeout become
    CANCELLED with payment status EXPIRED.
    """

    def handle(self, now: datetime | None = None) -> ExpirationResult:
        now = now or timezone.now()
        cutoff = calculate_expiration_cutoff(now, get_hold_timeout())

        with DjangoUnitOfWork() as uow:
            candidates = lock_queryset_if_possible(
                Booking.objects.stale_unpaid(cutoff).only("id", "reference", "status", "payment_status", "created_at")
            )
            candidates = list(candidates)
            booking_ids = filter_eligible_bookings(candidates, cutoff)

            if booking_ids:
                Booking.objects.filter(pk__in=booking_ids).update(
                    status=BookingStatus.CANCELLED,
                    payment_status=PaymentStatus.EXPIRED,
                    cancelled_at=now,
                    cancellation_reason="Payment window expired",
                    updated_at=now,
                )
                BookingLookupToken.objects.filter(booking_id__in=booking_ids).delete()
                BookingVerificationToken.objects.filter(booking_id__in=booking_ids).delete()

                references = {booking.pk: booking.reference for booking in candidates}
                for booking_id in booking_ids:
                    uow.record(BookingExpired(
                        aggregate_id=booking_id,
                        booking_id=booking_id,
                        reference=references[booking_id],
                    ))

        if booking_ids:
            logger.info(f"Expired {len(booking_ids)} unpaid booking(s): {booking_ids}")

        return ExpirationResult(expired_count=len(booking_ids), booking_ids=booking_ids)
