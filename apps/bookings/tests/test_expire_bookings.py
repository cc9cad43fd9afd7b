"""Releasing holds of bookings that were never paid."""

from datetime import date, timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from apps.bookings.application.command_handlers import ExpireStaleBookingsHandler
from apps.bookings.application.tokens import lookup_tokens, verification_tokens
from apps.bookings.models import Booking
from apps.bookings.services import check_unit_availability
from apps.bookings.tasks import expire_pending_bookings, purge_expired_tokens

CHECK_IN = date(2031, 8, 1)
CHECK_OUT = date(2031, 8, 2)


@pytest.fixture
def pending(room_type, make_booking):
    def factory(age: timedelta, payment_status=Booking.PaymentStatus.UNPAID) -> Booking:
        booking = make_booking(
            room_type,
            CHECK_IN,
            CHECK_OUT,
            status=Booking.Status.PENDING,
            payment_status=payment_status,
        )
        Booking.objects.filter(pk=booking.pk).update(created_at=timezone.now() - age)
        return booking

    return factory


@pytest.mark.django_db
def test_stale_unpaid_booking_is_expired(pending, room_type):
    stale = pending(timedelta(minutes=45))
    fresh = pending(timedelta(minutes=5))
    verification_tokens.issue(stale.pk)

    result = ExpireStaleBookingsHandler().handle()

    assert result.booking_ids == [stale.pk]
    stale.refresh_from_db()
    fresh.refresh_from_db()
    assert stale.status == Booking.Status.CANCELLED
    assert stale.payment_status == Booking.PaymentStatus.EXPIRED
    assert stale.cancelled_at is not None
    assert stale.cancellation_reason == "Payment window expired"
    assert not stale.verification_tokens.exists()
    assert fresh.status == Booking.Status.PENDING

    availability = check_unit_availability([(room_type.pk, CHECK_IN, CHECK_OUT)])[room_type.pk]
    assert availability.booked_units == 1


@pytest.mark.django_db
def test_partially_paid_bookings_are_kept(pending):
    booking = pending(timedelta(hours=2), payment_status=Booking.PaymentStatus.PARTIALLY_PAID)

    assert ExpireStaleBookingsHandler().handle().expired_count == 0
    booking.refresh_from_db()
    assert booking.status == Booking.Status.PENDING


@pytest.mark.django_db
def test_confirmed_bookings_are_kept(room_type, make_booking):
    booking = make_booking(room_type, CHECK_IN, CHECK_OUT)
    Booking.objects.filter(pk=booking.pk).update(created_at=timezone.now() - timedelta(days=1))

    assert ExpireStaleBookingsHandler().handle().expired_count == 0


@pytest.mark.django_db
@override_settings(BOOKING_HOLD_TIMEOUT=timedelta(hours=1))
def test_hold_timeout_follows_settings(pending):
    pending(timedelta(minutes=45))
    assert ExpireStaleBookingsHandler().handle().expired_count == 0


@pytest.mark.django_db
def test_expire_task(pending):
    pending(timedelta(hours=1))
    pending(timedelta(hours=3))

    assert expire_pending_bookings() == {"expired": 2}
    assert expire_pending_bookings() == {"expired": 0}


@pytest.mark.django_db
def test_purge_task(room_type, make_booking):
    booking = make_booking(room_type, CHECK_IN, CHECK_OUT)
    lookup_tokens.issue(booking.pk, timezone.now() - timedelta(days=40))
    verification_tokens.issue(booking.pk)

    assert purge_expired_tokens() == {"lookup": 1, "verification": 0}


@pytest.mark.django_db
def test_stale_unpaid_queryset(pending):
    stale = pending(timedelta(hours=2))
    pending(timedelta(minutes=5))
    pending(timedelta(hours=2), payment_status=Booking.PaymentStatus.PAID)

    cutoff = timezone.now() - timedelta(hours=1)

    assert list(Booking.objects.stale_unpaid(cutoff)) == [stale]
