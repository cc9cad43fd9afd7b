"""Token issue, validation and exchange against the database."""

from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from apps.bookings.application.tokens import (
    exchange_lookup_token,
    lookup_tokens,
    verification_tokens,
)
from apps.bookings.domain.errors import ErrorCode
from apps.bookings.domain.tokens import hash_token
from apps.bookings.models import BookingLookupToken, BookingVerificationToken


@pytest.fixture
def booking(room_type, make_booking):
    today = timezone.localdate()
    return make_booking(room_type, today + timedelta(days=10), today + timedelta(days=12))


@pytest.mark.django_db
def test_issue_stores_only_the_hash(booking):
    issued = verification_tokens.issue(booking.pk)

    record = BookingVerificationToken.objects.get(booking=booking)
    assert record.token_hash == hash_token(issued.token)
    assert record.token_hash != issued.token
    assert not BookingVerificationToken.objects.filter(token_hash=issued.token).exists()


@pytest.mark.django_db
def test_token_lifetimes(booking):
    now = timezone.now()

    assert verification_tokens.issue(booking.pk, now).expires_at == now + timedelta(minutes=15)
    assert lookup_tokens.issue(booking.pk, now).expires_at == now + timedelta(days=30)


@pytest.mark.django_db
@override_settings(BOOKING_VERIFICATION_TOKEN_TTL=timedelta(minutes=5))
def test_lifetime_follows_settings(booking):
    now = timezone.now()
    assert verification_tokens.issue(booking.pk, now).expires_at == now + timedelta(minutes=5)


@pytest.mark.django_db
def test_valid_at_expiry_instant_and_expired_just_after(booking):
    now = timezone.now()
    issued = verification_tokens.issue(booking.pk, now)

    at_expiry = verification_tokens.validate(issued.token, issued.expires_at)
    after = verification_tokens.validate(issued.token, issued.expires_at + timedelta(microseconds=1))

    assert at_expiry.valid
    assert at_expiry.booking_id == booking.pk
    assert not after.valid
    assert after.expired
    assert after.booking_id == booking.pk


@pytest.mark.django_db
def test_unknown_token_is_invalid_not_expired(booking):
    result = verification_tokens.validate("not-a-real-token")
    assert not result.valid
    assert not result.expired
    assert result.booking_id is None


@pytest.mark.django_db
def test_reissue_supersedes_previous_token(booking):
    first = lookup_tokens.issue(booking.pk)
    second = lookup_tokens.issue(booking.pk)

    assert not lookup_tokens.validate(first.token).valid
    assert lookup_tokens.validate(second.token).valid
    assert BookingLookupToken.objects.filter(booking=booking).count() == 1


@pytest.mark.django_db
def test_token_kinds_are_separate(booking):
    issued = lookup_tokens.issue(booking.pk)
    assert not verification_tokens.validate(issued.token).valid


@pytest.mark.django_db
def test_purge_expired(booking, room_type, make_booking):
    now = timezone.now()
    other = make_booking(room_type, booking.items.get().check_in, booking.items.get().check_out)
    verification_tokens.issue(booking.pk, now - timedelta(hours=1))
    live = verification_tokens.issue(other.pk, now)

    assert verification_tokens.purge_expired(now) == 1
    assert verification_tokens.validate(live.token, now).valid


@pytest.mark.django_db
def test_exchange_consumes_lookup_token(booking):
    lookup = lookup_tokens.issue(booking.pk)

    result = exchange_lookup_token(lookup.token)

    assert result.success
    assert result.booking_id == booking.pk
    assert verification_tokens.validate(result.verification_token).valid
    assert not lookup_tokens.validate(lookup.token).valid


@pytest.mark.django_db
def test_exchange_rejects_expired_lookup_token(booking):
    now = timezone.now()
    lookup = lookup_tokens.issue(booking.pk, now - timedelta(days=31))

    result = exchange_lookup_token(lookup.token, now)

    assert not result.success
    assert result.code == ErrorCode.TOKEN_EXPIRED
    assert not BookingVerificationToken.objects.filter(booking=booking).exists()


@pytest.mark.django_db
def test_exchange_rejects_unknown_token(booking):
    result = exchange_lookup_token("bogus")
    assert not result.success
    assert result.code == ErrorCode.ACCESS_DENIED
