"""Guest booking lookup and access decisions."""

from datetime import date, timedelta

import pytest
from django.utils import timezone

from apps.bookings.application.lookup import (
    authorize_booking_access,
    emails_match,
    get_booking_details,
    lookup_by_credentials,
    lookup_by_token,
)
from apps.bookings.application.tokens import lookup_tokens, verification_tokens

CHECK_IN = date(2031, 6, 1)
CHECK_OUT = date(2031, 6, 4)


@pytest.fixture
def booking(room_type, make_booking):
    return make_booking(room_type, CHECK_IN, CHECK_OUT, email="Guest@Example.com", total_amount="3660.00")


def test_emails_match():
    assert emails_match("guest@example.com", "GUEST@example.com")
    assert emails_match("  guest@example.com ", "guest@example.com")
    assert not emails_match("other@example.com", "guest@example.com")
    assert not emails_match("", "")
    assert not emails_match(None, "guest@example.com")


@pytest.mark.django_db
def test_lookup_ignores_email_case(booking):
    details = lookup_by_credentials(booking.reference.lower(), "guest@EXAMPLE.com")

    assert details is not None
    assert details.id == booking.pk
    assert details.reference == booking.reference


@pytest.mark.django_db
def test_failures_are_indistinguishable(booking):
    assert lookup_by_credentials(booking.reference, "someone@example.com") is None
    assert lookup_by_credentials("BK-ZZZZZZ", "guest@example.com") is None
    assert lookup_by_credentials("", "guest@example.com") is None


@pytest.mark.django_db
def test_details_include_items_and_policies(booking, hotel, room_type):
    details = get_booking_details(booking.pk)

    [item] = details.items
    assert item.room_type_name == room_type.name
    assert item.property_name == hotel.name
    assert item.nights == 3
    assert [policy.title for policy in details.policies] == ["Check-in"]
    assert "48 hours" in details.cancellation_policy


@pytest.mark.django_db
def test_lookup_by_token(booking):
    issued = lookup_tokens.issue(booking.pk)

    result = lookup_by_token(issued.token)

    assert result.booking.id == booking.pk
    assert not result.expired


@pytest.mark.django_db
def test_lookup_by_expired_token(booking):
    issued = lookup_tokens.issue(booking.pk)

    result = lookup_by_token(issued.token, issued.expires_at + timedelta(seconds=1))

    assert result.booking is None
    assert result.expired


@pytest.mark.django_db
def test_session_email_grants_access(booking):
    assert authorize_booking_access(booking, "guest@example.com", None).allowed
    assert not authorize_booking_access(booking, "other@example.com", None).allowed


@pytest.mark.django_db
def test_session_email_takes_precedence_over_token(booking):
    issued = verification_tokens.issue(booking.pk)
    assert not authorize_booking_access(booking, "other@example.com", issued.token).allowed


@pytest.mark.django_db
def test_token_must_belong_to_booking(booking, room_type, make_booking):
    other = make_booking(room_type, CHECK_IN, CHECK_OUT)
    issued = verification_tokens.issue(other.pk)

    assert authorize_booking_access(other, None, issued.token).allowed
    assert not authorize_booking_access(booking, None, issued.token).allowed


@pytest.mark.django_db
def test_expired_token_is_reported(booking):
    now = timezone.now()
    issued = verification_tokens.issue(booking.pk, now - timedelta(hours=1))

    decision = authorize_booking_access(booking, None, issued.token, now=now)

    assert not decision.allowed
    assert decision.expired


@pytest.mark.django_db
def test_no_credentials(booking):
    decision = authorize_booking_access(booking, None, None)
    assert not decision.allowed
    assert not decision.expired


@pytest.mark.django_db
def test_lookup_tokens_only_when_asked(booking):
    issued = lookup_tokens.issue(booking.pk)

    assert not authorize_booking_access(booking, None, issued.token).allowed
    assert authorize_booking_access(
        booking,
        None,
        issued.token,
        token_services=(verification_tokens, lookup_tokens),
    ).allowed
