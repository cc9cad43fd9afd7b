"""
Token Services

Issue, validate and revoke the bearer tokens that stand in for a login:
- lookup tokens: long-lived, sent in the confirmation email
- verification tokens: short-lived, authorize checkout and cancellation

Only the SHA-256 digest of a token is stored. The raw value is returned
exactly once, from ``issue()``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.bookings.domain.errors import ErrorCode
from apps.bookings.domain.tokens import generate_raw_token, hash_token, is_token_expired
from apps.bookings.models import BookingLookupToken, BookingVerificationToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenValidation:
    """
    Outcome of checking a raw token

    An expired token reports ``valid=False, expired=True`` and still
    carries the ``booking_id`` it was issued for, so callers can tell
    an expired link for this booking from a token for another one.
    Unknown tokens carry no ``booking_id``.
    """
    valid: bool
    booking_id: int | None = None
    expired: bool = False


class TokenService:
    """
    Token lifecycle for one token model

    The lifetime is read from ``setting`` on every issue so that
    settings overrides apply; ``lifetime`` is the fallback.
    """

    def __init__(self, model, lifetime: timedelta, *, setting: str | None = None):
        self.model = model
        self.default_lifetime = lifetime
        self.setting = setting

    @property
    def lifetime(self) -> timedelta:
        if self.setting:
            return getattr(settings, self.setting, self.default_lifetime)
        return self.default_lifetime

    @property
    def kind(self) -> str:
        return self.model._meta.verbose_name

    def issue(self, booking_id: int, now: datetime | None = None) -> IssuedToken:
        """
        Create a token for a booking, replacing any earlier ones of this kind.

        Runs in the caller's transaction when there is one.
        """
        now = now or timezone.now()
        raw_token = generate_raw_token()
        expires_at = now + self.lifetime

        with transaction.atomic():
            self.model.objects.filter(booking_id=booking_id).delete()
            self.model.objects.create(
                booking_id=booking_id,
                token_hash=hash_token(raw_token),
                expires_at=expires_at,
            )

        logger.info(f"Issued {self.kind} for booking {booking_id}, expires {expires_at.isoformat()}")
        return IssuedToken(token=raw_token, expires_at=expires_at)

    def validate(self, raw_token: str, now: datetime | None = None) -> TokenValidation:
        if not raw_token:
            return TokenValidation(valid=False)

        record = (
            self.model.objects
            .filter(token_hash=hash_token(raw_token))
            .only("booking_id", "expires_at")
            .first()
        )
        if record is None:
            return TokenValidation(valid=False)

        if is_token_expired(record.expires_at, now or timezone.now()):
            return TokenValidation(valid=False, booking_id=record.booking_id, expired=True)

        return TokenValidation(valid=True, booking_id=record.booking_id)

    def revoke_for_booking(self, booking_id: int) -> int:
        deleted, _ = self.model.objects.filter(booking_id=booking_id).delete()
        return deleted

    def purge_expired(self, now: datetime | None = None) -> int:
        deleted, _ = self.model.objects.filter(expires_at__lt=now or timezone.now()).delete()
        if deleted:
            logger.info(f"Purged {deleted} expired {self.kind} record(s)")
        return deleted


lookup_tokens = TokenService(
    BookingLookupToken,
    timedelta(days=30),
    setting="BOOKING_LOOKUP_TOKEN_TTL",
)

verification_tokens = TokenService(
    BookingVerificationToken,
    timedelta(minutes=15),
    setting="BOOKING_VERIFICATION_TOKEN_TTL",
)


def revoke_all_tokens(booking_id: int) -> None:
    lookup_tokens.revoke_for_booking(booking_id)
    verification_tokens.revoke_for_booking(booking_id)


@dataclass(frozen=True)
class TokenExchangeResult:
    success: bool
    booking_id: int | None = None
    verification_token: str | None = None
    expires_at: datetime | None = None
    error: str | None = None
    code: ErrorCode | None = None


def exchange_lookup_token(raw_token: str, now: datetime | None = None) -> TokenExchangeResult:
    """
    Trade a lookup token from an email link for a verification token.

    The lookup token is consumed. Both steps commit together or not at all.
    """
    now = now or timezone.now()

    with transaction.atomic():
        validation = lookup_tokens.validate(raw_token, now)

        if validation.expired:
            return TokenExchangeResult(
                success=False,
                error="This link has expired. Please look up your booking again.",
                code=ErrorCode.TOKEN_EXPIRED,
            )
        if not validation.valid:
            return TokenExchangeResult(
                success=False,
                error="Invalid or expired link.",
                code=ErrorCode.ACCESS_DENIED,
            )

        lookup_tokens.revoke_for_booking(validation.booking_id)
        issued = verification_tokens.issue(validation.booking_id, now)

    return TokenExchangeResult(
        success=True,
        booking_id=validation.booking_id,
        verification_token=issued.token,
        expires_at=issued.expires_at,
    )
