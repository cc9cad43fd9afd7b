"""Booking models: reservations, their room-type items and bearer tokens."""

from __future__ import annotations

import secrets
import string
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.status import HOLDING_STATUSES, BookingStatus, PaymentStatus

REFERENCE_PREFIX = "BK-"
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 6


def generate_booking_reference() -> str:
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))
    return f"{REFERENCE_PREFIX}{suffix}"


class BookingQuerySet(models.QuerySet):
    def holding(self) -> "BookingQuerySet":
        """Bookings whose items occupy inventory."""
        return self.filter(status__in=HOLDING_STATUSES)

    def stale_unpaid(self, cutoff) -> "BookingQuerySet":
        """Unpaid PENDING bookings created before ``cutoff``."""
        return self.filter(
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
            created_at__lt=cutoff,
        )


class BookingItemQuerySet(models.QuerySet):
    def holding(self) -> "BookingItemQuerySet":
        """Items of bookings that occupy inventory."""
        return self.filter(booking__status__in=HOLDING_STATUSES)

    def overlapping(self, check_in, check_out) -> "BookingItemQuerySet":
        """Items whose stay intersects [check_in, check_out)."""
        return self.filter(check_in__lt=check_out, check_out__gt=check_in)


class Booking(models.Model):
    """A guest's reservation of one or more room types."""

    Status = BookingStatus
    PaymentStatus = PaymentStatus

    reference = models.CharField(max_length=16, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    status = models.CharField(
        max_length=16,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    guest_first_name = models.CharField(max_length=100)
    guest_last_name = models.CharField(max_length=100)
    guest_email = models.EmailField()
    guest_phone = models.CharField(max_length=32, blank=True)
    special_requests = models.TextField(blank=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    service_charge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="PHP")
    checked_in_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cancellation_fee = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "payment_status", "created_at"], name="booking_expiry_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.reference}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.reference:
            self.reference = generate_booking_reference()
        super().save(*args, **kwargs)

    @property
    def guest_full_name(self) -> str:
        return f"{self.guest_first_name} {self.guest_last_name}".strip()

    @property
    def is_checked_in(self) -> bool:
        return self.checked_in_at is not None

    def earliest_check_in(self):
        return self.items.aggregate(first=models.Min("check_in"))["first"]


class BookingItem(models.Model):
    """One room type reserved for a half-open date range [check_in, check_out)."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="items",
    )
    room_type = models.ForeignKey(
        "properties.RoomType",
        on_delete=models.PROTECT,
        related_name="booking_items",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Nightly price frozen when the booking was created."),
    )
    guests = models.PositiveSmallIntegerField(default=1)

    objects = BookingItemQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking item")
        verbose_name_plural = _("Booking items")
        ordering = ["check_in", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_item_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["room_type", "check_in", "check_out"], name="booking_item_overlap_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.room_type_id}: {self.check_in} - {self.check_out}"


class BookingToken(models.Model):
    """SHA-256 digest of a bearer token bound to one booking."""

    token_hash = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    def __str__(self) -> str:
        return f"{type(self).__name__} for booking {self.booking_id}"


class BookingLookupToken(BookingToken):
    """Long-lived token embedded in the confirmation email link."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="lookup_tokens",
    )

    class Meta:
        verbose_name = _("Lookup token")
        verbose_name_plural = _("Lookup tokens")


class BookingVerificationToken(BookingToken):
    """Short-lived token authorizing checkout and cancellation."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="verification_tokens",
    )

    class Meta:
        verbose_name = _("Verification token")
        verbose_name_plural = _("Verification tokens")
