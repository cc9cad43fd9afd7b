"""Booking policy values read from Django settings."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.cancellation import CancellationPolicy
from apps.bookings.domain.expiration import EXPIRATION_THRESHOLD
from apps.bookings.domain.pricing import DEFAULT_SERVICE_CHARGE_RATE, DEFAULT_TAX_RATE, to_decimal


def get_tax_rate() -> Decimal:
    return to_decimal(getattr(settings, "BOOKING_TAX_RATE", DEFAULT_TAX_RATE))


def get_service_charge_rate() -> Decimal:
    return to_decimal(getattr(settings, "BOOKING_SERVICE_CHARGE_RATE", DEFAULT_SERVICE_CHARGE_RATE))


def get_currency() -> str:
    return getattr(settings, "BOOKING_CURRENCY", "PHP")


def get_hold_timeout() -> timedelta:
    return getattr(settings, "BOOKING_HOLD_TIMEOUT", EXPIRATION_THRESHOLD)


def get_cancellation_policy() -> CancellationPolicy:
    return CancellationPolicy(
        free_cancellation_hours=getattr(settings, "BOOKING_FREE_CANCELLATION_HOURS", 48),
        cancellation_fee_percent=to_decimal(getattr(settings, "BOOKING_CANCELLATION_FEE_PERCENT", 50)),
    )


def check_in_datetime(check_in: date) -> datetime:
    """Aware datetime at which guests may arrive on ``check_in``."""
    check_in_time: time = getattr(settings, "BOOKING_CHECK_IN_TIME", time(14, 0))
    return timezone.make_aware(datetime.combine(check_in, check_in_time))
