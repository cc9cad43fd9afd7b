"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .application.command_handlers import ExpireStaleBookingsHandler
from .application.tokens import lookup_tokens, verification_tokens

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_bookings")
def expire_pending_bookings() -> dict[str, int]:
    """
    Cancel unpaid PENDING bookings older than the hold timeout.

    Runs every minute.

    Returns:
        dict: {"expired": number of bookings expired}
    """
    result = ExpireStaleBookingsHandler().handle()

    if result.expired_count > 0:
        logger.info(f"Expired {result.expired_count} pending bookings")

    return {"expired": result.expired_count}


@shared_task(name="bookings.purge_expired_tokens")
def purge_expired_tokens() -> dict[str, int]:
    """
    Delete lookup and verification tokens past their expiry.

    Runs every hour.
    """
    now = timezone.now()
    return {
        "lookup": lookup_tokens.purge_expired(now),
        "verification": verification_tokens.purge_expired(now),
    }
