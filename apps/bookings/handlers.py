"""
Booking event subscribers

Audit trail for booking lifecycle events. Handlers run after the
transaction that produced the event has committed.
"""

import logging

from shared.application.message_bus import MessageBus
from apps.bookings.domain.events import BookingCancelled, BookingConfirmed, BookingCreated, BookingExpired

logger = logging.getLogger("apps.bookings.audit")


def log_booking_created(event: BookingCreated) -> None:
    logger.info(
        f"[AUDIT] Booking {event.reference} created for room types {event.room_type_ids}, "
        f"total {event.total_amount}"
    )


def log_booking_confirmed(event: BookingConfirmed) -> None:
    logger.info(f"[AUDIT] Booking {event.reference} confirmed")


def log_booking_cancelled(event: BookingCancelled) -> None:
    logger.info(
        f"[AUDIT] Booking {event.reference} cancelled from {event.old_status}: "
        f"refund {event.refund_amount}, fee {event.cancellation_fee}"
    )


def log_booking_expired(event: BookingExpired) -> None:
    logger.info(f"[AUDIT] Booking {event.reference} expired unpaid")


def register_handlers(bus: MessageBus) -> None:
    bus.register_event_handler(BookingCreated, log_booking_created)
    bus.register_event_handler(BookingConfirmed, log_booking_confirmed)
    bus.register_event_handler(BookingCancelled, log_booking_cancelled)
    bus.register_event_handler(BookingExpired, log_booking_expired)
