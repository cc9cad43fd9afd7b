"""Availability queries and the capacity lock used by admission control."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable

from django.db import transaction  # type: ignore
from django.db.models import Count  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.bookings.domain.availability import (
    DateAvailability,
    UnitAvailabilityResult,
    build_unit_availability_result,
    classify_date_availability,
)
from apps.properties.models import RoomType, RoomUnit
from shared.domain.value_objects import DateRange


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def lock_room_types(room_type_ids: Iterable[int]) -> list[RoomType]:
    """
    Lock the given room type rows in primary key order.

    Concurrent admissions touching the same room type queue up behind
    this lock, which serializes their count-then-insert sequences.
    Consistent ordering keeps multi-room requests from deadlocking.
    """
    queryset = RoomType.objects.filter(pk__in=set(room_type_ids)).order_by("pk")
    return list(lock_queryset_if_possible(queryset))


def count_active_units(room_type_ids: Iterable[int]) -> dict[int, int]:
    rows = (
        RoomUnit.objects.active()
        .filter(room_type_id__in=set(room_type_ids))
        .values("room_type_id")
        .annotate(total=Count("id"))
        .order_by()
    )
    return {row["room_type_id"]: row["total"] for row in rows}


def count_booked_units(room_type_id: int, check_in: date, check_out: date) -> int:
    """Items of holding bookings whose stay overlaps [check_in, check_out)."""
    from .models import BookingItem  # Local import to prevent circular dependency

    return BookingItem.objects.holding().overlapping(check_in, check_out).filter(
        room_type_id=room_type_id,
    ).count()


def check_stays_availability(
    checks: Iterable[tuple[int, date, date]],
) -> list[UnitAvailabilityResult]:
    """
    Advisory availability for each ``(room_type_id, check_in, check_out)``.

    One result per check, in input order, carrying its own dates.
    Nothing is locked, so a positive answer can be stale by the time a
    booking is submitted.
    """
    checks = list(checks)
    totals = count_active_units(room_type_id for room_type_id, _, _ in checks)

    return [
        build_unit_availability_result(
            room_type_id=room_type_id,
            total_units=totals.get(room_type_id, 0),
            booked_units=count_booked_units(room_type_id, check_in, check_out),
            check_in=check_in,
            check_out=check_out,
        )
        for room_type_id, check_in, check_out in checks
    ]


def check_unit_availability(
    checks: Iterable[tuple[int, date, date]],
) -> dict[int, UnitAvailabilityResult]:
    """
    Same as ``check_stays_availability`` keyed by room type.

    Repeating a room type keeps the last check.
    """
    return {result.room_type_id: result for result in check_stays_availability(checks)}


def get_date_range_availability(room_type_id: int, start: date, end: date) -> list[DateAvailability]:
    """Per-night availability for every date in [start, end)."""
    from .models import BookingItem  # Local import to prevent circular dependency

    total_units = count_active_units([room_type_id]).get(room_type_id, 0)
    stays = [
        DateRange(check_in, check_out)
        for check_in, check_out in BookingItem.objects.holding()
        .overlapping(start, end)
        .filter(room_type_id=room_type_id)
        .values_list("check_in", "check_out")
    ]

    days: list[DateAvailability] = []
    current = start
    while current < end:
        booked = sum(1 for stay in stays if stay.contains(current))
        available_units = max(0, total_units - booked)
        days.append(DateAvailability(
            date=current,
            available_units=available_units,
            total_units=total_units,
            status=classify_date_availability(available_units, total_units),
        ))
        current += timedelta(days=1)
    return days


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the following month."""
    days_in_month = calendar.monthrange(year, month)[1]
    start = date(year, month, 1)
    return start, start + timedelta(days=days_in_month)
