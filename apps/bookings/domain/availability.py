"""
Unit Availability

Pure arithmetic over unit counts. Room types are reserved by capacity,
not by physical unit, so availability is always
``total active units - overlapping holding items``.

Two classifiers live here and are intentionally different:
- ``calculate_unit_availability`` gates bookings: "limited" means at
  most 2 units left.
- ``classify_date_availability`` drives calendar display: "limited"
  means fewer than half the units left.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Literal, Mapping, Sequence

from shared.domain.value_objects import ranges_overlap

LIMITED_AVAILABILITY_THRESHOLD = 2
CALENDAR_LIMITED_RATIO = 0.5

DayStatus = Literal["available", "limited", "unavailable"]


@dataclass(frozen=True)
class UnitAvailability:
    available_units: int
    available: bool
    limited_availability: bool


@dataclass(frozen=True)
class UnitAvailabilityResult:
    room_type_id: int
    total_units: int
    booked_units: int
    available_units: int
    available: bool
    limited_availability: bool
    check_in: date | None = None
    check_out: date | None = None


@dataclass(frozen=True)
class DateAvailability:
    date: date
    available_units: int
    total_units: int
    status: DayStatus


def calculate_unit_availability(total_units: int, booked_units: int) -> UnitAvailability:
    """
    Turn raw counts into the booking-gate classification.

    A room type with zero units is always unavailable and never limited.
    """
    available_units = max(0, total_units - booked_units)
    return UnitAvailability(
        available_units=available_units,
        available=available_units > 0,
        limited_availability=0 < available_units <= LIMITED_AVAILABILITY_THRESHOLD,
    )


def build_unit_availability_result(
    room_type_id: int,
    total_units: int,
    booked_units: int,
    check_in: date | None = None,
    check_out: date | None = None,
) -> UnitAvailabilityResult:
    calc = calculate_unit_availability(total_units, booked_units)
    return UnitAvailabilityResult(
        room_type_id=room_type_id,
        total_units=total_units,
        booked_units=booked_units,
        available_units=calc.available_units,
        available=calc.available,
        limited_availability=calc.limited_availability,
        check_in=check_in,
        check_out=check_out,
    )


def classify_date_availability(available_units: int, total_units: int) -> DayStatus:
    """Calendar display status for a single day."""
    if available_units <= 0:
        return "unavailable"
    if total_units > 0 and available_units < total_units * CALENDAR_LIMITED_RATIO:
        return "limited"
    return "available"


def has_unavailable_dates(days: Iterable[DateAvailability]) -> bool:
    return any(day.status == "unavailable" for day in days)


def calculate_availability_after_cancellation(current_available_units: int, total_units: int) -> int:
    """One more unit frees up, never beyond the total."""
    return min(current_available_units + 1, total_units)


# ===== Cart validation =====

@dataclass(frozen=True)
class BookingValidationItem:
    item_id: str
    room_type_id: int
    check_in: date
    check_out: date


@dataclass(frozen=True)
class BookingValidationResult:
    item_id: str
    room_type_id: int
    valid: bool
    available_units: int
    error: str | None = None


@dataclass(frozen=True)
class BookingValidationSummary:
    all_valid: bool
    results: list[BookingValidationResult]
    invalid_count: int


def validate_booking_items(
    items: Sequence[BookingValidationItem],
    availability_map: Mapping[int, UnitAvailabilityResult],
) -> BookingValidationSummary:
    """
    Validate every cart item independently against pre-computed availability.

    Items whose room type is missing from ``availability_map`` are
    treated as unavailable.
    """
    results: list[BookingValidationResult] = []

    for item in items:
        availability = availability_map.get(item.room_type_id)

        if availability is None:
            results.append(BookingValidationResult(
                item_id=item.item_id,
                room_type_id=item.room_type_id,
                valid=False,
                available_units=0,
                error="Unable to verify availability for this room type",
            ))
            continue

        if not availability.available:
            results.append(BookingValidationResult(
                item_id=item.item_id,
                room_type_id=item.room_type_id,
                valid=False,
                available_units=availability.available_units,
                error="This room type is fully booked for your selected dates",
            ))
            continue

        results.append(BookingValidationResult(
            item_id=item.item_id,
            room_type_id=item.room_type_id,
            valid=True,
            available_units=availability.available_units,
        ))

    invalid_count = sum(1 for r in results if not r.valid)
    return BookingValidationSummary(
        all_valid=invalid_count == 0,
        results=results,
        invalid_count=invalid_count,
    )


def count_requested_overlaps(index: int, requested: Sequence[tuple[int, date, date]]) -> int:
    """
    How many units a single request consumes around item ``index``.

    ``requested`` is a list of ``(room_type_id, check_in, check_out)``.
    The count includes the item itself plus every other requested item
    of the same room type whose stay overlaps it.
    """
    room_type_id, check_in, check_out = requested[index]
    return sum(
        1
        for other_type, other_in, other_out in requested
        if other_type == room_type_id and ranges_overlap(check_in, check_out, other_in, other_out)
    )
