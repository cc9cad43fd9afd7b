"""Availability queries over stored bookings."""

from datetime import date, timedelta

import pytest

from apps.bookings.models import Booking, BookingItem
from apps.bookings.services import (
    check_stays_availability,
    check_unit_availability,
    count_active_units,
    get_date_range_availability,
    month_bounds,
)

JAN_10 = date(2031, 1, 10)
JAN_11 = date(2031, 1, 11)
JAN_12 = date(2031, 1, 12)
JAN_13 = date(2031, 1, 13)
JAN_14 = date(2031, 1, 14)


@pytest.mark.django_db
def test_overlapping_stay_takes_one_unit(room_type, make_booking):
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.CONFIRMED)

    result = check_unit_availability([(room_type.pk, JAN_11, JAN_13)])[room_type.pk]

    assert result.total_units == 2
    assert result.booked_units == 1
    assert result.available_units == 1
    assert result.available
    assert result.limited_availability


@pytest.mark.django_db
def test_checkout_day_is_free_for_next_guest(room_type, make_booking):
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.CONFIRMED)

    result = check_unit_availability([(room_type.pk, JAN_12, JAN_14)])[room_type.pk]

    assert result.booked_units == 0
    assert result.available_units == 2


@pytest.mark.django_db
def test_only_holding_bookings_count(room_type, make_booking):
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.PENDING, payment_status=Booking.PaymentStatus.UNPAID)
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.CANCELLED)
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.COMPLETED)

    result = check_unit_availability([(room_type.pk, JAN_10, JAN_12)])[room_type.pk]

    assert result.booked_units == 1


@pytest.mark.django_db
def test_inactive_and_deleted_units_do_not_count(room_type):
    units = list(room_type.units.all())
    units[0].is_active = False
    units[0].save()
    units[1].soft_delete()

    assert count_active_units([room_type.pk]) == {}
    result = check_unit_availability([(room_type.pk, JAN_10, JAN_12)])[room_type.pk]
    assert result.total_units == 0
    assert not result.available
    assert not result.limited_availability


@pytest.mark.django_db
def test_bulk_check_covers_each_room_type(make_room_type, make_booking):
    standard = make_room_type(units=5, name="Standard")
    suite = make_room_type(units=1, name="Suite")
    make_booking(suite, JAN_10, JAN_12)

    results = check_unit_availability([
        (standard.pk, JAN_10, JAN_12),
        (suite.pk, JAN_10, JAN_12),
    ])

    assert results[standard.pk].available_units == 5
    assert not results[standard.pk].limited_availability
    assert results[suite.pk].available_units == 0
    assert not results[suite.pk].available


@pytest.mark.django_db
def test_unknown_room_type_has_no_units():
    result = check_unit_availability([(999999, JAN_10, JAN_12)])[999999]
    assert result.total_units == 0
    assert not result.available


@pytest.mark.django_db
def test_calendar_days(make_room_type, make_booking):
    room_type = make_room_type(units=4)
    make_booking(room_type, JAN_10, JAN_12)
    make_booking(room_type, JAN_11, JAN_13)
    make_booking(room_type, JAN_11, JAN_12)
    make_booking(room_type, JAN_11, JAN_12)

    days = get_date_range_availability(room_type.pk, JAN_10, JAN_14)

    assert [day.date for day in days] == [JAN_10, JAN_11, JAN_12, JAN_13]
    assert [day.available_units for day in days] == [3, 0, 3, 4]
    assert [day.status for day in days] == ["available", "unavailable", "available", "available"]
    assert all(day.total_units == 4 for day in days)


@pytest.mark.django_db
def test_calendar_limited_below_half(make_room_type, make_booking):
    room_type = make_room_type(units=4)
    for _ in range(3):
        make_booking(room_type, JAN_10, JAN_11)

    [day] = get_date_range_availability(room_type.pk, JAN_10, JAN_11)

    assert day.available_units == 1
    assert day.status == "limited"


def test_month_bounds():
    assert month_bounds(2031, 1) == (date(2031, 1, 1), date(2031, 2, 1))
    assert month_bounds(2032, 2) == (date(2032, 2, 1), date(2032, 3, 1))
    assert month_bounds(2031, 12) == (date(2031, 12, 1), date(2032, 1, 1))


@pytest.mark.django_db
def test_calendar_for_a_whole_month(room_type):
    start, end = month_bounds(2031, 2)
    days = get_date_range_availability(room_type.pk, start, end)

    assert len(days) == 28
    assert days[-1].date == end - timedelta(days=1)
    assert all(day.status == "available" for day in days)


@pytest.mark.django_db
def test_repeated_room_type_gets_one_result_per_stay(room_type, make_booking):
    make_booking(room_type, JAN_10, JAN_12)

    first, second = check_stays_availability([
        (room_type.pk, JAN_10, JAN_12),
        (room_type.pk, JAN_12, JAN_14),
    ])

    assert (first.check_in, first.check_out, first.booked_units) == (JAN_10, JAN_12, 1)
    assert (second.check_in, second.check_out, second.booked_units) == (JAN_12, JAN_14, 0)


@pytest.mark.django_db
def test_holding_querysets(room_type, make_booking):
    pending = make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.PENDING,
                           payment_status=Booking.PaymentStatus.UNPAID)
    confirmed = make_booking(room_type, JAN_11, JAN_13)
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.CANCELLED)
    make_booking(room_type, JAN_10, JAN_12, status=Booking.Status.COMPLETED)

    assert set(Booking.objects.holding()) == {pending, confirmed}
    overlapping = BookingItem.objects.holding().overlapping(JAN_12, JAN_14)
    assert [item.booking_id for item in overlapping] == [confirmed.pk]
