"""Price computation and price drift tolerance."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from apps.bookings.domain.pricing import (
    PRICE_CHANGED_REASON,
    PricedStay,
    calculate_booking_totals,
    calculate_nights,
    calculate_percentage_diff,
    calculate_subtotal,
    is_within_tolerance,
    verify_booking_amount,
)

RATE = Decimal("0.12")
SERVICE = Decimal("0.10")


def test_nights_between_dates():
    assert calculate_nights(date(2031, 1, 10), date(2031, 1, 13)) == 3


def test_same_day_stay_counts_one_night():
    day = datetime(2031, 1, 10, 14)
    assert calculate_nights(day, day) == 1
    assert calculate_nights(day, datetime(2031, 1, 10, 20)) == 1


def test_partial_day_rounds_up():
    assert calculate_nights(datetime(2031, 1, 10, 14), datetime(2031, 1, 12, 15)) == 3


def test_subtotal_sums_items():
    stays = [
        PricedStay(date(2031, 1, 10), date(2031, 1, 12), Decimal("1000")),
        PricedStay(date(2031, 1, 10), date(2031, 1, 11), Decimal("2500.50")),
    ]
    assert calculate_subtotal(stays) == Decimal("4500.50")


def test_booking_totals():
    totals = calculate_booking_totals(Decimal("2000"), RATE, SERVICE)

    assert totals.subtotal == Decimal("2000.00")
    assert totals.tax_amount == Decimal("240.00")
    assert totals.service_charge == Decimal("200.00")
    assert totals.total_amount == Decimal("2440.00")


def test_stored_total_matches_recomputed_total():
    stays = [PricedStay(date(2031, 1, 10), date(2031, 1, 12), Decimal("1000"))]
    totals = calculate_booking_totals(calculate_subtotal(stays), RATE, SERVICE)

    result = verify_booking_amount(totals.total_amount, stays, RATE, SERVICE)

    assert result.valid
    assert result.percentage_diff == 0
    assert result.reason is None


@pytest.mark.parametrize(
    "stored,calculated,expected",
    [
        (Decimal("0"), Decimal("0"), Decimal("0")),
        (Decimal("0"), Decimal("10"), Decimal("100")),
        (Decimal("200"), Decimal("202"), Decimal("1")),
        (Decimal("200"), Decimal("198"), Decimal("1")),
    ],
)
def test_percentage_diff(stored, calculated, expected):
    assert calculate_percentage_diff(stored, calculated) == expected


@pytest.mark.parametrize(
    "percentage,valid",
    [
        (Decimal("0"), True),
        (Decimal("0.5"), True),
        (Decimal("1.0"), True),
        (Decimal("1.0000001"), False),
        (Decimal("1.5"), False),
        (Decimal("100"), False),
    ],
)
def test_tolerance_boundary(percentage, valid):
    assert is_within_tolerance(percentage) is valid


def test_exactly_one_percent_drift_is_valid():
    # 2 nights at 1010 -> 2464.40, exactly 1% above the stored 2440.00
    stays = [PricedStay(date(2031, 1, 10), date(2031, 1, 12), Decimal("1010"))]

    result = verify_booking_amount(Decimal("2440.00"), stays, RATE, SERVICE)

    assert result.calculated_total == Decimal("2464.40")
    assert result.percentage_diff == Decimal("1")
    assert result.valid


def test_price_increase_blocks_checkout():
    stays = [PricedStay(date(2031, 1, 10), date(2031, 1, 12), Decimal("1100"))]

    result = verify_booking_amount(Decimal("2440.00"), stays, RATE, SERVICE)

    assert not result.valid
    assert result.calculated_total == Decimal("2684.00")
    assert result.difference == Decimal("244.00")
    assert result.reason == PRICE_CHANGED_REASON


def test_zero_stored_total_with_nonzero_price_is_invalid():
    stays = [PricedStay(date(2031, 1, 10), date(2031, 1, 11), Decimal("1"))]

    result = verify_booking_amount(Decimal("0"), stays, RATE, SERVICE)

    assert result.percentage_diff == 100
    assert not result.valid


def test_max_percent_override():
    stays = [PricedStay(date(2031, 1, 10), date(2031, 1, 11), Decimal("1000"))]

    result = verify_booking_amount(Decimal("1200"), stays, RATE, SERVICE, max_percent=Decimal("2"))

    assert result.valid
