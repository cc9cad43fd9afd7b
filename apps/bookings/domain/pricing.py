"""
Price computation and post-creation price verification.

A booking freezes its nightly prices at creation. At checkout the total
is recomputed from the room types' current prices; a drift above
``MAX_PRICE_DIFFERENCE_PERCENT`` blocks payment capture.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

MAX_PRICE_DIFFERENCE_PERCENT = Decimal("1")
DEFAULT_TAX_RATE = Decimal("0.12")
DEFAULT_SERVICE_CHARGE_RATE = Decimal("0.10")
PRICE_CHANGED_REASON = "Price has changed since booking was created"

CENT = Decimal("0.01")
ONE_DAY = timedelta(days=1)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from turning into binary noise
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedStay:
    """A stay priced at a given nightly rate."""
    check_in: date | datetime
    check_out: date | datetime
    unit_price: Decimal


@dataclass(frozen=True)
class BookingTotals:
    subtotal: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class PriceVerificationResult:
    valid: bool
    stored_total: Decimal
    calculated_total: Decimal
    difference: Decimal
    percentage_diff: Decimal
    reason: str | None = None


def calculate_nights(check_in: date | datetime, check_out: date | datetime) -> int:
    """Nights between two instants, rounded up; a same-day stay counts as one night."""
    seconds = (check_out - check_in).total_seconds()
    return max(1, math.ceil(seconds / ONE_DAY.total_seconds()))


def calculate_item_total(stay: PricedStay) -> Decimal:
    return calculate_nights(stay.check_in, stay.check_out) * to_decimal(stay.unit_price)


def calculate_subtotal(stays: Iterable[PricedStay]) -> Decimal:
    return sum((calculate_item_total(stay) for stay in stays), Decimal("0"))


def calculate_booking_totals(
    subtotal,
    tax_rate=DEFAULT_TAX_RATE,
    service_charge_rate=DEFAULT_SERVICE_CHARGE_RATE,
) -> BookingTotals:
    """
    Totals stored on a new booking.

    Tax and service charge are both taken on the subtotal, so the stored
    total equals ``subtotal * (1 + tax_rate + service_charge_rate)``, the
    same formula price verification recomputes.
    """
    subtotal = to_decimal(subtotal)
    tax_rate = to_decimal(tax_rate)
    service_charge_rate = to_decimal(service_charge_rate)
    return BookingTotals(
        subtotal=quantize_money(subtotal),
        tax_amount=quantize_money(subtotal * tax_rate),
        service_charge=quantize_money(subtotal * service_charge_rate),
        total_amount=quantize_money(subtotal * (1 + tax_rate + service_charge_rate)),
    )


def calculate_percentage_diff(stored, calculated) -> Decimal:
    stored = to_decimal(stored)
    calculated = to_decimal(calculated)
    if stored == 0:
        return Decimal("0") if calculated == 0 else Decimal("100")
    return abs(calculated - stored) / stored * 100


def is_within_tolerance(percentage_diff, max_percent=MAX_PRICE_DIFFERENCE_PERCENT) -> bool:
    return to_decimal(percentage_diff) <= to_decimal(max_percent)


def verify_booking_amount(
    stored_total,
    stays: Iterable[PricedStay],
    tax_rate=DEFAULT_TAX_RATE,
    service_charge_rate=DEFAULT_SERVICE_CHARGE_RATE,
    *,
    max_percent=MAX_PRICE_DIFFERENCE_PERCENT,
) -> PriceVerificationResult:
    """
    Compare a stored total with one recomputed from current unit prices.

    ``max_percent`` exists so tests can exercise the tolerance; production
    callers leave it at the 1% policy value.
    """
    stored_total = to_decimal(stored_total)
    subtotal = calculate_subtotal(stays)
    calculated_total = subtotal * (1 + to_decimal(tax_rate) + to_decimal(service_charge_rate))

    percentage_diff = calculate_percentage_diff(stored_total, calculated_total)
    valid = is_within_tolerance(percentage_diff, max_percent)

    return PriceVerificationResult(
        valid=valid,
        stored_total=stored_total,
        calculated_total=calculated_total,
        difference=calculated_total - stored_total,
        percentage_diff=percentage_diff,
        reason=None if valid else PRICE_CHANGED_REASON,
    )
