"""Shared pytest fixtures for the booking engine."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.bookings.models import Booking, BookingItem
from apps.properties.models import Property, PropertyPolicy, RoomType, RoomUnit


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def hotel(db) -> Property:
    hotel = Property.objects.create(name="Tropicana Resort", location="Puerto Galera")
    PropertyPolicy.objects.create(property=hotel, title="Check-in", description="Check-in from 2 PM.")
    return hotel


@pytest.fixture
def make_room_type(hotel):
    def factory(units: int = 2, price: str = "1000.00", capacity: int = 2, name: str = "Deluxe King") -> RoomType:
        room_type = RoomType.objects.create(
            property=hotel,
            name=name,
            price=Decimal(price),
            capacity=capacity,
        )
        for number in range(units):
            RoomUnit.objects.create(room_type=room_type, label=f"{number + 101}")
        return room_type

    return factory


@pytest.fixture
def room_type(make_room_type) -> RoomType:
    return make_room_type()


@pytest.fixture
def make_booking(db):
    def factory(
        room_type: RoomType,
        check_in: date,
        check_out: date,
        status: str = Booking.Status.CONFIRMED,
        payment_status: str = Booking.PaymentStatus.PAID,
        email: str = "guest@example.com",
        total_amount: str = "0.00",
        amount_paid: str = "0.00",
    ) -> Booking:
        booking = Booking.objects.create(
            status=status,
            payment_status=payment_status,
            guest_first_name="Juan",
            guest_last_name="Dela Cruz",
            guest_email=email,
            total_amount=Decimal(total_amount),
            amount_paid=Decimal(amount_paid),
        )
        BookingItem.objects.create(
            booking=booking,
            room_type=room_type,
            check_in=check_in,
            check_out=check_out,
            price_per_night=room_type.price,
        )
        return booking

    return factory
