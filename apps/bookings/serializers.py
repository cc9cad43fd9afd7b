"""Serializers for the booking domain."""

from __future__ import annotations

import re
from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .application.command_handlers import BookingItemRequest, CreateBookingCommand

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


class StayValidationMixin:
    def validate(self, attrs):  # type: ignore
        if attrs["check_in"] >= attrs["check_out"]:
            raise serializers.ValidationError("Check-out date must be after check-in date.")
        return attrs


# ===== Availability =====

class AvailabilityQuerySerializer(StayValidationMixin, serializers.Serializer):
    room_type = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()


class BulkAvailabilitySerializer(serializers.Serializer):
    checks = AvailabilityQuerySerializer(many=True, allow_empty=False)


class CalendarQuerySerializer(serializers.Serializer):
    room_type = serializers.IntegerField(min_value=1)
    month = serializers.CharField(help_text="Month in YYYY-MM format.")

    def validate_month(self, value: str) -> tuple[int, int]:
        match = MONTH_PATTERN.match(value)
        if not match or not 1 <= int(match.group(2)) <= 12:
            raise serializers.ValidationError("Month must be in YYYY-MM format.")
        return int(match.group(1)), int(match.group(2))


class UnitAvailabilitySerializer(serializers.Serializer):
    room_type_id = serializers.IntegerField()
    check_in = serializers.DateField(allow_null=True)
    check_out = serializers.DateField(allow_null=True)
    total_units = serializers.IntegerField()
    booked_units = serializers.IntegerField()
    available_units = serializers.IntegerField()
    available = serializers.BooleanField()
    limited_availability = serializers.BooleanField()


class DateAvailabilitySerializer(serializers.Serializer):
    date = serializers.DateField()
    available_units = serializers.IntegerField()
    total_units = serializers.IntegerField()
    status = serializers.CharField()


# ===== Booking commands =====

class BookingItemInputSerializer(StayValidationMixin, serializers.Serializer):
    room_type = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    guests = serializers.IntegerField(min_value=1, default=1)


class BookingCreateSerializer(serializers.Serializer):
    """Guest checkout form: one or more room types plus contact details."""

    items = BookingItemInputSerializer(many=True, allow_empty=False)
    guest_first_name = serializers.CharField(max_length=100)
    guest_last_name = serializers.CharField(max_length=100)
    guest_email = serializers.EmailField()
    guest_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")

    def to_command(self, user_id: int | None = None) -> CreateBookingCommand:
        data = self.validated_data
        return CreateBookingCommand(
            items=[
                BookingItemRequest(
                    room_type_id=item["room_type"],
                    check_in=item["check_in"],
                    check_out=item["check_out"],
                    guests=item["guests"],
                )
                for item in data["items"]
            ],
            guest_first_name=data["guest_first_name"],
            guest_last_name=data["guest_last_name"],
            guest_email=data["guest_email"],
            guest_phone=data["guest_phone"],
            special_requests=data["special_requests"],
            user_id=user_id,
        )


class BookingLookupSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=16)
    email = serializers.EmailField()


class TokenSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128)


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    token = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")


class CheckoutSerializer(serializers.Serializer):
    verification_token = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")


class ConfirmBookingSerializer(serializers.Serializer):
    amount_paid = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
        default=None,
    )


# ===== Booking output =====

class BookingItemDetailsSerializer(serializers.Serializer):
    room_type_id = serializers.IntegerField()
    room_type_name = serializers.CharField()
    property_name = serializers.CharField()
    property_location = serializers.CharField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    nights = serializers.IntegerField()
    price_per_night = serializers.DecimalField(max_digits=10, decimal_places=2)
    guests = serializers.IntegerField()


class PolicyDetailsSerializer(serializers.Serializer):
    title = serializers.CharField()
    description = serializers.CharField()


class BookingDetailsSerializer(serializers.Serializer):
    """Read-only view of a booking as shown to the guest."""

    id = serializers.IntegerField()
    reference = serializers.CharField()
    status = serializers.CharField()
    payment_status = serializers.CharField()
    guest_first_name = serializers.CharField()
    guest_last_name = serializers.CharField()
    guest_email = serializers.EmailField()
    guest_phone = serializers.CharField()
    special_requests = serializers.CharField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    service_charge = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    created_at = serializers.DateTimeField()
    cancelled_at = serializers.DateTimeField(allow_null=True)
    cancellation_reason = serializers.CharField()
    refund_amount = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    cancellation_fee = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    cancellation_policy = serializers.CharField()
    items = BookingItemDetailsSerializer(many=True)
    policies = PolicyDetailsSerializer(many=True)
