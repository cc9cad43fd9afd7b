"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingItem


class BookingItemInline(admin.TabularInline):
    model = BookingItem
    extra = 0
    fields = ("room_type", "check_in", "check_out", "price_per_night", "guests")
    readonly_fields = ("price_per_night",)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "guest_email",
        "status",
        "payment_status",
        "total_amount",
        "amount_paid",
        "created_at",
    )
    list_filter = ("status", "payment_status", "created_at")
    search_fields = ("reference", "guest_email", "guest_last_name")
    readonly_fields = (
        "reference",
        "created_at",
        "updated_at",
        "subtotal",
        "tax_amount",
        "service_charge",
        "total_amount",
        "refund_amount",
        "cancellation_fee",
    )
    inlines = [BookingItemInline]
