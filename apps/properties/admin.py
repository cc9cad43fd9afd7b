"""Admin registrations for properties domain."""

from __future__ import annotations

from django.contrib import admin

from .models import Property, PropertyPolicy, RoomType, RoomUnit


class PropertyPolicyInline(admin.TabularInline):
    model = PropertyPolicy
    extra = 0
    fields = ("title", "description")


class RoomUnitInline(admin.TabularInline):
    model = RoomUnit
    extra = 0
    fields = ("label", "is_active", "deleted_at")


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "location", "created_at")
    search_fields = ("name", "location")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [PropertyPolicyInline]


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "property", "price", "capacity", "is_active")
    list_filter = ("is_active", "property")
    search_fields = ("name", "property__name")
    inlines = [RoomUnitInline]


@admin.register(RoomUnit)
class RoomUnitAdmin(admin.ModelAdmin):
    list_display = ("label", "room_type", "is_active", "deleted_at")
    list_filter = ("is_active", "room_type")
    search_fields = ("label", "room_type__name")
