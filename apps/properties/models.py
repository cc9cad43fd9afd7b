"""Property and room inventory models.

A room type is a category of interchangeable units. Its capacity for
availability math is the number of active, non-deleted RoomUnit rows;
units are never reserved individually.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Property(models.Model):
    """A hotel or resort that owns room types."""

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    location = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Property")
        verbose_name_plural = _("Properties")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            self.slug = slugify(self.name)[:255]
        super().save(*args, **kwargs)


class PropertyPolicy(models.Model):
    """House rule shown to guests alongside their booking."""

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="policies",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Property policy")
        verbose_name_plural = _("Property policies")
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.property}: {self.title}"


class RoomType(models.Model):
    """Category of interchangeable inventory, e.g. "Deluxe King"."""

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="room_types",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Current nightly price. Bookings freeze their own copy."),
    )
    capacity = models.PositiveSmallIntegerField(
        default=2,
        help_text=_("Maximum number of guests per unit."),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room type")
        verbose_name_plural = _("Room types")
        ordering = ["property_id", "name"]

    def __str__(self) -> str:
        return self.name


class RoomUnitQuerySet(models.QuerySet):
    def active(self) -> "RoomUnitQuerySet":
        """Units that count toward capacity."""
        return self.filter(is_active=True, deleted_at__isnull=True)


class RoomUnit(models.Model):
    """A physical room belonging to a room type."""

    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.CASCADE,
        related_name="units",
    )
    label = models.CharField(max_length=50)
    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = RoomUnitQuerySet.as_manager()

    class Meta:
        verbose_name = _("Room unit")
        verbose_name_plural = _("Room units")
        ordering = ["room_type_id", "label"]
        indexes = [
            models.Index(fields=["room_type", "is_active", "deleted_at"], name="room_unit_capacity_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.room_type} #{self.label}"

    def soft_delete(self) -> None:
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at"])
