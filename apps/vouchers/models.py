"""Voucher models."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Voucher(models.Model):
    """Discount code redeemable on accommodation or menu lines."""

    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED = "fixed", _("Fixed amount")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        PAUSED = "paused", _("Paused")

    class Recurrence(models.TextChoices):
        ONE_TIME = "one_time", _("One time")
        DATE_RANGE = "date_range", _("Date range")
        ALWAYS = "always", _("Always")

    class ApplicationType(models.TextChoices):
        ALL = "all", _("Everything")
        ACCOMMODATION = "accommodation", _("Accommodation")
        MENU = "menu", _("Menu")

    code = models.CharField(max_length=64, unique=True, help_text=_("Matched case-insensitively."))
    name = models.CharField(max_length=255, blank=True)
    type = models.CharField(max_length=20, choices=DiscountType.choices, default=DiscountType.PERCENTAGE)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Percent for percentage vouchers, money for fixed ones."),
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    current_uses = models.PositiveIntegerField(default=0)
    max_uses = models.PositiveIntegerField(null=True, blank=True, help_text=_("Empty means unlimited."))
    recurrence = models.CharField(max_length=20, choices=Recurrence.choices, default=Recurrence.ALWAYS)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    weekly_days = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Check-in weekdays the voucher applies to, 0=Sunday ... 6=Saturday. Empty means every day."),
    )
    zone = models.ForeignKey(
        "zones.Zone",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="vouchers",
    )
    application_type = models.CharField(
        max_length=20,
        choices=ApplicationType.choices,
        default=ApplicationType.ALL,
    )
    units = models.ManyToManyField("zones.Unit", blank=True, related_name="vouchers")
    menu_items = models.ManyToManyField("zones.MenuItem", blank=True, related_name="vouchers")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Voucher")
        verbose_name_plural = _("Vouchers")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.code


class VoucherRedemption(models.Model):
    """One applied voucher on one booking line."""

    class LineKind(models.TextChoices):
        ACCOMMODATION = "accommodation", _("Accommodation")
        MENU = "menu", _("Menu product")

    voucher = models.ForeignKey(Voucher, on_delete=models.PROTECT, related_name="redemptions")
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="voucher_redemptions",
    )
    line_kind = models.CharField(max_length=20, choices=LineKind.choices)
    line_id = models.PositiveBigIntegerField()
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Voucher redemption")
        verbose_name_plural = _("Voucher redemptions")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["line_kind", "line_id"], name="unique_redemption_per_line"),
        ]

    def __str__(self) -> str:
        return f"{self.voucher.code} on {self.line_kind} #{self.line_id}"
