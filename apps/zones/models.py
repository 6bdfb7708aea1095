"""Catalogue models for glamping zones."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import CURRENCY_CHOICES, Money, quantize_amount


class Zone(models.Model):
    """A glamping site. Owns units, parameters, menu and payment settings."""

    class DepositType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage of total")
        FIXED_AMOUNT = "fixed_amount", _("Fixed amount")

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="VND")
    deposit_type = models.CharField(
        max_length=20,
        choices=DepositType.choices,
        default=DepositType.PERCENTAGE,
    )
    deposit_value = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Percent of total or fixed amount required upfront."),
    )
    payment_window_minutes = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Minutes a pending booking may stay unpaid. Empty uses the platform default."),
    )
    bank_name = models.CharField(max_length=100, blank=True)
    bank_bin = models.CharField(max_length=20, blank=True, help_text=_("NAPAS bank identifier."))
    bank_account_number = models.CharField(max_length=50, blank=True)
    bank_account_name = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Zone")
        verbose_name_plural = _("Zones")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def deposit_for(self, total: Money) -> Money:
        """Deposit required upfront for a booking total, never above the total."""
        value = self.deposit_value or Decimal("0")
        if self.deposit_type == self.DepositType.PERCENTAGE:
            deposit = total.percentage(value)
        else:
            deposit = Money(quantize_amount(value, total.currency), total.currency)
        return deposit.capped_at(total)


class Unit(models.Model):
    """Bookable accommodation (tent, cabin, pitch) with its own inventory."""

    class AllocationType(models.TextChoices):
        PER_NIGHT = "per_night", _("Per night")

    zone = models.ForeignKey(Zone, on_delete=models.CASCADE, related_name="units")
    name = models.CharField(max_length=255)
    base_nightly_rate = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    inventory_quantity = models.PositiveIntegerField(
        default=1,
        help_text=_("How many identical units can be reserved for the same night."),
    )
    unlimited_inventory = models.BooleanField(default=False)
    allocation_type = models.CharField(
        max_length=20,
        choices=AllocationType.choices,
        default=AllocationType.PER_NIGHT,
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text=_("VAT percent charged on accommodation. Empty means untaxed."),
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Unit")
        verbose_name_plural = _("Units")
        ordering = ["zone", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.zone})"


class Parameter(models.Model):
    """Priced option chosen per reserved unit (adults, children, extra bed...)."""

    class PricingMode(models.TextChoices):
        PER_PERSON = "per_person", _("Per person")
        PER_GROUP = "per_group", _("Per group")

    zone = models.ForeignKey(Zone, on_delete=models.CASCADE, related_name="parameters")
    name = models.CharField(max_length=255)
    default_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    pricing_mode = models.CharField(
        max_length=20,
        choices=PricingMode.choices,
        default=PricingMode.PER_PERSON,
    )

    class Meta:
        verbose_name = _("Parameter")
        verbose_name_plural = _("Parameters")
        ordering = ["zone", "name"]

    def __str__(self) -> str:
        return self.name


class MenuItem(models.Model):
    """Food or drink that can be added to a booking."""

    zone = models.ForeignKey(Zone, on_delete=models.CASCADE, related_name="menu_items")
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Menu item")
        verbose_name_plural = _("Menu items")
        ordering = ["zone", "name"]

    def __str__(self) -> str:
        return self.name
