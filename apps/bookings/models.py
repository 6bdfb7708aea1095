"""Booking models for glamping zones."""

from __future__ import annotations

import secrets
from datetime import date
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import CURRENCY_CHOICES, DateRange


class Booking(models.Model):
    """A customer's reservation of one or more units plus extras."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CHECKED_IN = "checked_in", _("Checked in")
        CHECKED_OUT = "checked_out", _("Checked out")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        DEPOSIT_PAID = "deposit_paid", _("Deposit paid")
        FULLY_PAID = "fully_paid", _("Fully paid")
        REFUND_PENDING = "refund_pending", _("Refund pending")
        REFUNDED = "refunded", _("Refunded")
        NO_REFUND = "no_refund", _("No refund")
        EXPIRED = "expired", _("Expired")

    code = models.CharField(max_length=12, unique=True, editable=False)
    zone = models.ForeignKey("zones.Zone", on_delete=models.PROTECT, related_name="bookings")
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=32, blank=True)
    notes = models.TextField(blank=True)
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    tax_invoice_required = models.BooleanField(default=False)

    # Derived totals. Written only by apps.bookings.pricing.totals.recalculate().
    subtotal_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    deposit_due = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    balance_due = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="VND")
    payment_expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Unpaid pending bookings expire after this moment."),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_bookings",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["zone", "status"]),
            models.Index(fields=["status", "payment_status", "payment_expires_at"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.code}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.code:
            self.code = self.generate_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def is_payment_expired(self) -> bool:
        """True once an unpaid pending booking has outlived its payment window."""
        return bool(
            self.payment_expires_at
            and self.status == self.Status.PENDING
            and self.payment_status == self.PaymentStatus.PENDING
            and timezone.now() > self.payment_expires_at
        )


class BookingUnit(models.Model):
    """Reservation of one unit for a stay, with its own dates and voucher."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="units")
    unit = models.ForeignKey("zones.Unit", on_delete=models.PROTECT, related_name="reservations")
    # Nullable because imported historical rows may be incomplete.
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)
    nightly_rate = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    subtotal_override = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Manual price for the whole stay, replaces the computed one."),
    )
    voucher = models.ForeignKey(
        "vouchers.Voucher",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="booking_units",
    )
    voucher_code = models.CharField(max_length=64, blank=True)
    discount_type = models.CharField(max_length=20, blank=True)
    discount_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Overrides the unit's VAT percent for this line."),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booked unit")
        verbose_name_plural = _("Booked units")
        ordering = ["check_in", "id"]
        indexes = [
            models.Index(fields=["unit", "check_in", "check_out"]),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id} {self.check_in} - {self.check_out}"

    def clean(self) -> None:
        if self.check_in and self.check_out and self.check_in >= self.check_out:
            raise ValidationError(_("Check-out must be after check-in."))

    @property
    def stay(self) -> DateRange | None:
        if isinstance(self.check_in, date) and isinstance(self.check_out, date) and self.check_in < self.check_out:
            return DateRange(self.check_in, self.check_out)
        return None

    @property
    def nights(self) -> int:
        stay = self.stay
        return len(stay) if stay else 0


class BookingUnitParameter(models.Model):
    """Priced option chosen for a booked unit (adults, children, extra bed)."""

    booking_unit = models.ForeignKey(BookingUnit, on_delete=models.CASCADE, related_name="parameters")
    parameter = models.ForeignKey("zones.Parameter", on_delete=models.PROTECT, related_name="+")
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Price for the whole stay."),
    )
    pricing_mode = models.CharField(max_length=20, default="per_person")

    class Meta:
        verbose_name = _("Booked unit parameter")
        verbose_name_plural = _("Booked unit parameters")

    def __str__(self) -> str:
        return f"{self.parameter_id} x{self.quantity}"


class BookingMenuProduct(models.Model):
    """Menu item ordered as part of a booking."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="menu_products")
    menu_item = models.ForeignKey("zones.MenuItem", on_delete=models.PROTECT, related_name="+")
    booking_unit = models.ForeignKey(
        BookingUnit,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="menu_products",
    )
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    serving_date = models.DateField(null=True, blank=True)
    notes = models.CharField(max_length=255, blank=True)
    voucher = models.ForeignKey(
        "vouchers.Voucher",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="booking_menu_products",
    )
    voucher_code = models.CharField(max_length=64, blank=True)
    discount_type = models.CharField(max_length=20, blank=True)
    discount_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booked menu product")
        verbose_name_plural = _("Booked menu products")
        ordering = ["serving_date", "id"]

    def __str__(self) -> str:
        return f"{self.menu_item_id} x{self.quantity}"


class BookingStatusHistory(models.Model):
    """Audit row written for every transition or notable edit. Never updated."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="history")
    previous_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    previous_payment_status = models.CharField(max_length=20, blank=True)
    new_payment_status = models.CharField(max_length=20, blank=True)
    action = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    changed_by_name = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booking history entry")
        verbose_name_plural = _("Booking history")
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"{self.booking_id}: {self.action}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise ValidationError(_("Booking history entries are immutable."))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise ValidationError(_("Booking history entries are immutable."))
