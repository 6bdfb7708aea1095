"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingMenuProduct, BookingStatusHistory, BookingUnit


class BookingUnitInline(admin.TabularInline):
    model = BookingUnit
    extra = 0
    fields = ("unit", "check_in", "check_out", "nightly_rate", "subtotal_override", "voucher_code", "discount_amount")
    readonly_fields = fields
    can_delete = False


class BookingMenuProductInline(admin.TabularInline):
    model = BookingMenuProduct
    extra = 0
    fields = ("menu_item", "quantity", "unit_price", "serving_date", "voucher_code", "discount_amount")
    readonly_fields = fields
    can_delete = False


class BookingStatusHistoryInline(admin.TabularInline):
    model = BookingStatusHistory
    extra = 0
    fields = ("created_at", "action", "previous_status", "new_status", "new_payment_status", "changed_by_name")
    readonly_fields = fields
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Read-mostly view: edits go through the API so totals stay consistent."""

    list_display = (
        "code",
        "zone",
        "customer_name",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total_amount",
        "balance_due",
        "created_at",
    )
    list_filter = ("zone", "status", "payment_status", "tax_invoice_required")
    search_fields = ("code", "customer_name", "customer_email", "customer_phone")
    readonly_fields = (
        "code",
        "status",
        "payment_status",
        "subtotal_amount",
        "discount_amount",
        "tax_amount",
        "total_amount",
        "deposit_due",
        "balance_due",
        "created_at",
        "updated_at",
    )
    inlines = [BookingUnitInline, BookingMenuProductInline, BookingStatusHistoryInline]
