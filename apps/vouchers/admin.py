"""Admin registration for vouchers."""

from __future__ import annotations

from django.contrib import admin

from .models import Voucher, VoucherRedemption


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = ("code", "type", "amount", "status", "current_uses", "max_uses", "recurrence", "zone")
    list_filter = ("status", "type", "recurrence", "application_type", "zone")
    search_fields = ("code", "name")
    filter_horizontal = ("units", "menu_items")
    readonly_fields = ("current_uses", "created_at", "updated_at")


@admin.register(VoucherRedemption)
class VoucherRedemptionAdmin(admin.ModelAdmin):
    list_display = ("voucher", "booking", "line_kind", "line_id", "discount_amount", "created_at")
    list_filter = ("line_kind",)
    search_fields = ("voucher__code", "booking__code")
    readonly_fields = ("voucher", "booking", "line_kind", "line_id", "discount_amount", "created_at")
