"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "amount", "method", "status", "paid_at", "created_by")
    list_filter = ("status", "method")
    search_fields = ("booking__code", "notes")
    readonly_fields = ("booking", "amount", "status", "created_by", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
