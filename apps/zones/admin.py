"""Admin registration for the zone catalogue."""

from __future__ import annotations

from django.contrib import admin

from .models import MenuItem, Parameter, Unit, Zone


class UnitInline(admin.TabularInline):
    model = Unit
    extra = 0
    fields = ("name", "base_nightly_rate", "inventory_quantity", "unlimited_inventory", "tax_rate", "is_active")


@admin.register(Zone)
class ZoneAdmin(admin.ModelAdmin):
    list_display = ("name", "currency", "deposit_type", "deposit_value", "is_active")
    list_filter = ("is_active", "deposit_type")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [UnitInline]


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("name", "zone", "inventory_quantity", "unlimited_inventory", "tax_rate", "is_active")
    list_filter = ("zone", "unlimited_inventory", "is_active")
    search_fields = ("name",)


@admin.register(Parameter)
class ParameterAdmin(admin.ModelAdmin):
    list_display = ("name", "zone", "default_price", "pricing_mode")
    list_filter = ("zone", "pricing_mode")


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "zone", "price", "tax_rate", "is_active")
    list_filter = ("zone", "is_active")
    search_fields = ("name",)
