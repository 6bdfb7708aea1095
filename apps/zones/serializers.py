"""Serializers for the zone catalogue."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import MenuItem, Parameter, Unit, Zone


class UnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = Unit
        fields = [
            "id",
            "name",
            "base_nightly_rate",
            "inventory_quantity",
            "unlimited_inventory",
            "allocation_type",
            "tax_rate",
            "is_active",
        ]


class ParameterSerializer(serializers.ModelSerializer):
    class Meta:
        model = Parameter
        fields = ["id", "name", "default_price", "pricing_mode"]


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = ["id", "name", "price", "tax_rate", "is_active"]


class ZoneSerializer(serializers.ModelSerializer):
    units = UnitSerializer(many=True, read_only=True)
    parameters = ParameterSerializer(many=True, read_only=True)
    menu_items = MenuItemSerializer(many=True, read_only=True)

    class Meta:
        model = Zone
        fields = [
            "id",
            "name",
            "slug",
            "currency",
            "deposit_type",
            "deposit_value",
            "payment_window_minutes",
            "is_active",
            "units",
            "parameters",
            "menu_items",
        ]
