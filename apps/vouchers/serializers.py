"""Serializers for voucher endpoints."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import Voucher


class VoucherSerializer(serializers.ModelSerializer):
    class Meta:
        model = Voucher
        fields = [
            "id",
            "code",
            "name",
            "type",
            "amount",
            "status",
            "current_uses",
            "max_uses",
            "recurrence",
            "start_date",
            "end_date",
            "weekly_days",
            "zone",
            "application_type",
            "units",
            "menu_items",
        ]
        read_only_fields = ["id", "current_uses"]

    def validate_weekly_days(self, value):  # type: ignore
        if any(not isinstance(day, int) or day < 0 or day > 6 for day in value):
            raise serializers.ValidationError("Weekly days must be integers from 0 (Sunday) to 6 (Saturday).")
        return sorted(set(value))

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start_date")
        end = attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        if attrs.get("type") == Voucher.DiscountType.PERCENTAGE and attrs.get("amount", Decimal("0")) > 100:
            raise serializers.ValidationError({"amount": "Percentage cannot exceed 100."})
        return attrs


class VoucherCheckSerializer(serializers.Serializer):
    """Input of the public voucher preview."""

    code = serializers.CharField(max_length=64)
    zone_id = serializers.IntegerField(required=False, allow_null=True)
    item_id = serializers.IntegerField(required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    check_in = serializers.DateField(required=False, allow_null=True)
    application_type = serializers.ChoiceField(
        choices=Voucher.ApplicationType.choices,
        default=Voucher.ApplicationType.ALL,
    )


class VoucherValidationSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    voucher_code = serializers.CharField(allow_null=True)
    discount_type = serializers.CharField(allow_null=True)
    discount_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
