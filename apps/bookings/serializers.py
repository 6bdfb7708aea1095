"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.payments.models import Payment
from apps.payments.serializers import PaymentSerializer

from .models import Booking, BookingMenuProduct, BookingStatusHistory, BookingUnit, BookingUnitParameter


# ===== Read serializers =====

class BookingUnitParameterSerializer(serializers.ModelSerializer):
    name = serializers.ReadOnlyField(source="parameter.name")

    class Meta:
        model = BookingUnitParameter
        fields = ["id", "parameter", "name", "quantity", "unit_price", "pricing_mode"]


class BookingUnitSerializer(serializers.ModelSerializer):
    unit_name = serializers.ReadOnlyField(source="unit.name")
    nights = serializers.ReadOnlyField()
    parameters = BookingUnitParameterSerializer(many=True, read_only=True)

    class Meta:
        model = BookingUnit
        fields = [
            "id",
            "unit",
            "unit_name",
            "check_in",
            "check_out",
            "nights",
            "nightly_rate",
            "subtotal_override",
            "voucher_code",
            "discount_type",
            "discount_value",
            "discount_amount",
            "tax_rate",
            "parameters",
        ]


class BookingMenuProductSerializer(serializers.ModelSerializer):
    name = serializers.ReadOnlyField(source="menu_item.name")

    class Meta:
        model = BookingMenuProduct
        fields = [
            "id",
            "menu_item",
            "name",
            "booking_unit",
            "quantity",
            "unit_price",
            "serving_date",
            "notes",
            "voucher_code",
            "discount_amount",
            "tax_rate",
        ]


class BookingSerializer(serializers.ModelSerializer):
    """Booking with its lines, payments and stored totals."""

    zone_name = serializers.ReadOnlyField(source="zone.name")
    units = BookingUnitSerializer(many=True, read_only=True)
    menu_products = BookingMenuProductSerializer(many=True, read_only=True)
    payments = serializers.SerializerMethodField()
    is_payment_expired = serializers.ReadOnlyField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "code",
            "zone",
            "zone_name",
            "customer_name",
            "customer_email",
            "customer_phone",
            "notes",
            "check_in",
            "check_out",
            "status",
            "payment_status",
            "tax_invoice_required",
            "subtotal_amount",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "deposit_due",
            "balance_due",
            "currency",
            "payment_expires_at",
            "is_payment_expired",
            "units",
            "menu_products",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_payments(self, obj: Booking):  # type: ignore
        visible = obj.payments.exclude(status=Payment.Status.DELETED)
        return PaymentSerializer(visible, many=True).data


class BookingHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingStatusHistory
        fields = [
            "id",
            "action",
            "description",
            "previous_status",
            "new_status",
            "previous_payment_status",
            "new_payment_status",
            "changed_by",
            "changed_by_name",
            "created_at",
        ]


# ===== Command input serializers =====

class ParameterInputSerializer(serializers.Serializer):
    parameter_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True)


class UnitInputSerializer(serializers.Serializer):
    unit_id = serializers.IntegerField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    parameters = ParameterInputSerializer(many=True, required=False, default=list)
    voucher_code = serializers.CharField(required=False, allow_blank=True, default="")
    subtotal_override = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    tax_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), required=False, allow_null=True
    )

    def validate(self, attrs):  # type: ignore
        if attrs["check_in"] >= attrs["check_out"]:
            raise serializers.ValidationError({"check_out": "Check-out must be after check-in."})
        return attrs


class MenuProductInputSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    serving_date = serializers.DateField(required=False, allow_null=True)
    voucher_code = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    booking_unit_id = serializers.IntegerField(required=False, allow_null=True)


class BookingCreateSerializer(serializers.Serializer):
    zone_id = serializers.IntegerField()
    customer_name = serializers.CharField(max_length=255)
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    tax_invoice_required = serializers.BooleanField(default=False)
    units = UnitInputSerializer(many=True, allow_empty=False)
    menu_products = MenuProductInputSerializer(many=True, required=False, default=list)


class MenuProductUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    serving_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class TaxInvoiceSerializer(serializers.Serializer):
    enabled = serializers.BooleanField()


class StayDatesSerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["check_in"] >= attrs["check_out"]:
            raise serializers.ValidationError({"check_out": "Check-out must be after check-in."})
        return attrs


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    method = serializers.ChoiceField(choices=Payment.Method.choices, default=Payment.Method.BANK_TRANSFER)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    paid_at = serializers.DateTimeField(required=False, allow_null=True)


class PaymentUpdateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"), required=False)
    method = serializers.ChoiceField(choices=Payment.Method.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class PaymentDeleteSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RefundResolutionSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(
        choices=[
            (Booking.PaymentStatus.REFUNDED, Booking.PaymentStatus.REFUNDED.label),
            (Booking.PaymentStatus.NO_REFUND, Booking.PaymentStatus.NO_REFUND.label),
        ]
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AvailabilityQuerySerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    unit_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class CalendarQuerySerializer(serializers.Serializer):
    unit_id = serializers.IntegerField()
    start = serializers.DateField()
    end = serializers.DateField()
