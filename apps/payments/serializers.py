"""Serializers for payments and transfer instructions."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "amount", "method", "status", "notes", "paid_at", "created_by", "created_at"]


class PaymentInstructionsSerializer(serializers.Serializer):
    bank_name = serializers.CharField()
    bank_id = serializers.CharField()
    account_number = serializers.CharField()
    account_name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    description = serializers.CharField()
    qr_code_url = serializers.URLField()
