"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import BalancePaymentInfoView, DepositPaymentInfoView

urlpatterns = [
    path("bookings/<int:booking_id>/balance-info/", BalancePaymentInfoView.as_view(), name="payment-balance-info"),
    path("bookings/<int:booking_id>/deposit-info/", DepositPaymentInfoView.as_view(), name="payment-deposit-info"),
]
