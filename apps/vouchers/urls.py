"""URL routing for vouchers."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import VoucherCheckView, VoucherViewSet

router = DefaultRouter()
router.register(r"", VoucherViewSet, basename="voucher")

urlpatterns = [
    path("validate/", VoucherCheckView.as_view(), name="voucher-validate"),
    path("", include(router.urls)),
]
