"""URL routing for the zone catalogue."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ZoneViewSet

router = DefaultRouter()
router.register(r"", ZoneViewSet, basename="zone")

urlpatterns = [
    path("", include(router.urls)),
]
