"""API views for the zone catalogue."""

from __future__ import annotations

from rest_framework import viewsets  # type: ignore

from apps.users.permissions import IsStaffSession
from apps.users.session import get_session

from .models import Zone
from .serializers import ZoneSerializer


class ZoneViewSet(viewsets.ReadOnlyModelViewSet):
    """Zones the acting staff member may work with, with their catalogue."""

    serializer_class = ZoneSerializer
    permission_classes = [IsStaffSession]
    queryset = Zone.objects.filter(is_active=True).prefetch_related("units", "parameters", "menu_items")

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        session = get_session(self.request)
        if session.accessible_zone_ids is not None:
            qs = qs.filter(pk__in=session.accessible_zone_ids)
        return qs
