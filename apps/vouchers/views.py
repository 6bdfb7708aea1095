"""API views for vouchers."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsStaffSession
from apps.users.session import get_session
from shared.domain.exceptions import BookingEngineError

from .models import Voucher
from .serializers import VoucherCheckSerializer, VoucherSerializer, VoucherValidationSerializer
from .validator import VoucherContext, validate_voucher


class VoucherViewSet(viewsets.ModelViewSet):
    """Back-office management of voucher codes."""

    serializer_class = VoucherSerializer
    permission_classes = [IsStaffSession]
    queryset = Voucher.objects.select_related("zone").prefetch_related("units", "menu_items")

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        session = get_session(self.request)
        if session.accessible_zone_ids is not None:
            qs = qs.filter(zone_id__in=session.accessible_zone_ids)
        return qs


class VoucherCheckView(APIView):
    """Preview a voucher for a checkout form without consuming it."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = VoucherCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        context = VoucherContext(
            zone_id=data.get("zone_id"),
            item_id=data.get("item_id"),
            charge_amount=data["amount"],
            check_in=data.get("check_in"),
            application_type=data["application_type"],
        )

        try:
            with transaction.atomic():
                result = validate_voucher(data["code"], context)
                # Release the row lock without writing anything.
                transaction.set_rollback(True)
        except BookingEngineError as exc:
            return Response({"code": exc.code, "detail": exc.message}, status=exc.http_status)

        return Response(VoucherValidationSerializer(result).data, status=status.HTTP_200_OK)
