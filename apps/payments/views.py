"""API views for payment instructions."""

from __future__ import annotations

from rest_framework.generics import get_object_or_404  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Booking
from apps.users.permissions import IsStaffSession
from apps.users.session import get_session
from shared.domain.exceptions import BookingEngineError

from .bank_info import get_payment_instructions
from .serializers import PaymentInstructionsSerializer


class BalancePaymentInfoView(APIView):
    """Bank transfer details and QR for the balance left after the deposit.

    Only offered while the booking is deposit_paid and still owes money.
    """

    permission_classes = [IsStaffSession]

    def get(self, request, booking_id: int):  # type: ignore
        session = get_session(request)
        qs = Booking.objects.select_related("zone")
        if session.accessible_zone_ids is not None:
            qs = qs.filter(zone_id__in=session.accessible_zone_ids)
        booking = get_object_or_404(qs, pk=booking_id)

        if booking.payment_status != Booking.PaymentStatus.DEPOSIT_PAID:
            return Response(
                {"code": "state_conflict", "detail": "Balance payment is only available after the deposit is paid."},
                status=409,
            )
        if booking.balance_due <= 0:
            return Response({"code": "state_conflict", "detail": "Nothing left to pay."}, status=409)

        try:
            instructions = get_payment_instructions(booking.zone, booking.balance_due, f"{booking.code}balance")
        except BookingEngineError as exc:
            return Response({"code": exc.code, "detail": exc.message}, status=exc.http_status)
        return Response(PaymentInstructionsSerializer(instructions).data)


class DepositPaymentInfoView(APIView):
    """Transfer details for the deposit of a booking that has not been paid yet."""

    permission_classes = [IsStaffSession]

    def get(self, request, booking_id: int):  # type: ignore
        session = get_session(request)
        qs = Booking.objects.select_related("zone")
        if session.accessible_zone_ids is not None:
            qs = qs.filter(zone_id__in=session.accessible_zone_ids)
        booking = get_object_or_404(qs, pk=booking_id)

        if booking.payment_status != Booking.PaymentStatus.PENDING or booking.is_payment_expired:
            return Response(
                {"code": "state_conflict", "detail": "Deposit is not payable for this booking."},
                status=409,
            )

        amount = booking.deposit_due if booking.deposit_due > 0 else booking.total_amount
        try:
            instructions = get_payment_instructions(booking.zone, amount, f"{booking.code} DEPOSIT")
        except BookingEngineError as exc:
            return Response({"code": exc.code, "detail": exc.message}, status=exc.http_status)
        return Response(PaymentInstructionsSerializer(instructions).data)
