"""API views for the booking domain.

Reads go straight to the ORM; every write is delegated to a mutation
handler and its MutationResult is turned into the HTTP response.
"""

from __future__ import annotations

from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsStaffSession
from apps.users.session import get_session
from shared.domain.exceptions import BookingEngineError

from .application import command_handlers as handlers
from .availability import availability_calendar, check_availability_batch
from .history import history_for
from .models import Booking
from .pricing.tax import compute_tax
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingHistorySerializer,
    BookingSerializer,
    CalendarQuerySerializer,
    MenuProductInputSerializer,
    MenuProductUpdateSerializer,
    PaymentDeleteSerializer,
    PaymentInputSerializer,
    PaymentUpdateSerializer,
    RefundResolutionSerializer,
    StatusChangeSerializer,
    StayDatesSerializer,
    TaxInvoiceSerializer,
)


def error_response(exc: BookingEngineError) -> Response:
    return Response({"code": exc.code, "detail": exc.message}, status=exc.http_status)


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Viewset for back-office booking management."""

    serializer_class = BookingSerializer
    permission_classes = [IsStaffSession]
    queryset = Booking.objects.select_related("zone").prefetch_related(
        "units__unit", "units__parameters__parameter", "menu_products__menu_item", "payments"
    )
    filterset_fields = ["zone", "status", "payment_status"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        session = get_session(self.request)
        if session.accessible_zone_ids is not None:
            qs = qs.filter(zone_id__in=session.accessible_zone_ids)
        return qs

    def _respond(self, result: handlers.MutationResult, success_status=status.HTTP_200_OK) -> Response:
        if not result.success:
            return Response(
                {"code": result.error.code, "detail": result.error.message},
                status=result.error.http_status,
            )
        booking = self.get_queryset().get(pk=result.data["booking_id"])
        payload = {
            "booking": BookingSerializer(booking, context=self.get_serializer_context()).data,
            "totals": result.totals.to_dict(),
            "result": result.data,
        }
        return Response(payload, status=success_status)

    def _session(self):
        return get_session(self.request)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        command = handlers.CreateBookingCommand(
            session=self._session(),
            zone_id=data["zone_id"],
            customer_name=data["customer_name"],
            customer_email=data["customer_email"],
            customer_phone=data["customer_phone"],
            notes=data["notes"],
            tax_invoice_required=data["tax_invoice_required"],
            units=[
                handlers.UnitRequest(
                    unit_id=unit["unit_id"],
                    check_in=unit["check_in"],
                    check_out=unit["check_out"],
                    parameters=[handlers.ParameterRequest(**parameter) for parameter in unit["parameters"]],
                    voucher_code=unit["voucher_code"],
                    subtotal_override=unit.get("subtotal_override"),
                    tax_rate=unit.get("tax_rate"),
                )
                for unit in data["units"]
            ],
            menu_products=[
                handlers.MenuProductRequest(
                    menu_item_id=product["menu_item_id"],
                    quantity=product["quantity"],
                    serving_date=product.get("serving_date"),
                    voucher_code=product["voucher_code"],
                    notes=product["notes"],
                )
                for product in data["menu_products"]
            ],
        )
        result = handlers.CreateBookingHandler().execute(command)
        return self._respond(result, success_status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="menu-products")
    def add_menu_product(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = MenuProductInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.AddMenuProductCommand(session=self._session(), booking_id=booking.pk, **serializer.validated_data)
        return self._respond(handlers.AddMenuProductHandler().execute(command), success_status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch", "delete"], url_path=r"menu-products/(?P<product_id>\d+)")
    def menu_product(self, request, pk=None, product_id=None):  # type: ignore
        booking = self.get_object()
        if request.method == "DELETE":
            command = handlers.RemoveMenuProductCommand(
                session=self._session(), booking_id=booking.pk, product_id=int(product_id)
            )
            return self._respond(handlers.RemoveMenuProductHandler().execute(command))

        serializer = MenuProductUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.UpdateMenuProductCommand(
            session=self._session(), booking_id=booking.pk, product_id=int(product_id), **serializer.validated_data
        )
        return self._respond(handlers.UpdateMenuProductHandler().execute(command))

    @action(detail=True, methods=["post"], url_path="tax-invoice")
    def tax_invoice(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = TaxInvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.ToggleTaxInvoiceCommand(
            session=self._session(), booking_id=booking.pk, enabled=serializer.validated_data["enabled"]
        )
        return self._respond(handlers.ToggleTaxInvoiceHandler().execute(command))

    @action(detail=True, methods=["post"], url_path=r"units/(?P<booking_unit_id>\d+)/dates")
    def stay_dates(self, request, pk=None, booking_unit_id=None):  # type: ignore
        booking = self.get_object()
        serializer = StayDatesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.ChangeStayDatesCommand(
            session=self._session(),
            booking_id=booking.pk,
            booking_unit_id=int(booking_unit_id),
            **serializer.validated_data,
        )
        return self._respond(handlers.ChangeStayDatesHandler().execute(command))

    @action(detail=True, methods=["post"])
    def payments(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = PaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.RecordPaymentCommand(session=self._session(), booking_id=booking.pk, **serializer.validated_data)
        return self._respond(handlers.RecordPaymentHandler().execute(command), success_status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch", "delete"], url_path=r"payments/(?P<payment_id>\d+)")
    def payment(self, request, pk=None, payment_id=None):  # type: ignore
        booking = self.get_object()
        if request.method == "DELETE":
            serializer = PaymentDeleteSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            command = handlers.DeletePaymentCommand(
                session=self._session(),
                booking_id=booking.pk,
                payment_id=int(payment_id),
                reason=serializer.validated_data["reason"],
            )
            return self._respond(handlers.DeletePaymentHandler().execute(command))

        serializer = PaymentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.UpdatePaymentCommand(
            session=self._session(), booking_id=booking.pk, payment_id=int(payment_id), **serializer.validated_data
        )
        return self._respond(handlers.UpdatePaymentHandler().execute(command))

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.ChangeStatusCommand(session=self._session(), booking_id=booking.pk, **serializer.validated_data)
        return self._respond(handlers.ChangeStatusHandler().execute(command))

    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = RefundResolutionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = handlers.ResolveRefundCommand(session=self._session(), booking_id=booking.pk, **serializer.validated_data)
        return self._respond(handlers.ResolveRefundHandler().execute(command))

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        return Response(BookingHistorySerializer(history_for(booking.pk), many=True).data)

    @action(detail=True, methods=["get"])
    def tax(self, request, pk=None):  # type: ignore
        """Per-line VAT breakdown, computed even when no invoice is requested."""
        booking = self.get_object()
        computation = compute_tax(booking.pk)
        return Response(
            {
                "tax_invoice_required": booking.tax_invoice_required,
                "total_tax_amount": str(computation.total_tax_amount),
                "lines": [
                    {
                        "kind": line.kind,
                        "line_id": line.line_id,
                        "taxable_amount": str(line.taxable_amount),
                        "rate": str(line.rate),
                        "tax_amount": str(line.tax_amount),
                    }
                    for line in computation.lines
                ],
            }
        )


class AvailabilityView(APIView):
    """Availability of several units for one stay."""

    permission_classes = [IsStaffSession]

    def post(self, request):  # type: ignore
        serializer = AvailabilityQuerySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            results = check_availability_batch(
                data["unit_ids"], data["check_in"], data["check_out"], session=get_session(request)
            )
        except BookingEngineError as exc:
            return error_response(exc)
        return Response(
            [
                {
                    "unit_id": result.unit_id,
                    "available": result.available,
                    "available_quantity": result.available_quantity,
                    "conflict_count": result.conflict_count,
                    "unlimited": result.unlimited,
                    "error": result.error,
                }
                for result in results
            ]
        )


class AvailabilityCalendarView(APIView):
    """Per-night availability of one unit."""

    permission_classes = [IsStaffSession]

    def get(self, request):  # type: ignore
        serializer = CalendarQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            days = availability_calendar(data["unit_id"], data["start"], data["end"], session=get_session(request))
        except BookingEngineError as exc:
            return error_response(exc)
        return Response(
            [
                {
                    "date": day.date.isoformat(),
                    "available": day.available,
                    "available_quantity": day.available_quantity,
                    "booked_count": day.booked_count,
                }
                for day in days
            ]
        )
