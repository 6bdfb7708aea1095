"""API tests for deposit and balance transfer instructions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.application.command_handlers import (
    CreateBookingCommand,
    CreateBookingHandler,
    RecordPaymentCommand,
    RecordPaymentHandler,
    UnitRequest,
)
from apps.bookings.models import Booking
from apps.users.models import User
from apps.users.session import StaffSession
from apps.zones.models import Unit, Zone


class PaymentInfoAPITests(APITestCase):
    def setUp(self) -> None:
        self.zone = Zone.objects.create(
            name="Pine Hill",
            slug="pine-hill",
            deposit_value=Decimal("30"),
            bank_name="Vietcombank",
            bank_bin="VCB",
            bank_account_number="0123456789",
            bank_account_name="PINE HILL GLAMPING",
        )
        unit = Unit.objects.create(zone=self.zone, name="Safari tent", base_nightly_rate=Decimal("500000"))
        self.session = StaffSession(role="admin", id=None, name="Test admin")
        result = CreateBookingHandler().execute(
            CreateBookingCommand(
                session=self.session,
                zone_id=self.zone.pk,
                customer_name="Nguyen Van A",
                units=[UnitRequest(unit_id=unit.pk, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3))],
            )
        )
        self.booking = Booking.objects.get(pk=result.data["booking_id"])
        self.client.force_authenticate(
            User.objects.create_user(email="sale@example.com", password="SalePass123", role=User.RoleChoices.SALE)
        )

    def test_deposit_info_for_unpaid_booking(self) -> None:
        response = self.client.get(reverse("payment-deposit-info", args=[self.booking.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(Decimal(response.data["amount"]), Decimal("300000"))
        self.assertEqual(response.data["description"], f"{self.booking.code} DEPOSIT")

    def test_balance_info_requires_deposit(self) -> None:
        response = self.client.get(reverse("payment-balance-info", args=[self.booking.pk]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_balance_info_after_deposit(self) -> None:
        RecordPaymentHandler().execute(
            RecordPaymentCommand(session=self.session, booking_id=self.booking.pk, amount=Decimal("300000"))
        )

        response = self.client.get(reverse("payment-balance-info", args=[self.booking.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(Decimal(response.data["amount"]), Decimal("700000"))
        self.assertEqual(response.data["description"], f"{self.booking.code}balance")
        self.assertIn("VCB-0123456789-compact.png", response.data["qr_code_url"])

        deposit = self.client.get(reverse("payment-deposit-info", args=[self.booking.pk]))
        self.assertEqual(deposit.status_code, status.HTTP_409_CONFLICT)

    def test_missing_bank_account(self) -> None:
        Zone.objects.filter(pk=self.zone.pk).update(bank_account_number="")

        response = self.client.get(reverse("payment-deposit-info", args=[self.booking.pk]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "bank_account_missing")
