"""Tests for zone deposit rules and the zone catalogue API."""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User
from apps.zones.models import Unit, Zone
from apps.zones.serializers import ZoneSerializer
from shared.domain.value_objects import Money


class ZoneDepositTests(TestCase):
    def test_percentage_deposit_is_rounded(self) -> None:
        zone = Zone(deposit_type=Zone.DepositType.PERCENTAGE, deposit_value=Decimal("30"))

        self.assertEqual(zone.deposit_for(Money(Decimal("1100001"))).amount, Decimal("330000"))

    def test_zero_deposit(self) -> None:
        zone = Zone(deposit_value=Decimal("0"))

        self.assertEqual(zone.deposit_for(Money(Decimal("500000"))).amount, Decimal("0"))

    def test_fixed_deposit_in_usd_keeps_cents(self) -> None:
        zone = Zone(deposit_type=Zone.DepositType.FIXED_AMOUNT, deposit_value=Decimal("49.995"), currency="USD")

        self.assertEqual(zone.deposit_for(Money(Decimal("200"), "USD")).amount, Decimal("50.00"))


class ZoneCurrencyTests(TestCase):
    def test_unsupported_currency_is_rejected_by_the_model(self) -> None:
        zone = Zone(name="Steppe Camp", slug="steppe-camp", currency="GBP")

        with self.assertRaises(ValidationError) as ctx:
            zone.full_clean()
        self.assertIn("currency", ctx.exception.message_dict)

    def test_unsupported_currency_is_rejected_by_the_serializer(self) -> None:
        serializer = ZoneSerializer(data={"name": "Steppe Camp", "slug": "steppe-camp", "currency": "GBP"})

        self.assertFalse(serializer.is_valid())
        self.assertIn("currency", serializer.errors)

    def test_supported_currency_passes(self) -> None:
        serializer = ZoneSerializer(data={"name": "Lake Side", "slug": "lake-side", "currency": "USD"})

        self.assertTrue(serializer.is_valid(), serializer.errors)


class ZoneAPITests(APITestCase):
    def setUp(self) -> None:
        self.zone = Zone.objects.create(name="Pine Hill", slug="pine-hill")
        self.other = Zone.objects.create(name="Lake Side", slug="lake-side")
        Zone.objects.create(name="Closed", slug="closed", is_active=False)
        Unit.objects.create(zone=self.zone, name="Safari tent", base_nightly_rate=Decimal("500000"))

    def test_admin_sees_active_zones_with_catalogue(self) -> None:
        admin = User.objects.create_user(email="admin@example.com", password="AdminPass123", role="admin")
        self.client.force_authenticate(admin)

        response = self.client.get(reverse("zone-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([zone["name"] for zone in response.data], ["Lake Side", "Pine Hill"])
        pine_hill = response.data[1]
        self.assertEqual(pine_hill["units"][0]["name"], "Safari tent")

    def test_owner_sees_only_assigned_zone(self) -> None:
        owner = User.objects.create_user(email="owner@example.com", password="OwnerPass123", role="owner")
        owner.zones.add(self.other)
        self.client.force_authenticate(owner)

        response = self.client.get(reverse("zone-list"))

        self.assertEqual([zone["slug"] for zone in response.data], ["lake-side"])
