"""API tests for staff authentication and session scoping."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User
from apps.users.session import session_for_user
from apps.zones.models import Zone


class AuthAPITests(APITestCase):
    def setUp(self) -> None:
        self.zone_a = Zone.objects.create(name="Pine Hill", slug="pine-hill")
        self.zone_b = Zone.objects.create(name="Lake Side", slug="lake-side")

    def test_login_returns_tokens(self) -> None:
        User.objects.create_user(
            email="sale@example.com",
            password="CorrectPassword1",
            role=User.RoleChoices.SALE,
        )

        response = self.client.post(
            reverse("auth:login"),
            {"email": "sale@example.com", "password": "CorrectPassword1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data["tokens"])
        self.assertEqual(response.data["user"]["role"], "sale")
        self.assertIsNone(response.data["session"]["accessible_zone_ids"])

    def test_customer_login_is_refused(self) -> None:
        User.objects.create_user(email="guest@example.com", password="CorrectPassword1")

        response = self.client.post(
            reverse("auth:login"),
            {"email": "guest@example.com", "password": "CorrectPassword1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertNotIn("tokens", response.data)

    def test_login_rejects_wrong_password(self) -> None:
        User.objects.create_user(email="ops@example.com", password="CorrectPassword1")

        response = self.client.post(
            reverse("auth:login"),
            {"email": "ops@example.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_operations_session_is_scoped_to_assigned_zones(self) -> None:
        user = User.objects.create_user(
            email="ops@example.com",
            password="CorrectPassword1",
            role=User.RoleChoices.OPERATIONS,
        )
        user.zones.add(self.zone_a)
        self.client.force_authenticate(user)

        response = self.client.get(reverse("auth:session"))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["accessible_zone_ids"], [self.zone_a.id])

    def test_admin_session_sees_every_zone(self) -> None:
        user = User.objects.create_user(
            email="admin@example.com",
            password="CorrectPassword1",
            role=User.RoleChoices.ADMIN,
        )

        session = session_for_user(user)
        self.assertIsNone(session.accessible_zone_ids)
        self.assertTrue(session.can_access_zone(self.zone_b.id))

    def test_customer_has_no_staff_session(self) -> None:
        user = User.objects.create_user(email="guest@example.com", password="CorrectPassword1")
        self.client.force_authenticate(user)

        response = self.client.get(reverse("auth:session"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIsNone(session_for_user(user))
