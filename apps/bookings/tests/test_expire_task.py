"""Tests for the periodic payment expiry task."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.tasks import expire_overdue_payments


@pytest.mark.django_db
def test_expires_only_overdue_unpaid_bookings(zone):
    past = timezone.now() - timedelta(minutes=5)
    overdue = Booking.objects.create(zone=zone, customer_name="Late", payment_expires_at=past)
    Booking.objects.create(zone=zone, customer_name="On time", payment_expires_at=timezone.now() + timedelta(hours=1))
    Booking.objects.create(
        zone=zone,
        customer_name="Paid",
        payment_expires_at=past,
        payment_status=Booking.PaymentStatus.DEPOSIT_PAID,
    )
    Booking.objects.create(zone=zone, customer_name="Confirmed", payment_expires_at=past, status=Booking.Status.CONFIRMED)

    result = expire_overdue_payments()

    assert result == {"expired": 1, "failed": 0}
    overdue.refresh_from_db()
    assert overdue.payment_status == Booking.PaymentStatus.EXPIRED
    assert overdue.history.filter(action="payment_expired").exists()


@pytest.mark.django_db
def test_running_twice_is_harmless(zone):
    Booking.objects.create(zone=zone, customer_name="Late", payment_expires_at=timezone.now() - timedelta(minutes=5))

    assert expire_overdue_payments()["expired"] == 1
    assert expire_overdue_payments() == {"expired": 0, "failed": 0}


@pytest.mark.django_db
def test_expired_booking_reports_lazily(zone):
    booking = Booking(
        zone=zone,
        customer_name="Late",
        payment_expires_at=timezone.now() - timedelta(seconds=1),
    )

    assert booking.is_payment_expired
    booking.status = Booking.Status.CONFIRMED
    assert not booking.is_payment_expired
