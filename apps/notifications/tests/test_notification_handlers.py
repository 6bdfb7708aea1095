"""Tests for booking emails sent after committed mutations."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core import mail

from apps.bookings.application.command_handlers import (
    ChangeStatusCommand,
    ChangeStatusHandler,
    RecordPaymentCommand,
    RecordPaymentHandler,
)
from apps.notifications.services import send_template_email


@pytest.mark.django_db
def test_booking_created_email_is_sent_after_commit(create_booking, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        booking, result = create_booking()

    assert result.success
    assert len(callbacks) == 1
    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.to == ["guest@example.com"]
    assert message.subject == f"Booking #{booking.code} received"
    assert booking.code in message.body


@pytest.mark.django_db
def test_failed_mutation_sends_nothing(create_booking, django_capture_on_commit_callbacks):
    create_booking()

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        _, result = create_booking()

    assert not result.success
    assert callbacks == []
    assert mail.outbox == []


@pytest.mark.django_db
def test_payment_and_cancellation_emails(create_booking, admin_session, django_capture_on_commit_callbacks):
    booking, _ = create_booking()

    with django_capture_on_commit_callbacks(execute=True):
        RecordPaymentHandler().execute(
            RecordPaymentCommand(session=admin_session, booking_id=booking.pk, amount=Decimal("300000"))
        )
        ChangeStatusHandler().execute(
            ChangeStatusCommand(session=admin_session, booking_id=booking.pk, status="cancelled", reason="Storm")
        )

    subjects = [message.subject for message in mail.outbox]
    assert subjects == [
        f"Payment received for booking #{booking.code}",
        f"Booking #{booking.code} cancelled",
    ]
    assert "Storm" in mail.outbox[1].body


@pytest.mark.django_db
def test_booking_without_email_is_skipped(create_booking, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        create_booking(customer_email="")

    assert mail.outbox == []


def test_unknown_template_is_rejected():
    with pytest.raises(ValueError):
        send_template_email("newsletter", {}, "guest@example.com")


def test_missing_recipient_returns_false():
    assert send_template_email("booking_created", {"code": "X"}, "") is False
