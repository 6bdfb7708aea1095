"""Message bus subscribers that turn booking events into emails."""

from __future__ import annotations

import logging

from apps.bookings.domain.events import BookingCancelled, BookingCreated, PaymentRecorded
from apps.bookings.models import Booking
from shared.application.message_bus import message_bus

from .tasks import send_template_email_task

logger = logging.getLogger(__name__)


def _booking_variables(booking: Booking) -> dict:
    return {
        "code": booking.code,
        "customer_name": booking.customer_name,
        "zone_name": booking.zone.name,
        "check_in": booking.check_in.isoformat() if booking.check_in else "",
        "check_out": booking.check_out.isoformat() if booking.check_out else "",
        "total_amount": str(booking.total_amount),
        "balance_due": str(booking.balance_due),
        "currency": booking.currency,
    }


def _enqueue(template: str, booking_id: int | None, **extra) -> None:
    booking = Booking.objects.select_related("zone").filter(pk=booking_id).first()
    if booking is None or not booking.customer_email:
        logger.debug(f"No '{template}' email for booking {booking_id}")
        return
    variables = {**_booking_variables(booking), **extra}
    send_template_email_task.delay(template, variables, booking.customer_email)


def on_booking_created(event: BookingCreated) -> None:
    _enqueue("booking_created", event.booking_id)


def on_booking_cancelled(event: BookingCancelled) -> None:
    _enqueue("booking_cancelled", event.booking_id, reason=event.reason, refund_pending=event.refund_pending)


def on_payment_recorded(event: PaymentRecorded) -> None:
    _enqueue("payment_received", event.booking_id, amount=str(event.amount))


def register_handlers() -> None:
    message_bus.register_event_handler(BookingCreated, on_booking_created)
    message_bus.register_event_handler(BookingCancelled, on_booking_cancelled)
    message_bus.register_event_handler(PaymentRecorded, on_payment_recorded)
