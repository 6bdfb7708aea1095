"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .application.command_handlers import ExpirePaymentCommand, ExpirePaymentHandler
from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_overdue_payments")
def expire_overdue_payments() -> dict[str, int]:
    """
    Mark unpaid pending bookings as expired once their payment window ends.

    Expiry is also detected lazily through ``Booking.is_payment_expired``;
    this task only reconciles the stored payment status. Each booking is
    expired in its own transaction so one failure does not block the rest.

    Returns:
        dict: {"expired": number of expired bookings, "failed": failures}
    """
    overdue_ids = list(
        Booking.objects.filter(
            status=Booking.Status.PENDING,
            payment_status=Booking.PaymentStatus.PENDING,
            payment_expires_at__lte=timezone.now(),
        ).values_list("id", flat=True)
    )

    handler = ExpirePaymentHandler()
    expired = failed = 0
    for booking_id in overdue_ids:
        result = handler.execute(ExpirePaymentCommand(booking_id=booking_id))
        if not result.success:
            failed += 1
            logger.error(f"Could not expire booking {booking_id}: {result.error.message}")
        elif result.data.get("expired"):
            expired += 1

    if expired or failed:
        logger.info(f"Expired {expired} overdue booking(s), {failed} failure(s)")
    return {"expired": expired, "failed": failed}
