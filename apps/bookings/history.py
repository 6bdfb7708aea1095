"""Audit trail writer and read model for booking history."""

from __future__ import annotations

import logging

from .models import Booking, BookingStatusHistory

logger = logging.getLogger(__name__)


def record_history(
    booking: Booking,
    *,
    action: str,
    description: str = "",
    session=None,
    previous_status: str | None = None,
    previous_payment_status: str | None = None,
) -> BookingStatusHistory:
    """Append one immutable history row reflecting ``booking``'s current state."""

    entry = BookingStatusHistory.objects.create(
        booking=booking,
        previous_status=previous_status or "",
        new_status=booking.status if previous_status is not None else "",
        previous_payment_status=previous_payment_status or "",
        new_payment_status=booking.payment_status if previous_payment_status is not None else "",
        action=action,
        description=description,
        changed_by_id=getattr(session, "id", None),
        changed_by_name=getattr(session, "name", "") or "",
    )
    logger.debug(f"History '{action}' recorded for booking {booking.code}")
    return entry


def history_for(booking_id: int):
    return BookingStatusHistory.objects.filter(booking_id=booking_id).order_by("-created_at", "-id")
