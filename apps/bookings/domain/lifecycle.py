"""
Booking lifecycle

Both status fields are closed enumerations. Every change goes through
``ensure_transition`` so an illegal move is rejected in one place.
"""

from __future__ import annotations

from decimal import Decimal

from shared.domain.exceptions import StateConflict
from shared.infrastructure.settings import engine_setting

from ..models import Booking

BookingStatus = Booking.Status
PaymentStatus = Booking.PaymentStatus

BOOKING_TRANSITIONS: dict[str, frozenset[str]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.DEPOSIT_PAID, PaymentStatus.FULLY_PAID, PaymentStatus.EXPIRED, PaymentStatus.NO_REFUND}
    ),
    PaymentStatus.DEPOSIT_PAID: frozenset(
        {PaymentStatus.FULLY_PAID, PaymentStatus.PENDING, PaymentStatus.REFUND_PENDING}
    ),
    PaymentStatus.FULLY_PAID: frozenset(
        {PaymentStatus.DEPOSIT_PAID, PaymentStatus.PENDING, PaymentStatus.REFUND_PENDING}
    ),
    # A late payment can still be recorded against an expired booking.
    PaymentStatus.EXPIRED: frozenset({PaymentStatus.DEPOSIT_PAID, PaymentStatus.FULLY_PAID}),
    PaymentStatus.REFUND_PENDING: frozenset({PaymentStatus.REFUNDED, PaymentStatus.NO_REFUND}),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.NO_REFUND: frozenset(),
}


def can_transition(current: str, target: str, *, payment: bool = False) -> bool:
    table = PAYMENT_TRANSITIONS if payment else BOOKING_TRANSITIONS
    return target in table.get(current, frozenset())


def ensure_transition(current: str, target: str, *, payment: bool = False) -> None:
    """Raise StateConflict unless ``current -> target`` is a legal move."""

    if not can_transition(current, target, payment=payment):
        kind = "payment status" if payment else "status"
        raise StateConflict(f"Cannot change booking {kind} from '{current}' to '{target}'.")


def ensure_modifiable(booking: Booking) -> None:
    """Line items may only change while the booking is still active."""

    if booking.status not in engine_setting("MODIFIABLE_STATUSES"):
        raise StateConflict(
            f"Booking {booking.code} cannot be modified in status '{booking.status}'."
        )


def derive_payment_status(current: str, total: Decimal, paid: Decimal) -> str:
    """Payment status implied by the money received so far.

    Refund and expiry states are owned by the cancellation and expiry
    flows, so they are returned untouched unless money came in on an
    expired booking.
    """

    if current in (PaymentStatus.REFUND_PENDING, PaymentStatus.REFUNDED, PaymentStatus.NO_REFUND):
        return current
    if paid > 0 and paid >= total:
        return PaymentStatus.FULLY_PAID
    if paid > 0:
        return PaymentStatus.DEPOSIT_PAID
    if current == PaymentStatus.EXPIRED:
        return current
    return PaymentStatus.PENDING
