"""
Booking totals.

``recalculate`` is the only writer of a booking's derived money fields.
It reads the current lines and payments and stores everything with one
UPDATE, so it must run inside the caller's transaction to be consistent
with the edit that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal

from django.db.models import Max, Min, Sum  # type: ignore

from apps.payments.models import Payment
from shared.domain.exceptions import NotFound
from shared.domain.value_objects import Money

from ..models import Booking, BookingUnit
from .lines import priced_lines
from .tax import tax_for_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingTotals:
    subtotal_amount: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    deposit_due: Decimal
    balance_due: Decimal
    currency: str

    def to_dict(self) -> dict:
        data = asdict(self)
        return {key: str(value) if isinstance(value, Decimal) else value for key, value in data.items()}


def paid_amount(booking_id: int) -> Decimal:
    total = Payment.objects.filter(booking_id=booking_id, status=Payment.Status.COMPLETED).aggregate(
        total=Sum("amount")
    )["total"]
    return total or Decimal("0")


def recalculate(booking_id: int) -> BookingTotals:
    """Recompute and persist the totals of ``booking_id``. Idempotent."""

    try:
        booking = Booking.objects.select_related("zone").get(pk=booking_id)
    except Booking.DoesNotExist:
        raise NotFound(f"Booking {booking_id} not found.")

    currency = booking.currency
    lines = priced_lines(booking)

    subtotal = sum((line.gross_amount for line in lines), Decimal("0"))
    discount = sum((line.discount_amount for line in lines), Decimal("0"))
    if booking.tax_invoice_required:
        tax = tax_for_lines(lines, currency).total_tax_amount
    else:
        tax = Decimal("0")

    total = Money(subtotal, currency).subtract_to_zero(Money(discount, currency)) + Money(tax, currency)
    paid = Money(paid_amount(booking.pk), currency)
    balance = total.subtract_to_zero(paid)
    deposit = booking.zone.deposit_for(total)

    span = BookingUnit.objects.filter(booking_id=booking.pk).aggregate(
        check_in=Min("check_in"), check_out=Max("check_out")
    )

    Booking.objects.filter(pk=booking.pk).update(
        subtotal_amount=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        total_amount=total.amount,
        deposit_due=deposit.amount,
        balance_due=balance.amount,
        check_in=span["check_in"],
        check_out=span["check_out"],
    )

    totals = BookingTotals(
        subtotal_amount=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        total_amount=total.amount,
        paid_amount=paid.amount,
        deposit_due=deposit.amount,
        balance_due=balance.amount,
        currency=currency,
    )
    logger.debug(f"Totals recalculated for booking {booking.code}: total={total.amount} balance={balance.amount}")
    return totals
