"""
Per-line VAT calculation.

Each line is taxed on its amount after the voucher discount, at the
line's override rate or its catalogue rate, and rounded on its own.
Nothing is cached: every call reads the current lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from shared.domain.exceptions import NotFound
from shared.domain.value_objects import Money

from ..models import Booking
from .lines import PricedLine, priced_lines


@dataclass(frozen=True)
class TaxLine:
    kind: str
    line_id: int
    taxable_amount: Decimal
    rate: Decimal
    tax_amount: Decimal


@dataclass(frozen=True)
class TaxComputation:
    total_tax_amount: Decimal
    lines: tuple[TaxLine, ...] = ()


def tax_for_lines(lines: Iterable[PricedLine], currency: str) -> TaxComputation:
    tax_lines = []
    total = Decimal("0")
    for line in lines:
        taxable = max(line.net_amount, Decimal("0"))
        tax = Money(taxable, currency).percentage(line.tax_rate).amount
        tax_lines.append(
            TaxLine(
                kind=line.kind,
                line_id=line.line_id,
                taxable_amount=taxable,
                rate=line.tax_rate,
                tax_amount=tax,
            )
        )
        total += tax
    return TaxComputation(total_tax_amount=total, lines=tuple(tax_lines))


def compute_tax(booking_id: int) -> TaxComputation:
    """Tax owed on every line of a booking, regardless of the invoice flag."""

    try:
        booking = Booking.objects.get(pk=booking_id)
    except Booking.DoesNotExist:
        raise NotFound(f"Booking {booking_id} not found.")
    return tax_for_lines(priced_lines(booking), booking.currency)
