"""Gross and discount amounts of individual booking lines."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.value_objects import Money, quantize_amount

from ..models import Booking, BookingMenuProduct, BookingUnit

ACCOMMODATION = "accommodation"
MENU = "menu"


@dataclass(frozen=True)
class PricedLine:
    kind: str
    line_id: int
    gross_amount: Decimal
    discount_amount: Decimal
    tax_rate: Decimal

    @property
    def net_amount(self) -> Decimal:
        return self.gross_amount - self.discount_amount


def parameter_amount(unit_price, quantity: int, pricing_mode: str) -> Decimal:
    """Group packages are priced once, everything else per head."""
    price = Decimal(str(unit_price))
    if pricing_mode == "per_group":
        return price
    return price * quantity


def unit_line_gross(line: BookingUnit, currency: str) -> Decimal:
    if line.subtotal_override is not None:
        return quantize_amount(line.subtotal_override, currency)
    amount = Decimal(str(line.nightly_rate)) * line.nights
    for parameter in line.parameters.all():
        amount += parameter_amount(parameter.unit_price, parameter.quantity, parameter.pricing_mode)
    return quantize_amount(amount, currency)


def menu_line_gross(line: BookingMenuProduct, currency: str) -> Decimal:
    return quantize_amount(Decimal(str(line.unit_price)) * line.quantity, currency)


def line_discount(gross: Decimal, discount_type: str, discount_value, currency: str) -> Decimal:
    """Voucher discount for a line, always against the pre-discount gross."""

    if not discount_type or gross <= 0:
        return Decimal("0")
    charge = Money(gross, currency)
    if discount_type == "percentage":
        discount = charge.percentage(discount_value)
    else:
        discount = Money(discount_value, currency).rounded()
    return discount.capped_at(charge).amount


def _effective_rate(override, catalogue_rate) -> Decimal:
    if override is not None:
        return Decimal(str(override))
    if catalogue_rate is not None:
        return Decimal(str(catalogue_rate))
    return Decimal("0")


def priced_lines(booking: Booking) -> list[PricedLine]:
    """All line items of ``booking`` with their current amounts."""

    currency = booking.currency
    lines: list[PricedLine] = []

    units = (
        BookingUnit.objects.filter(booking_id=booking.pk)
        .select_related("unit")
        .prefetch_related("parameters")
        .order_by("id")
    )
    for line in units:
        gross = unit_line_gross(line, currency)
        lines.append(
            PricedLine(
                kind=ACCOMMODATION,
                line_id=line.pk,
                gross_amount=gross,
                discount_amount=line_discount(gross, line.discount_type, line.discount_value, currency),
                tax_rate=_effective_rate(line.tax_rate, line.unit.tax_rate),
            )
        )

    products = BookingMenuProduct.objects.filter(booking_id=booking.pk).select_related("menu_item").order_by("id")
    for product in products:
        gross = menu_line_gross(product, currency)
        lines.append(
            PricedLine(
                kind=MENU,
                line_id=product.pk,
                gross_amount=gross,
                discount_amount=line_discount(gross, product.discount_type, product.discount_value, currency),
                tax_rate=_effective_rate(product.tax_rate, product.menu_item.tax_rate),
            )
        )

    return lines
