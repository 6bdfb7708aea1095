"""
Bank transfer instructions with a VietQR image.

Display only: nothing here talks to a bank. The QR image is rendered by
the public VietQR image service from the URL we build.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from urllib.parse import quote, urlencode

from django.conf import settings  # type: ignore

from shared.domain.exceptions import StateConflict
from shared.domain.value_objects import quantize_amount

DEFAULT_VIETQR_IMAGE_BASE_URL = "https://img.vietqr.io/image"


@dataclass(frozen=True)
class PaymentInstructions:
    bank_name: str
    bank_id: str
    account_number: str
    account_name: str
    amount: Decimal
    description: str
    qr_code_url: str


def build_vietqr_url(*, bank_id: str, account_number: str, account_name: str, amount, description: str, template: str = "compact") -> str:
    base_url = getattr(settings, "VIETQR_IMAGE_BASE_URL", DEFAULT_VIETQR_IMAGE_BASE_URL).rstrip("/")
    query = urlencode(
        {"amount": str(amount), "addInfo": description, "accountName": account_name},
        quote_via=quote,
    )
    return f"{base_url}/{bank_id}-{account_number}-{template}.png?{query}"


def get_payment_instructions(zone, amount, reference: str) -> PaymentInstructions:
    """Transfer details for paying ``amount`` into ``zone``'s bank account."""

    if not zone.bank_account_number:
        raise StateConflict(f"Zone {zone.name} has no bank account configured.", code="bank_account_missing")

    bank_id = zone.bank_bin or zone.bank_name
    value = quantize_amount(amount, zone.currency)
    return PaymentInstructions(
        bank_name=zone.bank_name,
        bank_id=bank_id,
        account_number=zone.bank_account_number,
        account_name=zone.bank_account_name,
        amount=value,
        description=reference,
        qr_code_url=build_vietqr_url(
            bank_id=bank_id,
            account_number=zone.bank_account_number,
            account_name=zone.bank_account_name,
            amount=value,
            description=reference,
        ),
    )
