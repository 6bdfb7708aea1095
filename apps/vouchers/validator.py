"""
Voucher validation and redemption.

``validate_voucher`` locks the voucher row (SELECT ... FOR UPDATE) and
evaluates its rules in a fixed order, stopping at the first failure. It
has no side effects: the caller records the use with
``record_redemption`` inside the same transaction, so the lock is held
from the check until the counter is incremented.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import NotFound, ValidationFailed
from shared.domain.value_objects import Money
from shared.infrastructure.locking import lock_queryset_if_possible
from shared.infrastructure.settings import engine_setting

from .models import Voucher, VoucherRedemption

logger = logging.getLogger(__name__)

ApplicationType = Voucher.ApplicationType

REASON_NOT_FOUND = "Voucher code is not valid."
REASON_PAUSED = "Voucher is paused."
REASON_EXHAUSTED = "Voucher has no uses left."
REASON_NOT_STARTED = "Voucher is not valid yet."
REASON_EXPIRED = "Voucher has expired."
REASON_ALREADY_USED = "Voucher has already been used."
REASON_WEEKDAY = "Voucher does not apply to this check-in day."
REASON_ZONE = "Voucher does not apply to this zone."
REASON_NOT_ACCOMMODATION = "Voucher does not apply to accommodation."
REASON_NOT_MENU = "Voucher does not apply to menu items."
REASON_UNIT = "Voucher does not apply to this unit."
REASON_MENU_ITEM = "Voucher does not apply to this menu item."


@dataclass(frozen=True)
class VoucherContext:
    """What the voucher is being applied to."""

    zone_id: int | None
    charge_amount: Decimal
    item_id: int | None = None
    check_in: date | None = None
    application_type: str = ApplicationType.ALL
    # Uses of the same voucher already counted earlier in this transaction.
    uses_in_transaction: int = 0
    currency: str | None = None


@dataclass(frozen=True)
class VoucherValidation:
    valid: bool
    reason: str | None = None
    voucher_id: int | None = None
    voucher_code: str | None = None
    discount_type: str | None = None
    discount_value: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")

    @classmethod
    def rejected(cls, reason: str) -> "VoucherValidation":
        return cls(valid=False, reason=reason)


def _sunday_first_weekday(value: date) -> int:
    """Weekday numbered 0=Sunday ... 6=Saturday."""
    return (value.weekday() + 1) % 7


def _check_rules(voucher: Voucher, context: VoucherContext, today: date) -> str | None:
    if voucher.status != Voucher.Status.ACTIVE:
        return REASON_PAUSED

    used = voucher.current_uses + context.uses_in_transaction
    if voucher.max_uses is not None and used >= voucher.max_uses:
        return REASON_EXHAUSTED

    if voucher.recurrence == Voucher.Recurrence.DATE_RANGE:
        if voucher.start_date and voucher.start_date > today:
            return REASON_NOT_STARTED
        if voucher.end_date and voucher.end_date < today:
            return REASON_EXPIRED
    elif voucher.recurrence == Voucher.Recurrence.ONE_TIME and used > 0:
        return REASON_ALREADY_USED

    if voucher.weekly_days and context.check_in is not None:
        if _sunday_first_weekday(context.check_in) not in voucher.weekly_days:
            return REASON_WEEKDAY

    if voucher.zone_id and context.zone_id and voucher.zone_id != context.zone_id:
        return REASON_ZONE

    target = context.application_type
    if target != ApplicationType.ALL and voucher.application_type not in (ApplicationType.ALL, target):
        return REASON_NOT_MENU if target == ApplicationType.MENU else REASON_NOT_ACCOMMODATION

    if context.item_id is not None:
        if target == ApplicationType.MENU:
            restricted = voucher.menu_items.all()
            reason = REASON_MENU_ITEM
        else:
            restricted = voucher.units.all()
            reason = REASON_UNIT
        if restricted.exists() and not restricted.filter(pk=context.item_id).exists():
            return reason

    return None


def _discount_for(voucher: Voucher, charge: Money) -> Money:
    if voucher.type == Voucher.DiscountType.PERCENTAGE:
        discount = charge.percentage(voucher.amount)
    else:
        discount = Money(voucher.amount, charge.currency).rounded()
    return discount.capped_at(charge)


def validate_voucher(code: str, context: VoucherContext, *, today: date | None = None) -> VoucherValidation:
    """Check ``code`` against ``context`` and compute its discount.

    Must run inside ``transaction.atomic()`` for the row lock to be taken.
    Business rule failures come back as ``valid=False`` with a reason;
    a missing code or non-positive charge raises ``ValidationFailed``.
    """

    if not code or not code.strip():
        raise ValidationFailed("Voucher code is required.")
    charge_amount = Decimal(str(context.charge_amount))
    if charge_amount <= 0:
        raise ValidationFailed("Voucher requires a positive charge amount.")

    queryset = Voucher.objects.filter(code__iexact=code.strip())
    voucher = lock_queryset_if_possible(queryset).first()
    if voucher is None:
        return VoucherValidation.rejected(REASON_NOT_FOUND)

    reason = _check_rules(voucher, context, today or timezone.localdate())
    if reason is not None:
        logger.info(f"Voucher {voucher.code} rejected: {reason}")
        return VoucherValidation.rejected(reason)

    currency = context.currency or engine_setting("DEFAULT_CURRENCY")
    discount = _discount_for(voucher, Money(charge_amount, currency))
    return VoucherValidation(
        valid=True,
        voucher_id=voucher.pk,
        voucher_code=voucher.code,
        discount_type=voucher.type,
        discount_value=voucher.amount,
        discount_amount=discount.amount,
    )


def record_redemption(validation: VoucherValidation, *, booking_id: int, line_kind: str, line_id: int) -> VoucherRedemption:
    """Persist a successful validation and consume one use of the voucher."""

    if not validation.valid or validation.voucher_id is None:
        raise ValidationFailed("Only a valid voucher can be redeemed.")

    redemption = VoucherRedemption.objects.create(
        voucher_id=validation.voucher_id,
        booking_id=booking_id,
        line_kind=line_kind,
        line_id=line_id,
        discount_amount=validation.discount_amount,
    )
    Voucher.objects.filter(pk=validation.voucher_id).update(current_uses=F("current_uses") + 1)
    logger.info(f"Voucher {validation.voucher_code} redeemed on {line_kind} #{line_id} of booking {booking_id}")
    return redemption


def release_redemption(*, line_kind: str, line_id: int) -> bool:
    """Undo the redemption attached to a removed line. Returns False if none."""

    redemption = VoucherRedemption.objects.filter(line_kind=line_kind, line_id=line_id).first()
    if redemption is None:
        return False

    voucher = lock_queryset_if_possible(Voucher.objects.filter(pk=redemption.voucher_id)).first()
    if voucher is None:
        raise NotFound("Voucher of the redemption no longer exists.")

    redemption.delete()
    Voucher.objects.filter(pk=voucher.pk, current_uses__gt=0).update(current_uses=F("current_uses") - 1)
    logger.info(f"Voucher {voucher.code} released from {line_kind} #{line_id}")
    return True
