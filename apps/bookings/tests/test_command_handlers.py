"""Tests for the booking mutation handlers."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.bookings.application.command_handlers import (
    AddMenuProductCommand,
    AddMenuProductHandler,
    ChangeStatusCommand,
    ChangeStatusHandler,
    ChangeStayDatesCommand,
    ChangeStayDatesHandler,
    DeletePaymentCommand,
    DeletePaymentHandler,
    ExpirePaymentCommand,
    ExpirePaymentHandler,
    RecordPaymentCommand,
    RecordPaymentHandler,
    RemoveMenuProductCommand,
    RemoveMenuProductHandler,
    ResolveRefundCommand,
    ResolveRefundHandler,
    UnitRequest,
    UpdateMenuProductCommand,
    UpdateMenuProductHandler,
    UpdatePaymentCommand,
    UpdatePaymentHandler,
)
from apps.bookings.models import Booking, BookingStatusHistory
from apps.payments.models import Payment
from apps.users.session import StaffSession
from apps.vouchers.models import Voucher, VoucherRedemption
from apps.zones.models import Unit, Zone

PaymentStatus = Booking.PaymentStatus


def record_payment(session, booking, amount):
    return RecordPaymentHandler().execute(
        RecordPaymentCommand(session=session, booking_id=booking.pk, amount=Decimal(amount))
    )


def change_status(session, booking, target, reason=""):
    return ChangeStatusHandler().execute(
        ChangeStatusCommand(session=session, booking_id=booking.pk, status=target, reason=reason)
    )


# ===== Create =====

@pytest.mark.django_db
def test_create_booking_writes_lines_history_and_expiry(create_booking):
    booking, result = create_booking()

    assert result.success
    assert result.data["code"] == booking.code
    assert booking.status == Booking.Status.PENDING
    assert booking.payment_status == PaymentStatus.PENDING
    assert booking.units.count() == 1
    assert booking.payment_expires_at > timezone.now()
    assert booking.history.filter(action="created").exists()


@pytest.mark.django_db
def test_create_fails_when_unit_is_taken(create_booking):
    create_booking()

    booking, result = create_booking(check_in=date(2030, 1, 2), check_out=date(2030, 1, 4))

    assert booking is None
    assert not result.success
    assert result.error.code == "unavailable"
    assert result.error.http_status == 409
    assert Booking.objects.count() == 1


@pytest.mark.django_db
def test_same_unit_twice_in_one_booking_counts_against_inventory(create_booking, unit):
    requests = [
        UnitRequest(unit_id=unit.pk, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3)),
        UnitRequest(unit_id=unit.pk, check_in=date(2030, 1, 2), check_out=date(2030, 1, 4)),
    ]

    _, result = create_booking(units=requests)

    assert result.error.code == "unavailable"
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_one_time_voucher_used_twice_in_one_create_rolls_back(create_booking, zone):
    Voucher.objects.create(code="ONCE", amount=Decimal("10"), recurrence=Voucher.Recurrence.ONE_TIME)
    cabin = Unit.objects.create(zone=zone, name="Cabin", base_nightly_rate=Decimal("800000"), inventory_quantity=2)
    requests = [
        UnitRequest(unit_id=cabin.pk, check_in=date(2030, 1, 1), check_out=date(2030, 1, 2), voucher_code="ONCE"),
        UnitRequest(unit_id=cabin.pk, check_in=date(2030, 1, 1), check_out=date(2030, 1, 2), voucher_code="once"),
    ]

    _, result = create_booking(units=requests)

    assert result.error.code == "voucher_invalid"
    assert result.error.http_status == 400
    assert Voucher.objects.get(code="ONCE").current_uses == 0
    assert not VoucherRedemption.objects.exists()
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_zone_with_unsupported_currency_is_a_validation_error(create_booking, zone):
    Zone.objects.filter(pk=zone.pk).update(currency="GBP")

    booking, result = create_booking()

    assert booking is None
    assert result.error.code == "validation_error"
    assert result.error.http_status == 400
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_create_rejects_missing_customer_and_foreign_zone(create_booking, zone):
    _, nameless = create_booking(customer_name="  ")
    _, forbidden = create_booking(
        session=StaffSession(role="operations", id=None, accessible_zone_ids=frozenset())
    )

    assert nameless.error.code == "validation_error"
    assert forbidden.error.code == "forbidden"
    assert forbidden.error.http_status == 403


# ===== Menu products =====

@pytest.mark.django_db
def test_menu_product_with_voucher_is_released_on_removal(create_booking, admin_session, menu_item):
    Voucher.objects.create(
        code="FOOD", amount=Decimal("50000"), type=Voucher.DiscountType.FIXED,
        application_type=Voucher.ApplicationType.MENU, max_uses=1,
    )
    booking, _ = create_booking()

    added = AddMenuProductHandler().execute(AddMenuProductCommand(
        session=admin_session, booking_id=booking.pk, menu_item_id=menu_item.pk, quantity=2, voucher_code="FOOD",
    ))
    assert added.success
    assert added.totals.subtotal_amount == Decimal("1400000")
    assert added.totals.discount_amount == Decimal("50000")
    assert Voucher.objects.get(code="FOOD").current_uses == 1

    removed = RemoveMenuProductHandler().execute(RemoveMenuProductCommand(
        session=admin_session, booking_id=booking.pk, product_id=added.data["product_id"],
    ))
    assert removed.success
    assert removed.totals.subtotal_amount == Decimal("1000000")
    assert removed.totals.discount_amount == Decimal("0")
    assert Voucher.objects.get(code="FOOD").current_uses == 0
    assert not VoucherRedemption.objects.exists()


@pytest.mark.django_db
def test_accommodation_voucher_cannot_be_used_on_menu(create_booking, admin_session, menu_item):
    Voucher.objects.create(code="STAY", amount=Decimal("10"), application_type=Voucher.ApplicationType.ACCOMMODATION)
    booking, _ = create_booking()

    result = AddMenuProductHandler().execute(AddMenuProductCommand(
        session=admin_session, booking_id=booking.pk, menu_item_id=menu_item.pk, voucher_code="STAY",
    ))

    assert result.error.code == "voucher_invalid"
    assert result.error.message == "Voucher does not apply to menu items."
    assert not booking.menu_products.exists()


@pytest.mark.django_db
def test_update_menu_product_quantity_rederives_percentage_discount(create_booking, admin_session, menu_item):
    Voucher.objects.create(code="FOOD10", amount=Decimal("10"), application_type=Voucher.ApplicationType.MENU)
    booking, _ = create_booking()
    added = AddMenuProductHandler().execute(AddMenuProductCommand(
        session=admin_session, booking_id=booking.pk, menu_item_id=menu_item.pk, voucher_code="FOOD10",
    ))

    result = UpdateMenuProductHandler().execute(UpdateMenuProductCommand(
        session=admin_session, booking_id=booking.pk, product_id=added.data["product_id"], quantity=3,
    ))

    assert result.success
    assert result.totals.discount_amount == Decimal("60000")
    assert booking.menu_products.get().discount_amount == Decimal("60000")


@pytest.mark.django_db
def test_menu_product_quantity_must_be_positive(create_booking, admin_session, menu_item):
    booking, _ = create_booking()

    for quantity in (0, True, "2"):
        result = AddMenuProductHandler().execute(AddMenuProductCommand(
            session=admin_session, booking_id=booking.pk, menu_item_id=menu_item.pk, quantity=quantity,
        ))
        assert result.error.code == "validation_error", quantity

    assert not booking.menu_products.exists()


# ===== Stay dates =====

@pytest.mark.django_db
def test_change_stay_dates_rechecks_availability(create_booking, admin_session):
    first, _ = create_booking()
    second, _ = create_booking(check_in=date(2030, 1, 5), check_out=date(2030, 1, 7))
    line = first.units.get()

    blocked = ChangeStayDatesHandler().execute(ChangeStayDatesCommand(
        session=admin_session, booking_id=first.pk, booking_unit_id=line.pk,
        check_in=date(2030, 1, 4), check_out=date(2030, 1, 6),
    ))
    extended = ChangeStayDatesHandler().execute(ChangeStayDatesCommand(
        session=admin_session, booking_id=first.pk, booking_unit_id=line.pk,
        check_in=date(2030, 1, 1), check_out=date(2030, 1, 5),
    ))

    assert blocked.error.code == "unavailable"
    assert extended.success
    assert extended.totals.subtotal_amount == Decimal("2000000")
    first.refresh_from_db()
    assert first.check_out == date(2030, 1, 5)
    assert first.history.filter(action="dates_changed").count() == 1


# ===== Payments =====

@pytest.mark.django_db
def test_payment_status_follows_payments(create_booking, admin_session):
    booking, _ = create_booking()

    deposit = record_payment(admin_session, booking, "300000")
    assert deposit.data["payment_status"] == PaymentStatus.DEPOSIT_PAID

    full = UpdatePaymentHandler().execute(UpdatePaymentCommand(
        session=admin_session, booking_id=booking.pk, payment_id=deposit.data["payment_id"], amount=Decimal("1000000"),
    ))
    assert full.data["payment_status"] == PaymentStatus.FULLY_PAID
    assert full.totals.balance_due == Decimal("0")

    deleted = DeletePaymentHandler().execute(DeletePaymentCommand(
        session=admin_session, booking_id=booking.pk, payment_id=deposit.data["payment_id"], reason="duplicate",
    ))
    assert deleted.data["payment_status"] == PaymentStatus.PENDING
    assert deleted.totals.balance_due == Decimal("1000000")

    payment = Payment.objects.get(pk=deposit.data["payment_id"])
    assert payment.status == Payment.Status.DELETED
    assert "duplicate" in payment.notes


@pytest.mark.django_db
def test_deleted_payment_cannot_be_edited(create_booking, admin_session):
    booking, _ = create_booking()
    paid = record_payment(admin_session, booking, "300000")
    DeletePaymentHandler().execute(DeletePaymentCommand(
        session=admin_session, booking_id=booking.pk, payment_id=paid.data["payment_id"],
    ))

    result = UpdatePaymentHandler().execute(UpdatePaymentCommand(
        session=admin_session, booking_id=booking.pk, payment_id=paid.data["payment_id"], amount=Decimal("1"),
    ))

    assert result.error.code == "not_found"


@pytest.mark.django_db
def test_invalid_payment_input_is_rejected(create_booking, admin_session):
    booking, _ = create_booking()

    negative = record_payment(admin_session, booking, "-5")
    unknown = RecordPaymentHandler().execute(RecordPaymentCommand(
        session=admin_session, booking_id=booking.pk, amount=Decimal("10"), method="crypto",
    ))
    garbled = RecordPaymentHandler().execute(RecordPaymentCommand(
        session=admin_session, booking_id=booking.pk, amount="ten thousand",
    ))
    flag = RecordPaymentHandler().execute(RecordPaymentCommand(
        session=admin_session, booking_id=booking.pk, amount=True,
    ))

    assert negative.error.code == "validation_error"
    assert unknown.error.code == "validation_error"
    assert garbled.error.code == "validation_error"
    assert flag.error.code == "validation_error"
    assert not Payment.objects.exists()


@pytest.mark.django_db
def test_growing_total_moves_fully_paid_back_to_deposit_paid(create_booking, admin_session, menu_item):
    booking, _ = create_booking()
    paid = record_payment(admin_session, booking, "1000000")
    assert paid.data["payment_status"] == PaymentStatus.FULLY_PAID

    added = AddMenuProductHandler().execute(AddMenuProductCommand(
        session=admin_session, booking_id=booking.pk, menu_item_id=menu_item.pk,
    ))

    assert added.totals.balance_due == Decimal("200000")
    booking.refresh_from_db()
    assert booking.payment_status == PaymentStatus.DEPOSIT_PAID
    entry = booking.history.get(action="menu_product_added")
    assert entry.previous_payment_status == PaymentStatus.FULLY_PAID
    assert entry.new_payment_status == PaymentStatus.DEPOSIT_PAID

    removed = RemoveMenuProductHandler().execute(RemoveMenuProductCommand(
        session=admin_session, booking_id=booking.pk, product_id=added.data["product_id"],
    ))
    assert removed.totals.balance_due == Decimal("0")
    booking.refresh_from_db()
    assert booking.payment_status == PaymentStatus.FULLY_PAID


# ===== Status =====

@pytest.mark.django_db
def test_full_lifecycle(create_booking, admin_session):
    booking, _ = create_booking()

    for target in ("confirmed", "checked_in", "checked_out"):
        assert change_status(admin_session, booking, target).success

    booking.refresh_from_db()
    assert booking.status == Booking.Status.CHECKED_OUT
    illegal = change_status(admin_session, booking, "confirmed")
    assert illegal.error.code == "state_conflict"
    assert illegal.error.http_status == 409


@pytest.mark.django_db
def test_cancel_with_payment_leaves_refund_pending(create_booking, admin_session):
    booking, _ = create_booking()
    record_payment(admin_session, booking, "300000")

    cancelled = change_status(admin_session, booking, "cancelled", reason="Guest changed plans")
    assert cancelled.data["payment_status"] == PaymentStatus.REFUND_PENDING

    resolved = ResolveRefundHandler().execute(ResolveRefundCommand(
        session=admin_session, booking_id=booking.pk, outcome=PaymentStatus.REFUNDED,
    ))
    assert resolved.data["payment_status"] == PaymentStatus.REFUNDED

    booking.refresh_from_db()
    assert booking.cancellation_reason == "Guest changed plans"
    assert booking.cancelled_at is not None


@pytest.mark.django_db
def test_cancel_without_payment_keeps_payment_status(create_booking, admin_session):
    booking, _ = create_booking()

    result = change_status(admin_session, booking, "cancelled")

    assert result.data["payment_status"] == PaymentStatus.PENDING


@pytest.mark.django_db
def test_cancelled_booking_frees_inventory_and_rejects_edits(create_booking, admin_session, menu_item):
    booking, _ = create_booking()
    change_status(admin_session, booking, "cancelled")

    edit = AddMenuProductHandler().execute(AddMenuProductCommand(
        session=admin_session, booking_id=booking.pk, menu_item_id=menu_item.pk,
    ))
    payment = record_payment(admin_session, booking, "100000")
    _, rebooked = create_booking()

    assert edit.error.code == "state_conflict"
    assert payment.error.code == "state_conflict"
    assert rebooked.success


@pytest.mark.django_db
def test_payments_are_frozen_after_check_out_or_cancellation(create_booking, admin_session):
    stayed, _ = create_booking()
    first = record_payment(admin_session, stayed, "300000")
    for target in ("confirmed", "checked_in", "checked_out"):
        assert change_status(admin_session, stayed, target).success

    late = record_payment(admin_session, stayed, "100000")
    edited = UpdatePaymentHandler().execute(UpdatePaymentCommand(
        session=admin_session, booking_id=stayed.pk, payment_id=first.data["payment_id"], amount=Decimal("1000000"),
    ))

    assert late.error.code == "state_conflict"
    assert edited.error.code == "state_conflict"
    assert Payment.objects.filter(booking=stayed).count() == 1
    assert Payment.objects.get(pk=first.data["payment_id"]).amount == Decimal("300000")

    cancelled, _ = create_booking(check_in=date(2030, 2, 1), check_out=date(2030, 2, 3))
    refundable = record_payment(admin_session, cancelled, "300000")
    change_status(admin_session, cancelled, "cancelled")

    deleted = DeletePaymentHandler().execute(DeletePaymentCommand(
        session=admin_session, booking_id=cancelled.pk, payment_id=refundable.data["payment_id"],
    ))

    assert deleted.error.code == "state_conflict"
    assert Payment.objects.get(pk=refundable.data["payment_id"]).status == Payment.Status.COMPLETED
    cancelled.refresh_from_db()
    assert cancelled.payment_status == PaymentStatus.REFUND_PENDING


@pytest.mark.django_db
def test_refund_cannot_be_resolved_without_pending_refund(create_booking, admin_session):
    booking, _ = create_booking()

    result = ResolveRefundHandler().execute(ResolveRefundCommand(
        session=admin_session, booking_id=booking.pk, outcome=PaymentStatus.REFUNDED,
    ))

    assert result.error.code == "state_conflict"


@pytest.mark.django_db
def test_zone_access_is_enforced_on_mutations(create_booking):
    booking, _ = create_booking()
    outsider = StaffSession(role="operations", id=None, accessible_zone_ids=frozenset({booking.zone_id + 1}))

    result = change_status(outsider, booking, "confirmed")

    assert result.error.code == "forbidden"
    booking.refresh_from_db()
    assert booking.status == Booking.Status.PENDING


@pytest.mark.django_db
def test_unknown_booking_is_not_found(admin_session):
    result = change_status(admin_session, Booking(pk=424242), "confirmed")

    assert result.error.code == "not_found"
    assert result.error.http_status == 404


# ===== Expiry and history =====

@pytest.mark.django_db
def test_expire_payment_only_after_window(create_booking):
    booking, _ = create_booking()

    early = ExpirePaymentHandler().execute(ExpirePaymentCommand(booking_id=booking.pk))
    Booking.objects.filter(pk=booking.pk).update(payment_expires_at=timezone.now() - timedelta(minutes=1))
    late = ExpirePaymentHandler().execute(ExpirePaymentCommand(booking_id=booking.pk))

    assert early.data["expired"] is False
    assert late.data["expired"] is True
    booking.refresh_from_db()
    assert booking.payment_status == PaymentStatus.EXPIRED
    entry = booking.history.get(action="payment_expired")
    assert entry.changed_by_name == "System"


@pytest.mark.django_db
def test_history_rows_are_immutable(create_booking, admin_session):
    booking, _ = create_booking()
    change_status(admin_session, booking, "confirmed")
    entry = BookingStatusHistory.objects.get(booking=booking, action="status_changed")

    assert entry.previous_status == "pending"
    assert entry.new_status == "confirmed"
    assert entry.changed_by_name == "Test admin"
    entry.description = "rewritten"
    with pytest.raises(ValidationError):
        entry.save()
    with pytest.raises(ValidationError):
        entry.delete()
