"""
Booking Command Handlers

These are the use cases that change a booking. Each handler runs its
command inside one DjangoUnitOfWork (one database transaction):

1. Lock the booking row (SELECT FOR UPDATE)
2. Validate the change (lifecycle, zone access, availability, vouchers)
3. Write line items, payments and voucher redemptions
4. Recalculate the booking totals
5. Append a history row and queue domain events
6. Commit, then publish events

``MutationHandler.execute`` is the error boundary: it never raises and
always answers with a ``MutationResult``.

Commands:
- CreateBookingCommand: Create a booking with units, parameters and menu products
- AddMenuProductCommand / UpdateMenuProductCommand / RemoveMenuProductCommand
- ToggleTaxInvoiceCommand: Turn the VAT invoice on or off
- ChangeStayDatesCommand: Move one booked unit to new dates
- RecordPaymentCommand / UpdatePaymentCommand / DeletePaymentCommand
- ChangeStatusCommand: Confirm, check in, check out or cancel
- ResolveRefundCommand: Close a pending refund
- ExpirePaymentCommand: Expire an unpaid booking after its payment window
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
import logging

from django.db import DatabaseError
from django.utils import timezone

from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingStatusChanged,
    PaymentExpired,
    PaymentRecorded,
)
from apps.bookings.domain.lifecycle import (
    BookingStatus,
    PaymentStatus,
    derive_payment_status,
    ensure_modifiable,
    ensure_transition,
)
from apps.bookings.history import record_history
from apps.bookings.models import Booking, BookingMenuProduct, BookingUnit, BookingUnitParameter
from apps.bookings.availability import check_availability
from apps.bookings.pricing.lines import ACCOMMODATION, MENU, line_discount, menu_line_gross, unit_line_gross
from apps.bookings.pricing.totals import BookingTotals, recalculate
from apps.payments.models import Payment
from apps.users.session import StaffSession
from apps.vouchers.models import Voucher
from apps.vouchers.validator import VoucherContext, record_redemption, release_redemption, validate_voucher
from apps.zones.models import MenuItem, Parameter, Unit, Zone
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    BookingEngineError,
    NotFound,
    PersistenceFailure,
    StateConflict,
    ValidationFailed,
)
from shared.domain.value_objects import CURRENCY_EXPONENTS
from shared.infrastructure.locking import lock_queryset_if_possible, translate_database_error
from shared.infrastructure.settings import engine_setting

logger = logging.getLogger(__name__)


# ===== Results =====

@dataclass(frozen=True)
class MutationError:
    code: str
    message: str
    http_status: int = 400


@dataclass(frozen=True)
class MutationResult:
    success: bool
    totals: BookingTotals | None = None
    data: dict = field(default_factory=dict)
    error: MutationError | None = None

    @classmethod
    def failure(cls, exc: BookingEngineError) -> 'MutationResult':
        return cls(
            success=False,
            error=MutationError(code=exc.code, message=exc.message, http_status=exc.http_status),
        )


# ===== Commands =====

@dataclass
class ParameterRequest:
    parameter_id: int
    quantity: int = 1
    unit_price: Decimal | None = None


@dataclass
class UnitRequest:
    unit_id: int
    check_in: date
    check_out: date
    parameters: list = field(default_factory=list)
    voucher_code: str = ''
    subtotal_override: Decimal | None = None
    tax_rate: Decimal | None = None


@dataclass
class MenuProductRequest:
    menu_item_id: int
    quantity: int = 1
    serving_date: date | None = None
    voucher_code: str = ''
    notes: str = ''


@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    session: StaffSession
    zone_id: int
    customer_name: str
    units: list
    customer_email: str = ''
    customer_phone: str = ''
    notes: str = ''
    tax_invoice_required: bool = False
    menu_products: list = field(default_factory=list)


@dataclass
class AddMenuProductCommand:
    session: StaffSession
    booking_id: int
    menu_item_id: int
    quantity: int = 1
    serving_date: date | None = None
    voucher_code: str = ''
    notes: str = ''
    booking_unit_id: int | None = None


@dataclass
class UpdateMenuProductCommand:
    """Change quantity, serving date or notes of an ordered product"""
    session: StaffSession
    booking_id: int
    product_id: int
    quantity: int | None = None
    serving_date: date | None = None
    notes: str | None = None


@dataclass
class RemoveMenuProductCommand:
    session: StaffSession
    booking_id: int
    product_id: int


@dataclass
class ToggleTaxInvoiceCommand:
    session: StaffSession
    booking_id: int
    enabled: bool


@dataclass
class ChangeStayDatesCommand:
    session: StaffSession
    booking_id: int
    booking_unit_id: int
    check_in: date
    check_out: date


@dataclass
class RecordPaymentCommand:
    session: StaffSession
    booking_id: int
    amount: Decimal
    method: str = Payment.Method.BANK_TRANSFER
    notes: str = ''
    paid_at: datetime | None = None


@dataclass
class UpdatePaymentCommand:
    """Fields left as None are not changed"""
    session: StaffSession
    booking_id: int
    payment_id: int
    amount: Decimal | None = None
    method: str | None = None
    notes: str | None = None


@dataclass
class DeletePaymentCommand:
    session: StaffSession
    booking_id: int
    payment_id: int
    reason: str = ''


@dataclass
class ChangeStatusCommand:
    session: StaffSession
    booking_id: int
    status: str
    reason: str = ''


@dataclass
class ResolveRefundCommand:
    session: StaffSession
    booking_id: int
    outcome: str
    notes: str = ''


@dataclass
class ExpirePaymentCommand:
    booking_id: int
    session: StaffSession = field(default_factory=StaffSession.system)


# ===== Shared steps =====

def _positive_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationFailed("Quantity must be a positive integer.")
    return quantity


def _positive_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationFailed("Payment amount must be a number.")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationFailed(f"Payment amount '{value}' is not a number.")
    if not amount.is_finite() or amount <= 0:
        raise ValidationFailed("Payment amount must be positive.")
    return amount


def _load_booking(booking_id: int, session: StaffSession) -> Booking:
    """Fetch and lock the booking row, checking the caller may touch its zone."""
    booking = lock_queryset_if_possible(Booking.objects.filter(pk=booking_id)).first()
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found.")
    session.ensure_zone_access(booking.zone_id)
    return booking


def _lock_units(unit_ids) -> dict:
    """Lock unit rows in primary key order so concurrent creations queue up."""
    queryset = Unit.objects.filter(pk__in=set(unit_ids)).order_by('pk')
    return {unit.pk: unit for unit in lock_queryset_if_possible(queryset)}


def _ensure_available(unit: Unit, check_in, check_out, exclude_booking_unit_id=None):
    result = check_availability(unit.pk, check_in, check_out, exclude_booking_unit_id=exclude_booking_unit_id)
    if not result.available:
        raise StateConflict(
            f"{unit.name} is not available from {check_in} to {check_out}.",
            code='unavailable',
        )


def _redeem_voucher(booking: Booking, line, *, kind: str, code: str, item_id: int, gross: Decimal,
                    check_in, uses_in_transaction: int = 0) -> None:
    """Validate ``code`` for ``line`` under the voucher row lock and apply it."""
    application_type = Voucher.ApplicationType.MENU if kind == MENU else Voucher.ApplicationType.ACCOMMODATION
    validation = validate_voucher(
        code,
        VoucherContext(
            zone_id=booking.zone_id,
            item_id=item_id,
            charge_amount=gross,
            check_in=check_in,
            application_type=application_type,
            uses_in_transaction=uses_in_transaction,
            currency=booking.currency,
        ),
    )
    if not validation.valid:
        raise StateConflict(validation.reason, code='voucher_invalid', http_status=400)

    line.voucher_id = validation.voucher_id
    line.voucher_code = validation.voucher_code
    line.discount_type = validation.discount_type
    line.discount_value = validation.discount_value
    line.discount_amount = validation.discount_amount
    line.save(update_fields=['voucher', 'voucher_code', 'discount_type', 'discount_value', 'discount_amount'])
    record_redemption(validation, booking_id=booking.pk, line_kind=kind, line_id=line.pk)


def _refresh_line_discount(line, gross: Decimal, currency: str) -> None:
    if not line.discount_type:
        return
    line.discount_amount = line_discount(gross, line.discount_type, line.discount_value, currency)
    line.save(update_fields=['discount_amount'])


def _sync_payment_status(booking: Booking, totals: BookingTotals) -> str:
    """Move payment_status to what the money received implies. Returns the previous value."""
    previous = booking.payment_status
    target = derive_payment_status(previous, totals.total_amount, totals.paid_amount)
    if target != previous:
        ensure_transition(previous, target, payment=True)
        booking.payment_status = target
        booking.save(update_fields=['payment_status', 'updated_at'])
    return previous


def _follow_total_change(booking: Booking, totals: BookingTotals) -> str | None:
    """Re-derive payment_status after the total moved. Returns the old value only if it changed."""
    previous = _sync_payment_status(booking, totals)
    return previous if previous != booking.payment_status else None


def _payment_of(booking: Booking, payment_id: int) -> Payment:
    payment = lock_queryset_if_possible(
        Payment.objects.filter(pk=payment_id, booking_id=booking.pk).exclude(status=Payment.Status.DELETED)
    ).first()
    if payment is None:
        raise NotFound(f"Payment {payment_id} not found.")
    return payment


# ===== Command Handlers =====

class MutationHandler:
    """
    Base class for booking mutations

    Subclasses implement ``handle(command, uow)`` returning ``(data, totals)``
    and raise BookingEngineError subclasses for expected failures.
    """

    def execute(self, command) -> MutationResult:
        name = type(command).__name__
        logger.info(f"{name} started for booking {getattr(command, 'booking_id', 'new')}")

        try:
            with DjangoUnitOfWork(label=name) as uow:
                data, totals = self.handle(command, uow)
        except BookingEngineError as e:
            logger.warning(f"{name} rejected: [{e.code}] {e.message}")
            return MutationResult.failure(e)
        except DatabaseError as e:
            logger.error(f"{name} failed in the database: {e}", exc_info=True)
            return MutationResult.failure(translate_database_error(e))
        except Exception:
            logger.exception(f"{name} failed unexpectedly")
            return MutationResult.failure(
                PersistenceFailure("Unexpected error while updating the booking.", code='internal_error')
            )

        logger.info(f"{name} committed for booking {data.get('booking_id')}")
        return MutationResult(success=True, totals=totals, data=data)

    def handle(self, command, uow):
        raise NotImplementedError


class CreateBookingHandler(MutationHandler):
    """
    Handler for CreateBooking command

    Strategy:
    1. Lock every requested unit row (SELECT FOR UPDATE, pk order)
    2. Check availability of each unit right before inserting its line,
       so two lines for the same unit in one booking also count
    3. Validate vouchers, counting uses already made in this transaction
    4. Recalculate totals once all lines exist
    """

    def handle(self, command: CreateBookingCommand, uow):
        session = command.session
        if not command.customer_name or not command.customer_name.strip():
            raise ValidationFailed("Customer name is required.")
        if not command.units:
            raise ValidationFailed("A booking needs at least one unit.")

        zone = Zone.objects.filter(pk=command.zone_id, is_active=True).first()
        if zone is None:
            raise NotFound(f"Zone {command.zone_id} not found.")
        session.ensure_zone_access(zone.pk)
        if zone.currency not in CURRENCY_EXPONENTS:
            raise ValidationFailed(f"Zone {zone.name} uses unsupported currency '{zone.currency}'.")

        units = _lock_units(request.unit_id for request in command.units)

        window = zone.payment_window_minutes or engine_setting('PAYMENT_WINDOW_MINUTES')
        booking = Booking.objects.create(
            zone=zone,
            customer_name=command.customer_name.strip(),
            customer_email=command.customer_email,
            customer_phone=command.customer_phone,
            notes=command.notes,
            tax_invoice_required=command.tax_invoice_required,
            currency=zone.currency,
            payment_expires_at=timezone.now() + timedelta(minutes=window) if window else None,
            created_by_id=session.id,
        )

        voucher_uses: dict = {}

        def uses_of(code: str) -> int:
            key = code.strip().upper()
            used = voucher_uses.get(key, 0)
            voucher_uses[key] = used + 1
            return used

        for request in command.units:
            unit = units.get(request.unit_id)
            if unit is None or not unit.is_active or unit.zone_id != zone.pk:
                raise NotFound(f"Unit {request.unit_id} not found in zone {zone.name}.")
            _ensure_available(unit, request.check_in, request.check_out)

            line = BookingUnit.objects.create(
                booking=booking,
                unit=unit,
                check_in=request.check_in,
                check_out=request.check_out,
                nightly_rate=unit.base_nightly_rate,
                subtotal_override=request.subtotal_override,
                tax_rate=request.tax_rate,
            )
            for parameter_request in request.parameters:
                parameter = Parameter.objects.filter(pk=parameter_request.parameter_id, zone=zone).first()
                if parameter is None:
                    raise NotFound(f"Parameter {parameter_request.parameter_id} not found in zone {zone.name}.")
                BookingUnitParameter.objects.create(
                    booking_unit=line,
                    parameter=parameter,
                    quantity=_positive_quantity(parameter_request.quantity),
                    unit_price=(
                        parameter_request.unit_price
                        if parameter_request.unit_price is not None
                        else parameter.default_price
                    ),
                    pricing_mode=parameter.pricing_mode,
                )

            if request.voucher_code:
                _redeem_voucher(
                    booking,
                    line,
                    kind=ACCOMMODATION,
                    code=request.voucher_code,
                    item_id=unit.pk,
                    gross=unit_line_gross(line, booking.currency),
                    check_in=request.check_in,
                    uses_in_transaction=uses_of(request.voucher_code),
                )

        check_in = min(request.check_in for request in command.units)
        for product_request in command.menu_products:
            menu_item = MenuItem.objects.filter(pk=product_request.menu_item_id, zone=zone, is_active=True).first()
            if menu_item is None:
                raise NotFound(f"Menu item {product_request.menu_item_id} not found in zone {zone.name}.")
            product = BookingMenuProduct.objects.create(
                booking=booking,
                menu_item=menu_item,
                quantity=_positive_quantity(product_request.quantity),
                unit_price=menu_item.price,
                serving_date=product_request.serving_date,
                notes=product_request.notes,
            )
            if product_request.voucher_code:
                _redeem_voucher(
                    booking,
                    product,
                    kind=MENU,
                    code=product_request.voucher_code,
                    item_id=menu_item.pk,
                    gross=menu_line_gross(product, booking.currency),
                    check_in=check_in,
                    uses_in_transaction=uses_of(product_request.voucher_code),
                )

        totals = recalculate(booking.pk)
        record_history(
            booking,
            action='created',
            description=f"Booking created with {len(command.units)} unit(s)",
            session=session,
            previous_status='',
            previous_payment_status='',
        )
        uow.add_event(BookingCreated(booking_id=booking.pk, code=booking.code, customer_email=booking.customer_email))

        return {'booking_id': booking.pk, 'code': booking.code}, totals


class AddMenuProductHandler(MutationHandler):

    def handle(self, command: AddMenuProductCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)

        menu_item = MenuItem.objects.filter(pk=command.menu_item_id, zone_id=booking.zone_id, is_active=True).first()
        if menu_item is None:
            raise NotFound(f"Menu item {command.menu_item_id} not found.")
        if command.booking_unit_id is not None and not booking.units.filter(pk=command.booking_unit_id).exists():
            raise NotFound(f"Booked unit {command.booking_unit_id} not found.")

        product = BookingMenuProduct.objects.create(
            booking=booking,
            menu_item=menu_item,
            booking_unit_id=command.booking_unit_id,
            quantity=_positive_quantity(command.quantity),
            unit_price=menu_item.price,
            serving_date=command.serving_date,
            notes=command.notes,
        )
        if command.voucher_code:
            _redeem_voucher(
                booking,
                product,
                kind=MENU,
                code=command.voucher_code,
                item_id=menu_item.pk,
                gross=menu_line_gross(product, booking.currency),
                check_in=booking.check_in,
            )

        totals = recalculate(booking.pk)
        moved_from = _follow_total_change(booking, totals)
        record_history(
            booking,
            action='menu_product_added',
            description=f"Added {product.quantity} x {menu_item.name}",
            session=command.session,
            previous_payment_status=moved_from,
        )
        return {'booking_id': booking.pk, 'product_id': product.pk}, totals


class UpdateMenuProductHandler(MutationHandler):

    def handle(self, command: UpdateMenuProductCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)

        product = BookingMenuProduct.objects.select_related('menu_item').filter(
            pk=command.product_id, booking_id=booking.pk
        ).first()
        if product is None:
            raise NotFound(f"Menu product {command.product_id} not found.")

        changes = []
        if command.quantity is not None and command.quantity != product.quantity:
            changes.append(f"quantity {product.quantity} -> {command.quantity}")
            product.quantity = _positive_quantity(command.quantity)
        if command.serving_date is not None and command.serving_date != product.serving_date:
            changes.append(f"serving date {product.serving_date} -> {command.serving_date}")
            product.serving_date = command.serving_date
        if command.notes is not None:
            product.notes = command.notes
        product.save(update_fields=['quantity', 'serving_date', 'notes'])
        _refresh_line_discount(product, menu_line_gross(product, booking.currency), booking.currency)

        totals = recalculate(booking.pk)
        moved_from = _follow_total_change(booking, totals)
        record_history(
            booking,
            action='menu_product_updated',
            description=f"{product.menu_item.name}: {', '.join(changes) or 'notes updated'}",
            session=command.session,
            previous_payment_status=moved_from,
        )
        return {'booking_id': booking.pk, 'product_id': product.pk}, totals


class RemoveMenuProductHandler(MutationHandler):

    def handle(self, command: RemoveMenuProductCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)

        product = BookingMenuProduct.objects.select_related('menu_item').filter(
            pk=command.product_id, booking_id=booking.pk
        ).first()
        if product is None:
            raise NotFound(f"Menu product {command.product_id} not found.")

        if product.voucher_code:
            release_redemption(line_kind=MENU, line_id=product.pk)
        name = product.menu_item.name
        quantity = product.quantity
        product.delete()

        totals = recalculate(booking.pk)
        moved_from = _follow_total_change(booking, totals)
        record_history(
            booking,
            action='menu_product_removed',
            description=f"Removed {quantity} x {name}",
            session=command.session,
            previous_payment_status=moved_from,
        )
        return {'booking_id': booking.pk}, totals


class ToggleTaxInvoiceHandler(MutationHandler):
    """
    Handler for ToggleTaxInvoice command

    Only the flag changes here. Tax, total and balance follow from
    recalculate(), which zeroes the tax when the invoice is off.
    """

    def handle(self, command: ToggleTaxInvoiceCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)

        changed = booking.tax_invoice_required != command.enabled
        if changed:
            booking.tax_invoice_required = command.enabled
            booking.save(update_fields=['tax_invoice_required', 'updated_at'])

        totals = recalculate(booking.pk)
        moved_from = _follow_total_change(booking, totals)
        if changed:
            record_history(
                booking,
                action='tax_invoice_toggled',
                description="VAT invoice enabled" if command.enabled else "VAT invoice disabled",
                session=command.session,
                previous_payment_status=moved_from,
            )
        return {'booking_id': booking.pk, 'tax_invoice_required': command.enabled}, totals


class ChangeStayDatesHandler(MutationHandler):

    def handle(self, command: ChangeStayDatesCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)

        line = lock_queryset_if_possible(
            BookingUnit.objects.filter(pk=command.booking_unit_id, booking_id=booking.pk)
        ).first()
        if line is None:
            raise NotFound(f"Booked unit {command.booking_unit_id} not found.")

        unit = _lock_units([line.unit_id])[line.unit_id]
        _ensure_available(unit, command.check_in, command.check_out, exclude_booking_unit_id=line.pk)

        previous = f"{line.check_in} - {line.check_out}"
        line.check_in = command.check_in
        line.check_out = command.check_out
        line.save(update_fields=['check_in', 'check_out'])
        _refresh_line_discount(line, unit_line_gross(line, booking.currency), booking.currency)

        totals = recalculate(booking.pk)
        moved_from = _follow_total_change(booking, totals)
        record_history(
            booking,
            action='dates_changed',
            description=f"{unit.name}: {previous} -> {command.check_in} - {command.check_out}",
            session=command.session,
            previous_payment_status=moved_from,
        )
        return {'booking_id': booking.pk, 'booking_unit_id': line.pk}, totals


class RecordPaymentHandler(MutationHandler):

    def handle(self, command: RecordPaymentCommand, uow):
        amount = _positive_amount(command.amount)
        if command.method not in Payment.Method.values:
            raise ValidationFailed(f"Unknown payment method '{command.method}'.")

        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)

        payment = Payment.objects.create(
            booking=booking,
            amount=amount,
            method=command.method,
            status=Payment.Status.COMPLETED,
            notes=command.notes,
            paid_at=command.paid_at or timezone.now(),
            created_by_id=command.session.id,
        )

        totals = recalculate(booking.pk)
        previous_payment_status = _sync_payment_status(booking, totals)
        record_history(
            booking,
            action='payment_recorded',
            description=f"Payment of {amount} {booking.currency} via {payment.get_method_display()}",
            session=command.session,
            previous_payment_status=previous_payment_status,
        )
        uow.add_event(PaymentRecorded(
            booking_id=booking.pk,
            payment_id=payment.pk,
            amount=amount,
            balance_due=totals.balance_due,
        ))
        return {'booking_id': booking.pk, 'payment_id': payment.pk, 'payment_status': booking.payment_status}, totals


class UpdatePaymentHandler(MutationHandler):

    def handle(self, command: UpdatePaymentCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)
        payment = _payment_of(booking, command.payment_id)

        changes = []
        if command.amount is not None:
            amount = _positive_amount(command.amount)
            if amount != payment.amount:
                changes.append(f"amount {payment.amount} -> {amount}")
                payment.amount = amount
        if command.method is not None:
            if command.method not in Payment.Method.values:
                raise ValidationFailed(f"Unknown payment method '{command.method}'.")
            if command.method != payment.method:
                changes.append(f"method {payment.method} -> {command.method}")
                payment.method = command.method
        if command.notes is not None:
            payment.notes = command.notes
        payment.save(update_fields=['amount', 'method', 'notes', 'updated_at'])

        totals = recalculate(booking.pk)
        previous_payment_status = _sync_payment_status(booking, totals)
        record_history(
            booking,
            action='payment_updated',
            description=f"Payment #{payment.pk}: {', '.join(changes) or 'notes updated'}",
            session=command.session,
            previous_payment_status=previous_payment_status,
        )
        return {'booking_id': booking.pk, 'payment_id': payment.pk, 'payment_status': booking.payment_status}, totals


class DeletePaymentHandler(MutationHandler):
    """Soft-delete a payment; it stops counting towards the paid amount."""

    def handle(self, command: DeletePaymentCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        ensure_modifiable(booking)
        payment = _payment_of(booking, command.payment_id)

        payment.status = Payment.Status.DELETED
        if command.reason:
            payment.notes = f"{payment.notes}\n[Deleted: {command.reason}]".strip()
        payment.save(update_fields=['status', 'notes', 'updated_at'])

        totals = recalculate(booking.pk)
        previous_payment_status = _sync_payment_status(booking, totals)
        record_history(
            booking,
            action='payment_deleted',
            description=f"Payment #{payment.pk} of {payment.amount} deleted" + (f": {command.reason}" if command.reason else ""),
            session=command.session,
            previous_payment_status=previous_payment_status,
        )
        return {'booking_id': booking.pk, 'payment_id': payment.pk, 'payment_status': booking.payment_status}, totals


class ChangeStatusHandler(MutationHandler):
    """
    Handler for booking status moves

    Cancelling a booking that already received money leaves the refund
    decision open (payment_status = refund_pending).
    """

    def handle(self, command: ChangeStatusCommand, uow):
        if command.status not in BookingStatus.values:
            raise ValidationFailed(f"Unknown booking status '{command.status}'.")

        booking = _load_booking(command.booking_id, command.session)
        previous_status = booking.status
        previous_payment_status = booking.payment_status
        ensure_transition(previous_status, command.status)

        totals = recalculate(booking.pk)
        booking.status = command.status
        update_fields = ['status', 'updated_at']

        refund_pending = False
        if command.status == BookingStatus.CANCELLED:
            booking.cancelled_at = timezone.now()
            booking.cancellation_reason = command.reason[:255]
            update_fields += ['cancelled_at', 'cancellation_reason']
            if totals.paid_amount > 0:
                ensure_transition(booking.payment_status, PaymentStatus.REFUND_PENDING, payment=True)
                booking.payment_status = PaymentStatus.REFUND_PENDING
                update_fields.append('payment_status')
                refund_pending = True

        booking.save(update_fields=update_fields)

        record_history(
            booking,
            action='status_changed',
            description=command.reason or f"Status changed to {booking.get_status_display()}",
            session=command.session,
            previous_status=previous_status,
            previous_payment_status=previous_payment_status,
        )
        if command.status == BookingStatus.CANCELLED:
            uow.add_event(BookingCancelled(booking_id=booking.pk, reason=command.reason, refund_pending=refund_pending))
        else:
            uow.add_event(BookingStatusChanged(
                booking_id=booking.pk,
                previous_status=previous_status,
                new_status=booking.status,
            ))
        return {'booking_id': booking.pk, 'status': booking.status, 'payment_status': booking.payment_status}, totals


class ResolveRefundHandler(MutationHandler):

    def handle(self, command: ResolveRefundCommand, uow):
        if command.outcome not in (PaymentStatus.REFUNDED, PaymentStatus.NO_REFUND):
            raise ValidationFailed("Refund outcome must be 'refunded' or 'no_refund'.")

        booking = _load_booking(command.booking_id, command.session)
        previous_payment_status = booking.payment_status
        ensure_transition(previous_payment_status, command.outcome, payment=True)

        booking.payment_status = command.outcome
        booking.save(update_fields=['payment_status', 'updated_at'])

        totals = recalculate(booking.pk)
        record_history(
            booking,
            action='refund_resolved',
            description=command.notes or f"Refund resolved as {booking.get_payment_status_display()}",
            session=command.session,
            previous_payment_status=previous_payment_status,
        )
        return {'booking_id': booking.pk, 'payment_status': booking.payment_status}, totals


class ExpirePaymentHandler(MutationHandler):
    """Expire one booking whose payment window has elapsed. No-op otherwise."""

    def handle(self, command: ExpirePaymentCommand, uow):
        booking = _load_booking(command.booking_id, command.session)
        if not booking.is_payment_expired:
            return {'booking_id': booking.pk, 'expired': False}, recalculate(booking.pk)

        previous_payment_status = booking.payment_status
        ensure_transition(previous_payment_status, PaymentStatus.EXPIRED, payment=True)
        booking.payment_status = PaymentStatus.EXPIRED
        booking.save(update_fields=['payment_status', 'updated_at'])

        totals = recalculate(booking.pk)
        record_history(
            booking,
            action='payment_expired',
            description="Payment window elapsed without payment",
            session=command.session,
            previous_payment_status=previous_payment_status,
        )
        uow.add_event(PaymentExpired(booking_id=booking.pk, code=booking.code))
        return {'booking_id': booking.pk, 'expired': True}, totals
