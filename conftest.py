"""Shared pytest fixtures for the booking engine tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from apps.bookings.application.command_handlers import CreateBookingCommand, CreateBookingHandler, UnitRequest
from apps.bookings.models import Booking
from apps.users.session import StaffSession
from apps.zones.models import MenuItem, Parameter, Unit, Zone


@pytest.fixture
def zone(db) -> Zone:
    return Zone.objects.create(
        name="Pine Hill",
        slug="pine-hill",
        currency="VND",
        deposit_type=Zone.DepositType.PERCENTAGE,
        deposit_value=Decimal("30"),
        bank_name="Vietcombank",
        bank_bin="VCB",
        bank_account_number="0123456789",
        bank_account_name="PINE HILL GLAMPING",
    )


@pytest.fixture
def unit(zone) -> Unit:
    """Single tent at 500,000 VND per night with 10% VAT."""
    return Unit.objects.create(
        zone=zone,
        name="Safari tent",
        base_nightly_rate=Decimal("500000"),
        inventory_quantity=1,
        tax_rate=Decimal("10"),
    )


@pytest.fixture
def menu_item(zone) -> MenuItem:
    return MenuItem.objects.create(zone=zone, name="BBQ set", price=Decimal("200000"), tax_rate=Decimal("8"))


@pytest.fixture
def parameter(zone) -> Parameter:
    return Parameter.objects.create(
        zone=zone,
        name="Extra adult",
        default_price=Decimal("150000"),
        pricing_mode=Parameter.PricingMode.PER_PERSON,
    )


@pytest.fixture
def admin_session() -> StaffSession:
    return StaffSession(role="admin", id=None, name="Test admin")


@pytest.fixture
def create_booking(zone, unit, admin_session):
    """Create a booking through the handler and return (booking, result)."""

    def _create(*, units=None, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3), **kwargs):
        command = CreateBookingCommand(
            session=kwargs.pop("session", admin_session),
            zone_id=kwargs.pop("zone_id", zone.pk),
            customer_name=kwargs.pop("customer_name", "Nguyen Van A"),
            customer_email=kwargs.pop("customer_email", "guest@example.com"),
            units=units or [UnitRequest(unit_id=unit.pk, check_in=check_in, check_out=check_out)],
            **kwargs,
        )
        result = CreateBookingHandler().execute(command)
        booking = Booking.objects.get(pk=result.data["booking_id"]) if result.success else None
        return booking, result

    return _create
