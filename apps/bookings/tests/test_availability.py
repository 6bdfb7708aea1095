"""Tests for unit availability and the availability calendar."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from apps.bookings.availability import (
    UNLIMITED,
    availability_calendar,
    check_availability,
    check_availability_batch,
)
from apps.bookings.models import Booking, BookingUnit
from apps.users.session import StaffSession
from apps.zones.models import Unit, Zone
from shared.domain.exceptions import NotFound, PermissionDenied, ValidationFailed


def reserve(zone, unit, check_in, check_out, status=Booking.Status.CONFIRMED) -> BookingUnit:
    booking = Booking.objects.create(zone=zone, customer_name="Guest", status=status)
    return BookingUnit.objects.create(booking=booking, unit=unit, check_in=check_in, check_out=check_out)


@pytest.mark.django_db
def test_overlapping_stay_is_unavailable_and_adjacent_stay_is_free(zone, unit):
    reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 5))

    overlapping = check_availability(unit.pk, date(2030, 1, 3), date(2030, 1, 6))
    adjacent = check_availability(unit.pk, date(2030, 1, 5), date(2030, 1, 8))

    assert not overlapping.available
    assert overlapping.conflict_count == 1
    assert overlapping.available_quantity == 0
    assert adjacent.available
    assert adjacent.available_quantity == 1


@pytest.mark.django_db
def test_inventory_counts_each_reservation(zone):
    unit = Unit.objects.create(zone=zone, name="Bell tent", inventory_quantity=3)
    reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 3))
    reserve(zone, unit, date(2030, 1, 2), date(2030, 1, 4))

    result = check_availability(unit.pk, date(2030, 1, 2), date(2030, 1, 3))

    assert result.available
    assert result.available_quantity == 1


@pytest.mark.django_db
def test_cancelled_bookings_do_not_hold_inventory(zone, unit):
    reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 5), status=Booking.Status.CANCELLED)

    assert check_availability(unit.pk, date(2030, 1, 2), date(2030, 1, 3)).available


@pytest.mark.django_db
def test_excluded_reservation_is_not_counted(zone, unit):
    reservation = reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 5))

    result = check_availability(
        unit.pk, date(2030, 1, 2), date(2030, 1, 6), exclude_booking_unit_id=reservation.pk
    )

    assert result.available


@pytest.mark.django_db
def test_unlimited_unit_reports_sentinel(zone):
    unit = Unit.objects.create(zone=zone, name="Camping pitch", unlimited_inventory=True)
    reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 5))

    result = check_availability(unit.pk, date(2030, 1, 1), date(2030, 1, 5))

    assert result.available
    assert result.unlimited
    assert result.available_quantity == UNLIMITED


@pytest.mark.django_db
def test_malformed_reservations_are_skipped_and_logged(zone, unit, caplog):
    reserve(zone, unit, None, None)
    reserve(zone, unit, date(2030, 1, 4), date(2030, 1, 2))

    with caplog.at_level(logging.WARNING, logger="apps.bookings.availability"):
        result = check_availability(unit.pk, date(2030, 1, 1), date(2030, 1, 5))

    assert result.available
    assert result.conflict_count == 0
    assert "malformed dates" in caplog.text


@pytest.mark.django_db
def test_invalid_request_dates_raise(unit):
    with pytest.raises(ValidationFailed):
        check_availability(unit.pk, date(2030, 1, 5), date(2030, 1, 5))


@pytest.mark.django_db
def test_inactive_unit_is_not_found(zone):
    unit = Unit.objects.create(zone=zone, name="Closed cabin", is_active=False)

    with pytest.raises(NotFound):
        check_availability(unit.pk, date(2030, 1, 1), date(2030, 1, 2))


@pytest.mark.django_db
def test_batch_reports_missing_units_without_failing(zone, unit):
    reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 3))

    results = check_availability_batch([unit.pk, 999999], date(2030, 1, 2), date(2030, 1, 4))

    assert [result.unit_id for result in results] == [unit.pk, 999999]
    assert not results[0].available
    assert results[0].error is None
    assert results[1].error == "Unit 999999 not found."


@pytest.mark.django_db
def test_session_only_sees_units_in_its_zones(zone, unit):
    other_zone = Zone.objects.create(name="Lake Side", slug="lake-side")
    lakeside = Unit.objects.create(zone=other_zone, name="Lake cabin")
    session = StaffSession(role="operations", id=None, accessible_zone_ids=frozenset({zone.pk}))

    results = check_availability_batch([unit.pk, lakeside.pk], date(2030, 1, 1), date(2030, 1, 2), session=session)

    assert results[0].available
    assert not results[1].available
    assert results[1].error == "You do not have access to this zone."
    with pytest.raises(PermissionDenied):
        availability_calendar(lakeside.pk, date(2030, 1, 1), date(2030, 1, 3), session=session)
    assert len(availability_calendar(unit.pk, date(2030, 1, 1), date(2030, 1, 3), session=session)) == 2


@pytest.mark.django_db
def test_calendar_counts_bookings_per_night(zone):
    unit = Unit.objects.create(zone=zone, name="Dome", inventory_quantity=2)
    reserve(zone, unit, date(2030, 1, 1), date(2030, 1, 3))
    reserve(zone, unit, date(2030, 1, 2), date(2030, 1, 4))

    days = availability_calendar(unit.pk, date(2030, 1, 1), date(2030, 1, 5))

    assert [day.booked_count for day in days] == [1, 2, 1, 0]
    assert [day.available for day in days] == [True, False, True, True]
    assert days[-1].available_quantity == 2


@pytest.mark.django_db
def test_calendar_window_is_bounded(unit):
    with pytest.raises(ValidationFailed):
        availability_calendar(unit.pk, date(2030, 1, 1), date(2031, 6, 1))
