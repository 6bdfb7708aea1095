"""
Unit availability.

Availability is always derived from the reservations on record: inventory
is never decremented. A reservation occupies its unit for the half-open
interval [check_in, check_out), so a stay ending on a day does not
conflict with one starting that day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from shared.domain.exceptions import NotFound, PermissionDenied, ValidationFailed
from shared.domain.value_objects import DateRange

from apps.zones.models import Unit

from .models import Booking, BookingUnit

logger = logging.getLogger(__name__)

UNLIMITED = -1
MAX_CALENDAR_DAYS = 366


@dataclass(frozen=True)
class AvailabilityResult:
    unit_id: int
    available: bool
    available_quantity: int
    conflict_count: int = 0
    unlimited: bool = False
    error: str | None = None


@dataclass(frozen=True)
class DayAvailability:
    date: date
    available: bool
    available_quantity: int
    booked_count: int


def reservation_stay(reservation) -> DateRange | None:
    """Stay of a stored reservation, or None when its dates are unusable.

    Historical rows can carry missing or inverted dates. They are skipped
    rather than failing the whole check, and every skip is logged.
    """

    check_in = getattr(reservation, "check_in", None)
    check_out = getattr(reservation, "check_out", None)
    try:
        return DateRange(check_in, check_out)
    except (TypeError, ValueError):
        logger.warning(
            f"Skipping reservation {getattr(reservation, 'pk', None)} with malformed dates: "
            f"check_in={check_in!r} check_out={check_out!r}"
        )
        return None


def _request_range(check_in, check_out) -> DateRange:
    try:
        return DateRange(check_in, check_out)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed(f"Invalid stay dates: {exc}")


def _active_unit(unit_id: int, session=None) -> Unit:
    unit = Unit.objects.select_related("zone").filter(pk=unit_id, is_active=True, zone__is_active=True).first()
    if unit is None:
        raise NotFound(f"Unit {unit_id} not found.")
    if session is not None:
        session.ensure_zone_access(unit.zone_id)
    return unit


def _reservations(unit_id: int, window: DateRange, exclude_booking_unit_id: int | None = None):
    qs = BookingUnit.objects.filter(unit_id=unit_id).exclude(booking__status=Booking.Status.CANCELLED)
    # Rows with null dates are kept so the skip policy sees and logs them.
    qs = qs.exclude(check_in__gte=window.end_date).exclude(check_out__lte=window.start_date)
    if exclude_booking_unit_id is not None:
        qs = qs.exclude(pk=exclude_booking_unit_id)
    return qs.only("id", "check_in", "check_out")


def _result_for(unit: Unit, stay: DateRange, exclude_booking_unit_id: int | None = None) -> AvailabilityResult:
    if unit.unlimited_inventory:
        return AvailabilityResult(unit_id=unit.pk, available=True, available_quantity=UNLIMITED, unlimited=True)

    conflicts = 0
    for reservation in _reservations(unit.pk, stay, exclude_booking_unit_id):
        reserved = reservation_stay(reservation)
        if reserved is not None and reserved.overlaps_with(stay):
            conflicts += 1

    remaining = max(unit.inventory_quantity - conflicts, 0)
    return AvailabilityResult(
        unit_id=unit.pk,
        available=remaining > 0,
        available_quantity=remaining,
        conflict_count=conflicts,
    )


def check_availability(unit_id: int, check_in, check_out, exclude_booking_unit_id: int | None = None) -> AvailabilityResult:
    """Can one more copy of ``unit_id`` be reserved for [check_in, check_out)?

    ``exclude_booking_unit_id`` leaves a reservation out of the count, used
    when an existing reservation is moving to new dates.
    """

    stay = _request_range(check_in, check_out)
    return _result_for(_active_unit(unit_id), stay, exclude_booking_unit_id)


def check_availability_batch(unit_ids: Iterable[int], check_in, check_out, session=None) -> list[AvailabilityResult]:
    """Availability for several units. Per-unit failures never fail the batch.

    With a ``session``, units outside its zones are reported as forbidden.
    """

    stay = _request_range(check_in, check_out)
    results = []
    for unit_id in unit_ids:
        try:
            results.append(_result_for(_active_unit(unit_id, session), stay))
        except (NotFound, PermissionDenied) as exc:
            results.append(
                AvailabilityResult(unit_id=unit_id, available=False, available_quantity=0, error=exc.message)
            )
        except Exception:
            logger.exception(f"Availability check failed for unit {unit_id}")
            results.append(
                AvailabilityResult(unit_id=unit_id, available=False, available_quantity=0, error="internal_error")
            )
    return results


def availability_calendar(unit_id: int, start: date, end: date, session=None) -> list[DayAvailability]:
    """Per-night availability of a unit for every day in [start, end)."""

    window = _request_range(start, end)
    if len(window) > MAX_CALENDAR_DAYS:
        raise ValidationFailed(f"Calendar window cannot exceed {MAX_CALENDAR_DAYS} days.")

    unit = _active_unit(unit_id, session)
    if unit.unlimited_inventory:
        return [
            DayAvailability(date=night, available=True, available_quantity=UNLIMITED, booked_count=0)
            for night in window.nights()
        ]

    stays = [stay for stay in map(reservation_stay, _reservations(unit.pk, window)) if stay is not None]
    days = []
    for night in window.nights():
        booked = sum(1 for stay in stays if stay.contains(night))
        remaining = max(unit.inventory_quantity - booked, 0)
        days.append(
            DayAvailability(date=night, available=remaining > 0, available_quantity=remaining, booked_count=booked)
        )
    return days

