"""
Booking engine error taxonomy

Every failure that crosses the mutation-handler boundary is one of these.
``code`` is the stable machine-readable identifier returned to callers,
``http_status`` is what the REST layer answers with.
"""

from __future__ import annotations


class BookingEngineError(Exception):
    """Base class for all expected booking engine failures."""

    code = "booking_error"
    http_status = 500

    def __init__(self, message: str, *, code: str | None = None, http_status: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status


class ValidationFailed(BookingEngineError):
    """Missing or malformed input. Raised before any transaction is opened."""

    code = "validation_error"
    http_status = 400


class NotFound(BookingEngineError):
    """Booking, unit, voucher, payment or line item does not exist."""

    code = "not_found"
    http_status = 404


class PermissionDenied(BookingEngineError):
    """The session may not act on the booking's zone."""

    code = "forbidden"
    http_status = 403


class StateConflict(BookingEngineError):
    """Operation not permitted in the current state, or a voucher rule failed."""

    code = "state_conflict"
    http_status = 409


class RetryableConflict(BookingEngineError):
    """The store reported a lock timeout or deadlock; retry the whole mutation."""

    code = "retryable_conflict"
    http_status = 503


class PersistenceFailure(BookingEngineError):
    """Any other store failure. The transaction has been rolled back."""

    code = "persistence_error"
    http_status = 500
