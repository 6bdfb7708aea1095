"""
Row-locking helpers for the booking engine.

All mutual exclusion in the engine is delegated to the database: a row
locked with SELECT ... FOR UPDATE stays locked until the enclosing
transaction commits or rolls back.
"""

from __future__ import annotations

from django.db import DatabaseError, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.exceptions import PersistenceFailure, RetryableConflict

# Substrings the supported backends use when a lock could not be obtained.
_RETRYABLE_MARKERS = (
    "lock timeout",
    "could not obtain lock",
    "deadlock detected",
    "could not serialize access",
    "database is locked",
    "lock wait timeout",
)


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection(queryset.db).in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def is_retryable_database_error(exc: BaseException) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)


def translate_database_error(exc: DatabaseError):
    """Map a raw store failure onto the engine's error taxonomy."""

    if is_retryable_database_error(exc):
        return RetryableConflict(
            "The booking is being modified by another request. Please retry."
        )
    return PersistenceFailure("Failed to persist booking changes.")
