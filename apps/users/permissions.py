"""DRF permissions for back-office endpoints."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from .session import get_session


class IsStaffSession(permissions.BasePermission):
    """Only authenticated back-office users (any role except customer)."""

    message = "Staff access only."

    def has_permission(self, request, view) -> bool:  # type: ignore
        return get_session(request) is not None
