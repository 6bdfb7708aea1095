"""Session contract consumed by the booking engine.

Authentication itself happens elsewhere (JWT via simplejwt); the engine
only needs to know who is acting and which zones they may touch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet

from shared.domain.exceptions import PermissionDenied


@dataclass(frozen=True)
class StaffSession:
    role: str
    id: int | None
    name: str = ""
    email: str = ""
    # None means every zone.
    accessible_zone_ids: FrozenSet[int] | None = None

    @classmethod
    def system(cls) -> "StaffSession":
        """Session used by background jobs."""
        return cls(role="system", id=None, name="System")

    def can_access_zone(self, zone_id: int) -> bool:
        if self.accessible_zone_ids is None:
            return True
        return zone_id in self.accessible_zone_ids

    def ensure_zone_access(self, zone_id: int) -> None:
        if not self.can_access_zone(zone_id):
            raise PermissionDenied("You do not have access to this zone.")


def session_for_user(user) -> StaffSession | None:
    """Build the engine session for an authenticated back-office user."""

    if user is None or not user.is_authenticated:
        return None
    if not user.is_back_office():
        return None

    zone_ids = None
    if not user.sees_all_zones():
        zone_ids = frozenset(user.zones.values_list("id", flat=True))

    return StaffSession(
        role=user.role,
        id=user.pk,
        name=user.display_name,
        email=user.email,
        accessible_zone_ids=zone_ids,
    )


def get_session(request) -> StaffSession | None:
    cached = getattr(request, "_staff_session", None)
    if cached is not None:
        return cached
    session = session_for_user(getattr(request, "user", None))
    request._staff_session = session
    return session
