"""Access to the ``BOOKING_ENGINE`` settings block with defaults."""

from __future__ import annotations

from typing import Any

from django.conf import settings  # type: ignore

DEFAULTS: dict[str, Any] = {
    "DEFAULT_CURRENCY": "VND",
    "PAYMENT_WINDOW_MINUTES": 30,
    "MODIFIABLE_STATUSES": ("pending", "confirmed", "checked_in"),
}


def engine_setting(name: str) -> Any:
    overrides = getattr(settings, "BOOKING_ENGINE", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
