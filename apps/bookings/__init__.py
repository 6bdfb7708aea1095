"""Bookings app package.

This app holds the booking consistency and pricing engine: availability
of units against concurrent reservations, per-line tax, booking totals
and the mutation handlers that keep them consistent while a booking is
edited. Every mutation runs in one database transaction and relies on
row locks rather than in-process locking.
"""
