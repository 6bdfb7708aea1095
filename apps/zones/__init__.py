"""Zones app package.

Catalogue of glamping zones and what can be booked in them: accommodation
units with their inventory, priced parameters and menu items. The booking
engine only reads these rows; inventory is never decremented, availability
is always derived from reservations.
"""
