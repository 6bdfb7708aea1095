"""Payments app: money received against bookings and bank transfer details."""
