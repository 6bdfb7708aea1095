"""Vouchers app: discount codes and their redemptions."""
