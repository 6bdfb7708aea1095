"""Pricing of booking lines: gross amounts, voucher discounts, tax and totals."""
