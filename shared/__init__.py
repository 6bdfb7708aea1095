"""
Booking engine kernel

Money and date value objects, the error hierarchy, domain events with their
bus, and the transaction wrapper every booking mutation runs inside.
"""
