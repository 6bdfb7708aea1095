"""
Booking Domain Events

Events that represent things that have happened to a booking.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created

    Triggers:
    - Send booking received email to the customer
    """
    code: str = ""
    customer_email: str = ""


@dataclass
class BookingStatusChanged(DomainEvent):
    """Event: Booking moved along its lifecycle (confirm, check-in, check-out)"""
    previous_status: str = ""
    new_status: str = ""


@dataclass
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled

    Triggers:
    - Send cancellation email to the customer
    """
    reason: str = ""
    refund_pending: bool = False


@dataclass
class PaymentRecorded(DomainEvent):
    """
    Event: Staff recorded a completed payment

    Triggers:
    - Send payment receipt to the customer
    """
    payment_id: int | None = None
    amount: Decimal = Decimal("0")
    balance_due: Decimal = Decimal("0")


@dataclass
class PaymentExpired(DomainEvent):
    """Event: A pending booking was not paid within its payment window"""
    code: str = ""
