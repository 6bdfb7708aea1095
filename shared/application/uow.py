"""
Unit of Work

Wraps one booking mutation in a single database transaction and makes
sure domain events are published only after that transaction commits.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    One mutation, one ``transaction.atomic()`` block

    Usage:
        with DjangoUnitOfWork(label='RecordPaymentCommand') as uow:
            booking = Booking.objects.select_for_update().get(pk=booking_id)
            ...mutate line items...
            totals = recalculate(booking.pk)
            uow.add_event(PaymentRecorded(booking_id=booking.pk, ...))
            # Transaction commits here
        # Events are published after commit

    Any exception raised inside the block rolls the whole mutation back,
    including the voucher row lock and the totals update. Nested inside an
    outer atomic block it becomes a savepoint, and events wait for the
    outermost commit.
    """

    def __init__(self, label: str = 'mutation', using: str | None = None):
        self.label = label
        self._events: List[DomainEvent] = []
        self._transaction = None
        self._using = using

    def __enter__(self):
        self._transaction = transaction.atomic(using=self._using)
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publication()
            else:
                self._discard(exc_val)
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    @property
    def pending_events(self) -> List[DomainEvent]:
        return list(self._events)

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    def _schedule_publication(self):
        events = self._events.copy()
        self._events.clear()
        if not events:
            return

        names = ', '.join(type(event).__name__ for event in events)
        logger.debug(f"{self.label}: {len(events)} event(s) wait for commit ({names})")
        transaction.on_commit(lambda: self._publish_events(events), using=self._using)

    def _discard(self, exc):
        if self._events:
            logger.warning(f"{self.label} rolled back, discarding {len(self._events)} event(s): {exc}")
        self._events.clear()

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info(f"{self.label}: publishing {len(events)} domain event(s) after commit")

        try:
            message_bus.publish_events(events)
        except Exception as e:
            # The mutation is already committed; publishing is best effort.
            logger.error(f"Error publishing events of {self.label}: {e}", exc_info=True)
