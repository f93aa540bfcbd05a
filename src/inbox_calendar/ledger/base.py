"""Abstract base class for processing-state storage."""

from __future__ import annotations

from abc import ABC, abstractmethod

from inbox_calendar.ledger.models import CreatedEvent, ProcessingRecord


class BaseLedger(ABC):
    """Per-(user, conversation) processing records and created events."""

    @abstractmethod
    def get_processing_record(self, user: str, conversation_id: str) -> ProcessingRecord | None:
        ...

    @abstractmethod
    def upsert_processing_record(self, user: str, record: ProcessingRecord) -> None:
        """Insert or replace the record for (user, record.conversation_id)."""
        ...

    @abstractmethod
    def get_created_event(self, user: str, conversation_id: str) -> CreatedEvent | None:
        ...

    @abstractmethod
    def insert_created_event(self, user: str, event: CreatedEvent) -> bool:
        """Store ``event`` unless one already exists for (user, conversation).

        Must be atomic with respect to concurrent callers. Returns False when
        an event was already recorded; the existing one is left untouched.
        """
        ...
