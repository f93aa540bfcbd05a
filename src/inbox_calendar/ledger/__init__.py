"""Persisted per-(user, conversation) processing state."""

from inbox_calendar.ledger.base import BaseLedger
from inbox_calendar.ledger.memory import InMemoryLedger
from inbox_calendar.ledger.models import CreatedEvent, ProcessedReason, ProcessingRecord
from inbox_calendar.ledger.sqlite import SQLiteLedger

__all__ = [
    "BaseLedger",
    "CreatedEvent",
    "InMemoryLedger",
    "ProcessedReason",
    "ProcessingRecord",
    "SQLiteLedger",
]
