"""In-process ledger, useful for tests and single-process deployments."""

from __future__ import annotations

import copy
import threading

from inbox_calendar.ledger.base import BaseLedger
from inbox_calendar.ledger.models import CreatedEvent, ProcessingRecord


class InMemoryLedger(BaseLedger):
    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[tuple[str, str], ProcessingRecord] = {}
        self._events: dict[tuple[str, str], CreatedEvent] = {}

    def get_processing_record(self, user: str, conversation_id: str) -> ProcessingRecord | None:
        with self._lock:
            record = self._records.get((user, conversation_id))
            return copy.deepcopy(record)

    def upsert_processing_record(self, user: str, record: ProcessingRecord) -> None:
        with self._lock:
            self._records[(user, record.conversation_id)] = copy.deepcopy(record)

    def get_created_event(self, user: str, conversation_id: str) -> CreatedEvent | None:
        with self._lock:
            return copy.deepcopy(self._events.get((user, conversation_id)))

    def insert_created_event(self, user: str, event: CreatedEvent) -> bool:
        key = (user, event.conversation_id)
        with self._lock:
            if key in self._events:
                return False
            self._events[key] = copy.deepcopy(event)
            return True

    def created_events(self, user: str) -> list[CreatedEvent]:
        with self._lock:
            return [copy.deepcopy(e) for (u, _), e in self._events.items() if u == user]
