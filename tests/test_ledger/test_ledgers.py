"""Tests for the in-memory and SQLite ledgers."""

import threading
from datetime import datetime, timezone

import pytest

from inbox_calendar.ledger import (
    CreatedEvent,
    InMemoryLedger,
    ProcessedReason,
    ProcessingRecord,
    SQLiteLedger,
)

USER = "me@example.com"
NOW = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def ledger(request, tmp_path):
    if request.param == "memory":
        return InMemoryLedger()
    return SQLiteLedger(tmp_path / "state" / "ledger.db")


def _event(conversation_id="t1", event_id="evt1"):
    return CreatedEvent(
        conversation_id=conversation_id,
        calendar_event_id=event_id,
        title="Lunch",
        start=datetime(2025, 3, 15, 16, 30, tzinfo=timezone.utc),
        end=datetime(2025, 3, 15, 18, 0, tzinfo=timezone.utc),
        attendees=["ann@example.com"],
        source_summary="Re: Lunch tomorrow?",
        link="https://calendar.google.com/event?eid=evt1",
    )


def test_missing_record(ledger):
    assert ledger.get_processing_record(USER, "t1") is None
    assert ledger.get_created_event(USER, "t1") is None


def test_upsert_and_get_record(ledger):
    record = ProcessingRecord(conversation_id="t1", latest_message_id="m1", last_message_at=NOW)
    ledger.upsert_processing_record(USER, record)

    stored = ledger.get_processing_record(USER, "t1")
    assert stored == record
    assert not stored.is_processed


def test_upsert_overwrites(ledger):
    ledger.upsert_processing_record(USER, ProcessingRecord(conversation_id="t1", latest_message_id="m1"))
    ledger.upsert_processing_record(USER, ProcessingRecord(
        conversation_id="t1",
        latest_message_id="m2",
        processed_at=NOW,
        processed_reason=ProcessedReason.NOT_RELEVANT,
    ))

    stored = ledger.get_processing_record(USER, "t1")
    assert stored.latest_message_id == "m2"
    assert stored.processed_reason == ProcessedReason.NOT_RELEVANT
    assert stored.processed_at == NOW
    assert stored.is_processed


def test_records_scoped_by_user(ledger):
    ledger.upsert_processing_record(USER, ProcessingRecord(conversation_id="t1"))
    assert ledger.get_processing_record("other@example.com", "t1") is None


def test_insert_created_event_once(ledger):
    assert ledger.insert_created_event(USER, _event()) is True
    assert ledger.insert_created_event(USER, _event(event_id="evt2")) is False

    stored = ledger.get_created_event(USER, "t1")
    assert stored == _event()


def test_created_event_per_user(ledger):
    assert ledger.insert_created_event(USER, _event())
    assert ledger.insert_created_event("other@example.com", _event())


def test_concurrent_inserts_single_winner(ledger):
    results = []

    def insert(i):
        results.append(ledger.insert_created_event(USER, _event(event_id=f"evt{i}")))

    threads = [threading.Thread(target=insert, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert results.count(False) == 7


def test_memory_returns_copies():
    ledger = InMemoryLedger()
    record = ProcessingRecord(conversation_id="t1")
    ledger.upsert_processing_record(USER, record)
    record.latest_message_id = "changed"
    assert ledger.get_processing_record(USER, "t1").latest_message_id is None


def test_memory_created_events():
    ledger = InMemoryLedger()
    ledger.insert_created_event(USER, _event("t1"))
    ledger.insert_created_event(USER, _event("t2", "evt2"))
    ledger.insert_created_event("other@example.com", _event("t3", "evt3"))
    assert sorted(e.conversation_id for e in ledger.created_events(USER)) == ["t1", "t2"]


def test_sqlite_persists_across_instances(tmp_path):
    path = tmp_path / "ledger.db"
    SQLiteLedger(path).insert_created_event(USER, _event())
    assert SQLiteLedger(path).get_created_event(USER, "t1").calendar_event_id == "evt1"
