"""SQLite-backed ledger."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from inbox_calendar.exceptions import LedgerError
from inbox_calendar.ledger.base import BaseLedger
from inbox_calendar.ledger.models import CreatedEvent, ProcessedReason, ProcessingRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS processing_records (
    user TEXT NOT NULL,
    conversation_id TEXT NOT NULL,
    latest_message_id TEXT,
    last_message_at TEXT,
    processed_at TEXT,
    processed_reason TEXT,
    created_event_id TEXT,
    PRIMARY KEY (user, conversation_id)
);
CREATE TABLE IF NOT EXISTS created_events (
    user TEXT NOT NULL,
    conversation_id TEXT NOT NULL,
    calendar_event_id TEXT NOT NULL,
    title TEXT NOT NULL,
    start TEXT NOT NULL,
    "end" TEXT NOT NULL,
    attendees TEXT NOT NULL,
    source_summary TEXT NOT NULL,
    link TEXT,
    PRIMARY KEY (user, conversation_id)
);
"""


def _dump(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _load(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteLedger(BaseLedger):
    """Ledger stored in a SQLite file.

    The (user, conversation_id) primary key on ``created_events`` makes
    ``insert_created_event`` a single atomic conditional insert.

    Args:
        db_path: Database file; created with its schema on first use.
        timeout: Seconds to wait for a competing writer's lock.
    """

    def __init__(self, db_path: Path | str, timeout: float = 10.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to create ledger schema: {e}") from e
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to open ledger at {self.db_path}: {e}") from e

    def _execute(self, sql: str, params: tuple) -> int:
        """Run one write in its own transaction; returns the affected row count."""
        conn = self._connect()
        try:
            with conn:
                return conn.execute(sql, params).rowcount
        except sqlite3.Error as e:
            raise LedgerError(f"Ledger query failed: {e}") from e
        finally:
            conn.close()

    def _fetch_one(self, sql: str, params: tuple) -> sqlite3.Row | None:
        conn = self._connect()
        try:
            return conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise LedgerError(f"Ledger query failed: {e}") from e
        finally:
            conn.close()

    def get_processing_record(self, user: str, conversation_id: str) -> ProcessingRecord | None:
        row = self._fetch_one(
            "SELECT * FROM processing_records WHERE user = ? AND conversation_id = ?",
            (user, conversation_id),
        )
        if row is None:
            return None
        return ProcessingRecord(
            conversation_id=row["conversation_id"],
            latest_message_id=row["latest_message_id"],
            last_message_at=_load(row["last_message_at"]),
            processed_at=_load(row["processed_at"]),
            processed_reason=(
                ProcessedReason(row["processed_reason"]) if row["processed_reason"] else None
            ),
            created_event_id=row["created_event_id"],
        )

    def upsert_processing_record(self, user: str, record: ProcessingRecord) -> None:
        self._execute(
            """
            INSERT INTO processing_records (
                user, conversation_id, latest_message_id, last_message_at,
                processed_at, processed_reason, created_event_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (user, conversation_id) DO UPDATE SET
                latest_message_id = excluded.latest_message_id,
                last_message_at = excluded.last_message_at,
                processed_at = excluded.processed_at,
                processed_reason = excluded.processed_reason,
                created_event_id = excluded.created_event_id
            """,
            (
                user,
                record.conversation_id,
                record.latest_message_id,
                _dump(record.last_message_at),
                _dump(record.processed_at),
                record.processed_reason.value if record.processed_reason else None,
                record.created_event_id,
            ),
        )

    def get_created_event(self, user: str, conversation_id: str) -> CreatedEvent | None:
        row = self._fetch_one(
            "SELECT * FROM created_events WHERE user = ? AND conversation_id = ?",
            (user, conversation_id),
        )
        if row is None:
            return None
        return CreatedEvent(
            conversation_id=row["conversation_id"],
            calendar_event_id=row["calendar_event_id"],
            title=row["title"],
            start=datetime.fromisoformat(row["start"]),
            end=datetime.fromisoformat(row["end"]),
            attendees=json.loads(row["attendees"]),
            source_summary=row["source_summary"],
            link=row["link"],
        )

    def insert_created_event(self, user: str, event: CreatedEvent) -> bool:
        rowcount = self._execute(
            """
            INSERT OR IGNORE INTO created_events (
                user, conversation_id, calendar_event_id, title, start, "end",
                attendees, source_summary, link
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user,
                event.conversation_id,
                event.calendar_event_id,
                event.title,
                event.start.isoformat(),
                event.end.isoformat(),
                json.dumps(event.attendees),
                event.source_summary,
                event.link,
            ),
        )
        inserted = rowcount == 1
        if not inserted:
            logger.warning(f"Created event for {event.conversation_id} already recorded")
        return inserted
