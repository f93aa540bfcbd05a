"""Data models for persisted processing state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ProcessedReason(str, Enum):
    CREATED = "created"
    NOT_RELEVANT = "not_relevant"
    NO_DATETIME = "no_datetime"


@dataclass
class ProcessingRecord:
    """Processing state of one (user, conversation).

    ``processed_at`` is None until the conversation reaches a final
    classification; after that the scheduled path leaves it alone.
    """

    conversation_id: str
    latest_message_id: str | None = None
    last_message_at: datetime | None = None
    processed_at: datetime | None = None
    processed_reason: ProcessedReason | None = None
    created_event_id: str | None = None

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None


@dataclass
class CreatedEvent:
    """The single calendar event created for a (user, conversation)."""

    conversation_id: str
    calendar_event_id: str
    title: str
    start: datetime
    end: datetime
    attendees: list[str] = field(default_factory=list)
    source_summary: str = ""
    link: str | None = None
