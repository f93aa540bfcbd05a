"""Data models for event proposals."""

from __future__ import annotations

from dataclasses import dataclass, field

from inbox_calendar.gmail.models import Recipient


@dataclass
class ProposalSource:
    conversation_id: str
    subject: str


@dataclass
class EventProposal:
    """A calendar event suggested for a conversation, not yet persisted.

    ``start_iso``/``end_iso`` are local wall times in ``timezone``.
    """

    title: str
    start_iso: str
    timezone: str
    source: ProposalSource
    description: str | None = None
    end_iso: str | None = None
    attendees: list[Recipient] = field(default_factory=list)
