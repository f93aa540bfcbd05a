"""Shared fakes for pipeline tests."""

import base64
from datetime import datetime, timedelta, timezone

import pytest

from inbox_calendar.calendar.base import BaseCalendar
from inbox_calendar.calendar.models import CalendarEntry, CreatedEntryRef
from inbox_calendar.gmail.base import BaseMailbox
from inbox_calendar.gmail.models import Conversation, ConversationRef, ThreadMessage
from inbox_calendar.ledger import InMemoryLedger
from inbox_calendar.llm.base import BaseEventReasoner
from inbox_calendar.llm.models import EventProposal, ProposalSource
from inbox_calendar.pipeline import ConversationOrchestrator, RunConfig

USER = "me@example.com"
TIMEZONE = "America/New_York"
# 10:00 in New York.
NOW = datetime(2025, 3, 14, 14, 0, tzinfo=timezone.utc)


class FakeMailbox(BaseMailbox):
    def __init__(self):
        self.threads: dict[str, Conversation] = {}
        self.queries: list[str] = []
        self.list_error: Exception | None = None

    def add(self, thread_id, subject, body, sent_at=None, to=f"{USER}, Ann <ann@example.com>", cc=""):
        sent_at = sent_at or NOW - timedelta(hours=1)
        headers = {"subject": subject, "to": to, "from": "Ann <ann@example.com>"}
        if cc:
            headers["cc"] = cc
        payload = {
            "mimeType": "text/plain",
            "body": {"data": base64.urlsafe_b64encode(body.encode()).decode()},
        }
        message = ThreadMessage(
            id=f"{thread_id}-m1",
            internal_date=int(sent_at.timestamp() * 1000),
            headers=headers,
            payload=payload,
        )
        self.threads[thread_id] = Conversation(id=thread_id, messages=[message])

    def list_recent_conversations(self, query, max_results=10):
        self.queries.append(query)
        if self.list_error:
            raise self.list_error
        return [ConversationRef(id=t) for t in list(self.threads)[:max_results]]

    def fetch_conversation(self, ref):
        return self.threads[ref.id]


class FakeCalendar(BaseCalendar):
    def __init__(self):
        self.entries: list[CalendarEntry] = []
        self.created: list[dict] = []

    def find_entries(self, time_min, time_max, search_text=None, max_results=50):
        return list(self.entries)

    def create_entry(
        self, summary, start, end, timezone, description="", attendees=None, source_url=None,
    ):
        event_id = f"evt{len(self.created) + 1}"
        self.created.append({
            "id": event_id,
            "summary": summary,
            "start": start,
            "end": end,
            "timezone": timezone,
            "description": description,
            "attendees": attendees or [],
            "source_url": source_url,
        })
        self.entries.append(CalendarEntry(
            id=event_id,
            summary=summary,
            description=description,
            created=NOW,
            source_url=source_url,
            html_link=f"https://calendar.google.com/event?eid={event_id}",
        ))
        return CreatedEntryRef(id=event_id, html_link=f"https://calendar.google.com/event?eid={event_id}")


class FakeReasoner(BaseEventReasoner):
    """Answers from a subject -> (title, start_iso) table; raises stored exceptions."""

    def __init__(self):
        self.answers: dict[str, object] = {}
        self.calls: list[str] = []

    def propose_event(self, subject, body_text, timezone, candidates, conversation_id):
        self.calls.append(conversation_id)
        answer = self.answers.get(subject)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return None
        title, start_iso = answer
        return EventProposal(
            title=title,
            start_iso=start_iso,
            timezone=timezone,
            source=ProposalSource(conversation_id=conversation_id, subject=subject),
        )


@pytest.fixture
def mailbox():
    return FakeMailbox()


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def reasoner():
    return FakeReasoner()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def make_orchestrator(mailbox, calendar, reasoner, ledger):
    def make(config=None, **overrides):
        parts = {
            "mailbox": mailbox,
            "calendar": calendar,
            "reasoner": reasoner,
            "ledger": ledger,
        }
        parts.update(overrides)
        return ConversationOrchestrator(
            user=USER,
            timezone=TIMEZONE,
            config=config or RunConfig.interactive(),
            clock=lambda: NOW,
            **parts,
        )
    return make
