"""Drive one run over one user's recent Gmail threads.

For each listed thread the orchestrator decides between creating a calendar
event, recognizing one that already exists, or classifying the thread as
not an event. Conversations are handled one at a time, and a failure in one
becomes an ``error`` outcome for that conversation only.

Idempotency comes from the ledger first (processed records and the single
CreatedEvent per conversation) and from ``DuplicateDetector`` second, which
also catches entries created outside this package.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from inbox_calendar.calendar.base import BaseCalendar
from inbox_calendar.calendar.dedup import DuplicateDetector, gmail_thread_link
from inbox_calendar.calendar.models import CalendarEntry
from inbox_calendar.calendar.phrases import contains_datetime_phrase
from inbox_calendar.calendar.timing import TimeResolver
from inbox_calendar.exceptions import GmailError
from inbox_calendar.gmail.addresses import build_candidate_set, parse_address_list
from inbox_calendar.gmail.base import BaseMailbox
from inbox_calendar.gmail.models import ConversationRef, Recipient
from inbox_calendar.gmail.parser import extract_text, get_header
from inbox_calendar.ledger.base import BaseLedger
from inbox_calendar.ledger.models import CreatedEvent, ProcessedReason, ProcessingRecord
from inbox_calendar.llm.base import BaseEventReasoner
from inbox_calendar.llm.models import EventProposal
from inbox_calendar.pipeline.config import RunConfig
from inbox_calendar.pipeline.models import ConversationOutcome, OutcomeStatus, RunReport

logger = logging.getLogger(__name__)

NO_SUBJECT = "(no subject)"


@dataclass
class _Prepared:
    ref: ConversationRef
    record: ProcessingRecord
    subject: str
    candidates: list[Recipient]
    body: str


def build_description(proposal: EventProposal, thread_id: str) -> str:
    """Event description with the thread id and deep link appended."""
    lines = [
        proposal.description or "",
        "",
        f"Gmail Thread ID: {thread_id}",
        f"Gmail Link: {gmail_thread_link(thread_id)}",
    ]
    return "\n".join(line for line in lines if line)


class ConversationOrchestrator:
    """Runs the event pipeline for a single user.

    Args:
        user: The user's email address; also the ledger key.
        timezone: IANA timezone of the user's calendar.
        mailbox: The user's mailbox.
        calendar: The user's calendar.
        reasoner: Decides whether a thread is an event.
        ledger: Persisted processing state.
        config: Window, caps and ledger policy for this trigger path.
        clock: Returns the current aware time; injectable for tests.
    """

    def __init__(
        self,
        user: str,
        timezone: str,
        mailbox: BaseMailbox,
        calendar: BaseCalendar,
        reasoner: BaseEventReasoner,
        ledger: BaseLedger,
        config: RunConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.user = user
        self.timezone = timezone
        self.mailbox = mailbox
        self.calendar = calendar
        self.reasoner = reasoner
        self.ledger = ledger
        self.config = config or RunConfig()
        self.clock = clock or _utcnow
        self.detector = DuplicateDetector(calendar)
        self.resolver = TimeResolver()

    @classmethod
    def for_google_account(
        cls,
        credentials,
        reasoner: BaseEventReasoner,
        ledger: BaseLedger,
        config_for: Callable[[str], RunConfig] = RunConfig.scheduled,
        timeout: float | None = None,
    ) -> ConversationOrchestrator:
        """Orchestrator for the Google account behind ``credentials``.

        The user is the Gmail account address and the timezone is the
        calendar's own setting; ``config_for`` receives that timezone.
        """
        from inbox_calendar.calendar.client import GoogleCalendar
        from inbox_calendar.gmail.client import GmailMailbox

        mailbox = GmailMailbox(credentials, timeout=timeout)
        calendar = GoogleCalendar(credentials, timeout=timeout)
        user = mailbox.get_account_email()
        if not user:
            raise GmailError("Could not determine the Gmail account address")
        tz = calendar.get_timezone()
        logger.info(f"Resolved account {user} in timezone {tz}")
        return cls(
            user=user,
            timezone=tz,
            mailbox=mailbox,
            calendar=calendar,
            reasoner=reasoner,
            ledger=ledger,
            config=config_for(tz),
        )

    def run(self, stop: threading.Event | None = None) -> RunReport:
        """Process the listed threads in order.

        ``stop`` is checked between conversations; once set, the run ends
        after the conversation in progress.
        """
        now = self.clock()
        report = RunReport(user=self.user)
        logger.info(f"Processing emails for user: {self.user}")

        try:
            refs = self.mailbox.list_recent_conversations(
                self.config.search_query(now), self.config.max_threads,
            )
        except Exception as e:
            logger.error(f"Failed to list threads for {self.user}: {e}")
            return RunReport.failed(self.user, str(e))

        for ref in refs:
            if stop is not None and stop.is_set():
                logger.warning(f"Run for {self.user} stopped before thread {ref.id}")
                break
            if report.processed >= self.config.max_processed:
                logger.info(f"Reached cap of {self.config.max_processed} conversations")
                break
            outcome = self.process(ref, now)
            if outcome is not None:
                report.outcomes.append(outcome)

        logger.info(
            f"User {self.user}: {report.processed} processed, "
            f"{report.count(OutcomeStatus.CREATED)} created, "
            f"{report.count(OutcomeStatus.ALREADY_EXISTS)} already existed, "
            f"{report.count(OutcomeStatus.ERROR)} failed"
        )
        return report

    def process(self, ref: ConversationRef, now: datetime) -> ConversationOutcome | None:
        """Bring one thread to an outcome; None means it was not eligible."""
        try:
            prepared = self._prepare(ref, now)
        except Exception as e:
            logger.exception(f"Failed to load thread {ref.id}")
            return ConversationOutcome(ref.id, "", OutcomeStatus.ERROR, error=str(e))
        if prepared is None:
            return None

        try:
            return self._decide(prepared, now)
        except Exception as e:
            logger.exception(f"Failed to process thread {ref.id}")
            return ConversationOutcome(
                ref.id, prepared.subject, OutcomeStatus.ERROR, error=str(e),
            )

    def _prepare(self, ref: ConversationRef, now: datetime) -> _Prepared | None:
        record = self.ledger.get_processing_record(self.user, ref.id)
        if record is not None and record.is_processed and self.config.skip_processed:
            logger.debug(f"Thread {ref.id} already processed ({record.processed_reason})")
            return None

        conversation = self.mailbox.fetch_conversation(ref)
        message = conversation.latest_message()
        if message is None:
            return None

        sent_at = datetime.fromtimestamp(message.internal_date / 1000, tz=timezone.utc)
        if not self.config.window.contains(sent_at, now):
            logger.debug(f"Thread {ref.id} latest message outside window, skipping")
            return None

        record = record or ProcessingRecord(conversation_id=ref.id)
        record.latest_message_id = message.id
        record.last_message_at = sent_at
        self.ledger.upsert_processing_record(self.user, record)

        to = parse_address_list(get_header(message.headers, "To"))
        cc = parse_address_list(get_header(message.headers, "Cc"))
        return _Prepared(
            ref=ref,
            record=record,
            subject=get_header(message.headers, "Subject") or NO_SUBJECT,
            candidates=build_candidate_set(to, cc, self.user),
            body=extract_text(message)[:self.config.body_char_budget],
        )

    def _decide(self, item: _Prepared, now: datetime) -> ConversationOutcome:
        thread_id = item.ref.id
        # A recorded event is final: the reasoner is not consulted again.
        recorded = self.ledger.get_created_event(self.user, thread_id)
        if recorded is not None:
            logger.info(f"Event already recorded for thread {thread_id}: {recorded.title!r}")
            self._finish(item.record, ProcessedReason.CREATED, now, recorded.calendar_event_id)
            return ConversationOutcome(
                thread_id, item.subject, OutcomeStatus.ALREADY_EXISTS,
                event_id=recorded.calendar_event_id,
                event_link=recorded.link,
                title=recorded.title,
            )

        proposal = self.reasoner.propose_event(
            item.subject, item.body, self.timezone, item.candidates, thread_id,
        )
        if proposal is None:
            return self._abstained(item, now)

        existing = self.detector.find_existing(thread_id, item.subject, now)
        if existing is not None:
            return self._already_on_calendar(item, existing, now)

        return self._create(item, proposal, now)

    def _abstained(self, item: _Prepared, now: datetime) -> ConversationOutcome:
        if item.record.processed_reason == ProcessedReason.CREATED:
            logger.info(
                f"Thread {item.ref.id} already has event {item.record.created_event_id}, "
                f"keeping it"
            )
            return ConversationOutcome(
                item.ref.id, item.subject, OutcomeStatus.ALREADY_EXISTS,
                event_id=item.record.created_event_id,
            )
        if contains_datetime_phrase(f"{item.subject}\n{item.body}"):
            reason, status = ProcessedReason.NO_DATETIME, OutcomeStatus.SKIPPED_NO_DATETIME
        else:
            reason, status = ProcessedReason.NOT_RELEVANT, OutcomeStatus.SKIPPED_NOT_RELEVANT
        self._finish(item.record, reason, now)
        return ConversationOutcome(item.ref.id, item.subject, status)

    def _already_on_calendar(
        self, item: _Prepared, entry: CalendarEntry, now: datetime,
    ) -> ConversationOutcome:
        logger.info(f"Event already exists for thread {item.ref.id}: {entry.summary!r}")
        self._finish(item.record, ProcessedReason.CREATED, now, entry.id)
        return ConversationOutcome(
            item.ref.id, item.subject, OutcomeStatus.ALREADY_EXISTS,
            event_id=entry.id,
            event_link=entry.html_link,
            title=entry.summary,
        )

    def _create(
        self, item: _Prepared, proposal: EventProposal, now: datetime,
    ) -> ConversationOutcome:
        thread_id = item.ref.id
        window = self.resolver.resolve(proposal, item.subject, item.body, now)
        attendees = proposal.attendees or item.candidates

        logger.info(
            f"Creating calendar event for thread {thread_id}: {proposal.title!r} "
            f"{window.start.isoformat()} -> {window.end.isoformat()} "
            f"({len(attendees)} attendees, {proposal.timezone})"
        )
        created = self.calendar.create_entry(
            summary=proposal.title,
            start=window.start,
            end=window.end,
            timezone=proposal.timezone,
            description=build_description(proposal, thread_id),
            attendees=attendees,
            source_url=gmail_thread_link(thread_id),
        )

        event = CreatedEvent(
            conversation_id=thread_id,
            calendar_event_id=created.id,
            title=proposal.title,
            start=window.start,
            end=window.end,
            attendees=[a.email for a in attendees],
            source_summary=item.subject,
            link=created.html_link,
        )
        status = OutcomeStatus.CREATED
        if not self.ledger.insert_created_event(self.user, event):
            logger.warning(
                f"Thread {thread_id} was recorded by a concurrent run; "
                f"calendar entry {created.id} is a duplicate"
            )
            event = self.ledger.get_created_event(self.user, thread_id) or event
            status = OutcomeStatus.ALREADY_EXISTS
        else:
            logger.info(f"Created calendar event {created.id} ({created.html_link})")

        self._finish(item.record, ProcessedReason.CREATED, now, event.calendar_event_id)
        return ConversationOutcome(
            thread_id, item.subject, status,
            event_id=event.calendar_event_id,
            event_link=event.link,
            title=event.title,
        )

    def _finish(
        self,
        record: ProcessingRecord,
        reason: ProcessedReason,
        now: datetime,
        event_id: str | None = None,
    ) -> None:
        record.processed_at = now
        record.processed_reason = reason
        record.created_event_id = event_id
        self.ledger.upsert_processing_record(self.user, record)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
