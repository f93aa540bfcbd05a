"""Claude-backed event detection through the create_calendar_event tool."""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Callable

from inbox_calendar.exceptions import LLMError
from inbox_calendar.gmail.models import Recipient
from inbox_calendar.llm.base import BaseEventReasoner
from inbox_calendar.llm.client import LLMClient
from inbox_calendar.llm.models import EventProposal, ProposalSource

logger = logging.getLogger(__name__)

TOOL_NAME = "create_calendar_event"
PROMPT_BODY_CHARS = 8000

SYSTEM_PROMPT = """You are an assistant that reads email subjects and bodies and determines if the thread implies a meeting, event, or social gathering to schedule. Be liberal in detecting these: meetings, lunches, dinners, appointments, calls, hangouts, study sessions. When you detect such an event and can determine a date and time, call the create_calendar_event tool. Otherwise do not call any tool.

Examples of what to detect:
- "lunch tomorrow at 2pm"
- "meeting Friday at 10am"
- "coffee this afternoon"
- "dinner plans Saturday"
- "call me tomorrow morning"

Time rules:
- Always use the provided timezone for all dates and times.
- Resolve relative dates like "tomorrow" or "next week" from the current datetime.
- Write startISO and endISO as local time in the format YYYY-MM-DDTHH:MM:SS, 24-hour clock, with seconds and without an offset.
- Morning means 09:00, afternoon 14:00, evening 19:00 when no clock time is given."""

INSTRUCTIONS = [
    "- Only include attendees from the provided candidate list; do not invent emails.",
    "- Exclude the current user if present.",
    "- If the start time is known but the end time is not, omit endISO.",
    "- Double-check that dates make sense (not in the past unless explicitly mentioned).",
]

EVENT_TOOL = {
    "name": TOOL_NAME,
    "description": "Create a Google Calendar event with the provided details.",
    "input_schema": {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "description": {"type": "string"},
            "startISO": {
                "type": "string",
                "description": "Local start, YYYY-MM-DDTHH:MM:SS.",
            },
            "endISO": {
                "type": "string",
                "description": "Local end, YYYY-MM-DDTHH:MM:SS; omit if unknown.",
            },
            "timezone": {
                "type": "string",
                "description": "IANA timezone, e.g. America/Los_Angeles.",
            },
            "attendees": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "email": {"type": "string"},
                        "name": {"type": "string"},
                    },
                    "required": ["email"],
                },
            },
        },
        "required": ["title", "startISO", "timezone"],
    },
}


def build_prompt(
    subject: str,
    body_text: str,
    timezone: str,
    candidates: list[Recipient],
    now: datetime,
) -> str:
    instructions = [
        *INSTRUCTIONS,
        f"- Use the provided timezone strictly: {timezone}.",
    ]
    listed = ", ".join(c.display() for c in candidates) or "(none)"
    sections = [
        "\n".join(instructions),
        f"Current datetime: {now.isoformat()}",
        f"User timezone: {timezone}",
        f"Subject: {subject}",
        f"Candidates (To/Cc minus user): {listed}",
        "Email body:",
        body_text[:PROMPT_BODY_CHARS],
    ]
    return "\n\n".join(sections)


def restrict_attendees(raw: list, candidates: list[Recipient]) -> list[Recipient]:
    """Keep only proposed attendees that appear in the candidate list."""
    allowed = {c.email.lower(): c for c in candidates}
    attendees: dict[str, Recipient] = {}
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        key = str(item.get("email", "")).strip().lower()
        if key not in allowed:
            if key:
                logger.warning(f"Dropping attendee outside candidate list: {key}")
            continue
        if key not in attendees:
            attendees[key] = Recipient(
                email=allowed[key].email,
                name=item.get("name") or allowed[key].name,
            )
    return list(attendees.values())


class ClaudeEventReasoner(BaseEventReasoner):
    """Asks Claude whether an email is an event, via the create_calendar_event tool.

    Args:
        client: An ``LLMClient``.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(self, client: LLMClient, clock: Callable[[], datetime] | None = None):
        self.client = client
        self.clock = clock or (lambda: datetime.now(dt_timezone.utc))

    def propose_event(
        self,
        subject: str,
        body_text: str,
        timezone: str,
        candidates: list[Recipient],
        conversation_id: str,
    ) -> EventProposal | None:
        logger.info(f"Analyzing email: {subject[:50]!r}")
        prompt = build_prompt(subject, body_text, timezone, candidates, self.clock())
        result = self.client.generate_with_tools(
            SYSTEM_PROMPT,
            [{"role": "user", "content": prompt}],
            [EVENT_TOOL],
        )

        call = next((c for c in result["tool_calls"] if c["name"] == TOOL_NAME), None)
        if call is None:
            logger.info(f"No calendar event detected in email: {subject[:50]!r}")
            return None

        args = call["input"] or {}
        title = str(args.get("title") or "").strip()
        start_iso = str(args.get("startISO") or "").strip()
        if not title or not start_iso:
            raise LLMError(f"Tool call is missing title or startISO: {args!r}")

        proposal = EventProposal(
            title=title,
            start_iso=start_iso,
            end_iso=str(args.get("endISO") or "").strip() or None,
            timezone=timezone,
            description=args.get("description") or None,
            attendees=restrict_attendees(args.get("attendees", []), candidates),
            source=ProposalSource(conversation_id=conversation_id, subject=subject),
        )
        if args.get("timezone") and args["timezone"] != timezone:
            logger.warning(
                f"Model answered in {args['timezone']}, keeping user timezone {timezone}"
            )
        logger.info(f"Calendar event proposed: {proposal.title!r}")
        return proposal
