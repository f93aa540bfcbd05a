"""Abstract base class for event reasoners."""

from __future__ import annotations

from abc import ABC, abstractmethod

from inbox_calendar.gmail.models import Recipient
from inbox_calendar.llm.models import EventProposal


class BaseEventReasoner(ABC):
    """Decides whether an email describes an event and proposes one."""

    @abstractmethod
    def propose_event(
        self,
        subject: str,
        body_text: str,
        timezone: str,
        candidates: list[Recipient],
        conversation_id: str,
    ) -> EventProposal | None:
        """Return a proposal, or None when no schedulable event is detected.

        Attendees must be drawn from ``candidates`` and times expressed in
        ``timezone``.
        """
        ...
