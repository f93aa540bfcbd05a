"""Abstract base class for mailbox backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from inbox_calendar.gmail.models import Conversation, ConversationRef


class BaseMailbox(ABC):
    """Read-only access to one user's mail threads."""

    @abstractmethod
    def list_recent_conversations(
        self, query: str, max_results: int = 10,
    ) -> list[ConversationRef]:
        """List threads matching a provider search query, newest first."""
        ...

    @abstractmethod
    def fetch_conversation(self, ref: ConversationRef) -> Conversation:
        """Fetch a thread with all of its messages."""
        ...
