"""Data models for the Gmail module."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Recipient:
    """A To/Cc address that may become an event attendee."""

    email: str
    name: str | None = None

    def display(self) -> str:
        return f"{self.name} <{self.email}>" if self.name else self.email


@dataclass
class ConversationRef:
    """A thread as returned by the thread listing (id only, no body)."""

    id: str
    snippet: str = ""


@dataclass
class ThreadMessage:
    """One message of a thread (format=full)."""

    id: str
    internal_date: int  # epoch milliseconds
    headers: dict[str, str]  # lower-cased header name -> value
    payload: dict
    snippet: str = ""


@dataclass
class Conversation:
    """A Gmail thread with its messages."""

    id: str
    messages: list[ThreadMessage] = field(default_factory=list)

    def latest_message(self) -> ThreadMessage | None:
        """The message with the greatest timestamp, or None for an empty thread."""
        if not self.messages:
            return None
        return max(self.messages, key=lambda m: m.internal_date)
