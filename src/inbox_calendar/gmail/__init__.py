"""Gmail thread access, address parsing and body extraction.

Heavy imports are deferred. Use explicit imports:
    from inbox_calendar.gmail.client import GmailMailbox
    from inbox_calendar.gmail.parser import extract_text
    etc.
"""

# Light imports only (no external deps)
from inbox_calendar.gmail.addresses import build_candidate_set, parse_address_list
from inbox_calendar.gmail.base import BaseMailbox
from inbox_calendar.gmail.models import (
    Conversation,
    ConversationRef,
    Recipient,
    ThreadMessage,
)


def __getattr__(name):
    """Lazy imports for names that require optional dependencies."""
    if name == "GmailMailbox":
        from inbox_calendar.gmail.client import GmailMailbox
        return GmailMailbox
    if name == "extract_text":
        from inbox_calendar.gmail.parser import extract_text
        return extract_text
    if name == "parse_thread":
        from inbox_calendar.gmail.parser import parse_thread
        return parse_thread
    raise AttributeError(f"module 'inbox_calendar.gmail' has no attribute {name!r}")


__all__ = [
    "BaseMailbox",
    "GmailMailbox",
    "Conversation",
    "ConversationRef",
    "Recipient",
    "ThreadMessage",
    "build_candidate_set",
    "parse_address_list",
    "extract_text",
    "parse_thread",
]
