"""Unified exception hierarchy for inbox-calendar."""


class InboxCalendarError(Exception):
    """Base exception for all inbox-calendar errors."""


# Gmail
class GmailError(InboxCalendarError):
    """Base exception for Gmail operations."""


class GmailFetchError(GmailError):
    """Failed to fetch Gmail threads or messages."""


# Calendar
class CalendarError(InboxCalendarError):
    """Base exception for calendar operations."""


# LLM
class LLMError(InboxCalendarError):
    """Base exception for LLM client operations."""


# Ledger
class LedgerError(InboxCalendarError):
    """Failed to read or write processing state."""


# Proposals
class InvalidProposal(InboxCalendarError):
    """A proposed event has time fields that cannot be repaired."""
