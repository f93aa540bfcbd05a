"""Calendar access, duplicate detection and time resolution."""

from inbox_calendar.calendar.base import BaseCalendar
from inbox_calendar.calendar.dedup import DuplicateDetector, gmail_thread_link, normalize_subject
from inbox_calendar.calendar.models import CalendarEntry, CreatedEntryRef, TimeWindow
from inbox_calendar.calendar.timing import TimeResolver


def __getattr__(name):
    """Lazy import for the Google-backed client."""
    if name == "GoogleCalendar":
        from inbox_calendar.calendar.client import GoogleCalendar
        return GoogleCalendar
    raise AttributeError(f"module 'inbox_calendar.calendar' has no attribute {name!r}")


__all__ = [
    "BaseCalendar",
    "GoogleCalendar",
    "CalendarEntry",
    "CreatedEntryRef",
    "TimeWindow",
    "DuplicateDetector",
    "TimeResolver",
    "gmail_thread_link",
    "normalize_subject",
]
