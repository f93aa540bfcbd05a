"""Abstract base class for calendar backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from inbox_calendar.calendar.models import CalendarEntry, CreatedEntryRef
from inbox_calendar.gmail.models import Recipient


class BaseCalendar(ABC):
    """Query and insert access to one user's primary calendar."""

    @abstractmethod
    def find_entries(
        self,
        time_min: datetime,
        time_max: datetime,
        search_text: str | None = None,
        max_results: int = 50,
    ) -> list[CalendarEntry]:
        """Entries overlapping [time_min, time_max], optionally text-filtered."""
        ...

    @abstractmethod
    def create_entry(
        self,
        summary: str,
        start: datetime,
        end: datetime,
        timezone: str,
        description: str = "",
        attendees: list[Recipient] | None = None,
        source_url: str | None = None,
    ) -> CreatedEntryRef:
        """Insert a new entry and notify attendees."""
        ...
