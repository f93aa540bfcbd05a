"""Data models for the calendar module."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CalendarEntry:
    """An existing calendar event, reduced to the fields dedup needs."""

    id: str
    summary: str
    description: str = ""
    start: str | None = None
    end: str | None = None
    created: datetime | None = None
    source_url: str | None = None
    html_link: str | None = None


@dataclass
class CreatedEntryRef:
    """Reference to a calendar event this package just inserted."""

    id: str
    html_link: str | None = None


@dataclass
class TimeWindow:
    """A resolved event interval; both ends carry the event's ZoneInfo."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)
