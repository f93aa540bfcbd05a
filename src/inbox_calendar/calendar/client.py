"""Google Calendar API client for entry lookup and creation."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import dateutil.parser as parser

from inbox_calendar.calendar.base import BaseCalendar
from inbox_calendar.calendar.models import CalendarEntry, CreatedEntryRef
from inbox_calendar.exceptions import CalendarError
from inbox_calendar.gmail.models import Recipient
from inbox_calendar.google_api import build_service

logger = logging.getLogger(__name__)

SOURCE_TITLE = "Gmail thread"


class GoogleCalendar(BaseCalendar):
    """Google Calendar API client bound to one user's credentials.

    Args:
        credentials: A google.oauth2.credentials.Credentials object.
        timeout: Per-request socket timeout in seconds.
        calendar_id: Calendar to read and write.
    """

    def __init__(self, credentials, timeout: float | None = None, calendar_id: str = "primary"):
        self._service = build_service("calendar", "v3", credentials, timeout)
        self.calendar_id = calendar_id

    def find_entries(
        self,
        time_min: datetime,
        time_max: datetime,
        search_text: str | None = None,
        max_results: int = 50,
    ) -> list[CalendarEntry]:
        """List events between two instants, optionally filtered by free text."""
        try:
            kwargs: dict[str, Any] = {
                "calendarId": self.calendar_id,
                "timeMin": time_min.isoformat(),
                "timeMax": time_max.isoformat(),
                "maxResults": max_results,
                "singleEvents": True,
            }
            if search_text:
                kwargs["q"] = search_text

            result = self._service.events().list(**kwargs).execute()
            return [_to_entry(event) for event in result.get("items", [])]
        except Exception as e:
            raise CalendarError(f"Failed to list events: {e}") from e

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
        """Insert an event; start/end are sent as local wall time plus zone."""
        event_body: dict[str, Any] = {
            "summary": summary,
            "start": {"dateTime": _local_iso(start), "timeZone": timezone},
            "end": {"dateTime": _local_iso(end), "timeZone": timezone},
        }
        if description:
            event_body["description"] = description
        if attendees:
            event_body["attendees"] = [
                {"email": a.email, "displayName": a.name} if a.name else {"email": a.email}
                for a in attendees
            ]
        if source_url:
            event_body["source"] = {"title": SOURCE_TITLE, "url": source_url}

        try:
            event = (
                self._service.events()
                .insert(calendarId=self.calendar_id, body=event_body, sendUpdates="all")
                .execute()
            )
        except Exception as e:
            raise CalendarError(f"Failed to create event: {e}") from e

        if not event.get("id"):
            raise CalendarError("Calendar API returned an event without an id")
        return CreatedEntryRef(id=event["id"], html_link=event.get("htmlLink"))

    def get_timezone(self) -> str:
        """The calendar's IANA timezone setting, ``UTC`` if it cannot be read."""
        try:
            setting = self._service.settings().get(setting="timezone").execute()
            return setting.get("value") or "UTC"
        except Exception as e:
            logger.warning(f"Could not read calendar timezone, using UTC: {e}")
            return "UTC"


def _local_iso(value: datetime) -> str:
    return value.replace(tzinfo=None).isoformat(timespec="seconds")


def _parse_created(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parser.isoparse(value)
    except ValueError:
        logger.warning(f"Unparseable event creation time: {value!r}")
        return None


def _to_entry(event: dict) -> CalendarEntry:
    return CalendarEntry(
        id=event.get("id", ""),
        summary=event.get("summary", ""),
        description=event.get("description", "") or "",
        start=event.get("start", {}).get(
            "dateTime", event.get("start", {}).get("date")
        ),
        end=event.get("end", {}).get(
            "dateTime", event.get("end", {}).get("date")
        ),
        created=_parse_created(event.get("created")),
        source_url=event.get("source", {}).get("url"),
        html_link=event.get("htmlLink"),
    )
