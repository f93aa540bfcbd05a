"""Tests for duplicate detection against existing calendar entries."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from inbox_calendar.calendar.base import BaseCalendar
from inbox_calendar.calendar.dedup import (
    DuplicateDetector,
    gmail_thread_link,
    levenshtein_distance,
    normalize_subject,
    string_similarity,
    titles_match,
    token_overlap,
)
from inbox_calendar.calendar.models import CalendarEntry
from inbox_calendar.exceptions import CalendarError

NOW = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)


class FakeCalendar(BaseCalendar):
    def __init__(self, entries=None):
        self.entries = entries or []
        self.searches = []

    def find_entries(self, time_min, time_max, search_text=None, max_results=50):
        self.searches.append(search_text)
        return list(self.entries)

    def create_entry(self, *args, **kwargs):
        raise AssertionError("not used")


def _entry(summary, created_days_ago=2, description="", source_url=None, entry_id="evt1"):
    return CalendarEntry(
        id=entry_id,
        summary=summary,
        description=description,
        created=NOW - timedelta(days=created_days_ago),
        source_url=source_url,
    )


def test_normalize_subject():
    assert normalize_subject("Re: Fwd: Team Sync!") == "team sync"
    assert normalize_subject("MEETING:   Q3   planning") == "q3 planning"
    assert normalize_subject("re:re: Lunch?") == "lunch"


def test_normalize_truncates():
    assert len(normalize_subject("x" * 100)) == 60


def test_levenshtein():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_similarity_bounds():
    assert string_similarity("abc", "abc") == 1.0
    assert string_similarity("", "") == 1.0
    assert string_similarity("abc", "xyz") == 0.0


def test_token_overlap():
    assert token_overlap("team sync notes", "team sync") == 1.0
    assert token_overlap("a b", "c d") == 0.0


def test_titles_match():
    assert titles_match("team sync", "team sync")
    assert titles_match("quarterly planning review", "quarterly planning reviews")
    assert not titles_match("team sync", "dentist appointment")


def test_flags_recent_entry_with_same_title():
    calendar = FakeCalendar([_entry("Team Sync", created_days_ago=2)])
    detector = DuplicateDetector(calendar)
    found = detector.find_existing("t1", "Re: Team Sync", now=NOW)
    assert found is not None
    assert found.summary == "Team Sync"
    assert detector.exists("t1", "Team Sync", now=NOW)


def test_ignores_old_entry_with_same_title():
    calendar = FakeCalendar([_entry("Team Sync", created_days_ago=20)])
    assert DuplicateDetector(calendar).find_existing("t1", "Team Sync", now=NOW) is None


def test_entry_without_created_time_is_ignored():
    entry = _entry("Team Sync")
    entry.created = None
    assert not DuplicateDetector(FakeCalendar([entry])).exists("t1", "Team Sync", now=NOW)


def test_linked_by_thread_id_in_description():
    entry = _entry("Something else", created_days_ago=200, description="Gmail Thread ID: t1")
    found = DuplicateDetector(FakeCalendar([entry])).find_existing("t1", "Lunch", now=NOW)
    assert found is entry


def test_linked_by_source_url():
    entry = _entry("Other", created_days_ago=200, source_url=gmail_thread_link("t1"))
    assert DuplicateDetector(FakeCalendar([entry])).exists("t1", None, now=NOW)


def test_linked_search_uses_thread_id():
    calendar = FakeCalendar()
    DuplicateDetector(calendar).find_existing("t1", "Weekly planning session", now=NOW)
    assert calendar.searches[0] == "t1"
    assert calendar.searches[1] == "weekly planning session"


def test_short_subject_skips_title_search():
    calendar = FakeCalendar([_entry("Lunch")])
    assert DuplicateDetector(calendar).find_existing("t1", "Lunch", now=NOW) is None
    assert calendar.searches == ["t1"]


def test_unrelated_entry_not_flagged():
    calendar = FakeCalendar([_entry("Dentist appointment")])
    assert not DuplicateDetector(calendar).exists("t1", "Team Sync", now=NOW)


def test_calendar_errors_propagate():
    calendar = MagicMock(spec=BaseCalendar)
    calendar.find_entries.side_effect = CalendarError("Failed to list events: boom")
    with pytest.raises(CalendarError):
        DuplicateDetector(calendar).find_existing("t1", "Team Sync", now=NOW)


def test_naive_created_time_treated_as_utc():
    entry = _entry("Team Sync")
    entry.created = (NOW - timedelta(days=1)).replace(tzinfo=None)
    assert DuplicateDetector(FakeCalendar([entry])).exists("t1", "Team Sync", now=NOW)
