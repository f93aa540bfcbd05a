"""Find calendar entries that already cover a Gmail thread.

Two signals, either sufficient:

* linkage: an entry whose source URL is the thread's deep link, or whose
  description contains the thread id or deep link (entries this package
  created always carry both);
* fuzzy title: a recently created entry whose normalized title is equal or
  close (Levenshtein similarity, token overlap) to the normalized subject.
  This catches entries made by hand or by older versions without linkage.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from inbox_calendar.calendar.base import BaseCalendar
from inbox_calendar.calendar.models import CalendarEntry

logger = logging.getLogger(__name__)

GMAIL_THREAD_URL = "https://mail.google.com/mail/u/0/#inbox/{thread_id}"

LOOKBACK = timedelta(days=30)
LOOKAHEAD = timedelta(days=90)
RECENT_CREATION = timedelta(days=14)

MIN_SUBJECT_CHARS = 5
MIN_NORMALIZED_CHARS = 8
MAX_NORMALIZED_CHARS = 60
SEARCH_TOKENS = 3

SIMILARITY_THRESHOLD = 0.85
SOFT_SIMILARITY_THRESHOLD = 0.70
OVERLAP_THRESHOLD = 0.60

_PREFIX = re.compile(r"^\s*(?:(?:re|fwd?|meeting|event)\s*:\s*)+", re.IGNORECASE)


def gmail_thread_link(thread_id: str) -> str:
    return GMAIL_THREAD_URL.format(thread_id=thread_id)


def normalize_subject(value: str) -> str:
    """Lower-case comparable form of a subject or event title.

    Drops reply/forward prefixes, punctuation and repeated whitespace and
    keeps at most 60 characters.
    """
    value = _PREFIX.sub("", value)
    value = re.sub(r"\s+", " ", value)
    value = re.sub(r"[^\w\s]", "", value)
    return value.strip()[:MAX_NORMALIZED_CHARS].strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit-cost insertion, deletion and substitution."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """``(maxLen - distance) / maxLen``; 1.0 for two empty strings."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein_distance(a, b)) / max_len


def token_overlap(a: str, b: str) -> float:
    """Shared words (longer than 2 chars) over the smaller word set."""
    tokens_a = {w for w in a.lower().split() if len(w) > 2}
    tokens_b = {w for w in b.lower().split() if len(w) > 2}
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / min(len(tokens_a), len(tokens_b))


def titles_match(subject: str, title: str) -> bool:
    """Compare two already-normalized strings."""
    if subject == title:
        return True
    similarity = string_similarity(subject, title)
    if similarity > SIMILARITY_THRESHOLD:
        return True
    return similarity > SOFT_SIMILARITY_THRESHOLD and token_overlap(subject, title) > OVERLAP_THRESHOLD


def is_linked(entry: CalendarEntry, thread_id: str) -> bool:
    link = gmail_thread_link(thread_id)
    if entry.source_url == link:
        return True
    description = entry.description or ""
    return thread_id in description or link in description


class DuplicateDetector:
    """Looks up a user's calendar for an entry matching a thread.

    Args:
        calendar: The user's calendar backend.
    """

    def __init__(self, calendar: BaseCalendar):
        self.calendar = calendar

    def exists(self, thread_id: str, subject: str | None, now: datetime | None = None) -> bool:
        return self.find_existing(thread_id, subject, now) is not None

    def find_existing(
        self,
        thread_id: str,
        subject: str | None,
        now: datetime | None = None,
    ) -> CalendarEntry | None:
        """Return the first entry that covers the thread, or None.

        Calendar errors propagate; a failed lookup is not a negative answer.
        """
        now = _as_aware(now) if now else datetime.now(timezone.utc)
        time_min, time_max = now - LOOKBACK, now + LOOKAHEAD

        entry = self._find_linked(thread_id, time_min, time_max)
        if entry is not None:
            logger.info(f"Found existing event by thread id: {entry.summary!r}")
            return entry

        entry = self._find_similar(subject or "", time_min, time_max, now)
        if entry is not None:
            return entry

        logger.info(f"No existing event found for thread {thread_id}")
        return None

    def _find_linked(
        self, thread_id: str, time_min: datetime, time_max: datetime,
    ) -> CalendarEntry | None:
        for entry in self.calendar.find_entries(time_min, time_max, search_text=thread_id):
            if is_linked(entry, thread_id):
                return entry
        return None

    def _find_similar(
        self, subject: str, time_min: datetime, time_max: datetime, now: datetime,
    ) -> CalendarEntry | None:
        if len(subject.strip()) <= MIN_SUBJECT_CHARS:
            return None

        normalized = normalize_subject(subject)
        if len(normalized) <= MIN_NORMALIZED_CHARS:
            return None

        search_text = " ".join(normalized.split()[:SEARCH_TOKENS])
        logger.debug(f"Checking for similar titles: {normalized!r}")
        entries = self.calendar.find_entries(
            time_min, time_max, search_text=search_text, max_results=30,
        )

        recent_after = now - RECENT_CREATION
        for entry in entries:
            if not entry.summary or entry.created is None:
                continue
            if _as_aware(entry.created) <= recent_after:
                continue
            title = normalize_subject(entry.summary)
            if titles_match(normalized, title):
                logger.info(
                    f"Found existing event by title similarity "
                    f"({string_similarity(normalized, title):.0%}): {entry.summary!r}"
                )
                return entry
        return None


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
