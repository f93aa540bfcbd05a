"""Detect date/time language in free text and pull explicit end times out of it."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time

import dateparser

logger = logging.getLogger(__name__)

SCAN_CHAR_LIMIT = 4000

_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_WEEKDAY = r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"

_DAY_PHRASE = re.compile(
    r"\b(?:"
    r"today|tonight|tomorrow|day after tomorrow|"
    rf"(?:next|this|coming)\s+(?:week|month|{_WEEKDAY})|"
    rf"{_WEEKDAY}|"
    rf"{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?|"
    rf"\d{{1,2}}(?:st|nd|rd|th)?\s+(?:of\s+)?{_MONTH}(?:,?\s+\d{{4}})?|"
    r"\d{4}-\d{2}-\d{2}|"
    r"\d{1,2}/\d{1,2}(?:/\d{2,4})?"
    r")\b",
    re.IGNORECASE,
)

_CLOCK_PHRASE = re.compile(
    r"\b(?:"
    r"\d{1,2}(?::\d{2})?\s*(?:am|pm|a\.m\.|p\.m\.)|"
    r"\d{1,2}:\d{2}|"
    r"noon|midnight|"
    r"(?:this|tomorrow)\s+(?:morning|afternoon|evening)"
    r")(?![\w])",
    re.IGNORECASE,
)

_CLOCK = r"\d{1,2}(?::\d{2})?\s*(?:[ap]\.?m\.?)?"
_RANGE = re.compile(
    rf"(?<![\w:])(?P<start>{_CLOCK})\s*(?:-|–|—|to|until|till)\s*(?P<end>{_CLOCK})(?![\w:])",
    re.IGNORECASE,
)
_CLOCK_PARTS = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>[ap])?", re.IGNORECASE,
)

_CONTEXT_CHARS = 60


def find_datetime_phrases(text: str) -> list[str]:
    """All day and clock phrases found in ``text``, in order of appearance."""
    matches = [*_DAY_PHRASE.finditer(text), *_CLOCK_PHRASE.finditer(text)]
    return [m.group(0) for m in sorted(matches, key=lambda m: m.start())]


def contains_datetime_phrase(text: str) -> bool:
    return bool(_DAY_PHRASE.search(text) or _CLOCK_PHRASE.search(text))


def find_end_instant(
    text: str,
    reference_now: datetime,
    start: datetime | None = None,
) -> datetime | None:
    """Return the end of an explicit time range in ``text``.

    Recognizes ranges such as ``2-3pm``, ``from 14:00 to 15:30`` or
    ``10am until 11:30``; the day comes from a nearby day phrase
    (``tomorrow``, ``Friday``, ``Oct 21``) resolved against
    ``reference_now``, or from ``reference_now`` itself. The result carries
    ``reference_now``'s tzinfo. Only the first ``SCAN_CHAR_LIMIT``
    characters are scanned.

    When ``start`` is given, a range beginning at ``start``'s wall-clock
    time wins and ends on ``start``'s day. Otherwise the first range in the
    text is used, which is not necessarily the first date mention: a
    single time such as ``at 9am`` earlier in the text is passed over.
    """
    text = text[:SCAN_CHAR_LIMIT]
    first: datetime | None = None
    for match in _RANGE.finditer(text):
        start_clock = _parse_clock(match.group("start"))
        end_clock = _parse_clock(match.group("end"))
        if start_clock is None or end_clock is None:
            continue

        start_hour, start_minute, start_meridiem = start_clock
        end_hour, end_minute, end_meridiem = end_clock
        has_colons = ":" in match.group("start") and ":" in match.group("end")
        if not (start_meridiem or end_meridiem or has_colons):
            continue

        hour = _to_24h(end_hour, end_meridiem or start_meridiem)
        if hour is None or end_minute > 59:
            continue

        if start is not None:
            opening = _to_24h(start_hour, start_meridiem or end_meridiem)
            if (opening, start_minute) == (start.hour, start.minute):
                return datetime.combine(
                    start.date(), time(hour, end_minute), tzinfo=reference_now.tzinfo,
                )

        if first is None:
            day = _nearby_day(text, match.start(), match.end(), reference_now)
            first = datetime.combine(day, time(hour, end_minute), tzinfo=reference_now.tzinfo)
            if start is None:
                return first

    return first


def _parse_clock(value: str) -> tuple[int, int, str | None] | None:
    parts = _CLOCK_PARTS.match(value.strip())
    if not parts:
        return None
    meridiem = parts.group("meridiem")
    return (
        int(parts.group("hour")),
        int(parts.group("minute") or 0),
        meridiem.lower() if meridiem else None,
    )


def _to_24h(hour: int, meridiem: str | None) -> int | None:
    if meridiem is None:
        return hour if hour <= 23 else None
    if not 1 <= hour <= 12:
        return None
    if meridiem == "a":
        return 0 if hour == 12 else hour
    return 12 if hour == 12 else hour + 12


def _nearby_day(text: str, start: int, end: int, reference_now: datetime) -> date:
    """Resolve the day phrase closest to a range, defaulting to the reference day."""
    window_start = max(0, start - _CONTEXT_CHARS)
    window = text[window_start:end + _CONTEXT_CHARS]
    candidates = list(_DAY_PHRASE.finditer(window))
    if not candidates:
        return reference_now.date()

    anchor = start - window_start
    phrase = min(candidates, key=lambda m: abs(m.start() - anchor)).group(0)
    if phrase.lower() == "tonight":
        phrase = "today"

    parsed = dateparser.parse(
        phrase,
        settings={
            "RELATIVE_BASE": reference_now.replace(tzinfo=None),
            "PREFER_DATES_FROM": "future",
        },
    )
    if parsed is None:
        logger.debug(f"Day phrase {phrase!r} not understood, using reference day")
        return reference_now.date()
    return parsed.date()
