"""Turn a proposal's start/end strings into a concrete, valid interval.

Proposals come from a language model and are frequently incomplete: the
start may lack seconds or carry a stray UTC offset, and the end is often
missing entirely. ``TimeResolver`` repairs what it can, fills in the end
from an explicit range in the email text or a duration heuristic, and
guarantees ``end > start``.

All arithmetic happens on aware datetimes sharing one ``ZoneInfo``, so
adding minutes moves the wall clock (civil time) and stays correct across
daylight-saving transitions.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateutil.parser as parser

from inbox_calendar.calendar import phrases
from inbox_calendar.calendar.models import TimeWindow
from inbox_calendar.exceptions import InvalidProposal
from inbox_calendar.llm.models import EventProposal

logger = logging.getLogger(__name__)

CANONICAL_FORMAT = "%Y-%m-%dT%H:%M:%S"
FALLBACK_MINUTES = 60

_STRICT_LOCAL_ISO = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?$")
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 28)

# Checked in order; first family with a hit wins.
DURATION_RULES: list[tuple[tuple[str, ...], int]] = [
    (("lunch", "dinner", "meal"), 90),
    (("call", "phone", "quick"), 30),
    (("workshop", "training", "conference"), 120),
]


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidProposal(f"unknown timezone {name!r}") from e


def default_duration(subject: str, body: str) -> int:
    """Minutes to assume for an event whose end is unknown."""
    combined = f"{subject.lower()} {body.lower()}"
    for keywords, minutes in DURATION_RULES:
        if any(k in combined for k in keywords):
            return minutes
    return FALLBACK_MINUTES


def parse_local(value: str | None, zone: ZoneInfo) -> datetime | None:
    """Parse an ISO-ish string as wall time in ``zone``.

    Strict ``YYYY-MM-DDTHH:MM:SS`` is taken as is. Anything else goes through
    a lenient parse; a value that carries its own offset is converted into
    ``zone`` rather than reinterpreted. Returns None when nothing parses,
    when a field is out of range, or when the value has no full date (a
    bare ``14:00`` is never placed on a guessed day).
    """
    if not value or not value.strip():
        return None
    value = value.strip()

    if _STRICT_LOCAL_ISO.match(value):
        try:
            return datetime.fromisoformat(value).replace(microsecond=0, tzinfo=zone)
        except ValueError:
            pass

    try:
        parsed = parser.parse(value, default=_DEFAULT_A)
        # Fields missing from the value come from the default; a value
        # without a full calendar date is rejected, not completed.
        if parsed != parser.parse(value, default=_DEFAULT_B):
            return None
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(zone)
    canonical = parsed.strftime(CANONICAL_FORMAT)
    logger.warning(f"Repaired malformed time {value!r} -> {canonical}")
    return datetime.strptime(canonical, CANONICAL_FORMAT).replace(tzinfo=zone)


def add_minutes(value: datetime, minutes: int) -> datetime:
    """Civil-time addition: the wall clock moves by ``minutes`` in value's zone."""
    return value + timedelta(minutes=minutes)


class TimeResolver:
    """Finalizes the start/end pair of an ``EventProposal``."""

    def resolve(
        self,
        proposal: EventProposal,
        subject: str,
        body: str,
        reference_now: datetime,
    ) -> TimeWindow:
        zone = get_zone(proposal.timezone)

        start = parse_local(proposal.start_iso, zone)
        if start is None:
            raise InvalidProposal(f"invalid start {proposal.start_iso!r}")

        end = parse_local(proposal.end_iso, zone)
        if proposal.end_iso and end is None:
            logger.warning(f"Ignoring unparseable end {proposal.end_iso!r}")

        if end is None:
            end = phrases.find_end_instant(
                f"{subject}\n{body}", reference_now.astimezone(zone), start,
            )
            if end is not None:
                logger.info(f"Took end time {end.isoformat()} from email text")

        if end is None:
            minutes = default_duration(subject, body)
            end = add_minutes(start, minutes)
            logger.info(f"Set default duration: {minutes} minutes")

        if end <= start:
            logger.warning(
                f"End {end.isoformat()} is not after start {start.isoformat()}, "
                f"using {FALLBACK_MINUTES} minutes"
            )
            end = add_minutes(start, FALLBACK_MINUTES)

        return TimeWindow(start=start, end=end)
