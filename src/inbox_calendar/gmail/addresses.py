"""Parse To/Cc header values into attendee candidates."""

from __future__ import annotations

import re

from inbox_calendar.gmail.models import Recipient

_NAMED_ADDRESS = re.compile(r'^(?:"?([^<"]+?)"?\s*)?<([^>]+)>$')


def _split_top_level(raw: str) -> list[str]:
    """Split on commas that are not inside quotes or angle brackets."""
    segments: list[str] = []
    current: list[str] = []
    in_quotes = False
    in_brackets = False

    for ch in raw:
        if ch == '"' and not in_brackets:
            in_quotes = not in_quotes
        elif ch == "<" and not in_quotes:
            in_brackets = True
        elif ch == ">" and not in_quotes:
            in_brackets = False
        elif ch == "," and not in_quotes and not in_brackets:
            segments.append("".join(current))
            current = []
            continue
        current.append(ch)

    segments.append("".join(current))
    return [s.strip() for s in segments if s.strip()]


def parse_address_list(raw: str | None) -> list[Recipient]:
    """Parse a header value like ``"Ann" <ann@x.com>, bob@y.com``.

    Display names are only taken from the bracketed form. Segments without
    an ``@`` are dropped.
    """
    if not raw:
        return []

    recipients = []
    for entry in _split_top_level(raw):
        match = _NAMED_ADDRESS.match(entry)
        if match:
            name = match.group(1).strip() if match.group(1) else None
            recipient = Recipient(email=match.group(2).strip(), name=name or None)
        else:
            recipient = Recipient(email=entry)
        if "@" in recipient.email:
            recipients.append(recipient)
    return recipients


def build_candidate_set(
    to: list[Recipient],
    cc: list[Recipient],
    self_email: str | None,
) -> list[Recipient]:
    """Merge To and Cc, dedupe by lower-cased email, drop the user's own address.

    The first occurrence of an address keeps its display name.
    """
    me = (self_email or "").strip().lower()
    seen: dict[str, Recipient] = {}

    for recipient in [*to, *cc]:
        key = recipient.email.strip().lower()
        if me and key == me:
            continue
        if key not in seen:
            seen[key] = Recipient(email=recipient.email.strip(), name=recipient.name)

    return list(seen.values())
