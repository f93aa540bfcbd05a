"""Parse Gmail API thread payloads into conversations and plain text."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import textwrap

from bs4 import BeautifulSoup

from inbox_calendar.gmail.models import Conversation, ThreadMessage

logger = logging.getLogger(__name__)

WRAP_COLUMN = 120


def parse_thread(raw_thread: dict) -> Conversation:
    """Build a Conversation from a ``threads.get`` (format=full) response.

    Pure parsing function, no network calls.
    """
    messages = [
        ThreadMessage(
            id=raw.get("id", ""),
            internal_date=int(raw.get("internalDate") or 0),
            headers=message_headers(raw.get("payload", {})),
            payload=raw.get("payload", {}),
            snippet=raw.get("snippet", ""),
        )
        for raw in raw_thread.get("messages", [])
    ]
    return Conversation(id=raw_thread.get("id", ""), messages=messages)


def message_headers(payload: dict) -> dict[str, str]:
    return {
        h["name"].lower(): h["value"]
        for h in payload.get("headers", [])
        if h.get("name")
    }


def get_header(headers: dict[str, str], name: str) -> str | None:
    """Case-insensitive header lookup."""
    return headers.get(name.lower())


def extract_text(message: ThreadMessage) -> str:
    """Return the best plain-text rendition of a message.

    Walks the part tree depth-first: the first ``text/plain`` leaf wins, then
    the first ``text/html`` leaf (converted to text), then the snippet.
    The result is not truncated; callers apply their own budget.
    """
    text = _find_leaf(message.payload, "text/plain")
    if text:
        return text

    html = _find_leaf(message.payload, "text/html")
    if html:
        converted = html_to_text(html)
        if converted:
            return converted

    return message.snippet or ""


def _find_leaf(part: dict, mime_type: str) -> str | None:
    if not part:
        return None

    if part.get("mimeType") == mime_type:
        data = _decode_body_data(part)
        if data:
            return data

    for child in part.get("parts", []) or []:
        found = _find_leaf(child, mime_type)
        if found:
            return found
    return None


def _decode_body_data(part: dict) -> str:
    data = part.get("body", {}).get("data", "")
    if not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Could not decode body part ({part.get('mimeType')}): {e}")
        return ""


def html_to_text(html: str, width: int = WRAP_COLUMN) -> str:
    """Strip markup, keep line structure, wrap long lines at ``width``."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")

    text = soup.get_text(separator="\n")
    lines = []
    for line in text.splitlines():
        line = re.sub(r"[ \t\xa0]+", " ", line).strip()
        if not line:
            if lines and lines[-1] != "":
                lines.append("")
            continue
        lines.extend(textwrap.wrap(line, width=width) or [line])

    return "\n".join(lines).strip()
