"""Gmail thread access for the event pipeline."""

from __future__ import annotations

import logging
from typing import Any

from inbox_calendar.exceptions import GmailFetchError
from inbox_calendar.gmail.base import BaseMailbox
from inbox_calendar.gmail.models import Conversation, ConversationRef
from inbox_calendar.gmail.parser import parse_thread
from inbox_calendar.google_api import build_service

logger = logging.getLogger(__name__)


class GmailMailbox(BaseMailbox):
    """Gmail API mailbox bound to one user's credentials.

    Args:
        credentials: A google.oauth2.credentials.Credentials object.
        timeout: Per-request socket timeout in seconds.
        user_id: Gmail user id, ``"me"`` for the authorized account.
    """

    def __init__(self, credentials, timeout: float | None = None, user_id: str = "me"):
        self._service = build_service("gmail", "v1", credentials, timeout)
        self.user_id = user_id

    def list_recent_conversations(
        self, query: str, max_results: int = 10,
    ) -> list[ConversationRef]:
        """List thread refs matching ``query``, handling pagination."""
        logger.info(f"Listing threads with query: {query}")
        refs: list[ConversationRef] = []
        page_token = None

        try:
            while len(refs) < max_results:
                kwargs: dict[str, Any] = {
                    "userId": self.user_id,
                    "q": query,
                    "maxResults": min(max_results - len(refs), 100),
                }
                if page_token:
                    kwargs["pageToken"] = page_token

                response = self._service.users().threads().list(**kwargs).execute()
                threads = response.get("threads", [])
                if not threads:
                    break

                refs.extend(
                    ConversationRef(id=t["id"], snippet=t.get("snippet", ""))
                    for t in threads
                    if t.get("id")
                )
                page_token = response.get("nextPageToken")
                if not page_token:
                    break
        except Exception as e:
            raise GmailFetchError(f"Failed to list threads: {e}") from e

        logger.info(f"Found {len(refs)} threads")
        return refs[:max_results]

    def fetch_conversation(self, ref: ConversationRef) -> Conversation:
        try:
            raw = (
                self._service.users()
                .threads()
                .get(userId=self.user_id, id=ref.id, format="full")
                .execute()
            )
        except Exception as e:
            raise GmailFetchError(f"Failed to fetch thread {ref.id}: {e}") from e
        return parse_thread(raw)

    def get_account_email(self) -> str:
        """Email address of the authorized account, or ``""`` if unavailable."""
        try:
            profile = self._service.users().getProfile(userId=self.user_id).execute()
            return profile.get("emailAddress", "")
        except Exception as e:
            logger.warning(f"Could not read Gmail profile: {e}")
            return ""
