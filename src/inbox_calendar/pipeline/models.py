"""Data models for run results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class OutcomeStatus(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    SKIPPED_NOT_RELEVANT = "skipped_not_relevant"
    SKIPPED_NO_DATETIME = "skipped_no_datetime"
    ERROR = "error"


@dataclass
class ConversationOutcome:
    """Terminal state of one conversation within a run."""

    conversation_id: str
    subject: str
    status: OutcomeStatus
    event_id: str | None = None
    event_link: str | None = None
    title: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class RunReport:
    """All outcomes of one run for one user."""

    user: str
    ok: bool = True
    outcomes: list[ConversationOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def to_dict(self) -> dict:
        return {
            "user": self.user,
            "ok": self.ok,
            "processed": self.processed,
            "error": self.error,
            "results": [o.to_dict() for o in self.outcomes],
        }

    @classmethod
    def failed(cls, user: str, error: str) -> RunReport:
        return cls(user=user, ok=False, error=error)
