"""Run configuration: which threads a run looks at and how many it handles."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

BODY_CHAR_BUDGET = 16_000


class ProcessingWindow(ABC):
    """The span of message times a run is allowed to act on."""

    @abstractmethod
    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        """Aware ``[start, end)`` interval for a run happening at ``now``."""
        ...

    def contains(self, instant: datetime, now: datetime) -> bool:
        start, end = self.bounds(now)
        return start <= instant < end

    def search_query(self, now: datetime) -> str:
        """Gmail search terms covering the window (epoch-second bounds)."""
        start, end = self.bounds(now)
        return f"after:{int(start.timestamp())} before:{int(end.timestamp())}"


@dataclass(frozen=True)
class CalendarDayWindow(ProcessingWindow):
    """One calendar day in ``timezone``; ``day=None`` means the day of the run."""

    timezone: str
    day: date | None = None

    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        zone = ZoneInfo(self.timezone)
        day = self.day or now.astimezone(zone).date()
        start = datetime.combine(day, time.min, tzinfo=zone)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
        return start, end


@dataclass(frozen=True)
class TrailingWindow(ProcessingWindow):
    """The last ``hours`` hours up to the run time."""

    hours: int = 24
    # Tolerated clock skew between the mail provider and this host.
    skew: timedelta = timedelta(minutes=5)

    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        return now - timedelta(hours=self.hours), now + self.skew


@dataclass
class RunConfig:
    """Per-path tuning for ``ConversationOrchestrator``.

    Attributes:
        window: Messages outside it are skipped without being marked processed.
        max_processed: Conversations to bring to an outcome per run.
        max_threads: Threads to list from the mailbox per run.
        skip_processed: Leave conversations with a final ledger record alone.
        label_query: Gmail search terms prepended to the window terms.
        body_char_budget: Characters of body text handed to the reasoner.
    """

    window: ProcessingWindow = field(default_factory=TrailingWindow)
    max_processed: int = 5
    max_threads: int = 10
    skip_processed: bool = True
    label_query: str = "in:inbox"
    body_char_budget: int = BODY_CHAR_BUDGET

    def search_query(self, now: datetime) -> str:
        return f"{self.label_query} {self.window.search_query(now)}".strip()

    @classmethod
    def scheduled(cls, timezone: str, day: date | None = None, max_processed: int = 5) -> RunConfig:
        """Periodic runs: today's mail in the user's timezone, ledger-guarded."""
        return cls(
            window=CalendarDayWindow(timezone=timezone, day=day),
            max_processed=max_processed,
            skip_processed=True,
        )

    @classmethod
    def interactive(cls, hours: int = 24, max_processed: int = 5) -> RunConfig:
        """User-triggered runs: a trailing lookback that re-checks finished threads."""
        return cls(
            window=TrailingWindow(hours=hours),
            max_processed=max_processed,
            skip_processed=False,
        )
