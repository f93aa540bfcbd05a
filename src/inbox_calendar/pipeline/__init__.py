"""Per-user orchestration of the email-to-calendar pipeline."""

from inbox_calendar.pipeline.config import (
    CalendarDayWindow,
    ProcessingWindow,
    RunConfig,
    TrailingWindow,
)
from inbox_calendar.pipeline.models import ConversationOutcome, OutcomeStatus, RunReport
from inbox_calendar.pipeline.orchestrator import ConversationOrchestrator
from inbox_calendar.pipeline.runlog import RunLog
from inbox_calendar.pipeline.runner import run_users

__all__ = [
    "CalendarDayWindow",
    "ConversationOrchestrator",
    "ConversationOutcome",
    "OutcomeStatus",
    "ProcessingWindow",
    "RunConfig",
    "RunLog",
    "RunReport",
    "TrailingWindow",
    "run_users",
]
