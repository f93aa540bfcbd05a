"""Event detection backed by an LLM (Anthropic Claude)."""

from inbox_calendar.llm.base import BaseEventReasoner
from inbox_calendar.llm.client import DEFAULT_MODEL, LLMClient
from inbox_calendar.llm.models import EventProposal, ProposalSource
from inbox_calendar.llm.reasoner import ClaudeEventReasoner

__all__ = [
    "DEFAULT_MODEL",
    "BaseEventReasoner",
    "ClaudeEventReasoner",
    "EventProposal",
    "LLMClient",
    "ProposalSource",
]
