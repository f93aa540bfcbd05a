"""Claude API client wrapper for tool-use calls."""

from __future__ import annotations

import logging
import os

from inbox_calendar.exceptions import LLMError

logger = logging.getLogger(__name__)


DEFAULT_MODEL = os.environ.get("DEFAULT_LLM_MODEL", "claude-haiku-4-5-20251001")
DEFAULT_TIMEOUT = float(os.environ.get("INBOX_CALENDAR_REQUEST_TIMEOUT", "30"))


class LLMClient:
    """Synchronous wrapper around the Anthropic SDK.

    Requests are not retried: a rate limit or timeout surfaces as
    ``LLMError`` and the caller decides what to do with the conversation.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not api_key and not os.environ.get("ANTHROPIC_API_KEY"):
            raise LLMError(
                "Anthropic API key is required. "
                "Pass it directly or set ANTHROPIC_API_KEY in your environment."
            )
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "anthropic is required for LLMClient. "
                "Install with: pip install inbox-calendar"
            )
        self._client = Anthropic(api_key=api_key or None, timeout=timeout, max_retries=0)
        self.model = model

    @property
    def client(self):
        """Access the underlying Anthropic SDK client for advanced usage."""
        return self._client

    def generate_with_tools(
        self,
        system_prompt: str,
        messages: list[dict],
        tools: list[dict],
        max_tokens: int = 1024,
        temperature: float = 0.0,
        model: str | None = None,
    ) -> dict:
        """Single message call with tool definitions.

        Returns:
            dict with keys: text, tool_calls, stop_reason, input_tokens, output_tokens, model
            tool_calls is a list of dicts with keys: name, input, id
        """
        from anthropic import APIError, APITimeoutError, RateLimitError

        use_model = model or self.model
        try:
            response = self._client.messages.create(
                model=use_model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_prompt,
                messages=messages,
                tools=tools,
            )
        except RateLimitError as e:
            raise LLMError(f"Claude rate limit: {e}") from e
        except APITimeoutError as e:
            raise LLMError(f"Claude API timeout: {e}") from e
        except APIError as e:
            raise LLMError(f"Claude API error: {e}") from e

        text_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append({
                    "name": block.name,
                    "input": block.input,
                    "id": block.id,
                })
        return {
            "text": "\n".join(text_parts),
            "tool_calls": tool_calls,
            "stop_reason": response.stop_reason,
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
            "model": use_model,
        }
