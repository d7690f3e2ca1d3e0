"""Anthropic Messages API adapter.

Anthropic has native system/user/assistant roles but takes the system
prompt as a top-level ``system`` field, authenticates with an
``x-api-key`` header, and returns content blocks instead of choices.
"""

from __future__ import annotations

from typing import Any

from fallback_router.adapters.base import (
    Adapter,
    AdapterError,
    PreparedRequest,
    require_text,
    split_system,
    usage_count,
)
from fallback_router.types import AdapterKind, BackendCandidate, Message

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(Adapter):
    """Adapter for the Anthropic system+messages format."""

    kind = AdapterKind.ANTHROPIC

    def build_request(
        self,
        candidate: BackendCandidate,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> PreparedRequest:
        """Build a ``/v1/messages`` request.

        ``temperature`` is not forwarded; the backend's default applies.

        Args:
            candidate: Backend to call.
            messages: Chat messages in OpenAI-compatible format.
            max_tokens: Upper bound on generated tokens.
            temperature: Unused.

        Returns:
            PreparedRequest with header-based auth.
        """
        system_text, turns = split_system(messages)

        body: dict[str, Any] = {
            "model": candidate.model,
            "messages": turns,
            "max_tokens": max_tokens,
        }
        if system_text is not None:
            body["system"] = system_text

        return PreparedRequest(
            url=f"{candidate.base_url}/v1/messages",
            body=body,
            headers={
                "x-api-key": candidate.api_key or "",
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
        )

    def extract_text(self, data: Any) -> str:
        """Extract the first content block's text.

        Raises:
            AdapterError: If the block or its text is missing or empty.
        """
        try:
            content = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise AdapterError("returned empty content") from None
        return require_text(content)

    def extract_token_count(self, data: Any) -> int | None:
        """Sum ``input_tokens`` and ``output_tokens`` when both are present."""
        usage = data.get("usage") if isinstance(data, dict) else None
        if not isinstance(usage, dict):
            return None
        input_tokens = usage_count(usage.get("input_tokens"))
        output_tokens = usage_count(usage.get("output_tokens"))
        if input_tokens is None or output_tokens is None:
            return None
        return input_tokens + output_tokens
