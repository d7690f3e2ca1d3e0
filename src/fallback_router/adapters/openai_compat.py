"""OpenAI-compatible chat completions adapter.

Covers every backend that speaks the ``/chat/completions`` schema:
Groq, DeepSeek, Moonshot, Together, OpenRouter, and OpenAI itself.
Messages are sent verbatim.

Typical usage::

    adapter = OpenAICompatAdapter()
    outcome = await adapter.call(
        client, candidate, messages, max_tokens=500, temperature=0.7, timeout=30.0,
    )
"""

from __future__ import annotations

from typing import Any

from fallback_router.adapters.base import (
    Adapter,
    AdapterError,
    PreparedRequest,
    require_text,
    usage_count,
)
from fallback_router.types import AdapterKind, BackendCandidate, Message

# Reasoning models that reject any temperature other than 1.
REASONING_MODELS: frozenset[str] = frozenset({"deepseek-reasoner"})
REASONING_TEMPERATURE = 1.0


class OpenAICompatAdapter(Adapter):
    """Adapter for the OpenAI chat completions wire format.

    Args:
        site_url: Attribution URL sent to OpenRouter as ``HTTP-Referer``.
        app_name: Attribution title sent to OpenRouter as ``X-Title``.
    """

    kind = AdapterKind.OPENAI_COMPAT

    def __init__(self, site_url: str = "", app_name: str = "") -> None:
        self._site_url = site_url
        self._app_name = app_name

    def build_request(
        self,
        candidate: BackendCandidate,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> PreparedRequest:
        """Build a chat completions request.

        Args:
            candidate: Backend to call.
            messages: Chat messages, sent as-is.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature. Ignored for reasoning
                models, which always get 1.

        Returns:
            PreparedRequest for ``{base_url}/chat/completions``.
        """
        headers = {
            "Authorization": f"Bearer {candidate.api_key}",
            "Content-Type": "application/json",
        }
        if candidate.backend_id == "openrouter":
            if self._site_url:
                headers["HTTP-Referer"] = self._site_url
            if self._app_name:
                headers["X-Title"] = self._app_name

        effective_temp = (
            REASONING_TEMPERATURE if candidate.model in REASONING_MODELS else temperature
        )

        return PreparedRequest(
            url=f"{candidate.base_url}/chat/completions",
            body={
                "model": candidate.model,
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": effective_temp,
            },
            headers=headers,
        )

    def extract_text(self, data: Any) -> str:
        """Extract the first choice's message content.

        Args:
            data: Parsed JSON response body.

        Returns:
            The text content of the first choice.

        Raises:
            AdapterError: If the content is missing or empty.
        """
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise AdapterError("returned empty content") from None
        return require_text(content)

    def extract_token_count(self, data: Any) -> int | None:
        """Extract total token usage from ``usage.total_tokens``."""
        usage = data.get("usage") if isinstance(data, dict) else None
        if isinstance(usage, dict):
            return usage_count(usage.get("total_tokens"))
        return None
