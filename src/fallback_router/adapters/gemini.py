"""Google Gemini ``generateContent`` adapter.

Gemini keeps the system instruction apart from the conversation and
only knows two roles, ``user`` and ``model``. Each turn's text is
nested in a one-element ``parts`` array. The API key travels in the
``x-goog-api-key`` header so it never appears in logged URLs.
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


def _gemini_role(role: str) -> str:
    return "model" if role == "assistant" else "user"


class GeminiAdapter(Adapter):
    """Adapter for the Gemini system-instruction/content-parts format."""

    kind = AdapterKind.GEMINI

    def build_request(
        self,
        candidate: BackendCandidate,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> PreparedRequest:
        """Build a ``generateContent`` request.

        System messages move to ``systemInstruction``; the remaining
        turns become ``contents`` with assistant mapped to ``model``.

        Args:
            candidate: Backend to call.
            messages: Chat messages in OpenAI-compatible format.
            max_tokens: Sent as ``generationConfig.maxOutputTokens``.
            temperature: Sent as ``generationConfig.temperature``.

        Returns:
            PreparedRequest for ``/v1beta/models/{model}:generateContent``.
        """
        system_text, turns = split_system(messages)

        body: dict[str, Any] = {
            "contents": [
                {
                    "role": _gemini_role(str(msg.get("role", ""))),
                    "parts": [{"text": msg.get("content", "")}],
                }
                for msg in turns
            ],
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": temperature,
            },
        }
        if system_text is not None:
            body["systemInstruction"] = {"parts": [{"text": system_text}]}

        return PreparedRequest(
            url=f"{candidate.base_url}/v1beta/models/{candidate.model}:generateContent",
            body=body,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": candidate.api_key or "",
            },
        )

    def extract_text(self, data: Any) -> str:
        """Extract the first candidate's first content part.

        Raises:
            AdapterError: If the part or its text is missing or empty.
        """
        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise AdapterError("returned empty content") from None
        return require_text(content)

    def extract_token_count(self, data: Any) -> int | None:
        usage = data.get("usageMetadata") if isinstance(data, dict) else None
        if isinstance(usage, dict):
            return usage_count(usage.get("totalTokenCount"))
        return None
