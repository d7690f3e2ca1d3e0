"""Abstract base class for backend format adapters.

Defines the ``Adapter`` interface every wire-format family follows.
An adapter knows how to turn the shared message list into one
backend's request and how to pull plain text back out of its response.

Subclasses implement ``build_request()`` and ``extract_text()``. The
shared ``call()`` performs the HTTP round trip and always returns an
``AttemptOutcome`` -- transport errors, timeouts, non-2xx statuses, and
responses without text become failures, never exceptions.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx

from fallback_router.types import AdapterKind, AttemptOutcome, BackendCandidate, Message

ERROR_EXCERPT_CHARS = 200


class AdapterError(Exception):
    """Raised inside an adapter when a response carries no usable text.

    Caught by ``Adapter.call()`` and turned into a failed outcome.
    """


@dataclass
class PreparedRequest:
    """Everything needed to POST one request to a backend.

    Attributes:
        url: Full endpoint URL.
        body: JSON request body.
        headers: Per-request headers, including auth.
        params: Query string parameters.
    """

    url: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


class Adapter(ABC):
    """Base class for all wire-format adapters."""

    kind: ClassVar[AdapterKind]

    @abstractmethod
    def build_request(
        self,
        candidate: BackendCandidate,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> PreparedRequest:
        """Translate the shared message list into a backend request.

        Args:
            candidate: Backend to call.
            messages: Chat messages in OpenAI-compatible format.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature.

        Returns:
            PreparedRequest ready to send.
        """
        ...

    @abstractmethod
    def extract_text(self, data: Any) -> str:
        """Extract the generated text from a parsed response body.

        Args:
            data: Parsed JSON response body.

        Returns:
            Non-empty generated text.

        Raises:
            AdapterError: If the body holds no text.
        """
        ...

    def extract_token_count(self, data: Any) -> int | None:
        """Extract total token usage, if the backend reports it."""
        return None

    async def call(
        self,
        client: httpx.AsyncClient,
        candidate: BackendCandidate,
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
        timeout: float,
    ) -> AttemptOutcome:
        """Send one request to ``candidate`` and normalize the outcome.

        The whole attempt, connect through body, is bounded by
        ``timeout``. Cancellation of the calling task propagates.

        Args:
            client: Shared HTTP client.
            candidate: Backend to call.
            messages: Chat messages in OpenAI-compatible format.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature.
            timeout: Seconds allowed for the attempt.

        Returns:
            AttemptOutcome carrying either text or an error message.
        """
        backend = candidate.backend_id
        request = self.build_request(
            candidate,
            messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        start = time.monotonic()

        try:
            resp = await asyncio.wait_for(
                client.post(
                    request.url,
                    json=request.body,
                    headers=request.headers,
                    params=request.params or None,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (TimeoutError, httpx.TimeoutException):
            return AttemptOutcome.failure(
                f"{backend} timed out after {timeout}s",
                latency_ms=_elapsed_ms(start),
            )
        except httpx.HTTPError as exc:
            return AttemptOutcome.failure(
                f"{backend} request failed: {type(exc).__name__}: {exc}",
                latency_ms=_elapsed_ms(start),
            )

        elapsed_ms = _elapsed_ms(start)

        if not 200 <= resp.status_code < 300:
            return AttemptOutcome.failure(
                f"{backend} HTTP {resp.status_code}: {_excerpt(resp)}",
                latency_ms=elapsed_ms,
            )

        try:
            data = resp.json()
        except ValueError:
            return AttemptOutcome.failure(
                f"{backend} returned invalid JSON: {_excerpt(resp)}",
                latency_ms=elapsed_ms,
            )

        try:
            text = self.extract_text(data)
        except AdapterError as exc:
            return AttemptOutcome.failure(f"{backend} {exc}", latency_ms=elapsed_ms)

        return AttemptOutcome.success(
            text,
            token_count=self.extract_token_count(data),
            latency_ms=elapsed_ms,
        )


def split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
    """Separate system messages from the conversation turns.

    Multiple system messages are joined with blank lines. The order of
    the remaining turns is preserved.

    Args:
        messages: Chat messages in OpenAI-compatible format.

    Returns:
        Tuple of (system text or None, non-system messages).
    """
    system_parts: list[str] = []
    turns: list[Message] = []
    for msg in messages:
        if msg.get("role") == "system":
            system_parts.append(str(msg.get("content", "")))
        else:
            turns.append(msg)
    system_text = "\n\n".join(system_parts) if system_parts else None
    return system_text, turns


def require_text(value: Any) -> str:
    """Return ``value`` if it is non-empty text, else raise AdapterError."""
    if not isinstance(value, str) or not value:
        raise AdapterError("returned empty content")
    return value


def usage_count(value: Any) -> int | None:
    """Return a reported token count, or None if it is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _excerpt(resp: httpx.Response) -> str:
    return resp.text[:ERROR_EXCERPT_CHARS]


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
