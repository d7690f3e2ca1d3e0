"""Core routing types for multi-backend dispatch.

Defines the data structures shared by the chain builder, the format
adapters, the dispatcher, and the public router. Messages themselves
stay plain dicts in OpenAI-compatible format
(``{"role": "user", "content": "..."}``) so callers can pass
conversation history straight through.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

Message = dict[str, Any]

NO_BACKEND = "none"
FAILED_BACKEND = "failed"
UNAVAILABLE_TEXT = "I'm not available right now. Please try again later."
EXHAUSTED_TEXT = "I'm having trouble connecting. Please try again in a moment."


class AdapterKind(StrEnum):
    """Wire-format families a backend can speak.

    Inherits from ``str`` so values serialize naturally to JSON and
    TOML.
    """

    OPENAI_COMPAT = "openai_compat"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"


class RoutingStatus(StrEnum):
    """How a routing call ended."""

    OK = "ok"
    UNCONFIGURED = "unconfigured"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class BackendCandidate:
    """One reachable text-generation backend.

    Built fresh from configuration for each routing call and never
    mutated; ``with_model()`` returns a copy.

    Attributes:
        backend_id: Stable identifier (e.g. "groq", "anthropic").
        model: Model name sent to the backend.
        base_url: Endpoint root, without a trailing slash.
        api_key: Resolved credential, or None if not configured.
        adapter: Wire-format family used to talk to this backend.
    """

    backend_id: str
    model: str
    base_url: str
    api_key: str | None
    adapter: AdapterKind

    def with_model(self, model: str) -> BackendCandidate:
        """Return a copy of this candidate that targets another model.

        Args:
            model: Replacement model name.

        Returns:
            New BackendCandidate with only ``model`` changed.
        """
        return dataclasses.replace(self, model=model)

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks.
        key_state = "set" if self.api_key else "unset"
        return (
            f"BackendCandidate(backend_id={self.backend_id!r}, model={self.model!r}, "
            f"adapter={self.adapter.value!r}, api_key={key_state})"
        )


@dataclass
class RoutingRequest:
    """A caller's request to the router.

    Attributes:
        messages: Conversation in OpenAI-compatible format.
        system_prompt: Optional instruction prepended as a system message.
        preferred_backend: Backend id to try first, if configured.
        model: Model override. Applies to the preferred backend only.
        max_tokens: Upper bound on generated tokens.
        temperature: Sampling temperature.
    """

    messages: list[Message]
    system_prompt: str | None = None
    preferred_backend: str | None = None
    model: str | None = None
    max_tokens: int = 500
    temperature: float = 0.7

    def full_messages(self) -> list[Message]:
        """Messages as sent to backends, with the system prompt prepended."""
        if self.system_prompt:
            return [{"role": "system", "content": self.system_prompt}, *self.messages]
        return list(self.messages)


@dataclass
class BackendError:
    """A single failed attempt, kept for logging.

    Attributes:
        backend_id: Backend that failed.
        attempt: 1-based attempt number within the routing call.
        message: Diagnostic text, already truncated by the adapter.
    """

    backend_id: str
    attempt: int
    message: str

    def __str__(self) -> str:
        return f"[{self.backend_id}] {self.message}"


@dataclass
class AttemptOutcome:
    """Result of one adapter call: either text or an error.

    Attributes:
        text: Generated text on success, None on failure.
        error: Diagnostic message on failure, None on success.
        token_count: Total tokens reported by the backend, if any.
        latency_ms: Wall-clock time spent on the attempt.
    """

    text: str | None = None
    error: str | None = None
    token_count: int | None = None
    latency_ms: int | None = None

    @property
    def ok(self) -> bool:
        """True when the backend produced non-empty text."""
        return bool(self.text) and self.error is None

    @classmethod
    def success(
        cls,
        text: str,
        *,
        token_count: int | None = None,
        latency_ms: int | None = None,
    ) -> AttemptOutcome:
        return cls(text=text, token_count=token_count, latency_ms=latency_ms)

    @classmethod
    def failure(cls, error: str, *, latency_ms: int | None = None) -> AttemptOutcome:
        return cls(error=error, latency_ms=latency_ms)


@dataclass
class RoutingResult:
    """Outcome of a routing call.

    ``backend`` and ``model`` always describe the backend that produced
    ``text``. When nothing succeeded, ``text`` is a fixed user-safe
    message and ``backend`` is ``NO_BACKEND`` or ``FAILED_BACKEND``.

    Attributes:
        text: Generated text, or the fallback message.
        backend: Backend id that answered, or a sentinel.
        model: Model name used, or "none".
        attempt_count: 1-based attempt that succeeded, or the number of
            candidates tried when none did.
        status: How the call ended.
        latency_ms: Latency of the successful attempt.
        token_count: Tokens reported by the successful backend.
        errors: Per-attempt failures in order. Not serialized.
    """

    text: str
    backend: str
    model: str
    attempt_count: int
    status: RoutingStatus = RoutingStatus.OK
    latency_ms: int | None = None
    token_count: int | None = None
    errors: list[BackendError] = field(default_factory=list, repr=False)

    @property
    def ok(self) -> bool:
        return self.status is RoutingStatus.OK

    @property
    def used_fallback(self) -> bool:
        """True when a backend other than the first candidate answered."""
        return self.ok and self.attempt_count > 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Per-attempt errors are left out so upstream error bodies never
        reach end callers.

        Returns:
            Dictionary with the caller-facing fields.
        """
        return {
            "text": self.text,
            "backend": self.backend,
            "model": self.model,
            "attempt_count": self.attempt_count,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "token_count": self.token_count,
        }
