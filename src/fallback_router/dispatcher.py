"""Sequential fallback dispatch across backend candidates.

Tries candidates strictly in order, one at a time, and returns on the
first one that produces text. Each failure is logged and recorded, and
the next candidate is tried; a candidate is never retried. When every
candidate fails, or there are none, a fixed user-safe result comes back
instead of an exception.

Typical usage::

    dispatcher = Dispatcher(timeout=30.0)
    result = await dispatcher.dispatch(chain, messages, max_tokens=500, temperature=0.7)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import httpx

from fallback_router.adapters import Adapter, create_adapters, get_adapter
from fallback_router.config import DEFAULT_TIMEOUT
from fallback_router.types import (
    EXHAUSTED_TEXT,
    FAILED_BACKEND,
    NO_BACKEND,
    UNAVAILABLE_TEXT,
    AdapterKind,
    BackendCandidate,
    BackendError,
    Message,
    RoutingResult,
    RoutingStatus,
)

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs the fallback loop over an ordered candidate list.

    Holds no per-call state, so one instance can serve concurrent
    routing calls.

    Args:
        timeout: Seconds allowed per attempt.
        adapters: Adapter per wire format. Defaults to ``create_adapters()``.
        client: HTTP client to reuse. When None, each ``dispatch()``
            opens and closes its own.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        adapters: Mapping[AdapterKind, Adapter] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._adapters = dict(adapters) if adapters is not None else create_adapters()
        self._client = client

    async def dispatch(
        self,
        chain: Sequence[BackendCandidate],
        messages: list[Message],
        *,
        max_tokens: int,
        temperature: float,
    ) -> RoutingResult:
        """Obtain one completion from the first candidate that answers.

        Args:
            chain: Candidates in the order to try them.
            messages: Full message list, system prompt already prepended.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature.

        Returns:
            RoutingResult. ``attempt_count`` is the 1-based attempt that
            succeeded, 0 for an empty chain, or ``len(chain)`` when all
            candidates failed.
        """
        if not chain:
            logger.warning("No backends configured.")
            return RoutingResult(
                text=UNAVAILABLE_TEXT,
                backend=NO_BACKEND,
                model=NO_BACKEND,
                attempt_count=0,
                status=RoutingStatus.UNCONFIGURED,
            )

        if self._client is not None:
            return await self._run(self._client, chain, messages, max_tokens, temperature)

        async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
            return await self._run(client, chain, messages, max_tokens, temperature)

    async def _run(
        self,
        client: httpx.AsyncClient,
        chain: Sequence[BackendCandidate],
        messages: list[Message],
        max_tokens: int,
        temperature: float,
    ) -> RoutingResult:
        errors: list[BackendError] = []

        for attempt, candidate in enumerate(chain, start=1):
            adapter = get_adapter(candidate.adapter, self._adapters)
            outcome = await adapter.call(
                client,
                candidate,
                messages,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=self._timeout,
            )

            if outcome.ok:
                if attempt > 1:
                    logger.info(
                        "Fallback used: %s (attempt %d)", candidate.backend_id, attempt
                    )
                return RoutingResult(
                    text=outcome.text or "",
                    backend=candidate.backend_id,
                    model=candidate.model,
                    attempt_count=attempt,
                    status=RoutingStatus.OK,
                    latency_ms=outcome.latency_ms,
                    token_count=outcome.token_count,
                    errors=errors,
                )

            error = BackendError(
                backend_id=candidate.backend_id,
                attempt=attempt,
                message=outcome.error or "unknown error",
            )
            errors.append(error)
            logger.warning(
                "%s failed (attempt %d): %s", candidate.backend_id, attempt, error.message
            )

        logger.error(
            "All backends exhausted after %d attempt(s): %s",
            len(chain),
            "; ".join(str(e) for e in errors),
        )
        return RoutingResult(
            text=EXHAUSTED_TEXT,
            backend=FAILED_BACKEND,
            model=NO_BACKEND,
            attempt_count=len(chain),
            status=RoutingStatus.EXHAUSTED,
            errors=errors,
        )
