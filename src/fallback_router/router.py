"""Public routing entry point.

``Router`` resolves the backend catalog once from configuration, builds
a fallback chain per call, and hands it to the ``Dispatcher``. Callers
always get a ``RoutingResult`` back, never an exception, whatever the
backends do.

Typical usage::

    import asyncio
    from fallback_router.router import Router

    async def main():
        async with Router() as router:
            result = await router.route(
                [{"role": "user", "content": "Hello"}],
                system_prompt="Be brief.",
                preferred_backend="groq",
            )
            print(result.text, result.backend, result.attempt_count)

    asyncio.run(main())
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from fallback_router.adapters import create_adapters
from fallback_router.chain import build_chain
from fallback_router.config import BACKEND_IDS, Config, load_config
from fallback_router.dispatcher import Dispatcher
from fallback_router.types import BackendCandidate, Message, RoutingRequest, RoutingResult

PROBE_PROMPT = "Reply with only the word: OK"
PROBE_MAX_TOKENS = 10


@dataclass
class ProbeResult:
    """Outcome of a connectivity probe against one backend.

    Attributes:
        backend: Backend that was asked for.
        result: Routing result of the probe call.
        latency_ms: End-to-end time of the probe, fallbacks included.
        used_requested: True if the requested backend itself answered.
    """

    backend: str
    result: RoutingResult
    latency_ms: int
    used_requested: bool


class Router:
    """Routes completion requests across the configured backends.

    The catalog is resolved at construction; later environment changes
    are not seen. Used as an async context manager, the router shares
    one HTTP connection pool across calls; otherwise each call opens
    its own. A caller-supplied ``client`` is used for every call and is
    never closed by the router.

    Args:
        config: Application configuration. Defaults to ``load_config()``.
        timeout: Per-attempt timeout override in seconds.
        client: HTTP client to use instead of opening one.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config if config is not None else load_config()
        self._catalog: list[BackendCandidate] = self._config.resolve_catalog()
        self._timeout = timeout if timeout is not None else self._config.timeout
        self._adapters = create_adapters(
            site_url=self._config.site_url,
            app_name=self._config.app_name,
        )
        self._client = client
        self._owns_client = False

    @property
    def config(self) -> Config:
        return self._config

    @property
    def catalog(self) -> list[BackendCandidate]:
        """Resolved catalog in priority order, unconfigured entries included."""
        return list(self._catalog)

    async def __aenter__(self) -> Router:
        """Open a shared HTTP connection pool."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
            self._owns_client = True
        return self

    async def __aexit__(self, *exc: Any) -> None:
        """Close the shared HTTP connection pool if the router opened it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    def chain_for(
        self,
        preferred_backend: str | None = None,
        model: str | None = None,
    ) -> list[BackendCandidate]:
        """Build the candidate chain a call with these options would use."""
        return build_chain(self._catalog, preferred_backend, model)

    async def route_request(self, request: RoutingRequest) -> RoutingResult:
        """Route a prepared ``RoutingRequest``.

        Args:
            request: Messages and generation options.

        Returns:
            RoutingResult describing the backend that answered, or the
            fixed fallback text if none did.
        """
        chain = self.chain_for(request.preferred_backend, request.model)
        dispatcher = Dispatcher(self._timeout, adapters=self._adapters, client=self._client)
        return await dispatcher.dispatch(
            chain,
            request.full_messages(),
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )

    async def route(
        self,
        messages: list[Message],
        *,
        system_prompt: str | None = None,
        preferred_backend: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> RoutingResult:
        """Obtain one completion for ``messages``.

        Args:
            messages: Conversation in OpenAI-compatible format.
            system_prompt: Optional instruction prepended as a system message.
            preferred_backend: Backend id to try first.
            model: Model override for the preferred backend only.
            max_tokens: Output bound. Defaults to the configured value.
            temperature: Sampling temperature. Defaults to the configured value.

        Returns:
            RoutingResult.
        """
        request = RoutingRequest(
            messages=messages,
            system_prompt=system_prompt,
            preferred_backend=preferred_backend,
            model=model,
            max_tokens=max_tokens if max_tokens is not None else self._config.max_tokens,
            temperature=temperature if temperature is not None else self._config.temperature,
        )
        return await self.route_request(request)

    async def probe(self, backend: str) -> ProbeResult:
        """Check that a backend answers a trivial prompt.

        The backend is pinned as preferred, so if it fails the normal
        fallback still runs and ``used_requested`` reports False.

        Args:
            backend: Backend id to probe.

        Returns:
            ProbeResult with latency and the backend that answered.

        Raises:
            ValueError: If ``backend`` is not a known backend id.
        """
        if backend not in BACKEND_IDS:
            raise ValueError(
                f"Unknown backend '{backend}'. Known backends: {', '.join(BACKEND_IDS)}."
            )
        start = time.monotonic()
        result = await self.route(
            [{"role": "user", "content": PROBE_PROMPT}],
            preferred_backend=backend,
            max_tokens=PROBE_MAX_TOKENS,
            temperature=0.0,
        )
        return ProbeResult(
            backend=backend,
            result=result,
            latency_ms=int((time.monotonic() - start) * 1000),
            used_requested=result.backend == backend,
        )


async def route(
    messages: list[Message],
    *,
    system_prompt: str | None = None,
    preferred_backend: str | None = None,
    model: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
    config: Config | None = None,
) -> RoutingResult:
    """Route one call with a router built from ``config`` or the environment.

    Args:
        messages: Conversation in OpenAI-compatible format.
        system_prompt: Optional instruction prepended as a system message.
        preferred_backend: Backend id to try first.
        model: Model override for the preferred backend only.
        max_tokens: Output bound.
        temperature: Sampling temperature.
        config: Configuration to use. Defaults to ``load_config()``.

    Returns:
        RoutingResult.
    """
    router = Router(config)
    return await router.route(
        messages,
        system_prompt=system_prompt,
        preferred_backend=preferred_backend,
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
    )
