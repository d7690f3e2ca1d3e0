"""Use-case presets layered on ``route()``.

Each preset only pins a preferred backend, an optional model, and
tuned generation defaults. None of them adds logic of its own.

Typical usage::

    from fallback_router.presets import chat, extract

    reply = await chat(history, system_prompt="You are a helpful assistant.")
    fields = await extract("Pull the business name and phone number from: ...")
"""

from __future__ import annotations

from dataclasses import dataclass

from fallback_router.router import Router
from fallback_router.types import Message, RoutingResult


@dataclass(frozen=True)
class Preset:
    """Fixed routing parameters for one use case.

    Attributes:
        name: Preset name, as used by the CLI.
        preferred_backend: Backend tried first.
        max_tokens: Output bound.
        temperature: Sampling temperature.
        model: Model override for the preferred backend, if any.
        description: One-line summary for help text.
    """

    name: str
    preferred_backend: str
    max_tokens: int
    temperature: float
    model: str | None = None
    description: str = ""


CHAT = Preset("chat", "groq", 350, 0.7, description="Real-time chat, speed first.")
EXTRACT = Preset("extract", "deepseek", 1500, 0.2, description="Structured extraction.")
GENERATE = Preset("generate", "together", 2000, 0.8, description="Long-form content.")
REASON = Preset(
    "reason",
    "deepseek",
    4000,
    1.0,
    model="deepseek-reasoner",
    description="Chain-of-thought reasoning.",
)
FREE = Preset(
    "free",
    "openrouter",
    500,
    0.7,
    model="meta-llama/llama-3.3-70b-instruct:free",
    description="Zero-cost free-tier model.",
)

PRESETS: dict[str, Preset] = {p.name: p for p in (CHAT, EXTRACT, GENERATE, REASON, FREE)}


async def run_preset(
    preset: Preset,
    messages: list[Message],
    *,
    system_prompt: str | None = None,
    router: Router | None = None,
) -> RoutingResult:
    """Route ``messages`` with a preset's parameters.

    Args:
        preset: Parameters to apply.
        messages: Conversation in OpenAI-compatible format.
        system_prompt: Optional instruction prepended as a system message.
        router: Router to use. Defaults to one built from the environment.

    Returns:
        RoutingResult.
    """
    active = router if router is not None else Router()
    return await active.route(
        messages,
        system_prompt=system_prompt,
        preferred_backend=preset.preferred_backend,
        model=preset.model,
        max_tokens=preset.max_tokens,
        temperature=preset.temperature,
    )


def _prompt(prompt: str) -> list[Message]:
    return [{"role": "user", "content": prompt}]


async def chat(
    messages: list[Message],
    system_prompt: str,
    *,
    router: Router | None = None,
) -> RoutingResult:
    """Interactive chat: short replies, fastest backend first."""
    return await run_preset(CHAT, messages, system_prompt=system_prompt, router=router)


async def extract(prompt: str, *, router: Router | None = None) -> RoutingResult:
    """Structured extraction: low temperature, accuracy-first backend."""
    return await run_preset(EXTRACT, _prompt(prompt), router=router)


async def generate(prompt: str, *, router: Router | None = None) -> RoutingResult:
    """Long-form generation: high token ceiling, higher temperature."""
    return await run_preset(GENERATE, _prompt(prompt), router=router)


async def reason(prompt: str, *, router: Router | None = None) -> RoutingResult:
    """Multi-step reasoning on the reasoning model."""
    return await run_preset(REASON, _prompt(prompt), router=router)


async def free(
    messages: list[Message],
    system_prompt: str | None = None,
    *,
    router: Router | None = None,
) -> RoutingResult:
    """Zero-cost fallback pinned to the free OpenRouter model."""
    return await run_preset(FREE, messages, system_prompt=system_prompt, router=router)
