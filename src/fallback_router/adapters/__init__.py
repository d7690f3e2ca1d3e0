"""Format adapters for the supported backend wire formats.

Re-exports the public interface so callers can write::

    from fallback_router.adapters import create_adapters, get_adapter
"""

from __future__ import annotations

from collections.abc import Mapping

from fallback_router.adapters.anthropic import AnthropicAdapter
from fallback_router.adapters.base import Adapter, AdapterError, PreparedRequest
from fallback_router.adapters.gemini import GeminiAdapter
from fallback_router.adapters.openai_compat import OpenAICompatAdapter
from fallback_router.types import AdapterKind

__all__ = [
    "Adapter",
    "AdapterError",
    "AnthropicAdapter",
    "GeminiAdapter",
    "OpenAICompatAdapter",
    "PreparedRequest",
    "create_adapters",
    "get_adapter",
]


def create_adapters(*, site_url: str = "", app_name: str = "") -> dict[AdapterKind, Adapter]:
    """Build one adapter per ``AdapterKind``.

    Args:
        site_url: OpenRouter attribution URL.
        app_name: OpenRouter attribution title.

    Returns:
        Mapping covering every AdapterKind.
    """
    return {
        AdapterKind.OPENAI_COMPAT: OpenAICompatAdapter(site_url=site_url, app_name=app_name),
        AdapterKind.GEMINI: GeminiAdapter(),
        AdapterKind.ANTHROPIC: AnthropicAdapter(),
    }


def get_adapter(kind: AdapterKind, adapters: Mapping[AdapterKind, Adapter] | None = None) -> Adapter:
    """Look up the adapter for a wire-format family.

    Args:
        kind: Adapter tag from a BackendCandidate.
        adapters: Adapter mapping. Defaults to ``create_adapters()``.

    Returns:
        The matching Adapter.

    Raises:
        ValueError: If no adapter is registered for ``kind``. This means
            the backend catalog itself is invalid.
    """
    registry = adapters if adapters is not None else create_adapters()
    try:
        return registry[kind]
    except KeyError:
        raise ValueError(f"No adapter registered for {kind!r}") from None
