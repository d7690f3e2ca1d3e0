"""Fallback chain construction.

Turns the resolved backend catalog into the ordered list of candidates
tried for one routing call. Pure function of its inputs: no I/O, no
environment access, never raises.
"""

from __future__ import annotations

from collections.abc import Iterable

from fallback_router.config import is_usable_key
from fallback_router.types import BackendCandidate


def build_chain(
    catalog: Iterable[BackendCandidate],
    preferred_backend: str | None = None,
    model_override: str | None = None,
) -> list[BackendCandidate]:
    """Build the ordered candidate list for one routing call.

    Backends without a usable key are dropped silently, the rest keep
    catalog order. The preferred backend, when configured, moves to the
    front and is the only candidate the model override applies to.

    Args:
        catalog: Resolved backends in priority order.
        preferred_backend: Backend id to try first.
        model_override: Model name for the preferred backend.

    Returns:
        Ordered candidates, possibly empty.
    """
    available = [candidate for candidate in catalog if is_usable_key(candidate.api_key)]
    if not preferred_backend:
        return available

    for idx, candidate in enumerate(available):
        if candidate.backend_id == preferred_backend:
            break
    else:
        return available

    preferred = available.pop(idx)
    if model_override:
        preferred = preferred.with_model(model_override)
    return [preferred, *available]
