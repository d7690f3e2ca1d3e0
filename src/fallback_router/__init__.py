"""Multi-backend text generation with ordered fallback.

Re-exports the public interface so callers can write::

    from fallback_router import Router, route
"""

from fallback_router.router import ProbeResult, Router, route
from fallback_router.types import RoutingRequest, RoutingResult, RoutingStatus

__version__ = "0.1.0"

__all__ = [
    "ProbeResult",
    "Router",
    "RoutingRequest",
    "RoutingResult",
    "RoutingStatus",
    "__version__",
    "route",
]
