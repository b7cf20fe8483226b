"""
Route Dependencies - Centralized dependency injection for route modules

All collaborators are injected once at startup so route modules stay free of
global state and can be exercised in tests with fake backends.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    # Type hints only - avoid runtime circular imports
    from scrollshot.core.scroll_capture import ScrollCaptureController
    from scrollshot.ss_modules.compose import Stitcher


@dataclass
class RouteDependencies:
    """
    Container for all dependencies needed by route modules

    Usage in route modules:
        from scrollshot.routes import get_deps

        @router.get("/endpoint")
        async def handler():
            deps = get_deps()
            return deps.scroll_controller.progress().to_dict()
    """

    scroll_controller: "ScrollCaptureController"
    stitcher: "Stitcher"


# Global dependencies instance (set once at startup)
_deps: Optional[RouteDependencies] = None


def set_dependencies(deps: RouteDependencies) -> None:
    """
    Set global dependencies (called once at server startup)

    Args:
        deps: RouteDependencies instance with all collaborators initialized
    """
    global _deps
    _deps = deps


def get_deps() -> RouteDependencies:
    """
    Get dependencies for route handlers

    Raises:
        RuntimeError: If dependencies not initialized (call set_dependencies first)
    """
    if _deps is None:
        raise RuntimeError(
            "Dependencies not initialized. "
            "Call set_dependencies() in server startup before registering routes."
        )
    return _deps


__all__ = [
    "RouteDependencies",
    "set_dependencies",
    "get_deps",
]
