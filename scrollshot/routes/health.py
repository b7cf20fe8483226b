"""
Health Routes - System Health Check

Reports server status, version and whether a capture backend is attached.
"""

import logging

from fastapi import APIRouter

from scrollshot import __version__
from scrollshot.routes import get_deps

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    """
    Health check endpoint

    Supports both GET and HEAD methods for container health checks.
    """
    deps = get_deps()
    progress = deps.scroll_controller.progress()

    return {
        "status": "ok",
        "version": __version__,
        "message": "Scrollshot is running",
        "capture_backend": deps.scroll_controller.backend is not None,
        "session_state": progress.state.value,
    }
