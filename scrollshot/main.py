"""
Scrollshot - FastAPI Server

Scrolling screenshot capture and stitching service. The OS capture
mechanism is plugged in as a BaseCaptureBackend; without one the server
still stitches uploaded frames.
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scrollshot import __version__
from scrollshot.config import get_defaults, load_defaults_from_env
from scrollshot.core.capture_backend import BaseCaptureBackend
from scrollshot.core.scroll_capture import ScrollCaptureController
from scrollshot.ss_modules.compose import Stitcher

# Route modules
from scrollshot.routes import RouteDependencies, set_dependencies
from scrollshot.routes import health, scroll_capture

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def build_dependencies(backend: Optional[BaseCaptureBackend] = None) -> RouteDependencies:
    """Wire the controller and stitcher around an optional capture backend."""
    stitcher = Stitcher()
    controller = ScrollCaptureController(backend=backend, stitcher=stitcher)
    return RouteDependencies(
        scroll_controller=controller,
        stitcher=stitcher,
    )


def create_app(deps: Optional[RouteDependencies] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        deps: Pre-built dependencies (tests inject fakes here); defaults to
            a stitch-only setup without a capture backend
    """
    app = FastAPI(
        title="Scrollshot API",
        version=__version__,
        description="Scrolling screenshot capture and stitching",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Log and return detailed validation errors"""
        logger.warning(f"[VALIDATION ERROR] {request.method} {request.url}: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={"success": False, "detail": exc.errors()},
        )

    set_dependencies(deps or build_dependencies())

    app.include_router(health.router)
    logger.info("[Server] Registered route module: health (1 endpoint)")
    app.include_router(scroll_capture.router)
    logger.info(
        f"[Server] Registered route module: scroll_capture ({len(scroll_capture.router.routes)} endpoints)"
    )

    return app


app = create_app()


def run():
    """Console entry point: reload defaults from the environment and serve."""
    defaults = load_defaults_from_env()
    logging.getLogger().setLevel(defaults.LOG_LEVEL)

    logger.info(f"Starting Scrollshot v{__version__}")
    logger.info(f"Server: http://localhost:{defaults.SERVER_PORT}")
    logger.info(f"API: http://localhost:{defaults.SERVER_PORT}/api")

    # Rebuild so components pick up the reloaded defaults
    uvicorn.run(
        create_app(),
        host=defaults.SERVER_HOST,
        port=defaults.SERVER_PORT,
        log_level=get_defaults().LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
