"""
Scroll Capture Routes - Live Scroll Session and Stitching

Provides endpoints for the live scroll capture workflow and stateless
stitching:
- Session lifecycle (start / pause / resume / cancel / progress)
- Poll step (capture region once, detect scroll, accept settled frames)
- Preview (lenient) and finish (strict) stitching of the session frames
- Stateless stitch of uploaded base64 PNG frames
"""

import asyncio
import base64
import binascii
import logging
from typing import List, Optional

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from scrollshot.core.scroll_models import ScrollConfig
from scrollshot.routes import get_deps
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.ss_modules.compose import StitchMode, StitchOutcome
from scrollshot.ss_modules.geometry import CaptureRect
from scrollshot.utils.error_handler import (
    CommandFailedError,
    ValidationFailedError,
    create_error_response,
    handle_api_error,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scroll", tags=["scroll_capture"])


# Request models
class ScrollStartRequest(BaseModel):
    max_height_px: Optional[int] = None
    max_frames: Optional[int] = None
    throttle_ms: Optional[int] = None
    max_consecutive_failures: Optional[int] = None


class CaptureRectRequest(BaseModel):
    x: int
    y: int
    width: int
    height: int


class StitchRequest(BaseModel):
    frames: List[str]  # base64 PNG, top to bottom
    mode: str = "strict"
    frame_cap: Optional[int] = Field(default=None, ge=1)


def _outcome_response(outcome: StitchOutcome) -> dict:
    image_base64 = base64.b64encode(outcome.image.to_png_bytes()).decode("utf-8")
    return {
        "success": True,
        "image": image_base64,
        "width": outcome.image.width,
        "height": outcome.image.height,
        **outcome.result.to_dict(),
        "skips": [
            {"index": s.index, "reason": s.reason.value, "score": s.score}
            for s in outcome.skips
        ],
    }


def _decode_frame(index: int, data: str) -> Bitmap:
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationFailedError(f"Frame {index} is not valid base64: {e}", field="frames") from e
    return Bitmap.from_png_bytes(raw)


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================

@router.post("/start")
async def start_session(request: Optional[ScrollStartRequest] = None):
    """Start a new scroll capture session (discards any previous one)"""
    deps = get_deps()
    try:
        config = None
        if request is not None:
            overrides = {
                name: getattr(request, name)
                for name in ("max_height_px", "max_frames", "throttle_ms", "max_consecutive_failures")
                if getattr(request, name) is not None
            }
            if overrides:
                config = ScrollConfig(**overrides)

        progress = deps.scroll_controller.start(config)
        logger.info("[API] Scroll session started")
        return {"success": True, "progress": progress.to_dict()}
    except Exception as e:
        logger.error(f"[API] Start scroll session failed: {e}")
        return handle_api_error(e)


@router.post("/pause")
async def pause_session():
    """Pause the active session"""
    deps = get_deps()
    try:
        return {"success": True, "progress": deps.scroll_controller.pause().to_dict()}
    except Exception as e:
        logger.error(f"[API] Pause scroll session failed: {e}")
        return handle_api_error(e)


@router.post("/resume")
async def resume_session():
    """Resume a paused session"""
    deps = get_deps()
    try:
        return {"success": True, "progress": deps.scroll_controller.resume().to_dict()}
    except Exception as e:
        logger.error(f"[API] Resume scroll session failed: {e}")
        return handle_api_error(e)


@router.post("/cancel")
async def cancel_session():
    """Cancel the session and discard captured frames"""
    deps = get_deps()
    try:
        return {"success": True, "progress": deps.scroll_controller.cancel().to_dict()}
    except Exception as e:
        logger.error(f"[API] Cancel scroll session failed: {e}")
        return handle_api_error(e)


@router.get("/progress")
async def get_progress():
    """Current session progress (auto-cancels a session that went idle)"""
    deps = get_deps()
    try:
        controller = deps.scroll_controller
        timed_out = controller.check_idle()
        return {
            "success": True,
            "progress": controller.progress().to_dict(),
            "timed_out": timed_out,
            "stop_reason": controller.session.stop_reason.value if controller.session.stop_reason else None,
        }
    except Exception as e:
        logger.error(f"[API] Scroll progress failed: {e}")
        return handle_api_error(e)


# =============================================================================
# CAPTURE
# =============================================================================

@router.post("/poll")
async def poll_region(request: CaptureRectRequest):
    """Capture the region once and advance the live session

    Called by the client every ~200ms while the user scrolls.
    """
    deps = get_deps()
    if deps.scroll_controller.backend is None:
        return create_error_response(
            CommandFailedError("No capture backend configured", command="poll"),
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    try:
        rect = CaptureRect(request.x, request.y, request.width, request.height)
        step = await asyncio.to_thread(deps.scroll_controller.poll, rect)
        return {"success": True, **step.to_dict()}
    except Exception as e:
        logger.warning(f"[API] Scroll poll failed: {e}")
        return handle_api_error(e)


# =============================================================================
# STITCHING
# =============================================================================

@router.post("/preview")
async def preview_session():
    """Lenient stitch of the frames captured so far"""
    deps = get_deps()
    try:
        outcome = await asyncio.to_thread(deps.scroll_controller.preview)
        return _outcome_response(outcome)
    except Exception as e:
        logger.warning(f"[API] Scroll preview failed: {e}")
        return handle_api_error(e)


@router.post("/finish")
async def finish_session():
    """Strict stitch of all accepted frames; ends the session"""
    deps = get_deps()
    try:
        outcome = await asyncio.to_thread(deps.scroll_controller.finish)
        logger.info(f"[API] Scroll capture finished: {outcome.image.width}x{outcome.image.height}px")
        return _outcome_response(outcome)
    except Exception as e:
        logger.error(f"[API] Scroll finish failed: {e}")
        return handle_api_error(e)


@router.post("/stitch")
async def stitch_frames(request: StitchRequest):
    """Stitch uploaded frames without a live session"""
    deps = get_deps()
    try:
        try:
            mode = StitchMode(request.mode)
        except ValueError:
            raise ValidationFailedError(f"Unknown stitch mode: {request.mode}", field="mode")

        frames = [_decode_frame(i, data) for i, data in enumerate(request.frames)]
        logger.info(f"[API] Stitching {len(frames)} uploaded frames ({mode.value})")

        outcome = await asyncio.to_thread(
            deps.stitcher.stitch, frames, mode, request.frame_cap
        )
        return _outcome_response(outcome)
    except Exception as e:
        logger.error(f"[API] Stitch failed: {e}")
        return handle_api_error(e)
