"""
Scroll Capture Controller - live scroll capture workflow

Ties a capture backend to the poller, the session state machine and the
stitcher:

    start() -> poll(rect) ... poll(rect) -> finish()
                  |                 |
            pause()/resume()   preview() at any time

Each settled frame reported by the poller is matched against the last
accepted frame and offered to the session. Accepted frames are kept in
memory until finish() stitches them or cancel() discards them.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from scrollshot.core.capture_backend import BaseCaptureBackend
from scrollshot.core.capture_gate import CaptureGate
from scrollshot.core.scroll_models import (
    AppendResult,
    ScrollConfig,
    ScrollProgress,
    ScrollSessionState,
    StopReason,
)
from scrollshot.core.scroll_poller import PollState, ScrollPoller, ScrollPollResult
from scrollshot.core.scroll_session import ScrollSession, should_auto_cancel
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.ss_modules.compose import Stitcher, StitchMode, StitchOutcome
from scrollshot.ss_modules.geometry import CaptureRect, validate_capture_rect
from scrollshot.ss_modules.overlap import OverlapMatcher
from scrollshot.utils.error_handler import (
    CommandFailedError,
    MatchFailedError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass(frozen=True)
class ScrollCaptureStep:
    """Result of one poll: what the poller saw and what the session did with it."""

    poll: ScrollPollResult
    append: Optional[AppendResult]
    progress: ScrollProgress

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poll": self.poll.to_dict(),
            "append": self.append.to_dict() if self.append else None,
            "progress": self.progress.to_dict(),
        }


class ScrollCaptureController:
    """Runs one scroll capture session at a time against a capture backend."""

    def __init__(
        self,
        backend: Optional[BaseCaptureBackend] = None,
        config: Optional[ScrollConfig] = None,
        gate: Optional[CaptureGate] = None,
        poller: Optional[ScrollPoller] = None,
        matcher: Optional[OverlapMatcher] = None,
        stitcher: Optional[Stitcher] = None,
        clock: Optional[Callable[[], float]] = None,
        idle_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize controller.

        Args:
            backend: Region capture backend (None disables poll())
            config: Default session limits for start()
            gate: Exclusive-access token shared with other capture flows
            poller: Live scroll detector
            matcher: Overlap matcher used to size each accepted frame
            stitcher: Stitcher used by preview() and finish()
            clock: Millisecond clock used for idle tracking
            idle_timeout_ms: Idle period after which check_idle() cancels
        """
        self.backend = backend
        self.config = config
        self.gate = gate or CaptureGate()
        self.poller = poller or ScrollPoller()
        self.matcher = matcher or OverlapMatcher()
        self.stitcher = stitcher or Stitcher()
        self.clock = clock or _monotonic_ms
        self.idle_timeout_ms = idle_timeout_ms

        self.session = ScrollSession(config)
        self._frames: List[Bitmap] = []
        self._last_activity_ms = self.clock()

    @property
    def frames(self) -> List[Bitmap]:
        """Accepted frames, oldest first (copy of the list)."""
        return list(self._frames)

    @property
    def last_activity_ms(self) -> float:
        return self._last_activity_ms

    def _touch(self):
        self._last_activity_ms = self.clock()

    def progress(self) -> ScrollProgress:
        return self.session.progress()

    # =========================================================================
    # SESSION LIFECYCLE
    # =========================================================================

    def start(self, config: Optional[ScrollConfig] = None) -> ScrollProgress:
        """Begin a new session, discarding any previous one."""
        self.session = ScrollSession(config or self.config)
        self.poller.reset()
        self._frames = []
        self.session.mark_capturing()
        self._touch()
        cfg = self.session.config
        logger.info(
            f"[ScrollCapture] Session started (max_height={cfg.max_height_px}px, "
            f"max_frames={cfg.max_frames}, max_failures={cfg.max_consecutive_failures})"
        )
        return self.progress()

    def pause(self) -> ScrollProgress:
        self.session.pause()
        self._touch()
        return self.progress()

    def resume(self) -> ScrollProgress:
        if self.session.state is ScrollSessionState.PAUSED:
            self.session.mark_capturing()
            # Settle on a fresh baseline; the view may have moved while paused
            self.poller.reset()
        self._touch()
        return self.progress()

    def cancel(self, reason: StopReason = StopReason.USER) -> ScrollProgress:
        """Stop the session and discard buffered frames."""
        discarded = len(self._frames)
        self.session.cancel(reason)
        self._frames = []
        self.poller.reset()
        logger.info(f"[ScrollCapture] Cancelled ({reason.value}), discarded {discarded} frames")
        return self.progress()

    def check_idle(self, now_ms: Optional[float] = None) -> bool:
        """Auto-cancel an idle live session. Returns True if it was cancelled."""
        if self.session.is_terminal or self.session.state is ScrollSessionState.READY:
            return False
        now_ms = now_ms if now_ms is not None else self.clock()
        if should_auto_cancel(self._last_activity_ms, now_ms, self.idle_timeout_ms):
            logger.warning(
                f"[ScrollCapture] Idle for {now_ms - self._last_activity_ms:.0f}ms, auto-cancelling"
            )
            self.cancel(StopReason.TIMEOUT)
            return True
        return False

    # =========================================================================
    # CAPTURE
    # =========================================================================

    def poll(self, rect: CaptureRect) -> ScrollCaptureStep:
        """
        Capture the region once and advance the session.

        Raises:
            CommandFailedError: No backend configured or the gate is busy
            ValidationFailedError: Session not capturing or rect too small
            PermissionDeniedError / CaptureCancelledError / CaptureFailedError:
                Propagated from the backend
        """
        if self.backend is None:
            raise CommandFailedError("No capture backend configured", command="poll")

        state = self.session.state
        if state is not ScrollSessionState.CAPTURING:
            raise ValidationFailedError(
                f"Scroll capture session is not active (state={state.value})", field="state"
            )

        validate_capture_rect(rect)

        # Held until the frame is offered; finish() takes the same gate
        with self.gate.hold(blocking=False):
            frame = self.backend.capture_region(rect)
            self._touch()
            result = self.poller.poll(frame)

            append = None
            if result.state is PollState.CAPTURED and result.frame is not None:
                append = self._offer_frame(result.frame)

            return ScrollCaptureStep(poll=result, append=append, progress=self.progress())

    def _offer_frame(self, frame: Bitmap) -> AppendResult:
        frames_before = self.session.frames

        if not self._frames:
            result = self.session.append_accepted(frame.height, 0.0)
        else:
            try:
                match = self.matcher.find_best_overlap(self._frames[-1], frame)
            except (MatchFailedError, ValidationFailedError) as e:
                logger.info(f"[ScrollCapture] Frame not matched: {e}")
                result = self.session.append_failed()
            else:
                result = self.session.append_accepted(frame.height - match.overlap, match.error)

        # The session counts the frame even when that append hits a limit
        if self.session.frames > frames_before:
            self._frames.append(frame)
            logger.debug(
                f"[ScrollCapture] Frame {len(self._frames)} kept, "
                f"height={self.session.captured_height_px}px ({result.kind.value})"
            )
        return result

    # =========================================================================
    # STITCHING
    # =========================================================================

    def preview(self) -> StitchOutcome:
        """Lenient stitch of the frames captured so far."""
        return self.stitcher.stitch(self._frames, mode=StitchMode.LENIENT)

    def finish(self) -> StitchOutcome:
        """
        Strict stitch of all accepted frames; ends the session on success.

        Raises:
            StitchFailedError: Too few usable frames
            ValidationFailedError: Too many frames or mismatched frame sizes
            CommandFailedError: The gate is busy
        """
        with self.gate.hold(blocking=False):
            outcome = self.stitcher.stitch(self._frames, mode=StitchMode.STRICT)

        self.session.cancel(StopReason.USER)
        self._touch()
        logger.info(
            f"[ScrollCapture] Finished: {outcome.result.used_frames}/{outcome.result.total_frames} frames, "
            f"{outcome.image.width}x{outcome.image.height}px"
        )
        return outcome
