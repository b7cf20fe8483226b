"""
Scroll Session - bounded capture session state machine

Tracks accumulated height, accepted frame count and consecutive match
failures, and decides when a session auto-stops:

    Ready -> Capturing <-> Paused
    Capturing -> Done | Error   (terminal)
    any -> Done                 (cancel)

Pure state; no bitmaps are held here.
"""

import logging
import time
from typing import Optional

from scrollshot.config import get_defaults
from scrollshot.core.scroll_models import (
    MAX_CONSECUTIVE_FAILURES_LIMIT,
    AppendResult,
    ScrollConfig,
    ScrollProgress,
    ScrollSessionState,
    SkipReason,
    StopReason,
)

logger = logging.getLogger(__name__)

MAX_CAPTURED_HEIGHT_PX = 2**32 - 1
MAX_CONSECUTIVE_FAILURES_COUNT = MAX_CONSECUTIVE_FAILURES_LIMIT


def should_auto_cancel(
    last_activity_ms: float,
    now_ms: Optional[float] = None,
    timeout_ms: Optional[int] = None,
) -> bool:
    """True once a session has been idle for at least timeout_ms."""
    if now_ms is None:
        now_ms = time.monotonic() * 1000
    if timeout_ms is None:
        timeout_ms = get_defaults().SCROLL_SESSION_TIMEOUT_MS
    return now_ms - last_activity_ms >= timeout_ms


class ScrollSession:
    """
    State machine for one scroll capture session.

    Owned by a single caller; no internal locking. Once Done or Error, the
    session is frozen: appends return AutoStopped with the reason the
    session stopped and change nothing.
    """

    def __init__(self, config: Optional[ScrollConfig] = None):
        self.config = config or ScrollConfig()
        self._state = ScrollSessionState.READY
        self._frames = 0
        self._captured_height_px = 0
        self._consecutive_failures = 0
        self._stop_reason: Optional[StopReason] = None

    @property
    def state(self) -> ScrollSessionState:
        return self._state

    @property
    def frames(self) -> int:
        return self._frames

    @property
    def captured_height_px(self) -> int:
        return self._captured_height_px

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def stop_reason(self) -> Optional[StopReason]:
        return self._stop_reason

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    def _stop(self, state: ScrollSessionState, reason: StopReason) -> AppendResult:
        self._state = state
        self._stop_reason = reason
        logger.info(
            f"[ScrollSession] Auto-stopped ({reason.value}): frames={self._frames}, "
            f"height={self._captured_height_px}px, state={state.value}"
        )
        return AppendResult.auto_stopped(reason)

    def _terminal_result(self, operation: str) -> AppendResult:
        logger.debug(f"[ScrollSession] Ignoring {operation} in terminal state {self._state.value}")
        return AppendResult.auto_stopped(self._stop_reason or StopReason.USER)

    def mark_capturing(self):
        """Ready or Paused -> Capturing; no-op otherwise."""
        if self._state in (ScrollSessionState.READY, ScrollSessionState.PAUSED):
            self._state = ScrollSessionState.CAPTURING

    def pause(self):
        """Capturing -> Paused; no-op otherwise."""
        if self._state is ScrollSessionState.CAPTURING:
            self._state = ScrollSessionState.PAUSED

    def append_accepted(self, added_height: int, score: float) -> AppendResult:
        """
        Record an accepted frame contributing added_height new rows.

        Returns:
            Accepted, or AutoStopped(ReachedMaxHeight) when the height or
            frame limit is reached
        """
        if self.is_terminal:
            return self._terminal_result("append_accepted")

        added_height = max(0, int(added_height))
        self._frames += 1
        self._captured_height_px = min(
            self._captured_height_px + added_height, MAX_CAPTURED_HEIGHT_PX
        )
        self._consecutive_failures = 0

        if self._captured_height_px >= self.config.max_height_px:
            return self._stop(ScrollSessionState.DONE, StopReason.REACHED_MAX_HEIGHT)

        # The frame limit reports the same reason as the height limit
        if self._frames >= self.config.max_frames:
            return self._stop(ScrollSessionState.DONE, StopReason.REACHED_MAX_HEIGHT)

        self._state = ScrollSessionState.CAPTURING
        return AppendResult.accepted(dy=added_height, score=score)

    def append_failed(self) -> AppendResult:
        """
        Record a frame whose overlap could not be matched.

        Returns:
            Skipped(MatchFailed), or AutoStopped(ConsecutiveFailures) once
            max_consecutive_failures is reached
        """
        if self.is_terminal:
            return self._terminal_result("append_failed")

        self._consecutive_failures = min(
            self._consecutive_failures + 1, MAX_CONSECUTIVE_FAILURES_COUNT
        )
        if self._consecutive_failures >= self.config.max_consecutive_failures:
            return self._stop(ScrollSessionState.ERROR, StopReason.CONSECUTIVE_FAILURES)

        logger.debug(
            f"[ScrollSession] Match failed ({self._consecutive_failures}/"
            f"{self.config.max_consecutive_failures})"
        )
        return AppendResult.skipped(SkipReason.MATCH_FAILED)

    def cancel(self, reason: StopReason = StopReason.USER):
        """Any state -> Done, unconditionally."""
        if not self.is_terminal:
            self._stop_reason = reason
        self._state = ScrollSessionState.DONE
        logger.info(f"[ScrollSession] Cancelled ({reason.value})")

    def progress(self) -> ScrollProgress:
        return ScrollProgress(
            frames=self._frames,
            captured_height_px=self._captured_height_px,
            state=self._state,
        )
