"""
Scroll Poller - live scroll/stabilization detector

The caller captures the region every ~200ms and feeds each frame to poll():
    "unchanged" - content has not changed since last poll
    "scrolling" - content is actively changing (user is scrolling)
    "captured"  - content was scrolling but has now stabilized -> frame kept
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from scrollshot.config import get_defaults
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.ss_modules.compare import FrameComparator

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    UNCHANGED = "unchanged"
    SCROLLING = "scrolling"
    CAPTURED = "captured"


@dataclass(frozen=True)
class ScrollPollResult:
    state: PollState
    frame_count: int
    frame: Optional[Bitmap] = None  # Set for CAPTURED; the caller persists it

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.state.value, "frame_count": self.frame_count}


@dataclass
class ScrollPollState:
    prev_frame: Optional[Bitmap] = None
    was_scrolling: bool = False
    stable_count: int = 0
    frame_count: int = 0


class ScrollPoller:
    """One instance per live session. Call reset() at session start."""

    def __init__(
        self,
        comparator: Optional[FrameComparator] = None,
        change_threshold: Optional[float] = None,
    ):
        self.comparator = comparator or FrameComparator()
        self.change_threshold = (
            change_threshold if change_threshold is not None else get_defaults().CHANGE_THRESHOLD
        )
        self.state = ScrollPollState()

    def reset(self):
        self.state = ScrollPollState()

    @property
    def frame_count(self) -> int:
        return self.state.frame_count

    def _score(self, prev: Bitmap, current: Bitmap) -> float:
        # A resized region is a change, not an error
        if not prev.same_size(current):
            return self.comparator.max_difference
        return self.comparator.difference(prev, current)

    def poll(self, current: Bitmap) -> ScrollPollResult:
        state = self.state

        if state.prev_frame is None:
            state.prev_frame = current
            state.frame_count = 1
            logger.debug("[ScrollPoller] Baseline frame captured")
            return ScrollPollResult(PollState.CAPTURED, 1, frame=current)

        diff = self._score(state.prev_frame, current)

        if diff >= self.change_threshold:
            state.was_scrolling = True
            state.stable_count = 0
            state.prev_frame = current
            return ScrollPollResult(PollState.SCROLLING, state.frame_count)

        if state.was_scrolling:
            state.was_scrolling = False
            state.stable_count = 0
            state.prev_frame = current
            state.frame_count += 1
            logger.info(f"[ScrollPoller] Content settled (diff={diff:.2f}), frame {state.frame_count} captured")
            return ScrollPollResult(PollState.CAPTURED, state.frame_count, frame=current)

        return ScrollPollResult(PollState.UNCHANGED, state.frame_count)
