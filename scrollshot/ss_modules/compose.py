"""
Screenshot Stitcher Compose Module

Assembles an ordered list of overlapping frames into one tall composite:
- stitch: shared scan for Strict (final) and Lenient (preview) modes
- compose_slices: vertical concatenation of the kept slices

Frame 0 is always kept whole. Each later frame is compared with the running
reference (the last accepted, uncropped frame); duplicates, unmatched frames
and slivers are skipped and counted rather than aborting the stitch.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from scrollshot.config import get_defaults
from scrollshot.core.scroll_models import SkipReason, StitchResult
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.ss_modules.compare import FrameComparator
from scrollshot.ss_modules.overlap import OverlapMatcher
from scrollshot.utils.error_handler import (
    MatchFailedError,
    StitchFailedError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


class StitchMode(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class FrameSkip:
    index: int
    reason: SkipReason
    score: Optional[float] = None


@dataclass(frozen=True)
class StitchOutcome:
    image: Bitmap
    result: StitchResult
    skips: List[FrameSkip] = field(default_factory=list)


class Stitcher:
    """Composes multiple scroll frames into a single stitched image."""

    def __init__(
        self,
        comparator: Optional[FrameComparator] = None,
        matcher: Optional[OverlapMatcher] = None,
        change_threshold: Optional[float] = None,
        min_slice_height: Optional[int] = None,
        frame_cap: Optional[int] = None,
        min_frame_size: Optional[int] = None,
    ):
        """
        Initialize stitcher.

        Args:
            comparator: FrameComparator used for duplicate detection
            matcher: OverlapMatcher used to locate each frame's new rows
            change_threshold: Difference score below which a frame is a duplicate
            min_slice_height: Slices shorter than this are skipped
            frame_cap: Default maximum number of frames per stitch call
            min_frame_size: Frames narrower or shorter than this are rejected
        """
        defaults = get_defaults()
        self.comparator = comparator or FrameComparator()
        self.matcher = matcher or OverlapMatcher()
        self.change_threshold = (
            change_threshold if change_threshold is not None else defaults.CHANGE_THRESHOLD
        )
        self.min_slice_height = (
            min_slice_height if min_slice_height is not None else defaults.MIN_SLICE_HEIGHT
        )
        self.frame_cap = frame_cap if frame_cap is not None else defaults.MAX_SCROLL_FRAMES
        self.min_frame_size = min_frame_size if min_frame_size is not None else defaults.MIN_FRAME_SIZE

    def stitch(
        self,
        frames: Sequence[Bitmap],
        mode: StitchMode = StitchMode.STRICT,
        frame_cap: Optional[int] = None,
    ) -> StitchOutcome:
        """
        Stitch frames top to bottom.

        Strict mode needs at least 2 frames, rejects more than frame_cap and
        fails when fewer than 2 slices survive filtering. Lenient mode needs
        1 frame, keeps only the most recent frame_cap frames, and falls back
        to the last input frame when filtering leaves a single slice.

        Raises:
            ValidationFailedError: Non-positive frame_cap, too many frames
                (Strict), frames too small or mismatched dimensions
            StitchFailedError: Not enough frames or unique content
        """
        mode = StitchMode(mode)
        if frame_cap is None:
            frame_cap = self.frame_cap
        if isinstance(frame_cap, bool) or not isinstance(frame_cap, int) or frame_cap < 1:
            raise ValidationFailedError(
                f"frame_cap must be a positive integer, got {frame_cap!r}", field="frame_cap"
            )
        frames = list(frames)

        if mode is StitchMode.STRICT:
            if len(frames) < 2:
                raise StitchFailedError(
                    "At least two frames are required to stitch scroll capture",
                    used_frames=0,
                )
            if len(frames) > frame_cap:
                raise ValidationFailedError(
                    f"Too many frames. Maximum is {frame_cap}", field="frames"
                )
        else:
            if not frames:
                raise StitchFailedError("No frames available for preview")
            if len(frames) > frame_cap:
                logger.debug(f"[Stitcher] Preview capped to last {frame_cap} of {len(frames)} frames")
                frames = frames[-frame_cap:]

        self._validate_frames(frames)

        slices, skips = self._collect_slices(frames)

        if len(slices) < 2:
            if mode is StitchMode.STRICT:
                raise StitchFailedError(
                    "Not enough unique frames after filtering similar ones. "
                    "Scroll further between captures.",
                    used_frames=len(slices),
                    skipped_frames=len(skips),
                )
            slices = [frames[-1]]

        image = self.compose_slices(slices)
        result = StitchResult(
            total_frames=len(frames),
            used_frames=len(slices),
            skipped_frames=len(skips),
            final_height=image.height,
        )
        logger.info(
            f"[Stitcher] {mode.value}: {result.total_frames} frames -> "
            f"{image.width}x{image.height}px (used={result.used_frames}, skipped={result.skipped_frames})"
        )
        return StitchOutcome(image=image, result=result, skips=skips)

    def _validate_frames(self, frames: List[Bitmap]):
        width, height = frames[0].size
        if width < self.min_frame_size or height < self.min_frame_size:
            raise ValidationFailedError("Captured frame is too small", field="frames")

        for frame in frames[1:]:
            if frame.size != (width, height):
                raise ValidationFailedError(
                    "Scroll frames have different dimensions", field="frames"
                )

    def _collect_slices(self, frames: List[Bitmap]):
        slices: List[Bitmap] = [frames[0]]
        skips: List[FrameSkip] = []
        reference = frames[0]

        for idx, frame in enumerate(frames[1:], start=1):
            frame_diff = self.comparator.difference(reference, frame)
            if frame_diff < self.change_threshold:
                logger.debug(f"  Skipping frame {idx} (diff={frame_diff:.2f}) -- too similar to previous")
                skips.append(FrameSkip(idx, SkipReason.DUPLICATE, frame_diff))
                continue

            try:
                match = self.matcher.find_best_overlap(reference, frame)
            except MatchFailedError as e:
                logger.debug(f"  Skipping frame {idx} -- overlap detection failed: {e}")
                skips.append(FrameSkip(idx, SkipReason.MATCH_FAILED, e.details.get("best_error")))
                continue

            slice_height = frame.height - match.overlap
            if slice_height < self.min_slice_height:
                logger.debug(f"  Skipping frame {idx} -- insufficient new content ({slice_height}px)")
                skips.append(FrameSkip(idx, SkipReason.TOO_SMALL_DELTA, match.error))
                continue

            slices.append(frame.crop_rows(match.overlap, frame.height))
            reference = frame
            logger.debug(f"  Frame {idx}: overlap={match.overlap}px, adds {slice_height}px")

        return slices, skips

    @staticmethod
    def compose_slices(slices: Sequence[Bitmap]) -> Bitmap:
        """Stack slices vertically into a new bitmap of their common width."""
        width = slices[0].width
        total_height = sum(s.height for s in slices)
        canvas = np.zeros((total_height, width, 4), dtype=np.uint8)

        current_y = 0
        for piece in slices:
            canvas[current_y:current_y + piece.height] = piece.pixels
            current_y += piece.height

        return Bitmap(canvas)
