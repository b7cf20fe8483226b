"""
Screenshot Stitcher Comparison Module

Strided pixel-sampling difference metric between two same-size frames.
The "changed" threshold is owned by callers (poller, stitcher); this module
only produces the score.
"""

import logging
from typing import Optional

import numpy as np

from scrollshot.config import get_defaults
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.utils.error_handler import ValidationFailedError

logger = logging.getLogger(__name__)


class FrameComparator:
    """Scores how much two captured frames differ."""

    def __init__(self, sample_grid: Optional[int] = None, max_difference: Optional[float] = None):
        """
        Initialize frame comparator.

        Args:
            sample_grid: Approximate number of samples per axis; the stride
                along each axis is max(1, size // sample_grid)
            max_difference: Score returned when either bitmap is empty
        """
        defaults = get_defaults()
        self.sample_grid = sample_grid or defaults.DIFF_SAMPLE_GRID
        self.max_difference = max_difference if max_difference is not None else defaults.MAX_DIFFERENCE

    def difference(self, prev: Bitmap, current: Bitmap) -> float:
        """
        Mean absolute RGB difference over a sampling grid.

        Alpha is ignored. Empty bitmaps score max_difference ("maximally
        different") instead of failing.

        Returns:
            Float between 0.0 (identical samples) and 255.0

        Raises:
            ValidationFailedError: If the bitmaps have different dimensions
        """
        if prev.is_empty or current.is_empty:
            return self.max_difference

        if not prev.same_size(current):
            raise ValidationFailedError(
                f"Cannot compare frames of different sizes: {prev.size} vs {current.size}",
                field="current",
            )

        col_step = max(1, prev.width // self.sample_grid)
        row_step = max(1, prev.height // self.sample_grid)

        a = prev.pixels[::row_step, ::col_step, :3].astype(np.float64)
        b = current.pixels[::row_step, ::col_step, :3].astype(np.float64)
        return float(np.abs(a - b).mean())


_default_comparator: Optional[FrameComparator] = None


def difference(prev: Bitmap, current: Bitmap) -> float:
    """Score two frames with the default sampling grid."""
    global _default_comparator
    if _default_comparator is None:
        _default_comparator = FrameComparator()
    return _default_comparator.difference(prev, current)
