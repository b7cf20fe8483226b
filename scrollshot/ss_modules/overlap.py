"""
Screenshot Stitcher Overlap Module

Finds the vertical overlap between two consecutive frames:
- overlap_error: banded sampling score for one overlap candidate
- find_best_overlap: bounded search over candidates with a quality ceiling
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from scrollshot.config import get_defaults
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.utils.error_handler import MatchFailedError, ValidationFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlapMatch:
    """Rows shared between the bottom of prev and the top of current."""

    overlap: int
    error: float


class OverlapMatcher:
    """Detects overlap between screenshots for stitching."""

    def __init__(
        self,
        min_overlap: Optional[int] = None,
        min_new_content: Optional[int] = None,
        step: Optional[int] = None,
        max_match_error: Optional[float] = None,
        band_start_pct: Optional[int] = None,
        band_end_pct: Optional[int] = None,
        column_samples: Optional[int] = None,
        row_samples: Optional[int] = None,
    ):
        """
        Initialize overlap matcher.

        Args:
            min_overlap: Smallest overlap candidate (capped at height - 1)
            min_new_content: Rows each new frame must contribute at least
            step: Candidate stride
            max_match_error: Quality ceiling; a better best score is required
            band_start_pct: Left edge of the sampled column band (% of width)
            band_end_pct: Right edge of the sampled column band (% of width)
            column_samples: Upper bound on sampled columns per row
            row_samples: Upper bound on sampled rows per overlap band
        """
        defaults = get_defaults()
        self.min_overlap = min_overlap if min_overlap is not None else defaults.MIN_SCROLL_OVERLAP
        self.min_new_content = (
            min_new_content if min_new_content is not None else defaults.MIN_SCROLL_NEW_CONTENT
        )
        self.step = max(1, step or defaults.OVERLAP_STEP)
        self.max_match_error = (
            max_match_error if max_match_error is not None else defaults.MAX_SCROLL_MATCH_ERROR
        )
        self.band_start_pct = band_start_pct if band_start_pct is not None else defaults.MATCH_BAND_START_PCT
        self.band_end_pct = band_end_pct if band_end_pct is not None else defaults.MATCH_BAND_END_PCT
        self.column_samples = column_samples or defaults.MATCH_COLUMN_SAMPLES
        self.row_samples = row_samples or defaults.MATCH_ROW_SAMPLES

    def candidate_range(self, height: int) -> range:
        """Overlap candidates for a frame height, in ascending search order."""
        min_overlap = min(self.min_overlap, max(0, height - 1))
        max_overlap = max(min_overlap, max(0, height - self.min_new_content))
        return range(min_overlap, max_overlap + 1, self.step)

    def overlap_error(self, prev: Bitmap, current: Bitmap, overlap: int) -> float:
        """
        Score one overlap candidate.

        Compares the bottom `overlap` rows of prev against the top `overlap`
        rows of current inside the central column band.

        Returns:
            Mean absolute RGB difference, or inf when nothing can be sampled
        """
        width, height = prev.size
        if overlap <= 0 or overlap > height:
            return math.inf

        x_start = width * self.band_start_pct // 100
        x_end = width * self.band_end_pct // 100
        col_step = max(1, (x_end - x_start) // self.column_samples)
        row_step = max(1, overlap // self.row_samples)

        prev_band = prev.pixels[height - overlap:height:row_step, x_start:x_end:col_step, :3]
        curr_band = current.pixels[0:overlap:row_step, x_start:x_end:col_step, :3]
        if prev_band.size == 0:
            return math.inf

        diff = np.abs(prev_band.astype(np.float64) - curr_band.astype(np.float64))
        return float(diff.mean())

    def find_best_overlap(self, prev: Bitmap, current: Bitmap) -> OverlapMatch:
        """
        Search overlap candidates and return the lowest-error one.

        Candidates are scanned in ascending order and only a strictly lower
        error replaces the current best, so the smallest overlap wins ties.

        Raises:
            ValidationFailedError: If the frames have different dimensions
            MatchFailedError: If no candidate could be scored or the best
                error exceeds max_match_error
        """
        if not prev.same_size(current):
            raise ValidationFailedError(
                f"Scroll frames have different dimensions: {prev.size} vs {current.size}",
                field="current",
            )

        best_overlap: Optional[int] = None
        best_error = math.inf

        for overlap in self.candidate_range(prev.height):
            err = self.overlap_error(prev, current, overlap)
            if err < best_error:
                best_error = err
                best_overlap = overlap

        if best_overlap is None:
            raise MatchFailedError("Failed to detect overlap between captured frames")

        if best_error > self.max_match_error:
            logger.debug(
                f"  Best overlap {best_overlap}px rejected (error {best_error:.2f} > {self.max_match_error})"
            )
            raise MatchFailedError(
                "Scroll frame matching failed. Try slower scrolling and keep region stable.",
                best_error=best_error,
            )

        logger.debug(f"  Overlap match: {best_overlap}px, error={best_error:.2f}")
        return OverlapMatch(overlap=best_overlap, error=best_error)
