"""
Screenshot Stitcher Geometry Module

Maps a logical capture rectangle onto a monitor's raw pixel buffer:
- CaptureRect / MonitorGeometry: logical-space inputs
- MonitorGeometryResolver: monitor selection by center point, then
  scale + round + clamp into a pixel crop
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from scrollshot.config import get_defaults
from scrollshot.ss_modules.bitmap import CropRegion
from scrollshot.utils.error_handler import CaptureFailedError, ValidationFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureRect:
    """Capture rectangle in logical coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0


@dataclass(frozen=True)
class MonitorGeometry:
    """Monitor bounds in logical units plus its pixels-per-logical-unit scale."""

    id: int
    x: float
    y: float
    width: float
    height: float
    scale: float = 1.0

    @classmethod
    def from_physical(
        cls, id: int, x: int, y: int, width: int, height: int, scale: float
    ) -> "MonitorGeometry":
        """Convert a monitor reported in physical pixels to logical units."""
        if scale <= 0:
            raise CaptureFailedError(f"Invalid scale factor {scale} for monitor {id}", monitor_id=id)
        return cls(
            id=id,
            x=x / scale,
            y=y / scale,
            width=width / scale,
            height=height / scale,
            scale=scale,
        )

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Expected (width, height) of this monitor's raw bitmap."""
        return _round_half_up(self.width * self.scale), _round_half_up(self.height * self.scale)

    def contains(self, px: float, py: float) -> bool:
        """Half-open containment: left/top edges inside, right/bottom outside."""
        return (
            self.x <= px < self.x + self.width
            and self.y <= py < self.y + self.height
        )


@dataclass(frozen=True)
class ResolvedCrop:
    monitor_id: int
    crop: CropRegion


def _round_half_up(value: float) -> int:
    # Inputs are non-negative here, so this matches round-half-away-from-zero
    return int(math.floor(value + 0.5))


def validate_capture_rect(rect: CaptureRect, min_size: Optional[int] = None):
    """
    Reject rectangles too small to produce a usable frame.

    Raises:
        ValidationFailedError: If width or height is below min_size
    """
    min_size = min_size if min_size is not None else get_defaults().MIN_CAPTURE_SIZE
    if rect.width < min_size or rect.height < min_size:
        raise ValidationFailedError("Capture area is too small", field="rect")


class MonitorGeometryResolver:
    """Resolves logical capture rectangles to per-monitor pixel crops."""

    def __init__(self, min_size: Optional[int] = None):
        self.min_size = min_size if min_size is not None else get_defaults().MIN_CAPTURE_SIZE

    @staticmethod
    def find_monitor(
        rect: CaptureRect, monitors: Sequence[MonitorGeometry]
    ) -> Optional[MonitorGeometry]:
        """First monitor, in input order, containing the rectangle's center."""
        cx, cy = rect.center
        for monitor in monitors:
            if monitor.contains(cx, cy):
                return monitor
        return None

    def resolve(
        self,
        rect: CaptureRect,
        monitors: Sequence[MonitorGeometry],
        bitmap_size: Optional[Tuple[int, int]] = None,
    ) -> ResolvedCrop:
        """
        Map a logical rectangle to a pixel crop on one monitor's bitmap.

        Args:
            rect: Capture rectangle in logical coordinates
            monitors: Current monitor layout snapshot
            bitmap_size: (width, height) of the grabbed monitor bitmap;
                defaults to the monitor's logical size times its scale

        Raises:
            CaptureFailedError: No monitor contains the center, the crop
                origin lies outside the bitmap, or the clamped crop is
                smaller than min_size in either dimension
        """
        monitor = self.find_monitor(rect, monitors)
        if monitor is None:
            raise CaptureFailedError("Selected area is outside available monitors")

        img_width, img_height = bitmap_size or monitor.pixel_size

        rel_x = rect.x - monitor.x
        rel_y = rect.y - monitor.y

        crop_x = _round_half_up(max(rel_x * monitor.scale, 0.0))
        crop_y = _round_half_up(max(rel_y * monitor.scale, 0.0))
        crop_w = _round_half_up(max(rect.width * monitor.scale, 1.0))
        crop_h = _round_half_up(max(rect.height * monitor.scale, 1.0))

        if crop_x >= img_width or crop_y >= img_height:
            raise CaptureFailedError("Selected area is outside monitor bounds", monitor_id=monitor.id)

        final_w = min(crop_w, img_width - crop_x)
        final_h = min(crop_h, img_height - crop_y)

        if final_w < self.min_size or final_h < self.min_size:
            raise CaptureFailedError("Selected area is too small", monitor_id=monitor.id)

        crop = CropRegion(crop_x, crop_y, final_w, final_h)
        logger.debug(
            f"[Geometry] Rect ({rect.x},{rect.y} {rect.width}x{rect.height}) -> monitor {monitor.id} "
            f"crop ({crop.x},{crop.y} {crop.width}x{crop.height}) @ {monitor.scale}x"
        )
        return ResolvedCrop(monitor_id=monitor.id, crop=crop)
