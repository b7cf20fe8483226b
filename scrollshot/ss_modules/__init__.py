"""
Screenshot Stitcher Modules Package

Frame comparison, overlap matching, composition and monitor geometry.
"""

from .bitmap import Bitmap, CropRegion
from .compare import FrameComparator, difference
from .overlap import OverlapMatch, OverlapMatcher
from .compose import FrameSkip, StitchMode, StitchOutcome, Stitcher
from .geometry import (
    CaptureRect,
    MonitorGeometry,
    MonitorGeometryResolver,
    ResolvedCrop,
    validate_capture_rect,
)

__all__ = [
    "Bitmap",
    "CropRegion",
    "FrameComparator",
    "difference",
    "OverlapMatch",
    "OverlapMatcher",
    "FrameSkip",
    "StitchMode",
    "StitchOutcome",
    "Stitcher",
    # Geometry
    "CaptureRect",
    "MonitorGeometry",
    "MonitorGeometryResolver",
    "ResolvedCrop",
    "validate_capture_rect",
]
