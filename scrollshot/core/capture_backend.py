"""
Capture Backends - region capture interface

The OS-level capture mechanism lives outside this package. It is consumed
through BaseCaptureBackend; MonitorCropBackend adapts the common
"enumerate monitors + grab a whole monitor" shape into region capture.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.ss_modules.geometry import (
    CaptureRect,
    MonitorGeometry,
    MonitorGeometryResolver,
)
from scrollshot.utils.error_handler import (
    CaptureFailedError,
    ErrorContext,
)

logger = logging.getLogger(__name__)


class BaseCaptureBackend(ABC):
    """Abstract base class for region capture backends.

    Implementations return the captured region as an RGBA Bitmap and signal
    failures with PermissionDeniedError, CaptureCancelledError or
    CaptureFailedError.
    """

    @abstractmethod
    def capture_region(self, rect: CaptureRect) -> Bitmap:
        """Capture one frame of the given logical rectangle.

        Args:
            rect: Capture rectangle in logical coordinates

        Returns:
            Captured frame
        """
        pass


class MonitorCropBackend(BaseCaptureBackend):
    """Region capture built from whole-monitor grabs.

    Args:
        list_monitors: Returns the current monitor layout snapshot
        grab_monitor: Returns the full bitmap of one monitor by id
        resolver: Maps the logical rectangle to a pixel crop
    """

    def __init__(
        self,
        list_monitors: Callable[[], List[MonitorGeometry]],
        grab_monitor: Callable[[int], Bitmap],
        resolver: Optional[MonitorGeometryResolver] = None,
    ):
        self.list_monitors = list_monitors
        self.grab_monitor = grab_monitor
        self.resolver = resolver or MonitorGeometryResolver()

    def capture_region(self, rect: CaptureRect) -> Bitmap:
        with ErrorContext("query monitors", raise_as=CaptureFailedError):
            monitors = self.list_monitors()
        target = self.resolver.find_monitor(rect, monitors)
        if target is None:
            raise CaptureFailedError("Selected area is outside available monitors")

        with ErrorContext("capture monitor image", raise_as=CaptureFailedError):
            monitor_image = self.grab_monitor(target.id)
        resolved = self.resolver.resolve(rect, [target], bitmap_size=monitor_image.size)
        return monitor_image.crop(resolved.crop)
