# tests/test_capture_backend.py
import numpy as np
import pytest

from scrollshot.core.capture_backend import MonitorCropBackend
from scrollshot.ss_modules.geometry import CaptureRect, MonitorGeometry
from scrollshot.utils.error_handler import (
    CaptureCancelledError,
    CaptureFailedError,
    PermissionDeniedError,
)

MONITORS = [MonitorGeometry(id=5, x=0, y=0, width=200, height=150, scale=2.0)]


def test_crops_region_from_monitor_grab(make_frame):
    screen = make_frame(400, 300, 0)
    grabbed = []

    def grab(monitor_id):
        grabbed.append(monitor_id)
        return screen

    backend = MonitorCropBackend(lambda: MONITORS, grab)
    frame = backend.capture_region(CaptureRect(10, 20, 100, 50))

    assert grabbed == [5]
    assert frame.size == (200, 100)
    assert np.array_equal(frame.pixels, screen.pixels[40:140, 20:220])


def test_region_off_screen_fails(make_frame):
    backend = MonitorCropBackend(lambda: MONITORS, lambda _id: make_frame(400, 300, 0))
    with pytest.raises(CaptureFailedError):
        backend.capture_region(CaptureRect(1000, 1000, 50, 50))


def _raiser(message):
    def grab(_monitor_id):
        raise RuntimeError(message)
    return grab


def test_permission_failures_are_translated():
    backend = MonitorCropBackend(lambda: MONITORS, _raiser("The user declined screen recording permission"))
    with pytest.raises(PermissionDeniedError):
        backend.capture_region(CaptureRect(10, 20, 100, 50))


def test_prefixed_failures_keep_their_kind():
    backend = MonitorCropBackend(lambda: MONITORS, _raiser("cancelled:picker dismissed"))
    with pytest.raises(CaptureCancelledError):
        backend.capture_region(CaptureRect(10, 20, 100, 50))


def test_other_failures_become_capture_failed():
    backend = MonitorCropBackend(lambda: MONITORS, _raiser("display went to sleep"))
    with pytest.raises(CaptureFailedError, match="Failed to capture monitor image"):
        backend.capture_region(CaptureRect(10, 20, 100, 50))
