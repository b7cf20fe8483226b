# tests/test_geometry.py
import pytest

from scrollshot.ss_modules.bitmap import CropRegion
from scrollshot.ss_modules.geometry import (
    CaptureRect,
    MonitorGeometry,
    MonitorGeometryResolver,
    validate_capture_rect,
)
from scrollshot.utils.error_handler import CaptureFailedError, ValidationFailedError


def test_retina_monitor_scales_crop():
    monitors = [MonitorGeometry(id=1, x=0, y=0, width=800, height=600, scale=2.0)]

    resolved = MonitorGeometryResolver().resolve(CaptureRect(10, 20, 100, 50), monitors)

    assert resolved.monitor_id == 1
    assert resolved.crop == CropRegion(20, 40, 200, 100)


def test_rect_outside_all_monitors_fails():
    monitors = [MonitorGeometry(id=1, x=0, y=0, width=800, height=600)]
    with pytest.raises(CaptureFailedError, match="outside available monitors"):
        MonitorGeometryResolver().resolve(CaptureRect(2000, 2000, 100, 100), monitors)


def test_center_on_shared_edge_selects_right_monitor():
    monitors = [
        MonitorGeometry(id=1, x=0, y=0, width=800, height=600),
        MonitorGeometry(id=2, x=800, y=0, width=800, height=600),
    ]

    resolved = MonitorGeometryResolver().resolve(CaptureRect(750, 100, 100, 100), monitors)

    assert resolved.monitor_id == 2
    # Origin left of the monitor clamps to 0
    assert resolved.crop == CropRegion(0, 100, 100, 100)


def test_first_matching_monitor_wins():
    monitors = [
        MonitorGeometry(id=7, x=0, y=0, width=800, height=600),
        MonitorGeometry(id=8, x=0, y=0, width=800, height=600),
    ]
    resolved = MonitorGeometryResolver().resolve(CaptureRect(0, 0, 100, 100), monitors)
    assert resolved.monitor_id == 7


def test_crop_clamps_to_bitmap_edge():
    monitors = [MonitorGeometry(id=1, x=0, y=0, width=800, height=600)]
    resolved = MonitorGeometryResolver().resolve(CaptureRect(770, 0, 40, 40), monitors)
    assert resolved.crop == CropRegion(770, 0, 30, 40)


def test_clamped_sliver_is_too_small():
    monitors = [MonitorGeometry(id=1, x=0, y=0, width=800, height=600)]
    with pytest.raises(CaptureFailedError, match="too small"):
        MonitorGeometryResolver().resolve(CaptureRect(792, 0, 12, 40), monitors)


def test_origin_beyond_actual_bitmap_fails():
    monitors = [MonitorGeometry(id=1, x=0, y=0, width=800, height=600)]
    with pytest.raises(CaptureFailedError, match="outside monitor bounds"):
        MonitorGeometryResolver().resolve(
            CaptureRect(200, 200, 50, 50), monitors, bitmap_size=(100, 100)
        )


def test_fractional_scale_rounds_half_up():
    monitors = [MonitorGeometry(id=1, x=0, y=0, width=1000, height=1000, scale=1.25)]
    resolved = MonitorGeometryResolver().resolve(CaptureRect(2, 2, 100, 100), monitors)
    assert resolved.crop.x == 3
    assert resolved.crop.width == 125


def test_monitor_offset_is_subtracted():
    monitors = [MonitorGeometry(id=3, x=-1440, y=0, width=1440, height=900, scale=2.0)]
    resolved = MonitorGeometryResolver().resolve(CaptureRect(-1400, 10, 100, 100), monitors)
    assert resolved.crop == CropRegion(80, 20, 200, 200)


def test_from_physical_divides_by_scale():
    monitor = MonitorGeometry.from_physical(1, 2880, 0, 2880, 1800, 2.0)
    assert (monitor.x, monitor.y, monitor.width, monitor.height) == (1440, 0, 1440, 900)
    assert monitor.pixel_size == (2880, 1800)


def test_validate_capture_rect():
    validate_capture_rect(CaptureRect(0, 0, 10, 10))
    with pytest.raises(ValidationFailedError, match="Capture area is too small"):
        validate_capture_rect(CaptureRect(0, 0, 9, 100))
