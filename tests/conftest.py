# tests/conftest.py
from typing import List

import numpy as np
import pytest

from scrollshot.core.capture_backend import BaseCaptureBackend
from scrollshot.ss_modules.bitmap import Bitmap
from scrollshot.ss_modules.geometry import CaptureRect


def gradient_frame(width: int, height: int, start: int) -> Bitmap:
    """
    Window onto an endless vertical gradient page:
    - row y of the frame shows page row (start + y)
    - value = (start + y + x // 3) % 255, pixel = (v, v // 2, 255 - v, 255)
    Two frames whose starts differ by d overlap by (height - d) rows.
    """
    ys = np.arange(height, dtype=np.int64).reshape(-1, 1)
    xs = np.arange(width, dtype=np.int64).reshape(1, -1)
    value = (start + ys + xs // 3) % 255

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = value
    pixels[..., 1] = value // 2
    pixels[..., 2] = 255 - value
    pixels[..., 3] = 255
    return Bitmap(pixels)


def solid_frame(width: int, height: int, rgb=(128, 128, 128)) -> Bitmap:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    return Bitmap(pixels)


def noise_frame(width: int, height: int, seed: int = 0) -> Bitmap:
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return Bitmap(pixels)


class FakeBackend(BaseCaptureBackend):
    """Replays a fixed list of frames; the last one repeats forever."""

    def __init__(self, frames: List[Bitmap]):
        self.frames = list(frames)
        self.calls: List[CaptureRect] = []

    def capture_region(self, rect: CaptureRect) -> Bitmap:
        self.calls.append(rect)
        index = min(len(self.calls) - 1, len(self.frames) - 1)
        return self.frames[index]


@pytest.fixture
def make_frame():
    return gradient_frame


@pytest.fixture
def make_solid():
    return solid_frame


@pytest.fixture
def make_noise():
    return noise_frame


@pytest.fixture
def fake_backend():
    return FakeBackend


@pytest.fixture
def region():
    return CaptureRect(100, 100, 160, 240)
