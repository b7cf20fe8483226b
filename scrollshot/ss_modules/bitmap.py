"""
Screenshot Stitcher Bitmap Module

RGBA8 frame container shared by the comparison, overlap and compose modules:
- Bitmap: numpy-backed (height, width, 4) uint8 frame with Pillow adapters
- CropRegion: rectangle clamped to image bounds
"""

import io
import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image

from scrollshot.utils.error_handler import ValidationFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropRegion:
    """Pixel-space crop rectangle."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def clamped(
        cls,
        x: int,
        y: int,
        width: int,
        height: int,
        img_width: int,
        img_height: int,
    ) -> "CropRegion":
        """Create a crop region, clamping origin and size to the image bounds."""
        crop_x = max(0, min(x, img_width - 1))
        crop_y = max(0, min(y, img_height - 1))
        crop_width = max(0, min(width, img_width - crop_x))
        crop_height = max(0, min(height, img_height - crop_y))
        return cls(crop_x, crop_y, crop_width, crop_height)

    def is_valid(self) -> bool:
        """Check if the region has non-zero dimensions."""
        return self.width > 0 and self.height > 0


@dataclass(frozen=True, eq=False)
class Bitmap:
    """
    RGBA8 frame.

    Pixels are stored as a (height, width, 4) uint8 array. Operations that
    change geometry return a new Bitmap; the source array is never modified.
    """

    pixels: np.ndarray

    def __post_init__(self):
        arr = self.pixels
        if not isinstance(arr, np.ndarray) or arr.ndim != 3 or arr.shape[2] != 4:
            shape = getattr(arr, "shape", None)
            raise ValidationFailedError(
                f"Bitmap pixels must have shape (height, width, 4), got {shape}",
                field="pixels",
            )
        if arr.dtype != np.uint8:
            raise ValidationFailedError(
                f"Bitmap pixels must be uint8, got {arr.dtype}", field="pixels"
            )

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), matching PIL's Image.size."""
        return self.width, self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def blank(cls, width: int, height: int) -> "Bitmap":
        """Fully transparent bitmap."""
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def from_rgba_bytes(cls, width: int, height: int, data: bytes) -> "Bitmap":
        """
        Build a bitmap from a raw RGBA8 buffer.

        Raises:
            ValidationFailedError: If len(data) != width * height * 4
        """
        expected = width * height * 4
        if width < 0 or height < 0 or len(data) != expected:
            raise ValidationFailedError(
                f"RGBA buffer length {len(data)} does not match {width}x{height}x4={expected}",
                field="data",
            )
        arr = np.frombuffer(data, dtype=np.uint8).reshape((height, width, 4)).copy()
        return cls(arr)

    @classmethod
    def from_pil(cls, img: Image.Image) -> "Bitmap":
        return cls(np.array(img.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def from_png_bytes(cls, data: bytes) -> "Bitmap":
        try:
            with Image.open(io.BytesIO(data)) as img:
                return cls.from_pil(img)
        except (OSError, ValueError) as e:
            raise ValidationFailedError(f"Failed to decode image: {e}", field="data") from e

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def to_png_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.to_pil().save(buffer, format="PNG")
        return buffer.getvalue()

    def to_rgba_bytes(self) -> bytes:
        return self.pixels.tobytes()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def crop_rows(self, top: int, bottom: int) -> "Bitmap":
        """Rows [top, bottom) as a new bitmap."""
        top = max(0, min(top, self.height))
        bottom = max(top, min(bottom, self.height))
        return Bitmap(self.pixels[top:bottom].copy())

    def crop(self, region: CropRegion) -> "Bitmap":
        region = CropRegion.clamped(
            region.x, region.y, region.width, region.height, self.width, self.height
        )
        if not region.is_valid():
            raise ValidationFailedError(
                f"Invalid crop region: x={region.x}, y={region.y}, w={region.width}, "
                f"h={region.height} (image: {self.width}x{self.height})",
                field="region",
            )
        block = self.pixels[region.y:region.y + region.height, region.x:region.x + region.width]
        return Bitmap(block.copy())

    def same_size(self, other: "Bitmap") -> bool:
        return self.size == other.size

    def __eq__(self, other):
        if not isinstance(other, Bitmap):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __repr__(self):
        return f"Bitmap({self.width}x{self.height})"
