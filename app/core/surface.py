"""
Raster Surface
==============
A mutable RGBA pixel grid with a small 2D drawing API on top of Pillow.

Technical Notes:
- Mirrors the semantics of a 2D canvas context: a global paint alpha,
  source-over compositing, text alignment and baseline modes
- Pixel data is read as a float array and written back with saturation
  (round, then clip to 0-255), so filters never clamp themselves
- Text anchors map to Pillow anchors: left/center/right -> l/m/r,
  top/middle/bottom -> a/m/d (ascender, middle, descender)
"""

import re
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .errors import SurfaceError

Color = Tuple[int, int, int, int]
Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

_HORIZONTAL_ANCHORS = {"left": "l", "center": "m", "right": "r"}
_VERTICAL_ANCHORS = {"top": "a", "middle": "m", "bottom": "d"}

# Text drawing collapses line breaks and tabs to spaces (single-line only)
_WHITESPACE_RE = re.compile(r"[\t\n\f\r]")


class RasterSurface:
    """
    An in-memory RGBA drawing surface.

    The surface starts fully transparent. All draw operations are
    composited with the current global_alpha.
    """

    def __init__(self, width: int, height: int):
        """
        Allocate a transparent surface.

        Args:
            width: Width in pixels.
            height: Height in pixels.

        Raises:
            SurfaceError: If the dimensions are not positive.
        """
        self._image = self._allocate(width, height)
        self._global_alpha = 1.0

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterSurface":
        """Create a surface at the image's native resolution with the image drawn in."""
        surface = cls(image.width, image.height)
        surface.draw_image(image)
        return surface

    @staticmethod
    def _allocate(width: int, height: int) -> Image.Image:
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Could not allocate a {width}x{height} surface")
        return Image.new("RGBA", (width, height), (0, 0, 0, 0))

    # ===== Geometry =====

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    def resize(self, width: int, height: int):
        """Set new pixel dimensions. Like a canvas, this clears the surface."""
        self._image = self._allocate(width, height)

    def clear(self):
        """Reset every pixel to transparent black."""
        self._image = self._allocate(self.width, self.height)

    # ===== Paint state =====

    @property
    def global_alpha(self) -> float:
        return self._global_alpha

    @global_alpha.setter
    def global_alpha(self, value: float):
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Global alpha must be between 0 and 1, got {value}")
        self._global_alpha = value

    def _apply_global_alpha(self, layer: Image.Image) -> Image.Image:
        if self._global_alpha >= 1.0:
            return layer
        alpha = self._global_alpha
        layer.putalpha(layer.getchannel("A").point(lambda v: int(v * alpha + 0.5)))
        return layer

    # ===== Drawing =====

    def draw_image(self, image: Image.Image, x: int = 0, y: int = 0):
        """Composite an image onto the surface with its top-left at (x, y)."""
        layer = Image.new("RGBA", self.size, (0, 0, 0, 0))
        source = image if image.mode == "RGBA" else image.convert("RGBA")
        layer.paste(source, (int(x), int(y)))
        self._image = Image.alpha_composite(self._image, self._apply_global_alpha(layer))

    def fill_text(
            self,
            text: str,
            x: float,
            y: float,
            font: Font,
            fill: Color,
            align: str = "left",
            baseline: str = "top"
    ):
        """
        Fill a single run of text.

        Args:
            text: Text to draw. Empty text draws nothing.
            x: Horizontal reference point.
            y: Vertical reference point.
            font: Pillow font object.
            fill: (r, g, b, a) fill color.
            align: "left", "center" or "right" - where x sits on the run.
            baseline: "top", "middle" or "bottom" - where y sits on the run.

        Raises:
            ValueError: On an unknown align or baseline mode.
        """
        if align not in _HORIZONTAL_ANCHORS:
            raise ValueError(f"Unknown text align: {align}")
        if baseline not in _VERTICAL_ANCHORS:
            raise ValueError(f"Unknown text baseline: {baseline}")

        text = _WHITESPACE_RE.sub(" ", text)
        if not text:
            return

        anchor = _HORIZONTAL_ANCHORS[align] + _VERTICAL_ANCHORS[baseline]

        layer = Image.new("RGBA", self.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        draw.text((x, y), text, font=font, fill=tuple(fill), anchor=anchor)

        self._image = Image.alpha_composite(self._image, self._apply_global_alpha(layer))

    # ===== Pixel access =====

    def get_image_data(self) -> np.ndarray:
        """Return a float32 copy of the pixels, shape (height, width, 4)."""
        return np.asarray(self._image, dtype=np.float32).copy()

    def put_image_data(self, data: np.ndarray):
        """
        Write pixels back to the surface.

        Values are rounded and saturated to 0-255 before storing.

        Args:
            data: Array of shape (height, width, 4), any numeric dtype.

        Raises:
            ValueError: If the array shape doesn't match the surface.
        """
        data = np.asarray(data)
        expected = (self.height, self.width, 4)
        if data.shape != expected:
            raise ValueError(f"Pixel data shape {data.shape} does not match surface {expected}")

        pixels = np.clip(np.rint(data), 0, 255).astype(np.uint8)
        self._image = Image.fromarray(pixels)

    def to_image(self) -> Image.Image:
        """Return a copy of the surface as an RGBA image."""
        return self._image.copy()
