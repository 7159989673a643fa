"""
Watermark Options
=================
Immutable configuration shared by every image of a render pass.

Technical Notes:
- Colors are CSS-style strings (hex or named) parsed with PIL.ImageColor
- Opacity and noise level are fractions in [0, 1]
- Options are replaced, never mutated: use WatermarkOptions.replace()
"""

from dataclasses import dataclass, replace as dataclass_replace
from enum import Enum
from typing import Tuple

from PIL import ImageColor


class WatermarkPosition(Enum):
    """Nine symbolic anchors, declared row by row (top row first)."""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    CENTER_LEFT = "center-left"
    CENTER = "center"
    CENTER_RIGHT = "center-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


def parse_color(color: str) -> Tuple[int, int, int, int]:
    """
    Parse a CSS-style color string.

    Args:
        color: Hex ("#fff", "#ffffff", "#ffffff80") or named color ("red").

    Returns:
        (r, g, b, a) tuple with components in 0-255.

    Raises:
        ValueError: If the color cannot be parsed.
    """
    if not isinstance(color, str) or not color.strip():
        raise ValueError(f"Invalid color: {color!r}")

    rgb = ImageColor.getrgb(color.strip())
    if len(rgb) == 3:
        return (*rgb, 255)
    return tuple(rgb)


@dataclass(frozen=True)
class WatermarkOptions:
    """
    Watermark settings for one render pass.

    Attributes:
        text: Watermark text, may be empty (draws nothing).
        font_size: Font size in pixels, must be positive.
        color: CSS-style color string.
        opacity: Paint alpha for the text, 0 = invisible, 1 = opaque.
        position: Anchor position on the image.
        noise_level: Luminance jitter intensity, 0 = no noise.
    """
    text: str = "Bản quyền © 2024"
    font_size: float = 48
    color: str = "#ffffff"
    opacity: float = 0.5
    position: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT
    noise_level: float = 0.0

    def __post_init__(self):
        if not isinstance(self.position, WatermarkPosition):
            # Accept the string identifiers ("top-left", ...) as well
            object.__setattr__(self, "position", WatermarkPosition(self.position))

        if self.font_size <= 0:
            raise ValueError(f"Font size must be positive, got {self.font_size}")

        if not 0 <= self.opacity <= 1:
            raise ValueError(f"Opacity must be between 0 and 1, got {self.opacity}")

        if not 0 <= self.noise_level <= 1:
            raise ValueError(f"Noise level must be between 0 and 1, got {self.noise_level}")

        parse_color(self.color)

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        """The parsed text color."""
        return parse_color(self.color)

    def replace(self, **changes) -> "WatermarkOptions":
        """Return a copy with the given fields changed (validated again)."""
        return dataclass_replace(self, **changes)


DEFAULT_OPTIONS = WatermarkOptions()
