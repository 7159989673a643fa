"""
Text Watermark Compositor
=========================
Draws a single semi-transparent line of text at one of nine anchor
positions using PIL/Pillow.

Technical Notes:
- Padding from the image edges is half the font size
- Alignment decides where the text run sits relative to the anchor x,
  the baseline mode where it sits relative to the anchor y
- The surface's global alpha is set to the option opacity while drawing
  and always restored to 1.0 afterwards
- No wrapping: text longer than the image is clipped at the edges
"""

import logging
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

from PIL import ImageFont

from .options import WatermarkOptions, WatermarkPosition
from .surface import Font, RasterSurface

logger = logging.getLogger(__name__)


class Anchor(NamedTuple):
    """Where and how the watermark text is placed."""
    h_align: str  # "left" | "center" | "right"
    v_align: str  # "top" | "middle" | "bottom"
    x: float
    y: float


# position -> (horizontal alignment, vertical alignment)
_ALIGNMENTS = {
    WatermarkPosition.TOP_LEFT: ("left", "top"),
    WatermarkPosition.TOP_CENTER: ("center", "top"),
    WatermarkPosition.TOP_RIGHT: ("right", "top"),
    WatermarkPosition.CENTER_LEFT: ("left", "middle"),
    WatermarkPosition.CENTER: ("center", "middle"),
    WatermarkPosition.CENTER_RIGHT: ("right", "middle"),
    WatermarkPosition.BOTTOM_LEFT: ("left", "bottom"),
    WatermarkPosition.BOTTOM_CENTER: ("center", "bottom"),
    WatermarkPosition.BOTTOM_RIGHT: ("right", "bottom"),
}


def compute_anchor(
        position: WatermarkPosition,
        width: float,
        height: float,
        font_size: float
) -> Anchor:
    """
    Map a symbolic position to an anchor point on a width x height surface.

    Args:
        position: One of the nine watermark positions.
        width: Surface width in pixels.
        height: Surface height in pixels.
        font_size: Font size in pixels (padding is half of it).

    Returns:
        Anchor with alignment modes and the (x, y) reference point.
    """
    h_align, v_align = _ALIGNMENTS[WatermarkPosition(position)]
    padding = font_size * 0.5

    if h_align == "left":
        x = padding
    elif h_align == "center":
        x = width / 2
    else:
        x = width - padding

    if v_align == "top":
        y = padding
    elif v_align == "middle":
        y = height / 2
    else:
        y = height - padding

    return Anchor(h_align, v_align, x, y)


class TextWatermarker:
    """
    Draws watermark text onto raster surfaces.

    The font family is resolved once and then cached per size, so every
    size renders in the same family.
    """

    # Tried in order; the first one that loads is used for all sizes
    FONT_CANDIDATES: Tuple[str, ...] = (
        "arial.ttf",  # Windows
        "/System/Library/Fonts/Supplemental/Arial.ttf",  # macOS
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",  # Linux
        "DejaVuSans.ttf",
    )

    def __init__(self, font_path: Optional[str] = None):
        """
        Initialize the TextWatermarker.

        Args:
            font_path: Optional path to a custom TTF font file.
                      If None, the first available system font is used.
        """
        self._font_path = font_path
        self._resolved_path: Optional[str] = None
        self._use_default_font = False
        self._cached_fonts: dict[float, Font] = {}

    def _resolve_font_path(self, size: float) -> Optional[str]:
        """Find the font file to use, or None for Pillow's built-in font."""
        candidates = list(self.FONT_CANDIDATES)
        if self._font_path and Path(self._font_path).exists():
            candidates.insert(0, self._font_path)

        for candidate in candidates:
            try:
                ImageFont.truetype(candidate, size)
                return candidate
            except OSError:
                continue

        logger.debug("No system font found, using Pillow's default font")
        return None

    def _get_font(self, size: float) -> Font:
        """
        Get or create a cached font object for the given size.

        Args:
            size: Font size in pixels.

        Returns:
            ImageFont object for drawing text.
        """
        if size not in self._cached_fonts:
            if self._resolved_path is None and not self._use_default_font:
                self._resolved_path = self._resolve_font_path(size)
                self._use_default_font = self._resolved_path is None

            if self._use_default_font:
                self._cached_fonts[size] = ImageFont.load_default(size)
            else:
                self._cached_fonts[size] = ImageFont.truetype(self._resolved_path, size)

        return self._cached_fonts[size]

    def apply(self, surface: RasterSurface, options: WatermarkOptions) -> Anchor:
        """
        Draw the watermark text onto the surface in place.

        Args:
            surface: Surface to draw on.
            options: Watermark settings (text, size, color, opacity, position).

        Returns:
            The anchor the text was drawn at.
        """
        anchor = compute_anchor(
            options.position, surface.width, surface.height, options.font_size
        )

        surface.global_alpha = options.opacity
        try:
            font = self._get_font(options.font_size)
            surface.fill_text(
                options.text,
                anchor.x,
                anchor.y,
                font=font,
                fill=options.rgba,
                align=anchor.h_align,
                baseline=anchor.v_align
            )
        finally:
            surface.global_alpha = 1.0

        return anchor


_default_watermarker: Optional[TextWatermarker] = None


def apply_watermark(surface: RasterSurface, options: WatermarkOptions) -> Anchor:
    """Convenience function using a shared TextWatermarker."""
    global _default_watermarker
    if _default_watermarker is None:
        _default_watermarker = TextWatermarker()
    return _default_watermarker.apply(surface, options)
