"""
Core Module - Pure Algorithm Logic
==================================
This module contains no UI dependencies.
All image processing (noise, text watermark, encoding, packaging)
is implemented here.
"""

from .archive import ARCHIVE_NAME, build_archive
from .errors import DecodeError, EncodeError, ExportError, SurfaceError, WatermarkError
from .items import ImageCollection, ImageItem
from .noise import apply_noise
from .options import DEFAULT_OPTIONS, WatermarkOptions, WatermarkPosition, parse_color
from .pipeline import (
    decode_image, encode_surface, export_archive, fit_display_size,
    process_item, render_item
)
from .surface import RasterSurface
from .watermark import Anchor, TextWatermarker, apply_watermark, compute_anchor

__all__ = [
    # Data model
    "WatermarkOptions",
    "WatermarkPosition",
    "DEFAULT_OPTIONS",
    "parse_color",
    "ImageItem",
    "ImageCollection",

    # Compositing
    "RasterSurface",
    "apply_noise",
    "Anchor",
    "TextWatermarker",
    "apply_watermark",
    "compute_anchor",

    # Pipeline
    "decode_image",
    "encode_surface",
    "export_archive",
    "fit_display_size",
    "process_item",
    "render_item",
    "ARCHIVE_NAME",
    "build_archive",

    # Errors
    "WatermarkError",
    "DecodeError",
    "EncodeError",
    "ExportError",
    "SurfaceError",
]
