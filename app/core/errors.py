"""
Core Exceptions
===============
Error types raised by the processing pipeline.

All of them derive from WatermarkError so the workers can report any
pipeline failure through a single except clause.
"""


class WatermarkError(Exception):
    """Base class for all watermark pipeline errors."""


class DecodeError(WatermarkError):
    """Raised when an image item cannot be decoded."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        message = f"Failed to load image: {name}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class EncodeError(WatermarkError):
    """Raised when a surface cannot be re-encoded to image bytes."""


class SurfaceError(WatermarkError):
    """Raised when a raster surface cannot be acquired."""


class ExportError(WatermarkError):
    """Raised when a batch export fails as a whole."""
