"""
Processing Pipeline
===================
Per-image flow shared by preview and export:

    decode -> surface at native resolution -> noise -> watermark -> encode

Export runs every image independently and packs the results into one
archive. It is all-or-nothing: if any image fails to decode or encode,
no archive is produced.
"""

import io
import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Iterable, Optional, Tuple

import numpy as np
from PIL import Image, ImageOps

from .archive import build_archive
from .errors import DecodeError, EncodeError, ExportError
from .items import ImageItem
from .noise import apply_noise
from .options import WatermarkOptions
from .surface import RasterSurface
from .watermark import TextWatermarker

logger = logging.getLogger(__name__)

# MIME type -> Pillow format
MIME_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/pjpeg": "JPEG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
    "image/bmp": "BMP",
    "image/x-ms-bmp": "BMP",
    "image/tiff": "TIFF",
}

# Formats without an alpha channel are flattened onto white
_OPAQUE_FORMATS = {"JPEG", "BMP"}


def decode_image(item: ImageItem) -> Image.Image:
    """
    Decode an item's bytes into an upright image.

    Args:
        item: Source image item.

    Returns:
        Fully loaded PIL Image with EXIF orientation applied.

    Raises:
        DecodeError: If the bytes are not a readable image.
    """
    try:
        image = Image.open(io.BytesIO(item.data))
        image.load()
        # Phone cameras store rotation as EXIF metadata instead of rotating pixels
        return ImageOps.exif_transpose(image)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeError(item.name, str(e)) from e


def fit_display_size(
        image_width: float,
        image_height: float,
        container_width: float,
        container_height: float
) -> Tuple[float, float]:
    """
    Compute the on-screen size of an image inside a container.

    Fits the width first and falls back to fitting the height if the
    result is too tall. The aspect ratio is always preserved.

    Returns:
        (display_width, display_height)
    """
    aspect_ratio = image_width / image_height

    display_width = container_width
    display_height = container_width / aspect_ratio

    if display_height > container_height:
        display_height = container_height
        display_width = container_height * aspect_ratio

    return display_width, display_height


def render_item(
        item: ImageItem,
        options: WatermarkOptions,
        watermarker: Optional[TextWatermarker] = None,
        surface: Optional[RasterSurface] = None,
        rng: Optional[np.random.Generator] = None
) -> RasterSurface:
    """
    Render one watermarked image.

    Args:
        item: Source image item.
        options: Watermark settings.
        watermarker: Optional watermarker (for font cache reuse).
        surface: Optional surface to draw into. It is cleared and sized
                 to the image's native resolution first.
        rng: Optional random generator for the noise step.

    Returns:
        The rendered surface.

    Raises:
        DecodeError: If the item cannot be decoded.
    """
    image = decode_image(item)

    if surface is None:
        surface = RasterSurface(image.width, image.height)
    elif surface.size == image.size:
        surface.clear()
    else:
        surface.resize(image.width, image.height)

    surface.draw_image(image)
    image.close()

    apply_noise(surface, options.noise_level, rng=rng)
    (watermarker or TextWatermarker()).apply(surface, options)

    return surface


def encode_surface(surface: RasterSurface, mime_type: str) -> bytes:
    """
    Re-encode a surface at maximum quality.

    MIME types Pillow cannot write fall back to PNG.

    Args:
        surface: Rendered surface.
        mime_type: Target MIME type, normally the source item's.

    Returns:
        Encoded image bytes.

    Raises:
        EncodeError: If encoding fails.
    """
    image_format = MIME_FORMATS.get(mime_type.lower(), "PNG")
    image = surface.to_image()

    save_kwargs = {}
    if image_format in _OPAQUE_FORMATS:
        # Convert RGBA to RGB for formats without alpha
        flattened = Image.new("RGB", image.size, (255, 255, 255))
        flattened.paste(image, mask=image.getchannel("A"))
        image = flattened
    if image_format == "JPEG":
        save_kwargs = {"quality": 100, "subsampling": 0}
    elif image_format == "WEBP":
        save_kwargs = {"lossless": True, "quality": 100}

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=image_format, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Failed to encode image as {mime_type}: {e}") from e

    return buffer.getvalue()


def process_item(
        item: ImageItem,
        options: WatermarkOptions,
        watermarker: Optional[TextWatermarker] = None
) -> Tuple[str, bytes]:
    """Render and re-encode one item. Returns (filename, encoded bytes)."""
    surface = render_item(item, options, watermarker=watermarker)
    return item.name, encode_surface(surface, item.mime_type)


def export_archive(
        items: Iterable[ImageItem],
        options: WatermarkOptions,
        max_workers: Optional[int] = None,
        on_item_done: Optional[Callable[[str], None]] = None
) -> bytes:
    """
    Watermark every item and pack the results into one zip archive.

    Items are processed concurrently, each on its own surface. The
    archive is only built once every item has finished.

    Args:
        items: Items to export, in archive order.
        options: Settings snapshot applied to every item.
        max_workers: Thread pool size (default: executor's default).
        on_item_done: Optional callback with the filename of each
                      finished item (called from worker threads).

    Returns:
        Archive bytes with one entry per item, named after the source file.

    Raises:
        ExportError: If there is nothing to export or any item fails.
    """
    items = list(items)
    if not items:
        raise ExportError("No images to export")

    def task(item: ImageItem) -> Tuple[str, bytes]:
        # One watermarker per task: font objects are not shared across threads
        result = process_item(item, options, TextWatermarker())
        if on_item_done is not None:
            on_item_done(item.name)
        return result

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(task, item) for item in items]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        for future in futures:
            if future in done and future.exception() is not None:
                for other in pending:
                    other.cancel()
                error = future.exception()
                logger.error("Export aborted: %s", error)
                raise ExportError(str(error)) from error

    entries = [future.result() for future in futures]
    logger.info("Packing %d images into archive", len(entries))
    return build_archive(entries)
