"""
Noise Compositor
================
Adds uniform per-pixel luminance jitter to a raster surface.

Each of R, G and B gets its own sample: value += (U - 0.5) * amount * 255,
U uniform in [0, 1). Alpha is left alone. The result is written back
unclamped; the surface saturates it to the byte range on write.
"""

from typing import Optional

import numpy as np

from .surface import RasterSurface


def apply_noise(
        surface: RasterSurface,
        amount: float,
        rng: Optional[np.random.Generator] = None
) -> None:
    """
    Apply random noise to the surface in place.

    Args:
        surface: Surface to modify.
        amount: Noise intensity in [0, 1]. 0 leaves the surface untouched.
        rng: Optional random generator. A fresh unseeded one is used if None.

    Raises:
        ValueError: If amount is outside [0, 1].
    """
    if amount == 0:
        return

    if not 0 < amount <= 1:
        raise ValueError(f"Noise amount must be between 0 and 1, got {amount}")

    if rng is None:
        rng = np.random.default_rng()

    data = surface.get_image_data()
    intensity = amount * 255

    height, width = data.shape[:2]
    jitter = (rng.random((height, width, 3), dtype=np.float32) - 0.5) * intensity
    data[..., :3] += jitter

    surface.put_image_data(data)
