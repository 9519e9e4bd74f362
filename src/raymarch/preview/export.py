"""Image export utilities for rendered frames.

Frames come back from the engine as flat RGBA8 byte arrays in row-major
order with the first row at the top of the image, which is exactly what
Pillow expects.

Example:
    >>> from src.raymarch.preview.export import save_png
    >>> pixels = engine.render()
    >>> save_png(pixels, engine.width, engine.height, "out.png")
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def pixels_to_image(
    pixels: npt.NDArray[np.uint8],
    width: int,
    height: int,
    *,
    alpha: bool = False,
) -> PILImage.Image:
    """Wrap a rendered frame as a Pillow image.

    Args:
        pixels: Flat or (height, width, 4) uint8 RGBA array.
        width: Image width in pixels.
        height: Image height in pixels.
        alpha: Keep the alpha channel (default: drop it, the compute
            program always writes 1.0).

    Returns:
        An RGB (or RGBA) Pillow image holding a copy of the pixels.

    Raises:
        ValueError: If the array size doesn't match width * height * 4.
    """
    expected = width * height * 4
    if pixels.size != expected:
        raise ValueError(f"Expected {expected} bytes for a {width}x{height} frame, got {pixels.size}")

    rgba = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(height, width, 4)
    if alpha:
        return PILImage.fromarray(rgba.copy())
    return PILImage.fromarray(np.ascontiguousarray(rgba[:, :, :3]))


def save_png(
    pixels: npt.NDArray[np.uint8],
    width: int,
    height: int,
    filepath: str | Path,
    *,
    alpha: bool = False,
) -> Path:
    """Save a rendered frame as a PNG file.

    Returns:
        The path written.
    """
    path = Path(filepath)
    pixels_to_image(pixels, width, height, alpha=alpha).save(path, format="PNG")
    return path


def timestamped_filename(prefix: str = "raymarch") -> str:
    """Return a filename like raymarch_YYYYMMDD_HHMMSS.png."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.png"
