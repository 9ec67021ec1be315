"""Image export utilities for rendered images.

Supported formats:
    - PPM (plain-text ``P3``, the reference output format)
    - PNG (8-bit RGB via Pillow)

All writers take an already tone-mapped uint8 image of shape
(height, width, 3), row 0 at the top, as produced by ``resolve_pixels`` or
``ProgressiveRenderer.get_image_uint8``.

Example:
    >>> from src.pathtracer.preview.export import save_image
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(800, 600)
    >>> renderer.render(100)
    >>> save_image(renderer.get_image_uint8(), "out.ppm")
"""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

PPM_SUFFIXES = {".ppm"}


def _check_image(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    array = np.asarray(image)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {array.shape}")
    if array.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got {array.dtype}")
    return array


def format_ppm(image: npt.ArrayLike) -> str:
    """Format an image as plain-text PPM.

    The layout is ``P3 <width> <height>``, ``255``, then one line per row,
    top row first, each pixel written as ``"r g b "``.
    """
    array = _check_image(image)
    height, width, _ = array.shape

    lines = [f"P3 {width} {height}", "255"]
    for row in array:
        lines.append("".join(f"{r} {g} {b} " for r, g, b in row.tolist()))
    return "\n".join(lines) + "\n"


def write_ppm(image: npt.ArrayLike, filepath: str | PathLike[str]) -> None:
    """Write an image as a plain-text PPM file.

    Args:
        image: uint8 image of shape (height, width, 3).
        filepath: Output file path.
    """
    text = format_ppm(image)
    Path(filepath).write_text(text, encoding="ascii")
    logger.info(f"Wrote {filepath}")


def save_png(image: npt.ArrayLike, filepath: str | PathLike[str]) -> None:
    """Save an image as an 8-bit RGB PNG file.

    Args:
        image: uint8 image of shape (height, width, 3).
        filepath: Output file path (should end in .png).
    """
    array = _check_image(image)
    pil_image = PILImage.fromarray(array)
    pil_image.save(filepath)
    logger.info(f"Wrote {filepath}")


def save_image(image: npt.ArrayLike, filepath: str | PathLike[str]) -> None:
    """Save an image, choosing PPM or a Pillow format from the file suffix."""
    if Path(filepath).suffix.lower() in PPM_SUFFIXES:
        write_ppm(image, filepath)
    else:
        save_png(image, filepath)
