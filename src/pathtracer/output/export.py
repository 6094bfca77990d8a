"""Image export for rendered 8-bit images.

Supported formats:
    - PPM (plain-text P3, written directly)
    - PNG and anything else Pillow can encode, chosen by file extension

All functions take a uint8 array of shape (height, width, 3) with row 0 at
the top, as returned by the renderer. Write failures raise OSError.

Example:
    >>> from pathtracer.output.export import save_image
    >>> image = renderer.render()
    >>> save_image(image, "image.ppm")
    >>> save_image(image, "image.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def _check_image(image: npt.NDArray[np.uint8]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {image.shape}")


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Format an image as plain-text PPM.

    The output is the header ``P3``, ``<width> <height>``, ``255``, followed
    by one line per image row of space-separated ``r g b`` triples.

    Args:
        image: uint8 array of shape (height, width, 3).

    Returns:
        The PPM document, ending with a newline.
    """
    _check_image(image)
    height, width, _ = image.shape

    lines = ["P3", f"{width} {height}", "255"]
    for row in image.astype(np.int64):
        lines.append(" ".join(f"{r} {g} {b}" for r, g, b in row))
    return "\n".join(lines) + "\n"


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image as plain-text PPM."""
    Path(filepath).write_text(format_ppm(image), encoding="ascii")


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image through Pillow (PNG, or any format its extension names)."""
    _check_image(image)
    pil_image = PILImage.fromarray(np.ascontiguousarray(image, dtype=np.uint8))
    pil_image.save(filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an image, choosing the encoder by file extension.

    ``.ppm`` files are written as plain-text P3; every other extension is
    handed to Pillow.

    Raises:
        OSError: If the file cannot be written.
        ValueError: If Pillow does not recognize the extension.
    """
    path = Path(filepath)
    if path.suffix.lower() == ".ppm":
        save_ppm(image, path)
    else:
        save_png(image, path)
    logger.info("Wrote %s", path)
