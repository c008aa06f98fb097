"""Image export utilities for rendered images.

This module converts linear images to 8-bit pixels and writes them to disk.

Supported formats:
    - PPM (binary P6, written directly)
    - PNG and any other format Pillow recognizes by suffix

The PPM header is exactly "P6 <width> <height> 255 " (single spaces, one
trailing space) followed by width * height RGB byte triplets, rows top to
bottom and left to right.

Quantization maps a channel c in [0, 1] to int(255.999 * c), so 0.5 becomes
127 and 1.0 becomes 255.

Example:
    >>> import numpy as np
    >>> from pathtracer.preview.export import save_image_array
    >>>
    >>> image = np.full((225, 400, 3), 0.25, dtype=np.float32)
    >>> save_image_array(image, "output.ppm", gamma=2.0)
"""

from __future__ import annotations

import logging
from pathlib import Path
import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.display import DEFAULT_GAMMA, process_image_for_display

logger = logging.getLogger(__name__)

PPM_SUFFIXES = (".ppm",)


def quantize(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert values in [0, 1] to bytes with int(255.999 * c).

    Values outside [0, 1] are clamped first.
    """
    clamped = np.clip(image.astype(np.float64), 0.0, 1.0)
    return (255.999 * clamped).astype(np.uint8)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    return quantize(process_image_for_display(image, gamma=gamma))


def encode_ppm(pixels: npt.NDArray[np.uint8]) -> bytes:
    """Encode an 8-bit RGB image as binary PPM (P6).

    Args:
        pixels: Array of shape (H, W, 3) with dtype uint8, top row first.

    Returns:
        The complete file contents.

    Raises:
        ValueError: If the array is not (H, W, 3) uint8.
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3 or pixels.dtype != np.uint8:
        raise ValueError(
            f"Expected a (height, width, 3) uint8 array, got {pixels.shape} {pixels.dtype}"
        )
    height, width = pixels.shape[:2]
    header = f"P6 {width} {height} 255 ".encode("ascii")
    return header + np.ascontiguousarray(pixels).tobytes()


def write_ppm(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit RGB image as binary PPM (P6)."""
    data = encode_ppm(pixels)
    with open(filepath, "wb") as f:
        f.write(data)


def save_image_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image, choosing the format from the file suffix.

    ".ppm" files are written as binary PPM; anything else goes through
    Pillow, which raises ValueError for suffixes it does not recognize.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path.
        gamma: Gamma correction value (default 2.0).
    """
    path = Path(filepath)
    pixels = image_to_uint8(image, gamma=gamma)

    if path.suffix.lower() in PPM_SUFFIXES:
        write_ppm(pixels, path)
    else:
        PILImage.fromarray(pixels).save(path)

    logger.info("Saved %dx%d image to %s", pixels.shape[1], pixels.shape[0], path)


def gradient_test_pattern(width: int, height: int) -> npt.NDArray[np.float32]:
    """Build a gradient image for checking the writers without rendering.

    Red grows left to right (i / (width - 1)), green grows bottom to top
    (j / (height - 1)) and blue is 0.25 everywhere.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Linear image of shape (height, width, 3), top row first.

    Raises:
        ValueError: If a dimension is below 1.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    red = np.arange(width, dtype=np.float64) / max(width - 1, 1)
    # Top row is j = height - 1
    green = np.arange(height - 1, -1, -1, dtype=np.float64) / max(height - 1, 1)

    image = np.empty((height, width, 3), dtype=np.float32)
    image[:, :, 0] = red[np.newaxis, :]
    image[:, :, 1] = green[:, np.newaxis]
    image[:, :, 2] = 0.25
    return image
