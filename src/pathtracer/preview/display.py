"""Matplotlib-based preview display for rendered images.

This module turns the renderer's linear image into display values and shows
it in a Matplotlib window.

The display pipeline is:
    1. Clamp to [0, 1]
    2. Gamma encode: out = in ** (1 / gamma), gamma 2.0 by default
    3. Clamp to [0, 1]

Example:
    >>> from pathtracer.preview.display import show_preview
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from pathtracer.core.progressive import ProgressiveRenderer

# Default display gamma
DEFAULT_GAMMA = 2.0


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0). Must be positive.

    Returns:
        Gamma encoded image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Process a linear image for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.0).

    Returns:
        Processed image ready for display, in [0, 1] range.
    """
    result = np.clip(image, 0.0, 1.0)
    result = apply_gamma(result, gamma)
    result = np.clip(result, 0.0, 1.0)

    return result.astype(np.float32)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    gamma: float = DEFAULT_GAMMA,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    The sample count is displayed in the title unless a title is given.

    Args:
        renderer: The ProgressiveRenderer instance to display.
        gamma: Gamma correction value (default 2.0).
        title: Custom title (default shows sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    image = renderer.get_image_numpy(gamma=1.0)
    display_image = process_image_for_display(image, gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {renderer.sample_count} SPP"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
