"""Preview module for output and visualization.

Components:
    display: Gamma correction and Matplotlib-based preview display
    export: 8-bit quantization, PPM and Pillow image export, test pattern

Example:
    >>> from pathtracer.preview import show_preview
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> show_preview(renderer)
    >>> renderer.save_image("output.ppm", gamma=2.0)
"""

from pathtracer.preview.display import (
    DEFAULT_GAMMA,
    apply_gamma,
    process_image_for_display,
    show_preview,
)
from pathtracer.preview.export import (
    encode_ppm,
    gradient_test_pattern,
    image_to_uint8,
    quantize,
    save_image_array,
    write_ppm,
)

__all__ = [
    "DEFAULT_GAMMA",
    "apply_gamma",
    "process_image_for_display",
    "show_preview",
    "quantize",
    "image_to_uint8",
    "encode_ppm",
    "write_ppm",
    "save_image_array",
    "gradient_test_pattern",
]
