"""Render settings shared by the renderer, scene files and the command line.

Example:
    >>> from pathtracer.core.settings import RenderSettings
    >>> settings = RenderSettings(width=400, height=225, samples_per_pixel=64)
    >>> settings.aspect_ratio
    1.7777777777777777
"""

from dataclasses import asdict, dataclass
from typing import Any

from pathtracer.core.integrator import MAX_DEPTH, MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH


@dataclass
class RenderSettings:
    """Image size and sampling parameters for one render.

    Attributes:
        width: Image width in pixels, 1 to MAX_IMAGE_WIDTH.
        height: Image height in pixels, 1 to MAX_IMAGE_HEIGHT.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per path.
        gamma: Display gamma applied on output as color ** (1 / gamma).
        seed: Render-wide random seed. Equal seeds give identical images.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    gamma: float = 2.0
    seed: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 1 <= self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.gamma <= 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary, using defaults for missing keys.

        Raises:
            ValueError: If a key is unknown or a value is invalid.
        """
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown render settings: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Export the settings to a JSON-friendly dictionary."""
        return asdict(self)

    def replace(self, **overrides: Any) -> "RenderSettings":
        """Return a copy with the given fields replaced.

        Fields whose override is None keep their current value, which lets
        optional command-line flags be passed straight through.
        """
        values = self.to_dict()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return RenderSettings(**values)
