"""JSON scene files.

A scene file holds everything needed for one render:

    {
        "render": {"width": 400, "height": 225, "samples_per_pixel": 100,
                   "max_depth": 50, "gamma": 2.0, "seed": 0},
        "camera": {"lookfrom": [3, 3, 2], "lookat": [0, 0, -1],
                   "vup": [0, 1, 0], "vfov": 20, "aperture": 0.1,
                   "focus_dist": 5.2},
        "materials": [{"type": "lambertian", "albedo": [0.8, 0.8, 0.0]},
                      {"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.1},
                      {"type": "dielectric", "refractive_index": 1.5}],
        "spheres": [{"center": [0, -100.5, -1], "radius": 100, "material_id": 0}]
    }

Spheres refer to materials by their position in the "materials" list. Every
section is optional; missing values take the dataclass defaults. When the
camera has no "aspect_ratio" it is taken from the render width and height.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.loader import load_scene_file
    >>> loaded = load_scene_file("scenes/showcase.json")
    >>> loaded.scene.get_sphere_count()
    5
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.core.settings import RenderSettings
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

SCENE_FILE_KEYS = frozenset({"render", "camera", "materials", "spheres"})


@dataclass
class LoadedScene:
    """Result of loading a scene file.

    Attributes:
        scene: The SceneManager holding the loaded spheres and materials.
        camera: The camera described by the file.
        settings: The render settings described by the file.
    """

    scene: SceneManager
    camera: ThinLensCamera
    settings: RenderSettings


def scene_from_dict(data: dict[str, Any]) -> LoadedScene:
    """Build a scene, camera and settings from a scene file dictionary.

    Raises:
        ValueError: If the dictionary has unknown sections or invalid values.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Scene file must contain a JSON object, got {type(data).__name__}")
    unknown = set(data) - SCENE_FILE_KEYS
    if unknown:
        raise ValueError(f"Unknown scene file sections: {sorted(unknown)}")

    settings = RenderSettings.from_dict(data.get("render", {}))

    camera_data = dict(data.get("camera", {}))
    camera_data.setdefault("aspect_ratio", settings.aspect_ratio)
    camera = ThinLensCamera.from_dict(camera_data)

    scene = SceneManager()
    scene.from_dict({"materials": data.get("materials", []), "spheres": data.get("spheres", [])})

    return LoadedScene(scene=scene, camera=camera, settings=settings)


def scene_to_dict(
    scene: SceneManager,
    camera: ThinLensCamera,
    settings: RenderSettings,
) -> dict[str, Any]:
    """Export a scene, camera and settings to a scene file dictionary."""
    return {
        "render": settings.to_dict(),
        "camera": camera.to_dict(),
        **scene.to_dict(),
    }


def load_scene_file(filepath: str | Path) -> LoadedScene:
    """Load a JSON scene file.

    Args:
        filepath: Path to the JSON file.

    Returns:
        The loaded scene, camera and settings.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    path = Path(filepath)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in scene file {path}: {e}") from e

    loaded = scene_from_dict(data)
    logger.info(
        "Loaded scene file %s (%d spheres, %d materials)",
        path,
        loaded.scene.get_sphere_count(),
        loaded.scene.get_material_count(),
    )
    return loaded


def save_scene_file(
    filepath: str | Path,
    scene: SceneManager,
    camera: ThinLensCamera,
    settings: RenderSettings,
) -> None:
    """Write a scene, camera and settings to a JSON scene file."""
    path = Path(filepath)
    path.write_text(
        json.dumps(scene_to_dict(scene, camera, settings), indent=2) + "\n",
        encoding="utf-8",
    )
    logger.info("Saved scene file %s", path)
