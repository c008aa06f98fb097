"""Ready-made scenes.

Each factory fills the global scene fields through a fresh SceneManager and
returns it together with a ThinLensCamera framed for that scene:

- ``showcase``: three spheres on a large ground sphere, one per material,
  with the glass sphere built as a hollow shell (an inner sphere with
  negative radius).
- ``random``: the classic cover scene, a field of small randomly placed
  spheres around three large ones, reproducible from a seed.
- ``benchmark``: a stack of overlapping glass spheres in front of a fuzzy
  metal sphere, all inside a large metal sphere. Every path bounces until
  it is absorbed or runs out of depth, so it stresses the estimator and
  renders black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_scene("showcase", aspect_ratio=16 / 9)
    >>> setup_camera(camera)
"""

import logging
import math
from collections.abc import Callable

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

SceneFactory = Callable[..., tuple[SceneManager, ThinLensCamera]]

# =============================================================================
# Material Showcase
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
DIFFUSE_ALBEDO = (0.1, 0.2, 0.5)
METAL_ALBEDO = (0.8, 0.6, 0.2)
GLASS_REFRACTIVE_INDEX = 1.5


def create_material_showcase_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a small scene showing each material side by side.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    diffuse = scene.add_lambertian_material(albedo=DIFFUSE_ALBEDO)
    glass = scene.add_dielectric_material(refractive_index=GLASS_REFRACTIVE_INDEX)
    metal = scene.add_metal_material(albedo=METAL_ALBEDO, fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, diffuse)
    # Hollow glass: the inner sphere's negative radius flips its normals
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=math.dist(lookfrom, lookat),
    )

    logger.info("Built showcase scene with %d spheres", scene.get_sphere_count())
    return scene, camera


# =============================================================================
# Random Cover Scene
# =============================================================================

RANDOM_GRID_EXTENT = 11
SMALL_SPHERE_RADIUS = 0.2


def create_random_scene(
    aspect_ratio: float = 3.0 / 2.0,
    seed: int = 0,
    grid_extent: int = RANDOM_GRID_EXTENT,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random sphere field scene.

    Small spheres sit on a (2 * grid_extent)^2 grid with random offsets:
    80% diffuse, 15% metal, 5% glass. Positions and materials come from
    ``numpy.random.default_rng(seed)``, so a seed always gives the same scene.

    Args:
        aspect_ratio: Image aspect ratio for the camera.
        seed: Seed for scene generation (independent of the render seed).
        grid_extent: Half the number of grid cells along each axis.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    keep_clear = np.array([4.0, SMALL_SPHERE_RADIUS, 0.0])

    for a in range(-grid_extent, grid_extent):
        for b in range(-grid_extent, grid_extent):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_SPHERE_RADIUS, b + 0.9 * rng.random()]
            )
            if np.linalg.norm(center - keep_clear) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                material = scene.add_lambertian_material(albedo=tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                material = scene.add_metal_material(albedo=tuple(albedo.tolist()), fuzz=fuzz)
            else:
                material = scene.add_dielectric_material(refractive_index=1.5)

            scene.add_sphere(tuple(center.tolist()), SMALL_SPHERE_RADIUS, material)

    glass = scene.add_dielectric_material(refractive_index=1.5)
    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)

    diffuse = scene.add_lambertian_material(albedo=(0.4, 0.2, 0.1))
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, diffuse)

    metal = scene.add_metal_material(albedo=(0.7, 0.6, 0.5), fuzz=0.0)
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, metal)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )

    logger.info(
        "Built random scene (seed=%d) with %d spheres", seed, scene.get_sphere_count()
    )
    return scene, camera


# =============================================================================
# Benchmark Scene
# =============================================================================


def create_benchmark_scene(
    aspect_ratio: float = 1.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the glass stack benchmark scene.

    The camera sits at the origin, inside the enclosing metal sphere, looking
    down -z through the glass stack. The enclosing sphere keeps every path
    from reaching the sky, so the rendered image is pure black: the scene is
    for timing the glass and metal scatter paths, not for looking at. Render
    with a small max_depth (around 10) to keep timings comparable.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    glass = scene.add_dielectric_material(refractive_index=1.5)
    dense_glass = scene.add_dielectric_material(refractive_index=2.5)
    gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.1)

    scene.add_sphere((-0.05, 0.05, -1.0), 0.5, glass)
    scene.add_sphere((0.05, 0.05, -2.0), 0.5, dense_glass)
    scene.add_sphere((-0.05, 0.05, -2.0), 0.5, dense_glass)
    scene.add_sphere((0.05, 0.05, -3.0), 0.5, dense_glass)
    scene.add_sphere((0.0, 0.0, -4.0), 0.6, gold)
    scene.add_sphere((0.0, 0.0, 1.0), 10.0, gold)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=40.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )

    logger.info("Built benchmark scene with %d spheres", scene.get_sphere_count())
    return scene, camera


# =============================================================================
# Registry
# =============================================================================

PRESETS: dict[str, SceneFactory] = {
    "showcase": create_material_showcase_scene,
    "random": create_random_scene,
    "benchmark": create_benchmark_scene,
}


def create_scene(
    name: str,
    aspect_ratio: float,
    **kwargs,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build a preset scene by name.

    Args:
        name: One of the keys of PRESETS.
        aspect_ratio: Image aspect ratio for the camera.
        **kwargs: Extra arguments for the factory (e.g. seed for "random").

    Returns:
        A tuple of (SceneManager, ThinLensCamera).

    Raises:
        ValueError: If the preset name is unknown.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene preset {name!r}; choose from {sorted(PRESETS)}"
        ) from None
    return factory(aspect_ratio=aspect_ratio, **kwargs)
