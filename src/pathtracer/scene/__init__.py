"""Scene module for scene management and hit records.

Components:
    intersection: Sphere storage and the nearest-hit scene query
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes (showcase, random, benchmark)
    loader: JSON scene files (import from pathtracer.scene.loader directly)

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .presets import (
    PRESETS,
    create_benchmark_scene,
    create_material_showcase_scene,
    create_random_scene,
    create_scene,
)

# Note: loader is NOT imported here. It depends on core.settings, which
# imports the integrator, which in turn imports this package.

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets
    "PRESETS",
    "create_scene",
    "create_material_showcase_scene",
    "create_random_scene",
    "create_benchmark_scene",
]
