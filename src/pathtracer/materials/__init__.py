"""Materials module for surface scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection blurred by a fuzz radius
    dielectric: Glass-like refraction with Schlick reflectance

Each material keeps its parameters in a registry of Taichi fields and
exposes a scatter function that takes and returns the random stream state.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_material_count,
    get_dielectric_refractive_index,
    refraction_ratio_for,
    scatter_dielectric,
    scatter_dielectric_by_id,
    total_internal_reflection,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_refractive_index",
    "refraction_ratio_for",
    "fresnel_reflectance",
    "total_internal_reflection",
]
