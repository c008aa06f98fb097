"""Dielectric (glass/water) material implementation.

This module implements transparent materials such as glass and water, which
both reflect and refract light.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when refraction_ratio * sin(theta) > 1

When refraction is possible the material picks reflection with probability
equal to the Schlick reflectance and refraction otherwise. Under total
internal reflection no random number is drawn.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, state = scatter_dielectric(
    >>> #     refractive_index, incident_dir, normal, front_face, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect, refract, schlick_reflectance, unit_vector
from pathtracer.core.rng import random_f32
from pathtracer.geometry.sphere import Face

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio_for(refractive_index: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio of refractive indices n_incident / n_transmitted.

    Args:
        refractive_index: Index of refraction of the material.
        front_face: Face.OUTSIDE when entering the material from outside,
            Face.INSIDE when leaving it.

    Returns:
        refractive_index when inside, 1 / refractive_index when outside.
    """
    ratio = 1.0 / refractive_index
    if front_face == int(Face.INSIDE):
        ratio = refractive_index
    return ratio


@ti.func
def scatter_dielectric(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal, opposing the incoming ray (unit length).
        front_face: Face.OUTSIDE (1) or Face.INSIDE (0).
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, state) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White; clear glass absorbs nothing.
        - state: The advanced random stream state. Unchanged under total
          internal reflection.

    Note:
        A refractive index of 1 makes refract() the identity, but Schlick's
        reflectance (1 - cos)^5 is still nonzero away from normal incidence,
        so oblique rays are sometimes mirrored. Only at normal incidence does
        the ray always pass through unchanged.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio_for(refractive_index, front_face)
    unit_direction = unit_vector(incident_direction)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    new_state = state

    if total_internal_reflection(refractive_index, incident_direction, normal, front_face) == 1:
        scattered_direction = reflect(unit_direction, normal)
    else:
        u = 0.0
        u, new_state = random_f32(state)
        reflectance = fresnel_reflectance(
            refractive_index, incident_direction, normal, front_face
        )
        if u < reflectance:
            scattered_direction = reflect(unit_direction, normal)
        else:
            scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation, new_state


@ti.func
def total_internal_reflection(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if refraction is impossible, 0 otherwise.
    """
    ratio = refraction_ratio_for(refractive_index, front_face)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Probability that the surface reflects rather than refracts.

    Uses Schlick's approximation and ignores total internal reflection.

    Returns:
        The Fresnel reflectance coefficient in [0, 1].
    """
    ratio = refraction_ratio_for(refractive_index, front_face)
    cos_theta = tm.min(tm.dot(-unit_vector(incident_direction), normal), 1.0)
    return schlick_reflectance(cos_theta, ratio)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_refractive_indices = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refractive_index: Index of refraction. Default is 1.5 (typical glass).
            Must be positive. Values below 1 are allowed and model a medium
            less dense than its surroundings.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is not positive.
    """
    if refractive_index <= 0.0:
        raise ValueError(
            f"Refractive index = {refractive_index} is not positive. "
            "Snell's law is undefined for non-positive indices."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_refractive_indices[idx] = refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_refractive_index(material_idx: ti.i32) -> ti.f32:
    """Get the index of refraction for a dielectric material by index."""
    return dielectric_refractive_indices[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Scatter off a registered dielectric material.

    Args:
        material_idx: The index of the material in the registry.
        incident_direction: The incoming ray direction.
        normal: The surface normal at the hit point (unit length).
        front_face: Face.OUTSIDE (1) or Face.INSIDE (0).
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, state).
    """
    refractive_index = get_dielectric_refractive_index(material_idx)
    return scatter_dielectric(refractive_index, incident_direction, normal, front_face, state)
