"""Ray data structure, vector utilities and random sampling for path tracing.

This module provides the Ray dataclass together with the vector helpers and
Monte Carlo sampling routines used by the rest of the renderer. Vectors are
``taichi.math.vec3`` values and double as points and RGB colors.

Every sampling routine takes the caller's random stream state (see
``pathtracer.core.rng``) and returns the advanced state as its last value.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Upper bound on rejection-sampling attempts. The chance of exhausting it is
# below 1e-30 for the unit sphere and the unit disk.
MAX_REJECTION_TRIES = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). It is not required
            to be normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Unlike ``tm.normalize`` there is no special case for zero vectors: a zero
    input produces NaN components, so callers must pass nonzero directions.

    Args:
        v: The input vector.

    Returns:
        v / length(v).
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Valid for any incoming direction; the normal must be unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        incident - 2 * dot(incident, normal) * normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(uv: vec3, normal: vec3, refraction_ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The result is split into components perpendicular and parallel to the
    normal. The caller is responsible for ruling out total internal
    reflection first; the absolute value under the square root only keeps
    grazing rounding errors from producing NaN.

    Args:
        uv: The incoming direction (unit length).
        normal: The surface normal, opposing uv (unit length).
        refraction_ratio: n_incident / n_transmitted.

    Returns:
        The refracted direction. With refraction_ratio == 1 this is uv.
    """
    cos_theta = tm.min(tm.dot(-uv, normal), 1.0)
    r_out_perp = refraction_ratio * (uv + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, refraction_ratio: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incident direction and normal.
        refraction_ratio: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - ratio) / (1 + ratio))^2.
    """
    r0 = (1.0 - refraction_ratio) / (1.0 + refraction_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(lo: ti.f32, hi: ti.f32, state: ti.u32):
    """Generate a vector whose components are independently uniform in [lo, hi).

    Returns:
        A tuple (vector, new_state).
    """
    x, s = random_range(lo, hi, state)
    y, s = random_range(lo, hi, s)
    z, s = random_range(lo, hi, s)
    return vec3(x, y, z), s


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point inside the unit sphere.

    Rejection-samples the cube [-1, 1]^3 until the point lies within the
    sphere (squared length <= 1).

    Returns:
        A tuple (point, new_state).
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p, s = random_vec3(-1.0, 1.0, s)
            if length_squared(p) <= 1.0:
                found = True
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a unit vector uniformly distributed on the sphere surface.

    Uses cylindrical coordinates (azimuth uniform in [0, 2pi), z uniform in
    [-1, 1]) rather than normalizing a cube sample, which would bias the
    result toward the cube's corners. Added to a surface normal this gives a
    cosine-weighted hemisphere distribution.

    Returns:
        A tuple (unit_vector, new_state).
    """
    a, s = random_range(0.0, 2.0 * tm.pi, state)
    z, s = random_range(-1.0, 1.0, s)
    r = ti.sqrt(ti.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z), s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for lens aperture sampling.

    Returns:
        A tuple (point, new_state) where point is (x, y, 0) with
        x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            x = 0.0
            y = 0.0
            x, s = random_range(-1.0, 1.0, s)
            y, s = random_range(-1.0, 1.0, s)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p, s
