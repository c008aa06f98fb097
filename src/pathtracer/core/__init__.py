"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    rng: Per-sample random streams (xorshift32 seeded by a Wang hash)
    ray: Ray data structure, vector utilities and random sampling
    integrator: Path-color estimator and per-pixel rendering kernels
    settings: Render settings dataclass
    progressive: Batched, progressive accumulation

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .rng import initial_state, next_state, random_f32, random_range, seed_stream, wang_hash

# Note: integrator, settings and progressive are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "wang_hash",
    "seed_stream",
    "next_state",
    "random_f32",
    "random_range",
    "initial_state",
]
