"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with signed radius, the HitRecord returned by
        intersection tests and the Face classification

Intersection routines are Taichi functions (@ti.func) so they can run inside
rendering kernels:
    rec = hit_sphere(ray, sphere, t_min, t_max)
"""

from .sphere import Face, HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "Face",
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
]
