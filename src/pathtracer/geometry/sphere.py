"""Sphere primitive and the surface intersection protocol.

This module provides the Sphere dataclass, the HitRecord returned by every
intersection test, and the ray-sphere intersection function.

Spheres carry a signed radius. A negative radius leaves the geometry unchanged
but flips the outward normal, which is how hollow glass shells are modelled:
an outer sphere with positive radius and a slightly smaller inner sphere with
negative radius.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class Face(IntEnum):
    """Which side of a surface a ray arrived from.

    Stored in ``HitRecord.front_face``. The classification is exhaustive:
    every hit is either OUTSIDE or INSIDE.
    """

    INSIDE = 0
    OUTSIDE = 1


@ti.dataclass
class Sphere:
    """A sphere defined by center point and signed radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normal.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The surface normal at the intersection point, always opposing
            the incoming ray. Only valid if hit == 1.
        front_face: Face.OUTSIDE (1) if the ray arrived from the side the
            outward normal points to, Face.INSIDE (0) otherwise.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-sphere intersection.

    The intersection is found by solving
        |origin + t * direction - center|^2 = radius^2
    which, with oc = origin - center, gives a*t^2 + 2*half_b*t + c = 0 where
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2

    The roots (-half_b -+ sqrt(half_b^2 - a*c)) / a are tried smaller first.
    Only roots strictly inside (t_min, t_max) count.

    Args:
        ray: The ray to test. Its direction need not be normalized.
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on t (avoids self-intersection).
        t_max: Exclusive upper bound on t (closest hit found so far).

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Taichi requires outer-scope declaration
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    face = int(Face.INSIDE)

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-half_b - sqrt_d) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-half_b + sqrt_d) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray.origin + t * ray.direction

            # Dividing by the signed radius flips the normal for negative radii
            outward_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(ray.direction, outward_normal) < 0.0:
                face = int(Face.OUTSIDE)
                hit_normal = outward_normal
            else:
                face = int(Face.INSIDE)
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and signed radius."""
    return Sphere(center=center, radius=radius)
