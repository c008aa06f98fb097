"""Taichi-based Monte Carlo path tracer.

This package renders scenes made of spheres with Lambertian, metal and
dielectric materials, lit by a sky gradient, using GPU-accelerated path
tracing with Taichi.

Subpackages:
    core: Vector math, random streams, the path-color estimator and the
        progressive rendering loop
    geometry: Sphere primitive and the ray intersection protocol
    materials: Lambertian, metal and dielectric scattering
    scene: Scene management, presets and JSON scene files
    camera: Thin-lens camera with ray generation
    preview: Gamma correction, image export and Matplotlib preview
"""

__version__ = "0.1.0"
