"""Path tracing integrator for Monte Carlo light transport.

This module implements the path-color estimator and the rendering kernels that
drive it over the pixel grid.

A camera ray is followed through the scene for at most max_depth bounces. At
every hit the surface material either absorbs the ray, ending the path in
black, or scatters it, multiplying the path throughput by its attenuation.
A ray that escapes the scene picks up the sky gradient, weighted by the
throughput gathered so far. There is no Russian roulette: paths end only by
escaping, being absorbed, or running out of bounces (which also gives black).

Every pixel sample draws its random numbers from its own stream, seeded from
(seed, pixel index, sample index). Renders are therefore reproducible and do
not depend on thread scheduling or on how samples are split into batches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_normalized_image_numpy
    ... )
    >>> from pathtracer.scene.presets import create_material_showcase_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_material_showcase_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100, seed=1)
    >>> image = get_normalized_image_numpy()
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray_jittered
from pathtracer.core.ray import Ray, make_ray, unit_vector
from pathtracer.core.rng import seed_stream
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# Intersection interval for every bounce. T_MIN keeps scattered rays from
# re-hitting the surface they start on.
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints: horizon (white) to zenith (light blue)
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is below 1 or exceeds the maximum size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


# =============================================================================
# Sky and Material Dispatch
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Color of a ray that escapes the scene.

    Blends linearly from white at unit_direction.y = -1 to light blue at
    unit_direction.y = 1.

    Args:
        direction: The escaping ray's direction (any nonzero length).

    Returns:
        (1 - t) * white + t * (0.5, 0.7, 1.0) with t = 0.5 * (y + 1).
    """
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_WHITE + t * SKY_BLUE


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal, opposing the incoming ray.
        front_face: Face.OUTSIDE (1) or Face.INSIDE (0).
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state)
        where did_scatter is 1 if the ray scattered and 0 if it was absorbed.
        Unknown material IDs absorb.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    new_state = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, new_state = scatter_lambertian_by_id(
            type_index, normal, state
        )
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter, new_state = scatter_metal_by_id(
            type_index, incident_direction, normal, state
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, new_state = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, state
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter, new_state


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, state: ti.u32):
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Maximum number of surface interactions. 0 gives black.
        state: Random stream state.

    Returns:
        A tuple (color, state).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction
    s = state

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(make_ray(origin, direction), T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * sky_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, s = scatter_material(
                    hit_record.material_id,
                    direction,
                    hit_record.normal,
                    hit_record.front_face,
                    s,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = hit_record.point
                    direction = scattered_direction

    return color, s


@ti.func
def pixel_stream(
    seed: ti.u32, pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, sample_index: ti.i32
) -> ti.u32:
    """Seed the random stream for one sample of one pixel.

    The pixel index is j * width + i.
    """
    pixel_index = ti.cast(pixel_j * width + pixel_i, ti.u32)
    return seed_stream(seed, pixel_index, ti.cast(sample_index, ti.u32))


@ti.func
def trace_path(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Trace one jittered camera path through pixel (pixel_i, pixel_j).

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        sample_index: Index of this sample within the pixel.
        max_depth: Maximum number of bounces.
        seed: Render-wide seed.

    Returns:
        The color estimate for this sample.
    """
    state = pixel_stream(seed, pixel_i, pixel_j, width, sample_index)
    ray, state = get_ray_jittered(pixel_i, pixel_j, width, height, state)
    color, state = ray_color(ray, max_depth, state)
    return color


@ti.func
def sanitize_sample(color: vec3) -> vec3:
    """Replace NaN, infinite and negative components with 0."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]) or result[c] < 0.0:
            result[c] = 0.0
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, seed: ti.u32):
    """Render one sample per pixel and accumulate.

    The sample index of each pixel is its current sample count, so a pixel's
    k-th sample always uses the same random stream.
    """
    for i, j in ti.ndrange(width, height):
        sample_index = _sample_count[i, j]
        color = sanitize_sample(trace_path(i, j, width, height, sample_index, max_depth, seed))

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        n = sample_index + 1
        _sample_count[i, j] = n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    return sanitize_sample(
        trace_path(pixel_i, pixel_j, width, height, sample_index, max_depth, seed)
    )


# =============================================================================
# Public Rendering API
# =============================================================================


def _to_u32(seed: int) -> int:
    return int(seed) & 0xFFFFFFFF


def render_sample(
    pixel_i: int,
    pixel_j: int,
    sample_index: int = 0,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    Reproduces exactly the sample that render_image() accumulates as the
    sample_index-th sample of that pixel with the same seed and depth.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        sample_index: Which sample of the pixel to render.
        max_depth: Maximum number of bounces.
        seed: Render-wide seed.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(
        pixel_i, pixel_j, width, height, sample_index, max_depth, _to_u32(seed)
    )

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH, seed: int = 0) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples for convergence; the result only
    depends on the total sample count, not on how it was split.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Render-wide seed.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples or max_depth is negative.
    """
    _check_render_target_initialized()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()
    seed_u32 = _to_u32(seed)

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, seed_u32)

    logger.debug("Rendered %d samples per pixel at %dx%d", num_samples, width, height)


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_normalized_image_numpy() -> np.ndarray:
    """Get the rendered linear image as a NumPy array.

    The array shape is (height, width, 3) with dtype float32, rows ordered
    top to bottom and values clamped to [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Buffer row 0 is the bottom of the image
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)
