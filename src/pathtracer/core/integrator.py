"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernel: every primary ray is followed
through the scene, scattering off surfaces according to their materials,
until it escapes to the sky, is absorbed, or reaches the depth limit.

The estimator for one path segment is:

    L(ray) = sky(ray)                                       on a miss
    L(ray) = 0                                              if absorbed or depth >= MAX_DEPTH
    L(ray) = f * |cos(theta)| / pdf * L(scattered)          otherwise

where ``f`` is the attenuation returned by the material. The recursion is
unrolled into a loop carrying the product of the weights (the throughput).
There is no emission other than the sky: a path that never escapes
contributes black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import render_image, setup_render_target
    >>> from src.pathtracer.camera.thin_lens import setup_camera
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> from src.pathtracer.scene.spheres import create_spheres_scene
    >>>
    >>> world, camera = create_spheres_scene()
    >>> SceneManager().load(world)
    >>> setup_camera(camera)
    >>> setup_render_target(800, 600)
    >>> render_image(num_samples=100)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.thin_lens import get_ray_jittered, is_camera_ready
from src.pathtracer.core.ray import Ray, make_ray
from src.pathtracer.geometry.sphere import DIRECTION_EPSILON
from src.pathtracer.materials.diffuse import get_diffuse_albedo, scatter_diffuse
from src.pathtracer.materials.mirror import scatter_mirror
from src.pathtracer.materials.scattering import ScatteringEvent, absorbed_event
from src.pathtracer.scene.intersection import intersect_scene
from src.pathtracer.scene.manager import (
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

# Number of scattering events after which a path is cut off (black)
MAX_DEPTH = 50

# Sky gradient endpoints, blended by the height of the unit direction
SKY_COLOR = vec3(0.5, 0.7, 1.0)
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel radiance sums and sample counts, indexed (row, column), row 0 at the top
_radiance_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
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
    _radiance_sum.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Forget the render target entirely (dimensions included)."""
    _render_target_initialized[None] = 0
    _image_width[None] = 0
    _image_height[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_ready() -> None:
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
) -> ScatteringEvent:
    """Dispatch to the scattering function of a material.

    Unknown material IDs absorb the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    event = absorbed_event()
    if mat_type == int(MaterialType.DIFFUSE):
        event = scatter_diffuse(get_diffuse_albedo(type_index), hit_point, normal)
    elif mat_type == int(MaterialType.MIRROR):
        event = scatter_mirror(incident_direction, hit_point, normal)
    return event


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def sky_gradient(direction: vec3) -> vec3:
    """Radiance of the background for an escaping ray.

    Blends from white at the bottom (``y = -1``) to sky blue at the top
    (``y = +1``) of the unit direction. A zero-length direction sees black.
    """
    length_sq = tm.dot(direction, direction)
    color = vec3(0.0, 0.0, 0.0)
    if length_sq > DIRECTION_EPSILON:
        t = 0.5 * (direction.y / ti.sqrt(length_sq) + 1.0)
        color = (1.0 - t) * HORIZON_COLOR + t * SKY_COLOR
    return color


@ti.func
def trace_path(ray: Ray) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The primary ray.

    Returns:
        The radiance estimate (RGB). Black for paths that are absorbed or
        that are still bouncing after MAX_DEPTH scattering events.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    # Product of attenuation * |cos| / pdf along the path
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for depth in range(MAX_DEPTH + 1):
        if active == 1:
            rec = intersect_scene(current)

            if rec.hit == 0:
                radiance = throughput * sky_gradient(current.direction)
                active = 0
            elif depth >= MAX_DEPTH:
                active = 0
            else:
                event = _scatter_material(rec.material_id, current.direction, rec.point, rec.normal)

                if event.scattered == 0:
                    active = 0
                else:
                    cos_theta = ti.abs(tm.dot(event.direction, rec.normal))
                    throughput = throughput * event.attenuation * cos_theta / event.pdf
                    current = make_ray(event.origin, event.direction)

    return radiance


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pass(width: ti.i32, height: ti.i32):
    """Trace one jittered sample for every pixel and accumulate it."""
    for row, column in ti.ndrange(height, width):
        color = trace_path(get_ray_jittered(column, row, width, height))

        # Clamp negative values (numerical errors)
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _radiance_sum[row, column] += color
        _sample_count[row, column] += 1


@ti.kernel
def _render_single_pixel(column: ti.i32, row: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    return trace_path(get_ray_jittered(column, row, width, height))


@ti.kernel
def _trace_single_ray(
    ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32
) -> vec3:
    return trace_path(make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz)))


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Estimate the radiance along one ray against the uploaded scene.

    This is a Python-callable function for testing and debugging.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    color = _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2]
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(column: int, row: int) -> tuple[float, float, float]:
    """Render a single jittered sample for a pixel without accumulating it.

    Args:
        column: Pixel column (0 = left).
        row: Pixel row (0 = top).

    Raises:
        RuntimeError: If the render target or the camera has not been set up.
    """
    _check_render_target_initialized()
    _check_camera_ready()

    width, height = get_image_dimensions()
    color = _render_single_pixel(column, row, width, height)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1) -> None:
    """Accumulate ``num_samples`` more samples into every pixel.

    Each sample is one parallel pass over the image; the pass ends when the
    kernel returns, so every pixel has the same count afterwards.

    Raises:
        RuntimeError: If the render target or the camera has not been set up.
    """
    _check_render_target_initialized()
    _check_camera_ready()

    width, height = get_image_dimensions()
    for _ in range(num_samples):
        _render_pass(width, height)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far."""
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_accumulators() -> tuple[np.ndarray, np.ndarray]:
    """Read back the per-pixel accumulators of the active region.

    Returns:
        Tuple of (sums, counts): ``sums`` is float64 of shape
        (height, width, 3) and ``counts`` is int64 of shape (height, width).
        Row 0 is the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    sums = _radiance_sum.to_numpy()[:height, :width, :].astype(np.float64)
    counts = _sample_count.to_numpy()[:height, :width].astype(np.int64)
    return sums, counts
