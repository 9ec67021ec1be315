"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane sits at ``focus_distance`` along -w. Each ray starts at a
point sampled on the lens disk of radius ``aperture / 2`` and passes through
the matching point on the image plane, so only geometry at the focus
distance is sharp. With zero aperture every ray starts at the pinhole.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>> camera = ThinLensCamera(
    ...     lookfrom=(0.0, 0.0, 0.5),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=90.0,
    ...     aspect_ratio=4.0 / 3.0,
    ...     focus_distance=0.5,
    ... )
    >>> setup_camera(camera)
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, make_ray, random_in_unit_disk

# Cross products shorter than this mean vup is parallel to the view direction
BASIS_EPSILON = 1e-8


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. Zero gives a pinhole camera.
        focus_distance: Distance from the lens to the plane in focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_distance: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if self.focus_distance <= 0.0:
            raise ValueError(f"focus_distance must be positive, got {self.focus_distance}")

        view = np.subtract(self.lookfrom, self.lookat, dtype=np.float64)
        if np.linalg.norm(view) < BASIS_EPSILON:
            raise ValueError("lookfrom and lookat must be distinct points")
        if np.linalg.norm(np.cross(self.vup, view)) < BASIS_EPSILON * np.linalg.norm(view):
            raise ValueError("vup must not be parallel to the view direction")

    @property
    def lens_radius(self) -> float:
        """Radius of the lens disk."""
        return self.aperture / 2.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Image plane at the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_camera_ready = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Computes the orthonormal basis and the image plane at the focus
    distance. Must be called before rendering.

    Args:
        camera: Camera configuration.
    """
    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height
    focus = camera.focus_distance

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)
    v = np.cross(w, u)

    horizontal = 2.0 * half_width * focus * u
    vertical = 2.0 * half_height * focus * v
    lower_left = lookfrom - half_width * focus * u - half_height * focus * v - focus * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.lens_radius
    _camera_ready[None] = 1


def is_camera_ready() -> bool:
    """Whether ``setup_camera`` has been called."""
    return bool(_camera_ready[None])


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A primary ray with unit direction and unbounded ``t_max``.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y
    origin = _camera_origin[None] + offset

    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin, tm.normalize(target - origin))


@ti.func
def get_ray_jittered(column: ti.i32, row: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a ray through a random point of a pixel.

    Row 0 is the top row of the image, so it maps to ``t`` close to 1.

    Args:
        column: Pixel column (0 = left).
        row: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
    """
    s = (ti.cast(column, ti.f32) + ti.random(ti.f32)) / ti.cast(width, ti.f32)
    t = (ti.cast(height - 1 - row, ti.f32) + ti.random(ti.f32)) / ti.cast(height, ti.f32)
    return get_ray(s, t)


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _read(f) -> tuple[float, float, float]:
        vec = f[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _read(_camera_origin),
        "u": _read(_camera_u),
        "v": _read(_camera_v),
        "w": _read(_camera_w),
        "horizontal": _read(_viewport_horizontal),
        "vertical": _read(_viewport_vertical),
        "lower_left": _read(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
