"""Core rendering module.

Components:
    ray: Ray data structure and sampling utilities
    transform: Affine transforms and their device helpers
    accumulator: Per-pixel radiance accumulation and tone mapping
    integrator: Path tracing kernel and render target
    progressive: Progressive renderer built on the integrator

All compute-intensive operations use Taichi kernels.
"""

from .accumulator import DEFAULT_GAMMA, DISPLAY_SCALE, PixelSample, resolve_pixels
from .ray import (
    RAY_EPSILON,
    T_INFINITY,
    Ray,
    build_onb_from_normal,
    cosine_hemisphere_direction,
    local_to_world,
    make_ray,
    offset_ray_origin,
    random_in_unit_disk,
    ray_at,
    reflect,
    sample_cosine_hemisphere,
    vec3,
    with_t_max,
)
from .transform import DegenerateTransformError, Transform

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator or src.pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "with_t_max",
    "vec3",
    "T_INFINITY",
    "RAY_EPSILON",
    "offset_ray_origin",
    "reflect",
    "random_in_unit_disk",
    "cosine_hemisphere_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
    "Transform",
    "DegenerateTransformError",
    "PixelSample",
    "resolve_pixels",
    "DISPLAY_SCALE",
    "DEFAULT_GAMMA",
]
