"""Ray data structure, vector helpers and sampling routines.

This module provides the Ray dataclass used by every intersection routine,
the vector helpers shared by the materials, and the random sampling
utilities needed for Monte Carlo integration. Everything here runs inside
Taichi kernels.

A ray carries its own search bound ``t_max``. Primary rays start with an
unbounded search (``t_max = +inf``); every accepted intersection shrinks the
bound, so a later candidate can only win if it is closer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.ray import Ray, make_ray, ray_at
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     ray = make_ray(ti.math.vec3(0.0), ti.math.vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 2.0).z
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Unbounded search distance for primary rays
T_INFINITY = float("inf")

# Offset applied along the normal when spawning a ray from a surface
RAY_EPSILON = 1e-3


@ti.dataclass
class Ray:
    """A parametric line with a shrinking closest-hit bound.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; transformed rays keep the parametrization of the
            world-space ray they were derived from.
        t_max: Largest ray parameter a hit may have. Decreases monotonically
            as closer hits are accepted.
    """

    origin: vec3
    direction: vec3
    t_max: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray with an unbounded search distance.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector.

    Returns:
        A new Ray with ``t_max = +inf``.
    """
    return Ray(origin=origin, direction=direction, t_max=T_INFINITY)


@ti.func
def with_t_max(ray: Ray, t_max: ti.f32) -> Ray:
    """Return a copy of the ray with a new search bound."""
    return Ray(origin=ray.origin, direction=ray.direction, t_max=t_max)


@ti.func
def offset_ray_origin(point: vec3, normal: vec3) -> vec3:
    """Push a surface point off the surface along its normal.

    Rays spawned from the offset point do not re-intersect the surface
    they leave because of floating-point error in the hit point.
    """
    return point + RAY_EPSILON * normal


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Rejection sampling: draws points uniformly in the square [-1, 1]^2 and
    redraws until one lands strictly inside the unit circle.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Bounded rejection loop; the acceptance rate is pi/4 per draw
    for _ in range(100):
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p


@ti.func
def cosine_hemisphere_direction(u: ti.f32, v: ti.f32) -> vec3:
    """Map two uniform numbers to a cosine-weighted direction (z-up).

    The distribution has PDF = cos(theta) / pi with respect to solid angle.

    Args:
        u: Uniform number in [0, 1], controls the polar angle.
        v: Uniform number in [0, 1], controls the azimuth.

    Returns:
        A unit direction in the local frame with z >= 0.
    """
    radius = ti.sqrt(u)
    theta = 2.0 * tm.pi * v
    x = radius * ti.cos(theta)
    y = radius * ti.sin(theta)
    z = ti.sqrt(ti.max(0.0, 1.0 - u))
    return vec3(x, y, z)


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis around a unit normal.

    Uses the branch-free construction of Duff et al. (2017), "Building an
    Orthonormal Basis, Revisited". The only sign decision is on ``normal.z``
    and the single division never sees a denominator smaller than one.

    Args:
        normal: The surface normal (must be unit length).

    Returns:
        A tuple (tangent, bitangent, normal) forming a right-handed
        orthonormal basis.
    """
    sign = ti.select(normal.z >= 0.0, 1.0, -1.0)
    a = -1.0 / (sign + normal.z)
    b = normal.x * normal.y * a
    tangent = vec3(1.0 + sign * normal.x * normal.x * a, sign * b, -sign * normal.x)
    bitangent = vec3(b, sign + normal.y * normal.y * a, -normal.y)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    """Transform a direction from the local (tangent, bitangent, normal) frame."""
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3, u: ti.f32, v: ti.f32):
    """Cosine-weighted hemisphere sampling around a normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        u: First uniform number in [0, 1].
        v: Second uniform number in [0, 1].

    Returns:
        A tuple of (direction, pdf) where:
        - direction: The sampled unit direction in world space.
        - pdf: The probability density of that direction, cos(theta) / pi.
    """
    local_dir = cosine_hemisphere_direction(u, v)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = tm.dot(world_dir, normal) / tm.pi
    return world_dir, pdf
