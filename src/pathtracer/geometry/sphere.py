"""Sphere primitive with ray-sphere intersection in object space.

The sphere is centred at the local origin; placing it anywhere else is the
job of the transform attached to it in the scene. Intersection follows the
closest-hit contract: a root is accepted only if it lies in
``[0, ray.t_max]``, and the accepted distance is reported back in the hit
record so the caller can shrink its ray's bound.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.sphere import hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared direction lengths below this are treated as degenerate rays
DIRECTION_EPSILON = 1e-12


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The accepted ray parameter. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal at the intersection point.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def hit_sphere(ray: Ray, radius: ti.f32) -> HitRecord:
    """Intersect a ray with a sphere of the given radius at the origin.

    Solves ``|O + tD|^2 = r^2`` in half-b form:

        a = dot(D, D)
        h = dot(D, O)
        c = dot(O, O) - r^2
        discriminant = h^2 - a*c

    The near root is tested first, then the far root; the first one inside
    ``[0, ray.t_max]`` wins. Zero-length directions never hit.

    Args:
        ray: The ray in the sphere's object space.
        radius: The sphere radius (positive).

    Returns:
        A HitRecord; the normal is the normalized hit point, which points
        outward regardless of the side the ray approaches from.
    """
    origin = ray.origin
    direction = ray.direction

    a = tm.dot(direction, direction)
    h = tm.dot(direction, origin)
    c = tm.dot(origin, origin) - radius * radius
    discriminant = h * h - a * c

    result = make_miss_record()

    if a > DIRECTION_EPSILON and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-h - sqrt_d) / a
        valid = (t >= 0.0) and (t <= ray.t_max)

        if not valid:
            t = (-h + sqrt_d) / a
            valid = (t >= 0.0) and (t <= ray.t_max)

        if valid:
            point = ray_at(ray, t)
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=tm.normalize(point),
            )

    return result
