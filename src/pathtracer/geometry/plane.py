"""Unit plane patch primitive.

The patch is an axis-aligned unit square lying at height ``k`` along the
local y axis, spanning ``[-0.5, 0.5]`` in both x and z. Its normal is the
fixed up axis. Larger or tilted floors and walls are obtained by wrapping
the patch in a transform.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.plane import hit_plane
    >>> # Use hit_plane within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, ray_at

from .sphere import HitRecord, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Half extent of the patch along local x and z
PLANE_HALF_EXTENT = 0.5

# Rays whose vertical direction is smaller than this are parallel to the patch
PARALLEL_EPSILON = 1e-8


@ti.func
def hit_plane(ray: Ray, k: ti.f32) -> HitRecord:
    """Intersect a ray with the unit patch at local height k.

    The crossing parameter is ``t = (k - o.y) / d.y``. The hit is rejected
    when the ray is parallel to the patch, when ``t`` falls outside
    ``[0, ray.t_max]``, or when the crossing point lies outside the unit
    square.

    Args:
        ray: The ray in the patch's object space.
        k: The height of the patch along the local y axis.

    Returns:
        A HitRecord whose normal is always +y.
    """
    result = make_miss_record()
    d_y = ray.direction.y

    if ti.abs(d_y) > PARALLEL_EPSILON:
        t = (k - ray.origin.y) / d_y
        if t >= 0.0 and t <= ray.t_max:
            point = ray_at(ray, t)
            if ti.abs(point.x) <= PLANE_HALF_EXTENT and ti.abs(point.z) <= PLANE_HALF_EXTENT:
                result = HitRecord(
                    hit=1,
                    t=t,
                    point=point,
                    normal=vec3(0.0, 1.0, 0.0),
                )

    return result
