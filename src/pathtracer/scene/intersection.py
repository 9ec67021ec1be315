"""Scene-level primitive table and closest-hit intersection.

The scene graph built on the host (see ``shapes``) is flattened into a
closed tagged-variant table stored in Taichi fields. Every entry is one leaf
primitive with:

- its kind (sphere or plane patch) and scalar parameter (radius or height),
- its material ID,
- the composed object-to-world matrix and its inverse.

Intersecting one entry is the transformed-shape contract: the world ray is
mapped into object space with the inverse matrix, keeping its ``t_max``
unchanged; on a hit the point is mapped back with the matrix and the normal
with the inverse transpose. Walking the whole table is the aggregation
contract: each entry is offered the ray with the bound left by the previous
hits, so the surviving hit is the globally closest one.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.transform import Transform
    >>> from src.pathtracer.scene.intersection import PrimitiveKind, add_primitive, intersect
    >>> add_primitive(PrimitiveKind.SPHERE, 0.5, 0, Transform.translation(0, 0, -1))
    0
    >>> intersect((0, 0, 0), (0, 0, -1)).t
    0.5
"""

import logging
from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import T_INFINITY, Ray, with_t_max
from src.pathtracer.core.transform import Transform, apply_normal, apply_point, apply_vector
from src.pathtracer.geometry.plane import hit_plane
from src.pathtracer.geometry.sphere import HitRecord, hit_sphere, make_miss_record

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class PrimitiveKind(IntEnum):
    """Tag of a leaf primitive in the scene table."""

    SPHERE = 0
    PLANE = 1


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The ray parameter of the closest hit; the caller's new ``t_max``.
            Only valid if hit == 1.
        point: The world-space intersection point. Only valid if hit == 1.
        normal: The unit world-space surface normal. Only valid if hit == 1.
        material_id: The material ID of the hit primitive. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


# Maximum number of leaf primitives supported in the scene
MAX_PRIMITIVES = 1024

# Primitive storage: Structure of Arrays layout
primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_params = ti.field(dtype=ti.f32, shape=MAX_PRIMITIVES)
primitive_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_to_world = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_PRIMITIVES)
primitive_to_object = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The field data is overwritten when
    new primitives are added.
    """
    num_primitives[None] = 0


def add_primitive(
    kind: PrimitiveKind,
    param: float,
    material_id: int,
    transform: Transform | None = None,
) -> int:
    """Append a leaf primitive to the scene table.

    Args:
        kind: The primitive kind.
        param: The sphere radius or the plane patch height.
        material_id: The material ID to associate with this primitive.
        transform: The composed object-to-world transform. Identity if None.

    Returns:
        The index of the added primitive.

    Raises:
        RuntimeError: If the maximum number of primitives is exceeded.
    """
    idx = num_primitives[None]
    if idx >= MAX_PRIMITIVES:
        raise RuntimeError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")
    if transform is None:
        transform = Transform.identity()

    primitive_kinds[idx] = int(kind)
    primitive_params[idx] = param
    primitive_material_ids[idx] = material_id
    primitive_to_world[idx] = transform.m.tolist()
    primitive_to_object[idx] = transform.m_inv.tolist()
    num_primitives[None] = idx + 1
    return idx


def get_primitive_count() -> int:
    """Get the number of primitives in the scene."""
    return int(num_primitives[None])


@ti.func
def _make_miss_scene_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def intersect_primitive(index: ti.i32, ray: Ray) -> HitRecord:
    """Intersect a world-space ray with one entry of the primitive table.

    Args:
        index: The primitive index.
        ray: The world-space ray; its ``t_max`` bounds the search.

    Returns:
        A HitRecord in world space. ``t`` is shared by both spaces because
        the object-space direction is not renormalized.
    """
    to_object = primitive_to_object[index]
    local_ray = Ray(
        origin=apply_point(to_object, ray.origin),
        direction=apply_vector(to_object, ray.direction),
        t_max=ray.t_max,
    )

    local = make_miss_record()
    if primitive_kinds[index] == int(PrimitiveKind.SPHERE):
        local = hit_sphere(local_ray, primitive_params[index])
    elif primitive_kinds[index] == int(PrimitiveKind.PLANE):
        local = hit_plane(local_ray, primitive_params[index])

    result = make_miss_record()
    if local.hit == 1:
        to_world = primitive_to_world[index]
        result = HitRecord(
            hit=1,
            t=local.t,
            point=apply_point(to_world, local.point),
            normal=tm.normalize(apply_normal(to_object, local.normal)),
        )
    return result


@ti.func
def intersect_scene(ray: Ray) -> SceneHitRecord:
    """Find the closest hit of a ray against every primitive in the scene.

    Every primitive is tested; each one sees the bound left by the hits
    before it, so the result does not depend on the table order.

    Args:
        ray: The world-space ray. Hits beyond ``ray.t_max`` are ignored.

    Returns:
        A SceneHitRecord for the closest hit, or a miss record. On a hit the
        caller continues with ``with_t_max(ray, record.t)``.
    """
    bounded = with_t_max(ray, ray.t_max)
    result = _make_miss_scene_record()

    for i in range(num_primitives[None]):
        rec = intersect_primitive(i, bounded)
        if rec.hit == 1:
            bounded = with_t_max(bounded, rec.t)
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                material_id=primitive_material_ids[i],
            )

    return result


# =============================================================================
# Host-side single ray queries
# =============================================================================


@dataclass(frozen=True)
class SceneHit:
    """Host-side copy of a scene hit.

    Attributes:
        t: The ray parameter of the hit.
        point: The world-space hit point.
        normal: The unit world-space normal.
        material_id: The material ID of the hit primitive.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    material_id: int


_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _intersect_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    t_max: ti.f32,
):
    ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz), t_max=t_max)
    rec = intersect_scene(ray)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_material_id[None] = rec.material_id


def intersect(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_max: float = T_INFINITY,
) -> SceneHit | None:
    """Intersect a single ray with the uploaded scene.

    This is a Python-callable function for testing and debugging; rendering
    uses ``intersect_scene`` inside kernels.

    Args:
        origin: The ray origin.
        direction: The ray direction.
        t_max: The search bound.

    Returns:
        The closest hit, or None if the ray misses everything.
    """
    _intersect_kernel(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], t_max
    )
    if _query_hit[None] == 0:
        return None

    p = _query_point[None]
    n = _query_normal[None]
    return SceneHit(
        t=float(_query_t[None]),
        point=(float(p[0]), float(p[1]), float(p[2])),
        normal=(float(n[0]), float(n[1]), float(n[2])),
        material_id=int(_query_material_id[None]),
    )
