"""Geometry module for shape primitives.

Components:
    sphere: Sphere of a given radius centred at the object-space origin
    plane: Axis-aligned unit square patch at a given height

Both primitives are intersected in object space; the scene module maps
rays into that space and hits back out of it.
"""

from .plane import PLANE_HALF_EXTENT, hit_plane
from .sphere import HitRecord, hit_sphere, make_miss_record

__all__ = [
    "HitRecord",
    "hit_sphere",
    "hit_plane",
    "make_miss_record",
    "PLANE_HALF_EXTENT",
]
