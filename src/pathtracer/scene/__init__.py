"""Scene module for scene description, upload and ray-scene queries.

Components:
    shapes: Host-side scene graph (Sphere, Plane, TransformedShape, Aggregation)
    intersection: Device primitive table and closest-hit queries
    manager: Scene manager coordinating primitives and materials
    spheres: Two-sphere demo scene

Scene data is organized for device access:
    - Structure-of-Arrays layout for primitive data
    - Composed object-to-world matrices per primitive
    - Unified material ID space with per-type storage
"""

from .intersection import (
    MAX_PRIMITIVES,
    PrimitiveKind,
    SceneHit,
    SceneHitRecord,
    add_primitive,
    clear_scene,
    get_primitive_count,
    intersect,
    intersect_primitive,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    PrimitiveInfo,
    SceneManager,
    get_material_type,
    get_material_type_index,
)
from .shapes import (
    Aggregation,
    FlatPrimitive,
    Plane,
    Shape,
    Sphere,
    TransformedShape,
    flatten,
)
from .spheres import create_spheres_scene

__all__ = [
    # Scene graph
    "Shape",
    "Sphere",
    "Plane",
    "TransformedShape",
    "Aggregation",
    "FlatPrimitive",
    "flatten",
    # Intersection module
    "PrimitiveKind",
    "SceneHit",
    "SceneHitRecord",
    "add_primitive",
    "clear_scene",
    "get_primitive_count",
    "intersect",
    "intersect_primitive",
    "intersect_scene",
    "MAX_PRIMITIVES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "PrimitiveInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Demo scene
    "create_spheres_scene",
]
