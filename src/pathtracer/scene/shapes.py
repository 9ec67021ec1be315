"""Host-side scene graph.

Scenes are built from immutable Python objects and uploaded to the device
by flattening them into the primitive table (see ``intersection``):

- ``Sphere(radius, material)``: a sphere centred at the origin.
- ``Plane(k, material)``: the unit square patch ``|x|, |z| <= 0.5`` at
  height ``y = k``, facing +y.
- ``TransformedShape(shape, transform)``: a shape placed by an affine
  transform.
- ``Aggregation(shapes)``: a group answering with the closest hit of its
  members.

Example:
    >>> from src.pathtracer.core.transform import Transform
    >>> from src.pathtracer.materials import Diffuse
    >>> red = Diffuse((0.8, 0.3, 0.3))
    >>> world = Aggregation([
    ...     TransformedShape(Sphere(0.5, red), Transform.translation(0, 0, -1)),
    ... ])
    >>> [p.kind for p in flatten(world)]
    [<PrimitiveKind.SPHERE: 0>]
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy.typing as npt

from src.pathtracer.core.transform import Transform
from src.pathtracer.materials import Diffuse, Material, Mirror
from src.pathtracer.scene.intersection import PrimitiveKind


def _validate_material(material: object) -> None:
    if not isinstance(material, (Diffuse, Mirror)):
        raise TypeError(f"Unsupported material: {material!r}")


@dataclass(frozen=True, eq=False)
class Sphere:
    """A sphere of the given radius centred at the object-space origin."""

    radius: float
    material: Material

    def __post_init__(self) -> None:
        radius = float(self.radius)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        _validate_material(self.material)
        object.__setattr__(self, "radius", radius)


@dataclass(frozen=True, eq=False)
class Plane:
    """The unit square patch at height ``k``, normal +y."""

    k: float
    material: Material

    def __post_init__(self) -> None:
        k = float(self.k)
        if not math.isfinite(k):
            raise ValueError(f"Plane height must be finite, got {self.k}")
        _validate_material(self.material)
        object.__setattr__(self, "k", k)


@dataclass(frozen=True, eq=False)
class TransformedShape:
    """A shape placed in the world by an object-to-world transform.

    Attributes:
        shape: The wrapped shape, in its own object space.
        transform: A ``Transform`` or any 4x4 array-like matrix; array-likes
            are converted on construction and must be invertible.
    """

    shape: Shape
    transform: Transform | npt.ArrayLike

    def __post_init__(self) -> None:
        if not isinstance(self.transform, Transform):
            object.__setattr__(self, "transform", Transform(self.transform))


@dataclass(eq=False)
class Aggregation:
    """An ordered group of shapes.

    The group reports the closest hit of its members; the order of members
    never changes the result.
    """

    shapes: list[Shape] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.shapes = list(self.shapes)

    def add(self, shape: Shape) -> Aggregation:
        """Append a shape and return the group, for chaining."""
        self.shapes.append(shape)
        return self

    def __len__(self) -> int:
        return len(self.shapes)

    def __iter__(self) -> Iterator[Shape]:
        return iter(self.shapes)


Shape = Sphere | Plane | TransformedShape | Aggregation


@dataclass(frozen=True)
class FlatPrimitive:
    """One leaf of a flattened scene graph.

    Attributes:
        kind: The primitive kind.
        param: The sphere radius or the plane height.
        material: The material object of the leaf.
        transform: The composed object-to-world transform.
    """

    kind: PrimitiveKind
    param: float
    material: Material
    transform: Transform


def flatten(shape: Shape, transform: Transform | None = None) -> Iterator[FlatPrimitive]:
    """Walk a scene graph and yield its leaves with composed transforms.

    Nested transforms compose as ``outer @ inner``. Leaves that are not
    under any transform get the identity.

    Args:
        shape: The root of the scene graph.
        transform: The transform accumulated so far.

    Yields:
        One FlatPrimitive per Sphere or Plane, in depth-first order.

    Raises:
        TypeError: If a node is not one of the scene graph types.
    """
    if transform is None:
        transform = Transform.identity()

    if isinstance(shape, Sphere):
        yield FlatPrimitive(PrimitiveKind.SPHERE, shape.radius, shape.material, transform)
    elif isinstance(shape, Plane):
        yield FlatPrimitive(PrimitiveKind.PLANE, shape.k, shape.material, transform)
    elif isinstance(shape, TransformedShape):
        yield from flatten(shape.shape, transform @ shape.transform)
    elif isinstance(shape, Aggregation):
        for child in shape:
            yield from flatten(child, transform)
    else:
        raise TypeError(f"Unknown scene node: {type(shape).__name__}")

