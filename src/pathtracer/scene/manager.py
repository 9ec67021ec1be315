"""Scene manager coordinating primitives and materials.

The SceneManager owns the device-side scene state: the primitive table
(see ``intersection``), the diffuse material registry and the unified
material ID space. Every material ID maps to a (material_type,
type_local_index) pair so the integrator can dispatch to the right
scattering function.

Scenes are usually described as a host-side graph (see ``shapes``) and
uploaded with ``load``. Material objects are tracked by identity: a
``Diffuse`` shared between several shapes is registered once.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials import Diffuse
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> from src.pathtracer.scene.shapes import Sphere
    >>> scene = SceneManager()
    >>> scene.load(Sphere(0.5, Diffuse((0.8, 0.3, 0.3))))
    >>> scene.get_primitive_count()
    1
"""

import logging
from dataclasses import dataclass
from enum import IntEnum

import taichi as ti

from src.pathtracer.core.transform import Transform
from src.pathtracer.materials import Diffuse, Material, Mirror
from src.pathtracer.materials.diffuse import add_diffuse_material, clear_diffuse_materials
from src.pathtracer.scene.intersection import (
    MAX_PRIMITIVES,
    PrimitiveKind,
    add_primitive,
    clear_scene,
    get_primitive_count,
)
from src.pathtracer.scene.shapes import Shape, flatten

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    DIFFUSE = 0
    MIRROR = 1


# Maximum number of materials across all types
MAX_MATERIALS = 512

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g. if material_id 5 is the 2nd diffuse material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum), or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index into the type-specific storage for a material ID.

    Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        material: The host-side material object.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    material: Material


@dataclass
class PrimitiveInfo:
    """Information about a primitive in the scene.

    Attributes:
        primitive_index: The index in the primitive table.
        kind: Sphere or plane patch.
        param: The sphere radius or the plane height.
        material_id: The material ID assigned to the primitive.
        transform: The composed object-to-world transform.
    """

    primitive_index: int
    kind: PrimitiveKind
    param: float
    material_id: int
    transform: Transform


class SceneManager:
    """Scene manager coordinating primitives and materials.

    Attributes:
        materials: MaterialInfo for all registered materials, by material ID.
        primitives: PrimitiveInfo for all primitives, by table index.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.primitives: list[PrimitiveInfo] = []
        self._material_ids: dict[Material, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_diffuse_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.primitives.clear()
        self._material_ids.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(self, material_type: MaterialType, type_index: int, material: Material) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                material=material,
            )
        )
        self._material_ids[material] = material_id
        return material_id

    def add_diffuse_material(self, albedo: tuple[float, float, float] | Diffuse) -> int:
        """Add a diffuse material to the scene.

        Args:
            albedo: The reflectance colour as (R, G, B), or a ``Diffuse``.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        material = albedo if isinstance(albedo, Diffuse) else Diffuse(albedo)
        type_index = add_diffuse_material(material.albedo)
        return self._register(MaterialType.DIFFUSE, type_index, material)

    def add_mirror_material(self, material: Mirror | None = None) -> int:
        """Add an ideal mirror material to the scene.

        Mirrors carry no parameters, so they have no type-specific storage.

        Returns:
            The unified material ID for this material.
        """
        return self._register(MaterialType.MIRROR, 0, material or Mirror())

    def material_id_for(self, material: Material) -> int:
        """Get the material ID of a material object, registering it if new."""
        material_id = self._material_ids.get(material)
        if material_id is not None:
            return material_id
        if isinstance(material, Diffuse):
            return self.add_diffuse_material(material)
        if isinstance(material, Mirror):
            return self.add_mirror_material(material)
        raise TypeError(f"Unsupported material: {material!r}")

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a material ID (host side).

        For device-side lookup use the ``get_material_type`` Taichi function.
        """
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def _add_primitive(
        self,
        kind: PrimitiveKind,
        param: float,
        material_id: int,
        transform: Transform | None,
    ) -> int:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")
        if transform is None:
            transform = Transform.identity()

        index = add_primitive(kind, param, material_id, transform)
        self.primitives.append(
            PrimitiveInfo(
                primitive_index=index,
                kind=kind,
                param=float(param),
                material_id=material_id,
                transform=transform,
            )
        )
        return index

    def add_sphere(
        self,
        radius: float,
        material_id: int,
        transform: Transform | None = None,
    ) -> int:
        """Add a sphere centred at the origin of its object space.

        Args:
            radius: The sphere radius (positive).
            material_id: The unified material ID to assign.
            transform: Optional object-to-world transform.

        Returns:
            The index of the added primitive.

        Raises:
            RuntimeError: If the maximum number of primitives is exceeded.
            ValueError: If the radius or material_id is invalid.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        return self._add_primitive(PrimitiveKind.SPHERE, radius, material_id, transform)

    def add_plane(
        self,
        k: float,
        material_id: int,
        transform: Transform | None = None,
    ) -> int:
        """Add the unit square patch at height ``k``.

        Args:
            k: The patch height in object space.
            material_id: The unified material ID to assign.
            transform: Optional object-to-world transform.

        Returns:
            The index of the added primitive.
        """
        return self._add_primitive(PrimitiveKind.PLANE, k, material_id, transform)

    def add_shape(self, shape: Shape) -> list[int]:
        """Flatten a scene graph and append all of its leaves.

        Materials not seen before are registered on the way.

        Returns:
            The primitive indices of the added leaves.

        Raises:
            TypeError: If the graph contains an unknown node.
        """
        indices = []
        for prim in flatten(shape):
            material_id = self.material_id_for(prim.material)
            indices.append(self._add_primitive(prim.kind, prim.param, material_id, prim.transform))
        return indices

    def load(self, shape: Shape) -> None:
        """Replace the current scene with a scene graph."""
        self.clear()
        self.add_shape(shape)
        logger.debug(
            f"Uploaded scene: {self.get_primitive_count()} primitives, "
            f"{self.get_material_count()} materials"
        )

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_primitive_count(self) -> int:
        """Get the number of primitives in the scene."""
        return get_primitive_count()

    def get_primitive_info(self, index: int) -> PrimitiveInfo | None:
        """Get information about a primitive by table index."""
        if 0 <= index < len(self.primitives):
            return self.primitives[index]
        return None

    @staticmethod
    def get_max_primitives() -> int:
        """Get the maximum number of primitives supported."""
        return MAX_PRIMITIVES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
