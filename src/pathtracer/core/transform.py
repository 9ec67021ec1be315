"""Invertible affine transforms between object and world space.

A Transform always stores the matrix together with its inverse, so points,
vectors and normals can each be mapped with the right matrix:

- points use the full matrix (translation included),
- vectors use the upper 3x3 block (no translation),
- normals use the transpose of the inverse, which keeps them perpendicular
  to the surface under non-uniform scaling.

Host-side transforms are numpy float64 matrices used while building the
scene. The device-side helpers at the bottom of the module apply a
``mat4`` read from a Taichi field inside kernels.

Example:
    >>> from src.pathtracer.core.transform import Transform
    >>> t = Transform.translation(0.0, 0.0, -1.0) @ Transform.scaling(2.0)
    >>> t.transform_point((1.0, 0.0, 0.0))
    array([ 2.,  0., -1.])
"""

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
mat4 = tm.mat4

# Matrices with a larger condition number are treated as singular
CONDITION_LIMIT = 1.0 / np.finfo(np.float64).eps


class DegenerateTransformError(ValueError):
    """Raised when a transform matrix is not invertible."""


class Transform:
    """An affine object-to-world mapping stored as an inverse pair.

    Attributes:
        m: The 4x4 object-to-world matrix (read-only).
        m_inv: The 4x4 world-to-object matrix (read-only).
    """

    __slots__ = ("_m", "_m_inv")

    def __init__(self, m: npt.ArrayLike) -> None:
        """Create a transform from a 4x4 matrix.

        Args:
            m: A 4x4 matrix, row-major (column vectors are transformed as m @ v).

        Raises:
            DegenerateTransformError: If the matrix is not a finite,
                invertible 4x4 matrix.
        """
        matrix = np.array(m, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise DegenerateTransformError(f"Transform matrix must be 4x4, got {matrix.shape}")
        if not np.all(np.isfinite(matrix)):
            raise DegenerateTransformError("Transform matrix contains non-finite values")
        if np.linalg.cond(matrix) >= CONDITION_LIMIT:
            raise DegenerateTransformError("Transform matrix is not invertible")

        self._m = matrix
        self._m_inv = np.linalg.inv(matrix)
        self._m.setflags(write=False)
        self._m_inv.setflags(write=False)

    @classmethod
    def _from_pair(cls, m: npt.NDArray[np.float64], m_inv: npt.NDArray[np.float64]) -> "Transform":
        transform = cls.__new__(cls)
        transform._m = m
        transform._m_inv = m_inv
        return transform

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def identity(cls) -> "Transform":
        """Create the identity transform."""
        return cls(np.eye(4))

    @classmethod
    def translation(cls, x: float, y: float, z: float) -> "Transform":
        """Create a translation by (x, y, z)."""
        m = np.eye(4)
        m[:3, 3] = (x, y, z)
        return cls(m)

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None, sz: float | None = None) -> "Transform":
        """Create a scaling transform.

        Args:
            sx: Scale along x (or uniform scale if sy and sz are omitted).
            sy: Scale along y. Defaults to sx.
            sz: Scale along z. Defaults to sx.

        Raises:
            DegenerateTransformError: If any scale factor is zero.
        """
        sy = sx if sy is None else sy
        sz = sx if sz is None else sz
        return cls(np.diag((sx, sy, sz, 1.0)))

    @classmethod
    def rotation(cls, angle_degrees: float, axis: Sequence[float]) -> "Transform":
        """Create a rotation about an axis through the origin.

        Args:
            angle_degrees: Counter-clockwise rotation angle in degrees.
            axis: The rotation axis (need not be normalized).

        Raises:
            DegenerateTransformError: If the axis has zero length.
        """
        a = np.array(axis, dtype=np.float64)
        length = np.linalg.norm(a)
        if length == 0.0 or not math.isfinite(length):
            raise DegenerateTransformError("Rotation axis must be a non-zero finite vector")
        x, y, z = a / length
        theta = math.radians(angle_degrees)
        c = math.cos(theta)
        s = math.sin(theta)
        t = 1.0 - c

        # Rodrigues' rotation formula
        m = np.eye(4)
        m[:3, :3] = (
            (t * x * x + c, t * x * y - s * z, t * x * z + s * y),
            (t * x * y + s * z, t * y * y + c, t * y * z - s * x),
            (t * x * z - s * y, t * y * z + s * x, t * z * z + c),
        )
        return cls(m)

    # =========================================================================
    # Accessors and algebra
    # =========================================================================

    @property
    def m(self) -> npt.NDArray[np.float64]:
        return self._m

    @property
    def m_inv(self) -> npt.NDArray[np.float64]:
        return self._m_inv

    def inverse(self) -> "Transform":
        """Return the inverse transform (swaps the stored pair)."""
        return Transform._from_pair(self._m_inv, self._m)

    def __matmul__(self, other: "Transform") -> "Transform":
        """Compose transforms: ``(a @ b)`` applies ``b`` first, then ``a``."""
        if not isinstance(other, Transform):
            return NotImplemented
        m = self._m @ other._m
        m_inv = other._m_inv @ self._m_inv
        m.setflags(write=False)
        m_inv.setflags(write=False)
        return Transform._from_pair(m, m_inv)

    def is_identity(self) -> bool:
        return bool(np.array_equal(self._m, np.eye(4)))

    def transform_point(self, p: Sequence[float]) -> npt.NDArray[np.float64]:
        """Map a point from object to world space."""
        return self._m[:3, :3] @ np.asarray(p, dtype=np.float64) + self._m[:3, 3]

    def transform_vector(self, v: Sequence[float]) -> npt.NDArray[np.float64]:
        """Map a direction from object to world space (translation ignored)."""
        return self._m[:3, :3] @ np.asarray(v, dtype=np.float64)

    def transform_normal(self, n: Sequence[float]) -> npt.NDArray[np.float64]:
        """Map a surface normal from object to world space.

        Uses the transpose of the inverse matrix. The result is not
        renormalized.
        """
        return self._m_inv[:3, :3].T @ np.asarray(n, dtype=np.float64)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self._m.tobytes())

    def __repr__(self) -> str:
        return f"Transform({self._m.tolist()!r})"


# =============================================================================
# Device-side helpers (Taichi functions)
# =============================================================================


@ti.func
def apply_point(m: mat4, p: vec3) -> vec3:
    """Transform a point with an affine 4x4 matrix."""
    return vec3(
        m[0, 0] * p.x + m[0, 1] * p.y + m[0, 2] * p.z + m[0, 3],
        m[1, 0] * p.x + m[1, 1] * p.y + m[1, 2] * p.z + m[1, 3],
        m[2, 0] * p.x + m[2, 1] * p.y + m[2, 2] * p.z + m[2, 3],
    )


@ti.func
def apply_vector(m: mat4, v: vec3) -> vec3:
    """Transform a direction with the linear part of a 4x4 matrix."""
    return vec3(
        m[0, 0] * v.x + m[0, 1] * v.y + m[0, 2] * v.z,
        m[1, 0] * v.x + m[1, 1] * v.y + m[1, 2] * v.z,
        m[2, 0] * v.x + m[2, 1] * v.y + m[2, 2] * v.z,
    )


@ti.func
def apply_normal(m_inv: mat4, n: vec3) -> vec3:
    """Transform a normal with the transpose of an inverse matrix.

    Args:
        m_inv: The world-to-object matrix of the transform.
        n: The object-space normal.

    Returns:
        The world-space normal (not renormalized).
    """
    return vec3(
        m_inv[0, 0] * n.x + m_inv[1, 0] * n.y + m_inv[2, 0] * n.z,
        m_inv[0, 1] * n.x + m_inv[1, 1] * n.y + m_inv[2, 1] * n.z,
        m_inv[0, 2] * n.x + m_inv[1, 2] * n.y + m_inv[2, 2] * n.z,
    )
