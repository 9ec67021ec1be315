"""Unit tests for the Transform utility and its device helpers."""

import numpy as np
import pytest
import taichi as ti


class TestTransformConstruction:
    """Tests for building transforms."""

    def test_identity(self):
        """Test the identity stores the identity pair."""
        from src.pathtracer.core.transform import Transform

        t = Transform.identity()
        assert np.array_equal(t.m, np.eye(4))
        assert np.array_equal(t.m_inv, np.eye(4))
        assert t.is_identity()

    def test_inverse_is_precomputed(self):
        """Test m @ m_inv is the identity for a general transform."""
        from src.pathtracer.core.transform import Transform

        t = Transform.translation(1, 2, 3) @ Transform.rotation(30, (1, 1, 0)) @ Transform.scaling(2, 3, 4)
        assert np.allclose(t.m @ t.m_inv, np.eye(4))

    def test_matrices_are_read_only(self):
        """Test the stored matrices cannot be modified in place."""
        from src.pathtracer.core.transform import Transform

        t = Transform.translation(1, 0, 0)
        with pytest.raises(ValueError):
            t.m[0, 3] = 5.0

    @pytest.mark.parametrize(
        "matrix",
        [
            np.zeros((4, 4)),
            np.diag((1.0, 0.0, 1.0, 1.0)),
            np.eye(3),
            np.full((4, 4), np.nan),
        ],
    )
    def test_degenerate_matrix_raises(self, matrix):
        """Test singular, malformed or non-finite matrices are rejected."""
        from src.pathtracer.core.transform import DegenerateTransformError, Transform

        with pytest.raises(DegenerateTransformError):
            Transform(matrix)

    @pytest.mark.parametrize("scale", [5e-5, 1e-8, 3e6])
    def test_tiny_and_huge_scales_are_invertible(self, scale):
        """Test singularity is judged relative to the matrix scale."""
        from src.pathtracer.core.transform import Transform

        t = Transform.scaling(scale)
        assert np.allclose(t.m @ t.m_inv, np.eye(4))
        assert t.transform_point((1.0, 0.0, 0.0))[0] == pytest.approx(scale)

    def test_degenerate_error_is_value_error(self):
        """Test callers can catch the error as a ValueError."""
        from src.pathtracer.core.transform import Transform

        with pytest.raises(ValueError):
            Transform.scaling(0.0)

    def test_zero_rotation_axis_raises(self):
        """Test a zero-length rotation axis is rejected."""
        from src.pathtracer.core.transform import DegenerateTransformError, Transform

        with pytest.raises(DegenerateTransformError):
            Transform.rotation(45, (0, 0, 0))


class TestTransformAlgebra:
    """Tests for applying and composing transforms."""

    def test_translation_moves_points_not_vectors(self):
        """Test translation affects points but not directions."""
        from src.pathtracer.core.transform import Transform

        t = Transform.translation(1, 2, 3)
        assert np.allclose(t.transform_point((0, 0, 0)), (1, 2, 3))
        assert np.allclose(t.transform_vector((0, 0, 1)), (0, 0, 1))

    def test_rotation_about_y(self):
        """Test a 90 degree rotation about +y maps +x to -z."""
        from src.pathtracer.core.transform import Transform

        t = Transform.rotation(90, (0, 1, 0))
        assert np.allclose(t.transform_vector((1, 0, 0)), (0, 0, -1))

    def test_composition_order(self):
        """Test (a @ b) applies b first, then a."""
        from src.pathtracer.core.transform import Transform

        a = Transform.translation(1, 0, 0)
        b = Transform.scaling(2)
        assert np.allclose((a @ b).transform_point((1, 0, 0)), (3, 0, 0))
        assert np.allclose((b @ a).transform_point((1, 0, 0)), (4, 0, 0))

    def test_composed_inverse(self):
        """Test the composed inverse is the product of inverses in reverse order."""
        from src.pathtracer.core.transform import Transform

        t = Transform.translation(1, 2, 3) @ Transform.scaling(2, 1, 0.5)
        p = np.array([0.3, -0.2, 0.7])
        assert np.allclose(t.inverse().transform_point(t.transform_point(p)), p)

    def test_normal_uses_inverse_transpose(self):
        """Test normals stay perpendicular to surfaces under non-uniform scaling."""
        from src.pathtracer.core.transform import Transform

        t = Transform.scaling(1, 2, 1)
        tangent = t.transform_vector((1, -1, 0))
        normal = t.transform_normal((1, 1, 0))
        assert abs(np.dot(tangent, normal)) < 1e-12

    def test_equality_by_matrix(self):
        """Test transforms with the same matrix compare equal."""
        from src.pathtracer.core.transform import Transform

        assert Transform.translation(1, 2, 3) == Transform.translation(1, 2, 3)
        assert hash(Transform.scaling(2)) == hash(Transform.scaling(2))
        assert Transform.translation(1, 2, 3) != Transform.identity()


class TestDeviceHelpers:
    """Tests for apply_point, apply_vector and apply_normal inside kernels."""

    def test_device_matches_host(self):
        """Test device helpers agree with the host implementation."""
        from src.pathtracer.core.transform import (
            Transform,
            apply_normal,
            apply_point,
            apply_vector,
        )

        t = Transform.translation(1, -2, 0.5) @ Transform.rotation(40, (0.3, 1, 0.2)) @ Transform.scaling(1, 3, 0.5)
        m = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        m_inv = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        out = ti.Vector.field(3, dtype=ti.f32, shape=3)
        m[None] = t.m.tolist()
        m_inv[None] = t.m_inv.tolist()

        @ti.kernel
        def test_kernel():
            v = ti.math.vec3(0.2, 0.4, -0.6)
            out[0] = apply_point(m[None], v)
            out[1] = apply_vector(m[None], v)
            out[2] = apply_normal(m_inv[None], v)

        test_kernel()
        result = out.to_numpy()
        v = (0.2, 0.4, -0.6)
        assert np.allclose(result[0], t.transform_point(v), atol=1e-5)
        assert np.allclose(result[1], t.transform_vector(v), atol=1e-5)
        assert np.allclose(result[2], t.transform_normal(v), atol=1e-5)
