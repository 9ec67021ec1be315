"""Unit tests for the unit plane patch intersection."""

import math

import pytest
import taichi as ti


def _hit_plane(origin, direction, k, t_max=math.inf):
    """Run hit_plane in a kernel and return (hit, t, point, normal)."""
    from src.pathtracer.core.ray import Ray, vec3
    from src.pathtracer.geometry.plane import hit_plane

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32, h: ti.f32, tm: ti.f32
    ):
        ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz), t_max=tm)
        record = hit_plane(ray, h)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel(*origin, *direction, k, t_max)
    return hit[None], t_val[None], tuple(point[None]), tuple(normal[None])


class TestPlaneIntersection:
    """Tests for ray-patch intersection."""

    def test_hit_from_above(self):
        """Test a downward ray hits the patch with normal +y."""
        hit, t, point, normal = _hit_plane((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), -0.5)

        assert hit == 1
        assert abs(t - 1.5) < 1e-6
        assert point == pytest.approx((0.0, -0.5, 0.0), abs=1e-6)
        assert normal == pytest.approx((0.0, 1.0, 0.0))

    def test_hit_from_below_keeps_up_normal(self):
        """Test the normal is +y even for rays arriving from below."""
        hit, _, _, normal = _hit_plane((0.1, -1.0, 0.1), (0.0, 1.0, 0.0), 0.0)

        assert hit == 1
        assert normal == pytest.approx((0.0, 1.0, 0.0))

    def test_outside_square_misses(self):
        """Test a crossing outside |x|, |z| <= 0.5 is a miss."""
        hit, _, _, _ = _hit_plane((0.6, 1.0, 0.0), (0.0, -1.0, 0.0), 0.0)
        assert hit == 0

        hit, _, _, _ = _hit_plane((0.0, 1.0, -0.51), (0.0, -1.0, 0.0), 0.0)
        assert hit == 0

    def test_edge_of_square_hits(self):
        """Test the square boundary is inclusive."""
        hit, _, _, _ = _hit_plane((0.5, 1.0, -0.5), (0.0, -1.0, 0.0), 0.0)
        assert hit == 1

    def test_parallel_ray_misses(self):
        """Test a ray parallel to the patch is a miss, not a division by zero."""
        hit, _, _, _ = _hit_plane((0.0, 0.0, 1.0), (0.0, 0.0, -1.0), 0.0)
        assert hit == 0

    def test_patch_behind_ray_misses(self):
        """Test a patch behind the origin is not hit."""
        hit, _, _, _ = _hit_plane((0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.0)
        assert hit == 0

    def test_t_max_bound(self):
        """Test a crossing beyond t_max is rejected."""
        hit, _, _, _ = _hit_plane((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), 0.0, t_max=0.5)
        assert hit == 0

    def test_oblique_hit(self):
        """Test an oblique ray crossing inside the square."""
        hit, t, point, _ = _hit_plane((-0.4, 1.0, 0.0), (0.4, -1.0, 0.0), 0.0)

        assert hit == 1
        assert abs(t - 1.0) < 1e-6
        assert point == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)
