"""Integration tests for end-to-end rendering pipeline.

This module tests the complete rendering pipeline from scene creation through
final image output, on the two-sphere demo scene.

Tests are designed to be fast (low resolution, few samples) while still
exercising the full pipeline.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

WIDTH = 40
HEIGHT = 30
SAMPLES = 8


def _render_spheres(aperture: float = 0.0):
    from src.pathtracer.core.progressive import render_scene
    from src.pathtracer.scene.spheres import create_spheres_scene

    world, camera = create_spheres_scene(WIDTH, HEIGHT, aperture=aperture)
    return render_scene(world, camera, WIDTH, HEIGHT, samples_per_pixel=SAMPLES)


class TestSpheresIntegration:
    """Integration tests for the two-sphere scene."""

    def test_end_to_end_renders_successfully(self) -> None:
        """Test that the complete pipeline runs and fills every pixel."""
        renderer = _render_spheres()

        sums, counts = renderer.get_accumulators()
        assert renderer.sample_count == SAMPLES
        assert np.all(counts == SAMPLES)
        assert np.all(np.isfinite(sums))
        assert np.all(sums >= 0.0)
        assert np.sum(sums) > 0.0

    def test_center_shows_red_sphere(self) -> None:
        """Test the image center sees the red diffuse sphere."""
        renderer = _render_spheres()
        image = renderer.get_image_uint8().astype(np.int32)

        center = image[HEIGHT // 2 - 1 : HEIGHT // 2 + 1, WIDTH // 2 - 1 : WIDTH // 2 + 1]
        red, blue = center[..., 0].sum(), center[..., 2].sum()
        assert red > blue

    def test_top_corner_shows_sky(self) -> None:
        """Test the top right corner sees the blue sky."""
        renderer = _render_spheres()
        r, g, b = renderer.pixel_sample(WIDTH - 1, 0).render()

        assert b > r
        assert b == 255

    def test_ground_is_yellow(self) -> None:
        """Test the patch below the red sphere reflects no blue."""
        renderer = _render_spheres()
        # Just below the sphere silhouette, where the rays land on the patch
        r, g, b = renderer.pixel_sample(WIDTH // 2, HEIGHT - 9).render()

        assert r > b
        assert g > b

    def test_depth_of_field_keeps_image_valid(self) -> None:
        """Test a wide aperture still yields a finite, sky-lit image."""
        renderer = _render_spheres(aperture=0.2)

        sums, _ = renderer.get_accumulators()
        assert np.all(np.isfinite(sums))
        assert renderer.pixel_sample(WIDTH - 1, 0).render()[2] == 255

    def test_save_ppm(self, tmp_path: Path) -> None:
        """Test the rendered image is written as a plain-text PPM."""
        renderer = _render_spheres()
        output_path = tmp_path / "out.ppm"
        renderer.save_image(output_path)

        lines = output_path.read_text().splitlines()
        assert lines[0] == f"P3 {WIDTH} {HEIGHT}"
        assert lines[1] == "255"
        assert len(lines) == HEIGHT + 2
        values = [int(v) for v in lines[2].split()]
        assert len(values) == 3 * WIDTH
        assert all(0 <= v <= 255 for v in values)
