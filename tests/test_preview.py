"""Tests for the interactive preview.

Note: These tests avoid creating actual GUI windows by testing
the initialization and data handling logic only.
"""

import numpy as np
import pytest


class TestInteractivePreview:
    """Tests for the InteractivePreview class."""

    def test_init_creates_display_field(self):
        """Test that initialization creates the display image field."""
        from src.pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(64, 48)

        assert preview.width == 64
        assert preview.height == 48
        # Shape should be (width, height) for Taichi field
        assert preview.display_image.shape == (64, 48)

    def test_init_defers_window_creation(self):
        """Test that window creation is deferred until first use."""
        from src.pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)

        assert preview._window is None
        assert preview._canvas is None

    def test_update_image_validates_shape(self):
        """Test that update_image validates the input shape."""
        from src.pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 24)

        wrong_shape = np.zeros((10, 10, 3), dtype=np.float32)
        with pytest.raises(ValueError, match="doesn't match expected"):
            preview.update_image(wrong_shape)

    def test_update_image_scales_uint8(self):
        """Test 8-bit images are scaled to [0, 1]."""
        from src.pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(4, 4)
        preview.update_image(np.full((4, 4, 3), 255, dtype=np.uint8))

        assert np.allclose(preview.display_image.to_numpy(), 1.0, atol=1e-6)

    def test_update_image_flips_rows(self):
        """Test the top image row lands at the top of the window (largest y)."""
        from src.pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(3, 2)
        image = np.zeros((2, 3, 3), dtype=np.float32)
        image[0, 2] = (1.0, 0.5, 0.25)
        preview.update_image(image)

        field = preview.display_image.to_numpy()
        np.testing.assert_allclose(field[2, 1], (1.0, 0.5, 0.25))
        assert not field[2, 0].any()

    def test_close_without_window(self):
        """Test closing a preview that never opened is a no-op."""
        from src.pathtracer.preview.interactive import InteractivePreview

        preview = InteractivePreview(8, 8)
        preview.close()
        assert preview._window is None

    def test_is_display_available_returns_bool(self):
        """Test that is_display_available returns a boolean."""
        from src.pathtracer.preview.interactive import InteractivePreview

        assert isinstance(InteractivePreview.is_display_available(), bool)

    def test_headless_without_display(self, monkeypatch):
        """Test no display is reported on Linux without X11 or Wayland."""
        import os

        from src.pathtracer.preview.interactive import InteractivePreview

        if os.name == "nt" or os.uname().sysname != "Linux":
            pytest.skip("Display detection differs on this platform")
        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        assert InteractivePreview.is_display_available() is False


class TestRunProgressive:
    """Tests for the preview loop with the window calls stubbed out."""

    def test_stops_at_sample_budget_without_per_frame_info_logs(self, monkeypatch, caplog):
        """Test the loop renders one sample per frame and keeps INFO output quiet."""
        import logging

        from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
        from src.pathtracer.core.progressive import ProgressiveRenderer
        from src.pathtracer.materials import Diffuse
        from src.pathtracer.preview.interactive import InteractivePreview
        from src.pathtracer.scene.manager import SceneManager
        from src.pathtracer.scene.shapes import Sphere

        SceneManager().load(Sphere(0.5, Diffuse((0.5, 0.5, 0.5))))
        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 2.0),
                lookat=(0.0, 0.0, 0.0),
                vup=(0.0, 1.0, 0.0),
                vfov=60.0,
                aspect_ratio=1.0,
            )
        )
        renderer = ProgressiveRenderer(8, 8)
        preview = InteractivePreview(8, 8)

        frames = []
        preview._window = object()
        monkeypatch.setattr(preview, "is_running", lambda: True)
        monkeypatch.setattr(preview, "escape_pressed", lambda: False)
        monkeypatch.setattr(preview, "_draw_gui_panel", lambda: None)
        monkeypatch.setattr(preview, "show_frame", lambda: frames.append(renderer.sample_count))

        with caplog.at_level(logging.INFO, logger="src.pathtracer.core.progressive"):
            count = preview.run_progressive(renderer, max_samples=3)

        assert count == 3
        assert frames == [1, 2, 3]
        assert not [r for r in caplog.records if r.name == "src.pathtracer.core.progressive"]
