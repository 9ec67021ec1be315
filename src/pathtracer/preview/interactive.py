"""Interactive preview window using Taichi GGUI.

The preview shows a progressive render while it converges: every frame
adds one sample per pixel and displays the tone-mapped result. The loop
ends when the window is closed, Escape is pressed, or an optional sample
budget is reached.

Example:
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>> from src.pathtracer.preview.interactive import InteractivePreview
    >>>
    >>> renderer = ProgressiveRenderer(800, 600)
    >>> preview = InteractivePreview(800, 600)
    >>> preview.run_progressive(renderer, max_samples=100)
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

if TYPE_CHECKING:
    import numpy.typing as npt

    from src.pathtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field storing the display image (RGB float),
            indexed (x, y) with y = 0 at the bottom.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Path Tracer - Interactive Preview",
    ) -> None:
        """Initialize the preview.

        The window itself is created on first use, so constructing a preview
        works on headless machines.
        """
        self.width = width
        self.height = height
        self._title = title
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None
        self._renderer: ProgressiveRenderer | None = None
        self._gamma = 2.2

        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: npt.NDArray[np.uint8] | npt.NDArray[np.float32]) -> None:
        """Update the display image from an image array.

        Args:
            image: Array of shape (height, width, 3), row 0 at the top. uint8
                images are scaled to [0, 1]; float images are used as is.

        Raises:
            ValueError: If image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected {expected_shape}"
            )

        if image.dtype == np.uint8:
            image = image.astype(np.float32) / 255.0

        # Fields are indexed (x, y) with the origin at the bottom-left
        image_transposed = np.ascontiguousarray(
            np.transpose(np.flipud(image), (1, 0, 2)), dtype=np.float32
        )
        self.display_image.from_numpy(image_transposed)

    def is_running(self) -> bool:
        """Whether the window is still open."""
        return self.window.running

    def escape_pressed(self) -> bool:
        """Consume pending key presses and report whether Escape was one."""
        pressed = False
        while self.window.get_event(ti.ui.PRESS):
            if self.window.event.key == ti.ui.ESCAPE:
                pressed = True
        return pressed

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    def run_progressive(
        self,
        renderer: ProgressiveRenderer,
        max_samples: int | None = None,
        gamma: float = 2.2,
    ) -> int:
        """Render one sample per frame until stopped.

        Args:
            renderer: The renderer to drive; its scene and camera must be set up.
            max_samples: Stop once this many samples per pixel are accumulated.
                Runs until the window is closed if None.
            gamma: Display gamma.

        Returns:
            The number of samples per pixel accumulated.
        """
        self._initialize_window()
        self._renderer = renderer
        self._gamma = gamma

        while self.is_running():
            if self.escape_pressed():
                logger.info("Preview closed with Escape")
                break
            if max_samples is not None and renderer.sample_count >= max_samples:
                break

            renderer.step()
            self.update_image(renderer.get_image_uint8(gamma=gamma))
            self._draw_gui_panel()
            self.show_frame()

        logger.info(f"Preview stopped at {renderer.sample_count} samples per pixel")
        return renderer.sample_count

    def _draw_gui_panel(self) -> None:
        with self.window.GUI.sub_window("Render", 0.02, 0.02, 0.25, 0.12) as gui:
            assert self._renderer is not None
            gui.text(f"Samples: {self._renderer.sample_count}")
            if gui.button("Export PPM"):
                self._export_image()

    def _export_image(self) -> None:
        """Save the current image to a timestamped PPM file."""
        if self._renderer is None:
            logger.error("No renderer available for export")
            return
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._renderer.save_image(f"render_{timestamp}.ppm", gamma=self._gamma)

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        # On macOS, display is always available unless in SSH without forwarding
        if os.uname().sysname == "Darwin":
            return not (os.environ.get("SSH_CONNECTION") and not display)

        return bool(display or wayland)
