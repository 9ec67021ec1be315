"""Progressive renderer for iterative sample accumulation.

This module wraps the integrator with:
- Progressive rendering that refines over time
- Batch rendering (multiple samples per pixel in one call)
- Progress callbacks and a generator interface for UI updates
- Cancellation from another thread, honoured between passes
- Readout of the accumulators as ``PixelSample`` values or an 8-bit image

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.progressive import render_scene
    >>> from src.pathtracer.scene.spheres import create_spheres_scene
    >>>
    >>> world, camera = create_spheres_scene(200, 150)
    >>> renderer = render_scene(world, camera, 200, 150, samples_per_pixel=16)
    >>> renderer.save_image("out.ppm")
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Generator
from os import PathLike

import numpy as np
import numpy.typing as npt

from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
from src.pathtracer.core.accumulator import DEFAULT_GAMMA, PixelSample, resolve_pixels
from src.pathtracer.core.integrator import (
    clear_render_target,
    get_accumulators,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.pathtracer.preview.export import save_image
from src.pathtracer.scene.manager import SceneManager
from src.pathtracer.scene.shapes import Shape

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps the image dimensions and delegates to the global
    integrator buffers (which are Taichi fields). The scene and the camera
    must be uploaded before rendering.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        self._width = width
        self._height = height
        self._cancelled = threading.Event()
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    @property
    def cancelled(self) -> bool:
        """Whether a cancellation is pending."""
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Ask a running render to stop after the current pass.

        Safe to call from another thread. The samples accumulated so far are
        kept; the next call to ``render`` starts uncancelled.
        """
        self._cancelled.set()

    def reset(self) -> None:
        """Clear the accumulators without changing the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulators.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def step(self) -> int:
        """Add one sample per pixel without progress reporting.

        Returns:
            The number of samples per pixel accumulated so far.
        """
        render_image(1)
        return self.sample_count

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> int:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Returns:
            The number of samples per pixel accumulated so far.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)
        return self.sample_count

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._cancelled.clear()
        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        start_time = time.perf_counter()

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            for _ in range(batch):
                if self._cancelled.is_set():
                    break
                render_image(1)
                remaining -= 1
            if self._cancelled.is_set():
                logger.warning(
                    f"Render cancelled at {self.sample_count}/{target_samples} samples"
                )
                yield (self.sample_count, target_samples)
                return
            logger.debug(f"Rendered {self.sample_count}/{target_samples} samples")
            yield (self.sample_count, target_samples)

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Rendered {num_samples} samples per pixel at "
            f"{self.width}x{self.height} in {elapsed:.2f}s"
        )

    def get_accumulators(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int64]]:
        """Get the radiance sums (H, W, 3) and sample counts (H, W)."""
        return get_accumulators()

    def pixel_sample(self, x: int, y: int) -> PixelSample:
        """Get the accumulator of one pixel.

        Args:
            x: Pixel column (0 = left).
            y: Pixel row (0 = top).

        Raises:
            IndexError: If the pixel is outside the image.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        sums, counts = self.get_accumulators()
        return PixelSample.from_totals(sums[y, x], counts[y, x])

    def get_image_uint8(self, gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit array of shape (height, width, 3).

        Row 0 is the top of the image.
        """
        sums, counts = self.get_accumulators()
        return resolve_pixels(sums, counts, gamma)

    def save_image(self, filepath: str | PathLike[str], gamma: float = DEFAULT_GAMMA) -> None:
        """Save the rendered image, as PPM for ``.ppm`` paths and via Pillow otherwise."""
        save_image(self.get_image_uint8(gamma=gamma), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )


def render_scene(
    scene: Shape,
    camera: ThinLensCamera,
    width: int,
    height: int,
    samples_per_pixel: int,
    batch_size: int = 1,
    callback: ProgressCallback | None = None,
) -> ProgressiveRenderer:
    """Upload a scene and a camera, then render it.

    Args:
        scene: The root of the scene graph.
        camera: The camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples accumulated into every pixel.
        batch_size: Samples between progress callbacks.
        callback: Optional progress callback.

    Returns:
        The renderer holding the pixel accumulators.
    """
    SceneManager().load(scene)
    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height)
    renderer.render(samples_per_pixel, batch_size=batch_size, callback=callback)
    return renderer
