"""Preview module for output and visualization.

Components:
    export: PPM and PNG image export
    interactive: Taichi GGUI-based interactive preview window

Example:
    >>> from src.pathtracer.preview import save_image
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(800, 600)
    >>> renderer.render(100)
    >>> save_image(renderer.get_image_uint8(), "out.ppm")

For interactive GGUI preview:
    >>> from src.pathtracer.preview import InteractivePreview
    >>> preview = InteractivePreview(800, 600)
    >>> preview.run_progressive(renderer, max_samples=100)
"""

from src.pathtracer.preview.export import (
    format_ppm,
    save_image,
    save_png,
    write_ppm,
)
from src.pathtracer.preview.interactive import InteractivePreview

__all__ = [
    # Interactive preview
    "InteractivePreview",
    # Export functions
    "format_ppm",
    "write_ppm",
    "save_png",
    "save_image",
]
