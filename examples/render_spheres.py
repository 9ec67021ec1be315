#!/usr/bin/env python3
"""Render the two-sphere demo scene.

Builds the demo world (a mirror sphere, a red diffuse sphere and a yellow
ground patch under a sky gradient), renders it progressively and writes
the result as a plain-text PPM (or PNG, by file suffix).

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 800)
    --height HEIGHT     Image height in pixels (default: 600)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --batch-size SIZE   Samples per progress update (default: 10)
    --seed SEED         Random seed (default: 0)
    --arch ARCH         Taichi backend (default: cpu)
    --aperture A        Lens diameter for depth of field (default: 0)
    --output OUTPUT     Output file path (default: out.ppm)
    --preview           Show the render in an interactive window
    --verbose           Log progress at DEBUG level

Example:
    python -m examples.render_spheres --width 400 --height 300 --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from src.pathtracer.config import ARCHITECTURES, RenderSettings, init_taichi  # noqa: E402

logger = logging.getLogger("render_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    defaults = RenderSettings()
    parser = argparse.ArgumentParser(
        description="Render the two-sphere demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Image width in pixels")
    parser.add_argument(
        "--height", type=int, default=defaults.height, help="Image height in pixels"
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=defaults.samples_per_pixel,
        help="Number of samples per pixel",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=defaults.batch_size,
        help="Samples per progress update",
    )
    parser.add_argument("--seed", type=int, default=defaults.seed, help="Random seed")
    parser.add_argument(
        "--arch", choices=ARCHITECTURES, default=defaults.arch, help="Taichi backend"
    )
    parser.add_argument(
        "--aperture", type=float, default=0.0, help="Lens diameter for depth of field"
    )
    parser.add_argument("--output", type=str, default="out.ppm", help="Output file path")
    parser.add_argument(
        "--preview", action="store_true", help="Show the render in an interactive window"
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress at DEBUG level")
    return parser.parse_args(argv)


def render_spheres(
    settings: RenderSettings,
    output_path: str = "out.ppm",
    aperture: float = 0.0,
    preview: bool = False,
) -> Path:
    """Render the demo scene and save it.

    Taichi must already be initialised.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.camera.thin_lens import setup_camera
    from src.pathtracer.core.progressive import ProgressiveRenderer
    from src.pathtracer.preview.interactive import InteractivePreview
    from src.pathtracer.scene.manager import SceneManager
    from src.pathtracer.scene.spheres import create_spheres_scene

    world, camera = create_spheres_scene(settings.width, settings.height, aperture=aperture)
    SceneManager().load(world)
    setup_camera(camera)
    renderer = ProgressiveRenderer(settings.width, settings.height)

    start_time = time.time()

    if preview and InteractivePreview.is_display_available():
        window = InteractivePreview(settings.width, settings.height)
        window.run_progressive(renderer, settings.samples_per_pixel, gamma=settings.gamma)
    else:
        if preview:
            logger.warning("No display available; rendering without preview")

        def progress_callback(current: int, target: int) -> None:
            elapsed = time.time() - start_time
            samples_per_sec = current / elapsed if elapsed > 0 else 0.0
            logger.info(f"Progress: {current}/{target} samples ({samples_per_sec:.1f} spp/s)")

        renderer.render(
            num_samples=settings.samples_per_pixel,
            batch_size=settings.batch_size,
            callback=progress_callback,
        )

    output_file = Path(output_path)
    renderer.save_image(output_file, gamma=settings.gamma)
    logger.info(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            batch_size=args.batch_size,
            seed=args.seed,
            arch=args.arch,
        )
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return 2

    init_taichi(settings)

    try:
        render_spheres(settings, args.output, aperture=args.aperture, preview=args.preview)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error(f"Render failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
