"""Render configuration and Taichi runtime initialisation.

This module declares no Taichi fields, so it can be imported (and
``init_taichi`` called) before any of the field-declaring modules.

Example:
    >>> from src.pathtracer.config import RenderSettings, init_taichi
    >>> settings = RenderSettings(width=400, height=300, samples_per_pixel=16)
    >>> init_taichi(settings)
    >>> from src.pathtracer.core.progressive import render_scene  # safe now
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

ARCHITECTURES = ("cpu", "gpu", "cuda", "vulkan", "metal")


@dataclass
class RenderSettings:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples accumulated into every pixel.
        batch_size: Samples rendered between progress reports.
        gamma: Display gamma used to tone-map the output.
        seed: Seed of Taichi's per-thread random generators.
        arch: Taichi backend name (one of ARCHITECTURES).
    """

    width: int = 800
    height: int = 600
    samples_per_pixel: int = 100
    batch_size: int = 10
    gamma: float = 2.2
    seed: int = 0
    arch: str = "cpu"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.gamma <= 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.arch not in ARCHITECTURES:
            raise ValueError(f"arch must be one of {ARCHITECTURES}, got {self.arch!r}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


def init_taichi(settings: RenderSettings) -> None:
    """Initialise the Taichi runtime for the given settings.

    GPU backends fall back to the CPU when no device is available.
    """
    ti.init(arch=getattr(ti, settings.arch), random_seed=settings.seed)
    logger.debug(f"Taichi initialised: arch={settings.arch}, seed={settings.seed}")
