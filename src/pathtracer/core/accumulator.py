"""Per-pixel radiance accumulation and tone mapping.

A pixel collects radiance samples and is read out as a displayable colour:

    mean = sum / n_samples
    value = floor(255.99 * clamp(mean, 0, 1) ** (1 / gamma))

Clamping before the gamma curve keeps over-bright samples (for instance a
long chain of mirror bounces) from wrapping around past 255.

``PixelSample`` is the scalar, per-pixel form; ``resolve_pixels`` applies
the same arithmetic to the whole image buffer at once.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

# Scale from [0, 1] to the 8-bit display range; truncation maps 1.0 to 255
DISPLAY_SCALE = 255.99

DEFAULT_GAMMA = 2.2


def _check_gamma(gamma: float) -> None:
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")


class PixelSample:
    """Running sum of radiance samples for one pixel.

    Example:
        >>> pixel = PixelSample()
        >>> pixel.add((1.0, 1.0, 1.0))
        >>> pixel.render()
        (255, 255, 255)
    """

    __slots__ = ("sum", "n_samples")

    def __init__(self) -> None:
        self.sum = np.zeros(3, dtype=np.float64)
        self.n_samples = 0

    def add(self, sample: Sequence[float]) -> None:
        """Add one radiance sample (RGB)."""
        self.sum += np.asarray(sample, dtype=np.float64)
        self.n_samples += 1

    def mean(self) -> npt.NDArray[np.float64]:
        """Average radiance; black before the first sample."""
        if self.n_samples == 0:
            return np.zeros(3, dtype=np.float64)
        return self.sum / self.n_samples

    def render(self, gamma: float = DEFAULT_GAMMA) -> tuple[int, int, int]:
        """Tone-map the average radiance to 8-bit RGB."""
        _check_gamma(gamma)
        value = np.clip(self.mean(), 0.0, 1.0) ** (1.0 / gamma)
        r, g, b = (int(DISPLAY_SCALE * c) for c in value)
        return (r, g, b)

    @classmethod
    def from_totals(cls, total: Sequence[float], n_samples: int) -> PixelSample:
        """Rebuild a pixel from a radiance sum and a sample count."""
        pixel = cls()
        pixel.sum = np.asarray(total, dtype=np.float64).copy()
        pixel.n_samples = int(n_samples)
        return pixel

    def __repr__(self) -> str:
        return f"PixelSample(sum={self.sum.tolist()}, n_samples={self.n_samples})"


def resolve_pixels(
    sums: npt.ArrayLike,
    counts: npt.ArrayLike,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Tone-map a whole image of accumulators.

    Args:
        sums: Radiance sums of shape (height, width, 3).
        counts: Sample counts of shape (height, width).
        gamma: Display gamma.

    Returns:
        uint8 array of shape (height, width, 3). Pixels without samples
        are black.
    """
    _check_gamma(gamma)
    sums = np.asarray(sums, dtype=np.float64)
    counts = np.asarray(counts, dtype=np.float64)

    safe_counts = np.maximum(counts, 1.0)[..., np.newaxis]
    mean = np.where(counts[..., np.newaxis] > 0, sums / safe_counts, 0.0)
    value = np.clip(mean, 0.0, 1.0) ** (1.0 / gamma)
    return (DISPLAY_SCALE * value).astype(np.uint8)
