"""Unit tests for per-pixel accumulation and tone mapping."""

import numpy as np
import pytest


class TestPixelSample:
    """Tests for the scalar accumulator."""

    def test_white_maps_to_255(self):
        """Test unit radiance reads out as full intensity."""
        from src.pathtracer.core.accumulator import PixelSample

        pixel = PixelSample()
        pixel.add((1.0, 1.0, 1.0))
        assert pixel.render() == (255, 255, 255)

    def test_black_maps_to_0(self):
        """Test zero radiance reads out as black."""
        from src.pathtracer.core.accumulator import PixelSample

        pixel = PixelSample()
        pixel.add((0.0, 0.0, 0.0))
        assert pixel.render() == (0, 0, 0)

    def test_no_samples_is_black(self):
        """Test an untouched pixel reads out as black rather than NaN."""
        from src.pathtracer.core.accumulator import PixelSample

        assert PixelSample().render() == (0, 0, 0)

    def test_overbright_is_clamped(self):
        """Test radiance above one saturates instead of wrapping around."""
        from src.pathtracer.core.accumulator import PixelSample

        pixel = PixelSample()
        pixel.add((5.0, 1.5, -2.0))
        assert pixel.render() == (255, 255, 0)

    def test_mean_and_gamma(self):
        """Test the mean is gamma encoded and truncated."""
        from src.pathtracer.core.accumulator import PixelSample

        pixel = PixelSample()
        pixel.add((0.5, 0.0, 1.0))
        pixel.add((0.0, 0.5, 1.0))
        assert pixel.n_samples == 2
        assert pixel.mean() == pytest.approx((0.25, 0.25, 1.0))

        expected = int(255.99 * 0.25 ** (1.0 / 2.2))
        assert pixel.render() == (expected, expected, 255)
        assert pixel.render(gamma=1.0) == (63, 63, 255)

    def test_invalid_gamma(self):
        """Test a non-positive gamma is rejected."""
        from src.pathtracer.core.accumulator import PixelSample

        with pytest.raises(ValueError):
            PixelSample().render(gamma=0.0)


class TestResolvePixels:
    """Tests for the vectorised readout."""

    def test_matches_scalar_readout(self):
        """Test resolve_pixels agrees with PixelSample for every pixel."""
        from src.pathtracer.core.accumulator import PixelSample, resolve_pixels

        rng = np.random.default_rng(7)
        sums = rng.uniform(-0.5, 6.0, size=(3, 4, 3))
        counts = rng.integers(0, 5, size=(3, 4))

        image = resolve_pixels(sums, counts)
        assert image.dtype == np.uint8
        assert image.shape == (3, 4, 3)
        for y in range(3):
            for x in range(4):
                pixel = PixelSample.from_totals(sums[y, x], counts[y, x])
                assert tuple(image[y, x]) == pixel.render()

    def test_zero_count_is_black(self):
        """Test pixels without samples are black."""
        from src.pathtracer.core.accumulator import resolve_pixels

        image = resolve_pixels(np.ones((1, 2, 3)), np.array([[0, 1]]))
        assert image[0, 0].tolist() == [0, 0, 0]
        assert image[0, 1].tolist() == [255, 255, 255]
