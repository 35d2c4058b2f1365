"""Unit tests for RGB spectrum helpers."""

import numpy as np
import pytest


class TestSpectrum:
    """Tests for constructors and predicates."""

    def test_constructors(self):
        """Test black, fill and rgb."""
        from src.mmlt.core.spectrum import black, fill, rgb

        np.testing.assert_array_equal(black(), [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(fill(0.5), [0.5, 0.5, 0.5])
        np.testing.assert_array_equal(rgb(1.0, 2.0, 3.0), [1.0, 2.0, 3.0])

    def test_luminance_weights(self):
        """Test the Rec. 709 luminance of primaries and white."""
        from src.mmlt.core.spectrum import luminance, rgb

        assert luminance(rgb(1.0, 0.0, 0.0)) == pytest.approx(0.212671)
        assert luminance(rgb(0.0, 1.0, 0.0)) == pytest.approx(0.715160)
        assert luminance(rgb(0.0, 0.0, 1.0)) == pytest.approx(0.072169)
        assert luminance(rgb(2.0, 2.0, 2.0)) == pytest.approx(2.0, rel=1e-5)

    def test_is_black(self):
        """Test that only an all-zero spectrum is black."""
        from src.mmlt.core.spectrum import black, is_black, rgb

        assert is_black(black())
        assert not is_black(rgb(0.0, 1e-12, 0.0))

    def test_is_finite(self):
        """Test detection of NaN and infinite channels."""
        from src.mmlt.core.spectrum import is_finite, rgb

        assert is_finite(rgb(1.0, 2.0, 3.0))
        assert not is_finite(rgb(1.0, float("nan"), 3.0))
        assert not is_finite(rgb(float("inf"), 0.0, 0.0))
