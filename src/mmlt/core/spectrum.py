"""RGB spectrum helpers.

Radiance, importance and path throughput are carried as float64 RGB arrays.
The Metropolis chain needs a single scalar per path, which is the luminance
of its RGB value (Rec. 709 weights).
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

Spectrum = npt.NDArray[np.float64]

# Rec. 709 relative luminance weights
LUMINANCE_WEIGHTS = np.array([0.212671, 0.715160, 0.072169], dtype=np.float64)


def black() -> Spectrum:
    """Return a spectrum with all channels zero."""
    return np.zeros(3, dtype=np.float64)


def fill(value: float) -> Spectrum:
    """Return a spectrum with every channel set to value."""
    return np.full(3, value, dtype=np.float64)


def rgb(r: float, g: float, b: float) -> Spectrum:
    """Create a spectrum from its red, green and blue channels."""
    return np.array([r, g, b], dtype=np.float64)


def luminance(spectrum: Spectrum) -> float:
    """Compute the relative luminance of an RGB spectrum."""
    return float(np.dot(LUMINANCE_WEIGHTS, spectrum))


def is_black(spectrum: Spectrum) -> bool:
    """Check whether every channel is exactly zero."""
    return not np.any(spectrum)


def is_finite(spectrum: Spectrum) -> bool:
    """Check that no channel is NaN or infinite."""
    return bool(np.all(np.isfinite(spectrum)))
