"""Discrete probability distribution built from non-negative weights.

The integrator uses it to pick which path length's Markov chain advances
next, in proportion to that length's estimated brightness.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


class DiscreteDistribution:
    """Piecewise-constant distribution over indices 0..n-1.

    Attributes:
        weights: The normalized probabilities.
    """

    def __init__(self, weights: Sequence[float]) -> None:
        """Build the distribution.

        Args:
            weights: Non-negative, finite weights. At least one must be positive.

        Raises:
            ValueError: If weights is empty, contains invalid values or sums to zero.
        """
        values = np.asarray(weights, dtype=np.float64)
        if values.ndim != 1 or values.size == 0:
            raise ValueError("Distribution needs a non-empty list of weights")
        if not np.all(np.isfinite(values)) or np.any(values < 0.0):
            raise ValueError(f"Weights must be finite and non-negative: {list(weights)}")
        total = float(values.sum())
        if total <= 0.0:
            raise ValueError("Weights must not all be zero")

        self.weights = values / total
        self._cdf = np.cumsum(self.weights)
        self._cdf[np.flatnonzero(values)[-1]:] = 1.0

    def __len__(self) -> int:
        return int(self.weights.size)

    def value(self, index: int) -> float:
        """Probability of picking index."""
        return float(self.weights[index])

    def sample(self, u: float) -> int:
        """Map a uniform number in [0, 1) to an index.

        Indices with zero weight are never returned.
        """
        index = int(np.searchsorted(self._cdf, u, side="right"))
        return min(index, self.weights.size - 1)
