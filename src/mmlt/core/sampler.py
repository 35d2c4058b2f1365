"""Primary sample space sampler for Multiplexed Metropolis Light Transport.

Every random decision made while building a path (technique choice, light
point, camera point, BSDF directions) is read from an ordered vector of
uniform numbers. Mutating that vector mutates the path, which turns the
renderer into a Markov chain over [0, 1)^N.

The vector is split into interleaved streams so that changing the number of
decisions made along one subpath does not shift the coordinates of another:

    coordinate = stream_count * per_stream_index + stream_index

Mutations come in two kinds:
- Large step: every coordinate touched is replaced with a fresh uniform.
- Small step: every coordinate touched is perturbed by a Gaussian offset
  scaled by sigma * sqrt(n), n being the iterations since it last changed,
  and wrapped back into [0, 1).

Coordinates are only materialized when read. A coordinate whose last change
predates the last accepted large step is first snapped to a fresh uniform,
which is what an eager large step would have produced. Each draw backs up
the previous (value, modified_at) so a rejected proposal rolls back exactly.

Example:
    >>> import numpy as np
    >>> from src.mmlt.core.sampler import MmltSampler
    >>> sampler = MmltSampler(3, rng=np.random.default_rng(7))
    >>> sampler.start_stream(0)
    >>> u = sampler.sample()
    >>> sampler.accept()
    >>> mutation = sampler.mutate()
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

# Largest float strictly below one; wrapped values are clamped to it
ONE_MINUS_EPSILON = float(np.nextafter(1.0, 0.0))

DEFAULT_LARGE_STEP_PROBABILITY = 0.3
DEFAULT_SIGMA = 0.01


class Sampler(Protocol):
    """Source of uniform numbers consumed by the path builder."""

    def start_stream(self, index: int) -> None:
        """Select the stream subsequent samples are read from."""
        ...

    def sample(self, start: float = 0.0, end: float = 1.0) -> float:
        """Read the next number of the current stream, mapped to [start, end)."""
        ...


class MutationType(Enum):
    """Kind of perturbation applied by the current iteration."""

    LARGE_STEP = "large_step"
    SMALL_STEP = "small_step"


@dataclass
class Sample:
    """One coordinate of the primary sample vector.

    Attributes:
        value: Current value in [0, 1).
        modified_at: Iteration at which the value last changed.
        backup_value: Value before the current iteration touched it.
        backup_modified_at: modified_at before the current iteration.
    """

    value: float
    modified_at: int
    backup_value: float = 0.0
    backup_modified_at: int = 0

    def backup(self) -> None:
        """Record the current state so it can be restored on rejection."""
        self.backup_value = self.value
        self.backup_modified_at = self.modified_at

    def restore(self) -> None:
        """Roll back to the state recorded by the last backup()."""
        self.value = self.backup_value
        self.modified_at = self.backup_modified_at


class MmltSampler:
    """Replayable, mutable primary sample space sampler.

    One sampler is kept per path length for the whole run. Its lifecycle per
    iteration is: mutate(), then any number of start_stream()/sample() calls
    while the proposal path is built, then exactly one of accept() or
    reject().

    A freshly constructed sampler is in a large-step state, so it can also be
    used directly as an independent uniform source (the bootstrap phase).

    Attributes:
        stream_count: Number of interleaved streams.
        large_step_probability: Chance that mutate() picks a large step.
        sigma: Standard deviation of a single small-step perturbation.
    """

    def __init__(
        self,
        stream_count: int,
        *,
        large_step_probability: float = DEFAULT_LARGE_STEP_PROBABILITY,
        sigma: float = DEFAULT_SIGMA,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Initialize the sampler.

        Args:
            stream_count: Number of interleaved streams (at least 1).
            large_step_probability: Probability of a large step, in [0, 1].
            sigma: Small-step standard deviation (positive).
            rng: NumPy random generator. A new default generator is created
                when omitted.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if stream_count < 1:
            raise ValueError(f"stream_count must be at least 1, got {stream_count}")
        if not 0.0 <= large_step_probability <= 1.0:
            raise ValueError(
                f"large_step_probability must be in [0, 1], got {large_step_probability}"
            )
        if sigma <= 0.0:
            raise ValueError(f"sigma must be positive, got {sigma}")

        self.stream_count = stream_count
        self.large_step_probability = large_step_probability
        self.sigma = sigma
        self._rng = rng if rng is not None else np.random.default_rng()

        self._samples: list[Sample] = []
        self._stream_index = 0
        self._sample_index = 0
        self._iteration = 0
        self._last_large_step_iteration = 0
        self._mutation = MutationType.LARGE_STEP

    @property
    def iteration(self) -> int:
        """Index of the current iteration."""
        return self._iteration

    @property
    def last_large_step_iteration(self) -> int:
        """Iteration of the most recently accepted large step."""
        return self._last_large_step_iteration

    @property
    def mutation(self) -> MutationType:
        """Mutation kind selected for the current iteration."""
        return self._mutation

    @property
    def large_step(self) -> bool:
        """Whether the current iteration is a large step."""
        return self._mutation is MutationType.LARGE_STEP

    @property
    def samples(self) -> tuple[Sample, ...]:
        """Materialized coordinates, in coordinate order."""
        return tuple(self._samples)

    def values(self) -> list[float]:
        """Current values of all materialized coordinates."""
        return [sample.value for sample in self._samples]

    # =========================================================================
    # Markov chain transitions
    # =========================================================================

    def mutate(self) -> MutationType:
        """Start a new iteration and choose its mutation kind.

        Returns:
            The mutation type of the new iteration.
        """
        self._iteration += 1
        if self._rng.random() < self.large_step_probability:
            self._mutation = MutationType.LARGE_STEP
        else:
            self._mutation = MutationType.SMALL_STEP
        return self._mutation

    def accept(self) -> None:
        """Commit the proposal built during the current iteration."""
        if self._mutation is MutationType.LARGE_STEP:
            self._last_large_step_iteration = self._iteration

    def reject(self) -> None:
        """Discard the proposal and restore the previous state exactly."""
        for sample in self._samples:
            if sample.modified_at == self._iteration:
                sample.restore()
        self._iteration -= 1

    # =========================================================================
    # Stream access
    # =========================================================================

    def start_stream(self, index: int) -> None:
        """Select a stream and rewind its cursor.

        Args:
            index: Stream index in [0, stream_count).

        Raises:
            ValueError: If the index is out of range.
        """
        if not 0 <= index < self.stream_count:
            raise ValueError(
                f"Stream index {index} out of range for {self.stream_count} streams"
            )
        self._stream_index = index
        self._sample_index = 0

    def sample(self, start: float = 0.0, end: float = 1.0) -> float:
        """Read the next coordinate of the current stream.

        Args:
            start: Lower bound of the output range.
            end: Upper bound of the output range.

        Returns:
            The coordinate value mapped linearly to [start, end).
        """
        index = self.stream_count * self._sample_index + self._stream_index
        self._sample_index += 1

        while len(self._samples) <= index:
            self._samples.append(
                Sample(
                    value=float(self._rng.random()),
                    modified_at=self._last_large_step_iteration,
                )
            )

        sample = self._samples[index]
        if sample.modified_at < self._last_large_step_iteration:
            sample.value = float(self._rng.random())
            sample.modified_at = self._last_large_step_iteration

        sample.backup()
        if self._mutation is MutationType.LARGE_STEP:
            sample.value = float(self._rng.random())
        else:
            steps = self._iteration - sample.modified_at
            offset = self._rng.standard_normal() * self.sigma * math.sqrt(steps)
            value = sample.value + offset
            sample.value = min(value - math.floor(value), ONE_MINUS_EPSILON)
        sample.modified_at = self._iteration

        return start + sample.value * (end - start)
