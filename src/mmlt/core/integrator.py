"""Multiplexed Metropolis Light Transport integrator.

This module runs one Markov chain per path length over primary sample space
and accumulates their samples into a Film:

1. Bootstrap: for every path length k in [2, max_path_length], average the
   contribution of initial_sample_count independent paths into b[k].
2. Seed: give every length a persistent sampler and a current contribution.
3. Iterate: pick a length with probability proportional to b[k], mutate
   its sampler, build a proposal and deposit both the proposal and the
   current state with the Kelemen weights

       proposal: ((k+1) / p(k)) * (a + large) / (proposal / b[k] + p_large)
       current:  ((k+1) / p(k)) * (1 - a)     / (current  / b[k] + p_large)

   where a is the acceptance probability and large is 1 for a large step.
   Accept with probability a, otherwise roll the sampler back.
4. Stop after average_samples_per_pixel iterations per pixel and scale the
   image by 1 / average_samples_per_pixel.

The (k+1) factor undoes the uniform choice among the k+1 techniques of a
length-k path, and 1 / p(k) undoes the choice of chain.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.mmlt.core.film import Film
    >>> from src.mmlt.core.integrator import MmltConfig, MmltIntegrator
    >>> integrator = MmltIntegrator(MmltConfig(average_samples_per_pixel=64))
    >>> film = integrator.integrate(scene, Film(scene.width, scene.height))
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from src.mmlt.config import get_logger
from src.mmlt.core.distribution import DiscreteDistribution
from src.mmlt.core.film import Film
from src.mmlt.core.path import MIN_PATH_LENGTH, STREAM_COUNT, Contribution, acceptance, contribute
from src.mmlt.core.sampler import (
    DEFAULT_LARGE_STEP_PROBABILITY,
    DEFAULT_SIGMA,
    MmltSampler,
    MutationType,
)

if TYPE_CHECKING:
    from src.mmlt.scene.scene import Scene

logger = get_logger("integrator")

# Type alias for progress callback
# Callback receives (completed_units, total_units)
ProgressCallback = Callable[[int, int], None]

# Number of progress reports per phase
PROGRESS_STEPS = 100


@dataclass
class MmltConfig:
    """Settings of the Metropolis integrator.

    Attributes:
        max_path_length: Longest path rendered, counted in vertices.
        initial_sample_count: Independent samples per length for b[k].
        average_samples_per_pixel: Metropolis iterations per pixel.
        large_step_probability: Chance of an independent proposal.
        sigma: Standard deviation of small step perturbations.
        seed: Random seed; None draws fresh entropy.
    """

    max_path_length: int = 20
    initial_sample_count: int = 100_000
    average_samples_per_pixel: int = 4096
    large_step_probability: float = DEFAULT_LARGE_STEP_PROBABILITY
    sigma: float = DEFAULT_SIGMA
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_path_length < MIN_PATH_LENGTH:
            raise ValueError(
                f"max_path_length must be at least {MIN_PATH_LENGTH}, got {self.max_path_length}"
            )
        if self.initial_sample_count <= 0:
            raise ValueError(
                f"initial_sample_count must be positive, got {self.initial_sample_count}"
            )
        if self.average_samples_per_pixel <= 0:
            raise ValueError(
                f"average_samples_per_pixel must be positive, got {self.average_samples_per_pixel}"
            )
        if not 0.0 <= self.large_step_probability <= 1.0:
            raise ValueError(
                f"large_step_probability must be in [0, 1], got {self.large_step_probability}"
            )
        if self.sigma <= 0.0:
            raise ValueError(f"sigma must be positive, got {self.sigma}")

    @property
    def path_lengths(self) -> range:
        """Path lengths handled by the chains."""
        return range(MIN_PATH_LENGTH, self.max_path_length + 1)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MmltConfig:
        """Create a config from a dictionary, ignoring absent keys.

        Raises:
            ValueError: If an unknown key is present or a value is invalid.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown integrator settings: {sorted(unknown)}")
        return cls(**data)


@dataclass
class Chain:
    """Markov chain state of one path length.

    Attributes:
        path_length: Number of vertices of the chain's paths.
        sampler: Persistent primary sample space sampler.
        current: Contribution of the current state.
    """

    path_length: int
    sampler: MmltSampler
    current: Contribution


class MmltIntegrator:
    """Multiplexed Metropolis Light Transport over a scene.

    Attributes:
        config: Integrator settings.
        normalization: b[k] per path length after bootstrap().
        iterations: Metropolis iterations run by the last integrate().
        accepted: Accepted proposals during the last integrate().
    """

    def __init__(self, config: Optional[MmltConfig] = None) -> None:
        self.config = config if config is not None else MmltConfig()
        self._rng = np.random.default_rng(self.config.seed)
        self.normalization: dict[int, float] = {}
        self.iterations = 0
        self.accepted = 0

    @property
    def acceptance_rate(self) -> float:
        """Fraction of proposals accepted by the last integrate()."""
        if self.iterations == 0:
            return 0.0
        return self.accepted / self.iterations

    def new_sampler(self) -> MmltSampler:
        """Create a sampler sharing the integrator's random generator."""
        return MmltSampler(
            STREAM_COUNT,
            large_step_probability=self.config.large_step_probability,
            sigma=self.config.sigma,
            rng=self._rng,
        )

    def bootstrap(
        self,
        scene: Scene,
        callback: Optional[ProgressCallback] = None,
    ) -> dict[int, float]:
        """Estimate b[k], the mean contribution of every path length.

        Each sample uses a fresh sampler, so samples are independent.

        Args:
            scene: Scene to render.
            callback: Optional progress callback.

        Returns:
            Mapping from path length to its mean scalar contribution.
        """
        samples = self.config.initial_sample_count
        lengths = self.config.path_lengths
        total = samples * len(lengths)
        report_every = max(1, total // PROGRESS_STEPS)
        done = 0

        normalization: dict[int, float] = {}
        for path_length in lengths:
            accumulated = 0.0
            for _ in range(samples):
                accumulated += contribute(scene, self.new_sampler(), path_length).scalar
                done += 1
                if callback is not None and done % report_every == 0:
                    callback(done, total)
            normalization[path_length] = accumulated / samples
            logger.debug("b[%d] = %.6g", path_length, normalization[path_length])

        if callback is not None:
            callback(total, total)
        self.normalization = normalization
        logger.info(
            "Bootstrap finished: %d samples per length, b = %.6g",
            samples,
            sum(normalization.values()),
        )
        return normalization

    def seed_chains(self, scene: Scene) -> dict[int, Chain]:
        """Create one chain per path length from a freshly sampled state."""
        chains = {}
        for path_length in self.config.path_lengths:
            sampler = self.new_sampler()
            current = contribute(scene, sampler, path_length)
            chains[path_length] = Chain(path_length=path_length, sampler=sampler, current=current)
        logger.debug(
            "Seeded %d chains, %d with a non-empty state",
            len(chains),
            sum(1 for chain in chains.values() if not chain.current.is_empty),
        )
        return chains

    def integrate(
        self,
        scene: Scene,
        film: Film,
        callback: Optional[ProgressCallback] = None,
    ) -> Film:
        """Render the scene into film.

        Runs bootstrap() unless it already produced b[k] for every length.

        Args:
            scene: Scene to render.
            film: Accumulator receiving the deposits.
            callback: Optional progress callback over Metropolis iterations.

        Returns:
            The film, scaled by 1 / average_samples_per_pixel.
        """
        config = self.config
        if set(self.normalization) != set(config.path_lengths):
            self.bootstrap(scene)

        spp = config.average_samples_per_pixel
        self.iterations = 0
        self.accepted = 0

        weights = [self.normalization[k] for k in config.path_lengths]
        if not any(weight > 0.0 for weight in weights):
            logger.warning("Every path length has zero contribution; the image stays black")
            film.scale(1.0 / spp)
            return film

        distribution = DiscreteDistribution(weights)
        chains = self.seed_chains(scene)
        p_large = config.large_step_probability

        total = spp * film.pixel_count
        report_every = max(1, total // PROGRESS_STEPS)
        start = time.perf_counter()
        logger.info("Running %d Metropolis iterations (%d per pixel)", total, spp)

        for iteration in range(1, total + 1):
            index = distribution.sample(self._rng.random())
            path_length = config.path_lengths[index]
            chain = chains[path_length]
            b = self.normalization[path_length]
            length_weight = (path_length + 1) / distribution.value(index)

            large = 1.0 if chain.sampler.mutate() is MutationType.LARGE_STEP else 0.0
            proposal = contribute(scene, chain.sampler, path_length)
            current = chain.current
            a = acceptance(current, proposal)

            if not proposal.is_empty:
                weight = length_weight * (a + large) / (proposal.scalar / b + p_large)
                film.contribute(proposal.spectrum * weight, proposal.pixel)
            if not current.is_empty:
                weight = length_weight * (1.0 - a) / (current.scalar / b + p_large)
                film.contribute(current.spectrum * weight, current.pixel)

            if self._rng.random() <= a:
                chain.sampler.accept()
                chain.current = proposal
                self.accepted += 1
            else:
                chain.sampler.reject()

            self.iterations = iteration
            if callback is not None and iteration % report_every == 0:
                callback(iteration, total)

        film.scale(1.0 / spp)
        logger.info(
            "Integration finished in %.1fs, acceptance rate %.3f",
            time.perf_counter() - start,
            self.acceptance_rate,
        )
        return film
