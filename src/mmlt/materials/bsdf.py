"""Base interface for BSDFs used by bidirectional path construction.

All directions point away from the surface. For a vertex in the middle of
a path, `wo` points toward the camera-side neighbor and `wi` toward the
light-side neighbor, whichever side the vertex was generated from.

Sampling is side-aware. A subpath traced from the camera samples `wi`
given `wo`; a subpath traced from a light samples `wo` given `wi`:

    pdf(wo, wi, PathSide.CAMERA) = density of wi given wo
    pdf(wo, wi, PathSide.LIGHT)  = density of wo given wi

Specular BSDFs scatter through a Dirac distribution. They report no
density (None), evaluate to black for arbitrary direction pairs, and
expose the Dirac weight f * |cos| / pdf of a sampled pair instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Protocol

from src.mmlt.core.interaction import Geometry, PathSide
from src.mmlt.core.ray import Vector
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black


class Bsdf(ABC):
    """Scattering function at a single surface point.

    Attributes:
        normal: Geometric normal at the point.
        specular: Whether scattering happens through a Dirac distribution.
    """

    specular = False

    def __init__(self, normal: Vector) -> None:
        self.normal = normal

    @abstractmethod
    def reflectance(self, wo: Vector, wi: Vector) -> Spectrum:
        """Evaluate the BSDF for a pair of directions."""

    @abstractmethod
    def pdf(self, wo: Vector, wi: Vector, side: PathSide) -> Optional[float]:
        """Solid angle density of the sampled direction, None if Dirac."""

    @abstractmethod
    def sample_direction(
        self, given: Vector, side: PathSide, sampler: Sampler
    ) -> Optional[Vector]:
        """Sample the next direction of a subpath.

        Implementations always consume exactly two numbers so the stream
        layout does not depend on which lobe is chosen.

        Args:
            given: Direction toward the previous vertex of the subpath.
            side: Side the subpath is traced from.
            sampler: Source of uniform numbers.

        Returns:
            The sampled unit direction, or None if sampling failed.
        """

    def weight(self, wo: Vector, wi: Vector) -> Spectrum:
        """Dirac weight of a sampled direction pair (specular BSDFs only)."""
        return black()


class Material(Protocol):
    """Builds the BSDF of a surface point."""

    def bsdf(self, geometry: Geometry) -> Bsdf: ...
