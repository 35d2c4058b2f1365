"""Perfect mirror material implementation.

The mirror reflects every ray about the surface normal:

    reflected = 2 * dot(w, n) * n - w

Reflection happens through a Dirac distribution, so the BSDF has no density
and evaluates to black for any pair of directions it was not sampled with.
A sampled pair carries the weight f * |cos| / pdf, which for a perfect
mirror is its tint.

Example:
    >>> from src.mmlt.materials.metal import MirrorMaterial
    >>> from src.mmlt.materials.texture import ConstantTexture
    >>> material = MirrorMaterial(ConstantTexture((0.9, 0.9, 0.9)))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.mmlt.core.interaction import Geometry, PathSide
from src.mmlt.core.ray import Vector, dot
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black
from src.mmlt.materials.bsdf import Bsdf
from src.mmlt.materials.texture import Texture


class SpecularReflectionBsdf(Bsdf):
    """Dirac reflection about the normal.

    Attributes:
        albedo: Reflected fraction per color channel.
    """

    specular = True

    def __init__(self, normal: Vector, albedo: Spectrum) -> None:
        super().__init__(normal)
        self.albedo = albedo

    def reflectance(self, wo: Vector, wi: Vector) -> Spectrum:
        return black()

    def pdf(self, wo: Vector, wi: Vector, side: PathSide) -> Optional[float]:
        return None

    def sample_direction(
        self, given: Vector, side: PathSide, sampler: Sampler
    ) -> Optional[Vector]:
        """Mirror the given direction about the normal.

        Two numbers are consumed even though the reflection is deterministic.
        """
        sampler.sample()
        sampler.sample()

        cos_given = dot(given, self.normal)
        if cos_given == 0.0:
            return None
        return 2.0 * cos_given * self.normal - given

    def weight(self, wo: Vector, wi: Vector) -> Spectrum:
        return self.albedo


@dataclass
class MirrorMaterial:
    """Perfect mirror whose tint comes from a texture.

    Attributes:
        texture: Texture providing the reflected fraction.
    """

    texture: Texture

    def bsdf(self, geometry: Geometry) -> SpecularReflectionBsdf:
        return SpecularReflectionBsdf(geometry.normal, self.texture.evaluate(geometry))
