"""Lambertian (ideal diffuse) material implementation.

This module implements the Lambertian BRDF, which models ideal diffuse reflection
where incident light is scattered uniformly in all directions weighted by the
cosine of the angle from the surface normal.

The Lambertian BRDF is:
    f_r(wo, wi) = albedo / pi    (wo and wi on the same side of the surface)

The probability density function for cosine-weighted hemisphere sampling is:
    pdf(w) = |cos(theta)| / pi

where theta is the angle between the sampled direction and the surface normal.
The surface reflects on both sides; the hemisphere sampled is always the one
containing the given direction. Since the BRDF is symmetric, camera and light
subpaths sample it the same way.

Example:
    >>> from src.mmlt.materials.lambertian import MatteMaterial
    >>> from src.mmlt.materials.texture import ConstantTexture
    >>> material = MatteMaterial(ConstantTexture((0.8, 0.3, 0.3)))
    >>> bsdf = material.bsdf(geometry)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from src.mmlt.core.interaction import Geometry, PathSide
from src.mmlt.core.ray import Vector, dot, same_hemisphere, sample_cosine_hemisphere
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black
from src.mmlt.materials.bsdf import Bsdf
from src.mmlt.materials.texture import Texture


class LambertianBsdf(Bsdf):
    """Ideal diffuse reflection.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    def __init__(self, normal: Vector, albedo: Spectrum) -> None:
        super().__init__(normal)
        self.albedo = albedo

    def reflectance(self, wo: Vector, wi: Vector) -> Spectrum:
        """Evaluate albedo / pi, or black across the surface."""
        if not same_hemisphere(wo, wi, self.normal):
            return black()
        return self.albedo / math.pi

    def pdf(self, wo: Vector, wi: Vector, side: PathSide) -> Optional[float]:
        """Cosine-weighted density of the sampled direction.

        Args:
            wo: Direction toward the camera-side neighbor.
            wi: Direction toward the light-side neighbor.
            side: Side the direction was sampled from.

        Returns:
            |cos(theta)| / pi of the sampled direction, 0 across the surface.
        """
        if not same_hemisphere(wo, wi, self.normal):
            return 0.0
        sampled = wi if side is PathSide.CAMERA else wo
        return abs(dot(sampled, self.normal)) / math.pi

    def sample_direction(
        self, given: Vector, side: PathSide, sampler: Sampler
    ) -> Optional[Vector]:
        """Sample a cosine-weighted direction on the side of the given direction."""
        u1 = sampler.sample()
        u2 = sampler.sample()

        cos_given = dot(given, self.normal)
        if cos_given == 0.0:
            return None
        axis = self.normal if cos_given > 0.0 else -self.normal

        direction = sample_cosine_hemisphere(axis, u1, u2)
        if dot(direction, axis) <= 0.0:
            return None
        return direction


@dataclass
class MatteMaterial:
    """Diffuse material whose albedo comes from a texture.

    Attributes:
        texture: Texture providing the albedo.
    """

    texture: Texture

    def bsdf(self, geometry: Geometry) -> LambertianBsdf:
        return LambertianBsdf(geometry.normal, self.texture.evaluate(geometry))
