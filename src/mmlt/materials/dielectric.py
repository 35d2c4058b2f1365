"""Dielectric (glass/water) material implementation.

This module implements a smooth dielectric interface with Fresnel-weighted
specular reflection and refraction.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Exact (unpolarized) Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The lobe is chosen with probability equal to its Fresnel fraction, so the
Dirac weight f * |cos| / pdf of either lobe reduces to the tint. The
geometric normal is taken to point out of the denser medium.

Example:
    >>> from src.mmlt.materials.dielectric import DielectricMaterial
    >>> glass = DielectricMaterial(eta=1.5)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from src.mmlt.core.interaction import Geometry, PathSide
from src.mmlt.core.ray import Vector, dot, fresnel_dielectric, normalize, refract
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black, fill
from src.mmlt.materials.bsdf import Bsdf
from src.mmlt.materials.texture import ConstantTexture, Texture


class SpecularDielectricBsdf(Bsdf):
    """Dirac reflection and refraction at a smooth interface.

    Attributes:
        eta: Refractive index inside the surface relative to outside.
        tint: Weight applied to both lobes.
    """

    specular = True

    def __init__(self, normal: Vector, eta: float, tint: Spectrum) -> None:
        super().__init__(normal)
        self.eta = eta
        self.tint = tint

    def reflectance(self, wo: Vector, wi: Vector) -> Spectrum:
        return black()

    def pdf(self, wo: Vector, wi: Vector, side: PathSide) -> Optional[float]:
        return None

    def sample_direction(
        self, given: Vector, side: PathSide, sampler: Sampler
    ) -> Optional[Vector]:
        """Choose reflection or refraction by Fresnel reflectance.

        The first number picks the lobe; the second is consumed to keep the
        stream layout fixed.
        """
        u_lobe = sampler.sample()
        sampler.sample()

        cos_given = dot(given, self.normal)
        if cos_given == 0.0:
            return None

        # Entering when the given direction is on the outside
        if cos_given > 0.0:
            eta_i, eta_t = 1.0, self.eta
            axis = self.normal
        else:
            eta_i, eta_t = self.eta, 1.0
            axis = -self.normal
            cos_given = -cos_given

        reflectance = fresnel_dielectric(cos_given, eta_i, eta_t)
        if u_lobe < reflectance:
            return 2.0 * cos_given * axis - given
        return normalize(refract(-given, axis, eta_i / eta_t))

    def weight(self, wo: Vector, wi: Vector) -> Spectrum:
        return self.tint


@dataclass
class DielectricMaterial:
    """Glass-like material.

    Attributes:
        eta: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
        texture: Optional tint, white by default.
    """

    eta: float
    texture: Texture = field(default_factory=lambda: ConstantTexture(fill(1.0)))

    def __post_init__(self) -> None:
        if self.eta <= 0.0:
            raise ValueError(f"Index of refraction must be positive, got {self.eta}")

    def bsdf(self, geometry: Geometry) -> SpecularDielectricBsdf:
        return SpecularDielectricBsdf(geometry.normal, self.eta, self.texture.evaluate(geometry))
