"""Diffuse area lights.

A diffuse area light emits constant radiance from one side of a shape, the
side its geometric normal points to. Light subpaths start by choosing a
light uniformly, a point uniformly over its area and a cosine-weighted
direction around its normal:

    selection pdf   = 1 / number of lights
    positional pdf  = 1 / area
    directional pdf = cos(theta) / pi
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from src.mmlt.core.interaction import Geometry, LightInteraction
from src.mmlt.core.ray import Ray, Vector, dot, sample_cosine_hemisphere
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black, is_black
from src.mmlt.geometry.shape import Shape


class DiffuseAreaLight:
    """Uniform one-sided emitter over a shape.

    Attributes:
        shape: Emitting geometry.
        emission: Emitted radiance (RGB).
        id: Scene identity, assigned when the light is added to a scene.
    """

    def __init__(self, shape: Shape, emission: Spectrum) -> None:
        emission = np.asarray(emission, dtype=np.float64)
        if is_black(emission):
            raise ValueError("Light emission must not be black")
        self.shape = shape
        self.emission = emission
        self.id = 0
        self._selection_pdf: Optional[float] = None

    def set_selection_pdf(self, pdf: float) -> None:
        """Record the probability that the scene picks this light."""
        self._selection_pdf = pdf

    def sampling_pdf(self) -> Optional[float]:
        """Probability of choosing this light among all lights."""
        return self._selection_pdf

    def radiance(self, point: Vector, normal: Vector, direction: Vector) -> Spectrum:
        """Radiance leaving the point toward direction (front side only)."""
        if dot(normal, direction) <= 0.0:
            return black()
        return self.emission

    def positional_pdf(self, point: Vector) -> Optional[float]:
        return 1.0 / self.shape.area

    def directional_pdf(self, normal: Vector, direction: Vector) -> Optional[float]:
        """Cosine-weighted density of an emitted direction."""
        cos_theta = dot(normal, direction)
        if cos_theta <= 0.0:
            return 0.0
        return cos_theta / math.pi

    def sample_interaction(self, sampler: Sampler) -> LightInteraction:
        """Sample a point and an emission direction.

        Consumes four numbers from the current stream: two for the
        position and two for the direction.
        """
        surface = self.shape.sample_point(sampler)
        u1 = sampler.sample()
        u2 = sampler.sample()
        direction = sample_cosine_hemisphere(surface.normal, u1, u2)
        geometry = Geometry(point=surface.point, direction=direction, normal=surface.normal)
        return LightInteraction(light=self, geometry=geometry, outgoing=direction)

    def intersect(self, ray: Ray) -> Optional[LightInteraction]:
        hit = self.shape.intersect(ray)
        if hit is None:
            return None
        geometry = Geometry(point=hit.point, direction=ray.direction, normal=hit.normal, distance=hit.t)
        return LightInteraction(light=self, geometry=geometry)

    def __repr__(self) -> str:
        return f"DiffuseAreaLight(shape={self.shape!r}, emission={self.emission.tolist()})"
