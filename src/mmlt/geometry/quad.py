"""Quad (parallelogram) primitive with ray-quad intersection.

A quad is defined by a corner point Q and two edge vectors u and v. The
quad lies in the plane containing Q with normal n = cross(u, v), and
covers every point that can be written as

    P = Q + alpha * u + beta * v,    0 <= alpha, beta <= 1

Quads are one-sided for emission only: the normal along cross(u, v) is
the side a quad light emits toward. Scattering uses the geometric normal
and works from both sides.

Example:
    >>> from src.mmlt.core.ray import vec3
    >>> from src.mmlt.geometry.quad import Quad
    >>> floor = Quad(
    ...     corner=vec3(-1.0, 0.0, -1.0),
    ...     edge_u=vec3(2.0, 0.0, 0.0),
    ...     edge_v=vec3(0.0, 0.0, 2.0),
    ... )
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from src.mmlt.core.ray import T_MIN, Ray, Vector, as_vector, cross, dot, length
from src.mmlt.core.sampler import Sampler
from src.mmlt.geometry.shape import ShapeHit, ShapeSample

# Rays closer to parallel with the plane than this are treated as misses
PARALLEL_EPSILON = 1e-12


@dataclass
class Quad:
    """A parallelogram defined by a corner and two edge vectors.

    Attributes:
        corner: The corner point Q.
        edge_u: First edge vector from Q.
        edge_v: Second edge vector from Q.
    """

    corner: Vector
    edge_u: Vector
    edge_v: Vector
    normal: Vector = field(init=False)
    _d: float = field(init=False, repr=False)
    _w: Vector = field(init=False, repr=False)
    _area: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.corner = as_vector(self.corner)
        self.edge_u = as_vector(self.edge_u)
        self.edge_v = as_vector(self.edge_v)

        # For solving the parametric coordinates (alpha, beta):
        # alpha = dot(w, cross(P - Q, v)), beta = dot(w, cross(u, P - Q))
        # with w = n / dot(n, n) for the unnormalized normal n.
        n = cross(self.edge_u, self.edge_v)
        n_length = length(n)
        if n_length == 0.0:
            raise ValueError("Quad edges must not be parallel")
        self.normal = n / n_length
        self._w = n / dot(n, n)
        self._d = dot(self.normal, self.corner)
        self._area = n_length

    @property
    def area(self) -> float:
        """Area |cross(u, v)|."""
        return self._area

    def intersect(self, ray: Ray, t_max: float = math.inf) -> Optional[ShapeHit]:
        """Intersect a ray with the quad.

        1. Intersect the ray with the plane containing the quad.
        2. Express the hit point in the quad's (alpha, beta) coordinates.
        3. Accept if 0 <= alpha <= 1 and 0 <= beta <= 1.

        Args:
            ray: The ray to test.
            t_max: Maximum accepted ray parameter.

        Returns:
            The hit with t in (T_MIN, t_max), or None.
        """
        denom = dot(self.normal, ray.direction)
        if abs(denom) < PARALLEL_EPSILON:
            return None

        t = (self._d - dot(self.normal, ray.origin)) / denom
        if not T_MIN < t < t_max:
            return None

        point = ray.at(t)
        planar = point - self.corner
        alpha = dot(self._w, cross(planar, self.edge_v))
        beta = dot(self._w, cross(self.edge_u, planar))
        if not (0.0 <= alpha <= 1.0 and 0.0 <= beta <= 1.0):
            return None

        return ShapeHit(t=t, point=point, normal=self.normal)

    def sample_point(self, sampler: Sampler) -> ShapeSample:
        """Sample a point uniformly over the quad (two numbers, density 1 / area)."""
        alpha = sampler.sample()
        beta = sampler.sample()
        point = self.corner + alpha * self.edge_u + beta * self.edge_v
        return ShapeSample(point=point, normal=self.normal)
