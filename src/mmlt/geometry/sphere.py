"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere shape using the robust quadratic formula from
Ray Tracing Gems to avoid floating-point artifacts, plus uniform area
sampling so spheres can serve as area lights.

The robust quadratic formula avoids catastrophic cancellation when b^2 is
nearly equal to 4ac by using a reformulated calculation that maintains
numerical stability.

Example:
    >>> from src.mmlt.core.ray import Ray, vec3
    >>> from src.mmlt.geometry.sphere import Sphere
    >>> sphere = Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5)
    >>> hit = sphere.intersect(Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0)))
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from src.mmlt.core.ray import T_MIN, Ray, Vector, as_vector, dot, sample_uniform_sphere
from src.mmlt.core.sampler import Sampler
from src.mmlt.geometry.shape import ShapeHit, ShapeSample


def _solve_quadratic_robust(h: float, a: float, c: float, sqrt_d: float) -> tuple[float, float]:
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant coefficient.
        sqrt_d: Square root of the discriminant h^2 - a*c.

    Returns:
        The two roots (t0, t1) with t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    q = -(h + math.copysign(sqrt_d, h))
    if q == 0.0:
        # h == 0 and discriminant == 0: double root at zero
        return 0.0, 0.0

    t0 = q / a
    t1 = c / q
    if t0 > t1:
        t0, t1 = t1, t0
    return t0, t1


@dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
    """

    center: Vector
    radius: float

    def __post_init__(self) -> None:
        self.center = as_vector(self.center)
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    @property
    def area(self) -> float:
        """Surface area 4 * pi * r^2."""
        return 4.0 * math.pi * self.radius * self.radius

    def intersect(self, ray: Ray, t_max: float = math.inf) -> Optional[ShapeHit]:
        """Find the nearest intersection of a ray with the sphere.

        The ray-sphere intersection is found by solving:
            |origin + t * direction - center|^2 = radius^2

        which expands to a*t^2 + 2*h*t + c = 0 with
            a = dot(direction, direction)
            h = dot(direction, oc)
            c = dot(oc, oc) - radius^2
            oc = origin - center

        Args:
            ray: The ray to test.
            t_max: Maximum accepted ray parameter.

        Returns:
            The nearest hit with t in (T_MIN, t_max), or None. The normal
            always points outward from the center.
        """
        oc = ray.origin - self.center
        a = dot(ray.direction, ray.direction)
        h = dot(ray.direction, oc)
        c = dot(oc, oc) - self.radius * self.radius

        discriminant = h * h - a * c
        if discriminant < 0.0:
            return None

        t0, t1 = _solve_quadratic_robust(h, a, c, math.sqrt(discriminant))
        t = t0
        if not T_MIN < t < t_max:
            t = t1
            if not T_MIN < t < t_max:
                return None

        point = ray.at(t)
        normal = (point - self.center) / self.radius
        return ShapeHit(t=t, point=point, normal=normal)

    def sample_point(self, sampler: Sampler) -> ShapeSample:
        """Sample a point uniformly over the surface.

        Consumes two numbers from the current stream. The density with
        respect to area is 1 / area.
        """
        u1 = sampler.sample()
        u2 = sampler.sample()
        normal = sample_uniform_sphere(u1, u2)
        return ShapeSample(point=self.center + self.radius * normal, normal=normal)
