"""Common records and interface shared by shape primitives."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Protocol

from src.mmlt.core.ray import Ray, Vector
from src.mmlt.core.sampler import Sampler


@dataclass
class ShapeHit:
    """Record of a ray-shape intersection.

    Attributes:
        t: Ray parameter of the hit.
        point: Hit position.
        normal: Unit geometric normal. Outward for closed shapes, along
            cross(edge_u, edge_v) for parallelograms.
    """

    t: float
    point: Vector
    normal: Vector


@dataclass
class ShapeSample:
    """A point sampled on a shape's surface with its normal."""

    point: Vector
    normal: Vector


class Shape(Protocol):
    """Geometry that can be intersected and sampled by area."""

    @property
    def area(self) -> float: ...

    def intersect(self, ray: Ray, t_max: float = math.inf) -> Optional[ShapeHit]: ...

    def sample_point(self, sampler: Sampler) -> ShapeSample: ...
