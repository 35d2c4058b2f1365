"""Scattering scene objects: a shape paired with a material."""

from __future__ import annotations

from typing import Optional

from src.mmlt.core.interaction import Geometry, ObjectInteraction
from src.mmlt.core.ray import Ray
from src.mmlt.geometry.shape import Shape
from src.mmlt.materials.bsdf import Bsdf, Material


class GeometricObject:
    """A shape whose surface scatters light according to a material.

    Attributes:
        shape: Object geometry.
        material: Material building the BSDF at each hit.
        id: Scene identity, assigned when the object is added to a scene.
    """

    def __init__(self, shape: Shape, material: Material) -> None:
        self.shape = shape
        self.material = material
        self.id = 0

    def bsdf(self, geometry: Geometry) -> Bsdf:
        return self.material.bsdf(geometry)

    def intersect(self, ray: Ray) -> Optional[ObjectInteraction]:
        hit = self.shape.intersect(ray)
        if hit is None:
            return None
        geometry = Geometry(point=hit.point, direction=ray.direction, normal=hit.normal, distance=hit.t)
        return ObjectInteraction(obj=self, geometry=geometry)

    def __repr__(self) -> str:
        return f"GeometricObject(shape={self.shape!r}, material={self.material!r})"
