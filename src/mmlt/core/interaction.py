"""Interaction records produced by scene queries and endpoint sampling.

An interaction is one of a closed set of kinds:
- CameraInteraction: the camera was sampled or a ray reached the camera
- LightInteraction: a light was sampled or a ray reached a light
- ObjectInteraction: a ray hit a scattering object

Every interaction carries a Geometry record (point, arrival direction,
surface normal, hit distance) and the identity of the scene entity that
produced it. Sampled endpoints also remember the outgoing direction they
were sampled with so a subpath can be traced from them.

Example:
    >>> from src.mmlt.core.interaction import ObjectInteraction, PathSide
    >>> ray = interaction.generate_ray(PathSide.CAMERA, sampler)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

from src.mmlt.core.ray import Ray, Vector, offset_ray_origin

if TYPE_CHECKING:
    from src.mmlt.core.sampler import Sampler


class PathSide(Enum):
    """Which endpoint a subpath is traced from.

    BSDF sampling densities are not symmetric in their two directions, so
    every sampling and density query states the side it is made for.
    """

    CAMERA = "camera"
    LIGHT = "light"


@dataclass
class Geometry:
    """Local geometry of an interaction.

    Attributes:
        point: World space position.
        direction: Direction of the ray that arrived here (for sampled
            endpoints, the direction they were sampled with).
        normal: Geometric surface normal, unit length. Not flipped toward
            the arriving ray.
        distance: Ray parameter of the hit (0 for sampled endpoints).
    """

    point: Vector
    direction: Vector
    normal: Vector
    distance: float = 0.0


@dataclass
class CameraInteraction:
    """An interaction with the camera.

    Attributes:
        camera: The camera that produced the interaction.
        geometry: Position of the camera and the normal of its film.
        raster: Continuous raster coordinate (x, y) the interaction maps to.
        outgoing: Direction sampled from the camera, if this is a seed.
    """

    camera: Any
    geometry: Geometry
    raster: tuple[float, float]
    outgoing: Optional[Vector] = None

    @property
    def id(self) -> int:
        return self.camera.id

    @property
    def pixel(self) -> tuple[int, int]:
        """Integer pixel the raster coordinate falls in."""
        return int(self.raster[0]), int(self.raster[1])

    def generate_ray(self, side: PathSide, sampler: Sampler) -> Optional[Ray]:
        """Emit the ray a camera subpath starts with."""
        if self.outgoing is None:
            return None
        return Ray(origin=self.geometry.point, direction=self.outgoing)


@dataclass
class LightInteraction:
    """An interaction with an emitting surface.

    Attributes:
        light: The light that produced the interaction.
        geometry: Point on the light and its emitting normal.
        outgoing: Direction sampled from the light, if this is a seed.
    """

    light: Any
    geometry: Geometry
    outgoing: Optional[Vector] = None

    @property
    def id(self) -> int:
        return self.light.id

    def generate_ray(self, side: PathSide, sampler: Sampler) -> Optional[Ray]:
        """Emit the ray a light subpath starts with."""
        if self.outgoing is None:
            return None
        origin = offset_ray_origin(self.geometry.point, self.geometry.normal, self.outgoing)
        return Ray(origin=origin, direction=self.outgoing)


@dataclass
class ObjectInteraction:
    """A ray hit on a scattering object.

    The BSDF is built on first access and cached, since most interactions
    produced while tracing only need their geometry.

    Attributes:
        obj: The scene object that was hit.
        geometry: Hit geometry.
    """

    obj: Any
    geometry: Geometry
    _bsdf: Any = field(default=None, init=False, repr=False)

    @property
    def id(self) -> int:
        return self.obj.id

    @property
    def bsdf(self):
        """The BSDF of the object at this interaction."""
        if self._bsdf is None:
            self._bsdf = self.obj.bsdf(self.geometry)
        return self._bsdf

    def generate_ray(self, side: PathSide, sampler: Sampler) -> Optional[Ray]:
        """Continue a subpath by sampling the BSDF.

        The direction toward the previous vertex is the reverse of the arrival
        direction. Exactly two numbers are consumed from the current stream.

        Args:
            side: Side the subpath is traced from.
            sampler: Source of uniform numbers.

        Returns:
            The scattered ray, or None if the BSDF produced no direction.
        """
        direction = self.bsdf.sample_direction(-self.geometry.direction, side, sampler)
        if direction is None:
            return None
        origin = offset_ray_origin(self.geometry.point, self.geometry.normal, direction)
        return Ray(origin=origin, direction=direction)


Interaction = Union[CameraInteraction, LightInteraction, ObjectInteraction]
