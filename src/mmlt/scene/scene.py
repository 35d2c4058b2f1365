"""Scene query surface used by the path builder.

A Scene owns one camera, a list of lights and a list of scattering objects.
It answers two questions:
- intersect(ray): the nearest interaction among camera, lights and objects
- sample_light(sampler): a light chosen uniformly at random

Every entity gets a distinct integer identity when the scene is built
(camera 0, then lights, then objects), which connection strategies use to
check that a visibility ray reached the vertex it was aimed at.

Example:
    >>> scene = Scene(camera, lights=[light], objects=[floor, sphere])
    >>> interaction = scene.intersect(ray)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from src.mmlt.camera.pinhole import PinholeCamera
from src.mmlt.core.interaction import Interaction
from src.mmlt.core.ray import Ray
from src.mmlt.core.sampler import Sampler
from src.mmlt.scene.light import DiffuseAreaLight
from src.mmlt.scene.object import GeometricObject


class Scene:
    """Camera, lights and objects with nearest-hit queries.

    Attributes:
        camera: The scene camera.
        lights: Emitters, each also intersectable.
        objects: Scattering objects.
    """

    def __init__(
        self,
        camera: PinholeCamera,
        lights: Sequence[DiffuseAreaLight],
        objects: Sequence[GeometricObject] = (),
    ) -> None:
        """Assemble the scene and assign identities.

        Raises:
            ValueError: If the scene has no lights.
        """
        if not lights:
            raise ValueError("Scene must contain at least one light")

        self.camera = camera
        self.lights = list(lights)
        self.objects = list(objects)

        self.camera.id = 0
        next_id = 1
        for light in self.lights:
            light.id = next_id
            light.set_selection_pdf(1.0 / len(self.lights))
            next_id += 1
        for obj in self.objects:
            obj.id = next_id
            next_id += 1

    @property
    def width(self) -> int:
        return self.camera.width

    @property
    def height(self) -> int:
        return self.camera.height

    def intersect(self, ray: Ray) -> Optional[Interaction]:
        """Find the nearest interaction along a ray.

        Args:
            ray: The query ray.

        Returns:
            The closest camera, light or object interaction, or None.
        """
        nearest: Optional[Interaction] = None
        for entity in (self.camera, *self.lights, *self.objects):
            interaction = entity.intersect(ray)
            if interaction is None:
                continue
            if nearest is None or interaction.geometry.distance < nearest.geometry.distance:
                nearest = interaction
        return nearest

    def sample_light(self, sampler: Sampler) -> DiffuseAreaLight:
        """Choose a light uniformly (one number from the current stream)."""
        index = int(sampler.sample() * len(self.lights))
        return self.lights[min(index, len(self.lights) - 1)]

    def __repr__(self) -> str:
        return (
            f"Scene(camera={self.camera!r}, lights={len(self.lights)}, "
            f"objects={len(self.objects)})"
        )
