"""Pinhole camera model for bidirectional path construction.

This module implements a pinhole camera that can both start camera subpaths
and be connected to from light subpaths. The camera supports:
- Look-at positioning (origin, look_at, vup)
- Vertical field of view specification
- Arbitrary image dimensions

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward origin (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The film is a virtual plane at unit distance in front of the pinhole with
area A. Importance is normalized so it integrates to one over the film:

    We(w)          = 1 / (A * cos^4(theta))
    directional pdf = 1 / (A * cos^3(theta))

where theta is the angle between w and the view direction. The pinhole
position is a Dirac distribution, so its positional density is None.

Raster coordinates run from (0, 0) at the top-left corner of the image to
(width, height) at the bottom-right.

Example:
    >>> from src.mmlt.camera.pinhole import PinholeCamera
    >>> camera = PinholeCamera(
    ...     origin=(0.0, 0.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     width=640,
    ...     height=480,
    ... )
    >>> interaction = camera.sample_interaction(sampler)
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from src.mmlt.core.interaction import CameraInteraction, Geometry
from src.mmlt.core.ray import Ray, Vector, as_vector, cross, dot, length, normalize
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black, fill

# A ray is taken to pass through the pinhole when its direction deviates
# from the exact direction to the pinhole by less than this (sine of angle)
PINHOLE_TOLERANCE = 1e-7


class PinholeCamera:
    """A pinhole (perspective) camera.

    Attributes:
        origin: Camera position in world space.
        look_at: Point the camera is looking at in world space.
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees.
        width: Image width in pixels.
        height: Image height in pixels.
        id: Scene identity, assigned when the camera is added to a scene.
    """

    def __init__(
        self,
        origin: tuple[float, float, float],
        look_at: tuple[float, float, float],
        vup: tuple[float, float, float],
        vfov: float,
        width: int,
        height: int,
    ) -> None:
        """Build the camera basis and film geometry.

        Args:
            origin: Camera position.
            look_at: Target point.
            vup: Up vector (must not be parallel to the view direction).
            vfov: Vertical field of view in degrees, in (0, 180).
            width: Image width in pixels.
            height: Image height in pixels.

        Raises:
            ValueError: If the parameters do not describe a valid camera.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if not 0.0 < vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180), got {vfov}")

        self.origin = as_vector(origin)
        self.look_at = as_vector(look_at)
        self.vup = as_vector(vup)
        self.vfov = vfov
        self.width = width
        self.height = height
        self.id = 0

        if length(self.origin - self.look_at) == 0.0:
            raise ValueError("Camera origin and look_at must differ")

        # w points from look_at toward origin (backward)
        self.w = normalize(self.origin - self.look_at)
        # u points right (perpendicular to w and vup)
        u = cross(self.vup, self.w)
        if length(u) == 0.0:
            raise ValueError("Camera vup must not be parallel to the view direction")
        self.u = normalize(u)
        # v points up in the camera's frame
        self.v = cross(self.w, self.u)

        # Viewport dimensions at unit distance
        self.viewport_height = 2.0 * math.tan(math.radians(vfov) / 2.0)
        self.viewport_width = self.viewport_height * width / height
        self.film_area = self.viewport_width * self.viewport_height

    @property
    def forward(self) -> Vector:
        """Viewing direction, also the normal of the film."""
        return -self.w

    # =========================================================================
    # Film mapping
    # =========================================================================

    def raster(self, direction: Vector) -> Optional[tuple[float, float]]:
        """Map a direction leaving the pinhole to a raster coordinate.

        Args:
            direction: Direction from the pinhole into the scene.

        Returns:
            Continuous (x, y) raster coordinate, or None if the direction
            does not pass through the film.
        """
        cos_theta = dot(direction, self.forward) / length(direction)
        if cos_theta <= 0.0:
            return None

        on_plane = direction / (length(direction) * cos_theta)
        sx = dot(on_plane, self.u) / self.viewport_width + 0.5
        sy = 0.5 - dot(on_plane, self.v) / self.viewport_height
        if not (0.0 <= sx < 1.0 and 0.0 <= sy < 1.0):
            return None
        return sx * self.width, sy * self.height

    def direction(self, x: float, y: float) -> Vector:
        """Unit direction from the pinhole through raster coordinate (x, y)."""
        sx = x / self.width - 0.5
        sy = 0.5 - y / self.height
        on_plane = self.forward + sx * self.viewport_width * self.u + sy * self.viewport_height * self.v
        return normalize(on_plane)

    # =========================================================================
    # Camera capability
    # =========================================================================

    def importance(self, point: Vector, direction: Vector) -> Spectrum:
        """Emitted importance We along a direction leaving the pinhole."""
        if self.raster(direction) is None:
            return black()
        cos_theta = dot(normalize(direction), self.forward)
        return fill(1.0 / (self.film_area * cos_theta**4))

    def positional_pdf(self, point: Vector) -> Optional[float]:
        """The pinhole position is a Dirac distribution."""
        return None

    def directional_pdf(self, direction: Vector) -> Optional[float]:
        """Solid angle density of sampling a direction uniformly over the film."""
        if self.raster(direction) is None:
            return 0.0
        cos_theta = dot(normalize(direction), self.forward)
        return 1.0 / (self.film_area * cos_theta**3)

    def sample_interaction(self, sampler: Sampler) -> CameraInteraction:
        """Sample a raster position uniformly and the direction through it.

        Consumes two numbers from the current stream.
        """
        x = sampler.sample(0.0, float(self.width))
        y = sampler.sample(0.0, float(self.height))
        direction = self.direction(x, y)
        geometry = Geometry(
            point=self.origin.copy(),
            direction=direction,
            normal=self.forward,
        )
        return CameraInteraction(camera=self, geometry=geometry, raster=(x, y), outgoing=direction)

    def intersect(self, ray: Ray) -> Optional[CameraInteraction]:
        """Test whether a ray passes through the pinhole inside the film.

        Only rays aimed at the pinhole can reach it, which in practice means
        connection rays built toward the camera position.

        Returns:
            The camera interaction, with the raster coordinate the ray lands
            on, or None.
        """
        to_pinhole = self.origin - ray.origin
        distance = length(to_pinhole)
        direction_length = length(ray.direction)
        if distance == 0.0 or direction_length == 0.0:
            return None

        unit = ray.direction / direction_length
        t_along = dot(to_pinhole, unit)
        if t_along <= 0.0:
            return None
        if length(cross(to_pinhole, unit)) > PINHOLE_TOLERANCE * distance:
            return None

        raster = self.raster(-unit)
        if raster is None:
            return None

        geometry = Geometry(
            point=self.origin.copy(),
            direction=unit,
            normal=self.forward,
            distance=t_along / direction_length,
        )
        return CameraInteraction(camera=self, geometry=geometry, raster=raster)

    def __repr__(self) -> str:
        return (
            f"PinholeCamera(origin={np.round(self.origin, 6).tolist()}, "
            f"look_at={np.round(self.look_at, 6).tolist()}, vfov={self.vfov}, "
            f"width={self.width}, height={self.height})"
        )
