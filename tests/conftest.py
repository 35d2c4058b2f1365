"""Pytest configuration for renderer tests.

This module provides shared fixtures for all test modules:
- Taichi initialization, which must happen once per session
- A scripted sampler that replays fixed numbers per stream
- Small scenes whose light transport has a closed form
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Optional

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


class ScriptedSampler:
    """Sampler replaying fixed numbers, one list per stream.

    Like the Metropolis sampler, start_stream() rewinds the selected stream.
    Reading past the end of a list returns `default`.

    Attributes:
        streams: Numbers handed out per stream index.
        consumed: Count of numbers read per stream since the last rewind.
    """

    def __init__(self, streams: Optional[dict[int, Sequence[float]]] = None, default: float = 0.5):
        self.streams = {index: list(values) for index, values in (streams or {}).items()}
        self.default = default
        self.stream = 0
        self.consumed: dict[int, int] = {}

    def start_stream(self, index: int) -> None:
        self.stream = index
        self.consumed[index] = 0

    def sample(self, start: float = 0.0, end: float = 1.0) -> float:
        position = self.consumed.get(self.stream, 0)
        self.consumed[self.stream] = position + 1
        values = self.streams.get(self.stream, [])
        u = values[position] if position < len(values) else self.default
        return start + u * (end - start)


@pytest.fixture
def scripted_sampler():
    """Factory for ScriptedSampler instances."""
    return ScriptedSampler


# =============================================================================
# Scenes
# =============================================================================

# Sphere light straight ahead of the camera
AXIS_LIGHT_DISTANCE = 5.0
AXIS_LIGHT_RADIUS = 1.0
AXIS_FILM_SIZE = 16


def axis_light_coverage() -> float:
    """Fraction of the film covered by the axis light's projection.

    The light subtends a cone of half angle alpha with sin(alpha) = r / d.
    On the unit-distance film (area 4 for a 90 degree square view) it covers
    a disc of radius tan(alpha).
    """
    sin_alpha = AXIS_LIGHT_RADIUS / AXIS_LIGHT_DISTANCE
    tan_alpha = sin_alpha / math.sqrt(1.0 - sin_alpha * sin_alpha)
    return math.pi * tan_alpha * tan_alpha / 4.0


@pytest.fixture
def axis_light_coverage_fraction() -> float:
    return axis_light_coverage()


@pytest.fixture
def axis_light_scene():
    """Camera at the origin looking down -Z at a white sphere light."""
    from src.mmlt.camera.pinhole import PinholeCamera
    from src.mmlt.core.ray import vec3
    from src.mmlt.geometry.sphere import Sphere
    from src.mmlt.scene.light import DiffuseAreaLight
    from src.mmlt.scene.scene import Scene

    camera = PinholeCamera(
        origin=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        width=AXIS_FILM_SIZE,
        height=AXIS_FILM_SIZE,
    )
    light = DiffuseAreaLight(
        Sphere(center=vec3(0.0, 0.0, -AXIS_LIGHT_DISTANCE), radius=AXIS_LIGHT_RADIUS),
        emission=vec3(1.0, 1.0, 1.0),
    )
    return Scene(camera, [light])


@pytest.fixture
def mirror_scene():
    """Camera looking at a 45 degree mirror that reflects its view up into a quad light.

    The central camera ray hits the mirror at (0, 0, -2), reflects to +Y and
    reaches the light at (0, 3, -2).
    """
    from src.mmlt.camera.pinhole import PinholeCamera
    from src.mmlt.core.ray import vec3
    from src.mmlt.geometry.quad import Quad
    from src.mmlt.materials.metal import MirrorMaterial
    from src.mmlt.materials.texture import ConstantTexture
    from src.mmlt.scene.light import DiffuseAreaLight
    from src.mmlt.scene.object import GeometricObject
    from src.mmlt.scene.scene import Scene

    camera = PinholeCamera(
        origin=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=60.0,
        width=11,
        height=11,
    )
    # Normal along cross(edge_u, edge_v) = (0, 1, 1)
    mirror = GeometricObject(
        Quad(corner=vec3(-0.5, -0.5, -1.5), edge_u=vec3(1.0, 0.0, 0.0), edge_v=vec3(0.0, 1.0, -1.0)),
        MirrorMaterial(ConstantTexture(vec3(0.9, 0.8, 0.7))),
    )
    # Normal along cross(edge_u, edge_v) = -Y, facing the mirror
    light = DiffuseAreaLight(
        Quad(corner=vec3(-2.0, 3.0, -4.0), edge_u=vec3(4.0, 0.0, 0.0), edge_v=vec3(0.0, 0.0, 4.0)),
        emission=vec3(2.0, 2.0, 2.0),
    )
    return Scene(camera, [light], [mirror])


@pytest.fixture
def floor_scene():
    """Camera above a grey diffuse floor lit by a sphere light.

    Length-3 paths (camera, floor, light) carry all of the one-bounce
    transport, so every technique estimates the same integral.
    """
    from src.mmlt.camera.pinhole import PinholeCamera
    from src.mmlt.core.ray import vec3
    from src.mmlt.geometry.quad import Quad
    from src.mmlt.geometry.sphere import Sphere
    from src.mmlt.materials.lambertian import MatteMaterial
    from src.mmlt.materials.texture import ConstantTexture
    from src.mmlt.scene.light import DiffuseAreaLight
    from src.mmlt.scene.object import GeometricObject
    from src.mmlt.scene.scene import Scene

    camera = PinholeCamera(
        origin=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        width=16,
        height=16,
    )
    # Normal along cross(edge_u, edge_v) = +Y
    floor = GeometricObject(
        Quad(corner=vec3(-5.0, -1.0, 1.0), edge_u=vec3(10.0, 0.0, 0.0), edge_v=vec3(0.0, 0.0, -10.0)),
        MatteMaterial(ConstantTexture(vec3(0.5, 0.5, 0.5))),
    )
    light = DiffuseAreaLight(
        Sphere(center=vec3(0.0, 1.5, -4.0), radius=1.0),
        emission=vec3(1.0, 1.0, 1.0),
    )
    return Scene(camera, [light], [floor])
