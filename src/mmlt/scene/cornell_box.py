"""Cornell box scene configuration.

This module provides a factory for the classic Cornell box, a standard test
scene for global illumination algorithms. The box is built from quads and
returned as a SceneConfig, so it goes through the same SceneManager path as
scene files and can be saved as JSON.

The Cornell box consists of:
- 5 walls forming an open box (left, right, back, floor, ceiling)
- Red and green side walls, white back wall, floor and ceiling
- 3 spheres: diffuse, mirror and glass
- A quad area light just below the ceiling, emitting downward

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.mmlt.scene.cornell_box import create_cornell_box_config
    >>> from src.mmlt.scene.manager import SceneManager
    >>>
    >>> config = create_cornell_box_config(width=256, height=256)
    >>> scene = SceneManager().build(config)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from src.mmlt.scene.manager import ImageConfig, SceneConfig

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    Attributes:
        light_intensity: Scale applied to light_color for the emitted radiance.
        light_color: RGB color of the light.
        left_wall_color: RGB albedo of the left wall as seen from the camera.
        right_wall_color: RGB albedo of the right wall as seen from the camera.
        back_wall_color: RGB albedo of the back wall, floor and ceiling.

    Example:
        >>> params = CornellBoxParams()
        >>> params.light_intensity
        15.0
        >>> warm = CornellBoxParams(light_color=(1.0, 0.9, 0.8))
    """

    light_intensity: float = 15.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.65, 0.05, 0.05)
    right_wall_color: tuple[float, float, float] = (0.12, 0.45, 0.15)
    back_wall_color: tuple[float, float, float] = (0.73, 0.73, 0.73)


# =============================================================================
# Cornell Box Constants
# =============================================================================

# Classic Cornell box dimensions (approximately 555x555x555 units)
BOX_SIZE = 555.0

# Classic light is about 130x105 units
LIGHT_WIDTH = 130.0
LIGHT_DEPTH = 105.0

SPHERE_RADIUS = 80.0
DIFFUSE_SPHERE_ALBEDO = (0.73, 0.73, 0.73)
MIRROR_SPHERE_ALBEDO = (0.95, 0.93, 0.88)
GLASS_SPHERE_IOR = 1.5

CAMERA_DISTANCE = 800.0
CAMERA_VFOV = 40.0


# =============================================================================
# Config helpers
# =============================================================================


def _quad(corner, edge_u, edge_v) -> dict[str, Any]:
    return {"type": "quad", "corner": list(corner), "edge_u": list(edge_u), "edge_v": list(edge_v)}


def _sphere(center, radius: float) -> dict[str, Any]:
    return {"type": "sphere", "center": list(center), "radius": radius}


def _matte(albedo) -> dict[str, Any]:
    return {"type": "matte", "texture": {"type": "constant", "spectrum": list(albedo)}}


def _object(name: str, shape: dict[str, Any], material: dict[str, Any]) -> dict[str, Any]:
    return {"id": name, "type": "geometric", "shape": shape, "material": material}


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_config(
    width: int = 256,
    height: int = 256,
    box_size: float = BOX_SIZE,
    params: Optional[CornellBoxParams] = None,
    clamp: Optional[float] = None,
) -> SceneConfig:
    """Create a Cornell box scene description.

    The box spans 0 to box_size on every axis with its open side facing -Z,
    where the camera sits looking in.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        box_size: Size of the box in each dimension.
        params: Optional light and wall colors. Defaults to CornellBoxParams().
        clamp: Optional per-deposit clamp for the film.

    Returns:
        A SceneConfig ready for SceneManager.build().
    """
    if params is None:
        params = CornellBoxParams()
    s = box_size

    white = _matte(params.back_wall_color)
    objects = [
        # The camera looks down +Z, so x = 0 is on the right of the image
        _object("right_wall", _quad((0.0, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s)), _matte(params.right_wall_color)),
        _object("left_wall", _quad((s, 0.0, s), (0.0, s, 0.0), (0.0, 0.0, -s)), _matte(params.left_wall_color)),
        _object("back_wall", _quad((0.0, 0.0, s), (s, 0.0, 0.0), (0.0, s, 0.0)), white),
        _object("floor", _quad((0.0, 0.0, 0.0), (s, 0.0, 0.0), (0.0, 0.0, s)), white),
        _object("ceiling", _quad((0.0, s, s), (s, 0.0, 0.0), (0.0, 0.0, -s)), white),
        # Spheres resting on the floor
        _object(
            "diffuse_sphere",
            _sphere((s * 0.27, SPHERE_RADIUS, s * 0.35), SPHERE_RADIUS),
            _matte(DIFFUSE_SPHERE_ALBEDO),
        ),
        _object(
            "mirror_sphere",
            _sphere((s * 0.73, SPHERE_RADIUS, s * 0.35), SPHERE_RADIUS),
            {"type": "mirror", "texture": {"type": "constant", "spectrum": list(MIRROR_SPHERE_ALBEDO)}},
        ),
        _object(
            "glass_sphere",
            _sphere((s * 0.5, SPHERE_RADIUS, s * 0.65), SPHERE_RADIUS),
            {"type": "dielectric", "eta": GLASS_SPHERE_IOR},
        ),
    ]

    # Light sits just below the ceiling; cross(edge_u, edge_v) points down
    light_corner = ((s - LIGHT_WIDTH) / 2.0, s - 1.0, (s - LIGHT_DEPTH) / 2.0)
    emission = [params.light_intensity * c for c in params.light_color]
    lights = [
        {
            "id": "ceiling_light",
            "type": "diffuse_area",
            "shape": _quad(light_corner, (LIGHT_WIDTH, 0.0, 0.0), (0.0, 0.0, LIGHT_DEPTH)),
            "spectrum": emission,
        }
    ]

    camera = {
        "type": "pinhole",
        "origin": [s / 2.0, s / 2.0, -CAMERA_DISTANCE],
        "look_at": [s / 2.0, s / 2.0, s / 2.0],
        "up": [0.0, 1.0, 0.0],
        "field_of_view": {"value": CAMERA_VFOV, "unit": "degrees"},
    }

    return SceneConfig(
        image=ImageConfig(width=width, height=height, clamp=clamp),
        camera=camera,
        lights=lights,
        objects=objects,
    )
