"""Scene module for scene assembly and ray-scene queries.

Components:
    light: Diffuse area lights
    object: Scattering objects pairing a shape with a material
    scene: Scene container answering intersection and light sampling queries
    manager: Configuration-driven construction and JSON scene files
    cornell_box: Factory for the classic Cornell box description
"""

from .cornell_box import BOX_SIZE, CornellBoxParams, create_cornell_box_config
from .light import DiffuseAreaLight
from .manager import (
    ImageConfig,
    SceneConfig,
    SceneManager,
    load_scene,
    load_scene_config,
    parse_angle_degrees,
    parse_spectrum,
    parse_vector,
    save_scene_config,
)
from .object import GeometricObject
from .scene import Scene

__all__ = [
    # Entities
    "DiffuseAreaLight",
    "GeometricObject",
    "Scene",
    # Manager module
    "ImageConfig",
    "SceneConfig",
    "SceneManager",
    "load_scene",
    "load_scene_config",
    "save_scene_config",
    "parse_vector",
    "parse_spectrum",
    "parse_angle_degrees",
    # Cornell box module
    "BOX_SIZE",
    "CornellBoxParams",
    "create_cornell_box_config",
]
