"""Configuration-driven scene construction.

This module turns scene descriptions (plain dictionaries, usually loaded
from JSON) into Scene instances. Every pluggable part of a scene is a
tagged union selected by its "type" key:

    camera:    pinhole
    lights:    diffuse_area
    objects:   geometric
    shapes:    sphere, quad
    materials: matte, mirror, dielectric
    textures:  constant

Vectors are written either as {"x": .., "y": .., "z": ..} or as a list of
three numbers, spectra as {"r": .., "g": .., "b": ..} or a list, and angles
as {"value": .., "unit": "degrees" | "radians"} or a number of degrees.

Example scene file:

    {
      "image": {"width": 320, "height": 240, "clamp": 200.0},
      "camera": {
        "type": "pinhole",
        "origin": {"x": 0, "y": 1, "z": 5},
        "look_at": {"x": 0, "y": 1, "z": 0},
        "field_of_view": {"value": 40.0, "unit": "degrees"}
      },
      "lights": [...],
      "objects": [...]
    }

Example:
    >>> from src.mmlt.scene.manager import load_scene
    >>> scene, config = load_scene("scenes/scene-1.json")
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from src.mmlt.camera.pinhole import PinholeCamera
from src.mmlt.config import get_logger
from src.mmlt.core.ray import Vector
from src.mmlt.core.spectrum import Spectrum
from src.mmlt.geometry.quad import Quad
from src.mmlt.geometry.shape import Shape
from src.mmlt.geometry.sphere import Sphere
from src.mmlt.materials.bsdf import Material
from src.mmlt.materials.dielectric import DielectricMaterial
from src.mmlt.materials.lambertian import MatteMaterial
from src.mmlt.materials.metal import MirrorMaterial
from src.mmlt.materials.texture import ConstantTexture, Texture
from src.mmlt.scene.light import DiffuseAreaLight
from src.mmlt.scene.object import GeometricObject
from src.mmlt.scene.scene import Scene

logger = get_logger("scene")


# =============================================================================
# Value parsing
# =============================================================================


def _require(config: dict[str, Any], key: str, context: str) -> Any:
    if key not in config:
        raise ValueError(f"Missing '{key}' in {context}")
    return config[key]


def parse_vector(value: Any, context: str = "vector") -> Vector:
    """Parse {x, y, z} or [x, y, z] into a vector.

    Raises:
        ValueError: If the value has the wrong form.
    """
    if isinstance(value, dict):
        try:
            return np.array([value["x"], value["y"], value["z"]], dtype=np.float64)
        except KeyError as e:
            raise ValueError(f"Missing component {e} in {context}") from e
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return np.array(value, dtype=np.float64)
    raise ValueError(f"Invalid {context}: {value!r}")


def parse_spectrum(value: Any, context: str = "spectrum") -> Spectrum:
    """Parse {r, g, b} or [r, g, b] into an RGB spectrum.

    Raises:
        ValueError: If the value has the wrong form.
    """
    if isinstance(value, dict):
        try:
            return np.array([value["r"], value["g"], value["b"]], dtype=np.float64)
        except KeyError as e:
            raise ValueError(f"Missing channel {e} in {context}") from e
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return np.array(value, dtype=np.float64)
    raise ValueError(f"Invalid {context}: {value!r}")


def parse_angle_degrees(value: Any, context: str = "angle") -> float:
    """Parse an angle into degrees.

    Raises:
        ValueError: If the unit is unknown.
    """
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, dict):
        amount = float(_require(value, "value", context))
        unit = value.get("unit", "degrees")
        if unit == "degrees":
            return amount
        if unit == "radians":
            return math.degrees(amount)
        raise ValueError(f"Unknown angle unit in {context}: {unit}")
    raise ValueError(f"Invalid {context}: {value!r}")


def _vector_to_dict(vector: Vector) -> dict[str, float]:
    return {"x": float(vector[0]), "y": float(vector[1]), "z": float(vector[2])}


# =============================================================================
# Configuration records
# =============================================================================


@dataclass
class ImageConfig:
    """Output image settings.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        clamp: Optional per-channel bound applied to single deposits.
        filter: Reconstruction filter. Only "box" is supported.
    """

    width: int = 640
    height: int = 480
    clamp: Optional[float] = None
    filter: str = "box"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.filter != "box":
            raise ValueError(f"Unknown filter type: {self.filter}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "width": self.width,
            "height": self.height,
            "filter": {"type": self.filter},
        }
        if self.clamp is not None:
            data["clamp"] = self.clamp
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageConfig:
        filter_config = data.get("filter", {"type": "box"})
        filter_type = filter_config.get("type", "box") if isinstance(filter_config, dict) else filter_config
        clamp = data.get("clamp")
        return cls(
            width=int(data.get("width", 640)),
            height=int(data.get("height", 480)),
            clamp=None if clamp is None else float(clamp),
            filter=filter_type,
        )


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        image: Output image settings.
        camera: Camera description.
        lights: Light descriptions.
        objects: Object descriptions.
    """

    image: ImageConfig = field(default_factory=ImageConfig)
    camera: dict[str, Any] = field(default_factory=dict)
    lights: list[dict[str, Any]] = field(default_factory=list)
    objects: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a dictionary (for JSON serialization)."""
        return {
            "image": self.image.to_dict(),
            "camera": self.camera,
            "lights": self.lights,
            "objects": self.objects,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SceneConfig:
        """Load a configuration from a dictionary.

        Args:
            data: Dictionary with 'image', 'camera', 'lights', 'objects' keys.

        Raises:
            ValueError: If the camera or lights section is missing.
        """
        if "camera" not in data:
            raise ValueError("Scene description has no camera")
        if not data.get("lights"):
            raise ValueError("Scene description has no lights")
        return cls(
            image=ImageConfig.from_dict(data.get("image", {})),
            camera=data["camera"],
            lights=list(data["lights"]),
            objects=list(data.get("objects", [])),
        )


# =============================================================================
# Scene manager
# =============================================================================


class SceneManager:
    """Factory building scene parts from tagged configuration dictionaries.

    Named entries (lights and objects with an "id") are remembered so the
    parts of a built scene can be looked up by name.

    Attributes:
        named_lights: Lights of the last build, by configured id.
        named_objects: Objects of the last build, by configured id.

    Example:
        >>> manager = SceneManager()
        >>> scene = manager.build(SceneConfig.from_dict(data))
        >>> floor = manager.named_objects["floor"]
    """

    def __init__(self) -> None:
        self.named_lights: dict[str, DiffuseAreaLight] = {}
        self.named_objects: dict[str, GeometricObject] = {}

    def clear(self) -> None:
        """Forget the entities of the previous build."""
        self.named_lights.clear()
        self.named_objects.clear()

    # =========================================================================
    # Part factories
    # =========================================================================

    def create_camera(self, config: dict[str, Any], image: ImageConfig) -> PinholeCamera:
        camera_type = config.get("type", "pinhole")
        if camera_type != "pinhole":
            raise ValueError(f"Unknown camera type: {camera_type}")
        return PinholeCamera(
            origin=tuple(parse_vector(_require(config, "origin", "camera"), "camera origin")),
            look_at=tuple(parse_vector(_require(config, "look_at", "camera"), "camera look_at")),
            vup=tuple(parse_vector(config.get("up", [0.0, 1.0, 0.0]), "camera up")),
            vfov=parse_angle_degrees(
                _require(config, "field_of_view", "camera"), "camera field_of_view"
            ),
            width=image.width,
            height=image.height,
        )

    def create_shape(self, config: dict[str, Any]) -> Shape:
        shape_type = config.get("type")
        if shape_type == "sphere":
            return Sphere(
                center=parse_vector(_require(config, "center", "sphere"), "sphere center"),
                radius=float(_require(config, "radius", "sphere")),
            )
        if shape_type in ("quad", "parallelogram"):
            return Quad(
                corner=parse_vector(_require(config, "corner", "quad"), "quad corner"),
                edge_u=parse_vector(_require(config, "edge_u", "quad"), "quad edge_u"),
                edge_v=parse_vector(_require(config, "edge_v", "quad"), "quad edge_v"),
            )
        raise ValueError(f"Unknown shape type: {shape_type}")

    def create_texture(self, config: dict[str, Any]) -> Texture:
        texture_type = config.get("type")
        if texture_type == "constant":
            return ConstantTexture(
                parse_spectrum(_require(config, "spectrum", "texture"), "texture spectrum")
            )
        raise ValueError(f"Unknown texture type: {texture_type}")

    def create_material(self, config: dict[str, Any]) -> Material:
        material_type = config.get("type")
        if material_type == "matte":
            return MatteMaterial(self.create_texture(_require(config, "texture", "matte material")))
        if material_type == "mirror":
            return MirrorMaterial(self.create_texture(_require(config, "texture", "mirror material")))
        if material_type == "dielectric":
            eta = float(_require(config, "eta", "dielectric material"))
            if "texture" in config:
                return DielectricMaterial(eta=eta, texture=self.create_texture(config["texture"]))
            return DielectricMaterial(eta=eta)
        raise ValueError(f"Unknown material type: {material_type}")

    def create_light(self, config: dict[str, Any]) -> DiffuseAreaLight:
        light_type = config.get("type")
        if light_type != "diffuse_area":
            raise ValueError(f"Unknown light type: {light_type}")
        light = DiffuseAreaLight(
            shape=self.create_shape(_require(config, "shape", "light")),
            emission=parse_spectrum(_require(config, "spectrum", "light"), "light spectrum"),
        )
        if "id" in config:
            self.named_lights[config["id"]] = light
        return light

    def create_object(self, config: dict[str, Any]) -> GeometricObject:
        object_type = config.get("type")
        if object_type != "geometric":
            raise ValueError(f"Unknown object type: {object_type}")
        obj = GeometricObject(
            shape=self.create_shape(_require(config, "shape", "object")),
            material=self.create_material(_require(config, "material", "object")),
        )
        if "id" in config:
            self.named_objects[config["id"]] = obj
        return obj

    # =========================================================================
    # Scene assembly
    # =========================================================================

    def build(self, config: SceneConfig) -> Scene:
        """Build a scene from a configuration.

        Args:
            config: The scene configuration.

        Returns:
            The assembled scene.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()
        camera = self.create_camera(config.camera, config.image)
        lights = [self.create_light(light) for light in config.lights]
        objects = [self.create_object(obj) for obj in config.objects]
        logger.info(
            "Built scene: %dx%d image, %d lights, %d objects",
            config.image.width,
            config.image.height,
            len(lights),
            len(objects),
        )
        return Scene(camera, lights, objects)

    def from_dict(self, data: dict[str, Any]) -> Scene:
        """Build a scene from a dictionary."""
        return self.build(SceneConfig.from_dict(data))


def load_scene_config(path: Union[str, Path]) -> SceneConfig:
    """Read a scene description file.

    Raises:
        ValueError: If the file is not valid JSON or not a valid description.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid scene file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid scene file {path}: top level must be an object")
    return SceneConfig.from_dict(data)


def load_scene(path: Union[str, Path]) -> tuple[Scene, SceneConfig]:
    """Load and build a scene from a JSON file.

    Returns:
        The scene and the configuration it was built from (the image
        settings are needed to allocate the film).
    """
    config = load_scene_config(path)
    logger.debug("Loaded scene description %s", path)
    return SceneManager().build(config), config


def save_scene_config(config: SceneConfig, path: Union[str, Path]) -> None:
    """Write a scene description as JSON."""
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
