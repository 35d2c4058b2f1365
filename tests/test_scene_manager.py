"""Tests for configuration-driven scene construction.

Tests cover:
- Vector, spectrum and angle parsing
- Image and scene configuration records
- Building scenes from dictionaries and the bundled JSON files
- Error messages for unknown tags and missing keys
- Save/load round trips
"""

import json
import math
from pathlib import Path

import numpy as np
import pytest

SCENES_DIR = Path(__file__).parent.parent / "scenes"


def _minimal_scene():
    return {
        "image": {"width": 8, "height": 6},
        "camera": {
            "type": "pinhole",
            "origin": {"x": 0.0, "y": 0.0, "z": 5.0},
            "look_at": {"x": 0.0, "y": 0.0, "z": 0.0},
            "field_of_view": 45.0,
        },
        "lights": [
            {
                "id": "key",
                "type": "diffuse_area",
                "shape": {"type": "sphere", "center": [0.0, 4.0, 0.0], "radius": 0.5},
                "spectrum": {"r": 5.0, "g": 5.0, "b": 5.0},
            }
        ],
        "objects": [
            {
                "id": "ball",
                "type": "geometric",
                "shape": {"type": "sphere", "center": [0.0, 0.0, 0.0], "radius": 1.0},
                "material": {"type": "matte", "texture": {"type": "constant", "spectrum": [0.5, 0.2, 0.1]}},
            },
            {
                "id": "floor",
                "type": "geometric",
                "shape": {
                    "type": "quad",
                    "corner": [-5.0, -1.0, 5.0],
                    "edge_u": [10.0, 0.0, 0.0],
                    "edge_v": [0.0, 0.0, -10.0],
                },
                "material": {"type": "mirror", "texture": {"type": "constant", "spectrum": [0.9, 0.9, 0.9]}},
            },
            {
                "id": "lens",
                "type": "geometric",
                "shape": {"type": "sphere", "center": [2.0, 0.0, 0.0], "radius": 0.5},
                "material": {"type": "dielectric", "eta": 1.33},
            },
        ],
    }


class TestParsing:
    """Tests for value parsers."""

    def test_parse_vector(self):
        """Test the dictionary and list forms."""
        from src.mmlt.scene.manager import parse_vector

        np.testing.assert_array_equal(parse_vector({"x": 1, "y": 2, "z": 3}), [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(parse_vector([4, 5, 6]), [4.0, 5.0, 6.0])

    def test_parse_vector_errors(self):
        """Test missing components and wrong shapes."""
        from src.mmlt.scene.manager import parse_vector

        with pytest.raises(ValueError, match="Missing component"):
            parse_vector({"x": 1, "y": 2})
        with pytest.raises(ValueError):
            parse_vector([1, 2])

    def test_parse_spectrum(self):
        """Test the dictionary and list forms."""
        from src.mmlt.scene.manager import parse_spectrum

        np.testing.assert_array_equal(parse_spectrum({"r": 0.1, "g": 0.2, "b": 0.3}), [0.1, 0.2, 0.3])
        np.testing.assert_array_equal(parse_spectrum([1, 1, 1]), [1.0, 1.0, 1.0])
        with pytest.raises(ValueError, match="Missing channel"):
            parse_spectrum({"r": 0.1})

    def test_parse_angle(self):
        """Test bare degrees, explicit degrees and radians."""
        from src.mmlt.scene.manager import parse_angle_degrees

        assert parse_angle_degrees(40) == 40.0
        assert parse_angle_degrees({"value": 40.0, "unit": "degrees"}) == 40.0
        assert parse_angle_degrees({"value": math.pi / 2.0, "unit": "radians"}) == pytest.approx(90.0)
        with pytest.raises(ValueError, match="Unknown angle unit"):
            parse_angle_degrees({"value": 1.0, "unit": "gradians"})


class TestConfigRecords:
    """Tests for ImageConfig and SceneConfig."""

    def test_image_defaults(self):
        """Test the default image settings."""
        from src.mmlt.scene.manager import ImageConfig

        image = ImageConfig()
        assert (image.width, image.height, image.clamp, image.filter) == (640, 480, None, "box")

    def test_image_from_dict(self):
        """Test reading the nested filter section."""
        from src.mmlt.scene.manager import ImageConfig

        image = ImageConfig.from_dict({"width": 32, "height": 16, "filter": {"type": "box"}, "clamp": 50})
        assert (image.width, image.height, image.clamp) == (32, 16, 50.0)
        assert ImageConfig.from_dict(image.to_dict()) == image

    def test_image_rejects_unknown_filter(self):
        """Test that only the box filter is accepted."""
        from src.mmlt.scene.manager import ImageConfig

        with pytest.raises(ValueError, match="Unknown filter type"):
            ImageConfig.from_dict({"filter": {"type": "gaussian"}})

    def test_scene_requires_camera_and_lights(self):
        """Test the missing section messages."""
        from src.mmlt.scene.manager import SceneConfig

        data = _minimal_scene()
        del data["camera"]
        with pytest.raises(ValueError, match="no camera"):
            SceneConfig.from_dict(data)

        data = _minimal_scene()
        data["lights"] = []
        with pytest.raises(ValueError, match="no lights"):
            SceneConfig.from_dict(data)


class TestSceneManager:
    """Tests for SceneManager.build."""

    def test_build_from_dict(self):
        """Test a scene using every shape and material tag."""
        from src.mmlt.materials.dielectric import DielectricMaterial
        from src.mmlt.materials.lambertian import MatteMaterial
        from src.mmlt.materials.metal import MirrorMaterial
        from src.mmlt.scene.manager import SceneManager

        manager = SceneManager()
        scene = manager.from_dict(_minimal_scene())

        assert (scene.width, scene.height) == (8, 6)
        assert scene.camera.vfov == 45.0
        assert len(scene.lights) == 1
        assert len(scene.objects) == 3
        assert isinstance(manager.named_objects["ball"].material, MatteMaterial)
        assert isinstance(manager.named_objects["floor"].material, MirrorMaterial)
        assert isinstance(manager.named_objects["lens"].material, DielectricMaterial)
        assert manager.named_objects["lens"].material.eta == pytest.approx(1.33)
        assert manager.named_lights["key"] is scene.lights[0]

    def test_camera_up_defaults_to_y(self):
        """Test that the up vector is optional."""
        from src.mmlt.scene.manager import SceneManager

        scene = SceneManager().from_dict(_minimal_scene())
        np.testing.assert_allclose(scene.camera.vup, [0.0, 1.0, 0.0])

    def test_build_resets_names(self):
        """Test that a second build forgets the first build's names."""
        from src.mmlt.scene.manager import SceneManager

        manager = SceneManager()
        manager.from_dict(_minimal_scene())
        data = _minimal_scene()
        data["objects"] = data["objects"][:1]
        manager.from_dict(data)
        assert set(manager.named_objects) == {"ball"}

    @pytest.mark.parametrize(
        "section, index, key, value, message",
        [
            ("objects", 0, "type", "csg", "Unknown object type: csg"),
            ("lights", 0, "type", "point", "Unknown light type: point"),
            ("objects", 0, "shape", {"type": "torus"}, "Unknown shape type: torus"),
            ("objects", 0, "material", {"type": "plastic"}, "Unknown material type: plastic"),
            (
                "objects",
                0,
                "material",
                {"type": "matte", "texture": {"type": "checker"}},
                "Unknown texture type: checker",
            ),
        ],
    )
    def test_unknown_tags(self, section, index, key, value, message):
        """Test that unknown tags are reported by name."""
        from src.mmlt.scene.manager import SceneManager

        data = _minimal_scene()
        data[section][index][key] = value
        with pytest.raises(ValueError, match=message):
            SceneManager().from_dict(data)

    def test_unknown_camera_type(self):
        """Test that only pinhole cameras are supported."""
        from src.mmlt.scene.manager import SceneManager

        data = _minimal_scene()
        data["camera"]["type"] = "thin_lens"
        with pytest.raises(ValueError, match="Unknown camera type: thin_lens"):
            SceneManager().from_dict(data)

    def test_missing_keys(self):
        """Test that missing keys name the key and its context."""
        from src.mmlt.scene.manager import SceneManager

        data = _minimal_scene()
        del data["objects"][0]["shape"]["radius"]
        with pytest.raises(ValueError, match="Missing 'radius' in sphere"):
            SceneManager().from_dict(data)

        data = _minimal_scene()
        del data["camera"]["field_of_view"]
        with pytest.raises(ValueError, match="Missing 'field_of_view' in camera"):
            SceneManager().from_dict(data)


class TestSceneFiles:
    """Tests for the bundled scene files and JSON round trips."""

    @pytest.mark.parametrize(
        "name, lights, objects",
        [("scene-1.json", 2, 8), ("scene-2.json", 1, 9), ("scene-3.json", 1, 10)],
    )
    def test_bundled_scenes_load(self, name, lights, objects):
        """Test that every bundled scene builds."""
        from src.mmlt.scene.manager import load_scene

        scene, config = load_scene(SCENES_DIR / name)
        assert len(scene.lights) == lights
        assert len(scene.objects) == objects
        assert (scene.width, scene.height) == (config.image.width, config.image.height)

    def test_save_and_load(self, tmp_path):
        """Test that a saved description loads back unchanged."""
        from src.mmlt.scene.manager import SceneConfig, load_scene_config, save_scene_config

        config = SceneConfig.from_dict(_minimal_scene())
        path = tmp_path / "scene.json"
        save_scene_config(config, path)

        assert load_scene_config(path) == config

    def test_invalid_json(self, tmp_path):
        """Test that malformed files raise ValueError."""
        from src.mmlt.scene.manager import load_scene_config

        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid scene file"):
            load_scene_config(path)

    def test_top_level_must_be_object(self, tmp_path):
        """Test that a JSON list is not a scene."""
        from src.mmlt.scene.manager import load_scene_config

        path = tmp_path / "list.json"
        path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
        with pytest.raises(ValueError, match="top level must be an object"):
            load_scene_config(path)
