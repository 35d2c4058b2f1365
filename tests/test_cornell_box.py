"""Tests for the Cornell box scene factory."""

import numpy as np
import pytest


class TestCornellBox:
    """Tests for create_cornell_box_config."""

    def test_builds(self):
        """Test that the description builds with the expected parts."""
        from src.mmlt.scene.cornell_box import create_cornell_box_config
        from src.mmlt.scene.manager import SceneManager

        manager = SceneManager()
        scene = manager.build(create_cornell_box_config(width=32, height=24))

        assert (scene.width, scene.height) == (32, 24)
        assert len(scene.lights) == 1
        assert set(manager.named_objects) == {
            "left_wall",
            "right_wall",
            "back_wall",
            "floor",
            "ceiling",
            "diffuse_sphere",
            "mirror_sphere",
            "glass_sphere",
        }

    def test_light_faces_down(self):
        """Test that the ceiling light emits into the box."""
        from src.mmlt.scene.cornell_box import LIGHT_DEPTH, LIGHT_WIDTH, create_cornell_box_config
        from src.mmlt.scene.manager import SceneManager

        manager = SceneManager()
        manager.build(create_cornell_box_config())
        light = manager.named_lights["ceiling_light"]

        np.testing.assert_allclose(light.shape.normal, [0.0, -1.0, 0.0])
        assert light.shape.area == pytest.approx(LIGHT_WIDTH * LIGHT_DEPTH)
        np.testing.assert_allclose(light.emission, [15.0, 15.0, 15.0])

    def test_red_wall_on_the_left(self):
        """Test that a ray toward the left of the image hits the red wall."""
        from src.mmlt.core.ray import Ray
        from src.mmlt.scene.cornell_box import CornellBoxParams, create_cornell_box_config
        from src.mmlt.scene.manager import SceneManager

        manager = SceneManager()
        scene = manager.build(create_cornell_box_config(width=100, height=100))
        camera = scene.camera
        hit = scene.intersect(Ray(origin=camera.origin, direction=camera.direction(10.0, 50.0)))

        assert hit is not None
        assert hit.id == manager.named_objects["left_wall"].id
        np.testing.assert_allclose(hit.bsdf.albedo, CornellBoxParams().left_wall_color)

    def test_custom_params(self):
        """Test light and wall color overrides."""
        from src.mmlt.scene.cornell_box import CornellBoxParams, create_cornell_box_config

        params = CornellBoxParams(light_intensity=2.0, light_color=(1.0, 0.5, 0.25))
        config = create_cornell_box_config(params=params, clamp=10.0)

        assert config.lights[0]["spectrum"] == [2.0, 1.0, 0.5]
        assert config.image.clamp == 10.0

    def test_config_is_json_serializable(self, tmp_path):
        """Test that the description can be saved and loaded as a scene file."""
        from src.mmlt.scene.cornell_box import create_cornell_box_config
        from src.mmlt.scene.manager import load_scene, save_scene_config

        path = tmp_path / "cornell.json"
        save_scene_config(create_cornell_box_config(width=16, height=16), path)
        scene, config = load_scene(path)

        assert len(scene.objects) == 8
        assert config.image.width == 16
