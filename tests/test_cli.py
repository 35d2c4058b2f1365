"""Tests for the command line renderer.

Tests cover:
- Argument parsing and validation
- Verbosity switches
- Rendering a tiny scene file to a PFM image
- Exit codes of main()
"""

import json
import logging

import numpy as np
import pytest


def _tiny_scene(path):
    scene = {
        "image": {"width": 4, "height": 4},
        "camera": {
            "type": "pinhole",
            "origin": [0.0, 0.0, 0.0],
            "look_at": [0.0, 0.0, -1.0],
            "field_of_view": {"value": 90.0, "unit": "degrees"},
        },
        "lights": [
            {
                "type": "diffuse_area",
                "shape": {"type": "sphere", "center": [0.0, 0.0, -3.0], "radius": 1.0},
                "spectrum": [1.0, 1.0, 1.0],
            }
        ],
        "objects": [
            {
                "type": "geometric",
                "shape": {"type": "quad", "corner": [-5.0, -1.0, 1.0], "edge_u": [10.0, 0.0, 0.0], "edge_v": [0.0, 0.0, -10.0]},
                "material": {"type": "matte", "texture": {"type": "constant", "spectrum": [0.5, 0.5, 0.5]}},
            }
        ],
    }
    path.write_text(json.dumps(scene), encoding="utf-8")
    return path


class TestArgumentParsing:
    """Tests for build_parser and parse_render_config."""

    def test_required_arguments(self):
        """Test that --scene and --image are required."""
        from src.mmlt.cli import parse_render_config

        with pytest.raises(SystemExit):
            parse_render_config([])
        with pytest.raises(SystemExit):
            parse_render_config(["--scene", "scene.json"])

    def test_defaults(self):
        """Test the default integrator and output settings."""
        from src.mmlt.cli import parse_render_config
        from src.mmlt.core.integrator import MmltConfig

        config = parse_render_config(["--scene", "scene.json", "--image", "out.pfm"])
        assert config.scene_path == "scene.json"
        assert config.image_path == "out.pfm"
        assert config.integrator == MmltConfig()
        assert config.arch == "auto"
        assert config.tone_map == "none"

    def test_integrator_settings(self):
        """Test that every integrator flag reaches MmltConfig."""
        from src.mmlt.cli import parse_render_config

        config = parse_render_config(
            [
                "--scene", "cornell_box",
                "--image", "out.png",
                "--max-path-length", "6",
                "--initial-sample-count", "1000",
                "--average-samples-per-pixel", "16",
                "--large-step-probability", "0.5",
                "--seed", "42",
                "--arch", "cpu",
                "--tone-map", "reinhard",
            ]
        )
        assert config.integrator.max_path_length == 6
        assert config.integrator.initial_sample_count == 1000
        assert config.integrator.average_samples_per_pixel == 16
        assert config.integrator.large_step_probability == 0.5
        assert config.integrator.seed == 42
        assert config.arch == "cpu"
        assert config.tone_map == "reinhard"

    def test_invalid_settings_raise(self):
        """Test that out-of-range integrator settings raise ValueError."""
        from src.mmlt.cli import parse_render_config

        with pytest.raises(ValueError):
            parse_render_config(["--scene", "s.json", "--image", "o.pfm", "--large-step-probability", "2"])

    def test_invalid_choices_exit(self):
        """Test that unknown backends and tone maps are rejected by argparse."""
        from src.mmlt.cli import parse_render_config

        with pytest.raises(SystemExit):
            parse_render_config(["--scene", "s.json", "--image", "o.pfm", "--arch", "tpu"])
        with pytest.raises(SystemExit):
            parse_render_config(["--scene", "s.json", "--image", "o.pfm", "--tone-map", "filmic"])

    def test_log_level(self):
        """Test the verbosity switches and their exclusivity."""
        from src.mmlt.cli import parse_render_config

        base = ["--scene", "s.json", "--image", "o.pfm"]
        assert parse_render_config(base).log_level == logging.INFO
        assert parse_render_config(base + ["--quiet"]).log_level == logging.WARNING
        assert parse_render_config(base + ["--verbose"]).log_level == logging.DEBUG
        with pytest.raises(SystemExit):
            parse_render_config(base + ["--quiet", "--verbose"])

    def test_unknown_arch_in_init(self):
        """Test that init_taichi validates its backend name."""
        from src.mmlt.cli import init_taichi

        with pytest.raises(ValueError, match="Unknown Taichi arch"):
            init_taichi("tpu")


class TestRender:
    """Tests for render() and main()."""

    def test_render_scene_file(self, tmp_path):
        """Test a complete render of a tiny scene to PFM."""
        from src.mmlt.cli import parse_render_config, render
        from src.mmlt.preview.export import load_pfm

        scene_path = _tiny_scene(tmp_path / "tiny.json")
        image_path = tmp_path / "tiny.pfm"
        config = parse_render_config(
            [
                "--scene", str(scene_path),
                "--image", str(image_path),
                "--max-path-length", "3",
                "--initial-sample-count", "50",
                "--average-samples-per-pixel", "2",
                "--seed", "5",
                "--quiet",
            ]
        )
        film = render(config)

        image = load_pfm(image_path)
        assert image.shape == (4, 4, 3)
        np.testing.assert_allclose(image, film.to_numpy())
        assert np.all(np.isfinite(image))

    def test_main_invalid_settings(self, capsys):
        """Test exit code 2 for invalid integrator settings."""
        from src.mmlt.cli import main

        code = main(["--scene", "s.json", "--image", "o.pfm", "--max-path-length", "1"])
        assert code == 2
        assert "max_path_length" in capsys.readouterr().err

    def test_main_missing_scene_file(self, tmp_path, monkeypatch):
        """Test exit code 1 when the scene cannot be loaded."""
        from src.mmlt import cli

        levels = []
        monkeypatch.setattr(cli, "init_taichi", lambda arch, seed=None: None)
        monkeypatch.setattr(cli, "setup_logging", lambda level: levels.append(level))

        code = cli.main(["--scene", str(tmp_path / "missing.json"), "--image", str(tmp_path / "o.pfm"), "--verbose"])
        assert code == 1
        assert levels == [logging.DEBUG]
        assert not (tmp_path / "o.pfm").exists()
