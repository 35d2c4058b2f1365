"""Unit tests for the pinhole camera.

Tests cover:
- Camera basis and raster mapping
- Importance and directional density normalization
- Ray intersection with the pinhole
- Raster sampling
- Parameter validation
"""

import numpy as np
import pytest


def _camera(width=16, height=16, vfov=90.0):
    from src.mmlt.camera.pinhole import PinholeCamera

    return PinholeCamera(
        origin=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=vfov,
        width=width,
        height=height,
    )


class TestPinholeBasis:
    """Tests for the camera frame and film size."""

    def test_basis(self):
        """Test that u points right, v up and w backward."""
        camera = _camera()
        np.testing.assert_allclose(camera.u, [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(camera.v, [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(camera.w, [0.0, 0.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(camera.forward, [0.0, 0.0, -1.0], atol=1e-12)

    def test_film_area(self):
        """Test the unit-distance film of a 90 degree square view."""
        camera = _camera()
        assert camera.viewport_height == pytest.approx(2.0)
        assert camera.film_area == pytest.approx(4.0)

    def test_aspect_ratio(self):
        """Test that the viewport width follows the image aspect."""
        camera = _camera(width=32, height=16)
        assert camera.viewport_width == pytest.approx(2.0 * camera.viewport_height)


class TestRasterMapping:
    """Tests for raster() and direction()."""

    def test_center(self):
        """Test that the view direction maps to the image center."""
        camera = _camera()
        assert camera.raster(np.array([0.0, 0.0, -1.0])) == pytest.approx((8.0, 8.0))
        np.testing.assert_allclose(camera.direction(8.0, 8.0), [0.0, 0.0, -1.0], atol=1e-12)

    def test_top_left_is_up_and_left(self):
        """Test that raster (0, 0) looks up and to the left."""
        direction = _camera().direction(0.0, 0.0)
        assert direction[0] < 0.0
        assert direction[1] > 0.0

    def test_direction_raster_consistency(self):
        """Test that raster() inverts direction()."""
        camera = _camera()
        for x, y in [(3.25, 11.5), (0.1, 15.9), (12.0, 2.0)]:
            assert camera.raster(camera.direction(x, y)) == pytest.approx((x, y))

    def test_outside_film(self):
        """Test directions behind the camera or outside the field of view."""
        camera = _camera()
        assert camera.raster(np.array([0.0, 0.0, 1.0])) is None
        assert camera.raster(np.array([2.0, 0.0, -1.0])) is None


class TestImportance:
    """Tests for We and its densities."""

    def test_center_values(self):
        """Test We = pdf = 1 / A along the view direction."""
        camera = _camera()
        forward = np.array([0.0, 0.0, -1.0])
        np.testing.assert_allclose(camera.importance(camera.origin, forward), [0.25] * 3)
        assert camera.directional_pdf(forward) == pytest.approx(0.25)
        assert camera.positional_pdf(camera.origin) is None

    def test_off_axis_falloff(self):
        """Test We = 1 / (A cos^4) and pdf = 1 / (A cos^3) off axis."""
        camera = _camera()
        direction = camera.direction(12.0, 8.0)
        cos_theta = -direction[2]
        np.testing.assert_allclose(
            camera.importance(camera.origin, direction), [1.0 / (4.0 * cos_theta**4)] * 3
        )
        assert camera.directional_pdf(direction) == pytest.approx(1.0 / (4.0 * cos_theta**3))

    def test_outside_film_is_zero(self):
        """Test that directions off the film carry no importance."""
        camera = _camera()
        backward = np.array([0.0, 0.0, 1.0])
        np.testing.assert_array_equal(camera.importance(camera.origin, backward), [0.0, 0.0, 0.0])
        assert camera.directional_pdf(backward) == 0.0


class TestPinholeIntersection:
    """Tests for rays reaching the pinhole."""

    def test_ray_aimed_at_pinhole(self):
        """Test a connection ray from a point in view."""
        from src.mmlt.core.ray import Ray, normalize

        camera = _camera()
        point = np.array([1.0, 2.0, -5.0])
        interaction = camera.intersect(Ray(origin=point, direction=normalize(-point)))

        assert interaction is not None
        assert interaction.geometry.distance == pytest.approx(np.linalg.norm(point))
        assert interaction.raster == pytest.approx(camera.raster(point))
        assert interaction.id == camera.id

    def test_misaligned_ray_misses(self):
        """Test that a ray passing beside the pinhole misses it."""
        from src.mmlt.core.ray import Ray, normalize

        camera = _camera()
        point = np.array([1.0, 2.0, -5.0])
        ray = Ray(origin=point, direction=normalize(np.array([0.01, 0.0, 0.0]) - point))
        assert camera.intersect(ray) is None

    def test_ray_pointing_away_misses(self):
        """Test that a ray leaving the pinhole region misses it."""
        from src.mmlt.core.ray import Ray, normalize

        camera = _camera()
        point = np.array([1.0, 2.0, -5.0])
        assert camera.intersect(Ray(origin=point, direction=normalize(point))) is None

    def test_point_behind_camera_misses(self):
        """Test that points behind the camera are not on the film."""
        from src.mmlt.core.ray import Ray, normalize

        camera = _camera()
        point = np.array([0.0, 0.0, 5.0])
        assert camera.intersect(Ray(origin=point, direction=normalize(-point))) is None


class TestPinholeSampling:
    """Tests for sample_interaction."""

    def test_sample_interaction(self, scripted_sampler):
        """Test the raster position, pixel and outgoing direction."""
        camera = _camera()
        sampler = scripted_sampler({0: [0.25, 0.75]})
        sampler.start_stream(0)
        interaction = camera.sample_interaction(sampler)

        assert sampler.consumed[0] == 2
        assert interaction.raster == pytest.approx((4.0, 12.0))
        assert interaction.pixel == (4, 12)
        np.testing.assert_allclose(interaction.outgoing, camera.direction(4.0, 12.0))
        np.testing.assert_allclose(interaction.geometry.point, camera.origin)


class TestPinholeValidation:
    """Tests for constructor validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"look_at": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 1.0)},
        ],
    )
    def test_invalid_parameters_raise(self, kwargs):
        """Test that invalid cameras are rejected."""
        from src.mmlt.camera.pinhole import PinholeCamera

        params = {
            "origin": (0.0, 0.0, 0.0),
            "look_at": (0.0, 0.0, -1.0),
            "vup": (0.0, 1.0, 0.0),
            "vfov": 60.0,
            "width": 8,
            "height": 8,
        }
        params.update(kwargs)
        with pytest.raises(ValueError):
            PinholeCamera(**params)
