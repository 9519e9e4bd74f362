"""Unit tests for the SceneBuilder and the default scene."""

import numpy as np
import pytest


@pytest.fixture
def builder():
    """Create a fresh SceneBuilder for each test."""
    from src.raymarch.scene.builder import SceneBuilder

    return SceneBuilder()


class TestShapeAddition:
    """Tests for adding shapes."""

    def test_indices_are_sequential(self, builder):
        """Test that add_* methods return consecutive slot indices."""
        assert builder.add_sphere((0, 0, 0), 1.0, albedo=(1, 0, 0)) == 0
        assert builder.add_wobbly_sphere((1, 0, 0), 0.5, albedo=(0, 1, 0)) == 1
        assert builder.add_mandelbulb((2, 0, 0), 0.6, albedo=(0, 0, 1)) == 2
        assert builder.shape_count == 3

    def test_kinds_are_recorded(self, builder):
        """Test that each convenience method stores its shape kind."""
        from src.raymarch.scene.layout import ShapeKind

        builder.add_sphere((0, 0, 0), 1.0, albedo=(1, 0, 0))
        builder.add_wobbly_sphere((1, 0, 0), 0.5, albedo=(0, 1, 0))
        builder.add_mandelbulb((2, 0, 0), 0.6, albedo=(0, 0, 1))
        shapes = builder.build()[0]["shapes"]
        assert [int(k) for k in shapes["shape_kind"][:3]] == [
            ShapeKind.SPHERE,
            ShapeKind.WOBBLY_SPHERE,
            ShapeKind.MANDELBULB,
        ]

    def test_scalar_size_is_uniform(self, builder):
        """Test that a scalar size fills all three components."""
        builder.add_sphere((0, 0, 0), 1.5, albedo=(1, 1, 1))
        np.testing.assert_allclose(builder.build()[0]["shapes"][0]["size"], (1.5, 1.5, 1.5))

    def test_vector_size(self, builder):
        """Test that a 3-component size is kept as is."""
        from src.raymarch.scene.layout import ShapeKind

        builder.add_shape(ShapeKind.SPHERE, (0, 0, 0), (1.0, 2.0, 3.0), (1, 1, 1))
        np.testing.assert_allclose(builder.build()[0]["shapes"][0]["size"], (1.0, 2.0, 3.0))

    def test_bad_size_length(self, builder):
        """Test that a 2-component size raises ValueError."""
        from src.raymarch.scene.layout import ShapeKind

        with pytest.raises(ValueError, match="Size"):
            builder.add_shape(ShapeKind.SPHERE, (0, 0, 0), (1.0, 2.0), (1, 1, 1))

    def test_rejects_none_kind(self, builder):
        """Test that ShapeKind.NONE cannot be added."""
        from src.raymarch.scene.layout import ShapeKind

        with pytest.raises(ValueError, match="NONE"):
            builder.add_shape(ShapeKind.NONE, (0, 0, 0), 1.0, (1, 1, 1))

    def test_capacity_limit(self, builder):
        """Test that exceeding MAX_SHAPES raises RuntimeError."""
        from src.raymarch.scene.layout import MAX_SHAPES

        for i in range(MAX_SHAPES):
            builder.add_sphere((float(i), 0, 0), 0.5, albedo=(1, 1, 1))
        with pytest.raises(RuntimeError, match="Maximum number of shapes"):
            builder.add_sphere((0, 0, 0), 0.5, albedo=(1, 1, 1))
        assert builder.build()[0]["shape_count"] == MAX_SHAPES

    def test_clear(self, builder):
        """Test that clear removes all shapes."""
        builder.add_sphere((0, 0, 0), 1.0, albedo=(1, 1, 1))
        builder.clear()
        assert builder.shape_count == 0
        with pytest.raises(ValueError, match="no shapes"):
            builder.build()


class TestCameraAndLight:
    """Tests for camera and light settings."""

    def test_set_camera(self, builder):
        """Test that camera settings reach the record."""
        builder.set_camera((1, 2, 3), (0, 0, 0), canvas_distance=5.0)
        builder.add_sphere((0, 0, 0), 1.0, albedo=(1, 1, 1))
        record = builder.build()[0]
        np.testing.assert_allclose(record["camera_position"], (1, 2, 3))
        np.testing.assert_allclose(record["look_at"], (0, 0, 0))
        assert record["canvas_distance"] == pytest.approx(5.0)

    def test_camera_equal_to_look_at(self, builder):
        """Test that a degenerate camera raises ValueError."""
        with pytest.raises(ValueError, match="must differ"):
            builder.set_camera((1, 1, 1), (1, 1, 1))

    def test_non_positive_canvas_distance(self, builder):
        """Test that canvas_distance must be positive."""
        with pytest.raises(ValueError, match="Canvas distance"):
            builder.set_camera((0, 0, 10), (0, 0, 0), canvas_distance=0.0)

    def test_set_light(self, builder):
        """Test that light settings reach the record."""
        builder.set_light((5, 5, 5), (0.5, 0.25, 1.0))
        builder.add_sphere((0, 0, 0), 1.0, albedo=(1, 1, 1))
        record = builder.build()[0]
        np.testing.assert_allclose(record["point_light_position"], (5, 5, 5))
        np.testing.assert_allclose(record["light_colour"], (0.5, 0.25, 1.0))


class TestDefaultScene:
    """Tests for the startup scene."""

    def test_camera(self, default_scene):
        """Test the startup camera."""
        record = default_scene[0]
        np.testing.assert_allclose(record["camera_position"], (0, 0, 10))
        np.testing.assert_allclose(record["look_at"], (0, 0, 0))
        assert record["canvas_distance"] == pytest.approx(10.0)

    def test_shapes(self, default_scene):
        """Test the Mandelbulb and the two spheres."""
        from src.raymarch.scene.layout import ShapeKind

        record = default_scene[0]
        assert int(record["shape_count"]) == 3
        shapes = record["shapes"]
        assert int(shapes[0]["shape_kind"]) == ShapeKind.MANDELBULB
        np.testing.assert_allclose(shapes[0]["size"], (0.6, 0.6, 0.6), rtol=1e-6)
        assert int(shapes[1]["shape_kind"]) == ShapeKind.SPHERE
        np.testing.assert_allclose(shapes[1]["position"], (1.6, 0, 0), rtol=1e-6)
        assert int(shapes[2]["shape_kind"]) == ShapeKind.SPHERE
        np.testing.assert_allclose(shapes[2]["position"], (-1.2, 0.5, -0.4), rtol=1e-6)
        np.testing.assert_allclose(shapes[2]["albedo"], (0.0, 1.0, 0.8), rtol=1e-6)

    def test_is_valid(self, default_scene):
        """Test that the startup scene satisfies all invariants."""
        from src.raymarch.scene.layout import validate_scene

        validate_scene(default_scene)
