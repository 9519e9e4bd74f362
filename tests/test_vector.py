"""Tests for host-side vector helpers."""

import numpy as np
import pytest


class TestVector:
    """Tests for the vector utilities."""

    def test_normalize(self):
        """Test that normalize returns a unit vector."""
        from src.raymarch.core.vector import length, normalize, vec3

        v = normalize(vec3(3.0, 0.0, 4.0))
        np.testing.assert_allclose(v, (0.6, 0.0, 0.8))
        assert length(v) == pytest.approx(1.0)

    def test_normalize_zero(self):
        """Test that a zero vector normalizes to zero instead of NaN."""
        from src.raymarch.core.vector import normalize, vec3

        np.testing.assert_array_equal(normalize(vec3(0.0, 0.0, 0.0)), (0.0, 0.0, 0.0))

    def test_cross(self):
        """Test the right-handed cross product."""
        from src.raymarch.core.vector import cross, vec3

        np.testing.assert_array_equal(cross(vec3(1, 0, 0), vec3(0, 1, 0)), (0.0, 0.0, 1.0))

    def test_as_vector_from_float32(self):
        """Test that float32 record fields are widened to float64."""
        from src.raymarch.core.vector import as_vector

        v = as_vector(np.array([1.0, 2.0, 3.0], dtype=np.float32))
        assert v.dtype == np.float64
        assert v.shape == (3,)
