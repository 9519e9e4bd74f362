"""Host-side vector utilities for camera math.

These mirror the vector helpers the compute program uses, but operate on
numpy float64 arrays so that camera updates on the host do not accumulate
float32 rounding between frames. Results are written back into the float32
scene record once per tick.

Example:
    >>> from src.raymarch.core.vector import normalize, vec3
    >>> normalize(vec3(0.0, 0.0, -5.0))
    array([ 0.,  0., -1.])
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

Vector = npt.NDArray[np.float64]

# World up direction used by the camera basis
WORLD_UP: Vector = np.array([0.0, 1.0, 0.0])


def vec3(x: float, y: float, z: float) -> Vector:
    """Create a 3-component float64 vector."""
    return np.array([x, y, z], dtype=np.float64)


def as_vector(values: Sequence[float] | npt.NDArray[np.floating]) -> Vector:
    """Copy any 3-component sequence into a float64 vector."""
    return np.array(values, dtype=np.float64).reshape(3)


def length(v: Vector) -> float:
    """Euclidean length of a vector."""
    return float(np.linalg.norm(v))


def normalize(v: Vector) -> Vector:
    """Normalize a vector to unit length.

    Returns:
        A unit vector in the same direction as v.
        If v is zero-length, returns a zero vector.
    """
    n = np.linalg.norm(v)
    if n == 0.0 or not np.isfinite(n):
        return np.zeros(3, dtype=np.float64)
    return v / n


def cross(a: Vector, b: Vector) -> Vector:
    """Cross product a x b."""
    return np.cross(a, b)
