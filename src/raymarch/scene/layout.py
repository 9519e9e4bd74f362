"""GPU memory layout of the scene and debug records.

The compute program reads the scene description from a uniform buffer and
writes one debug sample into a storage buffer. Both records are expressed
here as flat numpy structured dtypes with explicit byte offsets so that the
host-side bytes match the WGSL declarations exactly:

    struct Shape {                      // 48 bytes
        position: vec3<f32>,            // offset 0
        size: vec3<f32>,                // offset 16
        albedo: vec3<f32>,              // offset 32
        shape_type: u32,                // offset 44
    }

    struct SceneInfo {                  // 64 + 48 * MAX_SHAPES bytes
        camera_pos: vec3<f32>,          // offset 0
        look_at: vec3<f32>,             // offset 16
        canvas_dist: f32,               // offset 28
        point_light: vec3<f32>,         // offset 32
        num_shapes: u32,                // offset 44
        light_colour: vec3<f32>,        // offset 48
        shapes: array<Shape, MAX_SHAPES>,  // offset 64
    }

    struct DebugInfo {                  // 32 bytes
        ray_origin: vec3<f32>,          // offset 0
        ray_direction: vec3<f32>,       // offset 16
    }

A vec3<f32> has 16-byte alignment in WGSL, so the gaps between fields are
padding. Padding bytes are always zero.

Example:
    >>> from src.raymarch.scene.layout import ShapeKind, make_scene, make_shape
    >>> scene = make_scene(
    ...     camera_position=(0.0, 0.0, 10.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     canvas_distance=10.0,
    ...     shapes=[make_shape((0, 0, 0), (1, 1, 1), (1, 0, 0), ShapeKind.SPHERE)],
    ... )
    >>> int(scene[0]["shape_count"])
    1
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

import numpy as np

# Capacity of the fixed shape array in the compute program
MAX_SHAPES = 10

Vec3 = tuple[float, float, float]


class ShapeKind(IntEnum):
    """Signed-distance primitive evaluated by the compute program."""

    NONE = 0
    SPHERE = 1
    WOBBLY_SPHERE = 2
    MANDELBULB = 3


SHAPE_DTYPE = np.dtype(
    {
        "names": ["position", "size", "albedo", "shape_kind"],
        "formats": [(np.float32, (3,)), (np.float32, (3,)), (np.float32, (3,)), np.uint32],
        "offsets": [0, 16, 32, 44],
        "itemsize": 48,
    }
)

SCENE_DTYPE = np.dtype(
    {
        "names": [
            "camera_position",
            "look_at",
            "canvas_distance",
            "point_light_position",
            "shape_count",
            "light_colour",
            "shapes",
        ],
        "formats": [
            (np.float32, (3,)),
            (np.float32, (3,)),
            np.float32,
            (np.float32, (3,)),
            np.uint32,
            (np.float32, (3,)),
            (SHAPE_DTYPE, (MAX_SHAPES,)),
        ],
        "offsets": [0, 16, 28, 32, 44, 48, 64],
        "itemsize": 64 + SHAPE_DTYPE.itemsize * MAX_SHAPES,
    }
)

DEBUG_DTYPE = np.dtype(
    {
        "names": ["ray_origin", "ray_direction"],
        "formats": [(np.float32, (3,)), (np.float32, (3,))],
        "offsets": [0, 16],
        "itemsize": 32,
    }
)


@dataclass(frozen=True)
class DebugTelemetry:
    """Last primary ray sampled by the compute program.

    Attributes:
        ray_origin: World-space ray origin.
        ray_direction: World-space ray direction.
    """

    ray_origin: Vec3
    ray_direction: Vec3

    @classmethod
    def from_bytes(cls, data: bytes | memoryview) -> DebugTelemetry:
        """Decode a DebugInfo record read back from the GPU."""
        record = np.frombuffer(data, dtype=DEBUG_DTYPE, count=1)[0]
        return cls(
            ray_origin=_as_vec3(record["ray_origin"]),
            ray_direction=_as_vec3(record["ray_direction"]),
        )


def _as_vec3(values: np.ndarray) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


def make_shape(
    position: Sequence[float],
    size: Sequence[float],
    albedo: Sequence[float],
    kind: ShapeKind | int,
) -> np.void:
    """Create a single Shape record.

    Args:
        position: Centre of the shape in world space.
        size: Half extents of the shape.
        albedo: Linear RGB colour, nominally in [0, 1].
        kind: Primitive evaluated by the compute program.

    Returns:
        A structured scalar with dtype SHAPE_DTYPE.

    Raises:
        ValueError: If kind is not a known ShapeKind.
    """
    kind = ShapeKind(int(kind))
    shape = np.zeros(1, dtype=SHAPE_DTYPE)[0]
    shape["position"] = position
    shape["size"] = size
    shape["albedo"] = albedo
    shape["shape_kind"] = int(kind)
    return shape


def make_scene(
    camera_position: Sequence[float],
    look_at: Sequence[float],
    canvas_distance: float,
    shapes: Sequence[np.void],
    *,
    point_light_position: Sequence[float] = (0.0, 100.0, 200.0),
    light_colour: Sequence[float] = (1.0, 1.0, 1.0),
) -> np.ndarray:
    """Create a zero-initialised SceneDescription record.

    Slots of the shape array past the number of supplied shapes stay zeroed
    (ShapeKind.NONE).

    Returns:
        A one-element array with dtype SCENE_DTYPE.

    Raises:
        ValueError: If no shapes or more than MAX_SHAPES shapes are given, or
            if the camera position equals the look-at point.
    """
    if not 1 <= len(shapes) <= MAX_SHAPES:
        raise ValueError(f"Scene needs between 1 and {MAX_SHAPES} shapes, got {len(shapes)}")
    camera = np.asarray(camera_position, dtype=np.float32)
    if np.array_equal(camera, np.asarray(look_at, dtype=np.float32)):
        raise ValueError("Camera position and look-at point must differ")

    scene = np.zeros(1, dtype=SCENE_DTYPE)
    record = scene[0]
    record["camera_position"] = camera_position
    record["look_at"] = look_at
    record["canvas_distance"] = canvas_distance
    record["point_light_position"] = point_light_position
    record["light_colour"] = light_colour
    record["shape_count"] = len(shapes)
    for i, shape in enumerate(shapes):
        record["shapes"][i] = shape
    return scene


def validate_scene(scene: np.ndarray) -> None:
    """Check the invariants of a SceneDescription record.

    Raises:
        ValueError: If the dtype is wrong, shape_count is outside
            1..MAX_SHAPES, a slot past shape_count is not zeroed, or the
            view direction is degenerate.
    """
    if scene.dtype != SCENE_DTYPE or scene.shape != (1,):
        raise ValueError(f"Expected a one-element SCENE_DTYPE array, got {scene.dtype} {scene.shape}")

    record = scene[0]
    count = int(record["shape_count"])
    if not 1 <= count <= MAX_SHAPES:
        raise ValueError(f"shape_count {count} outside 1..{MAX_SHAPES}")

    unused = record["shapes"][count:]
    if any(unused.tobytes()):
        raise ValueError("Shape slots past shape_count must be zeroed")

    view = record["look_at"].astype(np.float64) - record["camera_position"].astype(np.float64)
    if not np.any(view):
        raise ValueError("Camera position and look-at point must differ")
