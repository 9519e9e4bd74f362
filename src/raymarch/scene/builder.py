"""Scene construction for the raymarch engine.

The SceneBuilder collects camera, light and shape settings on the host and
produces a SceneDescription record laid out for the compute program. The
record is what the engine uploads into its uniform buffer at construction.

Example:
    >>> from src.raymarch.scene.builder import SceneBuilder
    >>> builder = SceneBuilder()
    >>> builder.set_camera((0.0, 0.0, 10.0), (0.0, 0.0, 0.0), canvas_distance=10.0)
    >>> builder.add_mandelbulb((0.0, 0.0, 0.0), 0.6, albedo=(0.1, 0.0, 0.2))
    0
    >>> builder.add_sphere((1.6, 0.0, 0.0), 1.0, albedo=(0.0, 0.4, 0.8))
    1
    >>> scene = builder.build()
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from src.raymarch.scene.layout import (
    MAX_SHAPES,
    ShapeKind,
    Vec3,
    make_scene,
    make_shape,
)

# Startup scene of the interactive renderer
DEFAULT_CAMERA_POSITION: Vec3 = (0.0, 0.0, 10.0)
DEFAULT_LOOK_AT: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_CANVAS_DISTANCE = 10.0
DEFAULT_LIGHT_POSITION: Vec3 = (0.0, 100.0, 200.0)
DEFAULT_LIGHT_COLOUR: Vec3 = (1.0, 1.0, 1.0)


def _uniform_size(size: float | Sequence[float]) -> tuple[float, float, float]:
    if isinstance(size, (int, float)):
        return (float(size), float(size), float(size))
    if len(size) != 3:
        raise ValueError(f"Size must be a scalar or 3 components, got {size!r}")
    return (float(size[0]), float(size[1]), float(size[2]))


class SceneBuilder:
    """Host-side builder for SceneDescription records.

    Shapes are stored in insertion order; the index returned by the add_*
    methods is the shape's slot in the GPU shape array.
    """

    def __init__(self) -> None:
        self._camera_position: Vec3 = DEFAULT_CAMERA_POSITION
        self._look_at: Vec3 = DEFAULT_LOOK_AT
        self._canvas_distance = DEFAULT_CANVAS_DISTANCE
        self._light_position: Vec3 = DEFAULT_LIGHT_POSITION
        self._light_colour: Vec3 = DEFAULT_LIGHT_COLOUR
        self._shapes: list[np.void] = []

    @property
    def shape_count(self) -> int:
        """Number of shapes added so far."""
        return len(self._shapes)

    def set_camera(
        self,
        position: Sequence[float],
        look_at: Sequence[float],
        *,
        canvas_distance: float = DEFAULT_CANVAS_DISTANCE,
    ) -> None:
        """Set the look-at camera.

        Raises:
            ValueError: If position equals look_at or canvas_distance is not
                positive.
        """
        if tuple(position) == tuple(look_at):
            raise ValueError("Camera position and look-at point must differ")
        if canvas_distance <= 0.0:
            raise ValueError(f"Canvas distance must be positive, got {canvas_distance}")
        self._camera_position = tuple(float(c) for c in position)  # type: ignore[assignment]
        self._look_at = tuple(float(c) for c in look_at)  # type: ignore[assignment]
        self._canvas_distance = float(canvas_distance)

    def set_light(self, position: Sequence[float], colour: Sequence[float] = DEFAULT_LIGHT_COLOUR) -> None:
        """Set the point light position and colour."""
        self._light_position = tuple(float(c) for c in position)  # type: ignore[assignment]
        self._light_colour = tuple(float(c) for c in colour)  # type: ignore[assignment]

    def add_shape(
        self,
        kind: ShapeKind,
        position: Sequence[float],
        size: float | Sequence[float],
        albedo: Sequence[float],
    ) -> int:
        """Add a shape of any kind.

        Returns:
            The slot index of the added shape.

        Raises:
            RuntimeError: If the shape array is full.
            ValueError: If kind is ShapeKind.NONE.
        """
        if ShapeKind(kind) is ShapeKind.NONE:
            raise ValueError("Cannot add a shape of kind NONE")
        idx = len(self._shapes)
        if idx >= MAX_SHAPES:
            raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
        self._shapes.append(make_shape(position, _uniform_size(size), albedo, kind))
        return idx

    def add_sphere(self, position: Sequence[float], radius: float, *, albedo: Sequence[float]) -> int:
        """Add a sphere of the given radius."""
        return self.add_shape(ShapeKind.SPHERE, position, radius, albedo)

    def add_wobbly_sphere(
        self, position: Sequence[float], radius: float, *, albedo: Sequence[float]
    ) -> int:
        """Add a sphere with a displaced surface."""
        return self.add_shape(ShapeKind.WOBBLY_SPHERE, position, radius, albedo)

    def add_mandelbulb(self, position: Sequence[float], scale: float, *, albedo: Sequence[float]) -> int:
        """Add a Mandelbulb fractal scaled to the given half extent."""
        return self.add_shape(ShapeKind.MANDELBULB, position, scale, albedo)

    def clear(self) -> None:
        """Remove all shapes. Camera and light settings are kept."""
        self._shapes.clear()

    def build(self) -> np.ndarray:
        """Produce the SceneDescription record.

        Returns:
            A one-element array with dtype SCENE_DTYPE.

        Raises:
            ValueError: If no shapes have been added.
        """
        if not self._shapes:
            raise ValueError("Scene has no shapes")
        return make_scene(
            camera_position=self._camera_position,
            look_at=self._look_at,
            canvas_distance=self._canvas_distance,
            shapes=self._shapes,
            point_light_position=self._light_position,
            light_colour=self._light_colour,
        )

    def __repr__(self) -> str:
        return (
            f"SceneBuilder(shapes={self.shape_count}, camera={self._camera_position}, "
            f"look_at={self._look_at})"
        )


def create_default_scene() -> np.ndarray:
    """Create the startup scene: a Mandelbulb flanked by two spheres.

    The camera sits at (0, 0, 10) looking at the origin with the canvas ten
    units in front of it, lit by a white point light above and behind the
    camera.
    """
    builder = SceneBuilder()
    builder.set_camera(DEFAULT_CAMERA_POSITION, DEFAULT_LOOK_AT, canvas_distance=DEFAULT_CANVAS_DISTANCE)
    builder.set_light(DEFAULT_LIGHT_POSITION, DEFAULT_LIGHT_COLOUR)
    builder.add_mandelbulb((0.0, 0.0, 0.0), 0.6, albedo=(0.1, 0.0, 0.2))
    builder.add_sphere((1.6, 0.0, 0.0), 1.0, albedo=(0.0, 0.4, 0.8))
    builder.add_sphere((-1.2, 0.5, -0.4), 1.8, albedo=(0.0, 1.0, 0.8))
    return builder.build()
