"""Orbit camera controller.

Turns per-frame keyboard and pointer input into updates of the camera
position and look-at point stored in the scene description.

Movement (applied in this order each tick):

- Dolly (forward/back): both points move dolly_step along the normalized
  view direction.
- Strafe (left/right): both points move strafe_step along
  normalize(cross(world_up, view_direction)); left is the positive side.
- Vertical (up/down): both points move vertical_step along world up.
- Orbit (pointer drag with the primary button held): the previous and
  current pointer positions are projected onto the view plane at
  canvas_distance, converted to spherical coordinates relative to the
  camera, and their angular difference (previous minus current) is added to
  the spherical form of look_at - camera_position. Both angles are wrapped
  into [0, 2*pi) and the result is converted back with NaN treated as zero.

The translations move both points by the same vector and orbit never
changes the radius, so the camera-to-target distance is preserved and the
view direction never degenerates.

Drag state machine:

    IDLE --(button pressed)--> DRAGGING --(button released)--> IDLE

While DRAGGING, each tick compares the current pointer with the one sampled
on the previous tick, so the orbit speed is always a one-tick delta.

Example:
    >>> from src.raymarch.camera.orbit import CameraController, InputState
    >>> controller = CameraController()
    >>> with engine.write_scene() as scene:
    ...     controller.update(scene, InputState(forward=True))
    True
"""

from __future__ import annotations

import logging
import math
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

from src.raymarch.camera.spherical import cartesian, looparound, spherical
from src.raymarch.core.vector import WORLD_UP, Vector, as_vector, cross, normalize, vec3

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi

# |cos| of the view-to-up angle beyond which the view basis switches to +z
VERTICAL_VIEW_LIMIT = 0.999

Pointer = tuple[float, float]


@dataclass(frozen=True)
class CameraConfig:
    """Step sizes and viewport of the camera controller.

    Attributes:
        dolly_step: Distance moved per tick by forward/back.
        strafe_step: Distance moved per tick by left/right.
        vertical_step: Distance moved per tick by up/down.
        world_up: Up direction used for strafing and vertical moves. The
            compute program renders with +y up, so this must point along
            +y; only its length may differ.
        viewport: Window size in pixels used to map pointer positions onto
            the view plane.
    """

    dolly_step: float = 1.0
    strafe_step: float = 0.1
    vertical_step: float = 0.1
    world_up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    viewport: tuple[float, float] = (1024.0, 1024.0)

    def __post_init__(self) -> None:
        if self.viewport[0] <= 0 or self.viewport[1] <= 0:
            raise ValueError(f"Viewport must be positive, got {self.viewport}")
        x, y, z = self.world_up
        if x != 0.0 or z != 0.0 or y <= 0.0:
            raise ValueError(f"world_up must point along +y, got {self.world_up}")


@dataclass(frozen=True)
class InputState:
    """Input sampled by the presentation shell for one tick.

    Attributes:
        forward: Forward key held.
        back: Back key held.
        left: Strafe-left key held.
        right: Strafe-right key held.
        up: Vertical-up key held.
        down: Vertical-down key held.
        primary_button: Primary pointer button held.
        pointer: Pointer position in window pixels (y grows downward), or
            None if no pointer is available. Positions outside the window
            are reported as they are, so a drag that leaves and re-enters
            the window keeps moving in one-tick steps.
    """

    forward: bool = False
    back: bool = False
    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    primary_button: bool = False
    pointer: Pointer | None = None


class DragState(Enum):
    """Pointer drag state of the controller."""

    IDLE = "idle"
    DRAGGING = "dragging"


class SceneWriter(Protocol):
    """Anything providing scoped write access to a scene description."""

    def write_scene(self) -> AbstractContextManager[np.void]: ...


def _axis(positive: bool, negative: bool) -> float:
    # Positive key wins when both are held
    if positive:
        return 1.0
    if negative:
        return -1.0
    return 0.0


def view_basis(cam_dir: Vector) -> tuple[Vector, Vector]:
    """Right and down axes of the view plane for a normalized view direction.

    Matches the basis the compute program builds for every pixel: right is
    cross(view, +y) and down is cross(view, right). When the view is within
    about 2.5 degrees of vertical, +z stands in for +y.
    """
    up = WORLD_UP
    if abs(float(np.dot(cam_dir, up))) > VERTICAL_VIEW_LIMIT:
        up = vec3(0.0, 0.0, 1.0)
    uv_right = normalize(cross(cam_dir, up))
    return uv_right, normalize(cross(cam_dir, uv_right))


def to_camera_space(
    pointer: Pointer,
    viewport: tuple[float, float],
    camera_position: Vector,
    look_at: Vector,
    canvas_distance: float,
) -> Vector:
    """Project a window position onto the view plane.

    The view plane sits canvas_distance in front of the camera and spans
    [-1, 1] along the camera's right and down axes (see view_basis()). The
    window maps onto that span with (0, 0) at the top-left corner of the
    top-left pixel, so the centre of pixel (i, j) lands where the compute
    program casts that pixel's ray. Positions outside the window project
    beyond the span.

    Returns:
        The world-space point on the view plane.
    """
    cam_dir = normalize(look_at - camera_position)
    uv_right, uv_down = view_basis(cam_dir)
    to_canvas = cam_dir * canvas_distance
    ix = pointer[0] / viewport[0] * 2.0 - 1.0
    iy = pointer[1] / viewport[1] * 2.0 - 1.0
    return camera_position + to_canvas + uv_right * ix + uv_down * iy


class CameraController:
    """Keyboard and pointer driven orbit camera.

    The controller keeps only the drag state and the last pointer sample;
    the camera itself lives in the scene description.
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        self.config = config if config is not None else CameraConfig()
        self._state = DragState.IDLE
        self._previous_pointer: Pointer | None = None
        self._up = normalize(as_vector(self.config.world_up))

    @property
    def state(self) -> DragState:
        """Current drag state."""
        return self._state

    # =========================================================================
    # Movement primitives
    # =========================================================================

    def dolly(self, camera_position: Vector, look_at: Vector, amount: float) -> tuple[Vector, Vector]:
        """Move both points along the view direction by amount * dolly_step."""
        offset = normalize(look_at - camera_position) * (amount * self.config.dolly_step)
        return camera_position + offset, look_at + offset

    def strafe(self, camera_position: Vector, look_at: Vector, amount: float) -> tuple[Vector, Vector]:
        """Move both points sideways; positive amount moves left."""
        cam_dir = normalize(look_at - camera_position)
        offset = normalize(cross(self._up, cam_dir)) * (amount * self.config.strafe_step)
        return camera_position + offset, look_at + offset

    def lift(self, camera_position: Vector, look_at: Vector, amount: float) -> tuple[Vector, Vector]:
        """Move both points along world up by amount * vertical_step."""
        offset = self._up * (amount * self.config.vertical_step)
        return camera_position + offset, look_at + offset

    def orbit_speed(
        self,
        previous: Pointer,
        current: Pointer,
        camera_position: Vector,
        look_at: Vector,
        canvas_distance: float,
    ) -> tuple[float, float]:
        """Angular change (d_theta, d_phi) between two pointer samples."""
        viewport = self.config.viewport
        prev_point = to_camera_space(previous, viewport, camera_position, look_at, canvas_distance)
        curr_point = to_camera_space(current, viewport, camera_position, look_at, canvas_distance)
        _, prev_theta, prev_phi = spherical(*(prev_point - camera_position))
        _, curr_theta, curr_phi = spherical(*(curr_point - camera_position))
        return prev_theta - curr_theta, prev_phi - curr_phi

    def orbit(
        self,
        camera_position: Vector,
        look_at: Vector,
        speed_theta: float,
        speed_phi: float,
    ) -> Vector:
        """Rotate look_at around the camera by the given angular speed.

        Returns:
            The new look-at point. The camera-to-target distance is kept.
        """
        offset = look_at - camera_position
        r, theta, phi = spherical(*offset)
        x, y, z = cartesian(
            r,
            looparound(theta + speed_theta, 0.0, TWO_PI),
            looparound(phi + speed_phi, 0.0, TWO_PI),
            zero_nan=True,
        )
        new_offset = vec3(x, y, z)
        if not np.any(new_offset):
            return look_at
        return camera_position + new_offset

    # =========================================================================
    # Per-tick update
    # =========================================================================

    def update(self, scene: np.void, inputs: InputState) -> bool:
        """Apply one tick of input to a scene description record.

        Args:
            scene: A writable SCENE_DTYPE record, normally the one yielded
                by write_scene().
            inputs: Input sampled for this tick.

        Returns:
            True if the camera position or look-at point changed.
        """
        camera_position = as_vector(scene["camera_position"])
        look_at = as_vector(scene["look_at"])
        canvas_distance = float(scene["canvas_distance"])
        start = (camera_position.copy(), look_at.copy())

        dolly = _axis(inputs.forward, inputs.back)
        if dolly:
            camera_position, look_at = self.dolly(camera_position, look_at, dolly)

        strafe = _axis(inputs.left, inputs.right)
        if strafe:
            camera_position, look_at = self.strafe(camera_position, look_at, strafe)

        vertical = _axis(inputs.up, inputs.down)
        if vertical:
            camera_position, look_at = self.lift(camera_position, look_at, vertical)

        if (
            self._state is DragState.DRAGGING
            and inputs.pointer is not None
            and self._previous_pointer is not None
        ):
            speed_theta, speed_phi = self.orbit_speed(
                self._previous_pointer, inputs.pointer, camera_position, look_at, canvas_distance
            )
            if speed_theta != 0.0 or speed_phi != 0.0:
                logger.debug("Orbit speed theta=%.5f phi=%.5f", speed_theta, speed_phi)
                look_at = self.orbit(camera_position, look_at, speed_theta, speed_phi)

        self._state = DragState.DRAGGING if inputs.primary_button else DragState.IDLE
        if inputs.pointer is not None:
            self._previous_pointer = inputs.pointer

        # The record stores float32; never let rounding collapse the view direction
        if np.array_equal(camera_position.astype(np.float32), look_at.astype(np.float32)):
            return False

        changed = not (np.array_equal(start[0], camera_position) and np.array_equal(start[1], look_at))
        if changed:
            scene["camera_position"] = camera_position
            scene["look_at"] = look_at
        return changed

    def tick(self, target: SceneWriter, inputs: InputState) -> bool:
        """Apply one tick of input inside a single scoped scene write.

        Args:
            target: The engine (or its resources) owning the scene buffer.
            inputs: Input sampled for this tick.

        Returns:
            True if the camera changed.
        """
        with target.write_scene() as scene:
            return self.update(scene, inputs)

    def reset(self) -> None:
        """Forget the drag state and the last pointer sample."""
        self._state = DragState.IDLE
        self._previous_pointer = None
