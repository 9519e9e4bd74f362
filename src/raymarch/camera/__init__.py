"""Orbit camera.

Components:
    orbit: CameraController turning keyboard/pointer input into camera moves
    spherical: Cartesian/spherical conversion and angle wrapping
"""

from src.raymarch.camera.orbit import (
    CameraConfig,
    CameraController,
    DragState,
    InputState,
    to_camera_space,
    view_basis,
)
from src.raymarch.camera.spherical import cartesian, looparound, spherical

__all__ = [
    "CameraConfig",
    "CameraController",
    "DragState",
    "InputState",
    "to_camera_space",
    "view_basis",
    "spherical",
    "cartesian",
    "looparound",
]
