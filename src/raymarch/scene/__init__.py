"""Scene description and construction.

Components:
    layout: GPU record layouts (Shape, SceneDescription, DebugTelemetry)
    builder: SceneBuilder and the default startup scene
"""

from src.raymarch.scene.builder import SceneBuilder, create_default_scene
from src.raymarch.scene.layout import (
    MAX_SHAPES,
    DebugTelemetry,
    ShapeKind,
    make_scene,
    make_shape,
    validate_scene,
)

__all__ = [
    "MAX_SHAPES",
    "ShapeKind",
    "DebugTelemetry",
    "make_shape",
    "make_scene",
    "validate_scene",
    "SceneBuilder",
    "create_default_scene",
]
