"""Preview module for output and visualization.

Components:
    interactive: Taichi GGUI window hosting the engine and camera controller
    export: PNG export via Pillow
"""

from src.raymarch.preview.export import pixels_to_image, save_png, timestamped_filename
from src.raymarch.preview.interactive import (
    InteractivePreview,
    PreviewConfig,
    cursor_to_window,
    is_display_available,
    rgba8_to_display,
)

__all__ = [
    # Interactive preview
    "InteractivePreview",
    "PreviewConfig",
    "is_display_available",
    "rgba8_to_display",
    "cursor_to_window",
    # Export functions
    "pixels_to_image",
    "save_png",
    "timestamped_filename",
]
