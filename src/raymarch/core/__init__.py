"""Core rendering components.

Components:
    config: RenderConfig dataclass
    device: GPU adapter enumeration and ranking
    resources: Buffers, frame image, pipeline and bind group
    engine: Per-frame dispatch and readback
    errors: Exception taxonomy
    vector: Host-side vector helpers for camera math
"""

from src.raymarch.core.config import RenderConfig
from src.raymarch.core.device import (
    DeviceCandidate,
    DeviceType,
    QueueCapability,
    enumerate_candidates,
    open_device,
    select_device,
)
from src.raymarch.core.engine import RaymarchEngine
from src.raymarch.core.errors import (
    DeviceSelectionError,
    FrameRenderError,
    RaymarchError,
    RenderSetupError,
    ResourceCreationError,
)
from src.raymarch.core.resources import RenderResources

__all__ = [
    # Configuration
    "RenderConfig",
    # Device selection
    "DeviceCandidate",
    "DeviceType",
    "QueueCapability",
    "enumerate_candidates",
    "open_device",
    "select_device",
    # Rendering
    "RaymarchEngine",
    "RenderResources",
    # Errors
    "RaymarchError",
    "RenderSetupError",
    "DeviceSelectionError",
    "ResourceCreationError",
    "FrameRenderError",
]
