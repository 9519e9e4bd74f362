"""Render engine configuration.

Example:
    >>> from src.raymarch.core.config import RenderConfig
    >>> config = RenderConfig(width=256, height=256)
    >>> config.dispatch_size
    (32, 32, 1)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path

# Compute program shipped with the package
DEFAULT_SHADER_PATH = Path(__file__).resolve().parent.parent / "shaders" / "ray_marching.wgsl"

# Default frame image edge length
DEFAULT_IMAGE_SIZE = 512

# Local work-group size declared by the compute program (8x8x1)
DEFAULT_WORKGROUP_SIZE = 8

# Largest texture dimension guaranteed by the WebGPU default limits
MAX_IMAGE_SIZE = 8192


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for the raymarch engine.

    Attributes:
        width: Frame image width in pixels.
        height: Frame image height in pixels. Must equal width.
        shader_path: Path to the WGSL compute program.
        entry_point: Name of the compute entry point in the program.
        workgroup_size: Local work-group edge length of the compute program.
        required_features: Adapter features the selected device must support.
    """

    width: int = DEFAULT_IMAGE_SIZE
    height: int = DEFAULT_IMAGE_SIZE
    shader_path: Path = DEFAULT_SHADER_PATH
    entry_point: str = "main"
    workgroup_size: int = DEFAULT_WORKGROUP_SIZE
    required_features: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_SIZE or self.height > MAX_IMAGE_SIZE:
            raise ValueError(
                f"Image dimensions {self.width}x{self.height} exceed maximum "
                f"{MAX_IMAGE_SIZE}x{MAX_IMAGE_SIZE}"
            )
        if self.width != self.height:
            raise ValueError(
                f"Frame image must be square, got {self.width}x{self.height}"
            )
        if self.workgroup_size <= 0:
            raise ValueError(f"Invalid workgroup size: {self.workgroup_size}")
        # Accept plain strings from argparse
        object.__setattr__(self, "shader_path", Path(self.shader_path))

    @property
    def frame_nbytes(self) -> int:
        """Size of one RGBA8 frame in bytes."""
        return self.width * self.height * 4

    @property
    def dispatch_size(self) -> tuple[int, int, int]:
        """Work-group grid covering the whole frame image."""
        return (
            math.ceil(self.width / self.workgroup_size),
            math.ceil(self.height / self.workgroup_size),
            1,
        )
