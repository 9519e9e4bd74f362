"""GPU resources owned by the raymarch engine.

RenderResources creates and owns, for the lifetime of the engine:

- the scene description uniform buffer (binding 0),
- the frame image, an rgba8unorm storage texture (binding 1),
- the debug telemetry storage buffer (binding 2),
- the host-mappable output buffer the frame image is copied into,
- the compute pipeline and the single bind group tying the above together.

Construction is all-or-nothing: if any object cannot be created, whatever
was already allocated is released and ResourceCreationError is raised.

The scene description is mirrored on the host. write_scene() is the only
way to modify it: it yields a staged copy and uploads the whole record in a
single queue write when the block exits without error, so the compute
program never reads a half-updated record.

Example:
    >>> with resources.write_scene() as scene:
    ...     scene["camera_position"] = (0.0, 0.0, 9.0)
    ...     scene["look_at"] = (0.0, 0.0, -1.0)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import numpy as np
import wgpu

from src.raymarch.core.config import RenderConfig
from src.raymarch.core.errors import ResourceCreationError
from src.raymarch.scene.layout import DEBUG_DTYPE, validate_scene

logger = logging.getLogger(__name__)

# Binding slots expected by the compute program
SCENE_BINDING = 0
TARGET_IMAGE_BINDING = 1
DEBUG_BINDING = 2

# Row pitch alignment required for texture-to-buffer copies
COPY_BYTES_PER_ROW_ALIGNMENT = 256


def aligned_bytes_per_row(width: int) -> int:
    """Bytes per row of an RGBA8 image padded to the copy alignment."""
    alignment = COPY_BYTES_PER_ROW_ALIGNMENT
    return (width * 4 + alignment - 1) // alignment * alignment


class RenderResources:
    """Buffers, image, pipeline and bind group for one raymarch engine.

    Attributes:
        config: The render configuration the resources were sized from.
        bytes_per_row: Padded row pitch of the output buffer.
        scene_buffer: Uniform buffer holding the scene description.
        target_image: Storage texture the compute program writes into.
        output_buffer: Host-mappable buffer receiving the frame copy.
        debug_buffer: Storage buffer holding the debug telemetry.
        pipeline: The compute pipeline.
        bind_group: Bind group for group 0 of the pipeline.
    """

    def __init__(self, device: Any, config: RenderConfig, scene: np.ndarray) -> None:
        """Create all GPU resources.

        Args:
            device: The wgpu device to allocate on.
            config: Image size and compute program location.
            scene: Initial SceneDescription record (one-element SCENE_DTYPE
                array). It is copied; later edits go through write_scene().

        Raises:
            ValueError: If the scene record violates its invariants.
            ResourceCreationError: If any GPU object cannot be created.
        """
        validate_scene(scene)
        self._device = device
        self.config = config
        self.bytes_per_row = aligned_bytes_per_row(config.width)
        self._scene = scene.copy()
        self._writing = False

        self.scene_buffer: Any = None
        self.target_image: Any = None
        self.target_view: Any = None
        self.output_buffer: Any = None
        self.debug_buffer: Any = None
        self.pipeline: Any = None
        self.bind_group: Any = None

        # Nothing is allocated until the compute program has been read
        try:
            source = config.shader_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceCreationError(
                f"Failed to load compute program {config.shader_path}: {exc}"
            ) from exc

        try:
            self._create_buffers()
            self._create_pipeline(source)
        except wgpu.GPUError as exc:
            self.destroy()
            raise ResourceCreationError(f"Failed to create render resources: {exc}") from exc
        except Exception as exc:
            self.destroy()
            raise ResourceCreationError(f"Failed to create render resources: {exc!r}") from exc

        logger.debug(
            "Created render resources: %dx%d image, %d byte scene, row pitch %d",
            config.width,
            config.height,
            self._scene.nbytes,
            self.bytes_per_row,
        )

    @property
    def device(self) -> Any:
        """The wgpu device the resources live on."""
        return self._device

    def _create_buffers(self) -> None:
        width, height = self.config.width, self.config.height

        self.scene_buffer = self._device.create_buffer_with_data(
            label="raymarch.scene",
            data=self._scene.tobytes(),
            usage=wgpu.BufferUsage.UNIFORM | wgpu.BufferUsage.COPY_DST,
        )
        self.target_image = self._device.create_texture(
            label="raymarch.target",
            size=(width, height, 1),
            dimension=wgpu.TextureDimension.d2,
            format=wgpu.TextureFormat.rgba8unorm,
            usage=wgpu.TextureUsage.STORAGE_BINDING | wgpu.TextureUsage.COPY_SRC,
        )
        self.target_view = self.target_image.create_view()
        self.output_buffer = self._device.create_buffer(
            label="raymarch.output",
            size=self.bytes_per_row * height,
            usage=wgpu.BufferUsage.MAP_READ | wgpu.BufferUsage.COPY_DST,
        )
        self.debug_buffer = self._device.create_buffer_with_data(
            label="raymarch.debug",
            data=np.zeros(1, dtype=DEBUG_DTYPE).tobytes(),
            usage=wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_SRC | wgpu.BufferUsage.COPY_DST,
        )

    def _create_pipeline(self, source: str) -> None:
        shader = self._device.create_shader_module(label="raymarch.shader", code=source)

        bind_group_layout = self._device.create_bind_group_layout(
            label="raymarch.bind_group_layout",
            entries=[
                {
                    "binding": SCENE_BINDING,
                    "visibility": wgpu.ShaderStage.COMPUTE,
                    "buffer": {"type": wgpu.BufferBindingType.uniform},
                },
                {
                    "binding": TARGET_IMAGE_BINDING,
                    "visibility": wgpu.ShaderStage.COMPUTE,
                    "storage_texture": {
                        "access": wgpu.StorageTextureAccess.write_only,
                        "format": wgpu.TextureFormat.rgba8unorm,
                        "view_dimension": wgpu.TextureViewDimension.d2,
                    },
                },
                {
                    "binding": DEBUG_BINDING,
                    "visibility": wgpu.ShaderStage.COMPUTE,
                    "buffer": {"type": wgpu.BufferBindingType.storage},
                },
            ],
        )
        pipeline_layout = self._device.create_pipeline_layout(
            label="raymarch.pipeline_layout",
            bind_group_layouts=[bind_group_layout],
        )
        self.pipeline = self._device.create_compute_pipeline(
            label="raymarch.pipeline",
            layout=pipeline_layout,
            compute={"module": shader, "entry_point": self.config.entry_point},
        )
        self.bind_group = self._device.create_bind_group(
            label="raymarch.bind_group",
            layout=bind_group_layout,
            entries=[
                {
                    "binding": SCENE_BINDING,
                    "resource": {"buffer": self.scene_buffer, "offset": 0, "size": self.scene_buffer.size},
                },
                {"binding": TARGET_IMAGE_BINDING, "resource": self.target_view},
                {
                    "binding": DEBUG_BINDING,
                    "resource": {"buffer": self.debug_buffer, "offset": 0, "size": self.debug_buffer.size},
                },
            ],
        )

    # =========================================================================
    # Scene access
    # =========================================================================

    @contextmanager
    def write_scene(self) -> Iterator[np.void]:
        """Exclusive, scoped write access to the scene description.

        Yields a staged copy of the record. When the block exits normally the
        record is validated and uploaded in one write; if the block raises,
        the staged changes are discarded.

        Raises:
            RuntimeError: If a write scope is already open.
            ValueError: If the edited record violates its invariants.
        """
        if self._writing:
            raise RuntimeError("Scene description is already being written")
        self._writing = True
        staged = self._scene.copy()
        try:
            yield staged[0]
            validate_scene(staged)
            self._device.queue.write_buffer(self.scene_buffer, 0, staged.tobytes())
            self._scene = staged
        finally:
            self._writing = False

    def read_scene(self) -> np.ndarray:
        """Return a copy of the current scene description."""
        return self._scene.copy()

    def destroy(self) -> None:
        """Release the GPU buffers and the frame image."""
        for name in ("scene_buffer", "output_buffer", "debug_buffer", "target_image"):
            resource = getattr(self, name, None)
            if resource is not None:
                resource.destroy()
                setattr(self, name, None)
        self.target_view = None
        self.pipeline = None
        self.bind_group = None
