"""Raymarch engine: one compute dispatch and readback per frame.

Each call to render() records a single command sequence:

1. bind the compute pipeline and the resource bind group,
2. dispatch ceil(width / 8) x ceil(height / 8) x 1 work groups,
3. copy the frame image into the host-mappable output buffer,

submits it, and blocks until the GPU has finished (mapping the output buffer
waits for all submitted work that writes it). Only then are the pixels
copied out, so the caller always receives a complete frame. At most one
frame is in flight.

The returned array is owned by the engine and overwritten by the next
render() call; copy it if it must outlive that.

Example:
    >>> from src.raymarch.core.engine import RaymarchEngine
    >>> engine = RaymarchEngine()
    >>> pixels = engine.render()
    >>> pixels.nbytes == engine.width * engine.height * 4
    True
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any

import numpy as np
import numpy.typing as npt
import wgpu

from src.raymarch.core.config import RenderConfig
from src.raymarch.core.device import QueueCapability, open_device
from src.raymarch.core.errors import FrameRenderError
from src.raymarch.core.resources import RenderResources
from src.raymarch.scene.builder import create_default_scene
from src.raymarch.scene.layout import DebugTelemetry

logger = logging.getLogger(__name__)


class RaymarchEngine:
    """Renders the scene description into an RGBA8 frame on the GPU.

    Attributes:
        config: Image size and compute program location.
        device_name: Name of the selected GPU device.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        scene: np.ndarray | None = None,
        *,
        device: Any = None,
    ) -> None:
        """Select a device and create all GPU resources.

        Args:
            config: Render configuration (default: 512x512, packaged shader).
            scene: Initial SceneDescription record (default: the startup
                scene from create_default_scene()).
            device: An already created wgpu device. When omitted, a device
                is selected with open_device().

        Raises:
            DeviceSelectionError: If no adapter qualifies.
            ResourceCreationError: If any GPU object cannot be created.
        """
        self.config = config if config is not None else RenderConfig()
        if scene is None:
            scene = create_default_scene()

        owns_device = device is None
        if owns_device:
            device, candidate = open_device(QueueCapability.COMPUTE, self.config.required_features)
            self.device_name = candidate.name
        else:
            self.device_name = str(getattr(device, "label", "") or "external device")

        try:
            resources = RenderResources(device, self.config, scene)
        except Exception:
            if owns_device:
                logger.debug("Releasing %s after failed setup", self.device_name)
                device.destroy()
            raise

        self._device = device
        self._owns_device = owns_device
        self._resources = resources
        self._closed = False
        self._pixels: npt.NDArray[np.uint8] = np.zeros(self.config.frame_nbytes, dtype=np.uint8)
        self._frame_count = 0
        logger.debug("Raymarch engine ready on %s, dispatch grid %s", self.device_name, self.config.dispatch_size)

    @property
    def width(self) -> int:
        """Frame image width in pixels."""
        return self.config.width

    @property
    def height(self) -> int:
        """Frame image height in pixels."""
        return self.config.height

    @property
    def frame_count(self) -> int:
        """Number of frames rendered so far."""
        return self._frame_count

    @property
    def resources(self) -> RenderResources:
        """The GPU resources owned by this engine."""
        return self._resources

    def write_scene(self) -> AbstractContextManager[np.void]:
        """Scoped write access to the scene description.

        See RenderResources.write_scene().
        """
        return self._resources.write_scene()

    def read_scene(self) -> np.ndarray:
        """Return a copy of the current scene description."""
        return self._resources.read_scene()

    def render(self) -> npt.NDArray[np.uint8]:
        """Render one frame.

        Returns:
            Flat uint8 array of width * height * 4 bytes in row-major RGBA
            order. The array is reused by the next call.

        Raises:
            FrameRenderError: If recording, submission or the wait fails,
                or the engine has been closed.
        """
        self._check_open()
        res = self._resources
        width, height = self.config.width, self.config.height
        row_bytes = width * 4

        try:
            encoder = self._device.create_command_encoder(label="raymarch.frame")

            compute_pass = encoder.begin_compute_pass(label="raymarch.dispatch")
            compute_pass.set_pipeline(res.pipeline)
            compute_pass.set_bind_group(0, res.bind_group)
            compute_pass.dispatch_workgroups(*self.config.dispatch_size)
            compute_pass.end()

            encoder.copy_texture_to_buffer(
                {"texture": res.target_image, "mip_level": 0, "origin": (0, 0, 0)},
                {
                    "buffer": res.output_buffer,
                    "offset": 0,
                    "bytes_per_row": res.bytes_per_row,
                    "rows_per_image": height,
                },
                (width, height, 1),
            )
            self._device.queue.submit([encoder.finish()])

            # Blocks until the submitted work has completed
            res.output_buffer.map_sync(wgpu.MapMode.READ)
            try:
                mapped = res.output_buffer.read_mapped(copy=False)
                rows = np.frombuffer(mapped, dtype=np.uint8).reshape(height, res.bytes_per_row)
                self._pixels.reshape(height, row_bytes)[...] = rows[:, :row_bytes]
                # Views into the mapped range must not outlive unmap()
                del rows, mapped
            finally:
                res.output_buffer.unmap()
        except wgpu.GPUError as exc:
            raise FrameRenderError(f"Frame {self._frame_count} failed: {exc}") from exc

        self._frame_count += 1
        return self._pixels

    def frame_image(self) -> npt.NDArray[np.uint8]:
        """View of the last rendered frame as a (height, width, 4) array."""
        return self._pixels.reshape(self.config.height, self.config.width, 4)

    def read_debug_telemetry(self) -> DebugTelemetry:
        """Read back the ray sampled by the centre pixel in the last frame.

        This is a diagnostic only; before the first frame both vectors are
        zero.
        """
        self._check_open()
        data = self._device.queue.read_buffer(self._resources.debug_buffer)
        return DebugTelemetry.from_bytes(data)

    def _check_open(self) -> None:
        if self._closed:
            raise FrameRenderError("Engine is closed")

    def close(self) -> None:
        """Release all GPU resources, and the device if the engine opened it.

        Calling close() more than once has no further effect.
        """
        if self._closed:
            return
        self._closed = True
        self._resources.destroy()
        if self._owns_device:
            self._device.destroy()
        logger.debug("Raymarch engine on %s closed after %d frames", self.device_name, self._frame_count)

    def __enter__(self) -> RaymarchEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"RaymarchEngine(width={self.width}, height={self.height}, "
            f"device={self.device_name!r}, frames={self._frame_count})"
        )
