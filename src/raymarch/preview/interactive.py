"""Interactive preview window using Taichi GGUI.

Hosts the raymarch engine in a ti.ui.Window: each frame polls the keyboard
and pointer, lets the camera controller update the scene description,
renders one frame on the GPU and shows it on the canvas.

Controls:
    - W / S: dolly forward / back
    - A / D: strafe left / right
    - Space / Shift: move up / down
    - Left mouse drag: orbit the look-at point around the camera
    - Escape or closing the window: exit

Example:
    >>> import taichi as ti
    >>> from src.raymarch.core.engine import RaymarchEngine
    >>> from src.raymarch.preview.interactive import InteractivePreview
    >>>
    >>> ti.init(arch=ti.cpu)
    >>> with RaymarchEngine() as engine:
    ...     InteractivePreview(engine).run()
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from src.raymarch.camera.orbit import CameraConfig, CameraController, InputState
from src.raymarch.preview.export import save_png, timestamped_filename

if TYPE_CHECKING:
    import numpy.typing as npt

    from src.raymarch.core.engine import RaymarchEngine
    from src.raymarch.scene.layout import DebugTelemetry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewConfig:
    """Window settings for the interactive preview.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        title: Window title.
        target_fps: Upper bound on the frame rate.
        fps_report_interval: Number of frames between FPS estimates.
    """

    width: int = 1024
    height: int = 1024
    title: str = "Raymarcher"
    target_fps: float = 20.0
    fps_report_interval: int = 10

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Window size must be positive, got {self.width}x{self.height}")
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if self.fps_report_interval <= 0:
            raise ValueError(
                f"fps_report_interval must be positive, got {self.fps_report_interval}"
            )


def rgba8_to_display(
    pixels: npt.NDArray[np.uint8], width: int, height: int
) -> npt.NDArray[np.float32]:
    """Convert an RGBA8 frame to the layout of a Taichi display field.

    Args:
        pixels: Flat or (height, width, 4) uint8 RGBA array, first row at the
            top of the image.
        width: Frame width in pixels.
        height: Frame height in pixels.

    Returns:
        float32 array of shape (width, height, 3) with values in [0, 1],
        flipped for Taichi's bottom-left origin.

    Raises:
        ValueError: If the array size doesn't match width * height * 4.
    """
    if pixels.size != width * height * 4:
        raise ValueError(
            f"Frame has {pixels.size} bytes, expected {width * height * 4} for {width}x{height}"
        )
    rgb = pixels.reshape(height, width, 4)[:, :, :3]
    # Taichi fields are indexed (x, y) with y up; NumPy images are (row, col) with row 0 on top
    return np.ascontiguousarray(
        np.transpose(np.flipud(rgb), (1, 0, 2)), dtype=np.float32
    ) / np.float32(255.0)


def is_display_available() -> bool:
    """Check if a display is available for GUI rendering.

    Returns:
        True if a display is available, False for headless environments.
    """
    display = os.environ.get("DISPLAY")
    wayland = os.environ.get("WAYLAND_DISPLAY")

    if os.name == "nt":
        return True

    if os.uname().sysname == "Darwin":
        # SSH sessions without X forwarding have no display
        return not (os.environ.get("SSH_CONNECTION") and not display)

    return bool(display or wayland)


def cursor_to_window(cursor: tuple[float, float], width: int, height: int) -> tuple[float, float]:
    """Convert a GGUI cursor position to window pixels.

    GGUI reports the cursor normalized to [0, 1] with the origin at the
    bottom-left, and can report values past the edges (for example while a
    button is held and the pointer leaves the window). The result has the
    origin at the top-left and y growing downward; positions outside the
    window are not clamped.
    """
    cursor_x, cursor_y = cursor
    return cursor_x * width, (1.0 - cursor_y) * height


class InteractivePreview:
    """Taichi GGUI window driving a RaymarchEngine.

    Attributes:
        engine: The engine rendering the frames.
        controller: Camera controller fed with the polled input.
        config: Window settings.
        display_image: Taichi field holding the frame shown on the canvas.
        fps: Most recent frame rate estimate.
    """

    def __init__(
        self,
        engine: RaymarchEngine,
        controller: CameraController | None = None,
        config: PreviewConfig | None = None,
    ) -> None:
        """Create the preview.

        The window itself is created lazily so that a preview can be built
        in headless environments.

        Args:
            engine: The engine to render with.
            controller: Camera controller (default: one whose viewport
                matches the window size).
            config: Window settings (default: PreviewConfig()).

        Note:
            Taichi must be initialized before calling this.
        """
        self.engine = engine
        self.config = config if config is not None else PreviewConfig()
        if controller is None:
            controller = CameraController(
                CameraConfig(viewport=(float(self.config.width), float(self.config.height)))
            )
        self.controller = controller
        self.fps = 0.0

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None
        self._exit_requested = False

        # Shape is (width, height) for Taichi field, RGB values stored as vec3
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(engine.width, engine.height)
        )

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(
            name=self.config.title,
            res=(self.config.width, self.config.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def is_running(self) -> bool:
        """True until the window is closed or Escape is pressed."""
        return self.window.running and not self._exit_requested

    def update_image(self, pixels: npt.NDArray[np.uint8]) -> None:
        """Upload an RGBA8 frame from the engine into the display field."""
        self.display_image.from_numpy(
            rgba8_to_display(pixels, self.engine.width, self.engine.height)
        )

    def poll_input(self) -> InputState:
        """Sample the keyboard and pointer for this frame."""
        window = self.window
        if window.is_pressed(ti.ui.ESCAPE):
            self._exit_requested = True

        pointer = cursor_to_window(window.get_cursor_pos(), self.config.width, self.config.height)

        return InputState(
            forward=window.is_pressed("w"),
            back=window.is_pressed("s"),
            left=window.is_pressed("a"),
            right=window.is_pressed("d"),
            up=window.is_pressed(ti.ui.SPACE),
            down=window.is_pressed(ti.ui.SHIFT),
            primary_button=window.is_pressed(ti.ui.LMB),
            pointer=pointer,
        )

    def step(self) -> None:
        """Run one iteration: poll, move the camera, render, show."""
        inputs = self.poll_input()
        self.controller.tick(self.engine, inputs)
        pixels = self.engine.render()
        self.update_image(pixels)
        self.canvas.set_image(self.display_image)
        self._draw_gui_panel()
        self.window.show()

    def run(self) -> DebugTelemetry:
        """Run the window loop until the window is closed.

        The loop is paced to config.target_fps. Frame rate estimates are
        refreshed every config.fps_report_interval frames.

        Returns:
            The debug telemetry of the last rendered frame, which is also
            printed on exit.
        """
        self._initialize_window()
        frame_budget = 1.0 / self.config.target_fps
        interval = self.config.fps_report_interval
        frames_since_report = 0
        report_start = time.perf_counter()

        while self.is_running():
            frame_start = time.perf_counter()
            self.step()

            frames_since_report += 1
            if frames_since_report == interval:
                now = time.perf_counter()
                self.fps = interval / max(now - report_start, 1e-9)
                logger.debug("%.1f fps over the last %d frames", self.fps, interval)
                frames_since_report = 0
                report_start = now

            elapsed = time.perf_counter() - frame_start
            if elapsed < frame_budget:
                time.sleep(frame_budget - elapsed)

        telemetry = self.engine.read_debug_telemetry()
        print(f"[DEBUG] ray_origin: {telemetry.ray_origin}")
        print(f"[DEBUG] ray_direction: {telemetry.ray_direction}")
        return telemetry

    def _draw_gui_panel(self) -> None:
        scene = self.engine.read_scene()[0]
        camera = scene["camera_position"]
        look_at = scene["look_at"]

        with self.window.GUI.sub_window("Control Panel", 0.02, 0.02, 0.3, 0.2) as gui:
            gui.text(f"FPS: {self.fps:.1f}")
            gui.text(f"Frame: {self.engine.frame_count}")
            gui.text(f"Camera: ({camera[0]:.2f}, {camera[1]:.2f}, {camera[2]:.2f})")
            gui.text(f"Look at: ({look_at[0]:.2f}, {look_at[1]:.2f}, {look_at[2]:.2f})")
            if gui.button("Export PNG"):
                self._export_png()

    def _export_png(self) -> None:
        filename = timestamped_filename()
        save_png(self.engine.frame_image(), self.engine.width, self.engine.height, filename)
        print(f"Exported: {filename} (frame {self.engine.frame_count})")

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False
