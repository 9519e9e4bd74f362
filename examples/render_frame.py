#!/usr/bin/env python3
"""Render the default raymarch scene to a PNG without opening a window.

Usage:
    python -m examples.render_frame [options]

Options:
    --width WIDTH       Image width in pixels (default: 512)
    --height HEIGHT     Image height in pixels (default: 512)
    --shader PATH       WGSL compute program (default: packaged shader)
    --output OUTPUT     Output file path (default: raymarch.png)
    --forward N         Dolly the camera forward N ticks before rendering
    --frames N          Number of frames to render for timing (default: 1)
    --verbose           Enable debug logging

Example:
    python -m examples.render_frame --width 256 --height 256 --forward 3
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from src.raymarch.camera.orbit import CameraController, InputState  # noqa: E402
from src.raymarch.core.config import DEFAULT_SHADER_PATH, RenderConfig  # noqa: E402
from src.raymarch.core.engine import RaymarchEngine  # noqa: E402
from src.raymarch.core.errors import RaymarchError  # noqa: E402
from src.raymarch.preview.export import save_png  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the default raymarch scene to a PNG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=512, help="Image width in pixels (default: 512)")
    parser.add_argument("--height", type=int, default=512, help="Image height in pixels (default: 512)")
    parser.add_argument(
        "--shader",
        type=Path,
        default=DEFAULT_SHADER_PATH,
        help="WGSL compute program (default: packaged shader)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="raymarch.png",
        help="Output file path (default: raymarch.png)",
    )
    parser.add_argument(
        "--forward",
        type=int,
        default=0,
        help="Dolly the camera forward this many ticks before rendering",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=1,
        help="Number of frames to render for timing (default: 1)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def render_frame(
    config: RenderConfig,
    output_path: str,
    *,
    forward_ticks: int = 0,
    frames: int = 1,
) -> Path:
    """Render the default scene and save the last frame.

    Args:
        config: Render configuration.
        output_path: Output file path (PNG).
        forward_ticks: Camera controller ticks with the forward key held.
        frames: Number of frames to render; only the last one is saved.

    Returns:
        Path to the saved image file.
    """
    if frames < 1:
        raise ValueError(f"frames must be at least 1, got {frames}")

    with RaymarchEngine(config) as engine:
        print(f"Rendering on {engine.device_name} ({engine.width}x{engine.height})...")

        controller = CameraController()
        for _ in range(forward_ticks):
            controller.tick(engine, InputState(forward=True))

        start_time = time.perf_counter()
        for _ in range(frames):
            pixels = engine.render()
        elapsed = time.perf_counter() - start_time

        output_file = save_png(pixels, engine.width, engine.height, output_path)

        telemetry = engine.read_debug_telemetry()
        print(f"[DEBUG] ray_origin: {telemetry.ray_origin}")
        print(f"[DEBUG] ray_direction: {telemetry.ray_direction}")
        print(f"Rendered {frames} frame(s) in {elapsed:.3f}s ({frames / max(elapsed, 1e-9):.1f} fps)")
        print(f"Saved to: {output_file.absolute()}")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = RenderConfig(width=args.width, height=args.height, shader_path=args.shader)
        render_frame(config, args.output, forward_ticks=args.forward, frames=args.frames)
        return 0
    except (RaymarchError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
