#!/usr/bin/env python3
"""Interactive raymarcher with an orbit camera.

Opens a Taichi GGUI window showing the default scene (a Mandelbulb and two
spheres) rendered by the GPU compute program every frame.

Usage:
    python -m examples.interactive_raymarch [--size N] [--window N] [--verbose]

Controls:
    - W / S: Move forward / back
    - A / D: Strafe left / right
    - Space / Shift: Move up / down
    - Left mouse drag: Orbit the view
    - Export PNG: Save the current frame with a timestamp
    - Escape or close the window: Exit
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import taichi as ti  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Interactive GPU raymarcher.")
    parser.add_argument("--size", type=int, default=512, help="Frame image size in pixels (default: 512)")
    parser.add_argument("--window", type=int, default=1024, help="Window size in pixels (default: 1024)")
    parser.add_argument("--fps", type=float, default=20.0, help="Frame rate limit (default: 20)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the interactive raymarcher.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Falls back to the CPU backend when no GPU backend is usable
    ti.init(arch=ti.gpu)

    # Import after Taichi initialization
    from src.raymarch.core.config import RenderConfig
    from src.raymarch.core.engine import RaymarchEngine
    from src.raymarch.core.errors import RaymarchError
    from src.raymarch.preview.interactive import (
        InteractivePreview,
        PreviewConfig,
        is_display_available,
    )

    if not is_display_available():
        print("Error: No display available. Cannot run interactive preview.")
        print("This script requires a graphical display environment.")
        return 1

    try:
        engine = RaymarchEngine(RenderConfig(width=args.size, height=args.size))
    except (RaymarchError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Rendering on {engine.device_name} ({engine.width}x{engine.height})")
    print("  - W/S: forward/back, A/D: strafe, Space/Shift: up/down")
    print("  - Drag with the left mouse button to orbit")
    print("  - Press Escape or close the window to exit")
    print()

    preview = InteractivePreview(
        engine,
        config=PreviewConfig(width=args.window, height=args.window, target_fps=args.fps),
    )
    try:
        preview.run()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    except RaymarchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        preview.close()
        engine.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
