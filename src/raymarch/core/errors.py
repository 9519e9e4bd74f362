"""Exception types raised by the render engine.

Setup failures (no usable adapter, resource or pipeline creation) and
per-frame failures (encoding, submission, readback) are both fatal: the
engine never returns a partially constructed object or a partial frame.
Callers are expected to let these propagate to the top-level entry point.
"""


class RaymarchError(RuntimeError):
    """Base class for all render engine errors."""


class RenderSetupError(RaymarchError):
    """Raised when the engine cannot be constructed."""


class DeviceSelectionError(RenderSetupError):
    """Raised when no enumerated device satisfies the requirements.

    Attributes:
        considered: Names of the devices that were enumerated.
    """

    def __init__(self, message: str, considered: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.considered = considered


class ResourceCreationError(RenderSetupError):
    """Raised when a buffer, texture, shader or pipeline cannot be created."""


class FrameRenderError(RaymarchError):
    """Raised when recording, submitting or waiting on a frame fails."""
