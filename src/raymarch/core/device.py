"""GPU device selection.

Enumerates compute-capable devices and picks one deterministically:

1. Devices missing any required extension are discarded.
2. For each remaining device, the first queue family whose capabilities
   include the required ones is chosen; devices without such a family are
   discarded.
3. Among the survivors, the device with the best type rank wins
   (discrete < integrated < virtual < CPU < other), ties going to the
   device enumerated first.

There is no fallback: if nothing qualifies, DeviceSelectionError is raised.

The selection logic works on plain DeviceCandidate records so it can be
driven by synthetic device lists. The wgpu helpers at the bottom of the
module translate real adapters into candidates and open the chosen one.
WebGPU exposes a single queue per device that handles graphics, compute
and transfer work, so every adapter is described by one queue family.

Example:
    >>> from src.raymarch.core.device import (
    ...     DeviceCandidate, DeviceType, QueueCapability, select_device)
    >>> cpu = DeviceCandidate("llvmpipe", DeviceType.CPU, frozenset(), (QueueCapability.COMPUTE,))
    >>> gpu = DeviceCandidate("rtx", DeviceType.DISCRETE_GPU, frozenset(), (QueueCapability.COMPUTE,))
    >>> select_device([cpu, gpu], QueueCapability.COMPUTE)[0].name
    'rtx'
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any

import wgpu

from src.raymarch.core.errors import DeviceSelectionError, ResourceCreationError

logger = logging.getLogger(__name__)


class QueueCapability(IntFlag):
    """Kinds of work a queue family accepts."""

    GRAPHICS = 1
    COMPUTE = 2
    TRANSFER = 4


class DeviceType(IntEnum):
    """Physical device type. The value is the preference rank (lower wins)."""

    DISCRETE_GPU = 0
    INTEGRATED_GPU = 1
    VIRTUAL_GPU = 2
    CPU = 3
    OTHER = 4


# Queue family of a WebGPU device
WEBGPU_QUEUE_FAMILY = QueueCapability.GRAPHICS | QueueCapability.COMPUTE | QueueCapability.TRANSFER

_ADAPTER_TYPES = {
    "discretegpu": DeviceType.DISCRETE_GPU,
    "integratedgpu": DeviceType.INTEGRATED_GPU,
    "virtualgpu": DeviceType.VIRTUAL_GPU,
    "cpu": DeviceType.CPU,
}


@dataclass(frozen=True)
class DeviceCandidate:
    """A device considered for selection.

    Attributes:
        name: Human readable device name.
        device_type: Physical device type.
        extensions: Optional features the device supports.
        queue_families: Capabilities of each queue family, in index order.
        handle: Backend object used to open the device (e.g. a wgpu adapter).
    """

    name: str
    device_type: DeviceType
    extensions: frozenset[str]
    queue_families: tuple[QueueCapability, ...]
    handle: Any = field(default=None, compare=False, repr=False)


def find_queue_family(candidate: DeviceCandidate, required: QueueCapability) -> int | None:
    """Return the index of the first queue family supporting required, or None."""
    for index, capabilities in enumerate(candidate.queue_families):
        if (capabilities & required) == required:
            return index
    return None


def select_device(
    candidates: Iterable[DeviceCandidate],
    required_capability: QueueCapability = QueueCapability.COMPUTE,
    required_extensions: Iterable[str] = (),
) -> tuple[DeviceCandidate, int]:
    """Pick the preferred device and queue family.

    Args:
        candidates: Devices in enumeration order.
        required_capability: Capabilities the queue family must support.
        required_extensions: Extensions the device must support.

    Returns:
        The chosen candidate and the index of its queue family.

    Raises:
        DeviceSelectionError: If no candidate qualifies.
    """
    required = frozenset(required_extensions)
    candidates = list(candidates)

    best: tuple[DeviceCandidate, int] | None = None
    for candidate in candidates:
        if not required <= candidate.extensions:
            logger.debug("Skipping %s: missing %s", candidate.name, sorted(required - candidate.extensions))
            continue
        family = find_queue_family(candidate, required_capability)
        if family is None:
            logger.debug("Skipping %s: no queue family with %r", candidate.name, required_capability)
            continue
        # Strict comparison keeps the earliest device on equal rank
        if best is None or candidate.device_type < best[0].device_type:
            best = (candidate, family)

    if best is None:
        raise DeviceSelectionError(
            f"No device supports queue capability {required_capability!r} "
            f"and extensions {sorted(required)}",
            considered=tuple(c.name for c in candidates),
        )
    return best


# =============================================================================
# wgpu backend
# =============================================================================


def device_type_from_adapter_type(adapter_type: str) -> DeviceType:
    """Map a wgpu adapter_type string (e.g. "DiscreteGPU") to a DeviceType."""
    key = adapter_type.lower().replace("-", "").replace("_", "").replace(" ", "")
    return _ADAPTER_TYPES.get(key, DeviceType.OTHER)


def candidate_from_adapter(adapter: Any) -> DeviceCandidate:
    """Describe a wgpu adapter as a DeviceCandidate."""
    info = dict(adapter.info)
    name = str(info.get("device") or info.get("description") or "unknown device")
    return DeviceCandidate(
        name=name,
        device_type=device_type_from_adapter_type(str(info.get("adapter_type", ""))),
        extensions=frozenset(str(f) for f in adapter.features),
        queue_families=(WEBGPU_QUEUE_FAMILY,),
        handle=adapter,
    )


def enumerate_candidates() -> list[DeviceCandidate]:
    """Enumerate all wgpu adapters on this machine."""
    return [candidate_from_adapter(adapter) for adapter in wgpu.gpu.enumerate_adapters_sync()]


def open_device(
    required_capability: QueueCapability = QueueCapability.COMPUTE,
    required_extensions: Iterable[str] = (),
) -> tuple[Any, DeviceCandidate]:
    """Select an adapter and create a logical device on it.

    Returns:
        The wgpu device and the candidate it was created from.

    Raises:
        DeviceSelectionError: If no adapter qualifies.
        ResourceCreationError: If the device cannot be created.
    """
    required = tuple(required_extensions)
    candidate, family = select_device(enumerate_candidates(), required_capability, required)
    logger.info(
        "Using GPU device: %s (type: %s, queue family %d)",
        candidate.name,
        candidate.device_type.name,
        family,
    )
    try:
        device = candidate.handle.request_device_sync(
            label="raymarch.device",
            required_features=list(required),
        )
    except Exception as exc:
        raise ResourceCreationError(f"Failed to create device on {candidate.name}: {exc}") from exc
    if device is None:
        raise ResourceCreationError(f"Device request on {candidate.name} returned None")
    return device, candidate
