"""Pytest configuration for raymarch tests.

This module provides shared fixtures for all test modules: Taichi
initialization, which must happen once per session, a GPU engine that
is skipped on machines without a usable wgpu adapter, and a recording
stand-in device for tests that only need the resource bookkeeping.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(scope="session")
def gpu_engine():
    """A 64x64 RaymarchEngine shared by the GPU tests.

    Skips the requesting test when no adapter qualifies or the device
    cannot be created (e.g. CI machines without a GPU or software driver).
    """
    from src.raymarch.core.config import RenderConfig
    from src.raymarch.core.engine import RaymarchEngine
    from src.raymarch.core.errors import RenderSetupError

    try:
        engine = RaymarchEngine(RenderConfig(width=64, height=64))
    except RenderSetupError as exc:
        pytest.skip(f"No usable GPU adapter: {exc}")
    yield engine
    engine.close()


@pytest.fixture
def engine(gpu_engine):
    """The shared engine, with the camera restored after each test."""
    initial = gpu_engine.read_scene()[0]
    camera_position = initial["camera_position"].copy()
    look_at = initial["look_at"].copy()
    yield gpu_engine
    with gpu_engine.write_scene() as scene:
        scene["camera_position"] = camera_position
        scene["look_at"] = look_at


class FakeObject:
    """GPU object returned by FakeDevice."""

    def __init__(self, kind, **kwargs):
        self.kind = kind
        self.kwargs = kwargs
        self.destroyed = False
        data = kwargs.get("data")
        self.size = kwargs.get("size", len(data) if data is not None else 0)

    def create_view(self):
        return FakeObject("view", texture=self)

    def destroy(self):
        self.destroyed = True


class FakeQueue:
    def __init__(self):
        self.writes = []

    def write_buffer(self, buffer, offset, data):
        self.writes.append((buffer, offset, bytes(data)))


class FakeDevice:
    """Records create_* calls and returns FakeObjects.

    Setting fail_on to an object kind (e.g. "compute_pipeline") makes the
    matching create_* call raise fail_with instead.
    """

    def __init__(self):
        self.queue = FakeQueue()
        self.created = []
        self.destroyed = False
        self.fail_on = None
        self.fail_with = TypeError("unsupported argument")

    def destroy(self):
        self.destroyed = True

    def __getattr__(self, name):
        if not name.startswith("create_"):
            raise AttributeError(name)
        kind = name[len("create_"):]

        def factory(**kwargs):
            if kind == self.fail_on:
                raise self.fail_with
            obj = FakeObject(kind, **kwargs)
            self.created.append(obj)
            return obj

        return factory


@pytest.fixture
def fake_device():
    """A stand-in wgpu device that records the objects created on it."""
    return FakeDevice()


@pytest.fixture
def default_scene():
    """A fresh copy of the startup scene description."""
    from src.raymarch.scene.builder import create_default_scene

    return create_default_scene()
