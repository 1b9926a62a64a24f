"""Shared fixtures for canvas-flow tests."""

import itertools

import pytest

from canvas_flow.canvas.memory import InMemoryCanvasState
from canvas_flow.canvas.types import Viewport
from canvas_flow.config import Settings
from canvas_flow.engine.executor import ExecutionEnvironment
from canvas_flow.engine.layout import LayoutConfig


@pytest.fixture
def settings():
    """Settings with the built-in defaults."""
    return Settings()


@pytest.fixture
def id_factory():
    """Deterministic ids: image-1, video-2, conn-3 ..."""
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


@pytest.fixture
def canvas():
    """Empty canvas whose viewport center is (600, 400)."""
    return InMemoryCanvasState(viewport=Viewport(width=1200, height=800))


@pytest.fixture
def env(canvas, id_factory, settings):
    """Execution environment over the in-memory canvas."""
    return ExecutionEnvironment(
        canvas=canvas,
        layout=LayoutConfig(),
        id_factory=id_factory,
        settings=settings,
    )
