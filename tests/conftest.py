"""Pytest configuration for beamtracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field allocated by the beamtracer modules.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_device_state():
    """Clear the uploaded scene and the render target around each test."""
    # Field-owning modules can only be imported after ti.init
    from beamtracer.core.integrator import clear_render_target, reset_stats
    from beamtracer.scene.buffers import clear_scene

    def _clear_all():
        clear_scene()
        clear_render_target()
        reset_stats()

    _clear_all()
    yield
    _clear_all()
